"""Audio configuration status."""

from __future__ import annotations

from enum import Enum


class AudioStatus(str, Enum):
    """
    NOT_CONFIGURED: setup not run yet (or reset by reconfiguration)
    SETUP_ERROR:    capture/playback initialization failed
    CONFIGURED:     mic and speaker are attached to the session
    """

    NOT_CONFIGURED = "NOT_CONFIGURED"
    SETUP_ERROR = "SETUP_ERROR"
    CONFIGURED = "CONFIGURED"
