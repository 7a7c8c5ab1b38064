"""
SPEC-AS-CONSTANTS
-----------------
Single source of truth for all behavioral invariants of the intercom.

Rules:
- If changing a value changes runtime behavior, it belongs here.
- No magic numbers elsewhere in the codebase.
- Other modules MUST import from this file.
"""

from __future__ import annotations

from typing import Final

# =============================================================================
# Voice Audio Format (PCM16 mono @ 48kHz)
# =============================================================================

AUDIO_SAMPLE_RATE_HZ: Final[int] = 48_000
AUDIO_CHANNELS: Final[int] = 1
AUDIO_SAMPLE_WIDTH_BYTES: Final[int] = 2  # PCM16 (signed 16-bit)
AUDIO_DTYPE: Final[str] = "int16"

# Capture block size handed to the session sink per callback (10ms)
AUDIO_BLOCK_MS: Final[int] = 10
AUDIO_BLOCK_FRAMES: Final[int] = (AUDIO_SAMPLE_RATE_HZ * AUDIO_BLOCK_MS) // 1000

# =============================================================================
# Session / Channel Join
# =============================================================================

MUMBLE_DEFAULT_PORT: Final[int] = 64738

# Attempt budget, not a wall-clock budget: each attempt yields to the loop once
CHANNEL_JOIN_RETRY_LIMIT: Final[int] = 1000
CHANNEL_JOIN_POLL_DELAY_S: Final[float] = 0.0

SESSION_CONNECT_TIMEOUT_S: Final[float] = 30.0

# =============================================================================
# Push-to-talk Latch
# =============================================================================

LATCH_HOLD_MAX_MS: Final[int] = 500
LATCH_GAP_MULTIPLIER: Final[float] = 1.5
LATCH_GAP_MAX_MS: Final[float] = LATCH_HOLD_MAX_MS * LATCH_GAP_MULTIPLIER

# Depth of each key-down / key-up timestamp history
TALK_HISTORY_DEPTH: Final[int] = 2

CALL_START_MESSAGE: Final[str] = "CALLING"
CALL_END_MESSAGE: Final[str] = "END CALLING"

# =============================================================================
# Health
# =============================================================================

HEALTH_POLL_INTERVAL_S: Final[float] = 1.0

# Error flasher blink timing (seconds on / off)
ERROR_FLASH_ON_S: Final[float] = 0.25
ERROR_FLASH_OFF_S: Final[float] = 0.25
