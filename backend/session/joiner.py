"""
Channel join with bounded confirmation polling.

The server confirms channel membership asynchronously, so after issuing
join() we poll the session's current channel, yielding to the event loop
between attempts. The retry budget counts attempts, not wall-clock time.
"""

from __future__ import annotations

import asyncio
from typing import Callable

from adapters.voice.base import VoiceChannel
from errors import ChannelNotFoundError, JoinError, JoinTimeoutError
from observability.logger import log_event
from observability.metrics import timed
from session.channel import ChannelRef
from spec import CHANNEL_JOIN_POLL_DELAY_S, CHANNEL_JOIN_RETRY_LIMIT


class ChannelJoiner:
    def __init__(
        self,
        *,
        current_channel_id: Callable[[], int | None],
        retry_limit: int = CHANNEL_JOIN_RETRY_LIMIT,
        poll_delay_s: float = CHANNEL_JOIN_POLL_DELAY_S,
    ) -> None:
        if retry_limit < 1:
            raise ValueError("retry_limit must be >= 1")
        self._current_channel_id = current_channel_id
        self._retry_limit = retry_limit
        self._poll_delay_s = poll_delay_s

    async def join(
        self,
        lookup: Callable[[], VoiceChannel | None],
        argument: str | int,
    ) -> ChannelRef:
        """
        Join the channel returned by `lookup`.

        Args:
            lookup: returns the target channel, or None if it does not exist
            argument: the name/id the caller asked for (error messages only)

        Raises:
            ChannelNotFoundError: lookup returned None (no join, no poll)
            JoinTimeoutError: membership not observed after retry_limit polls
            JoinError: the underlying join request raised
        """
        channel = lookup()
        if channel is None:
            log_event({
                "event_type": "CHANNEL_JOIN_NOT_FOUND",
                "level": "error",
                "channel": argument,
            })
            raise ChannelNotFoundError(f"Channel '{argument}' does not exist")

        target = ChannelRef.from_channel(channel)

        with timed("channel_join", details={"channel": target.name}):
            try:
                channel.join()
            except Exception as exc:  # pylint: disable=broad-exception-caught
                log_event({
                    "event_type": "CHANNEL_JOIN_REQUEST_FAILED",
                    "level": "error",
                    "channel": argument,
                    "error": repr(exc),
                })
                raise JoinError(f"Error joining channel '{argument}'", inner=exc) from exc

            for attempt in range(1, self._retry_limit + 1):
                if self._current_channel_id() == target.id:
                    log_event({
                        "event_type": "CHANNEL_JOINED",
                        "channel_id": target.id,
                        "channel": target.name,
                        "attempts": attempt,
                    })
                    return target
                await asyncio.sleep(self._poll_delay_s)

            log_event({
                "event_type": "CHANNEL_JOIN_TIMEOUT",
                "level": "error",
                "channel": argument,
                "attempts": self._retry_limit,
            })
            raise JoinTimeoutError(
                f"Max retry exceeded joining channel '{argument}' ({self._retry_limit} attempts)"
            )
