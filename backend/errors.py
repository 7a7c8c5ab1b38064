"""
Error taxonomy for the intercom.

Every error carries an HTTP-style status code so the control surface can
report it without a translation table:

- SessionConnectionError (500): transport / handshake failure
- ChannelNotFoundError   (404): named or identified channel is absent
- JoinTimeoutError       (504): join never confirmed within retry budget
- InvalidStateError      (400): operation not valid in current state
- AudioSetupError        (500): capture/playback initialization failure
"""

from __future__ import annotations


class PiComError(Exception):
    """Base class for all intercom errors."""

    code: int = 500

    def __init__(
        self,
        message: str,
        *,
        code: int | None = None,
        inner: BaseException | None = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        if code is not None:
            self.code = code
        self.inner = inner

    def to_dict(self) -> dict[str, object]:
        return {
            "error": type(self).__name__,
            "code": self.code,
            "message": self.message,
            "inner": repr(self.inner) if self.inner is not None else None,
        }


class SessionConnectionError(PiComError):
    """Connecting or handshaking with the voice server failed."""


class JoinError(PiComError):
    """Joining a channel failed."""


class ChannelNotFoundError(JoinError):
    """The requested channel does not exist on the server."""

    code = 404


class JoinTimeoutError(JoinError):
    """Channel membership was never confirmed within the retry budget."""

    code = 504


class InvalidStateError(PiComError):
    """Operation requested in a state that does not permit it."""

    code = 400


class AudioSetupError(PiComError):
    """Microphone or speaker could not be initialized."""
