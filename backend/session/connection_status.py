"""
Connection status tracking for a voice-server session.

Owned exclusively by SessionClient. The boolean flags exposed to
consumers (connected, connection_attempted) are derived from this enum
so they can never disagree.
"""
from enum import Enum

class ConnectionStatus(str, Enum):
    """
    Session connection lifecycle.

    IDLE -> CONNECTING -> UP -> DOWN
    CONNECTING -> FAILED   (handshake failed)
    UP -> FAILED           (terminal error event after ready)
    """
    IDLE = "IDLE"              # connect() never called
    CONNECTING = "CONNECTING"  # handshake in flight
    UP = "UP"                  # ready signal received
    DOWN = "DOWN"              # explicitly disconnected
    FAILED = "FAILED"          # handshake failed or session terminated

    @property
    def connected(self) -> bool:
        return self is ConnectionStatus.UP

    @property
    def attempted(self) -> bool:
        return self is not ConnectionStatus.IDLE
