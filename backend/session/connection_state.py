"""
Connection lifecycle state for a session connection manager.

DISCONNECTED -> CONNECTING -> CONNECTED <-> RECONNECTING -> DISCONNECTED

Exactly one value per manager. Transitions are driven by handshake
results and transport events, never set directly by callers.
"""
from enum import Enum


class ConnectionState(str, Enum):
    """Room connection lifecycle."""

    DISCONNECTED = "DISCONNECTED"  # No room, or left / gave up
    CONNECTING = "CONNECTING"      # Handshake in flight
    CONNECTED = "CONNECTED"        # Joined, roster live
    RECONNECTING = "RECONNECTING"  # Dropped; backoff timer or SDK resume pending
