"""
Tagged transport events.

Rules:
- Events describe facts reported by the transport.
- Events carry data only (no behavior).
- SDK payloads are translated into these at the transport boundary;
  the manager never inspects untyped SDK objects.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


# =============================================================================
# Event Type Enumeration
# =============================================================================

class TransportEventType(str, Enum):
    CONNECTED = "CONNECTED"
    DISCONNECTED = "DISCONNECTED"
    RECONNECTING = "RECONNECTING"
    RECONNECTED = "RECONNECTED"
    PARTICIPANT_JOINED = "PARTICIPANT_JOINED"
    PARTICIPANT_LEFT = "PARTICIPANT_LEFT"
    MEDIA_DEVICE_ERROR = "MEDIA_DEVICE_ERROR"


class DisconnectReason(str, Enum):
    """
    Why the transport left the room.

    Names mirror the SDK's reasons so they can be matched by name.
    Only CLIENT_INITIATED suppresses auto-reconnect.
    """

    UNKNOWN_REASON = "UNKNOWN_REASON"
    CLIENT_INITIATED = "CLIENT_INITIATED"
    DUPLICATE_IDENTITY = "DUPLICATE_IDENTITY"
    SERVER_SHUTDOWN = "SERVER_SHUTDOWN"
    PARTICIPANT_REMOVED = "PARTICIPANT_REMOVED"
    ROOM_DELETED = "ROOM_DELETED"
    STATE_MISMATCH = "STATE_MISMATCH"
    JOIN_FAILURE = "JOIN_FAILURE"
    SIGNAL_CLOSE = "SIGNAL_CLOSE"


# =============================================================================
# Events
# =============================================================================

@dataclass(frozen=True)
class TransportEvent:
    """Base event; event_type is the discriminant."""

    event_type: TransportEventType


@dataclass(frozen=True)
class Connected(TransportEvent):
    event_type: TransportEventType = TransportEventType.CONNECTED


@dataclass(frozen=True)
class Disconnected(TransportEvent):
    event_type: TransportEventType = TransportEventType.DISCONNECTED
    reason: DisconnectReason = DisconnectReason.UNKNOWN_REASON


@dataclass(frozen=True)
class Reconnecting(TransportEvent):
    event_type: TransportEventType = TransportEventType.RECONNECTING


@dataclass(frozen=True)
class Reconnected(TransportEvent):
    event_type: TransportEventType = TransportEventType.RECONNECTED


@dataclass(frozen=True)
class ParticipantJoined(TransportEvent):
    event_type: TransportEventType = TransportEventType.PARTICIPANT_JOINED
    participant_id: str = ""
    identity: str = ""


@dataclass(frozen=True)
class ParticipantLeft(TransportEvent):
    event_type: TransportEventType = TransportEventType.PARTICIPANT_LEFT
    participant_id: str = ""
    identity: str = ""


@dataclass(frozen=True)
class MediaDeviceError(TransportEvent):
    event_type: TransportEventType = TransportEventType.MEDIA_DEVICE_ERROR
    detail: str = ""
