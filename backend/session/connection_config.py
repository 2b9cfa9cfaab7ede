"""
Connection config: one immutable value per connect attempt.

Validation happens here, before any transport is constructed, so a
malformed URL or token fails fast without a network round trip.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

from constants import ALLOWED_URL_SCHEMES, TOKEN_SEGMENT_COUNT
from session.errors import InvalidConfig


class ParticipantRole(str, Enum):
    MODERATOR = "moderator"
    PARTICIPANT = "participant"
    AUDIENCE = "audience"

    @classmethod
    def parse(cls, value: str | ParticipantRole) -> ParticipantRole:
        """
        Parse a role name. "debater" is an alias for participant.

        Raises:
            ValueError for unknown roles.
        """
        if isinstance(value, ParticipantRole):
            return value
        normalized = value.strip().lower()
        if normalized == "debater":
            return cls.PARTICIPANT
        return cls(normalized)

    @property
    def publishes_media(self) -> bool:
        return self is not ParticipantRole.AUDIENCE


@dataclass(frozen=True)
class ConnectionConfig:
    """Everything needed to join one room as one local identity."""

    url: str
    token: str
    room_name: str
    participant_name: str
    role: ParticipantRole = ParticipantRole.PARTICIPANT

    def log_context(self) -> dict[str, str]:
        """Loggable fields. Never includes the token."""
        return {
            "room_name": self.room_name,
            "participant_name": self.participant_name,
            "role": self.role.value,
        }


def is_websocket_url(url: str | None) -> bool:
    if not url:
        return False
    return url.startswith(ALLOWED_URL_SCHEMES)


def is_well_formed_token(token: str | None) -> bool:
    """A signed token is exactly three non-empty dot-separated segments."""
    if not token:
        return False
    segments = token.split(".")
    return len(segments) == TOKEN_SEGMENT_COUNT and all(segments)


def validate_connection_config(config: ConnectionConfig) -> None:
    """
    Raises:
        InvalidConfig if the URL is not ws:// / wss://, the token is not a
        three-segment signed credential, or the room name is empty.
    """
    if not is_websocket_url(config.url):
        raise InvalidConfig(
            "Invalid WebSocket URL format: expected ws:// or wss://",
            room_name=config.room_name,
        )
    if not is_well_formed_token(config.token):
        raise InvalidConfig(
            "Invalid access token format: expected a three-segment signed token",
            room_name=config.room_name,
        )
    if not config.room_name:
        raise InvalidConfig("Room name is required")
