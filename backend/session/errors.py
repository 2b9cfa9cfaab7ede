"""
Session error kinds.

Propagation:
- Errors found before any I/O (bad config) are raised by the call.
- Errors arriving on the transport event stream go to on_error observers.

Messages never contain credentials.
"""

from __future__ import annotations

from enum import Enum


class ErrorKind(str, Enum):
    INVALID_CONFIG = "invalid_config"
    HANDSHAKE_FAILED = "handshake_failed"
    MAX_RECONNECT_ATTEMPTS_EXCEEDED = "max_reconnect_attempts_exceeded"
    CAPABILITY_UNAVAILABLE = "capability_unavailable"
    CREDENTIAL_ISSUANCE_FAILED = "credential_issuance_failed"
    NO_ACTIVE_CONFIG = "no_active_config"


class SessionError(Exception):
    """Base class for session errors."""

    kind: ErrorKind

    def __init__(
        self,
        message: str,
        *,
        room_name: str | None = None,
        attempt: int | None = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.room_name = room_name
        self.attempt = attempt

    @property
    def retryable(self) -> bool:
        """Whether the UI should offer a retry action."""
        return self.kind in (
            ErrorKind.HANDSHAKE_FAILED,
            ErrorKind.CREDENTIAL_ISSUANCE_FAILED,
            ErrorKind.MAX_RECONNECT_ATTEMPTS_EXCEEDED,
        )

    def log_context(self) -> dict[str, object]:
        return {
            "error_kind": self.kind.value,
            "error": self.message,
            "room_name": self.room_name,
            "attempt": self.attempt,
        }


class InvalidConfig(SessionError):
    """Malformed URL or token shape. Detected locally, no network call made."""

    kind = ErrorKind.INVALID_CONFIG


class HandshakeFailed(SessionError):
    """Network or auth rejection during connect. Never retried automatically."""

    kind = ErrorKind.HANDSHAKE_FAILED


class MaxReconnectAttemptsExceeded(SessionError):
    """Terminal: automatic recovery abandoned."""

    kind = ErrorKind.MAX_RECONNECT_ATTEMPTS_EXCEEDED


class CapabilityUnavailable(SessionError):
    """Camera/microphone could not be acquired. Connection stays usable."""

    kind = ErrorKind.CAPABILITY_UNAVAILABLE


class CredentialIssuanceFailed(SessionError):
    """Token endpoint returned a failure or a malformed payload."""

    kind = ErrorKind.CREDENTIAL_ISSUANCE_FAILED

    def __init__(
        self,
        message: str,
        *,
        room_name: str | None = None,
        status_code: int | None = None,
    ) -> None:
        super().__init__(message, room_name=room_name)
        self.status_code = status_code

    def log_context(self) -> dict[str, object]:
        return {**super().log_context(), "status_code": self.status_code}


class NoActiveConfig(SessionError):
    """reconnect() called with no stored connection config."""

    kind = ErrorKind.NO_ACTIVE_CONFIG


# ---------------------------------------------------------------------
# Handshake failure classification
# ---------------------------------------------------------------------

def describe_handshake_failure(exc: BaseException) -> str:
    """
    Map an SDK connect failure to a user-facing message.

    Matching is on the lowercased exception text; unknown failures keep
    their own message.
    """
    text = str(exc)
    lowered = text.lower()
    if "token" in lowered:
        return "Invalid access token. Please try again."
    if "network" in lowered or "websocket" in lowered:
        return "Network connection failed. Please check your internet connection."
    if "permission" in lowered:
        return "Permission denied. Please allow camera and microphone access."
    if "timeout" in lowered:
        return "Connection timeout. Please try again."
    return text or "Connection failed"
