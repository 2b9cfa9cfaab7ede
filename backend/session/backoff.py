"""
Reconnect backoff policy.

Purpose:
- Centralize the reconnect rules
- Let the manager make deterministic scheduling decisions

This module contains NO timers, NO async, NO side effects.
"""
from __future__ import annotations

from dataclasses import dataclass

from constants import (
    MAX_RECONNECT_ATTEMPTS,
    RECONNECT_BASE_DELAY_MS,
    RECONNECT_MAX_DELAY_MS,
)


@dataclass(frozen=True)
class ReconnectPolicy:
    """
    Immutable backoff parameters.

    attempt == 0 is the first reconnect after a drop.
    """
    base_delay_ms: int = RECONNECT_BASE_DELAY_MS
    max_delay_ms: int = RECONNECT_MAX_DELAY_MS
    max_attempts: int = MAX_RECONNECT_ATTEMPTS

    def __post_init__(self) -> None:
        if self.base_delay_ms <= 0:
            raise ValueError("base_delay_ms must be positive")
        if self.max_delay_ms < self.base_delay_ms:
            raise ValueError("max_delay_ms must be >= base_delay_ms")
        if self.max_attempts < 0:
            raise ValueError("max_attempts must be >= 0")


def should_reconnect(policy: ReconnectPolicy, attempt: int) -> bool:
    """
    Returns True if another automatic attempt is allowed.

    attempt = number of reconnects already scheduled since the last
    successful connection.
    """
    return attempt < policy.max_attempts


def reconnect_delay_ms(policy: ReconnectPolicy, attempt: int) -> int:
    """
    Delay before reconnect attempt N (0-based).

    min(base * 2**attempt, max)
    """
    # Clamp the exponent; anything past the cap is the cap anyway
    exponent = min(attempt, 32)
    return min(policy.base_delay_ms * (2 ** exponent), policy.max_delay_ms)
