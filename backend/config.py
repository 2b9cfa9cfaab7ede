"""
Application configuration.

Responsibilities:
- Load deployment-specific configuration
- Read environment variables
- Provide a typed, immutable config object

Non-responsibilities:
- No session logic
- No behavioral constants (see constants.py for defaults)
- No runtime mutation
"""

from __future__ import annotations

import os
from dataclasses import dataclass

from constants import (
    MAX_RECONNECT_ATTEMPTS,
    RECONNECT_BASE_DELAY_MS,
    RECONNECT_MAX_DELAY_MS,
)
from session.backoff import ReconnectPolicy


@dataclass(frozen=True)
class AppConfig:
    """
    Immutable application configuration.

    Constructed once at process startup.
    Passed downward to the token server and to whoever builds a
    SessionConnectionManager.
    """

    # ------------------------------------------------------------------
    # Environment
    # ------------------------------------------------------------------

    env: str
    log_level: str

    # ------------------------------------------------------------------
    # Observability
    # ------------------------------------------------------------------

    enable_json_logs: bool

    # ------------------------------------------------------------------
    # LiveKit (token signing + transport URL handed to clients)
    # ------------------------------------------------------------------

    livekit_url: str | None
    livekit_api_key: str | None
    livekit_api_secret: str | None

    # ------------------------------------------------------------------
    # Client side: where credentials are requested from
    # ------------------------------------------------------------------

    token_endpoint_url: str

    # ------------------------------------------------------------------
    # Reconnect backoff
    # ------------------------------------------------------------------

    reconnect_base_delay_ms: int = RECONNECT_BASE_DELAY_MS
    reconnect_max_delay_ms: int = RECONNECT_MAX_DELAY_MS
    max_reconnect_attempts: int = MAX_RECONNECT_ATTEMPTS

    # ------------------------------------------------------------------
    # Derived helpers
    # ------------------------------------------------------------------

    @property
    def livekit_configured(self) -> bool:
        return bool(self.livekit_url and self.livekit_api_key and self.livekit_api_secret)

    def reconnect_policy(self) -> ReconnectPolicy:
        return ReconnectPolicy(
            base_delay_ms=self.reconnect_base_delay_ms,
            max_delay_ms=self.reconnect_max_delay_ms,
            max_attempts=self.max_reconnect_attempts,
        )

    # ------------------------------------------------------------------
    # Factory
    # ------------------------------------------------------------------

    @staticmethod
    def load_from_env() -> AppConfig:
        """
        Load configuration from environment variables.

        Raises:
            ValueError if a numeric variable is not an integer.
        """
        return AppConfig(
            env=os.environ.get("ENV", "dev"),
            log_level=os.environ.get("LOG_LEVEL", "INFO"),

            enable_json_logs=os.environ.get("ENABLE_JSON_LOGS", "1") == "1",

            livekit_url=os.environ.get("LIVEKIT_URL"),
            livekit_api_key=os.environ.get("LIVEKIT_API_KEY"),
            livekit_api_secret=os.environ.get("LIVEKIT_API_SECRET"),

            token_endpoint_url=os.environ.get(
                "TOKEN_ENDPOINT_URL", "http://localhost:8000/api/token"
            ),

            reconnect_base_delay_ms=int(
                os.environ.get("RECONNECT_BASE_DELAY_MS", RECONNECT_BASE_DELAY_MS)
            ),
            reconnect_max_delay_ms=int(
                os.environ.get("RECONNECT_MAX_DELAY_MS", RECONNECT_MAX_DELAY_MS)
            ),
            max_reconnect_attempts=int(
                os.environ.get("MAX_RECONNECT_ATTEMPTS", MAX_RECONNECT_ATTEMPTS)
            ),
        )
