"""
Session client wiring.

Builds a SessionConnectionManager bound to LiveKit plus the credential
client, from AppConfig. The owning UI surface holds both and calls
manager.cleanup() when it is torn down.
"""

from __future__ import annotations

from dataclasses import dataclass

from config import AppConfig
from session.credentials import CredentialClient
from session.livekit_transport import LiveKitTransport
from session.manager import SessionConnectionManager


@dataclass(frozen=True)
class SessionClient:
    manager: SessionConnectionManager
    credentials: CredentialClient


def build_session_client(config: AppConfig) -> SessionClient:
    manager = SessionConnectionManager(
        transport_factory=LiveKitTransport,
        policy=config.reconnect_policy(),
    )
    credentials = CredentialClient(endpoint=config.token_endpoint_url)
    return SessionClient(manager=manager, credentials=credentials)
