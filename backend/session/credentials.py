"""
Credential issuance client.

Requests a short-lived room token from the token endpoint and validates
the payload shape before anything uses it. Failures come back as an
explicit CredentialResult rather than exceptions.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

import httpx

from constants import CREDENTIAL_REQUEST_TIMEOUT_S
from observability.logger import log_event
from session.connection_config import (
    ConnectionConfig,
    ParticipantRole,
    is_websocket_url,
    is_well_formed_token,
)
from session.errors import CredentialIssuanceFailed
from session.manager import SessionConnectionManager


@dataclass(frozen=True)
class IssuedCredential:
    token: str
    url: str


@dataclass(frozen=True)
class CredentialResult:
    """Either a credential or the reason there isn't one."""

    credential: IssuedCredential | None = None
    error: CredentialIssuanceFailed | None = None

    @property
    def ok(self) -> bool:
        return self.credential is not None

    def unwrap(self) -> IssuedCredential:
        """
        Raises:
            CredentialIssuanceFailed if the request failed.
        """
        if self.credential is None:
            assert self.error is not None
            raise self.error
        return self.credential


def _failure(message: str, *, room_name: str, status_code: int | None = None) -> CredentialResult:
    error = CredentialIssuanceFailed(message, room_name=room_name, status_code=status_code)
    log_event({"event_type": "CREDENTIAL_ISSUANCE_FAILED", **error.log_context()})
    return CredentialResult(error=error)


def _error_message(response: httpx.Response) -> str:
    """Prefer the endpoint's {"error": ...} field; fall back to status + body."""
    try:
        body = response.json()
    except ValueError:
        return f"HTTP {response.status_code}: {response.text}"
    if isinstance(body, dict) and body.get("error"):
        return str(body["error"])
    return "Failed to get access token"


def parse_credential_payload(data: Any, *, room_name: str) -> CredentialResult:
    """Validate a decoded {token, url} payload."""
    if not isinstance(data, dict):
        return _failure("Unexpected token response: not an object", room_name=room_name)

    token = data.get("token")
    url = data.get("url")
    if not isinstance(token, str) or not is_well_formed_token(token):
        return _failure("Token endpoint returned a malformed token", room_name=room_name)
    if not isinstance(url, str) or not is_websocket_url(url):
        return _failure("Token endpoint returned a non-websocket URL", room_name=room_name)

    return CredentialResult(credential=IssuedCredential(token=token, url=url))


class CredentialClient:
    """
    POSTs {roomName, participantName, role} to the token endpoint.

    An httpx.AsyncClient may be injected (tests, connection reuse);
    otherwise one is opened per request.
    """

    def __init__(
        self,
        *,
        endpoint: str,
        timeout_s: float = CREDENTIAL_REQUEST_TIMEOUT_S,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        self._endpoint = endpoint
        self._timeout_s = timeout_s
        self._client = client

    async def request(
        self,
        *,
        room_name: str,
        participant_name: str,
        role: ParticipantRole,
    ) -> CredentialResult:
        payload = {
            "roomName": room_name,
            "participantName": participant_name,
            "role": role.value,
        }
        log_event({
            "event_type": "CREDENTIAL_REQUESTED",
            "room_name": room_name,
            "participant_name": participant_name,
            "role": role.value,
        })

        try:
            response = await self._post(payload)
        except httpx.HTTPError as exc:
            return _failure(
                f"Token request failed: {type(exc).__name__}",
                room_name=room_name,
            )

        if not response.is_success:
            return _failure(
                _error_message(response),
                room_name=room_name,
                status_code=response.status_code,
            )

        try:
            data = response.json()
        except ValueError:
            return _failure(
                "Token endpoint returned a non-JSON body",
                room_name=room_name,
                status_code=response.status_code,
            )

        return parse_credential_payload(data, room_name=room_name)

    async def _post(self, payload: dict[str, str]) -> httpx.Response:
        if self._client is not None:
            return await self._client.post(self._endpoint, json=payload, timeout=self._timeout_s)
        async with httpx.AsyncClient(timeout=self._timeout_s) as client:
            return await client.post(self._endpoint, json=payload)


async def join_room(
    manager: SessionConnectionManager,
    credentials: CredentialClient,
    *,
    room_name: str,
    participant_name: str,
    role: ParticipantRole,
) -> None:
    """
    Fetch a credential and connect.

    Raises:
        CredentialIssuanceFailed (also delivered to on_error observers).
        Anything manager.connect() raises.
    """
    result = await credentials.request(
        room_name=room_name,
        participant_name=participant_name,
        role=role,
    )
    if not result.ok:
        assert result.error is not None
        manager.report_error(result.error)
        raise result.error

    credential = result.unwrap()
    await manager.connect(
        ConnectionConfig(
            url=credential.url,
            token=credential.token,
            room_name=room_name,
            participant_name=participant_name,
            role=role,
        )
    )
