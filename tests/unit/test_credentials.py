# pylint: disable=missing-module-docstring,missing-function-docstring

import json

import httpx
import pytest

from observability import logger
from session.connection_config import ParticipantRole
from session.connection_state import ConnectionState
from session.credentials import CredentialClient, join_room
from session.errors import CredentialIssuanceFailed, SessionError
from session.manager import SessionConnectionManager

from session_fakes import VALID_TOKEN, VALID_URL, RecordingSleep, TransportFactory

ENDPOINT = "http://testserver/api/token"


@pytest.fixture(autouse=True)
def quiet_logs(monkeypatch: pytest.MonkeyPatch) -> list[str]:
    lines: list[str] = []
    monkeypatch.setattr(logger, "_print", lines.append)
    return lines


def client_returning(response: httpx.Response, seen: list[httpx.Request] | None = None) -> CredentialClient:
    def handler(request: httpx.Request) -> httpx.Response:
        if seen is not None:
            seen.append(request)
        return response

    http = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    return CredentialClient(endpoint=ENDPOINT, client=http)


async def request(client: CredentialClient):  # type: ignore[no-untyped-def]
    return await client.request(
        room_name="debate-1",
        participant_name="alice",
        role=ParticipantRole.MODERATOR,
    )


@pytest.mark.asyncio
async def test_success_returns_credential_and_posts_expected_body() -> None:
    seen: list[httpx.Request] = []
    client = client_returning(
        httpx.Response(200, json={"token": VALID_TOKEN, "url": VALID_URL}),
        seen,
    )

    result = await request(client)

    assert result.ok
    assert result.unwrap().token == VALID_TOKEN
    assert result.unwrap().url == VALID_URL
    assert json.loads(seen[0].content) == {
        "roomName": "debate-1",
        "participantName": "alice",
        "role": "moderator",
    }


@pytest.mark.asyncio
async def test_error_field_is_surfaced() -> None:
    client = client_returning(
        httpx.Response(400, json={"error": "Room name and participant name are required"})
    )

    result = await request(client)

    assert not result.ok
    assert result.error is not None
    assert result.error.status_code == 400
    assert result.error.message == "Room name and participant name are required"
    with pytest.raises(CredentialIssuanceFailed):
        result.unwrap()


@pytest.mark.asyncio
async def test_non_json_error_body_uses_status_and_text() -> None:
    client = client_returning(httpx.Response(502, text="bad gateway"))

    result = await request(client)

    assert result.error is not None
    assert result.error.message == "HTTP 502: bad gateway"


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "body",
    [
        {"token": "not-a-jwt", "url": VALID_URL},
        {"token": VALID_TOKEN, "url": "https://debate.livekit.cloud"},
        {"token": VALID_TOKEN},
        ["unexpected"],
    ],
)
async def test_malformed_payload_is_rejected(body: object) -> None:
    client = client_returning(httpx.Response(200, json=body))

    result = await request(client)

    assert not result.ok
    assert isinstance(result.error, CredentialIssuanceFailed)


@pytest.mark.asyncio
async def test_non_json_success_body_is_rejected() -> None:
    client = client_returning(httpx.Response(200, text="<html>"))

    result = await request(client)

    assert not result.ok


@pytest.mark.asyncio
async def test_network_error_becomes_result() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    http = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    client = CredentialClient(endpoint=ENDPOINT, client=http)

    result = await request(client)

    assert not result.ok
    assert result.error is not None
    assert "ConnectError" in result.error.message


@pytest.mark.asyncio
async def test_join_room_connects_with_issued_credential() -> None:
    factory = TransportFactory()
    manager = SessionConnectionManager(transport_factory=factory, sleep=RecordingSleep(block=True))
    client = client_returning(httpx.Response(200, json={"token": VALID_TOKEN, "url": VALID_URL}))

    await join_room(
        manager,
        client,
        room_name="debate-1",
        participant_name="alice",
        role=ParticipantRole.AUDIENCE,
    )

    assert manager.state is ConnectionState.CONNECTED
    assert factory.latest.connect_calls == [(VALID_URL, VALID_TOKEN)]
    assert factory.latest.media_calls == 0


@pytest.mark.asyncio
async def test_join_room_reports_issuance_failure() -> None:
    factory = TransportFactory()
    manager = SessionConnectionManager(transport_factory=factory, sleep=RecordingSleep(block=True))
    errors: list[SessionError] = []
    manager.on_error(errors.append)
    client = client_returning(httpx.Response(500, json={"error": "Failed to generate token"}))

    with pytest.raises(CredentialIssuanceFailed):
        await join_room(
            manager,
            client,
            room_name="debate-1",
            participant_name="alice",
            role=ParticipantRole.PARTICIPANT,
        )

    assert factory.created == []
    assert [type(e) for e in errors] == [CredentialIssuanceFailed]
    assert manager.last_error is errors[0]
