# pylint: disable=missing-module-docstring,missing-function-docstring

import pytest

from session.connection_config import (
    ConnectionConfig,
    ParticipantRole,
    is_well_formed_token,
    validate_connection_config,
)
from session.errors import ErrorKind, InvalidConfig

from session_fakes import VALID_TOKEN, make_config


def test_valid_config_passes() -> None:
    validate_connection_config(make_config())
    validate_connection_config(make_config(url="ws://localhost:7880"))


def test_invalid_token_error_does_not_echo_token() -> None:
    config = make_config(token="secret-token-without-dots")

    with pytest.raises(InvalidConfig) as excinfo:
        validate_connection_config(config)

    assert excinfo.value.kind is ErrorKind.INVALID_CONFIG
    assert "secret-token-without-dots" not in str(excinfo.value)


def test_empty_room_name_rejected() -> None:
    with pytest.raises(InvalidConfig):
        validate_connection_config(make_config(room_name=""))


@pytest.mark.parametrize(
    ("token", "expected"),
    [
        (VALID_TOKEN, True),
        ("a.b.c", True),
        ("a.b", False),
        ("a.b.c.d", False),
        ("a..c", False),
        ("", False),
    ],
)
def test_token_shape(token: str, expected: bool) -> None:
    assert is_well_formed_token(token) is expected


@pytest.mark.parametrize(
    ("raw", "role"),
    [
        ("moderator", ParticipantRole.MODERATOR),
        ("participant", ParticipantRole.PARTICIPANT),
        ("debater", ParticipantRole.PARTICIPANT),
        (" Audience ", ParticipantRole.AUDIENCE),
    ],
)
def test_role_parse(raw: str, role: ParticipantRole) -> None:
    assert ParticipantRole.parse(raw) is role


def test_unknown_role_rejected() -> None:
    with pytest.raises(ValueError):
        ParticipantRole.parse("judge")


def test_only_audience_skips_media() -> None:
    assert ParticipantRole.MODERATOR.publishes_media
    assert ParticipantRole.PARTICIPANT.publishes_media
    assert not ParticipantRole.AUDIENCE.publishes_media


def test_log_context_has_no_token() -> None:
    config = ConnectionConfig(
        url="wss://x",
        token=VALID_TOKEN,
        room_name="debate-1",
        participant_name="alice",
    )

    assert VALID_TOKEN not in str(config.log_context())
