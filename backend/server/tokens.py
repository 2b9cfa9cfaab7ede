"""
LiveKit access token issuance.

Role -> grants:
- moderator:   join, publish, subscribe, publish data, room admin, record
- participant: join, publish, subscribe, publish data ("debater" alias)
- audience:    join, subscribe
"""

from __future__ import annotations

from datetime import timedelta

from livekit import api

from constants import TOKEN_TTL_S
from session.connection_config import ParticipantRole


def grants_for_role(room_name: str, role: ParticipantRole) -> api.VideoGrants:
    if role is ParticipantRole.MODERATOR:
        return api.VideoGrants(
            room=room_name,
            room_join=True,
            can_publish=True,
            can_subscribe=True,
            can_publish_data=True,
            room_admin=True,
            room_record=True,
        )
    if role is ParticipantRole.PARTICIPANT:
        return api.VideoGrants(
            room=room_name,
            room_join=True,
            can_publish=True,
            can_subscribe=True,
            can_publish_data=True,
        )
    return api.VideoGrants(
        room=room_name,
        room_join=True,
        can_publish=False,
        can_subscribe=True,
        can_publish_data=False,
    )


def issue_token(
    *,
    api_key: str,
    api_secret: str,
    room_name: str,
    participant_name: str,
    role: ParticipantRole,
    ttl_s: int = TOKEN_TTL_S,
) -> str:
    """Sign a short-lived JWT for one identity in one room."""
    return (
        api.AccessToken(api_key, api_secret)
        .with_identity(participant_name)
        .with_name(participant_name)
        .with_ttl(timedelta(seconds=ttl_s))
        .with_grants(grants_for_role(room_name, role))
        .to_jwt()
    )
