"""
Route registration for the session API.

Responsibilities:
- Define HTTP endpoints
- Issue room credentials for the session client
- Pull dependencies from app.state
"""

from __future__ import annotations

from fastapi import FastAPI
from fastapi.responses import JSONResponse
from pydantic import BaseModel, ConfigDict, Field

from config import AppConfig
from constants import TOKEN_ENDPOINT_PATH
from observability.logger import log_event
from server.tokens import issue_token
from session.connection_config import ParticipantRole


class TokenRequest(BaseModel):
    """Body of POST /api/token. Field names match the browser client."""

    model_config = ConfigDict(populate_by_name=True)

    room_name: str | None = Field(default=None, alias="roomName")
    participant_name: str | None = Field(default=None, alias="participantName")
    role: str = "audience"


def register_routes(app: FastAPI) -> None:
    """Register all routes on the FastAPI app."""
    @app.get("/health")
    async def health() -> dict[str, str]: # pyright: ignore[reportUnusedFunction]
        return {"status": "ok"}

    @app.post(TOKEN_ENDPOINT_PATH)
    async def issue_room_token(body: TokenRequest) -> JSONResponse: # pyright: ignore[reportUnusedFunction]
        config: AppConfig = app.state.config

        if not body.room_name or not body.participant_name:
            return JSONResponse(
                {"error": "Room name and participant name are required"},
                status_code=400,
            )

        try:
            role = ParticipantRole.parse(body.role)
        except ValueError:
            # Unrecognised roles get view-only grants
            log_event({
                "event_type": "TOKEN_ROLE_DEFAULTED",
                "room_name": body.room_name,
                "requested_role": body.role,
            })
            role = ParticipantRole.AUDIENCE

        if not config.livekit_configured:
            return JSONResponse({"error": "LiveKit configuration missing"}, status_code=503)
        assert config.livekit_api_key is not None
        assert config.livekit_api_secret is not None

        try:
            token = issue_token(
                api_key=config.livekit_api_key,
                api_secret=config.livekit_api_secret,
                room_name=body.room_name,
                participant_name=body.participant_name,
                role=role,
            )
        except Exception as exc:  # pylint: disable=broad-exception-caught
            log_event({
                "event_type": "TOKEN_ISSUE_FAILED",
                "room_name": body.room_name,
                "exception": type(exc).__name__,
                "message": str(exc),
            })
            return JSONResponse({"error": "Failed to generate token"}, status_code=500)

        log_event({
            "event_type": "TOKEN_ISSUED",
            "room_name": body.room_name,
            "participant_name": body.participant_name,
            "role": role.value,
        })
        return JSONResponse({"token": token, "url": config.livekit_url})
