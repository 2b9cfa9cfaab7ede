"""
LiveKit transport adapter.

Translates livekit.rtc.Room into the Transport contract:
- A fresh rtc.Room per adapter instance
- SDK room events -> tagged TransportEvents
- Camera/microphone = publish a microphone and a camera track; a publish
  failure propagates to the caller

No reconnect policy lives here; the SDK's own ICE resume surfaces as
Reconnecting / Reconnected events.
"""

from __future__ import annotations

from typing import Any, Callable

from livekit import rtc

from constants import (
    AUDIO_CAPTURE_CHANNELS,
    AUDIO_CAPTURE_SAMPLE_RATE_HZ,
    CAMERA_TRACK_NAME,
    MICROPHONE_TRACK_NAME,
    VIDEO_CAPTURE_HEIGHT,
    VIDEO_CAPTURE_WIDTH,
)
from session.events import (
    Connected,
    DisconnectReason,
    Disconnected,
    ParticipantJoined,
    ParticipantLeft,
    Reconnected,
    Reconnecting,
)
from session.transport import ParticipantHandle, Transport


def _map_disconnect_reason(reason: Any) -> DisconnectReason:
    """Match an SDK DisconnectReason value to ours by name."""
    if reason is None:
        return DisconnectReason.UNKNOWN_REASON
    for candidate in DisconnectReason:
        if getattr(rtc.DisconnectReason, candidate.name, None) == reason:
            return candidate
    return DisconnectReason.UNKNOWN_REASON


def _to_handle(participant: Any, *, is_local: bool) -> ParticipantHandle:
    publications = list(getattr(participant, "track_publications", {}).values())
    return ParticipantHandle(
        sid=participant.sid,
        identity=participant.identity,
        name=participant.name or "",
        is_local=is_local,
        publishes_audio=any(p.kind == rtc.TrackKind.KIND_AUDIO for p in publications),
        publishes_video=any(p.kind == rtc.TrackKind.KIND_VIDEO for p in publications),
    )


class LiveKitTransport(Transport):
    """
    One LiveKit room join.

    The audio/video sources are exposed after enable_camera_and_microphone()
    so the application can push captured frames into them.
    """

    def __init__(
        self,
        *,
        options: rtc.RoomOptions | None = None,
        video_width: int = VIDEO_CAPTURE_WIDTH,
        video_height: int = VIDEO_CAPTURE_HEIGHT,
    ) -> None:
        super().__init__()
        self._room = rtc.Room()
        self._options = options or rtc.RoomOptions(auto_subscribe=True)
        self._video_width = video_width
        self._video_height = video_height

        self.audio_source: rtc.AudioSource | None = None
        self.video_source: rtc.VideoSource | None = None

        self._bound: list[tuple[str, Callable[..., None]]] = []
        self._bind("connected", self._on_connected)
        self._bind("disconnected", self._on_disconnected)
        self._bind("reconnecting", self._on_reconnecting)
        self._bind("reconnected", self._on_reconnected)
        self._bind("participant_connected", self._on_participant_connected)
        self._bind("participant_disconnected", self._on_participant_disconnected)

    # ------------------------------------------------------------------
    # SDK wiring
    # ------------------------------------------------------------------

    def _bind(self, event_name: str, handler: Callable[..., None]) -> None:
        self._room.on(event_name, handler)
        self._bound.append((event_name, handler))

    def remove_all_listeners(self) -> None:
        super().remove_all_listeners()
        for event_name, handler in self._bound:
            self._room.off(event_name, handler)
        self._bound.clear()

    def _on_connected(self, *_: Any) -> None:
        self._emit(Connected())

    def _on_disconnected(self, reason: Any = None) -> None:
        self._emit(Disconnected(reason=_map_disconnect_reason(reason)))

    def _on_reconnecting(self, *_: Any) -> None:
        self._emit(Reconnecting())

    def _on_reconnected(self, *_: Any) -> None:
        self._emit(Reconnected())

    def _on_participant_connected(self, participant: rtc.RemoteParticipant) -> None:
        self._emit(ParticipantJoined(participant_id=participant.sid, identity=participant.identity))

    def _on_participant_disconnected(self, participant: rtc.RemoteParticipant) -> None:
        self._emit(ParticipantLeft(participant_id=participant.sid, identity=participant.identity))

    # ------------------------------------------------------------------
    # Transport contract
    # ------------------------------------------------------------------

    async def connect(self, url: str, token: str) -> None:
        await self._room.connect(url, token, options=self._options)

    async def disconnect(self) -> None:
        await self._room.disconnect()

    @property
    def is_connected(self) -> bool:
        return self._room.isconnected()

    def local_participant(self) -> ParticipantHandle | None:
        # The SDK raises if the local participant is read before connect
        if not self._room.isconnected():
            return None
        return _to_handle(self._room.local_participant, is_local=True)

    def remote_participants(self) -> list[ParticipantHandle]:
        return [
            _to_handle(p, is_local=False)
            for p in self._room.remote_participants.values()
        ]

    async def enable_camera_and_microphone(self) -> None:
        local = self._room.local_participant
        self.audio_source = rtc.AudioSource(AUDIO_CAPTURE_SAMPLE_RATE_HZ, AUDIO_CAPTURE_CHANNELS)
        mic = rtc.LocalAudioTrack.create_audio_track(MICROPHONE_TRACK_NAME, self.audio_source)
        mic_opts = rtc.TrackPublishOptions()
        mic_opts.source = rtc.TrackSource.SOURCE_MICROPHONE
        await local.publish_track(mic, mic_opts)

        self.video_source = rtc.VideoSource(self._video_width, self._video_height)
        cam = rtc.LocalVideoTrack.create_video_track(CAMERA_TRACK_NAME, self.video_source)
        cam_opts = rtc.TrackPublishOptions()
        cam_opts.source = rtc.TrackSource.SOURCE_CAMERA
        await local.publish_track(cam, cam_opts)
