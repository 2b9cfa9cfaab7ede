"""
Transport contract.

Purpose:
- Define the capability interface the connection manager drives.
- Keep reconnect policy, roster ownership and observers OUT of the
  transport.

Rules:
- One transport instance == one room join. Never reused across rooms.
- Events are delivered as tagged TransportEvents to registered sinks.
- remove_all_listeners() must guarantee no further deliveries.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Callable

from session.events import TransportEvent

TransportEventSink = Callable[[TransportEvent], None]


@dataclass(frozen=True)
class ParticipantHandle:
    """Snapshot of one participant as the transport reports it."""

    sid: str
    identity: str
    name: str = ""
    is_local: bool = False
    publishes_audio: bool = False
    publishes_video: bool = False


class Transport(ABC):
    """
    Abstract base class for room transports.

    The transport is a *dumb pipe* over the vendor SDK:
    commands in, tagged events out.

    Manager responsibilities (NOT here):
    - When to connect / leave
    - Reconnect scheduling and backoff
    - Roster ownership
    - Error reporting to UI observers
    """

    def __init__(self) -> None:
        self._sinks: list[TransportEventSink] = []

    # ------------------------------------------------------------------
    # Listener bookkeeping (shared by all transports)
    # ------------------------------------------------------------------

    def add_listener(self, sink: TransportEventSink) -> None:
        self._sinks.append(sink)

    def remove_all_listeners(self) -> None:
        self._sinks.clear()

    def _emit(self, event: TransportEvent) -> None:
        for sink in list(self._sinks):
            sink(event)

    # ------------------------------------------------------------------
    # Capability interface
    # ------------------------------------------------------------------

    @abstractmethod
    async def connect(self, url: str, token: str) -> None:
        """
        Perform the network handshake.

        Raises on network or auth rejection. Must NOT retry internally.
        """

    @abstractmethod
    async def disconnect(self) -> None:
        """Leave the room cleanly."""

    @property
    @abstractmethod
    def is_connected(self) -> bool:
        ...

    @abstractmethod
    def local_participant(self) -> ParticipantHandle | None:
        """The local identity, or None before the handshake completes."""

    @abstractmethod
    def remote_participants(self) -> list[ParticipantHandle]:
        """Authoritative list of remote participants right now."""

    @abstractmethod
    async def enable_camera_and_microphone(self) -> None:
        """
        Acquire and publish local camera + microphone.

        Raises if the capability cannot be acquired.
        """
