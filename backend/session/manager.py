"""
Session connection manager.

Responsibilities:
- Owns at most one live room connection (one Transport) at a time
- Tracks ConnectionState and the participant roster
- Auto-reconnects with exponential backoff after unexpected drops
- Fans state, roster and errors out to UI observers

NOT responsible for:
- Media transport (Transport implementations)
- Credential issuance (session.credentials)
- Rendering

Concurrency model: single asyncio loop. Every connect / reconnect /
disconnect / cleanup bumps an epoch; an operation that resumes after an
await under a newer epoch stops without touching state.
"""

from __future__ import annotations

import asyncio
from typing import Any, Awaitable, Callable

from observability.logger import log_event
from observability.metrics import timed
from session.backoff import ReconnectPolicy, reconnect_delay_ms, should_reconnect
from session.connection_config import ConnectionConfig, validate_connection_config
from session.connection_state import ConnectionState
from session.errors import (
    CapabilityUnavailable,
    HandshakeFailed,
    InvalidConfig,
    MaxReconnectAttemptsExceeded,
    NoActiveConfig,
    SessionError,
    describe_handshake_failure,
)
from session.events import (
    DisconnectReason,
    Disconnected,
    MediaDeviceError,
    ParticipantJoined,
    ParticipantLeft,
    TransportEvent,
    TransportEventType,
)
from session.observers import ObserverList, Subscription
from session.transport import ParticipantHandle, Transport, TransportEventSink

Sleep = Callable[[float], Awaitable[None]]
TransportFactory = Callable[[], Transport]
Roster = dict[str, ParticipantHandle]


class SessionConnectionManager:
    """
    One manager per UI surface, reused across connect/disconnect cycles.

    A fresh Transport is built for every handshake; transports are never
    reused across rooms or reconnects.
    """

    def __init__(
        self,
        *,
        transport_factory: TransportFactory,
        policy: ReconnectPolicy | None = None,
        sleep: Sleep = asyncio.sleep,
    ) -> None:
        self._transport_factory = transport_factory
        self._policy = policy or ReconnectPolicy()
        self._sleep = sleep

        self._transport: Transport | None = None
        self._config: ConnectionConfig | None = None
        self._state = ConnectionState.DISCONNECTED
        self._roster: Roster = {}

        self._attempts = 0
        self._reconnect_task: asyncio.Task[None] | None = None
        self._epoch = 0

        self._last_error: SessionError | None = None
        self._exhausted = False

        self._state_observers: ObserverList[ConnectionState] = ObserverList("state_change")
        self._roster_observers: ObserverList[Roster] = ObserverList("participant_change")
        self._error_observers: ObserverList[SessionError] = ObserverList("error")

    # ------------------------------------------------------------------
    # Read-only views
    # ------------------------------------------------------------------

    @property
    def state(self) -> ConnectionState:
        return self._state

    @property
    def is_connected(self) -> bool:
        return self._state is ConnectionState.CONNECTED

    @property
    def config(self) -> ConnectionConfig | None:
        return self._config

    @property
    def participants(self) -> Roster:
        """Snapshot copy; mutating it does not affect the manager."""
        return dict(self._roster)

    @property
    def reconnect_attempts(self) -> int:
        return self._attempts

    @property
    def pending_reconnect(self) -> asyncio.Task[None] | None:
        """The scheduled reconnect task, if one is waiting or running."""
        task = self._reconnect_task
        if task is None or task.done():
            return None
        return task

    @property
    def last_error(self) -> SessionError | None:
        return self._last_error

    @property
    def reconnect_exhausted(self) -> bool:
        """True after automatic recovery gave up; distinct from 'retrying'."""
        return self._exhausted

    @property
    def can_retry(self) -> bool:
        """A stored config exists and nothing is in flight."""
        return self._config is not None and self._state is ConnectionState.DISCONNECTED

    # ------------------------------------------------------------------
    # Observer registration
    # ------------------------------------------------------------------

    def on_state_change(self, callback: Callable[[ConnectionState], None]) -> Subscription[ConnectionState]:
        return self._state_observers.add(callback)

    def on_participant_change(self, callback: Callable[[Roster], None]) -> Subscription[Roster]:
        return self._roster_observers.add(callback)

    def on_error(self, callback: Callable[[SessionError], None]) -> Subscription[SessionError]:
        return self._error_observers.add(callback)

    def report_error(self, error: SessionError) -> None:
        """Record an error and deliver it on the on_error channel."""
        self._last_error = error
        self._error_observers.notify(error)

    # ------------------------------------------------------------------
    # Commands
    # ------------------------------------------------------------------

    async def connect(self, config: ConnectionConfig) -> None:
        """
        Join config.room_name.

        - Already connected to the same room: no-op
        - A handshake already in flight: no-op
        - Connected elsewhere: leave that room first

        Raises:
            InvalidConfig before any transport is built.
            HandshakeFailed if the handshake is rejected (not retried).
        """
        try:
            validate_connection_config(config)
        except InvalidConfig as exc:
            self._log("CONNECT_REJECTED", room_name=config.room_name, error=exc.message)
            raise

        if (
            self._state is ConnectionState.CONNECTED
            and self._config is not None
            and self._config.room_name == config.room_name
        ):
            self._log("CONNECT_NOOP_ALREADY_CONNECTED", room_name=config.room_name)
            return

        if self._state is ConnectionState.CONNECTING:
            self._log("CONNECT_NOOP_IN_PROGRESS", room_name=config.room_name)
            return

        self._cancel_pending_reconnect()
        self._config = config
        self._exhausted = False

        self._log("CONNECT_REQUESTED", **config.log_context())
        await self._establish(config, automatic=False)

    async def disconnect(self) -> None:
        """
        Leave the room and forget the config. Idempotent.

        Clearing the config stops a late drop event from scheduling a
        reconnect after an intentional leave.
        """
        self._cancel_pending_reconnect()

        if (
            self._transport is None
            and self._config is None
            and self._state is ConnectionState.DISCONNECTED
        ):
            return

        self._epoch += 1
        room_name = self._config.room_name if self._config else None
        self._config = None
        self._attempts = 0
        self._exhausted = False

        transport = self._detach_transport()
        try:
            if transport is not None:
                await transport.disconnect()
        finally:
            if self._roster:
                self._publish_roster({})
            self._set_state(ConnectionState.DISCONNECTED)
            self._log("SESSION_DISCONNECTED", room_name=room_name)

    async def reconnect(self) -> None:
        """
        Tear down the current transport and rerun the handshake against the
        stored config with a fresh transport.

        Raises:
            NoActiveConfig if there is nothing to reconnect to.
            HandshakeFailed if the handshake is rejected.
        """
        config = self._config
        if config is None:
            raise NoActiveConfig("No connection config available for reconnect")

        self._cancel_pending_reconnect()
        self._exhausted = False

        self._log("RECONNECT_REQUESTED", room_name=config.room_name)
        await self._establish(config, automatic=False)

    def cleanup(self) -> None:
        """
        Detach from the transport and drop every observer.

        Called when the owning UI surface is torn down. Late transport
        events and in-flight operations have no observable effect
        afterwards.
        """
        self._cancel_pending_reconnect()
        self._epoch += 1

        if self._transport is not None:
            self._transport.remove_all_listeners()

        self._state_observers.clear()
        self._roster_observers.clear()
        self._error_observers.clear()

        self._log("MANAGER_CLEANUP")

    # ------------------------------------------------------------------
    # Handshake
    # ------------------------------------------------------------------

    async def _establish(self, config: ConnectionConfig, *, automatic: bool) -> None:
        self._epoch += 1
        epoch = self._epoch

        # Stop listening to the old transport before leaving it, so its
        # client-initiated disconnect never reaches the handlers
        previous = self._detach_transport()
        self._set_state(ConnectionState.CONNECTING)

        if previous is not None:
            await self._leave(previous, room_name=config.room_name)
            if epoch != self._epoch:
                return

        transport: Transport | None = None
        try:
            transport = self._transport_factory()
            transport.add_listener(self._sink_for(transport))
            self._transport = transport

            with timed(
                "handshake",
                room_name=config.room_name,
                attempt=self._attempts,
                details={"automatic": automatic},
            ) as metric:
                await transport.connect(config.url, config.token)
                metric["outcome"] = "ok"
        except Exception as exc:  # pylint: disable=broad-exception-caught
            if epoch != self._epoch:
                # Superseded by disconnect/cleanup/another connect
                return

            self._detach_transport()
            error = HandshakeFailed(
                describe_handshake_failure(exc),
                room_name=config.room_name,
                attempt=self._attempts,
            )
            self._log(
                "HANDSHAKE_FAILED",
                **error.log_context(),
                automatic=automatic,
                exception=type(exc).__name__,
            )
            self._set_state(ConnectionState.DISCONNECTED)
            if automatic:
                # The backoff loop owns reporting; only exhaustion is surfaced
                self._last_error = error
            else:
                self.report_error(error)
            raise error from exc

        assert transport is not None
        if epoch != self._epoch:
            # Superseded mid-handshake: the room was joined anyway, so leave it
            if self._transport is transport:
                self._detach_transport()
            else:
                transport.remove_all_listeners()
            await self._leave(transport, room_name=config.room_name)
            return

        self._attempts = 0
        self._last_error = None
        self._set_state(ConnectionState.CONNECTED)
        self._rebuild_roster()

        if config.role.publishes_media:
            await self._acquire_capabilities(transport, config, epoch)

    async def _acquire_capabilities(
        self,
        transport: Transport,
        config: ConnectionConfig,
        epoch: int,
    ) -> None:
        """Camera/microphone. Failure is non-fatal: the user can grant it later."""
        try:
            await transport.enable_camera_and_microphone()
        except Exception as exc:  # pylint: disable=broad-exception-caught
            if epoch != self._epoch:
                return
            error = CapabilityUnavailable(
                f"Camera/microphone unavailable: {exc}",
                room_name=config.room_name,
            )
            self._log("CAPABILITY_UNAVAILABLE", **error.log_context())
            self.report_error(error)
            return

        if epoch == self._epoch:
            # Local publish flags changed
            self._rebuild_roster()

    async def _leave(self, transport: Transport, *, room_name: str | None) -> None:
        try:
            await transport.disconnect()
        except Exception as exc:  # pylint: disable=broad-exception-caught
            self._log(
                "TRANSPORT_LEAVE_FAILED",
                room_name=room_name,
                exception=type(exc).__name__,
                message=str(exc),
            )

    def _detach_transport(self) -> Transport | None:
        transport = self._transport
        self._transport = None
        if transport is not None:
            transport.remove_all_listeners()
        return transport

    # ------------------------------------------------------------------
    # Reconnect scheduling
    # ------------------------------------------------------------------

    def _schedule_reconnect(self) -> None:
        config = self._config
        if config is None:
            return

        self._cancel_pending_reconnect()
        self._set_state(ConnectionState.RECONNECTING)

        if not should_reconnect(self._policy, self._attempts):
            error = MaxReconnectAttemptsExceeded(
                "Failed to reconnect after maximum attempts",
                room_name=config.room_name,
                attempt=self._attempts,
            )
            self._exhausted = True
            self._log("RECONNECT_EXHAUSTED", **error.log_context())
            self._set_state(ConnectionState.DISCONNECTED)
            self.report_error(error)
            return

        delay_ms = reconnect_delay_ms(self._policy, self._attempts)
        self._attempts += 1
        self._log(
            "RECONNECT_SCHEDULED",
            room_name=config.room_name,
            delay_ms=delay_ms,
        )
        self._reconnect_task = asyncio.create_task(
            self._reconnect_after(delay_ms, epoch=self._epoch)
        )

    async def _reconnect_after(self, delay_ms: int, *, epoch: int) -> None:
        try:
            await self._sleep(delay_ms / 1000.0)
        except asyncio.CancelledError:
            return

        self._reconnect_task = None
        config = self._config
        if epoch != self._epoch or config is None:
            return

        try:
            await self._establish(config, automatic=True)
        except HandshakeFailed:
            if self._config is config:
                self._schedule_reconnect()

    def _cancel_pending_reconnect(self) -> None:
        task = self._reconnect_task
        self._reconnect_task = None
        if task is not None and not task.done():
            task.cancel()

    # ------------------------------------------------------------------
    # Transport events
    # ------------------------------------------------------------------

    def _sink_for(self, transport: Transport) -> TransportEventSink:
        def sink(event: TransportEvent) -> None:
            self._on_transport_event(transport, event)
        return sink

    def _on_transport_event(self, transport: Transport, event: TransportEvent) -> None:
        if transport is not self._transport:
            self._log("TRANSPORT_EVENT_STALE", transport_event=event.event_type.value)
            return

        event_type = event.event_type

        if event_type is TransportEventType.CONNECTED:
            # The handshake result drives CONNECTING -> CONNECTED
            return

        if event_type is TransportEventType.DISCONNECTED:
            assert isinstance(event, Disconnected)
            self._on_dropped(event.reason)
        elif event_type is TransportEventType.RECONNECTING:
            self._set_state(ConnectionState.RECONNECTING)
        elif event_type is TransportEventType.RECONNECTED:
            self._attempts = 0
            self._set_state(ConnectionState.CONNECTED)
            self._rebuild_roster()
        elif event_type in (
            TransportEventType.PARTICIPANT_JOINED,
            TransportEventType.PARTICIPANT_LEFT,
        ):
            assert isinstance(event, (ParticipantJoined, ParticipantLeft))
            self._log(
                event_type.value,
                participant_id=event.participant_id,
                identity=event.identity,
            )
            self._rebuild_roster()
        elif event_type is TransportEventType.MEDIA_DEVICE_ERROR:
            assert isinstance(event, MediaDeviceError)
            error = CapabilityUnavailable(
                f"Media device error: {event.detail}",
                room_name=self._config.room_name if self._config else None,
            )
            self._log("MEDIA_DEVICE_ERROR", **error.log_context())
            self.report_error(error)

    def _on_dropped(self, reason: DisconnectReason) -> None:
        self._log("TRANSPORT_DISCONNECTED", reason=reason.value)

        if self._roster:
            self._publish_roster({})

        if reason is DisconnectReason.CLIENT_INITIATED or self._config is None:
            self._set_state(ConnectionState.DISCONNECTED)
            return

        self._schedule_reconnect()

    # ------------------------------------------------------------------
    # State + roster publication
    # ------------------------------------------------------------------

    def _set_state(self, state: ConnectionState) -> None:
        if state is self._state:
            return
        previous = self._state
        self._state = state
        self._log("SESSION_STATE_CHANGED", previous=previous.value)
        self._state_observers.notify(state)

    def _rebuild_roster(self) -> None:
        """Rebuild from the transport's authoritative lists; never patched."""
        roster: Roster = {}
        transport = self._transport
        if transport is not None:
            local = transport.local_participant()
            if local is not None:
                roster[local.sid] = local
            for participant in transport.remote_participants():
                roster[participant.sid] = participant
        self._publish_roster(roster)

    def _publish_roster(self, roster: Roster) -> None:
        self._roster = roster
        self._log("ROSTER_REBUILT", size=len(roster))
        self._roster_observers.notify(dict(roster))

    # ------------------------------------------------------------------
    # Logging
    # ------------------------------------------------------------------

    def _log(self, event_type: str, **fields: Any) -> None:
        event: dict[str, Any] = {
            "event_type": event_type,
            "state": self._state.value,
            "attempt": self._attempts,
        }
        if self._config is not None:
            event["room_name"] = self._config.room_name
        event.update(fields)
        log_event(event)
