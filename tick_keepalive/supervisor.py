"""SessionSupervisor - connection lifecycle, reconnect timer, event wiring."""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Callable

from tick_keepalive import vec
from tick_keepalive.actions import ActionScheduler
from tick_keepalive.client import ClientFactory, GameClient, safe_call, safe_chat, safe_query
from tick_keepalive.commands import CommandInterpreter, FollowMe, Stop
from tick_keepalive.follow import FollowController
from tick_keepalive.types import ConnectionState, EventKind, SessionEvent

if TYPE_CHECKING:
    from tick_keepalive.config import KeepAliveConfig
    from tick_keepalive.engine import Engine
    from tick_keepalive.timers import Timer

logger = logging.getLogger(__name__)

SESSION_SIGNAL = "session_event"
MSG_STOPPED = "تم إيقاف المتابعة."


@dataclass
class Session:
    """The single live or pending connection. Replaced on every reconnect."""

    session_id: int
    state: ConnectionState = ConnectionState.CONNECTING
    client: GameClient | None = None
    connected_at: int | None = None
    last_active: int = 0


class SessionSupervisor:
    """Owns the game session and drives its state machine.

    States run ``DISCONNECTED -> CONNECTING -> ACTIVE -> DISCONNECTED``; at
    most one reconnect timer is pending at any time. Events arrive on the
    engine's signal bus tagged with the session that produced them, and
    events from any session but the current one are dropped.
    """

    def __init__(
        self,
        engine: Engine,
        config: KeepAliveConfig,
        factory: ClientFactory,
    ) -> None:
        self._engine = engine
        self._config = config
        self._factory = factory
        self._session: Session | None = None
        self._generation = 0
        self._errors = 0
        self._reconnect: Timer | None = None
        self._respawn: Timer | None = None
        self._stopping = False
        self.started_at = engine.now_ms
        self.connect_attempts = 0

        self.actions = ActionScheduler(engine, config, self.client)
        self.follow = FollowController(engine, config, self.client)
        self.interpreter = CommandInterpreter(self._username)
        self.interpreter.handle(FollowMe, lambda cmd: self.follow.start(cmd.sender))
        self.interpreter.handle(Stop, self._on_stop_command)

        self._handlers: dict[EventKind, Callable[[Session, SessionEvent], None]] = {
            EventKind.SPAWNED: self._on_spawned,
            EventKind.DIED: self._on_died,
            EventKind.ENDED: self._on_ended,
            EventKind.KICKED: self._on_kicked,
            EventKind.PROTOCOL_ERROR: self._on_protocol_error,
            EventKind.CHAT: self._on_chat,
        }
        engine.bus.subscribe(SESSION_SIGNAL, self._on_signal)

    # --- Queries ---

    @property
    def state(self) -> ConnectionState:
        if self._session is None:
            return ConnectionState.DISCONNECTED
        return self._session.state

    @property
    def session(self) -> Session | None:
        return self._session

    @property
    def stopping(self) -> bool:
        return self._stopping

    @property
    def reconnect_pending(self) -> bool:
        return self._reconnect is not None and self._reconnect.active

    @property
    def consecutive_errors(self) -> int:
        return self._errors

    def client(self) -> GameClient | None:
        return self._session.client if self._session is not None else None

    def status(self) -> dict[str, Any]:
        """Snapshot for the liveness surface."""
        client = self.client()
        connected = self.state is ConnectionState.ACTIVE
        data: dict[str, Any] = {
            "connected": connected,
            "state": self.state.value,
            "username": self._username(),
            "uptime_s": max(0, self._engine.now_ms - self.started_at) // 1000,
            "reconnect_pending": self.reconnect_pending,
            "following": self.follow.target,
        }
        if connected and client is not None:
            pos = safe_query("position", client.position)
            if pos is not None:
                data["pos"] = vec.as_dict(pos)
            if client.health is not None:
                data["health"] = client.health
            if client.food is not None:
                data["food"] = client.food
        return data

    # --- Lifecycle ---

    def start(self) -> bool:
        return self.connect()

    def connect(self) -> bool:
        """Open a new session. No-op while stopping or while one exists."""
        if self._stopping:
            logger.debug("shutdown requested; not connecting")
            return False
        if self._session is not None:
            logger.debug("session %d already %s", self._session.session_id, self._session.state.value)
            return False

        self._generation += 1
        self.connect_attempts += 1
        session = Session(session_id=self._generation, last_active=self._engine.now_ms)
        self._session = session
        logger.info(
            "connecting to %s:%s as %s",
            self._config.host, self._config.port, self._config.username,
        )
        try:
            session.client = self._factory(self._config, self._emitter(session.session_id))
        except Exception:
            logger.exception("could not create session")
            self._session = None
            self.schedule_reconnect()
            return False
        return True

    def schedule_reconnect(self) -> bool:
        """Arm the reconnect timer unless one is already pending."""
        if self._stopping:
            return False
        if self.reconnect_pending:
            logger.debug("reconnect already pending")
            return False
        delay = self._config.reconnect_delay_ms
        self._reconnect = self._engine.timers.call_later(delay, self._on_reconnect, "reconnect")
        logger.info("reconnecting in %d ms", delay)
        return True

    def shutdown(self, reason: str = "shutdown") -> None:
        """Stop for good: no more reconnects, tear down, close the session."""
        if self._stopping:
            return
        self._stopping = True
        if self._reconnect is not None:
            self._reconnect.cancel()
            self._reconnect = None
        session = self._session
        if session is not None:
            self._teardown()
            self._session = None
            if session.client is not None:
                safe_call("quit", session.client.quit, reason)
        self._engine.bus.unsubscribe(SESSION_SIGNAL, self._on_signal)
        logger.info("supervisor stopped (%s)", reason)

    # --- Events ---

    def handle_event(self, event: SessionEvent) -> None:
        """Transition function: apply one session event."""
        session = self._session
        if self._stopping or session is None or event.session_id != session.session_id:
            logger.debug("dropping %s from stale session %d", event.kind.value, event.session_id)
            return
        session.last_active = self._engine.now_ms
        self._handlers[event.kind](session, event)

    def _on_signal(self, signal_name: str, data: dict[str, Any]) -> None:
        self.handle_event(data["event"])

    def _emitter(self, session_id: int) -> Callable[..., None]:
        bus = self._engine.bus

        def emit(kind: EventKind, **fields: Any) -> None:
            bus.publish(SESSION_SIGNAL, event=SessionEvent(kind, session_id, **fields))

        return emit

    def _on_spawned(self, session: Session, event: SessionEvent) -> None:
        self._errors = 0
        if session.state is ConnectionState.ACTIVE:
            logger.info("respawned")
            return
        session.state = ConnectionState.ACTIVE
        session.connected_at = self._engine.now_ms
        logger.info("spawned into world")
        client = session.client
        if client is not None and client.navigator is not None:
            if not safe_call("init movements", client.navigator.configure):
                logger.warning("navigator not configured; following may misbehave")
        self.actions.start()

    def _on_died(self, session: Session, event: SessionEvent) -> None:
        client = session.client
        if client is not None and client.supports_respawn:
            logger.info("died; respawning in %d ms", self._config.respawn_delay_ms)
            if self._respawn is not None:
                self._respawn.cancel()
            self._respawn = self._engine.timers.call_later(
                self._config.respawn_delay_ms, self._do_respawn, "respawn"
            )
        else:
            logger.info("died and respawn is unsupported; reconnecting")
            self._force_disconnect("died")

    def _do_respawn(self) -> None:
        self._respawn = None
        client = self.client()
        if client is not None and safe_call("respawn", client.respawn):
            logger.info("respawn called")

    def _on_ended(self, session: Session, event: SessionEvent) -> None:
        logger.info("connection ended: %s", event.reason or "unknown")
        self._disconnect()

    def _on_kicked(self, session: Session, event: SessionEvent) -> None:
        logger.info("kicked: %s", event.reason or "no reason")
        client = session.client
        self._disconnect()
        if client is not None:
            safe_call("quit", client.quit, "kicked")

    def _on_protocol_error(self, session: Session, event: SessionEvent) -> None:
        self._errors += 1
        limit = self._config.max_consecutive_errors
        logger.warning("protocol error (%d/%d): %s", self._errors, limit, event.reason)
        if self._errors >= limit:
            logger.error("too many consecutive errors; forcing disconnect")
            self._errors = 0
            self._force_disconnect("too many errors")

    def _on_chat(self, session: Session, event: SessionEvent) -> None:
        try:
            self.interpreter.on_chat(event.sender, event.message)
        except Exception:
            logger.exception("chat handler error")

    def _on_stop_command(self, cmd: Stop) -> None:
        self.follow.stop("command")
        safe_chat(self.client(), MSG_STOPPED)

    # --- Transitions ---

    def _on_reconnect(self) -> None:
        self._reconnect = None
        if self._stopping:
            return
        logger.info("reconnecting...")
        self.connect()

    def _force_disconnect(self, reason: str) -> None:
        client = self.client()
        self._disconnect()
        if client is not None:
            safe_call("quit", client.quit, reason)

    def _disconnect(self) -> None:
        self._teardown()
        self._session = None
        self.schedule_reconnect()

    def _teardown(self) -> None:
        self.actions.stop()
        self.follow.stop("disconnect")
        if self._respawn is not None:
            self._respawn.cancel()
            self._respawn = None

    def _username(self) -> str:
        client = self.client()
        if client is not None and client.username:
            return client.username
        return self._config.username
