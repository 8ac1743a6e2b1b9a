"""Game client and navigator protocols, mock implementations, factory loading."""
from __future__ import annotations

import importlib
import logging
from typing import TYPE_CHECKING, Any, Callable, Protocol, runtime_checkable

from tick_keepalive.types import ConfigError, EventKind, Vec3

if TYPE_CHECKING:
    from tick_keepalive.config import KeepAliveConfig

logger = logging.getLogger(__name__)

MAX_CHAT_LENGTH = 256

CONTROLS = ("forward", "back", "left", "right", "jump", "sneak", "sprint")

Emit = Callable[..., None]
"""``emit(kind: EventKind, **fields)`` -- how a client reports session events."""


class ClientError(Exception):
    """Raised by a game client or navigator that refuses a command."""


@runtime_checkable
class Navigator(Protocol):
    """Path-following collaborator. Keeps walking toward a target until stopped."""

    def configure(self) -> None:
        """Prepare movement rules for the current world. Called on spawn."""
        ...

    def follow(self, target: str, radius: float) -> None:
        ...

    def stop(self) -> None:
        ...


@runtime_checkable
class GameClient(Protocol):
    """Connection to the game server.

    Implementations report lifecycle events through the ``emit`` callable
    they were built with and may do so from any thread. Command methods may
    raise any exception; callers catch and log them.
    """

    username: str
    supports_respawn: bool
    navigator: Navigator | None
    health: float | None
    food: float | None

    def position(self) -> Vec3 | None:
        ...

    def orientation(self) -> tuple[float, float]:
        ...

    def player_position(self, name: str) -> Vec3 | None:
        ...

    def look(self, yaw: float, pitch: float) -> None:
        ...

    def set_control_state(self, control: str, state: bool) -> None:
        ...

    def clear_control_states(self) -> None:
        ...

    def chat(self, text: str) -> None:
        ...

    def respawn(self) -> None:
        ...

    def quit(self, reason: str = "") -> None:
        ...


ClientFactory = Callable[["KeepAliveConfig", Emit], GameClient]


def safe_call(what: str, fn: Callable[..., Any], *args: Any) -> bool:
    """Call a collaborator command, logging instead of raising on failure."""
    try:
        fn(*args)
    except Exception as exc:
        logger.warning("%s failed: %s", what, exc)
        return False
    return True


def safe_query(what: str, fn: Callable[..., Any], *args: Any) -> Any:
    """Read from a collaborator; a failed lookup is logged and reads as None."""
    try:
        return fn(*args)
    except Exception as exc:
        logger.warning("%s failed: %s", what, exc)
        return None


def safe_chat(client: GameClient | None, text: str) -> bool:
    """Send *text* truncated to MAX_CHAT_LENGTH. Never raises."""
    if client is None:
        return False
    return safe_call("chat", client.chat, str(text)[:MAX_CHAT_LENGTH])


def load_factory(path: str) -> ClientFactory:
    """Resolve a ``module:attribute`` path to a client factory."""
    module_name, sep, attr = path.partition(":")
    if not sep or not module_name or not attr:
        raise ConfigError("client_factory", f"expected 'module:attribute', got {path!r}")
    try:
        module = importlib.import_module(module_name)
        factory = getattr(module, attr)
    except (ImportError, AttributeError) as exc:
        raise ConfigError("client_factory", f"cannot load {path!r}: {exc}") from exc
    if not callable(factory):
        raise ConfigError("client_factory", f"{path!r} is not callable")
    return factory


class MockNavigator:
    """In-memory navigator. Records the current goal and every call."""

    def __init__(self, fail: bool = False) -> None:
        self.goal: tuple[str, float] | None = None
        self.configured = 0
        self.stop_calls = 0
        self.fail = fail

    def configure(self) -> None:
        self.configured += 1

    def follow(self, target: str, radius: float) -> None:
        if self.fail:
            raise ClientError("navigator refused goal")
        self.goal = (target, radius)

    def stop(self) -> None:
        self.stop_calls += 1
        self.goal = None


class MockClient:
    """Deterministic in-memory game client.

    Conforms to the GameClient protocol. Spawns on construction when
    ``auto_spawn`` is set, records every command it receives, and exposes
    helpers (``die``, ``end``, ``kick``, ``error``, ``say``, ``move_player``)
    that simulate server-pushed events.

    Args:
        config: Used for the username when one is not given explicitly.
        emit: Event sink supplied by the supervisor.
        username: Overrides ``config.username``.
        auto_spawn: Emit SPAWNED immediately.
        supports_respawn: Whether ``respawn`` is available.
        navigator: Navigator to expose; a MockNavigator is created when omitted.
        pathing: When False the client exposes no navigator at all.
        fail_commands: Raise ClientError from every movement/chat command.
    """

    def __init__(
        self,
        config: KeepAliveConfig | None = None,
        emit: Emit | None = None,
        *,
        username: str | None = None,
        auto_spawn: bool = True,
        supports_respawn: bool = True,
        navigator: Navigator | None = None,
        pathing: bool = True,
        fail_commands: bool = False,
        position: Vec3 | None = (0.0, 64.0, 0.0),
    ) -> None:
        if username is None:
            username = config.username if config is not None else "KeepAliveBot"
        self.username = username
        self.supports_respawn = supports_respawn
        if not pathing:
            navigator = None
        elif navigator is None:
            navigator = MockNavigator()
        self.navigator: Navigator | None = navigator
        self.health: float | None = 20.0
        self.food: float | None = 20.0
        self.fail_commands = fail_commands

        self._emit = emit if emit is not None else (lambda kind, **fields: None)
        self._position = position
        self._yaw = 0.0
        self._pitch = 0.0
        self.players: dict[str, Vec3] = {}
        self.controls: dict[str, bool] = {c: False for c in CONTROLS}
        self.control_history: list[tuple[str, bool]] = []
        self.looks: list[tuple[float, float]] = []
        self.chat_log: list[str] = []
        self.respawns = 0
        self.connected = True
        self.quit_reason: str | None = None

        if auto_spawn:
            self.spawn()

    # --- GameClient protocol ---

    def position(self) -> Vec3 | None:
        return self._position

    def orientation(self) -> tuple[float, float]:
        return (self._yaw, self._pitch)

    def player_position(self, name: str) -> Vec3 | None:
        return self.players.get(name)

    def look(self, yaw: float, pitch: float) -> None:
        self._check()
        self._yaw, self._pitch = yaw, pitch
        self.looks.append((yaw, pitch))

    def set_control_state(self, control: str, state: bool) -> None:
        self._check()
        if control not in self.controls:
            raise ClientError(f"unknown control {control!r}")
        self.controls[control] = state
        self.control_history.append((control, state))

    def clear_control_states(self) -> None:
        for control in self.controls:
            self.controls[control] = False

    def chat(self, text: str) -> None:
        self._check()
        self.chat_log.append(text)

    def respawn(self) -> None:
        if not self.supports_respawn:
            raise ClientError("respawn not supported")
        self.respawns += 1
        self.spawn()

    def quit(self, reason: str = "") -> None:
        if not self.connected:
            return
        self.connected = False
        self.quit_reason = reason
        self._emit(EventKind.ENDED, reason=reason or "quit")

    # --- Simulation helpers ---

    def set_position(self, position: Vec3 | None) -> None:
        self._position = position

    def move_player(self, name: str, position: Vec3) -> None:
        self.players[name] = position

    def remove_player(self, name: str) -> None:
        self.players.pop(name, None)

    def spawn(self) -> None:
        self._emit(EventKind.SPAWNED)

    def die(self) -> None:
        self._emit(EventKind.DIED)

    def end(self, reason: str = "socketClosed") -> None:
        self.connected = False
        self._emit(EventKind.ENDED, reason=reason)

    def kick(self, reason: str = "kicked") -> None:
        self._emit(EventKind.KICKED, reason=reason)

    def error(self, message: str = "protocol error") -> None:
        self._emit(EventKind.PROTOCOL_ERROR, reason=message)

    def say(self, sender: str, message: str) -> None:
        self._emit(EventKind.CHAT, sender=sender, message=message)

    def _check(self) -> None:
        if self.fail_commands:
            raise ClientError("command refused")
