"""Keep-alive configuration dataclass and environment loader."""
from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Callable, Mapping, TypeVar

from tick_keepalive.types import ConfigError

_T = TypeVar("_T")

DEFAULT_GREETINGS: tuple[str, ...] = (
    "hi",
    "hello",
    "anyone here?",
    "keeping server alive",
)


@dataclass(frozen=True)
class KeepAliveConfig:
    """Immutable configuration for one keep-alive process.

    Attributes:
        host, port: Game server address.
        username, password, version: Identity passed through to the client
            factory. ``version=None`` lets the client negotiate.
        min_action_delay_ms, max_action_delay_ms: Bounds of the random wait
            between natural actions.
        reconnect_delay_ms: Fixed delay before a reconnect attempt.
        respawn_delay_ms: Delay between a death event and the respawn call.
        chat_probability: Chance of a greeting after each natural action.
        greetings: Candidate greeting messages.
        follow_start_distance: Max distance at which a follow request is accepted.
        follow_stop_distance: Distance beyond which an active follow ends.
        follow_max_duration_ms: Hard limit on one follow session.
        follow_check_interval_ms: Period of the follow distance check.
        follow_radius: Stand-off distance handed to the navigator.
        max_consecutive_errors: Protocol errors tolerated before a forced disconnect.
        http_host, http_port: Liveness server bind address.
        self_ping_url: URL fetched every ``self_ping_interval_ms`` when set.
        client_factory: ``module:attribute`` path of the game client factory.
        log_level: Root logging level name.
    """

    host: str = "127.0.0.1"
    port: int = 25565
    username: str = "KeepAliveBot"
    password: str | None = None
    version: str | None = None

    min_action_delay_ms: int = 5000
    max_action_delay_ms: int = 20000
    reconnect_delay_ms: int = 8000
    respawn_delay_ms: int = 800

    chat_probability: float = 0.08
    greetings: tuple[str, ...] = DEFAULT_GREETINGS

    follow_start_distance: float = 30.0
    follow_stop_distance: float = 35.0
    follow_max_duration_ms: int = 30_000
    follow_check_interval_ms: int = 2000
    follow_radius: float = 1.0

    max_consecutive_errors: int = 5

    http_host: str = "0.0.0.0"
    http_port: int = 3000
    self_ping_url: str | None = None
    self_ping_interval_ms: int = 13 * 60 * 1000

    client_factory: str = "tick_keepalive.client:MockClient"
    log_level: str = "INFO"

    def __post_init__(self) -> None:
        for name in (
            "min_action_delay_ms",
            "max_action_delay_ms",
            "reconnect_delay_ms",
            "respawn_delay_ms",
        ):
            if getattr(self, name) < 0:
                raise ConfigError(name, "must be >= 0")
        if self.min_action_delay_ms > self.max_action_delay_ms:
            raise ConfigError(
                "min_action_delay_ms",
                f"{self.min_action_delay_ms} exceeds max_action_delay_ms "
                f"{self.max_action_delay_ms}",
            )
        if not 0.0 <= self.chat_probability <= 1.0:
            raise ConfigError("chat_probability", "must be within [0, 1]")
        if self.follow_start_distance < 0:
            raise ConfigError("follow_start_distance", "must be >= 0")
        if self.follow_stop_distance < self.follow_start_distance:
            raise ConfigError(
                "follow_stop_distance",
                "must be >= follow_start_distance",
            )
        for name in (
            "follow_max_duration_ms",
            "follow_check_interval_ms",
            "max_consecutive_errors",
            "self_ping_interval_ms",
        ):
            if getattr(self, name) <= 0:
                raise ConfigError(name, "must be positive")

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> KeepAliveConfig:
        """Build a config from environment variables, falling back to defaults."""
        env = os.environ if environ is None else environ
        defaults = cls()

        def get(name: str, parse: Callable[[str], _T], default: _T) -> _T:
            raw = env.get(name)
            if raw is None or raw.strip() == "":
                return default
            try:
                return parse(raw.strip())
            except ValueError as exc:
                raise ConfigError(name, f"invalid value {raw!r}") from exc

        greetings = defaults.greetings
        raw_greetings = env.get("GREETINGS")
        if raw_greetings:
            greetings = tuple(g for g in raw_greetings.split("|") if g.strip())

        return cls(
            host=env.get("MC_HOST") or defaults.host,
            port=get("MC_PORT", int, defaults.port),
            username=env.get("MC_USERNAME") or defaults.username,
            password=env.get("MC_PASSWORD") or None,
            version=env.get("MC_VERSION") or None,
            min_action_delay_ms=get("MIN_ACTION_DELAY", int, defaults.min_action_delay_ms),
            max_action_delay_ms=get("MAX_ACTION_DELAY", int, defaults.max_action_delay_ms),
            reconnect_delay_ms=get("RECONNECT_DELAY", int, defaults.reconnect_delay_ms),
            respawn_delay_ms=get("RESPAWN_DELAY", int, defaults.respawn_delay_ms),
            chat_probability=get("CHAT_PROBABILITY", float, defaults.chat_probability),
            greetings=greetings,
            follow_start_distance=get(
                "FOLLOW_START_DISTANCE", float, defaults.follow_start_distance
            ),
            follow_stop_distance=get(
                "FOLLOW_STOP_DISTANCE", float, defaults.follow_stop_distance
            ),
            follow_max_duration_ms=get(
                "FOLLOW_TIMEOUT_MS", int, defaults.follow_max_duration_ms
            ),
            max_consecutive_errors=get(
                "MAX_CONSECUTIVE_ERRORS", int, defaults.max_consecutive_errors
            ),
            http_port=get("PORT", int, defaults.http_port),
            self_ping_url=env.get("SELF_PING_URL") or None,
            client_factory=env.get("CLIENT_FACTORY") or defaults.client_factory,
            log_level=(env.get("LOG_LEVEL") or defaults.log_level).upper(),
        )
