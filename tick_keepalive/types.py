"""Shared types for the keep-alive engine."""

from __future__ import annotations

import random as _random
from dataclasses import dataclass
from enum import Enum
from typing import Callable

Vec3 = tuple[float, float, float]


class ConnectionState(Enum):
    """Lifecycle state of the single game session."""

    DISCONNECTED = "disconnected"
    CONNECTING = "connecting"
    ACTIVE = "active"


class EventKind(Enum):
    """Events pushed by the game client."""

    SPAWNED = "spawned"
    DIED = "died"
    ENDED = "ended"
    KICKED = "kicked"
    PROTOCOL_ERROR = "protocol_error"
    CHAT = "chat"


@dataclass(frozen=True, slots=True)
class SessionEvent:
    """One event from the game client, tagged with the session that raised it."""

    kind: EventKind
    session_id: int = 0
    reason: str = ""
    sender: str = ""
    message: str = ""


@dataclass(frozen=True, slots=True)
class TickContext:
    tick_number: int
    now_ms: int
    dt_ms: int
    request_stop: Callable[[], None]
    random: _random.Random


class ConfigError(ValueError):
    """Raised when configuration values are missing or malformed."""

    def __init__(self, name: str, message: str) -> None:
        self.name = name
        super().__init__(f"{name}: {message}")
