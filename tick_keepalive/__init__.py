"""tick-keepalive - Keep one game session alive on a tick loop."""

from tick_keepalive.actions import ActionKind, ActionScheduler, pick_weighted
from tick_keepalive.client import (
    ClientError,
    GameClient,
    MockClient,
    MockNavigator,
    Navigator,
    safe_chat,
)
from tick_keepalive.clock import Clock
from tick_keepalive.commands import CommandInterpreter, FollowMe, Stop, Unknown, parse_command
from tick_keepalive.config import KeepAliveConfig
from tick_keepalive.engine import Engine
from tick_keepalive.follow import FollowController
from tick_keepalive.supervisor import SessionSupervisor
from tick_keepalive.timers import Timer, TimerQueue
from tick_keepalive.types import (
    ConfigError,
    ConnectionState,
    EventKind,
    SessionEvent,
    TickContext,
)

__all__ = [
    "Engine",
    "Clock",
    "Timer",
    "TimerQueue",
    "TickContext",
    "KeepAliveConfig",
    "ConfigError",
    "SessionSupervisor",
    "ConnectionState",
    "EventKind",
    "SessionEvent",
    "ActionScheduler",
    "ActionKind",
    "pick_weighted",
    "FollowController",
    "CommandInterpreter",
    "FollowMe",
    "Stop",
    "Unknown",
    "parse_command",
    "GameClient",
    "Navigator",
    "MockClient",
    "MockNavigator",
    "ClientError",
    "safe_chat",
]
