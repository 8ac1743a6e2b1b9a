"""Coded chat commands: ``(follow me)`` / ``(stop)`` wrapped in parentheses."""
from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from typing import Any, Callable

logger = logging.getLogger(__name__)

_CODED = re.compile(r"^\((.+)\)$", re.DOTALL)

FOLLOW_TOKEN = "الحقني"
STOP_TOKEN = "توقف"
FOLLOW_ALIAS = "follow me"
STOP_ALIAS = "stop"


@dataclass(frozen=True)
class FollowMe:
    sender: str


@dataclass(frozen=True)
class Stop:
    sender: str


@dataclass(frozen=True)
class Unknown:
    sender: str
    text: str


Command = FollowMe | Stop | Unknown


def parse_command(sender: str, text: str) -> Command | None:
    """Parse a chat line. Returns None unless the whole line is ``(...)``.

    >>> parse_command("alex", "(stop)")
    Stop(sender='alex')
    >>> parse_command("alex", "hello (stop) world") is None
    True
    """
    match = _CODED.match(str(text).strip())
    if match is None:
        return None
    inner = match.group(1).strip()
    lowered = inner.lower()
    if inner == FOLLOW_TOKEN or lowered == FOLLOW_ALIAS:
        return FollowMe(sender)
    if inner == STOP_TOKEN or lowered == STOP_ALIAS:
        return Stop(sender)
    return Unknown(sender, inner)


class CommandInterpreter:
    """Routes coded chat commands to typed handlers.

    One handler per command class, dispatched by type. Messages from the bot
    itself and lines that are not coded commands are dropped silently.
    """

    def __init__(self, self_name: Callable[[], str | None]) -> None:
        self._self_name = self_name
        self._handlers: dict[type[Any], Callable[[Any], None]] = {}

    def handle(self, cmd_type: type[Any], handler: Callable[[Any], None]) -> None:
        """Register a handler for a command type. Later calls overwrite."""
        self._handlers[cmd_type] = handler

    def on_chat(self, sender: str, text: str) -> Command | None:
        """Interpret one chat line. Returns the dispatched command, if any."""
        if not sender or sender == self._self_name():
            return None
        cmd = parse_command(sender, text)
        if cmd is None:
            return None

        if isinstance(cmd, Unknown):
            logger.info("unknown coded command from %s: %s", sender, cmd.text)
            return cmd

        logger.info("coded command from %s: %s", sender, type(cmd).__name__)
        handler = self._handlers.get(type(cmd))
        if handler is None:
            raise TypeError(f"No handler registered for {type(cmd).__qualname__}")
        handler(cmd)
        return cmd
