"""Follow controller: follow a named player with start/stop hysteresis and a deadline."""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING, Callable

from tick_keepalive import vec
from tick_keepalive.client import GameClient, safe_call, safe_chat, safe_query

if TYPE_CHECKING:
    from tick_keepalive.config import KeepAliveConfig
    from tick_keepalive.engine import Engine
    from tick_keepalive.timers import Timer

logger = logging.getLogger(__name__)

MSG_UNAVAILABLE = "المتابعة غير متاحة حالياً."
MSG_NOT_FOUND = "ما لقيتك {target}."
MSG_TOO_FAR = "معليش {target} بعيد ({distance} بلوك)"
MSG_FOLLOWING = "جاي وراك يا {target} 🐾"


@dataclass
class FollowSession:
    target: str
    started_at: int
    deadline: Timer
    check: Timer | None


class FollowController:
    """Starts and stops navigation toward one player at a time.

    A request is accepted only within ``follow_start_distance``; once
    following, the periodic check ends the session beyond the larger
    ``follow_stop_distance``.
    """

    def __init__(
        self,
        engine: Engine,
        config: KeepAliveConfig,
        client_ref: Callable[[], GameClient | None],
    ) -> None:
        self._engine = engine
        self._config = config
        self._client_ref = client_ref
        self._session: FollowSession | None = None
        self.last_stop_reason: str | None = None

    @property
    def active(self) -> bool:
        return self._session is not None

    @property
    def target(self) -> str | None:
        return self._session.target if self._session is not None else None

    @property
    def session(self) -> FollowSession | None:
        return self._session

    def start(self, target: str) -> bool:
        """Try to start following *target*. Returns True when accepted."""
        client = self._client_ref()
        if client is None:
            return False

        navigator = client.navigator
        if navigator is None:
            logger.info("follow request from %s rejected: no navigator", target)
            safe_chat(client, MSG_UNAVAILABLE)
            return False

        target_pos = safe_query("player position", client.player_position, target)
        if target_pos is None:
            logger.info("player position unknown for %s", target)
            safe_chat(client, MSG_NOT_FOUND.format(target=target))
            return False

        own_pos = safe_query("position", client.position)
        if own_pos is None:
            logger.info("own position unknown; ignoring follow request")
            return False

        dist = vec.distance(own_pos, target_pos)
        logger.info("distance to %s: %.2f blocks", target, dist)
        if dist > self._config.follow_start_distance:
            logger.info("player too far to start follow: %.1f", dist)
            safe_chat(client, MSG_TOO_FAR.format(target=target, distance=round(dist)))
            return False

        self.stop("replaced")
        if not safe_call("follow", navigator.follow, target, self._config.follow_radius):
            return False

        timers = self._engine.timers
        self._session = FollowSession(
            target=target,
            started_at=self._engine.now_ms,
            deadline=timers.call_later(
                self._config.follow_max_duration_ms, self._on_deadline, "follow:deadline"
            ),
            check=timers.call_every(
                self._config.follow_check_interval_ms, self._on_check, "follow:check"
            ),
        )
        safe_chat(client, MSG_FOLLOWING.format(target=target))
        logger.info("started following %s", target)
        return True

    def stop(self, reason: str = "command") -> bool:
        """Stop following. Safe to call repeatedly; returns False if idle."""
        session = self._session
        if session is None:
            return False
        self._cancel_timers()
        self._session = None
        self.last_stop_reason = reason

        client = self._client_ref()
        if client is not None and client.navigator is not None:
            safe_call("stop navigator", client.navigator.stop)
        logger.info("stopped following %s (%s)", session.target, reason)
        return True

    def _cancel_timers(self) -> None:
        if self._session is None:
            return
        self._session.deadline.cancel()
        if self._session.check is not None:
            self._session.check.cancel()
            self._session.check = None

    def _on_deadline(self) -> None:
        logger.info("follow timeout reached")
        self.stop("timeout")

    def _on_check(self) -> None:
        session = self._session
        if session is None:
            return
        client = self._client_ref()
        own_pos = safe_query("position", client.position) if client is not None else None
        if own_pos is None:
            # Session is going away; teardown will finish the job.
            if session.check is not None:
                session.check.cancel()
                session.check = None
            return

        target_pos = safe_query("player position", client.player_position, session.target)
        if target_pos is None:
            logger.info("player %s lost; stopping follow", session.target)
            self.stop("target_lost")
            return

        dist = vec.distance(own_pos, target_pos)
        if dist > self._config.follow_stop_distance:
            logger.info("player too far (%.1f); stopping follow", dist)
            self.stop("distance")
