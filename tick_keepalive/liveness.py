"""Liveness HTTP surface for uptime pingers, plus an optional self-ping timer."""
from __future__ import annotations

import logging
import threading
import time
import urllib.error
import urllib.request
from typing import TYPE_CHECKING

from flask import Flask, jsonify
from werkzeug.serving import make_server

if TYPE_CHECKING:
    from tick_keepalive.engine import Engine
    from tick_keepalive.supervisor import SessionSupervisor
    from tick_keepalive.timers import Timer

logger = logging.getLogger(__name__)


def create_app(supervisor: SessionSupervisor) -> Flask:
    """Build the Flask app serving ``/``, ``/health`` and ``/status``."""
    app = Flask(__name__)

    @app.route("/")
    def index():
        state = supervisor.status()["state"]
        return f"MC KeepAlive Bot is UP ✅ (session {state})"

    @app.route("/health")
    def health():
        status = supervisor.status()
        return jsonify({
            "ok": True,
            "ts": int(time.time() * 1000),
            "connected": status["connected"],
            "uptime_s": status["uptime_s"],
        })

    @app.route("/status")
    def session_status():
        status = supervisor.status()
        body = {
            "status": "connected" if status["connected"] else "disconnected",
            "username": status["username"],
        }
        for key in ("pos", "health", "food"):
            if key in status:
                body[key] = status[key]
        return jsonify(body)

    return app


class LivenessServer:
    """Serves a Flask app from a daemon thread."""

    def __init__(self, app: Flask, host: str, port: int) -> None:
        self._app = app
        self._host = host
        self._port = port
        self._server = None
        self._thread: threading.Thread | None = None

    @property
    def port(self) -> int:
        return self._server.server_port if self._server is not None else self._port

    def start(self) -> None:
        self._server = make_server(self._host, self._port, self._app, threaded=True)
        self._thread = threading.Thread(
            target=self._server.serve_forever, name="liveness-http", daemon=True
        )
        self._thread.start()
        logger.info("http server listening on %s", self.port)

    def stop(self) -> None:
        if self._server is None:
            return
        self._server.shutdown()
        self._server.server_close()
        self._server = None
        logger.info("http server stopped")


class SelfPinger:
    """Fetches *url* every *interval_ms* so a sleeping host stays awake.

    The request runs on a short-lived daemon thread; the engine loop never
    waits on the network.
    """

    def __init__(self, engine: Engine, url: str, interval_ms: int, timeout: float = 10.0) -> None:
        self._engine = engine
        self._url = url
        self._interval_ms = interval_ms
        self._timeout = timeout
        self._timer: Timer | None = None

    @property
    def active(self) -> bool:
        return self._timer is not None and self._timer.active

    def start(self) -> None:
        if self.active:
            return
        self._timer = self._engine.timers.call_every(self._interval_ms, self.fire, "self-ping")
        logger.info("self-ping enabled for %s", self._url)

    def stop(self) -> None:
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None

    def fire(self) -> threading.Thread:
        thread = threading.Thread(target=self.ping, name="self-ping", daemon=True)
        thread.start()
        return thread

    def ping(self) -> bool:
        try:
            with urllib.request.urlopen(self._url, timeout=self._timeout) as resp:
                logger.debug("self-ping %s -> %s", self._url, resp.status)
        except (urllib.error.URLError, OSError) as exc:
            logger.warning("self-ping failed: %s", exc)
            return False
        return True
