"""Command-line entry point: wire config, engine, supervisor and liveness server."""
from __future__ import annotations

import argparse
import logging
import signal
import sys
from typing import Sequence

from tick_keepalive.client import load_factory
from tick_keepalive.config import KeepAliveConfig
from tick_keepalive.engine import Engine
from tick_keepalive.liveness import LivenessServer, SelfPinger, create_app
from tick_keepalive.supervisor import SessionSupervisor
from tick_keepalive.types import ConfigError

logger = logging.getLogger(__name__)

LOG_FORMAT = "%(asctime)s [%(name)s] %(levelname)s: %(message)s"


def build(config: KeepAliveConfig, seed: int | None = None, tps: int = 20) -> tuple[Engine, SessionSupervisor]:
    """Create the engine and supervisor and hook shutdown to engine stop."""
    engine = Engine(tps=tps, seed=seed)
    supervisor = SessionSupervisor(engine, config, load_factory(config.client_factory))
    engine.on_start(lambda ctx: supervisor.start())
    engine.on_stop(lambda ctx: supervisor.shutdown())
    return engine, supervisor


def main(argv: Sequence[str] | None = None) -> int:
    parser = argparse.ArgumentParser(
        prog="tick-keepalive",
        description="Keep a game session alive with idle actions and a liveness endpoint.",
    )
    parser.add_argument("--seed", type=int, default=None, help="RNG seed (default: random)")
    parser.add_argument("--tps", type=int, default=20, help="Engine ticks per second (default: 20)")
    parser.add_argument("--no-http", action="store_true", help="Do not start the liveness server")
    args = parser.parse_args(argv)

    try:
        config = KeepAliveConfig.from_env()
        level = logging.getLevelName(config.log_level)
        if not isinstance(level, int):
            raise ConfigError("LOG_LEVEL", f"unknown level {config.log_level!r}")
        logging.basicConfig(level=level, format=LOG_FORMAT)
        engine, supervisor = build(config, seed=args.seed, tps=args.tps)
    except ConfigError as exc:
        parser.error(str(exc))

    server = None
    if not args.no_http:
        server = LivenessServer(create_app(supervisor), config.http_host, config.http_port)
        server.start()
        engine.on_stop(lambda ctx: server.stop())

    if config.self_ping_url:
        pinger = SelfPinger(engine, config.self_ping_url, config.self_ping_interval_ms)
        pinger.start()
        engine.on_stop(lambda ctx: pinger.stop())

    def _on_signal(signum: int, frame: object) -> None:
        logger.info("received %s; shutting down", signal.Signals(signum).name)
        engine.request_stop()

    def _install_handlers(ctx) -> None:
        # Runs after run_forever clears the stop flag.
        signal.signal(signal.SIGINT, _on_signal)
        signal.signal(signal.SIGTERM, _on_signal)

    engine.on_start(_install_handlers)

    logger.info("engine seed %d", engine.seed)
    engine.run_forever()
    return 0


if __name__ == "__main__":
    sys.exit(main())
