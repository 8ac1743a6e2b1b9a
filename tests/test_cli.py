"""Tests for wiring and the command-line entry point."""
from __future__ import annotations

import signal

import pytest
from tick_keepalive import ConnectionState, Engine, KeepAliveConfig
from tick_keepalive.cli import build, main


class TestBuild:
    def test_run_connects_then_shuts_down(self) -> None:
        engine, supervisor = build(KeepAliveConfig(), seed=1)
        engine.run(3)
        assert supervisor.connect_attempts == 1
        assert supervisor.stopping
        assert supervisor.state is ConnectionState.DISCONNECTED

    def test_session_active_while_running(self) -> None:
        engine, supervisor = build(KeepAliveConfig(), seed=1)
        states = []
        engine.on_start(lambda ctx: states.append(supervisor.state))
        engine.timers.call_later(100, lambda: states.append(supervisor.state))
        engine.run(5)
        assert states == [ConnectionState.CONNECTING, ConnectionState.ACTIVE]
        assert supervisor.session is None

    def test_seed_is_reproducible(self) -> None:
        first, _ = build(KeepAliveConfig(), seed=99)
        second, _ = build(KeepAliveConfig(), seed=99)
        assert first.seed == second.seed == 99
        assert first.random.random() == second.random.random()

    def test_unknown_factory_rejected(self) -> None:
        with pytest.raises(ValueError):
            build(KeepAliveConfig(client_factory="nowhere.module:Factory"))


class TestMain:
    def test_bad_env_exits_with_usage_error(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("MC_PORT", "abc")
        with pytest.raises(SystemExit) as exc:
            main(["--no-http"])
        assert exc.value.code == 2

    def test_bad_log_level(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("LOG_LEVEL", "chatty")
        with pytest.raises(SystemExit) as exc:
            main(["--no-http"])
        assert exc.value.code == 2

    def test_bad_argument(self) -> None:
        with pytest.raises(SystemExit) as exc:
            main(["--seed", "x"])
        assert exc.value.code == 2

    def test_runs_until_stop_requested(self, monkeypatch: pytest.MonkeyPatch) -> None:
        """A stop requested from inside the loop returns 0 after shutdown."""
        for name in ("MC_PORT", "LOG_LEVEL", "SELF_PING_URL", "CLIENT_FACTORY"):
            monkeypatch.delenv(name, raising=False)
        engines: list[Engine] = []
        run_forever = Engine.run_forever

        def run_briefly(engine: Engine) -> None:
            engines.append(engine)
            engine.timers.call_later(0, engine.request_stop)
            run_forever(engine)

        monkeypatch.setattr(Engine, "run_forever", run_briefly)
        monkeypatch.setattr("tick_keepalive.cli.signal.signal", lambda *args: None)
        assert main(["--no-http", "--seed", "5"]) == 0
        assert len(engines) == 1
        assert engines[0].seed == 5

    def test_signal_during_startup_is_not_lost(
        self, monkeypatch: pytest.MonkeyPatch, caplog: pytest.LogCaptureFixture
    ) -> None:
        """A SIGTERM delivered as soon as handlers are installed still stops the loop."""
        for name in ("MC_PORT", "LOG_LEVEL", "SELF_PING_URL", "CLIENT_FACTORY"):
            monkeypatch.delenv(name, raising=False)
        caplog.set_level("INFO")

        def deliver_immediately(signum, handler) -> None:
            if signum == signal.SIGTERM:
                handler(signum, None)

        monkeypatch.setattr("tick_keepalive.cli.signal.signal", deliver_immediately)
        assert main(["--no-http", "--seed", "3"]) == 0
        records = [r for r in caplog.records if "received SIGTERM" in r.getMessage()]
        assert [r.name for r in records] == ["tick_keepalive.cli"]
