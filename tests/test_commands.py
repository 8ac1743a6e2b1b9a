"""Tests for coded-command parsing and dispatch."""
from __future__ import annotations

import pytest
from tick_keepalive import CommandInterpreter, FollowMe, Stop, Unknown, parse_command


class TestParse:
    def test_arabic_follow_token(self) -> None:
        assert parse_command("alex", "(الحقني)") == FollowMe("alex")

    def test_arabic_stop_token(self) -> None:
        assert parse_command("alex", "(توقف)") == Stop("alex")

    def test_stop(self) -> None:
        assert parse_command("alex", "(stop)") == Stop("alex")

    @pytest.mark.parametrize("text", ["(Follow Me)", "(FOLLOW ME)", "  ( follow me )  "])
    def test_follow_alias_case_insensitive(self, text: str) -> None:
        assert parse_command("alex", text) == FollowMe("alex")

    def test_stop_alias_case_insensitive(self) -> None:
        assert parse_command("alex", " ( STOP ) ") == Stop("alex")

    @pytest.mark.parametrize(
        "text",
        ["hello (stop) world", "stop", "(stop", "stop)", "()", "", "   "],
    )
    def test_not_a_coded_command(self, text: str) -> None:
        assert parse_command("alex", text) is None

    def test_unknown_inner_text(self) -> None:
        assert parse_command("alex", "(dance)") == Unknown("alex", "dance")

    def test_nested_parentheses_are_unknown(self) -> None:
        assert parse_command("alex", "((stop))") == Unknown("alex", "(stop)")


class TestInterpreter:
    @pytest.fixture
    def calls(self) -> list:
        return []

    @pytest.fixture
    def interpreter(self, calls: list) -> CommandInterpreter:
        interp = CommandInterpreter(lambda: "KeepAliveBot")
        interp.handle(FollowMe, calls.append)
        interp.handle(Stop, calls.append)
        return interp

    def test_dispatch_by_type(self, interpreter: CommandInterpreter, calls: list) -> None:
        interpreter.on_chat("alex", "(follow me)")
        interpreter.on_chat("sam", "(stop)")
        assert calls == [FollowMe("alex"), Stop("sam")]

    def test_self_sent_ignored(self, interpreter: CommandInterpreter, calls: list) -> None:
        assert interpreter.on_chat("KeepAliveBot", "(follow me)") is None
        assert calls == []

    def test_plain_chat_ignored(self, interpreter: CommandInterpreter, calls: list) -> None:
        assert interpreter.on_chat("alex", "hello there") is None
        assert calls == []

    def test_unknown_logged_not_dispatched(
        self, interpreter: CommandInterpreter, calls: list, caplog: pytest.LogCaptureFixture
    ) -> None:
        caplog.set_level("INFO")
        assert interpreter.on_chat("alex", "(dance)") == Unknown("alex", "dance")
        assert calls == []
        assert "unknown coded command from alex: dance" in caplog.text

    def test_missing_handler_raises(self) -> None:
        interp = CommandInterpreter(lambda: None)
        with pytest.raises(TypeError):
            interp.on_chat("alex", "(stop)")

    def test_later_handler_overwrites(self, calls: list) -> None:
        interp = CommandInterpreter(lambda: None)
        interp.handle(Stop, lambda cmd: calls.append("first"))
        interp.handle(Stop, lambda cmd: calls.append("second"))
        interp.on_chat("alex", "(stop)")
        assert calls == ["second"]
