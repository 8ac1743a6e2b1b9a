"""Tests for KeepAliveConfig defaults, validation, and environment loading."""
from __future__ import annotations

import dataclasses

import pytest
from tick_keepalive import ConfigError, KeepAliveConfig
from tick_keepalive.config import DEFAULT_GREETINGS


class TestDefaults:
    def test_defaults(self) -> None:
        config = KeepAliveConfig()
        assert config.host == "127.0.0.1"
        assert config.port == 25565
        assert config.username == "KeepAliveBot"
        assert config.password is None
        assert config.version is None
        assert (config.min_action_delay_ms, config.max_action_delay_ms) == (5000, 20000)
        assert config.reconnect_delay_ms == 8000
        assert config.chat_probability == pytest.approx(0.08)
        assert config.greetings == DEFAULT_GREETINGS
        assert (config.follow_start_distance, config.follow_stop_distance) == (30.0, 35.0)
        assert config.follow_max_duration_ms == 30_000
        assert config.http_port == 3000
        assert config.self_ping_interval_ms == 13 * 60 * 1000

    def test_frozen(self) -> None:
        config = KeepAliveConfig()
        with pytest.raises(dataclasses.FrozenInstanceError):
            config.port = 1  # type: ignore[misc]


class TestValidation:
    def test_min_delay_above_max(self) -> None:
        with pytest.raises(ConfigError) as info:
            KeepAliveConfig(min_action_delay_ms=5000, max_action_delay_ms=1000)
        assert info.value.name == "min_action_delay_ms"

    def test_negative_delay(self) -> None:
        with pytest.raises(ConfigError):
            KeepAliveConfig(reconnect_delay_ms=-1)

    def test_probability_range(self) -> None:
        with pytest.raises(ConfigError):
            KeepAliveConfig(chat_probability=1.5)

    def test_stop_distance_below_start(self) -> None:
        with pytest.raises(ConfigError) as info:
            KeepAliveConfig(follow_start_distance=30, follow_stop_distance=20)
        assert info.value.name == "follow_stop_distance"

    def test_error_threshold_positive(self) -> None:
        with pytest.raises(ConfigError):
            KeepAliveConfig(max_consecutive_errors=0)

    def test_config_error_is_value_error(self) -> None:
        assert issubclass(ConfigError, ValueError)


class TestFromEnv:
    def test_empty_env_gives_defaults(self) -> None:
        assert KeepAliveConfig.from_env({}) == KeepAliveConfig()

    def test_reads_recognized_variables(self) -> None:
        env = {
            "MC_HOST": "mc.example.org",
            "MC_PORT": "25570",
            "MC_USERNAME": "Idler",
            "MC_PASSWORD": "hunter2",
            "MC_VERSION": "1.20.4",
            "MIN_ACTION_DELAY": "1000",
            "MAX_ACTION_DELAY": "2000",
            "RECONNECT_DELAY": "3000",
            "CHAT_PROBABILITY": "0.5",
            "GREETINGS": "yo|sup||o/",
            "FOLLOW_START_DISTANCE": "10",
            "FOLLOW_STOP_DISTANCE": "12.5",
            "FOLLOW_TIMEOUT_MS": "60000",
            "MAX_CONSECUTIVE_ERRORS": "7",
            "PORT": "8080",
            "SELF_PING_URL": "https://bot.example.org/health",
            "LOG_LEVEL": "debug",
        }
        config = KeepAliveConfig.from_env(env)

        assert config.host == "mc.example.org"
        assert config.port == 25570
        assert config.username == "Idler"
        assert config.password == "hunter2"
        assert config.version == "1.20.4"
        assert (config.min_action_delay_ms, config.max_action_delay_ms) == (1000, 2000)
        assert config.reconnect_delay_ms == 3000
        assert config.chat_probability == 0.5
        assert config.greetings == ("yo", "sup", "o/")
        assert config.follow_start_distance == 10.0
        assert config.follow_stop_distance == 12.5
        assert config.follow_max_duration_ms == 60000
        assert config.max_consecutive_errors == 7
        assert config.http_port == 8080
        assert config.self_ping_url == "https://bot.example.org/health"
        assert config.log_level == "DEBUG"

    def test_blank_values_fall_back(self) -> None:
        config = KeepAliveConfig.from_env({"MC_PORT": "  ", "MC_PASSWORD": ""})
        assert config.port == 25565
        assert config.password is None

    def test_malformed_number_names_variable(self) -> None:
        with pytest.raises(ConfigError) as info:
            KeepAliveConfig.from_env({"MC_PORT": "twenty"})
        assert info.value.name == "MC_PORT"

    def test_env_values_are_validated(self) -> None:
        with pytest.raises(ConfigError):
            KeepAliveConfig.from_env({"MIN_ACTION_DELAY": "9000", "MAX_ACTION_DELAY": "100"})
