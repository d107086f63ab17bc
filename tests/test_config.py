"""Tests for nidaqdo.config (SessionConfig and TOML persistence)."""

from __future__ import annotations

import dataclasses

import pytest

from nidaqdo.channels import ChannelConfig, ChannelConfigSet, LineGrouping
from nidaqdo.config import (
    SessionConfig,
    config_from_dict,
    load_config,
    save_config,
)
from nidaqdo.errors import ConfigurationError
from nidaqdo.timing import Clocked, Edge, OnDemand, QuantityMode


@pytest.fixture
def clocked_config():
    return SessionConfig(
        task_name="pattern_gen",
        mode=Clocked(
            signal_source="/Dev1/PFI0",
            sample_rate=2500.0,
            active_edge=Edge.FALLING,
            quantity_mode=QuantityMode.FINITE,
            buffer_size=512,
        ),
        channels=[
            ChannelConfig("Dev1/port0/line0:3", "leds"),
            ChannelConfig("Dev1/port1", "bus", LineGrouping.CHAN_FOR_ALL_LINES),
        ],
    )


class TestSessionConfig:
    def test_defaults(self):
        config = SessionConfig()
        assert config.task_name == ""
        assert config.mode == OnDemand()
        assert len(config.channels) == 0

    def test_inputs_are_normalised(self):
        config = SessionConfig(mode="clocked", channels=ChannelConfig("Dev1/port0"))
        assert config.mode == Clocked()
        assert isinstance(config.channels, ChannelConfigSet)
        assert len(config.channels) == 1

    def test_is_frozen(self):
        with pytest.raises(dataclasses.FrozenInstanceError):
            SessionConfig().task_name = "x"

    def test_with_channels_appends(self):
        base = SessionConfig(channels=[ChannelConfig("Dev1/port0/line0", "a")])
        extended = base.with_channels(ChannelConfig("Dev1/port0/line1", "b"))

        assert [ch.name for ch in extended.channels] == ["a", "b"]
        assert [ch.name for ch in base.channels] == ["a"]


class TestSaveConfig:
    def test_file_layout(self, tmp_path, clocked_config):
        path = tmp_path / "do.toml"
        save_config(clocked_config, path)
        text = path.read_text(encoding="utf-8")

        assert text.startswith("# Generated by nidaqdo")
        assert "[task]" in text
        assert 'type = "digital_output"' in text
        assert 'mode = "clocked"' in text
        assert 'active_edge = "falling"' in text
        assert "buffer_size = 512" in text
        assert text.count("[[channels]]") == 2
        assert 'grouping = "chan_for_all_lines"' in text

    def test_on_demand_omits_clock_keys(self, tmp_path):
        path = tmp_path / "do.toml"
        save_config(SessionConfig(channels=[ChannelConfig("Dev1/port0")]), path)
        text = path.read_text(encoding="utf-8")

        assert 'mode = "on_demand"' in text
        assert "sample_rate" not in text
        assert "buffer_size" not in text

    def test_quotes_are_escaped(self, tmp_path):
        path = tmp_path / "do.toml"
        save_config(SessionConfig(task_name='say "hi"'), path)
        assert load_config(path).task_name == 'say "hi"'


class TestLoadConfig:
    def test_save_then_load(self, tmp_path, clocked_config):
        path = tmp_path / "do.toml"
        save_config(clocked_config, path)
        assert load_config(path) == clocked_config

    def test_accepts_str_path(self, tmp_path, clocked_config):
        path = tmp_path / "do.toml"
        save_config(clocked_config, str(path))
        assert load_config(str(path)).task_name == "pattern_gen"

    def test_hand_written_file(self, tmp_path):
        path = tmp_path / "hand.toml"
        path.write_text(
            "[task]\n"
            'name = "strobe"\n'
            'mode = "clocked"\n'
            "sample_rate = 100\n"
            "\n"
            "[[channels]]\n"
            'lines = "Dev1/port0/line7"\n',
            encoding="utf-8",
        )

        config = load_config(path)
        assert config.task_name == "strobe"
        assert config.mode == Clocked(sample_rate=100.0)
        assert config.channels[0] == ChannelConfig("Dev1/port0/line7")

    def test_invalid_toml_propagates_parser_error(self, tmp_path):
        path = tmp_path / "bad.toml"
        path.write_text("[task\n", encoding="utf-8")
        with pytest.raises(ValueError):
            load_config(path)


class TestConfigFromDict:
    def test_missing_task_section(self):
        with pytest.raises(ConfigurationError, match=r"\[task\]"):
            config_from_dict({"channels": []})

    def test_wrong_task_type(self):
        with pytest.raises(ConfigurationError, match="digital_output"):
            config_from_dict({"task": {"type": "analog_input"}})

    def test_unknown_mode(self):
        with pytest.raises(ConfigurationError, match="writer mode"):
            config_from_dict({"task": {"mode": "triggered"}})

    def test_bad_clock_setting(self):
        with pytest.raises(ConfigurationError, match="sample_rate"):
            config_from_dict({"task": {"mode": "clocked", "sample_rate": 0}})

    def test_quoted_number_in_file_is_configuration_error(self):
        with pytest.raises(ConfigurationError, match="must be a number"):
            config_from_dict({"task": {"mode": "clocked", "sample_rate": "1000"}})

    def test_bad_grouping(self):
        with pytest.raises(ConfigurationError):
            config_from_dict(
                {
                    "task": {},
                    "channels": [{"lines": "Dev1/port0", "grouping": "per_port"}],
                }
            )

    def test_channels_optional(self):
        config = config_from_dict({"task": {"name": "t"}})
        assert config == SessionConfig(task_name="t")
