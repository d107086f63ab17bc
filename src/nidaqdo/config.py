"""Session configuration and TOML persistence.

A :class:`SessionConfig` is the immutable value a session is built from:
task name, writer mode and static channels.  It round-trips through a
human-readable TOML file::

    [task]
    name = "pattern_gen"
    type = "digital_output"
    mode = "clocked"
    signal_source = ""
    sample_rate = 1000.0
    active_edge = "rising"
    quantity_mode = "continuous"
    buffer_size = 1000

    [[channels]]
    name = "leds"
    lines = "Dev1/port1/line0:3"
    grouping = "chan_per_line"

Notes
-----
TOML is generated with simple string formatting; no third-party library is
required for writing.  The clock keys are only written for clocked sessions.
"""

from __future__ import annotations

import pathlib
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any

from .channels import ChannelConfigSet, ChannelSource, to_channel_set
from .errors import ConfigurationError
from .timing import Clocked, OnDemand, WriterMode, to_writer_mode


@dataclass(frozen=True)
class SessionConfig:
    """Immutable settings for one digital output session.

    Parameters
    ----------
    task_name : str, optional
        Task name; empty lets the driver choose.
    mode : WriterMode, optional
        :class:`OnDemand` (default) or :class:`Clocked`.
    channels : ChannelConfigSet, optional
        Static channels, empty by default.
    """

    task_name: str = ""
    mode: WriterMode = field(default_factory=OnDemand)
    channels: ChannelConfigSet = field(default_factory=ChannelConfigSet)

    def __post_init__(self) -> None:
        object.__setattr__(self, "mode", to_writer_mode(self.mode))
        object.__setattr__(self, "channels", to_channel_set(self.channels))

    def with_channels(self, channels: ChannelSource) -> SessionConfig:
        """Return a copy with ``channels`` appended to the static channels."""
        return SessionConfig(
            task_name=self.task_name,
            mode=self.mode,
            channels=self.channels + to_channel_set(channels),
        )


def _quote(value: str) -> str:
    escaped = value.replace("\\", "\\\\").replace('"', '\\"')
    return f'"{escaped}"'


def save_config(config: SessionConfig, path: str | pathlib.Path) -> None:
    """Serialise a session configuration to a TOML file.

    Parameters
    ----------
    config : SessionConfig
        Configuration to write.
    path : str or pathlib.Path
        Destination file path.  The file is created or overwritten.
    """
    from . import __version__

    lines: list[str] = []

    timestamp = datetime.now().strftime("%Y-%m-%d %H:%M")
    lines.append(f"# Generated by nidaqdo {__version__} on {timestamp}")
    lines.append("")

    lines.append("[task]")
    lines.append(f"name = {_quote(config.task_name)}")
    lines.append('type = "digital_output"')
    mode = config.mode
    if isinstance(mode, Clocked):
        lines.append('mode = "clocked"')
        lines.append(f"signal_source = {_quote(mode.signal_source)}")
        lines.append(f"sample_rate = {mode.sample_rate}")
        lines.append(f'active_edge = "{mode.active_edge.value}"')
        lines.append(f'quantity_mode = "{mode.quantity_mode.value}"')
        lines.append(f"buffer_size = {mode.buffer_size}")
    else:
        lines.append('mode = "on_demand"')
    lines.append("")

    for ch in config.channels:
        lines.append("[[channels]]")
        lines.append(f"name = {_quote(ch.name)}")
        lines.append(f"lines = {_quote(ch.lines)}")
        lines.append(f'grouping = "{ch.grouping.value}"')
        lines.append("")

    pathlib.Path(path).write_text("\n".join(lines), encoding="utf-8")


def config_from_dict(data: dict[str, Any]) -> SessionConfig:
    """Build a :class:`SessionConfig` from parsed TOML data.

    Raises
    ------
    ConfigurationError
        If the ``[task]`` section is absent, ``type`` is not
        ``"digital_output"``, or any mode/channel value is invalid.
    """
    if "task" not in data:
        raise ConfigurationError("TOML file is missing required [task] section.")

    task_section = data["task"]
    task_type = task_section.get("type", "digital_output")
    if task_type != "digital_output":
        raise ConfigurationError(
            f"Unsupported task type '{task_type}'. Expected 'digital_output'."
        )

    return SessionConfig(
        task_name=task_section.get("name", ""),
        mode=to_writer_mode(task_section),
        channels=to_channel_set(data.get("channels", [])),
    )


def load_config(path: str | pathlib.Path) -> SessionConfig:
    """Read a :class:`SessionConfig` from a TOML file.

    Parameters
    ----------
    path : str or pathlib.Path
        Path to a TOML file produced by :func:`save_config` or written by
        hand in the same layout.

    Raises
    ------
    ConfigurationError
        If the file content is invalid (see :func:`config_from_dict`).
    tomllib.TOMLDecodeError
        On syntactically invalid TOML (propagated from the parser).
    """
    try:
        import tomllib
    except ModuleNotFoundError:
        import tomli as tomllib  # type: ignore[no-redef]

    with open(path, "rb") as fh:
        data = tomllib.load(fh)

    return config_from_dict(data)
