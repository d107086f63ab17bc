"""Digital output channel configuration.

A :class:`ChannelConfig` describes one virtual channel: which lines (or
ports) it spans, the name to assign, and how lines are grouped.  A
:class:`ChannelConfigSet` is the ordered, immutable collection a task is
built from; its order fixes the channel indices inside the task.

Loose values (dicts from a TOML file, lists, single configs) only become a
set through :func:`to_channel_set`, and static and dynamically supplied
channel lists are combined with :func:`merge_channels`.
"""

from __future__ import annotations

import enum
import re
from collections.abc import Iterable, Iterator, Mapping
from dataclasses import dataclass
from typing import Any, Union

from .errors import ConfigurationError
from .utils import _require_nidaqmx

try:
    from nidaqmx import constants
except ImportError:
    pass


# Device/portN[:M], Device/portN/lineA or Device/portN/lineA:B, in any case.
# Device names may carry chassis/module prefixes such as ``cDAQ1Mod3``.
_LINE_SPEC = re.compile(
    r"^[A-Za-z][\w\-]*/port\d+(?::\d+)?(?:/line\d+(?::\d+)?)?$",
    re.IGNORECASE,
)


class LineGrouping(enum.Enum):
    """How digital lines are exposed as virtual channels."""

    CHAN_PER_LINE = "chan_per_line"
    CHAN_FOR_ALL_LINES = "chan_for_all_lines"

    def to_nidaqmx(self) -> Any:
        """Return the matching ``nidaqmx.constants.LineGrouping`` member."""
        _require_nidaqmx()
        return getattr(constants.LineGrouping, self.name)


def validate_lines(lines: str) -> None:
    """Check an NI-DAQmx digital line specifier.

    Accepts a single ``Device/portN[:M]`` or ``Device/portN/lineA[:B]`` term
    (case-insensitive), or a comma separated list of them.

    Raises
    ------
    ConfigurationError
        If the specifier is empty or any term is malformed.
    """
    if not isinstance(lines, str) or not lines.strip():
        raise ConfigurationError(
            f"Line specifier must be a non-empty string, got {lines!r}."
        )

    for term in lines.split(","):
        term = term.strip()
        if not _LINE_SPEC.match(term):
            raise ConfigurationError(
                f"Malformed line specifier '{term}' in '{lines}'. "
                "Expected 'Device/portN', 'Device/portN:M', 'Device/portN/lineA' "
                "or 'Device/portN/lineA:B'."
            )


@dataclass(frozen=True)
class ChannelConfig:
    """One digital output virtual channel.

    Parameters
    ----------
    lines : str
        NI-DAQmx line specification (e.g. ``'Dev1/port0/line0:3'`` or
        ``'Dev1/port1'``).
    name : str, optional
        Name to assign to the virtual channel.  Empty (default) lets the
        driver use the physical channel name.
    grouping : LineGrouping, optional
        Line grouping, by default :attr:`LineGrouping.CHAN_PER_LINE`.
    """

    lines: str
    name: str = ""
    grouping: LineGrouping = LineGrouping.CHAN_PER_LINE

    def __post_init__(self) -> None:
        if not isinstance(self.grouping, LineGrouping):
            object.__setattr__(self, "grouping", _parse_grouping(self.grouping))

    @classmethod
    def default(cls) -> ChannelConfig:
        """Return the default configuration: every line of ``Dev1/port0``."""
        return cls(lines="Dev1/port0")

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> ChannelConfig:
        """Build a config from a mapping with ``lines``, ``name``, ``grouping``.

        Raises
        ------
        ConfigurationError
            If ``lines`` is missing or ``grouping`` is unknown.
        """
        if "lines" not in data:
            raise ConfigurationError(
                f"Channel entry {dict(data)!r} is missing required 'lines' key."
            )
        return cls(
            lines=data["lines"],
            name=data.get("name", ""),
            grouping=_parse_grouping(
                data.get("grouping", LineGrouping.CHAN_PER_LINE)
            ),
        )

    def to_dict(self) -> dict[str, str]:
        return {
            "name": self.name,
            "lines": self.lines,
            "grouping": self.grouping.value,
        }

    def __str__(self) -> str:
        return (
            f"Channel: {self.name or '(auto)'}, Lines: {self.lines}, "
            f"Grouping: {self.grouping.name}"
        )


def _parse_grouping(value: Any) -> LineGrouping:
    if isinstance(value, LineGrouping):
        return value
    if isinstance(value, str):
        key = value.strip().lower()
        for member in LineGrouping:
            if key in (member.value, member.name.lower()):
                return member
    raise ConfigurationError(
        f"Unknown line grouping {value!r}. "
        f"Use one of: {[m.value for m in LineGrouping]}"
    )


class ChannelConfigSet:
    """Immutable ordered collection of :class:`ChannelConfig`.

    Supports ``len()``, iteration, indexing, equality and ``+`` (which
    concatenates, left operand first).
    """

    __slots__ = ("_channels",)

    def __init__(self, channels: Iterable[ChannelConfig] = ()) -> None:
        items = tuple(channels)
        for ch in items:
            if not isinstance(ch, ChannelConfig):
                raise ConfigurationError(
                    f"Expected ChannelConfig, got {type(ch).__name__}."
                )
        self._channels: tuple[ChannelConfig, ...] = items

    @property
    def channels(self) -> tuple[ChannelConfig, ...]:
        return self._channels

    def validate(self) -> None:
        """Check the set can be used to build a task.

        Raises
        ------
        ConfigurationError
            If the set is empty, a line specifier is malformed, or two
            entries share the same non-empty name.
        """
        if not self._channels:
            raise ConfigurationError(
                "Cannot build a task: no channels have been configured."
            )

        seen: set[str] = set()
        for ch in self._channels:
            validate_lines(ch.lines)
            if not ch.name:
                continue
            if ch.name in seen:
                raise ConfigurationError(
                    f"Channel name '{ch.name}' is used more than once. "
                    "Use a unique name."
                )
            seen.add(ch.name)

    def __len__(self) -> int:
        return len(self._channels)

    def __iter__(self) -> Iterator[ChannelConfig]:
        return iter(self._channels)

    def __getitem__(self, index: int) -> ChannelConfig:
        return self._channels[index]

    def __add__(self, other: object) -> ChannelConfigSet:
        if not isinstance(other, ChannelConfigSet):
            return NotImplemented
        return ChannelConfigSet(self._channels + other._channels)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, ChannelConfigSet):
            return NotImplemented
        return self._channels == other._channels

    def __hash__(self) -> int:
        return hash(self._channels)

    def __repr__(self) -> str:
        return f"ChannelConfigSet({list(self._channels)!r})"


ChannelSource = Union[
    ChannelConfig,
    ChannelConfigSet,
    Mapping[str, Any],
    Iterable[Union[ChannelConfig, Mapping[str, Any]]],
    None,
]


def to_channel_set(value: ChannelSource) -> ChannelConfigSet:
    """Convert a channel description into a :class:`ChannelConfigSet`.

    Accepts a set (returned unchanged), a single :class:`ChannelConfig`, a
    mapping (one channel), ``None`` (empty set) or an iterable mixing
    configs and mappings.

    Raises
    ------
    ConfigurationError
        If an element cannot be interpreted as a channel.
    """
    if value is None:
        return ChannelConfigSet()
    if isinstance(value, ChannelConfigSet):
        return value
    if isinstance(value, ChannelConfig):
        return ChannelConfigSet((value,))
    if isinstance(value, Mapping):
        return ChannelConfigSet((ChannelConfig.from_dict(value),))
    if isinstance(value, (str, bytes)):
        raise ConfigurationError(
            f"Cannot interpret {value!r} as a channel configuration. "
            "Wrap the line specifier in ChannelConfig(lines=...)."
        )

    try:
        items = list(value)
    except TypeError:
        raise ConfigurationError(
            f"Cannot interpret {type(value).__name__} as a channel "
            "configuration."
        ) from None

    channels = []
    for item in items:
        if isinstance(item, ChannelConfig):
            channels.append(item)
        elif isinstance(item, Mapping):
            channels.append(ChannelConfig.from_dict(item))
        else:
            raise ConfigurationError(
                f"Cannot interpret {type(item).__name__} as a channel "
                "configuration."
            )
    return ChannelConfigSet(channels)


def merge_channels(static: ChannelSource, dynamic: ChannelSource) -> ChannelConfigSet:
    """Concatenate static channels with dynamically supplied ones.

    Static entries come first and dynamic entries are appended in their
    arrival order, so the combined order fixes the task's channel indices.
    """
    return to_channel_set(static) + to_channel_set(dynamic)
