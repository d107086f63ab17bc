"""Writer modes for digital output sessions.

A session writes either on demand (:class:`OnDemand`: one immediate,
unclocked sample set per input event) or against a sample clock
(:class:`Clocked`: buffered multi-sample writes, finite or continuous).
Both are immutable values built once before a session starts.
"""

from __future__ import annotations

import enum
import numbers
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any, Union

from .errors import ConfigurationError
from .utils import _require_nidaqmx

try:
    from nidaqmx import constants
except ImportError:
    pass


class Edge(enum.Enum):
    """Sample clock edge on which samples are generated."""

    RISING = "rising"
    FALLING = "falling"

    def to_nidaqmx(self) -> Any:
        _require_nidaqmx()
        return getattr(constants.Edge, self.name)


class QuantityMode(enum.Enum):
    """Whether a clocked task generates a finite or continuous sample stream."""

    FINITE = "finite"
    CONTINUOUS = "continuous"

    def to_nidaqmx(self) -> Any:
        _require_nidaqmx()
        return getattr(constants.AcquisitionType, self.name)


@dataclass(frozen=True)
class OnDemand:
    """Unclocked mode: every sample is written immediately."""

    @property
    def is_clocked(self) -> bool:
        return False


@dataclass(frozen=True)
class Clocked:
    """Sample-clock timed, buffered output.

    Parameters
    ----------
    signal_source : str, optional
        Source terminal of the sample clock.  Empty (default) uses the
        device's internal clock.
    sample_rate : float, optional
        Samples per second, by default 1000.0.  Must be positive.
    active_edge : Edge, optional
        Clock edge on which samples are generated, by default rising.
    quantity_mode : QuantityMode, optional
        Finite or continuous generation, by default continuous.
    buffer_size : int, optional
        Samples per channel to generate (finite) or buffer size
        (continuous), by default 1000.  Must be positive.

    Raises
    ------
    ConfigurationError
        If ``sample_rate`` or ``buffer_size`` is not a positive number.
    """

    signal_source: str = ""
    sample_rate: float = 1000.0
    active_edge: Edge = Edge.RISING
    quantity_mode: QuantityMode = QuantityMode.CONTINUOUS
    buffer_size: int = 1000

    def __post_init__(self) -> None:
        for key in ("sample_rate", "buffer_size"):
            value = getattr(self, key)
            if isinstance(value, bool) or not isinstance(value, numbers.Real):
                raise ConfigurationError(
                    f"{key} must be a number, got {type(value).__name__} {value!r}."
                )
        if not self.sample_rate > 0:
            raise ConfigurationError(
                f"sample_rate must be positive, got {self.sample_rate}."
            )
        if not float(self.buffer_size).is_integer() or self.buffer_size <= 0:
            raise ConfigurationError(
                f"buffer_size must be a positive integer, got {self.buffer_size}."
            )
        object.__setattr__(self, "sample_rate", float(self.sample_rate))
        object.__setattr__(self, "buffer_size", int(self.buffer_size))
        object.__setattr__(self, "signal_source", self.signal_source or "")
        object.__setattr__(self, "active_edge", _parse_enum(Edge, self.active_edge))
        object.__setattr__(
            self, "quantity_mode", _parse_enum(QuantityMode, self.quantity_mode)
        )

    @property
    def is_clocked(self) -> bool:
        return True

    @property
    def is_finite(self) -> bool:
        return self.quantity_mode is QuantityMode.FINITE


WriterMode = Union[OnDemand, Clocked]


def _parse_enum(enum_cls: type[enum.Enum], value: Any) -> Any:
    if isinstance(value, enum_cls):
        return value
    if isinstance(value, str):
        key = value.strip().lower()
        for member in enum_cls:
            if key in (member.value, member.name.lower()):
                return member
    raise ConfigurationError(
        f"Unknown {enum_cls.__name__} value {value!r}. "
        f"Use one of: {[m.value for m in enum_cls]}"
    )


def to_writer_mode(value: WriterMode | Mapping[str, Any] | str | None) -> WriterMode:
    """Convert a mode description into :class:`OnDemand` or :class:`Clocked`.

    ``None`` and ``"on_demand"`` give :class:`OnDemand`; ``"clocked"`` gives
    a default :class:`Clocked`.  A mapping is read the way the ``[task]``
    section of a config file is laid out: ``mode`` plus the clock keys.

    Raises
    ------
    ConfigurationError
        If the mode name or any clock setting is invalid.
    """
    if value is None:
        return OnDemand()
    if isinstance(value, (OnDemand, Clocked)):
        return value
    if isinstance(value, str):
        value = {"mode": value}
    if not isinstance(value, Mapping):
        raise ConfigurationError(
            f"Cannot interpret {type(value).__name__} as a writer mode."
        )

    mode = str(value.get("mode", "on_demand")).strip().lower()
    if mode == "on_demand":
        return OnDemand()
    if mode != "clocked":
        raise ConfigurationError(
            f"Unknown writer mode '{mode}'. Use 'on_demand' or 'clocked'."
        )

    kwargs = {
        key: value[key]
        for key in (
            "signal_source",
            "sample_rate",
            "active_edge",
            "quantity_mode",
            "buffer_size",
        )
        if key in value
    }
    return Clocked(**kwargs)
