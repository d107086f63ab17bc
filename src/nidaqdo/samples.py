"""Sample buffer variants accepted by a digital output session.

Every value entering a session is classified exactly once, by
:func:`to_sample`, into one of four variants:

- :class:`Scalar` — one logic level, written on demand;
- :class:`Vector` — one logic level per line/channel, written on demand;
- :class:`BytePort` — one 8-bit port value per channel, written on demand;
- :class:`Matrix` — a ``(channels, samples)`` numeric buffer for clocked
  writes, tagged with its element :class:`Depth`.

Data Format
-----------
Matrix rows are channels and columns are time-ordered samples, which is the
layout nidaqmx multi-channel writers expect.  No transpose is applied.
"""

from __future__ import annotations

import enum
from collections.abc import Sequence
from dataclasses import dataclass
from typing import Any, Union

import numpy as np

from .errors import UnsupportedFormatError


class Depth(enum.Enum):
    """Element bit width and signedness of a :class:`Matrix`."""

    U8 = "uint8"
    S8 = "int8"
    U16 = "uint16"
    S16 = "int16"
    S32 = "int32"
    F32 = "float32"
    F64 = "float64"

    @property
    def dtype(self) -> np.dtype:
        return np.dtype(self.value)

    @classmethod
    def from_dtype(cls, dtype: Any) -> Depth:
        """Return the depth matching a numpy dtype.

        Raises
        ------
        UnsupportedFormatError
            If the dtype has no matching depth.
        """
        dtype = np.dtype(dtype)
        for member in cls:
            if member.dtype == dtype:
                return member
        raise UnsupportedFormatError(
            f"Element type '{dtype}' has no matching matrix depth. "
            f"Supported element types: {[m.value for m in cls]}"
        )


@dataclass(frozen=True)
class Scalar:
    """A single logic level."""

    value: bool

    def __post_init__(self) -> None:
        object.__setattr__(self, "value", bool(self.value))


@dataclass(frozen=True)
class Vector:
    """One logic level per line, written as a single sample set."""

    values: tuple[bool, ...]

    def __post_init__(self) -> None:
        object.__setattr__(self, "values", tuple(bool(v) for v in self.values))


@dataclass(frozen=True)
class BytePort:
    """One 8-bit port value per channel, written as a single sample set."""

    values: tuple[int, ...]

    def __post_init__(self) -> None:
        values = tuple(int(v) for v in self.values)
        for v in values:
            if not 0 <= v <= 0xFF:
                raise UnsupportedFormatError(
                    f"Port value {v} does not fit in one byte (0-255)."
                )
        object.__setattr__(self, "values", values)


@dataclass(frozen=True, eq=False)
class Matrix:
    """A ``(channels, samples)`` numeric buffer for clocked writes.

    Parameters
    ----------
    data : numpy.ndarray
        2-D array.  Held by reference and never modified.
    depth : Depth, optional
        Element depth.  Derived from ``data.dtype`` when omitted.
    """

    data: np.ndarray
    depth: Depth | None = None

    def __post_init__(self) -> None:
        data = self.data
        if not isinstance(data, np.ndarray):
            data = np.asarray(data)
            object.__setattr__(self, "data", data)
        if data.ndim != 2:
            raise UnsupportedFormatError(
                f"Matrix data must be 2-D (channels, samples), "
                f"got shape {data.shape}."
            )
        if self.depth is None:
            object.__setattr__(self, "depth", Depth.from_dtype(data.dtype))

    @property
    def rows(self) -> int:
        return int(self.data.shape[0])

    @property
    def cols(self) -> int:
        return int(self.data.shape[1])


SampleBuffer = Union[Scalar, Vector, BytePort, Matrix]

_SAMPLE_TYPES = (Scalar, Vector, BytePort, Matrix)


def to_sample(value: Any) -> SampleBuffer:
    """Classify an incoming value as a :data:`SampleBuffer` variant.

    Rules
    -----
    - ``bool`` / ``numpy.bool_`` -> :class:`Scalar`
    - ``bytes`` / ``bytearray`` / 1-D ``uint8`` array -> :class:`BytePort`
    - sequence of bools / 1-D bool array -> :class:`Vector`
    - 2-D bool array -> :class:`Matrix` of depth ``U8`` holding 0/1
    - 2-D numeric array (or nested sequence) -> :class:`Matrix`, depth taken
      from the element type
    - existing variants are returned unchanged

    Raises
    ------
    UnsupportedFormatError
        If the value fits none of the rules.
    """
    if isinstance(value, _SAMPLE_TYPES):
        return value
    if isinstance(value, (bool, np.bool_)):
        return Scalar(bool(value))
    if isinstance(value, (bytes, bytearray)):
        return BytePort(tuple(value))

    if isinstance(value, np.ndarray):
        arr = value
    elif isinstance(value, Sequence) and not isinstance(value, str):
        if value and all(isinstance(v, (bool, np.bool_)) for v in value):
            return Vector(tuple(value))
        arr = np.asarray(value)
    else:
        raise UnsupportedFormatError(
            f"Cannot write a value of type {type(value).__name__}."
        )

    if arr.ndim == 1:
        if arr.dtype == np.bool_:
            return Vector(tuple(arr.tolist()))
        if arr.dtype == np.uint8:
            return BytePort(tuple(arr.tolist()))
        raise UnsupportedFormatError(
            f"1-D samples must be bool (one level per line) or uint8 "
            f"(one byte per port), got '{arr.dtype}'."
        )

    if arr.ndim == 2:
        if arr.dtype == np.bool_:
            # Copy into a new buffer; the caller's bool array is untouched.
            return Matrix(arr.astype(np.uint8), Depth.U8)
        return Matrix(arr)

    raise UnsupportedFormatError(
        f"Samples must be scalar, 1-D or 2-D, got {arr.ndim}-D array."
    )
