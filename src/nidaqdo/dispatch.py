"""Per-sample write dispatch.

:class:`SampleDispatcher` turns one :data:`~nidaqdo.samples.SampleBuffer`
into exactly one ``DigitalMultiChannelWriter`` call, chosen by the sample
variant and the session's writer mode:

============  ==========  ===========================================
Mode          Variant     Writer call
============  ==========  ===========================================
OnDemand      Scalar      ``write_one_sample_one_line`` (bool[1])
OnDemand      Vector      ``write_one_sample_one_line`` (bool[n])
OnDemand      BytePort    ``write_one_sample_port_byte`` (uint8[n])
Clocked       Matrix U8   ``write_many_sample_port_byte``
Clocked       Matrix S8   ``write_many_sample_port_byte``
Clocked       Matrix U16  ``write_many_sample_port_uint16``
Clocked       Matrix S16  ``write_many_sample_port_uint16``
Clocked       Matrix S32  ``write_many_sample_port_uint32``
============  ==========  ===========================================

Data Format
-----------
nidaqmx port writers require a C-contiguous array whose dtype matches the
port width exactly.  Matrices are copied into a fresh row-major buffer of
their own depth and handed over as a view of the unsigned port type, so
signed values keep their bit pattern (``-1`` as S16 is written as
``0xFFFF``).  The caller's array is never modified.
"""

from __future__ import annotations

import logging
from typing import Any

import numpy as np

from .errors import DeviceWriteError, UnsupportedFormatError
from .samples import BytePort, Depth, Matrix, SampleBuffer, Scalar, Vector, to_sample
from .task import TaskHandle, TaskLifecycleManager
from .timing import Clocked

logger = logging.getLogger("nidaqdo.dispatch")

# depth -> (writer method, port dtype)
_PORT_WRITERS: dict[Depth, tuple[str, type]] = {
    Depth.U8: ("write_many_sample_port_byte", np.uint8),
    Depth.S8: ("write_many_sample_port_byte", np.uint8),
    Depth.U16: ("write_many_sample_port_uint16", np.uint16),
    Depth.S16: ("write_many_sample_port_uint16", np.uint16),
    Depth.S32: ("write_many_sample_port_uint32", np.uint32),
}


def stage_matrix(matrix: Matrix) -> np.ndarray:
    """Copy a matrix into a fresh row-major buffer of its depth's type.

    Returns
    -------
    numpy.ndarray
        New C-contiguous ``(rows, cols)`` array with dtype ``matrix.depth``.

    Raises
    ------
    UnsupportedFormatError
        If the values cannot be represented exactly in the depth's type
        (out of range or fractional).
    """
    target = matrix.depth.dtype
    src = matrix.data
    staged = np.array(src, dtype=target, order="C", copy=True)
    if src.dtype != target and not np.array_equal(staged, src):
        raise UnsupportedFormatError(
            f"Matrix values of type '{src.dtype}' do not fit losslessly in "
            f"depth {matrix.depth.name}."
        )
    return staged


class SampleDispatcher:
    """Write samples to a task, one driver call per sample.

    Parameters
    ----------
    manager : TaskLifecycleManager, optional
        Used to stop the task when a write fails.  A default manager is
        created when omitted.
    timeout : float, optional
        Seconds each write may block waiting for buffer space, by default
        10.0 (the nidaqmx default).
    """

    def __init__(
        self,
        manager: TaskLifecycleManager | None = None,
        timeout: float = 10.0,
    ) -> None:
        self.manager = manager if manager is not None else TaskLifecycleManager()
        self.timeout = timeout

    def write(self, handle: TaskHandle, sample: Any) -> None:
        """Write one sample to the task.

        Parameters
        ----------
        handle : TaskHandle
            Open task.  Its ``mode`` selects on-demand or clocked writes.
        sample : SampleBuffer or compatible
            Classified with :func:`~nidaqdo.samples.to_sample` if it is not
            already a variant.

        Raises
        ------
        UnsupportedFormatError
            If the variant or matrix depth cannot be written in this mode.
            No driver call is made.
        DeviceWriteError
            If the driver write fails.  The task is stopped first.
        """
        sample = to_sample(sample)

        if isinstance(handle.mode, Clocked):
            if not isinstance(sample, Matrix):
                raise UnsupportedFormatError(
                    f"Clocked output requires a Matrix sample, got "
                    f"{type(sample).__name__}."
                )
            self._write_matrix(handle, sample)
            return

        if isinstance(sample, Matrix):
            raise UnsupportedFormatError(
                "Matrix samples require a clocked session. Configure the "
                "pipeline with a Clocked writer mode."
            )
        self._write_single(handle, sample)

    # -- Write paths ---------------------------------------------------------

    def _write_single(self, handle: TaskHandle, sample: SampleBuffer) -> None:
        if isinstance(sample, Scalar):
            method = "write_one_sample_one_line"
            data = np.array([sample.value], dtype=bool)
        elif isinstance(sample, Vector):
            method = "write_one_sample_one_line"
            data = np.array(sample.values, dtype=bool)
        elif isinstance(sample, BytePort):
            method = "write_one_sample_port_byte"
            data = np.array(sample.values, dtype=np.uint8)
        else:
            raise UnsupportedFormatError(
                f"Cannot write a {type(sample).__name__} sample on demand."
            )
        self._call(handle, method, data)

    def _write_matrix(self, handle: TaskHandle, matrix: Matrix) -> None:
        if matrix.depth not in _PORT_WRITERS:
            raise UnsupportedFormatError(
                "The elements in the input buffer must have an integer depth "
                f"(U8, S8, U16, S16 or S32), got {matrix.depth.name}."
            )
        method, port_dtype = _PORT_WRITERS[matrix.depth]

        staged = stage_matrix(matrix)
        try:
            self._call(handle, method, staged.view(port_dtype))
        finally:
            del staged

    def _call(self, handle: TaskHandle, method: str, data: np.ndarray) -> None:
        writer_call = getattr(handle.writer, method)
        try:
            writer_call(data, timeout=self.timeout)
        except Exception as exc:
            logger.error(
                "%s failed on task '%s'; stopping task.", method, handle.name
            )
            self.manager.stop(handle)
            raise DeviceWriteError(
                f"Write to task '{handle.name}' failed: {exc}"
            ) from exc
        logger.debug("%s wrote %s on task '%s'.", method, data.shape, handle.name)
