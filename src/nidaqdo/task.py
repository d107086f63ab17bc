"""Task lifecycle for digital output sessions.

:class:`TaskLifecycleManager` owns everything that touches the nidaqmx task
handle outside of the write calls themselves: building the task from a
:class:`~nidaqdo.channels.ChannelConfigSet`, verifying it, configuring the
sample clock, and tearing it down exactly once.

Architecture
------------
Direct delegation: channels are added straight to
``task.do_channels.add_do_chan()`` in set order, so the nidaqmx Task is the
single source of truth for channel indices.  A :class:`TaskHandle` bundles
the task with the ``DigitalMultiChannelWriter`` bound to its output stream.

Examples
--------
>>> manager = TaskLifecycleManager()
>>> with manager.session([ChannelConfig("Dev1/port1/line0:3")]) as handle:
...     handle.writer.write_one_sample_one_line(np.array([True] * 4))
"""

from __future__ import annotations

import logging
import warnings
from collections.abc import Iterator
from contextlib import contextmanager
from typing import Any

from .channels import ChannelSource, to_channel_set
from .errors import ConfigurationError, VerificationError
from .timing import Clocked, OnDemand, WriterMode
from .utils import _require_nidaqmx

logger = logging.getLogger("nidaqdo.task")

try:
    import nidaqmx
    from nidaqmx import constants
    from nidaqmx.errors import DaqError
    from nidaqmx.stream_writers import DigitalMultiChannelWriter

except ImportError:
    pass


class TaskHandle:
    """A live nidaqmx DO task and its multi-channel writer.

    Owned by exactly one session.  ``closed`` becomes ``True`` once
    :meth:`TaskLifecycleManager.teardown` has run.
    """

    def __init__(self, task: Any, writer: Any, mode: WriterMode | None = None) -> None:
        self.task = task
        self.writer = writer
        # The driver cannot report the name once the task is closed.
        self._name: str = task.name
        self.mode: WriterMode = mode if mode is not None else OnDemand()
        self.closed = False

    @property
    def name(self) -> str:
        return self._name

    @property
    def channel_list(self) -> list[str]:
        """List of channel names registered with the nidaqmx task."""
        return list(self.task.channel_names)

    @property
    def number_of_ch(self) -> int:
        return len(self.task.channel_names)

    def __repr__(self) -> str:
        state = "closed" if self.closed else "open"
        return f"TaskHandle({self._name!r}, {type(self.mode).__name__}, {state})"


class TaskLifecycleManager:
    """Create, clock and tear down digital output tasks.

    Parameters
    ----------
    wait_timeout : float, optional
        Seconds to wait for a finite task to finish during teardown.
        ``None`` (default) waits indefinitely.
    """

    def __init__(self, wait_timeout: float | None = None) -> None:
        self.wait_timeout = wait_timeout

    # -- Creation ------------------------------------------------------------

    def create_task(self, channels: ChannelSource, task_name: str = "") -> TaskHandle:
        """Build and verify a DO task with one channel per config entry.

        Parameters
        ----------
        channels : ChannelConfigSet or compatible
            Channel configuration, converted with
            :func:`~nidaqdo.channels.to_channel_set`.
        task_name : str, optional
            Name for the task.  Empty (default) lets the driver choose.

        Returns
        -------
        TaskHandle
            Verified task with its writer, in on-demand mode until
            :meth:`configure_clock` is called.

        Raises
        ------
        ConfigurationError
            If the set is empty, a line specifier is malformed, a channel
            name is duplicated, or the driver rejects a channel.
        VerificationError
            If the driver rejects the assembled task.
        RuntimeError
            If nidaqmx is not installed.
        """
        _require_nidaqmx()
        config_set = to_channel_set(channels)
        config_set.validate()

        task = nidaqmx.task.Task(new_task_name=task_name)
        try:
            for ch in config_set:
                try:
                    task.do_channels.add_do_chan(
                        lines=ch.lines,
                        name_to_assign_to_lines=ch.name,
                        line_grouping=ch.grouping.to_nidaqmx(),
                    )
                except DaqError as exc:
                    raise ConfigurationError(
                        f"Driver rejected channel ({ch}): {exc}"
                    ) from exc
                logger.debug("Added DO channel: %s", ch)

            try:
                task.control(constants.TaskMode.TASK_VERIFY)
            except DaqError as exc:
                raise VerificationError(
                    f"Driver rejected task '{task_name or task.name}': {exc}"
                ) from exc

            writer = DigitalMultiChannelWriter(task.out_stream, auto_start=True)
        except BaseException:
            self._close_quietly(task)
            raise

        logger.info(
            "Created DO task '%s' with %d channel(s).", task.name, len(config_set)
        )
        return TaskHandle(task, writer)

    def configure_clock(self, handle: TaskHandle, mode: Clocked) -> None:
        """Apply sample-clock timing to a task.

        Only called for clocked sessions; on-demand tasks are never timed.
        An empty ``signal_source`` selects the device's internal clock.
        """
        handle.task.timing.cfg_samp_clk_timing(
            rate=mode.sample_rate,
            source=mode.signal_source,
            active_edge=mode.active_edge.to_nidaqmx(),
            sample_mode=mode.quantity_mode.to_nidaqmx(),
            samps_per_chan=mode.buffer_size,
        )
        handle.mode = mode
        logger.debug(
            "Configured sample clock on '%s': %s Hz, %s, %s, buffer=%d, source=%r",
            handle.name,
            mode.sample_rate,
            mode.active_edge.value,
            mode.quantity_mode.value,
            mode.buffer_size,
            mode.signal_source,
        )

    # -- Shutdown ------------------------------------------------------------

    def stop(self, handle: TaskHandle) -> None:
        """Stop the task, discarding any error from the stop call."""
        if handle.closed:
            return
        try:
            handle.task.stop()
        except Exception:
            logger.warning("Exception while stopping task '%s'.", handle.name, exc_info=True)

    def teardown(self, handle: TaskHandle, mode: WriterMode | None = None) -> None:
        """Release the task: wait (finite only), stop, then close.

        Idempotent.  Errors from each step are logged and turned into
        warnings so they never replace an exception already propagating
        from the session body.

        Parameters
        ----------
        handle : TaskHandle
            Task to release.
        mode : WriterMode, optional
            Overrides ``handle.mode`` when given.
        """
        if handle.closed:
            return
        handle.closed = True
        mode = handle.mode if mode is None else mode
        name = handle.name

        if isinstance(mode, Clocked) and mode.is_finite:
            timeout = (
                constants.WAIT_INFINITELY
                if self.wait_timeout is None
                else self.wait_timeout
            )
            try:
                handle.task.wait_until_done(timeout=timeout)
            except Exception as exc:
                logger.warning(
                    "Finite task '%s' did not complete cleanly.", name,
                    exc_info=True,
                )
                warnings.warn(str(exc), stacklevel=2)

        try:
            handle.task.stop()
        except Exception as exc:
            logger.warning("Exception while stopping task '%s'.", name, exc_info=True)
            warnings.warn(str(exc), stacklevel=2)

        self._close_quietly(handle.task)
        logger.info("Released DO task '%s'.", name)

    @contextmanager
    def session(
        self,
        channels: ChannelSource,
        mode: WriterMode | None = None,
        task_name: str = "",
    ) -> Iterator[TaskHandle]:
        """Create a task, clock it if needed, and always tear it down.

        Examples
        --------
        >>> with manager.session(channels, Clocked(sample_rate=1000)) as handle:
        ...     dispatcher.write(handle, sample)
        """
        mode = OnDemand() if mode is None else mode
        handle = self.create_task(channels, task_name=task_name)
        try:
            if isinstance(mode, Clocked):
                self.configure_clock(handle, mode)
            yield handle
        finally:
            self.teardown(handle, mode)

    # -- Internal helpers ----------------------------------------------------

    @staticmethod
    def _close_quietly(task: Any) -> None:
        try:
            task.close()
        except Exception as exc:
            logger.warning("Exception while closing task.", exc_info=True)
            warnings.warn(str(exc), stacklevel=3)
