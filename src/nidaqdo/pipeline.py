"""Streaming digital output sessions.

:class:`StreamingPipeline` joins a configuration source and a sample source
into one managed task session:

1. The first value of the configuration source is taken and the source is
   closed; later configuration values are never read.
2. The task is built from the static channels followed by the configured
   ones, and clocked straight away in :class:`~nidaqdo.timing.Clocked` mode.
3. Every sample is written with exactly one driver call and then yielded
   unchanged, in order.
4. The task is torn down exactly once when the stream is exhausted, fails,
   or is closed by the consumer.

Sessions are lazy generators: nothing touches the hardware until the first
``next()``, and each call to :meth:`StreamingPipeline.stream` is a fresh
session that samples configuration from scratch.

Examples
--------
On-demand output, one write per value::

    pipeline = StreamingPipeline()
    for value in pipeline.stream([ChannelConfig("Dev1/port1/line0")], levels):
        ...

Clocked output from a config file::

    pipeline = StreamingPipeline.from_config("pattern_gen.toml")
    pipeline.run([()], buffers)
"""

from __future__ import annotations

import logging
import pathlib
from collections.abc import Iterable, Iterator, Mapping
from typing import Any

from .channels import (
    ChannelConfig,
    ChannelConfigSet,
    ChannelSource,
    merge_channels,
    to_channel_set,
)
from .config import SessionConfig, load_config
from .dispatch import SampleDispatcher
from .task import TaskLifecycleManager
from .timing import WriterMode, to_writer_mode

logger = logging.getLogger("nidaqdo.pipeline")

_NO_CONFIG = object()


def _close_iterator(it: Iterator[Any]) -> None:
    close = getattr(it, "close", None)
    if close is not None:
        close()


def first_config(config_source: Any) -> Any:
    """Return the first configuration value and release the source.

    A :class:`ChannelConfig`, :class:`ChannelConfigSet` or mapping passed
    directly is treated as a source that emits that single value.  Returns a
    sentinel when the source is empty.
    """
    if isinstance(config_source, (ChannelConfig, ChannelConfigSet, Mapping)):
        return config_source

    it = iter(config_source)
    try:
        return next(it, _NO_CONFIG)
    finally:
        _close_iterator(it)


class StreamingPipeline:
    """Run digital output sessions from a config source and a sample source.

    Parameters
    ----------
    mode : WriterMode, mapping or str, optional
        Writer mode, converted with :func:`~nidaqdo.timing.to_writer_mode`.
        Defaults to on-demand.
    channels : ChannelConfigSet or compatible, optional
        Static channels placed before the dynamically configured ones.
    task_name : str, optional
        Name for each session's task.  Empty (default) lets the driver
        choose.
    manager : TaskLifecycleManager, optional
        Task lifecycle manager.  A default one is created when omitted.
    dispatcher : SampleDispatcher, optional
        Sample dispatcher.  Defaults to one bound to ``manager``.
    """

    def __init__(
        self,
        mode: WriterMode | Any = None,
        channels: ChannelSource = None,
        task_name: str = "",
        manager: TaskLifecycleManager | None = None,
        dispatcher: SampleDispatcher | None = None,
    ) -> None:
        self.mode = to_writer_mode(mode)
        self.channels = to_channel_set(channels)
        self.task_name = task_name
        self.manager = manager if manager is not None else TaskLifecycleManager()
        self.dispatcher = (
            dispatcher if dispatcher is not None else SampleDispatcher(self.manager)
        )

    @classmethod
    def from_session_config(cls, config: SessionConfig, **kwargs: Any) -> StreamingPipeline:
        """Create a pipeline whose static channels come from ``config``."""
        return cls(
            mode=config.mode,
            channels=config.channels,
            task_name=config.task_name,
            **kwargs,
        )

    @classmethod
    def from_config(cls, path: str | pathlib.Path, **kwargs: Any) -> StreamingPipeline:
        """Create a pipeline from a TOML file written by :func:`save_config`.

        Raises
        ------
        ConfigurationError
            If the file content is invalid.
        """
        return cls.from_session_config(load_config(path), **kwargs)

    def stream(self, config_source: Any, samples: Iterable[Any]) -> Iterator[Any]:
        """Return a lazy session writing ``samples`` to the device.

        Parameters
        ----------
        config_source : iterable, ChannelConfig, ChannelConfigSet or mapping
            Source of channel configuration.  Only its first value is used;
            each value may be a config, a set or a list of configs.  Use
            ``[()]`` to run with the static channels alone.
        samples : iterable
            Sample values (anything :func:`~nidaqdo.samples.to_sample`
            accepts).  Closed when the session ends.

        Yields
        ------
        object
            Each original sample, after its write has completed.

        Raises
        ------
        ConfigurationError, VerificationError
            When the task cannot be built (on first ``next()``).
        UnsupportedFormatError, DeviceWriteError
            When a sample cannot be written.  The task is stopped and
            released before the error reaches the consumer.
        """
        return self._session(config_source, samples)

    def run(self, config_source: Any, samples: Iterable[Any]) -> int:
        """Drain a session and return the number of samples written."""
        count = 0
        for _ in self.stream(config_source, samples):
            count += 1
        return count

    def _session(self, config_source: Any, samples: Iterable[Any]) -> Iterator[Any]:
        it = iter(samples)
        try:
            config = first_config(config_source)
            if config is _NO_CONFIG:
                logger.warning("Configuration source was empty; no task created.")
                return

            channels = merge_channels(self.channels, config)
            logger.info(
                "Starting %s session with %d channel(s).",
                type(self.mode).__name__,
                len(channels),
            )

            count = 0
            with self.manager.session(channels, self.mode, self.task_name) as handle:
                for sample in it:
                    self.dispatcher.write(handle, sample)
                    count += 1
                    yield sample
        finally:
            # The sample source is released with the session.
            _close_iterator(it)

        logger.info("Session on '%s' finished after %d sample(s).", handle.name, count)
