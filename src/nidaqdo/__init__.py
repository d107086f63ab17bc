"""nidaqdo: streaming NI-DAQmx digital output."""

import logging

__version__ = "0.1.0"

logger = logging.getLogger("nidaqdo")

from .channels import (
    ChannelConfig,
    ChannelConfigSet,
    LineGrouping,
    merge_channels,
    to_channel_set,
)
from .config import SessionConfig, load_config, save_config
from .dispatch import SampleDispatcher
from .errors import (
    ConfigurationError,
    DeviceWriteError,
    NIDAQDOError,
    UnsupportedFormatError,
    VerificationError,
)
from .pipeline import StreamingPipeline
from .samples import BytePort, Depth, Matrix, Scalar, Vector, to_sample
from .task import TaskHandle, TaskLifecycleManager
from .timing import Clocked, Edge, OnDemand, QuantityMode, to_writer_mode
from .utils import (
    expand_port_to_line_range,
    get_connected_devices,
    list_devices,
    list_do_lines,
)

__all__ = [
    "__version__",
    "BytePort",
    "ChannelConfig",
    "ChannelConfigSet",
    "Clocked",
    "ConfigurationError",
    "Depth",
    "DeviceWriteError",
    "Edge",
    "LineGrouping",
    "Matrix",
    "NIDAQDOError",
    "OnDemand",
    "QuantityMode",
    "SampleDispatcher",
    "Scalar",
    "SessionConfig",
    "StreamingPipeline",
    "TaskHandle",
    "TaskLifecycleManager",
    "UnsupportedFormatError",
    "Vector",
    "VerificationError",
    "expand_port_to_line_range",
    "get_connected_devices",
    "list_devices",
    "list_do_lines",
    "load_config",
    "merge_channels",
    "save_config",
    "to_channel_set",
    "to_sample",
    "to_writer_mode",
]
