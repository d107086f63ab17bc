"""Shared test fixtures with mocked nidaqmx objects.

Mock Strategy
-------------
Unit tests never touch hardware.  Instead of globally patching sys.modules,
each test uses targeted fixtures that provide mock objects mimicking the
nidaqmx API, patched in with ``unittest.mock.patch`` for per-test isolation.
Real ``nidaqmx.constants`` and ``nidaqmx.errors.DaqError`` are used so
enum mapping and error chaining are exercised as they run in production.

Fixtures
--------
mock_device
    Factory for mock NI device objects with name, product_type, do_lines.
mock_system
    Factory for mock nidaqmx.system.System.local() with devices.
fake_driver
    Instrumented fake DO task and writer patched into ``nidaqdo.task``.
    Every call on either lands in one shared ``calls`` mock so tests can
    assert cross-object ordering (e.g. ``stop`` before ``close``).
daq_error
    Factory for real ``DaqError`` instances.
"""

from __future__ import annotations

from types import SimpleNamespace
from unittest.mock import MagicMock, patch

import pytest


# ---------------------------------------------------------------------------
# mock_device / mock_system — mocked nidaqmx.system.System.local()
# ---------------------------------------------------------------------------

@pytest.fixture
def mock_device():
    """Factory fixture that creates a mock NI device.

    Parameters
    ----------
    name : str
        Device name (e.g., ``"Dev1"``).
    product_type : str
        Product type string (e.g., ``"PCIe-6361"``).
    ports : dict[str, int] | None
        Port name -> line count, used to build ``do_lines``.
    """
    def _make_device(
        name: str = "Dev1",
        product_type: str = "PCIe-6361",
        ports: dict[str, int] | None = None,
    ):
        if ports is None:
            ports = {"port0": 8, "port1": 4}
        device = MagicMock()
        device.name = name
        device.product_type = product_type

        do_lines = []
        for port, n_lines in ports.items():
            for i in range(n_lines):
                line = MagicMock()
                line.name = f"{name}/{port}/line{i}"
                do_lines.append(line)
        device.do_lines = do_lines
        return device

    return _make_device


@pytest.fixture
def mock_system(mock_device):
    """Factory fixture for a mocked ``nidaqmx.system.System.local()``.

    Parameters
    ----------
    devices : list[tuple[str, str]] | None
        List of ``(name, product_type)`` tuples.  Defaults to two devices.
    """
    def _make_system(devices: list[tuple[str, str]] | None = None):
        if devices is None:
            devices = [("Dev1", "PCIe-6361"), ("cDAQ1Mod4", "NI 9403")]

        system = MagicMock()
        system.devices = [mock_device(name=n, product_type=pt) for n, pt in devices]
        return system

    return _make_system


# ---------------------------------------------------------------------------
# fake_driver — instrumented DO task + writer
# ---------------------------------------------------------------------------

def _make_fake_driver() -> SimpleNamespace:
    calls = MagicMock()
    task = calls.task
    writer = calls.writer

    task.name = "FakeDOTask"
    channel_names: list[str] = []
    task.channel_names = channel_names

    def add_do_chan(lines, name_to_assign_to_lines="", line_grouping=None):
        channel_names.append(name_to_assign_to_lines or lines)

    task.do_channels.add_do_chan.side_effect = add_do_chan

    driver = SimpleNamespace(calls=calls, task=task, writer=writer)
    driver.names = lambda: call_names(calls)
    return driver


def call_names(calls: MagicMock) -> list[str]:
    """Return the dotted method names recorded on a shared ``calls`` mock."""
    return [c[0] for c in calls.mock_calls]


@pytest.fixture
def fake_driver():
    """Patch nidaqmx Task and DigitalMultiChannelWriter with recording fakes.

    Yields
    ------
    SimpleNamespace
        ``calls`` (shared recorder), ``names()`` (recorded method names in
        order), ``task``, ``writer``, ``task_cls`` and ``writer_cls`` (the
        patched constructors).
    """
    driver = _make_fake_driver()
    with (
        patch("nidaqdo.task.nidaqmx.task.Task", return_value=driver.task) as task_cls,
        patch(
            "nidaqdo.task.DigitalMultiChannelWriter", return_value=driver.writer
        ) as writer_cls,
    ):
        driver.task_cls = task_cls
        driver.writer_cls = writer_cls
        yield driver


@pytest.fixture
def daq_error():
    """Factory for real ``nidaqmx.errors.DaqError`` instances."""
    from nidaqmx.errors import DaqError

    def _make_error(error_code: int = -200170, message: str = "DAQ error"):
        return DaqError(message, error_code)

    return _make_error


# ===========================================================================
# Simulated Device Fixtures — Real nidaqmx with simulated hardware
# ===========================================================================

SIMULATED_DEVICE_NAME = "SimDev1"

SKIP_MSG = (
    f"Simulated device '{SIMULATED_DEVICE_NAME}' not found. "
    "Run 'python scripts/setup_simulated_devices.py' for setup steps."
)


@pytest.fixture(scope="session")
def simulated_device_name():
    """Provide the simulated device name if it exists, otherwise skip tests."""
    try:
        import nidaqmx.system

        devices = [d.name for d in nidaqmx.system.System.local().devices]
    except ImportError:
        pytest.skip("nidaqmx not installed")
    except Exception as exc:
        pytest.skip(f"NI-DAQmx driver unavailable: {exc}")

    if SIMULATED_DEVICE_NAME not in devices:
        pytest.skip(SKIP_MSG)
    return SIMULATED_DEVICE_NAME
