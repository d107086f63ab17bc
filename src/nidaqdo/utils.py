"""Device discovery helpers for digital output.

All functions query the local NI-DAQmx system and require nidaqmx to be
installed.
"""

from __future__ import annotations

import logging

logger = logging.getLogger("nidaqdo.utils")

try:
    import nidaqmx

    _NIDAQMX_AVAILABLE = True
except ImportError:
    _NIDAQMX_AVAILABLE = False
    logger.warning(
        "nidaqmx not available. Hardware functions will raise RuntimeError."
    )


def _require_nidaqmx() -> None:
    """Raise RuntimeError when nidaqmx is not available.

    Raises
    ------
    RuntimeError
        If the nidaqmx package is not installed or NI-DAQmx drivers are absent.
    """
    if not _NIDAQMX_AVAILABLE:
        raise RuntimeError(
            "NI-DAQmx drivers are required for this operation. "
            "Install the package with: pip install nidaqmx"
        )


def get_connected_devices() -> set[str]:
    """Return the set of currently connected NI-DAQmx device names.

    Returns
    -------
    set[str]
        Device name strings (e.g. ``{"Dev1", "cDAQ1Mod4"}``).  Empty set if
        no devices are connected.

    Raises
    ------
    RuntimeError
        If nidaqmx is not installed or NI-DAQmx drivers are unavailable.
    """
    _require_nidaqmx()
    system = nidaqmx.system.System.local()
    return {dev.name for dev in system.devices}


def list_devices() -> list[dict[str, str]]:
    """List all NI-DAQmx devices connected to the system.

    Returns
    -------
    list[dict[str, str]]
        One dict per device with ``"name"`` and ``"product_type"`` keys.
        Empty list when no devices are present.

    Raises
    ------
    RuntimeError
        If nidaqmx is not installed or NI-DAQmx drivers are unavailable.

    Examples
    --------
    >>> list_devices()
    [{'name': 'Dev1', 'product_type': 'PCIe-6361'}]
    """
    _require_nidaqmx()
    system = nidaqmx.system.System.local()
    return [
        {"name": dev.name, "product_type": dev.product_type}
        for dev in system.devices
    ]


def list_do_lines(device: str) -> list[str]:
    """Return the physical DO line names of a device.

    Parameters
    ----------
    device : str
        Device name, e.g. ``"Dev1"``.

    Returns
    -------
    list[str]
        Line names such as ``"Dev1/port0/line0"``, in driver order.

    Raises
    ------
    KeyError
        If the device is not connected.  The message lists connected
        devices.
    RuntimeError
        If nidaqmx is not installed or NI-DAQmx drivers are unavailable.
    """
    _require_nidaqmx()
    system = nidaqmx.system.System.local()
    for dev in system.devices:
        if dev.name == device:
            return [line.name for line in dev.do_lines]

    raise KeyError(
        f"No device named '{device}' is connected. "
        f"Available devices: {[dev.name for dev in system.devices]}"
    )


def expand_port_to_line_range(lines: str) -> str:
    """Expand a port-only line specifier to an explicit line range.

    A port-level specifier (e.g. ``'Dev1/port0'``) becomes
    ``'Dev1/port0/line0:7'`` for an 8-line port.  Specs that already name
    lines are returned unchanged, as are ports the device does not report
    (the driver produces the error for those).
    """
    if "/line" in lines:
        return lines

    dev_name = lines.split("/")[0]
    try:
        device_lines = list_do_lines(dev_name)
    except KeyError:
        return lines

    port_lines = [name for name in device_lines if name.startswith(lines + "/")]
    if not port_lines:
        return lines

    return f"{lines}/line0:{len(port_lines) - 1}"
