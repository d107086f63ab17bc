#!/usr/bin/env python3
"""Check for the simulated NI-DAQmx device used by the simulated test suite.

The ``simulated`` tests write digital output to ``SimDev1``, a simulated
PCIe-6361 (three DO ports, 32 lines on port0).  Simulated devices cannot be
created from Python, so this script reports whether the device is present,
lists its DO lines, and prints the platform-specific steps to create it.

Usage
-----
    python scripts/setup_simulated_devices.py          # Report, print steps
    python scripts/setup_simulated_devices.py --check  # Report only

Requirements
------------
- NI-DAQmx driver installed
- nidaqmx Python package
- nidaqdo installed (``pip install -e .``)
"""

from __future__ import annotations

import argparse
import platform
import sys

DEVICE_NAME = "SimDev1"
DEVICE_TYPE = "PCIe-6361"


def report() -> bool:
    """Print connected devices and the DO lines of SimDev1.

    Returns
    -------
    bool
        True if SimDev1 is present.
    """
    from nidaqdo import list_devices, list_do_lines

    try:
        devices = list_devices()
    except Exception as e:
        print(f"Warning: Could not query devices: {e}")
        return False

    print("\nCurrent NI-DAQmx devices:")
    if devices:
        for dev in devices:
            print(f"  - {dev['name']}: {dev['product_type']}")
    else:
        print("  (none)")

    if DEVICE_NAME not in {dev["name"] for dev in devices}:
        return False

    lines = list_do_lines(DEVICE_NAME)
    print(f"\n{DEVICE_NAME} exposes {len(lines)} DO lines:")
    ports: dict[str, int] = {}
    for name in lines:
        port = name.split("/")[1]
        ports[port] = ports.get(port, 0) + 1
    for port, count in ports.items():
        print(f"  - {DEVICE_NAME}/{port}: {count} lines")
    return True


def print_linux_steps() -> None:
    print("\nTo create the simulated device on Linux, import a simulated")
    print(f"{DEVICE_TYPE} named '{DEVICE_NAME}' with the driver's config tool:")
    print("  sudo nidaqmxconfig --import <simulated_devices.ini>")
    print("See 'nidaqmxconfig --help' for the file layout.")


def print_windows_steps() -> None:
    print("\n" + "=" * 70)
    print("Create simulated device in NI MAX:")
    print("=" * 70)
    print(f"""
1. Open NI MAX (Measurement & Automation Explorer)
2. Right-click on 'Devices and Interfaces'
3. Select 'Create New...' -> 'Simulated NI-DAQmx Device or Modular Instrument'
4. Select device: '{DEVICE_TYPE}'
5. Click 'OK'
6. Right-click on the new device and select 'Rename'
7. Rename it to '{DEVICE_NAME}'
""")
    print("=" * 70)


def main() -> int:
    """Main entry point.

    Returns
    -------
    int
        0 if SimDev1 is present (or ``--check`` was given), 1 otherwise.
    """
    parser = argparse.ArgumentParser(
        description="Check the simulated NI-DAQmx device used by the DO tests",
    )
    parser.add_argument(
        "--check",
        action="store_true",
        help="Report device status without printing setup steps",
    )
    args = parser.parse_args()

    print("=" * 70)
    print("NI-DAQmx Simulated Device Setup")
    print("=" * 70)

    try:
        import nidaqmx  # noqa: F401
    except ImportError:
        print("\nERROR: nidaqmx package not found.")
        print("Install with: pip install nidaqmx")
        return 1

    found = report()
    print(f"\nStatus: {DEVICE_NAME} {'EXISTS' if found else 'NOT FOUND'}")
    if found or args.check:
        return 0

    system = platform.system()
    if system == "Linux":
        print_linux_steps()
    elif system == "Windows":
        print_windows_steps()
    else:
        print(f"\nERROR: Unsupported platform: {system}")
    return 1


if __name__ == "__main__":
    sys.exit(main())
