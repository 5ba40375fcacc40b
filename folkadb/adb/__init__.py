"""ADB and fastboot module initialization."""

from .client import ADBClient
from .device import MAX_DEVICES, Device, extract_fastboot_var, parse_adb_devices, parse_fastboot_devices
from .fastboot import FastbootClient
from .process import ProcessResult, run

__all__ = [
    # client
    "ADBClient",
    # fastboot
    "FastbootClient",
    # device
    "MAX_DEVICES",
    "Device",
    "extract_fastboot_var",
    "parse_adb_devices",
    "parse_fastboot_devices",
    # process
    "ProcessResult",
    "run",
]
