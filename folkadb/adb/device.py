"""Device records and parsing of device enumeration output."""

import re
from dataclasses import dataclass
from typing import List, Optional

MAX_DEVICES = 16

# Lines printed by the adb server around the device table
_BANNER_MARKERS = ("List of devices", "daemon")


@dataclass
class Device:
    """One endpoint seen by adb or fastboot enumeration."""

    serial: str
    status: str
    model: str = ""
    codename: str = ""
    android_version: str = ""
    api_level: str = ""

    @property
    def display_name(self) -> str:
        """Get a human-readable device name."""
        if self.model:
            return f"{self.model} ({self.serial})"
        return self.serial

    @property
    def has_details(self) -> bool:
        return bool(self.android_version)


def _extract_field(line: str, key: str) -> str:
    """Read the value of a ``key:value`` token up to the next comma or whitespace."""
    start = line.find(f"{key}:")
    if start < 0:
        return ""
    match = re.match(r"[^,\s]*", line[start + len(key) + 1:])
    return match.group(0) if match else ""


def _split_identity(line: str) -> Optional[List[str]]:
    parts = line.split()
    if len(parts) < 2:
        return None
    return parts


def parse_adb_devices(output: str, max_devices: int = MAX_DEVICES) -> List[Device]:
    """Parse ``adb devices -l`` output into device records.

    Banner and daemon log lines are skipped, as is any line that does not
    yield at least a serial and a status.
    """
    devices: List[Device] = []

    for line in output.splitlines():
        if len(devices) >= max_devices:
            break
        if any(marker in line for marker in _BANNER_MARKERS):
            continue

        line = line.strip()
        if not line:
            continue

        parts = _split_identity(line)
        if parts is None:
            continue

        devices.append(Device(
            serial=parts[0],
            status=parts[1],
            model=_extract_field(line, "product"),
            codename=_extract_field(line, "device"),
        ))

    return devices


def parse_fastboot_devices(output: str, max_devices: int = MAX_DEVICES) -> List[Device]:
    """Parse ``fastboot devices`` output (``serial<TAB>fastboot`` per line)."""
    devices: List[Device] = []

    for line in output.splitlines():
        if len(devices) >= max_devices:
            break

        line = line.strip()
        if not line:
            continue

        parts = _split_identity(line)
        if parts is None:
            continue

        devices.append(Device(serial=parts[0], status=parts[1]))

    return devices


def extract_fastboot_var(output: str, name: str) -> Optional[str]:
    """Find ``name: value`` in getvar output, with or without a ``(bootloader)`` prefix."""
    for line in output.splitlines():
        line = line.strip()
        if line.startswith("(bootloader)"):
            line = line[len("(bootloader)"):].strip()
        if line.startswith(f"{name}:"):
            return line[len(name) + 1:].strip()
    return None
