"""Device registry: the two device lists, their selections and the active mode."""

import threading
import time
from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, List, Optional, Tuple

from tenacity import (
    RetryError,
    Retrying,
    retry_if_result,
    stop_after_delay,
    stop_never,
    stop_when_event_set,
    wait_fixed,
)

from .adb.client import ADBClient
from .adb.device import MAX_DEVICES, Device, parse_adb_devices, parse_fastboot_devices
from .adb.fastboot import FastbootClient
from .errors import DeviceNotFoundError, ProcessStartError
from .util.logging import get_logger

logger = get_logger(__name__)


class Mode(Enum):
    """Operating mode; the value doubles as the command namespace prefix."""

    BRIDGE = "adb"
    BOOTLOADER = "fastboot"

    @property
    def label(self) -> str:
        return "ADB" if self is Mode.BRIDGE else "fastboot"


@dataclass
class _Registry:
    devices: List[Device] = field(default_factory=list)
    index: Optional[int] = None

    def selected(self) -> Optional[Device]:
        if self.index is None or not 0 <= self.index < len(self.devices):
            return None
        return self.devices[self.index]


class Session:
    """Process-wide device state shared by the monitor and the command loop.

    A single lock guards the device lists, the selection indices and the
    active mode. It is held only while state is read or replaced, never while
    adb or fastboot is running.
    """

    def __init__(self, adb: ADBClient, fastboot: FastbootClient):
        self.adb = adb
        self.fastboot = fastboot
        self._lock = threading.Lock()
        self._registries: Dict[Mode, _Registry] = {
            Mode.BRIDGE: _Registry(),
            Mode.BOOTLOADER: _Registry(),
        }
        self._mode = Mode.BRIDGE

    @property
    def mode(self) -> Mode:
        with self._lock:
            return self._mode

    def switch_mode(self, mode: Mode) -> bool:
        """Make ``mode`` active. Returns True if the mode actually changed."""
        with self._lock:
            changed = self._mode is not mode
            self._mode = mode
        if changed:
            logger.debug(f"Active mode is now {mode.label}")
        return changed

    def _enumerate(self, mode: Mode) -> Optional[List[Device]]:
        try:
            if mode is Mode.BRIDGE:
                result = self.adb.devices()
            else:
                result = self.fastboot.devices()
        except ProcessStartError as e:
            logger.debug(f"{mode.label} enumeration could not run: {e}")
            return None

        if not result.ok:
            logger.debug(f"{mode.label} enumeration exited with {result.exit_code}")
            return None

        if mode is Mode.BRIDGE:
            return parse_adb_devices(result.text, MAX_DEVICES)
        return parse_fastboot_devices(result.text, MAX_DEVICES)

    def refresh(self, mode: Mode) -> int:
        """Re-enumerate devices for ``mode`` and return the new count.

        The previous selection is re-resolved by serial. If that device is
        gone the selection is cleared. When enumeration fails the previous
        list is kept and 0 is returned.
        """
        devices = self._enumerate(mode)
        if devices is None:
            return 0

        with self._lock:
            registry = self._registries[mode]
            previous = registry.selected()
            registry.devices = devices
            registry.index = None

            if previous is not None:
                for i, device in enumerate(devices):
                    if device.serial == previous.serial:
                        device.android_version = previous.android_version
                        device.api_level = previous.api_level
                        registry.index = i
                        break
                else:
                    logger.debug(f"Selected device {previous.serial} is gone")

            return len(devices)

    def devices(self, mode: Mode) -> List[Device]:
        with self._lock:
            return list(self._registries[mode].devices)

    def count(self, mode: Mode) -> int:
        with self._lock:
            return len(self._registries[mode].devices)

    def counts(self) -> Tuple[int, int]:
        """Return ``(bridge_count, bootloader_count)`` read atomically."""
        with self._lock:
            return (
                len(self._registries[Mode.BRIDGE].devices),
                len(self._registries[Mode.BOOTLOADER].devices),
            )

    def selected(self, mode: Mode) -> Optional[Device]:
        with self._lock:
            return self._registries[mode].selected()

    def selected_index(self, mode: Mode) -> Optional[int]:
        with self._lock:
            registry = self._registries[mode]
            return registry.index if registry.selected() is not None else None

    def select(self, mode: Mode, index: int) -> Device:
        """Select the device at ``index``.

        Raises:
            DeviceNotFoundError: If the index is out of range. A prior
                selection is left untouched.
        """
        with self._lock:
            registry = self._registries[mode]
            if not 0 <= index < len(registry.devices):
                raise DeviceNotFoundError(f"no device at index {index}")
            registry.index = index
            device = registry.devices[index]

        if mode is Mode.BRIDGE:
            device = self._load_details(device)
        return device

    def select_by_serial(self, mode: Mode, serial: str) -> Device:
        """Select the device whose serial matches exactly."""
        with self._lock:
            registry = self._registries[mode]
            for i, device in enumerate(registry.devices):
                if device.serial == serial:
                    registry.index = i
                    break
            else:
                raise DeviceNotFoundError(serial)

        if mode is Mode.BRIDGE:
            device = self._load_details(device)
        return device

    def auto_select(self, mode: Mode) -> Optional[Device]:
        """Select index 0 if ``mode`` has devices but no selection.

        Returns the newly selected device, or None if nothing changed.
        """
        with self._lock:
            registry = self._registries[mode]
            if registry.selected() is not None or not registry.devices:
                return None
        try:
            return self.select(mode, 0)
        except DeviceNotFoundError:
            # list emptied between the check and the select
            return None

    def _load_details(self, device: Device) -> Device:
        """Fetch Android version and API level for a bridge-mode device.

        The properties are read outside the lock. A refresh may replace the
        record meanwhile, so the values are stored on whichever record
        currently carries the serial, which is also what is returned.
        """
        details = {}
        for prop, attr in (
            ("ro.build.version.release", "android_version"),
            ("ro.build.version.sdk", "api_level"),
        ):
            try:
                result = self.adb.get_property(device.serial, prop)
            except ProcessStartError as e:
                logger.warning(f"Could not read {prop} from {device.serial}: {e}")
                continue
            if result.ok:
                details[attr] = result.text.strip()

        with self._lock:
            current = device
            for candidate in self._registries[Mode.BRIDGE].devices:
                if candidate.serial == device.serial:
                    current = candidate
                    break
            for attr, value in details.items():
                setattr(current, attr, value)
            return current

    def wait_for_device(
        self,
        mode: Mode = Mode.BRIDGE,
        timeout: int = 0,
        stop_event: Optional[threading.Event] = None,
        poll_interval: float = 1.0,
    ) -> bool:
        """Poll until ``mode`` has at least one device.

        Args:
            mode: Which enumeration to poll
            timeout: Whole seconds to wait; 0 waits until stopped
            stop_event: Optional event that cancels the wait
            poll_interval: Seconds between enumerations

        Returns:
            True if a device appeared, False on timeout or cancellation
        """
        stop = stop_after_delay(timeout) if timeout > 0 else stop_never
        if stop_event is not None:
            stop = stop | stop_when_event_set(stop_event)

        retrying = Retrying(
            stop=stop,
            wait=wait_fixed(poll_interval),
            retry=retry_if_result(lambda count: count == 0),
            sleep=stop_event.wait if stop_event is not None else time.sleep,
        )

        try:
            return retrying(self.refresh, mode) > 0
        except RetryError:
            logger.debug(f"Gave up waiting for a {mode.label} device")
            return False
