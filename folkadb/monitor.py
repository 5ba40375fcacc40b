"""Background device monitor with automatic mode switching."""

import threading
from dataclasses import dataclass
from typing import Callable, Optional, Tuple

from .adb.device import Device
from .session import Mode, Session
from .util.logging import get_logger

logger = get_logger(__name__)

RefreshCallback = Callable[["TickResult"], None]

DEFAULT_POLL_INTERVAL = 3.0


@dataclass
class TickResult:
    """What a single monitor tick observed and changed."""

    bridge_count: int
    bootloader_count: int
    switched_to: Optional[Mode] = None
    auto_selected: Optional[Device] = None
    counts_changed: bool = False

    @property
    def needs_refresh(self) -> bool:
        return self.switched_to is not None or self.auto_selected is not None or self.counts_changed

    def describe(self) -> str:
        """Short status line for the operator."""
        if self.switched_to is Mode.BOOTLOADER:
            return "[Auto-switch] Fastboot device detected, switched to fastboot mode"
        if self.switched_to is Mode.BRIDGE:
            if self.bridge_count == 0:
                return "[Monitor] No devices connected, back to ADB mode"
            return "[Auto-switch] ADB device detected, switched to ADB mode"
        if self.auto_selected is not None:
            return f"[Auto-select] {self.auto_selected.serial}"
        if self.bridge_count and self.bootloader_count:
            return (f"[Monitor] {self.bridge_count} ADB device(s), "
                    f"{self.bootloader_count} fastboot device(s) connected")
        if self.bridge_count:
            return f"[Monitor] {self.bridge_count} ADB device(s) connected"
        if self.bootloader_count:
            return f"[Monitor] {self.bootloader_count} fastboot device(s) connected"
        return "[Monitor] No devices connected"


class ModeMonitor:
    """Polls both device lists and switches the active mode as hardware changes.

    One instance is created at startup and shared between the interactive
    loop and its own background thread. The refresh callback is a single
    replaceable slot; it is always invoked outside the session lock.
    """

    def __init__(self, session: Session, interval: float = DEFAULT_POLL_INTERVAL):
        self.session = session
        self.interval = interval
        self._callback: Optional[RefreshCallback] = None
        self._callback_lock = threading.Lock()
        self._stop_event = threading.Event()
        self._thread: Optional[threading.Thread] = None
        self._last_counts: Optional[Tuple[int, int]] = None

    def set_callback(self, callback: Optional[RefreshCallback]) -> None:
        """Register (or clear with None) the refresh callback."""
        with self._callback_lock:
            self._callback = callback

    @property
    def running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    @property
    def stop_event(self) -> threading.Event:
        return self._stop_event

    def start(self) -> None:
        """Start the polling thread. A stopped monitor cannot be restarted."""
        if self.running or self._stop_event.is_set():
            return

        self._last_counts = self.session.counts()
        self._thread = threading.Thread(target=self._run, name="folkadb-monitor", daemon=True)
        self._thread.start()
        logger.info(f"Device monitoring started (every {self.interval:g}s)")

    def stop(self, timeout: Optional[float] = None) -> None:
        """Signal the loop to end and wait for it to wind down."""
        self._stop_event.set()
        if self._thread is not None:
            self._thread.join(timeout if timeout is not None else self.interval + 5)
            self._thread = None
            logger.info("Device monitoring stopped")

    def _run(self) -> None:
        while not self._stop_event.is_set():
            try:
                self.tick()
            except Exception:
                logger.exception("Device monitor tick failed")
            self._stop_event.wait(self.interval)

    def tick(self) -> TickResult:
        """Refresh both lists once and apply the auto-switch policy.

        Priority order: bootloader devices win, then bridge devices, then an
        idle reset to bridge mode. Only without a switch does the monitor
        auto-select index 0 or report a plain change in device counts.
        """
        session = self.session
        old_counts = self._last_counts if self._last_counts is not None else session.counts()

        session.refresh(Mode.BRIDGE)
        session.refresh(Mode.BOOTLOADER)

        bridge_count, bootloader_count = session.counts()
        self._last_counts = (bridge_count, bootloader_count)
        result = TickResult(bridge_count=bridge_count, bootloader_count=bootloader_count)
        current = session.mode

        if bootloader_count > 0 and current is not Mode.BOOTLOADER:
            session.switch_mode(Mode.BOOTLOADER)
            session.auto_select(Mode.BOOTLOADER)
            result.switched_to = Mode.BOOTLOADER
        elif bridge_count > 0 and bootloader_count == 0 and current is not Mode.BRIDGE:
            session.switch_mode(Mode.BRIDGE)
            session.auto_select(Mode.BRIDGE)
            result.switched_to = Mode.BRIDGE
        elif bridge_count == 0 and bootloader_count == 0 and current is not Mode.BRIDGE:
            session.switch_mode(Mode.BRIDGE)
            result.switched_to = Mode.BRIDGE

        if result.switched_to is None:
            result.auto_selected = session.auto_select(current)
            result.counts_changed = (bridge_count, bootloader_count) != old_counts

        if result.needs_refresh:
            logger.debug(result.describe())
            self._notify(result)

        return result

    def _notify(self, result: TickResult) -> None:
        with self._callback_lock:
            callback = self._callback
        if callback is None:
            return
        try:
            callback(result)
        except Exception:
            logger.exception("Refresh callback raised")
