"""Tests for the device registry."""

import threading
from unittest.mock import MagicMock

import pytest

from folkadb.adb.client import ADBClient
from folkadb.adb.fastboot import FastbootClient
from folkadb.adb.process import ProcessResult
from folkadb.errors import DeviceNotFoundError, ProcessStartError
from folkadb.session import Mode, Session


def adb_listing(*serials: str) -> ProcessResult:
    lines = ["List of devices attached"]
    lines += [f"{serial}\tdevice product:prod_{serial} device:dev_{serial}" for serial in serials]
    return ProcessResult(("\n".join(lines) + "\n").encode(), b"", 0)


def fastboot_listing(*serials: str) -> ProcessResult:
    return ProcessResult("".join(f"{serial}\tfastboot\n" for serial in serials).encode(), b"", 0)


def make_session(bridge=(), bootloader=()) -> Session:
    adb = MagicMock(spec=ADBClient)
    adb.devices.return_value = adb_listing(*bridge)
    adb.get_property.return_value = ProcessResult(b"", b"", 0)
    fastboot = MagicMock(spec=FastbootClient)
    fastboot.devices.return_value = fastboot_listing(*bootloader)
    return Session(adb, fastboot)


class TestRefresh:
    """Test re-enumeration and selection bookkeeping."""

    def test_refresh_returns_count(self):
        """Test the list is replaced from enumeration output."""
        session = make_session(bridge=["A", "B"], bootloader=["F"])

        assert session.refresh(Mode.BRIDGE) == 2
        assert session.refresh(Mode.BOOTLOADER) == 1
        assert [d.serial for d in session.devices(Mode.BRIDGE)] == ["A", "B"]
        assert session.counts() == (2, 1)

    def test_selection_follows_serial(self):
        """Test a selected device keeps its selection when its index shifts."""
        session = make_session(bridge=["A", "B"])
        session.refresh(Mode.BRIDGE)
        session.select(Mode.BRIDGE, 1)

        session.adb.devices.return_value = adb_listing("C", "D", "B")
        session.refresh(Mode.BRIDGE)

        assert session.selected(Mode.BRIDGE).serial == "B"
        assert session.selected_index(Mode.BRIDGE) == 2

    def test_selection_cleared_when_device_gone(self):
        """Test the index never points past the end of a shrunken list."""
        session = make_session(bridge=["A", "B", "C"])
        session.refresh(Mode.BRIDGE)
        session.select(Mode.BRIDGE, 2)

        session.adb.devices.return_value = adb_listing("A")
        session.refresh(Mode.BRIDGE)

        assert session.selected(Mode.BRIDGE) is None
        assert session.selected_index(Mode.BRIDGE) is None

    def test_details_survive_refresh(self):
        """Test lazily fetched details are carried to the new record."""
        session = make_session(bridge=["A"])
        session.adb.get_property.side_effect = [
            ProcessResult(b"14\n", b"", 0),
            ProcessResult(b"34\n", b"", 0),
        ]
        session.refresh(Mode.BRIDGE)
        session.select(Mode.BRIDGE, 0)

        session.refresh(Mode.BRIDGE)
        device = session.selected(Mode.BRIDGE)

        assert device.android_version == "14"
        assert device.api_level == "34"

    def test_spawn_failure_keeps_previous_list(self):
        """Test an enumeration that could not run is not read as "no devices"."""
        session = make_session(bridge=["A"])
        session.refresh(Mode.BRIDGE)
        session.select(Mode.BRIDGE, 0)

        session.adb.devices.side_effect = ProcessStartError("adb not found")

        assert session.refresh(Mode.BRIDGE) == 0
        assert session.count(Mode.BRIDGE) == 1
        assert session.selected(Mode.BRIDGE).serial == "A"

    def test_failed_enumeration_keeps_previous_list(self):
        """Test a non-zero exit is treated the same way."""
        session = make_session(bootloader=["F"])
        session.refresh(Mode.BOOTLOADER)

        session.fastboot.devices.return_value = ProcessResult(b"", b"usb error", 1)

        assert session.refresh(Mode.BOOTLOADER) == 0
        assert session.count(Mode.BOOTLOADER) == 1


class TestSelect:
    """Test explicit selection."""

    def test_out_of_range_keeps_prior_selection(self):
        """Test `select 5` with two devices."""
        session = make_session(bridge=["A", "B"])
        session.refresh(Mode.BRIDGE)
        session.select(Mode.BRIDGE, 1)

        with pytest.raises(DeviceNotFoundError):
            session.select(Mode.BRIDGE, 5)

        assert session.selected(Mode.BRIDGE).serial == "B"

    def test_negative_index(self):
        """Test negative indices are rejected, not wrapped."""
        session = make_session(bridge=["A", "B"])
        session.refresh(Mode.BRIDGE)

        with pytest.raises(DeviceNotFoundError):
            session.select(Mode.BRIDGE, -1)
        assert session.selected(Mode.BRIDGE) is None

    def test_bridge_select_fetches_details(self):
        """Test Android version and API level are queried on selection."""
        session = make_session(bridge=["A"])
        session.adb.get_property.side_effect = [
            ProcessResult(b"13\n", b"", 0),
            ProcessResult(b"33\n", b"", 0),
        ]
        session.refresh(Mode.BRIDGE)

        device = session.select(Mode.BRIDGE, 0)

        assert device.android_version == "13"
        assert device.api_level == "33"
        props = [c.args[1] for c in session.adb.get_property.call_args_list]
        assert props == ["ro.build.version.release", "ro.build.version.sdk"]

    def test_bootloader_select_skips_details(self):
        """Test fastboot devices are never queried for details."""
        session = make_session(bootloader=["F1", "F2"])
        session.refresh(Mode.BOOTLOADER)

        device = session.select(Mode.BOOTLOADER, 1)

        assert device.serial == "F2"
        session.adb.get_property.assert_not_called()

    def test_select_by_serial(self):
        """Test selection by identifier."""
        session = make_session(bridge=["A", "B"])
        session.refresh(Mode.BRIDGE)

        assert session.select_by_serial(Mode.BRIDGE, "B").serial == "B"
        assert session.selected_index(Mode.BRIDGE) == 1

        with pytest.raises(DeviceNotFoundError):
            session.select_by_serial(Mode.BRIDGE, "Z")
        assert session.selected(Mode.BRIDGE).serial == "B"

    def test_auto_select(self):
        """Test index 0 is chosen only when nothing is selected."""
        session = make_session(bridge=["A", "B"])
        assert session.auto_select(Mode.BRIDGE) is None

        session.refresh(Mode.BRIDGE)
        assert session.auto_select(Mode.BRIDGE).serial == "A"

        session.select(Mode.BRIDGE, 1)
        assert session.auto_select(Mode.BRIDGE) is None
        assert session.selected(Mode.BRIDGE).serial == "B"

    def test_selections_are_per_mode(self):
        """Test the two registries are independent."""
        session = make_session(bridge=["A"], bootloader=["F"])
        session.refresh(Mode.BRIDGE)
        session.refresh(Mode.BOOTLOADER)
        session.select(Mode.BOOTLOADER, 0)

        assert session.selected(Mode.BRIDGE) is None
        assert session.selected(Mode.BOOTLOADER).serial == "F"


class TestMode:
    """Test the active mode flag."""

    def test_initial_mode_is_bridge(self):
        """Test the idle default."""
        assert make_session().mode is Mode.BRIDGE

    def test_switch_mode(self):
        """Test switching reports whether anything changed."""
        session = make_session()

        assert session.switch_mode(Mode.BOOTLOADER) is True
        assert session.switch_mode(Mode.BOOTLOADER) is False
        assert session.mode is Mode.BOOTLOADER


class TestWaitForDevice:
    """Test the polling helper."""

    def test_returns_when_device_appears(self):
        """Test polling stops at the first non-empty enumeration."""
        session = make_session()
        session.adb.devices.side_effect = [adb_listing(), adb_listing(), adb_listing("A")]

        assert session.wait_for_device(Mode.BRIDGE, timeout=5, poll_interval=0) is True
        assert session.adb.devices.call_count == 3

    def test_stop_event_cancels(self):
        """Test a set stop event ends the wait."""
        session = make_session()
        stop = threading.Event()
        stop.set()

        assert session.wait_for_device(Mode.BRIDGE, stop_event=stop, poll_interval=0) is False


class TestDetailsUnderRefresh:
    """Test details fetched while the monitor replaces the list."""

    def test_refresh_during_property_reads(self):
        """Test details land on the record that is current after the reads."""
        session = make_session(bridge=["A"])
        session.refresh(Mode.BRIDGE)
        values = iter([b"14\n", b"34\n"])

        def get_property(serial, prop):
            session.refresh(Mode.BRIDGE)
            return ProcessResult(next(values), b"", 0)

        session.adb.get_property.side_effect = get_property

        device = session.select(Mode.BRIDGE, 0)
        current = session.selected(Mode.BRIDGE)

        assert current.has_details
        assert (current.android_version, current.api_level) == ("14", "34")
        assert device is current

    def test_device_gone_before_details_arrive(self):
        """Test a vanished device still gets its details on the returned record."""
        session = make_session(bridge=["A"])
        session.refresh(Mode.BRIDGE)

        def get_property(serial, prop):
            session.adb.devices.return_value = adb_listing()
            session.refresh(Mode.BRIDGE)
            return ProcessResult(b"14\n", b"", 0)

        session.adb.get_property.side_effect = get_property

        device = session.select(Mode.BRIDGE, 0)

        assert device.android_version == "14"
        assert session.selected(Mode.BRIDGE) is None
