"""Tests for command parsing and namespace resolution."""

import io
from unittest.mock import MagicMock

import pytest
from rich.console import Console

from folkadb.adb.device import Device
from folkadb.errors import FolkError, OperationCancelled, ProcessFailedError
from folkadb.router import Command, CommandRouter, CommandStatus, HandlerSpec, parse_command
from folkadb.session import Mode, Session


def make_router(mode=Mode.BRIDGE, bridge_device=None, bootloader_device=None):
    session = MagicMock(spec=Session)
    session.mode = mode
    selections = {Mode.BRIDGE: bridge_device, Mode.BOOTLOADER: bootloader_device}
    session.selected.side_effect = lambda m: selections[m]

    bridge = {
        "devices": HandlerSpec(MagicMock(name="adb_devices")),
        "ls": HandlerSpec(MagicMock(name="adb_ls"), needs_device=True),
        "reboot": HandlerSpec(MagicMock(name="adb_reboot"), needs_device=True),
        "help": HandlerSpec(MagicMock(name="adb_help")),
    }
    bootloader = {
        "devices": HandlerSpec(MagicMock(name="fb_devices")),
        "flash": HandlerSpec(MagicMock(name="fb_flash"), needs_device=True, destructive=True),
        "getvar": HandlerSpec(MagicMock(name="fb_getvar"), needs_device=True),
        "reboot": HandlerSpec(MagicMock(name="fb_reboot")),
    }
    general = {"version": HandlerSpec(MagicMock(name="version"))}

    output = io.StringIO()
    console = Console(file=output, width=200, color_system=None)
    router = CommandRouter(session, console, bridge, bootloader, general)
    return router, bridge, bootloader, general, output


class TestParseCommand:
    """Test splitting of raw input lines."""

    def test_blank_line(self):
        """Test blank input yields nothing."""
        assert parse_command("") is None
        assert parse_command("   \n") is None

    def test_name_is_lowercased_and_args_kept_raw(self):
        """Test arguments are not tokenised."""
        command = parse_command("  PUSH  my file.txt   /sdcard/x \n")

        assert command == Command("push", 'my file.txt   /sdcard/x')

    def test_no_arguments(self):
        """Test a bare command name."""
        assert parse_command("devices") == Command("devices", "")


class TestResolution:
    """Test which table a command name is dispatched to."""

    def test_active_bridge_mode(self):
        """Test bridge commands run in bridge mode."""
        router, bridge, bootloader, _, _ = make_router()

        assert router.dispatch(Command("devices", "")) is CommandStatus.OK
        bridge["devices"].func.assert_called_once_with("")
        bootloader["devices"].func.assert_not_called()

    def test_collision_prefers_active_mode(self):
        """Test a name in both tables resolves to the active mode."""
        router, bridge, bootloader, _, _ = make_router(mode=Mode.BOOTLOADER)

        router.dispatch(Command("devices", ""))

        bootloader["devices"].func.assert_called_once_with("")
        bridge["devices"].func.assert_not_called()

    def test_bridge_command_in_bootloader_mode(self):
        """Test `ls` reaches the bridge table through the fallback."""
        device = Device("A", "device")
        router, bridge, _, _, _ = make_router(mode=Mode.BOOTLOADER, bridge_device=device)

        assert router.dispatch(Command("ls", "/data")) is CommandStatus.OK
        bridge["ls"].func.assert_called_once_with("/data")

    def test_bootloader_command_in_bridge_mode(self):
        """Test a bootloader-only name resolves without a prefix."""
        router, _, bootloader, _, _ = make_router(bootloader_device=Device("F", "fastboot"))

        router.dispatch(Command("getvar", "product"))

        bootloader["getvar"].func.assert_called_once_with("product")

    def test_reboot_follows_mode(self):
        """Test reboot is routed by the active mode."""
        router, bridge, bootloader, _, _ = make_router(
            mode=Mode.BOOTLOADER, bootloader_device=Device("F", "fastboot")
        )
        router.dispatch(Command("reboot", ""))

        bootloader["reboot"].func.assert_called_once_with("")
        bridge["reboot"].func.assert_not_called()

    def test_explicit_prefix_overrides_mode(self):
        """Test `adb <sub>` always addresses the bridge table."""
        router, bridge, bootloader, _, _ = make_router(mode=Mode.BOOTLOADER)

        router.dispatch(Command("adb", "devices -l"))

        bridge["devices"].func.assert_called_once_with("-l")
        bootloader["devices"].func.assert_not_called()

    def test_fastboot_prefix(self):
        """Test `fastboot <sub>` passes the remaining arguments."""
        router, _, bootloader, _, _ = make_router(bootloader_device=Device("F", "fastboot"))

        router.dispatch(Command("fastboot", "getvar current-slot"))

        bootloader["getvar"].func.assert_called_once_with("current-slot")

    def test_legacy_fastboot_names(self):
        """Test `fb_<sub>` spellings resolve to the bootloader table."""
        router, _, bootloader, _, _ = make_router(bootloader_device=Device("F", "fastboot"))

        router.dispatch(Command("fb_getvar", "all"))

        bootloader["getvar"].func.assert_called_once_with("all")

    def test_global_names_bypass_namespaces(self):
        """Test global commands win over a namespace entry of the same name."""
        router, bridge, _, general, output = make_router()

        router.dispatch(Command("version", ""))
        router.dispatch(Command("help", ""))

        general["version"].func.assert_called_once_with("")
        bridge["help"].func.assert_not_called()
        assert "General" in output.getvalue()

    @pytest.mark.parametrize("name", ["exit", "quit"])
    def test_exit(self, name):
        """Test exit and quit end the loop."""
        router, _, _, _, _ = make_router()

        assert router.dispatch(Command(name, "")) is CommandStatus.EXIT


class TestUnknownCommands:
    """Test the unknown-command path is reported."""

    def test_unknown_name(self):
        """Test an unknown name suggests help."""
        router, _, _, _, output = make_router()

        assert router.dispatch(Command("frobnicate", "")) is CommandStatus.UNKNOWN
        text = output.getvalue()
        assert "unknown command: frobnicate" in text
        assert "help" in text

    def test_unknown_prefixed_name(self):
        """Test a prefix form never falls back to the other table."""
        router, _, bootloader, _, output = make_router(bootloader_device=Device("F", "fastboot"))

        assert router.dispatch(Command("adb", "getvar all")) is CommandStatus.UNKNOWN
        bootloader["getvar"].func.assert_not_called()
        assert "unknown command: adb getvar" in output.getvalue()

    def test_bare_prefix(self):
        """Test a prefix with no subcommand shows usage."""
        router, _, _, _, output = make_router()

        assert router.dispatch(Command("fastboot", "")) is CommandStatus.FAILED
        assert "usage: fastboot <command>" in output.getvalue()


class TestPreconditions:
    """Test checks applied before a handler runs."""

    def test_no_device(self):
        """Test a device-bound command fails fast without a selection."""
        router, _, bootloader, _, output = make_router(mode=Mode.BOOTLOADER)

        status = router.dispatch(Command("flash", "boot missing.img"))

        assert status is CommandStatus.FAILED
        bootloader["flash"].func.assert_not_called()
        assert "no device selected" in output.getvalue()

    def test_device_checked_in_handler_namespace(self):
        """Test the selection looked at belongs to the command's namespace."""
        router, _, bootloader, _, _ = make_router(bridge_device=Device("A", "device"))

        assert router.dispatch(Command("getvar", "")) is CommandStatus.FAILED
        bootloader["getvar"].func.assert_not_called()


class TestErrorReporting:
    """Test handler outcomes are mapped to statuses."""

    def test_cancelled(self):
        """Test cancellation is distinct from failure."""
        router, _, bootloader, _, output = make_router(bootloader_device=Device("F", "fastboot"))
        bootloader["flash"].func.side_effect = OperationCancelled()

        assert router.dispatch(Command("flash", "boot a.img")) is CommandStatus.CANCELLED
        assert "Operation cancelled." in output.getvalue()

    def test_process_failure(self):
        """Test a failing process is reported on one line with its exit code."""
        router, bridge, _, _, output = make_router(bridge_device=Device("A", "device"))
        bridge["ls"].func.side_effect = ProcessFailedError("/root", exit_code=1)

        assert router.dispatch(Command("ls", "/root")) is CommandStatus.FAILED
        assert "command failed: /root (exit code 1)" in output.getvalue()

    def test_handler_returning_false(self):
        """Test a False return counts as failure."""
        router, bridge, _, _, _ = make_router()
        bridge["devices"].func.return_value = False

        assert router.dispatch(Command("devices", "")) is CommandStatus.FAILED

    def test_loop_survives_errors(self):
        """Test errors never propagate out of dispatch."""
        router, bridge, _, _, _ = make_router()
        bridge["devices"].func.side_effect = FolkError("broken")

        assert router.dispatch(Command("devices", "")) is CommandStatus.FAILED
        assert router.dispatch(Command("version", "")) is CommandStatus.OK

    def test_unexpected_exception_is_contained(self):
        """Test a non-domain exception is reported and the loop goes on."""
        router, bridge, _, _, output = make_router()
        bridge["devices"].func.side_effect = IsADirectoryError(21, "Is a directory", "/tmp/config.yaml")

        assert router.dispatch(Command("devices", "")) is CommandStatus.FAILED
        assert "Error: [Errno 21] Is a directory: '/tmp/config.yaml'" in output.getvalue()
        assert router.dispatch(Command("version", "")) is CommandStatus.OK
