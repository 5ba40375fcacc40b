"""Commands that operate on a device in fastboot (bootloader) mode."""

from pathlib import Path
from typing import Dict

from rich.table import Table

from ..adb.device import extract_fastboot_var
from ..errors import InvalidArgumentsError, LocalFileNotFoundError, NoDeviceError
from ..router import HandlerSpec
from ..session import Mode
from ..util.logging import get_logger
from .base import BaseHandlers, split_args

logger = get_logger(__name__)

REBOOT_TARGETS = ("system", "bootloader", "recovery", "fastboot")
SLOTS = ("a", "b")
SUMMARY_VARS = ("product", "serialno", "current-slot", "unlocked", "secure")


class BootloaderHandlers(BaseHandlers):
    """Partition, lock-state and variable commands for fastboot devices.

    Every destructive command validates the device and its arguments first,
    then asks for a single-keypress confirmation before running fastboot.
    """

    mode = Mode.BOOTLOADER

    @property
    def fastboot(self):
        return self.session.fastboot

    def commands(self) -> Dict[str, HandlerSpec]:
        return {
            "devices": HandlerSpec(self.cmd_devices, "devices", "List fastboot devices"),
            "select": HandlerSpec(self.cmd_select, "select <index|serial>", "Select a fastboot device"),
            "info": HandlerSpec(self.cmd_info, "info", "Show all bootloader variables", needs_device=True),
            "flash": HandlerSpec(
                self.cmd_flash, "flash <partition> <image>", "Flash an image to a partition",
                needs_device=True, destructive=True,
            ),
            "erase": HandlerSpec(
                self.cmd_erase, "erase <partition>", "Erase a partition",
                needs_device=True, destructive=True,
            ),
            "format": HandlerSpec(
                self.cmd_format, "format <partition> <fs>", "Format a partition",
                needs_device=True, destructive=True,
            ),
            "unlock": HandlerSpec(
                self.cmd_unlock, "unlock", "Unlock the bootloader", needs_device=True, destructive=True
            ),
            "lock": HandlerSpec(
                self.cmd_lock, "lock", "Relock the bootloader", needs_device=True, destructive=True
            ),
            "oem": HandlerSpec(self.cmd_oem, "oem <cmd>", "Run an OEM command", needs_device=True),
            "reboot": HandlerSpec(
                self.cmd_reboot, "reboot [system|bootloader|recovery|fastboot]", "Reboot the device"
            ),
            "getvar": HandlerSpec(
                self.cmd_getvar, "getvar [name]", "Read a bootloader variable", needs_device=True
            ),
            "activate": HandlerSpec(
                self.cmd_activate, "activate <a|b>", "Set the active slot", needs_device=True
            ),
            "wipe": HandlerSpec(
                self.cmd_wipe, "wipe <partition>", "Wipe all data on a partition",
                needs_device=True, destructive=True,
            ),
        }

    def cmd_select(self, args: str) -> None:
        super().cmd_select(args)
        self.session.switch_mode(Mode.BOOTLOADER)

    def cmd_info(self, args: str) -> None:
        device = self._device()

        table = Table(title="Fastboot Device Information", show_header=False)
        table.add_column("Property", style="cyan")
        table.add_column("Value", style="green")
        table.add_row("Serial", device.serial)
        table.add_row("Status", device.status)

        result = self.fastboot.getvar(device.serial, "all")
        # fastboot prints variables on stderr
        output = result.text + result.error_text
        for name in SUMMARY_VARS:
            value = extract_fastboot_var(output, name)
            if value:
                table.add_row(name, value)
        self.console.print(table)

        self._report(result, failure="getvar all")

    def cmd_flash(self, args: str) -> None:
        device = self._device()
        partition, image = split_args(args, "flash <partition> <image>", 2, 2)
        if not Path(image).exists():
            raise LocalFileNotFoundError(image)

        self._confirm("FLASHING PARTITION WARNING", [
            f"Partition: {partition}",
            f"Image: {image}",
            f"Device: {device.serial}",
            "",
            f"This will replace the current data on partition '{partition}'!",
            "Make sure you have a backup before proceeding.",
        ])

        self.console.print(f"Flashing {partition} partition...")
        self._report(
            self.fastboot.flash(device.serial, partition, image),
            "Partition flashed successfully.",
            f"flash {partition}",
        )

    def cmd_erase(self, args: str) -> None:
        device = self._device()
        (partition,) = split_args(args, "erase <partition>", 1, 1)

        self._confirm("ERASE PARTITION WARNING", [
            f"Partition: {partition}",
            f"Device: {device.serial}",
            "",
            f"This will PERMANENTLY erase all data on partition '{partition}'!",
            "This operation cannot be undone.",
        ])

        self.console.print(f"Erasing {partition} partition...")
        self._report(
            self.fastboot.erase(device.serial, partition),
            "Partition erased successfully.",
            f"erase {partition}",
        )

    def cmd_format(self, args: str) -> None:
        device = self._device()
        partition, fs_type = split_args(args, "format <partition> <fs>", 2, 2)

        self._confirm("FORMAT PARTITION WARNING", [
            f"Partition: {partition}",
            f"Filesystem: {fs_type}",
            f"Device: {device.serial}",
            "",
            f"This will destroy all data on partition '{partition}'!",
        ])

        self.console.print(f"Formatting partition {partition} with filesystem {fs_type}...")
        self._report(
            self.fastboot.format(device.serial, partition, fs_type),
            "Partition formatted successfully.",
            f"format {partition}",
        )

    def cmd_unlock(self, args: str) -> None:
        device = self._device()

        self._confirm("BOOTLOADER UNLOCK WARNING", [
            f"Device: {device.serial}",
            "",
            "This will UNLOCK your bootloader. It will:",
            "  - Void your warranty",
            "  - Wipe all data on your device",
            "  - Allow custom ROMs and recoveries",
            "  - Make your device less secure",
        ], prompt="Press 'y' to confirm unlock, any other key to cancel: ")

        self.console.print("Unlocking bootloader... follow the instructions on the device screen.")
        self._report(
            self.fastboot.unlock(device.serial),
            "Bootloader unlock command sent. Check your device screen for confirmation.",
            "flashing unlock",
        )

    def cmd_lock(self, args: str) -> None:
        device = self._device()

        self._confirm("BOOTLOADER LOCK WARNING", [
            f"Device: {device.serial}",
            "",
            "This will RELOCK your bootloader. It will:",
            "  - Prevent custom ROMs and recoveries",
            "  - May require wiping data to unlock again",
            "  - Restore some security features",
        ], prompt="Press 'y' to confirm lock, any other key to cancel: ")

        self.console.print("Locking bootloader...")
        self._report(
            self.fastboot.lock(device.serial),
            "Bootloader lock command sent. Check your device screen for confirmation.",
            "flashing lock",
        )

    def cmd_oem(self, args: str) -> None:
        device = self._device()
        tokens = split_args(args, "oem <cmd>", 1)
        self.console.print(f"Executing OEM command: {' '.join(tokens)}")
        self._report(self.fastboot.oem(device.serial, tokens), failure=f"oem {tokens[0]}")

    def cmd_reboot(self, args: str) -> None:
        target = args.strip().lower() or "system"
        if target not in REBOOT_TARGETS:
            raise InvalidArgumentsError(f"{target} (expected one of: {', '.join(REBOOT_TARGETS)})")

        device = self.session.selected(self.mode)
        if device is None:
            self.session.refresh(self.mode)
            device = self.session.auto_select(self.mode)
        if device is None:
            raise NoDeviceError("no fastboot device selected")

        self.console.print(f"Rebooting device to {target} mode...")
        self._report(
            self.fastboot.reboot(device.serial, target),
            "Device is rebooting...",
            f"reboot {target}",
        )

    def cmd_getvar(self, args: str) -> None:
        device = self._device()
        tokens = split_args(args, "getvar [name]", 0, 1)
        name = tokens[0] if tokens else "all"
        self._report(self.fastboot.getvar(device.serial, name), failure=f"getvar {name}")

    def cmd_activate(self, args: str) -> None:
        device = self._device()
        (slot,) = split_args(args, "activate <a|b>", 1, 1)
        slot = slot.lower()
        if slot not in SLOTS:
            raise InvalidArgumentsError(f"invalid slot '{slot}', must be 'a' or 'b'")

        self.console.print(f"Activating slot {slot}...")
        self._report(
            self.fastboot.set_active(device.serial, slot),
            f"Slot {slot} is now active.",
            f"set_active {slot}",
        )

    def cmd_wipe(self, args: str) -> None:
        device = self._device()
        (partition,) = split_args(args, "wipe <partition>", 1, 1)

        self._confirm("WIPE DATA WARNING", [
            f"Partition: {partition}",
            f"Device: {device.serial}",
            "",
            f"This will WIPE ALL DATA on partition '{partition}'!",
            "This will perform a factory reset and cannot be undone.",
        ])

        self.console.print(f"Wiping partition {partition}...")
        self._report(
            self.fastboot.wipe(device.serial, partition),
            "Partition wiped successfully.",
            f"wipe {partition}",
        )
