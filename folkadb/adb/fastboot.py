"""Fastboot client wrapper for bootloader-mode devices."""

import typing as t

from . import process
from .process import ProcessResult


class FastbootClient:
    """Builds fastboot argument vectors and runs them through the process runner."""

    def __init__(self, fastboot_path: str = "fastboot") -> None:
        self.fastboot_path = fastboot_path

    def _run_command(self, args: t.List[str], serial: t.Optional[str] = None) -> ProcessResult:
        if serial:
            args = ["-s", serial] + args
        return process.run(self.fastboot_path, args)

    def devices(self) -> ProcessResult:
        return self._run_command(["devices"])

    def getvar(self, serial: str, name: str = "all") -> ProcessResult:
        return self._run_command(["getvar", name], serial)

    def flash(self, serial: str, partition: str, image_path: str) -> ProcessResult:
        return self._run_command(["flash", partition, image_path], serial)

    def erase(self, serial: str, partition: str) -> ProcessResult:
        return self._run_command(["erase", partition], serial)

    def format(self, serial: str, partition: str, fs_type: str) -> ProcessResult:
        """Format a partition; fastboot takes the filesystem as ``format:<fs>``."""
        return self._run_command([f"format:{fs_type}", partition], serial)

    def unlock(self, serial: str) -> ProcessResult:
        return self._run_command(["flashing", "unlock"], serial)

    def lock(self, serial: str) -> ProcessResult:
        return self._run_command(["flashing", "lock"], serial)

    def oem(self, serial: str, oem_args: t.List[str]) -> ProcessResult:
        return self._run_command(["oem"] + list(oem_args), serial)

    def reboot(self, serial: str, mode: t.Optional[str] = None) -> ProcessResult:
        """Reboot; a target other than ``system`` becomes ``reboot-<mode>``."""
        if mode and mode != "system":
            return self._run_command([f"reboot-{mode}"], serial)
        return self._run_command(["reboot"], serial)

    def set_active(self, serial: str, slot: str) -> ProcessResult:
        return self._run_command(["set_active", slot], serial)

    def wipe(self, serial: str, partition: str) -> ProcessResult:
        """Fastboot has no per-partition wipe verb; this erases the partition."""
        return self.erase(serial, partition)
