"""ADB client wrapper for device communication."""

import shlex
import typing as t

from . import process
from .process import ProcessResult


class ADBClient:
    """Builds adb argument vectors and runs them through the process runner."""

    def __init__(self, adb_path: str = "adb") -> None:
        """Initialize ADB client.

        Args:
            adb_path: Path to adb executable
        """
        self.adb_path = adb_path

    def _run_command(self, args: t.List[str], serial: t.Optional[str] = None) -> ProcessResult:
        """Run an adb command, scoped to one device when a serial is given.

        Raises:
            ProcessStartError: If adb could not be started
        """
        if serial:
            args = ["-s", serial] + args
        return process.run(self.adb_path, args)

    def devices(self) -> ProcessResult:
        """List connected devices in long format."""
        return self._run_command(["devices", "-l"])

    def version(self) -> ProcessResult:
        return self._run_command(["version"])

    def shell(self, serial: str, command: str) -> ProcessResult:
        """Execute a shell command line on the device.

        Args:
            serial: Device identifier
            command: Command line, passed to the device shell as one argument
        """
        return self._run_command(["shell", command], serial)

    def su(self, serial: str, command: str) -> ProcessResult:
        """Execute a command as root through ``su -c``.

        The device shell re-splits the line, so the command is quoted as a
        single argument to ``su``.
        """
        return self.shell(serial, f"su -c {shlex.quote(command)}")

    def get_property(self, serial: str, prop: str) -> ProcessResult:
        """Get device property.

        Args:
            serial: Device identifier
            prop: Property name
        """
        return self.shell(serial, f"getprop {prop}")

    def push(self, serial: str, local_path: str, remote_path: str) -> ProcessResult:
        return self._run_command(["push", local_path, remote_path], serial)

    def pull(self, serial: str, remote_path: str, local_path: t.Optional[str] = None) -> ProcessResult:
        args = ["pull", remote_path]
        if local_path:
            args.append(local_path)
        return self._run_command(args, serial)

    def install(self, serial: str, apk_path: str) -> ProcessResult:
        return self._run_command(["install", apk_path], serial)

    def uninstall(self, serial: str, package: str) -> ProcessResult:
        return self._run_command(["uninstall", package], serial)

    def reboot(self, serial: str, mode: t.Optional[str] = None) -> ProcessResult:
        """Reboot the device; ``system`` or no mode means a normal reboot."""
        args = ["reboot"]
        if mode and mode != "system":
            args.append(mode)
        return self._run_command(args, serial)

    def interactive_shell_argv(self, serial: str, command: t.Optional[str] = None) -> t.List[str]:
        """Argument vector for a terminal-attached interactive shell.

        The vector is handed to the terminal as-is rather than to the
        process runner, since the child must own stdin and stdout.
        """
        argv = [self.adb_path, "-s", serial, "shell", "-t"]
        if command:
            argv.append(command)
        return argv
