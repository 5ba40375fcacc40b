"""Commands that operate on a device in ADB mode."""

import shlex
import subprocess
from pathlib import Path
from typing import Callable, Dict, List, Optional

from rich.console import Console
from rich.table import Table

from ..config import FolkConfig
from ..errors import FolkError, InvalidArgumentsError, LocalFileNotFoundError
from ..router import HandlerSpec
from ..session import Mode, Session
from ..util.logging import get_logger
from ..util.paths import ensure_directory, remote_basename
from .base import BaseHandlers, KeyReader, split_args
from .modules import ModuleInstaller

logger = get_logger(__name__)

Terminal = Callable[[List[str]], int]

REBOOT_TARGETS = ("system", "recovery", "bootloader", "fastboot", "sideload")

SHIZUKU_PACKAGE = "moe.shizuku.privileged.api"
SHIZUKU_LIBRARY = "lib/arm64/libshizuku.so"

SUDO_HELPER = "#!/system/bin/sh\nexec su -c \"$@\"\n"
SUDO_HELPER_REMOTE = "/data/local/tmp/sudo"
INTERACTIVE_SHELL_COMMAND = "export PATH=/data/local/tmp:$PATH; /system/bin/sh"


class BridgeHandlers(BaseHandlers):
    """File transfer, shell, package and module commands for ADB devices."""

    mode = Mode.BRIDGE

    def __init__(
        self,
        session: Session,
        console: Console,
        config: Optional[FolkConfig] = None,
        read_key: Optional[KeyReader] = None,
        terminal: Optional[Terminal] = None,
        installer: Optional[ModuleInstaller] = None,
    ):
        super().__init__(session, console, config, read_key)
        self.adb = session.adb
        self.terminal = terminal or subprocess.call
        self.installer = installer or ModuleInstaller(self.adb, console, self.config)

    def commands(self) -> Dict[str, HandlerSpec]:
        devices = HandlerSpec(self.cmd_devices, "devices | dev", "List ADB devices")
        return {
            "devices": devices,
            "dev": devices,
            "select": HandlerSpec(self.cmd_select, "select <index|serial>", "Select an ADB device"),
            "info": HandlerSpec(self.cmd_info, "info", "Show selected device details", needs_device=True),
            "push": HandlerSpec(
                self.cmd_push, "push <local> [remote]", "Copy a file to the device", needs_device=True
            ),
            "pull": HandlerSpec(
                self.cmd_pull, "pull <remote> [local]", "Copy a file from the device", needs_device=True
            ),
            "ls": HandlerSpec(self.cmd_ls, "ls [path]", "List a device directory", needs_device=True),
            "rm": HandlerSpec(self.cmd_rm, "rm <path>", "Delete a file on the device", needs_device=True),
            "mkdir": HandlerSpec(
                self.cmd_mkdir, "mkdir <path>", "Create a directory on the device", needs_device=True
            ),
            "shell": HandlerSpec(
                self.cmd_shell, "shell [cmd]", "Run a command, or open an interactive shell",
                needs_device=True,
            ),
            "sudo": HandlerSpec(self.cmd_sudo, "sudo <cmd>", "Run a command as root", needs_device=True),
            "install": HandlerSpec(self.cmd_install, "install <apk>", "Install an APK", needs_device=True),
            "uninstall": HandlerSpec(
                self.cmd_uninstall, "uninstall <package>", "Remove an app", needs_device=True
            ),
            "reboot": HandlerSpec(
                self.cmd_reboot, "reboot [system|recovery|bootloader|fastboot|sideload]",
                "Reboot the device", needs_device=True,
            ),
            "dli": HandlerSpec(
                self.cmd_dli, "dli <url>", "Download and install a root module", needs_device=True
            ),
            "shizuku": HandlerSpec(
                self.cmd_shizuku, "shizuku", "Start the Shizuku service", needs_device=True
            ),
        }

    def cmd_info(self, args: str) -> None:
        device = self._device()

        table = Table(title="Device Information", show_header=False)
        table.add_column("Property", style="cyan")
        table.add_column("Value", style="green")
        table.add_row("Serial", device.serial)
        table.add_row("Model", device.model or "Unknown")
        table.add_row("Device", device.codename or "Unknown")
        table.add_row("Status", device.status)
        if device.has_details:
            table.add_row("Android", f"{device.android_version} (API {device.api_level})")
        self.console.print(table)

    def cmd_push(self, args: str) -> None:
        device = self._device()
        tokens = split_args(args, "push <local> [remote]", 1, 2)
        local = Path(tokens[0])
        remote = tokens[1] if len(tokens) > 1 else self.config.default_remote_dir

        if not local.exists():
            raise LocalFileNotFoundError(str(local))

        self.console.print(f"Pushing {local} -> {remote}")
        self._report(self.adb.push(device.serial, str(local), remote), "Push complete.", f"push {local}")

    def cmd_pull(self, args: str) -> None:
        device = self._device()
        tokens = split_args(args, "pull <remote> [local]", 1, 2)
        remote = tokens[0]
        local = tokens[1] if len(tokens) > 1 else remote_basename(remote)

        self.console.print(f"Pulling {remote} -> {local}")
        self._report(self.adb.pull(device.serial, remote, local), "Pull complete.", f"pull {remote}")

    def cmd_ls(self, args: str) -> None:
        device = self._device()
        tokens = split_args(args, "ls [path]", 0, 1)
        path = tokens[0] if tokens else self.config.default_list_path
        self._report(self.adb.shell(device.serial, f"ls -la {shlex.quote(path)}"), failure=path)

    def cmd_rm(self, args: str) -> None:
        device = self._device()
        (path,) = split_args(args, "rm <path>", 1, 1)
        self._report(self.adb.shell(device.serial, f"rm {shlex.quote(path)}"), f"Deleted {path}", path)

    def cmd_mkdir(self, args: str) -> None:
        device = self._device()
        (path,) = split_args(args, "mkdir <path>", 1, 1)
        self._report(
            self.adb.shell(device.serial, f"mkdir -p {shlex.quote(path)}"), f"Created {path}", path
        )

    def cmd_shell(self, args: str) -> None:
        device = self._device()
        if not args:
            self._interactive_shell(device.serial)
            return
        self._report(self.adb.shell(device.serial, args), failure=args)

    def _install_sudo_helper(self, serial: str) -> None:
        """Put a ``sudo`` wrapper around ``su -c`` on the device PATH."""
        helper = ensure_directory(Path(self.config.download_dir)) / "sudo"
        helper.write_text(SUDO_HELPER, newline="\n")

        pushed = self.adb.push(serial, str(helper), SUDO_HELPER_REMOTE)
        if pushed.ok:
            pushed = self.adb.shell(serial, f"chmod 755 {SUDO_HELPER_REMOTE}")
        if not pushed.ok:
            logger.warning(f"sudo helper unavailable on {serial}: {pushed.error_text.strip()}")

    def _interactive_shell(self, serial: str) -> None:
        try:
            self._install_sudo_helper(serial)
        except (FolkError, OSError) as e:
            logger.warning(f"Could not prepare sudo helper: {e}")

        self.console.print("Entering interactive shell with sudo support. Type 'exit' to return.")
        self.console.rule()
        self.terminal(self.adb.interactive_shell_argv(serial, INTERACTIVE_SHELL_COMMAND))
        self.console.rule()
        self.console.print("Exited shell mode.")

    def cmd_sudo(self, args: str) -> None:
        device = self._device()
        if not args:
            raise InvalidArgumentsError("usage: sudo <cmd>")
        self._report(self.adb.su(device.serial, args), failure=args)

    def cmd_install(self, args: str) -> None:
        device = self._device()
        (apk,) = split_args(args, "install <apk>", 1, 1)
        if not Path(apk).exists():
            raise LocalFileNotFoundError(apk)

        self.console.print(f"Installing {apk}...")
        self._report(self.adb.install(device.serial, apk), "Installed.", f"install {apk}")

    def cmd_uninstall(self, args: str) -> None:
        device = self._device()
        (package,) = split_args(args, "uninstall <package>", 1, 1)
        self._report(self.adb.uninstall(device.serial, package), f"Uninstalled {package}.", package)

    def cmd_reboot(self, args: str) -> None:
        device = self._device()
        target = args.strip().lower() or "system"
        if target not in REBOOT_TARGETS:
            raise InvalidArgumentsError(f"{target} (expected one of: {', '.join(REBOOT_TARGETS)})")

        self.console.print(f"Rebooting device to {target} mode...")
        self._report(self.adb.reboot(device.serial, target), "Device is rebooting...", f"reboot {target}")

    def cmd_dli(self, args: str) -> None:
        device = self._device()
        url = args.strip()
        if not url:
            raise InvalidArgumentsError("usage: dli <url>")
        self.installer.install_from_url(device.serial, url)

    def cmd_shizuku(self, args: str) -> None:
        device = self._device()
        self.console.print("Activating Shizuku...")

        result = self.adb.shell(device.serial, f"pm path {SHIZUKU_PACKAGE}")
        package_dir = _package_dir(result.text) if result.ok else None
        if package_dir is None:
            raise FolkError(f"Shizuku app not found (package: {SHIZUKU_PACKAGE})")

        library = f"{package_dir}/{SHIZUKU_LIBRARY}"
        self.console.print(f"Executing: {library}")
        self._report(self.adb.shell(device.serial, library), "Shizuku started.", "shizuku")


def _package_dir(pm_output: str) -> Optional[str]:
    """Install directory from ``pm path`` output (``package:/data/app/.../base.apk``)."""
    for line in pm_output.splitlines():
        line = line.strip()
        if line.startswith("package:"):
            apk = line[len("package:"):].strip()
            return apk.rsplit("/", 1)[0] if "/" in apk else None
    return None
