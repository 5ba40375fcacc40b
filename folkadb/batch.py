"""Non-interactive processing of files handed over on the command line."""

from pathlib import Path
from typing import Optional, Sequence

import click
from rich.console import Console
from rich.markup import escape

from .config import FolkConfig
from .errors import FolkError, LocalFileNotFoundError, NoRootProviderError
from .handlers.base import KeyReader, report_result
from .handlers.modules import ModuleInstaller, is_module_zip
from .session import Mode, Session
from .util.logging import get_logger

logger = get_logger(__name__)

DEVICE_WAIT_SECONDS = 10


class BatchProcessor:
    """Installs APKs and pushes everything else to the selected ADB device.

    Pushed archives that carry a ``module.prop`` are installed through the
    device's root manager.
    """

    def __init__(
        self,
        session: Session,
        console: Console,
        config: Optional[FolkConfig] = None,
        read_key: Optional[KeyReader] = None,
        installer: Optional[ModuleInstaller] = None,
        wait_seconds: int = DEVICE_WAIT_SECONDS,
    ):
        self.session = session
        self.console = console
        self.config = config or FolkConfig()
        self.read_key = read_key or click.getchar
        self.installer = installer or ModuleInstaller(session.adb, console, self.config)
        self.wait_seconds = wait_seconds

    def _connect(self) -> Optional[str]:
        session = self.session
        session.refresh(Mode.BOOTLOADER)
        if session.count(Mode.BOOTLOADER):
            self.console.print("[red]Device is in fastboot mode; pushing and installing need ADB mode.[/red]")
            return None

        if not session.refresh(Mode.BRIDGE):
            self.console.print(f"Waiting for device connection ({self.wait_seconds}s timeout)...")
            if not session.wait_for_device(Mode.BRIDGE, timeout=self.wait_seconds):
                self.console.print("[red]No ADB device found. Connect a device and enable USB debugging.[/red]")
                return None

        device = session.selected(Mode.BRIDGE) or session.auto_select(Mode.BRIDGE)
        if device is None:
            return None
        self.console.print(f"Using device: [cyan]{device.display_name}[/cyan]")
        return device.serial

    def run(self, files: Sequence[Path]) -> int:
        """Process every file in order. Returns a process exit code."""
        self.console.print(f"Detected {len(files)} file(s).")
        serial = self._connect()
        if serial is None:
            return 1

        failures = 0
        for path in files:
            self.console.rule(path.name)
            try:
                self.process_file(serial, path)
            except FolkError as e:
                self.console.print(f"[red]{escape(e.describe())}[/red]")
                failures += 1

        self.console.rule()
        self.console.print("Batch processing completed.")
        return 1 if failures else 0

    def process_file(self, serial: str, path: Path) -> None:
        if not path.exists():
            raise LocalFileNotFoundError(str(path))

        suffix = path.suffix.lower()
        if suffix == ".apk" and self._ask("File is an APK. Install it? (y/n): "):
            self.console.print(f"Installing: {path}")
            result = self.session.adb.install(serial, str(path))
            report_result(self.console, result, "Installed.", f"install {path.name}")
            return

        remote = self.installer.push_to_storage(serial, path)
        if suffix == ".zip" and is_module_zip(path):
            self.console.print("Detected Magisk/KernelSU/APatch module.")
            try:
                self.installer.install_module(serial, remote)
            except NoRootProviderError:
                self.console.print(
                    "[yellow]No supported root solution detected. Module pushed but not installed.[/yellow]"
                )

    def _ask(self, prompt: str) -> bool:
        self.console.print(prompt, end="")
        key = self.read_key()
        self.console.print(key, markup=False, highlight=False)
        return key in ("y", "Y")
