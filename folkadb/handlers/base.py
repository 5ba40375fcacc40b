"""Shared plumbing for the bridge and bootloader command handlers."""

import shlex
from typing import Callable, Dict, Iterable, List, Optional

import click
from rich.console import Console
from rich.table import Table

from ..adb.device import Device
from ..adb.process import ProcessResult
from ..config import FolkConfig
from ..errors import (
    InvalidArgumentsError,
    NoDeviceError,
    OperationCancelled,
    ProcessFailedError,
)
from ..router import HandlerSpec
from ..session import Mode, Session
from ..util.logging import get_logger

logger = get_logger(__name__)

KeyReader = Callable[[], str]

CONFIRM_PROMPT = "Press 'y' to confirm, any other key to cancel: "


def split_args(args: str, usage: str, minimum: int = 0, maximum: Optional[int] = None) -> List[str]:
    """Tokenise a raw argument string with shell-style quoting.

    Raises:
        InvalidArgumentsError: On unbalanced quotes or a wrong argument count
    """
    try:
        tokens = shlex.split(args)
    except ValueError as e:
        raise InvalidArgumentsError(f"{e} (usage: {usage})") from e

    if len(tokens) < minimum or (maximum is not None and len(tokens) > maximum):
        raise InvalidArgumentsError(f"usage: {usage}")
    return tokens


def report_result(
    console: Console,
    result: ProcessResult,
    success: Optional[str] = None,
    failure: Optional[str] = None,
) -> ProcessResult:
    """Print captured output, then raise on a non-zero exit.

    Raises:
        ProcessFailedError: If the process exited non-zero
    """
    output = result.text.rstrip()
    errors = result.error_text.rstrip()
    if output:
        console.print(output, markup=False, highlight=False)
    if errors:
        style = None if result.ok else "red"
        console.print(errors, style=style, markup=False, highlight=False)

    if not result.ok:
        raise ProcessFailedError(failure, exit_code=result.exit_code)
    if success:
        console.print(f"[green]{success}[/green]")
    return result


class BaseHandlers:
    """Operations common to both namespaces plus the output/confirm helpers.

    Subclasses set ``mode`` and return their command table from ``commands``.
    """

    mode: Mode = Mode.BRIDGE

    def __init__(
        self,
        session: Session,
        console: Console,
        config: Optional[FolkConfig] = None,
        read_key: Optional[KeyReader] = None,
    ):
        self.session = session
        self.console = console
        self.config = config or FolkConfig()
        self.read_key = read_key or click.getchar

    def commands(self) -> Dict[str, HandlerSpec]:
        raise NotImplementedError

    def _device(self) -> Device:
        device = self.session.selected(self.mode)
        if device is None:
            raise NoDeviceError(f"no {self.mode.label} device selected")
        return device

    def _report(
        self,
        result: ProcessResult,
        success: Optional[str] = None,
        failure: Optional[str] = None,
    ) -> ProcessResult:
        return report_result(self.console, result, success, failure)

    def _confirm(self, title: str, warnings: Iterable[str], prompt: str = CONFIRM_PROMPT) -> None:
        """Ask for a single keypress; anything but y/Y cancels.

        Raises:
            OperationCancelled: If the operator declined
        """
        self.console.print()
        self.console.print(f"[bold red]{title}[/bold red]")
        for line in warnings:
            self.console.print(line, markup=False, highlight=False)
        self.console.print()
        self.console.print(prompt, end="")

        key = self.read_key()
        self.console.print(key, markup=False, highlight=False)
        if key not in ("y", "Y"):
            logger.info(f"{title.lower()} declined")
            raise OperationCancelled()

    def _print_devices(self) -> None:
        devices = self.session.devices(self.mode)
        if not devices:
            self.console.print(f"[yellow]No {self.mode.label} devices found[/yellow]")
            return

        selected = self.session.selected_index(self.mode)
        table = Table(title=f"{self.mode.label} devices")
        table.add_column("#", justify="right")
        table.add_column("Serial", style="cyan")
        table.add_column("Status", style="magenta")
        table.add_column("Model", style="green")
        table.add_column("Device")

        for i, device in enumerate(devices):
            marker = "*" if i == selected else ""
            table.add_row(
                f"{marker}{i}",
                device.serial,
                device.status,
                device.model or "-",
                device.codename or "-",
            )
        self.console.print(table)

    def cmd_devices(self, args: str) -> None:
        self.session.refresh(self.mode)
        self._print_devices()

    def cmd_select(self, args: str) -> None:
        target = args.strip()
        if not target:
            raise InvalidArgumentsError("usage: select <index|serial>")

        if not self.session.count(self.mode):
            self.session.refresh(self.mode)

        if target.isdigit():
            device = self.session.select(self.mode, int(target))
        else:
            device = self.session.select_by_serial(self.mode, target)

        self.console.print(f"Selected device: [cyan]{device.display_name}[/cyan]")
