"""Foreground interactive loop."""

import queue
import sys
import threading
from typing import Optional, TextIO

from rich.console import Console
from rich.markup import escape

from . import __version__
from .config import FolkConfig
from .errors import FolkError
from .monitor import ModeMonitor, TickResult
from .prompt import render_prompt
from .router import CommandRouter, CommandStatus, parse_command
from .session import Mode, Session
from .util.logging import get_logger

logger = get_logger(__name__)

INPUT_POLL_INTERVAL = 0.1


class InteractiveShell:
    """Reads command lines and dispatches them while the monitor runs.

    Lines are read on a helper thread, one per request, so the loop itself
    never blocks on input and can redraw the prompt whenever the monitor
    reports a change. No read is outstanding while a command runs, which
    leaves the terminal free for confirmation keypresses.
    """

    def __init__(
        self,
        session: Session,
        monitor: ModeMonitor,
        router: CommandRouter,
        console: Console,
        config: Optional[FolkConfig] = None,
        input_stream: Optional[TextIO] = None,
        poll_interval: float = INPUT_POLL_INTERVAL,
    ):
        self.session = session
        self.monitor = monitor
        self.router = router
        self.console = console
        self.config = config or FolkConfig()
        self.input_stream = input_stream or sys.stdin
        self.poll_interval = poll_interval

        self._lines: "queue.Queue[Optional[str]]" = queue.Queue()
        self._line_requested = threading.Event()
        self._reader: Optional[threading.Thread] = None

        self._refresh = threading.Event()
        self._refresh_lock = threading.Lock()
        self._last_tick: Optional[TickResult] = None

    def on_refresh(self, result: TickResult) -> None:
        """Monitor callback; only records the tick for the loop to pick up."""
        with self._refresh_lock:
            self._last_tick = result
        self._refresh.set()

    def auto_connect(self) -> None:
        """Pick an initial mode and device from what is attached right now."""
        session = self.session
        bridge_count = session.refresh(Mode.BRIDGE)
        bootloader_count = session.refresh(Mode.BOOTLOADER)

        if bootloader_count > 0:
            session.switch_mode(Mode.BOOTLOADER)
            device = session.select(Mode.BOOTLOADER, 0)
            self.console.print(f"[red]Fastboot device detected:[/red] {device.serial}")
        elif bridge_count == 1:
            device = session.select(Mode.BRIDGE, 0)
            details = ""
            if device.has_details:
                details = f" (Android {device.android_version}, API {device.api_level})"
            self.console.print(f"[green]Connected:[/green] {device.display_name}{details}")
        elif bridge_count > 1:
            self.console.print(
                f"[yellow]{bridge_count} devices connected.[/yellow] Use 'select <index>' to choose one:"
            )
            for i, device in enumerate(session.devices(Mode.BRIDGE)):
                self.console.print(f"  {i}: {device.display_name} [{device.status}]", markup=False)
        else:
            self.console.print(
                "[yellow]No device connected.[/yellow] Devices are picked up automatically."
            )

    def run(self) -> int:
        """Run until exit/quit or end of input. Returns the process exit code."""
        self.console.print(f"[bold]FolkADB[/bold] v{__version__}")
        self.console.print("Type 'help' for available commands.")
        self.console.print()

        try:
            self.auto_connect()
        except FolkError as e:
            self.console.print(f"[red]{escape(e.describe())}[/red]")

        self.monitor.set_callback(self.on_refresh)
        self.monitor.start()
        try:
            self._loop()
        except KeyboardInterrupt:
            self.console.print()
        finally:
            self.monitor.set_callback(None)
            self.monitor.stop()

        self.console.print("Goodbye.")
        return 0

    def _loop(self) -> None:
        while True:
            self._show_prompt()
            line = self._next_line()
            if line is None:
                self.console.print()
                return

            command = parse_command(line)
            if command is None:
                continue
            if self.router.dispatch(command) is CommandStatus.EXIT:
                return

    def _show_prompt(self) -> None:
        self.console.print(render_prompt(self.session, self.config.theme), end="")

    def _next_line(self) -> Optional[str]:
        """Wait for the next input line, redrawing the prompt on monitor changes.

        Returns None at end of input.
        """
        self._request_line()
        while True:
            try:
                return self._lines.get(timeout=self.poll_interval)
            except queue.Empty:
                pass

            if self._refresh.is_set():
                self._refresh.clear()
                with self._refresh_lock:
                    tick = self._last_tick
                if tick is not None:
                    self.console.print()
                    self.console.print(f"[dim]{escape(tick.describe())}[/dim]")
                self._show_prompt()

    def _request_line(self) -> None:
        if self._reader is None:
            self._reader = threading.Thread(target=self._read_lines, name="folkadb-input", daemon=True)
            self._reader.start()
        self._line_requested.set()

    def _read_lines(self) -> None:
        while True:
            self._line_requested.wait()
            self._line_requested.clear()

            line = self.input_stream.readline()
            if not line:
                self._lines.put(None)
                return
            self._lines.put(line)
