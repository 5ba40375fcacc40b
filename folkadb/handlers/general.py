"""Commands available in every mode."""

from pathlib import Path
from typing import Dict, Optional

from rich.console import Console
from rich.table import Table

from .. import __version__
from ..config import FolkConfig, save_config
from ..errors import InvalidArgumentsError
from ..prompt import THEMES
from ..router import HandlerSpec
from ..session import Session
from .base import report_result


class GeneralHandlers:
    """``version``, ``cls`` and ``theme``."""

    def __init__(
        self,
        session: Session,
        console: Console,
        config: FolkConfig,
        config_path: Optional[Path] = None,
    ):
        self.session = session
        self.console = console
        self.config = config
        self.config_path = config_path

    def commands(self) -> Dict[str, HandlerSpec]:
        return {
            "version": HandlerSpec(self.cmd_version, "version", "Show version information"),
            "cls": HandlerSpec(self.cmd_cls, "cls", "Clear the screen"),
            "theme": HandlerSpec(self.cmd_theme, "theme [name]", "List or switch prompt themes"),
        }

    def cmd_version(self, args: str) -> None:
        self.console.print(f"[bold]FolkADB[/bold] v{__version__}")
        report_result(self.console, self.session.adb.version(), failure="adb version")

    def cmd_cls(self, args: str) -> None:
        self.console.clear()

    def cmd_theme(self, args: str) -> None:
        name = args.strip().lower()
        if not name:
            table = Table(title="Prompt themes", show_header=False, box=None)
            table.add_column("Theme", style="cyan")
            for theme in THEMES:
                marker = " (current)" if theme == self.config.theme else ""
                table.add_row(f"{theme}{marker}")
            self.console.print(table)
            return

        if name not in THEMES:
            raise InvalidArgumentsError(f"unknown theme '{name}' (available: {', '.join(THEMES)})")

        self.config.theme = name
        save_config(self.config, self.config_path)
        self.console.print(f"Theme set to [cyan]{name}[/cyan]")
