"""Command parsing and dispatch across the adb and fastboot namespaces."""

from dataclasses import dataclass
from enum import Enum
from typing import Callable, Dict, NamedTuple, Optional, Tuple

from rich.console import Console
from rich.markup import escape
from rich.table import Table

from .errors import (
    FolkError,
    InvalidArgumentsError,
    NoDeviceError,
    OperationCancelled,
    UnknownCommandError,
)
from .session import Mode, Session
from .util.logging import get_logger

logger = get_logger(__name__)

EXIT_NAMES = ("exit", "quit")
HELP_NAMES = ("help", "?")
LEGACY_FASTBOOT_PREFIX = "fb_"


class Command(NamedTuple):
    """One parsed input line: lower-cased name plus the raw argument remainder."""

    name: str
    args: str


class CommandStatus(Enum):
    OK = "ok"
    FAILED = "failed"
    CANCELLED = "cancelled"
    UNKNOWN = "unknown"
    EXIT = "exit"


@dataclass(frozen=True)
class HandlerSpec:
    """Describes how to run a command and what it needs first.

    ``func`` receives the raw argument string and returns False to report
    failure; raising a ``FolkError`` also reports failure.
    """

    func: Callable[[str], Optional[bool]]
    usage: str = ""
    summary: str = ""
    needs_device: bool = False
    destructive: bool = False


def parse_command(line: str) -> Optional[Command]:
    """Split an input line into a command name and its argument remainder.

    Returns None for blank lines. Arguments are not tokenised here since
    every handler has its own argument format.
    """
    parts = line.strip().split(None, 1)
    if not parts:
        return None
    name = parts[0].lower()
    args = parts[1].strip() if len(parts) > 1 else ""
    return Command(name, args)


class CommandRouter:
    """Resolves a command against the global, active-mode and fallback tables.

    Resolution order:

    1. global commands (help, version, exit, ...) and the ``adb``/``fastboot``
       prefixes;
    2. the active mode's table;
    3. the bridge table, then the bootloader table, whatever the mode;
       legacy ``fb_<name>`` spellings resolve against the bootloader table;
    4. otherwise the command is unknown.

    On a name collision the active mode therefore always wins.
    """

    def __init__(
        self,
        session: Session,
        console: Console,
        bridge_commands: Dict[str, HandlerSpec],
        bootloader_commands: Dict[str, HandlerSpec],
        global_commands: Optional[Dict[str, HandlerSpec]] = None,
    ):
        self.session = session
        self.console = console
        self.namespaces: Dict[Mode, Dict[str, HandlerSpec]] = {
            Mode.BRIDGE: dict(bridge_commands),
            Mode.BOOTLOADER: dict(bootloader_commands),
        }

        self.global_commands: Dict[str, HandlerSpec] = dict(global_commands or {})
        help_spec = HandlerSpec(self._cmd_help, usage="help", summary="Show available commands")
        for name in HELP_NAMES:
            self.global_commands[name] = help_spec

        # Global names never route into a mode namespace
        for table in self.namespaces.values():
            for name in list(table):
                if name in self.global_commands or name in EXIT_NAMES:
                    del table[name]

    def resolve(self, name: str) -> Optional[Tuple[Optional[Mode], HandlerSpec]]:
        """Find the handler a bare (unprefixed) command name maps to."""
        if name in self.global_commands:
            return None, self.global_commands[name]

        active = self.session.mode
        spec = self.namespaces[active].get(name)
        if spec is not None:
            return active, spec

        for mode in (Mode.BRIDGE, Mode.BOOTLOADER):
            spec = self.namespaces[mode].get(name)
            if spec is not None:
                return mode, spec

        if name.startswith(LEGACY_FASTBOOT_PREFIX):
            spec = self.namespaces[Mode.BOOTLOADER].get(name[len(LEGACY_FASTBOOT_PREFIX):])
            if spec is not None:
                return Mode.BOOTLOADER, spec

        return None

    def dispatch(self, command: Command) -> CommandStatus:
        """Run one command and report any error as a single line.

        Errors never propagate out of here; the interactive loop always
        continues unless the command was exit/quit.
        """
        try:
            return self._dispatch(command)
        except OperationCancelled:
            self.console.print("[yellow]Operation cancelled.[/yellow]")
            return CommandStatus.CANCELLED
        except UnknownCommandError as e:
            self.console.print(f"[red]{escape(e.describe())}[/red]")
            self.console.print("Type 'help' for available commands.")
            return CommandStatus.UNKNOWN
        except FolkError as e:
            logger.debug(f"{command.name} failed: {e.describe()}")
            self.console.print(f"[red]{escape(e.describe())}[/red]")
            return CommandStatus.FAILED
        except Exception as e:
            logger.exception(f"{command.name} raised an unexpected error")
            self.console.print(f"[red]Error: {escape(str(e) or type(e).__name__)}[/red]")
            return CommandStatus.FAILED

    def _dispatch(self, command: Command) -> CommandStatus:
        name, args = command

        if name in EXIT_NAMES:
            return CommandStatus.EXIT

        for mode in Mode:
            if name == mode.value:
                return self._dispatch_prefixed(mode, args)

        resolved = self.resolve(name)
        if resolved is None:
            raise UnknownCommandError(name)

        mode, spec = resolved
        return self._invoke(mode, spec, args)

    def _dispatch_prefixed(self, mode: Mode, args: str) -> CommandStatus:
        """Handle ``adb <sub> ...`` / ``fastboot <sub> ...``."""
        sub = parse_command(args)
        if sub is None:
            names = ", ".join(sorted(self.namespaces[mode]))
            raise InvalidArgumentsError(f"usage: {mode.value} <command> [args...] ({names})")

        spec = self.namespaces[mode].get(sub.name)
        if spec is None:
            raise UnknownCommandError(f"{mode.value} {sub.name}")
        return self._invoke(mode, spec, sub.args)

    def _invoke(self, mode: Optional[Mode], spec: HandlerSpec, args: str) -> CommandStatus:
        if spec.needs_device and mode is not None and self.session.selected(mode) is None:
            raise NoDeviceError(f"no {mode.label} device selected (use 'select <index|serial>')")

        outcome = spec.func(args)
        return CommandStatus.FAILED if outcome is False else CommandStatus.OK

    def _commands_table(self, title: str, table: Dict[str, HandlerSpec]) -> Table:
        out = Table(title=title, show_header=False, box=None, padding=(0, 2))
        out.add_column("Command", style="cyan")
        out.add_column("Description")

        seen = set()
        for spec in table.values():
            # aliases share one spec
            if id(spec) in seen:
                continue
            seen.add(id(spec))
            summary = escape(spec.summary)
            if spec.destructive:
                summary = f"{summary} [red](asks for confirmation)[/red]"
            out.add_row(escape(spec.usage), summary)
        return out

    def _cmd_help(self, args: str) -> None:
        active = self.session.mode
        other = Mode.BOOTLOADER if active is Mode.BRIDGE else Mode.BRIDGE

        self.console.print(self._commands_table(f"{active.label} commands (active)", self.namespaces[active]))
        self.console.print(self._commands_table(
            f"{other.label} commands (or prefix with '{other.value}')", self.namespaces[other]
        ))

        general = dict(self.global_commands)
        general["exit"] = HandlerSpec(lambda a: None, usage="exit | quit", summary="Leave the shell")
        self.console.print(self._commands_table("General", general))

