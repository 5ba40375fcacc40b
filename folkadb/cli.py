"""Command Line Interface for FolkADB."""

from pathlib import Path
from typing import List, Optional

import click
from rich.console import Console

from .adb import ADBClient, FastbootClient
from .batch import BatchProcessor
from .config import DEFAULT_CONFIG_PATH, FolkConfig, load_config
from .handlers import BootloaderHandlers, BridgeHandlers, GeneralHandlers
from .monitor import ModeMonitor
from .router import CommandRouter
from .session import Session
from .shell import InteractiveShell
from .util import get_logger, setup_logging

console = Console()
logger = get_logger(__name__)


def setup_cli_logging(config: FolkConfig, verbose: bool = False):
    """Setup logging for CLI."""
    level = "DEBUG" if verbose else config.log_level
    setup_logging(level=level, log_file=config.log_file, console=console)


def build_router(session: Session, config: FolkConfig, config_path: Optional[Path] = None) -> CommandRouter:
    """Wire the three command tables into a router."""
    bridge = BridgeHandlers(session, console, config)
    bootloader = BootloaderHandlers(session, console, config)
    general = GeneralHandlers(session, console, config, config_path)
    return CommandRouter(
        session,
        console,
        bridge_commands=bridge.commands(),
        bootloader_commands=bootloader.commands(),
        global_commands=general.commands(),
    )


@click.group(invoke_without_command=True)
@click.option("--verbose", "-v", is_flag=True, help="Enable verbose logging")
@click.option("--config", "-c", "config_path", type=click.Path(dir_okay=False, path_type=Path),
              help="Configuration file path")
@click.option("--adb", "adb_path", help="Path to the adb executable")
@click.option("--fastboot", "fastboot_path", help="Path to the fastboot executable")
@click.pass_context
def cli(ctx, verbose: bool, config_path: Optional[Path], adb_path: Optional[str], fastboot_path: Optional[str]):
    """FolkADB - interactive shell for Android devices over adb and fastboot.

    Without a subcommand, connects to the attached device and starts the
    interactive shell.
    """
    config_path = config_path or DEFAULT_CONFIG_PATH
    config = load_config(config_path)
    if adb_path:
        config.adb_path = adb_path
    if fastboot_path:
        config.fastboot_path = fastboot_path

    setup_cli_logging(config, verbose)
    logger.debug(f"Using adb at {config.adb_path}, fastboot at {config.fastboot_path}")

    ctx.ensure_object(dict)
    ctx.obj["config"] = config
    ctx.obj["config_path"] = config_path
    ctx.obj["session"] = Session(ADBClient(config.adb_path), FastbootClient(config.fastboot_path))

    if ctx.invoked_subcommand is None:
        ctx.exit(_run_shell(ctx.obj))


def _run_shell(obj: dict) -> int:
    config: FolkConfig = obj["config"]
    session: Session = obj["session"]

    router = build_router(session, config, obj["config_path"])
    monitor = ModeMonitor(session, interval=config.poll_interval)
    shell = InteractiveShell(session, monitor, router, console, config)
    return shell.run()


@cli.command("devices")
@click.pass_context
def devices(ctx):
    """List ADB and fastboot devices once and exit."""
    session: Session = ctx.obj["session"]
    config: FolkConfig = ctx.obj["config"]

    BridgeHandlers(session, console, config).cmd_devices("")
    BootloaderHandlers(session, console, config).cmd_devices("")


@cli.command("batch")
@click.argument("files", nargs=-1, required=True, type=click.Path(dir_okay=False, path_type=Path))
@click.pass_context
def batch(ctx, files: List[Path]):
    """Install APKs and push other FILES to the connected device."""
    processor = BatchProcessor(ctx.obj["session"], console, ctx.obj["config"])
    ctx.exit(processor.run(list(files)))


def main():
    """Main entry point."""
    cli()


if __name__ == "__main__":
    main()
