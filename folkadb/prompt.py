"""Prompt rendering for the interactive shell."""

from dataclasses import dataclass
from typing import Dict

from rich.markup import escape

from .session import Mode, Session


@dataclass(frozen=True)
class Theme:
    """A prompt colour scheme.

    ``template`` receives ``mode`` (already coloured) and ``device``, which
    is ``device_template`` filled with the selected serial, or empty.
    """

    template: str
    device_template: str
    bridge_color: str = "green"
    bootloader_color: str = "red"


THEMES: Dict[str, Theme] = {
    "default": Theme("{mode}{device}> ", ":{serial}"),
    "robbyrussell": Theme("[bold green]➜[/bold green]  {mode}{device} ", ":([red]{serial}[/red])", "cyan", "yellow"),
    "agnoster": Theme("[reverse] {mode}{device} [/reverse] ", " [bold]{serial}[/bold]", "blue", "magenta"),
    "minimal": Theme("{mode}{device} $ ", "@{serial}", "white", "yellow"),
    "pure": Theme("{mode}{device} [magenta]❯[/magenta] ", " [dim]{serial}[/dim]", "blue", "red"),
}

DEFAULT_THEME = "default"


def render_prompt(session: Session, theme_name: str = DEFAULT_THEME) -> str:
    """Build the prompt markup from the active mode and its selected device."""
    theme = THEMES.get(theme_name, THEMES[DEFAULT_THEME])
    mode = session.mode
    color = theme.bridge_color if mode is Mode.BRIDGE else theme.bootloader_color

    device = session.selected(mode)
    device_part = theme.device_template.format(serial=escape(device.serial)) if device else ""

    return theme.template.format(mode=f"[{color}]{mode.value}[/{color}]", device=device_part)
