"""Tests for the mode-independent commands."""

import io
from unittest.mock import MagicMock

import pytest
from rich.console import Console

from folkadb.adb.client import ADBClient
from folkadb.adb.process import ProcessResult
from folkadb.config import FolkConfig, load_config
from folkadb.errors import InvalidArgumentsError
from folkadb.handlers import GeneralHandlers
from folkadb.router import Command, CommandRouter, CommandStatus
from folkadb.session import Session


@pytest.fixture
def general(tmp_path):
    session = MagicMock(spec=Session)
    session.adb = MagicMock(spec=ADBClient)
    session.adb.version.return_value = ProcessResult(b"Android Debug Bridge version 1.0.41\n", b"", 0)
    output = io.StringIO()
    console = Console(file=output, width=200, color_system=None)
    config_path = tmp_path / "config.yaml"
    config = FolkConfig(adb_path="adb", fastboot_path="fastboot")
    handlers = GeneralHandlers(session, console, config, config_path)
    handlers.output = output
    return handlers


class TestGeneralHandlers:
    """Test version and theme."""

    def test_version(self, general):
        """Test both our version and adb's are shown."""
        general.cmd_version("")

        text = general.output.getvalue()
        assert "FolkADB v1.0.0" in text
        assert "Android Debug Bridge version 1.0.41" in text

    def test_theme_list(self, general):
        """Test the current theme is marked."""
        general.cmd_theme("")

        text = general.output.getvalue()
        assert "default (current)" in text
        assert "agnoster" in text

    def test_theme_switch_is_persisted(self, general):
        """Test only the theme is written back."""
        general.config.adb_path = "/tmp/override/adb"

        general.cmd_theme("Pure")

        assert general.config.theme == "pure"
        assert load_config(general.config_path).theme == "pure"
        assert "adb_path" not in general.config_path.read_text()

    def test_unknown_theme(self, general):
        """Test invalid names leave the theme alone."""
        with pytest.raises(InvalidArgumentsError):
            general.cmd_theme("solarized")

        assert general.config.theme == "default"
        assert not general.config_path.exists()

    def test_unwritable_config_does_not_end_session(self, general, tmp_path):
        """Test a save error is reported as a failed command."""
        general.config_path = tmp_path / "is-a-dir"
        general.config_path.mkdir()
        router = CommandRouter(general.session, general.console, {}, {}, general.commands())

        assert router.dispatch(Command("theme", "pure")) is CommandStatus.FAILED
        assert "Error:" in general.output.getvalue()
