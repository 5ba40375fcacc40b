"""Configuration management for FolkADB."""

import shutil
from pathlib import Path
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field
from ruamel.yaml import YAML

DEFAULT_CONFIG_PATH = Path.home() / ".config/folkadb/config.yaml"

# Only operator preferences are written back; everything else is read-only
PERSISTED_FIELDS = ("theme",)


def _which(name: str) -> str:
    return shutil.which(name) or name


class FolkConfig(BaseModel):
    """Main configuration for FolkADB."""

    adb_path: str = Field(default_factory=lambda: _which("adb"), description="Path to ADB binary")
    fastboot_path: str = Field(
        default_factory=lambda: _which("fastboot"),
        description="Path to fastboot binary"
    )

    poll_interval: float = Field(default=3.0, gt=0, description="Device monitor period in seconds")
    default_remote_dir: str = Field(
        default="/storage/emulated/0/",
        description="Device-side destination when push is given no remote path"
    )
    default_list_path: str = Field(default="/sdcard", description="Directory listed by a bare ls")
    download_dir: Path = Field(
        default_factory=lambda: Path.cwd() / "tmp",
        description="Where dli stores downloaded modules"
    )
    download_timeout: int = Field(default=60, description="HTTP timeout for module downloads")

    log_level: str = Field(default="WARNING", description="Logging level")
    log_file: Optional[Path] = Field(default=None, description="Optional debug log file")

    # The one persisted operator preference
    theme: str = Field(default="default", description="Prompt colour scheme")

    model_config = ConfigDict(validate_assignment=True)


def load_config(config_path: Optional[Path] = None) -> FolkConfig:
    """Load configuration from file, or defaults when there is none.

    Nothing is written here; the file only appears once a preference is saved.
    """

    if config_path is None:
        config_path = DEFAULT_CONFIG_PATH

    if not config_path.exists():
        return FolkConfig()

    yaml = YAML(typ="safe")
    with open(config_path, "r") as f:
        data = yaml.load(f) or {}
    return FolkConfig(**data)


def save_config(config: FolkConfig, config_path: Optional[Path] = None) -> None:
    """Write the persisted preferences into the config file.

    Other keys already in the file are kept as they are.
    """

    if config_path is None:
        config_path = DEFAULT_CONFIG_PATH

    config_path.parent.mkdir(parents=True, exist_ok=True)

    yaml = YAML()
    yaml.default_flow_style = False

    data = None
    if config_path.exists():
        with open(config_path, "r") as f:
            data = yaml.load(f)
    if not isinstance(data, dict):
        data = {}
    data.update(config.model_dump(mode="json", include=set(PERSISTED_FIELDS)))

    with open(config_path, "w") as f:
        yaml.dump(data, f)
