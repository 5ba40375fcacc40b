"""Root module download, detection and installation."""

import shlex
import zipfile
from enum import Enum
from pathlib import Path
from typing import Callable, Optional

import requests
from rich.console import Console
from tqdm import tqdm

from ..adb.client import ADBClient
from ..config import FolkConfig
from ..errors import DownloadError, NoRootProviderError
from ..util.logging import get_logger
from ..util.paths import ensure_directory, filename_from_url, format_size, join_remote
from .base import report_result

logger = get_logger(__name__)

CHUNK_SIZE = 1024 * 256


class RootProvider(Enum):
    APATCH = "APatch/FolkPatch"
    KERNELSU = "KernelSU"
    MAGISK = "Magisk"


# Checked in this order; the first one answering wins
PROVIDER_CHECKS = (
    (RootProvider.APATCH, "apd -V"),
    (RootProvider.KERNELSU, "ksud -V"),
    (RootProvider.MAGISK, "magisk -V"),
)

INSTALL_COMMANDS = {
    RootProvider.APATCH: "/data/adb/apd module install {zip}",
    RootProvider.KERNELSU: "/data/adb/ksud module install {zip}",
    RootProvider.MAGISK: "magisk --install-module {zip}",
}

Downloader = Callable[[str, Path, int], Path]


def download_file(url: str, destination: Path, timeout: int = 60) -> Path:
    """Stream ``url`` to ``destination`` with a progress bar.

    A partially written file is removed on failure.

    Raises:
        DownloadError: On any HTTP or local write error
    """
    ensure_directory(destination.parent)
    logger.info(f"Downloading {url} -> {destination}")

    try:
        with requests.get(url, stream=True, timeout=timeout) as resp:
            resp.raise_for_status()
            total = int(resp.headers.get("content-length", 0)) or None

            with open(destination, "wb") as f, tqdm(
                total=total, unit="B", unit_scale=True, desc=destination.name
            ) as pbar:
                for chunk in resp.iter_content(chunk_size=CHUNK_SIZE):
                    if chunk:
                        f.write(chunk)
                        pbar.update(len(chunk))
    except (requests.RequestException, OSError) as e:
        destination.unlink(missing_ok=True)
        raise DownloadError(f"{url}: {e}") from e

    logger.info(f"Saved {destination.name} ({format_size(destination.stat().st_size)})")
    return destination


def is_module_zip(path: Path) -> bool:
    """Check whether an archive looks like a root module (has ``module.prop``)."""
    if not zipfile.is_zipfile(path):
        return False
    try:
        with zipfile.ZipFile(path) as archive:
            return any(Path(name).name == "module.prop" for name in archive.namelist())
    except zipfile.BadZipFile:
        return False


class ModuleInstaller:
    """Pushes module archives to a device and installs them through its root manager."""

    def __init__(
        self,
        adb: ADBClient,
        console: Console,
        config: Optional[FolkConfig] = None,
        downloader: Optional[Downloader] = None,
    ):
        self.adb = adb
        self.console = console
        self.config = config or FolkConfig()
        self.downloader = downloader or download_file

    def detect_root_provider(self, serial: str) -> Optional[RootProvider]:
        for provider, check in PROVIDER_CHECKS:
            result = self.adb.su(serial, check)
            if result.ok:
                logger.debug(f"{provider.value} answered '{check}' on {serial}")
                return provider
        return None

    def install_module(self, serial: str, remote_zip: str) -> RootProvider:
        """Install an archive already on the device.

        Raises:
            NoRootProviderError: If no supported root manager is present
            ProcessFailedError: If the install command fails
        """
        provider = self.detect_root_provider(serial)
        if provider is None:
            raise NoRootProviderError(serial)

        self.console.print(f"Detected root solution: [cyan]{provider.value}[/cyan]")
        self.console.print("Installing module...")
        command = INSTALL_COMMANDS[provider].format(zip=shlex.quote(remote_zip))
        report_result(
            self.console,
            self.adb.su(serial, command),
            success="Module installed. Reboot to activate it.",
            failure=f"{provider.value} module install",
        )
        return provider

    def push_to_storage(self, serial: str, local_path: Path) -> str:
        """Push a local file to the default storage root and return its device path."""
        remote = join_remote(self.config.default_remote_dir, local_path.name)
        self.console.print(f"Pushing {local_path.name} to {remote}...")
        result = self.adb.push(serial, str(local_path), remote)
        report_result(self.console, result, failure=f"push {local_path.name}")
        return remote

    def install_from_url(self, serial: str, url: str) -> RootProvider:
        """Download, push, then install a module; any failing step stops the rest."""
        local = Path(self.config.download_dir) / filename_from_url(url)
        self.console.print(f"Downloading: {url}")
        self.downloader(url, local, self.config.download_timeout)

        if not is_module_zip(local):
            self.console.print(
                f"[yellow]Warning: {local.name} has no module.prop; it may not be a valid module[/yellow]"
            )

        remote = self.push_to_storage(serial, local)
        return self.install_module(serial, remote)
