"""Operation handlers for the two command namespaces and the global commands."""

from .base import BaseHandlers, report_result, split_args
from .bootloader import BootloaderHandlers
from .bridge import BridgeHandlers
from .general import GeneralHandlers
from .modules import ModuleInstaller, RootProvider, download_file, is_module_zip

__all__ = [
    "BaseHandlers",
    "BootloaderHandlers",
    "BridgeHandlers",
    "GeneralHandlers",
    "ModuleInstaller",
    "RootProvider",
    "download_file",
    "is_module_zip",
    "report_result",
    "split_args",
]
