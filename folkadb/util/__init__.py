"""Utility module initialization."""

from .logging import get_logger, setup_logging
from .paths import (
    ensure_directory,
    filename_from_url,
    format_size,
    join_remote,
    remote_basename,
    safe_filename,
)

__all__ = [
    # logging
    "get_logger",
    "setup_logging",
    # paths
    "ensure_directory",
    "filename_from_url",
    "format_size",
    "join_remote",
    "remote_basename",
    "safe_filename",
]
