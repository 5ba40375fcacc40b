"""Utility functions for local and device-side path handling."""

import posixpath
from pathlib import Path
from urllib.parse import unquote, urlparse

DEFAULT_MODULE_NAME = "downloaded_module.zip"


def ensure_directory(path: Path) -> Path:
    """Ensure directory exists, creating it if necessary."""
    path.mkdir(parents=True, exist_ok=True)
    return path


def safe_filename(filename: str) -> str:
    """Create a safe filename by removing/replacing problematic characters."""
    replacements = {
        "/": "_",
        "\\": "_",
        ":": "_",
        "*": "_",
        "?": "_",
        '"': "_",
        "<": "_",
        ">": "_",
        "|": "_",
        "\n": "_",
        "\r": "_",
        "\t": "_",
    }

    safe_name = filename
    for old, new in replacements.items():
        safe_name = safe_name.replace(old, new)

    # Remove leading/trailing whitespace and dots
    safe_name = safe_name.strip(" .")

    if not safe_name:
        safe_name = "unknown"

    return safe_name


def remote_basename(remote_path: str) -> str:
    """Return the final segment of a device-side path.

    Trailing slashes are ignored, so ``/sdcard/Download/`` yields ``Download``.
    """
    name = posixpath.basename(remote_path.rstrip("/"))
    return name or remote_path


def join_remote(directory: str, name: str) -> str:
    """Join a device-side directory and a file name with a single slash."""
    return directory.rstrip("/") + "/" + name


def filename_from_url(url: str) -> str:
    """Derive a local file name from a download URL.

    The query string is dropped; an empty result falls back to
    ``downloaded_module.zip``.
    """
    path = unquote(urlparse(url).path)
    name = path.replace("\\", "/").rsplit("/", 1)[-1]
    if not name:
        return DEFAULT_MODULE_NAME
    return safe_filename(name)


def format_size(size_bytes: float) -> str:
    """Format file size in human readable format."""
    if size_bytes == 0:
        return "0 B"

    size_names = ["B", "KB", "MB", "GB", "TB"]
    i = 0
    while size_bytes >= 1024.0 and i < len(size_names) - 1:
        size_bytes /= 1024.0
        i += 1

    return f"{size_bytes:.1f} {size_names[i]}"
