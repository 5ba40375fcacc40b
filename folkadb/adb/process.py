"""Spawn external executables and capture their output."""

import subprocess
from dataclasses import dataclass
from typing import Sequence

from ..errors import ProcessStartError
from ..util.logging import get_logger

logger = get_logger(__name__)


@dataclass(frozen=True)
class ProcessResult:
    """Captured output of a finished child process."""

    stdout: bytes
    stderr: bytes
    exit_code: int

    @property
    def ok(self) -> bool:
        return self.exit_code == 0

    @property
    def text(self) -> str:
        """Decoded stdout."""
        return self.stdout.decode("utf-8", errors="replace")

    @property
    def error_text(self) -> str:
        """Decoded stderr."""
        return self.stderr.decode("utf-8", errors="replace")


def run(executable: str, args: Sequence[str]) -> ProcessResult:
    """Run an executable to completion and capture stdout and stderr.

    Each element of ``args`` reaches the child as a single argument; no shell
    is involved. There is no timeout: the call blocks until the child exits.

    Args:
        executable: Path or name of the executable
        args: Argument vector, excluding the executable itself

    Returns:
        The captured output and the unmodified exit code

    Raises:
        ProcessStartError: If the process could not be created at all
    """
    cmd = [executable, *args]
    logger.debug(f"Running: {cmd}")

    try:
        completed = subprocess.run(cmd, capture_output=True, stdin=subprocess.DEVNULL)
    except FileNotFoundError as e:
        raise ProcessStartError(f"{executable} not found") from e
    except OSError as e:
        raise ProcessStartError(f"{executable}: {e.strerror or e}") from e

    logger.debug(f"Exit code {completed.returncode} from {executable} {' '.join(args[:2])}")
    return ProcessResult(
        stdout=completed.stdout,
        stderr=completed.stderr,
        exit_code=completed.returncode,
    )
