"""Error taxonomy for FolkADB operations."""

from typing import Optional


class FolkError(Exception):
    """Base class for all operator-facing errors.

    Every subclass carries a short ``kind`` label so the router can print a
    single diagnostic line of the form ``<kind>: <detail>``.
    """

    kind = "error"

    def __init__(self, detail: Optional[str] = None):
        self.detail = detail
        super().__init__(detail or self.kind)

    def describe(self) -> str:
        """Return the one-line diagnostic shown to the operator."""
        if self.detail:
            return f"{self.kind}: {self.detail}"
        return self.kind


class NoDeviceError(FolkError):
    """No device is selected in the mode the command addresses."""

    kind = "no device selected"


class DeviceNotFoundError(FolkError):
    """A device index or serial does not match any enumerated device."""

    kind = "device not found"


class LocalFileNotFoundError(FolkError):
    """A local path given on the command line does not exist."""

    kind = "file not found"


class ProcessStartError(FolkError):
    """The external executable could not be started at all."""

    kind = "could not start process"


class ProcessFailedError(FolkError):
    """The external executable ran but exited with a non-zero status."""

    kind = "command failed"

    def __init__(self, detail: Optional[str] = None, exit_code: int = 1):
        self.exit_code = exit_code
        super().__init__(detail)

    def describe(self) -> str:
        return f"{super().describe()} (exit code {self.exit_code})"


class InvalidArgumentsError(FolkError):
    """The command was given missing or malformed arguments."""

    kind = "invalid arguments"


class UnknownCommandError(FolkError):
    """No namespace owns the command name."""

    kind = "unknown command"


class OperationCancelled(FolkError):
    """The operator declined a destructive operation."""

    kind = "cancelled"


class DownloadError(FolkError):
    """An HTTP download could not be completed."""

    kind = "download failed"


class NoRootProviderError(FolkError):
    """None of the supported root managers answered on the device."""

    kind = "no supported root solution detected"
