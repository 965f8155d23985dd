"""Exception hierarchy for the StorCLI collector.

Every fatal condition is raised as a ``CollectorError`` subclass and handled
once, in ``main()``. ``DriveDetailError`` is the one exception the mapper
catches itself: a single malformed drive record is skipped instead of
aborting the run.
"""

from __future__ import annotations

from typing import Any


class CollectorError(Exception):
    """Base exception carrying optional structured context for logging."""

    def __init__(self, message: str, context: dict[str, Any] | None = None) -> None:
        super().__init__(message)
        self.context = context or {}

    def to_dict(self) -> dict[str, Any]:
        return {
            "error_type": self.__class__.__name__,
            "message": str(self),
            "context": self.context,
        }


class ConfigurationError(CollectorError):
    """Unreadable config file or invalid option value."""


class StorcliNotFoundError(CollectorError):
    """The StorCLI binary could not be located or executed."""


class StorcliCommandError(CollectorError):
    """StorCLI exited with a non-zero status."""

    def __init__(
        self,
        message: str,
        returncode: int | None = None,
        stderr: str | None = None,
        context: dict[str, Any] | None = None,
    ) -> None:
        context = dict(context or {})
        context["returncode"] = returncode
        super().__init__(message, context)
        self.returncode = returncode
        self.stderr = stderr


class DecodeError(CollectorError):
    """A StorCLI payload is not valid JSON or does not match the model."""


class ControllerStatusError(CollectorError):
    """StorCLI reported a non-success command status."""


class DriveDetailError(CollectorError):
    """Detailed information for one physical drive is missing or malformed."""


class OutputError(CollectorError):
    """The rendered metrics could not be written."""
