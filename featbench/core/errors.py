"""Shared error types.

The goal is to make errors explicit and easy to handle at the CLI boundary.
"""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(eq=False)
class AppError(Exception):
    """Base error for benchmark failures."""

    message: str
    cause: Exception | None = None

    def __str__(self) -> str:  # pragma: no cover
        if self.cause is None:
            return self.message
        return f"{self.message} (cause: {self.cause})"


class ValidationError(AppError):
    """Invalid user input or configuration."""


class ConfigurationError(ValidationError):
    """A dataset or detector does not satisfy the capability it is used for."""


class DetectorError(AppError):
    """A detector could not produce results."""


@dataclass(eq=False)
class ExtractionError(DetectorError):
    """Extraction failed on one input; abandons that detector's pass."""

    detector_name: str = ""
    input_index: int = -1


class InfrastructureError(AppError):
    """IO/OS/driver/FS failures."""
