"""Exceptions raised by the image preprocessor.

Directory-level errors abort a run. ``ImageProcessingError`` is scoped to a
single source file and is recorded by the batch loop, which then moves on.
"""

from __future__ import annotations

from pathlib import Path


class OptimizerError(RuntimeError):
    """Base class for preprocessor failures."""


class SourceDirectoryError(OptimizerError):
    """The source root is missing or unreadable."""

    def __init__(self, path: Path, cause: Exception | None = None) -> None:
        self.path = path
        self.cause = cause
        message = f"Source directory unavailable: {path}"
        if cause is not None:
            message += f": {cause}"
        super().__init__(message)


class TargetDirectoryError(OptimizerError):
    """The output directory could not be created."""

    def __init__(self, path: Path, cause: Exception | None = None) -> None:
        self.path = path
        self.cause = cause
        message = f"Cannot create output directory {path}"
        if cause is not None:
            message += f": {cause}"
        super().__init__(message)


class ImageProcessingError(OptimizerError):
    """Decoding, encoding or writing failed for one source image."""

    def __init__(
        self,
        path: Path,
        cause: Exception | None = None,
        output: Path | None = None,
    ) -> None:
        self.path = path
        self.cause = cause
        self.output = output
        message = f"Failed to process image {path}"
        if output is not None:
            message += f" while writing {output.name}"
        if cause is not None:
            message += f": {cause}"
        super().__init__(message)


__all__ = [
    "ImageProcessingError",
    "OptimizerError",
    "SourceDirectoryError",
    "TargetDirectoryError",
]
