"""Batch preprocessor producing resized WebP/JPEG variants of source images."""

from __future__ import annotations

from respimg.optimizer.errors import (
    ImageProcessingError,
    OptimizerError,
    SourceDirectoryError,
    TargetDirectoryError,
)
from respimg.optimizer.processing import BatchReport, FileResult, optimize_directory, process_image
from respimg.optimizer.variants import plan_outputs, plan_widths

__all__ = [
    "BatchReport",
    "FileResult",
    "ImageProcessingError",
    "OptimizerError",
    "SourceDirectoryError",
    "TargetDirectoryError",
    "optimize_directory",
    "plan_outputs",
    "plan_widths",
    "process_image",
]
