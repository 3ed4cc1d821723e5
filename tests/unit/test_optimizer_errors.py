from __future__ import annotations

from pathlib import Path

from respimg.optimizer.errors import (
    ImageProcessingError,
    OptimizerError,
    SourceDirectoryError,
    TargetDirectoryError,
)


def test_source_directory_error_message() -> None:
    err = SourceDirectoryError(Path("photos"), PermissionError("denied"))
    assert isinstance(err, OptimizerError)
    assert str(err) == "Source directory unavailable: photos: denied"
    assert err.path == Path("photos")
    assert isinstance(err.cause, PermissionError)


def test_target_directory_error_without_cause() -> None:
    err = TargetDirectoryError(Path("out"))
    assert str(err) == "Cannot create output directory out"
    assert err.cause is None


def test_image_processing_error_names_output() -> None:
    err = ImageProcessingError(Path("a/b.jpg"), OSError("disk full"), output=Path("out/b-800.webp"))
    assert str(err) == "Failed to process image a/b.jpg while writing b-800.webp: disk full"
    assert err.output == Path("out/b-800.webp")


def test_image_processing_error_minimal() -> None:
    err = ImageProcessingError(Path("b.jpg"))
    assert str(err) == "Failed to process image b.jpg"
