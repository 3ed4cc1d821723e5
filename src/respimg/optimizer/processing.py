"""Batch generation of responsive image variants.

Each source image is processed as a unit: its planned outputs are written one
after another, each through an atomic replace. With ``skip_existing`` an output
that is already on disk is left alone, so an interrupted run resumes where it
stopped and a finished run repeats with zero writes.

Per-file failures are isolated: they are logged, recorded in the report and the
batch continues. Directory-level failures and unexpected errors abort the run.
"""

from __future__ import annotations

import logging
import time
from collections.abc import Callable
from concurrent.futures import ThreadPoolExecutor
from contextlib import suppress
from dataclasses import dataclass, field
from pathlib import Path

from PIL import Image

from respimg.model.assets import ImageAsset, OutputFile
from respimg.model.config import OptimizerConfig
from respimg.optimizer.discovery import discover_sources
from respimg.optimizer.encoder import (
    atomic_write_bytes,
    encode_image,
    load_image,
    resize_image,
)
from respimg.optimizer.errors import ImageProcessingError, OptimizerError, TargetDirectoryError
from respimg.optimizer.run_logger import log_error_policy, log_optimizer_configuration
from respimg.optimizer.variants import plan_outputs

logger = logging.getLogger(__name__)

ProgressCallback = Callable[[str, dict[str, int | str]], None] | None

# EXIF orientations that swap width and height
_TRANSPOSED_ORIENTATIONS = {5, 6, 7, 8}
_EXIF_ORIENTATION = 0x0112


@dataclass(slots=True)
class FileResult:
    source: Path
    asset: ImageAsset | None = None
    written: list[Path] = field(default_factory=list)
    skipped: list[Path] = field(default_factory=list)
    error: str | None = None

    @property
    def ok(self) -> bool:
        return self.error is None


@dataclass(slots=True)
class BatchReport:
    results: list[FileResult] = field(default_factory=list)
    elapsed: float = 0.0

    @property
    def written(self) -> int:
        return sum(len(r.written) for r in self.results)

    @property
    def skipped(self) -> int:
        return sum(len(r.skipped) for r in self.results)

    @property
    def failed(self) -> list[FileResult]:
        return [r for r in self.results if not r.ok]

    @property
    def assets(self) -> list[ImageAsset]:
        return [r.asset for r in self.results if r.ok and r.asset is not None]


def _safe_emit(on_progress: ProgressCallback, event: str, payload: dict[str, int | str]) -> None:
    if on_progress is None:
        return
    with suppress(Exception):
        on_progress(event, payload)


def probe_asset(path: Path) -> ImageAsset:
    """Read oriented dimensions from the image header without decoding pixels."""
    try:
        with Image.open(path) as image:
            width, height = image.size
            orientation = image.getexif().get(_EXIF_ORIENTATION, 1)
    except (OSError, Image.DecompressionBombError, ValueError) as exc:
        raise ImageProcessingError(path, cause=exc) from exc
    if orientation in _TRANSPOSED_ORIENTATIONS:
        width, height = height, width
    return ImageAsset(path=path, width=width, height=height, stem=path.stem)


def _write_output(image: Image.Image, output: OutputFile, config: OptimizerConfig) -> None:
    if output.width is None or output.width >= image.width:
        # Full-size outputs and the native-width fallback are re-encoded as-is
        rendered = image
    else:
        rendered = resize_image(image, output.width, config.fit)
    data = encode_image(rendered, output.format, output.quality, full_size=output.full_size)
    atomic_write_bytes(output.path, data)


def process_image(path: Path, config: OptimizerConfig) -> FileResult:
    """Generate every planned output for a single source image.

    Raises:
        ImageProcessingError: If the source cannot be decoded or an output cannot be written
    """
    asset = probe_asset(path)
    result = FileResult(source=path, asset=asset)

    pending: list[OutputFile] = []
    for output in plan_outputs(asset, config):
        if config.skip_existing and output.path.exists():
            result.skipped.append(output.path)
        else:
            pending.append(output)

    if not pending:
        logger.debug("All %d outputs for %s exist; skipping", len(result.skipped), path.name)
        return result

    image = load_image(path)
    for output in pending:
        try:
            _write_output(image, output, config)
        except (OSError, ValueError, Image.DecompressionBombError) as exc:
            raise ImageProcessingError(path, cause=exc, output=output.path) from exc
        result.written.append(output.path)
        logger.debug("Created %s", output.path)
    return result


def _process_isolated(path: Path, config: OptimizerConfig) -> FileResult:
    try:
        return process_image(path, config)
    except ImageProcessingError as exc:
        log_error_policy("Optimizer", "image_failed", "skip", str(exc))
        return FileResult(source=path, error=str(exc))
    except OptimizerError:
        raise
    except Exception as exc:
        raise OptimizerError(f"Unrecoverable error while processing {path}: {exc}") from exc


def ensure_target_dir(target_dir: Path) -> None:
    try:
        target_dir.mkdir(parents=True, exist_ok=True)
    except OSError as exc:
        raise TargetDirectoryError(target_dir, cause=exc) from exc


def optimize_directory(
    config: OptimizerConfig,
    on_progress: ProgressCallback = None,
) -> BatchReport:
    """Produce every configured variant for every source image in ``config.source_dir``.

    Raises:
        SourceDirectoryError: If the source directory is missing or unreadable
        TargetDirectoryError: If the output directory cannot be created
        OptimizerError: On an unexpected failure, naming the file in progress
    """
    start = time.perf_counter()
    log_optimizer_configuration(config)
    ensure_target_dir(config.target_dir)
    sources = discover_sources(config.source_dir, config.source_formats)
    logger.info("Found %d images to process", len(sources))
    _safe_emit(on_progress, "optimize:start", {"files": len(sources)})

    report = BatchReport()

    def _record(result: FileResult) -> None:
        report.results.append(result)
        if result.ok:
            _safe_emit(
                on_progress,
                "file:done",
                {
                    "file": result.source.name,
                    "written": len(result.written),
                    "skipped": len(result.skipped),
                },
            )
        else:
            _safe_emit(on_progress, "file:failed", {"file": result.source.name})

    if config.workers > 1 and len(sources) > 1:
        with ThreadPoolExecutor(max_workers=config.workers) as pool:
            futures = [pool.submit(_process_isolated, path, config) for path in sources]
            # Consume in submission order so the report matches a sequential run
            for future in futures:
                _record(future.result())
    else:
        for path in sources:
            logger.debug("Processing %s", path.name)
            _record(_process_isolated(path, config))

    report.elapsed = time.perf_counter() - start
    _safe_emit(
        on_progress,
        "optimize:finalized",
        {"written": report.written, "skipped": report.skipped, "failed": len(report.failed)},
    )
    logger.info(
        "Finished in %.2fs (%d written, %d skipped, %d failed)",
        report.elapsed,
        report.written,
        report.skipped,
        len(report.failed),
    )
    return report


__all__ = [
    "BatchReport",
    "FileResult",
    "ensure_target_dir",
    "optimize_directory",
    "probe_asset",
    "process_image",
]
