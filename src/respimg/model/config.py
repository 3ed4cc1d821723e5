"""Optimizer configuration for respimg batch runs.

This module replaces the compiled-in constants of a one-off image script with
an explicit configuration structure handed to the entry point. Defaults are the
values used when the CLI is invoked without any flags.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any

DEFAULT_SOURCE_DIR = Path("dist/assets/img/photos")
DEFAULT_TARGET_DIR = Path("dist/assets/img/photos/optimized")
DEFAULT_WIDTHS: tuple[int, ...] = (800, 1200, 1600, 2400, 3200)
DEFAULT_SOURCE_FORMATS: tuple[str, ...] = ("jpg", "jpeg", "png")
DEFAULT_SNIPPET_PATH = Path("picture-elements.html")
DEFAULT_PUBLIC_PREFIX = "photos/optimized/"


class OutputFormat(Enum):
    """Encoded output formats."""

    WEBP = "webp"
    JPG = "jpg"

    @property
    def pillow_format(self) -> str:
        return "WEBP" if self is OutputFormat.WEBP else "JPEG"

    @property
    def mime_type(self) -> str:
        return "image/webp" if self is OutputFormat.WEBP else "image/jpeg"


class ResizeFit(Enum):
    """How a target width bounds the resized image."""

    INSIDE = "inside"  # Neither dimension exceeds the target width
    WIDTH = "width"  # Only the width is bounded; height follows the aspect ratio


def _check_quality(name: str, value: int) -> None:
    if not 1 <= value <= 100:
        raise ValueError(f"Invalid {name} quality {value}. Must be between 1 and 100")


@dataclass(frozen=True)
class QualityPolicy:
    """Encoder quality for a run.

    With ``maximum`` set the policy is two-tier: sized variants at or above
    ``large_threshold`` and all full-resolution re-encodes use ``maximum``.
    With ``maximum=None`` every output uses ``standard``.
    """

    standard: int = 85
    maximum: int | None = 90
    large_threshold: int = 2400

    def __post_init__(self) -> None:
        _check_quality("standard", self.standard)
        if self.maximum is not None:
            _check_quality("maximum", self.maximum)
        if self.large_threshold < 1:
            raise ValueError(f"Large threshold must be >= 1, got {self.large_threshold}")

    @property
    def is_flat(self) -> bool:
        return self.maximum is None

    def for_width(self, width: int | None) -> int:
        """Quality for a sized variant, or for a full-resolution re-encode when width is None."""
        if self.maximum is None:
            return self.standard
        if width is None or width >= self.large_threshold:
            return self.maximum
        return self.standard


def _parse_list(value: str | Iterable[str]) -> list[str]:
    if isinstance(value, str):
        items = value.split(",")
    else:
        items = list(value)
    return [item.strip().lower().lstrip(".") for item in items if item and item.strip()]


def _unique(items: Iterable[Any]) -> list[Any]:
    seen: list[Any] = []
    for item in items:
        if item not in seen:
            seen.append(item)
    return seen


@dataclass
class OptimizerConfig:
    """Configuration for a single preprocessing run."""

    source_dir: Path = DEFAULT_SOURCE_DIR
    target_dir: Path = DEFAULT_TARGET_DIR

    # Target widths, normalized to ascending unique values
    widths: tuple[int, ...] = DEFAULT_WIDTHS

    # Output formats in emission order
    formats: tuple[OutputFormat, ...] = (OutputFormat.WEBP, OutputFormat.JPG)

    # Source file extensions considered during discovery (without the dot)
    source_formats: tuple[str, ...] = DEFAULT_SOURCE_FORMATS

    quality: QualityPolicy = field(default_factory=QualityPolicy)

    # Leave outputs that already exist untouched
    skip_existing: bool = True

    # Emit <stem>.<format> full-resolution re-encodes
    full_size: bool = True

    fit: ResizeFit = ResizeFit.INSIDE

    # Files processed concurrently (1 keeps the run strictly sequential)
    workers: int = 1

    # Where the <picture> fragment goes; None disables it
    snippet_path: Path | None = DEFAULT_SNIPPET_PATH

    # URL prefix for generated files inside the fragment
    public_prefix: str = DEFAULT_PUBLIC_PREFIX

    def __post_init__(self) -> None:
        widths = sorted(set(int(w) for w in self.widths))
        if not widths:
            raise ValueError("At least one target width is required")
        if widths[0] < 1:
            raise ValueError(f"Widths must be >= 1, got {widths[0]}")
        self.widths = tuple(widths)

        formats = _unique(OutputFormat(f) if isinstance(f, str) else f for f in self.formats)
        if not formats:
            raise ValueError("At least one output format is required")
        self.formats = tuple(formats)

        source_formats = _unique(_parse_list(self.source_formats))
        if not source_formats:
            raise ValueError("At least one source format is required")
        self.source_formats = tuple(source_formats)

        if self.workers < 1:
            raise ValueError(f"Workers must be >= 1, got {self.workers}")

        self.source_dir = Path(self.source_dir)
        self.target_dir = Path(self.target_dir)
        if self.snippet_path is not None:
            self.snippet_path = Path(self.snippet_path)

    @classmethod
    def from_cli(
        cls,
        *,
        source_dir: Path = DEFAULT_SOURCE_DIR,
        target_dir: Path = DEFAULT_TARGET_DIR,
        widths: str = ",".join(str(w) for w in DEFAULT_WIDTHS),
        formats: str = "webp,jpg",
        source_formats: str = ",".join(DEFAULT_SOURCE_FORMATS),
        quality: int = 85,
        max_quality: int | None = 90,
        large_threshold: int = 2400,
        skip_existing: bool = True,
        full_size: bool = True,
        fit: str = "inside",
        workers: int = 1,
        snippet_path: Path | None = DEFAULT_SNIPPET_PATH,
        public_prefix: str = DEFAULT_PUBLIC_PREFIX,
    ) -> OptimizerConfig:
        """Build an OptimizerConfig from CLI argument values.

        Raises:
            ValueError: If any argument has an invalid value
        """
        try:
            width_values = [int(w) for w in _parse_list(widths)]
        except ValueError as exc:
            raise ValueError(
                f"Invalid widths '{widths}'. Expected a comma-separated list of integers"
            ) from exc

        format_values: list[OutputFormat] = []
        for name in _parse_list(formats):
            if name == "jpeg":
                name = "jpg"
            try:
                format_values.append(OutputFormat(name))
            except ValueError as exc:
                valid_values = [fmt.value for fmt in OutputFormat]
                raise ValueError(
                    f"Invalid output format '{name}'. Valid values: {valid_values}"
                ) from exc

        try:
            fit_mode = ResizeFit(fit)
        except ValueError as exc:
            valid_values = [mode.value for mode in ResizeFit]
            raise ValueError(f"Invalid fit '{fit}'. Valid values: {valid_values}") from exc

        return cls(
            source_dir=source_dir,
            target_dir=target_dir,
            widths=tuple(width_values),
            formats=tuple(format_values),
            source_formats=tuple(_parse_list(source_formats)),
            quality=QualityPolicy(
                standard=quality, maximum=max_quality, large_threshold=large_threshold
            ),
            skip_existing=skip_existing,
            full_size=full_size,
            fit=fit_mode,
            workers=workers,
            snippet_path=snippet_path,
            public_prefix=public_prefix,
        )

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for serialization/logging."""
        return {
            "source_dir": str(self.source_dir),
            "target_dir": str(self.target_dir),
            "widths": list(self.widths),
            "formats": [fmt.value for fmt in self.formats],
            "source_formats": list(self.source_formats),
            "quality": {
                "standard": self.quality.standard,
                "maximum": self.quality.maximum,
                "large_threshold": self.quality.large_threshold,
            },
            "skip_existing": self.skip_existing,
            "full_size": self.full_size,
            "fit": self.fit.value,
            "workers": self.workers,
            "snippet_path": str(self.snippet_path) if self.snippet_path else None,
            "public_prefix": self.public_prefix,
        }

    def __repr__(self) -> str:
        return (
            f"OptimizerConfig("
            f"source_dir={str(self.source_dir)!r}, "
            f"target_dir={str(self.target_dir)!r}, "
            f"widths={list(self.widths)}, "
            f"formats={[fmt.value for fmt in self.formats]}, "
            f"quality={self.quality.standard}/{self.quality.maximum}, "
            f"skip_existing={self.skip_existing}, "
            f"workers={self.workers}"
            f")"
        )


__all__ = [
    "DEFAULT_PUBLIC_PREFIX",
    "DEFAULT_SNIPPET_PATH",
    "DEFAULT_SOURCE_DIR",
    "DEFAULT_SOURCE_FORMATS",
    "DEFAULT_TARGET_DIR",
    "DEFAULT_WIDTHS",
    "OptimizerConfig",
    "OutputFormat",
    "QualityPolicy",
    "ResizeFit",
]
