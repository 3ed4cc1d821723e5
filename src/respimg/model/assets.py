"""Data structures for source images and the files generated from them."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

from respimg.model.config import OutputFormat


@dataclass(frozen=True, slots=True)
class ImageAsset:
    path: Path
    width: int
    height: int
    stem: str


@dataclass(frozen=True, slots=True)
class OutputFile:
    path: Path
    format: OutputFormat
    width: int | None  # None for the full-resolution re-encode
    quality: int

    @property
    def full_size(self) -> bool:
        return self.width is None
