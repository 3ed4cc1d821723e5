from __future__ import annotations

from collections.abc import Iterable
from pathlib import Path

from respimg.optimizer.errors import SourceDirectoryError


def discover_sources(source_dir: Path, source_formats: Iterable[str]) -> list[Path]:
    """List source images directly inside ``source_dir``, sorted by file name.

    Suffixes are matched case-insensitively, so ``Photo.JPG`` is picked up by ``jpg``.
    """

    suffixes = {f".{fmt.lower().lstrip('.')}" for fmt in source_formats}
    if not source_dir.is_dir():
        raise SourceDirectoryError(source_dir)
    try:
        entries = list(source_dir.iterdir())
    except OSError as exc:
        raise SourceDirectoryError(source_dir, cause=exc) from exc

    files = [p for p in entries if p.is_file() and p.suffix.lower() in suffixes]
    return sorted(files, key=lambda p: p.name)


__all__ = ["discover_sources"]
