"""Pillow-backed decode, resize and encode helpers.

All pixel work is delegated to Pillow. The helpers here only pick resampling,
encoder options and colour-mode conversions per output format.
"""

from __future__ import annotations

import os
from io import BytesIO
from pathlib import Path
from tempfile import NamedTemporaryFile

from PIL import Image, ImageOps, UnidentifiedImageError

from respimg.model.config import OutputFormat, ResizeFit
from respimg.optimizer.errors import ImageProcessingError

# WebP encoder effort: sized variants vs. full-resolution re-encodes
WEBP_METHOD = 4
WEBP_METHOD_FULL = 5

# Effectively unbounded height for width-only fitting
_UNBOUNDED = 1_000_000


def load_image(path: Path) -> Image.Image:
    """Decode ``path`` fully, applying its EXIF orientation."""
    try:
        with Image.open(path) as raw:
            raw.load()
            image = ImageOps.exif_transpose(raw)
            if image is raw:
                image = raw.copy()
    except (OSError, UnidentifiedImageError, Image.DecompressionBombError, ValueError) as exc:
        raise ImageProcessingError(path, cause=exc) from exc
    return image


def resize_image(image: Image.Image, width: int, fit: ResizeFit = ResizeFit.INSIDE) -> Image.Image:
    """Scale ``image`` down to ``width`` keeping its aspect ratio.

    Never enlarges: asking for a width at or above the current size returns a copy.
    """

    resized = image.copy()
    box = (width, width) if fit is ResizeFit.INSIDE else (width, _UNBOUNDED)
    resized.thumbnail(box, Image.Resampling.LANCZOS)
    return resized


def _prepare_for(image: Image.Image, fmt: OutputFormat) -> Image.Image:
    if fmt is OutputFormat.JPG:
        if image.mode in ("RGBA", "LA") or (image.mode == "P" and "transparency" in image.info):
            rgba = image.convert("RGBA")
            background = Image.new("RGB", rgba.size, (255, 255, 255))
            background.paste(rgba, mask=rgba.getchannel("A"))
            return background
        if image.mode != "RGB":
            return image.convert("RGB")
        return image
    if image.mode not in ("RGB", "RGBA"):
        return image.convert("RGBA" if "A" in image.getbands() else "RGB")
    return image


def encode_image(
    image: Image.Image,
    fmt: OutputFormat,
    quality: int,
    *,
    full_size: bool = False,
) -> bytes:
    """Encode ``image`` to ``fmt`` and return the file bytes."""
    prepared = _prepare_for(image, fmt)
    buffer = BytesIO()
    if fmt is OutputFormat.WEBP:
        prepared.save(
            buffer,
            format=fmt.pillow_format,
            quality=quality,
            method=WEBP_METHOD_FULL if full_size else WEBP_METHOD,
        )
    else:
        prepared.save(
            buffer,
            format=fmt.pillow_format,
            quality=quality,
            optimize=True,
            progressive=True,
        )
    return buffer.getvalue()


def atomic_write_bytes(path: Path, data: bytes) -> None:
    """Atomically write bytes to a file by writing to a temp file then replacing.

    A crash mid-write leaves at most a stray temp file, never a truncated output.
    """
    path.parent.mkdir(parents=True, exist_ok=True)
    with NamedTemporaryFile("wb", dir=str(path.parent), prefix=f".{path.name}.", delete=False) as tmp:
        tmp_path = Path(tmp.name)
        try:
            tmp.write(data)
            tmp.flush()
            os.fsync(tmp.fileno())
        except OSError:
            tmp.close()
            tmp_path.unlink(missing_ok=True)
            raise
    try:
        os.replace(tmp_path, path)
    except OSError:
        tmp_path.unlink(missing_ok=True)
        raise


def atomic_write_text(path: Path, data: str, *, encoding: str = "utf-8") -> None:
    atomic_write_bytes(path, data.encode(encoding))


__all__ = [
    "WEBP_METHOD",
    "WEBP_METHOD_FULL",
    "atomic_write_bytes",
    "atomic_write_text",
    "encode_image",
    "load_image",
    "resize_image",
]
