"""Blur-up planning for CSS background images.

Backgrounds are addressed through the ``--bg-image-url`` custom property so
stylesheet rules keep control of size and position. A ``-800`` WebP variant is
shown first, the full WebP is preloaded, and the original format is the
fallback when the WebP preload fails.
"""

from __future__ import annotations

import re
from dataclasses import dataclass

from respimg.loader.elements import mentions_logo

BG_PROPERTY = "--bg-image-url"
PLACEHOLDER_WIDTH = 800

_RASTER_SUFFIX = re.compile(r"\.(jpg|jpeg|png)$", re.IGNORECASE)
_LARGE_VARIANT = re.compile(r"-(1600|1200)\.webp$")


@dataclass(frozen=True)
class BackgroundPlan:
    original: str
    placeholder: str
    target: str
    # None when the original already was WebP
    fallback: str | None


def css_url(src: str) -> str:
    return f"url('{src}')"


def to_webp(src: str) -> str:
    return _RASTER_SUFFIX.sub(".webp", src)


def placeholder_source(webp_src: str) -> str:
    """The ``-800`` variant of a WebP source."""
    small = f"-{PLACEHOLDER_WIDTH}.webp"
    if webp_src.endswith(small):
        return webp_src
    if _LARGE_VARIANT.search(webp_src):
        return _LARGE_VARIANT.sub(small, webp_src)
    if webp_src.endswith(".webp"):
        return webp_src[: -len(".webp")] + small
    return webp_src


def plan_background(image_src: str | None) -> BackgroundPlan | None:
    """Sources to use for a background element, or None when it is skipped."""
    if not image_src or mentions_logo(image_src):
        return None
    is_webp = image_src.endswith(".webp")
    target = image_src if is_webp else to_webp(image_src)
    return BackgroundPlan(
        original=image_src,
        placeholder=placeholder_source(target),
        target=target,
        fallback=None if is_webp else image_src,
    )


def high_quality_source(image_src: str | None) -> str | None:
    """Full-resolution WebP for a background declared with its ``-800`` variant."""
    if not image_src or mentions_logo(image_src):
        return None
    small = f"-{PLACEHOLDER_WIDTH}.webp"
    if small not in image_src:
        return None
    return image_src.replace(small, ".webp")


__all__ = [
    "BG_PROPERTY",
    "BackgroundPlan",
    "css_url",
    "high_quality_source",
    "placeholder_source",
    "plan_background",
    "to_webp",
]
