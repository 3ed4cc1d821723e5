"""Adaptive image loading: viewport priority, deferral, quality tiers and blur-up."""

from __future__ import annotations

from respimg.loader.connection import ConnectionEstimate, QualityTier, select_quality
from respimg.loader.decisions import (
    LoadDecision,
    PriorityDecision,
    choose_source,
    decide_blur_up,
    decide_load,
    decide_priority,
    needs_deferral,
)
from respimg.loader.elements import (
    BackgroundDescriptor,
    ImageDescriptor,
    LoadState,
    PageElement,
    Rect,
    Viewport,
    is_exempt,
)
from respimg.loader.runtime import AdaptiveLoader, LoaderCapabilities, LoaderSettings, PreloadError

__all__ = [
    "AdaptiveLoader",
    "BackgroundDescriptor",
    "ConnectionEstimate",
    "ImageDescriptor",
    "LoadDecision",
    "LoadState",
    "LoaderCapabilities",
    "LoaderSettings",
    "PageElement",
    "PreloadError",
    "PriorityDecision",
    "QualityTier",
    "Rect",
    "Viewport",
    "choose_source",
    "decide_blur_up",
    "decide_load",
    "decide_priority",
    "is_exempt",
    "needs_deferral",
    "select_quality",
]
