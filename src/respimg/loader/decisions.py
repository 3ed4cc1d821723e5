"""Pure loading decisions for page images.

Every function here takes immutable descriptors and returns a decision value.
Applying a decision to an element is the job of ``respimg.loader.effects``.
The exemption predicate is always evaluated first.
"""

from __future__ import annotations

from dataclasses import dataclass, field

from respimg.loader.connection import ConnectionEstimate, QualityTier, select_quality
from respimg.loader.elements import ImageDescriptor, LoadState, Rect, Viewport, is_exempt

ABOVE_FOLD_CLASS = "above-fold"
NO_BLUR_UP_CLASS = "no-blur-up"
BLUR_UP_CLASSES = ("blur-up", "blur-up-processed")


@dataclass(frozen=True)
class PriorityDecision:
    above_fold: bool
    attributes: dict[str, str] = field(default_factory=dict)
    add_classes: tuple[str, ...] = ()
    preload_href: str | None = None
    exempt: bool = False


@dataclass(frozen=True)
class LoadDecision:
    target_state: LoadState
    chosen_source: str | None
    chosen_srcset: str | None
    tier: QualityTier | None = None
    exempt: bool = False

    @property
    def should_load(self) -> bool:
        return not self.exempt and self.target_state is LoadState.LOADING


def is_above_fold(rect: Rect, viewport: Viewport) -> bool:
    return rect.top < viewport.height and rect.left < viewport.width


def decide_priority(image: ImageDescriptor, viewport: Viewport) -> PriorityDecision:
    """Eager, high-priority fetch above the fold; native lazy loading below it."""
    if is_exempt(image):
        return PriorityDecision(above_fold=False, exempt=True)

    if is_above_fold(image.rect, viewport):
        return PriorityDecision(
            above_fold=True,
            attributes={"loading": "eager", "fetchpriority": "high"},
            add_classes=(ABOVE_FOLD_CLASS,),
            preload_href=image.src if not image.data_src and image.src else None,
        )

    attributes = {} if image.loading else {"loading": "lazy"}
    return PriorityDecision(above_fold=False, attributes=attributes)


def first_srcset_url(srcset: str | None) -> str | None:
    """First URL of a ``srcset`` string, without its descriptor."""
    if not srcset:
        return None
    candidate = srcset.split(",")[0].strip()
    return candidate.split()[0] if candidate else None


def choose_source(image: ImageDescriptor, tier: QualityTier) -> tuple[str | None, str | None]:
    """Pick the (src, srcset) pair to preload for ``image`` at ``tier``.

    On LOW and MEDIUM tiers the WebP <source> of an enclosing <picture> replaces
    the original, when there is one. Otherwise the deferred ``data-*`` values are
    preferred over the current attributes.
    """
    src = image.data_src or image.src
    srcset = image.data_srcset or image.srcset
    if tier.prefers_compressed and image.in_picture:
        webp_src = first_srcset_url(image.webp_srcset)
        if webp_src:
            return webp_src, image.webp_srcset
    return src, srcset


def decide_load(image: ImageDescriptor, connection: ConnectionEstimate) -> LoadDecision:
    if is_exempt(image):
        return LoadDecision(
            target_state=image.state,
            chosen_source=image.src,
            chosen_srcset=image.srcset,
            exempt=True,
        )
    if image.state is LoadState.LOADED:
        return LoadDecision(
            target_state=LoadState.LOADED,
            chosen_source=image.src,
            chosen_srcset=image.srcset,
        )
    tier = select_quality(connection)
    src, srcset = choose_source(image, tier)
    return LoadDecision(
        target_state=LoadState.LOADING,
        chosen_source=src,
        chosen_srcset=srcset,
        tier=tier,
    )


def needs_deferral(image: ImageDescriptor) -> bool:
    """Images carrying deferred sources wait for the intersection watcher."""
    if is_exempt(image) or image.state is not LoadState.UNLOADED:
        return False
    return bool(image.data_src or image.data_srcset)


def decide_blur_up(image: ImageDescriptor) -> bool:
    if is_exempt(image) or NO_BLUR_UP_CLASS in image.classes:
        return False
    if "blur-up-processed" in image.classes or image.in_picture:
        return False
    return bool(image.src) and image.state is not LoadState.LOADED


__all__ = [
    "ABOVE_FOLD_CLASS",
    "BLUR_UP_CLASSES",
    "LoadDecision",
    "PriorityDecision",
    "choose_source",
    "decide_blur_up",
    "decide_load",
    "decide_priority",
    "first_srcset_url",
    "is_above_fold",
    "needs_deferral",
]
