"""Apply loader decisions to page elements.

These are the only functions that mutate elements. They are deliberately
dumb: every choice has already been made by ``respimg.loader.decisions``.
"""

from __future__ import annotations

from respimg.loader.background import BG_PROPERTY, css_url
from respimg.loader.decisions import BLUR_UP_CLASSES, PriorityDecision
from respimg.loader.elements import ElementLike

EXEMPT_CLEARED_CLASSES = ("loading", "blur-up", "blur-up-processed", "loaded")
EXEMPT_CLEARED_STYLES = ("filter", "opacity", "transition", "transform")
EXEMPT_CLEARED_ATTRIBUTES = ("loading", "data-src", "data-srcset")


def apply_priority(element: ElementLike, decision: PriorityDecision) -> None:
    if decision.exempt:
        return
    for name, value in decision.attributes.items():
        element.set_attribute(name, value)
    element.classes.update(decision.add_classes)


def apply_blur_up(element: ElementLike) -> None:
    element.classes.update(BLUR_UP_CLASSES)


def apply_loading(element: ElementLike) -> None:
    element.classes.add("loading")


def apply_loaded(element: ElementLike, src: str | None, srcset: str | None) -> None:
    """Swap in the preloaded source and mark the element loaded."""
    if src:
        element.set_attribute("src", src)
    if srcset:
        element.set_attribute("srcset", srcset)
    element.classes.discard("loading")
    element.classes.add("loaded")
    element.remove_attribute("data-src")
    element.remove_attribute("data-srcset")


def clean_exempt(element: ElementLike) -> None:
    """Strip anything that would delay or distort a logo image.

    Deferred sources are promoted to ``src``/``srcset`` so the logo loads at once.
    """
    for deferred, eager in (("data-src", "src"), ("data-srcset", "srcset")):
        value = element.get_attribute(deferred)
        if value:
            element.set_attribute(eager, value)
    for name in EXEMPT_CLEARED_CLASSES:
        element.classes.discard(name)
    for prop in EXEMPT_CLEARED_STYLES:
        element.set_style_property(prop, "")
    for attr in EXEMPT_CLEARED_ATTRIBUTES:
        element.remove_attribute(attr)


def set_background(element: ElementLike, src: str) -> None:
    element.set_style_property(BG_PROPERTY, css_url(src))


def start_background(element: ElementLike, placeholder: str) -> None:
    element.classes.add("blur-loading")
    set_background(element, placeholder)


def finish_background(element: ElementLike, *, loaded: bool = True) -> None:
    element.classes.discard("blur-loading")
    if loaded:
        element.classes.add("blur-loaded")


__all__ = [
    "apply_blur_up",
    "apply_loaded",
    "apply_loading",
    "apply_priority",
    "clean_exempt",
    "finish_background",
    "set_background",
    "start_background",
]
