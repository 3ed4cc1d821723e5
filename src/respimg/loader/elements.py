"""Page element model for the adaptive loader.

``PageElement`` is a small mutable stand-in for a DOM node. Decision code never
touches it directly: it reads immutable ``ImageDescriptor`` and
``BackgroundDescriptor`` snapshots, and only ``respimg.loader.effects`` mutates
elements.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Protocol

LOGO_CLASSES = frozenset({"logo-dark", "logo-light", "loader-logo"})
BRAND_CONTAINER_CLASS = "navbar-brand"


class LoadState(Enum):
    UNLOADED = "unloaded"
    LOADING = "loading"
    LOADED = "loaded"

    @property
    def rank(self) -> int:
        return _STATE_ORDER.index(self)

    def advance(self, target: LoadState) -> LoadState:
        """Return ``target`` if it does not move backwards from this state."""
        if target.rank < self.rank:
            raise ValueError(f"Cannot move image from {self.value} back to {target.value}")
        return target


_STATE_ORDER = [LoadState.UNLOADED, LoadState.LOADING, LoadState.LOADED]


@dataclass(frozen=True)
class Rect:
    top: float
    left: float
    width: float = 0.0
    height: float = 0.0

    @property
    def bottom(self) -> float:
        return self.top + self.height

    @property
    def right(self) -> float:
        return self.left + self.width


@dataclass(frozen=True)
class Viewport:
    width: float
    height: float


class ElementLike(Protocol):
    """The slice of a DOM element the loader reads and mutates."""

    id: str
    classes: set[str]
    connected: bool

    def get_attribute(self, name: str) -> str | None:  # pragma: no cover - typing
        ...

    def set_attribute(self, name: str, value: str) -> None:  # pragma: no cover - typing
        ...

    def remove_attribute(self, name: str) -> None:  # pragma: no cover - typing
        ...

    def set_style_property(self, name: str, value: str) -> None:  # pragma: no cover - typing
        ...


@dataclass
class PageElement:
    id: str
    tag: str = "img"
    attributes: dict[str, str] = field(default_factory=dict)
    classes: set[str] = field(default_factory=set)
    style: dict[str, str] = field(default_factory=dict)
    ancestor_classes: frozenset[str] = frozenset()
    in_picture: bool = False
    # srcset of a sibling <source type="image/webp"> when inside <picture>
    webp_srcset: str | None = None
    rect: Rect = field(default_factory=lambda: Rect(0, 0))
    connected: bool = True

    def get_attribute(self, name: str) -> str | None:
        return self.attributes.get(name)

    def has_attribute(self, name: str) -> bool:
        return name in self.attributes

    def set_attribute(self, name: str, value: str) -> None:
        self.attributes[name] = value

    def remove_attribute(self, name: str) -> None:
        self.attributes.pop(name, None)

    def set_style_property(self, name: str, value: str) -> None:
        self.style[name] = value

    @classmethod
    def from_dict(cls, data: Mapping[str, Any], *, default_tag: str = "img") -> PageElement:
        """Build an element from a JSON page description entry.

        Recognised keys: ``id``, ``tag``, ``attributes``, ``class`` (string or
        list), ``ancestors`` (list of class names), ``picture`` (``{"webp":
        srcset}``) and ``rect`` (``top``/``left``/``width``/``height``).
        """
        raw_classes = data.get("class", [])
        if isinstance(raw_classes, str):
            raw_classes = raw_classes.split()
        picture = data.get("picture")
        rect = data.get("rect") or {}
        return cls(
            id=str(data["id"]),
            tag=str(data.get("tag", default_tag)),
            attributes={str(k): str(v) for k, v in (data.get("attributes") or {}).items()},
            classes=set(raw_classes),
            ancestor_classes=frozenset(data.get("ancestors") or ()),
            in_picture=picture is not None,
            webp_srcset=(picture or {}).get("webp"),
            rect=Rect(
                top=float(rect.get("top", 0)),
                left=float(rect.get("left", 0)),
                width=float(rect.get("width", 0)),
                height=float(rect.get("height", 0)),
            ),
        )


def state_from_classes(classes: Iterable[str]) -> LoadState:
    names = set(classes)
    if "loaded" in names:
        return LoadState.LOADED
    if "loading" in names:
        return LoadState.LOADING
    return LoadState.UNLOADED


@dataclass(frozen=True)
class ImageDescriptor:
    """Immutable snapshot of an <img> element taken before a decision."""

    id: str
    src: str | None = None
    srcset: str | None = None
    data_src: str | None = None
    data_srcset: str | None = None
    classes: frozenset[str] = frozenset()
    ancestor_classes: frozenset[str] = frozenset()
    in_picture: bool = False
    webp_srcset: str | None = None
    loading: str | None = None
    rect: Rect = Rect(0, 0)
    state: LoadState = LoadState.UNLOADED

    @classmethod
    def from_element(cls, element: PageElement) -> ImageDescriptor:
        return cls(
            id=element.id,
            src=element.get_attribute("src"),
            srcset=element.get_attribute("srcset"),
            data_src=element.get_attribute("data-src"),
            data_srcset=element.get_attribute("data-srcset"),
            classes=frozenset(element.classes),
            ancestor_classes=element.ancestor_classes,
            in_picture=element.in_picture,
            webp_srcset=element.webp_srcset,
            loading=element.get_attribute("loading"),
            rect=element.rect,
            state=state_from_classes(element.classes),
        )


@dataclass(frozen=True)
class BackgroundDescriptor:
    id: str
    image_src: str | None = None
    classes: frozenset[str] = frozenset()

    @classmethod
    def from_element(cls, element: PageElement) -> BackgroundDescriptor:
        return cls(
            id=element.id,
            image_src=element.get_attribute("data-image-src"),
            classes=frozenset(element.classes),
        )


def mentions_logo(src: str | None) -> bool:
    return bool(src) and "logo" in src.lower()


def is_exempt(image: ImageDescriptor) -> bool:
    """Brand/logo images always load eagerly at full quality without effects."""
    return (
        bool(image.classes & LOGO_CLASSES)
        or mentions_logo(image.src)
        or mentions_logo(image.data_src)
        or BRAND_CONTAINER_CLASS in image.ancestor_classes
    )


__all__ = [
    "BackgroundDescriptor",
    "ElementLike",
    "ImageDescriptor",
    "LoadState",
    "PageElement",
    "Rect",
    "Viewport",
    "is_exempt",
    "mentions_logo",
    "state_from_classes",
]
