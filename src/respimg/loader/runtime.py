"""Event-driven adaptive image loading on an asyncio loop.

The browser capabilities the loader depends on are injected through
``LoaderCapabilities``: an awaitable off-screen ``fetch``, whether an
intersection watcher exists, and a network-information reader. Each image moves
``unloaded -> loading -> loaded`` and never back; the visible source is only
swapped after its off-screen preload has completed.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable, Iterable, Mapping
from dataclasses import dataclass, field, replace
from typing import Any

from respimg.loader.background import high_quality_source, plan_background
from respimg.loader.connection import ConnectionEstimate, select_quality
from respimg.loader.decisions import (
    choose_source,
    decide_blur_up,
    decide_load,
    decide_priority,
    needs_deferral,
)
from respimg.loader.effects import (
    apply_blur_up,
    apply_loaded,
    apply_loading,
    apply_priority,
    clean_exempt,
    finish_background,
    set_background,
    start_background,
)
from respimg.loader.elements import (
    BackgroundDescriptor,
    ImageDescriptor,
    LoadState,
    PageElement,
    Viewport,
    is_exempt,
)

logger = logging.getLogger(__name__)

Fetch = Callable[[str, str | None], Awaitable[None]]
ConnectionReader = Callable[[], Mapping[str, Any] | None]
Sleep = Callable[[float], Awaitable[None]]

BACKGROUND_CLASS = "bg-image"


class PreloadError(RuntimeError):
    """An off-screen image request failed (HTTP error, decode error)."""

    def __init__(self, src: str, reason: str | None = None) -> None:
        self.src = src
        self.reason = reason
        message = f"Preload failed for {src}"
        if reason:
            message += f": {reason}"
        super().__init__(message)


@dataclass
class LoaderSettings:
    # Look-ahead below the visible area, CSS margin order (top right bottom left)
    root_margin: str = "0px 0px 100px 0px"
    threshold: float = 0.1
    resize_debounce: float = 0.25
    background_settle: float = 0.1
    upgrade_settle: float = 0.3

    def margins(self) -> tuple[float, float, float, float]:
        parts = [float(p.removesuffix("px")) for p in self.root_margin.split()]
        if len(parts) == 1:
            parts *= 4
        elif len(parts) == 2:
            parts = [parts[0], parts[1], parts[0], parts[1]]
        elif len(parts) == 3:
            parts = [parts[0], parts[1], parts[2], parts[1]]
        top, right, bottom, left = parts[:4]
        return top, right, bottom, left


@dataclass
class LoaderCapabilities:
    fetch: Fetch
    intersection_observer: bool = True
    connection: ConnectionReader | None = None
    sleep: Sleep = field(default=asyncio.sleep)


class AdaptiveLoader:
    def __init__(
        self,
        elements: Iterable[PageElement],
        viewport: Viewport,
        capabilities: LoaderCapabilities,
        settings: LoaderSettings | None = None,
    ) -> None:
        self.viewport = viewport
        self.capabilities = capabilities
        self.settings = settings or LoaderSettings()
        self.images: dict[str, PageElement] = {}
        self.backgrounds: dict[str, PageElement] = {}
        for element in elements:
            if element.tag == "img":
                self.images[element.id] = element
            elif BACKGROUND_CLASS in element.classes:
                self.backgrounds[element.id] = element

        self.states: dict[str, LoadState] = {
            image_id: ImageDescriptor.from_element(el).state for image_id, el in self.images.items()
        }
        # Fixed at construction; cleaning a logo removes the attributes that identified it
        self.exempt: set[str] = {
            image_id
            for image_id, el in self.images.items()
            if is_exempt(ImageDescriptor.from_element(el))
        }
        self.watching: set[str] = set()
        self.preload_hints: list[str] = []
        self.prioritize_runs = 0
        self._choices: dict[str, tuple[str | None, str | None]] = {}
        self._generations: dict[str, int] = {}
        self._resize_task: asyncio.Task[None] | None = None

    def describe(self, image_id: str) -> ImageDescriptor:
        element = self.images[image_id]
        return replace(ImageDescriptor.from_element(element), state=self.states[image_id])

    def connection_estimate(self) -> ConnectionEstimate:
        reader = self.capabilities.connection
        return ConnectionEstimate.from_mapping(reader() if reader is not None else None)

    def _set_state(self, image_id: str, target: LoadState) -> None:
        self.states[image_id] = self.states[image_id].advance(target)

    def _next_generation(self, key: str) -> int:
        generation = self._generations.get(key, 0) + 1
        self._generations[key] = generation
        return generation

    async def start(self) -> None:
        """Run the page-load pass: cleanup, prioritization, blur-up, deferral, backgrounds."""
        for image_id in self.exempt:
            clean_exempt(self.images[image_id])

        self.prioritize()

        for image_id, element in self.images.items():
            if image_id not in self.exempt and decide_blur_up(self.describe(image_id)):
                apply_blur_up(element)

        deferred = [
            image_id
            for image_id in self.images
            if image_id not in self.exempt and needs_deferral(self.describe(image_id))
        ]
        if self.capabilities.intersection_observer:
            self.watching.update(deferred)
            logger.debug("Watching %d deferred images", len(deferred))
            # A freshly observed element is reported immediately if it already intersects
            await self.on_scroll(0.0)
        else:
            logger.info("Intersection watcher unavailable; loading %d images now", len(deferred))
            await asyncio.gather(*(self.load_image(image_id) for image_id in deferred))

        await asyncio.gather(*(self.load_background(bg_id) for bg_id in self.backgrounds))

    def prioritize(self) -> None:
        self.prioritize_runs += 1
        for image_id, element in self.images.items():
            if image_id in self.exempt:
                continue
            decision = decide_priority(self.describe(image_id), self.viewport)
            apply_priority(element, decision)
            if decision.preload_href and decision.preload_href not in self.preload_hints:
                self.preload_hints.append(decision.preload_href)

    def in_watch_region(self, element: PageElement, scroll_top: float = 0.0) -> bool:
        """Whether ``element`` meets the threshold inside the margin-expanded viewport."""
        top_margin, right_margin, bottom_margin, left_margin = self.settings.margins()
        region_top = scroll_top - top_margin
        region_bottom = scroll_top + self.viewport.height + bottom_margin
        region_left = -left_margin
        region_right = self.viewport.width + right_margin

        rect = element.rect
        overlap_h = min(rect.bottom, region_bottom) - max(rect.top, region_top)
        overlap_w = min(rect.right, region_right) - max(rect.left, region_left)
        if rect.height <= 0 or rect.width <= 0:
            return region_top <= rect.top < region_bottom and region_left <= rect.left < region_right
        if overlap_h <= 0 or overlap_w <= 0:
            return False
        ratio = (overlap_h * overlap_w) / (rect.height * rect.width)
        return ratio >= self.settings.threshold

    async def on_scroll(self, scroll_top: float) -> None:
        """Deliver intersection notifications for the region visible at ``scroll_top``."""
        hits = [
            image_id
            for image_id in sorted(self.watching)
            if self.in_watch_region(self.images[image_id], scroll_top)
        ]
        await self.on_intersection(hits)

    async def on_intersection(self, image_ids: Iterable[str]) -> None:
        """Load each watched image at most once, however often it is reported."""
        triggered: list[str] = []
        for image_id in image_ids:
            if image_id not in self.watching:
                continue
            self.watching.discard(image_id)
            triggered.append(image_id)
        await asyncio.gather(*(self.load_image(image_id) for image_id in triggered))

    def on_resize(self, viewport: Viewport) -> asyncio.Task[None]:
        """Re-run prioritization once resizing has settled. Must run inside the event loop."""
        self.viewport = viewport
        if self._resize_task is not None and not self._resize_task.done():
            self._resize_task.cancel()
        self._resize_task = asyncio.ensure_future(self._prioritize_after_settle())
        return self._resize_task

    async def _prioritize_after_settle(self) -> None:
        await self.capabilities.sleep(self.settings.resize_debounce)
        self.prioritize()

    async def on_connection_change(self) -> None:
        """Re-evaluate the source of every image still loading, and unfinished backgrounds."""
        tier = select_quality(self.connection_estimate())
        restarts = []
        for image_id, state in self.states.items():
            if state is not LoadState.LOADING or image_id in self.exempt:
                continue
            choice = choose_source(self.describe(image_id), tier)
            if choice != self._choices.get(image_id):
                logger.debug("Connection changed to %s; reloading %s", tier.value, image_id)
                restarts.append(self._preload(image_id, *choice))
        for bg_id, element in self.backgrounds.items():
            if "blur-loading" in element.classes:
                restarts.append(self.load_background(bg_id))
        await asyncio.gather(*restarts)

    async def load_image(self, image_id: str) -> None:
        if image_id in self.exempt:
            return
        decision = decide_load(self.describe(image_id), self.connection_estimate())
        if not decision.should_load:
            return
        self._set_state(image_id, LoadState.LOADING)
        apply_loading(self.images[image_id])
        await self._preload(image_id, decision.chosen_source, decision.chosen_srcset)

    async def _preload(self, image_id: str, src: str | None, srcset: str | None) -> None:
        generation = self._next_generation(image_id)
        self._choices[image_id] = (src, srcset)
        if not src:
            logger.warning("Image %s has no source to load", image_id)
            return
        try:
            await self.capabilities.fetch(src, srcset)
        except (PreloadError, OSError) as exc:
            logger.warning("Image %s stays loading: %s", image_id, exc)
            return

        element = self.images[image_id]
        if generation != self._generations[image_id]:
            logger.debug("Discarding superseded preload %s for %s", src, image_id)
            return
        if not element.connected or self.states[image_id] is LoadState.LOADED:
            return
        apply_loaded(element, src, srcset)
        self._set_state(image_id, LoadState.LOADED)

    async def load_background(self, bg_id: str) -> None:
        element = self.backgrounds[bg_id]
        plan = plan_background(BackgroundDescriptor.from_element(element).image_src)
        if plan is None:
            return
        key = f"bg:{bg_id}"
        generation = self._next_generation(key)
        start_background(element, plan.placeholder)

        try:
            await self.capabilities.fetch(plan.target, None)
        except (PreloadError, OSError) as exc:
            if generation != self._generations[key] or not element.connected:
                return
            if plan.fallback is None:
                logger.warning("Background %s failed without fallback: %s", bg_id, exc)
                finish_background(element, loaded=False)
                return
            logger.info("Background %s falling back to %s", bg_id, plan.fallback)
            set_background(element, plan.fallback)
            await self.capabilities.sleep(self.settings.background_settle)
            if generation == self._generations[key]:
                finish_background(element)
            return

        if generation != self._generations[key] or not element.connected:
            return
        set_background(element, plan.target)
        await self.capabilities.sleep(self.settings.background_settle)
        if generation != self._generations[key]:
            return
        finish_background(element)

        upgrade = high_quality_source(plan.target)
        if upgrade is None:
            return
        try:
            await self.capabilities.fetch(upgrade, None)
        except (PreloadError, OSError) as exc:
            logger.debug("Background %s keeps %s: %s", bg_id, plan.target, exc)
            return
        if generation != self._generations[key] or not element.connected:
            return
        await self.capabilities.sleep(self.settings.upgrade_settle)
        if generation == self._generations[key]:
            set_background(element, upgrade)


__all__ = [
    "AdaptiveLoader",
    "LoaderCapabilities",
    "LoaderSettings",
    "PreloadError",
]
