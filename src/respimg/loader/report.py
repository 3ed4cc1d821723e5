"""Dry-run the loader decisions against a JSON page description."""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from respimg.loader.background import plan_background
from respimg.loader.connection import ConnectionEstimate, select_quality
from respimg.loader.decisions import decide_blur_up, decide_load, decide_priority, needs_deferral
from respimg.loader.elements import (
    BackgroundDescriptor,
    ImageDescriptor,
    PageElement,
    Viewport,
    is_exempt,
)

DEFAULT_VIEWPORT = {"width": 1280, "height": 800}


def describe_page(page: Mapping[str, Any]) -> dict[str, Any]:
    """Decisions the loader would take on page load, as JSON-ready data.

    ``page`` holds ``viewport`` (width/height), ``connection`` (network
    information keys, optional), ``images`` and ``backgrounds`` (element
    entries understood by ``PageElement.from_dict``).
    """
    viewport = Viewport(**{**DEFAULT_VIEWPORT, **(page.get("viewport") or {})})
    connection = ConnectionEstimate.from_mapping(page.get("connection"))
    tier = select_quality(connection)

    images: list[dict[str, Any]] = []
    for entry in page.get("images") or []:
        image = ImageDescriptor.from_element(PageElement.from_dict(entry))
        priority = decide_priority(image, viewport)
        load = decide_load(image, connection)
        images.append(
            {
                "id": image.id,
                "exempt": is_exempt(image),
                "above_fold": priority.above_fold,
                "attributes": dict(priority.attributes),
                "classes": list(priority.add_classes),
                "preload": priority.preload_href,
                "deferred": needs_deferral(image),
                "blur_up": decide_blur_up(image),
                "target_state": load.target_state.value,
                "src": load.chosen_source,
                "srcset": load.chosen_srcset,
            }
        )

    backgrounds: list[dict[str, Any]] = []
    for entry in page.get("backgrounds") or []:
        element = PageElement.from_dict(entry, default_tag="div")
        plan = plan_background(BackgroundDescriptor.from_element(element).image_src)
        backgrounds.append(
            {
                "id": element.id,
                "skipped": plan is None,
                "placeholder": plan.placeholder if plan else None,
                "target": plan.target if plan else None,
                "fallback": plan.fallback if plan else None,
            }
        )

    return {
        "viewport": {"width": viewport.width, "height": viewport.height},
        "connection": {
            "effectiveType": connection.effective_type,
            "saveData": connection.save_data,
            "rtt": connection.rtt,
            "downlink": connection.downlink,
        },
        "quality": tier.value,
        "images": images,
        "backgrounds": backgrounds,
    }


__all__ = ["describe_page"]
