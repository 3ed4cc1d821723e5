from __future__ import annotations

from pathlib import Path

from respimg.model.assets import ImageAsset
from respimg.model.config import OptimizerConfig, OutputFormat, QualityPolicy
from respimg.optimizer.variants import (
    full_size_filename,
    plan_outputs,
    plan_widths,
    variant_filename,
)

WIDTHS = (800, 1200, 1600, 2400, 3200)


def test_plan_widths_keeps_all_when_source_is_wider() -> None:
    assert plan_widths(4000, WIDTHS) == [800, 1200, 1600, 2400, 3200]


def test_plan_widths_appends_native_when_some_dropped() -> None:
    assert plan_widths(2000, WIDTHS) == [800, 1200, 1600, 2000]


def test_plan_widths_native_only_when_narrower_than_all() -> None:
    assert plan_widths(640, WIDTHS) == [640]


def test_plan_widths_equal_width_is_not_duplicated() -> None:
    # 1600 is not strictly smaller, so it is dropped and re-added as the native width
    assert plan_widths(1600, WIDTHS) == [800, 1200, 1600]


def test_plan_widths_never_upscales() -> None:
    for native in (1, 799, 800, 1199, 3201, 5000):
        assert max(plan_widths(native, WIDTHS)) <= native


def test_filenames() -> None:
    assert variant_filename("hero", 800, OutputFormat.WEBP) == "hero-800.webp"
    assert variant_filename("hero", 1200, OutputFormat.JPG) == "hero-1200.jpg"
    assert full_size_filename("hero", OutputFormat.WEBP) == "hero.webp"


def test_plan_outputs_sized_then_full_size(tmp_path: Path) -> None:
    config = OptimizerConfig(target_dir=tmp_path, widths=(800, 2400))
    asset = ImageAsset(path=tmp_path / "a.jpg", width=3000, height=2000, stem="a")

    outputs = plan_outputs(asset, config)

    names = [o.path.name for o in outputs]
    assert names == [
        "a-800.webp",
        "a-800.jpg",
        "a-2400.webp",
        "a-2400.jpg",
        "a.webp",
        "a.jpg",
    ]
    qualities = {o.path.name: o.quality for o in outputs}
    assert qualities["a-800.webp"] == 85
    assert qualities["a-2400.jpg"] == 90
    assert qualities["a.webp"] == 90
    assert [o.full_size for o in outputs].count(True) == 2


def test_plan_outputs_without_full_size_and_flat_quality(tmp_path: Path) -> None:
    config = OptimizerConfig(
        target_dir=tmp_path,
        widths=(800,),
        formats=(OutputFormat.WEBP,),
        quality=QualityPolicy(standard=75, maximum=None),
        full_size=False,
    )
    asset = ImageAsset(path=tmp_path / "b.png", width=1000, height=500, stem="b")

    outputs = plan_outputs(asset, config)

    assert [(o.path.name, o.quality) for o in outputs] == [("b-800.webp", 75)]
