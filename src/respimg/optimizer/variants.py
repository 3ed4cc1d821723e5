from __future__ import annotations

from collections.abc import Sequence

from respimg.model.assets import ImageAsset, OutputFile
from respimg.model.config import OptimizerConfig, OutputFormat


def plan_widths(native_width: int, widths: Sequence[int]) -> list[int]:
    """Select the variant widths to generate for an image ``native_width`` pixels wide.

    Only configured widths strictly smaller than the native width are kept. When
    any configured width had to be dropped, the native width is appended once so
    the largest available variant is still produced without upscaling.
    """

    configured = sorted(set(widths))
    planned = [w for w in configured if w < native_width]
    if len(planned) < len(configured) and native_width not in planned:
        planned.append(native_width)
    return planned


def variant_filename(stem: str, width: int, fmt: OutputFormat) -> str:
    return f"{stem}-{width}.{fmt.value}"


def full_size_filename(stem: str, fmt: OutputFormat) -> str:
    return f"{stem}.{fmt.value}"


def plan_outputs(asset: ImageAsset, config: OptimizerConfig) -> list[OutputFile]:
    """All output files for ``asset``: sized variants first, then full-resolution re-encodes."""

    outputs: list[OutputFile] = []
    for width in plan_widths(asset.width, config.widths):
        for fmt in config.formats:
            outputs.append(
                OutputFile(
                    path=config.target_dir / variant_filename(asset.stem, width, fmt),
                    format=fmt,
                    width=width,
                    quality=config.quality.for_width(width),
                )
            )
    if config.full_size:
        for fmt in config.formats:
            outputs.append(
                OutputFile(
                    path=config.target_dir / full_size_filename(asset.stem, fmt),
                    format=fmt,
                    width=None,
                    quality=config.quality.for_width(None),
                )
            )
    return outputs


__all__ = ["full_size_filename", "plan_outputs", "plan_widths", "variant_filename"]
