from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass
from pathlib import Path

from jinja2 import Environment, PackageLoader, StrictUndefined

from respimg.model.assets import ImageAsset
from respimg.model.config import OptimizerConfig, OutputFormat
from respimg.optimizer.encoder import atomic_write_text
from respimg.optimizer.variants import full_size_filename, plan_widths, variant_filename

DEFAULT_SIZES = "(max-width: 768px) 100vw, (max-width: 1200px) 75vw, 100vw"
DEFAULT_IMG_CLASS = "rounded"


@dataclass(frozen=True)
class PictureSource:
    mime_type: str
    srcset: str


@dataclass(frozen=True)
class SnippetImage:
    """One <picture> entry: the files generated for a single source image."""

    stem: str
    native_width: int
    widths: tuple[int, ...]
    formats: tuple[OutputFormat, ...]
    full_size: bool
    prefix: str

    def _url(self, filename: str) -> str:
        return f"{self.prefix}{filename}"

    def srcset(self, fmt: OutputFormat) -> str:
        entries = [f"{self._url(variant_filename(self.stem, w, fmt))} {w}w" for w in self.widths]
        if self.full_size and self.native_width not in self.widths:
            entries.append(f"{self._url(full_size_filename(self.stem, fmt))} {self.native_width}w")
        return ", ".join(entries)

    @property
    def sources(self) -> list[PictureSource]:
        # WebP first so browsers that support it never consider the JPEG set
        ordered = sorted(self.formats, key=lambda f: 0 if f is OutputFormat.WEBP else 1)
        return [PictureSource(mime_type=fmt.mime_type, srcset=self.srcset(fmt)) for fmt in ordered]

    @property
    def fallback_src(self) -> str:
        fmt = OutputFormat.JPG if OutputFormat.JPG in self.formats else self.formats[0]
        if self.full_size:
            return self._url(full_size_filename(self.stem, fmt))
        return self._url(variant_filename(self.stem, self.widths[-1], fmt))


def build_snippet_images(
    assets: Iterable[ImageAsset], config: OptimizerConfig
) -> list[SnippetImage]:
    """Describe the files a run generates (or generated) for ``assets``."""
    return [
        SnippetImage(
            stem=asset.stem,
            native_width=asset.width,
            widths=tuple(plan_widths(asset.width, config.widths)),
            formats=config.formats,
            full_size=config.full_size,
            prefix=config.public_prefix,
        )
        for asset in sorted(assets, key=lambda a: a.stem)
    ]


def create_environment() -> Environment:
    loader = PackageLoader("respimg", "snippets/templates")
    return Environment(
        loader=loader,
        undefined=StrictUndefined,
        autoescape=True,
        trim_blocks=True,
        lstrip_blocks=True,
    )


def render_picture_elements(
    images: list[SnippetImage],
    *,
    sizes: str = DEFAULT_SIZES,
    img_class: str = DEFAULT_IMG_CLASS,
    env: Environment | None = None,
) -> str:
    tpl = (env or create_environment()).get_template("picture-elements.html")
    return str(tpl.render(images=images, sizes=sizes, img_class=img_class))


def write_snippet(path: Path, html: str) -> None:
    atomic_write_text(path, html)


__all__ = [
    "DEFAULT_SIZES",
    "PictureSource",
    "SnippetImage",
    "build_snippet_images",
    "create_environment",
    "render_picture_elements",
    "write_snippet",
]
