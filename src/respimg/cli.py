"""CLI interface for respimg."""

import json
import logging
from contextlib import nullcontext
from pathlib import Path
from typing import Annotated

import typer

from respimg import __version__
from respimg.loader.report import describe_page
from respimg.model.assets import ImageAsset
from respimg.model.config import (
    DEFAULT_PUBLIC_PREFIX,
    DEFAULT_SNIPPET_PATH,
    DEFAULT_SOURCE_DIR,
    DEFAULT_SOURCE_FORMATS,
    DEFAULT_TARGET_DIR,
    DEFAULT_WIDTHS,
    OptimizerConfig,
    OutputFormat,
)
from respimg.optimizer.discovery import discover_sources
from respimg.optimizer.errors import ImageProcessingError, OptimizerError
from respimg.optimizer.processing import optimize_directory, probe_asset
from respimg.optimizer.run_logger import log_feature_availability
from respimg.snippets.templating import (
    build_snippet_images,
    render_picture_elements,
    write_snippet,
)
from respimg.ui.progress import ProgressReporter

logger = logging.getLogger("respimg.cli")

app = typer.Typer(
    name="respimg",
    help="Generate responsive WebP/JPEG image variants and plan adaptive image loading.",
)

_DEFAULT_WIDTHS = ",".join(str(w) for w in DEFAULT_WIDTHS)
_DEFAULT_SOURCE_FORMATS = ",".join(DEFAULT_SOURCE_FORMATS)


def _configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
        force=True,
    )


def _encoder_support() -> dict[OutputFormat, bool]:
    from PIL import features

    return {
        OutputFormat.WEBP: bool(features.check("webp")),
        OutputFormat.JPG: bool(features.check("jpg")),
    }


def _emit_snippet(config: OptimizerConfig, assets: list[ImageAsset]) -> None:
    if config.snippet_path is None:
        return
    html = render_picture_elements(build_snippet_images(assets, config))
    write_snippet(config.snippet_path, html)
    typer.echo(f"🧩 Wrote {config.snippet_path} with {len(assets)} picture element(s)")


@app.command()
def optimize(
    source_dir: Annotated[
        Path,
        typer.Option("--source-dir", help="Directory holding the original images"),
    ] = DEFAULT_SOURCE_DIR,
    target_dir: Annotated[
        Path,
        typer.Option("--target-dir", help="Directory receiving the generated variants"),
    ] = DEFAULT_TARGET_DIR,
    widths: Annotated[
        str,
        typer.Option("--widths", help="Comma-separated target widths in pixels"),
    ] = _DEFAULT_WIDTHS,
    formats: Annotated[
        str,
        typer.Option("--formats", help="Comma-separated output formats: webp, jpg"),
    ] = "webp,jpg",
    source_formats: Annotated[
        str,
        typer.Option("--source-formats", help="Comma-separated source file extensions"),
    ] = _DEFAULT_SOURCE_FORMATS,
    quality: Annotated[
        int,
        typer.Option("--quality", help="Encoder quality for regular variants (1-100)"),
    ] = 85,
    max_quality: Annotated[
        int,
        typer.Option(
            "--max-quality",
            help="Encoder quality for large variants and full-size re-encodes (1-100)",
        ),
    ] = 90,
    flat_quality: Annotated[
        bool,
        typer.Option("--flat-quality", help="Use --quality for every output, ignoring --max-quality"),
    ] = False,
    large_threshold: Annotated[
        int,
        typer.Option("--large-threshold", help="Widths at or above this use --max-quality"),
    ] = 2400,
    skip_existing: Annotated[
        bool,
        typer.Option(
            "--skip-existing/--overwrite",
            help="Leave outputs that already exist untouched (default: skip)",
        ),
    ] = True,
    full_size: Annotated[
        bool,
        typer.Option(
            "--full-size/--no-full-size",
            help="Also re-encode each image at its native resolution (default: yes)",
        ),
    ] = True,
    fit: Annotated[
        str,
        typer.Option(
            "--fit",
            help="'inside' bounds both dimensions by the width; 'width' bounds the width only",
        ),
    ] = "inside",
    workers: Annotated[
        int,
        typer.Option("--workers", help="Number of images processed concurrently"),
    ] = 1,
    snippet: Annotated[
        Path | None,
        typer.Option("--snippet", help="Where to write the <picture> HTML fragment"),
    ] = DEFAULT_SNIPPET_PATH,
    no_snippet: Annotated[
        bool,
        typer.Option("--no-snippet", help="Do not write the HTML fragment"),
    ] = False,
    public_prefix: Annotated[
        str,
        typer.Option("--public-prefix", help="URL prefix of generated files in the fragment"),
    ] = DEFAULT_PUBLIC_PREFIX,
    progress: Annotated[
        bool,
        typer.Option("--progress/--no-progress", help="Show a progress bar (default: yes)"),
    ] = True,
    verbose: Annotated[
        bool,
        typer.Option("--verbose", "-v", help="Enable verbose logging"),
    ] = False,
) -> None:
    """
    Generate resized WebP/JPEG variants for every image in the source directory.

    Running without options uses the built-in defaults. Outputs are named
    <stem>-<width>.<format>, plus <stem>.<format> for full-size re-encodes.

    Examples:

        # Built-in defaults
        respimg optimize

        # Custom directories, WebP only, flat quality
        respimg optimize --source-dir photos --target-dir photos/out \\
            --formats webp --quality 80 --flat-quality
    """
    _configure_logging(verbose)
    try:
        config = OptimizerConfig.from_cli(
            source_dir=source_dir,
            target_dir=target_dir,
            widths=widths,
            formats=formats,
            source_formats=source_formats,
            quality=quality,
            max_quality=None if flat_quality else max_quality,
            large_threshold=large_threshold,
            skip_existing=skip_existing,
            full_size=full_size,
            fit=fit,
            workers=workers,
            snippet_path=None if no_snippet else snippet,
            public_prefix=public_prefix,
        )
    except ValueError as exc:
        typer.echo(f"Error: {exc}")
        raise typer.Exit(1) from exc

    typer.echo(f"🖼️  Source: {config.source_dir}")
    typer.echo(f"📁 Target: {config.target_dir}")
    typer.echo(f"📐 Widths: {', '.join(str(w) for w in config.widths)}")
    typer.echo(f"🎞️  Formats: {', '.join(fmt.value for fmt in config.formats)}")
    if config.quality.is_flat:
        typer.echo(f"🎚️  Quality: {config.quality.standard}")
    else:
        typer.echo(
            f"🎚️  Quality: {config.quality.standard} "
            f"({config.quality.maximum} for >= {config.quality.large_threshold}px and full size)"
        )
    typer.echo(f"⏭️  Skip existing: {'Yes' if config.skip_existing else 'No'}")

    support = _encoder_support()
    for fmt in config.formats:
        log_feature_availability(f"{fmt.value.upper()} encoder", support[fmt])
        if not support[fmt]:
            typer.echo(f"Error: this Pillow build cannot encode {fmt.value}; run 'respimg doctor'")
            raise typer.Exit(1)

    reporter = ProgressReporter() if progress else None
    try:
        with reporter if reporter is not None else nullcontext():
            report = optimize_directory(
                config, on_progress=reporter.emit if reporter is not None else None
            )
    except OptimizerError as exc:
        typer.echo(f"\n❌ {exc}")
        raise typer.Exit(1) from exc

    _emit_snippet(config, report.assets)

    for failed in report.failed:
        typer.echo(f"⚠️  Skipped {failed.source.name}: {failed.error}")
    typer.echo(
        f"\n✅ {report.written} file(s) written, {report.skipped} already present, "
        f"{len(report.failed)} image(s) failed"
    )


@app.command()
def snippet(
    source_dir: Annotated[
        Path,
        typer.Option("--source-dir", help="Directory holding the original images"),
    ] = DEFAULT_SOURCE_DIR,
    output: Annotated[
        Path,
        typer.Option("--output", "-o", help="Where to write the <picture> HTML fragment"),
    ] = DEFAULT_SNIPPET_PATH,
    widths: Annotated[
        str,
        typer.Option("--widths", help="Comma-separated target widths in pixels"),
    ] = _DEFAULT_WIDTHS,
    formats: Annotated[
        str,
        typer.Option("--formats", help="Comma-separated output formats: webp, jpg"),
    ] = "webp,jpg",
    source_formats: Annotated[
        str,
        typer.Option("--source-formats", help="Comma-separated source file extensions"),
    ] = _DEFAULT_SOURCE_FORMATS,
    full_size: Annotated[
        bool,
        typer.Option("--full-size/--no-full-size", help="Reference full-size re-encodes"),
    ] = True,
    public_prefix: Annotated[
        str,
        typer.Option("--public-prefix", help="URL prefix of generated files"),
    ] = DEFAULT_PUBLIC_PREFIX,
    verbose: Annotated[
        bool,
        typer.Option("--verbose", "-v", help="Enable verbose logging"),
    ] = False,
) -> None:
    """Write the <picture> HTML fragment for the source images without re-encoding."""
    _configure_logging(verbose)
    try:
        config = OptimizerConfig.from_cli(
            source_dir=source_dir,
            widths=widths,
            formats=formats,
            source_formats=source_formats,
            full_size=full_size,
            snippet_path=output,
            public_prefix=public_prefix,
        )
        sources = discover_sources(config.source_dir, config.source_formats)
    except (ValueError, OptimizerError) as exc:
        typer.echo(f"Error: {exc}")
        raise typer.Exit(1) from exc

    assets: list[ImageAsset] = []
    for path in sources:
        try:
            assets.append(probe_asset(path))
        except ImageProcessingError as exc:
            typer.echo(f"⚠️  Skipped {path.name}: {exc}")
    _emit_snippet(config, assets)


@app.command()
def plan(
    page: Annotated[
        Path,
        typer.Argument(
            help="JSON page description (viewport, connection, images, backgrounds)",
            exists=True,
            file_okay=True,
            dir_okay=False,
            readable=True,
        ),
    ],
) -> None:
    """Print the adaptive loader's page-load decisions for a page description."""
    try:
        data = json.loads(page.read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError) as exc:
        typer.echo(f"Error: cannot read page description {page}: {exc}")
        raise typer.Exit(1) from exc
    if not isinstance(data, dict):
        typer.echo("Error: page description must be a JSON object")
        raise typer.Exit(1)
    try:
        decisions = describe_page(data)
    except (KeyError, TypeError, ValueError) as exc:
        typer.echo(f"Error: invalid page description: {exc}")
        raise typer.Exit(1) from exc
    typer.echo(json.dumps(decisions, indent=2))


@app.command()
def doctor() -> None:
    """Check that the installed Pillow can encode WebP and JPEG."""
    import PIL

    support = _encoder_support()
    typer.echo("Image Environment Check:")
    typer.echo(f"  Pillow: {PIL.__version__}")
    for fmt, ok in support.items():
        typer.echo(f"  {fmt.value.upper()} encoder: {'OK' if ok else 'MISSING'}")
    if not all(support.values()):
        raise typer.Exit(1)


@app.command()
def version() -> None:
    """Show version information."""
    typer.echo(f"respimg version {__version__}")


def version_callback(value: bool) -> None:
    """Version callback for --version flag."""
    if value:
        typer.echo(f"respimg version {__version__}")
        raise typer.Exit()


@app.callback(invoke_without_command=True)
def main(
    ctx: typer.Context,
    version: Annotated[
        bool | None,
        typer.Option(
            "--version",
            callback=version_callback,
            is_eager=True,
            help="Show version and exit",
        ),
    ] = None,
) -> None:
    """
    respimg - responsive image variants and adaptive loading decisions.

    Without a command, runs 'optimize' with the built-in configuration.

    For detailed usage, run: respimg optimize --help
    """
    if ctx.invoked_subcommand is None:
        optimize()


if __name__ == "__main__":  # pragma: no cover - executed only via `python -m`
    app()
