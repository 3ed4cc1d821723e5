"""Tests for batch variant generation."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any

import pytest
from PIL import Image

from respimg.model.config import OptimizerConfig, OutputFormat
from respimg.optimizer import processing
from respimg.optimizer.errors import OptimizerError, SourceDirectoryError, TargetDirectoryError
from respimg.optimizer.processing import optimize_directory, process_image

WIDTHS = (200, 300, 400)


def _config(tmp_path: Path, **overrides: Any) -> OptimizerConfig:
    values: dict[str, Any] = {
        "source_dir": tmp_path / "src",
        "target_dir": tmp_path / "out",
        "widths": WIDTHS,
        "snippet_path": None,
    }
    values.update(overrides)
    return OptimizerConfig(**values)


def _snapshot(directory: Path) -> dict[str, tuple[int, bytes]]:
    return {p.name: (p.stat().st_mtime_ns, p.read_bytes()) for p in sorted(directory.iterdir())}


class TestProcessImage:
    def test_wide_source_gets_one_file_per_width_and_format(self, tmp_path: Path, make_image) -> None:
        source = make_image(tmp_path / "src" / "wide.jpg", (800, 600))
        config = _config(tmp_path, full_size=False)

        result = process_image(source, config)

        expected = {f"wide-{w}.{fmt.value}" for w in WIDTHS for fmt in config.formats}
        assert {p.name for p in result.written} == expected
        assert {p.name for p in config.target_dir.iterdir()} == expected
        for path in result.written:
            with Image.open(path) as im:
                assert im.width <= 800
                assert im.width == int(path.stem.rsplit("-", 1)[1])

    def test_full_size_reencodes_are_added(self, tmp_path: Path, make_image) -> None:
        source = make_image(tmp_path / "src" / "wide.png", (800, 600))
        config = _config(tmp_path, formats=(OutputFormat.WEBP,))

        result = process_image(source, config)

        names = {p.name for p in result.written}
        assert "wide.webp" in names
        with Image.open(config.target_dir / "wide.webp") as im:
            assert im.size == (800, 600)

    def test_narrow_source_falls_back_to_native_width(self, tmp_path: Path, make_image) -> None:
        source = make_image(tmp_path / "src" / "small.jpg", (150, 100))
        config = _config(tmp_path, full_size=False)

        result = process_image(source, config)

        assert {p.name for p in result.written} == {"small-150.webp", "small-150.jpg"}
        for path in result.written:
            with Image.open(path) as im:
                assert im.size == (150, 100)

    def test_portrait_fallback_keeps_native_width(self, tmp_path: Path, make_image) -> None:
        source = make_image(tmp_path / "src" / "tall.jpg", (500, 700))
        config = _config(tmp_path, widths=(800, 1200), full_size=False)

        result = process_image(source, config)

        assert {p.name for p in result.written} == {"tall-500.webp", "tall-500.jpg"}
        for path in result.written:
            with Image.open(path) as im:
                assert im.size == (500, 700)

    def test_probe_reads_dimensions_from_header(self, tmp_path: Path, make_image) -> None:
        path = make_image(tmp_path / "src" / "photo.jpg", (320, 240))
        asset = processing.probe_asset(path)
        assert (asset.width, asset.height, asset.stem) == (320, 240, "photo")

    def test_skip_existing_avoids_decoding(self, tmp_path: Path, make_image, monkeypatch) -> None:
        source = make_image(tmp_path / "src" / "wide.jpg", (800, 600))
        config = _config(tmp_path)
        process_image(source, config)

        def _fail(path: Path) -> Image.Image:
            raise AssertionError("should not decode when every output exists")

        monkeypatch.setattr(processing, "load_image", _fail)
        result = process_image(source, config)

        assert result.written == []
        assert len(result.skipped) == len(WIDTHS) * 2 + 2

    def test_overwrite_rewrites_outputs(self, tmp_path: Path, make_image) -> None:
        source = make_image(tmp_path / "src" / "wide.jpg", (800, 600))
        process_image(source, _config(tmp_path))

        result = process_image(source, _config(tmp_path, skip_existing=False))

        assert result.skipped == []
        assert len(result.written) == len(WIDTHS) * 2 + 2

    def test_partial_outputs_are_completed(self, tmp_path: Path, make_image) -> None:
        source = make_image(tmp_path / "src" / "wide.jpg", (800, 600))
        config = _config(tmp_path)
        process_image(source, config)
        (config.target_dir / "wide-300.jpg").unlink()

        result = process_image(source, config)

        assert [p.name for p in result.written] == ["wide-300.jpg"]


class TestOptimizeDirectory:
    def test_batch_isolates_bad_files(self, tmp_path: Path, make_image, caplog) -> None:
        make_image(tmp_path / "src" / "a.jpg", (500, 400))
        (tmp_path / "src" / "broken.jpg").write_bytes(b"\xff\xd8 definitely not a jpeg")
        make_image(tmp_path / "src" / "c.png", (450, 300))
        config = _config(tmp_path)

        with caplog.at_level(logging.WARNING):
            report = optimize_directory(config)

        assert [r.source.name for r in report.results] == ["a.jpg", "broken.jpg", "c.png"]
        assert [r.source.name for r in report.failed] == ["broken.jpg"]
        assert "broken.jpg" in report.failed[0].error
        assert report.written == 2 * (len(WIDTHS) * 2 + 2)
        assert "broken.jpg" in caplog.text

    def test_rerun_with_skip_existing_writes_nothing(self, tmp_path: Path, make_image) -> None:
        make_image(tmp_path / "src" / "a.jpg", (500, 400))
        make_image(tmp_path / "src" / "b.jpg", (120, 90))
        config = _config(tmp_path)
        first = optimize_directory(config)
        before = _snapshot(config.target_dir)

        second = optimize_directory(config)

        assert first.written > 0
        assert second.written == 0
        assert second.skipped == first.written
        assert _snapshot(config.target_dir) == before

    def test_ignores_other_extensions(self, tmp_path: Path, make_image) -> None:
        make_image(tmp_path / "src" / "a.JPG", (500, 400))
        (tmp_path / "src" / "readme.txt").write_text("hi")
        config = _config(tmp_path, full_size=False)

        report = optimize_directory(config)

        assert [r.source.name for r in report.results] == ["a.JPG"]

    def test_workers_match_sequential_output(self, tmp_path: Path, make_image) -> None:
        for i in range(4):
            make_image(tmp_path / "src" / f"img{i}.jpg", (500 + i * 10, 300))
        sequential = optimize_directory(_config(tmp_path, target_dir=tmp_path / "seq"))
        parallel = optimize_directory(
            _config(tmp_path, target_dir=tmp_path / "par", workers=3)
        )

        assert [r.source for r in parallel.results] == [r.source for r in sequential.results]
        assert sorted(p.name for p in (tmp_path / "par").iterdir()) == sorted(
            p.name for p in (tmp_path / "seq").iterdir()
        )

    def test_progress_events(self, tmp_path: Path, make_image) -> None:
        make_image(tmp_path / "src" / "a.jpg", (500, 400))
        (tmp_path / "src" / "bad.png").write_bytes(b"nope")
        events: list[tuple[str, dict[str, Any]]] = []

        optimize_directory(_config(tmp_path), on_progress=lambda e, p: events.append((e, p)))

        names = [e for e, _ in events]
        assert names[0] == "optimize:start"
        assert events[0][1] == {"files": 2}
        assert "file:done" in names and "file:failed" in names
        assert names[-1] == "optimize:finalized"

    def test_progress_callback_errors_are_ignored(self, tmp_path: Path, make_image) -> None:
        make_image(tmp_path / "src" / "a.jpg", (500, 400))

        def _boom(event: str, payload: dict[str, Any]) -> None:
            raise RuntimeError("display broke")

        report = optimize_directory(_config(tmp_path), on_progress=_boom)
        assert report.failed == []

    def test_missing_source_dir_is_fatal(self, tmp_path: Path) -> None:
        with pytest.raises(SourceDirectoryError):
            optimize_directory(_config(tmp_path))

    def test_uncreatable_target_dir_is_fatal(self, tmp_path: Path, make_image) -> None:
        make_image(tmp_path / "src" / "a.jpg", (500, 400))
        blocker = tmp_path / "file"
        blocker.write_text("x")
        with pytest.raises(TargetDirectoryError):
            optimize_directory(_config(tmp_path, target_dir=blocker / "out"))

    def test_unexpected_error_aborts_naming_file(self, tmp_path: Path, make_image, monkeypatch) -> None:
        make_image(tmp_path / "src" / "a.jpg", (500, 400))

        def _explode(path: Path, config: OptimizerConfig) -> None:
            raise KeyError("internal")

        monkeypatch.setattr(processing, "process_image", _explode)
        with pytest.raises(OptimizerError, match="a.jpg"):
            optimize_directory(_config(tmp_path))
