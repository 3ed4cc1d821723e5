import logging
import sys
from collections.abc import Callable
from pathlib import Path

import pytest
from PIL import Image

PROJECT_ROOT = Path(__file__).resolve().parents[1]
SRC_PATH = PROJECT_ROOT / "src"
if str(SRC_PATH) not in sys.path:
    sys.path.insert(0, str(SRC_PATH))


@pytest.fixture
def isolate_logging():
    """Isolate logging configuration between tests.

    The CLI calls logging.basicConfig(force=True); restore the root logger
    afterwards so later tests are not affected by handlers bound to closed
    CliRunner streams.
    """
    original_handlers = logging.root.handlers[:]
    original_level = logging.root.level

    logging.root.handlers.clear()
    logging.root.addHandler(logging.NullHandler())

    yield

    logging.root.handlers.clear()
    logging.root.handlers.extend(original_handlers)
    logging.root.setLevel(original_level)


@pytest.fixture
def make_image() -> Callable[..., Path]:
    """Write a solid-colour image of the given size and return its path."""

    def _make(
        path: Path,
        size: tuple[int, int],
        mode: str = "RGB",
        color: tuple[int, ...] = (200, 80, 40, 255),
    ) -> Path:
        path.parent.mkdir(parents=True, exist_ok=True)
        fmt = "PNG" if path.suffix.lower() == ".png" else "JPEG"
        Image.new(mode, size, color[: len(mode)]).save(path, format=fmt)
        return path

    return _make
