"""Shared fixtures: synthetic screenshots under display folders."""

import os
import time
from pathlib import Path

import pytest
from PIL import Image

RED = (255, 0, 0, 255)
BLUE = (0, 0, 255, 255)
GREEN = (0, 255, 0, 255)


def write_png(path: Path, pixels, size=(2, 2)) -> Path:
    """Write an RGBA PNG from a flat list of pixels (or one solid colour)."""
    path.parent.mkdir(parents=True, exist_ok=True)
    img = Image.new("RGBA", size)
    if isinstance(pixels, tuple):
        pixels = [pixels] * (size[0] * size[1])
    img.putdata(list(pixels))
    img.save(path, "PNG")
    return path


def set_mtime(path: Path, seconds_ago: float) -> None:
    stamp = time.time() - seconds_ago
    os.utime(path, (stamp, stamp))


@pytest.fixture
def capture_root(tmp_path):
    """An empty capture root directory."""
    root = tmp_path / "captures"
    root.mkdir()
    return root


@pytest.fixture
def make_png():
    return write_png
