import os
import shutil
from pathlib import Path

import pytest
from PIL import Image


def pytest_configure(config):
    """
    Hook that runs before test collection.
    Point IMAGEBENCH_OUTPUT_DIR at a scratch directory for all tests.
    """
    temp_dir = Path("pytest-output-tmp")

    # Clean up if it exists from a previous run
    if temp_dir.exists():
        shutil.rmtree(temp_dir)

    temp_dir.mkdir(parents=True, exist_ok=True)

    # Set environment variable BEFORE any test code imports modules
    os.environ["IMAGEBENCH_OUTPUT_DIR"] = str(temp_dir)


def pytest_unconfigure(config):
    """
    Hook that runs after all tests complete.
    Clean up the scratch output directory.
    """
    temp_dir = Path("pytest-output-tmp")
    if temp_dir.exists():
        shutil.rmtree(temp_dir)


def write_image(path: Path, width: int, height: int, mode: str = "RGB", color=(200, 40, 90)) -> Path:
    """Save a solid-colour image; the format follows the file extension."""
    path.parent.mkdir(parents=True, exist_ok=True)
    if mode == "L":
        color = color[0]
    elif mode == "RGBA" and len(color) == 3:
        color = (*color, 255)
    Image.new(mode, (width, height), color=color).save(path)
    return path


@pytest.fixture
def make_image(tmp_path):
    """Factory writing test images under tmp_path."""

    def _make(relative: str, width: int, height: int, mode: str = "RGB", color=(200, 40, 90)) -> Path:
        return write_image(tmp_path / relative, width, height, mode=mode, color=color)

    return _make


@pytest.fixture
def png_bytes():
    """Encoded 3x2 RGB PNG."""
    from io import BytesIO

    buf = BytesIO()
    Image.new("RGB", (3, 2), color=(1, 2, 3)).save(buf, format="PNG")
    return buf.getvalue()


@pytest.fixture
def corpus(tmp_path, make_image):
    """Data directory with png/ and jpg/ subdirectories, one image each."""
    make_image("data/png/a.png", 16, 16)
    make_image("data/jpg/a.jpg", 40, 20)
    return tmp_path / "data"
