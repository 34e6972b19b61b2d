"""Pytest configuration and shared fixtures."""

from pathlib import Path

import pytest

from match_screenshot.baseline.store import BaselineStore
from match_screenshot.capture.playwright_capture import CaptureResult
from match_screenshot.imaging.codec import PixelBuffer, encode
from match_screenshot.models.config import UPDATE_ENV_VAR, ScreenshotConfig

RED = (255, 0, 0, 255)
BLUE = (0, 0, 255, 255)
WHITE = (255, 255, 255, 255)


def solid(width: int, height: int, color=RED) -> PixelBuffer:
    """A single-color RGBA buffer."""
    return PixelBuffer(width=width, height=height, data=bytes(color) * (width * height))


def with_pixels(buffer: PixelBuffer, changes: dict) -> PixelBuffer:
    """Copy ``buffer`` with the pixels at the given (x, y) keys recolored."""
    data = bytearray(buffer.data)
    for (x, y), color in changes.items():
        offset = (y * buffer.width + x) * 4
        data[offset:offset + 4] = bytes(color)
    return PixelBuffer(width=buffer.width, height=buffer.height, data=bytes(data))


class FakeCapturer:
    """Capture collaborator that writes a preset image under the requested label."""

    def __init__(self, output_dir: Path, image: PixelBuffer):
        self.output_dir = output_dir
        self.image = image
        self.labels: list[str] = []

    async def capture(self, label: str) -> CaptureResult:
        self.labels.append(label)
        # Mimic runners that add their own suffix to the file name
        path = self.output_dir / f"{label} (attempt 1).png"
        encode(self.image, path)
        return CaptureResult(path=str(path))


# ============================================================================
# Configuration Fixtures
# ============================================================================


@pytest.fixture(autouse=True)
def clear_update_env(monkeypatch):
    """Keep the environment-wide update flag out of every test by default."""
    monkeypatch.delenv(UPDATE_ENV_VAR, raising=False)


@pytest.fixture
def match_config(tmp_path: Path) -> ScreenshotConfig:
    """Create a config rooted in a temporary project directory."""
    return ScreenshotConfig(root_folder=str(tmp_path / "project"))


@pytest.fixture
def store(match_config: ScreenshotConfig) -> BaselineStore:
    return BaselineStore(match_config)


@pytest.fixture
def make_capturer(tmp_path: Path):
    """Factory for fake capturers writing into a scratch directory."""
    captures = tmp_path / "captures"
    captures.mkdir()

    def _make(image: PixelBuffer) -> FakeCapturer:
        return FakeCapturer(captures, image)

    return _make
