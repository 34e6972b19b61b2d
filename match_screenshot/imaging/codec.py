"""Image codec — decodes PNG files into pixel buffers and writes them back."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path

from PIL import Image, UnidentifiedImageError

from match_screenshot.errors import CorruptImageError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PixelBuffer:
    """Row-major RGBA pixels, four bytes per pixel."""

    width: int
    height: int
    data: bytes

    def __post_init__(self) -> None:
        if self.width < 0 or self.height < 0:
            raise ValueError(f"Invalid dimensions {self.width}x{self.height}")
        if len(self.data) != self.width * self.height * 4:
            raise ValueError(
                f"Pixel data has {len(self.data)} bytes, expected {self.width * self.height * 4} "
                f"for {self.width}x{self.height} RGBA"
            )

    @property
    def size(self) -> tuple[int, int]:
        return (self.width, self.height)

    @property
    def pixel_count(self) -> int:
        return self.width * self.height

    def __len__(self) -> int:
        return self.pixel_count

    def pixel(self, x: int, y: int) -> tuple[int, int, int, int]:
        if not (0 <= x < self.width and 0 <= y < self.height):
            raise IndexError(f"Pixel ({x}, {y}) outside {self.width}x{self.height} image")
        offset = (y * self.width + x) * 4
        r, g, b, a = self.data[offset:offset + 4]
        return (r, g, b, a)

    @classmethod
    def from_image(cls, image: Image.Image) -> "PixelBuffer":
        rgba = image if image.mode == "RGBA" else image.convert("RGBA")
        return cls(width=rgba.width, height=rgba.height, data=rgba.tobytes())

    def to_image(self) -> Image.Image:
        return Image.frombytes("RGBA", self.size, self.data)


class EmptyImage:
    """Sentinel for a missing or zero-length image file (no baseline yet)."""

    _instance: "EmptyImage | None" = None

    def __new__(cls) -> "EmptyImage":
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __bool__(self) -> bool:
        return False

    def __repr__(self) -> str:
        return "EMPTY_IMAGE"


EMPTY_IMAGE = EmptyImage()


def decode(path: str | Path) -> PixelBuffer | EmptyImage:
    """Decode an image file, returning EMPTY_IMAGE if it is missing or empty."""
    path = Path(path)
    if not path.exists() or path.stat().st_size == 0:
        logger.debug("No image content at %s", path)
        return EMPTY_IMAGE
    try:
        with Image.open(path) as img:
            img.load()
            buffer = PixelBuffer.from_image(img)
    except (UnidentifiedImageError, SyntaxError, ValueError, EOFError) as e:
        raise CorruptImageError(str(path), str(e)) from e
    except OSError as e:
        # Pillow reports truncated and malformed streams as OSError without an errno
        if e.errno is not None:
            raise
        raise CorruptImageError(str(path), str(e)) from e
    logger.debug("Decoded %s (%dx%d)", path, buffer.width, buffer.height)
    return buffer


def encode(buffer: PixelBuffer, path: str | Path) -> Path:
    """Write a pixel buffer as a lossless PNG."""
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    buffer.to_image().save(path, format="PNG")
    logger.debug("Wrote %s (%dx%d)", path, buffer.width, buffer.height)
    return path
