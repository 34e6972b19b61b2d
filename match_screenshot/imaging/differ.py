"""Pixel differ — counts divergent pixels between two images and renders a diff image."""

from __future__ import annotations

import logging

from PIL import Image, ImageChops

from match_screenshot.imaging.codec import PixelBuffer
from match_screenshot.models.comparison import ComparisonResult, ThresholdPolicy

logger = logging.getLogger(__name__)

# Per-channel delta that is still considered the same pixel (absorbs compression noise)
DEFAULT_CHANNEL_TOLERANCE = 10

MARKER_COLOR = (255, 0, 255, 255)


def _difference_mask(candidate: PixelBuffer, accepted: PixelBuffer, channel_tolerance: int) -> Image.Image:
    """Return an "L" mask that is 255 wherever any RGBA channel differs beyond the tolerance."""
    delta = ImageChops.difference(candidate.to_image(), accepted.to_image())
    lut = [255 if v > channel_tolerance else 0 for v in range(256)]
    bands = [band.point(lut) for band in delta.split()]
    mask = bands[0]
    for band in bands[1:]:
        mask = ImageChops.lighter(mask, band)
    return mask


def compare(
    candidate: PixelBuffer,
    accepted: PixelBuffer,
    policy: ThresholdPolicy | None = None,
    channel_tolerance: int = DEFAULT_CHANNEL_TOLERANCE,
) -> ComparisonResult:
    """Compare two pixel buffers under a threshold policy.

    Images with different dimensions are never resized: every pixel of the
    larger image counts as differing and the comparison fails regardless of
    the threshold.
    """
    policy = policy or ThresholdPolicy()

    if candidate.size != accepted.size:
        total = max(candidate.pixel_count, accepted.pixel_count)
        logger.info(
            "Dimension mismatch: candidate %dx%d vs accepted %dx%d",
            candidate.width, candidate.height, accepted.width, accepted.height,
        )
        return ComparisonResult(
            matches=False,
            diff_pixel_count=total,
            diff_ratio=1.0,
            total_pixels=total,
            dimension_mismatch=True,
            threshold=policy,
        )

    total = candidate.pixel_count
    if total == 0:
        return ComparisonResult(matches=True, threshold=policy)

    mask = _difference_mask(candidate, accepted, channel_tolerance)
    diff_count = mask.histogram()[255]
    diff_ratio = diff_count / total
    matches = policy.allows(diff_count, diff_ratio)
    logger.debug(
        "Compared %dx%d: %d differing pixels (%.4f), threshold %s -> %s",
        candidate.width, candidate.height, diff_count, diff_ratio, policy.describe(),
        "match" if matches else "mismatch",
    )
    return ComparisonResult(
        matches=matches,
        diff_pixel_count=diff_count,
        diff_ratio=diff_ratio,
        total_pixels=total,
        threshold=policy,
    )


def render_diff(
    candidate: PixelBuffer,
    accepted: PixelBuffer,
    channel_tolerance: int = DEFAULT_CHANNEL_TOLERANCE,
) -> PixelBuffer | None:
    """Render the accepted image washed out, with differing pixels in MARKER_COLOR.

    Returns None when the images are not comparable (different dimensions or empty).
    """
    if candidate.size != accepted.size or candidate.pixel_count == 0:
        return None
    mask = _difference_mask(candidate, accepted, channel_tolerance)
    gray = accepted.to_image().convert("L").point(lambda v: 255 - (255 - v) // 4)
    opaque = Image.new("L", accepted.size, 255)
    background = Image.merge("RGBA", (gray, gray, gray, opaque))
    marker = Image.new("RGBA", accepted.size, MARKER_COLOR)
    return PixelBuffer.from_image(Image.composite(marker, background, mask))
