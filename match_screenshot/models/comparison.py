"""Comparison data structures: case identity, baseline slots, thresholds and results."""

from __future__ import annotations

import re
from enum import Enum
from pathlib import Path
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

CASE_KEY_SEPARATOR = " -- "

# "%" is escaped too so that escaping stays reversible
_UNSAFE_KEY_CHARS = re.compile(r'[%/\\:*?"<>|\x00-\x1f\x7f]')


def _escape_key_part(part: str) -> str:
    escaped = _UNSAFE_KEY_CHARS.sub(lambda m: f"%{ord(m.group()):02X}", part)
    # keeps the separator from appearing inside a part
    return escaped.replace("--", "%2D%2D")


class ThresholdType(str, Enum):
    RAW_COUNT = "pixel"
    PERCENTAGE = "percent"


_THRESHOLD_TYPE_ALIASES = {
    "pixel": ThresholdType.RAW_COUNT,
    "pixels": ThresholdType.RAW_COUNT,
    "raw": ThresholdType.RAW_COUNT,
    "raw_count": ThresholdType.RAW_COUNT,
    "percent": ThresholdType.PERCENTAGE,
    "percentage": ThresholdType.PERCENTAGE,
}


class ThresholdPolicy(BaseModel):
    """Upper bound (inclusive) on the difference a comparison may show and still pass."""

    model_config = ConfigDict(frozen=True)

    threshold: float = Field(default=0.005, ge=0)
    threshold_type: ThresholdType = ThresholdType.PERCENTAGE

    @field_validator("threshold_type", mode="before")
    @classmethod
    def parse_threshold_type(cls, v: Any) -> Any:
        if v is None or v == "":
            return ThresholdType.PERCENTAGE
        if isinstance(v, str):
            normalized = v.strip().lower().replace("-", "_")
            if normalized in _THRESHOLD_TYPE_ALIASES:
                return _THRESHOLD_TYPE_ALIASES[normalized]
            if normalized.upper() in ThresholdType.__members__:
                return ThresholdType[normalized.upper()]
        return v

    @classmethod
    def from_options(
        cls, options: Optional[dict[str, Any]] = None, default: Optional["ThresholdPolicy"] = None
    ) -> "ThresholdPolicy":
        """Build a policy from a loose options mapping, filling gaps from ``default``."""
        base = default or cls()
        if not options:
            return base
        threshold = options.get("threshold")
        threshold_type = options.get("threshold_type", options.get("thresholdType"))
        return cls(
            threshold=base.threshold if threshold is None else threshold,
            threshold_type=base.threshold_type if threshold_type is None else threshold_type,
        )

    def allows(self, diff_pixel_count: int, diff_ratio: float) -> bool:
        if self.threshold_type == ThresholdType.RAW_COUNT:
            return diff_pixel_count <= self.threshold
        return diff_ratio <= self.threshold

    def describe(self) -> str:
        if self.threshold_type == ThresholdType.RAW_COUNT:
            return f"{self.threshold:g} pixels"
        return f"{self.threshold:.2%}"


class ScreenshotCaseId(BaseModel):
    """Identifies one baseline slot: suite, test and caller-supplied label."""

    model_config = ConfigDict(frozen=True)

    suite_name: str
    test_name: str
    label: str

    @property
    def key(self) -> str:
        parts = (self.suite_name, self.test_name, self.label)
        return CASE_KEY_SEPARATOR.join(_escape_key_part(part) for part in parts)

    def __str__(self) -> str:
        return self.key


class BaselineSlot(BaseModel):
    model_config = ConfigDict(frozen=True)

    key: str
    accepted: Path
    candidate: Path
    diff: Path


class ComparisonResult(BaseModel):
    matches: bool
    diff_pixel_count: int = 0
    diff_ratio: float = 0.0
    total_pixels: int = 0
    diff_artifact_path: Optional[str] = None
    dimension_mismatch: bool = False
    bootstrapped: bool = False  # no accepted baseline existed; candidate promoted as-is
    promoted: bool = False
    threshold: Optional[ThresholdPolicy] = None

    def summary(self) -> str:
        if self.bootstrapped:
            return "No previous screenshot; stored as new baseline"
        if self.dimension_mismatch:
            msg = "Image dimensions differ"
        else:
            msg = f"Pixel diff: {self.diff_pixel_count}/{self.total_pixels} ({self.diff_ratio:.2%})"
        if self.threshold is not None:
            msg += f" (threshold: {self.threshold.describe()})"
        if self.diff_artifact_path:
            msg += f", diff: {self.diff_artifact_path}"
        return msg
