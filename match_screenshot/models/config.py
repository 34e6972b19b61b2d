"""Configuration model for screenshot matching."""

from __future__ import annotations

import json
import os
from pathlib import Path

from pydantic import BaseModel, Field

from match_screenshot.models.comparison import ThresholdPolicy

UPDATE_ENV_VAR = "MATCH_SCREENSHOT_UPDATE"
_TRUTHY = {"1", "true", "yes", "on"}


class ScreenshotConfig(BaseModel):
    # Layout: <root_folder>/<screenshot_folder>/{,new/,diff/}<case key>.png
    root_folder: str = ""
    screenshot_folder: str = "match-screenshots"

    # Registration
    command_name: str = "match_screenshot"

    # Accept every new screenshot as the baseline instead of asserting
    update_screenshots: bool = False

    # I/O
    max_attempts: int = Field(default=4, ge=1)
    capture_timeout_ms: int = Field(default=10000, gt=0)
    full_page: bool = False

    # Comparison
    channel_tolerance: int = Field(default=10, ge=0, le=255)
    threshold: ThresholdPolicy = Field(default_factory=ThresholdPolicy)

    @property
    def screenshot_root(self) -> Path:
        return Path(self.root_folder) / self.screenshot_folder

    def update_mode(self) -> bool:
        """Whether baselines should be overwritten regardless of the diff outcome."""
        if self.update_screenshots:
            return True
        return os.environ.get(UPDATE_ENV_VAR, "").strip().lower() in _TRUTHY

    @classmethod
    def load(cls, path: str | Path) -> "ScreenshotConfig":
        """Load config from a JSON file."""
        path = Path(path)
        if not path.exists():
            raise FileNotFoundError(f"Config file not found: {path}")
        with open(path) as f:
            data = json.load(f)
        return cls(**data)

    def save(self, path: str | Path) -> None:
        """Save config to a JSON file."""
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)
        with open(path, "w") as f:
            json.dump(self.model_dump(mode="json"), f, indent=2)
