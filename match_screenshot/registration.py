"""Registration surface — binds the matcher to a test runner's naming context."""

from __future__ import annotations

import logging
from typing import Any, Awaitable, Callable, Optional

from match_screenshot.capture.playwright_capture import ScreenshotCapturer
from match_screenshot.models.comparison import ComparisonResult, ThresholdPolicy
from match_screenshot.models.config import ScreenshotConfig
from match_screenshot.orchestrator import ScreenshotMatcher

logger = logging.getLogger(__name__)

MatchFunction = Callable[..., Awaitable[ComparisonResult]]


class ScreenshotCommand:
    """A named, configured screenshot matching command."""

    def __init__(self, config: ScreenshotConfig):
        self.config = config

    @property
    def name(self) -> str:
        return self.config.command_name

    def matcher(self, capturer: ScreenshotCapturer) -> ScreenshotMatcher:
        return ScreenshotMatcher(self.config, capturer)

    def bind(self, capturer: ScreenshotCapturer, suite_name: str, test_name: str) -> MatchFunction:
        """Return ``async (label, options=None) -> ComparisonResult`` for one test."""
        matcher = self.matcher(capturer)

        async def match_screenshot(label: str, options: Optional[dict[str, Any]] = None) -> ComparisonResult:
            policy = ThresholdPolicy.from_options(options, default=self.config.threshold)
            return await matcher.match(suite_name, test_name, label, policy)

        match_screenshot.__name__ = self.name
        return match_screenshot


def register(
    command_name: str = "match_screenshot",
    root_folder: str = "",
    config: ScreenshotConfig | None = None,
    **overrides: Any,
) -> ScreenshotCommand:
    """Create a screenshot command with its own configuration.

    ``overrides`` are any other ScreenshotConfig fields. The returned command
    holds its configuration; nothing module-wide is changed.
    """
    base = config.model_dump() if config is not None else {}
    base.update(overrides)
    base["command_name"] = command_name
    # An explicit config keeps its root unless one is passed here
    if root_folder or config is None:
        base["root_folder"] = root_folder
    cfg = ScreenshotConfig(**base)
    logger.debug("Registered '%s' with screenshot root %s", cfg.command_name, cfg.screenshot_root)
    return ScreenshotCommand(cfg)
