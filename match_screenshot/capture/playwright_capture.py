"""Screenshot capture — produces the raw image the orchestrator stages as a candidate."""

from __future__ import annotations

import inspect
import logging
from pathlib import Path
from typing import Protocol

from playwright.async_api import Error as PlaywrightError
from playwright.async_api import Page
from playwright.async_api import TimeoutError as PlaywrightTimeoutError
from pydantic import BaseModel

from match_screenshot.errors import CaptureError, CaptureTimeoutError

logger = logging.getLogger(__name__)


class CaptureResult(BaseModel):
    path: str  # where the screenshot was actually written


class ScreenshotCapturer(Protocol):
    async def capture(self, label: str) -> CaptureResult: ...


class PlaywrightCapture:
    """Captures screenshots of a Playwright page into a scratch directory."""

    def __init__(
        self,
        page: Page,
        output_dir: Path,
        full_page: bool = False,
        timeout_ms: int = 10000,
    ):
        if not inspect.iscoroutinefunction(getattr(page, "screenshot", None)):
            raise TypeError(
                "PlaywrightCapture needs an async Playwright Page (playwright.async_api); "
                f"got {type(page).__name__}. With pytest-playwright's sync page, "
                "override the screenshot_capturer fixture or use pytest-playwright-asyncio."
            )
        self.page = page
        self.output_dir = Path(output_dir)
        self.full_page = full_page
        self.timeout_ms = timeout_ms

    async def capture(self, label: str) -> CaptureResult:
        """Take a screenshot named after ``label`` and return where it was written."""
        self.output_dir.mkdir(parents=True, exist_ok=True)
        path = self.output_dir / f"{label}.png"
        try:
            await self.page.screenshot(path=str(path), full_page=self.full_page, timeout=self.timeout_ms)
        except PlaywrightTimeoutError as e:
            raise CaptureTimeoutError(f"Screenshot '{label}' timed out after {self.timeout_ms}ms") from e
        except PlaywrightError as e:
            raise CaptureError(f"Screenshot '{label}' failed: {e}") from e
        logger.debug("Captured screenshot %s", path)
        return CaptureResult(path=str(path))
