"""Baseline store — manages accepted, candidate and diff images for each test case.

Layout under the screenshot root::

    <key>.png          accepted baseline
    new/<key>.png      candidate from the current run
    diff/<key>.png     rendered difference of a failed comparison

Operations on different case keys touch disjoint paths. Operations on the
same key are not locked; callers must not run them concurrently.
"""

from __future__ import annotations

import logging
import os
import shutil
from pathlib import Path

from match_screenshot.imaging.codec import PixelBuffer, encode
from match_screenshot.models.comparison import BaselineSlot, ScreenshotCaseId
from match_screenshot.models.config import ScreenshotConfig
from match_screenshot.utils.retry import with_retry

logger = logging.getLogger(__name__)

CANDIDATE_DIR = "new"
DIFF_DIR = "diff"
IMAGE_SUFFIX = ".png"


def _case_key(case: ScreenshotCaseId | str) -> str:
    return case.key if isinstance(case, ScreenshotCaseId) else case


class BaselineStore:
    """Filesystem lifecycle of baseline slots rooted at ``config.screenshot_root``."""

    def __init__(self, config: ScreenshotConfig):
        self.config = config
        self.root = config.screenshot_root

    def _retry(self, operation, description: str):
        return with_retry(operation, description, max_attempts=self.config.max_attempts)

    def slot(self, case: ScreenshotCaseId | str) -> BaselineSlot:
        key = _case_key(case)
        name = f"{key}{IMAGE_SUFFIX}"
        return BaselineSlot(
            key=key,
            accepted=self.root / name,
            candidate=self.root / CANDIDATE_DIR / name,
            diff=self.root / DIFF_DIR / name,
        )

    def ensure_directories(self) -> None:
        """Create the root, ``new/`` and ``diff/`` directories if missing."""
        for sub in (CANDIDATE_DIR, DIFF_DIR):
            path = self.root / sub
            self._retry(lambda p=path: p.mkdir(parents=True, exist_ok=True), f"mkdir -p {path}")

    def ensure_placeholder(self, case: ScreenshotCaseId | str) -> Path:
        """Create a zero-byte accepted file if none exists; never truncates existing content."""
        accepted = self.slot(case).accepted

        def touch() -> None:
            accepted.parent.mkdir(parents=True, exist_ok=True)
            # "a" creates without truncating
            with open(accepted, "ab"):
                pass

        self._retry(touch, f"touch {accepted}")
        return accepted

    def stage(self, case: ScreenshotCaseId | str, raw_capture_path: str | Path) -> Path:
        """Move a freshly captured screenshot into the candidate slot."""
        candidate = self.slot(case).candidate
        source = Path(raw_capture_path)

        def move() -> None:
            candidate.parent.mkdir(parents=True, exist_ok=True)
            shutil.move(str(source), str(candidate))

        self._retry(move, f"mv {source} {candidate}")
        logger.debug("Staged %s -> %s", source, candidate)
        return candidate

    def write_diff(self, case: ScreenshotCaseId | str, buffer: PixelBuffer) -> Path:
        diff = self.slot(case).diff
        self._retry(lambda: encode(buffer, diff), f"write {diff}")
        return diff

    def discard_diff(self, case: ScreenshotCaseId | str) -> None:
        diff = self.slot(case).diff
        self._retry(lambda: diff.unlink(missing_ok=True), f"rm {diff}")

    def promote(self, case: ScreenshotCaseId | str) -> Path:
        """Replace the accepted baseline with the candidate, then drop any diff.

        The candidate swap is a single ``os.replace``; a crash before the
        diff is removed leaves only a stale diff behind.
        """
        slot = self.slot(case)
        self._retry(lambda: os.replace(slot.candidate, slot.accepted), f"mv {slot.candidate} {slot.accepted}")
        self.discard_diff(case)
        logger.info("Promoted new baseline for '%s'", slot.key)
        return slot.accepted

    def retain(self, case: ScreenshotCaseId | str) -> BaselineSlot:
        """Keep candidate and diff in place for inspection; the accepted baseline is untouched."""
        slot = self.slot(case)
        logger.info(
            "Retained candidate %s%s for review",
            slot.candidate, f" and diff {slot.diff}" if slot.diff.exists() else "",
        )
        return slot

    def list_cases(self) -> list[str]:
        """All case keys with an accepted, candidate or diff image."""
        keys: set[str] = set()
        for directory in (self.root, self.root / CANDIDATE_DIR, self.root / DIFF_DIR):
            if directory.is_dir():
                keys.update(p.stem for p in directory.glob(f"*{IMAGE_SUFFIX}") if p.is_file())
        return sorted(keys)

    def pending_cases(self) -> list[str]:
        """Case keys with a candidate waiting for judgment."""
        directory = self.root / CANDIDATE_DIR
        if not directory.is_dir():
            return []
        return sorted(p.stem for p in directory.glob(f"*{IMAGE_SUFFIX}") if p.is_file())

    def clean(self, case: ScreenshotCaseId | str | None = None) -> int:
        """Delete candidate and diff images (all cases when ``case`` is None). Returns files removed."""
        keys = [_case_key(case)] if case is not None else self.list_cases()
        removed = 0
        for key in keys:
            slot = self.slot(key)
            for path in (slot.candidate, slot.diff):
                if path.exists():
                    self._retry(lambda p=path: p.unlink(missing_ok=True), f"rm {path}")
                    removed += 1
        if removed:
            logger.info("Removed %d candidate/diff images", removed)
        return removed
