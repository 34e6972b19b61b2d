"""Comparison orchestrator — capture, stage, compare and promote or retain one screenshot."""

from __future__ import annotations

import asyncio
import logging
import uuid

from match_screenshot.baseline.store import BaselineStore
from match_screenshot.capture.playwright_capture import ScreenshotCapturer
from match_screenshot.errors import ScreenshotMismatchError
from match_screenshot.imaging.codec import EmptyImage, decode
from match_screenshot.imaging.differ import compare, render_diff
from match_screenshot.models.comparison import ComparisonResult, ScreenshotCaseId, ThresholdPolicy
from match_screenshot.models.config import ScreenshotConfig

logger = logging.getLogger(__name__)


class ScreenshotMatcher:
    """Matches screenshots against the baselines of earlier runs."""

    def __init__(
        self,
        config: ScreenshotConfig,
        capturer: ScreenshotCapturer,
        store: BaselineStore | None = None,
    ):
        self.config = config
        self.capturer = capturer
        self.store = store or BaselineStore(config)

    def run_match(
        self, suite_name: str, test_name: str, label: str, policy: ThresholdPolicy | None = None
    ) -> ComparisonResult:
        """Synchronous entry point for callers without an event loop."""
        return asyncio.run(self.match(suite_name, test_name, label, policy))

    async def match(
        self,
        suite_name: str,
        test_name: str,
        label: str,
        policy: ThresholdPolicy | None = None,
    ) -> ComparisonResult:
        """Capture a screenshot and compare it against the accepted baseline.

        Raises ScreenshotMismatchError when the difference exceeds the threshold,
        unless update mode is active, in which case the candidate is always promoted.
        """
        case = ScreenshotCaseId(suite_name=suite_name, test_name=test_name, label=label)
        policy = policy or self.config.threshold

        # Random capture label; the collaborator's returned path is authoritative
        capture_label = uuid.uuid4().hex
        logger.debug("[%s] capturing as %s", case.key, capture_label)
        capture = await self.capturer.capture(capture_label)

        self.store.ensure_directories()
        self.store.ensure_placeholder(case)
        self.store.stage(case, capture.path)
        slot = self.store.slot(case)

        logger.debug("[%s] decoding", case.key)
        accepted = decode(slot.accepted)
        if isinstance(accepted, EmptyImage):
            logger.info("No previous screenshot found to match against for '%s'", case.key)
            self.store.promote(case)
            return ComparisonResult(matches=True, bootstrapped=True, promoted=True, threshold=policy)

        candidate = decode(slot.candidate)
        if isinstance(candidate, EmptyImage):
            # The capture produced an empty file; treat it as a maximal difference
            logger.warning("Captured screenshot for '%s' is empty", case.key)
            total = accepted.pixel_count
            result = ComparisonResult(
                matches=False, diff_pixel_count=total, diff_ratio=1.0, total_pixels=total,
                dimension_mismatch=True, threshold=policy,
            )
        else:
            logger.debug("[%s] comparing", case.key)
            tolerance = self.config.channel_tolerance
            result = compare(candidate, accepted, policy, channel_tolerance=tolerance)
            diff_image = render_diff(candidate, accepted, channel_tolerance=tolerance)
            if diff_image is not None:
                diff_path = self.store.write_diff(case, diff_image)
                result = result.model_copy(update={"diff_artifact_path": str(diff_path)})
            else:
                self.store.discard_diff(case)

        update_mode = self.config.update_mode()
        logger.debug("[%s] deciding: matches=%s update_mode=%s", case.key, result.matches, update_mode)
        if result.matches or update_mode:
            self.store.promote(case)
            result = result.model_copy(update={"promoted": True, "diff_artifact_path": None})
            logger.info("Screenshot '%s' %s: %s", case.key,
                        "matched" if result.matches else "re-baselined", result.summary())
            return result

        self.store.retain(case)
        logger.info("Screenshot '%s' did not match: %s", case.key, result.summary())
        raise ScreenshotMismatchError(case.key, result)
