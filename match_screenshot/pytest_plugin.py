"""pytest integration — exposes the screenshot command as a fixture.

Usage::

    @pytest.mark.asyncio
    async def test_homepage(page, match_screenshot):
        await page.goto("https://example.com")
        await match_screenshot("landing", {"threshold": 0.01})

The fixture is named after the configured command name
(``match_screenshot_command`` ini option). Screenshots come from the
``screenshot_capturer`` fixture, which wraps an async Playwright ``page``
fixture by default and can be overridden in a conftest. The ``page``
fixture must come from the async API (for example pytest-playwright-asyncio);
the sync ``page`` of pytest-playwright is rejected with a TypeError.
"""

from __future__ import annotations

import types
from pathlib import Path

import pytest

from match_screenshot.capture.playwright_capture import PlaywrightCapture
from match_screenshot.models.config import ScreenshotConfig
from match_screenshot.registration import ScreenshotCommand, register

DEFAULT_COMMAND_NAME = "match_screenshot"


def pytest_addoption(parser) -> None:
    group = parser.getgroup("match-screenshot")
    group.addoption(
        "--update-screenshots",
        action="store_true",
        default=False,
        help="Accept every captured screenshot as the new baseline.",
    )
    group.addoption(
        "--screenshot-root",
        default=None,
        help="Project root prefix for the screenshot folder.",
    )
    parser.addini("match_screenshot_command", "Fixture name for the screenshot command.",
                  default=DEFAULT_COMMAND_NAME)
    parser.addini("match_screenshot_root", "Project root prefix for the screenshot folder.", default="")
    parser.addini("match_screenshot_config", "JSON config file for screenshot matching.", default="")


def _test_names(request) -> tuple[str, str]:
    node = request.node
    if node.cls is not None:
        suite = node.cls.__name__
    else:
        suite = node.module.__name__.rsplit(".", 1)[-1]
    return suite, node.name


def _command_fixture_module(command_name: str) -> types.ModuleType:
    holder = types.ModuleType(f"match_screenshot_command_{command_name}")

    @pytest.fixture(name=command_name)
    def command_fixture(request, screenshot_command: ScreenshotCommand, screenshot_capturer):
        suite, test = _test_names(request)
        return screenshot_command.bind(screenshot_capturer, suite, test)

    setattr(holder, command_name, command_fixture)
    return holder


def pytest_configure(config) -> None:
    command_name = config.getini("match_screenshot_command") or DEFAULT_COMMAND_NAME
    config.pluginmanager.register(_command_fixture_module(command_name), f"match-screenshot-{command_name}")


@pytest.fixture(scope="session")
def screenshot_config(pytestconfig) -> ScreenshotConfig:
    config_path = pytestconfig.getini("match_screenshot_config")
    cfg = ScreenshotConfig.load(Path(pytestconfig.rootpath) / config_path) if config_path else ScreenshotConfig()
    if pytestconfig.getoption("--update-screenshots"):
        cfg = cfg.model_copy(update={"update_screenshots": True})
    return cfg


@pytest.fixture(scope="session")
def screenshot_command(pytestconfig, screenshot_config: ScreenshotConfig) -> ScreenshotCommand:
    root = pytestconfig.getoption("--screenshot-root") or pytestconfig.getini("match_screenshot_root")
    command_name = pytestconfig.getini("match_screenshot_command") or DEFAULT_COMMAND_NAME
    return register(command_name=command_name, root_folder=root or "", config=screenshot_config)


@pytest.fixture
def screenshot_capturer(request, tmp_path_factory, screenshot_config: ScreenshotConfig):
    page = request.getfixturevalue("page")
    return PlaywrightCapture(
        page,
        tmp_path_factory.mktemp("captures"),
        full_page=screenshot_config.full_page,
        timeout_ms=screenshot_config.capture_timeout_ms,
    )
