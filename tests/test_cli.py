"""Tests for the CLI."""

import json
from pathlib import Path

import pytest
from click.testing import CliRunner

from conftest import BLUE, RED, solid, with_pixels
from match_screenshot.baseline.store import BaselineStore
from match_screenshot.cli import cli
from match_screenshot.imaging.codec import decode, encode
from match_screenshot.models.config import ScreenshotConfig


@pytest.fixture
def runner() -> CliRunner:
    return CliRunner()


@pytest.fixture
def config_file(tmp_path: Path) -> Path:
    path = tmp_path / "match-screenshot.json"
    ScreenshotConfig(root_folder=str(tmp_path / "project")).save(path)
    return path


class TestCompareCommand:
    def test_matching_images_exit_zero(self, runner: CliRunner, tmp_path: Path):
        old = encode(solid(4, 4), tmp_path / "old.png")
        new = encode(solid(4, 4), tmp_path / "new.png")
        result = runner.invoke(cli, ["compare", str(old), str(new), "-c", str(tmp_path / "none.json")])
        assert result.exit_code == 0
        assert "Match" in result.output

    def test_mismatch_exits_one_and_writes_diff(self, runner: CliRunner, tmp_path: Path):
        old = encode(solid(4, 4, RED), tmp_path / "old.png")
        new = encode(with_pixels(solid(4, 4, RED), {(0, 0): BLUE}), tmp_path / "new.png")
        diff = tmp_path / "out" / "diff.png"
        result = runner.invoke(cli, [
            "compare", str(old), str(new), "--diff", str(diff),
            "--threshold", "0.05", "--threshold-type", "percent",
        ])
        assert result.exit_code == 1
        assert "Mismatch" in result.output
        assert decode(diff).size == (4, 4)

    def test_raw_threshold(self, runner: CliRunner, tmp_path: Path):
        old = encode(solid(4, 4, RED), tmp_path / "old.png")
        new = encode(with_pixels(solid(4, 4, RED), {(0, 0): BLUE}), tmp_path / "new.png")
        result = runner.invoke(cli, ["compare", str(old), str(new), "--threshold", "1", "--threshold-type", "pixel"])
        assert result.exit_code == 0

    def test_missing_baseline_is_not_a_failure(self, runner: CliRunner, tmp_path: Path):
        new = encode(solid(2, 2), tmp_path / "new.png")
        result = runner.invoke(cli, ["compare", str(tmp_path / "old.png"), str(new)])
        assert result.exit_code == 0
        assert "No baseline" in result.output

    def test_corrupt_image_exits_two(self, runner: CliRunner, tmp_path: Path):
        old = tmp_path / "old.png"
        old.write_bytes(b"junk")
        new = encode(solid(2, 2), tmp_path / "new.png")
        result = runner.invoke(cli, ["compare", str(old), str(new)])
        assert result.exit_code == 2


class TestBaselineCommands:
    def test_status_lists_slots(self, runner: CliRunner, config_file: Path):
        store = BaselineStore(ScreenshotConfig.load(config_file))
        encode(solid(1, 1), store.slot("Suite -- t -- a").accepted)
        encode(solid(1, 1), store.slot("Suite -- t -- a").candidate)
        result = runner.invoke(cli, ["status", "-c", str(config_file)])
        assert result.exit_code == 0
        assert "Suite -- t -- a" in result.output
        assert "pending" in result.output

    def test_status_empty(self, runner: CliRunner, config_file: Path):
        result = runner.invoke(cli, ["status", "-c", str(config_file)])
        assert result.exit_code == 0
        assert "No screenshots" in result.output

    def test_accept_all_pending(self, runner: CliRunner, config_file: Path):
        store = BaselineStore(ScreenshotConfig.load(config_file))
        encode(solid(1, 1, RED), store.slot("a").accepted)
        encode(solid(1, 1, BLUE), store.slot("a").candidate)
        encode(solid(1, 1, BLUE), store.slot("b").candidate)
        result = runner.invoke(cli, ["accept", "-c", str(config_file)])
        assert result.exit_code == 0
        assert store.pending_cases() == []
        assert decode(store.slot("a").accepted) == solid(1, 1, BLUE)

    def test_accept_unknown_key(self, runner: CliRunner, config_file: Path):
        store = BaselineStore(ScreenshotConfig.load(config_file))
        encode(solid(1, 1), store.slot("a").candidate)
        result = runner.invoke(cli, ["accept", "missing", "-c", str(config_file)])
        assert result.exit_code == 1
        assert store.pending_cases() == ["a"]

    def test_clean(self, runner: CliRunner, config_file: Path):
        store = BaselineStore(ScreenshotConfig.load(config_file))
        encode(solid(1, 1), store.slot("a").accepted)
        encode(solid(1, 1), store.slot("a").candidate)
        encode(solid(1, 1), store.slot("a").diff)
        result = runner.invoke(cli, ["clean", "-c", str(config_file)])
        assert result.exit_code == 0
        assert "Removed 2" in result.output
        assert store.slot("a").accepted.exists()

    def test_init_writes_config(self, runner: CliRunner, tmp_path: Path):
        path = tmp_path / "cfg.json"
        result = runner.invoke(cli, ["init", "--root", "web", "-c", str(path)])
        assert result.exit_code == 0
        assert json.loads(path.read_text())["root_folder"] == "web"

    def test_init_keeps_existing_when_declined(self, runner: CliRunner, tmp_path: Path):
        path = tmp_path / "cfg.json"
        path.write_text("{}")
        result = runner.invoke(cli, ["init", "-c", str(path)], input="n\n")
        assert result.exit_code == 0
        assert path.read_text() == "{}"
