"""CLI entry point for screenshot matching."""

from __future__ import annotations

import logging
import sys
from pathlib import Path

import click
from rich.console import Console
from rich.logging import RichHandler
from rich.table import Table

from match_screenshot.baseline.store import BaselineStore
from match_screenshot.errors import CorruptImageError
from match_screenshot.imaging.codec import EmptyImage, decode, encode
from match_screenshot.imaging.differ import compare as compare_images
from match_screenshot.imaging.differ import render_diff
from match_screenshot.models.comparison import ThresholdPolicy, ThresholdType
from match_screenshot.models.config import ScreenshotConfig

console = Console()

DEFAULT_CONFIG = "match-screenshot.json"


def setup_logging(verbose: bool = False) -> None:
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=console, rich_tracebacks=True)],
    )


def load_config(path: str) -> ScreenshotConfig:
    """Load the config file, falling back to defaults when it does not exist."""
    try:
        return ScreenshotConfig.load(path)
    except FileNotFoundError:
        return ScreenshotConfig()


@click.group()
@click.option("--verbose", "-v", is_flag=True, help="Enable debug logging")
def cli(verbose: bool) -> None:
    """Visual regression baselines: compare, review and accept screenshots."""
    setup_logging(verbose)


@cli.command()
@click.argument("path_old", type=click.Path(dir_okay=False))
@click.argument("path_new", type=click.Path(exists=True, dir_okay=False))
@click.option("--diff", "diff_path", default=None, type=click.Path(dir_okay=False), help="Write a diff image here")
@click.option("--threshold", type=float, default=None, help="Allowed difference (default 0.005)")
@click.option(
    "--threshold-type",
    type=click.Choice([t.value for t in ThresholdType]),
    default=None,
    help="Interpret the threshold as a pixel count or a fraction of pixels",
)
@click.option("--config", "-c", default=DEFAULT_CONFIG, help="Config file path")
def compare(
    path_old: str, path_new: str, diff_path: str | None, threshold: float | None,
    threshold_type: str | None, config: str,
) -> None:
    """Compare PATH_NEW against the baseline PATH_OLD."""
    cfg = load_config(config)
    policy = ThresholdPolicy.from_options(
        {"threshold": threshold, "threshold_type": threshold_type}, default=cfg.threshold
    )
    try:
        old = decode(path_old)
        new = decode(path_new)
    except CorruptImageError as e:
        console.print(f"[red]{e}[/red]")
        sys.exit(2)
    if isinstance(old, EmptyImage):
        console.print(f"[yellow]No baseline at {path_old}; nothing to compare[/yellow]")
        return
    if isinstance(new, EmptyImage):
        console.print(f"[red]Screenshot {path_new} is empty[/red]")
        sys.exit(1)

    result = compare_images(new, old, policy, channel_tolerance=cfg.channel_tolerance)
    if diff_path:
        diff_image = render_diff(new, old, channel_tolerance=cfg.channel_tolerance)
        if diff_image is not None:
            encode(diff_image, diff_path)
            result = result.model_copy(update={"diff_artifact_path": diff_path})

    if result.matches:
        console.print(f"[green]Match[/green] {result.summary()}")
        return
    console.print(f"[red]Mismatch[/red] {result.summary()}")
    sys.exit(1)


@cli.command()
@click.option("--config", "-c", default=DEFAULT_CONFIG, help="Config file path")
def status(config: str) -> None:
    """Show every baseline slot and which images it holds."""
    cfg = load_config(config)
    store = BaselineStore(cfg)
    keys = store.list_cases()
    if not keys:
        console.print(f"[yellow]No screenshots under {store.root}[/yellow]")
        return

    table = Table(title=f"Screenshots in {store.root}")
    table.add_column("Case", style="bold")
    table.add_column("Baseline")
    table.add_column("Candidate")
    table.add_column("Diff")
    for key in keys:
        slot = store.slot(key)
        if not slot.accepted.exists():
            baseline = "[red]missing[/red]"
        elif slot.accepted.stat().st_size == 0:
            baseline = "[yellow]placeholder[/yellow]"
        else:
            baseline = "[green]yes[/green]"
        table.add_row(
            key,
            baseline,
            "[yellow]pending[/yellow]" if slot.candidate.exists() else "",
            "[red]yes[/red]" if slot.diff.exists() else "",
        )
    console.print(table)


@cli.command()
@click.argument("keys", nargs=-1)
@click.option("--config", "-c", default=DEFAULT_CONFIG, help="Config file path")
def accept(keys: tuple[str, ...], config: str) -> None:
    """Promote pending candidates to baselines (all pending when no KEYS given)."""
    cfg = load_config(config)
    store = BaselineStore(cfg)
    pending = store.pending_cases()
    targets = list(keys) if keys else pending
    if not targets:
        console.print("[yellow]No pending screenshots[/yellow]")
        return

    missing = [k for k in targets if k not in pending]
    for key in missing:
        console.print(f"[red]No pending screenshot for '{key}'[/red]")
    for key in targets:
        if key in pending:
            store.promote(key)
            console.print(f"[green]Accepted[/green] {key}")
    if missing:
        sys.exit(1)


@cli.command()
@click.option("--config", "-c", default=DEFAULT_CONFIG, help="Config file path")
def clean(config: str) -> None:
    """Delete pending candidates and diff images; baselines are kept."""
    cfg = load_config(config)
    removed = BaselineStore(cfg).clean()
    console.print(f"[green]Removed {removed} file(s)[/green]")


@cli.command()
@click.option("--root", "-r", default="", help="Project root prefix for the screenshot folder")
@click.option("--config", "-c", default=DEFAULT_CONFIG, help="Config file path")
def init(root: str, config: str) -> None:
    """Create a default configuration file."""
    config_path = Path(config)
    if config_path.exists():
        if not click.confirm(f"{config_path} already exists. Overwrite?"):
            return

    cfg = ScreenshotConfig(root_folder=root)
    cfg.save(config_path)
    console.print(f"[green]Created {config_path}[/green]")
    console.print(f"Screenshots will be stored under [blue]{cfg.screenshot_root}[/blue]")


if __name__ == "__main__":
    cli()
