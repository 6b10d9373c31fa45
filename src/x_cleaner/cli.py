"""CLI interface for x-cleaner.

Commands:
    run       - Run the cleaner over a timeline snapshot
    scan      - Extract item attributes to CSV
    settings  - Show, change or reset filter settings
    status    - Show config location and active filters
"""

import asyncio
import re
import sys
from enum import Enum
from pathlib import Path

import click
import httpx

from .config import (
    CONFIG_FILE,
    SETTING_KEYS,
    SettingsStore,
    config_exists,
    load_runtime,
    load_settings,
)
from .logging_config import setup_logging
from .models import ENGAGEMENT_BOUNDS, LanguageFilter, Mode, Settings

# Names used by the browser extension that don't map by case conversion
KEY_ALIASES = {
    "show_image_video": "show_image_or_video",
    "language": "language_filter",
}


@click.group()
@click.option("--verbose", "-v", is_flag=True, help="Enable debug logging")
@click.option("--quiet", "-q", is_flag=True, help="Only log warnings and errors")
@click.option("--config", type=click.Path(), default=None, help="Settings file path")
@click.pass_context
def main(ctx, verbose, quiet, config):
    """X Cleaner — Hide timeline posts that fail your filters."""
    setup_logging(debug=verbose, quiet=quiet)
    ctx.ensure_object(dict)
    ctx.obj["config_path"] = Path(config) if config else CONFIG_FILE


def _fail(message: str) -> None:
    click.echo(f"Error: {message}", err=True)
    sys.exit(1)


def _format_value(value) -> str:
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, frozenset):
        return ", ".join(sorted(value)) if value else "(none)"
    return str(value)


def _normalize_key(key: str) -> str:
    """Accept snake_case, kebab-case and the extension's camelCase names."""
    key = re.sub(r"(?<=[a-z])([A-Z])", r"_\1", key.strip())
    key = key.replace("-", "_").lower()
    return KEY_ALIASES.get(key, key)


def describe_filters(settings: Settings) -> list[str]:
    """Human-readable list of the filters that can hide items."""
    active: list[str] = []
    if settings.hide_short_text:
        active.append("hide short text")
    if settings.language_filter != LanguageFilter.ALL:
        active.append(f"language: {settings.language_filter.value}")

    media = [
        label
        for label, enabled in (
            ("image", settings.show_only_image),
            ("video", settings.show_only_video),
            ("image or video", settings.show_image_or_video),
        )
        if enabled
    ]
    if media:
        active.append(f"media: {' / '.join(media)}")

    for key in ENGAGEMENT_BOUNDS:
        bound = getattr(settings, key)
        if bound > 0:
            kind, metric = key.split("_", 1)
            op = ">=" if kind == "min" else "<="
            active.append(f"{metric} {op} {bound:,}")
    return active


async def _run_cleaner(document, store, runtime):
    from .cleaner import FeedCleaner

    loop = asyncio.get_running_loop()
    cleaner = FeedCleaner(document, loop, store=store, runtime=runtime)
    cleaner.start()
    try:
        status = await cleaner.run_until_idle()
    finally:
        cleaner.stop()
    return cleaner, status


@main.command()
@click.argument("source")
@click.option(
    "--url",
    default=None,
    help="Page URL the snapshot was taken from (default: https://x.com/home)",
)
@click.option("-o", "--output", type=click.Path(), default=None, help="Write filtered HTML here")
@click.option("--details", is_flag=True, help="Show the decision for every item")
@click.pass_context
def run(ctx, source, url, output, details):
    """Run the cleaner over a timeline snapshot.

    SOURCE is an HTML file or an http(s) URL serving a rendered timeline.
    """
    # Lazy imports so --help stays fast
    from .client import load_document
    from .watcher import is_detail_view

    config_path = ctx.obj["config_path"]
    try:
        runtime = load_runtime(config_path)
        store = SettingsStore(config_path)
        settings = store.snapshot()
        document = load_document(source, url=url)
    except (ValueError, FileNotFoundError, RuntimeError, httpx.HTTPError) as e:
        _fail(str(e))

    cleaner, status = asyncio.run(_run_cleaner(document, store, runtime))
    decisions = cleaner.decisions()

    if not decisions:
        click.echo("No feed items found.")
    else:
        hidden = sum(1 for d in decisions if d.hidden)
        click.echo(
            f"Processed {len(decisions)} items: "
            f"{len(decisions) - hidden} shown, {hidden} hidden."
        )

    if settings.mode == Mode.ORIGINAL:
        click.echo("Mode is 'original': nothing was filtered.")
    elif is_detail_view(document.path):
        click.echo("Single-post page: filtering is suppressed.")

    if status is not None and status.banner_visible:
        click.echo(
            "Advisory: every processed item is hidden. "
            "Consider relaxing your filters."
        )

    if details:
        for d in decisions:
            preview = ""
            if d.record is not None:
                preview = " ".join(d.record.text.split())[:60]
            state = "hidden" if d.hidden else "shown"
            rules = ", ".join(d.rules) or "-"
            click.echo(f"  #{d.key:<4} {state:<7} {rules:<24} {preview}")

    if output:
        output_path = Path(output)
        output_path.write_text(document.serialize(), encoding="utf-8")
        click.echo(f"Filtered page written to {output_path}")


@main.command()
@click.argument("source")
@click.option("-o", "--output", type=click.Path(), default=None, help="Output CSV file path")
@click.pass_context
def scan(ctx, source, output):
    """Extract item attributes from a snapshot to CSV.

    The hidden/rules columns use the current settings.
    If -o is not specified, CSV is written to stdout.
    """
    from .client import load_document
    from .converter import records_to_csv
    from .extractor import extract_record

    config_path = ctx.obj["config_path"]
    try:
        runtime = load_runtime(config_path)
        settings = load_settings(config_path)
        document = load_document(source)
    except (ValueError, FileNotFoundError, RuntimeError, httpx.HTTPError) as e:
        _fail(str(e))

    nodes = document.select(runtime.selectors.item)
    if not nodes:
        _fail(f"No feed items found in {source}.")

    records = [extract_record(node, runtime.selectors) for node in nodes]
    click.echo(f"Extracted {len(records)} items.", err=True)

    if output:
        output_path = Path(output)
        with open(output_path, "w", encoding="utf-8", newline="") as f:
            records_to_csv(records, settings, f)
        click.echo(f"CSV written to {output_path}", err=True)
    else:
        click.echo(records_to_csv(records, settings), nl=False)


@main.group("settings")
def settings_group():
    """Show or change filter settings."""


@settings_group.command("show")
@click.pass_context
def settings_show(ctx):
    """Print every setting with its current value."""
    try:
        settings = load_settings(ctx.obj["config_path"])
    except ValueError as e:
        _fail(str(e))

    for key in SETTING_KEYS:
        click.echo(f"{key} = {_format_value(getattr(settings, key))}")


@settings_group.command("set")
@click.argument("key")
@click.argument("value")
@click.pass_context
def settings_set(ctx, key, value):
    """Change one setting.

    \b
    Examples:
        x-cleaner settings set mode filtering-extended
        x-cleaner settings set hide_short_text true
        x-cleaner settings set min_likes 100
        x-cleaner settings set whitelist "@alice,bob"
    """
    name = _normalize_key(key)
    if name not in SETTING_KEYS:
        _fail(f"Unknown setting: {key}")

    store = SettingsStore(ctx.obj["config_path"])
    try:
        updated = store.update(**{name: value})
    except ValueError as e:
        _fail(str(e))

    click.echo(f"{name} = {_format_value(getattr(updated, name))}")


@settings_group.command("reset")
@click.confirmation_option(prompt="Reset all filter settings to defaults?")
@click.pass_context
def settings_reset(ctx):
    """Restore every setting to its default."""
    config_path = ctx.obj["config_path"]
    SettingsStore(config_path).reset()
    click.echo(f"Settings reset in {config_path}")


@main.command()
@click.pass_context
def status(ctx):
    """Show config location and active filters."""
    config_path = ctx.obj["config_path"]
    has_config = config_exists(config_path)

    click.echo("X Cleaner — Status")
    click.echo("=" * 40)
    click.echo(f"Config: {'Found' if has_config else 'Not configured'} ({config_path})")

    try:
        settings = load_settings(config_path)
    except ValueError as e:
        _fail(str(e))

    click.echo(f"Mode: {settings.mode.value}")
    if settings.mode == Mode.ORIGINAL:
        click.echo("Filtering is off.")
        return

    active = describe_filters(settings)
    if not active:
        click.echo("Active filters: none")
        return
    click.echo("Active filters:")
    for item in active:
        click.echo(f"  - {item}")
