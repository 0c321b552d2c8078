"""Run ingestion command."""

import asyncio
from typing import Optional, Tuple

import click

from newsingest.core.article import IngestionReport
from newsingest.core.config import Config
from newsingest.database.connection import init_database
from newsingest.pipeline.collectors.registry import load_feed_registry
from newsingest.pipeline.orchestrator import IngestionPipeline
from newsingest.utils.exceptions import NewsIngestError
from newsingest.utils.logging import setup_logging


@click.command()
@click.option(
    "--feed",
    "feed_names",
    multiple=True,
    help="Only fetch the named feed (repeatable)",
)
@click.option(
    "--moderate/--no-moderate",
    default=None,
    help="Send stored articles through content moderation",
)
@click.option(
    "--threshold",
    type=click.IntRange(1, 10),
    default=None,
    help="Minimum relevance score for an article to be stored",
)
def run(feed_names: Tuple[str, ...], moderate: Optional[bool], threshold: Optional[int]) -> None:
    """Fetch all feeds and ingest new articles.

    Examples:
        newsingest run                          # All enabled feeds
        newsingest run --feed CoinDesk          # A single feed
        newsingest run --moderate               # With moderation screening
        newsingest run --threshold 5            # Stricter relevance filter
    """
    try:
        config = Config()  # type: ignore
        if moderate is not None:
            config.enable_moderation = moderate
        if threshold is not None:
            config.relevance_threshold = threshold
        config.validate_paths()
    except Exception as e:
        click.echo(f"Error loading configuration: {e}", err=True)
        click.echo("Please ensure .env file exists with required settings.", err=True)
        raise click.Abort()

    setup_logging(log_level=config.log_level, log_format=config.log_format, log_dir=config.log_dir)

    try:
        feeds = load_feed_registry(config.config_dir)
    except NewsIngestError as e:
        click.echo(f"Error loading feeds: {e}", err=True)
        raise click.Abort()

    if feed_names:
        wanted = {name.lower() for name in feed_names}
        feeds = tuple(f for f in feeds if f.name.lower() in wanted)
        if not feeds:
            click.echo(f"No feeds match: {', '.join(feed_names)}", err=True)
            raise click.Abort()

    click.echo("newsingest run")
    click.echo("=" * 50)
    click.echo(f"Feeds:      {len([f for f in feeds if f.enabled])} enabled")
    click.echo(f"Database:   {config.db_path}")
    click.echo(f"Threshold:  {config.relevance_threshold}")
    click.echo(f"Moderation: {'on' if config.enable_moderation else 'off'}")
    click.echo("=" * 50)

    db = init_database(config.db_path)

    try:
        pipeline = IngestionPipeline(config=config, db=db, feeds=feeds)
        report = asyncio.run(pipeline.run())
        _display_report(report)
        click.echo("\nRun completed successfully!")

    except KeyboardInterrupt:
        click.echo("\nRun interrupted by user.", err=True)
        raise click.Abort()

    except NewsIngestError as e:
        click.echo(f"\nRun failed: {e}", err=True)
        raise click.Abort()

    finally:
        db.close()


def _display_report(report: IngestionReport) -> None:
    click.echo(f"\nRun {report.run_id}")
    click.echo("=" * 70)

    click.echo("\nFeeds:")
    for result in report.feed_results:
        status = "ok" if result.success else "FAILED"
        line = f"  {result.feed_name:<28} {status:<7} {result.item_count:>3} items  {result.response_time_ms:>6} ms"
        if result.error:
            line += f"  ({result.error[:60]})"
        click.echo(line)

    click.echo("\nItems:")
    for name, value in report.counters().items():
        click.echo(f"  {name.replace('_', ' ').capitalize():<15} {value:>6}")

    fallback_items = [item for item in report.items if item.fallbacks]
    if fallback_items:
        click.echo(f"\n  {len(fallback_items)} item(s) used fallback enrichment values")

    errors = [item for item in report.items if item.error]
    if errors:
        click.echo("\nErrors:")
        for item in errors[:10]:
            click.echo(f"  {item.title[:50]:<50}  {item.error[:60] if item.error else ''}")

    click.echo("=" * 70)
