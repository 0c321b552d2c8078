"""Health check command for feed and system diagnostics."""

import asyncio
import sys
from typing import List

import click
import httpx

from newsingest.core.config import Config, FeedSource
from newsingest.database import ArticleRepository, init_database
from newsingest.pipeline.collectors.fetcher import FeedFetcher
from newsingest.pipeline.collectors.registry import load_feed_registry
from newsingest.utils.logging import get_logger, setup_logging

logger = get_logger(__name__)

_STATUS_MARKS = {"healthy": "✓", "warning": "⚠", "error": "✗"}


@click.command()
@click.option(
    "--check-feeds",
    is_flag=True,
    help="Fetch every registered feed once to test connectivity",
)
@click.option(
    "--window",
    type=click.IntRange(1, 100),
    default=10,
    help="Recent fetches considered per feed",
)
def health(check_feeds: bool, window: int) -> None:
    """Check configuration, database and feed health.

    Exits with status 1 when any check fails.
    """
    click.echo("newsingest health check")
    click.echo("=" * 50)
    click.echo()

    healthy = True

    click.echo("Checking configuration...")
    try:
        config = Config()  # type: ignore
        config.validate_paths()
    except Exception as e:
        click.echo(f"  ✗ Configuration error: {e}", err=True)
        sys.exit(1)

    setup_logging(log_level=config.log_level, log_format=config.log_format)

    if config.is_openai_configured:
        click.echo("  ✓ OpenAI API key configured")
    else:
        click.echo("  ✗ OpenAI API key missing", err=True)
        healthy = False
    click.echo(f"  Models: {config.model_small} / {config.model_large}")
    click.echo()

    click.echo("Checking database...")
    try:
        db = init_database(config.db_path)
    except Exception as e:
        click.echo(f"  ✗ Database error: {e}", err=True)
        sys.exit(1)

    try:
        click.echo(f"  ✓ Database ready: {config.db_path}")
        click.echo()

        click.echo(f"Feed health (last {window} fetches):")
        feed_health = ArticleRepository(db).get_feed_health(window=window)
        if not feed_health:
            click.echo("  No feed fetches recorded yet")
        for feed in feed_health:
            mark = _STATUS_MARKS.get(feed["status"], "?")
            click.echo(
                f"  {mark} {feed['feed_name']:<28} {feed['status']:<8} "
                f"{feed['error_count']}/{feed['checks']} failed, "
                f"avg {feed['avg_item_count']} items, "
                f"last success {feed['last_success'] or 'never'}"
            )
            if feed["status"] == "error":
                healthy = False
        click.echo()

    except Exception as e:
        click.echo(f"  ✗ Error reading feed health: {e}", err=True)
        logger.error("health_check_failed", error=str(e))
        healthy = False

    finally:
        db.close()

    if check_feeds:
        click.echo("Checking feed connectivity...")
        try:
            feeds = [f for f in load_feed_registry(config.config_dir) if f.enabled]
            if not asyncio.run(_check_connectivity(feeds, config)):
                healthy = False
        except Exception as e:
            click.echo(f"  ✗ Connectivity check failed: {e}", err=True)
            healthy = False
        click.echo()

    click.echo("=" * 50)
    if healthy:
        click.echo("✓ All checks passed")
        sys.exit(0)
    click.echo("✗ Some checks failed", err=True)
    sys.exit(1)


async def _check_connectivity(feeds: List[FeedSource], config: Config) -> bool:
    all_ok = True
    async with httpx.AsyncClient(follow_redirects=True) as client:
        fetcher = FeedFetcher(
            feeds,
            http_client=client,
            connectivity_timeout=config.connectivity_timeout_sec,
            user_agent=config.user_agent,
        )
        for feed in feeds:
            result = await fetcher.check_connectivity(str(feed.url), name=feed.name)
            if result.success:
                click.echo(
                    f"  ✓ {feed.name:<28} {result.response_time_ms:>6} ms, {result.item_count} items"
                )
            else:
                click.echo(f"  ✗ {feed.name:<28} {result.error}", err=True)
                all_ok = False
    return all_ok
