"""Statistics command."""

import click

from newsingest.core.config import Config
from newsingest.database import ArticleRepository, init_database
from newsingest.utils.logging import get_logger, setup_logging

logger = get_logger(__name__)


@click.command()
@click.option(
    "--days",
    type=click.IntRange(1, 365),
    default=7,
    help="Days of API usage to summarize",
)
@click.option(
    "--runs",
    type=click.IntRange(0, 100),
    default=5,
    help="Number of recent runs to list",
)
def stats(days: int, runs: int) -> None:
    """Show article store statistics and recent runs.

    Examples:
        newsingest stats                # Last 7 days of API usage
        newsingest stats --days 30      # Last 30 days
        newsingest stats --runs 20      # List more runs
    """
    try:
        config = Config()  # type: ignore
        config.validate_paths()
    except Exception as e:
        click.echo(f"Error loading configuration: {e}", err=True)
        raise click.Abort()

    setup_logging(log_level=config.log_level, log_format=config.log_format)

    click.echo("newsingest statistics")
    click.echo("=" * 50)

    db = init_database(config.db_path)
    try:
        _display_stats(ArticleRepository(db), days, runs)
    except Exception as e:
        click.echo(f"\nFailed to load statistics: {e}", err=True)
        logger.error("stats_failed", error=str(e))
        raise click.Abort()
    finally:
        db.close()


def _display_stats(repository: ArticleRepository, days: int, runs: int) -> None:
    """Print article, run and API usage statistics.

    Args:
        repository: Article repository.
        days: Days of API usage to summarize.
        runs: Number of recent runs to list.
    """
    summary = repository.get_processing_statistics()

    click.echo("\nArticles:")
    click.echo("-" * 50)
    click.echo(f"  {'Total':<20} {summary['total_articles']:>8}")
    click.echo(f"  {'With summary':<20} {summary['processed_articles']:>8}")
    click.echo(f"  {'Last 24 hours':<20} {summary['recently_processed']:>8}")
    click.echo(f"  {'Avg relevance':<20} {summary['average_relevance']:>8.2f}")
    if summary["top_tags"]:
        click.echo(f"  Top tags: {', '.join(summary['top_tags'])}")

    cost = repository.get_api_cost_summary(days=days)
    click.echo(f"\nAPI usage (last {days} days):")
    click.echo("-" * 50)
    click.echo(f"  {'Calls':<20} {cost['calls']:>8}")
    click.echo(f"  {'Failed calls':<20} {cost['failures']:>8}")
    click.echo(f"  {'Tokens':<20} {cost['tokens']:>8,}")
    click.echo(f"  {'Cost':<20} ${cost['cost']:>7.4f}")

    if not runs:
        return

    recent = repository.get_recent_runs(limit=runs)
    click.echo("\nRecent runs:")
    click.echo("-" * 50)
    if not recent:
        click.echo("  No runs recorded yet")
        return

    for run in recent:
        click.echo(
            f"  {run['run_id']}  {run['status']:<9} "
            f"stored {run['stored'] or 0:>3}  dup {run['duplicates'] or 0:>3}  "
            f"low {run['low_relevance'] or 0:>3}  err {run['errors'] or 0:>3}  "
            f"${run['total_cost'] or 0.0:.4f}"
        )
