"""Cleanup command for articles without a summary."""

import click

from newsingest.core.config import Config
from newsingest.database import ArticleRepository, init_database
from newsingest.utils.exceptions import DatabaseError
from newsingest.utils.logging import setup_logging


@click.command()
@click.option(
    "--batch-size",
    type=click.IntRange(1, 1000),
    default=10,
    help="Articles deleted per transaction",
)
@click.option(
    "--yes",
    "-y",
    is_flag=True,
    help="Skip the confirmation prompt",
)
def cleanup(batch_size: int, yes: bool) -> None:
    """Delete stored articles that have no summary.

    Examples:
        newsingest cleanup               # Ask before deleting
        newsingest cleanup --yes         # Delete without asking
    """
    try:
        config = Config()  # type: ignore
        config.validate_paths()
    except Exception as e:
        click.echo(f"Error loading configuration: {e}", err=True)
        raise click.Abort()

    setup_logging(log_level=config.log_level, log_format=config.log_format, log_dir=config.log_dir)

    if not yes:
        click.confirm(f"Delete articles without a summary from {config.db_path}?", abort=True)

    db = init_database(config.db_path)
    try:
        result = ArticleRepository(db).delete_articles_without_summary(batch_size=batch_size)
    except DatabaseError as e:
        click.echo(f"Cleanup failed: {e}", err=True)
        raise click.Abort()
    finally:
        db.close()

    click.echo(f"Deleted: {result['deleted']}")
    if result["errors"]:
        click.echo(f"Failed:  {result['errors']}", err=True)
