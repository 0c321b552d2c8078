"""Command-line interface for newsingest."""

import click

from newsingest.__version__ import __version__
from newsingest.cli.commands import cleanup, health, run, stats, translate


@click.group()
@click.version_option(version=__version__, prog_name="newsingest")
@click.pass_context
def cli(ctx: click.Context) -> None:
    """newsingest - AI-enriched cryptocurrency news ingestion.

    Fetches publisher RSS feeds, drops duplicates, enriches each article
    with an LLM (summary, categories, keywords, relevance) and stores the
    relevant ones.
    """
    ctx.ensure_object(dict)


cli.add_command(run)
cli.add_command(stats)
cli.add_command(health)
cli.add_command(cleanup)
cli.add_command(translate)


def main() -> None:
    """Main entry point for CLI."""
    cli(obj={})


if __name__ == "__main__":
    main()
