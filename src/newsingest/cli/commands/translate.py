"""Translate a stored article."""

import asyncio
import json

import click

from newsingest.core.article import PersistedArticle, TranslationResult
from newsingest.core.config import Config
from newsingest.core.enums import TargetLanguage
from newsingest.database import ArticleRepository, DatabaseConnection, init_database
from newsingest.integrations.provider_factory import create_llm_client
from newsingest.pipeline.enrichment.ai_enricher import AIEnricher
from newsingest.pipeline.orchestrator import generate_run_id
from newsingest.utils.exceptions import NewsIngestError
from newsingest.utils.logging import setup_logging


@click.command()
@click.argument("article_id", type=int)
@click.option(
    "--language",
    "-l",
    type=click.Choice([lang.value for lang in TargetLanguage]),
    default=TargetLanguage.SPANISH.value,
    help="Target language",
)
@click.option(
    "--json",
    "as_json",
    is_flag=True,
    help="Print the translation as JSON",
)
def translate(article_id: int, language: str, as_json: bool) -> None:
    """Translate the title and body of a stored article.

    If the provider call fails, the original text is printed unchanged.

    Examples:
        newsingest translate 42                 # To Spanish
        newsingest translate 42 --language en   # To English
    """
    try:
        config = Config()  # type: ignore
        config.validate_paths()
    except Exception as e:
        click.echo(f"Error loading configuration: {e}", err=True)
        raise click.Abort()

    setup_logging(log_level=config.log_level, log_format=config.log_format, log_dir=config.log_dir)

    db = init_database(config.db_path)
    try:
        article = ArticleRepository(db).get_article(article_id)
        if article is None:
            click.echo(f"Article {article_id} not found", err=True)
            raise click.Abort()

        result = asyncio.run(_translate(config, db, article, TargetLanguage(language)))

    except NewsIngestError as e:
        click.echo(f"Translation failed: {e}", err=True)
        raise click.Abort()

    finally:
        db.close()

    if as_json:
        click.echo(json.dumps(result.model_dump(), ensure_ascii=False, indent=2))
    else:
        click.echo(result.title)
        click.echo("=" * 50)
        click.echo(result.content)


async def _translate(
    config: Config,
    db: DatabaseConnection,
    article: PersistedArticle,
    language: TargetLanguage,
) -> TranslationResult:
    enricher = AIEnricher(
        llm_client=create_llm_client(config, db, generate_run_id()),
        model_small=config.model_small,
        model_large=config.model_large,
    )
    return await enricher.translate(article.title, article.content, language)
