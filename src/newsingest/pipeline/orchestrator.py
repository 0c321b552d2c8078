"""Ingestion pipeline: fetch, deduplicate, enrich, filter, store."""

import asyncio
import uuid
from datetime import datetime
from typing import Awaitable, Callable, List, Optional, Sequence

import httpx

from newsingest.core.article import IngestionReport, ItemReport, PersistedArticle, RawFeedItem
from newsingest.core.config import Config, FeedSource
from newsingest.core.enums import IngestionOutcome, PipelineStage
from newsingest.database.connection import DatabaseConnection
from newsingest.database.repository import ArticleRepository
from newsingest.integrations.provider_factory import LLMClient, create_llm_client
from newsingest.pipeline.collectors.fetcher import FeedFetcher
from newsingest.pipeline.collectors.registry import load_feed_registry
from newsingest.pipeline.dedup.duplicate_detector import DuplicateDetector
from newsingest.pipeline.enrichment.ai_enricher import AIEnricher
from newsingest.services.metrics_tracker import MetricsTracker
from newsingest.services.moderation import ContentModerator, ModerationQueue
from newsingest.utils.batching import run_in_batches
from newsingest.utils.date_utils import now_utc
from newsingest.utils.exceptions import DatabaseError, ModerationError, PipelineError
from newsingest.utils.logging import get_logger, run_context

logger = get_logger(__name__)


def generate_run_id() -> str:
    """Generate unique run ID.

    Returns:
        Run ID string (timestamp + short UUID).
    """
    timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
    short_uuid = str(uuid.uuid4())[:8]
    return f"{timestamp}_{short_uuid}"


class IngestionPipeline:
    """Runs feed items through duplicate check, enrichment and storage.

    Each item moves fetched -> duplicate-checked -> enriched ->
    relevance-filtered -> stored or rejected, and always yields an
    `ItemReport`. One item's failure never stops the others.
    """

    def __init__(
        self,
        config: Config,
        db: DatabaseConnection,
        llm_client: Optional[LLMClient] = None,
        feeds: Optional[Sequence[FeedSource]] = None,
        http_client: Optional[httpx.AsyncClient] = None,
        run_id: Optional[str] = None,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ):
        """Initialize ingestion pipeline.

        Args:
            config: Application configuration.
            db: Database connection.
            llm_client: LLM client. Built from config when omitted.
            feeds: Feed sources. Loaded from the registry when omitted.
            http_client: Shared HTTP client for feed fetches.
            run_id: Run identifier. Generated when omitted.
            sleep: Async sleep used between batches, injectable for tests.

        Raises:
            ConfigurationError: If no LLM client is given and none can be built.
        """
        self.config = config
        self.db = db
        self.run_id = run_id or generate_run_id()
        self.http_client = http_client
        self._sleep = sleep

        self.repository = ArticleRepository(db)
        self.feeds = tuple(feeds) if feeds is not None else load_feed_registry(config.config_dir)

        self.llm_client = llm_client or create_llm_client(config, db, self.run_id)

        self.enricher = AIEnricher(
            llm_client=self.llm_client,
            model_small=config.model_small,
            model_large=config.model_large,
            batch_size=config.process_batch_size,
            batch_delay=config.process_batch_delay_sec,
            sleep=sleep,
        )
        self.duplicate_detector = DuplicateDetector(
            repository=self.repository,
            enricher=self.enricher,
            recent_window_hours=config.recent_window_hours,
            recent_limit=config.recent_articles_limit,
        )

        self.moderator: Optional[ContentModerator] = None
        if config.enable_moderation:
            self.moderator = ContentModerator(self.llm_client, ModerationQueue(db))

        self.metrics = MetricsTracker()

        logger.info(
            "pipeline_initialized",
            run_id=self.run_id,
            feeds=len(self.feeds),
            moderation=self.moderator is not None,
        )

    def _fetcher(self, http_client: Optional[httpx.AsyncClient]) -> FeedFetcher:
        return FeedFetcher(
            self.feeds,
            http_client=http_client,
            repository=self.repository,
            timeout=self.config.request_timeout_sec,
            connectivity_timeout=self.config.connectivity_timeout_sec,
            user_agent=self.config.user_agent,
            max_items_per_feed=self.config.max_items_per_feed,
            batch_size=self.config.fetch_batch_size,
            batch_delay=self.config.fetch_batch_delay_sec,
            sleep=self._sleep,
        )

    async def process_item(self, item: RawFeedItem) -> ItemReport:
        """Ingest one feed item.

        Args:
            item: Fetched feed item.

        Returns:
            Report with the item's outcome. Never raises.
        """
        stage = PipelineStage.FETCHED

        def report(outcome: IngestionOutcome, **kwargs) -> ItemReport:
            return ItemReport(
                source_url=item.source_url,
                title=item.title,
                outcome=outcome,
                **kwargs,
            )

        try:
            if await self.duplicate_detector.is_duplicate(item):
                return report(IngestionOutcome.DUPLICATE)
            stage = PipelineStage.DUPLICATE_CHECKED

            enrichment = await self.enricher.enrich(item.title, item.content)
            stage = PipelineStage.ENRICHED
            score = enrichment.relevance_score
            fallbacks = list(enrichment.fallbacks)

            if score < self.config.relevance_threshold:
                logger.info(
                    "item_rejected_low_relevance",
                    title=item.title[:60],
                    score=score,
                    threshold=self.config.relevance_threshold,
                )
                return report(
                    IngestionOutcome.LOW_RELEVANCE,
                    relevance_score=score,
                    fallbacks=fallbacks,
                )
            stage = PipelineStage.RELEVANCE_FILTERED

            article = PersistedArticle.from_enrichment(item, enrichment)
            try:
                article_id = self.repository.insert_article(article)
            except DatabaseError as e:
                # Enrichment cost is sunk; the item is reported as an error
                logger.error("item_persist_failed", source_url=item.source_url, error=str(e))
                return report(
                    IngestionOutcome.ERROR,
                    relevance_score=score,
                    error=str(e),
                    fallbacks=fallbacks,
                )

            if article_id is None:
                logger.info("item_stored_concurrently", source_url=item.source_url)
                return report(IngestionOutcome.DUPLICATE, relevance_score=score, fallbacks=fallbacks)

            stage = PipelineStage.STORED
            logger.info("item_stored", article_id=article_id, title=item.title[:60], score=score)

            await self._moderate(article_id, item)

            return report(
                IngestionOutcome.STORED,
                article_id=article_id,
                relevance_score=score,
                fallbacks=fallbacks,
            )

        except Exception as e:
            logger.error(
                "item_processing_failed",
                source_url=item.source_url,
                stage=stage.value,
                error=str(e),
            )
            return report(IngestionOutcome.ERROR, error=str(e))

    async def _moderate(self, article_id: int, item: RawFeedItem) -> None:
        if self.moderator is None:
            return
        try:
            await self.moderator.auto_moderate(
                content_id=str(article_id),
                content_type="news",
                content=f"{item.title}\n\n{item.content}",
            )
        except (ModerationError, DatabaseError) as e:
            logger.warning("item_moderation_failed", article_id=article_id, error=str(e))

    async def process_items(self, items: Sequence[RawFeedItem]) -> List[ItemReport]:
        """Ingest items in fixed-size batches with a pause between batches.

        Returns:
            One report per item, in input order.
        """
        return await run_in_batches(
            items,
            self.process_item,
            batch_size=self.config.process_batch_size,
            delay_seconds=self.config.process_batch_delay_sec,
            sleep=self._sleep,
        )

    async def run(self) -> IngestionReport:
        """Fetch every feed and ingest the items.

        Returns:
            Report of the run.

        Raises:
            PipelineError: If the run cannot be recorded or fetching fails.
        """
        with run_context(self.run_id):
            return await self._run()

    async def _run(self) -> IngestionReport:
        report = IngestionReport(run_id=self.run_id, started_at=now_utc())
        logger.info("pipeline_starting")
        self.metrics.start_run()

        try:
            self.repository.start_run(self.run_id, report.started_at)
        except DatabaseError as e:
            raise PipelineError(f"Could not record run start: {e}") from e

        items: List[RawFeedItem] = []
        try:
            self.metrics.start_timer("fetch")
            if self.http_client is not None:
                items, report.feed_results = await self._fetcher(self.http_client).fetch_all()
            else:
                async with httpx.AsyncClient(
                    timeout=self.config.request_timeout_sec,
                    follow_redirects=True,
                ) as client:
                    items, report.feed_results = await self._fetcher(client).fetch_all()

            failed_feeds = sum(1 for r in report.feed_results if not r.success)
            self.metrics.increment("feeds_fetched", len(report.feed_results))
            self.metrics.increment("feeds_failed", failed_feeds)
            self.metrics.record_stage_metrics(
                "fetch",
                {
                    "feeds": len(report.feed_results),
                    "failed_feeds": failed_feeds,
                    "items": len(items),
                    "duration_seconds": round(self.metrics.stop_timer("fetch"), 2),
                },
            )

            self.metrics.start_timer("process")
            report.items = await self.process_items(items)
            report.completed_at = now_utc()

            self.metrics.increment("items_processed", report.processed)
            self.metrics.increment("items_errored", report.errors)
            self.metrics.increment(
                "enrichment_fallbacks", sum(len(i.fallbacks) for i in report.items)
            )
            self.metrics.record_stage_metrics(
                "process",
                {**report.counters(), "duration_seconds": round(self.metrics.stop_timer("process"), 2)},
            )

        except Exception as e:
            logger.error("pipeline_failed", error=str(e))
            report.completed_at = now_utc()
            self._complete_run(report, success=False, items_fetched=len(items), error=str(e))
            raise PipelineError(f"Ingestion run failed: {e}") from e

        self._complete_run(report, success=True, items_fetched=len(items))

        self.metrics.log_metrics_summary()
        health = self.metrics.check_health()
        logger.info(
            "pipeline_health_check",
            health_status=health["status"],
            warnings=health["warnings"],
            errors=health["errors"],
        )
        logger.info("pipeline_completed", **report.counters())

        return report

    def _complete_run(
        self,
        report: IngestionReport,
        success: bool,
        items_fetched: int,
        error: Optional[str] = None,
    ) -> None:
        try:
            self.repository.complete_run(report, success=success, items_fetched=items_fetched, error=error)
        except DatabaseError as e:
            logger.error("failed_to_record_run_completion", run_id=self.run_id, error=str(e))
