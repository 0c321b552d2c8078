# tests/integration/test_pipeline.py
"""Integration tests for the ingestion pipeline."""

from typing import Any, Dict, Optional
from unittest.mock import AsyncMock, Mock

import httpx
import pytest

from newsingest.core.config import FeedSource
from newsingest.core.enums import EnrichmentTask, IngestionOutcome
from newsingest.pipeline.orchestrator import IngestionPipeline, generate_run_id
from newsingest.services.moderation import ModerationQueue
from newsingest.utils.exceptions import AIServiceError, DatabaseError, PipelineError
from newsingest.utils.text_utils import hash_url

FEED = FeedSource(name="Test Feed", url="https://example.com/feed.xml")


def llm_with(llm_replies, overrides: Optional[Dict[str, Any]] = None) -> Mock:
    """Mock LLM client with per-request-type overrides; exceptions are raised."""
    overrides = overrides or {}
    mock = Mock()

    async def _complete(**kwargs: Any) -> Dict[str, Any]:
        request_type = kwargs["request_type"]
        reply = overrides.get(request_type, llm_replies(request_type))
        if isinstance(reply, Exception):
            raise reply
        return {"content": reply, "usage": {}}

    mock.create_completion = AsyncMock(side_effect=_complete)
    mock.moderate = AsyncMock(return_value={"flagged": False, "categories": {}, "category_scores": {}})
    return mock


@pytest.fixture
def make_pipeline(test_config, test_db, mock_llm_client, fake_sleep):
    """Pipeline factory with mocked LLM and no network."""

    def _make(llm_client=None, http_client=None, config=None, feeds=(FEED,)):
        return IngestionPipeline(
            config=config or test_config,
            db=test_db,
            llm_client=llm_client or mock_llm_client,
            feeds=feeds,
            http_client=http_client,
            run_id="test-run",
            sleep=fake_sleep,
        )

    return _make


@pytest.mark.unit
def test_run_id_format():
    run_id = generate_run_id()
    date_part, time_part, short_uuid = run_id.split("_")
    assert len(date_part) == 8 and date_part.isdigit()
    assert len(time_part) == 6 and time_part.isdigit()
    assert len(short_uuid) == 8


@pytest.mark.integration
@pytest.mark.asyncio
class TestIngestionRun:
    """End-to-end runs against a mocked feed and LLM."""

    async def test_new_and_already_stored_items(
        self, make_pipeline, sample_rss_feed, rss_transport, repository, make_article, test_db
    ):
        """Should store the new item and skip the one whose title is already stored."""
        repository.insert_article(
            make_article("Solana validators ship new client", "https://solana-news.example.org/validators")
        )

        async with httpx.AsyncClient(transport=rss_transport({str(FEED.url): sample_rss_feed})) as client:
            report = await make_pipeline(http_client=client).run()

        assert report.counters() == {
            "processed": 2,
            "stored": 1,
            "duplicates": 1,
            "low_relevance": 0,
            "errors": 0,
        }
        stored = repository.find_by_url_hash(hash_url("https://example.com/article-1"))
        assert stored.title == "Bitcoin ETF sees record inflows"
        assert stored.summary == "Upgrade is live. Layer 2 fees drop"
        assert stored.tags == ["ethereum", "dencun", "proto-danksharding"]
        assert stored.categories == ["Ethereum", "Layer2"]
        assert stored.relevance_score == 8

        [run] = repository.get_recent_runs()
        assert run["run_id"] == "test-run"
        assert run["status"] == "completed"
        assert run["stored"] == 1
        assert run["duplicates"] == 1
        assert run["feeds_fetched"] == 1

        [feed] = repository.get_feed_health()
        assert feed["status"] == "healthy"

    async def test_failed_feeds_do_not_fail_run(self, make_pipeline, rss_transport):
        """Should complete with zero items when every feed is down."""
        async with httpx.AsyncClient(transport=rss_transport()) as client:
            report = await make_pipeline(http_client=client).run()

        assert report.processed == 0
        assert [r.success for r in report.feed_results] == [False]

    async def test_run_start_failure_raises(self, make_pipeline):
        pipeline = make_pipeline()
        pipeline.repository.start_run = Mock(side_effect=DatabaseError("read-only"))

        with pytest.raises(PipelineError):
            await pipeline.run()

    async def test_fetch_failure_marks_run_failed(self, make_pipeline, repository):
        """Should record a failed run and raise PipelineError."""
        pipeline = make_pipeline(http_client=Mock())
        pipeline._fetcher = Mock(side_effect=RuntimeError("boom"))

        with pytest.raises(PipelineError):
            await pipeline.run()

        [run] = repository.get_recent_runs()
        assert run["status"] == "failed"
        assert "boom" in run["error_message"]


@pytest.mark.integration
@pytest.mark.asyncio
class TestProcessItem:
    """Per-item state machine."""

    async def test_all_enrichment_calls_fail(self, make_pipeline, llm_replies, sample_item, repository):
        """Should store the item with default enrichment values."""
        error = AIServiceError("provider down")
        llm = llm_with(llm_replies, {t.value: error for t in EnrichmentTask})

        result = await make_pipeline(llm_client=llm).process_item(sample_item)

        assert result.outcome == IngestionOutcome.STORED
        assert set(result.fallbacks) == set(EnrichmentTask)
        stored = repository.find_by_url_hash(sample_item.url_hash)
        assert stored.categories == ["General"]
        assert stored.tags == []
        assert stored.relevance_score == 5
        assert stored.summary == "Summary not available"

    @pytest.mark.parametrize(
        "score,outcome",
        [(2, IngestionOutcome.LOW_RELEVANCE), (3, IngestionOutcome.STORED), (10, IngestionOutcome.STORED)],
    )
    async def test_relevance_threshold(self, make_pipeline, llm_replies, sample_item, repository, score, outcome):
        """Should store items scoring at least the threshold."""
        llm = llm_with(llm_replies, {"assess_relevance": {"score": score, "explanation": "x"}})

        result = await make_pipeline(llm_client=llm).process_item(sample_item)

        assert result.outcome == outcome
        assert result.relevance_score == score
        assert repository.exists_by_url_hash(sample_item.url_hash) is (outcome == IngestionOutcome.STORED)

    async def test_same_url_twice_stored_once(self, make_pipeline, sample_item, test_db):
        """Should store one row when the same URL arrives twice in a batch."""
        twin = sample_item.model_copy(update={"title": "Dencun is live", "source_url": sample_item.source_url + "/"})

        results = await make_pipeline().process_items([sample_item, twin])

        assert sorted(r.outcome.value for r in results) == ["duplicate", "stored"]
        assert test_db.execute("SELECT COUNT(*) FROM articles").fetchone()[0] == 1

    async def test_stored_item_is_duplicate_next_time(self, make_pipeline, sample_item, mock_llm_client):
        pipeline = make_pipeline()
        await pipeline.process_item(sample_item)
        calls = mock_llm_client.create_completion.await_count

        result = await pipeline.process_item(sample_item)

        assert result.outcome == IngestionOutcome.DUPLICATE
        assert mock_llm_client.create_completion.await_count == calls

    async def test_insert_failure_is_error(self, make_pipeline, sample_item):
        """Should report an error when the store rejects the insert."""
        pipeline = make_pipeline()
        pipeline.repository.insert_article = Mock(side_effect=DatabaseError("disk full"))

        result = await pipeline.process_item(sample_item)

        assert result.outcome == IngestionOutcome.ERROR
        assert "disk full" in result.error
        assert result.relevance_score == 8

    async def test_unexpected_failure_is_error(self, make_pipeline, sample_item):
        pipeline = make_pipeline()
        pipeline.enricher.enrich = AsyncMock(side_effect=RuntimeError("bug"))

        result = await pipeline.process_item(sample_item)

        assert result.outcome == IngestionOutcome.ERROR
        assert result.error == "bug"

    async def test_batches_with_pause(self, make_pipeline, test_config, sample_items, fake_sleep):
        """Should process 5 items in batches of 3 with one 1 s pause."""
        config = test_config.model_copy(update={"process_batch_delay_sec": 1.0})

        results = await make_pipeline(config=config).process_items(sample_items)

        assert [r.source_url for r in results] == [i.source_url for i in sample_items]
        assert fake_sleep.await_count == 1
        fake_sleep.assert_awaited_with(1.0)


@pytest.mark.integration
@pytest.mark.asyncio
class TestModerationHook:
    async def test_flagged_article_queued(self, make_pipeline, test_config, sample_item, mock_llm_client, test_db):
        config = test_config.model_copy(update={"enable_moderation": True})
        mock_llm_client.moderate.return_value = {
            "flagged": True,
            "categories": {"violence": True},
            "category_scores": {"violence": 0.6},
        }

        result = await make_pipeline(config=config).process_item(sample_item)

        assert result.outcome == IngestionOutcome.STORED
        [entry] = ModerationQueue(test_db).list_pending()
        assert entry.content_id == str(result.article_id)
        assert entry.priority.value == "high"

    async def test_moderation_failure_keeps_article(self, make_pipeline, test_config, sample_item, mock_llm_client):
        config = test_config.model_copy(update={"enable_moderation": True})
        mock_llm_client.moderate.side_effect = AIServiceError("down")

        result = await make_pipeline(config=config).process_item(sample_item)

        assert result.outcome == IngestionOutcome.STORED

    async def test_moderation_off_by_default(self, make_pipeline, sample_item, mock_llm_client):
        await make_pipeline().process_item(sample_item)
        mock_llm_client.moderate.assert_not_awaited()
