# tests/integration/test_repository.py
"""Integration tests for ArticleRepository."""

from datetime import datetime, timedelta, timezone

import pytest

from newsingest.core.article import FeedFetchResult, IngestionReport, ItemReport
from newsingest.core.enums import IngestionOutcome
from newsingest.database.connection import init_database


@pytest.mark.integration
class TestArticles:
    """Article insert and lookup."""

    def test_insert_and_find(self, repository, make_article):
        article = make_article("Bitcoin ETF inflows", "https://coindesk.com/etf")

        article_id = repository.insert_article(article)

        assert article_id is not None
        stored = repository.find_by_url_hash(article.url_hash)
        assert stored.id == article_id
        assert stored.tags == ["bitcoin"]
        assert stored.categories == ["Bitcoin"]
        assert stored.published_at == article.published_at
        assert repository.get_article(article_id).title == "Bitcoin ETF inflows"

    def test_insert_is_idempotent_on_url_hash(self, repository, make_article, test_db):
        """Should keep one row per url_hash and report the repeat."""
        first = repository.insert_article(make_article("First", "https://coindesk.com/etf"))
        second = repository.insert_article(make_article("Second", "https://coindesk.com/etf/?utm_source=x"))

        assert first is not None
        assert second is None
        assert test_db.execute("SELECT COUNT(*) FROM articles").fetchone()[0] == 1

    def test_exists_lookups(self, repository, make_article):
        article = make_article("Bitcoin ETF inflows", "https://coindesk.com/etf")
        repository.insert_article(article)

        assert repository.exists_by_url_hash(article.url_hash) is True
        assert repository.exists_by_url_hash("0" * 64) is False
        assert repository.exists_by_title("Bitcoin ETF inflows") is True
        assert repository.exists_by_title("bitcoin etf inflows") is False

    def test_recent_articles_window_and_limit(self, repository, make_article):
        now = datetime.now(timezone.utc)
        repository.insert_article(make_article("Old", "https://a.io/old", created_at=now - timedelta(hours=30)))
        for i in range(3):
            repository.insert_article(
                make_article(f"New {i}", f"https://a.io/{i}", created_at=now - timedelta(minutes=i))
            )

        recent = repository.get_recent_articles(hours=24, limit=2)

        assert [a.title for a in recent] == ["New 0", "New 1"]

    def test_missing_article(self, repository):
        assert repository.find_by_url_hash("0" * 64) is None
        assert repository.get_article(999) is None


@pytest.mark.integration
class TestMaintenance:
    def test_processing_statistics(self, repository, make_article):
        repository.insert_article(make_article("A", "https://a.io/a", relevance_score=8, tags=["btc", "etf"]))
        repository.insert_article(make_article("B", "https://a.io/b", relevance_score=4, tags=["btc"], summary=""))

        stats = repository.get_processing_statistics()

        assert stats["total_articles"] == 2
        assert stats["processed_articles"] == 1
        assert stats["average_relevance"] == 6.0
        assert stats["top_tags"][0] == "btc"
        assert stats["recently_processed"] == 2

    def test_delete_articles_without_summary(self, repository, make_article):
        repository.insert_article(make_article("Keep", "https://a.io/keep"))
        for i in range(3):
            repository.insert_article(make_article(f"Drop {i}", f"https://a.io/drop-{i}", summary=""))

        result = repository.delete_articles_without_summary(batch_size=2)

        assert result == {"deleted": 3, "errors": 0}
        assert repository.get_processing_statistics()["total_articles"] == 1


@pytest.mark.integration
class TestFeedHealth:
    def _record(self, repository, name, success, items=5):
        repository.record_feed_result(
            FeedFetchResult(
                feed_name=name,
                feed_url=f"https://{name}.io/rss",
                item_count=items if success else 0,
                success=success,
                error=None if success else "timeout",
            )
        )

    def test_status_per_feed(self, repository):
        for ok in (True, True):
            self._record(repository, "alpha", ok)
        for ok in (True, False):
            self._record(repository, "beta", ok)
        for ok in (False, False):
            self._record(repository, "gamma", ok)

        health = {h["feed_name"]: h for h in repository.get_feed_health()}

        assert health["alpha"]["status"] == "healthy"
        assert health["alpha"]["avg_item_count"] == 5.0
        assert health["beta"]["status"] == "warning"
        assert health["beta"]["error_count"] == 1
        assert health["gamma"]["status"] == "error"
        assert health["gamma"]["last_success"] is None

    def test_window_limits_history(self, repository):
        self._record(repository, "alpha", False)
        for _ in range(3):
            self._record(repository, "alpha", True)

        [alpha] = repository.get_feed_health(window=3)

        assert alpha["status"] == "healthy"
        assert alpha["checks"] == 3


@pytest.mark.integration
class TestRuns:
    def test_start_and_complete_run(self, repository, test_db):
        started = datetime.now(timezone.utc)
        repository.start_run("run-1", started)
        test_db.execute(
            "INSERT INTO api_calls (run_id, module, model, request_type, input_tokens, output_tokens,"
            " total_tokens, cost, success, created_at) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?)",
            ("run-1", "enricher", "gpt-4o-mini", "summarize", 100, 50, 150, 0.002, 1, started.isoformat()),
        )
        test_db.commit()

        report = IngestionReport(
            run_id="run-1",
            started_at=started,
            completed_at=started + timedelta(seconds=3),
            items=[
                ItemReport(source_url="https://a.io/1", title="1", outcome=IngestionOutcome.STORED),
                ItemReport(source_url="https://a.io/2", title="2", outcome=IngestionOutcome.DUPLICATE),
            ],
        )
        repository.complete_run(report, success=True, items_fetched=2)

        [run] = repository.get_recent_runs()
        assert run["status"] == "completed"
        assert run["processed"] == 2
        assert run["stored"] == 1
        assert run["duplicates"] == 1
        assert run["duration_seconds"] == pytest.approx(3.0)
        assert run["total_cost"] == pytest.approx(0.002)
        assert run["total_tokens"] == 150

        cost = repository.get_api_cost_summary(days=1)
        assert cost["calls"] == 1
        assert cost["tokens"] == 150


@pytest.mark.integration
def test_init_database_is_repeatable(tmp_path):
    """Should open an existing database without touching its rows."""
    db = init_database(tmp_path / "again.db")
    db.execute("INSERT INTO ingestion_runs (run_id, status, started_at) VALUES ('r', 'running', 'x')")
    db.commit()
    db.close()

    db = init_database(tmp_path / "again.db")
    assert db.execute("SELECT COUNT(*) FROM ingestion_runs").fetchone()[0] == 1
    db.close()
