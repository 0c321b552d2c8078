"""Article repository for database operations."""

import json
import sqlite3
from collections import Counter
from datetime import datetime
from typing import Any, Dict, List, Optional

from newsingest.core.article import FeedFetchResult, IngestionReport, PersistedArticle
from newsingest.core.enums import FeedHealthStatus
from newsingest.database.connection import DatabaseConnection
from newsingest.utils.date_utils import hours_ago, now_utc
from newsingest.utils.exceptions import DatabaseError
from newsingest.utils.logging import get_logger

logger = get_logger(__name__)


def _parse_datetime(value: Optional[str]) -> Optional[datetime]:
    """Parse datetime string from SQLite.

    Args:
        value: ISO format datetime string or None

    Returns:
        datetime object or None
    """
    if not value:
        return None
    try:
        return datetime.fromisoformat(value.replace("Z", "+00:00"))
    except (ValueError, AttributeError):
        return None


class ArticleRepository:
    """Repository for the article store.

    The store is insert-only for the pipeline: articles are never updated
    after insertion, and `url_hash` is the idempotency key.
    """

    def __init__(self, db: DatabaseConnection):
        """Initialize repository.

        Args:
            db: Database connection instance.
        """
        self.db = db

    # ------------------------------------------------------------------
    # Articles
    # ------------------------------------------------------------------

    def exists_by_url_hash(self, url_hash: str) -> bool:
        """Check whether an article with this URL hash is stored.

        Raises:
            DatabaseError: If the lookup fails.
        """
        try:
            cursor = self.db.execute(
                "SELECT 1 FROM articles WHERE url_hash = ? LIMIT 1", (url_hash,)
            )
            return cursor.fetchone() is not None
        except sqlite3.Error as e:
            logger.error("url_hash_lookup_failed", url_hash=url_hash, error=str(e))
            raise DatabaseError(f"Failed to look up url_hash: {e}") from e

    def exists_by_title(self, title: str) -> bool:
        """Check whether an article with exactly this title is stored.

        Raises:
            DatabaseError: If the lookup fails.
        """
        try:
            cursor = self.db.execute(
                "SELECT 1 FROM articles WHERE title = ? LIMIT 1", (title,)
            )
            return cursor.fetchone() is not None
        except sqlite3.Error as e:
            logger.error("title_lookup_failed", title=title, error=str(e))
            raise DatabaseError(f"Failed to look up title: {e}") from e

    def find_by_url_hash(self, url_hash: str) -> Optional[PersistedArticle]:
        """Find an article by URL hash.

        Args:
            url_hash: URL hash to search for.

        Returns:
            Article if found, None otherwise.
        """
        try:
            cursor = self.db.execute(
                "SELECT * FROM articles WHERE url_hash = ?", (url_hash,)
            )
            row = cursor.fetchone()
            return self._row_to_article(row) if row else None
        except sqlite3.Error as e:
            logger.error("find_by_url_hash_failed", url_hash=url_hash, error=str(e))
            raise DatabaseError(f"Failed to find article: {e}") from e

    def get_article(self, article_id: int) -> Optional[PersistedArticle]:
        """Find an article by row id."""
        try:
            row = self.db.execute("SELECT * FROM articles WHERE id = ?", (article_id,)).fetchone()
            return self._row_to_article(row) if row else None
        except sqlite3.Error as e:
            logger.error("get_article_failed", article_id=article_id, error=str(e))
            raise DatabaseError(f"Failed to get article: {e}") from e

    def get_recent_articles(
        self,
        hours: int = 24,
        limit: int = 10,
    ) -> List[PersistedArticle]:
        """Get articles stored within the last `hours`, newest first.

        Args:
            hours: Size of the recency window.
            limit: Maximum number of articles to return.

        Returns:
            Recently stored articles.

        Raises:
            DatabaseError: If the query fails.
        """
        try:
            cursor = self.db.execute(
                """
                SELECT * FROM articles
                WHERE created_at >= ?
                ORDER BY created_at DESC
                LIMIT ?
                """,
                (hours_ago(hours).isoformat(), limit),
            )
            return [self._row_to_article(row) for row in cursor.fetchall()]
        except sqlite3.Error as e:
            logger.error("fetch_recent_articles_failed", error=str(e))
            raise DatabaseError(f"Failed to fetch recent articles: {e}") from e

    def insert_article(self, article: PersistedArticle) -> Optional[int]:
        """Insert an article unless its url_hash is already stored.

        Args:
            article: Article to insert.

        Returns:
            Row id of the new article, or None when an article with the same
            url_hash already exists.

        Raises:
            DatabaseError: If the insert fails.
        """
        query = """
            INSERT OR IGNORE INTO articles (
                url_hash, source_url, source_name, title, slug, content,
                summary, tags, categories, relevance_score,
                relevance_explanation, language, status, published_at,
                created_at
            ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
        """
        params = (
            article.url_hash,
            article.source_url,
            article.source_name,
            article.title,
            article.slug,
            article.content,
            article.summary,
            json.dumps(article.tags),
            json.dumps(article.categories),
            article.relevance_score,
            article.relevance_explanation,
            article.language,
            article.status,
            article.published_at.isoformat(),
            article.created_at.isoformat(),
        )

        try:
            cursor = self.db.execute(query, params)
            self.db.commit()
        except sqlite3.Error as e:
            self.db.rollback()
            logger.error("insert_article_failed", url_hash=article.url_hash, error=str(e))
            raise DatabaseError(f"Failed to insert article: {e}") from e

        if cursor.rowcount == 0:
            logger.debug("article_already_exists", url_hash=article.url_hash)
            return None

        logger.debug("article_inserted", article_id=cursor.lastrowid, slug=article.slug)
        return cursor.lastrowid

    def _row_to_article(self, row: sqlite3.Row) -> PersistedArticle:
        return PersistedArticle(
            id=row["id"],
            title=row["title"],
            slug=row["slug"],
            content=row["content"],
            summary=row["summary"] or "",
            tags=json.loads(row["tags"] or "[]"),
            categories=json.loads(row["categories"] or "[]"),
            relevance_score=row["relevance_score"],
            relevance_explanation=row["relevance_explanation"],
            language=row["language"],
            status=row["status"],
            source_url=row["source_url"],
            source_name=row["source_name"],
            url_hash=row["url_hash"],
            published_at=_parse_datetime(row["published_at"]) or now_utc(),
            created_at=_parse_datetime(row["created_at"]) or now_utc(),
        )

    # ------------------------------------------------------------------
    # Maintenance
    # ------------------------------------------------------------------

    def get_processing_statistics(self) -> Dict[str, Any]:
        """Summarize the article store.

        Returns:
            Dict with total and processed article counts, average relevance,
            the ten most common tags and the number of articles stored in
            the last 24 hours.
        """
        try:
            row = self.db.execute(
                """
                SELECT
                    COUNT(*) AS total,
                    SUM(CASE WHEN summary IS NOT NULL AND summary != '' THEN 1 ELSE 0 END) AS processed,
                    AVG(relevance_score) AS avg_relevance
                FROM articles
                """
            ).fetchone()

            recent = self.db.execute(
                "SELECT COUNT(*) FROM articles WHERE created_at >= ?",
                (hours_ago(24).isoformat(),),
            ).fetchone()[0]

            tag_counts: Counter = Counter()
            for tag_row in self.db.execute("SELECT tags FROM articles"):
                tag_counts.update(json.loads(tag_row["tags"] or "[]"))

        except sqlite3.Error as e:
            logger.error("processing_statistics_failed", error=str(e))
            raise DatabaseError(f"Failed to compute statistics: {e}") from e

        avg_relevance = row["avg_relevance"]
        return {
            "total_articles": row["total"] or 0,
            "processed_articles": row["processed"] or 0,
            "average_relevance": round(avg_relevance, 2) if avg_relevance is not None else 0.0,
            "top_tags": [tag for tag, _ in tag_counts.most_common(10)],
            "recently_processed": recent,
        }

    def delete_articles_without_summary(self, batch_size: int = 10) -> Dict[str, int]:
        """Delete articles whose summary is missing, `batch_size` at a time.

        A failing batch is counted and skipped; the remaining batches still
        run.

        Returns:
            Dict with `deleted` and `errors` counts.
        """
        try:
            rows = self.db.execute(
                "SELECT id FROM articles WHERE summary IS NULL OR summary = ''"
            ).fetchall()
        except sqlite3.Error as e:
            logger.error("low_quality_lookup_failed", error=str(e))
            raise DatabaseError(f"Failed to find articles without summary: {e}") from e

        ids = [r["id"] for r in rows]
        deleted = 0
        errors = 0

        for start in range(0, len(ids), batch_size):
            batch = ids[start : start + batch_size]
            placeholders = ",".join("?" for _ in batch)
            try:
                cursor = self.db.execute(
                    f"DELETE FROM articles WHERE id IN ({placeholders})", tuple(batch)
                )
                self.db.commit()
                deleted += cursor.rowcount
            except sqlite3.Error as e:
                self.db.rollback()
                errors += len(batch)
                logger.error("delete_batch_failed", ids=batch, error=str(e))

        logger.info("low_quality_articles_cleaned", deleted=deleted, errors=errors)
        return {"deleted": deleted, "errors": errors}

    # ------------------------------------------------------------------
    # Feed health
    # ------------------------------------------------------------------

    def record_feed_result(self, result: FeedFetchResult) -> None:
        """Append a feed fetch outcome to the health log."""
        try:
            self.db.execute(
                """
                INSERT INTO feed_health (
                    feed_name, feed_url, success, item_count,
                    response_time_ms, error_message, checked_at
                ) VALUES (?, ?, ?, ?, ?, ?, ?)
                """,
                (
                    result.feed_name,
                    result.feed_url,
                    1 if result.success else 0,
                    result.item_count,
                    result.response_time_ms,
                    result.error,
                    result.fetched_at.isoformat(),
                ),
            )
            self.db.commit()
        except sqlite3.Error as e:
            self.db.rollback()
            logger.error("record_feed_result_failed", feed_name=result.feed_name, error=str(e))
            raise DatabaseError(f"Failed to record feed result: {e}") from e

    def get_feed_health(self, window: int = 10) -> List[Dict[str, Any]]:
        """Report health per feed from its last `window` fetches.

        A feed is `error` when every recent fetch failed, `warning` when some
        did, and `healthy` otherwise.

        Returns:
            One dict per feed, sorted by feed name.
        """
        try:
            rows = self.db.execute(
                """
                SELECT feed_name, feed_url, success, item_count, checked_at
                FROM feed_health
                ORDER BY feed_name ASC, checked_at DESC, id DESC
                """
            ).fetchall()
        except sqlite3.Error as e:
            logger.error("feed_health_query_failed", error=str(e))
            raise DatabaseError(f"Failed to query feed health: {e}") from e

        grouped: Dict[str, List[sqlite3.Row]] = {}
        for row in rows:
            checks = grouped.setdefault(row["feed_name"], [])
            if len(checks) < window:
                checks.append(row)

        report = []
        for feed_name, checks in grouped.items():
            failures = sum(1 for c in checks if not c["success"])
            successes = [c for c in checks if c["success"]]

            if failures == len(checks):
                status = FeedHealthStatus.ERROR
            elif failures:
                status = FeedHealthStatus.WARNING
            else:
                status = FeedHealthStatus.HEALTHY

            report.append(
                {
                    "feed_name": feed_name,
                    "feed_url": checks[0]["feed_url"],
                    "status": status.value,
                    "checks": len(checks),
                    "error_count": failures,
                    "last_success": successes[0]["checked_at"] if successes else None,
                    "avg_item_count": (
                        round(sum(c["item_count"] for c in successes) / len(successes), 1)
                        if successes
                        else 0.0
                    ),
                }
            )

        return report

    # ------------------------------------------------------------------
    # Runs
    # ------------------------------------------------------------------

    def start_run(self, run_id: str, started_at: datetime) -> None:
        """Record the start of an ingestion run."""
        try:
            self.db.execute(
                "INSERT INTO ingestion_runs (run_id, status, started_at) VALUES (?, ?, ?)",
                (run_id, "running", started_at.isoformat()),
            )
            self.db.commit()
        except sqlite3.Error as e:
            self.db.rollback()
            logger.error("failed_to_record_run_start", run_id=run_id, error=str(e))
            raise DatabaseError(f"Failed to record run start: {e}") from e

    def complete_run(
        self,
        report: IngestionReport,
        success: bool,
        items_fetched: int = 0,
        error: Optional[str] = None,
    ) -> None:
        """Record the end of an ingestion run with its counters and API cost.

        Args:
            report: Report of the run.
            success: Whether the run completed.
            items_fetched: Items returned by the fetch stage.
            error: Error message if the run failed.
        """
        completed_at = report.completed_at or now_utc()
        duration = (completed_at - report.started_at).total_seconds()

        try:
            cost_row = self.db.execute(
                """
                SELECT COALESCE(SUM(cost), 0.0), COALESCE(SUM(total_tokens), 0)
                FROM api_calls
                WHERE run_id = ?
                """,
                (report.run_id,),
            ).fetchone()

            self.db.execute(
                """
                UPDATE ingestion_runs
                SET completed_at = ?,
                    status = ?,
                    feeds_fetched = ?,
                    items_fetched = ?,
                    processed = ?,
                    stored = ?,
                    duplicates = ?,
                    low_relevance = ?,
                    errors = ?,
                    duration_seconds = ?,
                    total_cost = ?,
                    total_tokens = ?,
                    error_message = ?
                WHERE run_id = ?
                """,
                (
                    completed_at.isoformat(),
                    "completed" if success else "failed",
                    len(report.feed_results),
                    items_fetched,
                    report.processed,
                    report.stored,
                    report.duplicates,
                    report.low_relevance,
                    report.errors,
                    duration,
                    cost_row[0],
                    cost_row[1],
                    error,
                    report.run_id,
                ),
            )
            self.db.commit()
        except sqlite3.Error as e:
            self.db.rollback()
            logger.error("failed_to_record_run_completion", run_id=report.run_id, error=str(e))
            raise DatabaseError(f"Failed to record run completion: {e}") from e

    def get_recent_runs(self, limit: int = 10) -> List[Dict[str, Any]]:
        """Return the most recent ingestion runs, newest first."""
        try:
            cursor = self.db.execute(
                "SELECT * FROM ingestion_runs ORDER BY started_at DESC LIMIT ?",
                (limit,),
            )
            return [dict(row) for row in cursor.fetchall()]
        except sqlite3.Error as e:
            logger.error("fetch_recent_runs_failed", error=str(e))
            raise DatabaseError(f"Failed to fetch runs: {e}") from e

    def get_api_cost_summary(self, days: int = 7) -> Dict[str, Any]:
        """Aggregate LLM usage over the last `days` days."""
        try:
            row = self.db.execute(
                """
                SELECT
                    COUNT(*) AS calls,
                    COALESCE(SUM(total_tokens), 0) AS tokens,
                    COALESCE(SUM(cost), 0.0) AS cost,
                    SUM(CASE WHEN success = 0 THEN 1 ELSE 0 END) AS failures
                FROM api_calls
                WHERE created_at >= ?
                """,
                (hours_ago(days * 24).isoformat(),),
            ).fetchone()
        except sqlite3.Error as e:
            logger.error("api_cost_summary_failed", error=str(e))
            raise DatabaseError(f"Failed to summarize API cost: {e}") from e

        return {
            "calls": row["calls"] or 0,
            "tokens": row["tokens"] or 0,
            "cost": round(row["cost"] or 0.0, 4),
            "failures": row["failures"] or 0,
        }
