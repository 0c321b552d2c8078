"""Content moderation queue and AI pre-screening."""

import json
import sqlite3
from datetime import datetime
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field

from newsingest.core.enums import ModerationPriority, ModerationReason, ModerationStatus
from newsingest.database.connection import DatabaseConnection
from newsingest.integrations.provider_factory import LLMClient
from newsingest.utils.date_utils import now_utc
from newsingest.utils.exceptions import DatabaseError, ModerationError
from newsingest.utils.logging import get_logger

logger = get_logger(__name__)


class ModerationEntry(BaseModel):
    """Row of the moderation queue."""

    id: Optional[int] = None
    content_id: str
    content_type: str
    priority: ModerationPriority
    reason: ModerationReason
    status: ModerationStatus = ModerationStatus.PENDING
    ai_confidence: Optional[float] = None
    ai_flags: List[str] = Field(default_factory=list)
    created_at: datetime = Field(default_factory=now_utc)
    resolved_at: Optional[datetime] = None


class ModerationOutcome(BaseModel):
    """Result of auto-moderating one piece of content."""

    flagged: bool
    priority: Optional[ModerationPriority] = None
    flags: List[str] = Field(default_factory=list)
    confidence: Optional[float] = None
    entry_id: Optional[int] = None


_PRIORITY_ORDER = "CASE priority WHEN 'urgent' THEN 0 WHEN 'high' THEN 1 WHEN 'medium' THEN 2 ELSE 3 END"


class ModerationQueue:
    """SQLite-backed queue of content awaiting human review."""

    def __init__(self, db: DatabaseConnection):
        self.db = db

    def add(
        self,
        content_id: str,
        content_type: str,
        priority: ModerationPriority,
        reason: ModerationReason,
        ai_confidence: Optional[float] = None,
        ai_flags: Optional[List[str]] = None,
    ) -> int:
        """Queue content for review.

        Returns:
            Id of the new queue entry.

        Raises:
            DatabaseError: If the insert fails.
        """
        entry = ModerationEntry(
            content_id=content_id,
            content_type=content_type,
            priority=priority,
            reason=reason,
            ai_confidence=ai_confidence,
            ai_flags=ai_flags or [],
        )

        try:
            cursor = self.db.execute(
                """
                INSERT INTO moderation_queue (
                    content_id, content_type, priority, reason, status,
                    ai_confidence, ai_flags, created_at
                ) VALUES (?, ?, ?, ?, ?, ?, ?, ?)
                """,
                (
                    entry.content_id,
                    entry.content_type,
                    entry.priority.value,
                    entry.reason.value,
                    entry.status.value,
                    entry.ai_confidence,
                    json.dumps(entry.ai_flags),
                    entry.created_at.isoformat(),
                ),
            )
            self.db.commit()
        except sqlite3.Error as e:
            self.db.rollback()
            logger.error("moderation_enqueue_failed", content_id=content_id, error=str(e))
            raise DatabaseError(f"Failed to add to moderation queue: {e}") from e

        logger.info(
            "content_queued_for_moderation",
            entry_id=cursor.lastrowid,
            content_id=content_id,
            priority=entry.priority.value,
            reason=entry.reason.value,
        )
        return cursor.lastrowid

    def list_pending(self, limit: int = 50) -> List[ModerationEntry]:
        """Pending entries, most urgent first, oldest first within a priority."""
        try:
            rows = self.db.execute(
                f"""
                SELECT * FROM moderation_queue
                WHERE status = ?
                ORDER BY {_PRIORITY_ORDER}, created_at ASC
                LIMIT ?
                """,
                (ModerationStatus.PENDING.value, limit),
            ).fetchall()
        except sqlite3.Error as e:
            logger.error("moderation_queue_query_failed", error=str(e))
            raise DatabaseError(f"Failed to read moderation queue: {e}") from e

        return [
            ModerationEntry(
                id=row["id"],
                content_id=row["content_id"],
                content_type=row["content_type"],
                priority=row["priority"],
                reason=row["reason"],
                status=row["status"],
                ai_confidence=row["ai_confidence"],
                ai_flags=json.loads(row["ai_flags"] or "[]"),
                created_at=row["created_at"],
                resolved_at=row["resolved_at"],
            )
            for row in rows
        ]

    def resolve(self, entry_id: int, status: ModerationStatus) -> bool:
        """Approve or reject a queue entry.

        Returns:
            True if a pending entry was updated.
        """
        if status == ModerationStatus.PENDING:
            raise ValueError("resolution status must be approved or rejected")

        try:
            cursor = self.db.execute(
                """
                UPDATE moderation_queue
                SET status = ?, resolved_at = ?
                WHERE id = ? AND status = ?
                """,
                (status.value, now_utc().isoformat(), entry_id, ModerationStatus.PENDING.value),
            )
            self.db.commit()
        except sqlite3.Error as e:
            self.db.rollback()
            logger.error("moderation_resolve_failed", entry_id=entry_id, error=str(e))
            raise DatabaseError(f"Failed to resolve moderation entry: {e}") from e

        return cursor.rowcount > 0


def priority_for_score(score: float) -> ModerationPriority:
    """Map the highest moderation category score to a queue priority."""
    if score > 0.8:
        return ModerationPriority.URGENT
    if score > 0.5:
        return ModerationPriority.HIGH
    return ModerationPriority.MEDIUM


class ContentModerator:
    """Screens content with the provider's moderation endpoint."""

    def __init__(self, llm_client: LLMClient, queue: ModerationQueue):
        self.llm_client = llm_client
        self.queue = queue

    async def auto_moderate(
        self,
        content_id: str,
        content_type: str,
        content: str,
    ) -> ModerationOutcome:
        """Moderate content, queueing it when flagged.

        If the moderation call fails, the content is queued for manual review
        at medium priority and the error is raised.

        Args:
            content_id: Identifier of the stored content.
            content_type: Kind of content (e.g. "news").
            content: Text to screen.

        Returns:
            Moderation outcome.

        Raises:
            ModerationError: If the moderation call fails.
        """
        try:
            result: Dict[str, Any] = await self.llm_client.moderate(content)
        except Exception as e:
            logger.error("auto_moderation_failed", content_id=content_id, error=str(e))
            self.queue.add(
                content_id=content_id,
                content_type=content_type,
                priority=ModerationPriority.MEDIUM,
                reason=ModerationReason.MANUAL_REVIEW,
            )
            raise ModerationError(f"Moderation failed for {content_id}: {e}") from e

        if not result.get("flagged"):
            return ModerationOutcome(flagged=False)

        scores = result.get("category_scores") or {}
        confidence = max((s for s in scores.values() if s is not None), default=0.0)
        flags = sorted(name for name, hit in (result.get("categories") or {}).items() if hit)
        priority = priority_for_score(confidence)

        entry_id = self.queue.add(
            content_id=content_id,
            content_type=content_type,
            priority=priority,
            reason=ModerationReason.AI_FLAGGED,
            ai_confidence=confidence,
            ai_flags=flags,
        )

        return ModerationOutcome(
            flagged=True,
            priority=priority,
            flags=flags,
            confidence=confidence,
            entry_id=entry_id,
        )
