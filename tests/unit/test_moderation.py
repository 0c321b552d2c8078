# tests/unit/test_moderation.py
"""Unit tests for content moderation."""

from unittest.mock import AsyncMock, Mock

import pytest

from newsingest.core.enums import ModerationPriority, ModerationReason, ModerationStatus
from newsingest.services.moderation import ContentModerator, ModerationQueue, priority_for_score
from newsingest.utils.exceptions import AIServiceError, ModerationError


@pytest.fixture
def queue(test_db):
    return ModerationQueue(test_db)


def moderation_reply(flagged: bool, scores=None, categories=None):
    return {
        "flagged": flagged,
        "categories": categories or {},
        "category_scores": scores or {},
    }


@pytest.mark.unit
class TestPriorityForScore:
    @pytest.mark.parametrize(
        "score,expected",
        [
            (0.95, ModerationPriority.URGENT),
            (0.81, ModerationPriority.URGENT),
            (0.8, ModerationPriority.HIGH),
            (0.6, ModerationPriority.HIGH),
            (0.5, ModerationPriority.MEDIUM),
            (0.1, ModerationPriority.MEDIUM),
        ],
    )
    def test_thresholds(self, score, expected):
        assert priority_for_score(score) == expected


@pytest.mark.unit
class TestModerationQueue:
    """Tests for ModerationQueue."""

    def test_lists_by_priority(self, queue):
        queue.add("1", "news", ModerationPriority.MEDIUM, ModerationReason.MANUAL_REVIEW)
        queue.add("2", "news", ModerationPriority.URGENT, ModerationReason.AI_FLAGGED, 0.9, ["violence"])
        queue.add("3", "news", ModerationPriority.HIGH, ModerationReason.AI_FLAGGED)

        pending = queue.list_pending()

        assert [e.content_id for e in pending] == ["2", "3", "1"]
        assert pending[0].ai_flags == ["violence"]
        assert pending[0].ai_confidence == pytest.approx(0.9)

    def test_resolve(self, queue):
        entry_id = queue.add("1", "news", ModerationPriority.HIGH, ModerationReason.AI_FLAGGED)

        assert queue.resolve(entry_id, ModerationStatus.APPROVED) is True
        assert queue.resolve(entry_id, ModerationStatus.REJECTED) is False
        assert queue.list_pending() == []

    def test_resolve_rejects_pending(self, queue):
        with pytest.raises(ValueError):
            queue.resolve(1, ModerationStatus.PENDING)


@pytest.mark.unit
@pytest.mark.asyncio
class TestContentModerator:
    """Tests for ContentModerator.auto_moderate."""

    async def test_clean_content_not_queued(self, queue):
        llm = Mock()
        llm.moderate = AsyncMock(return_value=moderation_reply(False))

        outcome = await ContentModerator(llm, queue).auto_moderate("1", "news", "Bitcoin rallies")

        assert outcome.flagged is False
        assert queue.list_pending() == []

    async def test_flagged_content_queued(self, queue):
        """Should queue flagged content with priority from the top score."""
        llm = Mock()
        llm.moderate = AsyncMock(
            return_value=moderation_reply(
                True,
                scores={"violence": 0.85, "harassment": 0.3, "hate": None},
                categories={"violence": True, "harassment": True, "hate": False},
            )
        )

        outcome = await ContentModerator(llm, queue).auto_moderate("42", "news", "text")

        assert outcome.flagged is True
        assert outcome.priority == ModerationPriority.URGENT
        assert outcome.flags == ["harassment", "violence"]
        assert outcome.confidence == pytest.approx(0.85)

        [entry] = queue.list_pending()
        assert entry.id == outcome.entry_id
        assert entry.content_id == "42"
        assert entry.reason == ModerationReason.AI_FLAGGED

    async def test_failure_queues_manual_review(self, queue):
        """Should queue for manual review at medium priority and raise."""
        llm = Mock()
        llm.moderate = AsyncMock(side_effect=AIServiceError("down"))

        with pytest.raises(ModerationError):
            await ContentModerator(llm, queue).auto_moderate("7", "news", "text")

        [entry] = queue.list_pending()
        assert entry.content_id == "7"
        assert entry.priority == ModerationPriority.MEDIUM
        assert entry.reason == ModerationReason.MANUAL_REVIEW
