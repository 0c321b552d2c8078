"""Enums for newsingest."""

from enum import Enum


class FeedPriority(str, Enum):
    """Editorial priority of a feed source."""

    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


class PipelineStage(str, Enum):
    """Stages an item passes through during ingestion."""

    FETCHED = "fetched"
    DUPLICATE_CHECKED = "duplicate_checked"
    ENRICHED = "enriched"
    RELEVANCE_FILTERED = "relevance_filtered"
    STORED = "stored"


class IngestionOutcome(str, Enum):
    """Final outcome of one item in an ingestion run."""

    STORED = "stored"
    DUPLICATE = "duplicate"
    LOW_RELEVANCE = "low_relevance"
    ERROR = "error"


class Similarity(str, Enum):
    """Verdict of a pairwise duplicate comparison."""

    DUPLICATE = "DUPLICATE"
    SIMILAR = "SIMILAR"
    DIFFERENT = "DIFFERENT"


class EnrichmentTask(str, Enum):
    """Independent LLM calls that make up one enrichment."""

    SUMMARIZE = "summarize"
    CATEGORIZE = "categorize"
    EXTRACT_KEYWORDS = "extract_keywords"
    ASSESS_RELEVANCE = "assess_relevance"


class TargetLanguage(str, Enum):
    """Languages articles can be translated to."""

    ENGLISH = "en"
    SPANISH = "es"


class FeedHealthStatus(str, Enum):
    """Health of a feed derived from its recent fetches."""

    HEALTHY = "healthy"
    WARNING = "warning"
    ERROR = "error"


class ModerationPriority(str, Enum):
    """Priority of a moderation queue entry."""

    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    URGENT = "urgent"


class ModerationStatus(str, Enum):
    """Status of a moderation queue entry."""

    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"


class ModerationReason(str, Enum):
    """Why content was added to the moderation queue."""

    AI_FLAGGED = "ai_flagged"
    MANUAL_REVIEW = "manual_review"
