"""Core domain models and configurations."""

from newsingest.core.article import (
    ArticleSummary,
    ConnectivityResult,
    DuplicateCheckResult,
    EnrichmentResult,
    FeedFetchResult,
    IngestionReport,
    ItemReport,
    PersistedArticle,
    RawFeedItem,
    RelevanceAssessment,
    TranslationResult,
)
from newsingest.core.config import Config, FeedSource
from newsingest.core.enums import (
    EnrichmentTask,
    FeedHealthStatus,
    FeedPriority,
    IngestionOutcome,
    ModerationPriority,
    ModerationReason,
    ModerationStatus,
    PipelineStage,
    Similarity,
    TargetLanguage,
)

__all__ = [
    # Article models
    "RawFeedItem",
    "ArticleSummary",
    "RelevanceAssessment",
    "EnrichmentResult",
    "DuplicateCheckResult",
    "TranslationResult",
    "PersistedArticle",
    # Run reporting
    "FeedFetchResult",
    "ConnectivityResult",
    "ItemReport",
    "IngestionReport",
    # Configuration models
    "Config",
    "FeedSource",
    # Enums
    "EnrichmentTask",
    "FeedHealthStatus",
    "FeedPriority",
    "IngestionOutcome",
    "ModerationPriority",
    "ModerationReason",
    "ModerationStatus",
    "PipelineStage",
    "Similarity",
    "TargetLanguage",
]
