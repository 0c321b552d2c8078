"""Article domain models."""

from datetime import datetime
from typing import Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, computed_field

from newsingest.core.enums import EnrichmentTask, IngestionOutcome, Similarity
from newsingest.utils.date_utils import now_utc
from newsingest.utils.text_utils import hash_url, slugify


class RawFeedItem(BaseModel):
    """Normalized item scraped from an RSS feed. Discarded after ingestion."""

    title: str = Field(..., min_length=1)
    content: str
    source_url: str = Field(..., min_length=1)
    source_name: str
    published_at: datetime = Field(default_factory=now_utc)
    author: Optional[str] = None
    image_url: Optional[str] = None

    @property
    def url_hash(self) -> str:
        """Idempotency key derived from the normalized source URL."""
        return hash_url(self.source_url)

    model_config = {
        "json_schema_extra": {
            "example": {
                "title": "Ethereum completes Dencun upgrade",
                "content": "The upgrade introduces proto-danksharding...",
                "source_url": "https://www.coindesk.com/tech/2024/03/13/dencun",
                "source_name": "CoinDesk",
                "published_at": "2024-03-13T14:00:00Z",
            }
        }
    }


class ArticleSummary(BaseModel):
    """AI-generated summary of an article."""

    main_points: List[str]
    implications: str
    relevance_score: int = Field(..., ge=1, le=10)


class RelevanceAssessment(BaseModel):
    """AI relevance rating used as an admission filter."""

    score: int = Field(..., ge=1, le=10)
    explanation: str


class EnrichmentResult(BaseModel):
    """AI-derived metadata attached to a feed item before persistence."""

    model_config = ConfigDict(frozen=True)

    summary: ArticleSummary
    categories: List[str]
    keywords: List[str]
    relevance_assessment: RelevanceAssessment
    processed_at: datetime = Field(default_factory=now_utc)

    # Calls that failed and were replaced by default values
    fallbacks: List[EnrichmentTask] = Field(default_factory=list)

    @property
    def relevance_score(self) -> int:
        return self.relevance_assessment.score


class DuplicateCheckResult(BaseModel):
    """Result of comparing two articles for the same story."""

    is_duplicate: bool
    similarity: Similarity
    explanation: str


class TranslationResult(BaseModel):
    """Translated article title and body."""

    title: str
    content: str
    language: str


class PersistedArticle(BaseModel):
    """Article row as stored in the article store."""

    id: Optional[int] = None

    title: str
    slug: str
    content: str
    summary: str
    tags: List[str] = Field(default_factory=list)
    categories: List[str] = Field(default_factory=list)
    relevance_score: Optional[int] = None
    relevance_explanation: Optional[str] = None

    language: str = "en"
    status: str = "published"

    source_url: str
    source_name: str
    url_hash: str = Field(..., min_length=64, max_length=64)

    published_at: datetime
    created_at: datetime = Field(default_factory=now_utc)

    @classmethod
    def from_enrichment(
        cls,
        item: RawFeedItem,
        enrichment: EnrichmentResult,
    ) -> "PersistedArticle":
        """Build the row to insert for an enriched feed item.

        Args:
            item: Feed item.
            enrichment: AI enrichment for the item.

        Returns:
            Article ready for insertion.
        """
        return cls(
            title=item.title,
            slug=slugify(item.title),
            content=item.content,
            summary=". ".join(enrichment.summary.main_points),
            tags=list(enrichment.keywords),
            categories=list(enrichment.categories),
            relevance_score=enrichment.relevance_score,
            relevance_explanation=enrichment.relevance_assessment.explanation,
            source_url=item.source_url,
            source_name=item.source_name,
            url_hash=item.url_hash,
            published_at=item.published_at,
        )


class FeedFetchResult(BaseModel):
    """Outcome of fetching one feed."""

    feed_name: str
    feed_url: str
    item_count: int = 0
    success: bool
    error: Optional[str] = None
    response_time_ms: int = 0
    fetched_at: datetime = Field(default_factory=now_utc)


class ConnectivityResult(BaseModel):
    """Outcome of a feed connectivity check."""

    success: bool
    response_time_ms: int
    item_count: int = 0
    error: Optional[str] = None


class ItemReport(BaseModel):
    """Result of ingesting a single feed item."""

    source_url: str
    title: str
    outcome: IngestionOutcome
    article_id: Optional[int] = None
    relevance_score: Optional[int] = None
    error: Optional[str] = None
    fallbacks: List[EnrichmentTask] = Field(default_factory=list)


class IngestionReport(BaseModel):
    """Per-run ingestion report. Counters are derived from item reports."""

    run_id: str
    items: List[ItemReport] = Field(default_factory=list)
    feed_results: List[FeedFetchResult] = Field(default_factory=list)
    started_at: datetime = Field(default_factory=now_utc)
    completed_at: Optional[datetime] = None

    def _count(self, outcome: IngestionOutcome) -> int:
        return sum(1 for item in self.items if item.outcome == outcome)

    @computed_field  # type: ignore[prop-decorator]
    @property
    def processed(self) -> int:
        return len(self.items)

    @computed_field  # type: ignore[prop-decorator]
    @property
    def stored(self) -> int:
        return self._count(IngestionOutcome.STORED)

    @computed_field  # type: ignore[prop-decorator]
    @property
    def duplicates(self) -> int:
        return self._count(IngestionOutcome.DUPLICATE)

    @computed_field  # type: ignore[prop-decorator]
    @property
    def low_relevance(self) -> int:
        return self._count(IngestionOutcome.LOW_RELEVANCE)

    @computed_field  # type: ignore[prop-decorator]
    @property
    def errors(self) -> int:
        return self._count(IngestionOutcome.ERROR)

    def counters(self) -> Dict[str, int]:
        """Counters in the shape the admin dashboards consume."""
        return {
            "processed": self.processed,
            "stored": self.stored,
            "duplicates": self.duplicates,
            "low_relevance": self.low_relevance,
            "errors": self.errors,
        }
