"""Duplicate detection against the article store.

Two tiers: a cheap lookup by url_hash and exact title, then an LLM
comparison against a handful of recently stored articles.
"""

from typing import Dict, List, Sequence, Tuple

from newsingest.core.article import DuplicateCheckResult, PersistedArticle, RawFeedItem
from newsingest.core.enums import Similarity
from newsingest.database.repository import ArticleRepository
from newsingest.pipeline.enrichment.ai_enricher import AIEnricher
from newsingest.utils.exceptions import DatabaseError
from newsingest.utils.logging import get_logger
from newsingest.utils.text_utils import normalize_url

logger = get_logger(__name__)


def remove_url_duplicates(items: Sequence[RawFeedItem]) -> List[RawFeedItem]:
    """Drop items whose source URL was already seen. First occurrence wins.

    Args:
        items: Feed items in any order.

    Returns:
        Items with unique source URLs, in input order.
    """
    seen = set()
    unique = []

    for item in items:
        key = normalize_url(item.source_url)
        if key in seen:
            continue
        seen.add(key)
        unique.append(item)

    if len(unique) < len(items):
        logger.debug("url_duplicates_removed", removed=len(items) - len(unique))

    return unique


class DuplicateDetector:
    """Decides whether a feed item is already covered by the store.

    Pairwise LLM verdicts are cached for the lifetime of the detector, so
    one run never asks the same comparison twice.
    """

    def __init__(
        self,
        repository: ArticleRepository,
        enricher: AIEnricher,
        recent_window_hours: int = 24,
        recent_limit: int = 10,
    ):
        """Initialize duplicate detector.

        Args:
            repository: Article store.
            enricher: Enricher providing pairwise LLM comparisons.
            recent_window_hours: How far back semantic candidates are taken.
            recent_limit: Maximum semantic candidates per item.
        """
        self.repository = repository
        self.enricher = enricher
        self.recent_window_hours = recent_window_hours
        self.recent_limit = recent_limit
        self._verdicts: Dict[Tuple[str, str], DuplicateCheckResult] = {}

    @property
    def cached_verdicts(self) -> int:
        return len(self._verdicts)

    def is_exact_duplicate(self, item: RawFeedItem) -> bool:
        """Cheap tier: same url_hash or exact title already stored.

        Raises:
            DatabaseError: If the store lookup fails.
        """
        return self.repository.exists_by_url_hash(item.url_hash) or self.repository.exists_by_title(
            item.title
        )

    async def is_duplicate(self, item: RawFeedItem) -> bool:
        """Check an item against the store.

        If the store cannot be queried the item is treated as new.

        Args:
            item: Incoming feed item.

        Returns:
            True if the item duplicates a stored article.
        """
        try:
            if self.is_exact_duplicate(item):
                logger.info("exact_duplicate_found", title=item.title[:60], source_url=item.source_url)
                return True

            candidates = self.repository.get_recent_articles(
                hours=self.recent_window_hours,
                limit=self.recent_limit,
            )
        except DatabaseError as e:
            logger.error("duplicate_lookup_failed", source_url=item.source_url, error=str(e))
            return False

        for candidate in candidates:
            verdict = await self._compare(item, candidate)
            if verdict.similarity == Similarity.DUPLICATE:
                logger.info(
                    "semantic_duplicate_found",
                    title=item.title[:60],
                    duplicate_of=candidate.id,
                    explanation=verdict.explanation,
                )
                return True

        return False

    async def _compare(self, item: RawFeedItem, candidate: PersistedArticle) -> DuplicateCheckResult:
        key = (item.url_hash, candidate.url_hash)
        cached = self._verdicts.get(key)
        if cached is not None:
            logger.debug("duplicate_verdict_cache_hit", candidate_id=candidate.id)
            return cached

        verdict = await self.enricher.detect_duplicate(
            item.title,
            item.content,
            candidate.title,
            candidate.content,
        )
        self._verdicts[key] = verdict
        return verdict
