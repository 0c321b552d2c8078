"""AI enrichment of feed items: summary, categories, keywords, relevance."""

import asyncio
from typing import Any, Awaitable, Callable, Dict, List, Sequence, Tuple, TypeVar

from pydantic import BaseModel, Field

from newsingest.core.article import (
    ArticleSummary,
    DuplicateCheckResult,
    EnrichmentResult,
    RawFeedItem,
    RelevanceAssessment,
    TranslationResult,
)
from newsingest.core.enums import EnrichmentTask, Similarity, TargetLanguage
from newsingest.integrations.provider_factory import LLMClient
from newsingest.pipeline.enrichment import prompts
from newsingest.utils.batching import run_in_batches
from newsingest.utils.logging import get_logger
from newsingest.utils.text_utils import truncate_text

logger = get_logger(__name__)

T = TypeVar("T")

MAX_CATEGORIES = 3
MAX_KEYWORDS = 10
PROMPT_CONTENT_CHARS = 1000
DUPLICATE_CONTENT_CHARS = 500


class SummaryResponse(BaseModel):
    """Structured summary reply."""

    main_points: List[str] = Field(default_factory=list)
    implications: str = ""
    relevance_score: int


class CategoriesResponse(BaseModel):
    """Structured categorization reply."""

    categories: List[str]


class KeywordsResponse(BaseModel):
    """Structured keyword reply."""

    keywords: List[str]


class RelevanceResponse(BaseModel):
    """Structured relevance reply."""

    score: int
    explanation: str = ""


class DuplicateResponse(BaseModel):
    """Structured duplicate comparison reply."""

    similarity: Similarity
    explanation: str = ""


class TranslationResponse(BaseModel):
    """Structured translation reply."""

    title: str
    content: str


def clamp_score(score: int) -> int:
    """Clamp a model-provided score to 1..10."""
    return max(1, min(10, int(score)))


def _clean_list(values: Sequence[str], limit: int) -> List[str]:
    cleaned = [str(v).strip() for v in values if str(v).strip()]
    return cleaned[:limit]


# Documented defaults used when a call fails

def fallback_summary() -> ArticleSummary:
    return ArticleSummary(
        main_points=["Summary not available"],
        implications="Unable to assess implications",
        relevance_score=5,
    )


def fallback_categories() -> List[str]:
    return ["General"]


def fallback_keywords() -> List[str]:
    return []


def fallback_relevance() -> RelevanceAssessment:
    return RelevanceAssessment(score=5, explanation="Unable to assess relevance")


def fallback_duplicate() -> DuplicateCheckResult:
    return DuplicateCheckResult(
        is_duplicate=False,
        similarity=Similarity.DIFFERENT,
        explanation="Unable to detect duplicates",
    )


def failed_enrichment() -> EnrichmentResult:
    """Result for an article whose enrichment failed outright."""
    return EnrichmentResult(
        summary=ArticleSummary(
            main_points=["Processing failed"],
            implications="Unable to process",
            relevance_score=1,
        ),
        categories=fallback_categories(),
        keywords=fallback_keywords(),
        relevance_assessment=RelevanceAssessment(score=1, explanation="Processing failed"),
        fallbacks=list(EnrichmentTask),
    )


class AIEnricher:
    """Enriches articles with LLM-derived metadata.

    `enrich` issues four independent calls in parallel (summarize,
    categorize, extract keywords, assess relevance). A failing call never
    fails the enrichment: its documented default is used and the call is
    listed in `EnrichmentResult.fallbacks`.
    """

    def __init__(
        self,
        llm_client: LLMClient,
        model_small: str = "gpt-4o-mini",
        model_large: str = "gpt-4o",
        batch_size: int = 3,
        batch_delay: float = 1.0,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ):
        """Initialize AI enricher.

        Args:
            llm_client: LLM client shared with the rest of the run.
            model_small: Model for categorization, keywords, relevance and
                duplicate checks.
            model_large: Model for summaries and translations.
            batch_size: Articles enriched concurrently by `enrich_batch`.
            batch_delay: Pause between batches in seconds.
            sleep: Async sleep, injectable for tests.
        """
        self.llm_client = llm_client
        self.model_small = model_small
        self.model_large = model_large
        self.batch_size = batch_size
        self.batch_delay = batch_delay
        self._sleep = sleep

    async def _request(
        self,
        request_type: str,
        system_prompt: str,
        user_prompt: str,
        response_format: type[BaseModel],
        model: str,
        temperature: float,
        max_tokens: int,
    ) -> Dict[str, Any]:
        response = await self.llm_client.create_completion(
            messages=[
                {"role": "system", "content": system_prompt},
                {"role": "user", "content": user_prompt},
            ],
            module="enricher",
            request_type=request_type,
            model=model,
            response_format=response_format,
            temperature=temperature,
            max_tokens=max_tokens,
        )
        return response_format.model_validate(response["content"]).model_dump()

    async def _attempt(
        self,
        task: str,
        call: Awaitable[T],
        fallback: Callable[[], T],
    ) -> Tuple[T, bool]:
        """Await `call`, substituting the fallback on failure.

        Returns:
            The value and whether it came from the call.
        """
        try:
            return await call, True
        except Exception as e:
            logger.error("enrichment_call_failed", task=task, error=str(e))
            return fallback(), False

    # ------------------------------------------------------------------
    # Individual calls (raise on failure)
    # ------------------------------------------------------------------

    async def _summarize(self, title: str, content: str) -> ArticleSummary:
        data = await self._request(
            EnrichmentTask.SUMMARIZE.value,
            prompts.SUMMARIZE_SYSTEM,
            prompts.SUMMARIZE_USER.format(
                title=title,
                content=truncate_text(content, PROMPT_CONTENT_CHARS),
            ),
            SummaryResponse,
            model=self.model_large,
            temperature=0.3,
            max_tokens=500,
        )
        main_points = _clean_list(data["main_points"], limit=5)
        return ArticleSummary(
            main_points=main_points or ["Article summary not available"],
            implications=data["implications"].strip() or "No specific implications identified",
            relevance_score=clamp_score(data["relevance_score"]),
        )

    async def _categorize(self, title: str, content: str) -> List[str]:
        data = await self._request(
            EnrichmentTask.CATEGORIZE.value,
            prompts.CATEGORIZE_SYSTEM,
            prompts.CATEGORIZE_USER.format(
                title=title,
                content=truncate_text(content, PROMPT_CONTENT_CHARS),
                categories="\n".join(f"- {c}" for c in prompts.CATEGORIES),
            ),
            CategoriesResponse,
            model=self.model_small,
            temperature=0.1,
            max_tokens=100,
        )
        return _clean_list(data["categories"], MAX_CATEGORIES)

    async def _extract_keywords(self, title: str, content: str) -> List[str]:
        data = await self._request(
            EnrichmentTask.EXTRACT_KEYWORDS.value,
            prompts.KEYWORDS_SYSTEM,
            prompts.KEYWORDS_USER.format(
                title=title,
                content=truncate_text(content, PROMPT_CONTENT_CHARS),
            ),
            KeywordsResponse,
            model=self.model_small,
            temperature=0.1,
            max_tokens=150,
        )
        return _clean_list(data["keywords"], MAX_KEYWORDS)

    async def _assess_relevance(self, title: str, content: str) -> RelevanceAssessment:
        data = await self._request(
            EnrichmentTask.ASSESS_RELEVANCE.value,
            prompts.RELEVANCE_SYSTEM,
            prompts.RELEVANCE_USER.format(
                title=title,
                content=truncate_text(content, PROMPT_CONTENT_CHARS),
            ),
            RelevanceResponse,
            model=self.model_small,
            temperature=0.3,
            max_tokens=200,
        )
        return RelevanceAssessment(
            score=clamp_score(data["score"]),
            explanation=data["explanation"].strip() or "No explanation provided",
        )

    # ------------------------------------------------------------------
    # Public API (never raises)
    # ------------------------------------------------------------------

    async def summarize(self, title: str, content: str) -> ArticleSummary:
        value, _ = await self._attempt(
            EnrichmentTask.SUMMARIZE.value, self._summarize(title, content), fallback_summary
        )
        return value

    async def categorize(self, title: str, content: str) -> List[str]:
        value, _ = await self._attempt(
            EnrichmentTask.CATEGORIZE.value, self._categorize(title, content), fallback_categories
        )
        return value

    async def extract_keywords(self, title: str, content: str) -> List[str]:
        value, _ = await self._attempt(
            EnrichmentTask.EXTRACT_KEYWORDS.value,
            self._extract_keywords(title, content),
            fallback_keywords,
        )
        return value

    async def assess_relevance(self, title: str, content: str) -> RelevanceAssessment:
        value, _ = await self._attempt(
            EnrichmentTask.ASSESS_RELEVANCE.value,
            self._assess_relevance(title, content),
            fallback_relevance,
        )
        return value

    async def enrich(self, title: str, content: str) -> EnrichmentResult:
        """Run the four enrichment calls in parallel.

        Args:
            title: Article title.
            content: Article body.

        Returns:
            Enrichment with defaults for any failed call.
        """
        (summary, s_ok), (categories, c_ok), (keywords, k_ok), (relevance, r_ok) = (
            await asyncio.gather(
                self._attempt(
                    EnrichmentTask.SUMMARIZE.value,
                    self._summarize(title, content),
                    fallback_summary,
                ),
                self._attempt(
                    EnrichmentTask.CATEGORIZE.value,
                    self._categorize(title, content),
                    fallback_categories,
                ),
                self._attempt(
                    EnrichmentTask.EXTRACT_KEYWORDS.value,
                    self._extract_keywords(title, content),
                    fallback_keywords,
                ),
                self._attempt(
                    EnrichmentTask.ASSESS_RELEVANCE.value,
                    self._assess_relevance(title, content),
                    fallback_relevance,
                ),
            )
        )

        outcomes = (
            (EnrichmentTask.SUMMARIZE, s_ok),
            (EnrichmentTask.CATEGORIZE, c_ok),
            (EnrichmentTask.EXTRACT_KEYWORDS, k_ok),
            (EnrichmentTask.ASSESS_RELEVANCE, r_ok),
        )
        fallbacks = [task for task, ok in outcomes if not ok]

        if fallbacks:
            logger.warning(
                "enrichment_used_fallbacks",
                title=title[:60],
                fallbacks=[t.value for t in fallbacks],
            )

        return EnrichmentResult(
            summary=summary,
            categories=categories,
            keywords=keywords,
            relevance_assessment=relevance,
            fallbacks=fallbacks,
        )

    async def enrich_batch(self, items: Sequence[RawFeedItem]) -> List[EnrichmentResult]:
        """Enrich items in fixed-size batches with a pause between batches.

        Returns:
            One result per item, in input order.
        """

        async def _enrich_one(item: RawFeedItem) -> EnrichmentResult:
            try:
                return await self.enrich(item.title, item.content)
            except Exception as e:
                logger.error("article_enrichment_failed", source_url=item.source_url, error=str(e))
                return failed_enrichment()

        return await run_in_batches(
            items,
            _enrich_one,
            batch_size=self.batch_size,
            delay_seconds=self.batch_delay,
            sleep=self._sleep,
        )

    async def detect_duplicate(
        self,
        title1: str,
        content1: str,
        title2: str,
        content2: str,
    ) -> DuplicateCheckResult:
        """Compare two articles for the same story.

        Returns:
            The verdict, or a DIFFERENT verdict if the call fails.
        """

        async def _compare() -> DuplicateCheckResult:
            data = await self._request(
                "duplicate_detection",
                prompts.DUPLICATE_SYSTEM,
                prompts.DUPLICATE_USER.format(
                    title1=title1,
                    content1=truncate_text(content1, DUPLICATE_CONTENT_CHARS),
                    title2=title2,
                    content2=truncate_text(content2, DUPLICATE_CONTENT_CHARS),
                ),
                DuplicateResponse,
                model=self.model_small,
                temperature=0.1,
                max_tokens=150,
            )
            similarity = Similarity(data["similarity"])
            return DuplicateCheckResult(
                is_duplicate=similarity == Similarity.DUPLICATE,
                similarity=similarity,
                explanation=data["explanation"].strip() or "No explanation provided",
            )

        value, _ = await self._attempt("duplicate_detection", _compare(), fallback_duplicate)
        return value

    async def translate(
        self,
        title: str,
        content: str,
        target_language: TargetLanguage,
    ) -> TranslationResult:
        """Translate an article.

        Returns:
            The translation, or the input unchanged if the call fails.
        """
        language = TargetLanguage(target_language)

        async def _translate() -> TranslationResult:
            data = await self._request(
                "translation",
                prompts.TRANSLATE_SYSTEM,
                prompts.TRANSLATE_USER.format(
                    language=prompts.LANGUAGE_NAMES[language.value],
                    title=title,
                    content=content,
                ),
                TranslationResponse,
                model=self.model_large,
                temperature=0.2,
                max_tokens=2000,
            )
            return TranslationResult(
                title=data["title"].strip() or title,
                content=data["content"].strip() or content,
                language=language.value,
            )

        def _untranslated() -> TranslationResult:
            return TranslationResult(title=title, content=content, language=language.value)

        value, _ = await self._attempt("translation", _translate(), _untranslated)
        return value

