# tests/conftest.py
"""Shared test fixtures and configuration."""

from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Any, Callable, Dict, Generator, List
from unittest.mock import AsyncMock, Mock

import httpx
import pytest

from newsingest.core.article import PersistedArticle, RawFeedItem
from newsingest.core.config import Config, FeedSource
from newsingest.database.connection import DatabaseConnection, init_database
from newsingest.database.repository import ArticleRepository
from newsingest.utils.text_utils import hash_url, slugify


@pytest.fixture
def test_config(tmp_path: Path) -> Config:
    """Test configuration with temporary paths and no pauses."""
    return Config(
        openai_api_key="test-key-12345",
        db_path=tmp_path / "test.db",
        config_dir=tmp_path / "config",
        fetch_batch_delay_sec=0.0,
        process_batch_delay_sec=0.0,
        log_format="console",
    )


@pytest.fixture
def test_db(tmp_path: Path) -> Generator[DatabaseConnection, None, None]:
    """SQLite database in a temp dir with schema initialized."""
    db = init_database(tmp_path / "test.db")
    yield db
    db.close()


@pytest.fixture
def repository(test_db: DatabaseConnection) -> ArticleRepository:
    return ArticleRepository(test_db)


@pytest.fixture
def sample_item() -> RawFeedItem:
    """Sample feed item for testing."""
    return RawFeedItem(
        title="Ethereum completes Dencun upgrade on mainnet",
        content="The Dencun upgrade introduces proto-danksharding, cutting layer 2 fees.",
        source_url="https://www.coindesk.com/tech/2024/03/13/dencun",
        source_name="CoinDesk",
        published_at=datetime(2024, 3, 13, 14, 0, tzinfo=timezone.utc),
        author="Test Author",
    )


@pytest.fixture
def sample_items() -> List[RawFeedItem]:
    """Multiple feed items with distinct URLs and titles."""
    base_time = datetime.now(timezone.utc)
    return [
        RawFeedItem(
            title=f"Crypto market update {i}",
            content=f"Bitcoin and Ether moved on day {i} as traders weighed ETF flows.",
            source_url=f"https://decrypt.co/news/market-update-{i}",
            source_name="Decrypt",
            published_at=base_time - timedelta(hours=i),
        )
        for i in range(5)
    ]


@pytest.fixture
def make_article() -> Callable[..., PersistedArticle]:
    """Build a persisted article row for seeding the store."""

    def _make(title: str, source_url: str, **overrides: Any) -> PersistedArticle:
        fields: Dict[str, Any] = {
            "title": title,
            "slug": slugify(title),
            "content": f"Body of {title}",
            "summary": "Main point. Second point",
            "tags": ["bitcoin"],
            "categories": ["Bitcoin"],
            "relevance_score": 7,
            "relevance_explanation": "Relevant",
            "source_url": source_url,
            "source_name": "CoinDesk",
            "url_hash": hash_url(source_url),
            "published_at": datetime.now(timezone.utc),
        }
        fields.update(overrides)
        return PersistedArticle(**fields)

    return _make


@pytest.fixture
def sample_feed() -> FeedSource:
    return FeedSource(name="Test Feed", url="https://example.com/feed.xml", category="General")


@pytest.fixture
def sample_rss_feed() -> str:
    """Sample RSS feed XML."""
    return """<?xml version="1.0" encoding="UTF-8"?>
<rss version="2.0" xmlns:media="http://search.yahoo.com/mrss/">
  <channel>
    <title>Test RSS Feed</title>
    <link>https://example.com</link>
    <description>Test feed</description>
    <item>
      <title>Bitcoin ETF sees record inflows</title>
      <link>https://example.com/article-1</link>
      <description><![CDATA[<p>Spot bitcoin ETFs took in <b>$1B</b> on Monday.</p>]]></description>
      <pubDate>Mon, 04 Mar 2024 10:00:00 +0000</pubDate>
      <media:content url="https://example.com/images/etf.jpg" medium="image" />
    </item>
    <item>
      <title>Solana validators ship new client</title>
      <link>https://example.com/article-2</link>
      <description>A second validator client went live on mainnet.</description>
      <pubDate>Mon, 04 Mar 2024 11:00:00 +0000</pubDate>
    </item>
  </channel>
</rss>"""


def _default_llm_reply(request_type: str) -> Dict[str, Any]:
    """Content a well-behaved provider returns for each enrichment request."""
    replies: Dict[str, Dict[str, Any]] = {
        "summarize": {
            "main_points": ["Upgrade is live", "Layer 2 fees drop"],
            "implications": "Cheaper rollups",
            "relevance_score": 8,
        },
        "categorize": {"categories": ["Ethereum", "Layer2"]},
        "extract_keywords": {"keywords": ["ethereum", "dencun", "proto-danksharding"]},
        "assess_relevance": {"score": 8, "explanation": "Major network upgrade"},
        "duplicate_detection": {"similarity": "DIFFERENT", "explanation": "Different stories"},
        "translation": {"title": "Titulo", "content": "Contenido"},
    }
    return replies[request_type]


@pytest.fixture
def llm_replies() -> Callable[[str], Dict[str, Any]]:
    return _default_llm_reply


@pytest.fixture
def mock_llm_client() -> Mock:
    """Mock LLM client answering every request type with valid content."""
    mock = Mock()

    async def _complete(**kwargs: Any) -> Dict[str, Any]:
        return {
            "content": _default_llm_reply(kwargs["request_type"]),
            "usage": {"input_tokens": 10, "output_tokens": 5, "total_tokens": 15, "cost": 0.0},
        }

    mock.create_completion = AsyncMock(side_effect=_complete)
    mock.moderate = AsyncMock(
        return_value={"flagged": False, "categories": {}, "category_scores": {}}
    )
    return mock


@pytest.fixture
def rss_transport() -> Callable[..., httpx.MockTransport]:
    """Build an httpx mock transport serving feeds by URL.

    Unknown URLs get a 404. Pass `bodies` to map URLs to feed XML and
    `errors` to make URLs raise a connection error.
    """

    def _build(
        bodies: Dict[str, str] = None,
        errors: List[str] = None,
    ) -> httpx.MockTransport:
        bodies = bodies or {}
        errors = errors or []

        def handler(request: httpx.Request) -> httpx.Response:
            url = str(request.url)
            if url in errors:
                raise httpx.ConnectError("connection refused", request=request)
            if url in bodies:
                return httpx.Response(200, text=bodies[url])
            return httpx.Response(404, text="not found")

        return httpx.MockTransport(handler)

    return _build


async def no_sleep(seconds: float) -> None:
    """Async sleep replacement that returns immediately."""
    return None


@pytest.fixture
def fake_sleep() -> AsyncMock:
    """Recording async sleep."""
    return AsyncMock(side_effect=no_sleep)


# Pytest configuration
def pytest_configure(config):
    """Configure custom pytest markers."""
    config.addinivalue_line("markers", "unit: Unit tests")
    config.addinivalue_line("markers", "integration: Integration tests")
