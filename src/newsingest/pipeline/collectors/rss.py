"""RSS feed collector."""

from typing import Any, List, Optional

import feedparser
import httpx

from newsingest.core.article import RawFeedItem
from newsingest.core.config import FeedSource
from newsingest.pipeline.collectors.base import BaseCollector
from newsingest.utils.date_utils import now_utc, parse_date
from newsingest.utils.exceptions import CollectorError
from newsingest.utils.logging import get_logger
from newsingest.utils.text_utils import clean_html_content

logger = get_logger(__name__)

DEFAULT_USER_AGENT = "newsingest/1.0 (news aggregator)"


class RSSCollector(BaseCollector):
    """Collector for RSS feeds."""

    def __init__(
        self,
        feed: FeedSource,
        http_client: Optional[httpx.AsyncClient] = None,
        timeout: float = 15.0,
        user_agent: str = DEFAULT_USER_AGENT,
        max_items: int = 10,
    ):
        """Initialize RSS collector.

        Args:
            feed: Feed source.
            http_client: Shared HTTP client. A short-lived one is opened per
                fetch when omitted.
            timeout: HTTP request timeout in seconds.
            user_agent: User-Agent header sent to the publisher.
            max_items: Number of leading feed entries considered.
        """
        super().__init__(feed)
        self.http_client = http_client
        self.timeout = timeout
        self.user_agent = user_agent
        self.max_items = max_items

    async def _fetch_items(self) -> List[RawFeedItem]:
        logger.debug("collecting_rss", feed_name=self.feed.name, feed_url=str(self.feed.url))

        feed_content = await self._fetch_feed()

        try:
            parsed = feedparser.parse(feed_content)
            if parsed.bozo:
                logger.warning(
                    "rss_parse_warning",
                    feed_name=self.feed.name,
                    exception=str(parsed.get("bozo_exception")),
                )

            items = self._extract_items(parsed)
        except Exception as e:
            raise CollectorError(f"Could not parse feed {self.feed.name}: {e}") from e

        logger.info(
            "rss_collection_complete",
            feed_name=self.feed.name,
            items_collected=len(items),
        )
        return items

    async def _fetch_feed(self) -> bytes:
        """Fetch RSS feed content via HTTP.

        Returns:
            Raw feed body as bytes. feedparser treats a str as a URL or
            path, so the body is never decoded here.

        Raises:
            CollectorError: If the HTTP request fails.
        """
        url = str(self.feed.url)
        headers = {"User-Agent": self.user_agent}

        try:
            if self.http_client is not None:
                response = await self.http_client.get(url, headers=headers, timeout=self.timeout)
            else:
                async with httpx.AsyncClient(timeout=self.timeout, follow_redirects=True) as client:
                    response = await client.get(url, headers=headers)
            response.raise_for_status()
            return response.content

        except httpx.HTTPError as e:
            raise CollectorError(f"HTTP request failed for {url}: {e}") from e

    def _extract_items(self, parsed: Any) -> List[RawFeedItem]:
        """Build feed items from the leading entries of a parsed feed.

        Entries without a title, description or link are skipped.
        """
        items = []

        for entry in parsed.entries[: self.max_items]:
            link = (entry.get("link") or "").strip()
            title = clean_html_content(entry.get("title", ""))
            content = clean_html_content(entry.get("summary") or entry.get("description") or "")

            if not (link and title and content):
                logger.debug("rss_entry_incomplete", feed_name=self.feed.name, link=link)
                continue

            published_at = parse_date(entry.get("published") or entry.get("updated"))

            try:
                items.append(
                    RawFeedItem(
                        title=title,
                        content=content,
                        source_url=link,
                        source_name=self.feed.name,
                        published_at=published_at or now_utc(),
                        author=entry.get("author") or None,
                        image_url=_entry_image(entry),
                    )
                )
            except ValueError as e:
                logger.warning("rss_entry_parse_error", feed_name=self.feed.name, error=str(e))

        return items


def _entry_image(entry: Any) -> Optional[str]:
    """First image URL advertised by an entry's media tags or enclosures."""
    for key in ("media_content", "media_thumbnail"):
        for media in entry.get(key) or []:
            if media.get("url"):
                return media["url"]

    for enclosure in entry.get("enclosures") or []:
        if str(enclosure.get("type", "")).startswith("image/") and enclosure.get("href"):
            return enclosure["href"]

    return None
