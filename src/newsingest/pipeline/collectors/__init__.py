"""Feed collection."""

from newsingest.pipeline.collectors.base import BaseCollector
from newsingest.pipeline.collectors.fetcher import FeedFetcher
from newsingest.pipeline.collectors.registry import DEFAULT_FEEDS, load_feed_registry
from newsingest.pipeline.collectors.rss import RSSCollector

__all__ = [
    "BaseCollector",
    "RSSCollector",
    "FeedFetcher",
    "DEFAULT_FEEDS",
    "load_feed_registry",
]
