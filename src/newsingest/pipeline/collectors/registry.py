"""Static registry of crypto news feeds."""

from pathlib import Path
from typing import Optional, Tuple

from newsingest.core.config import FeedSource
from newsingest.core.enums import FeedPriority
from newsingest.services.config_loader import load_feeds_config
from newsingest.utils.logging import get_logger

logger = get_logger(__name__)

DEFAULT_FEEDS: Tuple[FeedSource, ...] = (
    FeedSource(
        name="CoinDesk",
        url="https://www.coindesk.com/arc/outboundfeeds/rss/",
        category="General",
        priority=FeedPriority.HIGH,
    ),
    FeedSource(
        name="Cointelegraph",
        url="https://cointelegraph.com/rss",
        category="General",
        priority=FeedPriority.HIGH,
    ),
    FeedSource(
        name="The Block",
        url="https://www.theblock.co/rss.xml",
        category="General",
        priority=FeedPriority.HIGH,
    ),
    FeedSource(
        name="Decrypt",
        url="https://decrypt.co/feed",
        category="General",
        priority=FeedPriority.MEDIUM,
    ),
    FeedSource(
        name="Bitcoin Magazine",
        url="https://bitcoinmagazine.com/.rss/full/",
        category="Bitcoin",
        priority=FeedPriority.MEDIUM,
    ),
    FeedSource(
        name="Ethereum Foundation Blog",
        url="https://blog.ethereum.org/feed.xml",
        category="Ethereum",
        priority=FeedPriority.HIGH,
    ),
    FeedSource(
        name="DeFi Pulse",
        url="https://defipulse.com/blog/feed/",
        category="DeFi",
        priority=FeedPriority.MEDIUM,
    ),
    FeedSource(
        name="NFT Now",
        url="https://nftnow.com/feed/",
        category="NFTs",
        priority=FeedPriority.LOW,
    ),
)


def load_feed_registry(config_dir: Optional[Path] = None) -> Tuple[FeedSource, ...]:
    """Load the feed registry.

    Feeds come from `<config_dir>/feeds.yaml` when that file exists,
    otherwise the built-in defaults are used.

    Args:
        config_dir: Configuration directory.

    Returns:
        Immutable tuple of feed sources.

    Raises:
        ConfigurationError: If feeds.yaml exists but is invalid.
    """
    if config_dir is not None and (config_dir / "feeds.yaml").exists():
        feeds = tuple(load_feeds_config(config_dir))
        logger.info("feed_registry_loaded", source=str(config_dir / "feeds.yaml"), feeds=len(feeds))
        return feeds

    logger.info("feed_registry_loaded", source="defaults", feeds=len(DEFAULT_FEEDS))
    return DEFAULT_FEEDS
