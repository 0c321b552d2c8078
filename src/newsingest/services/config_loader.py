"""Feed list loading from ``feeds.yaml``."""

from pathlib import Path
from typing import Any, List

import yaml
from pydantic import ValidationError

from newsingest.core.config import FeedSource
from newsingest.utils.exceptions import ConfigurationError

FEEDS_FILE = "feeds.yaml"


def _read_feed_entries(feeds_path: Path) -> List[Any]:
    if not feeds_path.exists():
        raise ConfigurationError(f"Feed configuration not found: {feeds_path}")

    try:
        with open(feeds_path, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}
    except yaml.YAMLError as e:
        raise ConfigurationError(f"Invalid YAML in {feeds_path}: {e}") from e

    entries = data.get("feeds", []) if isinstance(data, dict) else None
    if not isinstance(entries, list):
        raise ConfigurationError(f"{feeds_path}: 'feeds' must be a list")
    return entries


def load_feeds_config(config_dir: Path = Path("config")) -> List[FeedSource]:
    """Load feed sources from ``<config_dir>/feeds.yaml``.

    Expected layout::

        feeds:
          - name: CoinDesk
            url: https://www.coindesk.com/arc/outboundfeeds/rss/
            category: general
            priority: high

    Args:
        config_dir: Configuration directory path

    Returns:
        Feed sources in file order

    Raises:
        ConfigurationError: If the file is missing, unreadable, or a feed is invalid
    """
    feeds = []
    for entry in _read_feed_entries(config_dir / FEEDS_FILE):
        try:
            feeds.append(FeedSource.model_validate(entry))
        except ValidationError as e:
            name = entry.get("name", "unknown") if isinstance(entry, dict) else "unknown"
            raise ConfigurationError(f"Invalid feed configuration: {name}: {e}") from e

    return feeds
