"""Business logic services."""

from newsingest.services.config_loader import load_feeds_config
from newsingest.services.metrics_tracker import MetricsTracker
from newsingest.services.moderation import (
    ContentModerator,
    ModerationEntry,
    ModerationOutcome,
    ModerationQueue,
)

__all__ = [
    "load_feeds_config",
    "MetricsTracker",
    "ModerationQueue",
    "ModerationEntry",
    "ModerationOutcome",
    "ContentModerator",
]
