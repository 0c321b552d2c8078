"""Utility modules for newsingest."""

from newsingest.utils.batching import chunked, run_in_batches
from newsingest.utils.date_utils import ensure_utc, hours_ago, now_utc, parse_date
from newsingest.utils.exceptions import (
    AIServiceError,
    APIError,
    CollectorError,
    ConfigurationError,
    DatabaseError,
    ModerationError,
    NewsIngestError,
    PipelineError,
    RateLimitError,
    SchemaValidationError,
)
from newsingest.utils.logging import get_logger, run_context, setup_logging
from newsingest.utils.rate_limit import TokenBucket
from newsingest.utils.text_utils import (
    clean_html_content,
    clean_whitespace,
    hash_url,
    normalize_url,
    slugify,
    truncate_text,
)

__all__ = [
    # Logging
    "setup_logging",
    "get_logger",
    "run_context",
    # Exceptions
    "NewsIngestError",
    "ConfigurationError",
    "PipelineError",
    "CollectorError",
    "DatabaseError",
    "APIError",
    "AIServiceError",
    "SchemaValidationError",
    "RateLimitError",
    "ModerationError",
    # Date utils
    "parse_date",
    "now_utc",
    "hours_ago",
    "ensure_utc",
    # Text utils
    "normalize_url",
    "hash_url",
    "clean_html_content",
    "clean_whitespace",
    "slugify",
    "truncate_text",
    # Concurrency
    "TokenBucket",
    "chunked",
    "run_in_batches",
]
