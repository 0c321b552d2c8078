"""Custom exceptions for newsingest."""


class NewsIngestError(Exception):
    """Base exception for newsingest."""


class ConfigurationError(NewsIngestError):
    """Configuration error."""


class PipelineError(NewsIngestError):
    """Pipeline execution error."""


class CollectorError(PipelineError):
    """Feed collection error."""


class DatabaseError(NewsIngestError):
    """Database operation error."""


class APIError(NewsIngestError):
    """External API error."""


class AIServiceError(APIError):
    """AI service error."""


class SchemaValidationError(AIServiceError):
    """Model output did not match the requested schema."""


class RateLimitError(AIServiceError):
    """Rate limit exceeded error."""


class ModerationError(APIError):
    """Content moderation error."""
