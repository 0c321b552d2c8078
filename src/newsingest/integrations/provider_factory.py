"""LLM client protocol and construction."""

from typing import Any, Dict, List, Optional, Protocol

from pydantic import BaseModel

from newsingest.core.config import Config
from newsingest.database.connection import DatabaseConnection
from newsingest.utils.exceptions import ConfigurationError
from newsingest.utils.logging import get_logger
from newsingest.utils.rate_limit import TokenBucket

logger = get_logger(__name__)


class LLMClient(Protocol):
    """Protocol for LLM clients - ensures consistent interface."""

    async def create_completion(
        self,
        messages: List[Dict[str, str]],
        module: str,
        request_type: str,
        model: Optional[str] = None,
        response_format: Optional[type[BaseModel]] = None,
        temperature: float = 0.0,
        max_tokens: Optional[int] = None,
    ) -> Dict[str, Any]: ...

    async def moderate(self, text: str, module: str = "moderation") -> Dict[str, Any]: ...


def create_rate_limiter(config: Config) -> TokenBucket:
    """Build the process-wide LLM request budget from configuration."""
    return TokenBucket(rate=config.llm_rate_per_sec, burst=config.llm_burst)


def create_llm_client(
    config: Config,
    db: DatabaseConnection,
    run_id: str,
    rate_limiter: Optional[TokenBucket] = None,
) -> LLMClient:
    """Create the LLM client used by every AI call site of a run.

    Args:
        config: Application configuration.
        db: Database connection for cost tracking.
        run_id: Ingestion run ID.
        rate_limiter: Shared token bucket. Built from config when omitted.

    Returns:
        LLM client instance.

    Raises:
        ConfigurationError: If no OpenAI API key is configured.
    """
    if not config.is_openai_configured:
        raise ConfigurationError("OPENAI_API_KEY is not configured")

    from newsingest.integrations.openai_client import OpenAIClient

    client = OpenAIClient(
        api_key=config.openai_api_key or "",
        db=db,
        run_id=run_id,
        rate_limiter=rate_limiter or create_rate_limiter(config),
        default_model=config.model_small,
        base_url=config.openai_base_url,
        max_retries=config.llm_max_retries,
    )

    logger.info(
        "llm_client_created",
        provider="openai",
        run_id=run_id,
        rate_per_sec=config.llm_rate_per_sec,
        burst=config.llm_burst,
    )

    return client
