"""OpenAI API client with cost tracking, rate limiting and retries."""

import json
from datetime import datetime
from typing import Any, Dict, List, Optional

import openai
from openai import AsyncOpenAI
from pydantic import BaseModel, ValidationError
from tenacity import (
    AsyncRetrying,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)
from tenacity.wait import wait_base

from newsingest.database.connection import DatabaseConnection
from newsingest.utils.date_utils import now_utc
from newsingest.utils.exceptions import AIServiceError, RateLimitError, SchemaValidationError
from newsingest.utils.logging import get_logger
from newsingest.utils.rate_limit import TokenBucket

logger = get_logger(__name__)


# OpenAI pricing in USD per token
# https://openai.com/api/pricing/
PRICING = {
    "gpt-4o-mini": {
        "input": 0.150 / 1_000_000,
        "output": 0.600 / 1_000_000,
    },
    "gpt-4o": {
        "input": 2.50 / 1_000_000,
        "output": 10.00 / 1_000_000,
    },
    "gpt-4": {
        "input": 30.00 / 1_000_000,
        "output": 60.00 / 1_000_000,
    },
    "gpt-3.5-turbo": {
        "input": 0.50 / 1_000_000,
        "output": 1.50 / 1_000_000,
    },
}

MODERATION_MODEL = "omni-moderation-latest"

# Provider errors worth another attempt
TRANSIENT_ERRORS = (
    openai.RateLimitError,
    openai.APIConnectionError,
    openai.APITimeoutError,
)


class OpenAIClient:
    """Wrapper for the OpenAI API with cost tracking and JSON outputs.

    Every request first takes a token from the shared rate limiter, so all
    callers holding this client draw from one request budget.
    """

    def __init__(
        self,
        api_key: str,
        db: DatabaseConnection,
        run_id: str,
        rate_limiter: TokenBucket,
        default_model: str = "gpt-4o-mini",
        base_url: Optional[str] = None,
        max_retries: int = 3,
        client: Optional[AsyncOpenAI] = None,
        retry_wait: Optional[wait_base] = None,
    ):
        """Initialize OpenAI client.

        Args:
            api_key: OpenAI API key.
            db: Database connection for cost tracking.
            run_id: Current ingestion run ID.
            rate_limiter: Token bucket shared by every LLM call site.
            default_model: Default model to use.
            base_url: Alternative API endpoint.
            max_retries: Attempts for transient provider errors.
            client: Preconfigured AsyncOpenAI instance.
            retry_wait: Wait strategy between attempts.
        """
        # Retries are handled here, not by the SDK
        self.client = client or AsyncOpenAI(api_key=api_key, base_url=base_url, max_retries=0)
        self.db = db
        self.run_id = run_id
        self.rate_limiter = rate_limiter
        self.default_model = default_model
        self.max_retries = max_retries
        self.retry_wait = retry_wait or wait_exponential(multiplier=1, min=1, max=10)

    def _retrying(self) -> AsyncRetrying:
        return AsyncRetrying(
            stop=stop_after_attempt(self.max_retries),
            wait=self.retry_wait,
            retry=retry_if_exception_type(TRANSIENT_ERRORS),
            reraise=True,
        )

    async def _call(self, method: Any, **params: Any) -> Any:
        """Invoke an SDK method under the rate limiter, retrying transient errors."""
        async for attempt in self._retrying():
            with attempt:
                await self.rate_limiter.acquire()
                return await method(**params)

    async def create_completion(
        self,
        messages: List[Dict[str, str]],
        module: str,
        request_type: str,
        model: Optional[str] = None,
        response_format: Optional[type[BaseModel]] = None,
        temperature: float = 0.0,
        max_tokens: Optional[int] = None,
    ) -> Dict[str, Any]:
        """Create a chat completion with cost tracking.

        With `response_format` the request runs in JSON mode and the reply is
        validated against the given model.

        Args:
            messages: List of message dicts with 'role' and 'content'.
            module: Module name for tracking (e.g., "enricher", "dedup").
            request_type: Type of request (e.g., "summarize", "relevance").
            model: Model to use (defaults to default_model).
            response_format: Pydantic model the JSON reply must satisfy.
            temperature: Sampling temperature (0.0-2.0).
            max_tokens: Maximum tokens in response.

        Returns:
            Dict with 'content' and 'usage' keys.

        Raises:
            SchemaValidationError: If the reply does not match the schema.
            RateLimitError: If the provider keeps rejecting for rate limits.
            AIServiceError: If the API call fails.
        """
        model = model or self.default_model
        started_at = now_utc()

        logger.debug(
            "openai_request",
            model=model,
            module=module,
            request_type=request_type,
        )

        params: Dict[str, Any] = {
            "model": model,
            "messages": messages,
            "temperature": temperature,
        }
        if max_tokens:
            params["max_tokens"] = max_tokens
        if response_format:
            params["response_format"] = {"type": "json_object"}

        input_tokens = output_tokens = total_tokens = 0

        try:
            response = await self._call(self.client.chat.completions.create, **params)

            # Tokens are billed even when the reply fails validation
            usage = response.usage
            if not usage:
                raise AIServiceError("No usage information in response")

            input_tokens = usage.prompt_tokens
            output_tokens = usage.completion_tokens
            total_tokens = usage.total_tokens

            content_text = response.choices[0].message.content
            if response_format:
                content_dict = self._parse_structured(content_text, response_format)
            else:
                content_dict = {"text": content_text}

        except Exception as e:
            logger.error(
                "openai_request_failed",
                model=model,
                module=module,
                request_type=request_type,
                error=str(e),
            )
            self._track_api_call(
                module=module,
                model=model,
                request_type=request_type,
                input_tokens=input_tokens,
                output_tokens=output_tokens,
                total_tokens=total_tokens,
                cost=self._calculate_cost(model, input_tokens, output_tokens),
                success=False,
                error_message=str(e),
                started_at=started_at,
            )
            if isinstance(e, AIServiceError):
                raise
            if isinstance(e, openai.RateLimitError):
                raise RateLimitError(f"OpenAI rate limit exceeded: {e}") from e
            raise AIServiceError(f"OpenAI API call failed: {e}") from e

        cost = self._calculate_cost(model, input_tokens, output_tokens)

        self._track_api_call(
            module=module,
            model=model,
            request_type=request_type,
            input_tokens=input_tokens,
            output_tokens=output_tokens,
            total_tokens=total_tokens,
            cost=cost,
            success=True,
            started_at=started_at,
        )

        logger.debug(
            "openai_response_success",
            model=model,
            request_type=request_type,
            input_tokens=input_tokens,
            output_tokens=output_tokens,
            cost=cost,
        )

        return {
            "content": content_dict,
            "usage": {
                "input_tokens": input_tokens,
                "output_tokens": output_tokens,
                "total_tokens": total_tokens,
                "cost": cost,
            },
        }

    def _parse_structured(
        self,
        content_text: Optional[str],
        response_format: type[BaseModel],
    ) -> Dict[str, Any]:
        """Decode a JSON-mode reply and validate it against the schema."""
        if not content_text:
            raise SchemaValidationError("Empty response from OpenAI API")

        try:
            payload = json.loads(content_text)
            return response_format.model_validate(payload).model_dump()
        except (json.JSONDecodeError, ValidationError) as e:
            raise SchemaValidationError(
                f"Response does not match {response_format.__name__}: {e}"
            ) from e

    async def moderate(self, text: str, module: str = "moderation") -> Dict[str, Any]:
        """Run text through the moderation endpoint.

        Args:
            text: Content to classify.
            module: Module name for tracking.

        Returns:
            Dict with 'flagged', 'categories' and 'category_scores'.

        Raises:
            AIServiceError: If the moderation call fails.
        """
        started_at = now_utc()

        try:
            response = await self._call(
                self.client.moderations.create,
                model=MODERATION_MODEL,
                input=text,
            )
            result = response.results[0]
        except Exception as e:
            logger.error("openai_moderation_failed", error=str(e))
            self._track_api_call(
                module=module,
                model=MODERATION_MODEL,
                request_type="moderation",
                input_tokens=0,
                output_tokens=0,
                total_tokens=0,
                cost=0.0,
                success=False,
                error_message=str(e),
                started_at=started_at,
            )
            raise AIServiceError(f"OpenAI moderation call failed: {e}") from e

        self._track_api_call(
            module=module,
            model=MODERATION_MODEL,
            request_type="moderation",
            input_tokens=0,
            output_tokens=0,
            total_tokens=0,
            cost=0.0,
            success=True,
            started_at=started_at,
        )

        return {
            "flagged": bool(result.flagged),
            "categories": result.categories.model_dump(by_alias=True),
            "category_scores": result.category_scores.model_dump(by_alias=True),
        }

    def _calculate_cost(self, model: str, input_tokens: int, output_tokens: int) -> float:
        """Calculate cost of API call.

        Args:
            model: Model name.
            input_tokens: Number of input tokens.
            output_tokens: Number of output tokens.

        Returns:
            Cost in USD.
        """
        if model not in PRICING:
            logger.warning("unknown_model_pricing", model=model)
            model = "gpt-4o-mini"

        pricing = PRICING[model]
        cost = (input_tokens * pricing["input"]) + (output_tokens * pricing["output"])

        return round(cost, 6)

    def _track_api_call(
        self,
        module: str,
        model: str,
        request_type: str,
        input_tokens: int,
        output_tokens: int,
        total_tokens: int,
        cost: float,
        success: bool,
        started_at: datetime,
        error_message: Optional[str] = None,
    ) -> None:
        """Record an API call in the api_calls table.

        Tracking failures are logged and never raised.
        """
        try:
            self.db.execute(
                """
                INSERT INTO api_calls (
                    run_id, module, model, request_type,
                    input_tokens, output_tokens, total_tokens, cost,
                    success, error_message, created_at
                ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
                """,
                (
                    self.run_id,
                    module,
                    model,
                    request_type,
                    input_tokens,
                    output_tokens,
                    total_tokens,
                    cost,
                    1 if success else 0,
                    error_message,
                    started_at.isoformat(),
                ),
            )
            self.db.commit()

        except Exception as e:
            logger.error("failed_to_track_api_call", error=str(e))
