"""LLM gateway adapter for analysis requests."""

import asyncio
import time
from typing import Optional

import openai
import structlog
from openai import AsyncOpenAI

from src.config import get_settings
from src.services.errors import UpstreamError, UpstreamTimeoutError
from src.services.prompt_service import PromptPayload

logger = structlog.get_logger(__name__)

# Upstream bodies are logged truncated
MAX_LOGGED_BODY_CHARS = 2000


class LLMService:
    """Sends one chat-completion request per analysis.

    No retries and no caching: retry policy belongs to the caller, and
    every invocation reflects current model behavior.
    """

    def __init__(
        self,
        api_key: Optional[str] = None,
        base_url: Optional[str] = None,
        timeout_seconds: Optional[float] = None,
    ):
        self.settings = get_settings()
        self.api_key = api_key or self.settings.llm_api_key
        self.base_url = base_url or self.settings.llm_base_url
        self.timeout_seconds = timeout_seconds or self.settings.llm_timeout_seconds
        self._client: Optional[AsyncOpenAI] = None

    @property
    def client(self) -> AsyncOpenAI:
        """Lazy-load OpenAI-compatible client."""
        if self._client is None:
            self._client = AsyncOpenAI(
                api_key=self.api_key,
                base_url=self.base_url,
                timeout=self.timeout_seconds,
                max_retries=0,
            )
        return self._client

    async def invoke(self, payload: PromptPayload) -> str:
        """Run the completion and return the raw message text.

        Args:
            payload: Prompt built by AnalysisPromptBuilder

        Returns:
            Message content, or "" when the response carries none

        Raises:
            UpstreamError: Non-2xx response or connection failure
            UpstreamTimeoutError: No answer within timeout_seconds
        """
        start_time = time.perf_counter()
        logger.info(
            "llm_request_started",
            model=payload.model,
            max_tokens=payload.max_tokens,
        )

        try:
            async with asyncio.timeout(self.timeout_seconds):
                completion = await self.client.chat.completions.create(
                    model=payload.model,
                    messages=[m.model_dump() for m in payload.messages],
                    max_tokens=payload.max_tokens,
                    temperature=payload.temperature,
                )
        except (openai.APITimeoutError, TimeoutError) as e:
            logger.error(
                "llm_request_timeout",
                timeout_seconds=self.timeout_seconds,
                error_type=type(e).__name__,
            )
            raise UpstreamTimeoutError(self.timeout_seconds) from e
        except openai.APIStatusError as e:
            body = e.response.text if e.response is not None else str(e.body)
            logger.error(
                "llm_request_failed",
                status_code=e.status_code,
                body=body[:MAX_LOGGED_BODY_CHARS],
            )
            raise UpstreamError(e.status_code, body) from e
        except openai.APIConnectionError as e:
            logger.error(
                "llm_request_failed",
                status_code=None,
                error=str(e),
                error_type=type(e).__name__,
            )
            raise UpstreamError(None, str(e)) from e

        duration_ms = int((time.perf_counter() - start_time) * 1000)
        content = _message_content(completion)
        logger.info(
            "llm_request_complete",
            duration_ms=duration_ms,
            response_length=len(content),
        )
        return content


def _message_content(completion) -> str:
    """Extract choices[0].message.content, tolerating malformed responses."""
    choices = getattr(completion, "choices", None) or []
    if not choices:
        logger.warning("llm_response_without_choices")
        return ""
    message = getattr(choices[0], "message", None)
    content = getattr(message, "content", None)
    if not isinstance(content, str):
        logger.warning("llm_response_without_content")
        return ""
    return content
