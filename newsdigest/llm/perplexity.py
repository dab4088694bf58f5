"""
Perplexity chat-completions client - the summarization collaborator.

Given a category prompt, returns the generated digest text plus the citation
URLs Perplexity attaches to the answer. Transient failures (timeouts,
connection errors, 429 and 5xx) are retried with exponential backoff;
anything else surfaces immediately as a ``SummarizationError`` subclass.
"""

from __future__ import annotations

import os
from typing import Any, Protocol

import httpx
from tenacity import retry, retry_if_exception_type, stop_after_attempt, wait_exponential

from newsdigest.config import LLM_MAX_RETRIES, LLM_REQUEST_TIMEOUT_SECONDS
from newsdigest.digest.models import SummaryResult
from newsdigest.infrastructure.settings import (
    PERPLEXITY_API_URL,
    PERPLEXITY_MAX_TOKENS,
    PERPLEXITY_MODEL,
    PERPLEXITY_TEMPERATURE,
)
from newsdigest.observability.logging import get_logger
from newsdigest.observability.telemetry import counter

logger = get_logger(__name__)


class SummarizationError(Exception):
    """Base error for summarization collaborator failures."""


class SummarizerConfigurationError(SummarizationError):
    """API key missing or client misconfigured."""


class SummarizerTimeoutError(SummarizationError):
    """Request timed out (retryable)."""


class SummarizerUnavailableError(SummarizationError):
    """Connection failure, rate limit or 5xx (retryable)."""


class SummarizerResponseError(SummarizationError):
    """Non-success response that is not worth retrying."""

    def __init__(self, message: str, status_code: int | None = None):
        super().__init__(message)
        self.status_code = status_code


class MalformedSummaryError(SummarizationError):
    """Response body does not have the expected shape."""


class SummarizationClient(Protocol):
    """Anything that can turn a prompt into digest text plus citations."""

    async def summarize(self, prompt: str, system_prompt: str | None = None) -> SummaryResult: ...


def parse_completion(payload: Any) -> SummaryResult:
    """
    Extract ``{text, citations}`` from a chat-completions response body.

    Citations come from the top-level ``citations`` list (plain URLs) or, on
    newer responses, ``search_results`` entries with a ``url`` key.

    Raises:
        MalformedSummaryError: missing choices/message/content
    """
    try:
        text = payload["choices"][0]["message"]["content"]
    except (KeyError, IndexError, TypeError) as e:
        raise MalformedSummaryError("Completion response has no message content") from e

    if not isinstance(text, str) or not text.strip():
        raise MalformedSummaryError("Completion response content is empty")

    citations: list[str] = []
    raw_citations = payload.get("citations") or []
    if not raw_citations:
        raw_citations = [
            result.get("url")
            for result in payload.get("search_results") or []
            if isinstance(result, dict)
        ]
    for citation in raw_citations:
        if isinstance(citation, str) and citation:
            citations.append(citation)

    return SummaryResult(text=text, citations=citations)


class PerplexityClient:
    """
    Async client for the Perplexity chat-completions endpoint.

    The API key is read lazily so the app can start (and serve reads)
    without one; generation then fails with SummarizerConfigurationError.
    """

    def __init__(
        self,
        api_key: str | None = None,
        api_url: str = PERPLEXITY_API_URL,
        model: str = PERPLEXITY_MODEL,
        timeout_seconds: float = LLM_REQUEST_TIMEOUT_SECONDS,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self._api_key = api_key
        self.api_url = api_url
        self.model = model
        self.timeout_seconds = timeout_seconds
        self._transport = transport

    @property
    def api_key(self) -> str:
        key = self._api_key or os.getenv("PERPLEXITY_API_KEY")
        if not key:
            raise SummarizerConfigurationError("PERPLEXITY_API_KEY not set")
        return key

    async def summarize(self, prompt: str, system_prompt: str | None = None) -> SummaryResult:
        messages = []
        if system_prompt:
            messages.append({"role": "system", "content": system_prompt})
        messages.append({"role": "user", "content": prompt})

        body = {
            "model": self.model,
            "messages": messages,
            "temperature": PERPLEXITY_TEMPERATURE,
            "max_tokens": PERPLEXITY_MAX_TOKENS,
        }
        payload = await self._post(body)
        return parse_completion(payload)

    @retry(
        stop=stop_after_attempt(LLM_MAX_RETRIES),
        wait=wait_exponential(multiplier=1, min=1, max=10),
        retry=retry_if_exception_type((SummarizerTimeoutError, SummarizerUnavailableError)),
        reraise=True,
    )
    async def _post(self, body: dict[str, Any]) -> Any:
        headers = {
            "Authorization": f"Bearer {self.api_key}",
            "Content-Type": "application/json",
        }
        async with httpx.AsyncClient(
            timeout=self.timeout_seconds, transport=self._transport
        ) as client:
            try:
                response = await client.post(self.api_url, json=body, headers=headers)
            except httpx.TimeoutException as e:
                counter("llm.timeout")
                logger.warning("Perplexity request timed out after %ss", self.timeout_seconds)
                raise SummarizerTimeoutError(f"Perplexity request timed out: {e}") from e
            except httpx.RequestError as e:
                counter("llm.connection_error")
                logger.warning("Perplexity request failed, will retry: %s", e)
                raise SummarizerUnavailableError(f"Perplexity request failed: {e}") from e

        if response.status_code == 429 or response.status_code >= 500:
            counter("llm.unavailable")
            logger.warning("Perplexity returned %s, will retry", response.status_code)
            raise SummarizerUnavailableError(f"Perplexity returned {response.status_code}")

        if response.status_code != 200:
            counter("llm.rejected")
            logger.error("Perplexity API error %s: %s", response.status_code, response.text[:500])
            raise SummarizerResponseError(
                f"Perplexity returned {response.status_code}", status_code=response.status_code
            )

        try:
            return response.json()
        except ValueError as e:
            raise MalformedSummaryError("Perplexity response is not JSON") from e


# Global instance
_client: PerplexityClient | None = None


def get_summarization_client() -> PerplexityClient:
    """Get global summarization client instance"""
    global _client
    if _client is None:
        _client = PerplexityClient()
    return _client
