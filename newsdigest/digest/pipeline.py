"""
Digest generation pipeline.

Orchestrates between:
- the category table (fixed prompt per category)
- the summarization client (Perplexity)
- DigestCatalog (persistence)

``generate_one`` either persists exactly one digest or raises
``GenerationError`` having persisted nothing. ``generate_all`` runs
``generate_one`` per category and never lets one category's failure stop the
rest; the caller gets a per-category outcome map.
"""

from __future__ import annotations

import asyncio
from collections.abc import Iterable

from newsdigest.config import CATEGORIES, LLM_TIMEOUT_SECONDS
from newsdigest.digest.catalog import DigestCatalog, get_digest_catalog
from newsdigest.digest.models import Digest
from newsdigest.digest.prompts import SYSTEM_PROMPT, get_prompt
from newsdigest.errors import GenerationError, InvalidInputError, StoreError
from newsdigest.llm.perplexity import (
    SummarizationClient,
    SummarizationError,
    get_summarization_client,
)
from newsdigest.observability.logging import get_logger
from newsdigest.observability.telemetry import counter, log_event, time_block
from newsdigest.utils.validators import validate_category

logger = get_logger(__name__)

GenerationOutcome = Digest | GenerationError


class DigestGenerationPipeline:
    """Generates and persists digests for one or many categories."""

    def __init__(
        self,
        client: SummarizationClient | None = None,
        catalog: DigestCatalog | None = None,
        timeout_seconds: float = LLM_TIMEOUT_SECONDS,
    ):
        self.client = client or get_summarization_client()
        self.catalog = catalog or get_digest_catalog()
        self.timeout_seconds = timeout_seconds

    async def generate_one(self, category: str) -> Digest:
        """
        Generate and persist one digest for ``category``.

        Raises:
            InvalidInputError: unknown category
            GenerationError: collaborator timeout, error response or malformed payload
            StoreError: the digest could not be persisted
        """
        validate_category(category)
        prompt = get_prompt(category)

        try:
            with time_block("digest.generate.latency"):
                summary = await asyncio.wait_for(
                    self.client.summarize(prompt, system_prompt=SYSTEM_PROMPT),
                    timeout=self.timeout_seconds,
                )
        except TimeoutError:
            counter("digest.generate.timeout")
            logger.warning(
                "Digest generation for %s timed out after %ss", category, self.timeout_seconds
            )
            raise GenerationError(category, "timed out") from None
        except SummarizationError as e:
            counter("digest.generate.failed")
            logger.error("Digest generation for %s failed: %s", category, e)
            raise GenerationError(category, type(e).__name__) from e
        except Exception as e:
            # The collaborator is opaque; any failure of it is a generation failure
            counter("digest.generate.failed")
            logger.exception("Unexpected summarization failure for %s", category)
            raise GenerationError(category, "unexpected error") from e

        digest = await self.catalog.append(category, summary.text, summary.citations)

        counter("digest.generate.succeeded")
        log_event(
            "digest.generated",
            category=category,
            digest_id=digest.id,
            citations=len(digest.citations),
        )
        return digest

    async def generate_all(
        self, categories: Iterable[str] = CATEGORIES
    ) -> dict[str, GenerationOutcome]:
        """
        Attempt every category independently, in order.

        Store failures for a category are recorded as that category's
        GenerationError so the batch keeps going; the store error stays
        chained as ``__cause__`` and is logged.
        """
        outcomes: dict[str, GenerationOutcome] = {}

        for category in categories:
            try:
                outcomes[category] = await self.generate_one(category)
            except GenerationError as e:
                outcomes[category] = e
            except InvalidInputError as e:
                logger.warning("Skipping unknown category %r", category)
                failure = GenerationError(category, "invalid category")
                failure.__cause__ = e
                outcomes[category] = failure
            except StoreError as e:
                logger.error("Could not persist digest for %s: %s", category, e)
                failure = GenerationError(category, "store failure")
                failure.__cause__ = e
                outcomes[category] = failure

        failed = sorted(c for c, outcome in outcomes.items() if isinstance(outcome, GenerationError))
        log_event(
            "digest.batch_complete",
            attempted=len(outcomes),
            succeeded=len(outcomes) - len(failed),
            failed=failed,
        )
        return outcomes


# Global instance
_pipeline: DigestGenerationPipeline | None = None


def get_generation_pipeline() -> DigestGenerationPipeline:
    """Get global generation pipeline instance"""
    global _pipeline
    if _pipeline is None:
        _pipeline = DigestGenerationPipeline()
    return _pipeline
