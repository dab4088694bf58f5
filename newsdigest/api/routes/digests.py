"""
Digest endpoints.

- POST /api/digest/generate     - generate one category now (trusted callers)
- GET  /api/digest/{category}   - latest digest for a category
- GET  /api/digests/{category}  - recent digests, newest first
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, Query

from newsdigest.api.middleware.auth import require_admin_auth
from newsdigest.api.models import DigestResponse, GenerateDigestRequest, GenerateDigestResponse
from newsdigest.config import DIGEST_LIST_LIMIT_DEFAULT, DIGEST_LIST_LIMIT_MAX
from newsdigest.digest.catalog import DigestCatalog, get_digest_catalog
from newsdigest.digest.pipeline import DigestGenerationPipeline, get_generation_pipeline
from newsdigest.errors import DigestNotFoundError, GenerationError, InvalidInputError, StoreError
from newsdigest.observability.logging import get_logger
from newsdigest.utils.error_sanitizer import sanitize_error_message

router = APIRouter(prefix="/api", tags=["digests"])
logger = get_logger(__name__)


def parse_limit(raw: str | None) -> int:
    """Lenient ``?limit=`` parsing: anything non-numeric or below 1 means the default."""
    try:
        limit = int(raw) if raw is not None else DIGEST_LIST_LIMIT_DEFAULT
    except ValueError:
        return DIGEST_LIST_LIMIT_DEFAULT
    if limit < 1:
        return DIGEST_LIST_LIMIT_DEFAULT
    return min(limit, DIGEST_LIST_LIMIT_MAX)


@router.post("/digest/generate", response_model=GenerateDigestResponse)
async def generate_digest(
    request: GenerateDigestRequest,
    _authenticated: bool = Depends(require_admin_auth),
    pipeline: DigestGenerationPipeline = Depends(get_generation_pipeline),
) -> GenerateDigestResponse:
    """Generate and store a digest for one category right now."""
    if not request.category:
        raise HTTPException(status_code=400, detail="Category is required")

    try:
        digest = await pipeline.generate_one(request.category)
    except InvalidInputError as e:
        raise HTTPException(status_code=400, detail=sanitize_error_message(str(e), 400)) from None
    except GenerationError as e:
        logger.error("Generate digest error: %s", e)
        raise HTTPException(status_code=500, detail="Failed to generate digest") from None
    except StoreError as e:
        logger.error("Generate digest store error: %s", e)
        raise HTTPException(status_code=500, detail="Internal server error") from None

    return GenerateDigestResponse(
        message="Digest generated successfully",
        digest=DigestResponse.from_digest(digest),
    )


@router.get("/digest/{category}", response_model=DigestResponse)
async def get_latest_digest(
    category: str,
    catalog: DigestCatalog = Depends(get_digest_catalog),
) -> DigestResponse:
    """Newest digest for a category."""
    try:
        digest = await catalog.latest(category)
    except DigestNotFoundError:
        raise HTTPException(status_code=404, detail="No digest found") from None
    except StoreError as e:
        logger.error("Get digest error: %s", e)
        raise HTTPException(status_code=500, detail="Internal server error") from None

    return DigestResponse.from_digest(digest)


@router.get("/digests/{category}", response_model=list[DigestResponse])
async def list_digests(
    category: str,
    limit: str | None = Query(None, description="Maximum digests to return (default 10)"),
    catalog: DigestCatalog = Depends(get_digest_catalog),
) -> list[DigestResponse]:
    """Recent digests for a category, newest first."""
    try:
        digests = await catalog.recent(category, limit=parse_limit(limit))
    except StoreError as e:
        logger.error("Get digests error: %s", e)
        raise HTTPException(status_code=500, detail="Internal server error") from None

    return [DigestResponse.from_digest(digest) for digest in digests]
