"""Category listing endpoint."""

from __future__ import annotations

from fastapi import APIRouter

from newsdigest.api.models import CategoryResponse
from newsdigest.digest.prompts import list_categories

router = APIRouter(prefix="/api", tags=["categories"])


@router.get("/categories", response_model=list[CategoryResponse])
async def get_categories() -> list[CategoryResponse]:
    """Configured digest categories in display order (prompts are not exposed)."""
    return [
        CategoryResponse(slug=info.slug, title=info.title, description=info.description)
        for info in list_categories()
    ]
