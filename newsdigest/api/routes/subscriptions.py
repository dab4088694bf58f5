"""
Subscription endpoints.

- POST   /api/subscribe        - create or update (anonymous allowed)
- GET    /api/subscriptions    - caller's subscriptions
- DELETE /api/subscribe/{id}   - remove one of the caller's subscriptions
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException

from newsdigest.api.middleware.user_auth import (
    AuthenticatedUser,
    get_current_user,
    get_optional_user,
)
from newsdigest.api.models import MessageResponse, SubscribeRequest, SubscribeResponse
from newsdigest.errors import InvalidInputError, StoreError, SubscriptionNotFoundError
from newsdigest.observability.logging import get_logger
from newsdigest.subscriptions.models import Subscription
from newsdigest.subscriptions.registry import SubscriptionRegistry, get_subscription_registry
from newsdigest.utils.error_sanitizer import sanitize_error_message

router = APIRouter(prefix="/api", tags=["subscriptions"])
logger = get_logger(__name__)


@router.post("/subscribe", response_model=SubscribeResponse)
async def subscribe(
    request: SubscribeRequest,
    user: AuthenticatedUser | None = Depends(get_optional_user),
    registry: SubscriptionRegistry = Depends(get_subscription_registry),
) -> SubscribeResponse:
    """
    Subscribe an email to a category's digest.

    Repeat requests for the same (email, category) update the existing
    subscription. A signed-in caller becomes its owner.
    """
    try:
        subscription = await registry.subscribe(
            request.category,
            request.email,
            request.delivery_time,
            user_id=user.id if user else None,
        )
    except InvalidInputError as e:
        raise HTTPException(status_code=400, detail=sanitize_error_message(str(e), 400)) from None
    except StoreError as e:
        logger.error("Subscribe error: %s", e)
        raise HTTPException(status_code=500, detail="Internal server error") from None

    return SubscribeResponse(message="Successfully subscribed", subscription=subscription)


@router.get("/subscriptions", response_model=list[Subscription])
async def list_subscriptions(
    user: AuthenticatedUser = Depends(get_current_user),
    registry: SubscriptionRegistry = Depends(get_subscription_registry),
) -> list[Subscription]:
    """Subscriptions owned by the caller."""
    try:
        return await registry.list_for_user(user.id)
    except StoreError as e:
        logger.error("Get subscriptions error: %s", e)
        raise HTTPException(status_code=500, detail="Internal server error") from None


@router.delete("/subscribe/{subscription_id}", response_model=MessageResponse)
async def unsubscribe(
    subscription_id: str,
    user: AuthenticatedUser = Depends(get_current_user),
    registry: SubscriptionRegistry = Depends(get_subscription_registry),
) -> MessageResponse:
    """Remove one of the caller's subscriptions; someone else's looks like a 404."""
    try:
        await registry.unsubscribe(subscription_id, user.id)
    except SubscriptionNotFoundError:
        raise HTTPException(status_code=404, detail="Subscription not found") from None
    except StoreError as e:
        logger.error("Unsubscribe error: %s", e)
        raise HTTPException(status_code=500, detail="Internal server error") from None

    return MessageResponse(message="Successfully unsubscribed")
