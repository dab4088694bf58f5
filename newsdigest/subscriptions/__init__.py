"""
Newsletter subscriptions: one record per (email, category).
"""

from __future__ import annotations

from newsdigest.subscriptions.models import Subscription, SubscriptionStatus
from newsdigest.subscriptions.registry import SubscriptionRegistry, get_subscription_registry

__all__ = [
    "Subscription",
    "SubscriptionRegistry",
    "SubscriptionStatus",
    "get_subscription_registry",
]
