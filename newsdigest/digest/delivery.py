"""
NewsDigest Digest Delivery

Hands a freshly generated digest to the category's active subscribers.
Outbound email is not wired up: each would-be send is logged (with the
address redacted) and the subscriber count is returned.
"""

from __future__ import annotations

from newsdigest.digest.models import Digest
from newsdigest.digest.normalizer import to_bullets
from newsdigest.digest.prompts import CATEGORY_TABLE
from newsdigest.observability.logging import get_logger
from newsdigest.observability.telemetry import counter, log_event
from newsdigest.subscriptions.registry import SubscriptionRegistry, get_subscription_registry
from newsdigest.utils.redaction import redact_email

logger = get_logger(__name__)


def render_plain_text(digest: Digest) -> str:
    """Plain-text email body: title, bullets, then numbered sources."""
    info = CATEGORY_TABLE.get(digest.category)
    title = info.title if info else digest.category
    lines = [title, "=" * len(title), ""]
    lines.extend(f"• {bullet}" for bullet in to_bullets(digest.content))
    if digest.citations:
        lines.extend(["", "Sources:"])
        lines.extend(f"[{i}] {url}" for i, url in enumerate(digest.citations, start=1))
    return "\n".join(lines)


class DigestDelivery:
    """Delivers digests to subscribers (log-only sender)"""

    def __init__(self, registry: SubscriptionRegistry | None = None):
        self.registry = registry or get_subscription_registry()

    async def send(self, digest: Digest) -> int:
        """
        Send ``digest`` to every active subscriber of its category.

        Returns:
            Number of subscribers the digest was (would have been) sent to
        """
        subscribers = await self.registry.active_for_category(digest.category)
        body = render_plain_text(digest)

        for subscription in subscribers:
            logger.debug(
                "Would send %s digest %s to %s at %s (%d chars)",
                digest.category,
                digest.id,
                redact_email(subscription.email),
                subscription.delivery_time,
                len(body),
            )

        counter("delivery.recipients", len(subscribers))
        log_event(
            "digest.delivery_stubbed",
            category=digest.category,
            digest_id=digest.id,
            recipients=len(subscribers),
        )
        logger.info(
            "Would send digest to %d subscribers for %s", len(subscribers), digest.category
        )
        return len(subscribers)
