"""NewsDigest - daily AI news digests and newsletter subscriptions"""

from __future__ import annotations

__version__ = "1.0.0"


# Lazy so `import newsdigest` (e.g. for __version__) loads no models
def __getattr__(name: str):
    """
    Lazy imports to avoid loading heavy dependencies when only importing lightweight modules.
    """
    if name in ("Digest", "Subscription"):
        if name == "Digest":
            from newsdigest.digest.models import Digest

            return Digest
        from newsdigest.subscriptions.models import Subscription

        return Subscription

    if name == "to_bullets":
        from newsdigest.digest.normalizer import to_bullets

        return to_bullets

    msg = f"module {__name__!r} has no attribute {name!r}"
    raise AttributeError(msg)


__all__ = [
    "Digest",
    "Subscription",
    "to_bullets",
]
