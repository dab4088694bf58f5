"""Request/response models for the NewsDigest API (camelCase on the wire)."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

from newsdigest.digest.models import Digest
from newsdigest.digest.normalizer import to_bullets
from newsdigest.subscriptions.models import Subscription


class SubscribeRequest(BaseModel):
    """Fields are optional here so missing ones get a 400 from the registry."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    category: str | None = None
    email: str | None = None
    delivery_time: str | None = None


class SubscribeResponse(BaseModel):
    message: str
    subscription: Subscription


class MessageResponse(BaseModel):
    message: str


class GenerateDigestRequest(BaseModel):
    category: str | None = None


class DigestResponse(Digest):
    """A digest plus its display bullets."""

    bullets: list[str] = []

    @classmethod
    def from_digest(cls, digest: Digest) -> DigestResponse:
        return cls(**digest.model_dump(), bullets=to_bullets(digest.content))


class GenerateDigestResponse(BaseModel):
    message: str
    digest: DigestResponse


class CategoryResponse(BaseModel):
    slug: str
    title: str
    description: str
