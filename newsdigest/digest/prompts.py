"""
Category table: display metadata and the fixed generation prompt per category.

Adding a category means adding a row here and its slug to
``newsdigest.config.CATEGORIES``; the pipeline has no per-category branching.
Prompts are never user-suppliable.
"""

from __future__ import annotations

from dataclasses import dataclass

from newsdigest.config import CATEGORIES

SYSTEM_PROMPT = (
    "You are a professional news curator that creates concise, accurate daily digests. "
    "Provide factual, well-sourced summaries with key highlights."
)

_FORMAT_INSTRUCTION = "Format as bullet points with brief explanations."


@dataclass(frozen=True)
class CategoryInfo:
    slug: str
    title: str
    description: str
    prompt: str


CATEGORY_TABLE: dict[str, CategoryInfo] = {
    "stock-market": CategoryInfo(
        slug="stock-market",
        title="Stock Market & Finance Digest",
        description=(
            "Get daily market analysis, trading insights, and financial trends "
            "delivered to your inbox"
        ),
        prompt=(
            "Generate a concise daily digest of the most important stock market and financial "
            "news from the past 24 hours. Include: major market movements, significant company "
            f"news, economic indicators, and expert insights. {_FORMAT_INSTRUCTION}"
        ),
    ),
    "ai-updates": CategoryInfo(
        slug="ai-updates",
        title="AI & Technology Updates Digest",
        description="Stay updated with the latest AI breakthroughs and technology innovations",
        prompt=(
            "Generate a concise daily digest of the latest AI and technology developments from "
            "the past 24 hours. Include: breakthrough announcements, new AI models, tech company "
            f"news, research papers, and industry trends. {_FORMAT_INSTRUCTION}"
        ),
    ),
    "geopolitics": CategoryInfo(
        slug="geopolitics",
        title="Geopolitics & Global Affairs Digest",
        description=(
            "Receive comprehensive analysis of international relations and global policy changes"
        ),
        prompt=(
            "Generate a concise daily digest of the most significant geopolitical and global "
            "affairs news from the past 24 hours. Include: international relations, diplomatic "
            f"developments, policy changes, and global conflicts. {_FORMAT_INSTRUCTION}"
        ),
    ),
    "startups": CategoryInfo(
        slug="startups",
        title="Startups & Business Digest",
        description="Track venture capital trends, unicorns, and innovative business strategies",
        prompt=(
            "Generate a concise daily digest of the most important startup and business news "
            "from the past 24 hours. Include: funding rounds, new unicorns, IPOs, innovative "
            f"business strategies, and venture capital trends. {_FORMAT_INSTRUCTION}"
        ),
    ),
}

if set(CATEGORY_TABLE) != set(CATEGORIES):
    raise RuntimeError("CATEGORY_TABLE is out of sync with config.CATEGORIES")


def get_prompt(category: str) -> str:
    """Return the generation prompt for a category. Raises KeyError if unknown."""
    return CATEGORY_TABLE[category].prompt


def list_categories() -> list[CategoryInfo]:
    """Categories in configured order."""
    return [CATEGORY_TABLE[slug] for slug in CATEGORIES]
