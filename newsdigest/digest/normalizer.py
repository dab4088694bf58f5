"""
Turn free-form generated digest text into a short list of display bullets.

Generated text is usually a bulleted or numbered list, but that is not
guaranteed, so there is a sentence fallback. The result is always bounded;
the normalizer never fails. No HTML escaping happens here - rendering layers
own safe display encoding.
"""

from __future__ import annotations

import re

MAX_BULLETS = 5
MAX_SENTENCES = 3

_LIST_ITEM_START = re.compile(r"^[-*•\d]")
_BULLET_MARKER = re.compile(r"^[-*•]\s*")
_NUMBER_PREFIX = re.compile(r"^\d+\.\s*")
_SENTENCE = re.compile(r"[^.!?]+[.!?]+")


def to_bullets(raw_text: str | None) -> list[str]:
    """
    Normalize raw digest text into at most five bullets.

    Lines starting with ``-``, ``*``, ``•`` or a digit count as list items;
    their marker or ``"<n>. "`` prefix is stripped. If no line qualifies,
    the first three sentences are returned instead, terminators kept.

    >>> to_bullets("- a\\n- b\\n- c")
    ['a', 'b', 'c']
    >>> to_bullets("No bullets here. Second sentence! Third?")
    ['No bullets here.', 'Second sentence!', 'Third?']
    """
    if not raw_text:
        return []

    bullets: list[str] = []
    for line in raw_text.split("\n"):
        line = line.strip()
        if not line or not _LIST_ITEM_START.match(line):
            continue
        item = _NUMBER_PREFIX.sub("", _BULLET_MARKER.sub("", line, count=1), count=1)
        bullets.append(item)
        if len(bullets) == MAX_BULLETS:
            break

    if bullets:
        return bullets

    sentences = (segment.strip() for segment in _SENTENCE.findall(raw_text))
    return [sentence for sentence in sentences if sentence][:MAX_SENTENCES]
