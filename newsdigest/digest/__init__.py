"""
Digest generation, history and display normalization.

Submodules:
- models: Digest record
- normalizer: raw text -> display bullets
- catalog: append-only history per category
- pipeline: summarization -> catalog, with per-category failure isolation
- scheduler: daily trigger
- delivery: subscriber hand-off (log-only)
"""

from __future__ import annotations

from newsdigest.digest.models import Digest
from newsdigest.digest.normalizer import to_bullets

__all__ = ["Digest", "to_bullets"]
