"""Summarization collaborator client"""

from __future__ import annotations
