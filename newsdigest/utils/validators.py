"""
Input validation utilities.

Validation happens at the registry/catalog boundary, never inside the store.
"""

from __future__ import annotations

import re

from newsdigest.config import CATEGORIES
from newsdigest.errors import InvalidInputError

EMAIL_PATTERN = re.compile(r"^[^@\s]+@[^@\s]+$")
MAX_EMAIL_LENGTH = 254


def validate_category(category: str | None) -> str:
    """
    Return the category if it is one of the fixed set.

    Raises:
        InvalidInputError: missing or unknown category
    """
    if not category:
        raise InvalidInputError("Category is required")
    if category not in CATEGORIES:
        raise InvalidInputError("Invalid category")
    return category


def validate_email(email: str) -> str:
    """
    Loose shape check only; deliverability is the mail sender's problem.

    Raises:
        InvalidInputError: not something@something
    """
    if len(email) > MAX_EMAIL_LENGTH or not EMAIL_PATTERN.match(email):
        raise InvalidInputError("Invalid email address")
    return email
