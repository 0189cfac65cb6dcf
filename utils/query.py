"""Query normalization applied before any source sees the text."""

import re

from api.errors import ValidationError

MIN_QUERY_LENGTH = 2
MAX_QUERY_LENGTH = 200
MIN_TRUNCATED_LENGTH = 150

_WHITESPACE = re.compile(r"\s+")


def truncate_at_word_boundary(
    text: str, limit: int = MAX_QUERY_LENGTH, floor: int = MIN_TRUNCATED_LENGTH
) -> str:
    """
    Cut ``text`` to at most ``limit`` characters at the last space found in
    [floor, limit]. Without such a space the cut is made at ``limit``.
    """
    if len(text) <= limit:
        return text
    boundary = text.rfind(" ", floor, limit + 1)
    if boundary == -1:
        return text[:limit]
    return text[:boundary]


def normalize_query(raw: object) -> str:
    """
    Trim and collapse whitespace, then enforce the 2-200 character window.

    Raises:
        ValidationError: if the input is not a string or is too short
    """
    if not isinstance(raw, str):
        raise ValidationError("Query must be a non-empty string")

    text = _WHITESPACE.sub(" ", raw).strip()
    if not text:
        raise ValidationError("Query must be a non-empty string")
    if len(text) < MIN_QUERY_LENGTH:
        raise ValidationError(f"Query must be at least {MIN_QUERY_LENGTH} characters")

    return truncate_at_word_boundary(text)
