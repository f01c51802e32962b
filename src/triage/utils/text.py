"""Text helpers."""

from __future__ import annotations

import re
from typing import Iterable, Optional


def normalize_whitespace(text: str) -> str:
    """Collapse whitespace and trim."""
    return re.sub(r"\s+", " ", text).strip()


def normalize_token(value: Optional[str]) -> str:
    """Lower-case and collapse whitespace; None becomes an empty string."""
    if not isinstance(value, str):
        return ""
    return normalize_whitespace(value).lower()


def join_lowered(parts: Iterable[Optional[object]]) -> str:
    """Join text parts lower-cased, treating missing parts as empty strings."""
    return " ".join(str(part).lower() if part is not None else "" for part in parts)
