"""Configured report categories and their storage tables."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterator, Optional

from triage.config import Settings


@dataclass(frozen=True)
class CategorySet:
    """Ordered set of report categories accepted by the engine."""

    names: tuple[str, ...]
    fallback: str = "others"

    def __post_init__(self) -> None:
        if not self.names:
            raise ValueError("At least one category must be configured")
        if self.fallback not in self.names:
            raise ValueError(f"Fallback category {self.fallback!r} is not configured")

    @classmethod
    def from_settings(cls, settings: Optional[Settings] = None) -> "CategorySet":
        settings = settings or Settings()
        names = tuple(_normalize(name) for name in settings.categories if _normalize(name))
        return cls(names=names, fallback=_normalize(settings.fallback_category))

    def __contains__(self, value: object) -> bool:
        return isinstance(value, str) and _normalize(value) in self.names

    def __iter__(self) -> Iterator[str]:
        return iter(self.names)

    def resolve(self, *candidates: Optional[str]) -> str:
        """Return the first configured candidate, or the fallback category.

        Candidates are tried in order (e.g. submitted category, then model
        classification).
        """
        for candidate in candidates:
            if isinstance(candidate, str) and _normalize(candidate) in self.names:
                return _normalize(candidate)
        return self.fallback

    def table_for(self, category: str) -> str:
        """Return the report table for a configured category."""
        normalized = _normalize(category)
        if normalized not in self.names:
            raise ValueError(f"Invalid category: {category!r}")
        return f"{normalized}_reports"


def _normalize(value: str) -> str:
    return value.strip().lower()
