"""Keyword matching shared by the decomposer and every synthesizer."""

from typing import Iterable, Protocol

from briefsmith.core.schemas import TechnicalTask


class TextClassifier(Protocol):
    """Decides whether a block of text belongs to a keyword family."""

    def matches(self, text: str, keywords: Iterable[str]) -> bool: ...


class SubstringClassifier:
    """Case-insensitive substring matching, the default classifier."""

    def matches(self, text: str, keywords: Iterable[str]) -> bool:
        lowered = text.lower()
        return any(kw.lower() in lowered for kw in keywords)


def combined_text(task: TechnicalTask) -> str:
    """Lower-cased title, description and acceptance criteria as one string."""
    parts = [task.title, task.description, " ".join(task.acceptance_criteria)]
    return " ".join(parts).lower()


def slugify(value: str, limit: int = 40) -> str:
    chars = [c if c.isalnum() else "_" for c in value.lower()]
    slug = "_".join(part for part in "".join(chars).split("_") if part)
    return slug[:limit].rstrip("_") or "task"
