"""Layout direction flag and a swappable script-based classifier."""

from __future__ import annotations

import enum
import re
from collections.abc import Iterable

_RTL_PATTERN = re.compile(r"[\u0590-\u05FF\u0600-\u06FF]")

_RTL_LANGUAGES = frozenset({"ar", "fa", "he", "ur"})


class Direction(str, enum.Enum):
    """Which way overlay layouts run.

    ``FORWARD`` puts the logo on the right and the document code on the
    left margin; ``MIRRORED`` swaps both sides for right-to-left documents.
    """

    FORWARD = "forward"
    MIRRORED = "mirrored"

    @classmethod
    def from_language(cls, language: str) -> Direction:
        """Map a language code (``"ar"``, ``"en"``, ...) to a direction."""
        code = language.strip().lower().split("-")[0]
        return cls.MIRRORED if code in _RTL_LANGUAGES else cls.FORWARD


def contains_rtl(text: str | None) -> bool:
    """True if the text contains any Hebrew or Arabic character."""
    if not text:
        return False
    return bool(_RTL_PATTERN.search(text))


def classify_direction(
    texts: Iterable[str | None],
    *,
    priority: str | None = None,
    empty: Direction = Direction.FORWARD,
) -> Direction:
    """Infer a direction from sampled document text.

    A non-blank ``priority`` field decides on its own. Otherwise the
    direction is ``MIRRORED`` when a strict majority of the non-blank texts
    contain right-to-left script, and ``empty`` when there is nothing to
    sample.
    """
    if priority and priority.strip():
        return Direction.MIRRORED if contains_rtl(priority) else Direction.FORWARD

    samples = [t for t in texts if t and t.strip()]
    if not samples:
        return empty

    rtl_count = sum(1 for t in samples if contains_rtl(t))
    return Direction.MIRRORED if rtl_count > len(samples) / 2 else Direction.FORWARD
