"""
Lexi Text Quality Gate
======================
Structural heuristics that decide whether extracted text is usable.

Garbled extractions show up as a high share of unexpected symbols, while
run-together or fragmented tokens push the average word length out of the
range real prose falls into.
"""

import re
from dataclasses import dataclass
from typing import Any

from core.config import (
    MAX_AVG_WORD_LENGTH,
    MAX_SPECIAL_CHAR_RATIO,
    MIN_AVG_WORD_LENGTH,
    MIN_TEXT_LENGTH,
)

SPECIAL_CHAR_PATTERN = re.compile(r"[^a-zA-Z0-9\s.,;:!?'\"()-]")
WHITESPACE_PATTERN = re.compile(r"\s+")


@dataclass(frozen=True)
class QualityAssessment:
    """Measured quality metrics and the verdict derived from them."""
    is_meaningful: bool
    length: int
    word_count: int
    special_char_ratio: float
    average_word_length: float
    reason: str | None = None

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        return {
            "is_meaningful": self.is_meaningful,
            "length": self.length,
            "word_count": self.word_count,
            "special_char_ratio": round(self.special_char_ratio, 4),
            "average_word_length": round(self.average_word_length, 2),
            "reason": self.reason
        }


def assess_quality(text: str | None) -> QualityAssessment:
    """
    Measure how much extracted text looks like real prose.

    Checks, in order:
    1. Length of at least MIN_TEXT_LENGTH characters
    2. Share of characters outside letters, digits, whitespace and
       common punctuation no greater than MAX_SPECIAL_CHAR_RATIO
    3. Average word length within [MIN_AVG_WORD_LENGTH, MAX_AVG_WORD_LENGTH]

    Args:
        text: Text to assess

    Returns:
        QualityAssessment; ``reason`` names the first failed check
    """
    text = text or ""
    length = len(text)
    words = text.split()
    word_count = len(words)

    special_ratio = (
        len(SPECIAL_CHAR_PATTERN.findall(text)) / length if length else 0.0
    )
    avg_word_length = (
        len(WHITESPACE_PATTERN.sub("", text)) / word_count if word_count else 0.0
    )

    reason = None
    if length < MIN_TEXT_LENGTH:
        reason = f"Text is shorter than {MIN_TEXT_LENGTH} characters"
    elif special_ratio > MAX_SPECIAL_CHAR_RATIO:
        reason = (
            f"Unexpected character ratio {special_ratio:.2f} exceeds "
            f"{MAX_SPECIAL_CHAR_RATIO}"
        )
    elif word_count == 0:
        reason = "Text contains no words"
    elif not MIN_AVG_WORD_LENGTH <= avg_word_length <= MAX_AVG_WORD_LENGTH:
        reason = (
            f"Average word length {avg_word_length:.1f} is outside "
            f"{MIN_AVG_WORD_LENGTH}-{MAX_AVG_WORD_LENGTH}"
        )

    return QualityAssessment(
        is_meaningful=reason is None,
        length=length,
        word_count=word_count,
        special_char_ratio=special_ratio,
        average_word_length=avg_word_length,
        reason=reason
    )


def is_meaningful(text: str | None) -> bool:
    """Return True when extracted text is usable for analysis."""
    return assess_quality(text).is_meaningful
