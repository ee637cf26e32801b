"""
Lexi Text Normalizer
====================
Cleans extracted text before it is scanned.

- Strips running page markers ("Page 3 of 10") and standalone page numbers
- Drops non-printable characters from PDF-derived text
- Collapses whitespace runs

Normalization is deterministic and idempotent, so offsets reported against
normalized text are stable no matter how many times it is cleaned.
"""

import re
from dataclasses import dataclass

from core.extractor import MediaType

PAGE_MARKER_PATTERN = re.compile(r"page\s+\d+\s+of\s+\d+", re.IGNORECASE)
PAGE_NUMBER_LINE_PATTERN = re.compile(r"^[^\S\n]*\d+[^\S\n]*$", re.MULTILINE)
NON_PRINTABLE_PATTERN = re.compile(r"[^\x20-\x7E\s]")
WHITESPACE_PATTERN = re.compile(r"\s+")
HORIZONTAL_WHITESPACE_PATTERN = re.compile(r"[^\S\n]+")
LINE_EDGE_SPACE_PATTERN = re.compile(r" ?\n ?")
EXCESS_LINE_BREAKS_PATTERN = re.compile(r"\n{3,}")


@dataclass(frozen=True)
class NormalizedText:
    """Cleaned text that findings point into."""
    text: str
    media_type: MediaType | None = None

    def __len__(self) -> int:
        return len(self.text)

    def __str__(self) -> str:
        return self.text

    @property
    def word_count(self) -> int:
        return len(self.text.split())


def _remove_page_artifacts(text: str) -> str:
    # Removing one artifact can expose another ("Page 1 Page 2 of 3 of 4"),
    # so repeat until nothing changes.
    while True:
        cleaned = PAGE_MARKER_PATTERN.sub("", text)
        cleaned = PAGE_NUMBER_LINE_PATTERN.sub("", cleaned)
        if cleaned == text:
            return cleaned
        text = cleaned


def normalize_text(
    text: str,
    media_type: MediaType | None = None,
    preserve_paragraphs: bool = False
) -> str:
    """
    Clean raw extracted text.

    Args:
        text: Extracted text
        media_type: Source format; PDF text also loses non-printable characters
        preserve_paragraphs: Keep line breaks (at most two in a row) instead
            of flattening everything onto one line

    Returns:
        Normalized string
    """
    if not text:
        return ""

    text = text.replace("\r\n", "\n").replace("\r", "\n")

    if media_type == MediaType.PDF:
        text = NON_PRINTABLE_PATTERN.sub("", text)

    text = _remove_page_artifacts(text)

    if preserve_paragraphs:
        text = HORIZONTAL_WHITESPACE_PATTERN.sub(" ", text)
        text = LINE_EDGE_SPACE_PATTERN.sub("\n", text)
        text = EXCESS_LINE_BREAKS_PATTERN.sub("\n\n", text)
    else:
        text = WHITESPACE_PATTERN.sub(" ", text)

    return text.strip()


def normalize(
    text: str,
    media_type: MediaType | None = None,
    preserve_paragraphs: bool = False
) -> NormalizedText:
    """Normalize text and wrap it for scanning."""
    return NormalizedText(
        text=normalize_text(text, media_type, preserve_paragraphs),
        media_type=media_type
    )
