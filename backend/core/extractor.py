"""
Lexi Format Extractor Module
============================
Handles document ingestion and plain-text extraction.
Supports native PDFs, Word (DOCX) documents and plain text.

Key Features:
- pdfplumber extraction with PyPDF2 fallback
- Paragraph and table text from DOCX
- Total UTF-8 decoding for plain text
- Timeout-aware async extraction
"""

import asyncio
import io
import logging
from dataclasses import dataclass
from enum import Enum

import docx
import pdfplumber
from PyPDF2 import PdfReader

from core.config import (
    DOCX_MEDIA_TYPE,
    MIN_TEXT_LENGTH,
    PDF_MEDIA_TYPE,
    TEXT_MEDIA_TYPE,
)
from core.errors import (
    EmptyOrImageBasedDocumentError,
    ExtractionCancelledError,
    ExtractionFailureError,
    UnsupportedFormatError,
)

logger = logging.getLogger(__name__)


class MediaType(str, Enum):
    """Supported document media types."""
    PDF = PDF_MEDIA_TYPE
    DOCX = DOCX_MEDIA_TYPE
    TEXT = TEXT_MEDIA_TYPE

    @classmethod
    def parse(cls, value: "str | MediaType | None") -> "MediaType":
        """
        Resolve a declared MIME string to a supported media type.

        Matching ignores case and MIME parameters such as ``charset``.

        Raises:
            UnsupportedFormatError: If the type is not supported
        """
        if isinstance(value, cls):
            return value

        essence = (value or "").split(";", 1)[0].strip().lower()
        for media_type in cls:
            if media_type.value == essence:
                return media_type

        raise UnsupportedFormatError(
            f"Unsupported file type: {value or 'unknown'}",
            details={
                "received_type": value,
                "accepted_types": [m.value for m in cls]
            }
        )


@dataclass(frozen=True)
class RawDocument:
    """Document bytes exactly as supplied by the caller."""
    content: bytes
    media_type: str
    filename: str | None = None

    @property
    def size_bytes(self) -> int:
        return len(self.content)


@dataclass(frozen=True)
class ExtractedText:
    """Plain text produced by a decoder."""
    text: str
    media_type: MediaType
    method: str  # 'pdfplumber', 'pypdf2', 'python-docx', 'utf-8'
    page_count: int | None = None

    @property
    def is_successful(self) -> bool:
        """Extraction counts only when it yields enough non-blank text."""
        return len(self.text.strip()) >= MIN_TEXT_LENGTH


class FormatExtractor:
    """
    Converts raw document bytes into plain text.

    This extractor:
    1. Validates the declared media type
    2. Delegates decoding to the format-specific library
    3. Rejects results too short to be a real text layer

    It never writes to disk and never retries a failed decode.
    """

    def __init__(self, min_text_length: int = MIN_TEXT_LENGTH):
        self.min_text_length = min_text_length
        self._decoders = {
            MediaType.PDF: self._decode_pdf,
            MediaType.DOCX: self._decode_docx,
            MediaType.TEXT: self._decode_text,
        }

    def extract(self, raw: RawDocument) -> ExtractedText:
        """
        Extract plain text from a document.

        Args:
            raw: Document bytes and declared media type

        Returns:
            ExtractedText with at least ``min_text_length`` characters

        Raises:
            UnsupportedFormatError: Media type is not supported
            EmptyOrImageBasedDocumentError: Too little text was recovered
            ExtractionFailureError: The decoder could not read the bytes
        """
        media_type = MediaType.parse(raw.media_type)
        name = raw.filename or "<unnamed>"
        logger.info(
            f"Extracting text from {name} ({media_type.name}, {raw.size_bytes} bytes)"
        )

        extracted = self._decoders[media_type](raw.content)

        if len(extracted.text.strip()) < self.min_text_length:
            if media_type == MediaType.TEXT:
                message = "Document contains too little text to analyze."
            else:
                message = (
                    "Could not extract text from the document. "
                    "The file might be image-based or corrupted."
                )
            raise EmptyOrImageBasedDocumentError(
                message,
                details={
                    "media_type": media_type.value,
                    "characters_extracted": len(extracted.text.strip()),
                    "minimum_required": self.min_text_length
                }
            )

        logger.info(
            f"Extracted {len(extracted.text)} characters from {name} "
            f"via {extracted.method}"
        )
        return extracted

    async def extract_async(
        self,
        raw: RawDocument,
        timeout: float | None = None
    ) -> ExtractedText:
        """
        Extract text in a worker thread, abandoning it after ``timeout`` seconds.

        Raises:
            ExtractionCancelledError: When the timeout expires
            asyncio.CancelledError: Task cancellation propagates unchanged
        """
        try:
            return await asyncio.wait_for(
                asyncio.to_thread(self.extract, raw),
                timeout=timeout
            )
        except asyncio.TimeoutError as e:
            logger.warning(f"Extraction of {raw.filename or '<unnamed>'} timed out")
            raise ExtractionCancelledError(
                f"Extraction did not finish within {timeout} seconds.",
                details={"timeout_seconds": timeout}
            ) from e

    def _decode_pdf(self, content: bytes) -> ExtractedText:
        """Decode a PDF with pdfplumber, falling back to PyPDF2."""
        primary: ExtractedText | None = None
        try:
            text, page_count = self._extract_with_pdfplumber(content)
            primary = ExtractedText(
                text=text,
                media_type=MediaType.PDF,
                method="pdfplumber",
                page_count=page_count
            )
            if text.strip():
                return primary
            logger.warning("pdfplumber found no text layer, trying PyPDF2")
        except Exception as e:
            logger.warning(f"pdfplumber extraction failed: {e}")

        try:
            text, page_count = self._extract_with_pypdf2(content)
        except Exception as e:
            logger.error(f"PyPDF2 extraction failed: {e}")
            if primary is not None:
                # Readable but textless: reported as image-based by extract()
                return primary
            raise ExtractionFailureError(
                "Failed to read PDF", cause=e, details={"media_type": PDF_MEDIA_TYPE}
            ) from e

        return ExtractedText(
            text=text,
            media_type=MediaType.PDF,
            method="pypdf2",
            page_count=page_count
        )

    def _extract_with_pdfplumber(self, content: bytes) -> tuple[str, int]:
        with pdfplumber.open(io.BytesIO(content)) as pdf:
            pages = [page.extract_text() or "" for page in pdf.pages]
        return "\n\n".join(pages), len(pages)

    def _extract_with_pypdf2(self, content: bytes) -> tuple[str, int]:
        reader = PdfReader(io.BytesIO(content))
        pages = [page.extract_text() or "" for page in reader.pages]
        return "\n\n".join(pages), len(pages)

    def _decode_docx(self, content: bytes) -> ExtractedText:
        """Decode a DOCX file: body paragraphs first, then table rows."""
        try:
            document = docx.Document(io.BytesIO(content))
        except Exception as e:
            logger.error(f"DOCX extraction failed: {e}")
            raise ExtractionFailureError(
                "Failed to read DOCX", cause=e, details={"media_type": DOCX_MEDIA_TYPE}
            ) from e

        parts = [p.text for p in document.paragraphs if p.text.strip()]
        for table in document.tables:
            for row in table.rows:
                row_text = " ".join(cell.text.strip() for cell in row.cells)
                if row_text.strip():
                    parts.append(row_text)

        return ExtractedText(
            text="\n".join(parts),
            media_type=MediaType.DOCX,
            method="python-docx"
        )

    def _decode_text(self, content: bytes) -> ExtractedText:
        # Malformed sequences become U+FFFD; decoding never fails
        return ExtractedText(
            text=content.decode("utf-8-sig", errors="replace"),
            media_type=MediaType.TEXT,
            method="utf-8"
        )
