"""
Tests for the FormatExtractor module.
"""
import asyncio
import time
from unittest.mock import patch

import pytest

from core.errors import (
    EmptyOrImageBasedDocumentError,
    ExtractionCancelledError,
    ExtractionFailureError,
    UnsupportedFormatError,
)
from core.extractor import FormatExtractor, MediaType, RawDocument

PDF = "application/pdf"
DOCX = "application/vnd.openxmlformats-officedocument.wordprocessingml.document"
TEXT = "text/plain"


class TestMediaTypeParsing:
    """Tests for declared media type resolution."""

    @pytest.mark.parametrize("declared,expected", [
        (PDF, MediaType.PDF),
        (DOCX, MediaType.DOCX),
        (TEXT, MediaType.TEXT),
        ("TEXT/PLAIN", MediaType.TEXT),
        ("text/plain; charset=utf-8", MediaType.TEXT),
    ])
    def test_supported_types(self, declared, expected):
        assert MediaType.parse(declared) == expected

    @pytest.mark.parametrize("declared", ["image/png", "application/msword", "", None])
    def test_unsupported_types(self, declared):
        with pytest.raises(UnsupportedFormatError) as exc_info:
            MediaType.parse(declared)

        assert exc_info.value.tag == "UnsupportedFormat"
        assert PDF in exc_info.value.details["accepted_types"]


class TestPlainTextExtraction:
    """Tests for the plain-text path."""

    def test_decodes_utf8(self, indemnity_text):
        raw = RawDocument(content=indemnity_text.encode("utf-8"), media_type=TEXT)

        result = FormatExtractor().extract(raw)

        assert result.text == indemnity_text
        assert result.media_type == MediaType.TEXT
        assert result.is_successful

    def test_byte_order_mark_dropped(self, indemnity_text):
        content = b"\xef\xbb\xbf" + indemnity_text.encode("utf-8")
        raw = RawDocument(content=content, media_type=TEXT)

        result = FormatExtractor().extract(raw)

        assert result.text == indemnity_text

    def test_malformed_bytes_are_replaced(self, indemnity_text):
        content = indemnity_text.encode("utf-8") + b"\xff\xfe broken tail"
        raw = RawDocument(content=content, media_type=TEXT)

        result = FormatExtractor().extract(raw)

        assert "�" in result.text
        assert result.text.startswith("The Contractor")

    def test_short_text_is_rejected(self):
        raw = RawDocument(content=b"Too short to analyze.", media_type=TEXT)

        with pytest.raises(EmptyOrImageBasedDocumentError):
            FormatExtractor().extract(raw)


class TestUnsupportedFormat:
    """Tests for rejected media types."""

    def test_image_upload_rejected(self):
        raw = RawDocument(content=b"\x89PNG\r\n\x1a\n", media_type="image/png")

        with pytest.raises(UnsupportedFormatError) as exc_info:
            FormatExtractor().extract(raw)

        assert "image/png" in exc_info.value.message


class TestPdfExtraction:
    """Tests for the PDF path with decoders isolated."""

    def test_pdfplumber_result_used(self, indemnity_text):
        extractor = FormatExtractor()
        with patch.object(
            FormatExtractor, "_extract_with_pdfplumber", return_value=(indemnity_text, 1)
        ):
            result = extractor.extract(RawDocument(content=b"%PDF-1.4", media_type=PDF))

        assert result.text == indemnity_text
        assert result.method == "pdfplumber"
        assert result.page_count == 1

    def test_falls_back_to_pypdf2(self, indemnity_text):
        extractor = FormatExtractor()
        with patch.object(
            FormatExtractor, "_extract_with_pdfplumber", side_effect=ValueError("bad xref")
        ), patch.object(
            FormatExtractor, "_extract_with_pypdf2", return_value=(indemnity_text, 2)
        ):
            result = extractor.extract(RawDocument(content=b"%PDF-1.4", media_type=PDF))

        assert result.method == "pypdf2"
        assert result.page_count == 2

    def test_short_pdf_text_is_image_based(self):
        lorem = "Lorem ipsum dolor sit amet, co"
        assert len(lorem) == 30

        extractor = FormatExtractor()
        with patch.object(
            FormatExtractor, "_extract_with_pdfplumber", return_value=(lorem, 1)
        ):
            with pytest.raises(EmptyOrImageBasedDocumentError) as exc_info:
                extractor.extract(RawDocument(content=b"%PDF-1.4", media_type=PDF))

        assert exc_info.value.details["characters_extracted"] == 30

    def test_textless_pdf_is_image_based(self):
        extractor = FormatExtractor()
        with patch.object(
            FormatExtractor, "_extract_with_pdfplumber", return_value=("", 3)
        ), patch.object(
            FormatExtractor, "_extract_with_pypdf2", side_effect=ValueError("no text")
        ):
            with pytest.raises(EmptyOrImageBasedDocumentError):
                extractor.extract(RawDocument(content=b"%PDF-1.4", media_type=PDF))

    def test_both_decoders_failing_wraps_cause(self):
        extractor = FormatExtractor()
        with patch.object(
            FormatExtractor, "_extract_with_pdfplumber", side_effect=ValueError("bad xref")
        ), patch.object(
            FormatExtractor, "_extract_with_pypdf2", side_effect=OSError("EOF marker not found")
        ):
            with pytest.raises(ExtractionFailureError) as exc_info:
                extractor.extract(RawDocument(content=b"garbage", media_type=PDF))

        error = exc_info.value
        assert error.tag == "ExtractionFailure"
        assert isinstance(error.cause, OSError)
        assert "EOF marker not found" in error.message


class TestDocxExtraction:
    """Tests for the DOCX path using real documents."""

    def test_paragraphs_and_tables(self, docx_bytes, indemnity_text):
        result = FormatExtractor().extract(RawDocument(content=docx_bytes, media_type=DOCX))

        assert indemnity_text in result.text
        assert "Payment terms Net 30 days from invoice" in result.text
        assert result.method == "python-docx"

    def test_corrupt_docx_fails(self):
        raw = RawDocument(content=b"this is not a zip archive", media_type=DOCX)

        with pytest.raises(ExtractionFailureError):
            FormatExtractor().extract(raw)


class TestAsyncExtraction:
    """Tests for timeout-bounded extraction."""

    def test_async_extract_returns_text(self, indemnity_text):
        raw = RawDocument(content=indemnity_text.encode(), media_type=TEXT)

        result = asyncio.run(FormatExtractor().extract_async(raw, timeout=5))

        assert result.text == indemnity_text

    def test_timeout_raises_cancelled(self, indemnity_text):
        def slow_decode(self, content):
            time.sleep(0.5)
            return (indemnity_text, 1)

        raw = RawDocument(content=b"%PDF-1.4", media_type=PDF)
        with patch.object(FormatExtractor, "_extract_with_pdfplumber", slow_decode):
            with pytest.raises(ExtractionCancelledError) as exc_info:
                asyncio.run(FormatExtractor().extract_async(raw, timeout=0.05))

        assert exc_info.value.tag == "ExtractionCancelled"

    def test_task_cancellation_propagates(self, indemnity_text):
        def slow_decode(self, content):
            time.sleep(0.3)
            return (indemnity_text, 1)

        async def cancel_midway():
            raw = RawDocument(content=b"%PDF-1.4", media_type=PDF)
            task = asyncio.create_task(FormatExtractor().extract_async(raw, timeout=5))
            await asyncio.sleep(0.05)
            task.cancel()
            try:
                await task
            except asyncio.CancelledError:
                return task.cancelled()
            return False

        with patch.object(FormatExtractor, "_extract_with_pdfplumber", slow_decode):
            assert asyncio.run(cancel_midway()) is True
