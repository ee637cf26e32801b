"""
Tests for the end-to-end analysis pipeline.
"""
import asyncio
import time
from unittest.mock import patch

from core.catalog import RiskLevel
from core.extractor import FormatExtractor, RawDocument
from core.pipeline import DocumentAnalyzer, analyze_document

GARBLED_SUFFIX = " " + "§" * 80


class TestTextAnalysis:
    """Tests for successful analyses."""

    def test_contract_report(self, sample_contract_text):
        outcome = DocumentAnalyzer().analyze_text(sample_contract_text)

        assert outcome.succeeded
        assert outcome.error is None
        report = outcome.report
        assert report.overall_risk_level == RiskLevel.CRITICAL
        assert report.finding_count == 5
        assert report.low_confidence is False
        assert report.metadata["media_type"] == "text/plain"
        assert report.metadata["extraction_method"] == "utf-8"
        assert report.metadata["quality"]["is_meaningful"] is True

    def test_page_artifacts_removed_before_scanning(self, sample_contract_text):
        report = DocumentAnalyzer().analyze_text(sample_contract_text).report

        assert report.metadata["character_count"] < len(sample_contract_text)
        assert all("Page 1 of 2" not in f.matched_text for f in report.findings)

    def test_clean_document_is_minimal(self, filler_text):
        report = DocumentAnalyzer().analyze_text(filler_text).report

        assert report.findings == []
        assert report.overall_risk_level == RiskLevel.MINIMAL

    def test_analyze_document_helper(self, indemnity_text):
        outcome = analyze_document(
            indemnity_text.encode("utf-8"), "text/plain", filename="clause.txt"
        )

        assert outcome.succeeded
        assert outcome.filename == "clause.txt"
        assert outcome.report.metadata["filename"] == "clause.txt"

    def test_byte_order_mark_does_not_shift_offsets(self, indemnity_text):
        outcome = analyze_document(
            b"\xef\xbb\xbf" + indemnity_text.encode("utf-8"), "text/plain"
        )

        assert outcome.report.findings[0].start == indemnity_text.index("indemnify")

    def test_pdf_document(self, indemnity_text):
        pdf_text = f"Page 1 of 1\n{indemnity_text}\n1"
        with patch.object(
            FormatExtractor, "_extract_with_pdfplumber", return_value=(pdf_text, 1)
        ):
            outcome = analyze_document(b"%PDF-1.4", "application/pdf")

        assert outcome.succeeded
        assert [f.rule_id for f in outcome.report.findings] == ["indemnification"]
        assert outcome.report.metadata["page_count"] == 1
        assert outcome.report.findings[0].start == indemnity_text.index("indemnify")

    def test_docx_document(self, docx_bytes):
        outcome = analyze_document(
            docx_bytes,
            "application/vnd.openxmlformats-officedocument.wordprocessingml.document",
        )

        assert outcome.succeeded
        assert outcome.report.findings[0].rule_id == "indemnification"


class TestTerminalErrors:
    """Each failure ends the analysis with exactly one error."""

    def test_unsupported_format(self):
        outcome = analyze_document(b"\x89PNG\r\n", "image/png")

        assert not outcome.succeeded
        assert outcome.report is None
        assert outcome.error.tag == "UnsupportedFormat"

    def test_short_text(self):
        outcome = DocumentAnalyzer().analyze_text("Lorem ipsum dolor sit amet, co")

        assert outcome.error.tag == "EmptyOrImageBasedDocument"

    def test_low_quality_rejected_by_default(self, indemnity_text):
        outcome = DocumentAnalyzer().analyze_text(indemnity_text + GARBLED_SUFFIX)

        assert outcome.error.tag == "LowQualityText"
        assert outcome.error.details["quality"]["is_meaningful"] is False

    def test_low_quality_allowed(self, indemnity_text):
        outcome = DocumentAnalyzer().analyze_text(
            indemnity_text + GARBLED_SUFFIX, allow_low_quality=True
        )

        assert outcome.succeeded
        assert outcome.report.low_confidence is True
        assert [f.rule_id for f in outcome.report.findings] == ["indemnification"]

    def test_analyzer_level_override(self, indemnity_text):
        analyzer = DocumentAnalyzer(allow_low_quality=True)

        outcome = analyzer.analyze_text(indemnity_text + GARBLED_SUFFIX)

        assert outcome.succeeded

    def test_outcome_to_dict(self):
        data = analyze_document(b"data", "image/png", filename="scan.png").to_dict()

        assert data["status"] == "failed"
        assert data["filename"] == "scan.png"
        assert data["report"] is None
        assert data["error"]["error"] == "UnsupportedFormat"


class TestConcurrentAnalysis:
    """Tests for batch analysis."""

    def test_batch_keeps_order_and_isolates_failures(self, indemnity_text, filler_text):
        documents = [
            RawDocument(indemnity_text.encode(), "text/plain", "a.txt"),
            RawDocument(b"\x89PNG", "image/png", "b.png"),
            RawDocument(b"short", "text/plain", "c.txt"),
            RawDocument(filler_text.encode(), "text/plain", "d.txt"),
        ]

        outcomes = asyncio.run(DocumentAnalyzer().analyze_batch(documents))

        assert [o.filename for o in outcomes] == ["a.txt", "b.png", "c.txt", "d.txt"]
        assert outcomes[0].succeeded
        assert outcomes[1].error.tag == "UnsupportedFormat"
        assert outcomes[2].error.tag == "EmptyOrImageBasedDocument"
        assert outcomes[3].succeeded

    def test_same_input_same_report(self, sample_contract_text):
        raw = RawDocument(sample_contract_text.encode(), "text/plain")

        first, second = asyncio.run(DocumentAnalyzer().analyze_batch([raw, raw]))

        assert [f.to_dict() for f in first.report.findings] == [
            f.to_dict() for f in second.report.findings
        ]
        assert first.report.density_score == second.report.density_score

    def test_timeout_is_reported(self, indemnity_text):
        def slow_decode(self, content):
            time.sleep(0.5)
            return (indemnity_text, 1)

        analyzer = DocumentAnalyzer()
        analyzer.extraction_timeout = 0.05
        raw = RawDocument(b"%PDF-1.4", "application/pdf")
        with patch.object(FormatExtractor, "_extract_with_pdfplumber", slow_decode):
            outcome = asyncio.run(analyzer.analyze_async(raw))

        assert outcome.error.tag == "ExtractionCancelled"
