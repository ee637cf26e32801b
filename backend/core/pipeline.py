"""
Lexi Analysis Pipeline
======================
Runs one document through every stage:

    extract -> quality gate -> normalize -> scan -> aggregate

Each invocation is independent; the only shared state is the read-only
catalog. An analysis ends with either a complete report or exactly one
terminal error, never a partial report.
"""

import asyncio
import logging
import time
from dataclasses import dataclass
from typing import Any, Iterable

from core.catalog import RiskCatalog, get_catalog
from core.config import get_settings
from core.errors import AnalysisError, LowQualityTextError
from core.extractor import ExtractedText, FormatExtractor, MediaType, RawDocument
from core.normalizer import normalize
from core.quality import assess_quality
from core.risk_engine import RiskAggregator, RiskReport
from core.scanner import ClauseScanner

logger = logging.getLogger(__name__)


@dataclass
class AnalysisOutcome:
    """Either a report or a terminal error for one document."""
    report: RiskReport | None = None
    error: AnalysisError | None = None
    filename: str | None = None
    processing_time_seconds: float = 0.0

    @property
    def succeeded(self) -> bool:
        return self.report is not None

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        return {
            "filename": self.filename,
            "status": "completed" if self.succeeded else "failed",
            "report": self.report.to_dict() if self.report else None,
            "error": self.error.to_dict() if self.error else None,
            "processing_time_seconds": round(self.processing_time_seconds, 3)
        }


class DocumentAnalyzer:
    """
    Orchestrates the risk-analysis pipeline.

    Low-quality text is a soft failure: it is reported as
    ``LowQualityText`` unless the caller (or configuration) explicitly allows
    analysis to continue, in which case the report is flagged low confidence.
    """

    def __init__(
        self,
        catalog: RiskCatalog | None = None,
        allow_low_quality: bool | None = None
    ):
        settings = get_settings()
        self.catalog = catalog or get_catalog()
        self.extractor = FormatExtractor()
        self.scanner = ClauseScanner(self.catalog)
        self.aggregator = RiskAggregator(self.catalog)
        self.allow_low_quality = (
            settings.allow_low_quality_text
            if allow_low_quality is None else allow_low_quality
        )
        self.extraction_timeout = settings.extraction_timeout_seconds
        self.max_concurrency = settings.max_concurrent_analyses

    def analyze(
        self,
        raw: RawDocument,
        allow_low_quality: bool | None = None
    ) -> AnalysisOutcome:
        """Analyze a document synchronously."""
        start_time = time.perf_counter()
        try:
            extracted = self.extractor.extract(raw)
            report = self._analyze_extracted(extracted, raw.filename, allow_low_quality)
            return self._outcome(raw.filename, start_time, report=report)
        except AnalysisError as e:
            self._log_failure(raw.filename, e)
            return self._outcome(raw.filename, start_time, error=e)

    def analyze_text(
        self,
        text: str,
        allow_low_quality: bool | None = None
    ) -> AnalysisOutcome:
        """Analyze text the caller already holds."""
        raw = RawDocument(content=text.encode("utf-8"), media_type=MediaType.TEXT.value)
        return self.analyze(raw, allow_low_quality)

    async def analyze_async(
        self,
        raw: RawDocument,
        allow_low_quality: bool | None = None
    ) -> AnalysisOutcome:
        """
        Analyze a document, bounding extraction by the configured timeout.

        Once text is available the in-memory stages run in a worker thread,
        off the event loop.
        """
        start_time = time.perf_counter()
        try:
            extracted = await self.extractor.extract_async(
                raw, timeout=self.extraction_timeout
            )
            report = await asyncio.to_thread(
                self._analyze_extracted, extracted, raw.filename, allow_low_quality
            )
            return self._outcome(raw.filename, start_time, report=report)
        except AnalysisError as e:
            self._log_failure(raw.filename, e)
            return self._outcome(raw.filename, start_time, error=e)

    async def analyze_batch(
        self,
        documents: Iterable[RawDocument],
        allow_low_quality: bool | None = None
    ) -> list[AnalysisOutcome]:
        """
        Analyze documents concurrently, in input order.

        A failure in one document never affects the others.
        """
        documents = list(documents)
        logger.info(
            f"Analyzing {len(documents)} documents "
            f"(limit: {self.max_concurrency})"
        )

        semaphore = asyncio.Semaphore(self.max_concurrency)

        async def process(raw: RawDocument) -> AnalysisOutcome:
            async with semaphore:
                return await self.analyze_async(raw, allow_low_quality)

        return list(await asyncio.gather(*(process(d) for d in documents)))

    def _analyze_extracted(
        self,
        extracted: ExtractedText,
        filename: str | None,
        allow_low_quality: bool | None
    ) -> RiskReport:
        name = filename or "<unnamed>"
        allow = self.allow_low_quality if allow_low_quality is None else allow_low_quality

        # Step 1: Quality gate
        quality = assess_quality(extracted.text)
        if not quality.is_meaningful:
            if not allow:
                raise LowQualityTextError(
                    "Extracted text appears to be corrupted or garbled.",
                    details={"quality": quality.to_dict()}
                )
            logger.warning(f"[{name}] Low quality text, continuing: {quality.reason}")

        # Step 2: Normalization
        normalized = normalize(extracted.text, extracted.media_type)
        logger.info(f"[{name}] Normalized to {len(normalized)} characters")

        # Step 3: Scanning
        findings = self.scanner.scan(normalized)
        indicators = self.scanner.detect_indicators(normalized)

        # Step 4: Aggregation
        report = self.aggregator.aggregate(
            findings,
            normalized,
            indicators=indicators,
            low_confidence=not quality.is_meaningful
        )
        report.metadata = {
            "filename": filename,
            "media_type": extracted.media_type.value,
            "extraction_method": extracted.method,
            "page_count": extracted.page_count,
            "character_count": len(normalized),
            "quality": quality.to_dict()
        }
        logger.info(
            f"[{name}] Report complete: {report.finding_count} findings, "
            f"level {report.overall_risk_level.value}"
        )
        return report

    def _outcome(
        self,
        filename: str | None,
        start_time: float,
        report: RiskReport | None = None,
        error: AnalysisError | None = None
    ) -> AnalysisOutcome:
        return AnalysisOutcome(
            report=report,
            error=error,
            filename=filename,
            processing_time_seconds=time.perf_counter() - start_time
        )

    def _log_failure(self, filename: str | None, error: AnalysisError) -> None:
        logger.warning(
            f"Analysis of {filename or '<unnamed>'} failed: "
            f"{error.tag}: {error.message}"
        )


def analyze_document(
    content: bytes,
    media_type: str,
    filename: str | None = None,
    allow_low_quality: bool | None = None
) -> AnalysisOutcome:
    """Convenience wrapper: analyze one document with the default catalog."""
    raw = RawDocument(content=content, media_type=media_type, filename=filename)
    return DocumentAnalyzer().analyze(raw, allow_low_quality)
