"""
Lexi Core Module
================
Core business logic for legal document risk analysis.

Modules:
- extractor: Document ingestion and text extraction
- quality: Text quality gate
- normalizer: Text cleanup before scanning
- catalog: Versioned clause risk rules
- scanner: Proximity-pattern clause scanning
- risk_engine: Finding aggregation and reporting
- pipeline: End-to-end orchestration
- errors: Terminal error taxonomy
- config: Application configuration
"""

from core.catalog import (
    RiskCatalog,
    RiskCategory,
    RiskIndicator,
    RiskLevel,
    RiskRule,
    ProximitySignature,
    get_catalog,
    load_catalog,
)
from core.config import RISK_LEVELS, SUPPORTED_MEDIA_TYPES, get_settings
from core.errors import (
    AnalysisError,
    EmptyOrImageBasedDocumentError,
    ExtractionCancelledError,
    ExtractionFailureError,
    LowQualityTextError,
    UnsupportedFormatError,
)
from core.extractor import ExtractedText, FormatExtractor, MediaType, RawDocument
from core.normalizer import NormalizedText, normalize
from core.pipeline import AnalysisOutcome, DocumentAnalyzer, analyze_document
from core.quality import QualityAssessment, assess_quality, is_meaningful
from core.risk_engine import CategorySummary, RiskAggregator, RiskReport
from core.scanner import ClauseScanner, IndicatorMatch, RiskFinding, scan

__all__ = [
    # Extraction
    "FormatExtractor",
    "RawDocument",
    "ExtractedText",
    "MediaType",
    # Quality
    "assess_quality",
    "is_meaningful",
    "QualityAssessment",
    # Normalization
    "normalize",
    "NormalizedText",
    # Catalog
    "RiskCatalog",
    "RiskRule",
    "RiskCategory",
    "RiskIndicator",
    "RiskLevel",
    "ProximitySignature",
    "get_catalog",
    "load_catalog",
    # Scanning
    "ClauseScanner",
    "RiskFinding",
    "IndicatorMatch",
    "scan",
    # Aggregation
    "RiskAggregator",
    "RiskReport",
    "CategorySummary",
    # Pipeline
    "DocumentAnalyzer",
    "AnalysisOutcome",
    "analyze_document",
    # Errors
    "AnalysisError",
    "UnsupportedFormatError",
    "EmptyOrImageBasedDocumentError",
    "ExtractionFailureError",
    "LowQualityTextError",
    "ExtractionCancelledError",
    # Config
    "get_settings",
    "RISK_LEVELS",
    "SUPPORTED_MEDIA_TYPES",
]
