"""
Lexi API Schemas
================
Pydantic models for API request/response validation.
All API contracts are defined here for type safety and documentation.
"""

from datetime import datetime
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from core.config import MAX_TEXT_CHARACTERS


# === Enums ===

class RiskCategoryEnum(str, Enum):
    """Clause risk categories."""
    LIABILITY = "liability"
    CONFIDENTIALITY = "confidentiality"
    TERMINATION = "termination"
    DISPUTE_RESOLUTION = "dispute_resolution"
    RESTRICTIVE_COVENANT = "restrictive_covenant"
    PAYMENT = "payment"
    GOVERNING_LAW = "governing_law"
    ASSIGNMENT = "assignment"
    AMENDMENT = "amendment"
    OTHER = "other"


class RiskLevelEnum(str, Enum):
    """Risk level categories."""
    CRITICAL = "critical"
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"
    MINIMAL = "minimal"


class AnalysisStatusEnum(str, Enum):
    """Status of document analysis."""
    COMPLETED = "completed"


# === Finding Schemas ===

class FindingSchema(BaseModel):
    """A flagged clause."""
    rule_id: str = Field(..., description="Catalog rule that matched")
    category: RiskCategoryEnum = Field(..., description="Risk category")
    start: int = Field(..., ge=0, description="Span start in normalized text")
    end: int = Field(..., ge=0, description="Span end (exclusive) in normalized text")
    explanation: str = Field(..., description="Why the clause is risky")
    matched_text: str = Field(..., description="Text of the matched span")
    severity: RiskLevelEnum | None = None

    model_config = ConfigDict(json_schema_extra={
        "example": {
            "rule_id": "indemnification",
            "category": "liability",
            "start": 21,
            "end": 78,
            "explanation": "This indemnification clause may transfer significant liability to you.",
            "matched_text": "indemnify and hold harmless the Client from all liability",
            "severity": "high"
        }
    })


class IndicatorSchema(BaseModel):
    """A document-level risk indicator."""
    name: str
    explanation: str
    occurrences: int
    first_position: int
    terms_found: list[str]


class CategorySummarySchema(BaseModel):
    """Findings rolled up by category."""
    category: RiskCategoryEnum
    category_display: str
    finding_count: int
    highest_severity: RiskLevelEnum


class RiskReportSchema(BaseModel):
    """Complete risk assessment report."""
    analyzed_at: datetime
    findings: list[FindingSchema]
    finding_count: int
    density_score: float = Field(..., ge=0, description="Risk keywords per word")
    word_count: int = Field(..., ge=0)
    overall_risk_level: RiskLevelEnum
    category_summaries: list[CategorySummarySchema]
    indicators: list[IndicatorSchema]
    summary: str
    catalog_version: str
    estimated_read_minutes: int
    low_confidence: bool
    metadata: dict[str, Any] = Field(default_factory=dict)


# === Analysis Request/Response ===

class AnalyzeTextRequest(BaseModel):
    """Request to analyze plain text."""
    text: str = Field(..., max_length=MAX_TEXT_CHARACTERS, description="Document text")
    allow_low_quality: bool | None = Field(
        default=None,
        description="Continue when the text fails the quality gate"
    )


class AnalyzeResponse(BaseModel):
    """Response for document analysis."""
    status: AnalysisStatusEnum
    filename: str | None = None
    risk_report: RiskReportSchema | None = None
    processing_time_seconds: float | None = None


# === Quality Schemas ===

class QualityRequest(BaseModel):
    """Text to pre-validate."""
    text: str = Field(..., max_length=MAX_TEXT_CHARACTERS)


class QualityResponse(BaseModel):
    """Quality gate verdict and measurements."""
    is_meaningful: bool
    length: int
    word_count: int
    special_char_ratio: float
    average_word_length: float
    reason: str | None = None


# === Catalog Schemas ===

class RiskRuleSchema(BaseModel):
    """A catalog rule."""
    rule_id: str
    category: RiskCategoryEnum
    group_a: list[str]
    group_b: list[str]
    min_gap: int
    max_gap: int
    explanation: str
    severity: RiskLevelEnum


class RiskIndicatorSchema(BaseModel):
    """A catalog indicator."""
    name: str
    terms: list[str]
    explanation: str


class CatalogResponse(BaseModel):
    """The active clause pattern catalog."""
    version: str
    rules: list[RiskRuleSchema]
    risk_keywords: list[str]
    indicators: list[RiskIndicatorSchema]


class CategoryInfoSchema(BaseModel):
    """A category and its default severity."""
    category: RiskCategoryEnum
    category_display: str
    default_severity: RiskLevelEnum


# === Error Schemas ===

class ErrorResponse(BaseModel):
    """Standard error response."""
    error: str = Field(..., description="Error type")
    message: str = Field(..., description="Error message")
    details: dict[str, Any] | None = Field(None, description="Additional error details")

    model_config = ConfigDict(json_schema_extra={
        "example": {
            "error": "UnsupportedFormat",
            "message": "Unsupported file type: image/png",
            "details": {"accepted_types": ["application/pdf", "text/plain"]}
        }
    })


# === Health Check ===

class HealthCheckResponse(BaseModel):
    """API health check response."""
    status: str = Field(..., description="API status")
    version: str = Field(..., description="API version")
    timestamp: datetime = Field(..., description="Current server timestamp")
    services: dict[str, str] = Field(..., description="Status of dependent services")
