"""
Lexi Clause Pattern Catalog
===========================
Static, versioned table of legal-risk rules.

Each rule pairs a two-part proximity signature with a category and an
explanation template. The scanner only ever reads rule data, so new rules
are added here (or in an extension JSON file) without touching scan logic.

The catalog is built once per process and shared read-only.
"""

import json
import logging
from dataclasses import dataclass
from enum import Enum
from functools import lru_cache
from pathlib import Path
from typing import Any

from pydantic import BaseModel, Field, ValidationError, model_validator

from core.config import get_settings

logger = logging.getLogger(__name__)

CATALOG_VERSION = "2024.1"


class RiskCategory(str, Enum):
    """Closed set of clause risk categories."""
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


class RiskLevel(str, Enum):
    """Risk level categories."""
    CRITICAL = "critical"
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"
    MINIMAL = "minimal"


# Default severity of a finding in each category
CATEGORY_SEVERITY = {
    RiskCategory.LIABILITY: RiskLevel.HIGH,
    RiskCategory.DISPUTE_RESOLUTION: RiskLevel.HIGH,
    RiskCategory.RESTRICTIVE_COVENANT: RiskLevel.HIGH,
    RiskCategory.TERMINATION: RiskLevel.HIGH,
    RiskCategory.CONFIDENTIALITY: RiskLevel.MEDIUM,
    RiskCategory.PAYMENT: RiskLevel.MEDIUM,
    RiskCategory.ASSIGNMENT: RiskLevel.MEDIUM,
    RiskCategory.GOVERNING_LAW: RiskLevel.LOW,
    RiskCategory.AMENDMENT: RiskLevel.LOW,
    RiskCategory.OTHER: RiskLevel.LOW,
}

# Category display names
CATEGORY_DISPLAY_NAMES = {
    RiskCategory.LIABILITY: "Liability & Indemnification",
    RiskCategory.CONFIDENTIALITY: "Confidentiality",
    RiskCategory.TERMINATION: "Termination Rights",
    RiskCategory.DISPUTE_RESOLUTION: "Dispute Resolution",
    RiskCategory.RESTRICTIVE_COVENANT: "Restrictive Covenants",
    RiskCategory.PAYMENT: "Payment Terms",
    RiskCategory.GOVERNING_LAW: "Governing Law & Venue",
    RiskCategory.ASSIGNMENT: "Assignment Rights",
    RiskCategory.AMENDMENT: "Amendment Provisions",
    RiskCategory.OTHER: "Other Provisions",
}


@dataclass(frozen=True)
class ProximitySignature:
    """
    Two term groups that must co-occur in order.

    A group-B term must start between ``min_gap`` and ``max_gap`` characters
    after the end of the group-A term. Terms are literal, case-insensitive
    substrings; no word boundaries are required.
    """
    group_a: tuple[str, ...]
    group_b: tuple[str, ...]
    min_gap: int
    max_gap: int

    def __post_init__(self):
        if not self.group_a or not self.group_b:
            raise ValueError("Both term groups need at least one term")
        if any(not term for term in self.group_a + self.group_b):
            raise ValueError("Terms must be non-empty strings")
        if not 0 <= self.min_gap <= self.max_gap:
            raise ValueError(
                f"Invalid proximity window {self.min_gap}-{self.max_gap}"
            )


@dataclass(frozen=True)
class RiskRule:
    """A single catalog entry."""
    rule_id: str
    category: RiskCategory
    signature: ProximitySignature
    explanation_template: str
    severity: RiskLevel | None = None

    @property
    def default_severity(self) -> RiskLevel:
        return self.severity or CATEGORY_SEVERITY[self.category]

    def explain(self, trigger: str, target: str) -> str:
        """Render the explanation; templates may use {trigger} and {target}."""
        return self.explanation_template.format(trigger=trigger, target=target)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        return {
            "rule_id": self.rule_id,
            "category": self.category.value,
            "group_a": list(self.signature.group_a),
            "group_b": list(self.signature.group_b),
            "min_gap": self.signature.min_gap,
            "max_gap": self.signature.max_gap,
            "explanation": self.explanation_template,
            "severity": self.default_severity.value
        }


@dataclass(frozen=True)
class RiskIndicator:
    """Single-term document-level flag, reported once per document."""
    name: str
    terms: tuple[str, ...]
    explanation: str

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        return {
            "name": self.name,
            "terms": list(self.terms),
            "explanation": self.explanation
        }


@dataclass(frozen=True)
class RiskCatalog:
    """Immutable bundle of everything the scanner and aggregator read."""
    version: str
    rules: tuple[RiskRule, ...]
    risk_keywords: tuple[str, ...]
    indicators: tuple[RiskIndicator, ...]

    def __post_init__(self):
        seen: set[str] = set()
        for rule in self.rules:
            if rule.rule_id in seen:
                raise ValueError(f"Duplicate rule id: {rule.rule_id}")
            seen.add(rule.rule_id)

    def get_rule(self, rule_id: str) -> RiskRule | None:
        for rule in self.rules:
            if rule.rule_id == rule_id:
                return rule
        return None

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        return {
            "version": self.version,
            "rules": [r.to_dict() for r in self.rules],
            "risk_keywords": list(self.risk_keywords),
            "indicators": [i.to_dict() for i in self.indicators]
        }


# Proximity windows (characters between trigger end and target start)
INDEMNIFICATION_WINDOW = (10, 200)
LIABILITY_LIMIT_WINDOW = (10, 150)
ARBITRATION_WINDOW = (10, 150)
TERMINATION_WINDOW = (10, 150)
CONFIDENTIALITY_WINDOW = (10, 150)
NON_COMPETE_WINDOW = (10, 200)
PAYMENT_WINDOW = (10, 150)
GOVERNING_LAW_WINDOW = (10, 150)
ASSIGNMENT_WINDOW = (10, 100)
AMENDMENT_WINDOW = (10, 100)


def _rule(
    rule_id: str,
    category: RiskCategory,
    group_a: tuple[str, ...],
    group_b: tuple[str, ...],
    window: tuple[int, int],
    explanation: str,
) -> RiskRule:
    return RiskRule(
        rule_id=rule_id,
        category=category,
        signature=ProximitySignature(group_a, group_b, *window),
        explanation_template=explanation,
    )


DEFAULT_RULES: tuple[RiskRule, ...] = (
    _rule(
        "indemnification",
        RiskCategory.LIABILITY,
        ("indemnify", "indemnification", "hold harmless"),
        ("liability", "damages", "losses"),
        INDEMNIFICATION_WINDOW,
        "This indemnification clause may transfer significant liability to you.",
    ),
    _rule(
        "liability_limitation",
        RiskCategory.LIABILITY,
        ("limitation of liability", "limit liability", "liability limit"),
        ("direct damages", "consequential damages"),
        LIABILITY_LIMIT_WINDOW,
        "This clause may severely limit your ability to recover damages.",
    ),
    _rule(
        "arbitration_waiver",
        RiskCategory.DISPUTE_RESOLUTION,
        ("arbitration", "dispute resolution"),
        ("jury trial", "class action"),
        ARBITRATION_WINDOW,
        "This arbitration clause may prevent you from pursuing class actions "
        "or jury trials.",
    ),
    _rule(
        "termination_discretion",
        RiskCategory.TERMINATION,
        ("termination", "cancel"),
        ("without cause", "sole discretion", "immediately"),
        TERMINATION_WINDOW,
        "This termination clause may allow the other party to end the "
        "agreement easily.",
    ),
    _rule(
        "perpetual_confidentiality",
        RiskCategory.CONFIDENTIALITY,
        ("confidentiality", "non-disclosure"),
        ("perpetual", "indefinite", "survive"),
        CONFIDENTIALITY_WINDOW,
        "This confidentiality clause may impose indefinite restrictions on "
        "information sharing.",
    ),
    _rule(
        "non_compete",
        RiskCategory.RESTRICTIVE_COVENANT,
        ("non-compete", "non-solicit"),
        ("employment", "business"),
        NON_COMPETE_WINDOW,
        "This non-compete clause may restrict your future employment or "
        "business opportunities.",
    ),
    _rule(
        "non_refundable_payment",
        RiskCategory.PAYMENT,
        ("payment", "fee"),
        ("non-refundable", "advance", "upfront"),
        PAYMENT_WINDOW,
        "This payment clause may require non-refundable fees regardless of "
        "service quality.",
    ),
    _rule(
        "governing_law",
        RiskCategory.GOVERNING_LAW,
        ("governing law", "jurisdiction", "venue"),
        ("state", "country"),
        GOVERNING_LAW_WINDOW,
        "This clause determines which state's laws apply and where disputes "
        "must be resolved.",
    ),
    _rule(
        "assignment_consent",
        RiskCategory.ASSIGNMENT,
        ("assignment",),
        ("without consent", "prior written consent"),
        ASSIGNMENT_WINDOW,
        "This assignment clause may restrict your ability to transfer rights "
        "under the agreement.",
    ),
    _rule(
        "amendment_writing",
        RiskCategory.AMENDMENT,
        ("amendment", "modification"),
        ("writing", "written consent"),
        AMENDMENT_WINDOW,
        "This amendment clause specifies how the agreement can be changed.",
    ),
)

RISK_KEYWORDS: tuple[str, ...] = (
    "indemnify", "indemnification", "hold harmless", "liability", "waiver",
    "warranty", "disclaimer", "confidential", "arbitration", "litigation",
    "penalty", "default", "termination", "non-refundable", "non-compete",
    "exclusive", "irrevocable", "sole discretion", "at your own risk",
    "as is", "without limitation", "consequential damages",
    "limitation of liability", "liquidated damages", "jurisdiction", "venue",
    "governing law", "severability", "force majeure", "assignment",
    "amendment", "notice", "entire agreement",
)

COMMON_RISK_INDICATORS: tuple[RiskIndicator, ...] = (
    RiskIndicator(
        "Automatic renewal clause",
        ("automatic renewal", "auto-renewal", "automatically renew"),
        "This contract may renew automatically without your explicit consent",
    ),
    RiskIndicator(
        "Rights waiver",
        ("waive", "waiver of", "waiving"),
        "You may be giving up certain legal rights",
    ),
    RiskIndicator(
        "Mandatory arbitration",
        ("arbitration", "binding arbitration"),
        "You may be required to resolve disputes through arbitration instead "
        "of court",
    ),
    RiskIndicator(
        "Indemnification clause",
        ("indemnify", "indemnification", "hold harmless"),
        "You may be responsible for legal costs or damages",
    ),
    RiskIndicator(
        "Penalty clause",
        ("liquidated damages", "penalty"),
        "Specific penalties for breach of contract are defined",
    ),
    RiskIndicator(
        "Non-compete clause",
        ("non-compete", "non compete", "noncompete"),
        "Restrictions on your ability to work in similar roles or industries",
    ),
    RiskIndicator(
        "Confidentiality requirements",
        ("confidential", "non-disclosure", "nda"),
        "Obligations to keep certain information secret",
    ),
)


# === Extension catalogs ===

class RuleDefinition(BaseModel):
    """A rule as written in an extension JSON file."""
    rule_id: str = Field(..., min_length=1)
    category: RiskCategory
    group_a: list[str] = Field(..., min_length=1)
    group_b: list[str] = Field(..., min_length=1)
    min_gap: int = Field(default=10, ge=0)
    max_gap: int = Field(default=150, ge=0)
    explanation: str = Field(..., min_length=1)
    severity: RiskLevel | None = None

    @model_validator(mode="after")
    def check_window(self) -> "RuleDefinition":
        if self.min_gap > self.max_gap:
            raise ValueError("min_gap must not exceed max_gap")
        try:
            self.explanation.format(trigger="", target="")
        except (KeyError, IndexError, ValueError) as e:
            raise ValueError(
                "explanation may only use {trigger} and {target} placeholders"
            ) from e
        return self

    def to_rule(self) -> RiskRule:
        return RiskRule(
            rule_id=self.rule_id,
            category=self.category,
            signature=ProximitySignature(
                tuple(self.group_a), tuple(self.group_b), self.min_gap, self.max_gap
            ),
            explanation_template=self.explanation,
            severity=self.severity,
        )


class CatalogDefinition(BaseModel):
    """Top-level shape of an extension JSON file."""
    version: str | None = None
    rules: list[RuleDefinition] = Field(default_factory=list)
    risk_keywords: list[str] = Field(default_factory=list)


def load_catalog(path: Path, base: RiskCatalog | None = None) -> RiskCatalog:
    """
    Build a catalog from a JSON extension file.

    Rules and keywords from the file are appended to ``base`` (the built-in
    catalog when omitted).

    Raises:
        ValueError: If the file is malformed or a rule id is duplicated
    """
    base = base or build_default_catalog()
    try:
        definition = CatalogDefinition.model_validate(
            json.loads(Path(path).read_text(encoding="utf-8"))
        )
    except (OSError, json.JSONDecodeError, ValidationError) as e:
        raise ValueError(f"Invalid catalog file {path}: {e}") from e

    version = base.version
    if definition.version:
        version = f"{base.version}+{definition.version}"

    logger.info(f"Loaded {len(definition.rules)} extension rules from {path}")

    return RiskCatalog(
        version=version,
        rules=base.rules + tuple(r.to_rule() for r in definition.rules),
        risk_keywords=base.risk_keywords + tuple(definition.risk_keywords),
        indicators=base.indicators,
    )


def build_default_catalog() -> RiskCatalog:
    return RiskCatalog(
        version=CATALOG_VERSION,
        rules=DEFAULT_RULES,
        risk_keywords=RISK_KEYWORDS,
        indicators=COMMON_RISK_INDICATORS,
    )


@lru_cache
def get_catalog() -> RiskCatalog:
    """
    Get the process-wide catalog.
    Uses lru_cache so the catalog is built once and shared read-only.
    """
    settings = get_settings()
    if settings.catalog_path:
        return load_catalog(settings.catalog_path)
    return build_default_catalog()
