"""
Lexi Risk Engine Module
=======================
Turns raw scanner findings into a deterministic, explainable risk report.

Key Features:
- Overlap resolution per category
- Severity assignment from the rule catalog
- Risk-keyword density score
- Category aggregation and plain-language summary
"""

import logging
import math
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any

from core.catalog import (
    CATEGORY_DISPLAY_NAMES,
    RiskCatalog,
    RiskCategory,
    RiskLevel,
    get_catalog,
)
from core.config import CRITICAL_ESCALATION_COUNT, RISK_LEVELS, WORDS_PER_MINUTE
from core.normalizer import NormalizedText
from core.scanner import IndicatorMatch, RiskFinding, sort_findings

logger = logging.getLogger(__name__)


@dataclass
class CategorySummary:
    """Findings grouped under one category."""
    category: RiskCategory
    category_display: str
    finding_count: int
    highest_severity: RiskLevel

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        return {
            "category": self.category.value,
            "category_display": self.category_display,
            "finding_count": self.finding_count,
            "highest_severity": self.highest_severity.value
        }


@dataclass
class RiskReport:
    """Complete, read-only result of analyzing one document."""
    findings: list[RiskFinding]
    density_score: float
    word_count: int
    overall_risk_level: RiskLevel
    category_summaries: list[CategorySummary]
    indicators: list[IndicatorMatch]
    summary: str
    catalog_version: str
    estimated_read_minutes: int
    low_confidence: bool = False
    analyzed_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    metadata: dict[str, Any] = field(default_factory=dict)

    @property
    def finding_count(self) -> int:
        return len(self.findings)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        return {
            "analyzed_at": self.analyzed_at.isoformat(),
            "findings": [f.to_dict() for f in self.findings],
            "finding_count": self.finding_count,
            "density_score": round(self.density_score, 4),
            "word_count": self.word_count,
            "overall_risk_level": self.overall_risk_level.value,
            "category_summaries": [c.to_dict() for c in self.category_summaries],
            "indicators": [i.to_dict() for i in self.indicators],
            "summary": self.summary,
            "catalog_version": self.catalog_version,
            "estimated_read_minutes": self.estimated_read_minutes,
            "low_confidence": self.low_confidence,
            "metadata": self.metadata
        }


def count_occurrences(haystack: str, needle: str) -> int:
    """Count substring occurrences, overlaps included."""
    if not needle:
        return 0
    count = 0
    index = haystack.find(needle)
    while index != -1:
        count += 1
        index = haystack.find(needle, index + 1)
    return count


def severity_rank(level: RiskLevel) -> int:
    return RISK_LEVELS[level.value]["rank"]


class RiskAggregator:
    """
    Builds the final risk report from scanner findings.

    Methodology:
    1. Drop findings fully contained in an earlier finding of the same category
    2. Assign each finding its rule's severity
    3. Compute keyword density (occurrences / word count)
    4. Derive the overall level from the most severe finding, escalating to
       critical when high-severity findings pile up

    All calculations are deterministic.
    """

    def __init__(self, catalog: RiskCatalog | None = None):
        self.catalog = catalog or get_catalog()
        self.category_names = CATEGORY_DISPLAY_NAMES

    def aggregate(
        self,
        findings: list[RiskFinding],
        text: NormalizedText | str,
        indicators: list[IndicatorMatch] | None = None,
        low_confidence: bool = False
    ) -> RiskReport:
        """
        Aggregate findings into a report.

        Args:
            findings: Raw scanner output
            text: The normalized text the findings point into
            indicators: Document-level indicator matches
            low_confidence: Whether the text failed the quality gate

        Returns:
            RiskReport with findings ordered by span start
        """
        content = text.text if isinstance(text, NormalizedText) else text
        word_count = len(content.split())

        # Step 1: Overlap resolution
        kept = self.deduplicate(findings)

        # Step 2: Severity
        for finding in kept:
            finding.severity = self._severity_for(finding).value

        # Step 3: Density
        density = self.density_score(content, word_count)

        # Step 4: Overall level and category roll-up
        overall_level = self._overall_level(kept)
        category_summaries = self._aggregate_by_category(kept)

        summary = self._generate_summary(
            overall_level, kept, category_summaries, density, low_confidence
        )

        logger.info(
            f"Aggregated {len(findings)} findings into {len(kept)}; "
            f"density {density:.4f}, level {overall_level.value}"
        )

        return RiskReport(
            findings=kept,
            density_score=density,
            word_count=word_count,
            overall_risk_level=overall_level,
            category_summaries=category_summaries,
            indicators=list(indicators or []),
            summary=summary,
            catalog_version=self.catalog.version,
            estimated_read_minutes=math.ceil(word_count / WORDS_PER_MINUTE),
            low_confidence=low_confidence
        )

    def deduplicate(self, findings: list[RiskFinding]) -> list[RiskFinding]:
        """
        Collapse findings whose spans fully overlap within one category.

        The first finding by start offset (then rule id) is kept; any later
        finding of the same category that it contains, or that contains it,
        is dropped.

        Findings arrive sorted by start, so every kept finding starts at or
        before the current one. It is contained in some kept finding exactly
        when the furthest kept end reaches its end, and it contains one only
        when a kept finding shares its start.
        """
        kept: list[RiskFinding] = []
        furthest_end: dict[RiskCategory, int] = {}
        latest_start: dict[RiskCategory, int] = {}
        for finding in sort_findings(findings):
            category = finding.category
            if category in furthest_end and (
                furthest_end[category] >= finding.end
                or latest_start[category] == finding.start
            ):
                continue
            kept.append(finding)
            furthest_end[category] = max(furthest_end.get(category, finding.end), finding.end)
            latest_start[category] = finding.start
        return kept

    def density_score(self, content: str, word_count: int | None = None) -> float:
        """Risk-keyword occurrences per word; 0.0 for empty text."""
        if word_count is None:
            word_count = len(content.split())
        if word_count <= 0:
            return 0.0

        lowered = content.lower()
        occurrences = sum(
            count_occurrences(lowered, keyword.lower())
            for keyword in self.catalog.risk_keywords
        )
        return occurrences / word_count

    def _severity_for(self, finding: RiskFinding) -> RiskLevel:
        rule = self.catalog.get_rule(finding.rule_id)
        if rule is not None:
            return rule.default_severity
        return RiskLevel.LOW

    def _overall_level(self, findings: list[RiskFinding]) -> RiskLevel:
        if not findings:
            return RiskLevel.MINIMAL

        levels = [RiskLevel(f.severity) for f in findings]
        high_count = sum(
            1 for level in levels
            if level in [RiskLevel.CRITICAL, RiskLevel.HIGH]
        )
        if high_count >= CRITICAL_ESCALATION_COUNT:
            return RiskLevel.CRITICAL
        return max(levels, key=severity_rank)

    def _aggregate_by_category(
        self,
        findings: list[RiskFinding]
    ) -> list[CategorySummary]:
        """Group findings by category, most severe categories first."""
        categories: dict[RiskCategory, list[RiskFinding]] = {}
        for finding in findings:
            categories.setdefault(finding.category, []).append(finding)

        summaries = [
            CategorySummary(
                category=category,
                category_display=self.category_names.get(category, category.value),
                finding_count=len(items),
                highest_severity=max(
                    (RiskLevel(f.severity) for f in items), key=severity_rank
                )
            )
            for category, items in categories.items()
        ]
        summaries.sort(
            key=lambda s: (-severity_rank(s.highest_severity), -s.finding_count, s.category.value)
        )
        return summaries

    def _generate_summary(
        self,
        overall_level: RiskLevel,
        findings: list[RiskFinding],
        category_summaries: list[CategorySummary],
        density: float,
        low_confidence: bool
    ) -> str:
        """Generate human-readable summary of the assessment."""
        level_descriptions = {
            RiskLevel.CRITICAL: "requires careful review before signing",
            RiskLevel.HIGH: "contains clauses that may significantly affect you",
            RiskLevel.MEDIUM: "has provisions worth reviewing",
            RiskLevel.LOW: "has minor provisions that may warrant review",
            RiskLevel.MINIMAL: "contains no flagged risk clauses"
        }

        summary_parts = [
            f"This document is rated {overall_level.value.upper()} risk and "
            f"{level_descriptions[overall_level]}."
        ]

        if findings:
            summary_parts.append(
                f"{len(findings)} risk clause(s) were flagged."
            )
            cat_names = [c.category_display for c in category_summaries[:3]]
            summary_parts.append(f"Main areas: {', '.join(cat_names)}.")

        summary_parts.append(f"Risk keyword density is {density:.3f} per word.")

        if low_confidence:
            summary_parts.append(
                "The extracted text looked garbled, so results are low confidence."
            )

        return " ".join(summary_parts)
