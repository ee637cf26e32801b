"""
Lexi Clause Scanner Module
==========================
Applies the clause pattern catalog to normalized text.

Matching is a bounded-window ordered search: find a group-A term, then look
for a group-B term starting inside the rule's proximity window after it.
Terms are escaped literals, so a match is plain case-insensitive substring
containment and every offset maps directly onto the normalized text.
"""

import logging
import re
from dataclasses import dataclass, field
from functools import lru_cache
from typing import Any

from core.catalog import RiskCatalog, RiskCategory, RiskIndicator, RiskRule, get_catalog
from core.normalizer import NormalizedText

logger = logging.getLogger(__name__)


@dataclass
class RiskFinding:
    """A span of normalized text matching one rule."""
    rule_id: str
    category: RiskCategory
    start: int
    end: int  # exclusive
    explanation: str
    matched_text: str
    severity: str | None = None

    @property
    def length(self) -> int:
        return self.end - self.start

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        return {
            "rule_id": self.rule_id,
            "category": self.category.value,
            "start": self.start,
            "end": self.end,
            "explanation": self.explanation,
            "matched_text": self.matched_text,
            "severity": self.severity
        }


@dataclass
class IndicatorMatch:
    """A common risk indicator present somewhere in the document."""
    name: str
    explanation: str
    occurrences: int
    first_position: int
    terms_found: list[str] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        return {
            "name": self.name,
            "explanation": self.explanation,
            "occurrences": self.occurrences,
            "first_position": self.first_position,
            "terms_found": self.terms_found
        }


@lru_cache(maxsize=512)
def compile_terms(terms: tuple[str, ...]) -> re.Pattern:
    """
    Compile a term group into one case-insensitive alternation.

    Longer terms come first so that, at a given position, the most specific
    term wins.
    """
    ordered = sorted(set(terms), key=lambda t: (-len(t), t))
    return re.compile("|".join(re.escape(t) for t in ordered), re.IGNORECASE)


@lru_cache(maxsize=512)
def compile_term_list(terms: tuple[str, ...]) -> tuple[re.Pattern, ...]:
    """One case-insensitive pattern per term, longest first."""
    ordered = sorted(set(terms), key=lambda t: (-len(t), t))
    return tuple(re.compile(re.escape(t), re.IGNORECASE) for t in ordered)


def sort_findings(findings: list[RiskFinding]) -> list[RiskFinding]:
    """Order by span start; ties broken by rule id."""
    return sorted(findings, key=lambda f: (f.start, f.rule_id))


class ClauseScanner:
    """
    Finds risk clauses in normalized text.

    For each rule the scanner walks the text left to right:
    1. Locate the earliest group-A term at or after the cursor
    2. Search for a group-B term starting inside the proximity window,
       trying shorter group-A terms at the same position when the longest
       one leaves no target in range
    3. On success emit a finding and move the cursor to its end;
       otherwise retry from the next group-A occurrence

    A rule never yields overlapping findings, and a rule with no match
    simply contributes nothing.
    """

    def __init__(self, catalog: RiskCatalog | None = None):
        self.catalog = catalog or get_catalog()

    def scan(self, text: NormalizedText | str) -> list[RiskFinding]:
        """
        Scan text against every rule in the catalog.

        Returns:
            Findings sorted by span start, ties by rule id
        """
        content = text.text if isinstance(text, NormalizedText) else text
        findings: list[RiskFinding] = []

        for rule in self.catalog.rules:
            findings.extend(self._scan_rule(content, rule))

        logger.info(
            f"Scanned {len(content)} characters against "
            f"{len(self.catalog.rules)} rules: {len(findings)} findings"
        )
        return sort_findings(findings)

    def _scan_rule(self, content: str, rule: RiskRule) -> list[RiskFinding]:
        signature = rule.signature
        trigger_pattern = compile_terms(signature.group_a)
        trigger_terms = compile_term_list(signature.group_a)
        target_pattern = compile_terms(signature.group_b)
        longest_target = max(len(t) for t in signature.group_b)

        findings = []
        cursor = 0
        while cursor < len(content):
            found = trigger_pattern.search(content, cursor)
            if found is None:
                break

            # Shorter terms sharing the position get their own window
            for term_pattern in trigger_terms:
                trigger = term_pattern.match(content, found.start())
                if trigger is None:
                    continue
                target = self._find_target(
                    content, trigger.end(), target_pattern, rule, longest_target
                )
                if target is not None:
                    break
            else:
                cursor = found.start() + 1
                continue

            start, end = trigger.start(), target.end()
            findings.append(RiskFinding(
                rule_id=rule.rule_id,
                category=rule.category,
                start=start,
                end=end,
                explanation=rule.explain(trigger.group(0), target.group(0)),
                matched_text=content[start:end]
            ))
            cursor = end

        return findings

    def _find_target(
        self,
        content: str,
        trigger_end: int,
        target_pattern: re.Pattern,
        rule: RiskRule,
        longest_target: int
    ) -> re.Match | None:
        """First group-B term starting inside the window after ``trigger_end``."""
        window_start = trigger_end + rule.signature.min_gap
        window_end = trigger_end + rule.signature.max_gap
        target = target_pattern.search(
            content,
            window_start,
            min(len(content), window_end + longest_target)
        )
        if target is None or target.start() > window_end:
            return None
        return target

    def detect_indicators(self, text: NormalizedText | str) -> list[IndicatorMatch]:
        """Report which common risk indicators appear in the text."""
        content = text.text if isinstance(text, NormalizedText) else text
        matches = []
        for indicator in self.catalog.indicators:
            match = self._match_indicator(content, indicator)
            if match:
                matches.append(match)
        return sorted(matches, key=lambda m: (m.first_position, m.name))

    def _match_indicator(
        self,
        content: str,
        indicator: RiskIndicator
    ) -> IndicatorMatch | None:
        hits = list(compile_terms(indicator.terms).finditer(content))
        if not hits:
            return None
        return IndicatorMatch(
            name=indicator.name,
            explanation=indicator.explanation,
            occurrences=len(hits),
            first_position=hits[0].start(),
            terms_found=sorted({h.group(0).lower() for h in hits})
        )


def scan(text: NormalizedText | str, catalog: RiskCatalog | None = None) -> list[RiskFinding]:
    """Scan text with a catalog (the process-wide one by default)."""
    return ClauseScanner(catalog).scan(text)
