"""
Tests for the clause pattern catalog.
"""
import dataclasses
import json

import pytest

from core.catalog import (
    CATALOG_VERSION,
    CATEGORY_DISPLAY_NAMES,
    CATEGORY_SEVERITY,
    ProximitySignature,
    RiskCatalog,
    RiskCategory,
    RiskLevel,
    build_default_catalog,
    get_catalog,
    load_catalog,
)
from core.scanner import ClauseScanner


class TestDefaultCatalog:
    """Tests for the built-in rules."""

    def test_rules_have_unique_ids(self):
        catalog = build_default_catalog()
        ids = [r.rule_id for r in catalog.rules]

        assert len(ids) == len(set(ids))
        assert len(ids) == 10

    def test_windows_are_valid(self):
        for rule in build_default_catalog().rules:
            assert 0 <= rule.signature.min_gap <= rule.signature.max_gap <= 200

    def test_every_category_has_severity_and_name(self):
        for category in RiskCategory:
            assert category in CATEGORY_SEVERITY
            assert category in CATEGORY_DISPLAY_NAMES

    def test_risk_keywords_present(self):
        keywords = build_default_catalog().risk_keywords

        assert "indemnify" in keywords
        assert "limitation of liability" in keywords
        assert "entire agreement" in keywords

    def test_get_catalog_is_shared(self):
        assert get_catalog() is get_catalog()
        assert get_catalog().version == CATALOG_VERSION


class TestImmutability:
    """Rules and catalogs cannot be changed at runtime."""

    def test_rule_is_frozen(self):
        rule = build_default_catalog().rules[0]

        with pytest.raises(dataclasses.FrozenInstanceError):
            rule.explanation_template = "changed"

    def test_catalog_is_frozen(self):
        catalog = build_default_catalog()

        with pytest.raises(dataclasses.FrozenInstanceError):
            catalog.rules = ()
        assert isinstance(catalog.rules, tuple)


class TestValidation:
    """Malformed rules are rejected when the catalog is built."""

    def test_inverted_window(self):
        with pytest.raises(ValueError):
            ProximitySignature(("a",), ("b",), 50, 10)

    def test_empty_group(self):
        with pytest.raises(ValueError):
            ProximitySignature((), ("b",), 0, 10)

    def test_duplicate_rule_ids(self):
        base = build_default_catalog()

        with pytest.raises(ValueError, match="Duplicate rule id"):
            RiskCatalog(
                version="x",
                rules=base.rules + (base.rules[0],),
                risk_keywords=(),
                indicators=(),
            )


class TestExtensionCatalog:
    """Adding rules is a data-only change."""

    def test_loaded_rule_is_scanned(self, tmp_path):
        path = tmp_path / "extra.json"
        path.write_text(json.dumps({
            "version": "acme.1",
            "rules": [{
                "rule_id": "auto_renewal",
                "category": "termination",
                "group_a": ["renew automatically", "auto-renew"],
                "group_b": ["unless", "notice"],
                "min_gap": 5,
                "max_gap": 120,
                "explanation": "Watch for '{trigger}': this term renews on its own.",
                "severity": "medium"
            }],
            "risk_keywords": ["auto-renew"]
        }))

        catalog = load_catalog(path)
        rule = catalog.get_rule("auto_renewal")

        assert catalog.version == f"{CATALOG_VERSION}+acme.1"
        assert len(catalog.rules) == 11
        assert rule.default_severity == RiskLevel.MEDIUM
        assert "auto-renew" in catalog.risk_keywords

        findings = ClauseScanner(catalog).scan(
            "This subscription will renew automatically each year unless either "
            "party objects."
        )
        assert [f.rule_id for f in findings] == ["auto_renewal"]
        assert findings[0].explanation == (
            "Watch for 'renew automatically': this term renews on its own."
        )

    def test_invalid_file_rejected(self, tmp_path):
        path = tmp_path / "bad.json"
        path.write_text(json.dumps({
            "rules": [{
                "rule_id": "broken",
                "category": "not_a_category",
                "group_a": ["x"],
                "group_b": ["y"],
                "explanation": "x"
            }]
        }))

        with pytest.raises(ValueError, match="Invalid catalog file"):
            load_catalog(path)

    def test_unknown_placeholder_rejected(self, tmp_path):
        path = tmp_path / "placeholder.json"
        path.write_text(json.dumps({
            "rules": [{
                "rule_id": "bad_template",
                "category": "other",
                "group_a": ["x"],
                "group_b": ["y"],
                "explanation": "Uses {unknown}"
            }]
        }))

        with pytest.raises(ValueError):
            load_catalog(path)
