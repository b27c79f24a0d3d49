from dataclasses import replace

import pytest

from tariff_comparator.catalog.models import Promotion
from tariff_comparator.catalog.offer_builder import build_metadata_document
from tariff_comparator.validation.catalog_validator import (
    CatalogValidationError,
    assert_build_invariants,
    validate_catalog,
)


@pytest.fixture
def meta(catalog):
    return build_metadata_document(catalog)


def test_built_catalog_passes(offers, meta):
    report = validate_catalog(offers, meta)
    assert report["passed"] is True
    assert report["failures"] == []


def test_empty_catalog_fails(meta):
    report = validate_catalog([], meta)
    assert report["passed"] is False


def test_non_electricity_offer_fails(offers, meta):
    tampered = list(offers) + [replace(offers[0], supply_type="GN", proposal_code="GN01")]
    report = validate_catalog(tampered, meta)
    assert report["passed"] is False
    assert any(f.startswith("ELE-only catalog") for f in report["failures"])


def test_applied_promotions_fail(offers, meta):
    meta["build"]["statistics"]["promotionsAppliedCount"] = 1
    report = validate_catalog(offers, meta)
    assert any("promotionsAppliedCount" in f for f in report["failures"])


def test_missing_discovery_section_fails(offers, meta):
    del meta["discovery"]
    assert validate_catalog(offers, meta)["passed"] is False


def test_promotion_ranges_checked(offers, meta):
    broken = replace(offers[0], promotion=Promotion(0.0, 30, 13, False))
    report = validate_catalog([broken] + list(offers[1:]), meta)
    failures = " ".join(report["failures"])
    assert "fixedEuroMonth" in failures
    assert "durationMonthsApplied" in failures
    assert "durationMonthsExtracted" in failures


def test_invalid_tariff_structure_is_a_warning(offers, meta):
    report = validate_catalog(list(offers) + [replace(offers[0], tariff_structure=4)], meta)
    assert report["passed"] is True
    assert any(w.startswith("tariff structures valid") for w in report["warnings"])


def test_lock_in_without_details_fails(offers, meta):
    report = validate_catalog(list(offers) + [replace(offers[0], has_lock_in=True)], meta)
    assert any(f.startswith("lock-in fields coherent") for f in report["failures"])


def test_expensive_sample_cost_is_a_warning(offers, meta):
    expensive = replace(offers[0], fixed_daily_rate=40.0)
    report = validate_catalog([expensive] + list(offers[1:]), meta)
    assert report["passed"] is True
    assert any(w.startswith("sample costs plausible") for w in report["warnings"])


def test_suspiciously_cheap_sample_cost_is_a_warning(offers, meta):
    cheap = replace(offers[0], fixed_daily_rate=0.001, peak_rate=0.001)
    report = validate_catalog([cheap] + list(offers[1:]), meta)
    assert report["passed"] is True
    assert any("implausible cost" in w for w in report["warnings"])


def test_non_standard_power_is_a_warning(offers, meta):
    report = validate_catalog(list(offers) + [replace(offers[0], power_kva=5.0)], meta)
    assert report["passed"] is True
    assert any("non-standard power" in w for w in report["warnings"])


def test_assert_build_invariants():
    assert_build_invariants({"promotionsAppliedCount": 0})
    with pytest.raises(CatalogValidationError):
        assert_build_invariants({"promotionsAppliedCount": 2})
    with pytest.raises(CatalogValidationError):
        assert_build_invariants({})
