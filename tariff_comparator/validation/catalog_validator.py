"""
catalog_validator.py
---------------------
✅ Self-test run against a freshly built catalog before it is written.

Purpose:
--------
Catches data and regression problems in the build output: missing
fields, non-electricity offers and broken promotion metadata fail the
build, and so does a non-zero promotionsAppliedCount. Implausible sample
costs and unknown tariff structures are only warnings.

Workflow:
---------
1️⃣ Run each named check; a check returns a list of problem messages.
   CHECKS produce failures, WARNING_CHECKS produce warnings.
2️⃣ Collect failures and warnings into a report.
3️⃣ assert_build_invariants() raises CatalogValidationError on the
   statistics guard.

Outputs:
--------
- {"passed": bool, "failures": [...], "warnings": [...]}

Depends On:
-----------
- tariff_comparator.pricing.calculation_engine
- tariff_comparator.utils.logger
"""

import math
from typing import Any, Dict, List, Sequence

from tariff_comparator.catalog.models import Offer
from tariff_comparator.config import ELECTRICITY_SUPPLY, STANDARD_POWERS_KVA, TARIFF_STRUCTURES
from tariff_comparator.pricing.calculation_engine import calculate_monthly_cost, is_plausible_cost
from tariff_comparator.pricing.offer_selector import filter_candidates
from tariff_comparator.utils.logger import get_logger

logger = get_logger(__name__)

REQUIRED_FIELDS = ("COM", "COD_Proposta", "Pot_Cont", "Contagem", "TF", "TV|TVFV|TVP")
SAMPLE_CASES = ((250, 4.6), (150, 3.45), (400, 6.9))
SAMPLES_PER_CASE = 5
MAX_MESSAGES = 5


class CatalogValidationError(RuntimeError):
    """The built catalog failed validation and must not be published."""


def _check_required_fields(offers: Sequence[Offer], meta: Dict[str, Any]) -> List[str]:
    missing = []
    for index, offer in enumerate(offers):
        record = offer.to_dict()
        for name in REQUIRED_FIELDS:
            if record.get(name) in (None, ""):
                missing.append(f"offer {index}: missing {name}")
    return missing


def _check_electricity_only(offers, meta) -> List[str]:
    return [
        f"{o.provider_code}/{o.proposal_code}: fornecimento={o.supply_type!r}"
        for o in offers
        if o.supply_type and o.supply_type != ELECTRICITY_SUPPLY
    ]


def _check_lock_in_fields(offers, meta) -> List[str]:
    return [
        f"{o.provider_code}/{o.proposal_code}: lock-in without months or source"
        for o in offers
        if o.has_lock_in and o.lock_in_months is None and o.lock_in_source is None
    ]


def _check_promotions(offers, meta) -> List[str]:
    problems = []
    for o in offers:
        promo = o.promotion
        if promo is None:
            continue
        label = f"{o.provider_code}/{o.proposal_code}"
        if not (math.isfinite(promo.fixed_euro_month) and promo.fixed_euro_month > 0):
            problems.append(f"{label}: invalid fixedEuroMonth ({promo.fixed_euro_month})")
        applied = promo.duration_months_applied
        if applied is not None and not 0 <= applied <= 12:
            problems.append(f"{label}: invalid durationMonthsApplied ({applied})")
        extracted = promo.duration_months_extracted
        if extracted is not None and not 1 <= extracted <= 24:
            problems.append(f"{label}: invalid durationMonthsExtracted ({extracted})")
    return problems


def _check_numeric_fields(offers, meta) -> List[str]:
    problems = []
    for o in offers:
        for name, value in (("TF", o.fixed_daily_rate), ("TV", o.peak_rate), ("Pot_Cont", o.power_kva)):
            if not (math.isfinite(value) and value > 0):
                problems.append(f"{o.provider_code}/{o.proposal_code}: invalid {name} ({value})")
    return problems


def _check_tariff_structures(offers, meta) -> List[str]:
    return [
        f"{o.provider_code}/{o.proposal_code}: invalid Contagem ({o.tariff_structure})"
        for o in offers
        if o.tariff_structure not in TARIFF_STRUCTURES
    ]


def _check_sample_costs(offers, meta) -> List[str]:
    problems = []
    for consumption, power in SAMPLE_CASES:
        for offer in filter_candidates(offers, power, 1)[:SAMPLES_PER_CASE]:
            cost = calculate_monthly_cost(offer, consumption, power)
            if not is_plausible_cost(cost):
                problems.append(
                    f"{offer.provider_code}/{offer.proposal_code} ({consumption} kWh, {power} kVA): "
                    f"implausible cost {cost:.2f}"
                )
    return problems


def _check_meta_sections(offers, meta) -> List[str]:
    problems = []
    if not isinstance(meta.get("discovery"), dict):
        problems.append("meta missing discovery section")
    statistics = (meta.get("build") or {}).get("statistics")
    if not isinstance(statistics, dict):
        problems.append("meta missing build.statistics section")
    elif statistics.get("promotionsAppliedCount") != 0:
        problems.append(f"promotionsAppliedCount is {statistics.get('promotionsAppliedCount')!r}, expected 0")
    return problems


CHECKS = [
    ("required fields present", _check_required_fields),
    ("ELE-only catalog", _check_electricity_only),
    ("lock-in fields coherent", _check_lock_in_fields),
    ("promotion metadata sane", _check_promotions),
    ("numeric fields positive", _check_numeric_fields),
    ("meta sections present", _check_meta_sections),
]

# Row-level data problems; reported but never block publication.
WARNING_CHECKS = [
    ("tariff structures valid", _check_tariff_structures),
    ("sample costs plausible", _check_sample_costs),
]


def _summarize(messages: List[str]) -> str:
    head = "; ".join(messages[:MAX_MESSAGES])
    return head + ("..." if len(messages) > MAX_MESSAGES else "")


def validate_catalog(offers: Sequence[Offer], meta: Dict[str, Any]) -> Dict[str, Any]:
    """
    Run every catalog check. An empty catalog fails immediately.
    Unknown tariff structures, implausible sample costs, non-standard powers
    and a missing lock-in-free single-rate segment are reported as warnings.
    """
    failures: List[str] = []
    warnings: List[str] = []

    if not offers:
        failures.append("has offers: catalog is empty")
        logger.error("❌ Catalog validation: no offers")
        return {"passed": False, "failures": failures, "warnings": warnings}

    for name, check in CHECKS:
        problems = check(offers, meta or {})
        if problems:
            failures.append(f"{name}: {_summarize(problems)}")
            logger.error(f"❌ {name}: {len(problems)} problem(s)")
        else:
            logger.info(f"✅ {name}")

    for name, check in WARNING_CHECKS:
        problems = check(offers, meta or {})
        if problems:
            warnings.append(f"{name}: {_summarize(problems)}")

    non_standard = [o for o in offers if not any(math.isclose(o.power_kva, p) for p in STANDARD_POWERS_KVA)]
    if non_standard:
        warnings.append(f"{len(non_standard)} offers with non-standard power values")
    if not any(o.tariff_structure == 1 and not o.has_lock_in for o in offers):
        warnings.append("no single-rate offers without lock-in available for selection")
    for warning in warnings:
        logger.warning(f"⚠️ {warning}")

    passed = not failures
    logger.info(f"🧪 Catalog validation {'passed' if passed else 'FAILED'} ({len(failures)} failure(s))")
    return {"passed": passed, "failures": failures, "warnings": warnings}


def assert_build_invariants(statistics: Dict[str, Any]):
    """Promotions are metadata only; any applied promotion is a regression."""
    applied = statistics.get("promotionsAppliedCount")
    if applied != 0:
        logger.error(f"❌ promotionsAppliedCount = {applied!r}; promotions must never be applied")
        raise CatalogValidationError(f"promotionsAppliedCount must be 0, got {applied!r}")
