"""
workflow_manager.py
--------------------
🧠 Orchestrator for the tariff comparator: builds the offer catalog and
runs comparisons for the three consumption-profile input modes.

Purpose:
--------
Controls the end-to-end data flow:
    1️⃣ Load both regulator tables (both must be present)
    2️⃣ Build the offer catalog
    3️⃣ Validate the catalog (nothing is written on failure)
    4️⃣ Write offers.json + meta.json
and, at comparison time:
    - bill amount   -> estimated profile -> best offer + savings vs bill
    - manual profile -> best offer (+ savings vs current provider)
    - invoice PDF   -> extracted profile -> best offer + savings vs provider

Usage Example:
--------------
python -m tariff_comparator.orchestrator.workflow_manager
"""

import os
import sys
from datetime import date, datetime
from typing import Any, Dict, List, Optional, Sequence

from tariff_comparator.catalog.csv_parser import SourceDataError, load_source_table
from tariff_comparator.catalog.models import Offer, RankedOffer
from tariff_comparator.catalog.offer_builder import (
    build_catalog,
    build_metadata_document,
    write_catalog_outputs,
)
from tariff_comparator.catalog.providers import find_provider_code
from tariff_comparator.config import (
    CONDITIONS_FILE,
    DEFAULT_POWER_KVA,
    META_FILE,
    OFFERS_FILE,
    PRICES_FILE,
)
from tariff_comparator.document_processor.invoice_extractor import (
    InvoiceExtractionError,
    extract_text_from_pdf,
    parse_invoice_text,
)
from tariff_comparator.pricing.calculation_engine import ConsumptionDistribution, is_plausible_cost
from tariff_comparator.pricing.consumption_estimator import estimate_profile
from tariff_comparator.pricing.offer_selector import rank_offers, ranking_frame
from tariff_comparator.pricing.savings import (
    ranking_statistics,
    savings_vs_bill,
    savings_vs_current_provider,
)
from tariff_comparator.utils.data_paths import get_file_path
from tariff_comparator.utils.helpers import read_json, save_csv
from tariff_comparator.utils.logger import get_logger
from tariff_comparator.validation.catalog_validator import (
    CatalogValidationError,
    assert_build_invariants,
    validate_catalog,
)

logger = get_logger(__name__)

# ----------------------------------------------------------------------
# 1️⃣ Catalog build
# ----------------------------------------------------------------------

def run_offer_build(
    data_dir: Optional[str] = None,
    today: Optional[date] = None,
    built_at: Optional[datetime] = None,
) -> Dict[str, Any]:
    """
    Rebuild offers.json and meta.json from the two raw regulator tables.
    Returns the written meta document.

    Raises SourceDataError when a source is missing/empty and
    CatalogValidationError when the result fails validation; in both cases
    the previous snapshot is left untouched.
    """
    logger.info("🚀 Starting offer catalog build...")

    prices = load_source_table(get_file_path("raw", PRICES_FILE, data_dir))
    conditions = load_source_table(get_file_path("raw", CONDITIONS_FILE, data_dir))

    build = build_catalog(prices, conditions, today=today)
    assert_build_invariants(build.statistics)

    offers_path = get_file_path("processed", OFFERS_FILE, data_dir)
    meta_path = get_file_path("processed", META_FILE, data_dir)
    previous_meta = read_json(meta_path) if os.path.exists(meta_path) else {}
    meta = build_metadata_document(build, previous_meta, built_at)

    report = validate_catalog(build.offers, meta)
    if not report["passed"]:
        raise CatalogValidationError("; ".join(report["failures"]))

    write_catalog_outputs(build.offers, meta, offers_path, meta_path)
    logger.info(f"✅ Catalog build completed: {len(build.offers)} offers")
    return meta


def load_offer_catalog(path: Optional[str] = None) -> List[Offer]:
    """Read a catalog snapshot written by run_offer_build()."""
    path = path or get_file_path("processed", OFFERS_FILE)
    if not os.path.exists(path):
        logger.error(f"❌ Offer catalog not found: {path}")
        raise SourceDataError(f"Offer catalog not found: {path}")

    records = read_json(path)
    if not isinstance(records, list):
        raise SourceDataError(f"Offer catalog is not a list: {path}")

    offers = [Offer.from_dict(record) for record in records]
    logger.info(f"📦 Loaded {len(offers)} offers from {path}")
    return offers

# ----------------------------------------------------------------------
# 2️⃣ Comparisons
# ----------------------------------------------------------------------

def _comparison(profile: Dict[str, Any], ranked: List[RankedOffer], savings, current_monthly=None) -> Dict[str, Any]:
    best = ranked[0]
    plausible = is_plausible_cost(best.monthly_cost)
    if not plausible:
        logger.warning(
            f"⚠️ Best offer {best.offer.provider_code}/{best.offer.proposal_code} costs "
            f"{best.monthly_cost:.2f} €/month; outside the plausible band, check the source data"
        )
    return {
        "profile": profile,
        "best": best,
        "plausible": plausible,
        "ranked": ranked,
        "savings": savings,
        "statistics": ranking_statistics(ranked, current_monthly),
    }


def compare_from_bill(monthly_bill: float, offers: Sequence[Offer]) -> Dict[str, Any]:
    """Estimate mode: only the monthly bill amount is known."""
    profile = estimate_profile(monthly_bill, offers)
    ranked = rank_offers(offers, profile["consumption"], profile["power"], profile["tariff_structure"])
    return _comparison(profile, ranked, savings_vs_bill(ranked[0], monthly_bill), float(monthly_bill))


def compare_from_profile(
    consumption_kwh: float,
    power_kva: float,
    tariff_structure: int,
    offers: Sequence[Offer],
    current_provider: Optional[str] = None,
    distribution: Optional[ConsumptionDistribution] = None,
) -> Dict[str, Any]:
    """Precise mode: the user knows consumption, power and tariff structure."""
    profile = {
        "consumption": consumption_kwh,
        "power": power_kva,
        "tariff_structure": tariff_structure,
        "confidence": "precise",
    }
    ranked = rank_offers(offers, consumption_kwh, power_kva, tariff_structure, distribution)

    savings = None
    current_monthly = None
    if current_provider:
        savings = savings_vs_current_provider(
            offers, ranked[0], current_provider, consumption_kwh, power_kva, tariff_structure, distribution
        )
        if savings:
            current_monthly = ranked[0].monthly_cost + savings["monthly"]
    return _comparison(profile, ranked, savings, current_monthly)


def compare_from_invoice(pdf_path: str, offers: Sequence[Offer]) -> Dict[str, Any]:
    """Invoice mode: profile and current provider read from a PDF invoice."""
    invoice = parse_invoice_text(extract_text_from_pdf(pdf_path))
    if not invoice.consumption:
        raise InvoiceExtractionError(f"No consumption found in invoice {pdf_path}")

    distribution = None
    if invoice.tariff_type == 2 and invoice.off_peak_percent is not None:
        distribution = ConsumptionDistribution(off_peak=invoice.off_peak_percent / 100)

    result = compare_from_profile(
        invoice.consumption,
        invoice.normalized_power or DEFAULT_POWER_KVA,
        invoice.tariff_type,
        offers,
        current_provider=find_provider_code(invoice.provider) or None,
        distribution=distribution,
    )
    result["invoice"] = invoice
    return result


def export_ranking(ranked: Sequence[RankedOffer], filename: str = "ranking.csv", data_dir: Optional[str] = None) -> str:
    path = get_file_path("output", filename, data_dir)
    save_csv(ranking_frame(ranked), path)
    return path

# ----------------------------------------------------------------------
# 3️⃣ Entry Point
# ----------------------------------------------------------------------
if __name__ == "__main__":
    try:
        run_offer_build()
    except (SourceDataError, CatalogValidationError) as e:
        logger.error(f"❌ Catalog build failed: {e}")
        sys.exit(1)
