"""
consumption_estimator.py
-------------------------
📉 Approximate monthly consumption (kWh) from a monthly bill amount (€).

Purpose:
--------
Inverts the single-rate cost formula:
    kWh ≈ (bill / VAT − fixed daily rate × 30 − audiovisual) / (avg price + IEC)
The result is rounded and clamped to [50, 5000] kWh.

When a catalog is available, the fixed daily rate and the average price are
the medians over the default-power, single-rate, no-lock-in offers;
otherwise configured fallbacks are used.

Depends On:
-----------
- pandas (median calibration)
- tariff_comparator.config
"""

import math
from dataclasses import dataclass
from typing import Any, Dict, Optional, Sequence

import pandas as pd

from tariff_comparator.catalog.models import Offer
from tariff_comparator.config import (
    AUDIOVISUAL_CONTRIBUTION,
    DAYS_PER_MONTH,
    DEFAULT_POWER_KVA,
    DEFAULT_TARIFF_STRUCTURE,
    ESTIMATE_AVG_PRICE_KWH,
    ESTIMATE_FIXED_DAILY_RATE,
    ESTIMATE_MAX_KWH,
    ESTIMATE_MIN_KWH,
    IEC_PER_KWH,
    VAT_MULTIPLIER,
)
from tariff_comparator.pricing.offer_selector import filter_candidates
from tariff_comparator.utils.logger import get_logger

logger = get_logger(__name__)


@dataclass(frozen=True)
class EstimationRates:
    fixed_daily_rate: float
    avg_price_kwh: float
    calibrated: bool


def calibrated_rates(catalog: Optional[Sequence[Offer]] = None) -> EstimationRates:
    """Median TF and single-rate price of the default segment, or the fallbacks."""
    fallback = EstimationRates(ESTIMATE_FIXED_DAILY_RATE, ESTIMATE_AVG_PRICE_KWH, calibrated=False)
    if not catalog:
        return fallback

    segment = filter_candidates(catalog, DEFAULT_POWER_KVA, DEFAULT_TARIFF_STRUCTURE)
    if not segment:
        logger.warning("⚠️ No default-segment offers to calibrate the estimator; using fallback rates")
        return fallback

    df = pd.DataFrame(
        {"TF": [o.fixed_daily_rate for o in segment], "TV": [o.peak_rate for o in segment]}
    )
    rates = EstimationRates(
        fixed_daily_rate=float(df["TF"].median()),
        avg_price_kwh=float(df["TV"].median()),
        calibrated=True,
    )
    logger.debug(f"Estimator calibrated on {len(df)} offers: {rates}")
    return rates


def estimate_consumption(monthly_bill: float, catalog: Optional[Sequence[Offer]] = None) -> int:
    try:
        bill = float(monthly_bill)
    except (TypeError, ValueError):
        raise ValueError(f"Monthly bill must be a number, got {monthly_bill!r}")
    if not math.isfinite(bill) or bill < 0:
        raise ValueError(f"Monthly bill must be a finite, non-negative amount, got {monthly_bill!r}")

    rates = calibrated_rates(catalog)
    without_vat = bill / VAT_MULTIPLIER
    energy_part = without_vat - rates.fixed_daily_rate * DAYS_PER_MONTH - AUDIOVISUAL_CONTRIBUTION
    consumption = round(energy_part / (rates.avg_price_kwh + IEC_PER_KWH))

    estimate = int(min(ESTIMATE_MAX_KWH, max(ESTIMATE_MIN_KWH, consumption)))
    logger.info(f"🔢 Bill {bill:.2f} € -> ~{estimate} kWh/month (calibrated={rates.calibrated})")
    return estimate


def estimate_profile(monthly_bill: float, catalog: Optional[Sequence[Offer]] = None) -> Dict[str, Any]:
    """Consumption profile used by the bill-only comparison mode."""
    return {
        "consumption": estimate_consumption(monthly_bill, catalog),
        "power": DEFAULT_POWER_KVA,
        "tariff_structure": DEFAULT_TARIFF_STRUCTURE,
        "confidence": "estimate",
    }
