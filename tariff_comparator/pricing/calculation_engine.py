"""
calculation_engine.py
---------------------
🧮 Monthly cost of one offer for a given consumption profile.

Purpose:
--------
Given consumption (kWh), contracted power (kVA) and an Offer, this module
computes the estimated monthly bill including IEC, the audiovisual
contribution and VAT.

Workflow:
---------
1️⃣ Variable term by tariff structure:
     1 -> consumption × peak rate
     2 -> off-peak share × "TVV|TVC" + remainder × peak rate
     3 -> off-peak share × TVVz + mid share × "TVV|TVC" + peak share × peak rate
     anything else -> single-rate formula
2️⃣ Fixed term = daily rate × 30.
3️⃣ (fixed + variable + IEC + audiovisual) × VAT multiplier, floored at 0.

Promotion metadata on the Offer is never read here.

Inputs:
-------
- Offer, consumption_kwh, power_kva, optional ConsumptionDistribution

Outputs:
--------
- CostBreakdown / float (monthly cost, €)

Depends On:
-----------
- tariff_comparator.config
- tariff_comparator.utils.logger
"""

import math
from dataclasses import dataclass
from typing import Optional

from tariff_comparator.catalog.models import Offer
from tariff_comparator.config import (
    AUDIOVISUAL_CONTRIBUTION,
    DAYS_PER_MONTH,
    IEC_PER_KWH,
    MAX_PLAUSIBLE_MONTHLY_COST,
    MIN_PLAUSIBLE_MONTHLY_COST,
    THREE_RATE_MID_SHARE,
    THREE_RATE_OFF_PEAK_SHARE,
    THREE_RATE_PEAK_SHARE,
    TWO_RATE_OFF_PEAK_SHARE,
    VAT_MULTIPLIER,
)
from tariff_comparator.utils.logger import get_logger

logger = get_logger(__name__)


@dataclass(frozen=True)
class ConsumptionDistribution:
    """
    Share of consumption per time-of-use period. For two-rate tariffs only
    `off_peak` is used; the peak share is its complement.
    """

    off_peak: float
    mid: float = 0.0
    peak: float = 0.0

    @classmethod
    def two_rate_default(cls) -> "ConsumptionDistribution":
        return cls(off_peak=TWO_RATE_OFF_PEAK_SHARE, peak=1 - TWO_RATE_OFF_PEAK_SHARE)

    @classmethod
    def three_rate_default(cls) -> "ConsumptionDistribution":
        return cls(off_peak=THREE_RATE_OFF_PEAK_SHARE, mid=THREE_RATE_MID_SHARE, peak=THREE_RATE_PEAK_SHARE)


@dataclass(frozen=True)
class CostBreakdown:
    fixed_term: float
    variable_term: float
    iec: float
    audiovisual: float
    vat: float
    total: float

    @property
    def subtotal(self) -> float:
        return self.fixed_term + self.variable_term + self.iec + self.audiovisual


def _validate_consumption(consumption_kwh) -> float:
    try:
        consumption = float(consumption_kwh)
    except (TypeError, ValueError):
        raise ValueError(f"Consumption must be a number, got {consumption_kwh!r}")
    if not math.isfinite(consumption) or consumption < 0:
        raise ValueError(f"Consumption must be a finite, non-negative number, got {consumption_kwh!r}")
    return consumption


def variable_term(offer: Offer, consumption: float, distribution: Optional[ConsumptionDistribution] = None) -> float:
    structure = offer.tariff_structure

    if structure == 2:
        off_peak = distribution.off_peak if distribution else TWO_RATE_OFF_PEAK_SHARE
        return consumption * off_peak * offer.off_peak_rate + consumption * (1 - off_peak) * offer.peak_rate

    if structure == 3:
        dist = distribution or ConsumptionDistribution.three_rate_default()
        return (
            consumption * dist.off_peak * offer.super_off_peak_rate
            + consumption * dist.mid * offer.off_peak_rate
            + consumption * dist.peak * offer.peak_rate
        )

    if structure != 1:
        logger.debug(f"Unknown tariff structure {structure!r} for {offer.proposal_code}; using single rate")
    return consumption * offer.peak_rate


def calculate_cost_breakdown(
    offer: Offer,
    consumption_kwh: float,
    power_kva: float,
    distribution: Optional[ConsumptionDistribution] = None,
) -> CostBreakdown:
    """
    Itemised monthly cost. `power_kva` is part of the call signature used by
    the selector; the fixed daily rate already reflects the offer's power.
    """
    consumption = _validate_consumption(consumption_kwh)

    fixed = offer.fixed_daily_rate * DAYS_PER_MONTH
    variable = variable_term(offer, consumption, distribution)
    iec = consumption * IEC_PER_KWH
    audiovisual = AUDIOVISUAL_CONTRIBUTION

    subtotal = fixed + variable + iec + audiovisual
    total = max(0.0, subtotal * VAT_MULTIPLIER)

    return CostBreakdown(
        fixed_term=fixed,
        variable_term=variable,
        iec=iec,
        audiovisual=audiovisual,
        vat=total - max(0.0, subtotal),
        total=total,
    )


def calculate_monthly_cost(
    offer: Offer,
    consumption_kwh: float,
    power_kva: float,
    distribution: Optional[ConsumptionDistribution] = None,
) -> float:
    return calculate_cost_breakdown(offer, consumption_kwh, power_kva, distribution).total


def annual_effective_cost(monthly_cost: float) -> float:
    """Twelve months of the base cost; no promotion is discounted."""
    return monthly_cost * 12


def is_plausible_cost(monthly_cost: float) -> bool:
    """Costs outside this band point at bad source data rather than real prices."""
    return (
        math.isfinite(monthly_cost)
        and MIN_PLAUSIBLE_MONTHLY_COST <= monthly_cost <= MAX_PLAUSIBLE_MONTHLY_COST
    )
