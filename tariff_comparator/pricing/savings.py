"""
savings.py
-----------
💶 Savings of the best offer against what the user pays today, plus
summary statistics over a ranking.

Savings are only reported when positive; otherwise the result is None.
"""

from typing import Any, Dict, Optional, Sequence

from tariff_comparator.catalog.models import Offer, RankedOffer
from tariff_comparator.catalog.providers import get_provider_name
from tariff_comparator.pricing.calculation_engine import ConsumptionDistribution
from tariff_comparator.pricing.offer_selector import OfferNotFoundError, rank_offers
from tariff_comparator.utils.logger import get_logger

logger = get_logger(__name__)


def _savings(current_monthly: float, best: RankedOffer, vs_provider: Optional[str] = None):
    monthly = current_monthly - best.monthly_cost
    if monthly <= 0:
        return None
    return {"monthly": monthly, "yearly": monthly * 12, "vsProvider": vs_provider}


def savings_vs_bill(best: RankedOffer, monthly_bill: float) -> Optional[Dict[str, Any]]:
    """Estimate mode: compare against the bill amount the user typed in."""
    return _savings(float(monthly_bill), best)


def savings_vs_current_provider(
    offers: Sequence[Offer],
    best: RankedOffer,
    provider_code: str,
    consumption_kwh: float,
    power_kva: float,
    tariff_structure: int,
    distribution: Optional[ConsumptionDistribution] = None,
) -> Optional[Dict[str, Any]]:
    """
    Precise mode: cheapest offer of the user's current provider for the same
    power and structure. Lock-in offers count here since the user may
    already be on one.
    """
    code = (provider_code or "").strip().upper()
    own_offers = [o for o in offers if o.provider_code.upper() == code]
    if not own_offers:
        logger.info(f"ℹ️ No offers found for current provider {provider_code!r}")
        return None

    try:
        current = rank_offers(
            own_offers, consumption_kwh, power_kva, tariff_structure, distribution, exclude_lock_in=False
        )[0]
    except OfferNotFoundError:
        logger.info(f"ℹ️ Current provider {provider_code!r} has no offer for this profile")
        return None

    return _savings(current.monthly_cost, best, get_provider_name(code))


def ranking_statistics(ranked: Sequence[RankedOffer], current_monthly_cost: Optional[float] = None) -> Dict[str, Any]:
    if not ranked:
        return {"best": None, "worst": None, "average": 0.0, "yearlySpread": 0.0, "annualSavings": 0.0, "count": 0}

    best, worst = ranked[0], ranked[-1]
    average = sum(r.monthly_cost for r in ranked) / len(ranked)
    annual_savings = (current_monthly_cost - best.monthly_cost) * 12 if current_monthly_cost else 0.0

    return {
        "best": best,
        "worst": worst,
        "average": average,
        "yearlySpread": (worst.monthly_cost - best.monthly_cost) * 12,
        "annualSavings": annual_savings,
        "count": len(ranked),
    }
