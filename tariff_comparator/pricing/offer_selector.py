"""
offer_selector.py
------------------
🏆 Picks the cheapest eligible offer for a consumption profile.

Workflow:
---------
1️⃣ Filter: TF > 0, peak rate > 0, power within tolerance, same tariff
   structure, no lock-in.
2️⃣ Cost every survivor (monthly + annual effective); drop non-finite or
   non-positive costs.
3️⃣ Sort by annual cost, monthly cost, then lowercase display name so ties
   resolve the same way on every run.

Failures surface as OfferNotFoundError subclasses carrying the requested
power / tariff structure / consumption.

Depends On:
-----------
- pandas (ranking table)
- tariff_comparator.pricing.calculation_engine
- tariff_comparator.utils.logger
"""

import math
from typing import Iterable, List, Optional, Sequence

import pandas as pd

from tariff_comparator.catalog.models import Offer, RankedOffer
from tariff_comparator.catalog.providers import get_provider_name
from tariff_comparator.config import POWER_TOLERANCE_KVA
from tariff_comparator.pricing.calculation_engine import (
    ConsumptionDistribution,
    annual_effective_cost,
    calculate_monthly_cost,
)
from tariff_comparator.utils.logger import get_logger

logger = get_logger(__name__)


class OfferNotFoundError(LookupError):
    """No offer could be selected for the requested combination."""

    def __init__(self, message: str, power=None, tariff_structure=None, consumption=None):
        super().__init__(message)
        self.power = power
        self.tariff_structure = tariff_structure
        self.consumption = consumption


class NoValidOfferError(OfferNotFoundError):
    pass


class NoValidCostError(OfferNotFoundError):
    pass


def matches_power(offer: Offer, power_kva: float) -> bool:
    return abs(offer.power_kva - float(power_kva)) <= POWER_TOLERANCE_KVA


def filter_candidates(
    offers: Iterable[Offer],
    power_kva: float,
    tariff_structure: int,
    exclude_lock_in: bool = True,
) -> List[Offer]:
    return [
        offer for offer in offers
        if offer.fixed_daily_rate > 0
        and offer.peak_rate > 0
        and matches_power(offer, power_kva)
        and offer.tariff_structure == int(tariff_structure)
        and not (exclude_lock_in and offer.has_lock_in is True)
    ]


def _sort_key(ranked: RankedOffer):
    offer = ranked.offer
    return (
        ranked.annual_cost_effective,
        ranked.monthly_cost,
        offer.display_name.lower(),
        offer.provider_code,
        offer.proposal_code,
    )


def rank_offers(
    offers: Sequence[Offer],
    consumption_kwh: float,
    power_kva: float,
    tariff_structure: int,
    distribution: Optional[ConsumptionDistribution] = None,
    exclude_lock_in: bool = True,
) -> List[RankedOffer]:
    """
    Every eligible offer with its costs, cheapest first.
    Raises NoValidOfferError / NoValidCostError when nothing qualifies.
    """
    candidates = filter_candidates(offers, power_kva, tariff_structure, exclude_lock_in)
    if not candidates:
        logger.warning(
            f"⚠️ No offers for power={power_kva} kVA, tariff structure={tariff_structure} "
            f"(catalog size {len(offers)})"
        )
        raise NoValidOfferError(
            f"No valid offer for power {power_kva} kVA and tariff structure {tariff_structure}",
            power=power_kva, tariff_structure=tariff_structure, consumption=consumption_kwh,
        )

    ranked: List[RankedOffer] = []
    for offer in candidates:
        monthly = calculate_monthly_cost(offer, consumption_kwh, power_kva, distribution)
        annual = annual_effective_cost(monthly)
        if not math.isfinite(monthly) or monthly <= 0 or not math.isfinite(annual) or annual <= 0:
            logger.debug(f"Skipping {offer.provider_code}/{offer.proposal_code}: invalid cost {monthly!r}")
            continue
        ranked.append(RankedOffer(offer=offer, monthly_cost=monthly, annual_cost_effective=annual))

    if not ranked:
        raise NoValidCostError(
            f"No offer with a valid cost for power {power_kva} kVA and tariff structure {tariff_structure}",
            power=power_kva, tariff_structure=tariff_structure, consumption=consumption_kwh,
        )

    ranked.sort(key=_sort_key)
    logger.info(f"📊 Ranked {len(ranked)} offers (of {len(candidates)} candidates)")
    return ranked


def find_best_offer(
    offers: Sequence[Offer],
    consumption_kwh: float,
    power_kva: float,
    tariff_structure: int,
    distribution: Optional[ConsumptionDistribution] = None,
) -> RankedOffer:
    """Cheapest offer without lock-in for the given profile."""
    best = rank_offers(offers, consumption_kwh, power_kva, tariff_structure, distribution)[0]
    logger.info(
        f"🏆 Best offer: {best.offer.provider_code} / {best.offer.display_name} "
        f"-> {best.monthly_cost:.2f} €/month"
    )
    return best


def find_best_single_rate_offer(offers: Sequence[Offer], consumption_kwh: float, power_kva: float) -> RankedOffer:
    return find_best_offer(offers, consumption_kwh, power_kva, 1)


def ranking_frame(ranked: Sequence[RankedOffer]) -> pd.DataFrame:
    """Tabular view of a ranking, one row per offer, in ranking order."""
    rows = [
        {
            "rank": position,
            "provider": get_provider_name(item.offer.provider_code),
            "COM": item.offer.provider_code,
            "COD_Proposta": item.offer.proposal_code,
            "tariffName": item.offer.display_name,
            "Pot_Cont": item.offer.power_kva,
            "Contagem": item.offer.tariff_structure,
            "monthlyCost": round(item.monthly_cost, 2),
            "annualCostEffective": round(item.annual_cost_effective, 2),
            "hasLockIn": item.offer.has_lock_in,
            "hasPromotion": item.offer.promotion is not None,
            "website": item.offer.website,
        }
        for position, item in enumerate(ranked, start=1)
    ]
    columns = [
        "rank", "provider", "COM", "COD_Proposta", "tariffName", "Pot_Cont", "Contagem",
        "monthlyCost", "annualCostEffective", "hasLockIn", "hasPromotion", "website",
    ]
    return pd.DataFrame(rows, columns=columns)
