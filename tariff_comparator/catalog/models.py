"""
models.py
----------
🗂️ Typed records for the offer catalog.

An Offer is one (provider, proposal, power, tariff-structure) combination
with its rates resolved once at build time and its commercial metadata
attached. The catalog snapshot (offers.json) keeps the regulator's column
names for the rate fields; `to_dict` / `from_dict` translate between the
snapshot layout and the typed record.
"""

import math
from dataclasses import dataclass
from typing import Any, Dict, Optional


def normalize_number(value) -> float:
    """
    Number from str-or-number input, comma or dot decimal; anything
    unparseable (or non-finite) becomes 0.
    """
    if isinstance(value, bool):
        return 0.0
    if isinstance(value, (int, float)):
        number = float(value)
    elif isinstance(value, str):
        try:
            number = float(value.strip().replace(",", "."))
        except ValueError:
            return 0.0
    else:
        return 0.0
    return number if math.isfinite(number) else 0.0


def normalize_string(value) -> str:
    if value is None:
        return ""
    if isinstance(value, float) and value.is_integer():
        value = int(value)
    return str(value).strip()


@dataclass(frozen=True)
class Promotion:
    """Fixed monthly discount found in the offer text. Metadata only."""

    fixed_euro_month: float
    duration_months_extracted: Optional[int]
    duration_months_applied: Optional[int]
    duration_assumed: bool
    is_active: Optional[bool] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "fixedEuroMonth": self.fixed_euro_month,
            "durationMonthsExtracted": self.duration_months_extracted,
            "durationMonthsApplied": self.duration_months_applied,
            "durationAssumed": self.duration_assumed,
            "isActive": self.is_active,
        }

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]]) -> Optional["Promotion"]:
        if not data:
            return None
        return cls(
            fixed_euro_month=normalize_number(data.get("fixedEuroMonth")),
            duration_months_extracted=data.get("durationMonthsExtracted"),
            duration_months_applied=data.get("durationMonthsApplied"),
            duration_assumed=bool(data.get("durationAssumed", False)),
            is_active=data.get("isActive"),
        )


@dataclass(frozen=True)
class LockIn:
    has_lock_in: bool
    months: Optional[int] = None
    source: Optional[str] = None  # 'field' | 'text' | None


@dataclass(frozen=True)
class Offer:
    """
    One priced electricity offer.

    Rate columns follow the regulator's naming:
      - peak_rate           "TV|TVFV|TVP"  single rate / peak
      - off_peak_rate       "TVV|TVC"      off-peak (two-rate) or mid/shoulder (three-rate)
      - super_off_peak_rate "TVVz"         off-peak of the three-rate structure
    """

    provider_code: str
    proposal_code: str
    power_kva: float
    tariff_structure: int
    fixed_daily_rate: float
    peak_rate: float
    off_peak_rate: float = 0.0
    super_off_peak_rate: float = 0.0
    tariff_name: str = ""
    cycle_type: Optional[str] = None
    website: str = ""
    phone: str = ""
    supply_type: str = ""
    segment: str = ""
    valid_from: str = ""
    valid_to: str = ""
    is_indexed: bool = False
    has_lock_in: bool = False
    lock_in_months: Optional[int] = None
    lock_in_source: Optional[str] = None
    promotion: Optional[Promotion] = None
    new_customer_only: bool = False
    requires_direct_debit: bool = False
    requires_ebill: bool = False
    campaign_summary: str = ""
    is_offer_active: Optional[bool] = None
    is_campaign_active: Optional[bool] = None
    is_promotion_active: Optional[bool] = None

    @property
    def display_name(self) -> str:
        return self.tariff_name or self.provider_code

    def to_dict(self) -> Dict[str, Any]:
        return {
            "COM": self.provider_code,
            "COD_Proposta": self.proposal_code,
            "Pot_Cont": self.power_kva,
            "Contagem": self.tariff_structure,
            "TF": self.fixed_daily_rate,
            "TV|TVFV|TVP": self.peak_rate,
            "TVV|TVC": self.off_peak_rate,
            "TVVz": self.super_off_peak_rate,
            "tariffName": self.tariff_name,
            "cycleType": self.cycle_type,
            "website": self.website,
            "phone": self.phone,
            "fornecimento": self.supply_type,
            "segmento": self.segment,
            "validFrom": self.valid_from,
            "validTo": self.valid_to,
            "isIndexed": self.is_indexed,
            "hasLockIn": self.has_lock_in,
            "lockInMonths": self.lock_in_months,
            "lockInSource": self.lock_in_source,
            "promotion": self.promotion.to_dict() if self.promotion else None,
            "newCustomerOnly": self.new_customer_only,
            "requiresDirectDebit": self.requires_direct_debit,
            "requiresEBill": self.requires_ebill,
            "campaignSummary": self.campaign_summary,
            "isOfferActive": self.is_offer_active,
            "isCampaignActive": self.is_campaign_active,
            "isPromotionActive": self.is_promotion_active,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Offer":
        """
        Build an Offer from a snapshot record. Older pulls used the short
        column names TV / TVV; they are resolved here, once.
        """
        peak = data.get("TV|TVFV|TVP")
        if not normalize_number(peak):
            peak = data.get("TV", 0)
        off_peak = data.get("TVV|TVC")
        if not normalize_number(off_peak):
            off_peak = data.get("TVV", 0)

        return cls(
            provider_code=normalize_string(data.get("COM")),
            proposal_code=normalize_string(data.get("COD_Proposta")),
            power_kva=normalize_number(data.get("Pot_Cont")),
            tariff_structure=int(normalize_number(data.get("Contagem", 1)) or 1),
            fixed_daily_rate=normalize_number(data.get("TF")),
            peak_rate=normalize_number(peak),
            off_peak_rate=normalize_number(off_peak),
            super_off_peak_rate=normalize_number(data.get("TVVz")),
            tariff_name=normalize_string(data.get("tariffName")),
            cycle_type=data.get("cycleType"),
            website=normalize_string(data.get("website")),
            phone=normalize_string(data.get("phone")),
            supply_type=normalize_string(data.get("fornecimento")),
            segment=normalize_string(data.get("segmento")),
            valid_from=normalize_string(data.get("validFrom")),
            valid_to=normalize_string(data.get("validTo")),
            is_indexed=bool(data.get("isIndexed", False)),
            has_lock_in=data.get("hasLockIn") is True,
            lock_in_months=data.get("lockInMonths"),
            lock_in_source=data.get("lockInSource"),
            promotion=Promotion.from_dict(data.get("promotion")),
            new_customer_only=bool(data.get("newCustomerOnly", False)),
            requires_direct_debit=bool(data.get("requiresDirectDebit", False)),
            requires_ebill=bool(data.get("requiresEBill", False)),
            campaign_summary=normalize_string(data.get("campaignSummary")),
            is_offer_active=data.get("isOfferActive"),
            is_campaign_active=data.get("isCampaignActive"),
            is_promotion_active=data.get("isPromotionActive"),
        )


@dataclass(frozen=True)
class RankedOffer:
    """An Offer with the costs it was ranked by."""

    offer: Offer
    monthly_cost: float
    annual_cost_effective: float

    def to_dict(self) -> Dict[str, Any]:
        data = self.offer.to_dict()
        data["monthlyCost"] = self.monthly_cost
        data["annualCostEffective"] = self.annual_cost_effective
        return data
