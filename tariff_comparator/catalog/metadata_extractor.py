"""
metadata_extractor.py
----------------------
🔎 Derives commercial metadata from one commercial-conditions row.

Purpose:
--------
The conditions table mixes flags with free Portuguese text. This module
turns one row into the metadata attached to every Offer:
    - lock-in (fidelity period) presence, duration and detection source
    - fixed monthly promotional discount (metadata only, never priced)
    - billing-cycle type from the proposal name
    - whether the offer is currently inside its validity window

All functions are pure: no I/O, "today" is passed in by the caller.

Depends On:
-----------
- python-dateutil (ISO-style dates, reference timezone)
- tariff_comparator.utils.helpers
"""

import re
from datetime import date, datetime
from typing import Any, Dict, List, Optional, Sequence

from dateutil import parser as dateparser
from dateutil import tz

from tariff_comparator.catalog.models import LockIn, Promotion, normalize_string
from tariff_comparator.config import INDEXED_YES, LOCK_IN_YES, REFERENCE_TIMEZONE
from tariff_comparator.utils.helpers import normalize_text_for_tokens

# Regulator column names
LOCK_IN_FLAG = "FiltroFidelização"
LOCK_IN_DURATION = "DuracaoContrato"
LOCK_IN_TEXT_FIELDS = ("TxTFidelização", "TxTOferta", "TxTRestricoesAdic")
PROMOTION_FALLBACK_FIELDS = (
    "TxTOferta",
    "DetalheOutrosDesc",
    "DetalheOutrosDescbenefi",
    "TxTReembolsos",
    "TxTFatura",
)

LOCK_IN_KEYWORDS = ("fideliza", "permanencia", "penaliza", "obrigatoria")
# "sem fidelização" / "não tem período de permanência" describe the absence of a lock-in
LOCK_IN_NEGATION_RE = re.compile(r"\b(?:sem|nao tem|isent[oa] de|livre de)\s+(?:\w+\s+){0,3}$")

MONTHS_RE = re.compile(r"(\d+)\s*(?:meses|mes)\b")
YEARS_RE = re.compile(r"(\d+)\s*anos?\b")

# Each pattern needs both an amount and a monthly / bill anchor, so one-off
# vouchers ("recebe 50€ de oferta") never count as a recurring discount.
_AMOUNT = r"(\d+(?:[.,]\d+)?)\s*(?:€|euros?|eur)"
DISCOUNT_PATTERNS = [
    re.compile(_AMOUNT + r"\s*(?:/|por)\s*(?:mês|mes|mensal)"),
    re.compile(
        _AMOUNT + r"\s+(?:de\s+)?(?:desconto|discount|redução|reducao|reembolso)\s+"
        r"(?:de|na|por)\s*(?:mês|mes|mensal|fatura|faturação|faturacao)"
    ),
    re.compile(
        r"(?:desconto|discount|redução|reducao|reembolso)\s+(?:de\s+)?"
        r"(\d+(?:[.,]\d+)?)\s*(?:€|euros?|eur)\s+(?:na|por|/)\s*"
        r"(?:fatura|faturação|faturacao|mês|mes|mensal)"
    ),
    re.compile(r"[-–]\s*" + _AMOUNT + r"\s*(?:/|por)\s*(?:mês|mes|mensal)"),
    re.compile(_AMOUNT + r"\s+(?:na|por)\s+(?:fatura|faturação|faturacao)"),
]
MONTHLY_CONTEXT_RE = re.compile(r"mês|mes|mensal|fatura|faturação|faturacao")

DURATION_MONTH_PATTERNS = [
    re.compile(r"(?:durante|por|para|nos|no|primeiros?)\s+(\d+)\s*(?:meses|mês|mes)\b"),
    re.compile(r"(\d+)\s*(?:meses|mês|mes)\s*(?:de\s+desconto|de\s+promoção|de\s+promocao|consecutivos?|de)\b"),
]
DURATION_YEAR_PATTERNS = [
    re.compile(r"(?:durante|por|para|no|primeiro|1º|1o)\s+(\d+)\s*anos?\b"),
]
FIRST_YEAR_RE = re.compile(r"(?:primeiro|1º|1o)\s+(?:ano|year)\b")

PROMOTION_DURATION_MIN = 1
PROMOTION_DURATION_MAX = 24
PROMOTION_APPLIED_MAX = 12
# Business default when a discount states no duration; see DESIGN.md
PROMOTION_ASSUMED_MONTHS = 12

DATE_DMY_RE = re.compile(r"^\s*(\d{1,2})[/.-](\d{1,2})[/.-](\d{4})\s*$")


# ----------------------------------------------------------------------
# 1️⃣ Lock-in detection
# ----------------------------------------------------------------------
def _lock_in_text(condition: Dict[str, Any]) -> str:
    return " ".join(normalize_string(condition.get(f)) for f in LOCK_IN_TEXT_FIELDS).lower()


def _duration_from_text(text: str) -> Optional[int]:
    normalized = normalize_text_for_tokens(text)
    match = MONTHS_RE.search(normalized)
    if match:
        return int(match.group(1))
    match = YEARS_RE.search(normalized)
    if match:
        return int(match.group(1)) * 12
    return None


def _has_lock_in_keyword(text: str) -> bool:
    normalized = normalize_text_for_tokens(text)
    for keyword in LOCK_IN_KEYWORDS:
        for match in re.finditer(keyword, normalized):
            if not LOCK_IN_NEGATION_RE.search(normalized[: match.start()]):
                return True
    return False


def detect_lock_in(condition: Dict[str, Any]) -> LockIn:
    """
    Lock-in is present when the explicit flag says "S", or when the free
    text mentions fidelity / permanence / penalties even though the flag is
    absent or says otherwise.

    Unlike plain keyword matching, a keyword preceded by a negation
    ("sem fidelização", "livre de permanência") does not count, so offers
    advertising the absence of a lock-in stay eligible.
    """
    text = _lock_in_text(condition)

    if normalize_string(condition.get(LOCK_IN_FLAG)).upper() == LOCK_IN_YES:
        months = None
        duration = normalize_string(condition.get(LOCK_IN_DURATION))
        if duration.isdigit() and int(duration) > 0:
            months = int(duration)
        if months is None:
            months = _duration_from_text(text)
        return LockIn(has_lock_in=True, months=months, source="field")

    if _has_lock_in_keyword(text):
        return LockIn(has_lock_in=True, months=_duration_from_text(text), source="text")

    return LockIn(has_lock_in=False)


# ----------------------------------------------------------------------
# 2️⃣ Promotion extraction
# ----------------------------------------------------------------------
def promotion_search_text(condition: Dict[str, Any], prioritized_columns: Optional[Sequence[str]] = None) -> str:
    if prioritized_columns:
        parts = [condition.get(col) for col in prioritized_columns]
        parts = [p for p in parts if isinstance(p, str) and p]
    else:
        parts = [normalize_string(condition.get(col)) for col in PROMOTION_FALLBACK_FIELDS]
    return " ".join(parts).lower()


def _extract_discount(text: str) -> Optional[float]:
    for pattern in DISCOUNT_PATTERNS:
        match = pattern.search(text)
        if not match:
            continue
        amount = float(match.group(1).replace(",", "."))
        if amount > 0 and MONTHLY_CONTEXT_RE.search(match.group(0)):
            return amount
    return None


def _extract_duration(text: str) -> Optional[int]:
    for pattern in DURATION_MONTH_PATTERNS:
        match = pattern.search(text)
        if match:
            return int(match.group(1))
    for pattern in DURATION_YEAR_PATTERNS:
        match = pattern.search(text)
        if match:
            return int(match.group(1)) * 12
    if FIRST_YEAR_RE.search(text):
        return 12
    return None


def extract_promotion(condition: Dict[str, Any], prioritized_columns: Optional[Sequence[str]] = None) -> Optional[Promotion]:
    """
    Returns the fixed monthly discount described in the offer text, or None.

    The amount only counts when anchored to a monthly / bill context. The
    raw duration is clamped to 1..24 months; the applied duration to 0..12.
    Without a stated duration the applied value is 12 and flagged as assumed.
    """
    text = promotion_search_text(condition, prioritized_columns)
    if not text.strip():
        return None

    amount = _extract_discount(text)
    if amount is None:
        return None

    extracted = _extract_duration(text)
    if extracted is not None:
        extracted = max(PROMOTION_DURATION_MIN, min(PROMOTION_DURATION_MAX, extracted))
        applied = max(0, min(PROMOTION_APPLIED_MAX, extracted))
        assumed = False
    else:
        applied = PROMOTION_ASSUMED_MONTHS
        assumed = True

    return Promotion(
        fixed_euro_month=amount,
        duration_months_extracted=extracted,
        duration_months_applied=applied,
        duration_assumed=assumed,
        is_active=None,
    )


# ----------------------------------------------------------------------
# 3️⃣ Cycle type / validity dates
# ----------------------------------------------------------------------
def detect_cycle_type(tariff_name: str) -> Optional[str]:
    normalized = normalize_text_for_tokens(tariff_name)
    if not normalized:
        return None
    if "diario" in normalized:
        return "daily"
    if "semanal" in normalized or "sem feriados" in normalized:
        return "weekly"
    return None


def parse_offer_date(value) -> Optional[date]:
    """
    Day/month/year text ("31/12/2025") to a date. ISO dates from newer pulls
    are accepted too. Anything else yields None.
    """
    text = normalize_string(value)
    if not text:
        return None
    match = DATE_DMY_RE.match(text)
    try:
        if match:
            day, month, year = (int(g) for g in match.groups())
            return date(year, month, day)
        if re.fullmatch(r"\d{4}-\d{2}-\d{2}(?:[T ].*)?", text):
            return dateparser.isoparse(text).date()
    except ValueError:
        return None
    return None


def reference_today(timezone_name: str = REFERENCE_TIMEZONE) -> date:
    zone = tz.gettz(timezone_name) or tz.UTC
    return datetime.now(zone).date()


def compute_offer_active(valid_from, valid_to, today: Optional[date] = None) -> Optional[bool]:
    """
    True when valid_from <= today <= valid_to (day resolution), None when
    either date is missing or unparseable. Never False for unknown dates.
    """
    start = parse_offer_date(valid_from)
    end = parse_offer_date(valid_to)
    if start is None or end is None:
        return None
    today = today or reference_today()
    return start <= today <= end


# ----------------------------------------------------------------------
# 4️⃣ Full campaign metadata for one condition row
# ----------------------------------------------------------------------
def build_campaign_summary(condition: Dict[str, Any], lock_in: LockIn) -> str:
    parts: List[str] = []
    offer_text = normalize_string(condition.get("TxTOferta"))
    if offer_text:
        parts.append(offer_text[:100])
    lock_in_text = normalize_string(condition.get("TxTFidelização"))
    if lock_in_text and lock_in.has_lock_in:
        parts.append(f"Fidelização: {lock_in_text[:50]}")
    return " | ".join(parts)[:200]


def extract_campaign_metadata(
    condition: Dict[str, Any],
    prioritized_columns: Optional[Sequence[str]] = None,
    today: Optional[date] = None,
) -> Dict[str, Any]:
    """
    Metadata for the Offer built from this condition row, keyed by the
    Offer field names.
    """
    lock_in = detect_lock_in(condition)
    promotion = extract_promotion(condition, prioritized_columns)
    tariff_name = normalize_string(condition.get("NomeProposta")) or normalize_string(condition.get("COD_Proposta"))
    valid_from = normalize_string(condition.get("Data ini"))
    valid_to = normalize_string(condition.get("Data fim"))
    is_offer_active = compute_offer_active(valid_from, valid_to, today)

    return {
        "tariff_name": tariff_name,
        "cycle_type": detect_cycle_type(tariff_name),
        "website": normalize_string(condition.get("LinkOfertaCom")) or normalize_string(condition.get("LinkCOM")),
        "phone": normalize_string(condition.get("ContactoComercialTel")),
        "supply_type": normalize_string(condition.get("Fornecimento")),
        "segment": normalize_string(condition.get("Segmento")),
        "valid_from": valid_from,
        "valid_to": valid_to,
        "is_indexed": normalize_string(condition.get("FiltroPrecosIndex")).upper() == INDEXED_YES,
        "has_lock_in": lock_in.has_lock_in,
        "lock_in_months": lock_in.months,
        "lock_in_source": lock_in.source,
        "promotion": promotion,
        "campaign_summary": build_campaign_summary(condition, lock_in),
        "is_offer_active": is_offer_active,
        "is_campaign_active": is_offer_active,
        # The source carries no promotion-specific dates
        "is_promotion_active": None,
    }
