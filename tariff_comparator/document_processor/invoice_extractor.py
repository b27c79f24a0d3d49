"""
invoice_extractor.py
---------------------
📄 Reads a supplier electricity invoice (PDF) and pulls out the
consumption profile needed for a comparison.

Purpose:
--------
Extract contracted power, tariff structure and monthly consumption from
the invoice text so the user does not have to type them in.

Workflow:
---------
1️⃣ extract_text_from_pdf(): page text via pdfplumber.
2️⃣ parse_invoice_text(): detect the supplier from brand tokens and apply
   its consumption patterns (generic fallback for unknown suppliers).
3️⃣ normalize_power(): snap the extracted kVA to the nearest standard value.

Outputs:
--------
- InvoiceData

Depends On:
-----------
- pdfplumber
- tariff_comparator.config
- tariff_comparator.utils.logger
"""

import os
import re
from dataclasses import dataclass
from typing import List, Optional

import pdfplumber

from tariff_comparator.config import STANDARD_POWERS_KVA
from tariff_comparator.utils.logger import get_logger

logger = get_logger(__name__)


class InvoiceExtractionError(RuntimeError):
    """The PDF has no text layer or no usable consumption figure."""


POWER_RE = re.compile(r"(\d{1,2}[,.]\d{1,2})\s*kVA", re.IGNORECASE)
POWER_LABELLED_RE = re.compile(r"Pot[eê]ncia[^\d]*(\d{1,2}[,.]\d{1,2})\s*kVA", re.IGNORECASE)
KWH_RE = re.compile(r"(\d{2,4})\s*kWh", re.IGNORECASE)
TWO_RATE_RE = re.compile(r"bi[- ]?hor[aá]ri", re.IGNORECASE)
THREE_RATE_RE = re.compile(r"tri[- ]?hor[aá]ri", re.IGNORECASE)

ENDESA_PEAK_RE = re.compile(
    r"Termo de Energia\s+(?:Cheio|Cheia|F\.?\s*Vazio|Fora\s*Vazio)[^\d]*(\d+)\s*kWh", re.IGNORECASE
)
ENDESA_OFF_PEAK_RE = re.compile(r"Termo de Energia\s+Vazio[^\d]*(\d+)\s*kWh", re.IGNORECASE)
EDP_CONSUMPTION_RE = re.compile(r"(?:Energia|Consumo)[^\d]*(\d{2,4})\s*kWh", re.IGNORECASE)
OFF_PEAK_RE = re.compile(r"(?<!Fora )Vazio[^\d]*(\d{2,4})\s*kWh", re.IGNORECASE)
PEAK_RE = re.compile(r"(?:Fora\s*Vazio|Cheias?|Ponta)[^\d]*(\d{2,4})\s*kWh", re.IGNORECASE)
GALP_CONSUMPTION_RE = re.compile(r"Consumo[^\d]*(\d{2,4})\s*kWh", re.IGNORECASE)


@dataclass
class InvoiceData:
    provider: str
    power: Optional[float] = None
    normalized_power: Optional[float] = None
    tariff_type: int = 1
    consumption: Optional[int] = None
    consumption_peak: Optional[int] = None
    consumption_off_peak: Optional[int] = None
    off_peak_percent: Optional[int] = None


def normalize_power(power: float) -> float:
    """Nearest standard contracted power (first one wins on a tie)."""
    return min(STANDARD_POWERS_KVA, key=lambda option: abs(power - option))


def detect_provider(text: str) -> str:
    lowered = text.lower()
    if "endesa" in lowered:
        return "Endesa"
    if "edp" in lowered:
        return "EDP"
    if "galp" in lowered:
        return "Galp"
    if "goldenergy" in lowered:
        return "Goldenergy"
    return "Desconhecido"


def detect_tariff_type(text: str) -> int:
    if TWO_RATE_RE.search(text):
        return 2
    if THREE_RATE_RE.search(text):
        return 3
    return 1


def _ints(pattern: re.Pattern, text: str) -> List[int]:
    return [int(value) for value in pattern.findall(text)]


def _extract_power(text: str, provider: str) -> Optional[float]:
    match = None
    if provider in ("EDP", "Goldenergy"):
        match = POWER_LABELLED_RE.search(text)
    match = match or POWER_RE.search(text)
    return float(match.group(1).replace(",", ".")) if match else None


def _percent(part: int, total: int) -> int:
    return int(round(part / total * 100))


def _apply_consumption(data: InvoiceData, text: str):
    if data.provider == "Endesa":
        peak = sum(_ints(ENDESA_PEAK_RE, text))
        off_peak = sum(_ints(ENDESA_OFF_PEAK_RE, text))
        if peak + off_peak > 0:
            data.consumption = peak + off_peak
            data.consumption_peak = peak
            data.consumption_off_peak = off_peak
            data.off_peak_percent = _percent(off_peak, peak + off_peak)
        else:
            found = _ints(KWH_RE, text)
            data.consumption = found[0] if found else None

    elif data.provider == "EDP":
        found = _ints(EDP_CONSUMPTION_RE, text)
        data.consumption = sum(found) if found else None
        if data.tariff_type == 2:
            off_peak, peak = OFF_PEAK_RE.search(text), PEAK_RE.search(text)
            if off_peak and peak:
                data.consumption_off_peak = int(off_peak.group(1))
                data.consumption_peak = int(peak.group(1))
                data.off_peak_percent = _percent(
                    data.consumption_off_peak, data.consumption_off_peak + data.consumption_peak
                )

    elif data.provider == "Galp":
        match = GALP_CONSUMPTION_RE.search(text) or KWH_RE.search(text)
        data.consumption = int(match.group(1)) if match else None

    elif data.provider == "Goldenergy":
        found = [value for value in _ints(KWH_RE, text) if 10 <= value <= 2000]
        monthly = [value for value in found if value <= 1000]
        if monthly:
            data.consumption = max(monthly)
        elif found:
            data.consumption = found[0]

    else:
        reasonable = [value for value in _ints(KWH_RE, text) if 50 <= value <= 1500]
        data.consumption = sum(reasonable) if reasonable else None


def parse_invoice_text(text: str) -> InvoiceData:
    """
    Parse invoice text into an InvoiceData record. Fields that cannot be
    found stay None; the tariff type defaults to single-rate.
    """
    provider = detect_provider(text)
    data = InvoiceData(provider=provider, tariff_type=detect_tariff_type(text))

    data.power = _extract_power(text, provider)
    if data.power is not None:
        data.normalized_power = normalize_power(data.power)

    _apply_consumption(data, text)
    logger.info(
        f"🧾 Invoice parsed | provider={data.provider} power={data.power} "
        f"tariff={data.tariff_type} consumption={data.consumption}"
    )
    return data


def extract_text_from_pdf(pdf_path: str) -> str:
    """
    Concatenate the text of every page. Raises FileNotFoundError for a
    missing file and InvoiceExtractionError when no text could be read
    (e.g. a scanned image without a text layer).
    """
    if not os.path.exists(pdf_path):
        logger.error(f"❌ Invoice not found: {pdf_path}")
        raise FileNotFoundError(pdf_path)

    pages = []
    with pdfplumber.open(pdf_path) as pdf:
        for page in pdf.pages:
            pages.append(page.extract_text() or "")

    text = "\n".join(pages).strip()
    if not text:
        raise InvoiceExtractionError(f"No text layer found in {pdf_path}")

    logger.info(f"📄 Extracted {len(text)} characters from {len(pages)} page(s) of {os.path.basename(pdf_path)}")
    return text
