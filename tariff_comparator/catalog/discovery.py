"""
discovery.py
-------------
🧭 Batch-level scan that finds where promotional text lives in the
commercial-conditions table.

Purpose:
--------
The regulator's column layout is not stable between pulls, so promotion
extraction should not hard-code column names. This pass counts keyword
hits per column across all condition rows, ranks the columns, and hands
the top ones to the metadata extractor. It also gathers sample snippets
and detected lock-in examples for the build report.

Outputs:
--------
- promotionFieldHits       [{column, hits}]       top 15 columns
- samplePromotionSnippets  [{COM, COD_Proposta, snippet, columnName}]  max 25
- lockInSamples            [{COM, COD_Proposta, NomeProposta, lockInSource, lockInMonths, snippet}]  max 20
- lockInBySource           {field, text}          counted over the samples

Depends On:
-----------
- tariff_comparator.catalog.metadata_extractor
- tariff_comparator.utils.helpers
"""

from typing import Any, Dict, List, Sequence

from tariff_comparator.catalog.metadata_extractor import LOCK_IN_FLAG, LOCK_IN_TEXT_FIELDS, detect_lock_in
from tariff_comparator.catalog.models import normalize_string
from tariff_comparator.config import PROMOTION_PRIORITY_COLUMNS
from tariff_comparator.utils.helpers import collapse_whitespace, normalize_text_for_tokens
from tariff_comparator.utils.logger import get_logger

logger = get_logger(__name__)

PROMOTION_TOKENS = (
    "desconto", "€", "euros", "mês", "meses", "/mês", "por mês", "ano", "1 ano",
    "12 meses", "fatura", "campanha", "bónus", "bonus", "voucher", "cartão",
    "cartao", "cashback", "reembolso", "mensal",
)
NORMALIZED_TOKENS = tuple(dict.fromkeys(normalize_text_for_tokens(t) for t in PROMOTION_TOKENS))

MAX_RANKED_COLUMNS = 15
MAX_SAMPLES_PER_COLUMN = 5
MAX_SNIPPET_COLUMNS = 10
MAX_PROMOTION_SNIPPETS = 25
MAX_LOCK_IN_SAMPLES = 20
SNIPPET_CHARS = 160


def count_token_hits(value: str) -> int:
    normalized = normalize_text_for_tokens(value)
    return sum(1 for token in NORMALIZED_TOKENS if token in normalized)


def _collect_lock_in_samples(conditions: Sequence[Dict[str, Any]]) -> Dict[str, Any]:
    samples: List[Dict[str, Any]] = []
    by_source = {"field": 0, "text": 0}

    for condition in conditions:
        if len(samples) >= MAX_LOCK_IN_SAMPLES:
            break
        # Only rows where the flag is filled in are representative
        if normalize_string(condition.get(LOCK_IN_FLAG)).upper() not in ("S", "N"):
            continue
        lock_in = detect_lock_in(condition)
        if not lock_in.has_lock_in:
            continue

        by_source[lock_in.source] += 1
        text = " ".join(normalize_string(condition.get(f)) for f in LOCK_IN_TEXT_FIELDS).strip()
        snippet = collapse_whitespace(text, SNIPPET_CHARS)
        samples.append({
            "COM": normalize_string(condition.get("COM")),
            "COD_Proposta": normalize_string(condition.get("COD_Proposta")),
            "NomeProposta": normalize_string(condition.get("NomeProposta")),
            "lockInSource": lock_in.source,
            "lockInMonths": lock_in.months,
            "snippet": snippet or ("From DuracaoContrato field" if lock_in.source == "field" else ""),
        })

    return {"lockInSamples": samples, "lockInBySource": by_source}


def discover_promotion_fields(conditions: Sequence[Dict[str, Any]]) -> Dict[str, Any]:
    """
    Rank string columns of the condition rows by promotional keyword hits.
    Ties keep first-seen column order.
    """
    column_hits: Dict[str, int] = {}
    column_samples: Dict[str, List[Dict[str, str]]] = {}

    for condition in conditions:
        for column, value in condition.items():
            if not isinstance(value, str) or not value.strip():
                continue
            hits = count_token_hits(value)
            if hits == 0:
                continue
            column_hits[column] = column_hits.get(column, 0) + hits
            samples = column_samples.setdefault(column, [])
            if len(samples) < MAX_SAMPLES_PER_COLUMN:
                samples.append({
                    "COM": normalize_string(condition.get("COM")),
                    "COD_Proposta": normalize_string(condition.get("COD_Proposta")),
                    "snippet": collapse_whitespace(value, SNIPPET_CHARS),
                })

    ranked = sorted(column_hits.items(), key=lambda kv: kv[1], reverse=True)[:MAX_RANKED_COLUMNS]

    snippets: List[Dict[str, str]] = []
    for column, _ in ranked[:MAX_SNIPPET_COLUMNS]:
        for sample in column_samples[column]:
            if len(snippets) >= MAX_PROMOTION_SNIPPETS:
                break
            snippets.append({**sample, "columnName": column})

    report = {
        "promotionFieldHits": [{"column": column, "hits": hits} for column, hits in ranked],
        "samplePromotionSnippets": snippets,
    }
    report.update(_collect_lock_in_samples(conditions))

    logger.info(f"🔍 Discovery: {len(ranked)} columns with promotion tokens")
    return report


def prioritized_columns(report: Dict[str, Any], top_n: int = PROMOTION_PRIORITY_COLUMNS) -> List[str]:
    """The top-N column names to feed into promotion extraction."""
    return [item["column"] for item in report.get("promotionFieldHits", [])[:top_n]]
