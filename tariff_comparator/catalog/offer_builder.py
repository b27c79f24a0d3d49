"""
offer_builder.py
-----------------
🏗️ Joins the pricing table with the commercial-conditions table and
produces the normalized offer catalog.

Purpose:
--------
Turns the two raw regulator tables into one Offer per
(provider, proposal, power, tariff structure), electricity only, with
lock-in, promotion, cycle-type and validity metadata attached.

Workflow:
---------
1️⃣ Discovery pass over all condition rows -> prioritized promotion columns.
2️⃣ Lookup (COM, COD_Proposta) -> first-seen condition row.
3️⃣ For each price row: skip when unmatched or not ELE, normalize numbers,
   skip unpriceable rows and unknown Contagem codes, deduplicate, attach
   metadata.
4️⃣ Aggregate build statistics (promotionsAppliedCount is always 0).
5️⃣ Assemble the meta document and write offers.json + meta.json.

Inputs:
-------
- Parsed price rows and condition rows (csv_parser)

Outputs:
--------
- List[Offer], discovery report, statistics
- offers.json / meta.json (via write_catalog_outputs)

Depends On:
-----------
- pandas (statistics)
- tariff_comparator.catalog.metadata_extractor
- tariff_comparator.catalog.discovery
- tariff_comparator.utils.helpers
- tariff_comparator.utils.logger
"""

from dataclasses import dataclass, field
from datetime import date, datetime, timezone
from typing import Any, Dict, List, Optional, Sequence, Tuple

import pandas as pd

from tariff_comparator.catalog.discovery import discover_promotion_fields, prioritized_columns
from tariff_comparator.catalog.metadata_extractor import extract_campaign_metadata
from tariff_comparator.catalog.models import Offer, normalize_number, normalize_string
from tariff_comparator.config import BUILD_SCRIPT_VERSION, ELECTRICITY_SUPPLY, TARIFF_STRUCTURES
from tariff_comparator.utils.helpers import collapse_whitespace, save_json
from tariff_comparator.utils.logger import get_logger

logger = get_logger(__name__)

MAX_PROMOTION_PARSED_SAMPLES = 10


@dataclass
class CatalogBuild:
    """Everything one pipeline run produces before it is persisted."""

    offers: List[Offer]
    discovery: Dict[str, Any]
    statistics: Dict[str, Any]
    row_counts: Dict[str, int]
    dropped: Dict[str, int] = field(default_factory=dict)


def _condition_key(row: Dict[str, Any]) -> Tuple[str, str]:
    return normalize_string(row.get("COM")), normalize_string(row.get("COD_Proposta"))


def _first_present(row: Dict[str, Any], *columns: str):
    for column in columns:
        value = row.get(column)
        if normalize_number(value):
            return value
    return 0


def index_conditions(conditions: Sequence[Dict[str, Any]]) -> Dict[Tuple[str, str], Dict[str, Any]]:
    lookup: Dict[Tuple[str, str], Dict[str, Any]] = {}
    for condition in conditions:
        lookup.setdefault(_condition_key(condition), condition)
    return lookup


def build_offers(
    prices: Sequence[Dict[str, Any]],
    conditions: Sequence[Dict[str, Any]],
    promotion_columns: Optional[Sequence[str]] = None,
    today: Optional[date] = None,
) -> Tuple[List[Offer], Dict[str, int]]:
    """
    Join, filter and deduplicate price rows into Offers.
    Returns the offers plus a count of dropped rows per reason.
    """
    lookup = index_conditions(conditions)
    offers: List[Offer] = []
    seen = set()
    dropped = {
        "no_condition": 0,
        "not_electricity": 0,
        "unpriceable": 0,
        "invalid_structure": 0,
        "duplicate": 0,
    }

    for price in prices:
        key = _condition_key(price)
        condition = lookup.get(key)
        if condition is None:
            dropped["no_condition"] += 1
            continue
        if normalize_string(condition.get("Fornecimento")).upper() != ELECTRICITY_SUPPLY:
            dropped["not_electricity"] += 1
            continue

        fixed_rate = normalize_number(price.get("TF", 0))
        peak_rate = normalize_number(_first_present(price, "TV|TVFV|TVP", "TV"))
        off_peak_rate = normalize_number(_first_present(price, "TVV|TVC", "TVV"))
        super_off_peak_rate = normalize_number(price.get("TVVz", 0))
        power = normalize_number(price.get("Pot_Cont", 0))
        structure_raw = price.get("Contagem", 1)
        structure = int(normalize_number(structure_raw)) if normalize_string(structure_raw) else 1

        if fixed_rate <= 0 or peak_rate <= 0 or power <= 0:
            dropped["unpriceable"] += 1
            logger.debug(f"Dropping unpriceable row {key} (TF={price.get('TF')!r}, TV={price.get('TV|TVFV|TVP')!r})")
            continue
        if structure not in TARIFF_STRUCTURES:
            dropped["invalid_structure"] += 1
            logger.debug(f"Dropping row {key} with unknown Contagem {structure_raw!r}")
            continue

        dedup_key = (key[0], key[1], power, structure)
        if dedup_key in seen:
            dropped["duplicate"] += 1
            continue
        seen.add(dedup_key)

        metadata = extract_campaign_metadata(condition, promotion_columns, today)
        offers.append(Offer(
            provider_code=key[0],
            proposal_code=key[1],
            power_kva=power,
            tariff_structure=structure,
            fixed_daily_rate=fixed_rate,
            peak_rate=peak_rate,
            off_peak_rate=off_peak_rate,
            super_off_peak_rate=super_off_peak_rate,
            **metadata,
        ))

    logger.info(
        f"🔗 Joined {len(offers)} offers | dropped: "
        + ", ".join(f"{reason}={count}" for reason, count in dropped.items())
    )
    return offers, dropped


def build_statistics(offers: Sequence[Offer]) -> Dict[str, Any]:
    """
    Aggregate catalog statistics. Promotions are metadata only, so
    promotionsAppliedCount is recorded as 0 for the build validator to check.
    """
    df = pd.DataFrame(
        {
            "hasLockIn": [o.has_lock_in for o in offers],
            "lockInSource": [o.lock_in_source for o in offers],
            "hasPromotion": [o.promotion is not None for o in offers],
            "promotionActive": [o.promotion.is_active if o.promotion else None for o in offers],
            "isOfferActive": [o.is_offer_active for o in offers],
        },
        dtype=object,
    )

    lock_in = df[df["hasLockIn"].eq(True)]
    promos = df[df["hasPromotion"].eq(True)]

    return {
        "lockInCount": int(len(lock_in)),
        "lockInBySourceTotals": {
            "field": int(lock_in["lockInSource"].eq("field").sum()),
            "text": int(lock_in["lockInSource"].eq("text").sum()),
        },
        "activeOffersCount": int(df["isOfferActive"].eq(True).sum()),
        "offersWithKnownActiveStatusCount": int(df["isOfferActive"].notna().sum()),
        "promotionsWithMetadataCount": int(len(promos)),
        "promotionsWithKnownActiveStatusCount": int(promos["promotionActive"].notna().sum()),
        "promotionsActiveCount": int(promos["promotionActive"].eq(True).sum()),
        "promotionsAppliedCount": 0,
    }


def collect_promotion_parsed_samples(
    offers: Sequence[Offer],
    conditions: Sequence[Dict[str, Any]],
    promotion_columns: Sequence[str],
) -> List[Dict[str, Any]]:
    lookup = index_conditions(conditions)
    samples: List[Dict[str, Any]] = []

    for offer in offers:
        if len(samples) >= MAX_PROMOTION_PARSED_SAMPLES:
            break
        if offer.promotion is None:
            continue
        condition = lookup.get((offer.provider_code, offer.proposal_code), {})
        source_column = next(
            (col for col in promotion_columns if isinstance(condition.get(col), str) and condition[col].strip()),
            "unknown",
        )
        samples.append({
            "COM": offer.provider_code,
            "COD_Proposta": offer.proposal_code,
            "NomeProposta": offer.tariff_name,
            "sourceColumn": source_column,
            "snippet": collapse_whitespace(condition.get(source_column, ""), 160),
            "parsed": {
                "fixedEuroMonth": offer.promotion.fixed_euro_month,
                "durationMonthsExtracted": offer.promotion.duration_months_extracted,
                "durationMonthsApplied": offer.promotion.duration_months_applied,
                "durationAssumed": offer.promotion.duration_assumed,
            },
        })

    return samples


def build_catalog(
    prices: Sequence[Dict[str, Any]],
    conditions: Sequence[Dict[str, Any]],
    today: Optional[date] = None,
) -> CatalogBuild:
    """
    Full batch rebuild of the offer catalog from the two parsed tables.
    """
    logger.info(f"🔨 Building offers | prices={len(prices)} conditions={len(conditions)}")

    discovery = discover_promotion_fields(conditions)
    columns = prioritized_columns(discovery)
    if columns:
        logger.info(f"   - Top promotion columns: {', '.join(columns[:3])}{'...' if len(columns) > 3 else ''}")

    offers, dropped = build_offers(prices, conditions, columns, today)
    statistics = build_statistics(offers)
    discovery["promotionParsedSamples"] = collect_promotion_parsed_samples(offers, conditions, columns)

    logger.info(f"✅ Built {len(offers)} offers")
    logger.info(f"   - Lock-in offers: {statistics['lockInCount']} {statistics['lockInBySourceTotals']}")
    logger.info(f"   - Active offers: {statistics['activeOffersCount']}")
    logger.info(
        f"   - Offers with promotion metadata: {statistics['promotionsWithMetadataCount']} "
        f"(applied: {statistics['promotionsAppliedCount']})"
    )
    if discovery["promotionFieldHits"] and statistics["promotionsWithMetadataCount"] == 0:
        logger.warning("⚠️ Promotion tokens found in data but no promotions extracted.")

    return CatalogBuild(
        offers=offers,
        discovery=discovery,
        statistics=statistics,
        row_counts={"prices": len(prices), "conditions": len(conditions)},
        dropped=dropped,
    )


def build_metadata_document(
    build: CatalogBuild,
    previous_meta: Optional[Dict[str, Any]] = None,
    built_at: Optional[datetime] = None,
) -> Dict[str, Any]:
    """
    Merge build info into the existing meta document. Keys written by the
    data-acquisition step (e.g. updatedAt) are preserved.
    """
    meta = dict(previous_meta) if isinstance(previous_meta, dict) else {}
    built_at = built_at or datetime.now(timezone.utc)

    meta["build"] = {
        "builtAt": built_at.isoformat().replace("+00:00", "Z"),
        "sourceUpdatedAt": meta.get("updatedAt"),
        "offersCount": len(build.offers),
        "rowCounts": build.row_counts,
        "filtersApplied": {
            "fornecimento": "ELE only (excluded GN and DUAL)",
            "lockInExcluded": False,
        },
        "statistics": build.statistics,
        "scriptVersion": BUILD_SCRIPT_VERSION,
    }
    meta["discovery"] = {
        "promotionFieldHits": build.discovery.get("promotionFieldHits", []),
        "samplePromotionSnippets": build.discovery.get("samplePromotionSnippets", []),
        "lockInSamples": build.discovery.get("lockInSamples", []),
        "lockInBySource": build.discovery.get("lockInBySource", {"field": 0, "text": 0}),
        "promotionParsedSamples": build.discovery.get("promotionParsedSamples", []),
    }
    return meta


def write_catalog_outputs(offers: Sequence[Offer], meta: Dict[str, Any], offers_path: str, meta_path: str):
    """Persist the snapshot (full replacement) and its meta document."""
    save_json([offer.to_dict() for offer in offers], offers_path)
    save_json(meta, meta_path)
    logger.info(f"💾 Wrote {len(offers)} offers -> {offers_path}")
