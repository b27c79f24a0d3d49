from tariff_comparator.catalog.discovery import (
    count_token_hits,
    discover_promotion_fields,
    prioritized_columns,
)


def test_count_token_hits_is_accent_insensitive():
    assert count_token_hits("Desconto MENSAL na fatura") >= 3
    assert count_token_hits("Bónus") == count_token_hits("bonus")
    assert count_token_hits("Energia verde") == 0


def test_columns_ranked_by_hits(conditions):
    report = discover_promotion_fields(conditions)
    ranked = [item["column"] for item in report["promotionFieldHits"]]
    assert ranked[0] == "TxTOferta"
    assert "TxTFidelização" in ranked
    hits = [item["hits"] for item in report["promotionFieldHits"]]
    assert hits == sorted(hits, reverse=True)


def test_prioritized_columns_limits_to_top_n(conditions):
    report = discover_promotion_fields(conditions)
    assert prioritized_columns(report, top_n=1) == ["TxTOferta"]
    assert len(prioritized_columns(report)) <= 5


def test_snippets_are_tagged_and_bounded(conditions):
    report = discover_promotion_fields(conditions)
    snippets = report["samplePromotionSnippets"]
    assert 0 < len(snippets) <= 25
    assert all(set(s) == {"COM", "COD_Proposta", "snippet", "columnName"} for s in snippets)
    assert all(len(s["snippet"]) <= 160 for s in snippets)


def test_lock_in_samples_only_from_flagged_rows(conditions):
    report = discover_promotion_fields(conditions)
    assert [s["COD_Proposta"] for s in report["lockInSamples"]] == ["IBD01"]
    assert report["lockInSamples"][0]["lockInMonths"] == 24
    assert report["lockInBySource"] == {"field": 1, "text": 0}


def test_no_conditions_gives_empty_report():
    report = discover_promotion_fields([])
    assert report["promotionFieldHits"] == []
    assert prioritized_columns(report) == []
