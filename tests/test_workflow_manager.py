import json

import pytest

from tariff_comparator.catalog.csv_parser import SourceDataError
from tariff_comparator.orchestrator import workflow_manager
from tariff_comparator.orchestrator.workflow_manager import (
    compare_from_bill,
    compare_from_invoice,
    compare_from_profile,
    export_ranking,
    load_offer_catalog,
    run_offer_build,
)
from tariff_comparator.validation.catalog_validator import CatalogValidationError


def test_run_offer_build_writes_snapshot(data_dir, today):
    meta = run_offer_build(data_dir=str(data_dir), today=today)
    records = json.loads((data_dir / "processed" / "offers.json").read_text(encoding="utf-8"))
    assert len(records) == meta["build"]["offersCount"] == 6
    assert all(r["fornecimento"] == "ELE" for r in records)
    written = json.loads((data_dir / "processed" / "meta.json").read_text(encoding="utf-8"))
    assert written["build"]["statistics"]["promotionsAppliedCount"] == 0
    assert written["build"]["rowCounts"] == {"prices": 10, "conditions": 5}


def test_run_offer_build_keeps_acquisition_keys(data_dir, today):
    processed = data_dir / "processed"
    processed.mkdir()
    (processed / "meta.json").write_text(json.dumps({"updatedAt": "2025-05-30T08:00:00Z"}), encoding="utf-8")
    meta = run_offer_build(data_dir=str(data_dir), today=today)
    assert meta["updatedAt"] == "2025-05-30T08:00:00Z"
    assert meta["build"]["sourceUpdatedAt"] == "2025-05-30T08:00:00Z"


def test_missing_source_is_fatal_and_writes_nothing(data_dir, today):
    (data_dir / "raw" / "CondComerciais.csv").unlink()
    with pytest.raises(SourceDataError):
        run_offer_build(data_dir=str(data_dir), today=today)
    assert not (data_dir / "processed" / "offers.json").exists()


def test_failed_validation_writes_nothing(monkeypatch, data_dir, today):
    monkeypatch.setattr(
        workflow_manager, "validate_catalog",
        lambda offers, meta: {"passed": False, "failures": ["forced"], "warnings": []},
    )
    with pytest.raises(CatalogValidationError):
        run_offer_build(data_dir=str(data_dir), today=today)
    assert not (data_dir / "processed" / "offers.json").exists()


def test_bad_rows_do_not_block_the_build(data_dir, today):
    prices_file = data_dir / "raw" / "Precos_ELEGN.csv"
    bad_rows = "\r\nEDP;EDP01;5,75;abc;0,2000;0,1500;;\r\nEDP;EDP01;3,45;1;25;15;;"
    prices_file.write_text(prices_file.read_text(encoding="utf-8") + bad_rows, encoding="utf-8")

    meta = run_offer_build(data_dir=str(data_dir), today=today)

    records = json.loads((data_dir / "processed" / "offers.json").read_text(encoding="utf-8"))
    assert len(records) == meta["build"]["offersCount"] == 7
    assert all(r["Contagem"] in (1, 2, 3) for r in records)


def test_load_offer_catalog_round_trip(data_dir, offers, today):
    run_offer_build(data_dir=str(data_dir), today=today)
    loaded = load_offer_catalog(str(data_dir / "processed" / "offers.json"))
    assert loaded == offers


def test_load_offer_catalog_missing(tmp_path):
    with pytest.raises(SourceDataError):
        load_offer_catalog(str(tmp_path / "offers.json"))


def test_compare_from_bill(offers, make_offer):
    catalog = list(offers) + [make_offer(fixed_daily_rate=0.20, peak_rate=0.12)]
    result = compare_from_bill(100, catalog)
    assert result["profile"]["confidence"] == "estimate"
    assert result["profile"]["power"] == 4.6
    assert result["best"].offer.proposal_code == "T01"
    assert result["savings"]["monthly"] == pytest.approx(100 - result["best"].monthly_cost)


def test_compare_from_profile_with_current_provider(offers, make_offer):
    catalog = list(offers) + [make_offer(provider_code="AUDAX", fixed_daily_rate=0.40, peak_rate=0.20)]
    result = compare_from_profile(250, 4.6, 1, catalog, current_provider="AUDAX")
    assert result["best"].offer.proposal_code == "EDP01"
    assert result["savings"]["vsProvider"] == "Audax"
    assert result["statistics"]["annualSavings"] == pytest.approx(result["savings"]["yearly"])
    assert result["plausible"] is True


def test_compare_flags_implausibly_cheap_best_offer(make_offer):
    catalog = [make_offer(fixed_daily_rate=0.001, peak_rate=0.001)]
    result = compare_from_profile(250, 4.6, 1, catalog)
    assert result["best"].monthly_cost < 5
    assert result["plausible"] is False


def test_compare_from_invoice(monkeypatch, offers):
    text = "EDP Comercial\nPotência Contratada: 4,60 kVA\nConsumo 250 kWh\n"
    monkeypatch.setattr(workflow_manager, "extract_text_from_pdf", lambda path: text)
    result = compare_from_invoice("invoice.pdf", offers)
    assert result["invoice"].provider == "EDP"
    assert result["profile"]["consumption"] == 250
    assert result["best"].offer.proposal_code == "EDP01"
    assert result["savings"] is None


def test_export_ranking(tmp_path, offers):
    result = compare_from_profile(250, 4.6, 1, offers)
    path = export_ranking(result["ranked"], data_dir=str(tmp_path))
    lines = (tmp_path / "output" / "ranking.csv").read_text(encoding="utf-8").splitlines()
    assert path.endswith("ranking.csv")
    assert lines[0].startswith("rank;provider;COM")
    assert len(lines) == 3
