from datetime import date

import pytest

from tariff_comparator.catalog.metadata_extractor import (
    compute_offer_active,
    detect_cycle_type,
    detect_lock_in,
    extract_campaign_metadata,
    extract_promotion,
    parse_offer_date,
)


# ----------------------------------------------------------------------
# Lock-in
# ----------------------------------------------------------------------
def test_lock_in_detected_from_text_only():
    lock_in = detect_lock_in({"FiltroFidelização": "", "TxTFidelização": "fidelização de 12 meses"})
    assert lock_in.has_lock_in is True
    assert lock_in.source == "text"
    assert lock_in.months == 12


def test_lock_in_flag_uses_duration_field():
    lock_in = detect_lock_in({"FiltroFidelização": "S", "DuracaoContrato": 24})
    assert (lock_in.has_lock_in, lock_in.months, lock_in.source) == (True, 24, "field")


def test_lock_in_flag_falls_back_to_text_years():
    lock_in = detect_lock_in({"FiltroFidelização": "S", "TxTOferta": "Contrato válido por 2 anos"})
    assert lock_in.months == 24
    assert lock_in.source == "field"


def test_lock_in_keyword_overrides_negative_flag():
    lock_in = detect_lock_in({"FiltroFidelização": "N", "TxTRestricoesAdic": "Penalização por rescisão antecipada"})
    assert lock_in.has_lock_in is True
    assert lock_in.source == "text"
    assert lock_in.months is None


def test_negated_lock_in_mention_is_ignored():
    lock_in = detect_lock_in({"FiltroFidelização": "N", "TxTOferta": "Oferta sem fidelização"})
    assert lock_in.has_lock_in is False


def test_no_lock_in():
    lock_in = detect_lock_in({"FiltroFidelização": "N", "TxTOferta": "Energia 100% verde"})
    assert (lock_in.has_lock_in, lock_in.months, lock_in.source) == (False, None, None)


# ----------------------------------------------------------------------
# Promotions
# ----------------------------------------------------------------------
def test_one_off_voucher_is_not_a_promotion():
    assert extract_promotion({"TxTOferta": "recebe 50€ de oferta"}) is None


def test_monthly_discount_with_duration():
    promo = extract_promotion({"TxTOferta": "5€/mês durante 6 meses"})
    assert promo.fixed_euro_month == 5.0
    assert promo.duration_months_extracted == 6
    assert promo.duration_months_applied == 6
    assert promo.duration_assumed is False


def test_bill_discount_without_duration_assumes_twelve_months():
    promo = extract_promotion({"TxTOferta": "Desconto de 10€ na fatura"})
    assert promo.fixed_euro_month == 10.0
    assert promo.duration_months_extracted is None
    assert promo.duration_months_applied == 12
    assert promo.duration_assumed is True


def test_long_duration_is_clamped():
    promo = extract_promotion({"TxTOferta": "3,5€/mês durante 36 meses"})
    assert promo.fixed_euro_month == 3.5
    assert promo.duration_months_extracted == 24
    assert promo.duration_months_applied == 12


def test_first_year_duration():
    promo = extract_promotion({"TxTOferta": "2€ por mês no primeiro ano"})
    assert promo.duration_months_extracted == 12
    assert promo.duration_assumed is False


def test_prioritized_columns_replace_fallback_columns():
    condition = {"TxTOferta": "5€/mês", "CampanhaX": "sem desconto"}
    assert extract_promotion(condition, ["CampanhaX"]) is None
    assert extract_promotion(condition, ["TxTOferta"]).fixed_euro_month == 5.0


def test_empty_text_has_no_promotion():
    assert extract_promotion({}) is None


# ----------------------------------------------------------------------
# Cycle type / dates
# ----------------------------------------------------------------------
@pytest.mark.parametrize(
    "name, expected",
    [
        ("Tarifa Diário", "daily"),
        ("Ciclo Semanal", "weekly"),
        ("Semanal sem feriados", "weekly"),
        ("Casa Simples", None),
        ("", None),
    ],
)
def test_detect_cycle_type(name, expected):
    assert detect_cycle_type(name) == expected


@pytest.mark.parametrize(
    "value, expected",
    [
        ("31/12/2025", date(2025, 12, 31)),
        ("1/2/2025", date(2025, 2, 1)),
        ("2025-01-31", date(2025, 1, 31)),
        ("31/02/2025", None),
        ("sem data", None),
        ("", None),
        (None, None),
    ],
)
def test_parse_offer_date(value, expected):
    assert parse_offer_date(value) == expected


def test_compute_offer_active():
    today = date(2025, 6, 1)
    assert compute_offer_active("01/01/2025", "31/12/2025", today) is True
    assert compute_offer_active("01/06/2025", "01/06/2025", today) is True
    assert compute_offer_active("01/01/2024", "31/12/2024", today) is False
    assert compute_offer_active("", "31/12/2025", today) is None
    assert compute_offer_active("32/01/2025", "31/12/2025", today) is None


def test_campaign_metadata_fields():
    metadata = extract_campaign_metadata(
        {
            "COD_Proposta": "X1",
            "NomeProposta": "",
            "Fornecimento": "ELE",
            "LinkOfertaCom": "",
            "LinkCOM": "https://example.pt",
            "FiltroPrecosIndex": "S",
            "TxTOferta": "Oferta " + "x" * 300,
        },
        today=date(2025, 6, 1),
    )
    assert metadata["tariff_name"] == "X1"
    assert metadata["website"] == "https://example.pt"
    assert metadata["is_indexed"] is True
    assert metadata["is_offer_active"] is None
    assert metadata["is_promotion_active"] is None
    assert len(metadata["campaign_summary"]) <= 200
