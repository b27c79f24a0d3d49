import pytest

from tariff_comparator.pricing import offer_selector
from tariff_comparator.pricing.offer_selector import (
    NoValidCostError,
    NoValidOfferError,
    OfferNotFoundError,
    filter_candidates,
    find_best_offer,
    find_best_single_rate_offer,
    rank_offers,
    ranking_frame,
)


def test_best_offer_for_default_profile(offers):
    best = find_best_offer(offers, 250, 4.6, 1)
    assert best.offer.proposal_code == "EDP01"
    assert best.monthly_cost == pytest.approx(62.238)
    assert best.annual_cost_effective == pytest.approx(62.238 * 12)


def test_lock_in_offers_never_selected(offers):
    # GAL01 and IBD01 are cheaper but carry a lock-in
    for consumption in (50, 250, 1000):
        assert find_best_offer(offers, consumption, 4.6, 1).offer.has_lock_in is False
    ranked = rank_offers(offers, 250, 4.6, 1)
    assert all(not r.offer.has_lock_in for r in ranked)


def test_lock_in_offers_included_on_request(offers):
    ranked = rank_offers(offers, 250, 4.6, 1, exclude_lock_in=False)
    assert ranked[0].offer.proposal_code == "IBD01"


def test_ties_resolved_by_display_name(offers):
    # EDP Simples and Gold Base share identical prices
    forward = find_best_offer(offers, 250, 4.6, 1)
    backward = find_best_offer(list(reversed(offers)), 250, 4.6, 1)
    assert forward.offer.display_name == backward.offer.display_name == "EDP Simples"


def test_tie_break_is_case_insensitive(make_offer):
    offers = [make_offer(proposal_code="B", tariff_name="beta"), make_offer(proposal_code="A", tariff_name="Alpha")]
    assert find_best_offer(offers, 250, 4.6, 1).offer.proposal_code == "A"


def test_non_standard_power_has_no_offer(offers):
    with pytest.raises(NoValidOfferError) as excinfo:
        find_best_offer(offers, 250, 99, 1)
    assert excinfo.value.power == 99
    assert excinfo.value.tariff_structure == 1
    assert isinstance(excinfo.value, OfferNotFoundError)


def test_structure_must_match_exactly(offers):
    ranked = rank_offers(offers, 250, 4.6, 2)
    assert [r.offer.tariff_structure for r in ranked] == [2]
    with pytest.raises(NoValidOfferError):
        find_best_offer(offers, 250, 4.6, 3)


def test_power_tolerance(offers):
    assert find_best_offer(offers, 250, 4.605, 1).offer.proposal_code == "EDP01"
    with pytest.raises(NoValidOfferError):
        find_best_offer(offers, 250, 4.65, 1)


def test_unpriced_offers_filtered(make_offer):
    offers = [make_offer(fixed_daily_rate=0.0), make_offer(peak_rate=0.0, proposal_code="T02")]
    assert filter_candidates(offers, 4.6, 1) == []


def test_no_valid_cost(monkeypatch, offers):
    monkeypatch.setattr(offer_selector, "calculate_monthly_cost", lambda *args, **kwargs: float("nan"))
    with pytest.raises(NoValidCostError) as excinfo:
        find_best_offer(offers, 250, 4.6, 1)
    assert excinfo.value.consumption == 250


def test_single_rate_variant(offers):
    assert find_best_single_rate_offer(offers, 250, 6.9).offer.power_kva == 6.9


def test_ranking_frame(offers):
    frame = ranking_frame(rank_offers(offers, 250, 4.6, 1))
    assert list(frame["rank"]) == [1, 2]
    assert list(frame["COD_Proposta"]) == ["EDP01", "GOLD01"]
    assert frame.loc[0, "provider"] == "EDP"
    assert frame.loc[1, "provider"] == "Goldenergy"
    assert frame.loc[0, "monthlyCost"] == pytest.approx(62.24)
