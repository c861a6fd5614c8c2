"""
Unit tests for the win-probability engine (pure computation only).
"""

from datetime import date

import pytest

from tenderalert.models.historical_award import HistoricalTenderAward
from tenderalert.services.win_probability import (
    adjust_for_inflation,
    competition_level,
    estimate_win_probability,
    year_of,
)


def award(**overrides) -> HistoricalTenderAward:
    values = {
        "organization": "Nairobi City County",
        "category": "Construction",
        "location": "Nairobi",
        "awarded_amount": 1_000_000,
        "winner_type": "sme",
        "award_date": date(2026, 1, 15),
        "bid_count": 2,
        "source": "test",
    }
    values.update(overrides)
    return HistoricalTenderAward(**values)


@pytest.mark.unit
class TestInflation:
    def test_compounds_each_year_up_to_current(self):
        assert adjust_for_inflation(100, 2024, 2026) == pytest.approx(100 * 1.069 * 1.055)

    def test_unknown_years_use_default_rate(self):
        assert adjust_for_inflation(100, 2017, 2018) == pytest.approx(105)

    def test_current_year_is_unchanged(self):
        assert adjust_for_inflation(100, 2026, 2026) == 100

    def test_year_of_text_and_missing_dates(self):
        assert year_of("FY 2023/24", 2026) == 2023
        assert year_of(None, 2026) == 2025


@pytest.mark.unit
class TestCompetitionLevel:
    @pytest.mark.parametrize("bids,level", [(1, "low"), (3, "low"), (4, "medium"), (8, "medium"), (9, "high")])
    def test_from_bid_count(self, bids, level):
        assert competition_level(award(bid_count=bids)) == level

    def test_recorded_level_wins(self):
        assert competition_level(award(bid_count=20, competition_level="low")) == "low"

    def test_unknown_defaults_to_medium(self):
        assert competition_level(award(bid_count=None)) == "medium"


@pytest.mark.unit
class TestEstimate:
    def test_no_history_gives_baseline(self):
        estimate = estimate_win_probability([], "Nairobi", 1_000_000, current_year=2026)

        assert estimate.win_probability == 44
        assert estimate.confidence_score == 30
        assert estimate.percentage_error == 49
        assert estimate.bid_range == {"low": 800_000, "optimal": 1_000_000, "high": 1_200_000}
        assert estimate.historical["sample_size"] == 0

    def test_consistent_local_history_scores_high(self):
        awards = [award() for _ in range(10)]

        estimate = estimate_win_probability(awards, "Nairobi", 1_000_000, current_year=2026)

        assert estimate.factor_scores == {
            "category": 80,
            "location": 90,
            "budget_fit": 100,
            "trend": 75,
            "competition": 80,
        }
        assert estimate.win_probability == 85
        assert estimate.confidence_score == 70
        assert estimate.percentage_error == 26
        assert estimate.historical["common_winner_types"] == ["sme"]
        assert estimate.historical["competition_level"] == "low"

    def test_probability_is_clamped(self):
        awards = [award(location="Kenya", bid_count=30, awarded_amount=100_000_000)]

        estimate = estimate_win_probability(awards, "Nairobi", 1_000, current_year=2026)

        assert 5 <= estimate.win_probability <= 95
        assert 10 <= estimate.percentage_error <= 50

    def test_to_dict_carries_disclaimer(self):
        payload = estimate_win_probability([], None, None, current_year=2026).to_dict()

        assert payload["disclaimer"]
        assert payload["bid_range"]["optimal"] == 0
