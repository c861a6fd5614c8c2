"""
Unit tests for merging explicit preferences with saved-tender signals.
"""

from datetime import date

import pytest

from tenderalert.models.profile import UserPreferences
from tenderalert.models.tender import Tender
from tenderalert.schemas.matching import MatchProfile
from tenderalert.services.preferences import build_match_profile, title_keywords


def saved(title: str, category: str, location: str, organization: str) -> Tender:
    return Tender(
        title=title,
        category=category,
        location=location,
        organization=organization,
        deadline=date(2026, 6, 30),
    )


@pytest.mark.unit
class TestTitleKeywords:
    def test_keeps_words_longer_than_five_characters(self):
        assert title_keywords("Supply of Medical Equipment, phase II") == ["supply", "medical", "equipment"]

    def test_strips_punctuation_and_lowercases(self):
        assert title_keywords("Construction of (Borehole) Works") == ["construction", "borehole"]

    def test_short_words_are_ignored(self):
        assert title_keywords("ICT kit for a lab") == []


@pytest.mark.unit
class TestBuildMatchProfile:
    def test_missing_preferences_and_no_saved_tenders_is_empty(self):
        profile = build_match_profile(None, [])

        assert profile == MatchProfile()
        assert not profile.has_budget

    def test_explicit_preferences_are_used(self):
        preferences = UserPreferences(
            sectors=["ICT"],
            counties=["Nairobi"],
            keywords=["Network", "network", " cabling "],
            budget_min=100_000,
            budget_max=None,
        )

        profile = build_match_profile(preferences, [])

        assert profile.categories == frozenset({"ICT"})
        assert profile.locations == frozenset({"Nairobi"})
        assert profile.keywords == ("network", "cabling")
        assert profile.budget_min == 100_000
        assert profile.has_budget

    def test_saved_tenders_extend_the_profile(self):
        preferences = UserPreferences(sectors=["ICT"], counties=[], keywords=[])
        tenders = [
            saved("Rehabilitation of county roads", "Construction", "Kisumu", "Kisumu County"),
            saved("Supply of laptops", "ICT", "Nairobi", "Ministry of ICT"),
        ]

        profile = build_match_profile(preferences, tenders)

        assert profile.categories == frozenset({"ICT", "Construction"})
        assert profile.locations == frozenset({"Kisumu", "Nairobi"})
        assert profile.saved_organizations == frozenset({"Kisumu County", "Ministry of ICT"})
        assert "rehabilitation" in profile.keywords
        assert "laptops" in profile.keywords
        assert "supply" in profile.keywords
