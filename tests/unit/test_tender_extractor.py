"""
Unit tests for tender extraction and normalisation.

Covers:
- Category, deadline and budget normalisation
- Source URL resolution
- Pattern extraction over markdown and HTML links
- LLM extraction and its fallback to patterns
- OCDS feed items
"""

from datetime import date, timedelta

import pytest

from tenderalert.core.exceptions import AIServiceException
from tenderalert.services.firecrawl import ScrapedPage
from tenderalert.services.scraper import parse_ocds_item
from tenderalert.services.tender_extractor import (
    TenderExtractor,
    collect_tender_links,
    estimate_budget,
    extract_with_patterns,
    normalize_category,
    normalize_deadline,
    parse_budget,
    resolve_source_url,
    scraped_text,
)

TODAY = date(2026, 3, 2)
BASE_URL = "https://www.mygov.go.ke"


class FakeLLM:
    def __init__(self, reply=None, error: Exception | None = None):
        self.reply = reply
        self.error = error
        self.calls = 0

    async def complete_json(self, system, user, expect=list, **kwargs):
        self.calls += 1
        if self.error is not None:
            raise self.error
        return self.reply


def page(markdown: str, html: str = "") -> ScrapedPage:
    return ScrapedPage(url=f"{BASE_URL}/all-tenders", markdown=markdown, html=html)


@pytest.mark.unit
class TestNormalisation:
    @pytest.mark.parametrize(
        "raw,expected",
        [
            ("ICT", "ICT"),
            ("construction", "Construction"),
            ("IT services", "ICT"),
            ("Medical equipment", "Supply"),
            ("Road building", "Construction"),
            ("Hospital linen", "Healthcare"),
            ("Digital", "Other"),
            (None, "Other"),
            ("", "Other"),
        ],
    )
    def test_normalize_category(self, raw, expected):
        assert normalize_category(raw) == expected

    def test_aliases_match_whole_words_only(self):
        """'it' inside 'kitchen' is not the ICT alias."""
        assert normalize_category("Kitchen fittings") == "Other"

    @pytest.mark.parametrize(
        "raw,expected",
        [
            ("2026-04-15", date(2026, 4, 15)),
            ("15/04/2026", date(2026, 4, 15)),
            ("15 April 2026", date(2026, 4, 15)),
            (date(2026, 5, 1), date(2026, 5, 1)),
        ],
    )
    def test_normalize_deadline_parses_known_formats(self, raw, expected):
        assert normalize_deadline(raw, TODAY) == expected

    @pytest.mark.parametrize("raw", [None, "", "soon", "2025-12-31"])
    def test_missing_bad_or_past_deadline_falls_back(self, raw):
        assert normalize_deadline(raw, TODAY) == TODAY + timedelta(days=30)

    def test_deadline_today_is_kept(self):
        assert normalize_deadline("2026-03-02", TODAY) == TODAY

    def test_estimate_budget_is_range_midpoint(self):
        assert estimate_budget("ICT") == 26_000_000
        assert estimate_budget("Agriculture") == 10_500_000

    @pytest.mark.parametrize(
        "raw,expected",
        [
            (2_500_000, 2_500_000.0),
            ("KES 1,200,000", 1_200_000.0),
            ("0", None),
            (-5, None),
            ("n/a", None),
            (None, None),
        ],
    )
    def test_parse_budget(self, raw, expected):
        assert parse_budget(raw) == expected


@pytest.mark.unit
class TestSourceUrl:
    def test_absolute_link_wins(self):
        assert resolve_source_url("https://x.go.ke/t/1", "T-1", BASE_URL) == "https://x.go.ke/t/1"

    def test_relative_link_is_joined_to_base(self):
        assert resolve_source_url("/tenders/55", None, BASE_URL + "/") == f"{BASE_URL}/tenders/55"

    def test_tender_number_builds_detail_url(self):
        url = resolve_source_url(None, "MOH/01/2026", BASE_URL)

        assert url == "https://tenders.go.ke/website/tender/search/item/detail/MOH%2F01%2F2026"

    def test_falls_back_to_portal(self):
        assert resolve_source_url(None, None, BASE_URL) == BASE_URL


@pytest.mark.unit
class TestPatternExtraction:
    def test_collects_tender_links(self):
        html = (
            '<a href="/tenders/123">Supply of Laptops to County Offices</a>'
            '<a href="/about">About the ministry and its work</a>'
            '<a href="/bid/9">Short</a>'
        )

        links = collect_tender_links(html, BASE_URL)

        assert links == {"supply of laptops to county offices": f"{BASE_URL}/tenders/123"}

    def test_extracts_titles_and_links(self):
        markdown = (
            "Tender for Supply of Laptops to County Offices. "
            "Invitation to tender: Construction of Kisumu Market Stalls\n"
        )
        html = '<a href="/tenders/123">Supply of Laptops to County Offices</a>'

        tenders = extract_with_patterns("mygov", page(markdown, html), BASE_URL, TODAY)
        by_title = {t.title: t for t in tenders}

        assert "Supply of Laptops to County Offices" in by_title
        assert "Construction of Kisumu Market Stalls" in by_title
        laptops = by_title["Supply of Laptops to County Offices"]
        assert laptops.source_url == f"{BASE_URL}/tenders/123"
        assert laptops.deadline == TODAY + timedelta(days=30)
        assert laptops.organization == "Government of Kenya"
        assert laptops.scraped_from == "mygov"
        assert by_title["Construction of Kisumu Market Stalls"].source_url == BASE_URL

    def test_short_titles_are_ignored(self):
        assert extract_with_patterns("mygov", page("Tender for pens"), BASE_URL, TODAY) == []

    def test_results_are_capped(self):
        markdown = "\n".join(f"Tender for item number {i:02d} widgets" for i in range(15))

        assert len(extract_with_patterns("mygov", page(markdown), BASE_URL, TODAY)) == 10


@pytest.mark.unit
class TestTenderExtractor:
    LONG_MARKDOWN = "Open tenders listing. " * 10

    async def test_llm_items_are_normalised(self):
        llm = FakeLLM(
            reply=[
                {
                    "title": "Supply of Network Switches",
                    "organization": "ICT Authority",
                    "category": "IT",
                    "deadline": "2020-01-01",
                    "budgetEstimate": None,
                    "sourceLink": "/tender/9",
                },
                {"title": "", "organization": "Nobody"},
                "not a dict",
            ]
        )
        extractor = TenderExtractor(llm=llm)

        tenders, method = await extractor.extract("mygov", page(self.LONG_MARKDOWN), BASE_URL, TODAY)

        assert method == "llm"
        assert len(tenders) == 1
        tender = tenders[0]
        assert tender.category == "ICT"
        assert tender.deadline == TODAY + timedelta(days=30)
        assert tender.budget_estimate == 26_000_000
        assert tender.source_url == f"{BASE_URL}/tender/9"
        assert tender.location == "Nairobi"

    async def test_llm_failure_falls_back_to_patterns(self):
        llm = FakeLLM(error=AIServiceException("gateway down"))
        markdown = self.LONG_MARKDOWN + "\nTender for Supply of Assorted Stationery\n"

        tenders, method = await TenderExtractor(llm=llm).extract("mygov", page(markdown), BASE_URL, TODAY)

        assert method == "patterns"
        assert [t.title for t in tenders] == ["Supply of Assorted Stationery"]

    async def test_short_pages_skip_the_llm(self):
        llm = FakeLLM(reply=[])

        _, method = await TenderExtractor(llm=llm).extract("mygov", page("tiny"), BASE_URL, TODAY)

        assert method == "patterns"
        assert llm.calls == 0

    async def test_numeric_llm_fields_are_read_as_text(self):
        llm = FakeLLM(
            reply=[
                {
                    "title": "Supply of Office Furniture",
                    "organization": "Kenya Revenue Authority",
                    "location": 47,
                    "tenderNumber": 4512,
                    "sourceLink": None,
                    "requirements": "Tax compliance certificate",
                }
            ]
        )

        tenders, method = await TenderExtractor(llm=llm).extract("mygov", page(self.LONG_MARKDOWN), BASE_URL, TODAY)

        assert method == "llm"
        tender = tenders[0]
        assert tender.tender_number == "4512"
        assert tender.location == "47"
        assert tender.requirements == []
        assert tender.source_url == "https://tenders.go.ke/website/tender/search/item/detail/4512"


@pytest.mark.unit
class TestOcdsItems:
    def test_maps_feed_fields(self):
        item = {
            "tender_name": "Provision of Cleaning Services",
            "closing_date": "2026-04-10",
            "tender_category": "Services",
            "procuring_entity": "Kenya Ports Authority",
            "county": "Mombasa",
            "tender_value": "3,000,000",
            "tender_no": "KPA/044/2026",
        }

        tender = parse_ocds_item(item, TODAY)

        assert tender.title == "Provision of Cleaning Services"
        assert tender.deadline == date(2026, 4, 10)
        assert tender.category == "Consultancy"
        assert tender.organization == "Kenya Ports Authority"
        assert tender.location == "Mombasa"
        assert tender.budget_estimate == 3_000_000
        assert tender.tender_number == "KPA/044/2026"
        assert tender.scraped_from == "tenders.go.ke"

    @pytest.mark.parametrize(
        "item",
        [
            {"closing_date": "2026-04-10"},
            {"tender_name": "Provision of Cleaning Services"},
        ],
    )
    def test_items_without_title_or_deadline_are_skipped(self, item):
        assert parse_ocds_item(item, TODAY) is None

    def test_numeric_feed_values_are_read_as_text(self):
        item = {
            "tender_name": "Supply of Maize Seed",
            "closing_date": "2026-04-10",
            "tender_no": 778,
            "county": 12,
        }

        tender = parse_ocds_item(item, TODAY)

        assert tender.tender_number == "778"
        assert tender.location == "12"
        assert tender.organization == "Government of Kenya"


@pytest.mark.unit
@pytest.mark.parametrize(
    "raw,expected",
    [
        (" KPA/044 ", "KPA/044"),
        (4512, "4512"),
        ("", None),
        ("   ", None),
        (None, None),
        ({"id": 1}, None),
        (["a"], None),
    ],
)
def test_scraped_text(raw, expected):
    assert scraped_text(raw) == expected
