"""
Tender extraction from scraped portal pages.

Two strategies:
  1. LLM extraction over the page markdown (when a gateway key is set)
  2. Pattern extraction over markdown + HTML links (always available)

Both feed the same normalisation so inserted rows look alike regardless
of how they were found.
"""

import re
from datetime import date, datetime, timedelta
from typing import Any
from urllib.parse import quote, urljoin

from bs4 import BeautifulSoup
from pydantic import ValidationError

from tenderalert.core.config import get_settings
from tenderalert.core.exceptions import AIServiceException
from tenderalert.core.logging import get_logger
from tenderalert.schemas.scraper import ScrapedTender
from tenderalert.services.firecrawl import ScrapedPage
from tenderalert.services.llm import LLMClient

logger = get_logger(__name__)

CATEGORIES = (
    "Construction",
    "ICT",
    "Consultancy",
    "Supply",
    "Transport",
    "Healthcare",
    "Education",
    "Agriculture",
    "Environment",
    "Other",
)

# Checked in order; matched as whole words against the lower-cased input
CATEGORY_ALIASES: tuple[tuple[str, str], ...] = (
    ("it", "ICT"),
    ("technology", "ICT"),
    ("software", "ICT"),
    ("hardware", "ICT"),
    ("building", "Construction"),
    ("infrastructure", "Construction"),
    ("roads", "Construction"),
    ("goods", "Supply"),
    ("equipment", "Supply"),
    ("materials", "Supply"),
    ("services", "Consultancy"),
    ("professional", "Consultancy"),
    ("medical", "Healthcare"),
    ("hospital", "Healthcare"),
    ("pharmaceutical", "Healthcare"),
    ("school", "Education"),
    ("training", "Education"),
    ("farming", "Agriculture"),
    ("livestock", "Agriculture"),
    ("water", "Environment"),
    ("vehicles", "Transport"),
)

CATEGORY_BUDGET_RANGES: dict[str, tuple[int, int]] = {
    "Construction": (10_000_000, 100_000_000),
    "ICT": (2_000_000, 50_000_000),
    "Consultancy": (1_000_000, 20_000_000),
    "Supply": (500_000, 30_000_000),
    "Transport": (3_000_000, 40_000_000),
    "Healthcare": (5_000_000, 80_000_000),
    "Education": (2_000_000, 25_000_000),
    "Other": (1_000_000, 20_000_000),
}

DEFAULT_DEADLINE_DAYS = 30
DEFAULT_ORGANIZATION = "Government of Kenya"
DEFAULT_LOCATION = "Nairobi"
TENDER_DETAIL_URL = "https://tenders.go.ke/website/tender/search/item/detail/{number}"

LLM_MIN_MARKDOWN_CHARS = 100
LLM_MAX_MARKDOWN_CHARS = 8000
PATTERN_MAX_RESULTS = 10
PATTERN_MIN_TITLE_CHARS = 10
LINK_KEY_CHARS = 50

TITLE_PATTERNS = (
    re.compile(
        r"(?:tender|procurement|supply|provision|construction|consultancy)\s+(?:for|of)\s+([^|.\n]+)",
        re.IGNORECASE,
    ),
    re.compile(r"invitation\s+to\s+(?:tender|bid|quote)[:\s]+([^|.\n]+)", re.IGNORECASE),
)
LINK_HREF_PATTERN = re.compile(r"tender|bid|procurement", re.IGNORECASE)

EXTRACTION_SYSTEM_PROMPT = (
    "You are a data extraction expert. Extract tender/procurement information from "
    "Kenyan government websites. Return ONLY a valid JSON array."
)

EXTRACTION_USER_PROMPT = """Extract all tenders from this {source} government website content. Return a JSON array of tenders.

Each tender should have:
- title (required): The EXACT tender title as written on the page
- organization (required): The EXACT procuring entity name as written
- category: One of: {categories}
- location: County or region in Kenya (default: "Nairobi" if not specified)
- deadline: Date in YYYY-MM-DD format, or null if not stated
- budgetEstimate: Number in KES, or null if not stated
- tenderNumber: Official reference number if available
- description: Brief description of what is being procured
- sourceLink: The specific URL or path of this tender's page if visible, else null

Extract titles and organization names verbatim. Do NOT paraphrase.

CONTENT TO PARSE:
{content}

If no tenders are found, return []"""


def normalize_category(raw: str | None) -> str:
    if not raw:
        return "Other"
    cleaned = raw.strip()
    for category in CATEGORIES:
        if cleaned.lower() == category.lower():
            return category
    lowered = cleaned.lower()
    for alias, category in CATEGORY_ALIASES:
        if re.search(rf"\b{re.escape(alias)}\b", lowered):
            return category
    return "Other"


def normalize_deadline(raw: Any, today: date | None = None) -> date:
    """Parse a deadline; missing, unparseable or past dates become today + 30 days."""
    today = today or date.today()
    fallback = today + timedelta(days=DEFAULT_DEADLINE_DAYS)
    if isinstance(raw, date):
        parsed = raw
    elif raw:
        text = str(raw).strip()
        parsed = None
        for fmt in ("%Y-%m-%d", "%d/%m/%Y", "%d-%m-%Y", "%d %B %Y", "%d %b %Y", "%B %d, %Y"):
            try:
                parsed = datetime.strptime(text[:30], fmt).date()
                break
            except ValueError:
                continue
        if parsed is None:
            try:
                parsed = datetime.fromisoformat(text).date()
            except ValueError:
                return fallback
    else:
        return fallback
    return parsed if parsed >= today else fallback


def estimate_budget(category: str) -> float:
    """Midpoint of the typical award range for the category."""
    low, high = CATEGORY_BUDGET_RANGES.get(category, CATEGORY_BUDGET_RANGES["Other"])
    return float((low + high) // 2)


def parse_budget(raw: Any) -> float | None:
    if raw is None or raw == "":
        return None
    if isinstance(raw, (int, float)):
        return float(raw) if raw > 0 else None
    digits = re.sub(r"[^\d.]", "", str(raw))
    try:
        value = float(digits)
    except ValueError:
        return None
    return value if value > 0 else None


def scraped_text(value: Any) -> str | None:
    """Feeds and LLM replies mix strings and numbers; keep non-empty values as stripped text."""
    if value is None or isinstance(value, (dict, list)):
        return None
    text = str(value).strip()
    return text or None


def resolve_source_url(link: str | None, tender_number: str | None, base_url: str) -> str:
    """Explicit link, then base + path, then tender-number detail page, then the portal."""
    if link and link.startswith("http"):
        return link
    if link and link.startswith("/"):
        return f"{base_url.rstrip('/')}{link}"
    if tender_number:
        return TENDER_DETAIL_URL.format(number=quote(tender_number, safe=""))
    return base_url


def normalize_llm_tender(item: dict[str, Any], source: str, base_url: str, today: date) -> ScrapedTender | None:
    """One LLM-extracted item, or None when it has no usable title or fails validation."""
    title = scraped_text(item.get("title"))
    if not title:
        return None
    organization = scraped_text(item.get("organization")) or DEFAULT_ORGANIZATION
    category = normalize_category(scraped_text(item.get("category")))
    tender_number = scraped_text(item.get("tenderNumber") or item.get("tender_number"))
    requirements = item.get("requirements")
    try:
        return ScrapedTender(
            title=title[:500],
            description=scraped_text(item.get("description"))
            or f"{title} - Procurement opportunity from {organization}",
            organization=organization,
            category=category,
            location=scraped_text(item.get("location")) or DEFAULT_LOCATION,
            deadline=normalize_deadline(item.get("deadline"), today),
            budget_estimate=parse_budget(item.get("budgetEstimate")) or estimate_budget(category),
            tender_number=tender_number,
            requirements=[str(r) for r in requirements] if isinstance(requirements, list) else [],
            source_url=resolve_source_url(scraped_text(item.get("sourceLink")), tender_number, base_url),
            scraped_from=source,
        )
    except ValidationError as e:
        logger.warning("Skipping malformed extracted tender", source=source, title=title[:80], error=str(e))
        return None


def collect_tender_links(html: str, base_url: str) -> dict[str, str]:
    """Map the first 50 lower-cased chars of each tender-ish link text to its absolute URL."""
    links: dict[str, str] = {}
    if not html:
        return links
    soup = BeautifulSoup(html, "html.parser")
    for anchor in soup.find_all("a", href=LINK_HREF_PATTERN):
        text = anchor.get_text(strip=True)
        if len(text) > PATTERN_MIN_TITLE_CHARS:
            links[text.lower()[:LINK_KEY_CHARS]] = urljoin(base_url.rstrip("/") + "/", anchor["href"])
    return links


def extract_with_patterns(
    source: str,
    page: ScrapedPage,
    base_url: str,
    today: date | None = None,
) -> list[ScrapedTender]:
    today = today or date.today()
    links = collect_tender_links(page.html, base_url)
    tenders: list[ScrapedTender] = []
    seen: set[str] = set()

    for pattern in TITLE_PATTERNS:
        for match in pattern.finditer(page.markdown):
            title = match.group(1).strip()[:200]
            if len(title) <= PATTERN_MIN_TITLE_CHARS or title.lower() in seen:
                continue
            seen.add(title.lower())
            tenders.append(
                ScrapedTender(
                    title=title,
                    description=f"Procurement opportunity: {title}",
                    organization=DEFAULT_ORGANIZATION,
                    category=normalize_category(title),
                    location=DEFAULT_LOCATION,
                    deadline=today + timedelta(days=DEFAULT_DEADLINE_DAYS),
                    source_url=links.get(title.lower()[:LINK_KEY_CHARS], base_url),
                    scraped_from=source,
                )
            )

    return tenders[:PATTERN_MAX_RESULTS]


class TenderExtractor:
    """Chooses between LLM and pattern extraction for one scraped page."""

    def __init__(self, llm: LLMClient | None = None) -> None:
        if llm is None and get_settings().llm_enabled:
            llm = LLMClient()
        self.llm = llm

    async def extract(
        self,
        source: str,
        page: ScrapedPage,
        base_url: str,
        today: date | None = None,
    ) -> tuple[list[ScrapedTender], str]:
        """Returns the tenders and the method used (``llm`` or ``patterns``)."""
        today = today or date.today()

        if self.llm is not None and len(page.markdown) >= LLM_MIN_MARKDOWN_CHARS:
            try:
                items = await self.llm.complete_json(
                    EXTRACTION_SYSTEM_PROMPT,
                    EXTRACTION_USER_PROMPT.format(
                        source=source,
                        categories=", ".join(CATEGORIES),
                        content=page.markdown[:LLM_MAX_MARKDOWN_CHARS],
                    ),
                    expect=list,
                )
            except AIServiceException as e:
                logger.warning("LLM extraction failed, using patterns", source=source, error=e.message)
            else:
                tenders = [
                    t for t in (
                        normalize_llm_tender(item, source, base_url, today)
                        for item in items
                        if isinstance(item, dict)
                    )
                    if t is not None
                ]
                return tenders, "llm"

        return extract_with_patterns(source, page, base_url, today), "patterns"
