"""
Tender scraping orchestration.

Fetches each configured portal, extracts and normalises tenders, and
inserts the ones whose title is not already stored. Every source succeeds
or fails on its own; a scrape run never aborts part-way.
"""

from dataclasses import dataclass
from datetime import date
from typing import Any

import httpx
from pydantic import ValidationError
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from tenderalert.core.config import get_settings
from tenderalert.core.exceptions import AppException, ScraperServiceException, ValidationException
from tenderalert.core.logging import get_logger, log_context
from tenderalert.models.tender import Tender, TenderStatus
from tenderalert.schemas.scraper import ScrapedTender, ScrapeRunResponse, SourceResult
from tenderalert.services.automation import log_automation
from tenderalert.services.firecrawl import FirecrawlClient
from tenderalert.services.tender_extractor import (
    TenderExtractor,
    normalize_category,
    normalize_deadline,
    parse_budget,
    scraped_text,
)

logger = get_logger(__name__)


@dataclass(frozen=True)
class TenderSource:
    key: str
    name: str
    url: str
    base_url: str
    kind: str = "rendered"   # rendered (Firecrawl) or ocds (JSON feed)


SOURCES: dict[str, TenderSource] = {
    source.key: source
    for source in (
        TenderSource("mygov", "MyGov Kenya", "https://www.mygov.go.ke/all-tenders", "https://www.mygov.go.ke"),
        TenderSource("tenders.go.ke", "Public Procurement Information Portal", "https://tenders.go.ke/", "https://tenders.go.ke"),
        TenderSource("egpkenya", "e-GP Kenya", "https://egpkenya.go.ke/tender", "https://egpkenya.go.ke"),
        TenderSource("ppra", "PPRA Contract Awards", "https://ppra.go.ke/contract-awards/", "https://ppra.go.ke"),
        TenderSource(
            "tenders.go.ke-api",
            "PPIP OCDS feed",
            "https://tenders.go.ke/api/ocds/tenders",
            "https://tenders.go.ke",
            kind="ocds",
        ),
    )
}


def parse_ocds_item(item: dict[str, Any], today: date) -> ScrapedTender | None:
    """One OCDS feed row, or None when it lacks a title or deadline or fails validation."""
    title = scraped_text(item.get("tender_name") or item.get("title"))
    deadline_raw = item.get("closing_date") or item.get("deadline")
    if not title or not deadline_raw:
        return None
    category = normalize_category(scraped_text(item.get("tender_category") or item.get("category")))
    try:
        return ScrapedTender(
            title=title[:500],
            description=scraped_text(item.get("tender_description") or item.get("description")),
            organization=scraped_text(item.get("procuring_entity") or item.get("organization"))
            or "Government of Kenya",
            category=category,
            location=scraped_text(item.get("county") or item.get("location")) or "Kenya",
            deadline=normalize_deadline(deadline_raw, today),
            budget_estimate=parse_budget(item.get("tender_value")),
            tender_number=scraped_text(item.get("tender_no") or item.get("reference_number")),
            contact_email=scraped_text(item.get("contact_email")),
            source_url="https://tenders.go.ke/",
            scraped_from="tenders.go.ke",
        )
    except ValidationError as e:
        logger.warning("Skipping malformed OCDS item", title=title[:80], error=str(e))
        return None


class TenderScraper:
    def __init__(
        self,
        firecrawl: FirecrawlClient | None = None,
        extractor: TenderExtractor | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._firecrawl = firecrawl
        self.extractor = extractor or TenderExtractor()
        self._transport = transport
        self.settings = get_settings()

    @property
    def firecrawl(self) -> FirecrawlClient:
        if self._firecrawl is None:
            self._firecrawl = FirecrawlClient()
        return self._firecrawl

    async def fetch_ocds(self, source: TenderSource, today: date) -> list[ScrapedTender]:
        fiscal_start = today.year if today.month >= 7 else today.year - 1
        try:
            async with httpx.AsyncClient(
                timeout=self.settings.scraper_timeout,
                transport=self._transport,
                headers={
                    "Accept": "application/json",
                    "User-Agent": self.settings.scraper_user_agent,
                },
            ) as client:
                response = await client.get(source.url, params={"fy": f"{fiscal_start}-{fiscal_start + 1}"})
                response.raise_for_status()
        except httpx.HTTPError as e:
            raise ScraperServiceException(source.url, f"OCDS feed unavailable: {e}") from e

        try:
            payload = response.json()
        except ValueError as e:
            raise ScraperServiceException(source.url, "OCDS feed returned invalid JSON") from e

        items = (payload.get("data") or []) if isinstance(payload, dict) else []
        tenders = []
        for item in items:
            if isinstance(item, dict):
                parsed = parse_ocds_item(item, today)
                if parsed is not None:
                    tenders.append(parsed)
        return tenders

    async def collect(self, source: TenderSource, today: date) -> tuple[list[ScrapedTender], str]:
        if source.kind == "ocds":
            return await self.fetch_ocds(source, today), "ocds"
        page = await self.firecrawl.scrape(source.url)
        return await self.extractor.extract(source.key, page, source.base_url, today)

    async def store(self, db: AsyncSession, tenders: list[ScrapedTender]) -> tuple[int, int]:
        """Insert tenders whose exact title (or tender number) is new. Returns (inserted, duplicates)."""
        inserted = duplicates = 0
        seen_titles: set[str] = set()

        for scraped in tenders:
            if scraped.title in seen_titles:
                duplicates += 1
                continue
            seen_titles.add(scraped.title)

            existing = await db.scalar(select(Tender.id).where(Tender.title == scraped.title).limit(1))
            if existing is None and scraped.tender_number:
                existing = await db.scalar(
                    select(Tender.id).where(Tender.tender_number == scraped.tender_number).limit(1)
                )
            if existing is not None:
                duplicates += 1
                continue

            db.add(Tender(**scraped.model_dump(), status=TenderStatus.ACTIVE))
            inserted += 1

        await db.flush()
        return inserted, duplicates

    async def run(
        self,
        db: AsyncSession,
        source_key: str = "all",
        today: date | None = None,
    ) -> ScrapeRunResponse:
        today = today or date.today()
        if source_key == "all":
            sources = list(SOURCES.values())
        elif source_key in SOURCES:
            sources = [SOURCES[source_key]]
        else:
            raise ValidationException(
                f"Unknown source '{source_key}'",
                {"source": [f"must be 'all' or one of: {', '.join(SOURCES)}"]},
            )

        results: list[SourceResult] = []
        for source in sources:
            result = SourceResult(source=source.key)
            with log_context(source=source.key):
                try:
                    tenders, method = await self.collect(source, today)
                    result.found = len(tenders)
                    result.method = method
                    result.inserted, result.duplicates = await self.store(db, tenders)
                except AppException as e:
                    logger.error("Source scrape failed", error=e.message)
                    result.error = e.message
                except Exception as e:
                    logger.exception("Source scrape crashed", error=str(e))
                    result.error = f"Unexpected error: {e}"
                logger.info(
                    "Source scraped",
                    found=result.found,
                    inserted=result.inserted,
                    method=result.method,
                )
            results.append(result)

        response = ScrapeRunResponse(
            total_found=sum(r.found for r in results),
            total_inserted=sum(r.inserted for r in results),
            sources=results,
        )
        failed = [r.source for r in results if r.error]
        await log_automation(
            db,
            "tender-scraper",
            response.model_dump(mode="json"),
            error_message=f"Failed sources: {', '.join(failed)}" if failed else None,
        )
        return response
