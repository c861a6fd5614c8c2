"""
Tender scraping endpoint, called by an external scheduler.
"""

from functools import partial
from typing import Annotated, Any

from fastapi import APIRouter, Depends
from pydantic import BaseModel

from tenderalert.api.deps import DB, Handler, dispatch, parse_params
from tenderalert.schemas.common import ActionRequest
from tenderalert.services.scraper import TenderScraper

router = APIRouter()


def get_tender_scraper() -> TenderScraper:
    return TenderScraper()


Scraper = Annotated[TenderScraper, Depends(get_tender_scraper)]


class ScrapeParams(BaseModel):
    source: str = "all"


async def scrape(db, params: dict[str, Any], scraper: TenderScraper) -> dict[str, Any]:
    source = parse_params(ScrapeParams, params).source
    result = await scraper.run(db, source)
    return result.model_dump(mode="json")


@router.post("")
async def scraper_action(payload: ActionRequest, db: DB, scraper: Scraper) -> dict[str, Any]:
    handlers: dict[str, Handler] = {"scrape": partial(scrape, scraper=scraper)}
    return await dispatch(handlers, payload, db)
