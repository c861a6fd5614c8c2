"""
Firecrawl scrape API client for JS-rendered procurement portals.
"""

from dataclasses import dataclass
from typing import Any

import httpx

from tenderalert.core.config import get_settings
from tenderalert.core.exceptions import ScraperServiceException, ServiceNotConfiguredException
from tenderalert.core.logging import LoggerMixin

# Milliseconds Firecrawl waits for client-side rendering
RENDER_WAIT_MS = 3000


@dataclass
class ScrapedPage:
    url: str
    markdown: str
    html: str


class FirecrawlClient(LoggerMixin):
    def __init__(
        self,
        api_key: str | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        settings = get_settings()
        self.api_key = api_key or settings.firecrawl_api_key
        if not self.api_key:
            raise ServiceNotConfiguredException("Firecrawl", "FIRECRAWL_API_KEY")
        self.base_url = settings.firecrawl_base_url.rstrip("/")
        self.timeout = settings.scraper_timeout
        self._transport = transport

    async def scrape(self, url: str) -> ScrapedPage:
        body: dict[str, Any] = {
            "url": url,
            "formats": ["markdown", "html"],
            "onlyMainContent": True,
            "waitFor": RENDER_WAIT_MS,
        }
        self.logger.info("Scraping page", url=url)

        try:
            async with httpx.AsyncClient(
                base_url=self.base_url,
                timeout=httpx.Timeout(self.timeout, connect=30.0),
                transport=self._transport,
            ) as client:
                response = await client.post(
                    "/scrape",
                    json=body,
                    headers={"Authorization": f"Bearer {self.api_key}"},
                )
                response.raise_for_status()
        except httpx.TimeoutException:
            raise ScraperServiceException(url, "Timed out waiting for Firecrawl") from None
        except httpx.HTTPStatusError as e:
            raise ScraperServiceException(url, f"Firecrawl returned HTTP {e.response.status_code}") from e
        except httpx.HTTPError as e:
            raise ScraperServiceException(url, f"Connection failed: {e}") from e

        try:
            payload = response.json()
        except ValueError as e:
            raise ScraperServiceException(url, "Firecrawl returned invalid JSON") from e

        if not isinstance(payload, dict):
            raise ScraperServiceException(url, "Firecrawl returned an unexpected payload")
        if not payload.get("success"):
            raise ScraperServiceException(url, payload.get("error") or "Firecrawl reported failure")

        data = payload.get("data") or {}
        page = ScrapedPage(url=url, markdown=data.get("markdown") or "", html=data.get("html") or "")
        self.logger.info("Page scraped", url=url, markdown_chars=len(page.markdown))
        return page
