from __future__ import annotations

import asyncio
import logging
from collections.abc import Sequence
from urllib import parse

from bs4 import BeautifulSoup

from paper_api.errors import UpstreamError
from paper_api.http_client import AsyncHttpClient
from paper_api.services.strategies import DEFAULT_STRATEGIES, ReferenceStrategy

logger = logging.getLogger(__name__)

PAGE_ACCEPT = "text/html,application/xhtml+xml,application/xml;q=0.9,*/*;q=0.8"
PDF_ACCEPT = "application/pdf"


def normalize_reference(reference: str, page_url: str) -> str:
    """Return an absolute, fragment-free URL for an embedded reference."""
    ref = reference.strip()
    if ref.startswith("http"):
        absolute = ref
    elif ref.startswith("//"):
        absolute = f"https:{ref}"
    else:
        absolute = parse.urljoin(page_url, ref)
    # View fragments such as #navpanes=0&view=FitH must not reach the download request.
    return absolute.split("#", 1)[0]


class DocumentFetcher:
    def __init__(
        self,
        client: AsyncHttpClient,
        *,
        strategies: Sequence[ReferenceStrategy] = DEFAULT_STRATEGIES,
    ) -> None:
        self.client = client
        self.strategies = tuple(strategies)

    def find_reference(self, html: str) -> str | None:
        soup = BeautifulSoup(html, "html.parser")
        for strategy in self.strategies:
            reference = strategy.find(soup)
            if reference:
                logger.info("Found PDF reference via %s strategy: %s", strategy.name, reference)
                return reference
        return None

    async def fetch(self, page_url: str) -> bytes | None:
        try:
            logger.info("Fetching page from %s", page_url)
            html, _ = await self.client.get_text(url=page_url, headers={"Accept": PAGE_ACCEPT})
            if not html.strip():
                logger.error("Received empty HTML response from %s", page_url)
                return None
            logger.info("Received HTML response of length: %d", len(html))

            reference = await asyncio.to_thread(self.find_reference, html)
            if reference is None:
                logger.warning("No PDF URL found in the HTML of %s", page_url)
                return None

            pdf_url = normalize_reference(reference, page_url)
            logger.info("Fetching PDF from %s", pdf_url)
            body, _ = await self.client.get_bytes(
                url=pdf_url,
                headers={"Referer": page_url, "Accept": PDF_ACCEPT},
            )
        except UpstreamError as exc:
            logger.error("Error extracting PDF from %s: %s", page_url, exc)
            raise

        if not body:
            logger.warning("Received empty PDF from %s", pdf_url)
            return None
        logger.info("Successfully retrieved PDF (%d bytes)", len(body))
        return body
