from __future__ import annotations

import asyncio
import logging
from typing import Any

from paper_api.schemas.paper import ExtractedText, PaperMetadata, StructuredContent
from paper_api.services.extractor import TextExtractor
from paper_api.services.fetcher import DocumentFetcher
from paper_api.services.locator import SourceLocator
from paper_api.services.metadata import MetadataResolver

logger = logging.getLogger(__name__)

METADATA_UNAVAILABLE = {"error": "Metadata not available"}
CONTENT_UNAVAILABLE = {"error": "Text content not available"}


class PaperService:
    """Composes locator, fetcher, extractor and metadata resolver.

    Every operation returns ``None`` when nothing was found and raises when
    something went wrong; the HTTP layer maps these onto 404 and 500.
    """

    def __init__(
        self,
        *,
        locator: SourceLocator,
        fetcher: DocumentFetcher,
        extractor: TextExtractor,
        metadata_resolver: MetadataResolver,
    ) -> None:
        self.locator = locator
        self.fetcher = fetcher
        self.extractor = extractor
        self.metadata_resolver = metadata_resolver

    async def get_paper(self, doi: str) -> bytes | None:
        try:
            logger.info("Processing request for DOI: %s", doi)
            page_url = self.locator.locate(doi)
            if not page_url:
                logger.warning("Could not resolve DOI: %s", doi)
                return None

            pdf = await self.fetcher.fetch(page_url)
            if not pdf:
                logger.warning("Failed to extract PDF for DOI: %s", doi)
                return None
            return pdf
        except Exception:
            logger.exception("Error retrieving paper for DOI %s", doi)
            raise

    async def get_text(self, doi: str) -> ExtractedText | None:
        logger.info("Getting text content for DOI: %s", doi)
        pdf = await self.get_paper(doi)
        if pdf is None:
            logger.warning("Failed to get PDF for text extraction for DOI: %s", doi)
            return None
        return await self.extractor.extract_text(pdf)

    async def get_structured_content(self, doi: str) -> StructuredContent | None:
        logger.info("Getting structured content for DOI: %s", doi)
        pdf = await self.get_paper(doi)
        if pdf is None:
            logger.warning("Failed to get PDF for structured content extraction for DOI: %s", doi)
            return None
        return await self.extractor.extract_structured(pdf)

    async def get_metadata(self, doi: str) -> PaperMetadata | None:
        try:
            logger.info("Getting metadata for DOI: %s", doi)
            return await self.metadata_resolver.resolve(doi)
        except Exception:
            logger.exception("Error retrieving metadata for DOI %s", doi)
            raise

    async def get_complete(self, doi: str) -> dict[str, Any] | None:
        # Both lookups settle before either failure is surfaced.
        metadata, text = await asyncio.gather(
            self.get_metadata(doi),
            self.get_text(doi),
            return_exceptions=True,
        )
        for outcome in (metadata, text):
            if isinstance(outcome, BaseException):
                raise outcome

        if metadata is None and text is None:
            return None
        return {
            "metadata": metadata.to_payload() if metadata is not None else dict(METADATA_UNAVAILABLE),
            "content": text.to_payload() if text is not None else dict(CONTENT_UNAVAILABLE),
        }
