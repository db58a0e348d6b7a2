"""Text extraction from PDF bytes.

Two tiers are offered, both read page by page with PyMuPDF so that the joined
pages of the structured tier match the flat text:

* ``extract_text`` - flat text with the page count and the title/author from
  the document information dictionary. When PyMuPDF cannot read the document
  pypdf is tried instead.
* ``extract_structured`` - the same pages kept apart. When the page-level pass
  fails, the flat tier is used instead and its text becomes a single page. If
  both fail, the page-level error is the one raised.

Parsing is CPU-bound, so both tiers run in a worker thread.
"""

from __future__ import annotations

import asyncio
import io
import logging

import pymupdf
from pypdf import PdfReader

from paper_api.errors import TextExtractionError
from paper_api.schemas.paper import ExtractedText, PageSequence, PageText, StructuredContent

logger = logging.getLogger(__name__)

PAGE_SEPARATOR = "\n\n"


def _clean_info_value(value: object) -> str | None:
    if value is None:
        return None
    text = str(value).strip()
    return text or None


def _paged_text(data: bytes) -> StructuredContent:
    pages: list[PageText] = []
    with pymupdf.open(stream=data, filetype="pdf") as doc:
        info = doc.metadata or {}
        for page_number, page in enumerate(doc, start=1):
            pages.append(PageText(page_number=page_number, text=page.get_text("text").strip()))
        page_count = doc.page_count

    if len(pages) != page_count:
        raise RuntimeError(f"Visited {len(pages)} pages but document reports {page_count}")

    return StructuredContent(
        text=PAGE_SEPARATOR.join(page.text for page in pages),
        num_pages=page_count,
        title=_clean_info_value(info.get("title")),
        author=_clean_info_value(info.get("author")),
        structured_content=PageSequence(pages=pages),
    )


def _flat_text(data: bytes) -> ExtractedText:
    paged = _paged_text(data)
    return ExtractedText(text=paged.text, num_pages=paged.num_pages, title=paged.title, author=paged.author)


def _pypdf_text(data: bytes) -> ExtractedText:
    reader = PdfReader(io.BytesIO(data))
    page_texts = [(page.extract_text() or "").strip() for page in reader.pages]
    info = reader.metadata
    return ExtractedText(
        text=PAGE_SEPARATOR.join(page_texts),
        num_pages=len(reader.pages),
        title=_clean_info_value(info.title) if info else None,
        author=_clean_info_value(info.author) if info else None,
    )


class TextExtractor:
    async def extract_text(self, data: bytes) -> ExtractedText:
        logger.info("Extracting text from PDF of %d bytes", len(data))
        try:
            return await asyncio.to_thread(_flat_text, data)
        except Exception as exc:
            primary_cause = exc
            logger.warning("PyMuPDF could not read the PDF, trying pypdf: %s", exc)

        try:
            return await asyncio.to_thread(_pypdf_text, data)
        except Exception as exc:
            logger.error("Error extracting text from PDF: %s", exc)
            raise TextExtractionError(message=f"Failed to extract text from PDF: {primary_cause}") from primary_cause

    async def extract_structured(self, data: bytes) -> StructuredContent:
        logger.info("Extracting structured content from PDF of %d bytes", len(data))
        try:
            return await asyncio.to_thread(_paged_text, data)
        except Exception as exc:
            primary_cause = exc
            logger.warning("Page-level extraction failed, falling back to flat text: %s", exc)

        try:
            flat = await self.extract_text(data)
        except TextExtractionError as fallback_exc:
            logger.error("Fallback flat extraction failed as well: %s", fallback_exc)
            raise TextExtractionError(
                message=f"Failed to extract structured content from PDF: {primary_cause}",
            ) from primary_cause
        return StructuredContent.single_page(flat)
