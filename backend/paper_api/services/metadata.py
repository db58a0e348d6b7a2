from __future__ import annotations

import logging
from typing import Any

from paper_api.http_client import AsyncHttpClient
from paper_api.schemas.paper import PaperMetadata

logger = logging.getLogger(__name__)

UNKNOWN_TITLE = "Title not available"
UNKNOWN_AUTHORS = "Authors not available"


def basic_metadata(doi: str) -> PaperMetadata:
    return PaperMetadata(doi=doi, title=UNKNOWN_TITLE, authors=UNKNOWN_AUTHORS)


def _first_text(values: Any) -> str | None:
    if not isinstance(values, list) or not values:
        return None
    first = str(values[0] or "").strip()
    return first or None


def _join_authors(authors: Any) -> str | None:
    if not isinstance(authors, list):
        return None
    names: list[str] = []
    for author in authors:
        if not isinstance(author, dict):
            continue
        name = " ".join(part for part in (author.get("given"), author.get("family")) if part)
        if name:
            names.append(name)
    return ", ".join(names) or None


def metadata_from_work(doi: str, work: dict[str, Any]) -> PaperMetadata:
    """Map a Crossref ``message`` object onto :class:`PaperMetadata`.

    Title and authors fall back to their placeholders independently; the
    remaining fields are ``None`` when Crossref does not carry them.
    """
    created = work.get("created") or {}
    return PaperMetadata(
        doi=str(work.get("DOI") or doi),
        title=_first_text(work.get("title")) or UNKNOWN_TITLE,
        authors=_join_authors(work.get("author")) or UNKNOWN_AUTHORS,
        published_date=created.get("date-time") if isinstance(created, dict) else None,
        journal=_first_text(work.get("container-title")),
        abstract=work.get("abstract") or None,
    )


class MetadataResolver:
    def __init__(self, client: AsyncHttpClient, *, base_url: str = "https://api.crossref.org/works/") -> None:
        self.client = client
        self.base_url = base_url if base_url.endswith("/") else base_url + "/"

    async def resolve(self, doi: str) -> PaperMetadata:
        url = f"{self.base_url}{doi}"
        try:
            payload, _ = await self.client.get_json(url=url)
            work = payload.get("message") if isinstance(payload, dict) else None
            if not isinstance(work, dict):
                logger.warning("CrossRef returned no work record for DOI %s", doi)
                return basic_metadata(doi)
            return metadata_from_work(doi, work)
        except Exception as exc:
            logger.warning("Error getting metadata from CrossRef for DOI %s: %s", doi, exc)
            return basic_metadata(doi)
