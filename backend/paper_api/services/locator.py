from __future__ import annotations

import logging
from urllib import parse

from paper_api.errors import ConfigurationError

logger = logging.getLogger(__name__)


class SourceLocator:
    """Maps a DOI onto the mirror page expected to embed the document."""

    def __init__(self, base_url: str) -> None:
        parsed = parse.urlparse(base_url.strip())
        if parsed.scheme not in {"http", "https"} or not parsed.netloc:
            raise ConfigurationError(f"Mirror base URL must be an absolute http(s) URL, got {base_url!r}")
        normalized = base_url.strip()
        self.base_url = normalized if normalized.endswith("/") else normalized + "/"

    def locate(self, doi: str) -> str | None:
        if not doi.strip():
            logger.warning("Cannot locate a source for a blank DOI")
            return None
        url = f"{self.base_url}{doi}"
        logger.info("Resolved DOI %s to URL: %s", doi, url)
        return url
