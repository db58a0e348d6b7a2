"""Strategies that locate the embedded PDF reference inside a mirror page.

Each strategy inspects the parsed page and returns the raw reference it found
(possibly relative, possibly carrying a ``#`` view fragment) or ``None``. The
fetcher tries them in order, so supporting a new markup shape means adding a
strategy to the list.
"""

from __future__ import annotations

import re
from typing import Protocol

from bs4 import BeautifulSoup


_LOCATION_HREF_RE = re.compile(r"""location\.href\s*=\s*['"]([^'"]+\?download=true)['"]""", re.IGNORECASE)


class ReferenceStrategy(Protocol):
    name: str

    def find(self, soup: BeautifulSoup) -> str | None: ...


class EmbedStrategy:
    name = "embed"

    def find(self, soup: BeautifulSoup) -> str | None:
        for embed in soup.find_all("embed"):
            if str(embed.get("id") or "").strip().lower() != "pdf":
                continue
            src = str(embed.get("src") or "").strip()
            if src:
                return src
        return None


class DownloadButtonStrategy:
    name = "download_button"

    def find(self, soup: BeautifulSoup) -> str | None:
        for button in soup.find_all("button"):
            onclick = str(button.get("onclick") or "")
            match = _LOCATION_HREF_RE.search(onclick)
            if match:
                return match.group(1)
        return None


DEFAULT_STRATEGIES: tuple[ReferenceStrategy, ...] = (EmbedStrategy(), DownloadButtonStrategy())
