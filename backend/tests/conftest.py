from __future__ import annotations

from collections.abc import Callable

import pymupdf
import pytest


def build_pdf(pages: list[str], *, title: str | None = None, author: str | None = None) -> bytes:
    doc = pymupdf.open()
    try:
        for text in pages:
            page = doc.new_page()
            page.insert_text((72, 72), text)
        if title or author:
            doc.set_metadata({"title": title or "", "author": author or ""})
        return doc.tobytes()
    finally:
        doc.close()


@pytest.fixture
def make_pdf() -> Callable[..., bytes]:
    return build_pdf
