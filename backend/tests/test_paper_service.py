from __future__ import annotations

import asyncio

import pytest

from paper_api.errors import UpstreamError
from paper_api.schemas.paper import ExtractedText, PaperMetadata
from paper_api.services.locator import SourceLocator
from paper_api.services.paper_service import CONTENT_UNAVAILABLE, METADATA_UNAVAILABLE, PaperService

DOI = "10.1145/3025453.3025501"


class _FakeFetcher:
    def __init__(self, result: bytes | None = b"%PDF-fake", error: Exception | None = None) -> None:
        self.result = result
        self.error = error
        self.calls: list[str] = []

    async def fetch(self, page_url: str) -> bytes | None:
        self.calls.append(page_url)
        if self.error is not None:
            raise self.error
        return self.result


class _FakeExtractor:
    def __init__(self) -> None:
        self.calls = 0

    async def extract_text(self, data: bytes) -> ExtractedText:
        self.calls += 1
        return ExtractedText(text=data.decode("latin-1"), num_pages=1)

    async def extract_structured(self, data: bytes):
        raise AssertionError("not used")


class _FakeResolver:
    def __init__(self, result: PaperMetadata | None, *, delay: float = 0.0) -> None:
        self.result = result
        self.delay = delay
        self.finished = False

    async def resolve(self, doi: str) -> PaperMetadata | None:
        await asyncio.sleep(self.delay)
        self.finished = True
        return self.result


def _service(fetcher: _FakeFetcher, resolver: _FakeResolver | None = None) -> PaperService:
    return PaperService(
        locator=SourceLocator("https://mirror.example/"),
        fetcher=fetcher,
        extractor=_FakeExtractor(),
        metadata_resolver=resolver or _FakeResolver(PaperMetadata(doi=DOI, title="T", authors="A")),
    )


@pytest.mark.asyncio
async def test_get_paper_fetches_located_page() -> None:
    fetcher = _FakeFetcher()
    assert await _service(fetcher).get_paper(DOI) == b"%PDF-fake"
    assert fetcher.calls == [f"https://mirror.example/{DOI}"]


@pytest.mark.asyncio
async def test_get_text_is_none_when_document_missing() -> None:
    service = _service(_FakeFetcher(result=None))
    assert await service.get_text(DOI) is None
    assert service.extractor.calls == 0


@pytest.mark.asyncio
async def test_get_text_propagates_fetch_errors() -> None:
    service = _service(_FakeFetcher(error=UpstreamError(message="mirror down")))
    with pytest.raises(UpstreamError):
        await service.get_text(DOI)


@pytest.mark.asyncio
async def test_get_complete_substitutes_missing_content() -> None:
    service = _service(_FakeFetcher(result=None))

    complete = await service.get_complete(DOI)

    assert complete == {
        "metadata": {"doi": DOI, "title": "T", "authors": "A", "publishedDate": None, "journal": None, "abstract": None},
        "content": CONTENT_UNAVAILABLE,
    }


@pytest.mark.asyncio
async def test_get_complete_substitutes_missing_metadata() -> None:
    service = _service(_FakeFetcher(), _FakeResolver(None))

    complete = await service.get_complete(DOI)

    assert complete["metadata"] == METADATA_UNAVAILABLE
    assert complete["content"] == {"text": "%PDF-fake", "numPages": 1}


@pytest.mark.asyncio
async def test_get_complete_is_none_when_both_absent() -> None:
    service = _service(_FakeFetcher(result=None), _FakeResolver(None))
    assert await service.get_complete(DOI) is None


@pytest.mark.asyncio
async def test_get_complete_waits_for_both_before_raising() -> None:
    resolver = _FakeResolver(PaperMetadata(doi=DOI, title="T", authors="A"), delay=0.05)
    service = _service(_FakeFetcher(error=UpstreamError(message="mirror down")), resolver)

    with pytest.raises(UpstreamError):
        await service.get_complete(DOI)

    assert resolver.finished is True
