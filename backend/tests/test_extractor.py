from __future__ import annotations

import pymupdf
import pytest

from paper_api.errors import TextExtractionError
from paper_api.services.extractor import TextExtractor


def _squash(text: str) -> str:
    return " ".join(text.split())


@pytest.mark.asyncio
async def test_extract_text_reports_pages_and_info(make_pdf) -> None:
    data = make_pdf(["Alpha page one", "Beta page two"], title="A Study", author="Ada Lovelace")

    result = await TextExtractor().extract_text(data)

    assert result.num_pages == 2
    assert "Alpha page one" in result.text
    assert "Beta page two" in result.text
    assert result.title == "A Study"
    assert result.author == "Ada Lovelace"


@pytest.mark.asyncio
async def test_extract_text_omits_missing_info_fields(make_pdf) -> None:
    result = await TextExtractor().extract_text(make_pdf(["Untitled"]))

    payload = result.to_payload()
    assert payload["numPages"] == 1
    assert "title" not in payload
    assert "author" not in payload


@pytest.mark.asyncio
async def test_extract_text_wraps_parse_failures() -> None:
    with pytest.raises(TextExtractionError) as exc:
        await TextExtractor().extract_text(b"definitely not a pdf")

    assert exc.value.message.startswith("Failed to extract text from PDF")
    assert exc.value.__cause__ is not None


@pytest.mark.asyncio
async def test_extract_structured_keeps_page_boundaries(make_pdf) -> None:
    data = make_pdf(["Alpha page one", "Beta page two", "Gamma page three"], title="Paged")
    extractor = TextExtractor()

    structured = await extractor.extract_structured(data)
    flat = await extractor.extract_text(data)

    assert structured.num_pages == 3
    assert len(structured.pages) == structured.num_pages
    assert [page.page_number for page in structured.pages] == [1, 2, 3]
    assert structured.pages[1].text == "Beta page two"
    assert structured.title == "Paged"
    assert _squash(" ".join(page.text for page in structured.pages)) == _squash(flat.text)
    assert _squash(structured.text) == _squash(flat.text)


@pytest.mark.asyncio
async def test_extract_structured_payload_uses_wire_names(make_pdf) -> None:
    structured = await TextExtractor().extract_structured(make_pdf(["Only page"]))

    payload = structured.to_payload()
    assert payload["numPages"] == 1
    assert payload["structuredContent"]["pages"] == [{"pageNumber": 1, "text": "Only page"}]


@pytest.mark.asyncio
async def test_extract_structured_falls_back_to_single_page(make_pdf, monkeypatch: pytest.MonkeyPatch) -> None:
    def _broken(data: bytes):
        raise RuntimeError("page walker crashed")

    monkeypatch.setattr("paper_api.services.extractor._paged_text", _broken)
    data = make_pdf(["Alpha page one", "Beta page two"])

    structured = await TextExtractor().extract_structured(data)

    assert len(structured.pages) == 1
    assert structured.pages[0].page_number == 1
    assert structured.pages[0].text == structured.text
    assert "Alpha page one" in structured.text
    assert "Beta page two" in structured.text


@pytest.mark.asyncio
async def test_extract_structured_raises_primary_error_when_fallback_fails() -> None:
    with pytest.raises(TextExtractionError) as exc:
        await TextExtractor().extract_structured(b"definitely not a pdf")

    assert exc.value.message.startswith("Failed to extract structured content from PDF")
    assert not isinstance(exc.value.__cause__, TextExtractionError)


def _pdf_with_runs_on_one_line() -> bytes:
    doc = pymupdf.open()
    try:
        page = doc.new_page()
        page.insert_text((300, 72), "Right")
        page.insert_text((72, 72), "Left")
        page = doc.new_page()
        page.insert_text((72, 72), "Second")
        return doc.tobytes()
    finally:
        doc.close()


@pytest.mark.asyncio
async def test_structured_pages_match_flat_text_for_runs_on_one_line() -> None:
    data = _pdf_with_runs_on_one_line()
    extractor = TextExtractor()

    structured = await extractor.extract_structured(data)
    flat = await extractor.extract_text(data)

    assert len(structured.pages) == 2
    assert _squash(" ".join(page.text for page in structured.pages)) == _squash(flat.text)
    assert structured.text == flat.text


@pytest.mark.asyncio
async def test_extract_text_uses_pypdf_when_pymupdf_fails(make_pdf, monkeypatch: pytest.MonkeyPatch) -> None:
    def _broken(data: bytes):
        raise RuntimeError("pymupdf unavailable")

    monkeypatch.setattr("paper_api.services.extractor._paged_text", _broken)

    result = await TextExtractor().extract_text(make_pdf(["Alpha page one", "Beta page two"], title="Backup"))

    assert result.num_pages == 2
    assert "Alpha page one" in result.text
    assert result.title == "Backup"
