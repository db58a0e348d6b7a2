from __future__ import annotations

import re
from typing import Any

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse, Response

from paper_api.api.validation import require_doi
from paper_api.middleware.cache import CachedRoute
from paper_api.services.paper_service import PaperService

router = APIRouter(prefix="/api/paper", tags=["paper"], route_class=CachedRoute)

EXAMPLE_DOI = "10.1145/3025453.3025501"
_UNSAFE_FILENAME_CHARS = re.compile(r'[/\\:*?"<>|]')


def pdf_filename(doi: str) -> str:
    return f"{_UNSAFE_FILENAME_CHARS.sub('_', doi)}.pdf"


def get_paper_service(request: Request) -> PaperService:
    return request.app.state.paper_service


def _not_found(message: str) -> JSONResponse:
    return JSONResponse(status_code=404, content={"error": message})


@router.get("", response_class=Response)
async def get_paper(
    doi: str = Depends(require_doi),
    service: PaperService = Depends(get_paper_service),
) -> Response:
    pdf = await service.get_paper(doi)
    if not pdf:
        return _not_found("Paper not found")
    return Response(
        content=pdf,
        media_type="application/pdf",
        headers={"Content-Disposition": f'attachment; filename="{pdf_filename(doi)}"'},
    )


@router.get("/text")
async def get_paper_text(
    doi: str = Depends(require_doi),
    service: PaperService = Depends(get_paper_service),
) -> JSONResponse:
    content = await service.get_text(doi)
    if content is None:
        return _not_found("Failed to extract text from paper")
    return JSONResponse(content=content.to_payload())


@router.get("/content")
async def get_paper_content(
    doi: str = Depends(require_doi),
    service: PaperService = Depends(get_paper_service),
) -> JSONResponse:
    content = await service.get_structured_content(doi)
    if content is None:
        return _not_found("Failed to extract structured content from paper")
    return JSONResponse(content=content.to_payload())


@router.get("/metadata")
async def get_paper_metadata(
    doi: str = Depends(require_doi),
    service: PaperService = Depends(get_paper_service),
) -> JSONResponse:
    metadata = await service.get_metadata(doi)
    if metadata is None:
        return _not_found("Paper metadata not found")
    return JSONResponse(content=metadata.to_payload())


@router.get("/complete")
async def get_paper_complete(
    doi: str = Depends(require_doi),
    service: PaperService = Depends(get_paper_service),
) -> JSONResponse:
    complete = await service.get_complete(doi)
    if complete is None:
        return _not_found("Paper not found")
    return JSONResponse(content=complete)


@router.get("/test")
async def usage() -> dict[str, Any]:
    def _endpoint(description: str, path: str, content_type: str) -> dict[str, str]:
        return {
            "description": description,
            "url": f"{path}?doi={EXAMPLE_DOI}",
            "method": "GET",
            "contentType": content_type,
        }

    return {
        "message": "DOI-to-PDF API is running successfully",
        "version": "1.0.0",
        "endpoints": {
            "pdf": _endpoint("Get the PDF document for a DOI", "/api/paper", "application/pdf"),
            "text": _endpoint("Extract plain text from the PDF", "/api/paper/text", "application/json"),
            "structured": _endpoint(
                "Extract structured content with page information", "/api/paper/content", "application/json"
            ),
            "metadata": _endpoint(
                "Get paper metadata (title, authors, etc.)", "/api/paper/metadata", "application/json"
            ),
            "complete": _endpoint(
                "Get both metadata and text content in one request", "/api/paper/complete", "application/json"
            ),
        },
        "exampleDOIs": [
            EXAMPLE_DOI,
            "10.1038/s41586-019-1724-z",
            "10.1371/journal.pone.0115069",
        ],
        "testCommand": f'curl "http://localhost:3000/api/paper/text?doi={EXAMPLE_DOI}"',
    }
