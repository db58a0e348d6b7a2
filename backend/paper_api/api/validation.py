from __future__ import annotations

import re

from fastapi import Query

from paper_api.errors import ValidationError

DOI_PATTERN = re.compile(r"^10\.\d{4,9}/[-._;()/:A-Za-z0-9]+$")


def is_valid_doi(value: str) -> bool:
    return bool(DOI_PATTERN.match(value))


def require_doi(doi: str | None = Query(default=None, description="DOI, e.g. 10.1145/3025453.3025501")) -> str:
    value = (doi or "").strip()
    if not value:
        raise ValidationError(message="DOI query parameter is required")
    if not is_valid_doi(value):
        raise ValidationError(message="Invalid DOI format", details={"doi": value})
    return value
