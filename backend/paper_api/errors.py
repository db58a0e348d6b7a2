from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any


@dataclass
class AppError(Exception):
    code: str
    message: str
    status_code: int = 500
    is_operational: bool = True
    retryable: bool = False
    details: dict[str, Any] = field(default_factory=dict)

    def __str__(self) -> str:
        return self.message

    def to_error_payload(self) -> dict[str, Any]:
        return {
            "code": self.code,
            "message": self.message,
            "retryable": self.retryable,
            "details": self.details,
        }


@dataclass
class ValidationError(AppError):
    code: str = "VALIDATION_ERROR"
    message: str = "Invalid request"
    status_code: int = 400


@dataclass
class UpstreamError(AppError):
    """Transport fault while talking to the mirror or the metadata registry."""

    code: str = "UPSTREAM_ERROR"
    message: str = "Upstream request failed"
    is_operational: bool = False


@dataclass
class TextExtractionError(AppError):
    code: str = "EXTRACTION_FAILED"
    message: str = "Failed to extract text from PDF"
    is_operational: bool = False


class ConfigurationError(RuntimeError):
    """Raised at startup when a required setting cannot be used."""
