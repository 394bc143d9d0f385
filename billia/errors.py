"""
Domain exceptions raised by repositories and services.

Routers never need to catch these individually: `billia.api.main` installs a
single handler that maps each class to its HTTP status code.
"""
from __future__ import annotations

from typing import Optional


class BilliaError(Exception):
    """Base class for all domain errors."""

    status_code: int = 400

    def __init__(self, message: str, *, detail: Optional[dict] = None) -> None:
        super().__init__(message)
        self.message = message
        self.detail = detail or {}


class ValidationError(BilliaError):
    status_code = 422


class NotFoundError(BilliaError):
    status_code = 404


class ConflictError(BilliaError):
    status_code = 409


class LLMUnavailableError(BilliaError):
    """Raised when LLM features are disabled or no API key is configured."""

    status_code = 503


__all__ = [
    "BilliaError",
    "ValidationError",
    "NotFoundError",
    "ConflictError",
    "LLMUnavailableError",
]
