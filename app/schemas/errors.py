from __future__ import annotations

from pydantic import BaseModel


class FieldIssue(BaseModel):
    field: str
    message: str


class ErrorResponse(BaseModel):
    """Body of every non-2xx response: ``{"error": "<message>"}``."""

    error: str
    details: str | None = None
    fields: list[FieldIssue] | None = None
