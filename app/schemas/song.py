from __future__ import annotations

import uuid
from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field


def _to_camel(name: str) -> str:
    """Convert snake_case to camelCase."""
    parts = name.split("_")
    return parts[0] + "".join(p.capitalize() for p in parts[1:])


class SongResponse(BaseModel):
    """A stored song as returned by every song endpoint."""

    model_config = ConfigDict(
        alias_generator=_to_camel,
        populate_by_name=True,
        from_attributes=True,
    )

    id: uuid.UUID
    title: str
    artist: str
    public_id: str
    file_url: str
    play_count: int = Field(ge=0)
    duration: int | None = Field(default=None, ge=0)
    created_at: datetime


class SongUpdate(BaseModel):
    """Body of ``PUT /api/songs/{id}``. Title presence is checked by the service."""

    title: str | None = None
    artist: str | None = None


class MessageResponse(BaseModel):
    message: str
