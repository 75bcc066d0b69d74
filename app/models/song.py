import uuid
from datetime import UTC, datetime

from sqlalchemy import CheckConstraint, DateTime, Index, Integer, String, Text, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from app.models import Base

DEFAULT_ARTIST = "Unknown"
TITLE_MAX_LENGTH = 100
ARTIST_MAX_LENGTH = 500


def _utcnow() -> datetime:
    return datetime.now(UTC)


class Song(Base):
    __tablename__ = "songs"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)

    # Core metadata
    title: Mapped[str] = mapped_column(String(TITLE_MAX_LENGTH), nullable=False)
    artist: Mapped[str] = mapped_column(
        String(ARTIST_MAX_LENGTH), nullable=False, default=DEFAULT_ARTIST
    )

    # Object storage reference
    public_id: Mapped[str] = mapped_column(String(255), nullable=False)
    file_url: Mapped[str] = mapped_column(Text, nullable=False)

    # Playback
    play_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    duration: Mapped[int | None] = mapped_column(Integer, nullable=True)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=_utcnow
    )

    __table_args__ = (
        CheckConstraint("play_count >= 0", name="ck_songs_play_count_non_negative"),
        CheckConstraint("duration IS NULL OR duration >= 0", name="ck_songs_duration_non_negative"),
        Index("ix_songs_play_count", "play_count"),
        Index("ix_songs_created_at", "created_at"),
        Index("ix_songs_artist_title", "artist", "title"),
    )
