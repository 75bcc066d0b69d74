"""Song endpoints: upload, listing/search, detail, update, delete, play count."""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, File, Form, Query, Request, UploadFile

from app.audio.storage import ObjectStorage
from app.dependencies import get_song_repository, get_song_service, get_storage
from app.errors import ClientInputError
from app.schemas.errors import ErrorResponse
from app.schemas.song import MessageResponse, SongResponse, SongUpdate
from app.songs.repository import SongRepository
from app.songs.service import SongService
from app.songs.upload import UploadConstraints, check_file, upload_song, validate_upload_request

logger = logging.getLogger(__name__)

router = APIRouter(tags=["songs"])

_ERRORS_400_404_500 = {
    400: {"description": "Invalid song ID or request body", "model": ErrorResponse},
    404: {"description": "Song not found", "model": ErrorResponse},
    500: {"description": "Server error", "model": ErrorResponse},
}


@router.post(
    "/songs",
    response_model=SongResponse,
    status_code=201,
    responses={
        400: {"description": "Validation error (content type, title, format, size)"},
        500: {"description": "Object storage or database failure", "model": ErrorResponse},
    },
)
async def create_song(
    request: Request,
    song: UploadFile | None = File(  # noqa: B008
        default=None,
        description="Audio file (MP3, WAV, AAC). Max 25 MB.",
    ),
    title: str | None = Form(default=None),
    artist: str | None = Form(default=None),
    storage: ObjectStorage = Depends(get_storage),  # noqa: B008
    repository: SongRepository = Depends(get_song_repository),  # noqa: B008
) -> SongResponse:
    """Upload an audio file and create its song record.

    1. Request checks: multipart encoding and a title field
    2. File presence, declared type and size
    3. Bounded read of the file body (at most max + 1 bytes)
    4. Upload pipeline: object storage first, then the database
    """
    validate_upload_request(request.headers.get("content-type"), title)

    if song is None:
        raise ClientInputError("NO_FILE", "No file uploaded")

    constraints = UploadConstraints()

    # Reject on declared metadata before pulling the body into memory.
    if song.size is not None:
        check_file(song.size, song.content_type, constraints)

    content = await song.read(constraints.max_bytes + 1)

    created = await upload_song(
        content,
        song.content_type,
        title,
        artist,
        storage=storage,
        repository=repository,
        constraints=constraints,
    )
    return SongResponse.model_validate(created)


@router.get("/songs", response_model=list[SongResponse])
async def list_songs(
    search: str | None = Query(default=None),
    sort: str | None = Query(default=None, description="'popular' sorts by play count"),
    service: SongService = Depends(get_song_service),  # noqa: B008
) -> list[SongResponse]:
    """Return up to 100 songs, newest first or most played first."""
    songs = await service.list_songs(search=search, sort=sort)
    return [SongResponse.model_validate(s) for s in songs]


@router.get("/songs/{song_id}", response_model=SongResponse, responses=_ERRORS_400_404_500)
async def get_song(
    song_id: str,
    service: SongService = Depends(get_song_service),  # noqa: B008
) -> SongResponse:
    return SongResponse.model_validate(await service.get_song(song_id))


@router.put("/songs/{song_id}", response_model=SongResponse, responses=_ERRORS_400_404_500)
async def update_song(
    song_id: str,
    body: SongUpdate,
    service: SongService = Depends(get_song_service),  # noqa: B008
) -> SongResponse:
    """Replace a song's title and artist; a missing artist resets to "Unknown"."""
    song = await service.update_song(song_id, body.title, body.artist)
    return SongResponse.model_validate(song)


@router.delete("/songs/{song_id}", response_model=MessageResponse, responses=_ERRORS_400_404_500)
async def delete_song(
    song_id: str,
    service: SongService = Depends(get_song_service),  # noqa: B008
) -> MessageResponse:
    await service.delete_song(song_id)
    return MessageResponse(message="Song deleted successfully")


@router.put("/songs/play/{song_id}", response_model=SongResponse, responses=_ERRORS_400_404_500)
async def play_song(
    song_id: str,
    service: SongService = Depends(get_song_service),  # noqa: B008
) -> SongResponse:
    """Record one play and return the song with its new count."""
    return SongResponse.model_validate(await service.increment_play_count(song_id))
