"""Tests for app.songs.validation."""

import uuid

import pytest

from app.songs.validation import (
    normalize_artist,
    normalize_title,
    parse_song_id,
    validate_artist,
    validate_song_fields,
    validate_title,
)

_VALID = {
    "title": "Song",
    "artist": "Artist",
    "public_id": "songs/abc",
    "file_url": "https://cdn.example.com/songs/abc.mp3",
}


class TestNormalize:
    def test_title_trimmed(self) -> None:
        assert normalize_title("  Hello ") == "Hello"

    def test_non_string_title(self) -> None:
        assert normalize_title(None) is None
        assert normalize_title(12) is None

    @pytest.mark.parametrize("artist", [None, "", "   ", 7])
    def test_artist_defaults_to_unknown(self, artist: object) -> None:
        assert normalize_artist(artist) == "Unknown"

    def test_artist_trimmed(self) -> None:
        assert normalize_artist(" Queen ") == "Queen"


class TestValidateTitle:
    def test_exactly_100_characters_ok(self) -> None:
        assert validate_title("a" * 100) == []

    def test_101_characters_rejected(self) -> None:
        issues = validate_title("a" * 101)
        assert [i.message for i in issues] == ["Title cannot exceed 100 characters"]

    @pytest.mark.parametrize("title", [None, ""])
    def test_missing(self, title: str | None) -> None:
        assert validate_title(title)[0].message == "Title is required"


class TestValidateArtist:
    def test_exactly_500_characters_ok(self) -> None:
        assert validate_artist("a" * 500) == []

    def test_501_characters_rejected(self) -> None:
        issues = validate_artist("a" * 501)
        assert [i.message for i in issues] == ["Artist cannot exceed 500 characters"]

    def test_checked_with_the_full_record(self) -> None:
        issues = validate_song_fields(**{**_VALID, "artist": "a" * 600})
        assert [i.field for i in issues] == ["artist"]


class TestValidateSongFields:
    def test_valid_record(self) -> None:
        assert validate_song_fields(**_VALID) == []

    @pytest.mark.parametrize("url", ["http://x.io/a.mp3", "HTTPS://X.IO/A.MP3"])
    def test_url_schemes_accepted(self, url: str) -> None:
        assert validate_song_fields(**{**_VALID, "file_url": url}) == []

    @pytest.mark.parametrize("url", ["ftp://x.io/a.mp3", "https://", "/local/a.mp3"])
    def test_bad_urls(self, url: str) -> None:
        issues = validate_song_fields(**{**_VALID, "file_url": url})
        assert [i.field for i in issues] == ["fileUrl"]

    def test_collects_every_issue(self) -> None:
        issues = validate_song_fields(
            title="",
            artist=None,
            public_id="",
            file_url=None,
            play_count=-1,
            duration=-5,
        )
        fields = {i.field for i in issues}
        assert fields == {"title", "publicId", "fileUrl", "playCount", "duration"}


class TestParseSongId:
    def test_valid_uuid(self) -> None:
        value = uuid.uuid4()
        assert parse_song_id(str(value)) == value

    @pytest.mark.parametrize("raw", ["", "abc", "507f1f77bcf86cd799439011", "1234"])
    def test_invalid(self, raw: str) -> None:
        assert parse_song_id(raw) is None
