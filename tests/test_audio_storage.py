"""Tests for app.audio.storage (Cloudinary adapter).

The Cloudinary uploader functions are patched; no network calls are made.
"""

from unittest.mock import patch

import pytest

from app.audio.storage import (
    AUDIO_RESOURCE_TYPE,
    CloudinaryStorage,
    StorageError,
    StoredObject,
    new_storage_key,
)


@pytest.fixture
def cloudinary_storage() -> CloudinaryStorage:
    with patch("app.audio.storage.cloudinary.config"):
        return CloudinaryStorage("demo", "key", "secret")


class TestNewStorageKey:
    def test_prefix(self) -> None:
        assert new_storage_key().startswith("songs/")

    def test_unique(self) -> None:
        assert len({new_storage_key() for _ in range(50)}) == 50


class TestConfig:
    def test_configures_sdk_with_https(self) -> None:
        with patch("app.audio.storage.cloudinary.config") as mock_config:
            CloudinaryStorage("demo", "key", "secret")
        mock_config.assert_called_once_with(
            cloud_name="demo", api_key="key", api_secret="secret", secure=True
        )


class TestUpload:
    async def test_upload_maps_response(self, cloudinary_storage: CloudinaryStorage) -> None:
        response = {
            "public_id": "songs/abc",
            "secure_url": "https://res.cloudinary.com/demo/video/upload/v1/songs/abc.mp3",
            "duration": 187.42,
            "resource_type": "video",
        }
        with patch("app.audio.storage.cloudinary.uploader.upload", return_value=response) as up:
            result = await cloudinary_storage.upload(b"data", public_id="songs/abc")

        assert result == StoredObject(
            public_id="songs/abc",
            secure_url=response["secure_url"],
            duration=187.42,
        )
        _, kwargs = up.call_args
        assert kwargs == {
            "resource_type": "auto",
            "public_id": "songs/abc",
            "format": "mp3",
            "overwrite": True,
        }
        assert up.call_args.args[0].read() == b"data"

    async def test_missing_duration(self, cloudinary_storage: CloudinaryStorage) -> None:
        response = {"public_id": "songs/abc", "secure_url": "https://cdn/x.mp3"}
        with patch("app.audio.storage.cloudinary.uploader.upload", return_value=response):
            result = await cloudinary_storage.upload(b"data", public_id="songs/abc")
        assert result.duration is None

    async def test_sdk_error_becomes_storage_error(
        self, cloudinary_storage: CloudinaryStorage
    ) -> None:
        with (
            patch(
                "app.audio.storage.cloudinary.uploader.upload",
                side_effect=RuntimeError("Invalid Signature"),
            ),
            pytest.raises(StorageError, match="Invalid Signature"),
        ):
            await cloudinary_storage.upload(b"data", public_id="songs/abc")

    async def test_incomplete_response(self, cloudinary_storage: CloudinaryStorage) -> None:
        with (
            patch("app.audio.storage.cloudinary.uploader.upload", return_value={}),
            pytest.raises(StorageError),
        ):
            await cloudinary_storage.upload(b"data", public_id="songs/abc")


class TestDelete:
    async def test_ok(self, cloudinary_storage: CloudinaryStorage) -> None:
        with patch(
            "app.audio.storage.cloudinary.uploader.destroy", return_value={"result": "ok"}
        ) as destroy:
            assert await cloudinary_storage.delete("songs/abc") is True
        destroy.assert_called_once_with(
            "songs/abc", resource_type=AUDIO_RESOURCE_TYPE, invalidate=True
        )

    async def test_not_found(self, cloudinary_storage: CloudinaryStorage) -> None:
        with patch(
            "app.audio.storage.cloudinary.uploader.destroy", return_value={"result": "not found"}
        ):
            assert await cloudinary_storage.delete("songs/abc") is False

    async def test_sdk_error(self, cloudinary_storage: CloudinaryStorage) -> None:
        with (
            patch(
                "app.audio.storage.cloudinary.uploader.destroy",
                side_effect=ConnectionError("timed out"),
            ),
            pytest.raises(StorageError),
        ):
            await cloudinary_storage.delete("songs/abc")
