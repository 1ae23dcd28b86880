"""Unit tests for LocalObjectStore."""

import pytest

from vibetune.core.exceptions import StorageError
from vibetune.services.storage.object_store import (
    LocalObjectStore,
    song_audio_key,
    source_video_key,
    source_video_keys,
)


def test_song_audio_key():
    assert song_audio_key("abc") == "songs/abc.wav"


def test_source_video_key():
    assert source_video_key("s1", "video/webm;codecs=vp9") == "videos/s1.webm"
    assert source_video_key("s1", "video/mp4") == "videos/s1.mp4"
    assert source_video_key("s1", "") == "videos/s1.bin"


def test_source_video_keys_cover_every_extension():
    keys = source_video_keys("s1")
    for mime_type in ("video/webm", "video/mp4", "video/quicktime", "video/ogg", "application/x-unknown"):
        assert source_video_key("s1", mime_type) in keys


async def test_put_and_exists(object_store: LocalObjectStore):
    path = await object_store.put("songs/a.wav", b"data", content_type="audio/wav")
    assert path == "songs/a.wav"
    assert await object_store.exists("songs/a.wav")
    assert (object_store.bucket_dir / "songs" / "a.wav").read_bytes() == b"data"


async def test_put_overwrites_with_upsert(object_store: LocalObjectStore):
    await object_store.put("k", b"one")
    await object_store.put("k", b"two", upsert=True)
    assert object_store.resolve("k").read_bytes() == b"two"


async def test_put_without_upsert_rejects_existing(object_store: LocalObjectStore):
    await object_store.put("k", b"one")
    with pytest.raises(StorageError):
        await object_store.put("k", b"two", upsert=False)


async def test_delete(object_store: LocalObjectStore):
    await object_store.put("k", b"one")
    assert await object_store.delete("k") is True
    assert await object_store.exists("k") is False


async def test_delete_missing_returns_false(object_store: LocalObjectStore):
    assert await object_store.delete("missing") is False


def test_public_url(object_store: LocalObjectStore):
    assert object_store.public_url("songs/a.wav") == "http://test/media/songs/songs/a.wav"


def test_path_traversal_rejected(object_store: LocalObjectStore):
    with pytest.raises(StorageError):
        object_store.resolve("../../etc/passwd")
