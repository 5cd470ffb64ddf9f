import threading

import pytest

from app.core.exceptions import NotFoundError, StorageError
from app.services.storage_service import EXCUSE_LETTERS_BUCKET, SIGNATURES_BUCKET


def test_upload_and_public_url(storage):
    path = storage.upload(SIGNATURES_BUCKET, "7/7-abc.png", b"img", content_type="image/png")

    assert storage.exists(SIGNATURES_BUCKET, path)
    assert storage.download(SIGNATURES_BUCKET, path) == b"img"
    assert storage.get_public_url(SIGNATURES_BUCKET, path) == "http://testserver/storage/signatures/7/7-abc.png"


def test_upload_without_upsert_refuses_existing(storage):
    storage.upload(EXCUSE_LETTERS_BUCKET, "a.pdf", b"1")
    with pytest.raises(StorageError):
        storage.upload(EXCUSE_LETTERS_BUCKET, "a.pdf", b"2")
    storage.upload(EXCUSE_LETTERS_BUCKET, "a.pdf", b"2", upsert=True)
    assert storage.download(EXCUSE_LETTERS_BUCKET, "a.pdf") == b"2"


def test_remove_reports_only_existing(storage):
    storage.upload(SIGNATURES_BUCKET, "x.png", b"1")
    assert storage.remove(SIGNATURES_BUCKET, ["x.png", "missing.png"]) == ["x.png"]
    assert storage.list_objects(SIGNATURES_BUCKET) == []


@pytest.mark.parametrize("path", ["../escape.png", "/abs.png", ""])
def test_rejects_paths_outside_bucket(storage, path):
    with pytest.raises(StorageError):
        storage.upload(SIGNATURES_BUCKET, path, b"1")


def test_unknown_bucket(storage):
    with pytest.raises(StorageError):
        storage.upload("avatars", "a.png", b"1")


def test_download_missing_object(storage):
    with pytest.raises(NotFoundError):
        storage.download(SIGNATURES_BUCKET, "nope.png")


async def test_async_variants_run_off_the_event_loop(storage, monkeypatch):
    loop_thread = threading.get_ident()
    seen = []
    original = storage.upload

    def tracking_upload(*args, **kwargs):
        seen.append(threading.get_ident())
        return original(*args, **kwargs)

    monkeypatch.setattr(storage, "upload", tracking_upload)

    path = await storage.upload_async(SIGNATURES_BUCKET, "9/9-abc.png", b"img")
    assert seen and seen[0] != loop_thread
    assert await storage.download_async(SIGNATURES_BUCKET, path) == b"img"
    assert await storage.remove_async(SIGNATURES_BUCKET, [path]) == [path]
    with pytest.raises(NotFoundError):
        await storage.download_async(SIGNATURES_BUCKET, path)
