import threading
import time

import pytest

from app.models.files import DeleteFileReq, FileReq
from app.services.file_service import FileService, file_extension
from app.utils.errors import AppError, ErrorKind


class FakeStorage:

    def __init__(self, fail_on=None, delay=0.0):
        self.fail_on = fail_on
        self.delay = delay
        self.uploaded = []
        self.deleted = []
        self.lock = threading.Lock()

    def upload(self, destination, content, content_type="application/octet-stream"):
        if self.delay:
            time.sleep(self.delay)
        if self.fail_on and content == self.fail_on:
            raise RuntimeError("bucket unavailable")
        with self.lock:
            self.uploaded.append(destination)
        return f"https://cdn.example/{destination}"

    def delete(self, destination):
        with self.lock:
            self.deleted.append(destination)


def file_req(content=b"img", name="photo.PNG", destination="images/products"):
    return FileReq(
        filename=name,
        destination=destination,
        extension=file_extension(name),
        content=content,
        content_type="image/png",
    )


def test_upload_returns_random_names_and_urls():
    storage = FakeStorage()
    result = FileService(storage, workers=2).upload_files([file_req(), file_req(b"two")])

    assert len(result) == 2
    for res in result:
        assert res.filename.endswith(".png")
        assert res.filename != "photo.PNG"
        assert res.url == f"https://cdn.example/images/products/{res.filename}"
    assert sorted(storage.uploaded) == sorted(f"images/products/{r.filename}" for r in result)


def test_disallowed_extension_is_rejected_before_upload():
    storage = FakeStorage()
    with pytest.raises(AppError) as exc:
        FileService(storage).upload_files([file_req(), file_req(name="notes.pdf")])
    assert exc.value.kind == ErrorKind.VALIDATION
    assert storage.uploaded == []


def test_oversized_file_is_rejected():
    with pytest.raises(AppError) as exc:
        FileService(FakeStorage(), file_limit=4).upload_files([file_req(b"12345")])
    assert exc.value.kind == ErrorKind.VALIDATION


def test_one_failure_fails_the_batch():
    storage = FakeStorage(fail_on=b"bad")
    jobs = [file_req(b"bad")] + [file_req(f"ok{i}".encode()) for i in range(4)]
    with pytest.raises(AppError) as exc:
        FileService(storage, workers=1).upload_files(jobs)
    assert exc.value.kind == ErrorKind.STORAGE
    assert "bucket unavailable" in exc.value.message


def test_slow_batch_times_out():
    with pytest.raises(AppError) as exc:
        FileService(FakeStorage(delay=0.5), timeout=0.05).upload_files([file_req()])
    assert exc.value.kind == ErrorKind.TIMEOUT


def test_delete_files_removes_every_destination():
    storage = FakeStorage()
    FileService(storage).delete_files([DeleteFileReq(destination="a/1.png"), DeleteFileReq(destination="a/2.png")])
    assert sorted(storage.deleted) == ["a/1.png", "a/2.png"]


def test_empty_delete_is_a_noop():
    storage = FakeStorage()
    FileService(storage).delete_files([])
    assert storage.deleted == []
