"""Batch upload and delete against object storage.

Each batch runs on a fixed-size thread pool. The first failing file fails the
whole batch and sets a shared cancel event so queued files are skipped; a
batch that does not finish within ``STORAGE_TIMEOUT_SECONDS`` fails with a
TIMEOUT error.
"""
from __future__ import annotations

import os
import threading
import uuid
from concurrent.futures import FIRST_EXCEPTION, Future, ThreadPoolExecutor, wait
from typing import Callable, List, Optional, Protocol, Sequence, TypeVar

from app.config import settings
from app.models.files import DeleteFileReq, FileReq, FileRes
from app.utils.errors import AppError, ErrorKind
from app.utils.logger import logger

ALLOWED_EXTENSIONS = ("png", "jpg", "jpeg")

T = TypeVar("T")
R = TypeVar("R")


class ObjectStorage(Protocol):
    def upload(self, destination: str, content: bytes, content_type: str = ...) -> str: ...

    def delete(self, destination: str) -> None: ...


def file_extension(filename: str) -> str:
    return os.path.splitext(filename or "")[1].lstrip(".").lower()


def random_filename(extension: str) -> str:
    return f"{uuid.uuid4()}.{extension}"


class FileService:

    def __init__(
        self,
        storage: ObjectStorage,
        workers: int = settings.STORAGE_WORKERS,
        timeout: float = settings.STORAGE_TIMEOUT_SECONDS,
        file_limit: int = settings.FILE_LIMIT,
    ):
        self.storage = storage
        self.workers = max(workers, 1)
        self.timeout = timeout
        self.file_limit = file_limit

    def validate(self, req: FileReq) -> None:
        if req.extension not in ALLOWED_EXTENSIONS:
            raise AppError(
                ErrorKind.VALIDATION,
                f"extension is not allowed, only {', '.join(ALLOWED_EXTENSIONS)} are accepted",
            )
        if len(req.content) > self.file_limit:
            raise AppError(
                ErrorKind.VALIDATION,
                f"file {req.filename} is too large, the limit is {self.file_limit} bytes",
            )

    def upload_files(self, req: List[FileReq]) -> List[FileRes]:
        if not req:
            raise AppError(ErrorKind.VALIDATION, "no files to upload")
        for f in req:
            self.validate(f)

        def upload_one(f: FileReq) -> FileRes:
            filename = random_filename(f.extension)
            destination = f"{f.destination.strip('/')}/{filename}" if f.destination else filename
            url = self.storage.upload(destination, f.content, f.content_type)
            return FileRes(filename=filename, url=url)

        result = self._run_batch(req, upload_one)
        logger.info(f"Uploaded {len(result)} file(s)")
        return result

    def delete_files(self, req: List[DeleteFileReq]) -> None:
        if not req:
            return

        def delete_one(f: DeleteFileReq) -> None:
            self.storage.delete(f.destination)

        self._run_batch(req, delete_one)
        logger.info(f"Deleted {len(req)} file(s)")

    def _run_batch(self, jobs: Sequence[T], work: Callable[[T], R]) -> List[R]:
        cancel = threading.Event()

        def guarded(job: T) -> Optional[R]:
            if cancel.is_set():
                return None
            return work(job)

        pool = ThreadPoolExecutor(max_workers=min(self.workers, len(jobs)))
        futures: List[Future] = [pool.submit(guarded, job) for job in jobs]
        try:
            done, pending = wait(futures, timeout=self.timeout, return_when=FIRST_EXCEPTION)
            for future in futures:
                if future in done and future.exception() is not None:
                    cancel.set()
                    raise self._storage_error(future.exception())
            if pending:
                cancel.set()
                raise AppError(ErrorKind.TIMEOUT, f"storage batch timed out after {self.timeout}s")
            return [future.result() for future in futures]
        finally:
            pool.shutdown(wait=False, cancel_futures=True)

    @staticmethod
    def _storage_error(exc: BaseException) -> AppError:
        if isinstance(exc, AppError):
            return exc
        logger.error(f"Storage worker failed: {type(exc).__name__}: {exc}")
        return AppError(ErrorKind.STORAGE, str(exc))
