"""Object storage with named buckets, backed by a local directory.

Objects live at ``{root}/{bucket}/{path}`` and are published at
``{public_url}/{bucket}/{path}``.
"""
import logging
from pathlib import Path, PurePosixPath
from urllib.parse import quote

from sqlalchemy import event
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import Session as OrmSession
from starlette.concurrency import run_in_threadpool

from app.core.config import settings
from app.core.exceptions import FetchError, NotFoundError, StorageError

logger = logging.getLogger(__name__)

SIGNATURES_BUCKET = "signatures"
EXCUSE_LETTERS_BUCKET = "excuse-letters"
BUCKETS = (SIGNATURES_BUCKET, EXCUSE_LETTERS_BUCKET)


class StorageService:
    """Upload, remove and publish objects in the configured buckets."""

    def __init__(self, root: str | Path, public_url: str, buckets: tuple[str, ...] = BUCKETS):
        self.root = Path(root)
        self.public_url = public_url.rstrip("/")
        self.buckets = buckets

    def _object_path(self, bucket: str, path: str) -> Path:
        if bucket not in self.buckets:
            raise StorageError(f"Unknown bucket '{bucket}'")
        relative = PurePosixPath(path)
        if relative.is_absolute() or ".." in relative.parts or not relative.parts:
            raise StorageError(f"Invalid object path '{path}'")
        return self.root / bucket / Path(*relative.parts)

    def upload(
        self,
        bucket: str,
        path: str,
        content: bytes,
        content_type: str | None = None,
        upsert: bool = False,
    ) -> str:
        """Write an object; fails if it exists and ``upsert`` is False. Returns the path."""
        target = self._object_path(bucket, path)
        if target.exists() and not upsert:
            raise StorageError(f"Object '{bucket}/{path}' already exists")
        try:
            target.parent.mkdir(parents=True, exist_ok=True)
            target.write_bytes(content)
        except OSError as exc:
            raise StorageError(f"Upload to '{bucket}/{path}' failed: {exc}") from exc
        logger.info("Stored %s/%s (%d bytes, %s)", bucket, path, len(content), content_type)
        return path

    def remove(self, bucket: str, paths: list[str]) -> list[str]:
        """Delete objects; returns the paths that were actually removed."""
        removed = []
        for path in paths:
            target = self._object_path(bucket, path)
            try:
                target.unlink()
            except FileNotFoundError:
                continue
            except OSError as exc:
                raise StorageError(f"Removing '{bucket}/{path}' failed: {exc}") from exc
            removed.append(path)
        return removed

    def exists(self, bucket: str, path: str) -> bool:
        return self._object_path(bucket, path).is_file()

    def download(self, bucket: str, path: str) -> bytes:
        target = self._object_path(bucket, path)
        try:
            return target.read_bytes()
        except FileNotFoundError as exc:
            raise NotFoundError(f"Object '{bucket}/{path}' not found") from exc
        except OSError as exc:
            raise FetchError(f"Reading '{bucket}/{path}' failed: {exc}") from exc

    def list_objects(self, bucket: str, prefix: str = "") -> list[str]:
        base = self.root / bucket
        if not base.exists():
            return []
        names = [p.relative_to(base).as_posix() for p in base.rglob("*") if p.is_file()]
        return sorted(n for n in names if n.startswith(prefix))

    async def upload_async(self, *args, **kwargs) -> str:
        """``upload`` on a worker thread, for callers running on the event loop."""
        return await run_in_threadpool(self.upload, *args, **kwargs)

    async def remove_async(self, bucket: str, paths: list[str]) -> list[str]:
        return await run_in_threadpool(self.remove, bucket, paths)

    async def download_async(self, bucket: str, path: str) -> bytes:
        return await run_in_threadpool(self.download, bucket, path)

    def get_public_url(self, bucket: str, path: str) -> str:
        self._object_path(bucket, path)
        return f"{self.public_url}/{bucket}/{quote(path)}"


_storage: StorageService | None = None


def get_storage() -> StorageService:
    """Dependency returning the process-wide storage service."""
    global _storage
    if _storage is None:
        _storage = StorageService(settings.storage_root, settings.storage_public_url)
    return _storage


# ── Objects tied to a database transaction ───────────────────────────
#
# An object uploaded for a row that is still uncommitted is recorded in the
# session's ``info``. When the outermost transaction ends without a commit
# (rollback, failed commit, or close) the objects are removed again.

_PENDING_KEY = "storage_pending_objects"


def discard_unless_committed(db: AsyncSession, storage: StorageService, bucket: str, path: str) -> None:
    """Remove ``bucket/path`` unless the current transaction of ``db`` commits."""
    db.info.setdefault(_PENDING_KEY, []).append((storage, bucket, path))


@event.listens_for(OrmSession, "after_commit")
def _keep_committed_objects(session: OrmSession) -> None:
    session.info.pop(_PENDING_KEY, None)


@event.listens_for(OrmSession, "after_transaction_end")
def _remove_uncommitted_objects(session: OrmSession, transaction) -> None:
    if transaction.parent is not None:
        return
    for storage, bucket, path in session.info.pop(_PENDING_KEY, []):
        try:
            if storage.remove(bucket, [path]):
                logger.info("Removed %s/%s after its transaction was rolled back", bucket, path)
        except StorageError:
            logger.exception("Could not remove uncommitted object %s/%s", bucket, path)

