"""Filesystem-backed implementation of BlobStore.

A bucket is a directory under the store root. Each blob is two files:

    <root>/<bucket>/<id>        the bytes
    <root>/<bucket>/<id>.json   filename, contentType, length, uploadDate

The store is constructed closed. ``open()`` creates the bucket and moves
it to ready exactly once; until then every operation raises
StoreUnavailableError instead of blocking.
"""

from __future__ import annotations

import json
import os
import tempfile
import threading
from datetime import datetime, timezone
from pathlib import Path

import structlog

from catalog.domain.exceptions import EntityNotFoundError, StorageIOError
from catalog.domain.model.blob import StoredFile
from catalog.domain.model.value_objects import BlobId
from catalog.domain.repository.blob_store import BlobStore

logger = structlog.get_logger(__name__)

DEFAULT_BUCKET = "uploads"


class FilesystemBlobStore(BlobStore):

    def __init__(self, root: Path, bucket_name: str = DEFAULT_BUCKET) -> None:
        self._bucket_dir = root / bucket_name
        self._ready = False
        self._lock = threading.Lock()

    @property
    def is_ready(self) -> bool:
        return self._ready

    def open(self) -> FilesystemBlobStore:
        with self._lock:
            if self._ready:
                return self
            try:
                self._bucket_dir.mkdir(parents=True, exist_ok=True)
            except OSError as exc:
                logger.error("blob_store_init_failed", bucket=str(self._bucket_dir), error=str(exc))
                raise StorageIOError(f"Cannot initialize bucket: {exc}") from exc
            self._ready = True
        logger.info("blob_store_ready", bucket=str(self._bucket_dir))
        return self

    # --- BlobStore interface --------------------------------------------------

    def store(self, data: bytes, filename: str, content_type: str) -> BlobId:
        self.ensure_ready()
        self.check_upload(data, content_type)

        blob_id = BlobId.generate()
        meta = {
            "filename": filename,
            "contentType": content_type,
            "length": len(data),
            "uploadDate": datetime.now(timezone.utc).isoformat(),
        }
        data_path, meta_path = self._paths(blob_id)
        try:
            self._write_atomic(data_path, data)
            self._write_atomic(meta_path, json.dumps(meta).encode("utf-8"))
        except OSError as exc:
            data_path.unlink(missing_ok=True)
            raise StorageIOError(f"Cannot store '{filename}': {exc}") from exc
        return blob_id

    def delete(self, blob_id: BlobId) -> None:
        self.ensure_ready()
        # Metadata goes first: a blob without it is invisible to read().
        for path in reversed(self._paths(blob_id)):
            try:
                path.unlink(missing_ok=True)
            except OSError as exc:
                raise StorageIOError(f"Cannot delete blob {blob_id}: {exc}") from exc

    def read(self, blob_id: BlobId) -> StoredFile:
        self.ensure_ready()
        data_path, meta_path = self._paths(blob_id)
        try:
            meta = json.loads(meta_path.read_text(encoding="utf-8"))
            data = data_path.read_bytes()
        except FileNotFoundError:
            raise EntityNotFoundError(f"Image {blob_id} not found") from None
        except (OSError, json.JSONDecodeError) as exc:
            raise StorageIOError(f"Cannot read blob {blob_id}: {exc}") from exc
        return StoredFile(
            blob_id=blob_id,
            filename=meta["filename"],
            content_type=meta["contentType"],
            data=data,
            uploaded_at=datetime.fromisoformat(meta["uploadDate"]),
        )

    # --- Helpers --------------------------------------------------------------

    def _paths(self, blob_id: BlobId) -> tuple[Path, Path]:
        return self._bucket_dir / blob_id.value, self._bucket_dir / f"{blob_id.value}.json"

    def _write_atomic(self, path: Path, content: bytes) -> None:
        fd, tmp_name = tempfile.mkstemp(dir=self._bucket_dir, prefix=".tmp-")
        try:
            with os.fdopen(fd, "wb") as fh:
                fh.write(content)
            os.replace(tmp_name, path)
        except BaseException:
            Path(tmp_name).unlink(missing_ok=True)
            raise
