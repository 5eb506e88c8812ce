"""Filesystem blob store.

Keys are arbitrary strings (content ids contain slashes and can be long), so each blob is
stored under the SHA-256 digest of its key, sharded by the first two hex chars. The original
key lives in a `<digest>.key` sidecar read back by `list_keys`.
"""

from __future__ import annotations

import hashlib
import os
from pathlib import Path

from mdsync.domain.errors import BlobStoreError
from mdsync.infra.blobs.base import BlobObject, BlobPutResult, BlobStore, to_bytes

KEY_SUFFIX = ".key"


def _write_atomic(path: Path, payload: bytes) -> None:
    tmp = path.with_name(f".{path.name}.tmp")
    tmp.write_bytes(payload)
    os.replace(tmp, path)


class FsBlobStore(BlobStore):
    def __init__(self, base_dir: str | Path) -> None:
        self._base_dir = Path(base_dir)
        self._base_dir.mkdir(parents=True, exist_ok=True)

    @property
    def base_dir(self) -> Path:
        return self._base_dir

    def _path(self, key: str) -> Path:
        digest = hashlib.sha256(key.encode("utf-8")).hexdigest()
        return self._base_dir / digest[:2] / digest

    def put(self, key: str, data: bytes | str) -> BlobPutResult:
        payload = to_bytes(data)
        path = self._path(key)
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            # sidecar first: a blob is never written without a listable key
            _write_atomic(path.with_name(path.name + KEY_SUFFIX), key.encode("utf-8"))
            _write_atomic(path, payload)
        except OSError as exc:
            raise BlobStoreError(f"put failed for {key}: {exc}") from exc
        return BlobPutResult(key=key, size=len(payload))

    def get(self, key: str) -> BlobObject | None:
        path = self._path(key)
        if not path.exists():
            return None
        try:
            return BlobObject(key=key, data=path.read_bytes())
        except OSError as exc:
            raise BlobStoreError(f"get failed for {key}: {exc}") from exc

    def delete(self, key: str) -> None:
        path = self._path(key)
        try:
            path.unlink(missing_ok=True)
            path.with_name(path.name + KEY_SUFFIX).unlink(missing_ok=True)
        except OSError as exc:
            raise BlobStoreError(f"delete failed for {key}: {exc}") from exc

    def head(self, key: str) -> BlobObject | None:
        return self.get(key)

    def list_keys(self) -> list[str]:
        try:
            keys = [
                p.read_text(encoding="utf-8")
                for p in self._base_dir.glob(f"*/*{KEY_SUFFIX}")
                if not p.name.startswith(".")
            ]
        except OSError as exc:
            raise BlobStoreError(f"list failed: {exc}") from exc
        return sorted(keys)
