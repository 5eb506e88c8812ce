"""Blob store en mémoire (dev/tests)."""

from __future__ import annotations

from mdsync.infra.blobs.base import BlobObject, BlobPutResult, BlobStore, to_bytes


class InMemoryBlobStore(BlobStore):
    """Stocke les objets dans un dict local, non persistant."""

    def __init__(self) -> None:
        self._objects: dict[str, bytes] = {}

    def put(self, key: str, data: bytes | str) -> BlobPutResult:
        payload = to_bytes(data)
        self._objects[key] = payload
        return BlobPutResult(key=key, size=len(payload))

    def get(self, key: str) -> BlobObject | None:
        payload = self._objects.get(key)
        return BlobObject(key=key, data=payload) if payload is not None else None

    def delete(self, key: str) -> None:
        self._objects.pop(key, None)

    def head(self, key: str) -> BlobObject | None:
        return self.get(key)

    def list_keys(self) -> list[str]:
        return sorted(self._objects)
