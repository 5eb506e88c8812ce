"""
Endpoint de santé pour vérifier la disponibilité de l'API et du stockage.

Expose `/health` pour signaler l'état général de l'application et des backends.
"""

from fastapi import APIRouter, Depends

from mdsync.api.deps import get_container
from mdsync.core.container import Container

router = APIRouter(tags=["health"])
container_dep = Depends(get_container)


@router.get("/health")
def health(c: Container = container_dep):
    """Vérifie la disponibilité de l'API et les backends de ledger / blobs."""
    return {
        "status": "ok",
        "ledger": c.storage_backend,
        "blobs": c.settings.BLOB_BACKEND,
        "webhook_secret": bool(c.settings.GITHUB_WEBHOOK_SECRET),
    }
