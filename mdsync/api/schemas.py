# Schémas Pydantic exposés par l'API (réponses webhook et inspection du stockage).

from datetime import datetime

from pydantic import BaseModel


class WebhookAck(BaseModel):
    """Accusé de réception d'un événement non déployé (ping ou type ignoré)."""

    action: str = "acknowledged"
    event: str


class DeploymentTriggered(BaseModel):
    """Réponse d'un push déployé.

    Champs:
    - branch / sha: ref et commit du push
    - environment: environnement cible (production, preview, development)
    - deployed / skipped / deleted: chemins traités
    - errors: échecs par fichier
    """

    action: str = "deployment_triggered"
    branch: str
    sha: str
    environment: str
    namespace: str
    deployed: list[str]
    skipped: list[str]
    deleted: list[str]
    errors: list[str]


class VersionOut(BaseModel):
    version: int
    hash: str
    stored_at: datetime
    size: int


class RecordOut(BaseModel):
    id: str
    hash: str
    version: int
    size: int
    stored_at: datetime
    tier: str
    data: dict
    content: str | None = None


class StorageMetricsOut(BaseModel):
    namespace: str
    ledger_size: int
    blob_size: int
    total_size: int
    record_count: int
    count_by_type: dict[str, int]
    tier_counts: dict[str, int]


class CleanupPlanOut(BaseModel):
    record_id: str
    cleaned: int
    retained: int
    to_clean: list[int]
    to_retain: list[int]
    applied: bool = False
    deleted: int = 0


class SyncStatusOut(BaseModel):
    namespace: str
    total_files: int
    last_sync: datetime | None
    pending_changes: int
