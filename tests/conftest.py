"""Configuration de test pour pytest.

Ajoute la racine du projet au sys.path (imports `mdsync...` et `scripts...`) et fournit un
conteneur isolé par test, branché sur l'application via `dependency_overrides`.
"""

import os
import sys

import pytest

CURRENT_DIR = os.path.dirname(__file__)
PROJECT_ROOT = os.path.abspath(os.path.join(CURRENT_DIR, ".."))
if PROJECT_ROOT not in sys.path:
    sys.path.insert(0, PROJECT_ROOT)

from mdsync.core.container import Container  # noqa: E402
from mdsync.core.logging import setup_logging  # noqa: E402
from mdsync.core.settings import Settings  # noqa: E402
from tests.fakes import make_settings  # noqa: E402


@pytest.fixture(autouse=True)
def _fresh_logging():
    # rebranche structlog sur le stdout courant (un script a pu viser un flux capsys fermé)
    setup_logging("INFO")


@pytest.fixture
def settings() -> Settings:
    return make_settings()


@pytest.fixture
def container(settings: Settings) -> Container:
    return Container(settings)


@pytest.fixture
def client(container: Container):
    from fastapi.testclient import TestClient

    from mdsync.api.deps import get_container
    from mdsync.app.main import app

    app.dependency_overrides[get_container] = lambda: container
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()
