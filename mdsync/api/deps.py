"""Dépendances partagées pour les routes de l'API.

Les routes reçoivent le conteneur via `Depends(get_container)`, ce qui permet aux tests de le
remplacer par `app.dependency_overrides`.
"""

from mdsync.core.container import Container, container


def get_container() -> Container:
    return container
