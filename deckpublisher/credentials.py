"""
credentials.py — De dónde sale el token de GitHub de cada usuario.

El almacenamiento de tokens es un colaborador externo: este paquete
solo lo LEE, nunca escribe. La interfaz es TokenStore.find_token().

Implementaciones incluidas:
- YamlTokenStore: archivo YAML con la misma forma que el documento
  de tokens del backend:

      tokens:
        <owner_id>:
          github:
            token: ghp_...

- StaticTokenStore: dict en memoria (embebido y tests).

Uso:
    from deckpublisher.credentials import YamlTokenStore
    store = YamlTokenStore("tokens.yaml")
    credential = store.find_token("owner-123")
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from pathlib import Path

import yaml

from deckpublisher.models import Credential
from deckpublisher.utils.logger import get_logger

logger = get_logger("deckpublisher.credentials")


class TokenStore(ABC):
    """Interfaz de lectura de tokens por owner id."""

    @abstractmethod
    def find_token(self, owner_id: str) -> Credential | None:
        """
        Busca el token de GitHub del usuario.

        Returns:
            Credential, o None si no hay token usable.
        """
        ...


class StaticTokenStore(TokenStore):
    """Tokens en memoria: {owner_id: token}."""

    def __init__(self, tokens: dict[str, str] | None = None):
        self._tokens = dict(tokens or {})

    def find_token(self, owner_id: str) -> Credential | None:
        token = self._tokens.get(owner_id)
        if not token:
            return None
        return Credential(owner_id=owner_id, token=token)


class YamlTokenStore(TokenStore):
    """
    Tokens leídos de un archivo YAML.

    El archivo se lee en cada búsqueda: un token revocado o agregado
    se refleja en la siguiente publicación sin reiniciar nada.

    Args:
        path: Ruta al archivo YAML.
    """

    def __init__(self, path: str | Path):
        self._path = Path(path)

    def find_token(self, owner_id: str) -> Credential | None:
        if not self._path.exists():
            logger.warning(f"No existe el token store: {self._path}")
            return None

        with open(self._path, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}

        entrada = (data.get("tokens") or {}).get(owner_id)
        if not isinstance(entrada, dict):
            return None

        github = entrada.get("github")
        if not isinstance(github, dict):
            return None

        token = github.get("token")
        if not isinstance(token, str) or not token.strip():
            return None

        return Credential(owner_id=owner_id, token=token.strip())
