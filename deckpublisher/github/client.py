"""
client.py — Cliente mínimo del API GraphQL de GitHub.

Solo hace una cosa: POST {"query": ...} al endpoint con el token del
usuario y regresa el JSON. No revisa el campo `errors` de GraphQL: eso
le toca a quien llama (ver has_errors / extract).

Uso:
    from deckpublisher.github.client import GraphQLClient
    client = GraphQLClient("https://api.github.com/graphql")
    result = client.query(token, "query { viewer { id, login } }")
"""

from __future__ import annotations

from typing import Any

import requests

from deckpublisher.errors import ApiError
from deckpublisher.utils.logger import get_logger

logger = get_logger("deckpublisher.github")


class GraphQLClient:
    """
    Ejecuta queries y mutations contra el API GraphQL.

    No hay sesión ni reutilización de conexiones: cada llamada lleva
    su propio token.

    Args:
        api_url: Endpoint GraphQL.
        timeout: Timeout por request en segundos.
    """

    def __init__(
        self,
        api_url: str = "https://api.github.com/graphql",
        timeout: float = 30.0,
    ):
        self._api_url = api_url
        self._timeout = timeout

    def query(self, token: str, document: str) -> dict[str, Any]:
        """
        Ejecuta un documento GraphQL.

        Args:
            token: Token del usuario.
            document: Query o mutation.

        Returns:
            Cuerpo JSON de la respuesta (puede traer `errors`).

        Raises:
            ApiError: Si la red falla o el status no es 2xx.
        """
        headers = {
            "Accept": "application/json",
            "Content-Type": "application/json",
            "Authorization": f"token {token}",
        }

        try:
            response = requests.post(
                self._api_url,
                json={"query": document},
                headers=headers,
                timeout=self._timeout,
            )
        except requests.RequestException as e:
            # El mensaje de requests no incluye headers, pero por si acaso
            # solo reportamos el tipo de error
            logger.error(f"Error de red consultando GitHub: {type(e).__name__}")
            raise ApiError("Cannot perform GitHub query.") from None

        if not response.ok:
            logger.error(f"GitHub respondió {response.status_code} {response.reason}")
            raise ApiError(
                f"Cannot perform GitHub query (HTTP {response.status_code}).",
                status_code=response.status_code,
            )

        try:
            return response.json()
        except ValueError:
            raise ApiError("GitHub returned a non-JSON body.") from None


def has_errors(result: Any) -> bool:
    """True si la respuesta trae `errors` o no trae `data`."""
    if not isinstance(result, dict):
        return True
    return bool(result.get("errors")) or not result.get("data")


def extract(result: Any, *path: str) -> Any:
    """
    Navega la respuesta siguiendo `path` y regresa None si algo falta.

    Ejemplo:
        extract(result, "data", "viewer", "login") → "octocat"
    """
    actual = result
    for key in path:
        if not isinstance(actual, dict):
            return None
        actual = actual.get(key)
    return actual


def gql_string(value: str) -> str:
    """Escapa un string para embeberlo en un documento GraphQL."""
    escaped = (
        value.replace("\\", "\\\\")
        .replace('"', '\\"')
        .replace("\n", "\\n")
        .replace("\r", "\\r")
    )
    return f'"{escaped}"'
