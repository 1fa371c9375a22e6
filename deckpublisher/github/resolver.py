"""
resolver.py — Encuentra (o crea) el repo destino del usuario.

Flujo:
    1. viewer { id, login }            → quién es el dueño del token
    2. repository(owner, name)         → ¿ya existe el repo del proyecto?
    3. cloneTemplateRepository(...)    → si no existe, crearlo desde la plantilla
    4. Esperar a que el repo nuevo sea visible (poll acotado con backoff)

Sobre el paso 4:
    GitHub crea el repo desde la plantilla de forma asíncrona. Justo después
    de la mutation el repo puede no estar listo para clonar. En vez de
    dormir un tiempo fijo y cruzar los dedos, reintentamos la búsqueda
    con backoff exponencial hasta un deadline y fallamos explícitamente
    si nunca aparece.

Uso:
    from deckpublisher.github.resolver import RepositoryResolver
    resolver = RepositoryResolver(client, config.github)
    user = resolver.resolve_user(token)
    lookup = resolver.find_or_create_repository(token, user)
    if lookup.ok:
        print(lookup.repository.url)
"""

from __future__ import annotations

import time
from typing import Any, Callable

from deckpublisher.config import GitHubConfig
from deckpublisher.errors import RepositoryNotReadyError, UserResolutionError
from deckpublisher.github.client import GraphQLClient, extract, gql_string, has_errors
from deckpublisher.models import (
    LookupStatus,
    RemoteRepository,
    RemoteUser,
    RepositoryLookup,
)
from deckpublisher.utils.logger import get_logger

logger = get_logger("deckpublisher.resolver")

VIEWER_QUERY = """
query {
  viewer {
    id,
    login
  }
}
"""


def _error_reason(result: Any, default: str) -> str:
    """Resumen corto del primer error GraphQL (tipo o mensaje)."""
    errores = result.get("errors") if isinstance(result, dict) else None
    if isinstance(errores, list) and errores and isinstance(errores[0], dict):
        primero = errores[0]
        detalle = primero.get("type") or primero.get("message") or "unknown error"
        return f"{default}: {detalle}"
    return default


class RepositoryResolver:
    """
    Resuelve el usuario y su repositorio destino.

    Args:
        client: Cliente GraphQL.
        config: Sección github de la configuración.
        sleep: Función de espera (inyectable para tests).
        clock: Reloj monotónico (inyectable para tests).
    """

    def __init__(
        self,
        client: GraphQLClient,
        config: GitHubConfig,
        sleep: Callable[[float], None] = time.sleep,
        clock: Callable[[], float] = time.monotonic,
    ):
        self._client = client
        self._config = config
        self._sleep = sleep
        self._clock = clock

    # ============================================================
    # Usuario
    # ============================================================

    def resolve_user(self, token: str) -> RemoteUser:
        """
        Obtiene id y login del dueño del token.

        Raises:
            UserResolutionError: Si la respuesta no trae id y login.
            ApiError: Si la llamada HTTP falla.
        """
        result = self._client.query(token, VIEWER_QUERY)
        viewer = extract(result, "data", "viewer")

        if not isinstance(viewer, dict) or not viewer.get("id") or not viewer.get("login"):
            raise UserResolutionError("Cannot retrieve user id.")

        return RemoteUser(id=str(viewer["id"]), login=str(viewer["login"]))

    # ============================================================
    # Repositorio
    # ============================================================

    def lookup_repository(self, token: str, login: str) -> RepositoryLookup:
        """
        Busca el repo del proyecto bajo el namespace del usuario.

        Solo cuenta como ausente un `repository` nulo sin errores o con
        errores NOT_FOUND. Cualquier otro error (rate limit, FORBIDDEN,
        `data` nulo) es FAILED: no sabemos si el repo existe.

        Returns:
            RepositoryLookup con status FOUND, NOT_FOUND o FAILED.
        """
        query = f"""
query {{
  repository(owner:{gql_string(login)}, name:{gql_string(self._config.project_name)}) {{
    id,
    url,
    nameWithOwner
  }}
}}
"""
        result = self._client.query(token, query)
        data = extract(result, "data")
        if not isinstance(data, dict):
            return RepositoryLookup(
                LookupStatus.FAILED, reason=_error_reason(result, "lookup returned no data")
            )

        nodo = data.get("repository")
        if nodo is not None:
            repo = RemoteRepository.from_graphql(nodo)
            if repo is None:
                return RepositoryLookup(
                    LookupStatus.FAILED, reason="lookup returned an incomplete repository"
                )
            return RepositoryLookup(LookupStatus.FOUND, repo)

        errores = result.get("errors") or []
        if all(isinstance(e, dict) and e.get("type") == "NOT_FOUND" for e in errores):
            return RepositoryLookup(LookupStatus.NOT_FOUND)
        return RepositoryLookup(
            LookupStatus.FAILED, reason=_error_reason(result, "lookup failed")
        )

    def find_repository(self, token: str, login: str) -> RemoteRepository | None:
        """El repo si existe y es visible; None en cualquier otro caso."""
        lookup = self.lookup_repository(token, login)
        return lookup.repository if lookup.status is LookupStatus.FOUND else None

    def find_or_create_repository(
        self, token: str, user: RemoteUser
    ) -> RepositoryLookup:
        """
        Regresa el repo existente o lo crea desde la plantilla.

        Si el repo ya existe no se emite ninguna mutation, así que
        llamarlo dos veces para el mismo usuario es idempotente.

        Returns:
            RepositoryLookup con status FOUND, CREATED o FAILED. Si la
            búsqueda falla por algo distinto a NOT_FOUND no se crea nada.

        Raises:
            RepositoryNotReadyError: El repo creado no apareció a tiempo.
            ApiError: Si alguna llamada HTTP falla.
        """
        lookup = self.lookup_repository(token, user.login)
        if lookup.status is LookupStatus.FOUND:
            logger.info(f"Repo encontrado: {lookup.repository.name_with_owner}")
            return lookup
        if lookup.status is LookupStatus.FAILED:
            logger.warning(f"No se pudo verificar el repo: {lookup.reason}")
            return lookup

        logger.info(
            f"{user.login}/{self._config.project_name} no existe, "
            "creándolo desde la plantilla"
        )
        creado = self._create_repository(token, user)
        if creado is None:
            return RepositoryLookup(
                LookupStatus.FAILED,
                reason="cloneTemplateRepository returned no repository",
            )

        listo = self._wait_until_visible(token, user, creado)
        logger.success(f"Repo creado: {listo.name_with_owner}")
        return RepositoryLookup(LookupStatus.CREATED, listo)

    def _create_repository(
        self, token: str, user: RemoteUser
    ) -> RemoteRepository | None:
        """Mutation cloneTemplateRepository. None si la respuesta es inservible."""
        cfg = self._config
        mutation = f"""
mutation CloneTemplateRepository {{
  cloneTemplateRepository(input:{{description:{gql_string(cfg.repository_description)},includeAllBranches:false,name:{gql_string(cfg.project_name)},repositoryId:{gql_string(cfg.template_repository_id)},visibility:{cfg.repository_visibility},ownerId:{gql_string(user.id)}}}) {{
    clientMutationId,
    repository {{
      id,
      url,
      nameWithOwner
    }}
  }}
}}
"""
        result = self._client.query(token, mutation)

        if has_errors(result):
            logger.warning("cloneTemplateRepository regresó errores")
            return None

        return RemoteRepository.from_graphql(
            extract(result, "data", "cloneTemplateRepository", "repository")
        )

    def _wait_until_visible(
        self, token: str, user: RemoteUser, creado: RemoteRepository
    ) -> RemoteRepository:
        """
        Reintenta la búsqueda hasta que el repo creado sea visible.

        Backoff exponencial empezando en settle_interval, acotado por
        settle_timeout. La última espera se recorta para no pasarse.
        """
        deadline = self._clock() + self._config.settle_timeout
        espera = self._config.settle_interval
        intento = 0

        while True:
            restante = deadline - self._clock()
            if restante <= 0:
                raise RepositoryNotReadyError(
                    f"Repository {creado.name_with_owner or user.login} was not "
                    f"ready after {self._config.settle_timeout:g}s"
                )

            self._sleep(min(espera, restante))
            intento += 1

            visible = self.find_repository(token, user.login)
            if visible is not None and visible.url:
                logger.info(f"Repo visible tras {intento} intento(s)")
                return visible

            espera *= 2
