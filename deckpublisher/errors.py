"""
errors.py — Excepciones del pipeline de publicación.

Taxonomía de fallas:
    - Precondición no cumplida: NO es excepción. El orquestador
      simplemente regresa un resultado SKIPPED.
    - Falla suave remota: la llamada GraphQL funcionó a nivel HTTP pero
      la respuesta no trae lo esperado. Se modela con resultados
      etiquetados (RepositoryLookup) o None, no con excepciones.
    - Falla operacional: git o filesystem. Se propaga como excepción
      hasta el orquestador, que la atrapa una sola vez.
    - Falla sensible: el push lleva el token en la URL. Se atrapa en
      el borde del push y se relanza como PushError sanitizado.
"""

from __future__ import annotations


class PublishError(Exception):
    """Raíz de todas las excepciones de deckpublisher."""


class ApiError(PublishError):
    """La llamada HTTP al API GraphQL falló (red o status no-2xx)."""

    def __init__(self, message: str, status_code: int | None = None):
        super().__init__(message)
        self.status_code = status_code


class UserResolutionError(PublishError):
    """La consulta `viewer` no trajo id y login."""


class RepositoryNotReadyError(PublishError):
    """El repo recién creado no apareció antes del deadline de espera."""


class WorkingCopyError(PublishError):
    """Falló una operación de git o de filesystem en la copia local."""


class PushError(PublishError):
    """
    Error de push sanitizado.

    El error original de git puede incluir la URL con el token embebido,
    así que se descarta por completo. Este mensaje solo nombra
    login, proyecto y branch.
    """

    def __init__(self, login: str, project: str, branch: str):
        super().__init__(
            f"Error while pushing changes to branch {branch} for {login}/{project}"
        )
        self.login = login
        self.project = project
        self.branch = branch
