"""
models.py — Tipos de datos que viajan por el pipeline de publicación.

Ninguno de estos objetos se persiste: todos viven lo que dura una
invocación del orquestador.

Hay dos familias:
    - Datos de entrada: DeckSnapshot / DeckChange (el documento antes y
      después del cambio que disparó la publicación) y Credential.
    - Datos remotos: RemoteUser, RemoteRepository, PullRequest, y el
      resultado etiquetado RepositoryLookup.

Uso:
    from deckpublisher.models import DeckChange
    change = DeckChange.from_dict({"before": {...}, "after": {...}})
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any


# ============================================================
# Documento (deck)
# ============================================================

@dataclass
class DeckMeta:
    """Metadata pública de un deck."""
    title: str = ""
    pathname: str = ""
    published: bool = False
    published_at: str | None = None
    author_name: str = ""


@dataclass
class DeckSnapshot:
    """
    Fotografía de un deck en un momento dado.

    Campos:
        deck_id: ID del documento (puede estar vacío)
        owner_id: ID del usuario dueño del deck
        meta: Metadata de publicación, None si el deck no tiene meta
    """
    deck_id: str = ""
    owner_id: str = ""
    meta: DeckMeta | None = None

    @classmethod
    def from_dict(cls, data: Any) -> DeckSnapshot | None:
        """
        Construye un snapshot desde el registro del documento.

        Forma esperada (campos opcionales):
            {"id": "...", "owner_id": "...",
             "meta": {"title": "...", "pathname": "...", "published": true,
                      "published_at": "...", "author": {"name": "..."}}}

        Returns:
            DeckSnapshot, o None si data no es un dict.
        """
        if not isinstance(data, dict):
            return None

        meta = None
        raw_meta = data.get("meta")
        if isinstance(raw_meta, dict):
            author = raw_meta.get("author")
            author_name = author.get("name", "") if isinstance(author, dict) else ""
            published_at = raw_meta.get("published_at")
            meta = DeckMeta(
                title=str(raw_meta.get("title") or ""),
                pathname=str(raw_meta.get("pathname") or ""),
                published=bool(raw_meta.get("published")),
                published_at=str(published_at) if published_at is not None else None,
                author_name=str(author_name or ""),
            )

        return cls(
            deck_id=str(data.get("id") or ""),
            owner_id=str(data.get("owner_id") or ""),
            meta=meta,
        )


@dataclass
class DeckChange:
    """Par antes/después que dispara una publicación."""
    before: DeckSnapshot | None = None
    after: DeckSnapshot | None = None

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> DeckChange:
        return cls(
            before=DeckSnapshot.from_dict(data.get("before")),
            after=DeckSnapshot.from_dict(data.get("after")),
        )


@dataclass
class Credential:
    """Token del usuario para el API de GitHub. Solo lectura."""
    owner_id: str
    token: str

    def __repr__(self) -> str:
        # El token nunca debe terminar en un log por accidente
        return f"Credential(owner_id={self.owner_id!r}, token='***')"


# ============================================================
# GitHub
# ============================================================

@dataclass
class RemoteUser:
    """Usuario de GitHub dueño del token (query `viewer`)."""
    id: str
    login: str


@dataclass
class RemoteRepository:
    """Repositorio destino en GitHub."""
    id: str
    url: str
    name_with_owner: str

    @classmethod
    def from_graphql(cls, data: Any) -> RemoteRepository | None:
        """Convierte el nodo `repository` de GraphQL. None si está incompleto."""
        if not isinstance(data, dict) or not data.get("id"):
            return None
        return cls(
            id=str(data["id"]),
            url=str(data.get("url") or ""),
            name_with_owner=str(data.get("nameWithOwner") or ""),
        )


class LookupStatus(Enum):
    """Resultado de buscar o crear el repositorio destino."""
    FOUND = "found"
    CREATED = "created"
    NOT_FOUND = "not_found"
    FAILED = "failed"


@dataclass
class RepositoryLookup:
    """
    Resultado etiquetado de find_or_create_repository.

    Distingue "no existe" de "el API regresó basura", cosa que un
    simple None no puede expresar.
    """
    status: LookupStatus
    repository: RemoteRepository | None = None
    reason: str = ""

    @property
    def ok(self) -> bool:
        return (
            self.status in (LookupStatus.FOUND, LookupStatus.CREATED)
            and self.repository is not None
            and bool(self.repository.url)
        )


@dataclass
class PullRequest:
    """Pull Request creado en el repo del usuario."""
    id: str
    number: int = 0
    url: str = ""


# ============================================================
# Resultado de una publicación
# ============================================================

class PublishState(Enum):
    """Estados lineales del pipeline, en orden."""
    IDLE = "idle"
    PRECONDITIONS_CHECKED = "preconditions_checked"
    CREDENTIAL_RESOLVED = "credential_resolved"
    USER_RESOLVED = "user_resolved"
    REPOSITORY_RESOLVED = "repository_resolved"
    CLONED = "cloned"
    BRANCH_READY = "branch_ready"
    PULLED_IF_APPLICABLE = "pulled_if_applicable"
    CONTENT_MATERIALIZED = "content_materialized"
    COMMITTED = "committed"
    PUSHED = "pushed"
    PULL_REQUEST_OPENED = "pull_request_opened"
    DONE = "done"


class OutcomeStatus(Enum):
    SKIPPED = "skipped"
    DONE = "done"
    FAILED = "failed"


@dataclass
class PublishOutcome:
    """
    Lo que el orquestador reporta al terminar. Nunca se lanza.

    Campos:
        status: SKIPPED (no aplica todavía), DONE o FAILED
        state: Último estado alcanzado
        reason: Explicación corta (sin secretos)
        run_id: ID de la corrida, para cruzar con los failure records
    """
    status: OutcomeStatus
    state: PublishState = PublishState.IDLE
    reason: str = ""
    run_id: str = ""
    repository: RemoteRepository | None = None
    pull_request: PullRequest | None = None
