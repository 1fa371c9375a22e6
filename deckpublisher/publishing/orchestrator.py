"""
orchestrator.py — El pipeline completo de "publicar deck en GitHub".

Secuencia lineal de estados:

    IDLE → PRECONDITIONS_CHECKED → CREDENTIAL_RESOLVED → USER_RESOLVED
         → REPOSITORY_RESOLVED → CLONED → BRANCH_READY → PULLED_IF_APPLICABLE
         → CONTENT_MATERIALIZED → COMMITTED → PUSHED → PULL_REQUEST_OPENED → DONE

Reglas:
    - Precondición no cumplida (deck sin publicar, sin pathname, sin owner,
      sin token, usuario o repo no resolubles): regreso silencioso SKIPPED.
      Muchos cambios del deck simplemente no califican; no es un error.
    - Cualquier excepción se atrapa UNA vez aquí arriba, se loggea y se
      deja un failure record estructurado. Quien disparó el evento nunca
      ve la falla (fire-and-forget).
    - No hay reanudación: el siguiente evento que califique empieza de cero.

Cada corrida tiene su propio contexto (PublishContext) y su propio
directorio de trabajo, que se borra al salir pase lo que pase.

Uso:
    from deckpublisher.publishing.orchestrator import PublishOrchestrator
    orchestrator = PublishOrchestrator.from_config(config)
    outcome = orchestrator.publish(DeckChange.from_dict(event))
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass
from pathlib import Path
from typing import Callable

from deckpublisher.config import AppConfig
from deckpublisher.credentials import TokenStore, YamlTokenStore
from deckpublisher.errors import UserResolutionError
from deckpublisher.github.client import GraphQLClient
from deckpublisher.github.resolver import RepositoryResolver
from deckpublisher.models import (
    DeckChange,
    DeckSnapshot,
    OutcomeStatus,
    PublishOutcome,
    PublishState,
    PullRequest,
    RemoteRepository,
    RemoteUser,
)
from deckpublisher.notifications.notifier import Event, JsonlRecordChannel, Notifier
from deckpublisher.publishing.git_ops import WorkingCopyManager, working_copy_path
from deckpublisher.publishing.materializer import deck_substitutions, materialize
from deckpublisher.publishing.pr_manager import PullRequestPublisher
from deckpublisher.utils.logger import get_logger

logger = get_logger("deckpublisher.orchestrator")

TOTAL_STEPS = 7


def is_newly_published(before: DeckSnapshot | None, after: DeckSnapshot | None) -> bool:
    """
    ¿Esta transición pide una publicación nueva?

    Sí cuando el deck queda publicado y antes no lo estaba, o cuando
    cambió su fecha de publicación (se volvió a publicar).
    """
    if after is None or after.meta is None or not after.meta.published:
        return False
    if before is None or before.meta is None or not before.meta.published:
        return True
    return before.meta.published_at != after.meta.published_at


@dataclass
class PublishContext:
    """Estado explícito de una corrida; se pasa por todos los pasos."""
    run_id: str
    deck: DeckSnapshot
    state: PublishState = PublishState.IDLE
    token: str = ""
    user: RemoteUser | None = None
    repository: RemoteRepository | None = None
    working_path: Path | None = None
    pull_request: PullRequest | None = None

    def outcome(self, status: OutcomeStatus, reason: str = "") -> PublishOutcome:
        return PublishOutcome(
            status=status,
            state=self.state,
            reason=reason,
            run_id=self.run_id,
            repository=self.repository,
            pull_request=self.pull_request,
        )


class PublishOrchestrator:
    """
    Encadena resolver → copia local → materializer → commit/push → PR.

    Args:
        config: Configuración de la app.
        token_store: De dónde sale el token de cada owner.
        resolver: Resuelve usuario y repo.
        pr_publisher: Crea el PR.
        notifier: Recibe eventos y failure records.
        should_publish: Predicado antes/después (default: is_newly_published).
        working_copy_factory: Crea el WorkingCopyManager para una ruta.
        run_id_factory: Genera el id único de cada corrida.
    """

    def __init__(
        self,
        config: AppConfig,
        token_store: TokenStore,
        resolver: RepositoryResolver,
        pr_publisher: PullRequestPublisher,
        notifier: Notifier | None = None,
        should_publish: Callable[[DeckSnapshot | None, DeckSnapshot | None], bool] = is_newly_published,
        working_copy_factory: Callable[[Path], WorkingCopyManager] | None = None,
        run_id_factory: Callable[[], str] = lambda: uuid.uuid4().hex,
    ):
        self._config = config
        self._token_store = token_store
        self._resolver = resolver
        self._pr_publisher = pr_publisher
        self._notifier = notifier or Notifier()
        self._should_publish = should_publish
        self._working_copy_factory = working_copy_factory or (
            lambda path: WorkingCopyManager(path, remote_host=config.git.remote_host)
        )
        self._run_id_factory = run_id_factory

    @classmethod
    def from_config(cls, config: AppConfig) -> PublishOrchestrator:
        """Arma el orquestador con las implementaciones por defecto."""
        client = GraphQLClient(
            config.github.api_url, timeout=config.github.request_timeout
        )
        notifier = Notifier(
            channels=[JsonlRecordChannel(config.storage.failures_file)],
            enabled_events=[Event.PUBLISH_FAILED.value],
        )
        return cls(
            config=config,
            token_store=YamlTokenStore(config.storage.tokens_file),
            resolver=RepositoryResolver(client, config.github),
            pr_publisher=PullRequestPublisher(client),
            notifier=notifier,
        )

    # ============================================================
    # Punto de entrada
    # ============================================================

    def publish(self, change: DeckChange) -> PublishOutcome:
        """
        Corre el pipeline completo para un cambio del deck. Nunca lanza.

        Returns:
            PublishOutcome con status SKIPPED, DONE o FAILED.
        """
        after = change.after
        if not self._preconditions_met(change):
            return PublishOutcome(OutcomeStatus.SKIPPED, reason="not applicable")

        ctx = PublishContext(run_id=self._run_id_factory(), deck=after)
        ctx.state = PublishState.PRECONDITIONS_CHECKED

        try:
            return self._run(ctx)
        except Exception as e:
            return self._fail(ctx, e)

    def _preconditions_met(self, change: DeckChange) -> bool:
        """Campos requeridos del deck + predicado de transición. Sin efectos."""
        after = change.after
        if after is None or after.meta is None:
            return False
        if not after.meta.published or not after.meta.pathname:
            return False
        if not after.owner_id:
            return False
        return self._should_publish(change.before, after)

    # ============================================================
    # Pasos
    # ============================================================

    def _run(self, ctx: PublishContext) -> PublishOutcome:
        cfg = self._config

        credential = self._token_store.find_token(ctx.deck.owner_id)
        if credential is None or not credential.token:
            logger.info(f"Sin token de GitHub para {ctx.deck.owner_id}, nada que hacer")
            return ctx.outcome(OutcomeStatus.SKIPPED, "no credential")
        ctx.token = credential.token
        ctx.state = PublishState.CREDENTIAL_RESOLVED

        try:
            ctx.user = self._resolver.resolve_user(ctx.token)
        except UserResolutionError as e:
            logger.info(f"Usuario de GitHub no resoluble: {e}")
            return ctx.outcome(OutcomeStatus.SKIPPED, "user not resolved")
        ctx.state = PublishState.USER_RESOLVED

        lookup = self._resolver.find_or_create_repository(ctx.token, ctx.user)
        if not lookup.ok:
            logger.info(f"Repo no disponible ({lookup.status.value}): {lookup.reason}")
            return ctx.outcome(
                OutcomeStatus.SKIPPED, lookup.reason or "repository not available"
            )
        ctx.repository = lookup.repository
        ctx.state = PublishState.REPOSITORY_RESOLVED

        if not cfg.git.author_name or not cfg.git.author_email:
            logger.warning("Falta GITHUB_AUTHOR_NAME / GITHUB_AUTHOR_EMAIL")
            return ctx.outcome(OutcomeStatus.SKIPPED, "commit identity not configured")

        ctx.working_path = working_copy_path(
            cfg.workspace.root,
            cfg.github.project_name,
            ctx.deck.owner_id,
            ctx.run_id,
        )
        working_copy = self._working_copy_factory(ctx.working_path)
        try:
            self._publish_working_copy(ctx, working_copy)
        finally:
            if not cfg.workspace.keep_working_copy:
                working_copy.cleanup()

        if ctx.pull_request is not None:
            self._notifier.notify(Event.PULL_REQUEST_OPENED, self._record(ctx))
        else:
            self._notifier.notify(Event.PUBLISHED, self._record(ctx))

        ctx.state = PublishState.DONE
        logger.success(f"Deck publicado en {ctx.repository.name_with_owner}")
        return ctx.outcome(OutcomeStatus.DONE)

    def _publish_working_copy(
        self, ctx: PublishContext, working_copy: WorkingCopyManager
    ) -> None:
        cfg = self._config
        branch = cfg.git.branch
        repo = ctx.repository
        user = ctx.user

        logger.step(1, TOTAL_STEPS, f"Clonando {repo.name_with_owner}")
        working_copy.ensure_clean()
        working_copy.clone(repo.url)
        ctx.state = PublishState.CLONED

        logger.step(2, TOTAL_STEPS, f"Preparando branch {branch}")
        working_copy.checkout_branch(branch)
        # El pull puede necesitar un merge commit: la identidad va antes
        working_copy.configure_identity(cfg.git.author_name, cfg.git.author_email)
        ctx.state = PublishState.BRANCH_READY

        logger.step(3, TOTAL_STEPS, "Sincronizando con el remoto")
        working_copy.pull_if_remote_branch_exists(repo.url, branch)
        ctx.state = PublishState.PULLED_IF_APPLICABLE

        logger.step(4, TOTAL_STEPS, "Escribiendo el contenido del deck")
        materialize(
            ctx.working_path / cfg.workspace.entry_file,
            deck_substitutions(ctx.deck),
        )
        ctx.state = PublishState.CONTENT_MATERIALIZED

        logger.step(5, TOTAL_STEPS, "Commit")
        working_copy.commit(
            cfg.git.author_name,
            cfg.git.author_email,
            [cfg.workspace.entry_file],
            cfg.git.commit_message,
        )
        ctx.state = PublishState.COMMITTED

        logger.step(6, TOTAL_STEPS, "Push")
        working_copy.push(
            ctx.token,
            cfg.git.author_name,
            cfg.git.author_email,
            user.login,
            cfg.github.project_name,
            branch,
        )
        ctx.state = PublishState.PUSHED

        logger.step(7, TOTAL_STEPS, "Pull Request")
        ctx.pull_request = self._pr_publisher.create_pull_request(
            ctx.token,
            repo.id,
            head=branch,
            base=cfg.github.base_branch,
            title=cfg.github.pr_title,
            body=cfg.github.pr_body,
        )
        if ctx.pull_request is not None:
            ctx.state = PublishState.PULL_REQUEST_OPENED

    # ============================================================
    # Fallas
    # ============================================================

    def _fail(self, ctx: PublishContext, error: Exception) -> PublishOutcome:
        """Loggea la falla, deja el failure record y regresa FAILED."""
        mensaje = f"{type(error).__name__}: {error}"
        logger.error(
            f"Publicación {ctx.run_id} falló en estado {ctx.state.value}: {mensaje}"
        )
        self._notifier.notify(
            Event.PUBLISH_FAILED,
            {
                **self._record(ctx),
                "error_type": type(error).__name__,
                "message": str(error),
            },
        )
        return ctx.outcome(OutcomeStatus.FAILED, mensaje)

    @staticmethod
    def _record(ctx: PublishContext) -> dict:
        """Datos del contexto que es seguro persistir (sin token)."""
        return {
            "run_id": ctx.run_id,
            "owner_id": ctx.deck.owner_id,
            "deck_id": ctx.deck.deck_id,
            "state": ctx.state.value,
            "login": ctx.user.login if ctx.user else None,
            "repository": ctx.repository.name_with_owner if ctx.repository else None,
            "pull_request": ctx.pull_request.url if ctx.pull_request else None,
        }
