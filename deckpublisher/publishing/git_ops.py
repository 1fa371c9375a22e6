"""
git_ops.py — La copia local de trabajo de una publicación.

Cada publicación tiene SU PROPIO directorio, derivado del owner y de un
run id único. Dos publicaciones concurrentes nunca pisan la misma ruta.

Orden obligatorio de operaciones:
    1. ensure_clean()                 → borra restos (si hay)
    2. clone(url)                     → clon completo del repo
    3. checkout_branch("deckdeckgo")  → git checkout -B desde HEAD
    4. configure_identity(...)        → user.name / user.email locales
    5. pull_if_remote_branch_exists() → ls-remote primero, pull solo si existe
    6. commit(...)                    → solo los archivos enumerados
    7. push(...)                      → URL con token; errores sanitizados
    8. cleanup()                      → borra la copia (siempre, en finally)

¿Por qué ls-remote antes del pull?
    Un pull contra un branch remoto que no existe truena con
    "fatal: couldn't find remote ref". La primera publicación de un
    usuario siempre está en ese caso.

Uso:
    from deckpublisher.publishing.git_ops import WorkingCopyManager
    wc = WorkingCopyManager(path)
    wc.ensure_clean()
    wc.clone(repo.url)
    wc.checkout_branch("deckdeckgo")
"""

from __future__ import annotations

import re
import shutil
from pathlib import Path

import git as gitpython

from deckpublisher.errors import PushError, WorkingCopyError
from deckpublisher.utils.logger import get_logger

logger = get_logger("deckpublisher.git")


def working_copy_path(
    root: str | Path, project: str, owner_id: str, run_id: str
) -> Path:
    """
    Ruta privada para una corrida: <root>/<project>-<owner>-<run_id>.

    El owner id se limpia para que sea un nombre de directorio válido.
    """
    owner = re.sub(r"[^A-Za-z0-9_-]+", "_", owner_id) or "anonymous"
    return Path(root) / f"{project}-{owner}-{run_id}"


class WorkingCopyManager:
    """
    Gestiona una sola copia de trabajo efímera.

    Args:
        path: Ruta exclusiva de esta publicación.
        remote_host: Host usado para construir la URL de push.
    """

    def __init__(self, path: str | Path, remote_host: str = "github.com"):
        self._path = Path(path)
        self._remote_host = remote_host
        self._repo: gitpython.Repo | None = None

    @property
    def path(self) -> Path:
        return self._path

    def _get_repo(self) -> gitpython.Repo:
        """Abre (una sola vez) el repo clonado."""
        if self._repo is None:
            if not self._path.exists():
                raise WorkingCopyError(f"No working copy at {self._path}")
            self._repo = gitpython.Repo(self._path)
        return self._repo

    # ============================================================
    # Ciclo de vida del directorio
    # ============================================================

    def ensure_clean(self) -> None:
        """Borra cualquier directorio previo en la ruta. Si no existe, ok."""
        self._repo = None
        if not self._path.exists():
            return
        try:
            shutil.rmtree(self._path)
        except OSError as e:
            raise WorkingCopyError(f"Cannot clean {self._path}: {e}") from e

    def cleanup(self) -> None:
        """Borra la copia de trabajo. Nunca lanza: se usa en finally."""
        if self._repo is not None:
            self._repo.close()
            self._repo = None
        shutil.rmtree(self._path, ignore_errors=True)

    # ============================================================
    # Operaciones Git
    # ============================================================

    def clone(self, remote_url: str) -> None:
        """Clon completo del repo destino."""
        try:
            self._repo = gitpython.Repo.clone_from(remote_url, self._path)
        except gitpython.GitCommandError as e:
            raise WorkingCopyError(f"Clone failed: {e.stderr.strip()}") from e
        logger.info(f"Repo clonado en {self._path}")

    def checkout_branch(self, branch: str) -> None:
        """
        Crea o resetea `branch` en HEAD y hace checkout (git checkout -B).

        Como HEAD es la punta del branch default recién clonado, cada
        corrida arranca el branch rodante desde lo último del default.
        """
        repo = self._get_repo()
        try:
            repo.git.checkout("-B", branch)
        except gitpython.GitCommandError as e:
            raise WorkingCopyError(f"Checkout of {branch} failed: {e.stderr.strip()}") from e

    def remote_branch_exists(self, remote_url: str, branch: str) -> bool:
        """git ls-remote --heads <url> <branch>; True si regresa algo."""
        repo = self._get_repo()
        try:
            resultado = repo.git.ls_remote("--heads", remote_url, branch)
        except gitpython.GitCommandError as e:
            raise WorkingCopyError(f"ls-remote failed: {e.stderr.strip()}") from e
        return bool(resultado and resultado.strip())

    def pull_if_remote_branch_exists(self, remote_url: str, branch: str) -> bool:
        """
        Hace pull de `branch` solo si existe en el remoto.

        Returns:
            True si se hizo pull, False si el branch aún no existe.
        """
        if not self.remote_branch_exists(remote_url, branch):
            logger.info(f"El branch {branch} aún no existe en el remoto, sin pull")
            return False

        repo = self._get_repo()
        try:
            repo.git.pull(remote_url, branch, no_rebase=True, no_edit=True)
        except gitpython.GitCommandError as e:
            raise WorkingCopyError(f"Pull of {branch} failed: {e.stderr.strip()}") from e

        logger.info(f"Pull de {branch} completado")
        return True

    def configure_identity(self, author_name: str, author_email: str) -> None:
        """Escribe user.name / user.email en la config local del repo."""
        repo = self._get_repo()
        with repo.config_writer() as writer:
            writer.set_value("user", "name", author_name)
            writer.set_value("user", "email", author_email)

    def commit(
        self,
        author_name: str,
        author_email: str,
        files: list[str],
        message: str,
    ) -> str:
        """
        Hace staging de EXACTAMENTE `files` y commit.

        Nada de `git add -A`: otros archivos modificados en la copia
        se quedan fuera del commit.

        Args:
            files: Rutas relativas a la raíz del repo.

        Returns:
            Hash del commit creado.
        """
        self.configure_identity(author_name, author_email)
        repo = self._get_repo()
        actor = gitpython.Actor(author_name, author_email)

        try:
            index = repo.index
            index.add(files)
            commit = index.commit(message, author=actor, committer=actor)
        except (gitpython.GitCommandError, OSError) as e:
            raise WorkingCopyError(f"Commit failed: {e}") from e

        logger.success(f"Commit creado: {commit.hexsha[:7]}: {message}")
        return commit.hexsha

    def push(
        self,
        token: str,
        author_name: str,
        author_email: str,
        login: str,
        project: str,
        branch: str,
    ) -> None:
        """
        Pushea `branch` a https://<login>:<token>@<host>/<login>/<project>.git.

        Cualquier error se descarta (su texto puede traer la URL con el
        token) y se reemplaza por PushError, que solo nombra
        login/proyecto/branch.
        """
        url = f"https://{login}:{token}@{self._remote_host}/{login}/{project}.git"
        try:
            self.configure_identity(author_name, author_email)
            self._get_repo().git.push(url, f"{branch}:{branch}")
        except Exception:
            raise PushError(login, project, branch) from None

        logger.success(f"Push exitoso a {login}/{project} ({branch})")
