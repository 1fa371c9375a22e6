"""
conftest.py — Fixtures compartidas: remotos Git locales.

crear_remoto arma un repo bare en tmp_path con la plantilla mínima
(src/index.html con placeholders + src/app.css), así los tests de Git
y los end-to-end no necesitan red.
"""

from __future__ import annotations

from pathlib import Path

import git as gitpython
import pytest

ACTOR = gitpython.Actor("Semilla", "semilla@example.com")

INDEX_HTML = "<title>{{DECKDECKGO_TITLE}}</title>\n<p>{{DECKDECKGO_AUTHOR}}</p>\n"


def _crear_remoto(
    tmp_path: Path, con_branch: bool = False, divergente: bool = False
) -> str:
    """
    Crea un repo bare con la plantilla y regresa su ruta.

    Con `con_branch`, el remoto ya tiene un branch deckdeckgo un commit
    adelante de master (caso de una publicación anterior). Con
    `divergente`, además master avanza por su lado (PR anterior
    mergeado con squash), así que el pull necesita un merge commit.
    """
    origen = tmp_path / "origen"
    repo = gitpython.Repo.init(origen)
    (origen / "src").mkdir()
    (origen / "src" / "index.html").write_text(INDEX_HTML, encoding="utf-8")
    (origen / "src" / "app.css").write_text("body {}\n", encoding="utf-8")
    repo.index.add(["src/index.html", "src/app.css"])
    repo.index.commit("init", author=ACTOR, committer=ACTOR)
    repo.git.branch("-M", "master")

    if con_branch:
        repo.git.checkout("-b", "deckdeckgo")
        (origen / "PUBLISHED.md").write_text("publicación anterior\n", encoding="utf-8")
        repo.index.add(["PUBLISHED.md"])
        repo.index.commit("previous publish", author=ACTOR, committer=ACTOR)
        repo.git.checkout("master")

    if con_branch and divergente:
        (origen / "CHANGELOG.md").write_text("squash del PR anterior\n", encoding="utf-8")
        repo.index.add(["CHANGELOG.md"])
        repo.index.commit("squash merge", author=ACTOR, committer=ACTOR)

    bare = tmp_path / "remoto.git"
    repo.clone(str(bare), bare=True)
    return str(bare)


@pytest.fixture
def crear_remoto(tmp_path):
    """Fábrica de remotos bare: crear_remoto(con_branch, divergente) → ruta."""

    def fabrica(con_branch: bool = False, divergente: bool = False) -> str:
        return _crear_remoto(tmp_path, con_branch=con_branch, divergente=divergente)

    return fabrica


@pytest.fixture
def actor():
    return ACTOR


@pytest.fixture
def sin_identidad_global(tmp_path, monkeypatch):
    """
    Aísla git de la config global y del sistema, como en un contenedor
    sin ~/.gitconfig: la única identidad es la que escribe el código.
    """
    home = tmp_path / "home"
    home.mkdir()
    monkeypatch.setenv("HOME", str(home))
    monkeypatch.setenv("GIT_CONFIG_GLOBAL", str(home / ".gitconfig"))
    monkeypatch.setenv("GIT_CONFIG_NOSYSTEM", "1")
    for var in (
        "GIT_AUTHOR_NAME", "GIT_AUTHOR_EMAIL",
        "GIT_COMMITTER_NAME", "GIT_COMMITTER_EMAIL", "EMAIL",
    ):
        monkeypatch.delenv(var, raising=False)
