"""
config.py — Carga y gestiona la configuración de deckpublisher.

Se encarga de:
1. Cargar config.yaml (configuración general, se sube a Git)
2. Cargar .env (secretos y valores por entorno, NUNCA se sube a Git)
3. Resolver ${VARIABLES} de entorno dentro de config.yaml
4. Validar que lo necesario para publicar esté presente

Las dos variables que el entorno de ejecución siempre debe dar son
la identidad de los commits:
    GITHUB_AUTHOR_NAME  → nombre que firma los commits
    GITHUB_AUTHOR_EMAIL → email que firma los commits

Uso:
    from deckpublisher.config import load_config
    config = load_config()
    print(config.git.branch)  # "deckdeckgo"
"""

from __future__ import annotations

import os
import re
import tempfile
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml
from dotenv import load_dotenv


# ============================================================
# Dataclasses de configuración
# ============================================================
# Cada sección de config.yaml tiene su propia dataclass.
# ============================================================

@dataclass
class GitConfig:
    """Configuración de Git (identidad, branch y host remoto)."""
    author_name: str = ""
    author_email: str = ""
    branch: str = "deckdeckgo"
    commit_message: str = "feat: last changes"
    remote_host: str = "github.com"


@dataclass
class GitHubConfig:
    """Configuración del API GraphQL y del repo plantilla."""
    api_url: str = "https://api.github.com/graphql"
    template_repository_id: str = "MDEwOlJlcG9zaXRvcnkxNTM0MDk2MTg="
    project_name: str = "test"
    repository_description: str = "Hello"
    repository_visibility: str = "PUBLIC"
    base_branch: str = "master"
    pr_title: str = "Hello World"
    pr_body: str = "Hello"
    request_timeout: float = 30.0
    settle_timeout: float = 30.0
    settle_interval: float = 2.0


@dataclass
class WorkspaceConfig:
    """Dónde vive la copia local de cada publicación."""
    root: str = field(default_factory=tempfile.gettempdir)
    entry_file: str = "src/index.html"
    keep_working_copy: bool = False


@dataclass
class StorageConfig:
    """Archivos locales: token store y registro de fallas."""
    tokens_file: str = "tokens.yaml"
    failures_file: str = "logs/publish-failures.jsonl"


@dataclass
class AppConfig:
    """Configuración completa de la aplicación."""
    git: GitConfig = field(default_factory=GitConfig)
    github: GitHubConfig = field(default_factory=GitHubConfig)
    workspace: WorkspaceConfig = field(default_factory=WorkspaceConfig)
    storage: StorageConfig = field(default_factory=StorageConfig)


# ============================================================
# Funciones de carga
# ============================================================

def _resolve_env_vars(value: str) -> str:
    """
    Resuelve variables de entorno en un string.

    Ejemplo:
        "${TMPDIR}/decks" → "/tmp/decks"

    Si la variable no existe se deja el placeholder tal cual.
    """
    patron = re.compile(r"\$\{(\w+)\}")

    def reemplazar(match: re.Match) -> str:
        nombre_var = match.group(1)
        return os.environ.get(nombre_var, match.group(0))

    return patron.sub(reemplazar, value)


def _resolve_env_recursive(data: Any) -> Any:
    """Resuelve variables de entorno recursivamente en un dict/list."""
    if isinstance(data, str):
        return _resolve_env_vars(data)
    elif isinstance(data, dict):
        return {k: _resolve_env_recursive(v) for k, v in data.items()}
    elif isinstance(data, list):
        return [_resolve_env_recursive(item) for item in data]
    return data


def _dict_to_dataclass(data: dict, cls: type) -> Any:
    """
    Convierte un diccionario a una dataclass, ignorando keys desconocidas.

    El YAML podría tener keys que ya no existen en la dataclass;
    en vez de explotar, se ignoran.
    """
    campos_validos = {f.name for f in cls.__dataclass_fields__.values()}
    datos_filtrados = {k: v for k, v in data.items() if k in campos_validos}
    return cls(**datos_filtrados)


def _find_config_dir() -> Path:
    """
    Encuentra el directorio raíz del proyecto (donde está config.yaml).

    Busca hacia arriba desde el directorio actual.
    """
    current = Path.cwd()
    for parent in [current] + list(current.parents):
        if (parent / "config.yaml").exists():
            return parent
    return current


def load_config(config_path: Path | None = None) -> AppConfig:
    """
    Carga la configuración completa.

    Pasos:
    1. Carga .env para tener las variables de entorno disponibles
    2. Lee config.yaml (si no existe, valores por defecto)
    3. Resuelve ${VARIABLES} en los valores del YAML
    4. Convierte cada sección a su dataclass
    5. Aplica la identidad de commits desde el entorno

    Args:
        config_path: Ruta al config.yaml. Si es None, busca automáticamente.

    Returns:
        AppConfig lista para usar.
    """
    proyecto_dir = _find_config_dir()
    env_path = proyecto_dir / ".env"
    if env_path.exists():
        load_dotenv(env_path)

    if config_path is None:
        config_path = proyecto_dir / "config.yaml"

    raw_config: dict = {}
    if config_path.exists():
        with open(config_path, "r", encoding="utf-8") as f:
            raw_config = yaml.safe_load(f) or {}

    config_resuelto = _resolve_env_recursive(raw_config)

    app_config = AppConfig(
        git=_dict_to_dataclass(config_resuelto.get("git", {}), GitConfig),
        github=_dict_to_dataclass(config_resuelto.get("github", {}), GitHubConfig),
        workspace=_dict_to_dataclass(
            config_resuelto.get("workspace", {}), WorkspaceConfig
        ),
        storage=_dict_to_dataclass(
            config_resuelto.get("storage", {}), StorageConfig
        ),
    )

    # El entorno tiene la última palabra sobre la identidad de los commits
    app_config.git.author_name = os.environ.get(
        "GITHUB_AUTHOR_NAME", app_config.git.author_name
    )
    app_config.git.author_email = os.environ.get(
        "GITHUB_AUTHOR_EMAIL", app_config.git.author_email
    )

    return app_config


def validate_config(config: AppConfig) -> list[str]:
    """
    Lista los problemas de configuración que impedirían publicar.

    Returns:
        Lista de mensajes; vacía si todo está bien.
    """
    problemas = []
    if not config.git.author_name:
        problemas.append("GITHUB_AUTHOR_NAME no está configurado")
    if not config.git.author_email:
        problemas.append("GITHUB_AUTHOR_EMAIL no está configurado")
    if not config.git.branch:
        problemas.append("git.branch está vacío")
    if not config.github.template_repository_id:
        problemas.append("github.template_repository_id está vacío")
    if not config.github.project_name:
        problemas.append("github.project_name está vacío")
    if config.github.settle_timeout <= 0 or config.github.settle_interval <= 0:
        problemas.append("settle_timeout y settle_interval deben ser positivos")
    return problemas
