"""
cli.py — Punto de entrada de línea de comandos.

En producción el pipeline lo dispara un evento de cambio del deck.
Este CLI permite disparar ese mismo pipeline a mano con un archivo
JSON que trae el par antes/después:

    {"before": {...deck...}, "after": {...deck...}}

Comandos disponibles:
    python -m deckpublisher publish --event change.json  → Corre el pipeline
    python -m deckpublisher config --show                → Muestra configuración
    python -m deckpublisher config --validate            → Valida configuración

Códigos de salida de `publish`:
    0 → DONE o SKIPPED
    1 → FAILED (el detalle queda en el failure record)
"""

from __future__ import annotations

import json
import sys

import click
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table

from deckpublisher import __version__
from deckpublisher.config import load_config, validate_config
from deckpublisher.models import DeckChange, OutcomeStatus
from deckpublisher.publishing.orchestrator import PublishOrchestrator
from deckpublisher.utils.logger import get_logger, console as rich_console

logger = get_logger("deckpublisher.cli")

_COLORES = {
    OutcomeStatus.DONE: "green",
    OutcomeStatus.SKIPPED: "yellow",
    OutcomeStatus.FAILED: "red",
}


@click.group()
@click.version_option(version=__version__, prog_name="deckpublisher")
def main():
    """Publica decks en el repositorio de GitHub de su dueño."""
    pass


@main.command()
@click.option(
    "--event", "-e",
    "event_file",
    required=True,
    type=click.File("r", encoding="utf-8"),
    help="JSON con {before, after} del deck ('-' para stdin)",
)
def publish(event_file):
    """Corre el pipeline de publicación para un cambio del deck."""
    try:
        data = json.load(event_file)
    except json.JSONDecodeError as e:
        raise click.BadParameter(f"JSON inválido: {e}", param_hint="--event")

    if not isinstance(data, dict):
        raise click.BadParameter("Se esperaba un objeto {before, after}", param_hint="--event")

    cfg = load_config()
    orchestrator = PublishOrchestrator.from_config(cfg)
    outcome = orchestrator.publish(DeckChange.from_dict(data))

    lineas = [
        f"[bold]Estado:[/bold] {outcome.status.value}",
        f"[bold]Último paso:[/bold] {outcome.state.value}",
    ]
    if outcome.run_id:
        lineas.append(f"[bold]Run:[/bold] {outcome.run_id}")
    if outcome.repository:
        lineas.append(f"[bold]Repo:[/bold] {outcome.repository.name_with_owner}")
    if outcome.pull_request:
        lineas.append(f"[bold]PR:[/bold] {outcome.pull_request.url}")
    if outcome.reason:
        lineas.append(f"[bold]Motivo:[/bold] {escape(outcome.reason)}")

    rich_console.print(Panel(
        "\n".join(lineas),
        title="Publicación",
        border_style=_COLORES[outcome.status],
    ))

    if outcome.status is OutcomeStatus.FAILED:
        sys.exit(1)


@main.command()
@click.option("--show", is_flag=True, help="Muestra la configuración actual")
@click.option("--validate", is_flag=True, help="Valida la configuración")
def config(show: bool, validate: bool):
    """Gestiona la configuración."""
    cfg = load_config()

    if show:
        tabla = Table(title="Configuración de deckpublisher")
        tabla.add_column("Parámetro", style="cyan")
        tabla.add_column("Valor", style="green")

        tabla.add_row("Autor commits", cfg.git.author_name or "(no configurado)")
        tabla.add_row("Email commits", cfg.git.author_email or "(no configurado)")
        tabla.add_row("Branch", cfg.git.branch)
        tabla.add_row("Proyecto", cfg.github.project_name)
        tabla.add_row("Branch base", cfg.github.base_branch)
        tabla.add_row("Plantilla", cfg.github.template_repository_id)
        tabla.add_row("API", cfg.github.api_url)
        tabla.add_row("Workspace", cfg.workspace.root)
        tabla.add_row("Token store", cfg.storage.tokens_file)
        tabla.add_row("Failure records", cfg.storage.failures_file)

        rich_console.print(tabla)

    if validate:
        problemas = validate_config(cfg)
        if problemas:
            for p in problemas:
                logger.error(p)
            sys.exit(1)
        logger.success("Configuración válida")


if __name__ == "__main__":
    main()
