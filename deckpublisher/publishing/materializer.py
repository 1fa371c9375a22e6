"""
materializer.py — Escribe los datos del deck en el archivo de entrada de la plantilla.

La plantilla trae placeholders con la sintaxis {{NOMBRE}}:

    <title>{{DECKDECKGO_TITLE}}</title>
    <meta name="author" content="{{DECKDECKGO_AUTHOR}}">

Se reemplazan TODAS las ocurrencias de cada placeholder conocido.
Placeholders desconocidos y el resto del texto no se tocan.

Por ahora solo se materializa un archivo (src/index.html).

Uso:
    from deckpublisher.publishing.materializer import materialize, deck_substitutions
    materialize(path / "src" / "index.html", deck_substitutions(deck))
"""

from __future__ import annotations

import re
from pathlib import Path

from deckpublisher.models import DeckSnapshot
from deckpublisher.utils.logger import get_logger

logger = get_logger("deckpublisher.materializer")

TITLE_PLACEHOLDER = "DECKDECKGO_TITLE"
AUTHOR_PLACEHOLDER = "DECKDECKGO_AUTHOR"


def deck_substitutions(deck: DeckSnapshot) -> dict[str, str]:
    """Valores del deck para cada placeholder de la plantilla."""
    meta = deck.meta
    return {
        TITLE_PLACEHOLDER: meta.title if meta else "",
        AUTHOR_PLACEHOLDER: meta.author_name if meta else "",
    }


def materialize(entry_path: str | Path, substitutions: dict[str, str]) -> int:
    """
    Reemplaza in-place cada {{TOKEN}} de `substitutions` en el archivo.

    Args:
        entry_path: Archivo de entrada de la plantilla.
        substitutions: {nombre_placeholder: valor}, sin las llaves.

    Returns:
        Número total de reemplazos hechos.
    """
    ruta = Path(entry_path)
    contenido = ruta.read_text(encoding="utf-8")

    total = 0
    for nombre, valor in substitutions.items():
        patron = re.compile(r"\{\{" + re.escape(nombre) + r"\}\}")
        # Función como reemplazo: el valor es literal, sin escapes de re
        contenido, n = patron.subn(lambda _m, v=valor: v, contenido)
        total += n

    ruta.write_text(contenido, encoding="utf-8")
    logger.info(f"{total} placeholder(s) reemplazados en {ruta.name}")
    return total
