"""
deckpublisher — Publica un deck en un repositorio de GitHub del usuario.

Este paquete contiene:
- github/        → Cliente GraphQL y resolución de usuario/repo
- publishing/    → Copia local, contenido, commit/push, PR y orquestador
- notifications/ → Eventos y failure records
- utils/         → Logger compartido

Uso:
    python -m deckpublisher publish --event change.json
    python -m deckpublisher config --validate
"""

__version__ = "0.1.0"
