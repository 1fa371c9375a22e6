"""
publishing/ — Todo lo relacionado con llevar el deck al repo del usuario.

Módulos:
- git_ops.py      → Copia local: clone, checkout, pull, commit, push
- materializer.py → Reemplaza los placeholders de la plantilla
- pr_manager.py   → Crea el Pull Request
- orchestrator.py → Encadena todo y convierte fallas en failure records
"""
