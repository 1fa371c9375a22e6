"""
__main__.py — Permite ejecutar deckpublisher como módulo.

    python -m deckpublisher publish --event change.json
"""

from deckpublisher.cli import main

if __name__ == "__main__":
    main()
