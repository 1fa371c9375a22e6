"""
notifier.py — Eventos de publicación y registro estructurado de fallas.

El orquestador nunca le avisa a quien lo disparó que algo falló
(fire-and-forget). Para que una falla no se pierda en la consola,
cada evento se manda a canales de notificación. El canal incluido,
JsonlRecordChannel, deja un registro JSON por línea que se puede
consultar o usar para reintentar después:

    {"event": "publish_failed", "timestamp": "...", "run_id": "...",
     "owner_id": "...", "state": "cloned", "error_type": "WorkingCopyError",
     "message": "..."}

Patrón Strategy: cualquier canal implementa NotificationChannel.send().

Uso:
    from deckpublisher.notifications.notifier import Notifier, Event, JsonlRecordChannel
    notifier = Notifier(channels=[JsonlRecordChannel("logs/publish-failures.jsonl")],
                        enabled_events=["publish_failed"])
    notifier.notify(Event.PUBLISH_FAILED, {"run_id": "...", "message": "..."})
"""

from __future__ import annotations

import json
import threading
from abc import ABC, abstractmethod
from datetime import datetime, timezone
from enum import Enum
from pathlib import Path
from typing import Any

from deckpublisher.utils.logger import get_logger

logger = get_logger("deckpublisher.notifications")


class Event(Enum):
    """
    Eventos del pipeline:
    - PUBLISHED: push hecho pero el PR no se confirmó
    - PULL_REQUEST_OPENED: publicación completa con PR
    - PUBLISH_FAILED: falla dura atrapada por el orquestador
    """
    PUBLISHED = "published"
    PULL_REQUEST_OPENED = "pull_request_opened"
    PUBLISH_FAILED = "publish_failed"


class NotificationChannel(ABC):
    """Interfaz de un canal de notificación."""

    @abstractmethod
    def send(self, event: Event, data: dict[str, Any]) -> bool:
        """
        Envía el evento por este canal.

        Returns:
            True si el envío fue exitoso.
        """
        ...

    @abstractmethod
    def is_configured(self) -> bool:
        ...


class JsonlRecordChannel(NotificationChannel):
    """
    Agrega un objeto JSON por evento a un archivo .jsonl.

    Args:
        path: Archivo destino (se crea con sus directorios si no existe).
    """

    def __init__(self, path: str | Path):
        self._path = Path(path)
        self._lock = threading.Lock()

    @property
    def path(self) -> Path:
        return self._path

    def send(self, event: Event, data: dict[str, Any]) -> bool:
        registro = {
            "event": event.value,
            "timestamp": datetime.now(timezone.utc).isoformat(),
            **data,
        }
        linea = json.dumps(registro, ensure_ascii=False, default=str)

        with self._lock:
            self._path.parent.mkdir(parents=True, exist_ok=True)
            with open(self._path, "a", encoding="utf-8") as f:
                f.write(linea + "\n")
        return True

    def is_configured(self) -> bool:
        return bool(str(self._path))

    def read_records(self) -> list[dict[str, Any]]:
        """Lee todos los registros (vacío si el archivo no existe)."""
        if not self._path.exists():
            return []
        with open(self._path, "r", encoding="utf-8") as f:
            return [json.loads(linea) for linea in f if linea.strip()]


class Notifier:
    """
    Reparte eventos a todos los canales configurados.

    Si un canal falla se loggea y se sigue con los demás: las
    notificaciones nunca deben romper el pipeline.

    Args:
        channels: Canales de notificación.
        enabled_events: Valores de Event habilitados (default: todos).
    """

    def __init__(
        self,
        channels: list[NotificationChannel] | None = None,
        enabled_events: list[str] | None = None,
    ):
        self._channels = channels or []
        self._enabled_events = set(enabled_events or [e.value for e in Event])

    def notify(self, event: Event, data: dict[str, Any]) -> None:
        """Envía el evento a cada canal configurado."""
        if event.value not in self._enabled_events:
            return

        for channel in self._channels:
            if not channel.is_configured():
                continue

            try:
                if not channel.send(event, data):
                    logger.warning(
                        f"Notificación falló en {channel.__class__.__name__}"
                    )
            except Exception as e:
                logger.error(
                    f"Error en notificación ({channel.__class__.__name__}): {e}"
                )

    def add_channel(self, channel: NotificationChannel) -> None:
        """Agrega un canal de notificación."""
        self._channels.append(channel)
