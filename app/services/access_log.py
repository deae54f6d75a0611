"""
Registro en memoria de los eventos de acceso (entradas y salidas).

No se persiste: sirve para el panel de transacciones en vivo y se pierde
al reiniciar el proceso.
"""
from collections import deque
from datetime import datetime, timezone
from threading import Lock
from typing import Any, Dict, List, Optional
import logging

from app.core.config import get_settings

logger = logging.getLogger(__name__)


class AccessEventLog:
    def __init__(self, maxlen: int):
        self._events = deque(maxlen=maxlen)
        self._lock = Lock()

    def record(
        self,
        *,
        booking_id: int,
        employee_id: str,
        event: str,
        name: Optional[str] = None,
        timestamp: Optional[datetime] = None
    ) -> Dict[str, Any]:
        entry = {
            "booking_id": booking_id,
            "employee_id": employee_id,
            "name": name,
            "event": event,
            "timestamp": timestamp or datetime.now(timezone.utc),
        }
        with self._lock:
            self._events.append(entry)
        logger.debug(f"Evento de acceso {event} para reserva {booking_id}")
        return entry

    def recent(self, limit: int = 50) -> List[Dict[str, Any]]:
        """Eventos más recientes primero."""
        with self._lock:
            events = list(self._events)
        events.reverse()
        return events[:max(limit, 0)]

    def tail(self, limit: int) -> List[Dict[str, Any]]:
        """Últimos eventos en orden cronológico."""
        if limit <= 0:
            return []
        with self._lock:
            return list(self._events)[-limit:]

    def clear(self) -> None:
        with self._lock:
            self._events.clear()


access_event_log = AccessEventLog(maxlen=get_settings().ACCESS_LOG_SIZE)
