from typing import List, Optional
import logging

from sqlalchemy.orm import Session

from app.models.employee import EmployeeCore
from app.repositories.employee import employee_repository

logger = logging.getLogger(__name__)

MAX_IDS_PER_QUERY = 200
DEFAULT_SEARCH_LIMIT = 200
EMPLOYEE_LIST_LIMIT = 20


def parse_ids_param(raw: Optional[str]) -> List[str]:
    """Lista de ids separada por comas, tal como llega en ?ids=."""
    if not raw:
        return []
    return [part.strip() for part in raw.split(",") if part.strip()]


class DirectoryService:
    """Búsquedas en el directorio maestro de empleados (solo lectura)."""

    def search_employees(
        self,
        master_db: Session,
        *,
        q: Optional[str] = None,
        ids: Optional[List[str]] = None,
        limit: int = DEFAULT_SEARCH_LIMIT
    ) -> List[EmployeeCore]:
        """
        Buscar empleados por prefijo de id o nombre, o por lista de ids.

        Los ids se resuelven primero de forma exacta y después por su forma
        normalizada, de modo que "MTI-00123" encuentra al empleado "00123".
        """
        # Como máximo MAX_IDS_PER_QUERY ids; el resto se ignora
        ids = (ids or [])[:MAX_IDS_PER_QUERY]

        if ids:
            resolved = employee_repository.resolve_many(master_db, ids)
            employees = []
            seen = set()
            for raw in ids:
                employee = resolved.get(raw)
                if employee and employee.employee_id not in seen:
                    seen.add(employee.employee_id)
                    employees.append(employee)
            if q:
                prefix = q.strip().lower()
                employees = [
                    e for e in employees
                    if e.employee_id.lower().startswith(prefix) or (e.name or "").lower().startswith(prefix)
                ]
            return employees[:limit]

        return employee_repository.search(master_db, q=q, limit=limit)

    def list_employee_ids(self, master_db: Session, q: Optional[str] = None) -> List[str]:
        return employee_repository.list_ids(master_db, q=q, limit=EMPLOYEE_LIST_LIMIT)


directory_service = DirectoryService()
