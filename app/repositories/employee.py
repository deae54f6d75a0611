from typing import Dict, Iterable, List, Optional
from sqlalchemy.orm import Session
from sqlalchemy import func, or_

from app.core.employee_ids import normalize_employee_id
from app.models.employee import EmployeeCore


class EmployeeRepository:
    """
    Consultas de solo lectura sobre el directorio maestro de empleados.

    Todas las funciones reciben la sesión del directorio (get_master_db).
    """

    def search(
        self,
        db: Session,
        *,
        q: Optional[str] = None,
        ids: Optional[List[str]] = None,
        limit: int = 200
    ) -> List[EmployeeCore]:
        query = db.query(EmployeeCore)
        if ids:
            query = query.filter(EmployeeCore.employee_id.in_(ids))
        if q:
            pattern = f"{q.strip()}%"
            query = query.filter(or_(
                EmployeeCore.employee_id.like(pattern),
                EmployeeCore.name.ilike(pattern)
            ))
        return query.order_by(EmployeeCore.employee_id).limit(limit).all()

    def list_ids(self, db: Session, *, q: Optional[str] = None, limit: int = 20) -> List[str]:
        query = db.query(EmployeeCore.employee_id)
        if q:
            query = query.filter(EmployeeCore.employee_id.like(f"{q.strip()}%"))
        rows = query.order_by(EmployeeCore.employee_id).limit(limit).all()
        return [row[0] for row in rows]

    def resolve_many(self, db: Session, raw_ids: Iterable[str]) -> Dict[str, EmployeeCore]:
        """
        Resolver identificadores contra el directorio.

        Primero se busca coincidencia exacta y, para los que no aparezcan,
        coincidencia por identificador normalizado.

        Returns:
            Diccionario {id recibido: empleado} solo con los encontrados
        """
        wanted = [str(raw).strip() for raw in raw_ids if raw is not None and str(raw).strip()]
        if not wanted:
            return {}

        resolved: Dict[str, EmployeeCore] = {}
        exact_rows = db.query(EmployeeCore).filter(EmployeeCore.employee_id.in_(set(wanted))).all()
        by_id = {row.employee_id: row for row in exact_rows}
        for raw in wanted:
            if raw in by_id:
                resolved[raw] = by_id[raw]

        for raw in wanted:
            if raw in resolved:
                continue
            normalized = normalize_employee_id(raw)
            if not normalized:
                continue
            # Candidatos que contienen la forma normalizada, los más cortos primero; se confirma en Python
            candidates = db.query(EmployeeCore).filter(
                EmployeeCore.employee_id.ilike(f"%{normalized}%")
            ).order_by(func.length(EmployeeCore.employee_id), EmployeeCore.employee_id).all()
            for candidate in candidates:
                if normalize_employee_id(candidate.employee_id) == normalized:
                    resolved[raw] = candidate
                    break
        return resolved

    def resolve_one(self, db: Session, raw_id: str) -> Optional[EmployeeCore]:
        return self.resolve_many(db, [raw_id]).get(str(raw_id).strip())


employee_repository = EmployeeRepository()
