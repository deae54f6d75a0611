"""
Vista semanal de reservas y guardias del comité.

La agregación es puramente en memoria sobre las filas ya consultadas:
agrupa por día y por hora de inicio de la franja.
"""
from datetime import date, timedelta
from typing import Any, Dict, List, Optional
import logging

from sqlalchemy.orm import Session

from app.core.exceptions import NotFoundError, ValidationError
from app.models.gym import GymRosterEntry, BookingStatus, ACTIVE_BOOKING_STATUSES
from app.repositories.gym import gym_booking_repository, gym_roster_repository, gym_session_repository
from app.repositories.employee import employee_repository
from app.schemas.gym import RosterEntryCreate, format_hhmm
from app.services.booking import booking_to_dict

logger = logging.getLogger(__name__)

# Días de la vista semanal, a partir de week_start
DAYS_IN_WEEK = 7


def build_week(
    week_start: date,
    bookings: List[Dict[str, Any]],
    sessions: List[Any],
    roster: List[Dict[str, Any]]
) -> Dict[str, Any]:
    """
    Agrupar reservas y guardias de siete días a partir de week_start.

    Args:
        week_start: Primer día de la semana
        bookings: Reservas ya convertidas con booking_to_dict
        sessions: Sesiones configuradas (definen las franjas vacías de cada día)
        roster: Guardias ya convertidas a diccionario

    Returns:
        Diccionario con week_start, week_end y la lista de días
    """
    days = []
    for offset in range(DAYS_IN_WEEK):
        day = week_start + timedelta(days=offset)

        slots: Dict[Any, Dict[str, Any]] = {}
        for session in sessions:
            slots[(format_hhmm(session.time_start), session.session_name)] = {
                "session_id": session.id,
                "session_name": session.session_name,
                "time_start": format_hhmm(session.time_start),
                "time_end": format_hhmm(session.time_end),
                "quota": session.quota,
                "booked": 0,
                "available": session.quota,
                "bookings": [],
            }

        total_booked = 0
        for booking in bookings:
            if booking["booking_date"] != day:
                continue
            # Sesiones borradas: sin hora, se agrupan por el nombre guardado en la reserva
            key = (format_hhmm(booking["time_start"]), booking["session_name"])
            slot = slots.setdefault(key, {
                "session_id": booking["session_id"],
                "session_name": booking["session_name"],
                "time_start": format_hhmm(booking["time_start"]),
                "time_end": format_hhmm(booking["time_end"]),
                "quota": None,
                "booked": 0,
                "available": None,
                "bookings": [],
            })
            slot["bookings"].append(booking)
            if BookingStatus(booking["status"]) in ACTIVE_BOOKING_STATUSES:
                slot["booked"] += 1
                total_booked += 1
                if slot["quota"] is not None:
                    slot["available"] = max(slot["quota"] - slot["booked"], 0)

        ordered_slots = sorted(slots.values(), key=lambda s: (s["time_start"] or "99:99", s["session_name"] or ""))
        days.append({
            "date": day,
            "total_booked": total_booked,
            "slots": ordered_slots,
            "roster": [entry for entry in roster if entry["roster_date"] == day],
        })

    return {
        "week_start": week_start,
        "week_end": week_start + timedelta(days=DAYS_IN_WEEK - 1),
        "days": days,
    }


def roster_to_dict(entry: GymRosterEntry, employee=None) -> Dict[str, Any]:
    return {
        "id": entry.id,
        "roster_date": entry.roster_date,
        "employee_id": entry.employee_id,
        "employee_name": employee.name if employee else None,
        "session_id": entry.session_id,
        "role": entry.role,
        "notes": entry.notes,
    }


class CalendarService:

    def _roster_rows(self, db: Session, master_db: Session, date_from: date, date_to: date) -> List[Dict[str, Any]]:
        entries = gym_roster_repository.get_range(db, date_from=date_from, date_to=date_to)
        directory = employee_repository.resolve_many(master_db, {e.employee_id for e in entries})
        return [roster_to_dict(e, directory.get(e.employee_id)) for e in entries]

    def weekly_calendar(self, db: Session, master_db: Session, *, week_start: date) -> Dict[str, Any]:
        week_end = week_start + timedelta(days=DAYS_IN_WEEK - 1)
        bookings = gym_booking_repository.get_range(db, date_from=week_start, date_to=week_end)
        directory = employee_repository.resolve_many(master_db, {b.employee_id for b in bookings})
        rows = [booking_to_dict(b, directory.get(b.employee_id)) for b in bookings]
        sessions = gym_session_repository.get_all_ordered(db)
        roster = self._roster_rows(db, master_db, week_start, week_end)
        return build_week(week_start, rows, sessions, roster)

    # Guardias del comité
    def list_roster(
        self, db: Session, master_db: Session, *, date_from: date, date_to: Optional[date] = None
    ) -> List[Dict[str, Any]]:
        date_to = date_to or date_from
        if date_from > date_to:
            raise ValidationError("from must be on or before to")
        return self._roster_rows(db, master_db, date_from, date_to)

    def create_roster_entry(self, db: Session, master_db: Session, entry_in: RosterEntryCreate) -> Dict[str, Any]:
        employee = employee_repository.resolve_one(master_db, entry_in.employee_id)
        if not employee:
            raise NotFoundError("Employee not found")
        if entry_in.session_id is not None and not gym_session_repository.exists(db, entry_in.session_id):
            raise NotFoundError("Session not found")

        values = entry_in.model_dump()
        values["employee_id"] = employee.employee_id
        entry = gym_roster_repository.create(db, obj_in=values)
        logger.info(f"Guardia {entry.id} creada para {entry.employee_id} el {entry.roster_date}")
        return roster_to_dict(entry, employee)

    def delete_roster_entry(self, db: Session, entry_id: int) -> None:
        if not gym_roster_repository.exists(db, entry_id):
            raise NotFoundError("Roster entry not found")
        gym_roster_repository.remove(db, id=entry_id)


calendar_service = CalendarService()
