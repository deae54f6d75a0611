from typing import List, Optional, Dict, Any, Tuple
from datetime import date
from sqlalchemy.orm import Session, joinedload
from sqlalchemy import func, update, delete, select, and_
from sqlalchemy.dialects import postgresql, sqlite

from app.repositories.base import BaseRepository
from app.models.gym import (
    GymSession,
    GymBooking,
    GymSlotUsage,
    GymOccupancy,
    GymRosterEntry,
    BookingStatus,
    ACTIVE_BOOKING_STATUSES,
    LISTED_BOOKING_STATUSES,
)
from app.schemas.gym import (
    GymSessionCreate,
    GymSessionUpdate,
    RosterEntryCreate,
)


class GymSessionRepository(BaseRepository[GymSession, GymSessionCreate, GymSessionUpdate]):
    def get_all_ordered(self, db: Session) -> List[GymSession]:
        """Obtener todas las sesiones ordenadas por hora de inicio."""
        return db.query(GymSession).order_by(GymSession.time_start, GymSession.session_name).all()

    def get_by_name_and_start(self, db: Session, *, session_name: str, time_start) -> Optional[GymSession]:
        return db.query(GymSession).filter(
            GymSession.session_name == session_name,
            GymSession.time_start == time_start
        ).first()


class GymBookingRepository(BaseRepository[GymBooking, Any, Any]):
    def get_active_for_employee(
        self, db: Session, *, employee_id: str, booking_date: date
    ) -> Optional[GymBooking]:
        """
        Reserva BOOKED/CHECKIN de un empleado en una fecha, si existe.
        """
        return db.query(GymBooking).filter(
            GymBooking.employee_id == employee_id,
            GymBooking.booking_date == booking_date,
            GymBooking.status.in_(ACTIVE_BOOKING_STATUSES)
        ).first()

    def add(self, db: Session, *, values: Dict[str, Any]) -> GymBooking:
        """
        Insertar una reserva sin confirmar la transacción.

        El servicio es quien hace commit o rollback junto con los contadores.
        """
        booking = GymBooking(**values)
        db.add(booking)
        db.flush()
        return booking

    def transition(
        self,
        db: Session,
        *,
        booking_id: int,
        from_status: BookingStatus,
        to_status: BookingStatus,
        values: Optional[Dict[str, Any]] = None
    ) -> bool:
        """
        Cambio de estado condicional: solo se aplica si la reserva sigue en from_status.

        Returns:
            True si se actualizó exactamente una fila
        """
        data = {"status": to_status}
        if values:
            data.update(values)
        result = db.execute(
            update(GymBooking)
            .where(GymBooking.id == booking_id, GymBooking.status == from_status)
            .values(**data)
            .execution_options(synchronize_session=False)
        )
        return result.rowcount == 1

    def get_range(self, db: Session, *, date_from: date, date_to: date) -> List[GymBooking]:
        """
        Reservas visibles (BOOKED/CHECKIN/COMPLETED) entre dos fechas inclusive,
        ordenadas por fecha, hora de la sesión y creación.
        """
        return db.query(GymBooking).outerjoin(
            GymSession, GymBooking.session_id == GymSession.id
        ).options(
            joinedload(GymBooking.session)
        ).filter(
            GymBooking.booking_date >= date_from,
            GymBooking.booking_date <= date_to,
            GymBooking.status.in_(LISTED_BOOKING_STATUSES)
        ).order_by(
            GymBooking.booking_date,
            GymSession.time_start,
            GymBooking.created_at,
            GymBooking.id
        ).all()

    def get_by_employee(self, db: Session, *, employee_id: str, limit: int = 200) -> List[GymBooking]:
        """Reservas de un empleado, las más recientes primero."""
        return db.query(GymBooking).options(
            joinedload(GymBooking.session)
        ).filter(
            GymBooking.employee_id == employee_id
        ).order_by(
            GymBooking.booking_date.desc(),
            GymBooking.created_at.desc(),
            GymBooking.id.desc()
        ).limit(limit).all()

    def count_active_by_session(self, db: Session, *, booking_date: date) -> Dict[int, int]:
        """Número de reservas BOOKED/CHECKIN por sesión para una fecha."""
        rows = db.query(
            GymBooking.session_id, func.count(GymBooking.id)
        ).filter(
            GymBooking.booking_date == booking_date,
            GymBooking.status.in_(ACTIVE_BOOKING_STATUSES),
            GymBooking.session_id.isnot(None)
        ).group_by(GymBooking.session_id).all()
        return {session_id: count for session_id, count in rows}

    def count_for_session(self, db: Session, *, session_id: int, statuses=ACTIVE_BOOKING_STATUSES) -> int:
        return db.query(func.count(GymBooking.id)).filter(
            GymBooking.session_id == session_id,
            GymBooking.status.in_(statuses)
        ).scalar() or 0

    def count_in_gym(self, db: Session, *, booking_date: date) -> int:
        """Personas con CHECKIN en una fecha (aforo derivado de las reservas)."""
        return db.query(func.count(GymBooking.id)).filter(
            GymBooking.booking_date == booking_date,
            GymBooking.status == BookingStatus.CHECKIN
        ).scalar() or 0

    def detach_session(self, db: Session, *, session_id: int) -> int:
        """Dejar session_id a NULL en las reservas históricas de una sesión."""
        result = db.execute(
            update(GymBooking)
            .where(GymBooking.session_id == session_id)
            .values(session_id=None)
            .execution_options(synchronize_session=False)
        )
        return result.rowcount

    def get_booked_before(self, db: Session, *, before: date) -> List[Tuple[int, Optional[int], date]]:
        """(id, session_id, booking_date) de reservas BOOKED anteriores a una fecha."""
        return db.query(
            GymBooking.id, GymBooking.session_id, GymBooking.booking_date
        ).filter(
            GymBooking.booking_date < before,
            GymBooking.status == BookingStatus.BOOKED
        ).all()


class SlotUsageRepository:
    """
    Contador de plazas ocupadas por (sesión, fecha).

    Solo se modifica con UPDATE condicionales para que dos peticiones
    concurrentes no puedan superar el cupo.
    """

    def ensure_row(self, db: Session, *, session_id: int, booking_date: date) -> None:
        values = {"session_id": session_id, "booking_date": booking_date, "used": 0}
        dialect = db.get_bind().dialect.name
        if dialect == "postgresql":
            db.execute(postgresql.insert(GymSlotUsage).values(**values).on_conflict_do_nothing())
        elif dialect == "sqlite":
            db.execute(sqlite.insert(GymSlotUsage).values(**values).on_conflict_do_nothing())
        elif db.get(GymSlotUsage, (session_id, booking_date)) is None:
            db.add(GymSlotUsage(**values))
            db.flush()

    def try_increment(self, db: Session, *, session_id: int, booking_date: date, quota: int) -> bool:
        """
        Ocupar una plaza si queda cupo.

        Returns:
            False si el contador ya había alcanzado el cupo
        """
        self.ensure_row(db, session_id=session_id, booking_date=booking_date)
        result = db.execute(
            update(GymSlotUsage)
            .where(
                GymSlotUsage.session_id == session_id,
                GymSlotUsage.booking_date == booking_date,
                GymSlotUsage.used < quota
            )
            .values(used=GymSlotUsage.used + 1)
            .execution_options(synchronize_session=False)
        )
        return result.rowcount == 1

    def release(self, db: Session, *, session_id: Optional[int], booking_date: date) -> None:
        if session_id is None:
            return
        db.execute(
            update(GymSlotUsage)
            .where(
                GymSlotUsage.session_id == session_id,
                GymSlotUsage.booking_date == booking_date,
                GymSlotUsage.used > 0
            )
            .values(used=GymSlotUsage.used - 1)
            .execution_options(synchronize_session=False)
        )

    def delete_for_session(self, db: Session, *, session_id: int) -> None:
        db.execute(
            delete(GymSlotUsage)
            .where(GymSlotUsage.session_id == session_id)
            .execution_options(synchronize_session=False)
        )

    def get_used(self, db: Session, *, session_id: int, booking_date: date) -> int:
        return db.execute(
            select(GymSlotUsage.used).where(
                GymSlotUsage.session_id == session_id,
                GymSlotUsage.booking_date == booking_date
            )
        ).scalar() or 0


class OccupancyRepository:
    """Contador de personas dentro del gimnasio por fecha (guarda de aforo)."""

    def ensure_row(self, db: Session, *, occupancy_date: date) -> None:
        values = {"occupancy_date": occupancy_date, "inside": 0}
        dialect = db.get_bind().dialect.name
        if dialect == "postgresql":
            db.execute(postgresql.insert(GymOccupancy).values(**values).on_conflict_do_nothing())
        elif dialect == "sqlite":
            db.execute(sqlite.insert(GymOccupancy).values(**values).on_conflict_do_nothing())
        elif db.get(GymOccupancy, occupancy_date) is None:
            db.add(GymOccupancy(**values))
            db.flush()

    def try_enter(self, db: Session, *, occupancy_date: date, max_occupancy: int) -> bool:
        self.ensure_row(db, occupancy_date=occupancy_date)
        result = db.execute(
            update(GymOccupancy)
            .where(
                GymOccupancy.occupancy_date == occupancy_date,
                GymOccupancy.inside < max_occupancy
            )
            .values(inside=GymOccupancy.inside + 1)
            .execution_options(synchronize_session=False)
        )
        return result.rowcount == 1

    def leave(self, db: Session, *, occupancy_date: date) -> None:
        db.execute(
            update(GymOccupancy)
            .where(
                GymOccupancy.occupancy_date == occupancy_date,
                GymOccupancy.inside > 0
            )
            .values(inside=GymOccupancy.inside - 1)
            .execution_options(synchronize_session=False)
        )

    def get_inside(self, db: Session, *, occupancy_date: date) -> int:
        return db.execute(
            select(GymOccupancy.inside).where(GymOccupancy.occupancy_date == occupancy_date)
        ).scalar() or 0


class GymRosterRepository(BaseRepository[GymRosterEntry, RosterEntryCreate, Any]):
    def get_range(self, db: Session, *, date_from: date, date_to: date) -> List[GymRosterEntry]:
        return db.query(GymRosterEntry).filter(
            and_(GymRosterEntry.roster_date >= date_from, GymRosterEntry.roster_date <= date_to)
        ).order_by(GymRosterEntry.roster_date, GymRosterEntry.id).all()


gym_session_repository = GymSessionRepository(GymSession)
gym_booking_repository = GymBookingRepository(GymBooking)
gym_roster_repository = GymRosterRepository(GymRosterEntry)
slot_usage_repository = SlotUsageRepository()
occupancy_repository = OccupancyRepository()
