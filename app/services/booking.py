"""
Admisión de reservas y máquina de estados BOOKED -> CHECKIN -> COMPLETED.

El cupo por sesión y el aforo del gimnasio se controlan con contadores que
solo se modifican mediante UPDATE condicionales dentro de la misma
transacción que el cambio de la reserva.
"""
from datetime import date, datetime, timedelta, timezone
from typing import Any, Dict, List, Optional
import logging

from sqlalchemy import delete
from sqlalchemy.orm import Session
from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from app.core.config import get_settings
from app.core.employee_ids import normalize_employee_id
from app.core.exceptions import (
    NotFoundError,
    ValidationError,
    ConflictError,
    BookingWindowError,
    DuplicateBookingError,
    SessionFullError,
    GymFullError,
    InvalidTransitionError,
    BookingNotTodayError,
)
from app.core.timezone_utils import gym_today
from app.models.gym import GymBooking, BookingStatus, ApprovalStatus, ACTIVE_BOOKING_STATUSES
from app.models.employee import EmployeeCore
from app.repositories.gym import (
    gym_session_repository,
    gym_booking_repository,
    slot_usage_repository,
    occupancy_repository,
)
from app.repositories.employee import employee_repository
from app.repositories.settings import controller_settings_repository
from app.services.access_log import access_event_log

logger = logging.getLogger(__name__)

ALREADY_REGISTERED_MESSAGE = "You are already registered for this day"
SESSION_FULL_MESSAGE = "This session is full"

# Transiciones permitidas; EXPIRED y CANCELLED solo las aplican procesos del sistema
ALLOWED_TRANSITIONS = {
    BookingStatus.BOOKED: {BookingStatus.CHECKIN, BookingStatus.EXPIRED, BookingStatus.CANCELLED},
    BookingStatus.CHECKIN: {BookingStatus.COMPLETED},
    BookingStatus.COMPLETED: set(),
    BookingStatus.CANCELLED: set(),
    BookingStatus.EXPIRED: set(),
}


def ensure_transition(current: BookingStatus, target: BookingStatus) -> None:
    """
    Validar un cambio de estado de una reserva.

    Raises:
        InvalidTransitionError: si el cambio no está permitido
    """
    current = BookingStatus(current)
    target = BookingStatus(target)
    if target not in ALLOWED_TRANSITIONS[current]:
        raise InvalidTransitionError(
            f"Cannot change booking from {current.value} to {target.value}",
            current_status=current.value,
            requested_status=target.value,
        )


def booking_to_dict(booking: GymBooking, employee: Optional[EmployeeCore] = None) -> Dict[str, Any]:
    """
    Fila de reserva para las respuestas, completada con el directorio.

    Si el empleado no está en el directorio se usa la copia guardada en la reserva.
    """
    session = booking.session
    return {
        "id": booking.id,
        "employee_id": booking.employee_id,
        "employee_name": (employee.name if employee else None) or booking.employee_name,
        "department": (employee.department if employee else None) or booking.department,
        "card_no": booking.card_no or (employee.card_no if employee else None),
        "gender": booking.gender or (employee.gender if employee else None),
        "session_id": booking.session_id,
        "session_name": session.session_name if session else booking.session_name,
        "time_start": session.time_start if session else None,
        "time_end": session.time_end if session else None,
        "booking_date": booking.booking_date,
        "status": booking.status,
        "approval_status": booking.approval_status,
        "check_in_time": booking.check_in_time,
        "check_out_time": booking.check_out_time,
        "created_at": booking.created_at,
    }


class BookingService:

    def _today(self, today: Optional[date]) -> date:
        return today or gym_today(get_settings().GYM_TIMEZONE)

    def _get_booking_or_404(self, db: Session, booking_id: int) -> GymBooking:
        booking = gym_booking_repository.get(db, id=booking_id)
        if not booking:
            raise NotFoundError("Booking not found")
        return booking

    def create_booking(
        self,
        db: Session,
        master_db: Session,
        *,
        employee_id: Optional[str],
        session_id: int,
        booking_date: date,
        today: Optional[date] = None
    ) -> GymBooking:
        """
        Crear una reserva BOOKED para un empleado.

        Args:
            db: Sesión de la base de datos del gimnasio
            master_db: Sesión del directorio de empleados
            employee_id: Identificador tal como llega (se normaliza)
            session_id: ID de la sesión
            booking_date: Fecha local de la reserva
            today: Fecha de referencia (por defecto, hoy en la zona del gimnasio)

        Returns:
            La reserva creada

        Raises:
            ValidationError, NotFoundError, BookingWindowError,
            DuplicateBookingError, SessionFullError
        """
        raw_id = (employee_id or "").strip()
        if not normalize_employee_id(raw_id):
            raise ValidationError("employee_id (body or x-employee-id header), session_id, booking_date are required")

        employee = employee_repository.resolve_one(master_db, raw_id)
        if not employee:
            raise NotFoundError("Employee not found")

        session = gym_session_repository.get(db, id=session_id)
        if not session:
            raise NotFoundError("Session not found")

        today = self._today(today)
        controller = controller_settings_repository.get_or_create_default(db)
        days_ahead = (booking_date - today).days
        if not controller.booking_min_days_ahead <= days_ahead <= controller.booking_max_days_ahead:
            first_allowed = today + timedelta(days=controller.booking_min_days_ahead)
            last_allowed = today + timedelta(days=controller.booking_max_days_ahead)
            raise BookingWindowError(
                f"Bookings are only allowed from {first_allowed.isoformat()} to {last_allowed.isoformat()}",
                min_date=first_allowed.isoformat(),
                max_date=last_allowed.isoformat(),
            )

        canonical_id = employee.employee_id
        # Comprobación previa para no consumir cupo en un duplicado evidente
        if gym_booking_repository.get_active_for_employee(db, employee_id=canonical_id, booking_date=booking_date):
            raise DuplicateBookingError(ALREADY_REGISTERED_MESSAGE)

        try:
            if not slot_usage_repository.try_increment(
                db, session_id=session.id, booking_date=booking_date, quota=session.quota
            ):
                db.rollback()
                logger.warning(
                    f"Sesión {session.id} completa para {booking_date}; reserva rechazada para {canonical_id}"
                )
                raise SessionFullError(SESSION_FULL_MESSAGE)

            booking = gym_booking_repository.add(db, values={
                "employee_id": canonical_id,
                "employee_name": employee.name,
                "department": employee.department,
                "card_no": employee.card_no,
                "gender": employee.gender,
                "session_id": session.id,
                "session_name": session.session_name,
                "booking_date": booking_date,
                "status": BookingStatus.BOOKED,
                "approval_status": ApprovalStatus.PENDING,
            })
            db.commit()
        except IntegrityError:
            # Otra petición concurrente creó la reserva activa del mismo día
            db.rollback()
            raise DuplicateBookingError(ALREADY_REGISTERED_MESSAGE)
        except SQLAlchemyError as e:
            logger.error(f"Error creando reserva para {canonical_id}: {e}", exc_info=True)
            db.rollback()
            raise

        db.refresh(booking)
        logger.info(
            f"Reserva {booking.id} creada: empleado {canonical_id}, sesión {session.id}, fecha {booking_date}"
        )
        return booking

    def check_in(
        self,
        db: Session,
        *,
        booking_id: int,
        max_occupancy: int,
        today: Optional[date] = None,
        now: Optional[datetime] = None
    ) -> GymBooking:
        """
        Registrar la entrada (BOOKED -> CHECKIN) respetando el aforo máximo.

        Raises:
            NotFoundError, InvalidTransitionError, BookingNotTodayError, GymFullError
        """
        booking = self._get_booking_or_404(db, booking_id)
        ensure_transition(booking.status, BookingStatus.CHECKIN)

        today = self._today(today)
        if booking.booking_date != today:
            raise BookingNotTodayError(
                f"Check-in is only allowed on the booking date ({booking.booking_date.isoformat()})"
            )

        now = now or datetime.now(timezone.utc)
        try:
            if not gym_booking_repository.transition(
                db,
                booking_id=booking.id,
                from_status=BookingStatus.BOOKED,
                to_status=BookingStatus.CHECKIN,
                values={"check_in_time": now},
            ):
                db.rollback()
                raise InvalidTransitionError("Booking is no longer BOOKED")

            if not occupancy_repository.try_enter(
                db, occupancy_date=booking.booking_date, max_occupancy=max_occupancy
            ):
                db.rollback()
                logger.warning(f"Aforo completo ({max_occupancy}); check-in rechazado para reserva {booking.id}")
                raise GymFullError(max_occupancy)

            db.commit()
        except SQLAlchemyError as e:
            logger.error(f"Error en check-in de reserva {booking_id}: {e}", exc_info=True)
            db.rollback()
            raise

        db.refresh(booking)
        access_event_log.record(
            booking_id=booking.id,
            employee_id=booking.employee_id,
            name=booking.employee_name,
            event="CHECKIN",
            timestamp=now,
        )
        logger.info(f"Check-in de reserva {booking.id} (empleado {booking.employee_id})")
        return booking

    def check_out(self, db: Session, *, booking_id: int, now: Optional[datetime] = None) -> GymBooking:
        """
        Registrar la salida (CHECKIN -> COMPLETED), liberando aforo y plaza.
        """
        booking = self._get_booking_or_404(db, booking_id)
        ensure_transition(booking.status, BookingStatus.COMPLETED)

        now = now or datetime.now(timezone.utc)
        try:
            if not gym_booking_repository.transition(
                db,
                booking_id=booking.id,
                from_status=BookingStatus.CHECKIN,
                to_status=BookingStatus.COMPLETED,
                values={"check_out_time": now},
            ):
                db.rollback()
                raise InvalidTransitionError("Booking is no longer CHECKIN")

            occupancy_repository.leave(db, occupancy_date=booking.booking_date)
            slot_usage_repository.release(db, session_id=booking.session_id, booking_date=booking.booking_date)
            db.commit()
        except SQLAlchemyError as e:
            logger.error(f"Error en check-out de reserva {booking_id}: {e}", exc_info=True)
            db.rollback()
            raise

        db.refresh(booking)
        access_event_log.record(
            booking_id=booking.id,
            employee_id=booking.employee_id,
            name=booking.employee_name,
            event="CHECKOUT",
            timestamp=now,
        )
        logger.info(f"Check-out de reserva {booking.id} (empleado {booking.employee_id})")
        return booking

    def update_status(
        self,
        db: Session,
        *,
        booking_id: int,
        status: BookingStatus,
        max_occupancy: int,
        today: Optional[date] = None
    ) -> GymBooking:
        """Despachar un cambio de estado pedido desde el control de acceso."""
        status = BookingStatus(status)
        if status == BookingStatus.CHECKIN:
            return self.check_in(db, booking_id=booking_id, max_occupancy=max_occupancy, today=today)
        if status == BookingStatus.COMPLETED:
            return self.check_out(db, booking_id=booking_id)
        raise InvalidTransitionError(f"Status {status.value} cannot be set manually; use CHECKIN or COMPLETED")

    def delete_booking(self, db: Session, *, booking_id: int) -> None:
        """
        Borrar una reserva en cualquier estado, liberando sus contadores.
        """
        booking = self._get_booking_or_404(db, booking_id)
        observed_status = booking.status
        session_id = booking.session_id
        booking_date = booking.booking_date

        try:
            # Solo se borra si el estado no cambió desde la lectura
            result = db.execute(
                delete(GymBooking)
                .where(GymBooking.id == booking_id, GymBooking.status == observed_status)
                .execution_options(synchronize_session=False)
            )
            if result.rowcount != 1:
                db.rollback()
                raise ConflictError("Booking changed while deleting; please retry")

            if observed_status in ACTIVE_BOOKING_STATUSES:
                slot_usage_repository.release(db, session_id=session_id, booking_date=booking_date)
            if observed_status == BookingStatus.CHECKIN:
                occupancy_repository.leave(db, occupancy_date=booking_date)
            db.commit()
        except SQLAlchemyError as e:
            logger.error(f"Error borrando reserva {booking_id}: {e}", exc_info=True)
            db.rollback()
            raise

        db.expunge(booking)
        logger.info(f"Reserva {booking_id} borrada (estado {BookingStatus(observed_status).value})")

    def update_approval(self, db: Session, *, booking_id: int, approval_status: ApprovalStatus) -> GymBooking:
        booking = self._get_booking_or_404(db, booking_id)
        booking.approval_status = ApprovalStatus(approval_status)
        db.commit()
        db.refresh(booking)
        logger.info(f"Reserva {booking_id}: aprobación {booking.approval_status.value}")
        return booking

    def expire_past_bookings(self, db: Session, *, today: Optional[date] = None) -> int:
        """
        Marcar como EXPIRED las reservas BOOKED de días anteriores y liberar su plaza.

        Returns:
            Número de reservas expiradas
        """
        today = self._today(today)
        expired = 0
        try:
            for booking_id, session_id, booking_date in gym_booking_repository.get_booked_before(db, before=today):
                if gym_booking_repository.transition(
                    db,
                    booking_id=booking_id,
                    from_status=BookingStatus.BOOKED,
                    to_status=BookingStatus.EXPIRED,
                ):
                    slot_usage_repository.release(db, session_id=session_id, booking_date=booking_date)
                    expired += 1
            db.commit()
        except SQLAlchemyError as e:
            logger.error(f"Error expirando reservas anteriores a {today}: {e}", exc_info=True)
            db.rollback()
            raise
        # Las filas cargadas en la sesión no reflejan los UPDATE masivos
        db.expire_all()
        logger.info(f"{expired} reservas expiradas (anteriores a {today})")
        return expired

    # ==========================================
    # CONSULTAS
    # ==========================================

    def _enrich(self, master_db: Session, bookings: List[GymBooking]) -> List[Dict[str, Any]]:
        directory = employee_repository.resolve_many(master_db, {b.employee_id for b in bookings})
        return [booking_to_dict(b, directory.get(b.employee_id)) for b in bookings]

    def list_bookings(
        self, db: Session, master_db: Session, *, date_from: date, date_to: date
    ) -> List[Dict[str, Any]]:
        if date_from > date_to:
            raise ValidationError("from must be on or before to")
        bookings = gym_booking_repository.get_range(db, date_from=date_from, date_to=date_to)
        return self._enrich(master_db, bookings)

    def list_employee_bookings(
        self, db: Session, master_db: Session, *, employee_id: str
    ) -> List[Dict[str, Any]]:
        raw_id = (employee_id or "").strip()
        if not normalize_employee_id(raw_id):
            raise ValidationError("employee_id is required")
        employee = employee_repository.resolve_one(master_db, raw_id)
        canonical_id = employee.employee_id if employee else raw_id
        bookings = gym_booking_repository.get_by_employee(db, employee_id=canonical_id)
        return [booking_to_dict(b, employee) for b in bookings]


booking_service = BookingService()
