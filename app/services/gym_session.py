from datetime import date
from typing import Any, Dict, List
import logging

from sqlalchemy.orm import Session
from sqlalchemy.exc import IntegrityError

from app.core.config import get_settings
from app.core.exceptions import NotFoundError, ConflictError, ValidationError
from app.models.gym import GymSession
from app.repositories.gym import gym_session_repository, gym_booking_repository, slot_usage_repository
from app.schemas.gym import GymSessionCreate, GymSessionUpdate

logger = logging.getLogger(__name__)


class GymSessionService:
    """Gestión de las franjas horarias (sesiones) del gimnasio."""

    def get_sessions(self, db: Session) -> List[GymSession]:
        return gym_session_repository.get_all_ordered(db)

    def get_session(self, db: Session, session_id: int) -> GymSession:
        session = gym_session_repository.get(db, id=session_id)
        if not session:
            raise NotFoundError("Session not found")
        return session

    def create_session(self, db: Session, session_data: GymSessionCreate) -> GymSession:
        values = session_data.model_dump()
        if values.get("quota") is None:
            values["quota"] = get_settings().DEFAULT_SESSION_QUOTA

        if gym_session_repository.get_by_name_and_start(
            db, session_name=values["session_name"], time_start=values["time_start"]
        ):
            raise ConflictError("A session with this name and start time already exists")

        try:
            session = gym_session_repository.create(db, obj_in=values)
        except IntegrityError:
            db.rollback()
            raise ConflictError("A session with this name and start time already exists")
        logger.info(f"Sesión {session.id} creada: {session.session_name} {session.time_start:%H:%M}")
        return session

    def update_session(self, db: Session, session_id: int, session_data: GymSessionUpdate) -> GymSession:
        """
        Actualizar una sesión por su ID.

        La validación de horas se repite con los valores resultantes porque
        el cuerpo puede traer solo uno de los dos extremos.
        """
        session = self.get_session(db, session_id)
        update_data = session_data.model_dump(exclude_unset=True)
        update_data = {k: v for k, v in update_data.items() if v is not None}

        time_start = update_data.get("time_start", session.time_start)
        time_end = update_data.get("time_end", session.time_end)
        if time_end <= time_start:
            raise ValidationError("time_end must be after time_start")

        try:
            session = gym_session_repository.update(db, db_obj=session, obj_in=update_data)
        except IntegrityError:
            db.rollback()
            raise ConflictError("A session with this name and start time already exists")
        logger.info(f"Sesión {session.id} actualizada")
        return session

    def delete_session(self, db: Session, session_id: int) -> None:
        """
        Borrar una sesión.

        Con reservas BOOKED/CHECKIN se rechaza; las reservas históricas
        conservan session_name y quedan con session_id a NULL.
        """
        session = self.get_session(db, session_id)
        active = gym_booking_repository.count_for_session(db, session_id=session.id)
        if active:
            raise ConflictError(
                f"Session has {active} active bookings and cannot be deleted",
                active_bookings=active,
            )

        gym_booking_repository.detach_session(db, session_id=session.id)
        slot_usage_repository.delete_for_session(db, session_id=session.id)
        db.delete(session)
        db.commit()
        logger.info(f"Sesión {session_id} borrada")

    def get_availability(self, db: Session, booking_date: date) -> List[Dict[str, Any]]:
        """
        Plazas por sesión para una fecha: cupo, reservas BOOKED/CHECKIN y libres.
        """
        counts = gym_booking_repository.count_active_by_session(db, booking_date=booking_date)
        result = []
        for session in gym_session_repository.get_all_ordered(db):
            booked = counts.get(session.id, 0)
            result.append({
                "id": session.id,
                "session_name": session.session_name,
                "time_start": session.time_start,
                "time_end": session.time_end,
                "quota": session.quota,
                "booked_count": booked,
                "available": max(session.quota - booked, 0),
            })
        return result


gym_session_service = GymSessionService()
