from datetime import date
from typing import Any, Dict, List, Optional
import logging

from sqlalchemy.orm import Session

from app.core.config import get_settings
from app.core.timezone_utils import gym_today, format_local_hhmm
from app.models.gym import GymBooking, BookingStatus, ApprovalStatus
from app.repositories.gym import gym_booking_repository
from app.repositories.employee import employee_repository
from app.repositories.settings import controller_settings_repository
from app.schemas.gym import format_hhmm
from app.services.access_log import access_event_log

logger = logging.getLogger(__name__)

# Estado de la reserva -> estado mostrado en el panel en vivo
LIVE_STATUS_BY_BOOKING_STATUS = {
    BookingStatus.BOOKED: "BOOKED",
    BookingStatus.CHECKIN: "IN_GYM",
    BookingStatus.COMPLETED: "LEFT",
}

ACCESS_LOG_LIMIT = 200


def schedule_label(booking: GymBooking) -> Optional[str]:
    session = booking.session
    if session is not None:
        return f"{format_hhmm(session.time_start)} - {format_hhmm(session.time_end)}"
    return booking.session_name


class LiveStatusService:

    def live_status(self, db: Session, master_db: Session, *, today: Optional[date] = None) -> Dict[str, Any]:
        """
        Quién reservó hoy, quién está dentro y quién ya salió.

        El aforo mostrado se deriva de las reservas en CHECKIN, no del contador.
        """
        settings = get_settings()
        today = today or gym_today(settings.GYM_TIMEZONE)
        max_occupancy = controller_settings_repository.get_or_create_default(db).max_occupancy

        bookings = gym_booking_repository.get_range(db, date_from=today, date_to=today)
        directory = employee_repository.resolve_many(master_db, {b.employee_id for b in bookings})

        people = []
        for booking in bookings:
            employee = directory.get(booking.employee_id)
            status = BookingStatus(booking.status)
            granted = status != BookingStatus.COMPLETED and booking.approval_status != ApprovalStatus.REJECTED
            people.append({
                "booking_id": booking.id,
                "employee_id": booking.employee_id,
                "name": (employee.name if employee else None) or booking.employee_name,
                "department": (employee.department if employee else None) or booking.department,
                "gender": booking.gender,
                "status": LIVE_STATUS_BY_BOOKING_STATUS[status],
                "time_in": format_local_hhmm(booking.check_in_time, settings.GYM_TIMEZONE),
                "time_out": format_local_hhmm(booking.check_out_time, settings.GYM_TIMEZONE),
                "schedule": schedule_label(booking),
                "access_required": True,
                "access_granted": granted,
                "access_indicator": {
                    "color": "green" if granted else "red",
                    "label": "Granted" if granted else "No Access",
                },
            })

        count = sum(1 for p in people if p["status"] == "IN_GYM")
        return {
            "date": today,
            "count": count,
            "max_occupancy": max_occupancy,
            "available": max(max_occupancy - count, 0),
            "people": people,
        }

    def recent_transactions(self, limit: int = 50) -> List[Dict[str, Any]]:
        return access_event_log.recent(limit)

    def access_log(self) -> List[Dict[str, Any]]:
        return access_event_log.tail(ACCESS_LOG_LIMIT)


live_status_service = LiveStatusService()
