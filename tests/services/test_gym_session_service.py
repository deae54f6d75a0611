from datetime import date, time, timedelta

import pytest

from app.core.exceptions import ConflictError, NotFoundError, ValidationError
from app.models.gym import GymBooking, BookingStatus
from app.repositories.gym import slot_usage_repository
from app.schemas.gym import GymSessionCreate, GymSessionUpdate
from app.services.booking import booking_service
from app.services.gym_session import gym_session_service

TODAY = date(2025, 3, 10)
YESTERDAY = TODAY - timedelta(days=1)


class TestGymSessionService:

    def test_create_uses_default_quota(self, db):
        session = gym_session_service.create_session(
            db, GymSessionCreate(session_name="Lunch", time_start="12:00", time_end="13:00")
        )
        assert session.id is not None
        assert session.quota == 15
        assert session.time_start == time(12, 0)

    def test_duplicate_name_and_start(self, db, morning_session):
        with pytest.raises(ConflictError):
            gym_session_service.create_session(
                db, GymSessionCreate(session_name="Morning", time_start="06:00", time_end="06:45")
            )

    def test_same_name_other_start_is_allowed(self, db, morning_session):
        session = gym_session_service.create_session(
            db, GymSessionCreate(session_name="Morning", time_start="07:00", time_end="08:00", quota=10)
        )
        assert session.quota == 10

    def test_sessions_are_ordered_by_start(self, db, evening_session, morning_session):
        names = [s.session_name for s in gym_session_service.get_sessions(db)]
        assert names == ["Morning", "Evening"]

    def test_partial_update(self, db, morning_session):
        updated = gym_session_service.update_session(db, morning_session.id, GymSessionUpdate(quota=20))
        assert updated.quota == 20
        assert updated.time_start == time(6, 0)

    def test_update_checks_resulting_times(self, db, morning_session):
        # Fin 05:30 antes del inicio existente (06:00)
        with pytest.raises(ValidationError):
            gym_session_service.update_session(db, morning_session.id, GymSessionUpdate(time_end="05:30"))

    def test_update_unknown_session(self, db):
        with pytest.raises(NotFoundError):
            gym_session_service.update_session(db, 999, GymSessionUpdate(quota=3))

    def test_delete_with_active_bookings_is_refused(self, db, employees, morning_session):
        booking_service.create_booking(
            db, db, employee_id="10001", session_id=morning_session.id, booking_date=TODAY, today=YESTERDAY
        )

        with pytest.raises(ConflictError) as exc_info:
            gym_session_service.delete_session(db, morning_session.id)

        assert exc_info.value.to_payload()["active_bookings"] == 1

    def test_delete_keeps_history(self, db, employees, morning_session):
        session_id = morning_session.id
        booking = booking_service.create_booking(
            db, db, employee_id="10001", session_id=session_id, booking_date=TODAY, today=YESTERDAY
        )
        booking_service.check_in(db, booking_id=booking.id, max_occupancy=15, today=TODAY)
        booking_service.check_out(db, booking_id=booking.id)
        booking_id = booking.id

        gym_session_service.delete_session(db, session_id)

        db.expire_all()
        history = db.get(GymBooking, booking_id)
        assert history.session_id is None
        assert history.session_name == "Morning"
        assert history.status == BookingStatus.COMPLETED
        assert slot_usage_repository.get_used(db, session_id=session_id, booking_date=TODAY) == 0

    def test_availability(self, db, employees, morning_session, evening_session):
        for employee_id in ("10001", "10002"):
            booking_service.create_booking(
                db, db, employee_id=employee_id, session_id=morning_session.id,
                booking_date=TODAY, today=YESTERDAY
            )

        rows = gym_session_service.get_availability(db, TODAY)

        assert [(r["session_name"], r["booked_count"], r["available"]) for r in rows] == [
            ("Morning", 2, 13),
            ("Evening", 0, 15),
        ]
        assert gym_session_service.get_availability(db, TODAY + timedelta(days=1))[0]["booked_count"] == 0
