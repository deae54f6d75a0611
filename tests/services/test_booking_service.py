"""
Tests del servicio de reservas contra SQLite en memoria.

Las fechas son fijas: TODAY es el día de la sesión y las reservas se crean
el día anterior (YESTERDAY), dentro de la ventana por defecto de 1 a 2 días.
"""
from datetime import date, timedelta

import pytest

from app.core.exceptions import (
    NotFoundError,
    ValidationError,
    BookingWindowError,
    DuplicateBookingError,
    SessionFullError,
    GymFullError,
    InvalidTransitionError,
    BookingNotTodayError,
)
from app.models.gym import GymBooking, BookingStatus, ApprovalStatus
from app.repositories.gym import slot_usage_repository, occupancy_repository
from app.services.access_log import access_event_log
from app.services.booking import booking_service

TODAY = date(2025, 3, 10)
YESTERDAY = TODAY - timedelta(days=1)


def book(db, employee_id, session, booking_date=TODAY, today=YESTERDAY):
    return booking_service.create_booking(
        db, db,
        employee_id=employee_id,
        session_id=session.id,
        booking_date=booking_date,
        today=today,
    )


class TestCreateBooking:

    def test_creates_booked_booking_with_directory_snapshot(self, db, employees, morning_session):
        booking = book(db, "10001", morning_session)

        assert booking.id is not None
        assert booking.status == BookingStatus.BOOKED
        assert booking.approval_status == ApprovalStatus.PENDING
        assert booking.employee_name == "Employee 01"
        assert booking.department == "Production"
        assert booking.session_name == "Morning"
        assert slot_usage_repository.get_used(db, session_id=morning_session.id, booking_date=TODAY) == 1

    def test_employee_id_is_resolved_by_normalized_form(self, db, employees, morning_session):
        booking = book(db, "MTI-10002", morning_session)
        assert booking.employee_id == "10002"

    def test_unknown_employee(self, db, employees, morning_session):
        with pytest.raises(NotFoundError) as exc_info:
            book(db, "99999", morning_session)
        assert exc_info.value.message == "Employee not found"

    def test_missing_employee_id(self, db, employees, morning_session):
        with pytest.raises(ValidationError):
            book(db, "  ", morning_session)

    def test_unknown_session(self, db, employees):
        with pytest.raises(NotFoundError) as exc_info:
            booking_service.create_booking(
                db, db, employee_id="10001", session_id=404, booking_date=TODAY, today=YESTERDAY
            )
        assert exc_info.value.message == "Session not found"

    @pytest.mark.parametrize("offset", [0, 3, -1])
    def test_outside_booking_window(self, db, employees, morning_session, offset):
        with pytest.raises(BookingWindowError) as exc_info:
            book(db, "10001", morning_session, booking_date=YESTERDAY + timedelta(days=offset))

        payload = exc_info.value.to_payload()
        assert payload["code"] == "OUTSIDE_BOOKING_WINDOW"
        assert payload["min_date"] == TODAY.isoformat()
        assert payload["max_date"] == (YESTERDAY + timedelta(days=2)).isoformat()

    def test_two_days_ahead_is_allowed(self, db, employees, morning_session):
        booking = book(db, "10001", morning_session, booking_date=YESTERDAY + timedelta(days=2))
        assert booking.status == BookingStatus.BOOKED

    def test_second_booking_same_day_is_rejected(self, db, employees, morning_session, evening_session):
        book(db, "10001", morning_session)

        with pytest.raises(DuplicateBookingError) as exc_info:
            book(db, "10001", evening_session)

        assert exc_info.value.message == "You are already registered for this day"
        # El duplicado no consume plaza
        assert slot_usage_repository.get_used(db, session_id=evening_session.id, booking_date=TODAY) == 0

    def test_quota_is_never_exceeded(self, db, employees, morning_session):
        for i in range(1, 16):
            book(db, f"100{i:02d}", morning_session)

        with pytest.raises(SessionFullError) as exc_info:
            book(db, "10016", morning_session)

        assert exc_info.value.message == "This session is full"
        assert db.query(GymBooking).filter(GymBooking.session_id == morning_session.id).count() == 15
        assert slot_usage_repository.get_used(db, session_id=morning_session.id, booking_date=TODAY) == 15

    def test_new_booking_after_cancelled_one(self, db, employees, morning_session):
        first_id = book(db, "10001", morning_session).id
        booking_service.delete_booking(db, booking_id=first_id)

        second = book(db, "10001", morning_session)
        assert second.id != first_id


class TestCheckInOut:

    def test_check_in_and_out(self, db, employees, morning_session):
        booking = book(db, "10001", morning_session)

        checked_in = booking_service.check_in(db, booking_id=booking.id, max_occupancy=15, today=TODAY)
        assert checked_in.status == BookingStatus.CHECKIN
        assert checked_in.check_in_time is not None
        assert occupancy_repository.get_inside(db, occupancy_date=TODAY) == 1

        completed = booking_service.check_out(db, booking_id=booking.id)
        assert completed.status == BookingStatus.COMPLETED
        assert completed.check_out_time is not None
        assert occupancy_repository.get_inside(db, occupancy_date=TODAY) == 0
        # La salida libera también la plaza de la sesión
        assert slot_usage_repository.get_used(db, session_id=morning_session.id, booking_date=TODAY) == 0

        events = access_event_log.recent()
        assert [e["event"] for e in events] == ["CHECKOUT", "CHECKIN"]
        assert events[0]["employee_id"] == "10001"

    def test_gym_full(self, db, employees, morning_session, evening_session):
        bookings = [book(db, f"100{i:02d}", morning_session) for i in range(1, 3)]
        bookings.append(book(db, "10003", evening_session))

        for booking in bookings[:2]:
            booking_service.check_in(db, booking_id=booking.id, max_occupancy=2, today=TODAY)

        with pytest.raises(GymFullError) as exc_info:
            booking_service.check_in(db, booking_id=bookings[2].id, max_occupancy=2, today=TODAY)

        payload = exc_info.value.to_payload()
        assert payload["error"] == "GYM_FULL"
        assert payload["code"] == "GYM_FULL"
        assert payload["max_occupancy"] == 2
        assert "message" in payload

        # El cambio de estado se deshizo
        rejected = db.get(GymBooking, bookings[2].id)
        db.refresh(rejected)
        assert rejected.status == BookingStatus.BOOKED
        assert occupancy_repository.get_inside(db, occupancy_date=TODAY) == 2

    def test_check_out_frees_occupancy_for_the_next_person(self, db, employees, morning_session):
        first, second = book(db, "10001", morning_session), book(db, "10002", morning_session)
        booking_service.check_in(db, booking_id=first.id, max_occupancy=1, today=TODAY)
        booking_service.check_out(db, booking_id=first.id)

        checked_in = booking_service.check_in(db, booking_id=second.id, max_occupancy=1, today=TODAY)
        assert checked_in.status == BookingStatus.CHECKIN

    def test_check_in_only_on_booking_date(self, db, employees, morning_session):
        booking = book(db, "10001", morning_session)
        with pytest.raises(BookingNotTodayError):
            booking_service.check_in(db, booking_id=booking.id, max_occupancy=15, today=YESTERDAY)

    def test_no_backward_transitions(self, db, employees, morning_session):
        booking = book(db, "10001", morning_session)

        # COMPLETED sin pasar por CHECKIN
        with pytest.raises(InvalidTransitionError):
            booking_service.check_out(db, booking_id=booking.id)

        booking_service.check_in(db, booking_id=booking.id, max_occupancy=15, today=TODAY)
        with pytest.raises(InvalidTransitionError):
            booking_service.check_in(db, booking_id=booking.id, max_occupancy=15, today=TODAY)

        booking_service.check_out(db, booking_id=booking.id)
        with pytest.raises(InvalidTransitionError):
            booking_service.check_in(db, booking_id=booking.id, max_occupancy=15, today=TODAY)
        with pytest.raises(InvalidTransitionError):
            booking_service.update_status(
                db, booking_id=booking.id, status=BookingStatus.BOOKED, max_occupancy=15, today=TODAY
            )

    def test_unknown_booking(self, db):
        with pytest.raises(NotFoundError):
            booking_service.check_in(db, booking_id=12345, max_occupancy=15, today=TODAY)

    def test_update_status_dispatches(self, db, employees, morning_session):
        booking = book(db, "10001", morning_session)
        result = booking_service.update_status(
            db, booking_id=booking.id, status="CHECKIN", max_occupancy=15, today=TODAY
        )
        assert result.status == BookingStatus.CHECKIN
        result = booking_service.update_status(
            db, booking_id=booking.id, status=BookingStatus.COMPLETED, max_occupancy=15, today=TODAY
        )
        assert result.status == BookingStatus.COMPLETED


class TestDeleteAndExpire:

    def test_delete_booked_releases_slot(self, db, employees, morning_session):
        booking_id = book(db, "10001", morning_session).id
        booking_service.delete_booking(db, booking_id=booking_id)

        assert db.get(GymBooking, booking_id) is None
        assert slot_usage_repository.get_used(db, session_id=morning_session.id, booking_date=TODAY) == 0

    def test_delete_checked_in_releases_occupancy(self, db, employees, morning_session):
        booking = book(db, "10001", morning_session)
        booking_service.check_in(db, booking_id=booking.id, max_occupancy=15, today=TODAY)

        booking_service.delete_booking(db, booking_id=booking.id)

        assert occupancy_repository.get_inside(db, occupancy_date=TODAY) == 0
        assert slot_usage_repository.get_used(db, session_id=morning_session.id, booking_date=TODAY) == 0

    def test_delete_completed_does_not_touch_counters(self, db, employees, morning_session):
        done = book(db, "10001", morning_session)
        booking_service.check_in(db, booking_id=done.id, max_occupancy=15, today=TODAY)
        booking_service.check_out(db, booking_id=done.id)
        book(db, "10002", morning_session)

        booking_service.delete_booking(db, booking_id=done.id)

        assert slot_usage_repository.get_used(db, session_id=morning_session.id, booking_date=TODAY) == 1

    def test_delete_unknown_booking(self, db):
        with pytest.raises(NotFoundError):
            booking_service.delete_booking(db, booking_id=999)

    def test_expire_past_bookings(self, db, employees, morning_session):
        stale = book(db, "10001", morning_session)
        checked_in = book(db, "10002", morning_session)
        booking_service.check_in(db, booking_id=checked_in.id, max_occupancy=15, today=TODAY)

        expired = booking_service.expire_past_bookings(db, today=TODAY + timedelta(days=1))

        assert expired == 1
        assert db.get(GymBooking, stale.id).status == BookingStatus.EXPIRED
        assert db.get(GymBooking, checked_in.id).status == BookingStatus.CHECKIN
        assert slot_usage_repository.get_used(db, session_id=morning_session.id, booking_date=TODAY) == 1

    def test_expire_leaves_todays_bookings(self, db, employees, morning_session):
        book(db, "10001", morning_session)
        assert booking_service.expire_past_bookings(db, today=TODAY) == 0


class TestQueries:

    def test_list_bookings_orders_by_session_start(self, db, employees, morning_session, evening_session):
        book(db, "10001", evening_session)
        book(db, "10002", morning_session)
        book(db, "10003", morning_session, booking_date=TODAY + timedelta(days=1))

        rows = booking_service.list_bookings(db, db, date_from=TODAY, date_to=TODAY + timedelta(days=1))

        assert [(r["booking_date"], r["session_name"]) for r in rows] == [
            (TODAY, "Morning"),
            (TODAY, "Evening"),
            (TODAY + timedelta(days=1), "Morning"),
        ]
        assert rows[0]["employee_name"] == "Employee 02"

    def test_list_bookings_hides_expired(self, db, employees, morning_session):
        book(db, "10001", morning_session)
        booking_service.expire_past_bookings(db, today=TODAY + timedelta(days=1))

        assert booking_service.list_bookings(db, db, date_from=TODAY, date_to=TODAY) == []

    def test_list_bookings_rejects_inverted_range(self, db):
        with pytest.raises(ValidationError):
            booking_service.list_bookings(db, db, date_from=TODAY, date_to=YESTERDAY)

    def test_list_employee_bookings_accepts_any_id_format(self, db, employees, morning_session):
        book(db, "10001", morning_session)
        book(db, "10001", morning_session, booking_date=TODAY + timedelta(days=1))

        rows = booking_service.list_employee_bookings(db, db, employee_id="MTI-10001")

        assert [r["booking_date"] for r in rows] == [TODAY + timedelta(days=1), TODAY]

    def test_update_approval(self, db, employees, morning_session):
        booking = book(db, "10001", morning_session)
        updated = booking_service.update_approval(
            db, booking_id=booking.id, approval_status=ApprovalStatus.APPROVED
        )
        assert updated.approval_status == ApprovalStatus.APPROVED
