"""
Tests de la agregación semanal (build_week), sin base de datos.
"""
from datetime import date, time
from types import SimpleNamespace

from app.models.gym import BookingStatus
from app.services.calendar import build_week


WEEK_START = date(2025, 3, 10)


def _session(id, name, start, end, quota=15):
    return SimpleNamespace(id=id, session_name=name, time_start=start, time_end=end, quota=quota)


def _booking(id, day, session, status=BookingStatus.BOOKED, session_name=None):
    return {
        "id": id,
        "employee_id": f"100{id:02d}",
        "employee_name": f"Employee {id:02d}",
        "session_id": session.id if session else None,
        "session_name": session.session_name if session else session_name,
        "time_start": session.time_start if session else None,
        "time_end": session.time_end if session else None,
        "booking_date": day,
        "status": status,
    }


class TestBuildWeek:

    def setup_method(self):
        self.morning = _session(1, "Morning", time(6, 0), time(7, 0), quota=2)
        self.evening = _session(2, "Evening", time(17, 0), time(18, 0))

    def test_seven_days_with_every_session(self):
        week = build_week(WEEK_START, [], [self.evening, self.morning], [])

        assert week["week_start"] == WEEK_START
        assert week["week_end"] == date(2025, 3, 16)
        assert [d["date"] for d in week["days"]] == [date(2025, 3, 10 + i) for i in range(7)]
        for day in week["days"]:
            assert [s["time_start"] for s in day["slots"]] == ["06:00", "17:00"]
            assert day["total_booked"] == 0

    def test_counts_only_active_bookings(self):
        bookings = [
            _booking(1, WEEK_START, self.morning),
            _booking(2, WEEK_START, self.morning, status=BookingStatus.CHECKIN),
            _booking(3, WEEK_START, self.morning, status=BookingStatus.COMPLETED),
        ]
        week = build_week(WEEK_START, bookings, [self.morning, self.evening], [])

        monday = week["days"][0]
        morning_slot = monday["slots"][0]
        assert morning_slot["booked"] == 2
        assert morning_slot["available"] == 0
        assert len(morning_slot["bookings"]) == 3
        assert monday["total_booked"] == 2
        assert week["days"][1]["total_booked"] == 0

    def test_sessions_with_same_start_are_separate_slots(self):
        yoga = _session(3, "Yoga", time(6, 0), time(7, 0))
        bookings = [_booking(1, WEEK_START, self.morning), _booking(2, WEEK_START, yoga)]
        week = build_week(WEEK_START, bookings, [self.morning, yoga], [])

        slots = week["days"][0]["slots"]
        assert [(s["session_name"], s["booked"]) for s in slots] == [("Morning", 1), ("Yoga", 1)]

    def test_bookings_of_deleted_sessions_are_kept(self):
        bookings = [_booking(1, WEEK_START, None, status=BookingStatus.COMPLETED, session_name="Old slot")]
        week = build_week(WEEK_START, bookings, [self.morning], [])

        slots = week["days"][0]["slots"]
        assert slots[-1]["session_name"] == "Old slot"
        assert slots[-1]["quota"] is None
        assert slots[-1]["time_start"] is None
        assert len(slots[-1]["bookings"]) == 1

    def test_roster_is_grouped_by_day(self):
        roster = [
            {"id": 1, "roster_date": date(2025, 3, 12), "employee_id": "10001", "role": "COMMITTEE"},
            {"id": 2, "roster_date": date(2025, 3, 20), "employee_id": "10002", "role": "COMMITTEE"},
        ]
        week = build_week(WEEK_START, [], [], roster)

        assert [len(d["roster"]) for d in week["days"]] == [0, 0, 1, 0, 0, 0, 0]
