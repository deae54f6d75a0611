from datetime import timedelta

from app.models.gym import ApprovalStatus
from app.services.booking import booking_service


def book_for_today(db, employee_id, session, today):
    return booking_service.create_booking(
        db, db,
        employee_id=employee_id,
        session_id=session.id,
        booking_date=today,
        today=today - timedelta(days=1),
    )


class TestLiveStatusApi:

    def test_empty_day(self, client, today):
        response = client.get("/api/gym-live-status")
        assert response.status_code == 200
        data = response.json()
        assert data["date"] == today.isoformat()
        assert data["count"] == 0
        assert data["max_occupancy"] == 15
        assert data["available"] == 15
        assert data["people"] == []

    def test_people_states(self, client, db, employees, morning_session, evening_session, today):
        booked = book_for_today(db, "10001", morning_session, today)
        inside = book_for_today(db, "10002", morning_session, today)
        left = book_for_today(db, "10003", evening_session, today)
        for booking in (inside, left):
            booking_service.check_in(db, booking_id=booking.id, max_occupancy=15)
        booking_service.check_out(db, booking_id=left.id)

        response = client.get("/gym-live-status")

        assert response.status_code == 200
        data = response.json()
        assert data["count"] == 1
        assert data["available"] == 14
        people = {p["employee_id"]: p for p in data["people"]}
        assert people["10001"]["status"] == "BOOKED"
        assert people["10002"]["status"] == "IN_GYM"
        assert people["10002"]["time_in"] is not None
        assert people["10003"]["status"] == "LEFT"
        assert people["10003"]["time_out"] is not None
        assert people["10001"]["schedule"] == "06:00 - 07:00"
        assert people["10001"]["access_indicator"] == {"color": "green", "label": "Granted"}
        assert people["10003"]["access_granted"] is False
        assert booked.id in {p["booking_id"] for p in data["people"]}

    def test_rejected_booking_has_no_access(self, client, db, employees, morning_session, today):
        booking = book_for_today(db, "10001", morning_session, today)
        booking_service.update_approval(db, booking_id=booking.id, approval_status=ApprovalStatus.REJECTED)

        person = client.get("/api/gym-live-status").json()["people"][0]

        assert person["access_granted"] is False
        assert person["access_indicator"]["label"] == "No Access"


class TestAccessEventsApi:

    def test_transactions_newest_first(self, client, db, employees, morning_session, today):
        booking_id = book_for_today(db, "10001", morning_session, today).id
        client.post("/api/gym-booking-status", json={"booking_id": booking_id, "status": "CHECKIN"})
        client.post("/api/gym-booking-status", json={"booking_id": booking_id, "status": "COMPLETED"})

        response = client.get("/api/gym-live-transactions", params={"limit": 1})

        assert response.status_code == 200
        events = response.json()["events"]
        assert len(events) == 1
        assert events[0]["event"] == "CHECKOUT"
        assert events[0]["name"] == "Employee 01"

        log = client.get("/api/gym-access-log").json()["events"]
        assert [e["event"] for e in log] == ["CHECKIN", "CHECKOUT"]

    def test_limit_bounds(self, client):
        assert client.get("/api/gym-live-transactions", params={"limit": 0}).status_code == 400
        assert client.get("/api/gym-live-transactions", params={"limit": 501}).status_code == 400
