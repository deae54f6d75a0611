import logging

from fastapi import FastAPI
from fastapi.testclient import TestClient

from app.middleware.timing import TimingMiddleware


def build_app(slow_threshold_ms):
    app = FastAPI()
    app.add_middleware(TimingMiddleware, slow_threshold_ms=slow_threshold_ms)

    @app.get("/gym-booking/{booking_id}")
    def read_booking(booking_id: int):
        return {"ok": True, "id": booking_id}

    return app


def test_request_headers():
    response = TestClient(build_app(slow_threshold_ms=60000)).get("/gym-booking/1")

    assert response.status_code == 200
    assert response.headers["X-Process-Time"].endswith("ms")
    assert response.headers["X-Process-Speed"] != "VERY_SLOW"


def test_slow_requests_are_logged(caplog):
    client = TestClient(build_app(slow_threshold_ms=-1))

    with caplog.at_level(logging.WARNING, logger="timing_middleware"):
        for booking_id in (1, 2, 3):
            response = client.get(f"/gym-booking/{booking_id}")
            assert response.headers["X-Process-Speed"] == "VERY_SLOW"

    slow_records = [r for r in caplog.records if r.name == "timing_middleware"]
    assert len(slow_records) == 3
    assert "GET:/gym-booking/2" in slow_records[1].getMessage()


def test_no_per_path_state():
    middleware = TimingMiddleware(FastAPI())
    assert not hasattr(middleware, "endpoint_stats")
