from fastapi import APIRouter, Depends, Path, Query
from sqlalchemy.orm import Session
from typing import Any
from datetime import date

from app.db.session import get_db
from app.schemas.gym import (
    GymSessionCreate,
    GymSessionUpdate,
    GymSessionListResponse,
    GymSessionResponse,
    GymAvailabilityResponse,
    OkResponse,
)
from app.services.gym_session import gym_session_service

router = APIRouter()


@router.get("/gym-sessions", response_model=GymSessionListResponse)
def list_sessions(db: Session = Depends(get_db)) -> Any:
    """
    List Gym Sessions

    Returns every configured time slot ordered by start time.
    """
    return {"ok": True, "sessions": gym_session_service.get_sessions(db)}


@router.post("/gym-sessions", response_model=GymSessionResponse)
def create_session(session_in: GymSessionCreate, db: Session = Depends(get_db)) -> Any:
    """
    Create a Gym Session

    `time_start` and `time_end` are `HH:MM`; `quota` defaults to the configured
    session quota when omitted.

    Raises:
        409 CONFLICT: a session with the same name and start time exists.
    """
    return {"ok": True, "session": gym_session_service.create_session(db, session_in)}


@router.put("/gym-sessions/{session_id}", response_model=GymSessionResponse)
def update_session(
    session_in: GymSessionUpdate,
    session_id: int = Path(..., description="ID of the session"),
    db: Session = Depends(get_db)
) -> Any:
    """
    Update a Gym Session

    Only the fields sent are changed.
    """
    return {"ok": True, "session": gym_session_service.update_session(db, session_id, session_in)}


@router.delete("/gym-sessions/{session_id}", response_model=OkResponse)
def delete_session(
    session_id: int = Path(..., description="ID of the session"),
    db: Session = Depends(get_db)
) -> Any:
    """
    Delete a Gym Session

    Refused while the session has BOOKED or CHECKIN bookings. Past bookings
    keep their session name.
    """
    gym_session_service.delete_session(db, session_id)
    return {"ok": True}


@router.get("/gym-availability", response_model=GymAvailabilityResponse)
def get_availability(
    booking_date: date = Query(..., alias="date", description="Date (YYYY-MM-DD)"),
    db: Session = Depends(get_db)
) -> Any:
    """
    Session Availability for a Date

    For each session returns its quota, the number of active bookings and the
    remaining places.
    """
    return {
        "ok": True,
        "date": booking_date,
        "sessions": gym_session_service.get_availability(db, booking_date),
    }
