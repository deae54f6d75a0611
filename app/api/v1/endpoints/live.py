from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session
from typing import Any

from app.db.session import get_db, get_master_db
from app.schemas.gym import LiveStatusResponse, AccessEventListResponse
from app.services.live_status import live_status_service

router = APIRouter()


@router.get("/gym-live-status", response_model=LiveStatusResponse)
def get_live_status(
    db: Session = Depends(get_db),
    master_db: Session = Depends(get_master_db)
) -> Any:
    """
    Live Gym Status

    Everyone booked for today with their state: BOOKED, IN_GYM or LEFT.
    `count` is the number of people inside.
    """
    return {"ok": True, **live_status_service.live_status(db, master_db)}


@router.get("/gym-live-transactions", response_model=AccessEventListResponse)
def get_live_transactions(
    limit: int = Query(50, ge=1, le=500, description="Maximum number of events")
) -> Any:
    """
    Recent Access Events

    Check-ins and check-outs since the process started, newest first.
    """
    return {"ok": True, "events": live_status_service.recent_transactions(limit)}


@router.get("/gym-access-log", response_model=AccessEventListResponse)
def get_access_log() -> Any:
    """
    Access Log

    The last 200 access events, oldest first.
    """
    return {"ok": True, "events": live_status_service.access_log()}
