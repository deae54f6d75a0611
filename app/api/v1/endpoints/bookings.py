from fastapi import APIRouter, Depends, Header, Path, Query
from sqlalchemy.orm import Session
from typing import Any, Optional
from datetime import date

from app.db.session import get_db, get_master_db
from app.schemas.gym import (
    GymBookingCreate,
    GymBookingCreated,
    GymBookingStatusUpdate,
    GymBookingApprovalUpdate,
    GymBookingListResponse,
    GymBookingResponse,
    WeeklyCalendarResponse,
    OkResponse,
)
from app.services.booking import booking_service, booking_to_dict
from app.services.calendar import calendar_service
from app.services.settings import settings_service

router = APIRouter()


@router.get("/gym-bookings", response_model=GymBookingListResponse)
def list_bookings(
    date_from: date = Query(..., alias="from", description="First day (YYYY-MM-DD)"),
    date_to: date = Query(..., alias="to", description="Last day, inclusive (YYYY-MM-DD)"),
    db: Session = Depends(get_db),
    master_db: Session = Depends(get_master_db)
) -> Any:
    """
    List Bookings in a Date Range

    Returns BOOKED, CHECKIN and COMPLETED bookings ordered by date, session
    start time and creation time. Employee name and department come from the
    directory when available.
    """
    bookings = booking_service.list_bookings(db, master_db, date_from=date_from, date_to=date_to)
    return {"ok": True, "bookings": bookings}


@router.get("/gym-bookings-by-employee", response_model=GymBookingListResponse)
def list_employee_bookings(
    employee_id: str = Query(..., min_length=1, description="Employee ID, any accepted format"),
    db: Session = Depends(get_db),
    master_db: Session = Depends(get_master_db)
) -> Any:
    """
    List Bookings of One Employee

    Newest first.
    """
    bookings = booking_service.list_employee_bookings(db, master_db, employee_id=employee_id)
    return {"ok": True, "bookings": bookings}


@router.get("/gym-bookings/weekly", response_model=WeeklyCalendarResponse)
def weekly_calendar(
    week_start: date = Query(..., description="First day of the week (YYYY-MM-DD)"),
    db: Session = Depends(get_db),
    master_db: Session = Depends(get_master_db)
) -> Any:
    """
    Weekly Booking Calendar

    Seven days starting at `week_start`, each with its slots (booked count
    against quota and the bookings themselves) and the committee roster.
    """
    calendar = calendar_service.weekly_calendar(db, master_db, week_start=week_start)
    return {"ok": True, **calendar}


@router.post("/gym-booking-create", response_model=GymBookingCreated)
def create_booking(
    booking_in: GymBookingCreate,
    x_employee_id: Optional[str] = Header(None, alias="X-Employee-Id"),
    db: Session = Depends(get_db),
    master_db: Session = Depends(get_master_db)
) -> Any:
    """
    Create a Booking

    The employee ID is taken from the body or, when absent, from the
    `X-Employee-Id` header.

    Raises:
        404 NOT_FOUND: unknown employee or session.
        400 OUTSIDE_BOOKING_WINDOW: date outside the allowed window.
        409 ALREADY_REGISTERED: the employee already has a booking that day.
        409 SESSION_FULL: the session quota is exhausted.
    """
    booking = booking_service.create_booking(
        db,
        master_db,
        employee_id=booking_in.employee_id or x_employee_id,
        session_id=booking_in.session_id,
        booking_date=booking_in.booking_date,
    )
    return {"ok": True, "booking_id": booking.id, "session_id": booking.session_id}


@router.post("/gym-booking-status", response_model=GymBookingResponse)
def update_booking_status(
    status_in: GymBookingStatusUpdate,
    db: Session = Depends(get_db)
) -> Any:
    """
    Check In or Check Out

    `CHECKIN` admits a BOOKED booking of today while the gym is below its
    maximum occupancy; `COMPLETED` records the exit of a checked-in booking.

    Raises:
        409 GYM_FULL: maximum occupancy reached (`error` is the literal `GYM_FULL`).
        409 INVALID_TRANSITION: the booking is not in the required state.
        409 BOOKING_NOT_TODAY: check-in attempted on another day.
    """
    booking = booking_service.update_status(
        db,
        booking_id=status_in.booking_id,
        status=status_in.status,
        max_occupancy=settings_service.get_max_occupancy(db),
    )
    return {"ok": True, "booking": booking_to_dict(booking)}


@router.post("/gym-booking-update-status", response_model=GymBookingResponse)
def update_booking_approval(
    approval_in: GymBookingApprovalUpdate,
    db: Session = Depends(get_db)
) -> Any:
    """
    Update Booking Approval

    Sets the approval status (PENDING, APPROVED or REJECTED).
    """
    booking = booking_service.update_approval(
        db, booking_id=approval_in.booking_id, approval_status=approval_in.approval_status
    )
    return {"ok": True, "booking": booking_to_dict(booking)}


@router.delete("/gym-booking/{booking_id}", response_model=OkResponse)
def delete_booking(
    booking_id: int = Path(..., description="ID of the booking"),
    db: Session = Depends(get_db)
) -> Any:
    """
    Delete a Booking

    Allowed in any state; the session place and, for checked-in bookings, the
    occupancy are released.
    """
    booking_service.delete_booking(db, booking_id=booking_id)
    return {"ok": True}
