from fastapi import APIRouter, Depends, Path, Query
from sqlalchemy.orm import Session
from typing import Any, Optional
from datetime import date

from app.db.session import get_db, get_master_db
from app.schemas.gym import RosterEntryCreate, RosterListResponse, RosterEntryResponse, OkResponse
from app.services.calendar import calendar_service

router = APIRouter()


@router.get("/gym-roster", response_model=RosterListResponse)
def list_roster(
    date_from: date = Query(..., alias="from", description="First day (YYYY-MM-DD)"),
    date_to: Optional[date] = Query(None, alias="to", description="Last day, defaults to `from`"),
    db: Session = Depends(get_db),
    master_db: Session = Depends(get_master_db)
) -> Any:
    """
    List Committee Roster

    Duty assignments between two dates, inclusive.
    """
    roster = calendar_service.list_roster(db, master_db, date_from=date_from, date_to=date_to)
    return {"ok": True, "roster": roster}


@router.post("/gym-roster", response_model=RosterEntryResponse)
def create_roster_entry(
    entry_in: RosterEntryCreate,
    db: Session = Depends(get_db),
    master_db: Session = Depends(get_master_db)
) -> Any:
    """
    Assign an Employee to the Roster
    """
    return {"ok": True, "entry": calendar_service.create_roster_entry(db, master_db, entry_in)}


@router.delete("/gym-roster/{entry_id}", response_model=OkResponse)
def delete_roster_entry(
    entry_id: int = Path(..., description="ID of the roster entry"),
    db: Session = Depends(get_db)
) -> Any:
    """
    Remove a Roster Entry
    """
    calendar_service.delete_roster_entry(db, entry_id)
    return {"ok": True}
