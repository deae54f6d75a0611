from fastapi import APIRouter, Depends, Path
from sqlalchemy.orm import Session
from typing import Any

from app.db.session import get_db
from app.schemas.gym import OkResponse
from app.schemas.settings import (
    GymControllerSettingsUpdate,
    GymControllerSettingsResponse,
    SupportContact,
    SupportContactResponse,
    DatabaseConnectionCreate,
    DatabaseConnectionUpdate,
    DatabaseConnectionResponse,
    DatabaseConnectionListResponse,
    DatabaseConnectionTestResult,
)
from app.services.settings import settings_service

router = APIRouter()


# Control del gimnasio
@router.get("/gym-controller-settings", response_model=GymControllerSettingsResponse)
def get_controller_settings(db: Session = Depends(get_db)) -> Any:
    """
    Gym Controller Settings

    Booking window (days ahead) and maximum occupancy.
    """
    return {"ok": True, "settings": settings_service.get_controller_settings(db)}


@router.post("/gym-controller-settings", response_model=GymControllerSettingsResponse)
def update_controller_settings(
    settings_in: GymControllerSettingsUpdate,
    db: Session = Depends(get_db)
) -> Any:
    """
    Update Gym Controller Settings

    Window limits must be within 0-30 days with min <= max; occupancy >= 1.
    """
    return {"ok": True, "settings": settings_service.update_controller_settings(db, settings_in)}


# Contacto de soporte
@router.get("/app-settings/support-contact", response_model=SupportContactResponse)
def get_support_contact(db: Session = Depends(get_db)) -> Any:
    """
    Support Contact
    """
    return {"ok": True, **settings_service.get_support_contact(db)}


@router.post("/app-settings/support-contact", response_model=SupportContactResponse)
def update_support_contact(contact_in: SupportContact, db: Session = Depends(get_db)) -> Any:
    """
    Update Support Contact

    The phone keeps only digits and a leading `+`.
    """
    return {"ok": True, **settings_service.update_support_contact(db, contact_in)}


# Perfiles de conexión
@router.get("/db-connections", response_model=DatabaseConnectionListResponse)
def list_connections(db: Session = Depends(get_db)) -> Any:
    """
    List Database Connection Profiles

    Passwords are never returned.
    """
    return {"ok": True, "connections": settings_service.list_connections(db)}


@router.post("/db-connections", response_model=DatabaseConnectionResponse)
def create_connection(connection_in: DatabaseConnectionCreate, db: Session = Depends(get_db)) -> Any:
    """
    Create a Database Connection Profile
    """
    return {"ok": True, "connection": settings_service.create_connection(db, connection_in)}


@router.get("/db-connections/{connection_id}", response_model=DatabaseConnectionResponse)
def get_connection(
    connection_id: int = Path(..., description="ID of the connection profile"),
    db: Session = Depends(get_db)
) -> Any:
    """
    Get a Database Connection Profile
    """
    return {"ok": True, "connection": settings_service.get_connection(db, connection_id)}


@router.put("/db-connections/{connection_id}", response_model=DatabaseConnectionResponse)
def update_connection(
    connection_in: DatabaseConnectionUpdate,
    connection_id: int = Path(..., description="ID of the connection profile"),
    db: Session = Depends(get_db)
) -> Any:
    """
    Update a Database Connection Profile

    An empty password keeps the stored one.
    """
    return {"ok": True, "connection": settings_service.update_connection(db, connection_id, connection_in)}


@router.delete("/db-connections/{connection_id}", response_model=OkResponse)
def delete_connection(
    connection_id: int = Path(..., description="ID of the connection profile"),
    db: Session = Depends(get_db)
) -> Any:
    """
    Delete a Database Connection Profile
    """
    settings_service.delete_connection(db, connection_id)
    return {"ok": True}


@router.post("/db-connections/{connection_id}/test", response_model=DatabaseConnectionTestResult)
def test_connection(
    connection_id: int = Path(..., description="ID of the connection profile"),
    db: Session = Depends(get_db)
) -> Any:
    """
    Test a Database Connection Profile

    Opens a connection and runs `SELECT 1`. A failed connection is reported
    with `ok: false` and recorded as `connection_status: failed`.
    """
    return settings_service.test_connection(db, connection_id)
