from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session
from typing import Any, Optional

from app.db.session import get_master_db
from app.schemas.gym import EmployeeCoreListResponse, EmployeeIdListResponse
from app.services.directory import directory_service, parse_ids_param

router = APIRouter()


@router.get("/employee-core", response_model=EmployeeCoreListResponse)
def search_employee_core(
    q: Optional[str] = Query(None, description="Prefix of employee ID or name"),
    ids: Optional[str] = Query(None, description="Comma separated employee IDs (max 200)"),
    limit: int = Query(200, ge=1, le=1000),
    master_db: Session = Depends(get_master_db)
) -> Any:
    """
    Search the Employee Directory

    IDs are matched exactly first and then by their normalized form.
    """
    employees = directory_service.search_employees(
        master_db, q=q, ids=parse_ids_param(ids), limit=limit
    )
    return {"ok": True, "employees": employees}


@router.get("/employees", response_model=EmployeeIdListResponse)
def list_employees(
    q: Optional[str] = Query(None, description="Prefix of employee ID"),
    master_db: Session = Depends(get_master_db)
) -> Any:
    """
    List Employee IDs

    The first 20 IDs of the directory, optionally filtered by prefix.
    """
    return {"ok": True, "employees": directory_service.list_employee_ids(master_db, q=q)}
