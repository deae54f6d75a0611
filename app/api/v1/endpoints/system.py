from fastapi import APIRouter
from datetime import datetime, timezone
from typing import Any

from app.core.config import get_settings

router = APIRouter()


@router.get("/health")
def health() -> Any:
    """
    Health Check
    """
    settings = get_settings()
    return {
        "ok": True,
        "service": settings.PROJECT_NAME,
        "version": settings.VERSION,
        "time": datetime.now(timezone.utc).isoformat(),
    }
