from fastapi import APIRouter

# Import routers from modules
from app.api.v1.endpoints import system, sessions, bookings, live, directory, roster, settings

api_router = APIRouter()

# Health check
api_router.include_router(system.router, tags=["system"])

# Sessions (time slots) and availability
api_router.include_router(sessions.router, tags=["sessions"])

# Bookings, check-in / check-out and weekly calendar
api_router.include_router(bookings.router, tags=["bookings"])

# Live status and access events
api_router.include_router(live.router, tags=["live"])

# Employee directory
api_router.include_router(directory.router, tags=["directory"])

# Committee roster
api_router.include_router(roster.router, tags=["roster"])

# Controller settings, support contact and database connections
api_router.include_router(settings.router, tags=["settings"])
