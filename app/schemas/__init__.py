from app.schemas.gym import (
    GymSession, GymSessionCreate, GymSessionUpdate, GymSessionAvailability,
    GymBooking, GymBookingCreate, GymBookingCreated, GymBookingStatusUpdate, GymBookingApprovalUpdate,
    RosterEntry, RosterEntryCreate, WeeklyCalendar, LiveStatus, AccessEvent, EmployeeCore
)
from app.schemas.settings import (
    GymControllerSettings, GymControllerSettingsUpdate, SupportContact,
    DatabaseConnection, DatabaseConnectionCreate, DatabaseConnectionUpdate, DatabaseConnectionTestResult
)
