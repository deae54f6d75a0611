from app.models.gym import (
    GymSession, GymBooking, GymSlotUsage, GymOccupancy, GymRosterEntry,
    BookingStatus, ApprovalStatus
)
from app.models.settings import GymControllerSettings, AppSetting, DatabaseConnection, DatabaseType
from app.models.employee import EmployeeCore
