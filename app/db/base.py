# Importar todos los modelos para que create_all los detecte
from app.db.base_class import Base  # noqa
from app.models.gym import (  # noqa
    GymSession,
    GymBooking,
    GymSlotUsage,
    GymOccupancy,
    GymRosterEntry,
)
from app.models.settings import GymControllerSettings, AppSetting, DatabaseConnection  # noqa
from app.models.employee import EmployeeCore  # noqa
