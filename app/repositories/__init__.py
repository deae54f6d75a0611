# Inicializador del paquete repositories
from app.repositories.base import BaseRepository

from app.repositories.gym import (
    gym_session_repository,
    gym_booking_repository,
    gym_roster_repository,
    slot_usage_repository,
    occupancy_repository,
)
from app.repositories.settings import (
    controller_settings_repository,
    app_setting_repository,
    db_connection_repository,
)
from app.repositories.employee import employee_repository
