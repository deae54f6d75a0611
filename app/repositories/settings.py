from typing import Any, Optional, List
import logging

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.core.config import get_settings
from app.repositories.base import BaseRepository
from app.models.settings import GymControllerSettings, AppSetting, DatabaseConnection

logger = logging.getLogger(__name__)


class GymControllerSettingsRepository(BaseRepository[GymControllerSettings, Any, Any]):
    SINGLETON_ID = 1

    def get_or_create_default(self, db: Session) -> GymControllerSettings:
        """
        Obtener la fila única de ajustes o crearla con los valores por defecto
        de la configuración.
        """
        row = self.get(db, id=self.SINGLETON_ID)
        if row:
            return row

        settings = get_settings()
        row = GymControllerSettings(
            id=self.SINGLETON_ID,
            booking_min_days_ahead=settings.DEFAULT_BOOKING_MIN_DAYS_AHEAD,
            booking_max_days_ahead=settings.DEFAULT_BOOKING_MAX_DAYS_AHEAD,
            max_occupancy=settings.DEFAULT_MAX_OCCUPANCY,
            enable_manager_all_session_access=False,
        )
        db.add(row)
        try:
            db.commit()
        except IntegrityError:
            # Otra petición creó la fila entre la lectura y el INSERT
            db.rollback()
            logger.info("Ajustes del gimnasio creados por otra petición; se reutiliza la fila existente")
            return self.get(db, id=self.SINGLETON_ID)
        db.refresh(row)
        return row


class AppSettingRepository:
    def get_value(self, db: Session, *, key: str) -> Optional[str]:
        row = db.get(AppSetting, key)
        return row.value if row else None

    def set_values(self, db: Session, *, values: dict) -> None:
        """Guardar varias claves en una sola transacción."""
        for key, value in values.items():
            row = db.get(AppSetting, key)
            if row is None:
                db.add(AppSetting(key=key, value=value))
            else:
                row.value = value
        db.commit()


class DatabaseConnectionRepository(BaseRepository[DatabaseConnection, Any, Any]):
    def get_all_ordered(self, db: Session) -> List[DatabaseConnection]:
        return db.query(DatabaseConnection).order_by(DatabaseConnection.display_name, DatabaseConnection.id).all()


controller_settings_repository = GymControllerSettingsRepository(GymControllerSettings)
app_setting_repository = AppSettingRepository()
db_connection_repository = DatabaseConnectionRepository(DatabaseConnection)
