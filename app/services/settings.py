"""
Ajustes del sistema: control del gimnasio, contacto de soporte y perfiles
de conexión a bases de datos externas.
"""
from datetime import datetime, timezone
from typing import Any, Dict, List
import logging

from sqlalchemy import create_engine, text
from sqlalchemy.engine import URL
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.core.config import get_settings
from app.core.exceptions import NotFoundError, ValidationError
from app.models.settings import GymControllerSettings, DatabaseConnection, DatabaseType
from app.repositories.settings import (
    controller_settings_repository,
    app_setting_repository,
    db_connection_repository,
)
from app.schemas.settings import (
    GymControllerSettingsUpdate,
    SupportContact,
    DatabaseConnectionCreate,
    DatabaseConnectionUpdate,
)

logger = logging.getLogger(__name__)

SUPPORT_CONTACT_NAME_KEY = "support_contact_name"
SUPPORT_CONTACT_PHONE_KEY = "support_contact_phone"

# Driver SQLAlchemy por tipo de base de datos
DRIVER_BY_TYPE = {
    DatabaseType.MYSQL: "mysql+pymysql",
    DatabaseType.POSTGRESQL: "postgresql+psycopg2",
    DatabaseType.ORACLE: "oracle+oracledb",
    DatabaseType.SQLSERVER: "mssql+pyodbc",
    DatabaseType.SQLITE: "sqlite",
}

CONNECTION_TEST_TIMEOUT = 5


def build_connection_url(connection: DatabaseConnection) -> URL:
    """URL SQLAlchemy para un perfil de conexión guardado."""
    db_type = DatabaseType(connection.database_type)
    if db_type == DatabaseType.SQLITE:
        return URL.create("sqlite", database=connection.database_name)
    return URL.create(
        DRIVER_BY_TYPE[db_type],
        username=connection.username or None,
        password=connection.password_encrypted or None,
        host=connection.host,
        port=connection.port,
        database=connection.database_name,
    )


class SettingsService:

    # Control del gimnasio
    def get_controller_settings(self, db: Session) -> GymControllerSettings:
        return controller_settings_repository.get_or_create_default(db)

    def get_max_occupancy(self, db: Session) -> int:
        return self.get_controller_settings(db).max_occupancy

    def update_controller_settings(
        self, db: Session, settings_in: GymControllerSettingsUpdate
    ) -> GymControllerSettings:
        """
        Actualizar los ajustes del gimnasio.

        El cuerpo puede ser parcial; la ventana se valida con los valores resultantes.
        """
        current = controller_settings_repository.get_or_create_default(db)
        update_data = {k: v for k, v in settings_in.model_dump(exclude_unset=True).items() if v is not None}

        min_days = update_data.get("booking_min_days_ahead", current.booking_min_days_ahead)
        max_days = update_data.get("booking_max_days_ahead", current.booking_max_days_ahead)
        if min_days > max_days:
            raise ValidationError("booking_min_days_ahead must be <= booking_max_days_ahead")

        updated = controller_settings_repository.update(db, db_obj=current, obj_in=update_data)
        logger.info(
            f"Ajustes del gimnasio actualizados: ventana {updated.booking_min_days_ahead}-"
            f"{updated.booking_max_days_ahead} días, aforo {updated.max_occupancy}"
        )
        return updated

    # Contacto de soporte
    def get_support_contact(self, db: Session) -> Dict[str, str]:
        settings = get_settings()
        name = app_setting_repository.get_value(db, key=SUPPORT_CONTACT_NAME_KEY)
        phone = app_setting_repository.get_value(db, key=SUPPORT_CONTACT_PHONE_KEY)
        return {
            "name": name or settings.SUPPORT_CONTACT_NAME,
            "phone": phone or settings.SUPPORT_CONTACT_PHONE,
        }

    def update_support_contact(self, db: Session, contact: SupportContact) -> Dict[str, str]:
        app_setting_repository.set_values(db, values={
            SUPPORT_CONTACT_NAME_KEY: contact.name,
            SUPPORT_CONTACT_PHONE_KEY: contact.phone,
        })
        logger.info("Contacto de soporte actualizado")
        return {"name": contact.name, "phone": contact.phone}

    # Perfiles de conexión
    def list_connections(self, db: Session) -> List[DatabaseConnection]:
        return db_connection_repository.get_all_ordered(db)

    def get_connection(self, db: Session, connection_id: int) -> DatabaseConnection:
        connection = db_connection_repository.get(db, id=connection_id)
        if not connection:
            raise NotFoundError("Database connection not found")
        return connection

    def create_connection(self, db: Session, connection_in: DatabaseConnectionCreate) -> DatabaseConnection:
        values = connection_in.model_dump(exclude={"password"})
        values["database_type"] = connection_in.database_type.value
        values["password_encrypted"] = connection_in.password
        values["connection_status"] = "untested"
        connection = db_connection_repository.create(db, obj_in=values)
        logger.info(f"Perfil de conexión {connection.id} creado ({connection.database_type})")
        return connection

    def update_connection(
        self, db: Session, connection_id: int, connection_in: DatabaseConnectionUpdate
    ) -> DatabaseConnection:
        connection = self.get_connection(db, connection_id)
        update_data = connection_in.model_dump(exclude_unset=True, exclude={"password"})
        if update_data.get("database_type") is not None:
            update_data["database_type"] = DatabaseType(update_data["database_type"]).value
        # Una contraseña vacía o ausente conserva la actual
        if connection_in.password:
            update_data["password_encrypted"] = connection_in.password
        # Cambiar los datos de conexión invalida el último resultado de prueba
        update_data["connection_status"] = "untested"
        return db_connection_repository.update(db, db_obj=connection, obj_in=update_data)

    def delete_connection(self, db: Session, connection_id: int) -> None:
        self.get_connection(db, connection_id)
        db_connection_repository.remove(db, id=connection_id)
        logger.info(f"Perfil de conexión {connection_id} borrado")

    def test_connection(self, db: Session, connection_id: int) -> Dict[str, Any]:
        """
        Probar un perfil abriendo un engine y ejecutando SELECT 1.

        El resultado se guarda en connection_status / last_tested_at.
        """
        connection = self.get_connection(db, connection_id)
        tested_at = datetime.now(timezone.utc)
        error = None

        url = build_connection_url(connection)
        connect_args = {}
        if url.drivername in ("postgresql+psycopg2", "mysql+pymysql"):
            connect_args["connect_timeout"] = CONNECTION_TEST_TIMEOUT
        probe = "SELECT 1 FROM DUAL" if url.drivername == "oracle+oracledb" else "SELECT 1"

        engine = None
        try:
            engine = create_engine(url, connect_args=connect_args)
            with engine.connect() as conn:
                conn.execute(text(probe))
            status = "success"
        except (SQLAlchemyError, ImportError) as e:
            # El fallo de conexión es un resultado de la prueba, no un error del servicio
            status = "failed"
            error = str(e).splitlines()[0] if str(e) else e.__class__.__name__
            logger.warning(f"Prueba de conexión {connection_id} fallida: {error}")
        finally:
            if engine is not None:
                engine.dispose()

        db_connection_repository.update(db, db_obj=connection, obj_in={
            "connection_status": status,
            "last_tested_at": tested_at,
        })
        return {
            "ok": status == "success",
            "connection_status": status,
            "last_tested_at": tested_at,
            "error": error,
        }


settings_service = SettingsService()
