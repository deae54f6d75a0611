from sqlalchemy import Column, Integer, String, Boolean, DateTime, Text, CheckConstraint
from sqlalchemy.sql import func
import enum

from app.db.base_class import Base


class DatabaseType(str, enum.Enum):
    MYSQL = "mysql"
    POSTGRESQL = "postgresql"
    ORACLE = "oracle"
    SQLSERVER = "sqlserver"
    SQLITE = "sqlite"


class GymControllerSettings(Base):
    """Ajustes operativos del gimnasio (una sola fila, id=1)"""
    __tablename__ = "gym_controller_settings"

    id = Column(Integer, primary_key=True)
    booking_min_days_ahead = Column(Integer, nullable=False)
    booking_max_days_ahead = Column(Integer, nullable=False)
    max_occupancy = Column(Integer, nullable=False)
    enable_manager_all_session_access = Column(Boolean, nullable=False, default=False)

    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    __table_args__ = (
        CheckConstraint('booking_min_days_ahead >= 0 AND booking_min_days_ahead <= booking_max_days_ahead',
                        name='check_booking_window'),
        CheckConstraint('max_occupancy >= 1', name='check_max_occupancy_positive'),
    )


class AppSetting(Base):
    """Almacén clave/valor para ajustes sueltos (contacto de soporte, etc.)"""
    __tablename__ = "app_setting"

    key = Column(String(100), primary_key=True)
    value = Column(Text, nullable=True)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())


class DatabaseConnection(Base):
    """Perfil de conexión a una base de datos externa"""
    __tablename__ = "database_connection"

    id = Column(Integer, primary_key=True, index=True)
    display_name = Column(String(100), nullable=False)
    database_type = Column(String(20), nullable=False)
    host = Column(String(255), nullable=True)
    port = Column(Integer, nullable=True)
    database_name = Column(String(255), nullable=False)
    username = Column(String(100), nullable=True)
    password_encrypted = Column(String(255), nullable=True)
    is_active = Column(Boolean, nullable=False, default=True)
    connection_status = Column(String(20), nullable=False, default="untested")
    last_tested_at = Column(DateTime(timezone=True), nullable=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())
