import os
from typing import Any, List, Optional, Union
from functools import lru_cache
import logging

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

# Configurar el logger
logger = logging.getLogger(__name__)


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=True,
        extra="ignore"  # Permitir campos extra en .env
    )

    # Configuración básica
    API_PREFIX: str = "/api"
    # Montar también las rutas sin prefijo (/gym-sessions además de /api/gym-sessions)
    SERVE_BARE_ROUTES: bool = True

    # Información del proyecto
    PROJECT_NAME: str = "GymBookingAPI"
    PROJECT_DESCRIPTION: str = "API con FastAPI para reservas y control de acceso al gimnasio"
    VERSION: str = "0.1.0"

    # Debug mode
    DEBUG_MODE: bool = os.getenv("DEBUG_MODE", "False").lower() in ("true", "1", "t")

    # Logging
    LOG_TO_FILE: bool = True
    LOG_DIR: str = "logs"

    # CORS
    BACKEND_CORS_ORIGINS: List[str] = ["http://localhost:5173", "http://127.0.0.1:5173"]

    @field_validator("BACKEND_CORS_ORIGINS", mode='before')
    def assemble_cors_origins(cls, v: Union[str, List[str]]) -> List[str]:
        if isinstance(v, str) and not v.startswith("["):
            return [i.strip() for i in v.split(",") if i.strip()]
        elif isinstance(v, (list, str)):
            return v
        raise ValueError(v)

    # Base de datos del gimnasio (reservas, sesiones, ajustes)
    DATABASE_URL: str = "sqlite:///./gym_booking.db"
    # Directorio maestro de empleados; si no se define se usa DATABASE_URL
    MASTER_DATABASE_URL: Optional[str] = None
    AUTO_CREATE_TABLES: bool = True

    @field_validator("DATABASE_URL", "MASTER_DATABASE_URL", mode="before")
    def ensure_proper_url_format(cls, v: Optional[str]) -> Any:
        """Asegura que las URLs de postgres usen el esquema postgresql://"""
        if isinstance(v, str):
            v = v.strip()
            if v.startswith('postgres://'):
                logger.info("Corrigiendo formato de postgres:// a postgresql://")
                return 'postgresql://' + v[len('postgres://'):]
            return v or None
        return v

    # Zona horaria del gimnasio, usada para calcular "hoy"
    GYM_TIMEZONE: str = "Asia/Jakarta"

    # Valores iniciales del almacén de ajustes
    DEFAULT_SESSION_QUOTA: int = 15
    DEFAULT_MAX_OCCUPANCY: int = 15
    DEFAULT_BOOKING_MIN_DAYS_AHEAD: int = 1
    DEFAULT_BOOKING_MAX_DAYS_AHEAD: int = 2

    # Contacto de soporte por defecto
    SUPPORT_CONTACT_NAME: str = "Gym Coordinator"
    SUPPORT_CONTACT_PHONE: str = "+6281275000560"

    # Scheduler
    SCHEDULER_ENABLED: bool = True
    EXPIRE_BOOKINGS_HOUR: int = 0

    # Buffer en memoria de eventos de acceso (check-in / check-out)
    ACCESS_LOG_SIZE: int = 500

    @field_validator("GYM_TIMEZONE")
    def validate_timezone(cls, v: str) -> str:
        import pytz
        if v not in pytz.all_timezones_set:
            raise ValueError(f"GYM_TIMEZONE desconocida: {v}")
        return v


# Usar una función con caché para obtener la configuración
@lru_cache()
def get_settings() -> Settings:
    settings = Settings()
    logger.info("Configuración cargada correctamente")
    return settings
