from sqlalchemy import create_engine
from sqlalchemy.engine import Engine, make_url
from sqlalchemy.orm import sessionmaker
from sqlalchemy.exc import ArgumentError, SQLAlchemyError
import logging

# Importar get_settings
from app.core.config import get_settings

logger = logging.getLogger(__name__)

# Obtener la instancia de configuración
settings_instance = get_settings()


def mask_url(url: str) -> str:
    """Ocultar credenciales de una URL de base de datos para los logs."""
    try:
        return make_url(url).render_as_string(hide_password=True)
    except ArgumentError:
        return "URL con formato inesperado"


def build_engine(url: str) -> Engine:
    """
    Crear un engine con las opciones adecuadas al dialecto.

    SQLite (desarrollo y tests) necesita check_same_thread=False porque
    FastAPI atiende las dependencias síncronas en un threadpool.
    """
    if url.startswith("sqlite"):
        return create_engine(url, echo=False, connect_args={"check_same_thread": False})
    return create_engine(
        url,
        echo=False,  # SIEMPRE False en producción para mejor rendimiento
        pool_pre_ping=True,
        pool_size=10,
        max_overflow=20,
        pool_timeout=30,
        pool_recycle=180,
    )


logger.info(f"URL FINAL utilizada para crear el engine: {mask_url(settings_instance.DATABASE_URL)}")

engine = build_engine(settings_instance.DATABASE_URL)

# Crear clase de sesión
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

# Directorio maestro de empleados: reutiliza el engine principal si no hay URL propia
if settings_instance.MASTER_DATABASE_URL:
    logger.info(f"Directorio maestro en: {mask_url(settings_instance.MASTER_DATABASE_URL)}")
    master_engine = build_engine(settings_instance.MASTER_DATABASE_URL)
else:
    master_engine = engine

MasterSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=master_engine)


# ==========================================
# DEPENDENCIAS
# ==========================================

def _session_scope(factory):
    db = factory()
    try:
        yield db
    except SQLAlchemyError as e:
        logger.error(f"Error de SQLAlchemy en la sesión: {e}", exc_info=True)
        db.rollback()  # Hacer rollback en caso de error
        raise  # Relanzar la excepción para que FastAPI la maneje
    finally:
        # Asegurarse siempre de cerrar la sesión
        db.close()


# Dependencia para obtener la sesión de DB
def get_db():
    yield from _session_scope(SessionLocal)


# Dependencia para el directorio maestro (solo lectura)
def get_master_db():
    yield from _session_scope(MasterSessionLocal)
