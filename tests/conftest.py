import os

# Configuración de pruebas antes de importar la aplicación
os.environ.setdefault("DATABASE_URL", "sqlite:///:memory:")
os.environ.setdefault("AUTO_CREATE_TABLES", "false")
os.environ.setdefault("SCHEDULER_ENABLED", "false")
os.environ.setdefault("LOG_TO_FILE", "false")

from datetime import time

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from app.core.config import get_settings
from app.core.timezone_utils import gym_today
from app.db.base import Base
from app.db.session import get_db, get_master_db
from app.models.employee import EmployeeCore
from app.models.gym import GymSession
from app.services.access_log import access_event_log
from main import app


# Usar una base de datos en memoria para pruebas
SQLALCHEMY_DATABASE_URL = "sqlite:///:memory:"


@pytest.fixture(scope="function")
def db_engine():
    """
    Engine nuevo por test: cada prueba empieza con las tablas vacías.
    """
    engine = create_engine(
        SQLALCHEMY_DATABASE_URL,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)

    yield engine

    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture(scope="function")
def db(db_engine):
    """
    Crea una sesión de base de datos fresca para cada test y la cierra al finalizar.
    """
    TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=db_engine)
    session = TestingSessionLocal()

    yield session

    session.close()


@pytest.fixture(autouse=True)
def clear_access_log():
    access_event_log.clear()
    yield
    access_event_log.clear()


@pytest.fixture(scope="function")
def client(db):
    """
    Cliente de prueba; el gimnasio y el directorio comparten la sesión de prueba.
    """
    def override_get_db():
        try:
            yield db
        finally:
            pass

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_master_db] = override_get_db
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()


@pytest.fixture
def today():
    """Hoy en la zona horaria del gimnasio, como lo calculan los servicios."""
    return gym_today(get_settings().GYM_TIMEZONE)


@pytest.fixture
def employees(db):
    """
    Directorio con veinte empleados: "10001" ... "10020".
    """
    rows = [
        EmployeeCore(
            employee_id=f"100{i:02d}",
            name=f"Employee {i:02d}",
            department="Production" if i % 2 else "Warehouse",
            card_no=f"CARD{i:02d}",
            gender="M" if i % 2 else "F",
        )
        for i in range(1, 21)
    ]
    db.add_all(rows)
    db.commit()
    return rows


@pytest.fixture
def morning_session(db):
    session = GymSession(session_name="Morning", time_start=time(6, 0), time_end=time(7, 0), quota=15)
    db.add(session)
    db.commit()
    db.refresh(session)
    return session


@pytest.fixture
def evening_session(db):
    session = GymSession(session_name="Evening", time_start=time(17, 0), time_end=time(18, 30), quota=15)
    db.add(session)
    db.commit()
    db.refresh(session)
    return session
