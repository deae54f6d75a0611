from sqlalchemy import Column, String

from app.db.base_class import Base


class EmployeeCore(Base):
    """
    Espejo de solo lectura del directorio maestro de empleados.

    Este sistema no crea ni modifica empleados; solo los consulta.
    """
    __tablename__ = "employee_core"

    employee_id = Column(String(64), primary_key=True)
    name = Column(String(200), nullable=False)
    department = Column(String(100), nullable=True)
    card_no = Column(String(50), nullable=True)
    gender = Column(String(10), nullable=True)
