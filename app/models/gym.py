from sqlalchemy import Column, Integer, String, ForeignKey, Time, DateTime, Date, Text, Enum, CheckConstraint, Index
from sqlalchemy.sql import func, text
from sqlalchemy.orm import relationship
import enum
import sqlalchemy as sa

from app.db.base_class import Base


class BookingStatus(str, enum.Enum):
    BOOKED = "BOOKED"
    CHECKIN = "CHECKIN"
    COMPLETED = "COMPLETED"
    CANCELLED = "CANCELLED"
    EXPIRED = "EXPIRED"


class ApprovalStatus(str, enum.Enum):
    PENDING = "PENDING"
    APPROVED = "APPROVED"
    REJECTED = "REJECTED"


# Estados que ocupan plaza en la sesión y bloquean otra reserva el mismo día
ACTIVE_BOOKING_STATUSES = (BookingStatus.BOOKED, BookingStatus.CHECKIN)

# Estados visibles en los listados de reservas
LISTED_BOOKING_STATUSES = (BookingStatus.BOOKED, BookingStatus.CHECKIN, BookingStatus.COMPLETED)


class GymSession(Base):
    """Franja horaria diaria recurrente con cupo de reservas"""
    __tablename__ = "gym_session"

    id = Column(Integer, primary_key=True, index=True)
    session_name = Column(String(50), nullable=False)
    time_start = Column(Time, nullable=False)
    time_end = Column(Time, nullable=False)
    quota = Column(Integer, nullable=False)

    bookings = relationship("GymBooking", back_populates="session")

    # Campos de auditoría
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    __table_args__ = (
        sa.UniqueConstraint('session_name', 'time_start', name='uq_gym_session_name_start'),
        CheckConstraint('quota >= 1', name='check_gym_session_quota_positive'),
    )


class GymBooking(Base):
    """Reserva de un empleado para una sesión en una fecha concreta"""
    __tablename__ = "gym_booking"

    id = Column(Integer, primary_key=True, index=True)
    employee_id = Column(String(64), nullable=False, index=True)
    # Copia de los datos del directorio en el momento de reservar
    employee_name = Column(String(100), nullable=True)
    department = Column(String(100), nullable=True)
    card_no = Column(String(50), nullable=True)
    gender = Column(String(10), nullable=True)

    session_id = Column(Integer, ForeignKey("gym_session.id", ondelete="SET NULL"), nullable=True, index=True)
    session_name = Column(String(50), nullable=True)
    booking_date = Column(Date, nullable=False, index=True)

    status = Column(Enum(BookingStatus), nullable=False, default=BookingStatus.BOOKED)
    approval_status = Column(Enum(ApprovalStatus), nullable=False, default=ApprovalStatus.PENDING)
    check_in_time = Column(DateTime(timezone=True), nullable=True)
    check_out_time = Column(DateTime(timezone=True), nullable=True)

    session = relationship("GymSession", back_populates="bookings")

    # Campos de auditoría
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    __table_args__ = (
        # Un empleado solo puede tener una reserva activa por día
        Index(
            'uq_gym_booking_active_employee_date',
            'employee_id',
            'booking_date',
            unique=True,
            postgresql_where=text("status IN ('BOOKED', 'CHECKIN')"),
            sqlite_where=text("status IN ('BOOKED', 'CHECKIN')"),
        ),
        Index('ix_gym_booking_session_date', 'session_id', 'booking_date'),
    )


class GymSlotUsage(Base):
    """Plazas ocupadas (BOOKED/CHECKIN) de una sesión en una fecha"""
    __tablename__ = "gym_slot_usage"

    session_id = Column(Integer, ForeignKey("gym_session.id", ondelete="CASCADE"), primary_key=True)
    booking_date = Column(Date, primary_key=True)
    used = Column(Integer, nullable=False, default=0, server_default="0")

    __table_args__ = (
        CheckConstraint('used >= 0', name='check_gym_slot_usage_non_negative'),
    )


class GymOccupancy(Base):
    """Personas dentro del gimnasio (CHECKIN) en una fecha"""
    __tablename__ = "gym_occupancy"

    occupancy_date = Column(Date, primary_key=True)
    inside = Column(Integer, nullable=False, default=0, server_default="0")

    __table_args__ = (
        CheckConstraint('inside >= 0', name='check_gym_occupancy_non_negative'),
    )


class GymRosterEntry(Base):
    """Asignación de comité / vigilancia para un día"""
    __tablename__ = "gym_roster"

    id = Column(Integer, primary_key=True, index=True)
    roster_date = Column(Date, nullable=False, index=True)
    employee_id = Column(String(64), nullable=False)
    session_id = Column(Integer, ForeignKey("gym_session.id", ondelete="SET NULL"), nullable=True)
    role = Column(String(30), nullable=False, default="COMMITTEE")
    notes = Column(Text, nullable=True)

    session = relationship("GymSession")

    created_at = Column(DateTime(timezone=True), server_default=func.now())
