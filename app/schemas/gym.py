from typing import Optional, List
from pydantic import BaseModel, Field, field_validator, field_serializer, model_validator
from datetime import datetime, time, date

from app.models.gym import BookingStatus, ApprovalStatus


def parse_hhmm(value):
    """Convertir strings de tiempo en formato HH:MM a objetos time"""
    if value is None or isinstance(value, time):
        return value
    if isinstance(value, str):
        try:
            hour, minute = map(int, value.strip().split(':')[:2])
            return time(hour=hour, minute=minute)
        except (ValueError, TypeError):
            raise ValueError('El formato de tiempo debe ser HH:MM (ejemplo: 09:30)')
    return value


def format_hhmm(value: Optional[time]) -> Optional[str]:
    return value.strftime("%H:%M") if value is not None else None


# GymSession schemas
class GymSessionBase(BaseModel):
    session_name: str = Field(..., min_length=1, max_length=50)
    time_start: time
    time_end: time
    quota: Optional[int] = Field(None, ge=1)

    @field_validator('session_name')
    @classmethod
    def strip_name(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError('session_name no puede estar vacío')
        return value

    @field_validator('time_start', 'time_end', mode='before')
    @classmethod
    def parse_time_string(cls, value):
        return parse_hhmm(value)

    @model_validator(mode='after')
    def check_times(self):
        if self.time_end <= self.time_start:
            raise ValueError('time_end must be after time_start')
        return self


class GymSessionCreate(GymSessionBase):
    pass


class GymSessionUpdate(BaseModel):
    session_name: Optional[str] = Field(None, min_length=1, max_length=50)
    time_start: Optional[time] = None
    time_end: Optional[time] = None
    quota: Optional[int] = Field(None, ge=1)

    @field_validator('time_start', 'time_end', mode='before')
    @classmethod
    def parse_time_string(cls, value):
        return parse_hhmm(value)

    @model_validator(mode='after')
    def check_updated_times(self):
        if self.time_start and self.time_end and self.time_end <= self.time_start:
            raise ValueError('time_end must be after time_start')
        return self


class GymSession(BaseModel):
    id: int
    session_name: str
    time_start: time
    time_end: time
    quota: int

    model_config = {"from_attributes": True}

    @field_serializer('time_start', 'time_end')
    def serialize_time(self, value: time) -> str:
        return format_hhmm(value)


class GymSessionAvailability(GymSession):
    booked_count: int
    available: int


# Booking schemas
class GymBookingCreate(BaseModel):
    # Si no viene en el cuerpo se toma de la cabecera X-Employee-Id
    employee_id: Optional[str] = None
    session_id: int
    booking_date: date

    @field_validator('employee_id', mode='before')
    @classmethod
    def coerce_employee_id(cls, value):
        if value is None:
            return None
        value = str(value).strip()
        return value or None


class GymBookingStatusUpdate(BaseModel):
    booking_id: int
    status: BookingStatus

    @field_validator('status', mode='before')
    @classmethod
    def upper_status(cls, value):
        return value.strip().upper() if isinstance(value, str) else value


class GymBookingApprovalUpdate(BaseModel):
    booking_id: int
    approval_status: ApprovalStatus

    @field_validator('approval_status', mode='before')
    @classmethod
    def upper_approval(cls, value):
        return value.strip().upper() if isinstance(value, str) else value


class GymBookingCreated(BaseModel):
    ok: bool = True
    booking_id: int
    session_id: int


class GymBooking(BaseModel):
    id: int
    employee_id: str
    employee_name: Optional[str] = None
    department: Optional[str] = None
    card_no: Optional[str] = None
    gender: Optional[str] = None
    session_id: Optional[int] = None
    session_name: Optional[str] = None
    time_start: Optional[time] = None
    time_end: Optional[time] = None
    booking_date: date
    status: BookingStatus
    approval_status: ApprovalStatus
    check_in_time: Optional[datetime] = None
    check_out_time: Optional[datetime] = None
    created_at: Optional[datetime] = None

    model_config = {"from_attributes": True}

    @field_serializer('time_start', 'time_end')
    def serialize_time(self, value: Optional[time]) -> Optional[str]:
        return format_hhmm(value)


# Weekly calendar
class RosterEntryBase(BaseModel):
    roster_date: date
    employee_id: str = Field(..., min_length=1, max_length=64)
    session_id: Optional[int] = None
    role: str = Field("COMMITTEE", min_length=1, max_length=30)
    notes: Optional[str] = None

    @field_validator('role', mode='before')
    @classmethod
    def upper_role(cls, value):
        return value.strip().upper() if isinstance(value, str) else value


class RosterEntryCreate(RosterEntryBase):
    pass


class RosterEntry(RosterEntryBase):
    id: int
    employee_name: Optional[str] = None

    model_config = {"from_attributes": True}


class CalendarSlot(BaseModel):
    session_id: Optional[int] = None
    session_name: Optional[str] = None
    time_start: Optional[str] = None
    time_end: Optional[str] = None
    quota: Optional[int] = None
    booked: int = 0
    available: Optional[int] = None
    bookings: List[GymBooking] = []


class CalendarDay(BaseModel):
    date: date
    total_booked: int = 0
    slots: List[CalendarSlot] = []
    roster: List[RosterEntry] = []


class WeeklyCalendar(BaseModel):
    week_start: date
    week_end: date
    days: List[CalendarDay]


# Live status
class LivePerson(BaseModel):
    booking_id: int
    employee_id: str
    name: Optional[str] = None
    department: Optional[str] = None
    gender: Optional[str] = None
    status: str
    time_in: Optional[str] = None
    time_out: Optional[str] = None
    schedule: Optional[str] = None
    access_required: bool = True
    access_granted: bool = True
    access_indicator: Optional[dict] = None


class LiveStatus(BaseModel):
    date: date
    count: int
    max_occupancy: int
    available: int
    people: List[LivePerson]


class AccessEvent(BaseModel):
    booking_id: int
    employee_id: str
    name: Optional[str] = None
    event: str
    timestamp: datetime


# Directory
class EmployeeCore(BaseModel):
    employee_id: str
    name: str
    department: Optional[str] = None
    card_no: Optional[str] = None
    gender: Optional[str] = None

    model_config = {"from_attributes": True}


# Respuestas {"ok": true, ...}
class OkResponse(BaseModel):
    ok: bool = True


class GymSessionListResponse(OkResponse):
    sessions: List[GymSession]


class GymSessionResponse(OkResponse):
    session: GymSession


class GymAvailabilityResponse(OkResponse):
    date: date
    sessions: List[GymSessionAvailability]


class GymBookingListResponse(OkResponse):
    bookings: List[GymBooking]


class GymBookingResponse(OkResponse):
    booking: GymBooking


class WeeklyCalendarResponse(OkResponse, WeeklyCalendar):
    pass


class LiveStatusResponse(OkResponse, LiveStatus):
    pass


class AccessEventListResponse(OkResponse):
    events: List[AccessEvent]


class EmployeeCoreListResponse(OkResponse):
    employees: List[EmployeeCore]


class EmployeeIdListResponse(OkResponse):
    employees: List[str]


class RosterListResponse(OkResponse):
    roster: List[RosterEntry]


class RosterEntryResponse(OkResponse):
    entry: RosterEntry
