from typing import Optional, List
from pydantic import BaseModel, Field, field_validator, model_validator
from datetime import datetime
import re

from app.models.settings import DatabaseType


# Controller settings
class GymControllerSettingsBase(BaseModel):
    booking_min_days_ahead: int = Field(..., ge=0, le=30)
    booking_max_days_ahead: int = Field(..., ge=0, le=30)
    max_occupancy: int = Field(..., ge=1)
    enable_manager_all_session_access: bool = False

    @model_validator(mode='after')
    def check_window(self):
        if self.booking_min_days_ahead > self.booking_max_days_ahead:
            raise ValueError('booking_min_days_ahead must be <= booking_max_days_ahead')
        return self


class GymControllerSettingsUpdate(BaseModel):
    booking_min_days_ahead: Optional[int] = Field(None, ge=0, le=30)
    booking_max_days_ahead: Optional[int] = Field(None, ge=0, le=30)
    max_occupancy: Optional[int] = Field(None, ge=1)
    enable_manager_all_session_access: Optional[bool] = None


class GymControllerSettings(GymControllerSettingsBase):
    updated_at: Optional[datetime] = None

    model_config = {"from_attributes": True}


# Support contact
_PHONE_CHARS = re.compile(r"[^\d+]")


class SupportContact(BaseModel):
    name: str
    phone: str

    @field_validator('name')
    @classmethod
    def check_name(cls, value: str) -> str:
        value = value.strip()
        if not value or len(value) > 100:
            raise ValueError('Invalid contact name')
        return value

    @field_validator('phone', mode='before')
    @classmethod
    def clean_phone(cls, value):
        # Solo se conservan dígitos y un '+' inicial
        cleaned = _PHONE_CHARS.sub('', str(value or ''))
        if cleaned.startswith('+'):
            cleaned = '+' + cleaned[1:].replace('+', '')
        else:
            cleaned = cleaned.replace('+', '')
        if not re.fullmatch(r"\+?\d{6,20}", cleaned) or len(cleaned) > 20:
            raise ValueError('Invalid contact phone')
        return cleaned


# Database connections
class DatabaseConnectionBase(BaseModel):
    display_name: str = Field(..., min_length=1, max_length=100)
    database_type: DatabaseType
    host: Optional[str] = Field(None, max_length=255)
    port: Optional[int] = Field(None, ge=1, le=65535)
    database_name: str = Field(..., min_length=1, max_length=255)
    username: Optional[str] = Field(None, max_length=100)
    is_active: bool = True

    @field_validator('database_type', mode='before')
    @classmethod
    def lower_type(cls, value):
        return value.strip().lower() if isinstance(value, str) else value


class DatabaseConnectionCreate(DatabaseConnectionBase):
    password: Optional[str] = None

    @model_validator(mode='after')
    def check_host(self):
        if self.database_type != DatabaseType.SQLITE and not self.host:
            raise ValueError('host is required for non-sqlite connections')
        return self


class DatabaseConnectionUpdate(BaseModel):
    display_name: Optional[str] = Field(None, min_length=1, max_length=100)
    database_type: Optional[DatabaseType] = None
    host: Optional[str] = Field(None, max_length=255)
    port: Optional[int] = Field(None, ge=1, le=65535)
    database_name: Optional[str] = Field(None, min_length=1, max_length=255)
    username: Optional[str] = Field(None, max_length=100)
    password: Optional[str] = None
    is_active: Optional[bool] = None

    @field_validator('database_type', mode='before')
    @classmethod
    def lower_type(cls, value):
        return value.strip().lower() if isinstance(value, str) else value


class DatabaseConnection(DatabaseConnectionBase):
    """La contraseña nunca se devuelve"""
    id: int
    connection_status: str
    last_tested_at: Optional[datetime] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    model_config = {"from_attributes": True}


class DatabaseConnectionTestResult(BaseModel):
    ok: bool
    connection_status: str
    last_tested_at: datetime
    error: Optional[str] = None


class GymControllerSettingsResponse(BaseModel):
    ok: bool = True
    settings: GymControllerSettings


class SupportContactResponse(SupportContact):
    ok: bool = True


class DatabaseConnectionListResponse(BaseModel):
    ok: bool = True
    connections: List[DatabaseConnection]


class DatabaseConnectionResponse(BaseModel):
    ok: bool = True
    connection: DatabaseConnection
