"""
Utilidades para el manejo de zonas horarias en el sistema.

Las reservas se hacen por fecha local del gimnasio; los instantes de
check-in / check-out se guardan en UTC.
"""
from datetime import date, datetime, timezone
from typing import Optional
import pytz


def get_current_time_in_gym_timezone(gym_timezone: str) -> datetime:
    """
    Obtiene la hora actual en la zona horaria del gimnasio.

    Args:
        gym_timezone: Zona horaria del gimnasio

    Returns:
        Datetime aware representando la hora actual en la zona horaria del gimnasio
    """
    utc_now = datetime.now(timezone.utc)
    tz = pytz.timezone(gym_timezone)
    return utc_now.astimezone(tz)


def gym_today(gym_timezone: str) -> date:
    """Fecha de hoy en la zona horaria del gimnasio."""
    return get_current_time_in_gym_timezone(gym_timezone).date()


def convert_utc_to_local(utc_dt: datetime, gym_timezone: str) -> datetime:
    """
    Convierte un datetime UTC a hora local del gimnasio.

    Args:
        utc_dt: Datetime aware en UTC
        gym_timezone: Zona horaria del gimnasio

    Returns:
        Datetime aware en la zona horaria del gimnasio
    """
    if utc_dt.tzinfo is None:
        # Si es naive, asumimos que es UTC (SQLite no conserva el offset)
        utc_dt = utc_dt.replace(tzinfo=timezone.utc)

    tz = pytz.timezone(gym_timezone)
    return utc_dt.astimezone(tz)


def format_local_hhmm(utc_dt: Optional[datetime], gym_timezone: str) -> Optional[str]:
    """Hora local HH:MM de un instante UTC, o None."""
    if utc_dt is None:
        return None
    return convert_utc_to_local(utc_dt, gym_timezone).strftime("%H:%M")
