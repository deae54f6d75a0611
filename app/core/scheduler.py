from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.cron import CronTrigger
from sqlalchemy.exc import OperationalError, DBAPIError
from functools import wraps
import logging
import time

import pytz

from app.core.config import get_settings
from app.db.session import SessionLocal
from app.services.booking import booking_service

logger = logging.getLogger(__name__)

# Variable global para mantener referencia al scheduler
_scheduler = None


def retry_on_db_error(max_retries=3, delay=2):
    """
    Decorator para reintentar operaciones en caso de errores de BD.

    Útil para scheduled tasks que pueden fallar por conexiones cerradas
    o timeouts transitorios.

    Args:
        max_retries: Número máximo de reintentos (default: 3)
        delay: Tiempo base de espera entre reintentos en segundos (default: 2)
               Se aplica backoff lineal: delay * (attempt + 1)
    """
    def decorator(func):
        @wraps(func)
        def wrapper(*args, **kwargs):
            for attempt in range(max_retries):
                try:
                    return func(*args, **kwargs)
                except (OperationalError, DBAPIError) as e:
                    if attempt < max_retries - 1:
                        wait_time = delay * (attempt + 1)
                        logger.warning(
                            f"DB error in {func.__name__}, retry {attempt + 1}/{max_retries} "
                            f"after {wait_time}s: {str(e)}"
                        )
                        time.sleep(wait_time)
                    else:
                        logger.error(
                            f"Max retries ({max_retries}) reached for {func.__name__}: {str(e)}",
                            exc_info=True
                        )
                        raise
        return wrapper
    return decorator


@retry_on_db_error(max_retries=3, delay=2)
def expire_past_bookings():
    """
    Marca como EXPIRED las reservas BOOKED de días anteriores y libera sus plazas.
    """
    logger.info("Running scheduled task: expire_past_bookings")
    db = SessionLocal()
    try:
        count = booking_service.expire_past_bookings(db)
        logger.info(f"Expired {count} past bookings")
    finally:
        db.close()


def init_scheduler():
    """
    Inicializa el programador de tareas en la zona horaria del gimnasio
    """
    global _scheduler
    settings = get_settings()
    gym_tz = pytz.timezone(settings.GYM_TIMEZONE)

    logger.info(f"Initializing scheduler with timezone {settings.GYM_TIMEZONE}")
    _scheduler = AsyncIOScheduler(timezone=gym_tz)

    # Expirar reservas no usadas justo después de medianoche local
    _scheduler.add_job(
        expire_past_bookings,
        trigger=CronTrigger(hour=settings.EXPIRE_BOOKINGS_HOUR, minute=5, timezone=gym_tz),
        id='expire_past_bookings',
        replace_existing=True
    )

    _scheduler.start()
    logger.info("Scheduler started - includes booking expiration task")
    return _scheduler
