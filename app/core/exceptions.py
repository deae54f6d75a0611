"""
Excepciones de dominio del sistema de reservas.

Los servicios lanzan estas excepciones; los manejadores registrados en
app.main las convierten en el sobre {"ok": false, "error": ..., "code": ...}.
"""

from typing import Any, Dict, Optional


class GymError(Exception):
    """Base de todos los errores de dominio."""
    code = "ERROR"
    status_code = 400

    def __init__(self, message: str, **extra: Any):
        super().__init__(message)
        self.message = message
        self.extra: Dict[str, Any] = extra

    def to_payload(self) -> Dict[str, Any]:
        payload = {"ok": False, "error": self.message, "code": self.code}
        payload.update(self.extra)
        return payload


class NotFoundError(GymError):
    """Raised when a resource is not found."""
    code = "NOT_FOUND"
    status_code = 404


class ValidationError(GymError):
    """Raised when validation fails."""
    code = "VALIDATION_ERROR"
    status_code = 400


class ConflictError(GymError):
    code = "CONFLICT"
    status_code = 409


class BookingWindowError(GymError):
    code = "OUTSIDE_BOOKING_WINDOW"
    status_code = 400


class DuplicateBookingError(GymError):
    code = "ALREADY_REGISTERED"
    status_code = 409


class SessionFullError(GymError):
    code = "SESSION_FULL"
    status_code = 409


class InvalidTransitionError(GymError):
    code = "INVALID_TRANSITION"
    status_code = 409


class BookingNotTodayError(GymError):
    code = "BOOKING_NOT_TODAY"
    status_code = 409


class GymFullError(GymError):
    """
    Rechazo de check-in por aforo completo.

    El campo "error" del sobre es el centinela literal GYM_FULL para que los
    clientes puedan distinguirlo de cualquier otro fallo.
    """
    code = "GYM_FULL"
    status_code = 409

    def __init__(self, max_occupancy: int, message: Optional[str] = None):
        super().__init__(
            message or f"Maximum capacity of {max_occupancy} reached",
            max_occupancy=max_occupancy,
        )
        self.max_occupancy = max_occupancy

    def to_payload(self) -> Dict[str, Any]:
        payload = super().to_payload()
        payload["message"] = self.message
        payload["error"] = self.code
        return payload
