# app/errors.py

# =================================================================================
# 🚨 Taxonomía de errores del sistema de invitaciones
# ---------------------------------------------------------------------------------
# - Cada error lleva un mensaje listo para mostrar al invitado/operador.
# - `status_code` lo usa el handler HTTP de app/main.py.
# - `from_payload` reconstruye el error tipado en el cliente (ApiBackend).
# =================================================================================

from typing import Dict, Optional, Type


class RSVPError(Exception):
    """Error base: mensaje visible + código HTTP asociado."""

    status_code = 400
    default_message = "Ha ocurrido un error. Por favor, inténtalo de nuevo."

    def __init__(self, message: Optional[str] = None):
        self.message = message or self.default_message
        super().__init__(self.message)

    def to_payload(self) -> Dict[str, str]:
        return {"error": type(self).__name__, "detail": self.message}


# --- Validación del código ---------------------------------------------------------

class EmptyInput(RSVPError):
    status_code = 400
    default_message = "Por favor, introduce un código de invitación válido."


class NotFound(RSVPError):
    status_code = 404
    default_message = "El código de invitación no es válido."


class Inactive(RSVPError):
    status_code = 403
    default_message = "Este código de invitación ya no está activo."


class Exhausted(RSVPError):
    status_code = 409
    default_message = "Este código de invitación ya ha alcanzado el máximo de invitados permitidos."


# --- Envío de la confirmación -------------------------------------------------------

class InvalidInput(RSVPError):
    status_code = 422
    default_message = "Revisa los datos del formulario."


class NoActiveCode(RSVPError):
    status_code = 400
    default_message = "No hay un código de invitación válido. Por favor, introduce tu código primero."


class DuplicateSubmission(RSVPError):
    status_code = 409
    default_message = "Ya has enviado tu confirmación anteriormente. No puedes enviar otra vez."


class CapacityExceeded(RSVPError):
    status_code = 409
    default_message = "El número de invitados excede la capacidad permitida."

    @classmethod
    def for_remaining(cls, remaining: int) -> "CapacityExceeded":
        return cls(f"El número de invitados excede la capacidad permitida. Máximo permitido: {remaining}")


class SubmissionFailed(RSVPError):
    status_code = 500
    default_message = "Error al enviar tu confirmación. Por favor, inténtalo de nuevo."


class StoreUnavailable(RSVPError):
    status_code = 503
    default_message = "El servicio no está disponible en este momento. Inténtalo más tarde."


# --- Operador / infraestructura ------------------------------------------------------

class CodeAlreadyExists(RSVPError):
    status_code = 409
    default_message = "Este código ya existe. Por favor, usa otro código."


class RateLimited(RSVPError):
    status_code = 429
    default_message = "Demasiados intentos. Por favor, espera antes de intentar de nuevo."


_REGISTRY: Dict[str, Type[RSVPError]] = {
    cls.__name__: cls
    for cls in (
        EmptyInput, NotFound, Inactive, Exhausted, InvalidInput, NoActiveCode,
        DuplicateSubmission, CapacityExceeded, SubmissionFailed, StoreUnavailable,
        CodeAlreadyExists, RateLimited,
    )
}


def from_payload(name: Optional[str], detail: Optional[str]) -> RSVPError:
    """Reconstruye el error tipado desde el cuerpo JSON {error, detail} de la API."""
    cls = _REGISTRY.get(name or "", SubmissionFailed)
    return cls(detail or None)
