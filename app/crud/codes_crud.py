# app/crud/codes_crud.py                                                      # Indica la ruta del archivo dentro del proyecto.

# =================================================================================
# 🎟️ Libro de códigos de invitación (validación y contadores de cupo).            # Describe el propósito del módulo.
# - validate() normaliza y comprueba existencia/activación/cupo según el modo.     # Regla principal.
# - increment_used() ajusta used_guests con un UPDATE atómico (sin leer antes).    # Contador atómico.
# - reserve_seats() es el incremento condicionado al cupo que usa el RSVP.         # Cierra la carrera de sobre-cupo.
# =================================================================================

from typing import Optional                                                   # Tipado opcional para claridad.

from loguru import logger                                                     # Logger para trazas internas del CRUD.
from sqlalchemy import update                                                 # UPDATE SQL para incrementos atómicos.
from sqlalchemy.exc import SQLAlchemyError                                    # Fallos de la BD (red, bloqueo, etc.).
from sqlalchemy.orm import Session                                            # Sesión de SQLAlchemy para operaciones DB.

from app.errors import EmptyInput, Exhausted, Inactive, NotFound, StoreUnavailable  # Errores de validación.
from app.models import InvitationCode                                         # Modelo ORM de códigos.
from app.schemas import CodeSnapshot, ValidationMode                          # Foto inmutable + modo.

# ---------------------------------------------------------------------------------
# 🧼 Normalización
# ---------------------------------------------------------------------------------

def normalize_code(raw: Optional[str]) -> str:
    """Recorta espacios y pasa a MAYÚSCULAS; lanza EmptyInput si queda vacío."""  # Docstring del normalizador.
    if not isinstance(raw, str) or not raw.strip():                           # None, no-texto o solo espacios...
        raise EmptyInput()                                                    # ...se rechaza sin tocar la BD.
    return raw.strip().upper()                                                # Código canónico.

def to_snapshot(row: InvitationCode) -> CodeSnapshot:
    """Convierte la fila ORM en la foto inmutable que viaja a la sesión."""
    return CodeSnapshot.model_validate(row)

# ---------------------------------------------------------------------------------
# 🔎 Helpers de búsqueda
# ---------------------------------------------------------------------------------

def get_by_code(db: Session, code: str) -> Optional[InvitationCode]:
    """Devuelve el código por coincidencia exacta (ya normalizado), o None."""  # Docstring de la función.
    return (                                                                  # Inicia la consulta.
        db.query(InvitationCode)                                              # Query sobre 'invitation_codes'.
        .filter(InvitationCode.code == code)                                  # Igualdad exacta.
        .first()                                                              # LIMIT 1.
    )

def get_by_id(db: Session, code_id: int) -> Optional[InvitationCode]:
    """Devuelve el código por id, o None si no existe."""
    return db.get(InvitationCode, code_id)

# ---------------------------------------------------------------------------------
# ✅ Validación
# ---------------------------------------------------------------------------------

def validate(db: Session, code: Optional[str], mode: ValidationMode = ValidationMode.rsvp) -> CodeSnapshot:
    """
    Valida un código contra la BD y devuelve su foto inmutable.
    - access: un código agotado sigue dando acceso (para quien ya confirmó).
    - rsvp: además exige cupo restante (> 0).
    Solo lectura.
    """
    normalized = normalize_code(code)                                         # EmptyInput antes de consultar.

    try:
        row = get_by_code(db, normalized)                                     # Búsqueda exacta.
    except SQLAlchemyError as e:                                              # Fallo de la BD...
        logger.error("CODES/validate → error de BD | code={} | err={}", normalized, e)
        raise StoreUnavailable("Error al validar el código. Por favor, inténtalo de nuevo.")

    if row is None:                                                           # No existe.
        logger.info("CODES/validate → NOT_FOUND | code={}", normalized)
        raise NotFound()
    if not row.is_active:                                                     # Inactivo: se rechaza en ambos modos.
        logger.info("CODES/validate → INACTIVE | code={}", normalized)
        raise Inactive()

    snapshot = to_snapshot(row)                                               # Foto con remaining calculado.
    if mode == ValidationMode.rsvp and snapshot.remaining_guests <= 0:        # Sin cupo para confirmar.
        logger.info("CODES/validate → EXHAUSTED | code={}", normalized)
        raise Exhausted()

    logger.debug(
        "CODES/validate → OK | code={} | mode={} | remaining={}",
        snapshot.code, mode.value, snapshot.remaining_guests,
    )
    return snapshot

# ---------------------------------------------------------------------------------
# 🔢 Contadores de cupo (participan en la transacción del llamador)
# ---------------------------------------------------------------------------------

def increment_used(db: Session, code_id: int, delta: int) -> int:
    """
    Suma `delta` (con signo) a used_guests con UPDATE atómico. No acota el valor:
    altas y bajas deben ir emparejadas. No hace commit. Devuelve filas afectadas.
    """
    result = db.execute(
        update(InvitationCode)
        .where(InvitationCode.id == code_id)
        .values(used_guests=InvitationCode.used_guests + delta)
        .execution_options(synchronize_session=False)
    )
    return result.rowcount

def reserve_seats(db: Session, code_id: int, seats: int) -> bool:
    """
    Incremento condicionado: solo suma si used_guests + seats <= max_guests.
    Devuelve False si otra sesión ya consumió el cupo (o el código desapareció).
    """
    result = db.execute(
        update(InvitationCode)
        .where(InvitationCode.id == code_id)
        .where(InvitationCode.used_guests + seats <= InvitationCode.max_guests)
        .values(used_guests=InvitationCode.used_guests + seats)
        .execution_options(synchronize_session=False)
    )
    return result.rowcount == 1
