# app/crud/rsvps_crud.py                                                      # Indica la ruta del archivo dentro del proyecto.

# =================================================================================
# 📝 Registro de confirmaciones (RSVP) con contabilidad de cupo.                 # Describe el propósito del módulo.
# - submit(): valida, evita duplicados y escribe RSVP + cupo en UNA transacción.  # Flujo del invitado.
# - check_existing(): consulta de existencia "best-effort" (nunca bloquea la UI).  # Lectura tolerante.
# - delete_rsvp(): borrado de admin que revierte el cupo si asistía.               # Flujo del operador.
# =================================================================================

import re                                                                     # Regex para la forma básica del email.
from typing import List, Optional                                             # Tipado para claridad.

from loguru import logger                                                     # Logger para trazas internas del CRUD.
from sqlalchemy.exc import IntegrityError, SQLAlchemyError                    # Errores de BD (UNIQUE y genéricos).
from sqlalchemy.orm import Session                                            # Sesión de SQLAlchemy.

from app.crud import codes_crud                                               # Contadores de cupo del libro de códigos.
from app.errors import (                                                      # Taxonomía de errores.
    CapacityExceeded,
    DuplicateSubmission,
    InvalidInput,
    NoActiveCode,
    NotFound,
    StoreUnavailable,
    SubmissionFailed,
)
from app.models import ATTENDANCE_FROM_FORM, RSVP, AttendanceEnum            # ORM + mapa de asistencia.
from app.schemas import RSVPForm                                              # Datos crudos del formulario.
from app.session import SessionContext                                        # Contexto explícito de la sesión.

EMAIL_RE = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")                          # Forma local@dominio.tld.
LEADING_INT_RE = re.compile(r"^\s*([+-]?\d+)")                                # Dígitos iniciales del select de plazas.

# ---------------------------------------------------------------------------------
# 🛡️ Helpers internos
# ---------------------------------------------------------------------------------

def _mask_email(email: Optional[str]) -> str:
    """Enmascara un email para no exponer PII en logs. 'test@example.com' -> 'te**@example.com'."""
    if not email: return "<empty>"
    if "@" not in email: return f"{email[:2]}***"
    user, domain = email.split("@", 1)
    return f"{user[:2]}{'*' * max(len(user) - 2, 0)}@{domain}"

def _clean(value: Optional[str]) -> str:
    return (value or "").strip() if isinstance(value, str) else ""

def _parse_guests(raw) -> int:
    """Entero inicial del texto ("2.5" → 2, "3 personas" → 3); sin dígitos o < 1 cuenta como 1 plaza."""
    if raw is None:
        return 1
    match = LEADING_INT_RE.match(str(raw))
    if match is None:
        return 1
    return max(1, int(match.group(1)))

def validate_form(form: RSVPForm) -> AttendanceEnum:
    """Valida campos en orden; lanza InvalidInput con el mensaje del primer fallo."""
    if not _clean(form.name):
        raise InvalidInput("Por favor, introduce tu nombre completo.")
    email = _clean(form.email)
    if not email:
        raise InvalidInput("Por favor, introduce tu email.")
    if not EMAIL_RE.match(email):
        raise InvalidInput("Por favor, introduce un email válido.")
    attendance = ATTENDANCE_FROM_FORM.get(_clean(form.attendance).lower())
    if attendance is None:
        raise InvalidInput("Por favor, indica si asistirás.")
    return attendance

# ---------------------------------------------------------------------------------
# 🔎 Lecturas
# ---------------------------------------------------------------------------------

def check_existing(db: Session, code: Optional[str]) -> bool:
    """True si ya hay una confirmación para ese código. Ante fallo de BD devuelve False."""
    if not isinstance(code, str) or not code.strip():                         # Código vacío: nada que buscar.
        return False
    normalized = code.strip().upper()
    try:
        return (
            db.query(RSVP.id)
            .filter(RSVP.code == normalized)
            .first()
        ) is not None
    except SQLAlchemyError as e:
        logger.error("RSVP/check_existing → error de BD | code={} | err={}", normalized, e)
        return False

def get_by_id(db: Session, rsvp_id: int) -> Optional[RSVP]:
    return db.get(RSVP, rsvp_id)

def list_rsvps(db: Session) -> List[RSVP]:
    """Todas las confirmaciones, más recientes primero. Ante fallo de BD devuelve []."""
    try:
        return db.query(RSVP).order_by(RSVP.created_at.desc(), RSVP.id.desc()).all()
    except SQLAlchemyError as e:
        logger.error("RSVP/list → error de BD | err={}", e)
        return []

# ---------------------------------------------------------------------------------
# ✉️ Envío de la confirmación
# ---------------------------------------------------------------------------------

def submit(db: Session, session: SessionContext, form: RSVPForm) -> RSVP:
    """
    Registra la confirmación del código retenido en `session`.
    Escribe el RSVP y, si asiste, suma las plazas al código en una sola
    transacción. Tras el éxito libera el código y marca la sesión como enviada.
    """
    # 1) Campos del formulario.
    attendance = validate_form(form)

    # 2) Código retenido en la sesión.
    snapshot = session.code
    if snapshot is None:
        raise NoActiveCode()

    # 3) Re-chequeo de duplicados (otra pestaña o UI desfasada).
    if check_existing(db, snapshot.code):
        logger.info("RSVP/submit → DUPLICATE (pre-check) | code={}", snapshot.code)
        raise DuplicateSubmission()

    # 4) Plazas solicitadas vs. cupo de la foto validada.
    guests_count = _parse_guests(form.guests_count)
    if guests_count > snapshot.remaining_guests:
        logger.info(
            "RSVP/submit → CAPACITY | code={} | pedido={} | restante={}",
            snapshot.code, guests_count, snapshot.remaining_guests,
        )
        raise CapacityExceeded.for_remaining(snapshot.remaining_guests)

    # 5) Registro (created_at lo asigna el servidor).
    record = RSVP(
        code=snapshot.code,
        code_id=snapshot.id,
        name=_clean(form.name),
        email=_clean(form.email),
        phone=_clean(form.phone),
        allergies=_clean(form.allergies),
        guests_count=guests_count,
        attendance=attendance,
    )

    # 6) Transacción única: INSERT del RSVP + incremento condicionado del cupo.
    try:
        db.add(record)
        db.flush()                                                            # UNIQUE(code) salta aquí si otra sesión ganó.
        if attendance == AttendanceEnum.will_attend:
            if not codes_crud.reserve_seats(db, snapshot.id, guests_count):
                db.rollback()
                logger.warning(
                    "RSVP/submit → CAPACITY (carrera) | code={} | pedido={}",
                    snapshot.code, guests_count,
                )
                raise CapacityExceeded.for_remaining(snapshot.remaining_guests)
        db.commit()
        db.refresh(record)
    except IntegrityError as e:
        db.rollback()
        logger.info("RSVP/submit → DUPLICATE (unique) | code={} | err={}", snapshot.code, e.orig)
        raise DuplicateSubmission()
    except SQLAlchemyError as e:
        db.rollback()
        logger.error("RSVP/submit → error de BD | code={} | err={}", snapshot.code, e)
        raise SubmissionFailed()

    # 7) Un código por sesión: se libera y se marca el envío.
    session.release()
    session.mark_submitted()

    logger.info(
        "RSVP/submit → OK | rsvp_id={} | code={} | email={} | attendance={} | guests={}",
        record.id, record.code, _mask_email(record.email), record.attendance.value, record.guests_count,
    )
    return record

# ---------------------------------------------------------------------------------
# 🗑️ Borrado (admin)
# ---------------------------------------------------------------------------------

def delete_rsvp(db: Session, rsvp_id: int) -> None:
    """Borra la confirmación y, si asistía, resta sus plazas al código (misma transacción)."""
    try:
        record = get_by_id(db, rsvp_id)
    except SQLAlchemyError as e:
        logger.error("RSVP/delete → error de BD (lectura) | rsvp_id={} | err={}", rsvp_id, e)
        raise StoreUnavailable("Error al eliminar la confirmación.")
    if record is None:
        raise NotFound("RSVP no encontrado.")

    try:
        code_id, seats, attending = record.code_id, record.guests_count, record.is_attending
        db.delete(record)
        if attending and code_id:
            codes_crud.increment_used(db, code_id, -seats)
        db.commit()
    except SQLAlchemyError as e:
        db.rollback()
        logger.error("RSVP/delete → error de BD | rsvp_id={} | err={}", rsvp_id, e)
        raise StoreUnavailable("Error al eliminar la confirmación.")

    logger.info("RSVP/delete → OK | rsvp_id={} | code_id={} | liberadas={}", rsvp_id, code_id, seats if attending else 0)
