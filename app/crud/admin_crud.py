# app/crud/admin_crud.py                                                      # Indica la ruta del archivo dentro del proyecto.

# =================================================================================
# 👑 Operaciones del panel: CRUD de códigos y estadísticas agregadas.            # Describe el propósito del módulo.
# - create_code() normaliza o genera un código único (A-Z0-9).                    # Alta con unicidad.
# - update_code() solo toca assigned_to / max_guests / is_active.                 # Edición restringida.
# - get_statistics() recorre ambas tablas completas (escala pequeña).             # Agregados bajo demanda.
# - reconcile_used() recalcula used_guests desde los RSVPs que asisten.           # Repara deriva del contador.
# =================================================================================

from datetime import datetime                                                 # Sello updated_at.
import secrets                                                                # Aleatoriedad segura para códigos.
import string                                                                 # Alfabeto de generación.
from typing import Dict, List, Mapping, Optional                              # Tipado para claridad.

from loguru import logger                                                     # Logger para trazas internas.
from sqlalchemy import func                                                   # SUM para reconciliar.
from sqlalchemy.exc import IntegrityError, SQLAlchemyError                    # Errores de BD.
from sqlalchemy.orm import Session                                            # Sesión de SQLAlchemy.

from app.crud import codes_crud, rsvps_crud                                   # Libro de códigos + registro RSVP.
from app.errors import CodeAlreadyExists, InvalidInput, NotFound, StoreUnavailable  # Errores del operador.
from app.models import RSVP, AttendanceEnum, InvitationCode                   # Modelos ORM.
from app.schemas import CodeStats, RSVPStats, Statistics                      # Schemas de estadísticas.

CODE_ALPHABET = string.ascii_uppercase + string.digits                        # A-Z y 0-9.
ALLOWED_UPDATE_FIELDS = ("assigned_to", "max_guests", "is_active")            # Campos editables.
NO_CODE_LABEL = "Sin código"                                                  # Agrupador para RSVPs sin código.

# ---------------------------------------------------------------------------------
# 🆕 Alta de códigos
# ---------------------------------------------------------------------------------

def generate_code(length: int = 8) -> str:
    """Código aleatorio de `length` caracteres A-Z0-9."""
    return "".join(secrets.choice(CODE_ALPHABET) for _ in range(length))

def _generate_unique_code(db: Session, length: int = 8) -> str:
    while True:                                                               # Reintenta hasta no colisionar.
        candidate = generate_code(length)
        if codes_crud.get_by_code(db, candidate) is None:
            return candidate

def create_code(
    db: Session,
    *,
    code: Optional[str] = None,
    assigned_to: str = "",
    max_guests: int = 1,
    is_active: bool = True,
) -> InvitationCode:
    """
    Crea un código. Si `code` viene vacío se genera uno único.
    Un código elegido por el operador se normaliza y se comprueba antes de insertar.
    """
    try:
        if code is not None and code.strip():
            normalized = codes_crud.normalize_code(code)
            if codes_crud.get_by_code(db, normalized) is not None:
                raise CodeAlreadyExists()
        else:
            normalized = _generate_unique_code(db)

        obj = InvitationCode(
            code=normalized,
            assigned_to=(assigned_to or "").strip(),
            max_guests=max(1, int(max_guests or 1)),
            used_guests=0,
            is_active=bool(is_active),
        )
        db.add(obj)
        db.commit()
        db.refresh(obj)
    except IntegrityError:                                                    # Otra sesión insertó el mismo código.
        db.rollback()
        raise CodeAlreadyExists()
    except SQLAlchemyError as e:
        db.rollback()
        logger.error("ADMIN/create_code → error de BD | err={}", e)
        raise StoreUnavailable("Error al crear el código de invitación.")

    logger.info("ADMIN/create_code → OK | id={} | code={} | max={}", obj.id, obj.code, obj.max_guests)
    return obj

# ---------------------------------------------------------------------------------
# ✏️ Edición / activación / borrado
# ---------------------------------------------------------------------------------

def update_code(db: Session, code_id: int, changes: Mapping[str, object]) -> InvitationCode:
    """Aplica solo los campos permitidos; InvalidInput si no queda ninguno."""
    data = {k: v for k, v in (changes or {}).items() if k in ALLOWED_UPDATE_FIELDS and v is not None}
    if not data:
        raise InvalidInput("No hay campos válidos para actualizar.")

    try:
        obj = codes_crud.get_by_id(db, code_id)
        if obj is None:
            raise NotFound("Código de invitación no encontrado.")
        new_max = max(1, int(data["max_guests"])) if "max_guests" in data else obj.max_guests
        if "max_guests" in data and new_max < (obj.used_guests or 0):    # used_guests <= max_guests siempre.
            raise InvalidInput(
                f"El cupo no puede ser menor que las plazas ya confirmadas ({obj.used_guests})."
            )
        if "assigned_to" in data:
            obj.assigned_to = str(data["assigned_to"]).strip()
        if "max_guests" in data:
            obj.max_guests = new_max
        if "is_active" in data:
            obj.is_active = bool(data["is_active"])
        obj.updated_at = datetime.utcnow()
        db.commit()
        db.refresh(obj)
    except SQLAlchemyError as e:
        db.rollback()
        logger.error("ADMIN/update_code → error de BD | id={} | err={}", code_id, e)
        raise StoreUnavailable("Error al actualizar el código de invitación.")

    logger.info("ADMIN/update_code → OK | id={} | campos={}", code_id, sorted(data))
    return obj

def toggle_code(db: Session, code_id: int, is_active: bool) -> InvitationCode:
    return update_code(db, code_id, {"is_active": is_active})

def delete_code(db: Session, code_id: int) -> None:
    """Borra el código. Los RSVPs que lo referencian se conservan."""
    try:
        obj = codes_crud.get_by_id(db, code_id)
        if obj is None:
            raise NotFound("Código de invitación no encontrado.")
        db.delete(obj)
        db.commit()
    except SQLAlchemyError as e:
        db.rollback()
        logger.error("ADMIN/delete_code → error de BD | id={} | err={}", code_id, e)
        raise StoreUnavailable("Error al eliminar el código de invitación.")
    logger.info("ADMIN/delete_code → OK | id={}", code_id)

def list_codes(db: Session) -> List[InvitationCode]:
    """Todos los códigos. Ante fallo de BD devuelve []."""
    try:
        return db.query(InvitationCode).order_by(InvitationCode.id).all()
    except SQLAlchemyError as e:
        logger.error("ADMIN/list_codes → error de BD | err={}", e)
        return []

# ---------------------------------------------------------------------------------
# 🧮 Reconciliación del contador
# ---------------------------------------------------------------------------------

def reconcile_used(db: Session, code_id: int) -> InvitationCode:
    """Recalcula used_guests como la suma de plazas de los RSVPs que asisten."""
    try:
        obj = codes_crud.get_by_id(db, code_id)
        if obj is None:
            raise NotFound("Código de invitación no encontrado.")
        total = (
            db.query(func.coalesce(func.sum(RSVP.guests_count), 0))
            .filter(RSVP.code_id == code_id, RSVP.attendance == AttendanceEnum.will_attend)
            .scalar()
        )
        before = obj.used_guests
        obj.used_guests = int(total or 0)
        obj.updated_at = datetime.utcnow()
        db.commit()
        db.refresh(obj)
    except SQLAlchemyError as e:
        db.rollback()
        logger.error("ADMIN/reconcile → error de BD | id={} | err={}", code_id, e)
        raise StoreUnavailable("Error al recalcular el cupo del código.")

    if before != obj.used_guests:
        logger.warning("ADMIN/reconcile → deriva corregida | id={} | {} → {}", code_id, before, obj.used_guests)
    return obj

# ---------------------------------------------------------------------------------
# 📊 Estadísticas (recorrido completo de ambas tablas)
# ---------------------------------------------------------------------------------

def get_statistics(db: Session) -> Statistics:
    """Agregados para el panel, calculados bajo demanda."""
    codes = list_codes(db)
    rsvps = rsvps_crud.list_rsvps(db)

    active = sum(1 for c in codes if c.is_active)
    max_total = sum(c.max_guests or 0 for c in codes)
    used_total = sum(c.used_guests or 0 for c in codes)

    attending = [r for r in rsvps if r.attendance == AttendanceEnum.will_attend]
    not_attending = [r for r in rsvps if r.attendance == AttendanceEnum.will_not_attend]

    guests_per_code: Dict[str, int] = {}
    for r in attending:
        key = r.code or NO_CODE_LABEL
        guests_per_code[key] = guests_per_code.get(key, 0) + (r.guests_count or 1)

    return Statistics(
        codes=CodeStats(
            total=len(codes),
            active=active,
            inactive=len(codes) - active,
            max_guests=max_total,
            used_guests=used_total,
            remaining_capacity=max_total - used_total,
        ),
        rsvps=RSVPStats(
            total=len(rsvps),
            attending=len(attending),
            not_attending=len(not_attending),
            total_confirmed_guests=sum(r.guests_count or 1 for r in attending),
            total_not_attending_guests=sum(r.guests_count or 1 for r in not_attending),
        ),
        guests_per_code=guests_per_code,
    )
