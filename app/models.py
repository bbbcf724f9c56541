# app/models.py  # Define la ruta y nombre del archivo del módulo de modelos.

# =================================================================================
# 🏛️ DEFINICIÓN DE LOS MODELOS DE LA BASE DE DATOS (ORM)
# ---------------------------------------------------------------------------------
# Tablas del sistema de invitaciones:
# - invitation_codes: pool de códigos con cupo (max_guests / used_guests).
# - rsvps: una confirmación por código (UNIQUE en `code`).
# Restricciones CHECK para mantener cupos coherentes a nivel de BD.
# =================================================================================

# 🐍 Importaciones de Python y SQLAlchemy
# ---------------------------------------------------------------------------------
from datetime import datetime  # Importa datetime para sellos de tiempo.
import enum  # Importa enum para crear enumeraciones tipadas.

from sqlalchemy import (  # Importa utilidades de SQLAlchemy para definir tablas y columnas.
    Column,  # Clase para declarar columnas.
    Integer,  # Tipo entero para IDs y contadores.
    String,  # Tipo texto para nombres y códigos.
    Boolean,  # Tipo booleano para flags.
    DateTime,  # Tipo fecha/hora para auditoría.
    func,  # Funciones SQL (ej. now()).
    Enum as SQLAlchemyEnum,  # Enum de SQLAlchemy para mapear enumeraciones.
    CheckConstraint,  # Restricción CHECK a nivel de tabla.
    UniqueConstraint,  # Restricción UNIQUE con nombre estable.
)

from app.db import Base  # Importa la clase Base declarativa del proyecto (metadatos ORM).

# 🗂️ ENUMS PARA CONSISTENCIA DE DATOS
# ---------------------------------------------------------------------------------
class AttendanceEnum(str, enum.Enum):  # Enum cerrado de asistencia almacenada.
    will_attend = "Will attend"  # Asistirá (consume cupo).
    will_not_attend = "Will not attend"  # No asistirá (no consume cupo).


# Mapa de la opción del formulario al valor almacenado.
ATTENDANCE_FROM_FORM = {
    "si": AttendanceEnum.will_attend,
    "no": AttendanceEnum.will_not_attend,
}


# 🎟️ MODELO DE CÓDIGOS DE INVITACIÓN (TABLA 'invitation_codes')
# ---------------------------------------------------------------------------------
class InvitationCode(Base):
    __tablename__ = "invitation_codes"

    __table_args__ = (
        CheckConstraint("max_guests >= 1", name="ck_invitation_codes_max_guests_min"),
    )

    id = Column(Integer, primary_key=True, index=True)
    code = Column(String(64), unique=True, index=True, nullable=False)  # Siempre en MAYÚSCULAS.
    assigned_to = Column(String(160), nullable=False, default="")
    max_guests = Column(Integer, nullable=False, default=1)
    used_guests = Column(Integer, nullable=False, default=0)  # Solo lo mueve el registro de RSVP.
    is_active = Column(Boolean, nullable=False, default=True)

    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, nullable=True, onupdate=datetime.utcnow)

    @property
    def remaining_guests(self) -> int:
        """Cupo restante, nunca negativo."""
        return max(0, (self.max_guests or 0) - (self.used_guests or 0))


# 📝 MODELO DE CONFIRMACIONES (TABLA 'rsvps')
# ---------------------------------------------------------------------------------
class RSVP(Base):
    __tablename__ = "rsvps"

    __table_args__ = (
        UniqueConstraint("code", name="uq_rsvps_code"),  # Una confirmación por código.
        CheckConstraint("guests_count >= 1", name="ck_rsvps_guests_count_min"),
    )

    id = Column(Integer, primary_key=True, index=True)

    # --- Referencia desnormalizada al código (sin FK: borrar el código no borra RSVPs) ---
    code = Column(String(64), index=True, nullable=False)
    code_id = Column(Integer, index=True, nullable=True)

    # --- Datos del formulario ---
    name = Column(String(160), nullable=False)
    email = Column(String(254), nullable=False)
    phone = Column(String(32), nullable=False, default="")
    allergies = Column(String(500), nullable=False, default="")
    guests_count = Column(Integer, nullable=False, default=1)
    attendance = Column(
        SQLAlchemyEnum(
            AttendanceEnum,
            name="attendance_enum",
            values_callable=lambda e: [m.value for m in e],  # Guarda 'Will attend' / 'Will not attend'.
        ),
        nullable=False,
    )

    created_at = Column(DateTime, server_default=func.now())

    @property
    def is_attending(self) -> bool:
        return self.attendance == AttendanceEnum.will_attend
