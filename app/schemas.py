# app/schemas.py  # Ruta y nombre del archivo de esquemas (Pydantic).                               # Indica dónde va este archivo en el proyecto.

# =================================================================================
# 📦 Schemas (MODELOS DE DATOS Pydantic)
# ---------------------------------------------------------------------------------
# Modelos usados por la API, el registro de RSVP y la puerta de acceso del cliente.
# - CodeSnapshot: foto inmutable de un código validado (se guarda en la sesión).
# - RSVPForm: datos crudos del formulario; la validación de negocio la hace el CRUD
#   para devolver InvalidInput con un mensaje por campo (no un 422 genérico).
# - Usan Pydantic v2: model_validator/field_validator y ConfigDict.
# =================================================================================

from datetime import datetime                                                                 # Importa tipo de fecha/hora para timestamps.
import enum                                                                                   # Enum para el modo de validación.
from typing import Dict, List, Optional, Union                                                # Tipos para anotar opcionales, listas y uniones.

from pydantic import (                                                                        # Importa utilidades principales de Pydantic v2.
    BaseModel,                                                                                # Clase base para definir modelos.
    EmailStr,                                                                                 # Tipo de email con validación de formato.
    field_validator,                                                                          # Decorador para validación a nivel de campo.
    model_validator,                                                                          # Decorador para validación a nivel de modelo.
    ConfigDict,                                                                               # Configuración del modelo.
    Field,                                                                                    # Declaración de campos con metadata y defaults.
)

from app.models import AttendanceEnum                                                         # Enum de asistencia definido en el ORM.


class ValidationMode(str, enum.Enum):                                                         # Modo de validación del código.
    access = "access"                                                                         # Acceso al sitio: un código agotado sigue valiendo.
    rsvp = "rsvp"                                                                             # Confirmación: exige cupo restante.


# =================================================================================
# 🎟️ Códigos de invitación
# =================================================================================
class CodeSnapshot(BaseModel):                                                                # Foto inmutable del código validado.
    id: int                                                                                   # Identificador del código en BD.
    code: str                                                                                 # Código normalizado (MAYÚSCULAS).
    assigned_to: str = ""                                                                     # Etiqueta libre (solo display).
    max_guests: int                                                                           # Cupo total.
    used_guests: int = 0                                                                      # Plazas ya confirmadas.
    remaining_guests: int = 0                                                                 # Derivado: max(0, max - used).
    is_active: bool = True                                                                    # Estado de activación.

    model_config = ConfigDict(frozen=True, from_attributes=True)                              # Inmutable y construible desde ORM.

    @model_validator(mode="before")                                                           # Recalcula el derivado antes de congelar.
    @classmethod
    def _derive_remaining(cls, data):
        if isinstance(data, dict):                                                            # Entrada como dict (JSON de sesión o API).
            max_g = int(data.get("max_guests") or 0)
            used_g = int(data.get("used_guests") or 0)
            return {**data, "remaining_guests": max(0, max_g - used_g)}
        return data                                                                           # Objetos ORM: la property ya lo calcula.


class ValidateCodeRequest(BaseModel):                                                         # Payload de POST /api/codes/validate.
    code: Optional[str] = None                                                                # Código crudo (se normaliza en el CRUD).
    mode: ValidationMode = ValidationMode.access                                              # Modo de validación.


class CodeCreate(BaseModel):                                                                  # Alta de código por el operador.
    code: Optional[str] = None                                                                # Si falta o está vacío se genera uno.
    assigned_to: str = ""                                                                     # Etiqueta libre.
    max_guests: int = Field(default=1, ge=1)                                                  # Cupo total (>=1).
    is_active: bool = True                                                                    # Activo por defecto.

    @field_validator("assigned_to")
    @classmethod
    def _clean_assigned(cls, v: Optional[str]) -> str:
        return (v or "").strip()


class CodeUpdate(BaseModel):                                                                  # Edición restringida de un código.
    assigned_to: Optional[str] = None
    max_guests: Optional[int] = Field(default=None, ge=1)
    is_active: Optional[bool] = None

    def changes(self) -> Dict[str, object]:
        """Solo los campos enviados explícitamente (permitidos)."""
        return self.model_dump(exclude_unset=True)


class CodeToggle(BaseModel):                                                                  # Activar/desactivar.
    is_active: bool


class CodeResponse(BaseModel):                                                                # Respuesta de admin con auditoría.
    id: int
    code: str
    assigned_to: str = ""
    max_guests: int
    used_guests: int
    remaining_guests: int
    is_active: bool
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)


# =================================================================================
# 📋 Confirmaciones (RSVP)
# =================================================================================
class RSVPForm(BaseModel):                                                                    # Datos crudos del formulario del invitado.
    name: Optional[str] = None                                                                # Nombre completo (obligatorio en negocio).
    email: Optional[str] = None                                                               # Email (obligatorio en negocio).
    phone: Optional[str] = None                                                               # Teléfono (opcional).
    allergies: Optional[str] = None                                                           # Alergias (opcional).
    guests_count: Optional[Union[int, str]] = None                                            # Nº de plazas (texto del select o entero).
    attendance: Optional[str] = None                                                          # 'si' | 'no'.

    model_config = ConfigDict(extra="ignore")


class RSVPSubmitRequest(RSVPForm):                                                            # Payload de POST /api/rsvps.
    code: Optional[str] = None                                                                # Código canjeado en la sesión del cliente.

    def form(self) -> RSVPForm:
        return RSVPForm(**self.model_dump(exclude={"code"}))


class RSVPResponse(BaseModel):                                                                # Confirmación persistida.
    id: int
    code: str
    code_id: Optional[int] = None
    name: str
    email: str
    phone: str = ""
    allergies: str = ""
    guests_count: int
    attendance: AttendanceEnum
    created_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True, use_enum_values=True)                     # Exporta 'Will attend' tal cual.


class ExistsResponse(BaseModel):
    exists: bool


# =================================================================================
# 📊 Estadísticas del panel
# =================================================================================
class CodeStats(BaseModel):
    total: int = 0
    active: int = 0
    inactive: int = 0
    max_guests: int = 0
    used_guests: int = 0
    remaining_capacity: int = 0


class RSVPStats(BaseModel):
    total: int = 0
    attending: int = 0
    not_attending: int = 0
    total_confirmed_guests: int = 0
    total_not_attending_guests: int = 0


class Statistics(BaseModel):
    codes: CodeStats = Field(default_factory=CodeStats)
    rsvps: RSVPStats = Field(default_factory=RSVPStats)
    guests_per_code: Dict[str, int] = Field(default_factory=dict)


# =================================================================================
# 🔐 Login de administración
# =================================================================================
class AdminLoginRequest(BaseModel):
    email: EmailStr
    password: str = Field(..., min_length=1)


class Token(BaseModel):                                                                       # Respuesta de /api/admin/login.
    access_token: str
    token_type: str = "bearer"


class AdminIdentity(BaseModel):                                                               # Usuario actual del panel.
    email: str
    method: str                                                                               # 'token' | 'api_key'.


class MetaOptions(BaseModel):
    attendance: List[str]
