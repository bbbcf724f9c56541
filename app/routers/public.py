# app/routers/public.py  # Router público del visitante: canje de código y confirmación.

# =================================================================================
# 🎟️ Router: Endpoints del visitante (código de invitación y RSVP)
# ---------------------------------------------------------------------------------
# - POST /api/codes/validate → valida un código (modo access | rsvp).
# - GET  /api/rsvps/exists   → ¿ya hay confirmación para ese código?
# - POST /api/rsvps          → registra la confirmación del código.
# Aplica rate-limit por IP en validate y submit.
# =================================================================================

from fastapi import APIRouter, Depends, Query, Request   # Utilidades de FastAPI.
from sqlalchemy.orm import Session                       # Tipo de sesión de SQLAlchemy.

from app import schemas                                  # Schemas Pydantic.
from app.crud import codes_crud, rsvps_crud              # Libro de códigos + registro RSVP.
from app.db import get_db                                # Proveedor de Session por request.
from app.rate_limit import enforce, get_limits_from_env  # Rate limit configurable por entorno.
from app.schemas import ValidationMode                   # Modo de validación.
from app.session import SessionContext                   # Contexto explícito por petición.

router = APIRouter(prefix="/api", tags=["public"])

# --- Configuración de rate limit desde .env ---
VALIDATE_MAX, VALIDATE_WINDOW = get_limits_from_env("VALIDATE_RL", default_max=10, default_window=60)
SUBMIT_MAX, SUBMIT_WINDOW = get_limits_from_env("SUBMIT_RL", default_max=5, default_window=60)


def _client_ip(request: Request) -> str:
    """IP real del cliente, respetando X-Forwarded-For de proxies/CDN."""
    xff = request.headers.get("x-forwarded-for")
    if xff:
        return xff.split(",")[0].strip()
    return (request.client.host if request.client else None) or "unknown"


# =================================================================================
# ✅ POST /api/codes/validate
# =================================================================================
@router.post("/codes/validate", response_model=schemas.CodeSnapshot)
def validate_code(
    payload: schemas.ValidateCodeRequest,
    request: Request,
    db: Session = Depends(get_db),
):
    """Valida un código. Los errores salen como {error, detail} vía el handler global."""
    enforce(f"validate:{_client_ip(request)}", VALIDATE_MAX, VALIDATE_WINDOW)
    return codes_crud.validate(db, payload.code, payload.mode)


# =================================================================================
# 🔎 GET /api/rsvps/exists
# =================================================================================
@router.get("/rsvps/exists", response_model=schemas.ExistsResponse)
def rsvp_exists(
    code: str = Query(default=""),
    db: Session = Depends(get_db),
):
    return schemas.ExistsResponse(exists=rsvps_crud.check_existing(db, code))


# =================================================================================
# 📝 POST /api/rsvps
# =================================================================================
@router.post("/rsvps", response_model=schemas.RSVPResponse, status_code=201)
def submit_rsvp(
    payload: schemas.RSVPSubmitRequest,
    request: Request,
    db: Session = Depends(get_db),
):
    """
    El servidor no se fía de la foto del cliente: re-valida el código en modo
    access (cupo fresco) y deja que el registro aplique duplicados y cupo.
    """
    enforce(f"submit:{_client_ip(request)}", SUBMIT_MAX, SUBMIT_WINDOW)
    form = payload.form()
    rsvps_crud.validate_form(form)                       # Errores de campo antes que los de código.
    snapshot = None
    if payload.code and payload.code.strip():
        snapshot = codes_crud.validate(db, payload.code, ValidationMode.access)
    session = SessionContext.ephemeral(snapshot)
    return rsvps_crud.submit(db, session, form)
