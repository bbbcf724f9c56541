# app/routers/admin.py
# =============================================================================
# 👑 Rutas de administración: códigos de invitación, confirmaciones y estadísticas
# - Login/logout del operador (JWT) y consulta del usuario actual.
# - Protegido con `require_admin` (x-admin-key o Bearer de tipo 'admin').
# - Los errores de dominio salen como {error, detail} vía el handler global.
# =============================================================================

from typing import List                                            # Tipos para anotaciones.

from fastapi import APIRouter, Depends, HTTPException, Response, status  # Router y utilidades de FastAPI.
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from loguru import logger                                          # Trazas de acceso al panel.
from sqlalchemy.orm import Session                                 # Tipo de sesión de SQLAlchemy.

import app.schemas as schemas                                      # Schemas del panel.
from app import auth                                               # Credenciales y tokens del operador.
from app.core.security import current_admin, require_admin         # Dependencias de acceso.
from app.crud import admin_crud, rsvps_crud                        # CRUD de códigos/estadísticas y RSVP.
from app.db import get_db                                          # Proveedor de Session por request.

router = APIRouter(prefix="/api/admin", tags=["admin"])            # Prefijo /api/admin.
_bearer = HTTPBearer(auto_error=False)

# ------------------------------ Sesión del operador ------------------------------

@router.post("/login", response_model=schemas.Token)
def admin_login(payload: schemas.AdminLoginRequest):
    if not auth.authenticate_admin(payload.email, payload.password):
        logger.warning("ADMIN/login → credenciales inválidas")
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Email o contraseña incorrectos.",
        )
    logger.info("ADMIN/login → OK")
    return schemas.Token(access_token=auth.create_admin_token(str(payload.email).lower()))


@router.post("/logout", status_code=204, dependencies=[Depends(require_admin)])
def admin_logout(credentials: HTTPAuthorizationCredentials = Depends(_bearer)):
    if credentials is not None:
        payload = auth.decode_admin_token(credentials.credentials)
        if payload:
            auth.revoke_token(payload.get("jti"))
    return Response(status_code=204)


@router.get("/me", response_model=schemas.AdminIdentity)
def admin_me(admin: schemas.AdminIdentity = Depends(current_admin)):
    return admin

# ------------------------------ Códigos de invitación ------------------------------

@router.get("/codes", response_model=List[schemas.CodeResponse], dependencies=[Depends(require_admin)])
def list_codes(db: Session = Depends(get_db)):
    return admin_crud.list_codes(db)


@router.post("/codes", response_model=schemas.CodeResponse, status_code=201, dependencies=[Depends(require_admin)])
def create_code(payload: schemas.CodeCreate, db: Session = Depends(get_db)):
    return admin_crud.create_code(
        db,
        code=payload.code,
        assigned_to=payload.assigned_to,
        max_guests=payload.max_guests,
        is_active=payload.is_active,
    )


@router.patch("/codes/{code_id}", response_model=schemas.CodeResponse, dependencies=[Depends(require_admin)])
def update_code(code_id: int, payload: schemas.CodeUpdate, db: Session = Depends(get_db)):
    return admin_crud.update_code(db, code_id, payload.changes())


@router.post("/codes/{code_id}/toggle", response_model=schemas.CodeResponse, dependencies=[Depends(require_admin)])
def toggle_code(code_id: int, payload: schemas.CodeToggle, db: Session = Depends(get_db)):
    return admin_crud.toggle_code(db, code_id, payload.is_active)


@router.post("/codes/{code_id}/reconcile", response_model=schemas.CodeResponse, dependencies=[Depends(require_admin)])
def reconcile_code(code_id: int, db: Session = Depends(get_db)):
    return admin_crud.reconcile_used(db, code_id)


@router.delete("/codes/{code_id}", status_code=204, dependencies=[Depends(require_admin)])
def delete_code(code_id: int, db: Session = Depends(get_db)):
    admin_crud.delete_code(db, code_id)
    return Response(status_code=204)

# ------------------------------ Confirmaciones ------------------------------

@router.get("/rsvps", response_model=List[schemas.RSVPResponse], dependencies=[Depends(require_admin)])
def list_rsvps(db: Session = Depends(get_db)):
    return rsvps_crud.list_rsvps(db)


@router.delete("/rsvps/{rsvp_id}", status_code=204, dependencies=[Depends(require_admin)])
def delete_rsvp(rsvp_id: int, db: Session = Depends(get_db)):
    rsvps_crud.delete_rsvp(db, rsvp_id)
    return Response(status_code=204)

# ------------------------------ Estadísticas ------------------------------

@router.get("/stats", response_model=schemas.Statistics, dependencies=[Depends(require_admin)])
def statistics(db: Session = Depends(get_db)):
    return admin_crud.get_statistics(db)
