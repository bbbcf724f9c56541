# app/meta.py  # Router de metadatos para el frontend.

from fastapi import APIRouter  # Importa el enrutador de FastAPI para definir rutas simples.

from app.models import ATTENDANCE_FROM_FORM  # Opciones de asistencia aceptadas por el formulario.
from app.schemas import MetaOptions

router = APIRouter(prefix="/api/meta", tags=["meta"])  # Crea un router con prefijo /api/meta.

@router.get("/options", response_model=MetaOptions)
def get_meta_options() -> MetaOptions:
    """Devuelve los códigos neutros de asistencia ('si'/'no') para que el frontend los traduzca."""
    return MetaOptions(attendance=list(ATTENDANCE_FROM_FORM))
