# app/session.py

# =================================================================================
# 🧳 Contexto de sesión del visitante
# ---------------------------------------------------------------------------------
# Valor explícito que comparten la puerta de acceso y el registro de RSVP:
# - `code`: código retenido en memoria (se libera tras confirmar).
# - `storage`: almacén clave/valor de la sesión del navegador (dict o
#   st.session_state). Solo dos claves: el código canjeado y el flag de envío.
# =================================================================================

from typing import MutableMapping, Optional

from loguru import logger
from pydantic import ValidationError

from app.schemas import CodeSnapshot

ACCESS_CODE_KEY = "accessCode"        # JSON del CodeSnapshot canjeado.
RSVP_SUBMITTED_KEY = "rsvpSubmitted"  # "1" cuando ya se envió la confirmación.


class SessionContext:
    """Estado local de una sesión: código retenido + almacén de sesión."""

    def __init__(self, storage: Optional[MutableMapping[str, str]] = None, code: Optional[CodeSnapshot] = None):
        self.storage = storage if storage is not None else {}
        self.code = code

    @classmethod
    def ephemeral(cls, code: Optional[CodeSnapshot]) -> "SessionContext":
        """Contexto de un solo uso (la API lo crea por petición)."""
        return cls(storage={}, code=code)

    # --- Código retenido en memoria ---
    def hold(self, snapshot: CodeSnapshot) -> None:
        self.code = snapshot

    def release(self) -> None:
        self.code = None

    # --- Flag de envío ---
    @property
    def submitted(self) -> bool:
        return self.storage.get(RSVP_SUBMITTED_KEY) == "1"

    def mark_submitted(self) -> None:
        self.storage[RSVP_SUBMITTED_KEY] = "1"

    # --- Acceso persistido en la sesión ---
    def remember_access(self, snapshot: CodeSnapshot) -> None:
        self.storage[ACCESS_CODE_KEY] = snapshot.model_dump_json()

    def stored_access(self) -> Optional[CodeSnapshot]:
        """Devuelve el código guardado o None; un blob corrupto se descarta."""
        raw = self.storage.get(ACCESS_CODE_KEY)
        if not raw:
            return None
        try:
            return CodeSnapshot.model_validate_json(raw)
        except ValidationError as e:
            logger.warning("SESSION/stored_access → blob inválido, se descarta: {}", e.error_count())
            self.forget_access()
            return None

    def forget_access(self) -> None:
        self.storage.pop(ACCESS_CODE_KEY, None)
