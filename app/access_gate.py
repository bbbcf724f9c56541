# app/access_gate.py

# =================================================================================
# 🚪 Puerta de acceso del visitante (máquina de estados de la sesión)
# ---------------------------------------------------------------------------------
# Decide qué ve el visitante:
#   locked → code_entry → unlocked → rsvp_pending → rsvp_done
#   already_submitted: contenido visible, formulario sustituido (terminal).
# El estado se apoya en un SessionContext (dict o st.session_state) y en un
# backend que valida/consulta/envía: DirectBackend (CRUD en proceso) o
# ApiBackend (HTTP con requests contra la API FastAPI).
# =================================================================================

import enum
import os
from typing import Callable, Optional, Protocol

import requests
from loguru import logger
from sqlalchemy.orm import Session

from app.crud import codes_crud, rsvps_crud
from app.errors import (
    DuplicateSubmission,
    EmptyInput,
    Inactive,
    NotFound,
    RSVPError,
    StoreUnavailable,
    SubmissionFailed,
    from_payload,
)
from app.schemas import CodeSnapshot, RSVPForm, RSVPResponse, ValidationMode
from app.session import SessionContext

API_BASE_URL = os.getenv("API_BASE_URL", "http://127.0.0.1:8000").rstrip("/")


class GateState(str, enum.Enum):
    locked = "locked"
    code_entry = "code_entry"
    unlocked = "unlocked"
    rsvp_pending = "rsvp_pending"
    rsvp_done = "rsvp_done"
    already_submitted = "already_submitted"


class GateTransitionError(RuntimeError):
    """Acción no permitida desde el estado actual (error de programación de la UI)."""


# =================================================================================
# 🔌 Backends
# =================================================================================
class GateBackend(Protocol):
    def validate(self, code: Optional[str], mode: ValidationMode) -> CodeSnapshot: ...

    def check_existing(self, code: str) -> bool: ...

    def submit(self, session: SessionContext, form: RSVPForm) -> RSVPResponse: ...


class DirectBackend:
    """Llama al CRUD en el mismo proceso, abriendo una sesión de BD por operación."""

    def __init__(self, session_factory: Optional[Callable[[], Session]] = None):
        if session_factory is None:
            from app.db import SessionLocal
            session_factory = SessionLocal
        self.session_factory = session_factory

    def validate(self, code: Optional[str], mode: ValidationMode) -> CodeSnapshot:
        db = self.session_factory()
        try:
            return codes_crud.validate(db, code, mode)
        finally:
            db.close()

    def check_existing(self, code: str) -> bool:
        db = self.session_factory()
        try:
            return rsvps_crud.check_existing(db, code)
        finally:
            db.close()

    def submit(self, session: SessionContext, form: RSVPForm) -> RSVPResponse:
        db = self.session_factory()
        try:
            return RSVPResponse.model_validate(rsvps_crud.submit(db, session, form))
        finally:
            db.close()


class ApiBackend:
    """Habla con la API HTTP; reconstruye los errores tipados desde {error, detail}."""

    def __init__(self, base_url: str = API_BASE_URL, http=None, timeout: float = 12):
        self.base_url = base_url.rstrip("/")
        self.http = http if http is not None else requests.Session()
        self.timeout = timeout

    def _raise_for_error(self, resp, fallback) -> None:
        if resp.status_code < 400:
            return
        try:
            body = resp.json()
        except ValueError:
            body = {}
        if isinstance(body, dict) and body.get("error"):
            raise from_payload(body.get("error"), body.get("detail"))
        logger.error("GATE/api → respuesta inesperada | status={} | body={}", resp.status_code, str(body)[:200])
        raise fallback()

    def _parse(self, resp, model, fallback):
        """Cuerpo 2xx → modelo; JSON roto o campos inesperados → error tipado."""
        try:
            return model.model_validate(resp.json())
        except ValueError as e:                                           # JSONDecodeError y ValidationError.
            logger.error("GATE/api → cuerpo no válido | status={} | err={}", resp.status_code, e)
            raise fallback()

    def validate(self, code: Optional[str], mode: ValidationMode) -> CodeSnapshot:
        try:
            resp = self.http.post(
                f"{self.base_url}/api/codes/validate",
                json={"code": code, "mode": mode.value},
                timeout=self.timeout,
            )
        except requests.RequestException as e:
            logger.error("GATE/api validate → red | err={}", e)
            raise StoreUnavailable("Error al validar el código. Por favor, inténtalo de nuevo.")
        self._raise_for_error(resp, StoreUnavailable)
        return self._parse(resp, CodeSnapshot, StoreUnavailable)

    def check_existing(self, code: str) -> bool:
        try:
            resp = self.http.get(f"{self.base_url}/api/rsvps/exists", params={"code": code}, timeout=self.timeout)
            if resp.status_code != 200:
                return False
            return bool(resp.json().get("exists"))
        except (requests.RequestException, ValueError) as e:
            logger.error("GATE/api exists → err={}", e)
            return False

    def submit(self, session: SessionContext, form: RSVPForm) -> RSVPResponse:
        payload = form.model_dump()
        payload["code"] = session.code.code if session.code else None
        try:
            resp = self.http.post(f"{self.base_url}/api/rsvps", json=payload, timeout=self.timeout)
        except requests.RequestException as e:
            logger.error("GATE/api submit → red | err={}", e)
            raise SubmissionFailed()
        self._raise_for_error(resp, SubmissionFailed)
        return self._parse(resp, RSVPResponse, SubmissionFailed)


# =================================================================================
# 🧭 Máquina de estados
# =================================================================================
class AccessGate:
    """Estado de visibilidad del sitio y del formulario para una sesión de navegador."""

    _CONTENT_STATES = {GateState.unlocked, GateState.rsvp_pending, GateState.rsvp_done, GateState.already_submitted}
    _FORM_STATES = {GateState.unlocked, GateState.rsvp_pending}
    _CODE_REJECTED = (EmptyInput, NotFound, Inactive)                    # El código dejó de valer: se olvida.

    def __init__(self, backend: GateBackend, session: Optional[SessionContext] = None):
        self.backend = backend
        self.session = session if session is not None else SessionContext()
        self.state = GateState.locked
        self.last_rsvp: Optional[RSVPResponse] = None

    # --- Visibilidad ---
    @property
    def content_visible(self) -> bool:
        return self.state in self._CONTENT_STATES

    @property
    def form_visible(self) -> bool:
        return self.state in self._FORM_STATES

    @property
    def code(self) -> Optional[CodeSnapshot]:
        return self.session.code

    def _require(self, *allowed: GateState) -> None:
        if self.state not in allowed:
            raise GateTransitionError(f"Acción no permitida en estado '{self.state.value}'")

    def _route_after_validation(self, snapshot: CodeSnapshot) -> GateState:
        """Decide entre unlocked y already_submitted tras un canje correcto."""
        self.session.hold(snapshot)
        self.session.remember_access(snapshot)
        if (
            snapshot.remaining_guests == 0
            or self.session.submitted
            or self.backend.check_existing(snapshot.code)
        ):
            self.state = GateState.already_submitted
        else:
            self.state = GateState.unlocked
        logger.debug("GATE → {} | code={}", self.state.value, snapshot.code)
        return self.state

    # --- Transiciones ---
    def start(self) -> GateState:
        """Arranque o recarga: re-deriva el estado desde el código guardado (sin fiarse del flag)."""
        self._require(GateState.locked)
        stored = self.session.stored_access()
        if stored is None:
            self.state = GateState.code_entry
            return self.state
        try:
            fresh = self.backend.validate(stored.code, ValidationMode.access)
        except self._CODE_REJECTED as e:
            logger.info("GATE/start → código guardado ya no vale ({}), se pide de nuevo", type(e).__name__)
            self.session.forget_access()
            self.session.release()
            self.state = GateState.code_entry
            return self.state
        except RSVPError as e:
            # Fallo transitorio: se conserva el código guardado y start() se puede reintentar.
            logger.warning("GATE/start → no se pudo re-validar ({}), se mantiene el acceso guardado", type(e).__name__)
            self.state = GateState.locked
            raise
        return self._route_after_validation(fresh)

    def enter_code(self, raw_code: Optional[str]) -> GateState:
        """Canjea un código (modo access). En error queda en code_entry y relanza."""
        self._require(GateState.locked, GateState.code_entry)
        try:
            snapshot = self.backend.validate(raw_code, ValidationMode.access)
        except RSVPError:
            self.state = GateState.code_entry
            raise
        return self._route_after_validation(snapshot)

    def submit_rsvp(self, form: RSVPForm) -> RSVPResponse:
        """Envía el formulario. Duplicado → already_submitted; otro error → unlocked."""
        self._require(GateState.unlocked)
        self.state = GateState.rsvp_pending
        try:
            result = self.backend.submit(self.session, form)
        except DuplicateSubmission:
            self.session.mark_submitted()
            self.session.release()
            self.state = GateState.already_submitted
            raise
        except Exception:
            self.state = GateState.unlocked                                # El formulario sigue usable tras cualquier fallo.
            raise
        self.session.release()
        self.session.mark_submitted()
        self.last_rsvp = result
        self.state = GateState.rsvp_done
        return result

    def change_code(self) -> GateState:
        """Suelta el código actual y vuelve a pedir uno (hay que re-validar)."""
        self._require(GateState.unlocked)
        self.session.release()
        self.session.forget_access()
        self.state = GateState.code_entry
        return self.state
