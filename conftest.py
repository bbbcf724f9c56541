# conftest.py
# -------------------------------------------------------------------------------------
# Archivo: conftest.py (raíz del proyecto)
# Propósito: fixtures compartidas de pytest.
#            - BD SQLite en memoria (StaticPool) con las tablas del proyecto.
#            - Sesión de BD por test y fábrica de sesiones para backends.
#            - TestClient de FastAPI con `get_db` sustituido.
#            - Helpers para sembrar códigos y RSVPs.
# Las variables de entorno se fijan ANTES de importar `app` (los módulos las leen al importar).
# -------------------------------------------------------------------------------------

from __future__ import annotations  # Permite anotaciones de tipos adelantadas.
import os                           # Para fijar variables de entorno de test.

os.environ["FORCE_DB"] = "sqlite"                      # Permite el fallback sin Postgres.
os.environ["DATABASE_URL"] = "sqlite://"               # Engine global inofensivo (no se usa en tests).
os.environ["ADMIN_API_KEY"] = "test-admin-key"         # Clave para x-admin-key.
os.environ["ADMIN_EMAIL"] = "admin@example.com"        # Operador de pruebas.
os.environ["ADMIN_PASSWORD"] = "s3cret-pass"          # Contraseña del operador de pruebas.
os.environ["SECRET_KEY"] = "test-secret"               # Firma de JWT en tests.
os.environ["VALIDATE_RL_MAX"] = "1000"                 # Rate limit holgado salvo en su test.
os.environ["SUBMIT_RL_MAX"] = "1000"

import pytest                                          # Framework de pruebas.
from fastapi.testclient import TestClient              # Cliente HTTP en proceso.
from sqlalchemy.orm import sessionmaker                # Fábrica de sesiones de test.

from app import models                                 # Registra tablas en Base.metadata.
from app import rate_limit                             # Para vaciar los cubos entre tests.
from app.crud import admin_crud                        # Alta de códigos.
from app.db import Base, get_db, make_engine           # Base declarativa, dependencia a sustituir y fábrica de engines.
from app.main import app                               # Aplicación FastAPI.

ADMIN_HEADERS = {"x-admin-key": "test-admin-key"}


@pytest.fixture()
def engine():
    """Engine SQLite en memoria, nuevo por test."""
    eng = make_engine("sqlite://")                        # StaticPool: una sola conexión compartida.
    Base.metadata.create_all(bind=eng)
    yield eng
    Base.metadata.drop_all(bind=eng)
    eng.dispose()


@pytest.fixture()
def session_factory(engine):
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture()
def db(session_factory):
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture()
def client(session_factory):
    """TestClient con la BD de test inyectada y rate limit reiniciado."""
    def _override_get_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    rate_limit.reset()
    app.dependency_overrides[get_db] = _override_get_db
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()
    rate_limit.reset()


@pytest.fixture()
def admin_headers():
    return dict(ADMIN_HEADERS)


@pytest.fixture()
def make_code(db):
    """Crea un código y opcionalmente fija used_guests (como si ya hubiera confirmaciones)."""
    def _make(code="AB12CD34", max_guests=2, used_guests=0, is_active=True, assigned_to="Familia Pérez"):
        obj = admin_crud.create_code(
            db, code=code, assigned_to=assigned_to, max_guests=max_guests, is_active=is_active,
        )
        if used_guests:
            obj.used_guests = used_guests
            db.commit()
            db.refresh(obj)
        return obj
    return _make


@pytest.fixture()
def reload(db):
    """Relee una fila desde la BD (otras sesiones pueden haberla cambiado)."""
    def _reload(model, pk):
        db.expire_all()
        return db.get(model, pk)
    return _reload


@pytest.fixture()
def code_model():
    return models.InvitationCode


@pytest.fixture()
def rsvp_model():
    return models.RSVP
