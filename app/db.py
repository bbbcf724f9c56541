# app/db.py
# =================================================================================
# 🗄️ CONFIGURACIÓN Y CONEXIÓN A LA BASE DE DATOS
# ---------------------------------------------------------------------------------
# Conexión única con SQLAlchemy para las tablas `invitation_codes` y `rsvps`.
# - PostgreSQL en producción (DATABASE_URL).
# - SQLite en local/tests, solo si FORCE_DB=sqlite (nunca por accidente).
# - make_engine() también lo usan las migraciones y los tests (BD en memoria).
# =================================================================================

import os
from typing import Optional

from loguru import logger
from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import declarative_base, sessionmaker
from sqlalchemy.pool import StaticPool

LOCAL_DB_FILENAME = "invitations.db"


def resolve_database_url(raw: Optional[str] = None, force_db: Optional[str] = None) -> str:
    """
    URL efectiva de la BD.
    Sin URL y con FORCE_DB=postgres (defecto) aborta el arranque; con
    FORCE_DB=sqlite usa un archivo local en la raíz del proyecto.
    """
    url = (os.getenv("DATABASE_URL", "") if raw is None else raw).strip()
    force = (os.getenv("FORCE_DB", "postgres") if force_db is None else force_db).strip().lower()

    if url.startswith("${{") and url.endswith("}}"):                # Variable de plataforma sin resolver.
        logger.warning("DB/url → placeholder sin resolver: {}", url)
        url = ""

    if url:
        return url
    if force == "postgres":
        raise RuntimeError(
            "FATAL: DATABASE_URL no está disponible y FORCE_DB=postgres. "
            "Se aborta para no arrancar contra un SQLite local en producción."
        )
    project_root = os.path.abspath(os.path.join(os.path.dirname(os.path.abspath(__file__)), ".."))
    logger.warning("DB/url → DATABASE_URL vacía, fallback a SQLite ({})", LOCAL_DB_FILENAME)
    return f"sqlite:///{os.path.join(project_root, LOCAL_DB_FILENAME)}"


def make_engine(url: str) -> Engine:
    """Engine con las opciones de cada motor. SQLite en memoria comparte una sola conexión."""
    if not url.startswith("sqlite"):
        return create_engine(url, pool_pre_ping=True)

    options = {"connect_args": {"check_same_thread": False}}
    if url in ("sqlite://", "sqlite:///:memory:"):
        options["poolclass"] = StaticPool                           # Si no, cada conexión vería una BD vacía.
    else:
        options["pool_pre_ping"] = True
    return create_engine(url, **options)


# --- Objetos globales del proyecto ---
DATABASE_URL = resolve_database_url()
engine = make_engine(DATABASE_URL)
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)
Base = declarative_base()


def get_db():
    """Dependencia de FastAPI para inyectar una sesión de BD por petición."""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


# =================================================================================
# 🔎 UTILIDAD: LOGUEAR EL MOTOR REAL DE LA BASE DE DATOS EN STARTUP
# =================================================================================
def log_db_path_on_startup() -> None:
    """Escribe en los logs qué motor (y qué archivo, si es SQLite) usa la API."""
    url = engine.url
    logger.info("DB driver in use → {}", url.drivername)
    if url.drivername == "sqlite":
        db_file = url.database or ""
        logger.info("DB path → {}", os.path.abspath(db_file) if db_file and db_file != ":memory:" else "<memory>")
