# migrations/env.py
# =================================================================================
# 🧬 Entorno de Alembic para invitation_codes / rsvps
# ---------------------------------------------------------------------------------
# - La URL sale de app.db (misma política DATABASE_URL / FORCE_DB que la API).
# - `alembic -x db_url=...` permite migrar otra BD sin tocar el entorno.
# - En SQLite se usa render_as_batch (ALTER TABLE limitado).
# =================================================================================

from logging.config import fileConfig
import os
import sys

from alembic import context

# La raíz del proyecto (junto a app/) debe estar en el path.
ROOT_DIR = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
if ROOT_DIR not in sys.path:
    sys.path.insert(0, ROOT_DIR)

from app import models  # noqa: E402,F401  registra las tablas en Base.metadata
from app.db import Base, engine, make_engine  # noqa: E402

config = context.config
if config.config_file_name is not None:
    fileConfig(config.config_file_name)

target_metadata = Base.metadata


def _target_url() -> str:
    return context.get_x_argument(as_dictionary=True).get("db_url") or engine.url.render_as_string(hide_password=False)


def _configure_kwargs(url: str) -> dict:
    return {
        "target_metadata": target_metadata,
        "compare_type": True,
        "compare_server_default": True,
        "render_as_batch": url.startswith("sqlite"),
    }


def run_migrations_offline() -> None:
    """Emite el SQL sin conectar (alembic upgrade head --sql)."""
    url = _target_url()
    context.configure(
        url=url,
        literal_binds=True,
        dialect_opts={"paramstyle": "named"},
        **_configure_kwargs(url),
    )
    with context.begin_transaction():
        context.run_migrations()


def run_migrations_online() -> None:
    url = _target_url()
    connectable = engine if not context.get_x_argument(as_dictionary=True).get("db_url") else make_engine(url)
    with connectable.connect() as connection:
        context.configure(connection=connection, **_configure_kwargs(url))
        with context.begin_transaction():
            context.run_migrations()


if context.is_offline_mode():
    run_migrations_offline()
else:
    run_migrations_online()
