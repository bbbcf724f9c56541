# create_db.py

# =================================================================================
# 🏗️ SCRIPT DE CREACIÓN DE LA BASE DE DATOS (entornos locales)
# ---------------------------------------------------------------------------------
# Crea las tablas `invitation_codes` y `rsvps` directamente desde los modelos.
# En producción el esquema lo gestiona Alembic (`alembic upgrade head`).
# Con --demo inserta un código de ejemplo para probar el flujo completo.
# =================================================================================

import argparse

from app.db import engine, Base, SessionLocal

# Importar los modelos los registra en `Base.metadata`; sin esto no se crea ninguna tabla.
from app import models  # noqa: F401
from app.crud import admin_crud
from app.errors import CodeAlreadyExists


def create_database_tables():
    """Crea todas las tablas asociadas con `Base`."""
    print("Creando tablas en la base de datos...")
    Base.metadata.create_all(bind=engine)
    print("✔️ Base de datos y tablas creadas correctamente.")


def seed_demo_code(code: str = "AB12CD34", max_guests: int = 2) -> None:
    db = SessionLocal()
    try:
        obj = admin_crud.create_code(db, code=code, assigned_to="Demo", max_guests=max_guests)
        print(f"🎟️ Código demo creado: {obj.code} (cupo {obj.max_guests})")
    except CodeAlreadyExists:
        print(f"ℹ️ El código demo {code} ya existía.")
    finally:
        db.close()


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Crea las tablas locales.")
    parser.add_argument("--demo", action="store_true", help="Inserta un código de ejemplo")
    args = parser.parse_args()
    create_database_tables()
    if args.demo:
        seed_demo_code()
