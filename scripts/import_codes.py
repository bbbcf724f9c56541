# scripts/import_codes.py
# =============================================================================
# 🚚 Importador masivo de códigos de invitación hacia el backend (endpoint admin).
# - Valida/normaliza el archivo (xlsx/csv) con load_and_validate_code_list().
# - Envía cada código a POST /api/admin/codes (409 = ya existía → omitido).
# - Requiere ADMIN_API_KEY (cabecera: x-admin-key).
# =============================================================================

import argparse
import json
import os
import sys
from pathlib import Path

import requests
from dotenv import load_dotenv

# --- La raíz del proyecto debe estar en el path para importar scripts.load_codes ---
PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.append(str(PROJECT_ROOT))

load_dotenv()

from scripts.load_codes import df_to_records, load_and_validate_code_list  # noqa: E402

API_BASE_URL = os.getenv("API_BASE_URL", "http://127.0.0.1:8000")
ADMIN_API_KEY = os.getenv("ADMIN_API_KEY", "")

ENDPOINT = f"{API_BASE_URL.rstrip('/')}/api/admin/codes"


def _post_code(record: dict, timeout: int = 30) -> requests.Response:
    headers = {"Content-Type": "application/json", "x-admin-key": ADMIN_API_KEY}
    return requests.post(ENDPOINT, headers=headers, data=json.dumps(record), timeout=timeout)


def main():
    parser = argparse.ArgumentParser(description="Importador masivo de códigos de invitación.")
    parser.add_argument("file", help="Ruta al archivo .xlsx/.xls o .csv")
    parser.add_argument("--sheet", default=None, help="Nombre de hoja en Excel (opcional)")
    parser.add_argument("--sep", default=",", help="Separador para CSV (por defecto ',')")
    parser.add_argument("--encoding", default="utf-8", help="Encoding para CSV (por defecto utf-8)")
    parser.add_argument("--strict", action="store_true", help="Falla si hay cualquier error de validación")
    parser.add_argument("--dry-run", action="store_true", help="Solo valida y muestra vista previa; no importa")
    args = parser.parse_args()

    print(f"📥 Cargando archivo: {args.file}")
    try:
        df, errors = load_and_validate_code_list(
            args.file,
            strict=args.strict,
            sheet_name=args.sheet,
            csv_sep=args.sep,
            csv_encoding=args.encoding,
        )
    except ValueError as e:
        print(f"❌ Error al validar: {e}")
        sys.exit(1)

    if errors:
        print("⚠️  Advertencias/errores detectados en validación:")
        print(" - " + "\n - ".join(errors))

    records = df_to_records(df)
    if not records:
        print("⛔ No hay códigos para importar.")
        sys.exit(1)

    print(f"📦 Códigos preparados para importar: {len(records)}")
    if args.dry_run:
        print("🧪 DRY-RUN activo: no se enviará nada al backend.")
        print(json.dumps(records[:3], indent=2, ensure_ascii=False))
        sys.exit(0)

    if not ADMIN_API_KEY:
        print("❌ ADMIN_API_KEY no está configurada.")
        sys.exit(1)

    created, skipped, failures = [], [], []
    for rec in records:
        label = rec.get("code") or f"(auto) {rec['assigned_to']}"
        try:
            resp = _post_code(rec)
        except requests.RequestException as e:
            failures.append(f"{label}: {e}")
            continue
        if resp.status_code == 201:
            created.append(resp.json().get("code"))
        elif resp.status_code == 409:
            skipped.append(label)
        else:
            failures.append(f"{label}: HTTP {resp.status_code} - {resp.text[:200]}")

    print("\n✅ Resumen de importación:")
    print(json.dumps(
        {"created": created, "skipped": skipped, "errors": failures},
        indent=2, ensure_ascii=False,
    ))
    if failures:
        sys.exit(2)


if __name__ == "__main__":
    main()
