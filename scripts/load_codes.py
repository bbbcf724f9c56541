# scripts/load_codes.py
# Carga y validación del listado de códigos de invitación (xlsx/csv) con reporte de errores por fila.

from __future__ import annotations

import re
from typing import Dict, List, Optional, Tuple

import pandas as pd

# --- Constantes de Configuración ---
REQUIRED_COLUMNS: List[str] = ["assigned_to", "max_guests"]
OPTIONAL_COLUMNS: List[str] = ["code", "is_active"]
CODE_RE = re.compile(r"^[A-Z0-9-]{3,64}$")
TRUE_VALUES = {"1", "true", "si", "sí", "yes", "y", "x", "activo"}
FALSE_VALUES = {"0", "false", "no", "n", "inactivo"}


# --- Helpers de normalización/validación ---
def normalize_code(raw: str) -> str:
    """Recorta y pasa a MAYÚSCULAS (vacío si no hay código: lo generará el backend)."""
    return (raw or "").strip().upper() if isinstance(raw, str) else ""


def parse_bool(raw: str, default: bool = True) -> Optional[bool]:
    """'si'/'no'/'1'/'0'... → bool; vacío → default; cualquier otra cosa → None (inválido)."""
    txt = (raw or "").strip().lower() if isinstance(raw, str) else ""
    if not txt:
        return default
    if txt in TRUE_VALUES:
        return True
    if txt in FALSE_VALUES:
        return False
    return None


def _read_table(
    file_path: str, *, sheet_name: Optional[str] = None, csv_sep: str = ",", csv_encoding: str = "utf-8"
) -> pd.DataFrame:
    """Lee .xlsx/.xls o .csv con dtype=str y fillna('')."""
    if file_path.lower().endswith((".xlsx", ".xls")):
        return pd.read_excel(file_path, dtype=str, sheet_name=sheet_name or 0).fillna("")
    return pd.read_csv(file_path, dtype=str, sep=csv_sep, encoding=csv_encoding).fillna("")


# --- Función Principal de Validación ---
def load_and_validate_code_list(
    file_path: str,
    *,
    strict: bool = False,
    sheet_name: Optional[str] = None,
    csv_sep: str = ",",
    csv_encoding: str = "utf-8",
) -> Tuple[pd.DataFrame, List[str]]:
    """
    Devuelve (DataFrame limpio, errores). Columnas de salida:
    code, assigned_to, max_guests (int), is_active (bool).
    Con strict=True cualquier error de fila lanza ValueError.
    """
    df = _read_table(file_path, sheet_name=sheet_name, csv_sep=csv_sep, csv_encoding=csv_encoding)
    df.columns = [str(c).strip().lower() for c in df.columns]

    missing = [c for c in REQUIRED_COLUMNS if c not in df.columns]
    if missing:
        raise ValueError(f"Faltan columnas obligatorias: {', '.join(missing)}")
    for col in OPTIONAL_COLUMNS:
        if col not in df.columns:
            df[col] = ""

    errors: List[str] = []
    rows: List[Dict[str, object]] = []
    seen: set = set()

    for idx, row in df.iterrows():
        line = idx + 2  # Cabecera en la fila 1 del archivo.
        code = normalize_code(row["code"])
        if code and not CODE_RE.match(code):
            errors.append(f"Fila {line}: código '{code}' con formato inválido (A-Z, 0-9, '-').")
            continue
        if code and code in seen:
            errors.append(f"Fila {line}: código '{code}' repetido en el archivo.")
            continue

        try:
            max_guests = int(str(row["max_guests"]).strip())
        except ValueError:
            errors.append(f"Fila {line}: max_guests '{row['max_guests']}' no es un entero.")
            continue
        if max_guests < 1:
            errors.append(f"Fila {line}: max_guests debe ser >= 1.")
            continue

        is_active = parse_bool(row["is_active"], default=True)
        if is_active is None:
            errors.append(f"Fila {line}: is_active '{row['is_active']}' no reconocido.")
            continue

        if code:
            seen.add(code)
        rows.append({
            "code": code,
            "assigned_to": str(row["assigned_to"]).strip(),
            "max_guests": max_guests,
            "is_active": is_active,
        })

    if strict and errors:
        raise ValueError("Errores de validación:\n - " + "\n - ".join(errors))

    clean = pd.DataFrame(rows, columns=["code", "assigned_to", "max_guests", "is_active"])
    return clean, errors


def df_to_records(df: pd.DataFrame) -> List[Dict[str, object]]:
    """Convierte el DataFrame en payloads para POST /api/admin/codes (sin código → se genera)."""
    records = []
    for rec in df.to_dict(orient="records"):
        payload = {
            "assigned_to": rec["assigned_to"],
            "max_guests": int(rec["max_guests"]),
            "is_active": bool(rec["is_active"]),
        }
        if rec.get("code"):
            payload["code"] = rec["code"]
        records.append(payload)
    return records
