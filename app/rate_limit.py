# app/rate_limit.py                                                                                            # Ruta del archivo.

# =================================================================================                               # Separador visual.
# 🚦 Rate limit ligero en memoria                                                                                # Título.
# ---------------------------------------------------------------------------------                               # Separador.
# - Ventana deslizante en memoria por clave (IP + ruta).                                                         # Descripción.
# - Frena la fuerza bruta sobre /api/codes/validate y el spam de /api/rsvps.                                     # Uso.
# - Para despliegues multiinstancia usa Redis o un reverse-proxy (NGINX, Cloudflare).                            # Nota prod.
# =================================================================================                               # Fin encabezado.

import os                                              # Para leer variables de entorno (.env).
import time                                            # Para obtener timestamps con time.time().
from collections import deque                          # Deque eficiente para pops en cola.
from typing import Deque, Dict, Tuple                  # Tipado.

from loguru import logger                              # Logger para trazas.

from app.errors import RateLimited                     # Error 429 de la taxonomía.

_BUCKETS: Dict[str, Deque[float]] = {}                 # Clave → timestamps (segundos) dentro de la ventana.
_SWEEP_INTERVAL_S = 60                                 # Cada cuánto se barren los cubos caducados.
_last_sweep = 0.0                                      # Momento del último barrido.
_max_window = 0                                        # Ventana más larga vista (cota para caducar cubos).

def _now() -> float:
    return time.time()

def _sweep(now: float) -> None:
    """Elimina los cubos vacíos o cuyo último acceso ya quedó fuera de cualquier ventana."""
    cutoff = now - _max_window
    stale = [k for k, b in _BUCKETS.items() if not b or b[-1] <= cutoff]
    for k in stale:
        del _BUCKETS[k]
    if stale:
        logger.debug("RATE/sweep → {} cubos caducados eliminados | quedan={}", len(stale), len(_BUCKETS))

def is_allowed(key: str, max_req: int, window_s: int) -> bool:
    """Devuelve True si la acción está permitida para 'key' según (max_req/window_s)."""
    global _last_sweep, _max_window
    if max_req <= 0:                                    # Límite 0 o negativo → desactivado.
        return True

    now = _now()
    _max_window = max(_max_window, window_s)
    if now - _last_sweep >= _SWEEP_INTERVAL_S:
        _sweep(now)
        _last_sweep = now

    bucket = _BUCKETS.setdefault(key, deque())          # Obtiene o crea el cubo de la clave.
    cutoff = now - window_s                             # Purga lo que quedó fuera de la ventana.
    while bucket and bucket[0] <= cutoff:
        bucket.popleft()

    if len(bucket) >= max_req:
        logger.warning("Rate limit hit for key='{}' ({}/{} in {}s)", key, len(bucket), max_req, window_s)
        return False

    bucket.append(now)
    return True

def enforce(key: str, max_req: int, window_s: int) -> None:
    """Como is_allowed, pero lanza RateLimited (429) cuando se supera el límite."""
    if not is_allowed(key, max_req, window_s):
        raise RateLimited()

def reset() -> None:
    """Vacía todos los cubos (tests y recarga en caliente)."""
    global _last_sweep, _max_window
    _BUCKETS.clear()
    _last_sweep = 0.0
    _max_window = 0

def get_limits_from_env(prefix: str, default_max: int, default_window: int) -> Tuple[int, int]:
    """Lee {prefix}_MAX y {prefix}_WINDOW (segundos) desde env; aplica defaults si faltan o son inválidos."""
    try:
        max_req = int(os.getenv(f"{prefix}_MAX", str(default_max)))
        window = int(os.getenv(f"{prefix}_WINDOW", str(default_window)))
    except ValueError:
        max_req, window = default_max, default_window
    return max_req, window
