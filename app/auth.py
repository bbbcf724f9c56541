# app/auth.py  # Ruta y nombre del archivo del módulo de autenticación.  # Indica el archivo actual.

# =================================================================================
# 🔐 MÓDULO DE AUTENTICACIÓN DEL PANEL (JWT)                                      # Describe el propósito del módulo.
# ---------------------------------------------------------------------------------
# - Comprueba email/contraseña del operador contra el entorno.                    # Inicio de sesión.
# - Crea y verifica JSON Web Tokens de tipo 'admin' con python-jose.              # Tokens firmados.
# - Cierre de sesión: lista en memoria de `jti` revocados.                        # Sign-out.
# =================================================================================

# 🐍 Importaciones
import hmac                                                   # Comparación en tiempo constante.
import os                                                     # Acceso a variables de entorno (.env).
import uuid                                                   # Identificador único por token (jti).
from datetime import datetime, timedelta                      # Manejo de tiempos de emisión/expiración.
from typing import Any, Dict, Optional, Set                   # Tipos para anotar parámetros y retornos.

from jose import JWTError, jwt                                # Implementación de JWT (python-jose).
from loguru import logger                                     # Logger para trazas de acceso.

# ⚙️ Configuración de seguridad (desde .env con defaults de desarrollo)
SECRET_KEY = os.getenv("SECRET_KEY", "dev_secret")            # Clave para firmar JWT (usa valor real en producción).
ALGORITHM = os.getenv("ALGORITHM", "HS256")                   # Algoritmo de firmado (HS256 por defecto).
ADMIN_TOKEN_EXPIRE_MINUTES = int(os.getenv("ADMIN_TOKEN_EXPIRE_MINUTES", "480"))  # Expiración del token de panel.
ADMIN_EMAIL = os.getenv("ADMIN_EMAIL", "").strip().lower()    # Email del operador.
ADMIN_PASSWORD = os.getenv("ADMIN_PASSWORD", "")              # Contraseña del operador.

# 🔒 Validación mínima de config crítica
if not SECRET_KEY:                                            # Si queda vacío...
    raise ValueError("SECRET_KEY no está configurado.")       # Falla rápido con mensaje claro.
if not ALGORITHM:                                             # Si no hay algoritmo...
    raise ValueError("ALGORITHM no está configurado.")        # Falla rápido con mensaje claro.

_REVOKED: Set[str] = set()                                    # jti revocados por logout (proceso único).

# 🕒 Helpers internos
def _utcnow() -> datetime:
    return datetime.utcnow()

def _encode(payload: Dict[str, Any]) -> str:
    return jwt.encode(payload, SECRET_KEY, algorithm=ALGORITHM)

# =================================================================================
# 🚪 CREDENCIALES
# =================================================================================

def authenticate_admin(email: str, password: str) -> bool:
    """True si email/contraseña coinciden con los del operador configurado."""
    if not ADMIN_EMAIL or not ADMIN_PASSWORD:                 # Sin credenciales configuradas no hay login.
        logger.warning("AUTH/login → ADMIN_EMAIL/ADMIN_PASSWORD no configurados")
        return False
    email_ok = hmac.compare_digest((email or "").strip().lower(), ADMIN_EMAIL)
    password_ok = hmac.compare_digest(password or "", ADMIN_PASSWORD)
    return email_ok and password_ok

# =================================================================================
# ✨ TOKENS
# =================================================================================

def create_admin_token(email: str) -> str:
    """Crea un token 'admin' con jti para poder revocarlo."""
    now = _utcnow()
    exp = now + timedelta(minutes=ADMIN_TOKEN_EXPIRE_MINUTES)
    payload = {
        "sub": email,                                         # Operador autenticado.
        "type": "admin",                                      # Tipo de token.
        "jti": uuid.uuid4().hex,                              # Identificador para revocación.
        "iat": int(now.timestamp()),
        "exp": int(exp.timestamp()),
    }
    return _encode(payload)

def decode_admin_token(token: str) -> Optional[Dict[str, Any]]:
    """Payload si el token es válido, de tipo 'admin' y no revocado; None si no."""
    try:
        data = jwt.decode(token, SECRET_KEY, algorithms=[ALGORITHM])
    except JWTError:
        return None
    if data.get("type") != "admin":
        return None
    if data.get("jti") in _REVOKED:
        return None
    return data

def revoke_token(jti: Optional[str]) -> None:
    """Cierra la sesión del token (solo en este proceso)."""
    if jti:
        _REVOKED.add(jti)
