# app/main.py                                                                                   # Ruta y nombre del archivo principal de la API.

# ================================================================
# 🧱 MODO MANTENIMIENTO (Control temporal desde variable de entorno)
# ================================================================

import os

# Si la variable MAINTENANCE_MODE=1 está activa, se crea una app mínima
if os.getenv("MAINTENANCE_MODE") == "1":
    from fastapi import FastAPI
    from fastapi.responses import JSONResponse
    from loguru import logger

    app = FastAPI(title="API en mantenimiento")

    @app.api_route("/{path:path}", methods=["GET", "POST", "PUT", "DELETE", "PATCH", "OPTIONS"])
    async def maintenance_page(path: str):
        """Responde a cualquier ruta y método con mensaje neutro de mantenimiento."""
        return JSONResponse(
            status_code=503,
            content={
                "status": "offline",
                "message": "🌙 El sistema está en mantenimiento. Vuelve más tarde."
            }
        )

    logger.warning("🚧 API arrancada en MODO MANTENIMIENTO. Todos los endpoints reales están desactivados.")
else:
    # =================================================================================             # Separador visual de sección.
    # 🧠 NÚCLEO DE LA APLICACIÓN API (FastAPI)                                                      # Título de la sección principal.
    # ---------------------------------------------------------------------------------             # Separador de sección.
    # - Crea la instancia de FastAPI                                                                # Lista responsabilidades del módulo.
    # - Configura CORS                                                                              # Continua la lista.
    # - Traduce RSVPError a respuestas {error, detail}                                              # Continua la lista.
    # - Registra routers modulares (public, admin, meta)                                           # Continua la lista.
    # =================================================================================             # Fin del encabezado.

    from pathlib import Path                                                                        # Importa Path para manipular rutas de archivos.

    from dotenv import load_dotenv                                                                  # Importa load_dotenv para cargar variables desde .env.

    env_path = Path('.') / '.env'                                                                   # Construye la ruta al archivo .env en el directorio actual.
    load_dotenv(dotenv_path=env_path)                                                               # Carga las variables antes de importar módulos que leen env.

    from fastapi import FastAPI, Request                                                            # Importa FastAPI para crear la aplicación.
    from fastapi.middleware.cors import CORSMiddleware                                              # Importa middleware CORS para orígenes permitidos.
    from fastapi.responses import JSONResponse                                                      # Respuesta JSON para el handler de errores.
    from loguru import logger                                                                       # Importa logger para escribir trazas al arrancar.

    logger.info(                                                                                    # Log informativo de variables clave.
        "[BOOT] ADMIN_KEY_SET={} | ADMIN_LOGIN_SET={} | DB_URL_SET={}",                             # Plantilla del mensaje con placeholders.
        "yes" if os.getenv("ADMIN_API_KEY") else "no",                                              # ¿Hay API key de admin?
        "yes" if (os.getenv("ADMIN_EMAIL") and os.getenv("ADMIN_PASSWORD")) else "no",              # ¿Hay login de operador?
        "yes" if os.getenv("DATABASE_URL") else "no",                                               # ¿Hay URL de BD explícita?
    )                                                                                                # Cierra la llamada de log.

    from app.db import log_db_path_on_startup                                                       # Utilidad para loguear el motor real de la BD.
    from app.errors import RSVPError                                                                # Base de la taxonomía de errores.
    from app.routers import admin, public                                                           # Routers reales de la aplicación.
    from app import meta                                                                            # Router de metadatos.

    app = FastAPI(                                                                                  # Crea la instancia de la aplicación FastAPI.
        title="API de Invitaciones y RSVP",                                                         # Título de la API (documentación OpenAPI).
        description="Backend para canjear códigos de invitación, registrar confirmaciones y gestionar cupos",  # Descripción corta.
        version="1.0.0",                                                                            # Versión de la API.
    )                                                                                                # Cierra la creación de la app.

    _default_origins = "http://localhost:3000,http://127.0.0.1:3000,http://localhost:8501,http://127.0.0.1:8501"
    app.add_middleware(                                                                             # Registra el middleware de CORS en la app.
        CORSMiddleware,                                                                              # Especifica el tipo de middleware (CORS).
        allow_origins=[o.strip() for o in os.getenv("CORS_ORIGINS", _default_origins).split(",") if o.strip()],  # Orígenes permitidos.
        allow_credentials=True,                                                                      # Permite el envío de credenciales.
        allow_methods=["*"],                                                                         # Permite todos los métodos HTTP.
        allow_headers=["*"],                                                                         # Permite todos los headers.
    )                                                                                                # Cierra la configuración del middleware CORS.

    # El esquema lo gestiona Alembic (migrations/); create_db.py solo para entornos locales.

    @app.exception_handler(RSVPError)                                                                # Traduce errores de dominio a JSON.
    async def rsvp_error_handler(request: Request, exc: RSVPError) -> JSONResponse:
        if exc.status_code >= 500:                                                                   # Fallos de persistencia: ya logueados en el CRUD.
            logger.warning("API/error → {} {} | {}", request.method, request.url.path, type(exc).__name__)
        return JSONResponse(status_code=exc.status_code, content=exc.to_payload())

    @app.on_event("startup")                                                                         # Hook que se ejecuta cuando la app arranca.
    def _startup_db_trace() -> None:
        log_db_path_on_startup()

    app.include_router(public.router)                                                                # Monta el router público (código + RSVP).
    app.include_router(meta.router)                                                                  # Monta el router meta.
    app.include_router(admin.router)                                                                 # Monta el router admin.
