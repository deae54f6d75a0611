import uvicorn
from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException
from contextlib import asynccontextmanager
import logging

# Importar la función de configuración de logging
from app.core.logging_config import setup_logging

# Llamar a la configuración de logging ANTES de importar/crear otros elementos
setup_logging()

# Ahora importar el resto
from app.api.v1.api import api_router
from app.core.config import get_settings
from app.core.exceptions import GymError
from app.core.scheduler import init_scheduler
from app.create_tables import create_tables
from app.middleware.timing import TimingMiddleware

logger = logging.getLogger(__name__)

# Obtener la instancia de configuración al inicio del módulo
settings_instance = get_settings()

# Código de error por estado HTTP para las excepciones que no son de dominio
HTTP_ERROR_CODES = {
    400: "BAD_REQUEST",
    404: "NOT_FOUND",
    405: "METHOD_NOT_ALLOWED",
    409: "CONFLICT",
    500: "INTERNAL_ERROR",
}

# Cabeceras que nunca se escriben en el log
SENSITIVE_HEADERS = ("authorization", "cookie")


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info("Lifespan: Startup iniciado...")

    if settings_instance.AUTO_CREATE_TABLES:
        create_tables()
        logger.info("Lifespan: Tablas verificadas.")

    # Iniciar el scheduler
    if settings_instance.SCHEDULER_ENABLED:
        try:
            scheduler = init_scheduler()
            app.state.scheduler = scheduler
            logger.info("Lifespan: Scheduler inicializado.")
        except Exception as e:
            logger.error(f"Lifespan: Error al inicializar scheduler: {e}", exc_info=True)

    yield  # Aplicación en ejecución

    logger.info("Lifespan: Shutdown iniciado...")

    # Apagar el scheduler
    if getattr(app.state, "scheduler", None):
        try:
            app.state.scheduler.shutdown()
            logger.info("Scheduler shut down.")
        except Exception as e:
            logger.error(f"Error shutting down scheduler: {e}", exc_info=True)


app = FastAPI(
    title=settings_instance.PROJECT_NAME,
    description=settings_instance.PROJECT_DESCRIPTION,
    version=settings_instance.VERSION,
    openapi_url=f"{settings_instance.API_PREFIX}/openapi.json",
    docs_url=f"{settings_instance.API_PREFIX}/docs",
    redoc_url=f"{settings_instance.API_PREFIX}/redoc",
    lifespan=lifespan,
)


# ==========================================
# MANEJADORES DE ERRORES
# ==========================================

@app.exception_handler(GymError)
async def gym_error_handler(request: Request, exc: GymError):
    return JSONResponse(status_code=exc.status_code, content=jsonable_encoder(exc.to_payload()))


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    return JSONResponse(
        status_code=exc.status_code,
        content={
            "ok": False,
            "error": str(exc.detail),
            "code": HTTP_ERROR_CODES.get(exc.status_code, "HTTP_ERROR"),
        },
        headers=getattr(exc, "headers", None),
    )


def _validation_message(error: dict) -> str:
    # Los ValueError de los validadores llegan como "Value error, <mensaje>"
    message = str(error.get("msg", "Invalid request"))
    if message.startswith("Value error, "):
        message = message[len("Value error, "):]
    location = [str(part) for part in error.get("loc", ()) if part not in ("body", "query", "path", "header")]
    return f"{'.'.join(location)}: {message}" if location else message


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    errors = exc.errors()
    message = _validation_message(errors[0]) if errors else "Invalid request"
    logger.info(f"Petición inválida {request.method} {request.url.path}: {message}")
    return JSONResponse(
        status_code=400,
        content={
            "ok": False,
            "error": message,
            "code": "VALIDATION_ERROR",
            "details": jsonable_encoder(errors),
        },
    )


@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception):
    logger.error(f"Error no controlado en {request.method} {request.url.path}: {exc}", exc_info=True)
    return JSONResponse(
        status_code=500,
        content={"ok": False, "error": "Internal server error", "code": "INTERNAL_ERROR"},
    )


@app.middleware("http")
async def log_requests(request: Request, call_next):
    logger.info(f"Middleware: Recibida petición: {request.method} {request.url}")
    if settings_instance.DEBUG_MODE:
        headers_dict = {
            key: ("***masked***" if key.lower() in SENSITIVE_HEADERS else value)
            for key, value in request.headers.items()
        }
        logger.debug(f"Middleware: Headers: {headers_dict}")

    response = await call_next(request)

    logger.info(f"Middleware: Enviando respuesta: {response.status_code}")
    return response


# Añadir middleware para medir el tiempo de respuesta
app.add_middleware(TimingMiddleware)

# Lista de orígenes permitidos para CORS
origins = settings_instance.BACKEND_CORS_ORIGINS or []

app.add_middleware(
    CORSMiddleware,
    allow_origins=origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
    expose_headers=["*"],
    max_age=86400,  # 24 horas en segundos
)

# Incluir routers: bajo /api y, si está activado, también sin prefijo
app.include_router(api_router, prefix=settings_instance.API_PREFIX)
if settings_instance.SERVE_BARE_ROUTES:
    app.include_router(api_router, include_in_schema=False)


# Ruta raíz
@app.get("/")
def root():
    return {
        "message": "Gym booking API",
        "docs": f"{settings_instance.API_PREFIX}/docs",
    }


if __name__ == "__main__":
    uvicorn.run("app.main:app", host="0.0.0.0", port=8000, reload=settings_instance.DEBUG_MODE)
