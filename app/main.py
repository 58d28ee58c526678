import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Depends
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from starlette.exceptions import HTTPException as StarletteHTTPException

from app.core.config import get_settings
from app.core.deps import get_registry
from app.core.logging import configure_logging
from app.routers import users as users_router
from app.tables.registry import SchemaRegistry, load_registry
from app.schemas.common import HealthResponse
from app.services.users import USER_TABLE, LoggingUserStore, verify_user_table
from app.core.errors import (
    AppError,
    app_error_handler,
    http_exception_handler,
    validation_exception_handler,
    unhandled_exception_handler,
)

settings = get_settings()
log = logging.getLogger("app.main")


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Load the schema once; any failure here stops the server from starting."""
    configure_logging(level=settings.LOG_LEVEL, json_logs=settings.LOG_JSON)
    registry = load_registry(settings.SCHEMA_PATH)
    verify_user_table(registry.table(USER_TABLE))
    app.state.registry = registry
    app.state.user_store = LoggingUserStore()
    log.info("server ready (env=%s)", settings.APP_ENV)
    yield
    log.info("server stopped")


app = FastAPI(
    title="User Gateway API",
    description=(
        "**Schema-driven validation and dispatch for the `user` resource.**\n\n"
        "Request bodies are checked field by field against the table schema "
        "loaded at startup; the first problem found is reported.\n\n"
        "All error responses follow the `{code, message}` envelope."
    ),
    version="1.0.0",
    docs_url="/docs",
    redoc_url="/redoc",
    lifespan=lifespan,
)

# --- CORS ---
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins_list,
    allow_methods=["GET", "POST", "PATCH", "DELETE"],
    allow_headers=["Content-Type", "Authorization"],
)

# --- Exception handlers (most specific first) ---
app.add_exception_handler(AppError, app_error_handler)
app.add_exception_handler(StarletteHTTPException, http_exception_handler)
app.add_exception_handler(RequestValidationError, validation_exception_handler)
app.add_exception_handler(Exception, unhandled_exception_handler)


# Registered before the user routes so `/health` is not read as `/{user_id}`.
@app.get("/health", tags=["health"], summary="Health check", response_model=HealthResponse)
def health(registry: SchemaRegistry = Depends(get_registry)):
    """Returns the tables the schema registry was loaded with."""
    return HealthResponse(status="ok", tables=sorted(registry))


# --- Routers ---
app.include_router(users_router.router)
