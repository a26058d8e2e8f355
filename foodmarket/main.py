import logging
import os
from contextlib import asynccontextmanager
from pathlib import Path

from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from foodmarket.core.config import CORS_ORIGINS, DATABASE_URL
from foodmarket.core.database import Base, dispose_engine, engine
from foodmarket.core.exceptions import OrderCoreError
from foodmarket.core.logging_setup import configure_logging
from foodmarket.core.startup_checks import (
    ensure_migrations_applied,
    validate_auth_configuration,
    validate_database_environment,
)
from foodmarket.middleware.observability import ObservabilityMiddleware
import foodmarket.models  # garante que os models são importados antes do create_all

from foodmarket.routers.orders import router as orders_router
from foodmarket.routers.vouchers import router as vouchers_router
from foodmarket.routers.internal_metrics import router as internal_metrics_router

configure_logging()

logger = logging.getLogger(__name__)
STARTUP_PREFIX = "[STARTUP]"
REPO_ROOT = Path(__file__).resolve().parents[1]
ALEMBIC_CONFIG_PATH = Path(
    os.getenv("ALEMBIC_CONFIG", str(REPO_ROOT / "alembic.ini"))
)


def _startup_tasks() -> None:
    try:
        validate_database_environment()
        validate_auth_configuration()
        # Cria tabelas só no SQLite (dev). Em produção, use migrations.
        if DATABASE_URL.startswith("sqlite"):
            Base.metadata.create_all(bind=engine)
        ensure_migrations_applied(engine=engine, alembic_config_path=ALEMBIC_CONFIG_PATH)
    except Exception:
        logger.exception("%s ERROR startup failed", STARTUP_PREFIX)
        raise


def _shutdown_tasks() -> None:
    dispose_engine()
    logger.info("%s engine disposed", STARTUP_PREFIX)


@asynccontextmanager
async def lifespan(_: FastAPI):
    _startup_tasks()
    yield
    _shutdown_tasks()


app = FastAPI(
    title="Food Marketplace Order API",
    lifespan=lifespan,
    docs_url="/docs",
    redoc_url="/redoc",
    openapi_url="/openapi.json",
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)
app.add_middleware(ObservabilityMiddleware)


@app.exception_handler(OrderCoreError)
async def order_core_error_handler(request: Request, exc: OrderCoreError):
    if exc.status_code >= 500:
        logger.error("Unhandled domain error on %s %s: %s", request.method, request.url.path, exc.message)
    return JSONResponse(status_code=exc.status_code, content=exc.to_payload())


@app.exception_handler(RequestValidationError)
async def request_validation_error_handler(_: Request, exc: RequestValidationError):
    errors = []
    for error in exc.errors():
        location = ".".join(str(part) for part in error.get("loc", ()) if part != "body")
        errors.append(f"{location}: {error.get('msg')}" if location else str(error.get("msg")))
    return JSONResponse(
        status_code=422,
        content=jsonable_encoder({"error": "Validation failed", "errors": errors}),
    )


# Routers
app.include_router(orders_router)
app.include_router(vouchers_router)
app.include_router(internal_metrics_router)


@app.get("/")
def root():
    return {"status": "ok"}


@app.get("/health")
def health():
    return {"status": "healthy"}
