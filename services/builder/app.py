# services/builder/app.py
from __future__ import annotations

import logging
import os
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError
from starlette.exceptions import HTTPException as StarletteHTTPException
from starlette.status import HTTP_500_INTERNAL_SERVER_ERROR

import services.builder.core.shared as shared
from services.builder.core.errors import BuilderError
from services.builder.core.repos import ensure_projects_schema
from services.builder.core.settings import load_settings
from services.builder.db import dsn_summary
from services.builder.routes.plans import router as plans_router

logger = logging.getLogger(__name__)


def _configure_logging() -> None:
    level = load_settings(shared._repo_root()).get("log_level", "INFO")
    logging.basicConfig(
        level=getattr(logging, str(level).upper(), logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def _init_schemas() -> None:
    url = shared._database_url(shared._repo_root())
    try:
        ensure_projects_schema(shared._engine())
        logger.info("[app] project store ready (%s)", dsn_summary(url))
    except SQLAlchemyError as e:
        # Requests will surface StorageError until the database is reachable.
        logger.error("[app] could not ensure schema on %s: %s", dsn_summary(url), e)


@asynccontextmanager
async def lifespan(app: FastAPI):
    _configure_logging()
    _init_schemas()
    yield


app = FastAPI(
    title="Blueprint Builder API",
    version="0.1.0",
    docs_url="/docs",
    openapi_url="/openapi.json",
    lifespan=lifespan,
)
app.include_router(plans_router)


@app.get("/health")
def health():
    if os.getenv("STARTUP_DEBUG"):
        logger.info("[app] database: %s", dsn_summary(shared._database_url(shared._repo_root())))
    return {"status": "ok"}


# -------------------- Error translation --------------------
@app.exception_handler(BuilderError)
async def builder_exc_handler(request: Request, exc: BuilderError):
    if exc.status_code >= 500:
        logger.warning("[app] %s %s -> %s: %s", request.method, request.url.path, exc.status_code, exc.message)
    return JSONResponse(exc.to_body(), status_code=exc.status_code)


@app.exception_handler(StarletteHTTPException)
async def http_exc_handler(request: Request, exc: StarletteHTTPException):
    return JSONResponse({"error": exc.detail or "Request failed."}, status_code=exc.status_code)


@app.exception_handler(RequestValidationError)
async def validation_exc_handler(request: Request, exc: RequestValidationError):
    details = [
        {"path": ".".join(str(p) for p in err.get("loc", ())), "reason": err.get("msg", "invalid")}
        for err in exc.errors()
    ]
    return JSONResponse(
        {"error": "Invalid request body", "details": details},
        status_code=422,
    )


@app.exception_handler(Exception)
async def unhandled_exc_handler(request: Request, exc: Exception):
    logger.exception("[app] unhandled error on %s %s", request.method, request.url.path)
    return JSONResponse({"error": "Unexpected error."}, status_code=HTTP_500_INTERNAL_SERVER_ERROR)
