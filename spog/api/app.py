"""
SPOG Inventory Tracker HTTP API.

create_app() builds the FastAPI application: routers under /api, a
health check, and one exception handler that turns service errors into
``{"error": message, "details": [...]}`` responses.
"""

import logging

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from spog.services.exceptions import (
    AuthenticationError,
    DatabaseError,
    DuplicateNameError,
    InsufficientStock,
    ItemInUse,
    LocationInUse,
    NotFoundError,
    PermissionDenied,
    ServiceError,
    ValidationError,
)
from spog.utils.config import get_config
from spog.api.routes import auth, consumption, inventory, locations, reports, users

logger = logging.getLogger(__name__)

# Most specific first; the first isinstance match wins
STATUS_CODES = (
    (AuthenticationError, 401),
    (PermissionDenied, 403),
    (NotFoundError, 404),
    (DuplicateNameError, 409),
    (LocationInUse, 409),
    (ItemInUse, 409),
    (ValidationError, 400),
    (InsufficientStock, 400),
    (DatabaseError, 500),
)


def status_code_for(exc: ServiceError) -> int:
    for exc_type, status_code in STATUS_CODES:
        if isinstance(exc, exc_type):
            return status_code
    return 400


def error_body(exc: ServiceError) -> dict:
    if isinstance(exc, ValidationError):
        return {"error": "Validation failed", "details": exc.errors}
    if isinstance(exc, InsufficientStock):
        return {
            "error": str(exc),
            "details": [
                f"Maximum available: {exc.available:g} {exc.unit}",
            ],
            "max_quantity": exc.available,
        }
    if isinstance(exc, DatabaseError):
        return {"error": "Internal server error", "details": []}
    return {"error": str(exc), "details": []}


async def service_error_handler(request: Request, exc: ServiceError) -> JSONResponse:
    status_code = status_code_for(exc)
    if status_code >= 500:
        logger.error(f"{request.method} {request.url.path} failed: {exc}")
    else:
        logger.info(f"{request.method} {request.url.path} -> {status_code}: {exc}")
    return JSONResponse(status_code=status_code, content=error_body(exc))


async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    details = []
    for error in exc.errors():
        location = ".".join(str(part) for part in error.get("loc", ()) if part != "body")
        details.append(f"{location}: {error.get('msg')}" if location else error.get("msg"))
    return JSONResponse(status_code=400, content={"error": "Validation failed", "details": details})


def create_app() -> FastAPI:
    """Build the FastAPI application."""
    config = get_config()
    app = FastAPI(title=config.app_name, version=config.app_version)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.add_exception_handler(ServiceError, service_error_handler)
    app.add_exception_handler(RequestValidationError, request_validation_handler)

    @app.get("/health")
    def health():
        return {"status": "ok", "version": config.app_version}

    for module in (auth, inventory, consumption, reports, locations, users):
        app.include_router(module.router, prefix="/api")

    return app
