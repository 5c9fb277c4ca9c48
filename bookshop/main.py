"""
Main application entry point.

``create_app`` resolves settings once, wires the Record Store and the
services, mounts the catalog router under the service path and installs
the gateway concerns: one log line per request and per response, and the
translation of domain errors into the fixed error vocabulary.
"""

import logging
import time
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from bookshop.api.v1.catalog_endpoints import router as catalog_router
from bookshop.api.v1.dependencies import build_container
from bookshop.config import Settings, configure_logging, teardown_logging
from bookshop.domain.errors import BookshopError, NotFound, OperationError, ValidationError
from bookshop.infrastructure.seed import seed_books

GENERIC_ERROR_MESSAGE = "Internal server error"


def error_response(status_code: int, message: str, target: Optional[str] = None) -> JSONResponse:
    """Build the ``{"error": {...}}`` body shared by every failure."""
    error = {"code": str(status_code), "message": message}
    if target is not None:
        error["target"] = target
    return JSONResponse(status_code=status_code, content={"error": error})


def _install_error_handlers(app: FastAPI, logger: logging.Logger) -> None:

    @app.exception_handler(ValidationError)
    async def handle_validation_error(request: Request, exc: ValidationError) -> JSONResponse:
        logger.info("Validation failed on %s %s: %s", request.method, request.url.path, exc.message)
        return error_response(status.HTTP_400_BAD_REQUEST, exc.message, exc.field)

    @app.exception_handler(NotFound)
    async def handle_not_found(request: Request, exc: NotFound) -> JSONResponse:
        return error_response(status.HTTP_404_NOT_FOUND, str(exc))

    @app.exception_handler(BookshopError)
    async def handle_internal_error(request: Request, exc: BookshopError) -> JSONResponse:
        # Causes are logged here, never echoed to the caller
        logger.error(
            "Operation failed on %s %s: %r (cause: %r)",
            request.method,
            request.url.path,
            exc,
            exc.__cause__,
        )
        message = exc.message if isinstance(exc, OperationError) else GENERIC_ERROR_MESSAGE
        return error_response(status.HTTP_500_INTERNAL_SERVER_ERROR, message)

    @app.exception_handler(RequestValidationError)
    async def handle_request_validation(request: Request, exc: RequestValidationError) -> JSONResponse:
        errors = exc.errors()
        first = errors[0] if errors else {"loc": (), "msg": "Invalid request"}
        location = [str(part) for part in first.get("loc", ()) if part not in ("body", "query", "path")]
        target = location[-1] if location else None
        message = f"{target}: {first['msg']}" if target else first["msg"]
        logger.info("Malformed request on %s %s: %s", request.method, request.url.path, message)
        return error_response(status.HTTP_400_BAD_REQUEST, message, target)


def _install_request_logging(app: FastAPI, logger: logging.Logger) -> None:

    @app.middleware("http")
    async def log_requests(request: Request, call_next):
        logger.info("--> %s %s", request.method, request.url.path)
        start = time.perf_counter()
        try:
            response = await call_next(request)
        except Exception:
            logger.exception("Unhandled error on %s %s", request.method, request.url.path)
            response = error_response(status.HTTP_500_INTERNAL_SERVER_ERROR, GENERIC_ERROR_MESSAGE)
        elapsed_ms = (time.perf_counter() - start) * 1000
        logger.info(
            "<-- %s %s %d (%.1f ms)",
            request.method,
            request.url.path,
            response.status_code,
            elapsed_ms,
        )
        return response


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    """
    Build the bookshop application.

    Args:
        settings: Resolved settings; read from the environment if omitted
    """
    settings = settings or Settings()
    container = build_container(settings)
    server_logger = logging.getLogger("bookshop.server")
    gateway_logger = logging.getLogger("bookshop.gateway")

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        handler = configure_logging(settings)
        server_logger.info("Starting bookshop service (profile=%s)", settings.profile)

        if settings.seed_csv is not None:
            seed_books(container.commands, settings.seed_csv, repository=container.repository)

        base = settings.service_path
        server_logger.info("API endpoints available at: %s", base)
        server_logger.info("Books: GET %s/Books", base)
        server_logger.info("Create Book: POST %s/createBook", base)
        server_logger.info("Metadata: GET %s/$metadata", base)
        try:
            yield
        finally:
            server_logger.info("Shutting down bookshop service")
            teardown_logging(handler)

    app = FastAPI(
        title="Bookshop Catalog API",
        description="Book catalog with generic CRUD plus createBook and getBooksByGenre.",
        version="1.0.0",
        docs_url="/docs",
        redoc_url="/redoc",
        lifespan=lifespan,
    )
    app.state.container = container

    _install_error_handlers(app, gateway_logger)
    _install_request_logging(app, gateway_logger)

    # Include API routers
    app.include_router(catalog_router, prefix=settings.service_path, tags=["bookshop"])

    @app.get("/")
    def read_root():
        """Root endpoint."""
        return {
            "message": "Welcome to the Bookshop Catalog API",
            "service": settings.service_path,
            "docs": "/docs",
            "health": "/health",
        }

    @app.get("/health")
    def health_check():
        return {"status": "ok"}

    return app


def main() -> None:
    import uvicorn

    settings = Settings()
    uvicorn.run(create_app(settings), host=settings.host, port=settings.port)


if __name__ == "__main__":
    main()
