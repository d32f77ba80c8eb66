"""FastAPI application factory for the stock-recount service."""

from __future__ import annotations

from contextlib import asynccontextmanager
from typing import AsyncIterator, Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from recount_service import __version__
from recount_service.config import Settings, get_settings
from recount_service.db import Store
from recount_service.errors import RecountError, TransactionTimeoutError
from recount_service.logging import configure_logging, logger
from recount_service.middleware import RequestTimingMiddleware, elapsed_ms
from recount_service.routes import api_router

_HTTP_ERROR_CODES = {
    400: "BAD_REQUEST",
    404: "NOT_FOUND",
    405: "METHOD_NOT_ALLOWED",
    409: "CONFLICT",
    422: "UNPROCESSABLE_ENTITY",
}


def _describe_validation_error(error: dict) -> str:
    location = ".".join(str(part) for part in error.get("loc", ()) if part != "body")
    message = error.get("msg", "Invalid value")
    return f"{location}: {message}" if location else message


def _install_error_handlers(app: FastAPI) -> None:
    @app.exception_handler(RecountError)
    async def handle_recount_error(request: Request, exc: RecountError) -> JSONResponse:
        headers = None
        if isinstance(exc, TransactionTimeoutError):
            headers = {"Retry-After": str(exc.retry_after_seconds)}
            logger.warning(
                "Transaction budget exhausted",
                method=request.method,
                path=request.url.path,
                elapsed_ms=elapsed_ms(request),
            )
        return JSONResponse(status_code=exc.status_code, content=exc.to_envelope(), headers=headers)

    @app.exception_handler(RequestValidationError)
    async def handle_validation_error(request: Request, exc: RequestValidationError) -> JSONResponse:
        message = "; ".join(_describe_validation_error(error) for error in exc.errors())
        return JSONResponse(status_code=400, content={"code": "BAD_REQUEST", "message": message})

    @app.exception_handler(StarletteHTTPException)
    async def handle_http_error(request: Request, exc: StarletteHTTPException) -> JSONResponse:
        code = _HTTP_ERROR_CODES.get(exc.status_code, "HTTP_ERROR")
        return JSONResponse(
            status_code=exc.status_code,
            content={"code": code, "message": str(exc.detail)},
            headers=getattr(exc, "headers", None),
        )

    @app.exception_handler(Exception)
    async def handle_unexpected_error(request: Request, exc: Exception) -> JSONResponse:
        logger.opt(exception=exc).error(
            "Unhandled error",
            method=request.method,
            path=request.url.path,
            document=request.path_params.get("key"),
            elapsed_ms=elapsed_ms(request),
        )
        return JSONResponse(
            status_code=500,
            content={"code": "INTERNAL_ERROR", "message": "Internal server error"},
        )


def create_app(settings: Optional[Settings] = None, store: Optional[Store] = None) -> FastAPI:
    settings = settings or get_settings()
    configure_logging(settings.log_level)

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        owns_store = app.state.store is None
        if owns_store:
            app.state.store = Store.from_settings(settings)
        logger.info("Service started", app=settings.app_name, environment=settings.environment)
        try:
            yield
        finally:
            if owns_store:
                app.state.store.dispose()
                app.state.store = None
            logger.info("Service stopped", app=settings.app_name)

    app = FastAPI(
        title=settings.app_name,
        version=__version__,
        docs_url="/docs",
        redoc_url="/redoc",
        lifespan=lifespan,
    )
    app.state.settings = settings
    app.state.store = store

    app.add_middleware(RequestTimingMiddleware)
    _install_error_handlers(app)

    app.include_router(api_router)

    @app.get("/health", tags=["monitoring"], summary="Return service health status")
    async def healthcheck() -> dict[str, str]:
        return {"status": "ok", "version": __version__}

    return app
