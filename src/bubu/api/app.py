from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Request, Response
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from loguru import logger

from bubu import __version__
from bubu.api.deps import ServiceContainer, build_container
from bubu.api.routes import router
from bubu.config import Settings, configure_logging, get_settings
from bubu.domain.errors import (
    ConflictError,
    DomainError,
    NoRelationshipError,
    NotFoundError,
    ValidationError,
)

ERROR_STATUS = [
    (ValidationError, 400),
    (NotFoundError, 404),
    (NoRelationshipError, 404),
    (ConflictError, 409),
]


def error_response(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"success": False, "error": message})


def status_for(error: DomainError) -> int:
    for error_type, status_code in ERROR_STATUS:
        if isinstance(error, error_type):
            return status_code
    return 400


def create_app(settings: Optional[Settings] = None, container: Optional[ServiceContainer] = None) -> FastAPI:
    """Build the FastAPI application.

    Args:
        settings: Settings to use (defaults to environment/.env settings)
        container: Prebuilt services; built from settings when omitted

    Returns:
        Configured FastAPI app
    """
    settings = settings or get_settings()
    configure_logging(settings.log_level)
    owns_container = container is None
    container = container or build_container(settings)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        yield
        if owns_container:
            container.db.disconnect()
            logger.info("Database connection closed")

    app = FastAPI(title="BUBU", version=__version__, lifespan=lifespan)
    app.state.container = container

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.middleware("http")
    async def log_requests(request: Request, call_next):
        logger.info("{} {}", request.method, request.url.path)
        response: Response = await call_next(request)
        logger.info("→ {}", response.status_code)
        return response

    @app.exception_handler(DomainError)
    async def domain_error_handler(request: Request, exc: DomainError):
        return error_response(status_for(exc), str(exc))

    @app.exception_handler(RequestValidationError)
    async def request_validation_handler(request: Request, exc: RequestValidationError):
        errors = "; ".join(
            f"{'.'.join(str(part) for part in error['loc'] if part != 'body')}: {error['msg']}"
            for error in exc.errors()
        )
        return error_response(400, errors or "Invalid request")

    @app.exception_handler(Exception)
    async def unhandled_error_handler(request: Request, exc: Exception):
        logger.exception("Unhandled error on {} {}", request.method, request.url.path)
        return error_response(500, "Internal server error")

    app.include_router(router, prefix="/api")

    @app.get("/health")
    def health():
        return {"status": "ok", "version": __version__}

    return app
