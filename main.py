# main.py
import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from api.gate import build_gate_router
from core.auth.service import GateAuthService
from core.config import get_config_manager
from core.enrichment import build_location_service, build_notifier
from core.logging import setup_logging
from core.whitelist.service import WhitelistService
from schemas.common import UnifiedAPIResponse
from schemas.config import AppConfig
from utils.errors import ErrorCode
from utils.exceptions import APIError

logger = logging.getLogger(f"ipgate.{__name__}")

APP_VERSION = "1.0.0"
SHUTDOWN_TIMEOUT_SECONDS = 5


def create_app(config: Optional[AppConfig] = None,
               whitelist_service: Optional[WhitelistService] = None) -> FastAPI:
    """
    Builds the FastAPI application.
    Without `config`, the configuration file is located and loaded; without
    `whitelist_service`, one is started on startup and stopped on shutdown.
    """
    if config is None:
        config = get_config_manager().app_config

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        # 1. Logging
        setup_logging(config)
        app.state.config = config

        # 2. Token check / client address resolution
        app.state.auth_service = GateAuthService(config.whitelist.token, config.listen.allow_proxy)

        # 3. Whitelist coordinator with its optional collaborators
        service = whitelist_service
        owns_service = service is None
        if owns_service:
            service = WhitelistService(
                config.whitelist.service_config(),
                location_service=build_location_service(config),
                notifier=build_notifier(config),
            )
        app.state.whitelist_service = service
        logger.info("WhitelistService initialized.")

        yield

        logger.info("Application shutdown...")
        if owns_service:
            service.stop(timeout=SHUTDOWN_TIMEOUT_SECONDS)
            logger.info("WhitelistService stopped.")
        logger.info("Application shutdown complete.")

    app = FastAPI(
        title="ipgate",
        description="Token-authenticated, self-expiring IP allow-listing for nginx.",
        version=APP_VERSION,
        lifespan=lifespan,
        docs_url=None,
        redoc_url=None,
        openapi_url=None,
    )

    # --- Middleware ---
    @app.middleware("http")
    async def access_log_middleware(request: Request, call_next):
        auth_service = getattr(request.app.state, "auth_service", None)
        client_ip = auth_service.get_client_ip(request) if auth_service else None
        if client_ip is None and request.client is not None:
            client_ip = request.client.host
        user_agent = request.headers.get("user-agent", "")
        logger.info(f'{client_ip} "{request.method} {request.url.path} HTTP/{request.scope.get("http_version", "1.1")}" "{user_agent}"')
        return await call_next(request)

    # --- Exception Handlers ---
    @app.exception_handler(APIError)
    async def api_error_handler(request: Request, exc: APIError):
        return JSONResponse(
            status_code=exc.status_code,
            content=UnifiedAPIResponse(
                success=False,
                error_code=exc.error_code,
                message=exc.detail,
                error_details=exc.details or None
            ).model_dump(exclude_none=True)
        )

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(request: Request, exc: StarletteHTTPException):
        return JSONResponse(
            status_code=exc.status_code,
            content=UnifiedAPIResponse(
                success=False,
                error_code=f"HTTP_{exc.status_code}",
                message=exc.detail,
                error_details=None
            ).model_dump(exclude_none=True),
            headers=getattr(exc, "headers", None),
        )

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(request: Request, exc: RequestValidationError):
        errors = []
        for error in exc.errors():
            field_name = ".".join(str(item) for item in error["loc"] if item != "body")
            errors.append({
                "field": field_name,
                "message": error["msg"],
                "error_type": error["type"]
            })
        return JSONResponse(
            status_code=422,
            content=UnifiedAPIResponse(
                success=False,
                error_code=ErrorCode.COMMON_VALIDATION_ERROR.code,
                message=ErrorCode.COMMON_VALIDATION_ERROR.message,
                error_details={"errors": errors}
            ).model_dump(exclude_none=True)
        )

    @app.exception_handler(Exception)
    async def generic_exception_handler(request: Request, exc: Exception):
        logger.error(f"Unhandled exception for request {request.url}: {exc}", exc_info=True)
        return JSONResponse(
            status_code=500,
            content=UnifiedAPIResponse(
                success=False,
                error_code=ErrorCode.COMMON_INTERNAL_ERROR.code,
                message=ErrorCode.COMMON_INTERNAL_ERROR.message,
                error_details=None
            ).model_dump(exclude_none=True)
        )

    # --- Routers ---
    app.include_router(build_gate_router(config.listen.path), tags=["Gate"])

    return app

# Run with: python run.py  (or: uvicorn main:create_app --factory)
