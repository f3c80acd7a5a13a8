"""FastAPI application factory for the plugin management API."""

import logging

from fastapi import APIRouter, Depends, FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from starlette.exceptions import HTTPException as StarletteHTTPException

from devtoolbox import __version__
from devtoolbox.config import ServerConfig
from devtoolbox.errors import DevToolboxError, InvalidRequestError, RateLimitExceededError, ServerError
from devtoolbox.plugins.manager import PluginManager
from devtoolbox.server.responses import error_response
from devtoolbox.server.routers import plugins_router, system_router, tools_router
from devtoolbox.server.security import FixedWindowRateLimiter, enforce_rate_limit, require_api_key
from devtoolbox.tools.registry import ToolRegistry

logger = logging.getLogger(__name__)


def create_app(
    plugin_manager: PluginManager,
    tool_registry: ToolRegistry,
    config: ServerConfig,
) -> FastAPI:
    """Build the management API around an existing manager and registry.

    The app does not own the runtime objects; the caller constructs them
    once and passes them in.
    """
    ok, message = config.validate()
    if not ok:
        raise ValueError(message)

    app = FastAPI(
        title="Developer Toolbox Plugin API",
        description="Runtime plugin management for the developer toolbox",
        version=__version__,
    )
    app.state.plugin_manager = plugin_manager
    app.state.tool_registry = tool_registry
    app.state.server_config = config
    app.state.rate_limiter = (
        FixedWindowRateLimiter(config.rate_limit_max) if config.enable_rate_limit else None
    )

    if config.enable_cors:
        app.add_middleware(
            CORSMiddleware,
            allow_origins=["*"],
            allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
            allow_headers=["Content-Type", "Authorization", "X-API-Key"],
        )

    @app.middleware("http")
    async def log_requests(request: Request, call_next):
        response = await call_next(request)
        logger.info(f"{request.method} {request.url.path} -> {response.status_code}")
        return response

    # Auth runs before the rate limiter, both before any route touches the manager
    api = APIRouter(
        prefix="/api",
        dependencies=[Depends(require_api_key), Depends(enforce_rate_limit)],
    )
    api.include_router(system_router)
    api.include_router(plugins_router)
    api.include_router(tools_router)
    app.include_router(api)

    _register_exception_handlers(app)

    logger.info(
        f"Plugin API configured: auth={'on' if config.api_key else 'off'}, "
        f"rate_limit={config.rate_limit_max if config.enable_rate_limit else 'off'}"
    )
    return app


def _register_exception_handlers(app: FastAPI) -> None:
    @app.exception_handler(DevToolboxError)
    async def handle_toolbox_error(request: Request, exc: DevToolboxError):
        headers = None
        if isinstance(exc, RateLimitExceededError):
            headers = {"Retry-After": str(exc.retry_after)}
        if exc.status_code >= 500:
            logger.error(f"{request.method} {request.url.path}: {exc.message} {exc.details}")
        return error_response(exc, headers=headers)

    @app.exception_handler(RequestValidationError)
    async def handle_validation_error(request: Request, exc: RequestValidationError):
        errors = [
            f"{'.'.join(str(x) for x in err.get('loc', ()))}: {err.get('msg')}"
            for err in exc.errors()
        ]
        return error_response(InvalidRequestError("Invalid request", {"errors": errors}))

    @app.exception_handler(StarletteHTTPException)
    async def handle_http_error(request: Request, exc: StarletteHTTPException):
        message = "Endpoint not found" if exc.status_code == 404 else str(exc.detail)
        error = InvalidRequestError(message)
        error.status_code = exc.status_code
        return error_response(error)

    @app.exception_handler(Exception)
    async def handle_unexpected(request: Request, exc: Exception):
        logger.exception(f"Unhandled error on {request.method} {request.url.path}")
        return error_response(ServerError(str(exc) or type(exc).__name__))
