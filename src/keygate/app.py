"""FastAPI application factory for Keygate."""

import asyncio
from contextlib import asynccontextmanager

from fastapi import Depends, FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from keygate.common.config import KeygateSettings, get_settings
from keygate.common.exceptions import KeygateError
from keygate.common.logging import get_logger, setup_logging
from keygate.common.models import utcnow
from keygate.common.schemas import HealthResponse
from keygate.deps import build_repository, get_repository
from keygate.keys.repository import KeyRepository
from keygate.keys.service import KeyService

logger = get_logger("app")


async def keepalive(interval: float) -> None:
    """Log a liveness line every `interval` seconds until cancelled."""
    while True:
        await asyncio.sleep(interval)
        logger.info("Keep-alive ping at %s", utcnow().isoformat())


def create_app(
    settings: KeygateSettings | None = None,
    repository: KeyRepository | None = None,
) -> FastAPI:
    settings = settings or get_settings()
    setup_logging(settings.log_level)
    repository = repository or build_repository(settings)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        # Startup
        await repository.init()
        logger.info("Keygate started with %s backend", repository.name)
        task = None
        if settings.keepalive_interval > 0:
            task = asyncio.create_task(keepalive(settings.keepalive_interval))
        yield
        # Shutdown
        if task is not None:
            task.cancel()
            try:
                await task
            except asyncio.CancelledError:
                pass
        await repository.close()

    app = FastAPI(
        title=settings.api_title,
        version=settings.api_version,
        lifespan=lifespan,
    )
    app.state.settings = settings
    app.state.repository = repository
    app.state.key_service = KeyService(settings, repository)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.exception_handler(KeygateError)
    async def keygate_error_handler(request: Request, exc: KeygateError):
        if exc.status_code >= 500:
            logger.error("%s %s failed: %s", request.method, request.url.path, exc.message)
        return JSONResponse(status_code=exc.status_code, content={"message": exc.message})

    @app.exception_handler(RequestValidationError)
    async def request_validation_handler(request: Request, exc: RequestValidationError):
        return JSONResponse(status_code=400, content={"message": "invalid data format"})

    @app.exception_handler(StarletteHTTPException)
    async def http_error_handler(request: Request, exc: StarletteHTTPException):
        return JSONResponse(status_code=exc.status_code, content={"message": str(exc.detail)})

    @app.exception_handler(Exception)
    async def unhandled_error_handler(request: Request, exc: Exception):
        logger.exception("Unhandled error on %s %s", request.method, request.url.path)
        return JSONResponse(status_code=500, content={"message": "internal server error"})

    @app.get("/health", response_model=HealthResponse)
    async def health(repo: KeyRepository = Depends(get_repository)):
        reachable = await repo.ping()
        return HealthResponse(
            status="ok" if reachable else "degraded",
            version=settings.api_version,
            backend=repo.name,
            store="ok" if reachable else "unreachable",
        )

    from keygate.keys.router import router as keys_router
    app.include_router(keys_router, tags=["keys"])

    return app
