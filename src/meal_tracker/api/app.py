"""FastAPI application factory."""

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from meal_tracker.api.routes import router
from meal_tracker.app_logging import configure_logging
from meal_tracker.containers import AppContainer
from meal_tracker.domain.errors import ValidationError

GENERIC_ERROR_MESSAGE = "Something went wrong. Please try again."


def create_app(container: AppContainer) -> FastAPI:
    """Create a FastAPI app configured with dependencies."""
    configure_logging()
    logger = logging.getLogger(__name__)

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        logger.info(
            "Meal tracker API starting (environment=%s)",
            app.state.container.settings.environment,
        )
        yield

    app = FastAPI(lifespan=lifespan)
    app.state.container = container

    app.include_router(router)

    @app.exception_handler(ValidationError)
    async def validation_error(_: Request, exc: ValidationError) -> JSONResponse:
        return JSONResponse(status_code=422, content={"detail": str(exc)})

    @app.exception_handler(Exception)
    async def storage_error(request: Request, exc: Exception) -> JSONResponse:
        logger.exception(
            "Request failed", extra={"path": request.url.path}, exc_info=exc
        )
        detail = GENERIC_ERROR_MESSAGE
        if container.settings.environment == "local":
            detail = f"{detail} (debug: {type(exc).__name__}: {exc})"
        return JSONResponse(status_code=503, content={"detail": detail})

    @app.get("/health")
    async def health() -> dict[str, str]:
        """Simple health check endpoint."""
        return {"status": "ok"}

    return app
