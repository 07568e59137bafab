"""
FastAPI application factory.

The app owns one RenderingService for its whole lifetime: the engine is
launched at startup (when SAFIRA_EAGER_ENGINE_START is true) and closed
gracefully at shutdown.

Run locally:
    safira-api                       # uvicorn on SAFIRA_API_HOST:SAFIRA_API_PORT
"""

import os
from contextlib import asynccontextmanager
from pathlib import Path
from typing import Optional

import uvicorn
from dotenv import load_dotenv
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from safira import __version__
from safira.api.logger import (
    _log_info,
    _log_warning,
    log_request_failure,
    log_unexpected_error,
    setup_api_logger,
)
from safira.api.router import router as cv_router
from safira.contexts.rendering.service import SHUTDOWN_GRACE_S, RenderingService
from safira.exceptions import EngineUnavailableError, SafiraError, ValidationError
from safira.utils.timestamp import now

load_dotenv()
EAGER_ENGINE_START = os.getenv("SAFIRA_EAGER_ENGINE_START", "true").lower() == "true"
LOGS_PATH = Path(os.getenv("SAFIRA_LOGS_PATH", "outs/logs"))
API_HOST = os.getenv("SAFIRA_API_HOST", "0.0.0.0")
API_PORT = int(os.getenv("SAFIRA_API_PORT", "8000"))


def create_app(service: Optional[RenderingService] = None, eager_start: bool = EAGER_ENGINE_START) -> FastAPI:
    """
    Build the API application.

    Args:
        service: RenderingService to serve requests with (a default one when None)
        eager_start: Launch the engine during startup instead of on first request

    Returns:
        FastAPI app with the /cv routes and structured error handlers
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        rendering_service: RenderingService = app.state.rendering_service
        if eager_start:
            try:
                await rendering_service.start()
            except EngineUnavailableError as e:
                # Serve templates/preview anyway; generate retries the launch
                _log_warning(f"Engine not started at boot: {e.message}")
        yield
        await rendering_service.stop(SHUTDOWN_GRACE_S)

    app = FastAPI(title="SAFIRA CV Rendering API", version=__version__, lifespan=lifespan)
    app.state.rendering_service = service or RenderingService()

    @app.exception_handler(SafiraError)
    async def handle_safira_error(request: Request, exc: SafiraError):
        log_request_failure(request.method, request.url.path, exc)
        return JSONResponse(status_code=exc.http_status, content=exc.to_dict())

    @app.exception_handler(RequestValidationError)
    async def handle_malformed_request(request: Request, exc: RequestValidationError):
        error = ValidationError("Malformed request body")
        log_request_failure(request.method, request.url.path, error)
        return JSONResponse(status_code=error.http_status, content=error.to_dict())

    @app.exception_handler(Exception)
    async def handle_unexpected_error(request: Request, exc: Exception):
        log_unexpected_error(request.method, request.url.path, exc)
        error = SafiraError("Internal server error")
        return JSONResponse(status_code=error.http_status, content=error.to_dict())

    app.include_router(cv_router, prefix="/cv", tags=["cv"])
    return app


def run() -> None:
    """Console entry point: configure logging and serve the API with uvicorn."""
    setup_api_logger(log_dir=LOGS_PATH / f"api_{now()}", host=API_HOST, port=API_PORT)
    _log_info(f"Starting SAFIRA API {__version__}")
    uvicorn.run(create_app(), host=API_HOST, port=API_PORT)


if __name__ == "__main__":
    run()
