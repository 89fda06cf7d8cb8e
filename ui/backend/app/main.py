"""Profile Picture Rotator API."""

import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from pfp_rotator.automation.browser import BrowserTabs
from pfp_rotator.automation.messenger import TabMessenger
from pfp_rotator.config import BackendConfig, load_backend_config
from pfp_rotator.exceptions import ImageNotFound, InvalidArgument, RotatorError
from pfp_rotator.rotation import RotationScheduler, SettingsStore
from pfp_rotator.storage import BasePhotoStore, ImageStore
from pfp_rotator.variations import VariationProducer, build_producer

from app.config import settings
from app.routers import health, images
from app.services.control import build_command_router
from app.services.generation_service import GenerationService
from app.websocket import ConnectionManager, control_websocket_endpoint, tick_broadcaster

logger = logging.getLogger(__name__)


def error_status(error: RotatorError) -> int:
    """HTTP status for a domain error."""
    if isinstance(error, ImageNotFound):
        return 404
    if isinstance(error, InvalidArgument):
        return 400
    return 500


def error_response(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"success": False, "error": message})


def create_app(
    config: Optional[BackendConfig] = None,
    producer: Optional[VariationProducer] = None,
    tabs=None,
    dispatcher=None
) -> FastAPI:
    """
    Build the backend application.

    Args:
        config: Backend configuration (default: read from the environment)
        producer: Variation producer (default: built from config)
        tabs: Tab provider for the scheduler (default: BrowserTabs)
        dispatcher: Command dispatcher for the scheduler (default: TabMessenger)

    Returns:
        FastAPI app with all services on ``app.state``
    """
    config = config or load_backend_config()

    store = ImageStore(config.storage_path)
    base_photos = BasePhotoStore(config.temp_dir, config.base_photo_dir)
    generation = GenerationService(store, base_photos, producer or build_producer(config))
    settings_store = SettingsStore(config.settings_path)

    tabs = tabs or BrowserTabs(config.browser_profile_dir, headless=config.browser_headless)
    dispatcher = dispatcher or TabMessenger(ack_timeout=settings.APPLY_TIMEOUT)
    scheduler = RotationScheduler(
        settings_store,
        store,
        tabs,
        dispatcher,
        backend_url=config.backend_url,
        target_url=config.target_url,
        policy=config.rotation_policy
    )

    manager = ConnectionManager()
    scheduler.add_listener(tick_broadcaster(manager))

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        store.ensure()
        logger.info(f"Images stored in {store.root}")
        if config.scheduler_autostart:
            state = await scheduler.start()
            logger.info(f"Scheduler {state.value}")
        yield
        await scheduler.stop()
        close = getattr(tabs, "close", None)
        if close is not None:
            await close()
        logger.info("Backend stopped")

    app = FastAPI(
        title="Profile Picture Rotator API",
        description="Generates profile picture variations and rotates them on a schedule",
        version="0.1.0",
        lifespan=lifespan
    )

    app.state.config = config
    app.state.generation_service = generation
    app.state.settings_store = settings_store
    app.state.scheduler = scheduler
    app.state.connection_manager = manager
    app.state.command_router = build_command_router(generation, settings_store, scheduler)

    # Registered before CORSMiddleware so 500 responses still pass through CORS
    @app.middleware("http")
    async def unhandled_errors(request: Request, call_next):
        try:
            return await call_next(request)
        except Exception as exc:
            logger.error(f"Unhandled error on {request.method} {request.url.path}: {exc}", exc_info=True)
            return error_response(500, str(exc) or type(exc).__name__)

    # Extension pages and the popup call from their own origins
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.CORS_ORIGINS,
        allow_credentials=False,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.exception_handler(RotatorError)
    async def rotator_error_handler(request: Request, exc: RotatorError):
        status_code = error_status(exc)
        if status_code >= 500:
            logger.error(f"{request.method} {request.url.path} failed: {exc}")
        return error_response(status_code, str(exc))

    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(request: Request, exc: RequestValidationError):
        details = "; ".join(
            f"{'.'.join(str(part) for part in err.get('loc', ()))}: {err.get('msg')}"
            for err in exc.errors()
        )
        return error_response(400, details or "Invalid request")

    @app.exception_handler(StarletteHTTPException)
    async def http_error_handler(request: Request, exc: StarletteHTTPException):
        return error_response(exc.status_code, str(exc.detail))

    app.include_router(health.router)
    app.include_router(images.router)
    app.add_api_websocket_route("/ws/control", control_websocket_endpoint)

    return app
