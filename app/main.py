"""
Main FastAPI application
"""
import logging
import time
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from app.config.settings import Settings, settings as default_settings
from app.database.booking_store import BookingStore, build_store
from app.models.booking import HealthResponse
from app.routes import booking
from app.services.notifier import Notifier
from app.utils.errors import BookingError

logger = logging.getLogger(__name__)


def create_app(
    settings: Optional[Settings] = None,
    store: Optional[BookingStore] = None,
    notifier: Optional[Notifier] = None,
) -> FastAPI:
    """Build the app; store and notifier may be injected (tests, alternative backends)"""
    settings = settings or default_settings
    store = store or build_store(settings)
    notifier = notifier or Notifier(settings)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Application lifespan - startup and shutdown events"""
        # Startup
        await store.connect()
        logger.info("🚀 %s v%s started (%s store)", settings.APP_NAME, settings.VERSION, store.name)
        yield
        # Shutdown
        await store.close()
        logger.info("👋 Application shutdown")

    app = FastAPI(
        title=settings.APP_NAME,
        version=settings.VERSION,
        lifespan=lifespan,
    )
    app.state.settings = settings
    app.state.store = store
    app.state.notifier = notifier

    # CORS middleware
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.ALLOWED_ORIGINS,
        allow_credentials="*" not in settings.ALLOWED_ORIGINS,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.exception_handler(BookingError)
    async def booking_error_handler(request: Request, exc: BookingError):
        return JSONResponse(status_code=exc.status_code, content={"error": exc.message})

    @app.exception_handler(StarletteHTTPException)
    async def http_error_handler(request: Request, exc: StarletteHTTPException):
        # framework errors, e.g. an oversized or malformed multipart body
        return JSONResponse(status_code=exc.status_code, content={"error": str(exc.detail)}, headers=exc.headers)

    @app.exception_handler(Exception)
    async def unhandled_error_handler(request: Request, exc: Exception):
        logger.exception("❌ Unhandled error on %s %s", request.method, request.url.path)
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={"error": "Internal server error"},
        )

    # Request logging middleware
    @app.middleware("http")
    async def log_requests(request: Request, call_next):
        start_time = time.time()
        response = await call_next(request)
        duration = time.time() - start_time
        logger.info("🌐 %s %s - %s (%.2fs)", request.method, request.url.path, response.status_code, duration)
        return response

    app.include_router(booking.router)

    @app.get("/")
    async def root():
        """Root endpoint"""
        return {
            "app": settings.APP_NAME,
            "version": settings.VERSION,
            "status": "running",
        }

    @app.get("/health", response_model=HealthResponse)
    async def health_check():
        """Health check endpoint"""
        return HealthResponse(
            status="healthy" if store.is_ready else "starting",
            store=store.name,
            store_ready=store.is_ready,
        )

    return app


logging.basicConfig(
    level=default_settings.LOG_LEVEL,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)

app = create_app()
