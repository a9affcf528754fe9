"""
Main FastAPI application
Business model matching quiz with gated reports
"""
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Request, HTTPException
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
import logging
import time

from bizmodelai.config import Settings, get_settings
from bizmodelai.database import Database
from bizmodelai.exceptions import BizModelError
from bizmodelai.api import admin, auth, payments, quiz, quiz_attempts
from bizmodelai.services.email_service import Mailer
from bizmodelai.services.insight_service import InsightService
from bizmodelai.utils.cache import CacheService

logger = logging.getLogger(__name__)


def configure_logging(settings: Settings) -> None:
    logging.basicConfig(
        level=getattr(logging, settings.LOG_LEVEL),
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    )


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    """
    Build the application

    External resources (database, redis, Gemini, email client) are opened in
    the lifespan and closed on shutdown; routes reach them via app.state.
    """
    settings = settings or get_settings()
    configure_logging(settings)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        logger.info(f"Starting {settings.APP_NAME} v{settings.APP_VERSION}")

        try:
            database = Database(settings.DATABASE_URL, echo=settings.DATABASE_ECHO).open()
            logger.info("Database initialized successfully")
        except Exception as e:
            logger.error(f"Failed to initialize database: {str(e)}")
            raise

        cache = CacheService(settings.REDIS_URL, default_ttl=settings.INSIGHT_CACHE_TTL).open()
        insights = InsightService(settings.GEMINI_API_KEY, settings.GEMINI_MODEL, cache=cache).open()
        mailer = Mailer(
            settings.RESEND_API_KEY,
            settings.RESEND_API_URL,
            settings.EMAIL_FROM,
            settings.FRONTEND_URL,
            initial_cooldown=settings.EMAIL_INITIAL_COOLDOWN,
            extended_cooldown=settings.EMAIL_EXTENDED_COOLDOWN,
            initial_limit=settings.EMAIL_INITIAL_LIMIT,
        ).open()

        app.state.database = database
        app.state.cache = cache
        app.state.insights = insights
        app.state.mailer = mailer
        logger.info("Application startup complete")

        try:
            yield
        finally:
            logger.info("Shutting down application")
            mailer.close()
            insights.close()
            cache.close()
            database.close()

    app = FastAPI(
        title=settings.APP_NAME,
        version=settings.APP_VERSION,
        description="Quiz scoring, user lifecycle and report unlocks for BizModelAI",
        docs_url="/docs",
        redoc_url="/redoc",
        lifespan=lifespan,
    )
    app.state.settings = settings

    # CORS middleware
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.ALLOWED_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Request logging middleware
    @app.middleware("http")
    async def log_requests(request: Request, call_next):
        """Log all requests with timing"""

        start_time = time.time()
        response = await call_next(request)
        duration = time.time() - start_time

        logger.info(
            f"{request.method} {request.url.path} - "
            f"Status: {response.status_code} - "
            f"Duration: {duration:.3f}s"
        )

        return response

    # Domain errors raised by the services
    @app.exception_handler(BizModelError)
    async def domain_exception_handler(request: Request, exc: BizModelError):
        return JSONResponse(
            status_code=exc.status_code,
            content={
                "error": exc.error,
                "message": exc.message,
                "status_code": exc.status_code
            }
        )

    # HTTP exception handler
    @app.exception_handler(HTTPException)
    async def http_exception_handler(request: Request, exc: HTTPException):
        """Format HTTP exceptions consistently"""

        return JSONResponse(
            status_code=exc.status_code,
            content={
                "error": "http_error",
                "message": exc.detail,
                "status_code": exc.status_code
            }
        )

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(request: Request, exc: RequestValidationError):
        return JSONResponse(
            status_code=422,
            content={
                "error": "validation_error",
                "message": "Request validation failed",
                "status_code": 422,
                "detail": jsonable_errors(exc),
            }
        )

    # Global exception handler
    @app.exception_handler(Exception)
    async def global_exception_handler(request: Request, exc: Exception):
        """Handle unexpected errors gracefully"""

        logger.error(f"Unhandled exception: {str(exc)}", exc_info=True)

        return JSONResponse(
            status_code=500,
            content={
                "error": "internal_server_error",
                "message": "An unexpected error occurred. Please try again later.",
                "status_code": 500,
                "detail": str(exc) if settings.DEBUG else None
            }
        )

    # Health check endpoint
    @app.get("/health")
    async def health_check(request: Request):
        """
        Health check endpoint for monitoring

        Returns service status and dependencies
        """
        try:
            request.app.state.database.ping()
            database_status = "ok"
        except Exception as e:
            logger.error(f"Database health check failed: {str(e)}")
            database_status = "unavailable"

        healthy = database_status == "ok"
        return JSONResponse(
            status_code=200 if healthy else 503,
            content={
                "status": "healthy" if healthy else "degraded",
                "service": settings.APP_NAME,
                "version": settings.APP_VERSION,
                "database": database_status,
                "cache": "ok" if request.app.state.cache.enabled else "disabled",
                "timestamp": time.time()
            }
        )

    # Root endpoint
    @app.get("/")
    async def root():
        """Root endpoint with API information"""
        return {
            "message": "BizModelAI API",
            "version": settings.APP_VERSION,
            "docs": "/docs",
            "health": "/health"
        }

    # Include routers
    app.include_router(quiz.router)
    app.include_router(quiz_attempts.router)
    app.include_router(auth.router)
    app.include_router(payments.router)
    app.include_router(admin.router)

    return app


def jsonable_errors(exc: RequestValidationError) -> list:
    """Validation errors without the raw input or exception objects"""
    return [
        {"loc": list(error.get("loc", ())), "msg": error.get("msg"), "type": error.get("type")}
        for error in exc.errors()
    ]


if __name__ == "__main__":
    import uvicorn
    settings = get_settings()
    uvicorn.run(
        "bizmodelai.main:create_app",
        factory=True,
        host="0.0.0.0",
        port=8000,
        reload=settings.DEBUG
    )
