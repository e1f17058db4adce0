"""
Main FastAPI application for LawHelp.
"""

import logging
from contextlib import asynccontextmanager
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import PlainTextResponse
from starlette.exceptions import HTTPException as StarletteHTTPException
import time

from lawhelp.core.config import get_config
from lawhelp.core.exceptions import (
    AccessDeniedError, AIServiceError, ConflictError, InvalidRequestError, NotFoundError,
)
from lawhelp.core.response_utils import create_success_response, error_json_response, ResponseTimer
from lawhelp.models import utcnow
from lawhelp.schemas import HealthCheckResponse, StandardResponse
from lawhelp.services.metrics import metrics_collector
from lawhelp.storage import initialize_storage
from lawhelp.api.v1 import auth, chat_sessions, lawyers, notifications, users, websocket

config = get_config()

logging.basicConfig(
    level=config.application.log_level.upper(),
    format='%(asctime)s [%(levelname)s] %(name)s: %(message)s',
    handlers=[logging.StreamHandler()]
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan manager."""
    # Startup
    logger.info(f"Starting {config.application.app_name} ({config.application.environment})...")
    if getattr(app.state, "storage", None) is None:
        app.state.storage = initialize_storage(config)
    app.state.started_at = time.time()

    if config.application.seed_database:
        from lawhelp.seed import seed_database
        try:
            seed_database(app.state.storage)
        except Exception as e:
            logger.warning(f"Database seeding failed during startup: {e}")

    if not config.ai.openai_api_key:
        logger.warning("OPENAI_API_KEY not set - chat answers will use the fallback response")

    logger.info("Application startup completed successfully")

    yield

    # Shutdown
    logger.info(f"Shutting down {config.application.app_name}...")


# Create FastAPI application
app = FastAPI(
    title=config.application.app_name,
    description=config.application.app_description,
    version=config.application.app_version,
    lifespan=lifespan,
)
app.state.storage = None
app.state.started_at = time.time()

# Add CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=config.application.cors_origin_list,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# Request logging middleware
@app.middleware("http")
async def log_requests(request: Request, call_next):
    """Log all requests and feed the metrics collector."""
    start_time = time.time()

    response = await call_next(request)

    process_time = time.time() - start_time
    if request.url.path != "/metrics":
        metrics_collector.record_request(process_time * 1000, response.status_code)
    logger.info(f"{request.method} {request.url.path} {response.status_code} - {process_time:.3f}s")

    return response


# HTTPException handler
@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    """HTTP exception handler."""
    logger.warning(f"HTTP exception: {exc.status_code} - {exc.detail}")
    return error_json_response(
        message=str(exc.detail),
        status_code=exc.status_code,
        headers=getattr(exc, "headers", None),
    )


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    errors = []
    for error in exc.errors():
        location = ".".join(str(part) for part in error.get("loc", ()) if part != "body")
        errors.append(f"{location}: {error.get('msg')}" if location else error.get("msg", "Invalid value"))
    logger.info(f"Validation failed on {request.url.path}: {errors}")
    return error_json_response(message="Invalid request data", status_code=400, errors=errors)


@app.exception_handler(NotFoundError)
async def not_found_handler(request: Request, exc: NotFoundError):
    return error_json_response(message=str(exc), status_code=404)


@app.exception_handler(AccessDeniedError)
async def access_denied_handler(request: Request, exc: AccessDeniedError):
    return error_json_response(message=str(exc), status_code=403)


@app.exception_handler(ConflictError)
async def conflict_handler(request: Request, exc: ConflictError):
    return error_json_response(message=str(exc), status_code=400)


@app.exception_handler(InvalidRequestError)
async def invalid_request_handler(request: Request, exc: InvalidRequestError):
    return error_json_response(message=str(exc), status_code=400)


@app.exception_handler(AIServiceError)
async def ai_service_error_handler(request: Request, exc: AIServiceError):
    logger.error(f"AI service error: {exc}")
    return error_json_response(message="Failed to get AI response. Please try again.", status_code=502)


# Global exception handler
@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    """Global exception handler."""
    logger.error(f"Unhandled exception: {exc}", exc_info=True)
    errors = [str(exc)] if not config.is_production() else None
    return error_json_response(message="Internal server error", status_code=500, errors=errors)


# Health check endpoint
@app.get("/health", response_model=StandardResponse)
async def health_check(request: Request):
    """Application health check."""
    with ResponseTimer() as timer:
        storage = request.app.state.storage
        health_data = HealthCheckResponse(
            status="healthy" if storage is not None and storage.check_connection() else "degraded",
            timestamp=utcnow(),
            uptime=int(time.time() - request.app.state.started_at),
            version=config.application.app_version,
            environment=config.application.environment,
            storage=getattr(storage, "backend_name", "none"),
        )

        return create_success_response(
            data=health_data,
            status_code=200,
            execution_time=timer.get_execution_time()
        )


@app.get("/metrics", response_class=PlainTextResponse)
async def metrics(request: Request):
    """Prometheus text exposition."""
    return PlainTextResponse(
        metrics_collector.render_prometheus(request.app.state.storage),
        media_type="text/plain; version=0.0.4",
    )


API_PREFIX = "/api"

# Include API routers
app.include_router(auth.router, prefix=f"{API_PREFIX}/auth", tags=["Authentication"])
app.include_router(users.router, prefix=f"{API_PREFIX}/user", tags=["User"])
app.include_router(chat_sessions.router, prefix=f"{API_PREFIX}/chat", tags=["Chat Sessions"])
app.include_router(lawyers.router, prefix=f"{API_PREFIX}/lawyers", tags=["Lawyers"])
app.include_router(notifications.router, prefix=f"{API_PREFIX}/notifications", tags=["Notifications"])
app.include_router(websocket.router, tags=["WebSocket"])


def run():
    import uvicorn
    uvicorn.run(
        "lawhelp.main:app",
        host=config.application.api_host,
        port=config.application.api_port,
        reload=config.application.debug,
        log_level=config.application.log_level.lower()
    )


if __name__ == "__main__":
    run()
