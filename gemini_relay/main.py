"""
Gemini Relay - Main FastAPI Application
"""

import logging
from contextlib import asynccontextmanager
from pathlib import Path
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import FileResponse, JSONResponse
from fastapi.staticfiles import StaticFiles

from .config import settings, Settings
from .api import chat_router, upload_router
from .core import RelayService
from .core.errors import RelayError
from .core.logging_config import setup_logging
from .llm.factory import create_llm_provider
from .middleware import RequestLoggingMiddleware

# Logger will be initialized after setup_logging() is called
logger = logging.getLogger(__name__)

STATIC_DIR = Path(settings.static_dir) if settings.static_dir else Path(__file__).parent / "static"


def build_relay(config: Settings) -> Optional[RelayService]:
    """
    Build the relay service from settings.

    Returns None, after logging why, when the credential is missing or the
    provider client cannot be initialized. The server still starts; relay
    endpoints then answer with a configuration error.
    """
    api_key = config.resolved_api_key
    if not api_key:
        logger.error(
            f"FATAL ERROR: no API key configured for provider '{config.llm_provider}'. "
            "The server will start, but all API calls will fail until the key is added."
        )
        return None

    try:
        provider = create_llm_provider(
            provider=config.llm_provider,
            api_key=api_key,
            model=config.llm_model,
            base_url=config.llm_base_url,
            log_calls=config.log_llm_calls,
        )
    except Exception as e:
        logger.error(f"FATAL ERROR: failed to initialize the {config.llm_provider} client: {e}")
        return None

    logger.info(f"{config.llm_provider} client initialized: model={provider.model}")
    return RelayService(
        provider,
        system_instruction=config.system_instruction,
        model=config.llm_model,
        default_session_id=config.default_session_id,
        request_timeout=config.provider_timeout_seconds,
        max_upload_bytes=config.max_upload_bytes,
    )


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Lifespan context manager for startup and shutdown events."""
    # Startup
    setup_logging(settings)

    relay = build_relay(settings)
    if relay is not None:
        relay.start_sweeper(
            settings.attachment_ttl_seconds,
            settings.attachment_sweep_interval_seconds,
        )
    app.state.relay = relay

    logger.info(f"Starting {settings.app_name} v{settings.app_version}")
    logger.info(f"Provider: {settings.llm_provider} (configured={relay is not None})")
    logger.info(f"Log level: {settings.log_level.upper()}")
    yield
    # Shutdown
    if relay is not None:
        await relay.aclose()
    logger.info(f"Shutting down {settings.app_name}")


# Create FastAPI application
app = FastAPI(
    title=settings.app_name,
    version=settings.app_version,
    description="Relay between the developer console and a generative-AI provider",
    lifespan=lifespan
)

# Configure CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Add request logging middleware (after CORS)
if settings.log_api_requests:
    app.add_middleware(RequestLoggingMiddleware)


@app.exception_handler(RelayError)
async def relay_error_handler(request: Request, exc: RelayError):
    if exc.status_code >= 500:
        logger.error(f"{request.method} {request.url.path} failed: {exc.message}")
    return JSONResponse(status_code=exc.status_code, content={"error": exc.message})


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError):
    errors = exc.errors()
    message = errors[0].get("msg", "Invalid request") if errors else "Invalid request"
    return JSONResponse(status_code=400, content={"error": f"Invalid request body: {message}"})


# Include routers
app.include_router(chat_router)
app.include_router(upload_router)

if STATIC_DIR.is_dir():
    app.mount("/static", StaticFiles(directory=STATIC_DIR), name="static")


@app.get("/", include_in_schema=False)
async def root():
    """Serve the console front-end."""
    index = STATIC_DIR / "index.html"
    if index.is_file():
        return FileResponse(index)
    return {
        "app": settings.app_name,
        "version": settings.app_version,
        "status": "running",
    }


@app.get("/health")
async def health_check(request: Request):
    """Health check endpoint."""
    relay: Optional[RelayService] = getattr(request.app.state, "relay", None)
    return {
        "status": "healthy" if relay is not None else "misconfigured",
        "provider": settings.llm_provider,
        "provider_configured": relay is not None,
        "sessions": len(relay.registry) if relay else 0,
        "staged_attachments": len(relay.broker) if relay else 0,
        "version": settings.app_version,
    }


def run() -> None:
    import uvicorn
    uvicorn.run(
        "gemini_relay.main:app",
        host=settings.host,
        port=settings.port,
        reload=settings.debug
    )


if __name__ == "__main__":
    run()
