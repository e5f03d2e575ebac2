"""Main FastAPI application for CodeCloze."""

from datetime import datetime, timezone
from functools import lru_cache

import structlog
from fastapi import Depends, FastAPI, Request, status
from fastapi.responses import JSONResponse

from . import __version__
from .config import get_settings
from .errors import CodeClozeError
from .utils.logging import setup_logging
from .webhooks.github_webhook import GitHubWebhookHandler

# Setup logging
settings = get_settings()
setup_logging(settings)
logger = structlog.get_logger(__name__)

app = FastAPI(
    title="CodeCloze",
    description="Pull request review agent for GitHub",
    version=__version__,
    docs_url="/docs" if settings.is_development else None,
    redoc_url="/redoc" if settings.is_development else None
)


@lru_cache
def get_webhook_handler() -> GitHubWebhookHandler:
    """Webhook handler shared by all requests; it keeps no per-request state."""
    return GitHubWebhookHandler(get_settings())


@app.on_event("startup")
async def startup_event():
    """Application startup event."""
    logger.info(
        "Starting CodeCloze",
        version=__version__,
        environment=settings.environment.value,
        has_webhook_secret=settings.has_webhook_secret,
        has_app_credentials=settings.has_app_credentials,
        missing_llm_settings=settings.missing_llm_settings
    )


@app.get("/health")
async def health_check():
    """Health check endpoint."""
    return {
        "status": "healthy",
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "version": __version__,
        "environment": settings.environment.value
    }


@app.post("/api/github/webhook")
async def github_webhook(
    request: Request,
    handler: GitHubWebhookHandler = Depends(get_webhook_handler),
):
    """Handle GitHub webhook events."""
    body = await request.body()
    return await handler.handle_webhook(
        payload_body=body,
        signature=request.headers.get("X-Hub-Signature-256"),
        event_type=request.headers.get("X-GitHub-Event"),
        delivery_id=request.headers.get("X-GitHub-Delivery"),
    )


@app.exception_handler(CodeClozeError)
async def codecloze_exception_handler(request: Request, exc: CodeClozeError):
    """Turn pipeline errors into their JSON response."""
    log = logger.warning if exc.status_code < 500 else logger.error
    log(
        "Webhook request failed",
        path=request.url.path,
        error_type=type(exc).__name__,
        error=str(exc),
        status_code=exc.status_code
    )
    return JSONResponse(status_code=exc.status_code, content=exc.to_response())


@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    """Global exception handler."""
    logger.error(
        "Unhandled exception",
        path=request.url.path,
        method=request.method,
        error=str(exc),
        exc_info=True
    )

    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={
            "error": "Internal server error",
            "details": str(exc) if settings.is_development else "An error occurred"
        }
    )


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "codecloze.main:app",
        host=settings.host,
        port=settings.port,
        reload=settings.is_development,
        log_level=settings.log_level.value.lower()
    )
