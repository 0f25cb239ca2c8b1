"""Catalogue API main application module.

This module initializes the FastAPI application and configures
core middleware, routers, and startup/shutdown events.
"""

from contextlib import asynccontextmanager
from typing import AsyncGenerator

import structlog
from fastapi import FastAPI, HTTPException, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from catalogue.api.categories import router as categories_router
from catalogue.api.health import router as health_router
from catalogue.api.middleware import setup_middleware
from catalogue.api.products import router as products_router
from catalogue.catalog.registry import get_facet_registry
from catalogue.domain.exceptions import CatalogueError, ContentServiceError
from catalogue.infrastructure.config import settings
from catalogue.infrastructure.content_client import get_content_client
from catalogue.infrastructure.logging_config import configure_logging

logger = structlog.get_logger()


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Handle application startup and shutdown events.

    Args:
        app: The FastAPI application instance.

    Yields:
        None after startup, cleanup happens after yield.
    """
    # Startup
    configure_logging(settings.log_level)
    logger.info(
        "Starting catalogue API",
        version=settings.api_version,
        debug=settings.debug,
        content_api_url=settings.content_api_url,
    )

    registry = get_facet_registry()
    logger.info(
        "Facet registry loaded",
        version=registry.version,
        facets=registry.keys(),
    )

    yield

    # Shutdown
    logger.info("Shutting down catalogue API")
    await get_content_client().close()


app = FastAPI(
    title="Catalogue API",
    description="Faceted catalogue browsing and search",
    version=settings.api_version,
    lifespan=lifespan,
    docs_url="/docs",
    redoc_url="/redoc",
)

# CORS middleware (must be added before custom middleware)
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Setup custom middleware (request ID, error handling)
setup_middleware(app)

# Include routers
app.include_router(health_router, tags=["Health"])
app.include_router(products_router)
app.include_router(categories_router)


# ============================================================================
# Custom Exception Handlers
# ============================================================================


@app.exception_handler(HTTPException)
async def http_exception_handler(request: Request, exc: HTTPException):
    """Handle HTTP exceptions with consistent format."""
    request_id = getattr(request.state, "request_id", None)

    detail = exc.detail
    if isinstance(detail, dict):
        error_code = detail.get("error_code", "ERROR")
        message = detail.get("message", str(detail))
        details = detail.get("details", [])
    else:
        error_code = "ERROR"
        message = str(detail)
        details = []

    return JSONResponse(
        status_code=exc.status_code,
        content={
            "error_code": error_code,
            "message": message,
            "details": details,
            "request_id": request_id,
        },
    )


@app.exception_handler(ContentServiceError)
async def content_service_exception_handler(request: Request, exc: ContentServiceError):
    """Handle content service failures outside the listing path."""
    request_id = getattr(request.state, "request_id", None)

    logger.error(
        "Content service unavailable",
        path=request.url.path,
        error=exc.message,
        status_code=exc.status_code,
    )

    return JSONResponse(
        status_code=502,
        content={
            "error_code": "CONTENT_SERVICE_UNAVAILABLE",
            "message": "The content service is unavailable, try again later",
            "details": exc.details,
            "request_id": request_id,
        },
    )


@app.exception_handler(CatalogueError)
async def catalogue_exception_handler(request: Request, exc: CatalogueError):
    """Handle remaining domain errors with consistent format."""
    request_id = getattr(request.state, "request_id", None)

    return JSONResponse(
        status_code=400,
        content={
            "error_code": "CATALOGUE_ERROR",
            "message": exc.message,
            "details": exc.details,
            "request_id": request_id,
        },
    )


@app.exception_handler(Exception)
async def generic_exception_handler(request: Request, exc: Exception):
    """Handle uncaught exceptions with consistent format."""
    request_id = getattr(request.state, "request_id", None)

    logger.exception(
        "Unhandled exception in handler",
        path=request.url.path,
        method=request.method,
        error=str(exc),
    )

    return JSONResponse(
        status_code=500,
        content={
            "error_code": "INTERNAL_ERROR",
            "message": "An internal error occurred",
            "details": [],
            "request_id": request_id,
        },
    )


def main() -> None:
    """Run the API with uvicorn."""
    import uvicorn

    uvicorn.run(
        "catalogue.main:app",
        host=settings.host,
        port=settings.port,
        log_level=settings.log_level.lower(),
    )


if __name__ == "__main__":
    main()
