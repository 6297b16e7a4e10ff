"""Rental Catalog: FastAPI application entry point."""

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from rental_catalog.api.v1.properties import router as properties_router
from rental_catalog.api.v1.villages import router as villages_router
from rental_catalog.config import settings
from rental_catalog.pms.client import PMSClient
from rental_catalog.pms.errors import UpstreamError
from rental_catalog.services.catalog_service import CatalogService
from rental_catalog.services.stay_policy import InvalidStayError, StayTooShortError

# Configure root logger so all rental_catalog.* loggers output to stderr.
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Build the PMS client and catalog service; close the client on shutdown."""
    client = PMSClient.from_settings(settings)
    app.state.catalog = CatalogService.from_settings(settings, client)
    yield
    await client.aclose()


app = FastAPI(
    title=settings.app_name,
    version=settings.app_version,
    description="Property catalog search, availability and rate quotes over the PMS.",
    docs_url="/docs",
    redoc_url="/redoc",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["GET"],
    allow_headers=["*"],
)

# Routers
app.include_router(properties_router)
app.include_router(villages_router)


# ---------------------------------------------------------------------------
# Error translation
# ---------------------------------------------------------------------------


@app.exception_handler(UpstreamError)
async def upstream_error_handler(request: Request, exc: UpstreamError) -> JSONResponse:
    logger.warning("Upstream failure on %s: %s", request.url.path, exc)
    return JSONResponse(
        status_code=status.HTTP_502_BAD_GATEWAY,
        content={"detail": "Property management system request failed", "upstream_status": exc.status_code},
    )


@app.exception_handler(TimeoutError)
async def deadline_handler(request: Request, exc: TimeoutError) -> JSONResponse:
    logger.warning("Deadline exceeded on %s", request.url.path)
    return JSONResponse(
        status_code=status.HTTP_504_GATEWAY_TIMEOUT,
        content={"detail": "Request deadline exceeded"},
    )


@app.exception_handler(InvalidStayError)
@app.exception_handler(StayTooShortError)
async def stay_error_handler(request: Request, exc: ValueError) -> JSONResponse:
    return JSONResponse(
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        content={"detail": str(exc)},
    )


@app.get("/health", tags=["health"])
async def health_check() -> dict[str, str]:
    """Health check endpoint."""
    return {"status": "healthy", "service": settings.app_name}


@app.get("/", tags=["root"])
async def root() -> dict[str, str]:
    """Root endpoint."""
    return {
        "service": settings.app_name,
        "version": settings.app_version,
        "docs": "/docs",
    }
