"""MCP Server for the rental catalog over Streamable HTTP transport.

Runs as a standalone service next to the REST API and gives the guest
concierge tools for property search, availability and quotes.
"""

import contextlib
import logging

import uvicorn
from starlette.applications import Starlette
from starlette.responses import JSONResponse
from starlette.routing import Mount, Route

from rental_catalog.config import settings
from rental_catalog.mcp import mcp, set_catalog_service
from rental_catalog.pms.client import PMSClient
from rental_catalog.services.catalog_service import CatalogService

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Import tool modules to trigger @mcp.tool() registration
# ---------------------------------------------------------------------------
import rental_catalog.mcp.tools.catalog_tools  # noqa: F401, E402


# ---------------------------------------------------------------------------
# Health check endpoint (not part of MCP, just for container healthchecks)
# ---------------------------------------------------------------------------
async def health(request):
    return JSONResponse({"status": "healthy", "service": "rental-catalog-mcp"})


# ---------------------------------------------------------------------------
# Starlette ASGI app that mounts MCP Streamable HTTP app + health check
# ---------------------------------------------------------------------------
# Create the MCP ASGI sub-app first so session_manager is initialized
mcp_http_app = mcp.streamable_http_app()


@contextlib.asynccontextmanager
async def lifespan(app: Starlette):
    """Own the PMS client and MCP session manager for the process lifetime."""
    client = PMSClient.from_settings(settings)
    set_catalog_service(CatalogService.from_settings(settings, client))
    try:
        async with mcp.session_manager.run():
            logger.info("MCP server started (Streamable HTTP transport)")
            yield
            logger.info("MCP server shutting down")
    finally:
        await client.aclose()


app = Starlette(
    routes=[
        Route("/health", health),
        Mount("/", app=mcp_http_app),
    ],
    lifespan=lifespan,
)

if __name__ == "__main__":
    uvicorn.run(app, host=settings.host, port=settings.mcp_port)
