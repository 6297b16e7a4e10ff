"""MCP package: shared FastMCP instance and catalog service registry."""

from mcp.server.fastmcp import FastMCP
from mcp.server.transport_security import TransportSecuritySettings

from rental_catalog.config import settings

# Shared FastMCP instance; tools register on this via @mcp.tool()
mcp = FastMCP(
    name="rental-catalog-mcp",
    instructions=(
        "Rental Catalog MCP server. Provides tools for searching vacation rental properties, "
        "looking up villages, and checking availability and prices for a stay."
    ),
    port=settings.mcp_port,
    stateless_http=True,
    json_response=True,
    transport_security=TransportSecuritySettings(
        enable_dns_rebinding_protection=True,
        allowed_hosts=[f"localhost:{settings.mcp_port}", f"mcp:{settings.mcp_port}", f"127.0.0.1:{settings.mcp_port}"],
    ),
)

# Catalog service, set by server.py at startup, used by tool modules
_catalog_service = None


def set_catalog_service(service):
    global _catalog_service
    _catalog_service = service


def get_catalog_service():
    if _catalog_service is None:
        raise RuntimeError("MCP catalog service not initialized. Is server.py running?")
    return _catalog_service
