"""Catalog MCP tools for the guest concierge."""

import logging
from datetime import date

from pydantic import ValidationError

from rental_catalog.mcp import get_catalog_service, mcp
from rental_catalog.pms.errors import UpstreamError
from rental_catalog.schemas.property import Property
from rental_catalog.schemas.search import SearchCriteria

logger = logging.getLogger(__name__)

MAX_TOOL_RESULTS = 20


def _serialize_property(p: Property) -> dict:
    """Compact property summary for the model's context window."""
    return {
        "id": p.id,
        "slug": p.slug,
        "name": p.name,
        "headline": p.headline,
        "village": p.village.name,
        "bedrooms": p.bedrooms,
        "bathrooms": p.bathrooms,
        "sleeps": p.sleeps,
        "pet_friendly": p.pet_friendly,
        "base_rate": str(p.base_rate) if p.base_rate is not None else None,
        "amenities": [a.name for a in p.amenities],
    }


def _parse_date(value: str, field: str) -> date:
    try:
        return date.fromisoformat(value)
    except ValueError as exc:
        raise ValueError(f"Invalid {field} '{value}'. Use YYYY-MM-DD.") from exc


@mcp.tool()
async def catalog_search(
    query: str | None = None,
    village: str | None = None,
    guests: int | None = None,
    bedrooms_min: int | None = None,
    bedrooms_max: int | None = None,
    price_max: float | None = None,
    pet_friendly: bool | None = None,
    amenities: str | None = None,
    sort_by: str | None = None,
    max_results: int = 5,
) -> dict:
    """Search vacation rental properties.

    Args:
        query: Free text matched against name, headline and village (e.g. "oceanfront")
        village: Village slug (e.g. "avon", "hatteras-village")
        guests: Number of guests the home must sleep
        bedrooms_min: Minimum bedrooms
        bedrooms_max: Maximum bedrooms
        price_max: Maximum nightly base rate in USD
        pet_friendly: Only pet-friendly homes when true
        amenities: Comma-separated amenity slugs (e.g. "private-pool,hot-tub")
        sort_by: One of "PRICE", "BEDROOMS", "NAME"
        max_results: Maximum properties returned (default 5, at most 20)

    Returns:
        Dict with matching properties, total match count, and village facets.
    """
    try:
        criteria = SearchCriteria(
            query=query,
            village=village,
            guests=guests,
            bedrooms_min=bedrooms_min,
            bedrooms_max=bedrooms_max,
            price_max=price_max,
            pet_friendly=pet_friendly,
            amenities=amenities,
            sort_by=sort_by.upper() if sort_by else None,
            page_size=max(1, min(max_results, MAX_TOOL_RESULTS)),
        )
    except ValidationError as e:
        return {"error": f"Invalid search: {e.errors()[0]['msg']}", "properties": [], "total": 0}

    try:
        result = await get_catalog_service().search_properties(criteria)
    except UpstreamError as e:
        logger.exception("catalog_search failed")
        return {"error": str(e), "properties": [], "total": 0}

    return {
        "properties": [_serialize_property(p) for p in result.properties],
        "total": result.total,
        "villages": {f.label or f.value: f.count for f in result.facets.villages},
    }


@mcp.tool()
async def catalog_property(property_id: str | None = None, slug: str | None = None) -> dict:
    """Look up one property by id (e.g. "prop-123") or slug.

    Returns:
        Dict with property details, or error if not found.
    """
    if not property_id and not slug:
        return {"error": "property_id or slug is required.", "property": None}

    try:
        prop = await get_catalog_service().get_property(id=property_id, slug=slug)
    except UpstreamError as e:
        logger.exception("catalog_property failed")
        return {"error": str(e), "property": None}

    if prop is None:
        return {"error": f"Property not found: {property_id or slug}", "property": None}
    return {"property": {**_serialize_property(prop), "description": prop.description}}


@mcp.tool()
async def catalog_availability(property_id: str, check_in: str, check_out: str) -> dict:
    """Check whether a property is open for every night of a stay.

    Args:
        property_id: Property id (e.g. "prop-123")
        check_in: Check-in date, YYYY-MM-DD
        check_out: Check-out date, YYYY-MM-DD

    Returns:
        Dict with availability flag, nights, unavailable dates and minimum stay.
    """
    try:
        start = _parse_date(check_in, "check_in")
        end = _parse_date(check_out, "check_out")
    except ValueError as e:
        return {"error": str(e)}
    if end <= start:
        return {"error": "Check-out date must be after check-in date."}

    try:
        days = await get_catalog_service().property_availability(property_id, start, end)
    except UpstreamError as e:
        logger.exception("catalog_availability failed")
        return {"error": str(e)}

    # The check-out night itself is not stayed.
    nights = [d for d in days if d.day < end]
    unavailable = [d.day.isoformat() for d in nights if not d.available]
    minimum_stays = [d.minimum_stay for d in nights if d.minimum_stay]
    return {
        "property_id": property_id,
        "nights": (end - start).days,
        "available": bool(nights) and not unavailable,
        "unavailable_dates": unavailable,
        "minimum_stay": max(minimum_stays) if minimum_stays else None,
    }


@mcp.tool()
async def catalog_quote(property_id: str, check_in: str, check_out: str, guests: int | None = None) -> dict:
    """Price a stay, applying the minimum-night rule.

    Args:
        property_id: Property id (e.g. "prop-123")
        check_in: Check-in date, YYYY-MM-DD
        check_out: Check-out date, YYYY-MM-DD
        guests: Number of guests (optional)

    Returns:
        Dict with the (possibly extended) dates, nights, minimum stay, and the quote;
        "bookable" is false when the dates cannot be priced.
    """
    try:
        start = _parse_date(check_in, "check_in")
        end = _parse_date(check_out, "check_out")
    except ValueError as e:
        return {"error": str(e)}
    if end <= start:
        return {"error": "Check-out date must be after check-in date."}

    try:
        plan = await get_catalog_service().plan_stay(property_id, start, end, guests)
    except UpstreamError as e:
        logger.exception("catalog_quote failed")
        return {"error": str(e)}

    return plan.model_dump(mode="json")


@mcp.tool()
async def catalog_villages() -> dict:
    """List the villages properties are located in.

    Returns:
        Dict with villages (name, slug, description).
    """
    try:
        villages = await get_catalog_service().villages()
    except UpstreamError as e:
        logger.exception("catalog_villages failed")
        return {"error": str(e), "villages": []}

    return {"villages": [v.model_dump(include={"name", "slug", "description"}) for v in villages]}
