"""Property catalog API routes: search, lookup, availability and quotes."""

from datetime import date
from decimal import Decimal

from fastapi import APIRouter, Depends, HTTPException, Query, status

from rental_catalog.api.deps import get_catalog_service, within_deadline
from rental_catalog.config import settings
from rental_catalog.schemas.availability import AvailabilityDay, RateQuoteResponse, StayPlan
from rental_catalog.schemas.property import Property
from rental_catalog.schemas.search import SearchCriteria, SearchResultPage, SortField, SortOrder
from rental_catalog.services.catalog_service import CatalogService

router = APIRouter(prefix="/api/v1/properties", tags=["properties"])


def _not_found() -> HTTPException:
    return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Property not found")


def _check_range(start: date, end: date, start_name: str, end_name: str) -> None:
    if end <= start:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail=f"{end_name} must be after {start_name}",
        )


# ---------------------------------------------------------------------------
# Listing & search
# ---------------------------------------------------------------------------


@router.get(
    "",
    response_model=SearchResultPage,
    summary="List catalog properties",
)
async def list_properties(
    page: int = Query(1, ge=1),
    page_size: int = Query(settings.default_page_size, ge=1, le=100),
    village: str | None = Query(None),
    pet_friendly: bool | None = Query(None),
    catalog: CatalogService = Depends(get_catalog_service),
) -> SearchResultPage:
    """Return a page of properties, optionally scoped to a village or to pet-friendly homes."""
    return await within_deadline(catalog.list_properties(page, page_size, village=village, pet_friendly=pet_friendly))


@router.get(
    "/search",
    response_model=SearchResultPage,
    summary="Search properties with filters, sorting and facets",
)
async def search_properties(
    query: str | None = Query(None, max_length=200),
    village: str | None = Query(None),
    guests: int | None = Query(None, ge=1),
    bedrooms: int | None = Query(None, ge=0),
    bedrooms_min: int | None = Query(None, ge=0),
    bedrooms_max: int | None = Query(None, ge=0),
    price_min: Decimal | None = Query(None, ge=0),
    price_max: Decimal | None = Query(None, ge=0),
    pet_friendly: bool | None = Query(None),
    amenities: list[str] | None = Query(None),
    sort_by: SortField | None = Query(None),
    sort_order: SortOrder = Query(SortOrder.ASC),
    page: int = Query(1, ge=1),
    page_size: int = Query(settings.default_page_size, ge=1, le=100),
    catalog: CatalogService = Depends(get_catalog_service),
) -> SearchResultPage:
    """Filter, sort and facet the catalog. Facets cover every match, not just this page."""
    criteria = SearchCriteria(
        query=query,
        village=village,
        guests=guests,
        bedrooms=bedrooms,
        bedrooms_min=bedrooms_min,
        bedrooms_max=bedrooms_max,
        price_min=price_min,
        price_max=price_max,
        pet_friendly=pet_friendly,
        amenities=amenities,
        sort_by=sort_by,
        sort_order=sort_order,
        page=page,
        page_size=page_size,
    )
    return await within_deadline(catalog.search_properties(criteria))


@router.get(
    "/featured",
    response_model=list[Property],
    summary="Featured properties",
)
async def featured_properties(
    limit: int = Query(settings.featured_limit, ge=1, le=50),
    catalog: CatalogService = Depends(get_catalog_service),
) -> list[Property]:
    return await within_deadline(catalog.featured_properties(limit))


# ---------------------------------------------------------------------------
# Single property lookups
# ---------------------------------------------------------------------------


@router.get(
    "/by-slug/{slug}",
    response_model=Property,
    summary="Get a property by slug",
)
async def get_property_by_slug(
    slug: str,
    catalog: CatalogService = Depends(get_catalog_service),
) -> Property:
    prop = await within_deadline(catalog.get_property(slug=slug))
    if prop is None:
        raise _not_found()
    return prop


@router.get(
    "/by-upstream-id/{upstream_id}",
    response_model=Property,
    summary="Get a property by PMS unit id",
)
async def get_property_by_upstream_id(
    upstream_id: str,
    catalog: CatalogService = Depends(get_catalog_service),
) -> Property:
    prop = await within_deadline(catalog.get_property(upstream_id=upstream_id))
    if prop is None:
        raise _not_found()
    return prop


@router.get(
    "/{property_id}",
    response_model=Property,
    summary="Get a property by catalog id",
)
async def get_property(
    property_id: str,
    catalog: CatalogService = Depends(get_catalog_service),
) -> Property:
    """Retrieve a single property (``prop-<unit id>``). Returns 404 if not found."""
    prop = await within_deadline(catalog.get_property(id=property_id))
    if prop is None:
        raise _not_found()
    return prop


@router.get(
    "/{property_id}/similar",
    response_model=list[Property],
    summary="Properties similar to this one",
)
async def similar_properties(
    property_id: str,
    limit: int = Query(settings.similar_limit, ge=1, le=20),
    catalog: CatalogService = Depends(get_catalog_service),
) -> list[Property]:
    return await within_deadline(catalog.similar_properties(property_id, limit))


# ---------------------------------------------------------------------------
# Availability, rates & stay planning
# ---------------------------------------------------------------------------


@router.get(
    "/{property_id}/availability",
    response_model=list[AvailabilityDay],
    summary="Per-night availability for a date range",
)
async def property_availability(
    property_id: str,
    start_date: date = Query(...),
    end_date: date = Query(...),
    catalog: CatalogService = Depends(get_catalog_service),
) -> list[AvailabilityDay]:
    if end_date < start_date:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail="end_date must not be before start_date",
        )
    return await within_deadline(catalog.property_availability(property_id, start_date, end_date))


@router.get(
    "/{property_id}/rates",
    response_model=RateQuoteResponse,
    summary="Rate quote for a stay",
)
async def property_rates(
    property_id: str,
    check_in: date = Query(...),
    check_out: date = Query(...),
    guests: int | None = Query(None, ge=1),
    catalog: CatalogService = Depends(get_catalog_service),
) -> RateQuoteResponse:
    """Quote a stay. ``bookable`` is false when the PMS has no rate for these dates."""
    _check_range(check_in, check_out, "check_in", "check_out")
    quote = await within_deadline(catalog.property_rates(property_id, check_in, check_out, guests))
    return RateQuoteResponse(bookable=quote is not None, quote=quote)


@router.get(
    "/{property_id}/stay",
    response_model=StayPlan,
    summary="Plan a stay, applying the minimum-night rule",
)
async def plan_stay(
    property_id: str,
    check_in: date = Query(...),
    check_out: date | None = Query(None),
    guests: int | None = Query(None, ge=1),
    catalog: CatalogService = Depends(get_catalog_service),
) -> StayPlan:
    """Return the dates a booking form should use; check-out is pushed forward if the stay is too short."""
    if check_out is not None:
        _check_range(check_in, check_out, "check_in", "check_out")
    return await within_deadline(catalog.plan_stay(property_id, check_in, check_out, guests))
