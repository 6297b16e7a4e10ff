"""Village (PMS node) API routes."""

from fastapi import APIRouter, Depends, HTTPException, status

from rental_catalog.api.deps import get_catalog_service, within_deadline
from rental_catalog.schemas.property import Location
from rental_catalog.services.catalog_service import CatalogService

router = APIRouter(prefix="/api/v1/villages", tags=["villages"])


@router.get(
    "",
    response_model=list[Location],
    summary="List villages",
)
async def list_villages(
    catalog: CatalogService = Depends(get_catalog_service),
) -> list[Location]:
    """Return every village, sorted by name."""
    return await within_deadline(catalog.villages())


@router.get(
    "/{slug}",
    response_model=Location,
    summary="Get a village by slug",
)
async def get_village(
    slug: str,
    catalog: CatalogService = Depends(get_catalog_service),
) -> Location:
    village = await within_deadline(catalog.village(slug))
    if village is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Village not found",
        )
    return village
