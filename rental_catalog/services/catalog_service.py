"""Catalog service: the query surface used by the REST API and MCP tools.

Lookups that find nothing return ``None`` (or an empty list) so callers can
render an empty state; only upstream failures raise.
"""

import logging
from datetime import date

from rental_catalog.config import Settings
from rental_catalog.pms.client import PMSClient
from rental_catalog.pms.errors import UpstreamError
from rental_catalog.pms.models import RawImage, RawUnit, UnitSearchParams
from rental_catalog.schemas.availability import AvailabilityDay, RateQuote, StayPlan
from rental_catalog.schemas.property import Location, Property
from rental_catalog.schemas.search import SearchCriteria, SearchResultPage
from rental_catalog.services.availability_service import AvailabilityResolver
from rental_catalog.services.catalog_mapper import (
    PROPERTY_ID_PREFIX,
    map_unit_to_property,
    strip_property_prefix,
)
from rental_catalog.services.node_cache import ReferenceDataCache
from rental_catalog.services.search_engine import SearchEngine
from rental_catalog.services.stay_policy import (
    DEFAULT_MINIMUM_STAY,
    InvalidStayError,
    advance_check_out,
    effective_minimum_stay,
    validate_stay,
)

logger = logging.getLogger(__name__)


class CatalogService:
    """Properties, villages, availability and quotes backed by the PMS."""

    def __init__(
        self,
        client: PMSClient,
        node_cache: ReferenceDataCache,
        search_engine: SearchEngine,
        resolver: AvailabilityResolver,
        *,
        lookup_page_size: int = 1000,
        image_limit: int = 10,
        minimum_stay_floor: int = DEFAULT_MINIMUM_STAY,
    ) -> None:
        self._client = client
        self.node_cache = node_cache
        self.search_engine = search_engine
        self.resolver = resolver
        self.lookup_page_size = lookup_page_size
        self.image_limit = image_limit
        self.minimum_stay_floor = minimum_stay_floor

    @classmethod
    def from_settings(cls, settings: Settings, client: PMSClient) -> "CatalogService":
        """Wire the cache, engine and resolver around ``client``."""
        node_cache = ReferenceDataCache(client, ttl_seconds=settings.nodes_cache_ttl_seconds)
        return cls(
            client,
            node_cache,
            SearchEngine(
                client,
                node_cache,
                batch_size=settings.search_batch_size,
                max_candidates=settings.search_max_candidates,
            ),
            AvailabilityResolver(client),
            lookup_page_size=settings.lookup_page_size,
            image_limit=settings.property_image_limit,
            minimum_stay_floor=settings.minimum_stay_floor,
        )

    # ------------------------------------------------------------------
    # Properties
    # ------------------------------------------------------------------

    async def get_property(
        self,
        *,
        id: str | None = None,
        slug: str | None = None,
        upstream_id: str | None = None,
    ) -> Property | None:
        """Look a property up by PMS id, catalog id or slug (first one given wins).

        Slugs are derived, not stored upstream, so a slug lookup maps one
        lookup page of units and scans it.
        """
        if upstream_id:
            return await self._property_by_upstream_id(upstream_id)
        if id:
            if not id.startswith(PROPERTY_ID_PREFIX):
                return None
            return await self._property_by_upstream_id(strip_property_prefix(id))
        if slug:
            return await self._property_by_slug(slug)
        return None

    async def list_properties(
        self,
        page: int = 1,
        page_size: int = 20,
        village: str | None = None,
        pet_friendly: bool | None = None,
    ) -> SearchResultPage:
        criteria = SearchCriteria(village=village, pet_friendly=pet_friendly, page=page, page_size=page_size)
        return await self.search_engine.search(criteria)

    async def search_properties(
        self,
        criteria: SearchCriteria,
        page: int | None = None,
        page_size: int | None = None,
    ) -> SearchResultPage:
        updates = {k: v for k, v in (("page", page), ("page_size", page_size)) if v is not None}
        if updates:
            criteria = SearchCriteria.model_validate({**criteria.model_dump(), **updates})
        return await self.search_engine.search(criteria)

    async def featured_properties(self, limit: int = 10) -> list[Property]:
        # No featured flag upstream yet; the first page stands in.
        result = await self._client.fetch_units(1, limit)
        return await self._map_units(result.units[:limit])

    async def similar_properties(self, property_id: str, limit: int = 4) -> list[Property]:
        """Up to ``limit`` other properties with the same bedroom count."""
        if not property_id.startswith(PROPERTY_ID_PREFIX):
            return []
        source = await self._fetch_unit_or_none(strip_property_prefix(property_id))
        if source is None:
            return []

        result = await self._client.search_units(UnitSearchParams(bedrooms=source.bedrooms), 1, limit + 1)
        others = [u for u in result.units if u.id != source.id and u.bedrooms == source.bedrooms]
        return await self._map_units(others[:limit])

    # ------------------------------------------------------------------
    # Villages
    # ------------------------------------------------------------------

    async def villages(self) -> list[Location]:
        return await self.node_cache.get_locations()

    async def village(self, slug: str) -> Location | None:
        return await self.node_cache.get_location_by_slug(slug)

    # ------------------------------------------------------------------
    # Availability & rates
    # ------------------------------------------------------------------

    async def property_availability(self, property_id: str, start: date, end: date) -> list[AvailabilityDay]:
        return await self.resolver.get_availability(property_id, start, end)

    async def property_rates(
        self,
        property_id: str,
        check_in: date,
        check_out: date,
        guests: int | None = None,
    ) -> RateQuote | None:
        return await self.resolver.get_quote(property_id, check_in, check_out, guests)

    async def plan_stay(
        self,
        property_id: str,
        check_in: date,
        check_out: date | None = None,
        guests: int | None = None,
    ) -> StayPlan:
        """Quote a stay, pushing check-out forward until the minimum stay is met.

        The house floor applies before the first quote; the quote's own minimum
        stay can push check-out further, in which case the stay is re-quoted.
        """
        if check_out is not None and check_out <= check_in:
            raise InvalidStayError("check_out must be after check_in")

        minimum = effective_minimum_stay(None, self.minimum_stay_floor)
        planned = advance_check_out(check_in, check_out, minimum)
        quote = await self.resolver.get_quote(property_id, check_in, planned, guests)

        if quote is not None:
            minimum = effective_minimum_stay(quote.minimum_stay, self.minimum_stay_floor)
            advanced = advance_check_out(check_in, planned, minimum)
            if advanced != planned:
                planned = advanced
                quote = await self.resolver.get_quote(property_id, check_in, planned, guests)

        return StayPlan(
            property_id=property_id,
            check_in=check_in,
            check_out=planned,
            nights=validate_stay(check_in, planned, minimum),
            minimum_stay=minimum,
            adjusted=planned != check_out,
            quote=quote,
        )

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    async def _fetch_unit_or_none(self, unit_id: str) -> RawUnit | None:
        try:
            return await self._client.fetch_unit(unit_id)
        except UpstreamError as exc:
            if exc.is_not_found:
                return None
            raise

    async def _property_by_upstream_id(self, upstream_id: str) -> Property | None:
        unit = await self._fetch_unit_or_none(upstream_id)
        if unit is None:
            return None
        return await self._map_with_images(unit)

    async def _property_by_slug(self, slug: str) -> Property | None:
        result = await self._client.fetch_units(1, self.lookup_page_size)
        nodes = await self.node_cache.get_nodes_map()
        for unit in result.units:
            if map_unit_to_property(unit, nodes.get(unit.node_id)).slug == slug:
                return await self._map_with_images(unit)
        return None

    async def _map_units(self, units: list[RawUnit]) -> list[Property]:
        nodes = await self.node_cache.get_nodes_map()
        return [map_unit_to_property(u, nodes.get(u.node_id)) for u in units]

    async def _map_with_images(self, unit: RawUnit) -> Property:
        nodes = await self.node_cache.get_nodes_map()
        images: list[RawImage] = []
        try:
            images = await self._client.fetch_unit_images(unit.id, self.image_limit)
        except UpstreamError as exc:
            # Falls back to the unit's own images or the placeholder.
            logger.warning("Could not load images for unit %s: %s", unit.id, exc)
        return map_unit_to_property(unit, nodes.get(unit.node_id), images)
