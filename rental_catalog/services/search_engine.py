"""Catalog search: filter pipeline, sorting, facets and pagination.

The engine pushes the filters the PMS understands (exact bedrooms, guest
capacity, pets) into the upstream query, fetches the whole candidate set,
then filters, sorts and facets in memory before cutting the requested page.
Filtering before paginating keeps ``total``, ``has_next_page`` and facet
counts exact, up to ``max_candidates`` units.
"""

import asyncio
import logging
from collections import Counter
from collections.abc import Callable, Iterable, Sequence
from decimal import Decimal
from typing import Any

from rental_catalog.pms.client import PMSClient
from rental_catalog.pms.models import RawUnit, UnitSearchParams
from rental_catalog.schemas.property import Property
from rental_catalog.schemas.search import (
    FacetCount,
    FacetSummary,
    PriceRangeFacet,
    SearchCriteria,
    SearchResultPage,
    SortField,
    SortOrder,
)
from rental_catalog.services.catalog_mapper import map_unit_to_property
from rental_catalog.services.node_cache import ReferenceDataCache

logger = logging.getLogger(__name__)

# Lower bounds of the nightly price buckets; the last bucket is open-ended.
PRICE_BUCKET_EDGES: tuple[Decimal, ...] = (
    Decimal("0"),
    Decimal("200"),
    Decimal("300"),
    Decimal("500"),
    Decimal("750"),
)

AMENITY_FACET_LIMIT = 20

Predicate = Callable[[Property], bool]

SORT_KEYS: dict[SortField, Callable[[Property], Any]] = {
    SortField.PRICE: lambda p: p.base_rate,
    SortField.BEDROOMS: lambda p: p.bedrooms,
    SortField.NAME: lambda p: p.name.casefold(),
}


# ---------------------------------------------------------------------------
# Upstream translation
# ---------------------------------------------------------------------------


def upstream_params(criteria: SearchCriteria) -> UnitSearchParams:
    """The subset of ``criteria`` the PMS units endpoint filters natively."""
    return UnitSearchParams(
        bedrooms=criteria.bedrooms,
        max_occupancy=criteria.guests,
        pets_friendly=True if criteria.pet_friendly else None,
    )


# ---------------------------------------------------------------------------
# Filter pipeline
# ---------------------------------------------------------------------------


def _matches_query(query: str) -> Predicate:
    needle = query.casefold()

    def predicate(p: Property) -> bool:
        haystacks = (p.name, p.headline or "", p.village.name)
        return any(needle in h.casefold() for h in haystacks)

    return predicate


def _price_between(low: Decimal | None, high: Decimal | None) -> Predicate:
    def predicate(p: Property) -> bool:
        if p.base_rate is None:
            return False
        if low is not None and p.base_rate < low:
            return False
        if high is not None and p.base_rate > high:
            return False
        return True

    return predicate


def build_filters(criteria: SearchCriteria) -> list[Predicate]:
    """Predicates for ``criteria``, in pipeline order.

    Filters already pushed upstream are checked again so every returned
    property satisfies every predicate regardless of how the PMS applied them.
    """
    filters: list[Predicate] = []

    if criteria.village:
        village = criteria.village
        filters.append(lambda p: p.village.slug == village)
    if criteria.bedrooms is not None:
        bedrooms = criteria.bedrooms
        filters.append(lambda p: p.bedrooms == bedrooms)
    if criteria.bedrooms_min is not None:
        bedrooms_min = criteria.bedrooms_min
        filters.append(lambda p: p.bedrooms >= bedrooms_min)
    if criteria.bedrooms_max is not None:
        bedrooms_max = criteria.bedrooms_max
        filters.append(lambda p: p.bedrooms <= bedrooms_max)
    if criteria.guests is not None:
        guests = criteria.guests
        filters.append(lambda p: p.sleeps >= guests)
    if criteria.price_min is not None or criteria.price_max is not None:
        filters.append(_price_between(criteria.price_min, criteria.price_max))
    if criteria.query:
        filters.append(_matches_query(criteria.query))
    if criteria.pet_friendly:
        filters.append(lambda p: p.pet_friendly)
    if criteria.amenities:
        wanted = frozenset(criteria.amenities)
        filters.append(lambda p: wanted <= p.amenity_slugs)

    return filters


def apply_filters(properties: Iterable[Property], criteria: SearchCriteria) -> list[Property]:
    result = list(properties)
    for predicate in build_filters(criteria):
        result = [p for p in result if predicate(p)]
    return result


# ---------------------------------------------------------------------------
# Sorting
# ---------------------------------------------------------------------------


def sort_properties(
    properties: Sequence[Property],
    sort_by: SortField | None,
    sort_order: SortOrder = SortOrder.ASC,
) -> list[Property]:
    """Stable sort by ``sort_by``; ``None`` keeps the incoming order.

    Properties with no value for the sort key (no base rate) go last in
    either direction.
    """
    if sort_by is None:
        return list(properties)

    key = SORT_KEYS[sort_by]
    present = [p for p in properties if key(p) is not None]
    missing = [p for p in properties if key(p) is None]
    # sorted(reverse=True) keeps equal elements in their original order.
    return sorted(present, key=key, reverse=sort_order == SortOrder.DESC) + missing


# ---------------------------------------------------------------------------
# Facets
# ---------------------------------------------------------------------------


def _price_bucket(rate: Decimal) -> int:
    index = 0
    for i, edge in enumerate(PRICE_BUCKET_EDGES):
        if rate >= edge:
            index = i
    return index


def compute_facets(properties: Sequence[Property]) -> FacetSummary:
    """Facet counts over ``properties``. Empty input yields empty facets."""
    village_counts: Counter[str] = Counter()
    village_labels: dict[str, str] = {}
    bedroom_counts: Counter[int] = Counter()
    pet_counts: Counter[bool] = Counter()
    price_counts: Counter[int] = Counter()
    amenity_counts: Counter[str] = Counter()
    amenity_labels: dict[str, str] = {}

    for p in properties:
        village_counts[p.village.slug] += 1
        village_labels.setdefault(p.village.slug, p.village.name)
        bedroom_counts[p.bedrooms] += 1
        pet_counts[p.pet_friendly] += 1
        if p.base_rate is not None:
            price_counts[_price_bucket(p.base_rate)] += 1
        for amenity in {a.slug: a for a in p.amenities}.values():
            amenity_counts[amenity.slug] += 1
            amenity_labels.setdefault(amenity.slug, amenity.name)

    price_ranges = []
    for i, edge in enumerate(PRICE_BUCKET_EDGES):
        upper = PRICE_BUCKET_EDGES[i + 1] if i + 1 < len(PRICE_BUCKET_EDGES) else None
        if price_counts[i]:
            price_ranges.append(PriceRangeFacet(min=edge, max=upper, count=price_counts[i]))

    return FacetSummary(
        villages=[
            FacetCount(value=slug, label=village_labels[slug], count=count)
            for slug, count in sorted(village_counts.items(), key=lambda kv: village_labels[kv[0]].casefold())
        ],
        bedrooms=[
            FacetCount(value=str(bedrooms), count=count) for bedrooms, count in sorted(bedroom_counts.items())
        ],
        pet_friendly=[
            FacetCount(value=str(flag).lower(), label="Pet friendly" if flag else "No pets", count=pet_counts[flag])
            for flag in (True, False)
            if pet_counts[flag]
        ],
        price_ranges=price_ranges,
        amenities=[
            FacetCount(value=slug, label=amenity_labels[slug], count=count)
            for slug, count in sorted(amenity_counts.items(), key=lambda kv: (-kv[1], kv[0]))[:AMENITY_FACET_LIMIT]
        ],
    )


# ---------------------------------------------------------------------------
# Engine
# ---------------------------------------------------------------------------


def paginate(properties: Sequence[Property], page: int, page_size: int) -> list[Property]:
    start = (page - 1) * page_size
    return list(properties[start : start + page_size])


class SearchEngine:
    """Runs catalog searches against the PMS."""

    def __init__(
        self,
        client: PMSClient,
        node_cache: ReferenceDataCache,
        *,
        batch_size: int = 100,
        max_candidates: int = 1000,
    ) -> None:
        self._client = client
        self._node_cache = node_cache
        self.batch_size = batch_size
        self.max_candidates = max_candidates

    async def fetch_candidates(self, params: UnitSearchParams) -> list[RawUnit]:
        """Every unit matching ``params`` upstream, up to ``max_candidates``."""
        first = await self._client.search_units(params, 1, self.batch_size)
        units = list(first.units)
        wanted = min(first.total, self.max_candidates)
        if first.total > self.max_candidates:
            logger.warning(
                "Search matched %d units upstream; only the first %d are considered",
                first.total,
                self.max_candidates,
            )

        if len(units) < wanted and first.units:
            # The PMS may cap the page size below what was asked for.
            stride = len(first.units)
            last_page = -(-wanted // stride)
            pages = await asyncio.gather(
                *(self._client.search_units(params, page, self.batch_size) for page in range(2, last_page + 1))
            )
            for result in pages:
                units.extend(result.units)

        return units[: self.max_candidates]

    async def search(self, criteria: SearchCriteria) -> SearchResultPage:
        units = await self.fetch_candidates(upstream_params(criteria))
        nodes = await self._node_cache.get_nodes_map()
        properties = [map_unit_to_property(u, nodes.get(u.node_id)) for u in units]

        matched = apply_filters(properties, criteria)
        ordered = sort_properties(matched, criteria.sort_by, criteria.sort_order)
        facets = compute_facets(matched)

        logger.debug("Search matched %d of %d candidates", len(matched), len(units))
        return SearchResultPage(
            properties=paginate(ordered, criteria.page, criteria.page_size),
            total=len(matched),
            page=criteria.page,
            page_size=criteria.page_size,
            facets=facets,
        )
