"""Shared test configuration and fixtures.

The PMS is replaced by an in-memory fake with the same coroutine methods as
:class:`rental_catalog.pms.client.PMSClient`, so every layer above the client
runs for real without network access.
"""

import asyncio
from collections import Counter
from collections.abc import AsyncGenerator, Callable
from decimal import Decimal
from typing import Any

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

from rental_catalog.api.deps import get_catalog_service
from rental_catalog.main import app
from rental_catalog.pms.errors import UpstreamError
from rental_catalog.pms.models import (
    RawAvailability,
    RawImage,
    RawNode,
    RawRate,
    RawUnit,
    UnitPage,
    UnitSearchParams,
)
from rental_catalog.services.availability_service import AvailabilityResolver
from rental_catalog.services.catalog_service import CatalogService
from rental_catalog.services.node_cache import ReferenceDataCache
from rental_catalog.services.search_engine import SearchEngine

# ---------------------------------------------------------------------------
# Fake PMS
# ---------------------------------------------------------------------------


class FakePMSClient:
    """In-memory PMS. Records calls; ``errors`` maps a method name to an exception to raise."""

    def __init__(self, units: list[RawUnit], nodes: list[RawNode]) -> None:
        self.units = list(units)
        self.nodes = list(nodes)
        self.images: dict[str, list[RawImage]] = {}
        self.availability: dict[str, list[RawAvailability]] = {}
        self.rates: dict[str, RawRate | None] = {}
        self.errors: dict[str, Exception] = {}
        self.calls: Counter[str] = Counter()
        self.search_requests: list[tuple[dict, int, int]] = []
        self.rate_requests: list[tuple[str, Any, Any, int | None]] = []
        # When set, fetch_nodes blocks until the event is set.
        self.nodes_gate: asyncio.Event | None = None
        # When set, search pages never hold more units than this.
        self.max_page_size: int | None = None

    def _record(self, method: str) -> None:
        self.calls[method] += 1
        if method in self.errors:
            raise self.errors[method]

    @staticmethod
    def _page(units: list[RawUnit], page: int, page_size: int) -> UnitPage:
        start = (page - 1) * page_size
        return UnitPage(units=units[start : start + page_size], total=len(units))

    async def fetch_unit(self, unit_id):
        self._record("fetch_unit")
        for unit in self.units:
            if str(unit.id) == str(unit_id):
                return unit
        raise UpstreamError(404, '{"message": "Unit not found"}', f"/pms/units/{unit_id}")

    async def fetch_units(self, page=1, page_size=100):
        self._record("fetch_units")
        return self._page(self.units, page, page_size)

    async def search_units(self, params: UnitSearchParams | None = None, page=1, page_size=100):
        self._record("search_units")
        query = params.to_query() if params is not None else {}
        self.search_requests.append((query, page, page_size))
        matched = [
            u
            for u in self.units
            if ("bedrooms" not in query or u.bedrooms == query["bedrooms"])
            and ("maxOccupancy" not in query or u.max_occupancy >= query["maxOccupancy"])
            and ("petsFriendly" not in query or u.pets_friendly == query["petsFriendly"])
        ]
        if self.max_page_size is not None:
            page_size = min(page_size, self.max_page_size)
        return self._page(matched, page, page_size)

    async def fetch_nodes(self):
        self._record("fetch_nodes")
        if self.nodes_gate is not None:
            await self.nodes_gate.wait()
        return list(self.nodes)

    async def fetch_unit_images(self, unit_id, limit=10):
        self._record("fetch_unit_images")
        return self.images.get(str(unit_id), [])[:limit]

    async def fetch_availability(self, unit_id, start, end):
        self._record("fetch_availability")
        return [d for d in self.availability.get(str(unit_id), []) if start <= d.day <= end]

    async def fetch_rates(self, unit_id, check_in, check_out, guests=None):
        self._record("fetch_rates")
        self.rate_requests.append((str(unit_id), check_in, check_out, guests))
        return self.rates.get(str(unit_id))

    async def aclose(self) -> None:
        pass


class FakeClock:
    """Monotonic clock the tests advance by hand."""

    def __init__(self, start: float = 1000.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


def build_unit(
    unit_id: int,
    name: str,
    *,
    node_id: int | None = 1,
    bedrooms: int = 3,
    max_occupancy: int = 8,
    pets_friendly: bool = False,
    base_rate: str | None = "250",
    unit_code: str | None = None,
    short_description: str | None = None,
    amenities: list[str] | None = None,
    **extra: Any,
) -> RawUnit:
    return RawUnit(
        id=unit_id,
        name=name,
        unit_code=unit_code,
        short_description=short_description,
        node_id=node_id,
        bedrooms=bedrooms,
        full_bathrooms=2,
        max_occupancy=max_occupancy,
        pets_friendly=pets_friendly,
        base_rate=Decimal(base_rate) if base_rate is not None else None,
        amenities=[{"id": i, "name": a} for i, a in enumerate(amenities or [], start=1)],
        **extra,
    )


# ---------------------------------------------------------------------------
# Catalog fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def make_unit() -> Callable[..., RawUnit]:
    return build_unit


@pytest.fixture
def fake_clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def nodes() -> list[RawNode]:
    return [
        RawNode(id=1, name="Avon", description="The commercial hub of Hatteras Island."),
        RawNode(id=2, name="Salvo Village", description="The quietest of the Tri-Villages."),
        RawNode(id=3, name="Hatteras Village"),
        RawNode(id=4, name="Buxton"),
    ]


@pytest.fixture
def units() -> list[RawUnit]:
    """Five units: only the first two match the Avon / 4+ bedroom / pet-friendly scenario."""
    return [
        build_unit(101, "Ocean Dream", unit_code="101", bedrooms=5, max_occupancy=12, pets_friendly=True,
                   base_rate="450", short_description="Oceanfront with private pool",
                   amenities=["Private Pool", "Hot Tub", "WiFi"]),
        build_unit(102, "Sound Haven", unit_code="102", bedrooms=4, max_occupancy=8, pets_friendly=True,
                   base_rate="300", short_description="Soundfront sunsets", amenities=["WiFi", "Kayaks"]),
        build_unit(103, "Pelican Perch", unit_code="103", bedrooms=3, max_occupancy=6, pets_friendly=True,
                   base_rate="200", amenities=["WiFi"]),
        build_unit(104, "Salt Life", unit_code="104", node_id=2, bedrooms=4, max_occupancy=10,
                   pets_friendly=True, base_rate="350", amenities=["Hot Tub"]),
        build_unit(105, "Lighthouse View", unit_code="105", bedrooms=6, max_occupancy=14,
                   pets_friendly=False, base_rate="600", amenities=["Private Pool", "Elevator"]),
    ]


@pytest.fixture
def fake_pms(units: list[RawUnit], nodes: list[RawNode]) -> FakePMSClient:
    return FakePMSClient(units, nodes)


@pytest.fixture
def catalog(fake_pms: FakePMSClient, fake_clock: FakeClock) -> CatalogService:
    """Catalog service over the fake PMS, with a tiny batch size to exercise multi-page fetches."""
    node_cache = ReferenceDataCache(fake_pms, ttl_seconds=300, clock=fake_clock)
    return CatalogService(
        fake_pms,
        node_cache,
        SearchEngine(fake_pms, node_cache, batch_size=2, max_candidates=1000),
        AvailabilityResolver(fake_pms),
        lookup_page_size=1000,
        image_limit=10,
        minimum_stay_floor=3,
    )


# ---------------------------------------------------------------------------
# HTTP client
# ---------------------------------------------------------------------------


@pytest_asyncio.fixture
async def client(catalog: CatalogService) -> AsyncGenerator[AsyncClient, None]:
    """Provide an httpx AsyncClient wired to the fake-backed catalog service."""
    app.dependency_overrides[get_catalog_service] = lambda: catalog

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://testserver") as ac:
        yield ac

    app.dependency_overrides.clear()
