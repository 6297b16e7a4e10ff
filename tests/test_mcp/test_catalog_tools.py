"""Tests for catalog MCP tool functions, called directly (not through the MCP protocol).

The MCP catalog service is pointed at the same fake-backed service the other
tests use, so tools see the in-memory PMS fixture data.
"""

from datetime import date
from decimal import Decimal

import pytest

from rental_catalog.mcp import set_catalog_service
from rental_catalog.mcp.tools.catalog_tools import (
    catalog_availability,
    catalog_property,
    catalog_quote,
    catalog_search,
    catalog_villages,
)
from rental_catalog.pms.errors import UpstreamError
from rental_catalog.pms.models import RawAvailability, RawRate

pytestmark = pytest.mark.asyncio


@pytest.fixture(autouse=True)
def setup_mcp_catalog(catalog):
    """Point the MCP tools at the fake-backed catalog service."""
    set_catalog_service(catalog)
    yield
    set_catalog_service(None)


class TestCatalogSearch:
    async def test_search(self):
        result = await catalog_search(village="avon", bedrooms_min=4, pet_friendly=True, sort_by="price")

        assert [p["id"] for p in result["properties"]] == ["prop-102", "prop-101"]
        assert result["total"] == 2
        assert result["villages"] == {"Avon": 2}
        assert result["properties"][0]["base_rate"] == "300"

    async def test_max_results_capped(self):
        result = await catalog_search(max_results=500)

        assert result["total"] == 5
        assert len(result["properties"]) == 5

    async def test_invalid_sort(self):
        result = await catalog_search(sort_by="rating")

        assert "error" in result
        assert result["properties"] == []

    async def test_upstream_failure(self, fake_pms):
        fake_pms.errors["search_units"] = UpstreamError(503, "maintenance")

        result = await catalog_search()

        assert "503" in result["error"]
        assert result["total"] == 0


class TestCatalogProperty:
    async def test_by_id(self):
        result = await catalog_property(property_id="prop-101")

        assert result["property"]["name"] == "Ocean Dream"
        assert "description" in result["property"]

    async def test_by_slug(self):
        result = await catalog_property(slug="pelican-perch-103")

        assert result["property"]["id"] == "prop-103"

    async def test_not_found(self):
        result = await catalog_property(property_id="prop-999")

        assert result["property"] is None
        assert "not found" in result["error"]

    async def test_requires_id_or_slug(self):
        result = await catalog_property()

        assert result["property"] is None
        assert "required" in result["error"]


class TestCatalogAvailability:
    async def test_open_stay(self, fake_pms):
        fake_pms.availability["101"] = [
            RawAvailability(day=date(2026, 6, d), available=True, minimum_stay=3) for d in range(6, 10)
        ]

        result = await catalog_availability("prop-101", "2026-06-06", "2026-06-09")

        assert result["available"] is True
        assert result["nights"] == 3
        assert result["unavailable_dates"] == []
        assert result["minimum_stay"] == 3

    async def test_blocked_night(self, fake_pms):
        fake_pms.availability["101"] = [
            RawAvailability(day=date(2026, 6, 6), available=True),
            RawAvailability(day=date(2026, 6, 7), available=False),
            RawAvailability(day=date(2026, 6, 8), available=True),
        ]

        result = await catalog_availability("prop-101", "2026-06-06", "2026-06-08")

        assert result["available"] is False
        assert result["unavailable_dates"] == ["2026-06-07"]

    async def test_bad_dates(self):
        assert "YYYY-MM-DD" in (await catalog_availability("prop-101", "June 6", "2026-06-09"))["error"]
        assert "after" in (await catalog_availability("prop-101", "2026-06-09", "2026-06-06"))["error"]


class TestCatalogQuote:
    async def test_quote_extends_short_stay(self, fake_pms):
        fake_pms.rates["101"] = RawRate(base_rate=Decimal("1350"), total_rate=Decimal("1500"))

        result = await catalog_quote("prop-101", "2026-07-01", "2026-07-02", guests=2)

        assert result["check_out"] == "2026-07-04"
        assert result["adjusted"] is True
        assert result["bookable"] is True
        assert result["quote"]["total"] == "1500"

    async def test_unbookable(self):
        result = await catalog_quote("prop-101", "2026-07-01", "2026-07-08")

        assert result["bookable"] is False
        assert result["quote"] is None


class TestCatalogVillages:
    async def test_villages(self):
        result = await catalog_villages()

        assert [v["slug"] for v in result["villages"]] == ["avon", "buxton", "hatteras-village", "salvo-village"]
        assert result["villages"][0]["description"] == "The commercial hub of Hatteras Island."
