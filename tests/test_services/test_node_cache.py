"""Tests for the village (node) reference data cache."""

import asyncio

import pytest

from rental_catalog.pms.errors import UpstreamError
from rental_catalog.pms.models import RawNode
from rental_catalog.services.node_cache import ReferenceDataCache

pytestmark = pytest.mark.asyncio


@pytest.fixture
def node_cache(fake_pms, fake_clock) -> ReferenceDataCache:
    return ReferenceDataCache(fake_pms, ttl_seconds=300, clock=fake_clock)


class TestNodeCache:
    async def test_first_lookup_fetches_nodes(self, node_cache, fake_pms):
        nodes = await node_cache.get_nodes_map()

        assert fake_pms.calls["fetch_nodes"] == 1
        assert nodes[1].name == "Avon"
        assert nodes[2].slug == "salvo-village"

    async def test_same_map_within_ttl(self, node_cache, fake_pms, fake_clock):
        first = await node_cache.get_nodes_map()
        fake_clock.advance(299)
        second = await node_cache.get_nodes_map()

        assert first is second
        assert fake_pms.calls["fetch_nodes"] == 1

    async def test_refetch_after_ttl(self, node_cache, fake_pms, fake_clock):
        first = await node_cache.get_nodes_map()
        fake_pms.nodes.append(RawNode(id=5, name="Frisco"))
        fake_clock.advance(300)

        second = await node_cache.get_nodes_map()

        assert fake_pms.calls["fetch_nodes"] == 2
        assert 5 in second
        assert 5 not in first

    async def test_map_is_read_only(self, node_cache):
        nodes = await node_cache.get_nodes_map()

        with pytest.raises(TypeError):
            nodes[99] = nodes[1]  # type: ignore[index]

    async def test_concurrent_misses_share_one_fetch(self, node_cache, fake_pms):
        fake_pms.nodes_gate = asyncio.Event()

        waiters = [asyncio.create_task(node_cache.get_nodes_map()) for _ in range(10)]
        await asyncio.sleep(0)
        fake_pms.nodes_gate.set()
        results = await asyncio.gather(*waiters)

        assert fake_pms.calls["fetch_nodes"] == 1
        assert all(r is results[0] for r in results)

    async def test_failure_propagates_and_next_call_retries(self, node_cache, fake_pms):
        fake_pms.errors["fetch_nodes"] = UpstreamError(503, "unavailable")

        with pytest.raises(UpstreamError):
            await node_cache.get_nodes_map()
        assert not node_cache.is_fresh

        del fake_pms.errors["fetch_nodes"]
        nodes = await node_cache.get_nodes_map()

        assert fake_pms.calls["fetch_nodes"] == 2
        assert len(nodes) == 4

    async def test_invalidate_forces_refetch(self, node_cache, fake_pms):
        await node_cache.get_nodes_map()
        node_cache.invalidate()
        await node_cache.get_nodes_map()

        assert fake_pms.calls["fetch_nodes"] == 2

    async def test_locations_sorted_by_name(self, node_cache):
        locations = await node_cache.get_locations()

        assert [loc.name for loc in locations] == ["Avon", "Buxton", "Hatteras Village", "Salvo Village"]

    async def test_location_by_slug(self, node_cache):
        assert (await node_cache.get_location_by_slug("hatteras-village")).id == 3
        assert await node_cache.get_location_by_slug("nowhere") is None

    async def test_concurrent_callers_after_ttl_share_one_refetch(self, node_cache, fake_pms, fake_clock):
        await node_cache.get_nodes_map()
        fake_clock.advance(300)
        fake_pms.nodes_gate = asyncio.Event()

        waiters = [asyncio.create_task(node_cache.get_nodes_map()) for _ in range(10)]
        await asyncio.sleep(0)
        fake_pms.nodes_gate.set()
        await asyncio.gather(*waiters)

        assert fake_pms.calls["fetch_nodes"] == 2
