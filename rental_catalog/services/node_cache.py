"""Reference data cache for PMS nodes (villages).

Nodes change rarely, so the whole id -> Location map is cached and rebuilt
wholesale once the TTL has elapsed. Concurrent cache misses share a single
in-flight refresh.
"""

import asyncio
import logging
import time
from collections.abc import Callable, Mapping
from types import MappingProxyType

from rental_catalog.pms.client import PMSClient
from rental_catalog.schemas.property import Location

logger = logging.getLogger(__name__)


class ReferenceDataCache:
    """Caches the node id -> :class:`Location` map with a time-to-live.

    The returned mapping is read-only and is never mutated; a refresh swaps in
    a new mapping, so readers never observe a partially rebuilt map.
    """

    def __init__(
        self,
        client: PMSClient,
        ttl_seconds: float = 300.0,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._client = client
        self.ttl_seconds = ttl_seconds
        self._clock = clock
        self._nodes: Mapping[int, Location] | None = None
        self._refreshed_at = 0.0
        self._inflight: asyncio.Task[Mapping[int, Location]] | None = None

    @property
    def is_fresh(self) -> bool:
        return self._nodes is not None and self._clock() - self._refreshed_at < self.ttl_seconds

    async def get_nodes_map(self) -> Mapping[int, Location]:
        """Return the cached map, refreshing it first if it is missing or stale."""
        if self.is_fresh:
            return self._nodes  # type: ignore[return-value]

        if self._inflight is None:
            self._inflight = asyncio.create_task(self._refresh())
        # Shielded so a cancelled waiter does not abort the refresh the others share.
        return await asyncio.shield(self._inflight)

    async def get_locations(self) -> list[Location]:
        """All villages, sorted by name."""
        nodes = await self.get_nodes_map()
        return sorted(nodes.values(), key=lambda loc: loc.name.casefold())

    async def get_location_by_slug(self, slug: str) -> Location | None:
        nodes = await self.get_nodes_map()
        return next((loc for loc in nodes.values() if loc.slug == slug), None)

    def invalidate(self) -> None:
        """Force the next lookup to refetch nodes."""
        self._refreshed_at = float("-inf")

    async def _refresh(self) -> Mapping[int, Location]:
        try:
            raw_nodes = await self._client.fetch_nodes()
            nodes = MappingProxyType(
                {n.id: Location(id=n.id, name=n.name, description=n.description) for n in raw_nodes}
            )
            self._nodes = nodes
            self._refreshed_at = self._clock()
            logger.info("Refreshed village cache with %d nodes", len(nodes))
            return nodes
        finally:
            self._inflight = None
