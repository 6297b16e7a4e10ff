"""Async wrapper around the PMS REST API.

Typed access to units, nodes, images, availability and rates. No business
logic lives here: responses are unwrapped from the PMS's HAL envelope and
validated into :mod:`rental_catalog.pms.models`, nothing more.
"""

import base64
import logging
import time
from collections.abc import Callable
from datetime import date
from typing import Any, TypeVar

import httpx
from pydantic import BaseModel, ValidationError

from rental_catalog.config import Settings
from rental_catalog.pms.errors import UpstreamError
from rental_catalog.pms.http_cache import ResponseCache, make_cache_key
from rental_catalog.pms.models import (
    RawAvailability,
    RawImage,
    RawNode,
    RawRate,
    RawUnit,
    UnitPage,
    UnitSearchParams,
)

logger = logging.getLogger(__name__)

ModelT = TypeVar("ModelT", bound=BaseModel)


def basic_auth_header(key: str, secret: str) -> str:
    """Return the ``Authorization`` header value for a key/secret pair."""
    token = base64.b64encode(f"{key}:{secret}".encode()).decode("ascii")
    return f"Basic {token}"


def _validate_list(model: type[ModelT], items: list[Any], kind: str) -> list[ModelT]:
    """Validate list entries one by one, skipping entries the PMS sent malformed."""
    parsed: list[ModelT] = []
    for item in items:
        try:
            parsed.append(model.model_validate(item))
        except ValidationError as exc:
            logger.warning("Skipping malformed %s from PMS: %s", kind, exc.errors()[0].get("msg"))
    return parsed


def _embedded(payload: Any, name: str) -> list[Any]:
    if not isinstance(payload, dict):
        return []
    return (payload.get("_embedded") or {}).get(name) or []


def _total_elements(payload: Any) -> int:
    if not isinstance(payload, dict):
        return 0
    return int((payload.get("page") or {}).get("totalElements") or 0)


class PMSClient:
    """Authenticated, cached HTTP client for the PMS."""

    def __init__(
        self,
        base_url: str,
        api_key: str,
        api_secret: str,
        *,
        timeout: float = 10.0,
        cache_ttl_seconds: float = 300.0,
        cache_max_entries: int = 1024,
        transport_retries: int = 0,
        http_client: httpx.AsyncClient | None = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self._headers = {
            "Authorization": basic_auth_header(api_key, api_secret),
            "Accept": "application/json",
        }
        self._owns_http_client = http_client is None
        self._http = http_client or httpx.AsyncClient(
            timeout=timeout,
            transport=httpx.AsyncHTTPTransport(retries=transport_retries),
        )
        self.cache = ResponseCache(cache_ttl_seconds, max_entries=cache_max_entries, clock=clock)

    @classmethod
    def from_settings(cls, settings: Settings, **kwargs: Any) -> "PMSClient":
        return cls(
            settings.pms_api_url,
            settings.pms_api_key,
            settings.pms_api_secret,
            timeout=settings.pms_timeout_seconds,
            cache_ttl_seconds=settings.pms_cache_ttl_seconds,
            cache_max_entries=settings.pms_cache_max_entries,
            transport_retries=settings.pms_transport_retries,
            **kwargs,
        )

    async def aclose(self) -> None:
        if self._owns_http_client:
            await self._http.aclose()

    async def _get(self, endpoint: str, params: dict[str, Any] | None = None, *, use_cache: bool = True) -> Any:
        """GET an endpoint and return the decoded JSON body (``None`` for an empty body)."""
        url = f"{self.base_url}{endpoint}"
        query = {k: _format_param(v) for k, v in (params or {}).items() if v is not None}
        key = make_cache_key(url, query)

        if use_cache:
            cached = self.cache.get(key)
            if cached is not None:
                return cached

        try:
            response = await self._http.get(url, params=query, headers=self._headers)
        except httpx.HTTPError as exc:
            logger.warning("PMS request to %s failed: %s", url, exc)
            raise UpstreamError(None, str(exc) or exc.__class__.__name__, url) from exc

        if not response.is_success:
            logger.warning("PMS returned %s for %s", response.status_code, url)
            raise UpstreamError(response.status_code, response.text, url)

        try:
            payload = response.json() if response.content else None
        except ValueError as exc:
            logger.warning("PMS returned a non-JSON body for %s", url)
            raise UpstreamError(response.status_code, response.text, url) from exc

        if use_cache and payload is not None:
            self.cache.set(key, payload)
        return payload

    # ------------------------------------------------------------------
    # Units
    # ------------------------------------------------------------------

    async def fetch_unit(self, unit_id: int | str) -> RawUnit:
        payload = await self._get(f"/pms/units/{unit_id}")
        try:
            return RawUnit.model_validate(payload)
        except ValidationError as exc:
            logger.warning("PMS returned a malformed unit %s: %s", unit_id, exc.errors()[0].get("msg"))
            raise UpstreamError(None, f"malformed unit {unit_id}") from exc

    async def fetch_units(self, page: int = 1, page_size: int = 100) -> UnitPage:
        payload = await self._get("/pms/units", {"page": page, "size": page_size})
        return UnitPage(
            units=_validate_list(RawUnit, _embedded(payload, "units"), "unit"),
            total=_total_elements(payload),
        )

    async def search_units(
        self,
        params: UnitSearchParams | None = None,
        page: int = 1,
        page_size: int = 100,
    ) -> UnitPage:
        query: dict[str, Any] = params.to_query() if params is not None else {}
        query.update(page=page, size=page_size)
        payload = await self._get("/pms/units", query)
        return UnitPage(
            units=_validate_list(RawUnit, _embedded(payload, "units"), "unit"),
            total=_total_elements(payload),
        )

    async def fetch_unit_images(self, unit_id: int | str, limit: int = 10) -> list[RawImage]:
        payload = await self._get(f"/pms/units/{unit_id}/images", {"size": limit})
        return _validate_list(RawImage, _embedded(payload, "images"), "image")[:limit]

    # ------------------------------------------------------------------
    # Nodes
    # ------------------------------------------------------------------

    async def fetch_nodes(self) -> list[RawNode]:
        # ReferenceDataCache owns the node TTL.
        payload = await self._get("/pms/nodes", {"size": 100}, use_cache=False)
        return _validate_list(RawNode, _embedded(payload, "nodes"), "node")

    # ------------------------------------------------------------------
    # Availability & rates
    # ------------------------------------------------------------------

    async def fetch_availability(self, unit_id: int | str, start: date, end: date) -> list[RawAvailability]:
        payload = await self._get(
            f"/pms/units/{unit_id}/availability",
            {"startDate": start, "endDate": end},
        )
        return _validate_list(RawAvailability, _embedded(payload, "availability"), "availability day")

    async def fetch_rates(
        self,
        unit_id: int | str,
        check_in: date,
        check_out: date,
        guests: int | None = None,
    ) -> RawRate | None:
        """Fetch a rate quote. Quotes are never served from the cache."""
        payload = await self._get(
            f"/pms/units/{unit_id}/rates",
            {"checkIn": check_in, "checkOut": check_out, "guests": guests},
            use_cache=False,
        )
        if not payload:
            return None
        return RawRate.model_validate(payload)


def _format_param(value: Any) -> Any:
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, date):
        return value.isoformat()
    return value
