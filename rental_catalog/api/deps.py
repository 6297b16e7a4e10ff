"""Shared API dependencies, the single import point for all routers.

The catalog service is built once in the application lifespan and stored on
``app.state``; routers receive it through :func:`get_catalog_service`, which
tests replace via ``app.dependency_overrides``::

    from rental_catalog.api.deps import get_catalog_service, within_deadline
"""

import asyncio
from collections.abc import Awaitable
from typing import TypeVar

from fastapi import Request

from rental_catalog.config import settings
from rental_catalog.services.catalog_service import CatalogService

T = TypeVar("T")


def get_catalog_service(request: Request) -> CatalogService:
    return request.app.state.catalog


async def within_deadline(awaitable: Awaitable[T]) -> T:
    """Await a service call under the request deadline.

    On expiry the call is cancelled, which aborts any in-flight PMS request,
    and ``TimeoutError`` propagates to the 504 handler.
    """
    return await asyncio.wait_for(awaitable, timeout=settings.request_deadline_seconds)


__all__ = [
    "get_catalog_service",
    "within_deadline",
]
