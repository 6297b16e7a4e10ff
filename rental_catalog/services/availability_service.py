"""Per-stay availability and rate quotes."""

import logging
from datetime import date
from decimal import Decimal

from rental_catalog.pms.client import PMSClient
from rental_catalog.pms.errors import UpstreamError
from rental_catalog.schemas.availability import AvailabilityDay, Fee, RateQuote
from rental_catalog.services.catalog_mapper import strip_property_prefix

logger = logging.getLogger(__name__)

# Statuses the rates endpoint uses to say "no combinable rate for this stay".
NO_RATE_STATUSES = frozenset({404, 422})


class AvailabilityResolver:
    """Resolves availability windows and rate quotes for catalog properties.

    Minimum stay is reported, not enforced; see
    :mod:`rental_catalog.services.stay_policy`.
    """

    def __init__(self, client: PMSClient) -> None:
        self._client = client

    async def get_availability(self, property_id: str, start: date, end: date) -> list[AvailabilityDay]:
        unit_id = strip_property_prefix(property_id)
        days = await self._client.fetch_availability(unit_id, start, end)
        return [
            AvailabilityDay(
                day=d.day,
                available=d.available,
                rate=d.rate,
                minimum_stay=d.minimum_stay,
                check_in_allowed=True if d.check_in_allowed is None else d.check_in_allowed,
                check_out_allowed=True if d.check_out_allowed is None else d.check_out_allowed,
            )
            for d in days
        ]

    async def get_quote(
        self,
        property_id: str,
        check_in: date,
        check_out: date,
        guests: int | None = None,
    ) -> RateQuote | None:
        """Quote a stay, or ``None`` when the PMS cannot price it (unbookable)."""
        unit_id = strip_property_prefix(property_id)
        try:
            rate = await self._client.fetch_rates(unit_id, check_in, check_out, guests)
        except UpstreamError as exc:
            if exc.status_code in NO_RATE_STATUSES:
                logger.info("No rate for unit %s %s..%s (PMS %s)", unit_id, check_in, check_out, exc.status_code)
                return None
            raise

        if rate is None or rate.base_rate is None or rate.total_rate is None:
            logger.info("No combinable rate for unit %s %s..%s", unit_id, check_in, check_out)
            return None

        return RateQuote(
            property_id=property_id,
            check_in=check_in,
            check_out=check_out,
            guests=guests,
            nights=(check_out - check_in).days,
            base_rate=rate.base_rate,
            total=rate.total_rate,
            taxes=rate.taxes if rate.taxes is not None else Decimal("0"),
            fees=[Fee(name=f.name, amount=f.amount, type=f.type.upper()) for f in rate.fees],
            minimum_stay=rate.minimum_stay,
        )
