"""Pydantic v2 schemas for availability, rate quotes and stay planning."""

from datetime import date
from decimal import Decimal

from pydantic import BaseModel, Field, computed_field


class AvailabilityDay(BaseModel):
    """Availability of one property on one night."""

    day: date = Field(serialization_alias="date")
    available: bool
    rate: Decimal | None = None
    minimum_stay: int | None = None
    check_in_allowed: bool = True
    check_out_allowed: bool = True


class Fee(BaseModel):
    name: str
    amount: Decimal
    type: str  # FLAT, PERCENTAGE, PER_NIGHT, PER_PERSON


class RateQuote(BaseModel):
    """Priced quote for a stay. Built per request, never cached."""

    property_id: str
    check_in: date
    check_out: date
    guests: int | None = None
    nights: int
    base_rate: Decimal
    total: Decimal
    taxes: Decimal = Decimal("0")
    fees: list[Fee] = Field(default_factory=list)
    minimum_stay: int | None = None


class RateQuoteResponse(BaseModel):
    """Quote lookup result. ``bookable`` is False when the PMS has no rate for the stay."""

    bookable: bool
    quote: RateQuote | None = None


class StayPlan(BaseModel):
    """Dates a booking form should use, after applying the minimum stay."""

    property_id: str
    check_in: date
    check_out: date
    nights: int
    minimum_stay: int
    adjusted: bool = False
    quote: RateQuote | None = None

    @computed_field  # type: ignore[prop-decorator]
    @property
    def bookable(self) -> bool:
        return self.quote is not None
