"""Pydantic v2 models for raw PMS payloads.

Field names follow Python conventions; the PMS's camelCase keys are accepted
through the alias generator. Unknown keys are ignored so upstream additions
never break parsing, and an explicit ``null`` on an optional field reads as
the field's default.
"""

from datetime import date
from decimal import Decimal
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, ValidationInfo, field_validator
from pydantic.alias_generators import to_camel


class _PMSModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="ignore",
    )

    @field_validator("*", mode="before")
    @classmethod
    def _null_as_default(cls, value: Any, info: ValidationInfo) -> Any:
        # Required fields keep their None and still fail validation.
        if value is None and info.field_name is not None:
            field = cls.model_fields[info.field_name]
            if not field.is_required():
                return field.get_default(call_default_factory=True)
        return value


# ---------------------------------------------------------------------------
# Units
# ---------------------------------------------------------------------------


class RawAmenity(_PMSModel):
    id: int | str
    name: str


class RawImage(_PMSModel):
    id: int | str | None = None
    name: str | None = None
    original: str | None = None
    large: str | None = None
    medium: str | None = None
    small: str | None = None
    thumbnail: str | None = None

    @property
    def best_url(self) -> str | None:
        return self.original or self.large or self.medium or self.small or self.thumbnail


class RawUnit(_PMSModel):
    """A rentable unit as the PMS describes it."""

    id: int
    name: str = ""
    unit_code: str | None = None
    short_description: str | None = None
    description: str | None = None
    bedrooms: int = 0
    full_bathrooms: int = 0
    three_quarter_bathrooms: int = 0
    half_bathrooms: int = 0
    max_occupancy: int = 0
    node_id: int | None = None
    pets_friendly: bool = False
    latitude: str | float | None = None
    longitude: str | float | None = None
    street_address: str | None = None
    base_rate: Decimal | None = None
    amenities: list[RawAmenity] = Field(default_factory=list)
    images: list[RawImage] = Field(default_factory=list)


class UnitPage(BaseModel):
    """One page of units plus the upstream's total element count."""

    units: list[RawUnit]
    total: int


class UnitSearchParams(_PMSModel):
    """Search filters the PMS units endpoint understands natively."""

    bedrooms: int | None = None
    max_occupancy: int | None = None
    pets_friendly: bool | None = None
    node_id: int | None = None

    def to_query(self) -> dict[str, int | bool]:
        return self.model_dump(by_alias=True, exclude_none=True)


# ---------------------------------------------------------------------------
# Nodes
# ---------------------------------------------------------------------------


class RawNode(_PMSModel):
    id: int
    name: str
    description: str | None = None


# ---------------------------------------------------------------------------
# Availability & rates
# ---------------------------------------------------------------------------


class RawAvailability(_PMSModel):
    day: date = Field(alias="date")
    available: bool
    rate: Decimal | None = None
    minimum_stay: int | None = None
    check_in_allowed: bool | None = None
    check_out_allowed: bool | None = None


class RawFee(_PMSModel):
    name: str
    amount: Decimal
    type: str = "flat"


class RawRate(_PMSModel):
    base_rate: Decimal | None = None
    total_rate: Decimal | None = None
    taxes: Decimal | None = None
    fees: list[RawFee] = Field(default_factory=list)
    minimum_stay: int | None = None
