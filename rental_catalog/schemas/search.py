"""Pydantic v2 schemas for catalog search: criteria, facets, result pages."""

from decimal import Decimal
from enum import StrEnum

from pydantic import BaseModel, ConfigDict, Field, computed_field, field_validator

from rental_catalog.schemas.property import Property

# ---------------------------------------------------------------------------
# Request schemas
# ---------------------------------------------------------------------------


class SortField(StrEnum):
    PRICE = "PRICE"
    BEDROOMS = "BEDROOMS"
    NAME = "NAME"


class SortOrder(StrEnum):
    ASC = "ASC"
    DESC = "DESC"


class SearchCriteria(BaseModel):
    """Search filters. Every field is optional; ``None`` means no constraint.

    Ranges where the minimum exceeds the maximum are accepted and simply match
    nothing.
    """

    model_config = ConfigDict(frozen=True)

    query: str | None = None
    village: str | None = None
    guests: int | None = Field(None, ge=1)
    bedrooms: int | None = Field(None, ge=0)
    bedrooms_min: int | None = Field(None, ge=0)
    bedrooms_max: int | None = Field(None, ge=0)
    price_min: Decimal | None = Field(None, ge=0)
    price_max: Decimal | None = Field(None, ge=0)
    pet_friendly: bool | None = None
    amenities: tuple[str, ...] = ()
    sort_by: SortField | None = None
    sort_order: SortOrder = SortOrder.ASC
    page: int = Field(1, ge=1)
    page_size: int = Field(20, ge=1, le=100)

    @field_validator("query", "village")
    @classmethod
    def _blank_to_none(cls, value: str | None) -> str | None:
        if value is None:
            return None
        value = value.strip()
        return value or None

    @field_validator("amenities", mode="before")
    @classmethod
    def _clean_amenities(cls, value: object) -> object:
        if value is None:
            return ()
        if isinstance(value, str):
            value = value.split(",")
        if isinstance(value, (list, tuple, set, frozenset)):
            return tuple(a.strip() for a in value if isinstance(a, str) and a.strip())
        return value


# ---------------------------------------------------------------------------
# Response schemas
# ---------------------------------------------------------------------------


class FacetCount(BaseModel):
    value: str
    label: str | None = None
    count: int


class PriceRangeFacet(BaseModel):
    min: Decimal
    max: Decimal | None = None  # None = open-ended
    count: int


class FacetSummary(BaseModel):
    """Counts over the filtered (unpaginated) result set, per filter dimension.

    ``villages``, ``bedrooms`` and ``pet_friendly`` partition the set.
    ``price_ranges`` skips properties without a base rate. ``amenities`` is
    multi-valued: each count is at most the total, but the sum is not.
    """

    villages: list[FacetCount] = Field(default_factory=list)
    bedrooms: list[FacetCount] = Field(default_factory=list)
    pet_friendly: list[FacetCount] = Field(default_factory=list)
    price_ranges: list[PriceRangeFacet] = Field(default_factory=list)
    amenities: list[FacetCount] = Field(default_factory=list)


class SearchResultPage(BaseModel):
    """One page of search results."""

    properties: list[Property]
    total: int
    page: int
    page_size: int
    facets: FacetSummary = Field(default_factory=FacetSummary)

    @computed_field  # type: ignore[prop-decorator]
    @property
    def has_next_page(self) -> bool:
        return self.page * self.page_size < self.total
