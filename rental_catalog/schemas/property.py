"""Pydantic v2 schemas for catalog properties and villages."""

from decimal import Decimal

from pydantic import BaseModel, ConfigDict, Field, computed_field

from rental_catalog.services.slugs import slugify

# ---------------------------------------------------------------------------
# Villages
# ---------------------------------------------------------------------------


class Location(BaseModel):
    """A village (PMS node). The slug is always derived from the name."""

    model_config = ConfigDict(frozen=True)

    id: int
    name: str
    description: str | None = None

    @computed_field  # type: ignore[prop-decorator]
    @property
    def slug(self) -> str:
        return slugify(self.name)


class LocationSummary(BaseModel):
    """Village name and slug embedded in every property."""

    model_config = ConfigDict(frozen=True)

    name: str
    slug: str


# ---------------------------------------------------------------------------
# Properties
# ---------------------------------------------------------------------------


class PropertyImage(BaseModel):
    model_config = ConfigDict(frozen=True)

    url: str
    alt: str | None = None


class Amenity(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str
    name: str
    slug: str
    icon: str


class Property(BaseModel):
    """Canonical catalog property, built from a PMS unit and its village."""

    model_config = ConfigDict(frozen=True)

    id: str
    upstream_id: str
    house_number: str | None = None
    slug: str
    name: str
    headline: str | None = None
    description: str | None = None
    bedrooms: int = Field(0, ge=0)
    bathrooms: float = Field(0, ge=0)
    sleeps: int = Field(0, ge=0)
    village: LocationSummary
    pet_friendly: bool = False
    featured: bool = False
    latitude: float | None = None
    longitude: float | None = None
    street_address: str | None = None
    base_rate: Decimal | None = None
    images: tuple[PropertyImage, ...] = ()
    amenities: tuple[Amenity, ...] = ()

    @property
    def amenity_slugs(self) -> frozenset[str]:
        return frozenset(a.slug for a in self.amenities)
