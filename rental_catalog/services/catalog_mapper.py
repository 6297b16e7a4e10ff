"""Map raw PMS units to catalog properties.

Everything here is pure: no network or cache access. Missing or malformed
optional fields degrade to defaults rather than raising.
"""

import re

from rental_catalog.pms.models import RawImage, RawUnit
from rental_catalog.schemas.property import Amenity, Location, LocationSummary, Property, PropertyImage
from rental_catalog.services.slugs import slugify

PROPERTY_ID_PREFIX = "prop-"
PLACEHOLDER_IMAGE_URL = "/images/placeholder-property.svg"

UNKNOWN_LOCATION = LocationSummary(name="Unknown", slug="unknown")

_VILLAGE_SUFFIX = re.compile(r"\s+village$", re.IGNORECASE)

# First match wins. Patterns match at word starts so "ac" does not hit "beach access".
_AMENITY_ICONS: tuple[tuple[re.Pattern[str], str], ...] = tuple(
    (re.compile(pattern), icon)
    for pattern, icon in (
        (r"\b(wifi|wi-fi|internet)", "wifi"),
        (r"\bpool", "waves"),
        (r"\b(hot tub|jacuzzi)", "hot-tub"),
        (r"\b(air|ac\b)", "snowflake"),
        (r"\b(parking|garage)", "car"),
        (r"\b(grill|bbq)", "flame"),
        (r"\b(washer|laundry)", "shirt"),
        (r"\b(tv|television)", "tv"),
        (r"\b(pet|dog)", "dog"),
        (r"\bbeach", "umbrella-beach"),
        (r"\b(ocean|view)", "eye"),
        (r"\belevator", "elevator"),
    )
)


def property_id_for(upstream_id: int | str) -> str:
    return f"{PROPERTY_ID_PREFIX}{upstream_id}"


def strip_property_prefix(property_id: str) -> str:
    """Return the PMS unit id for a catalog property id (``prop-123`` -> ``123``)."""
    return property_id.removeprefix(PROPERTY_ID_PREFIX)


def village_display_name(node_name: str) -> str:
    """Drop a trailing "Village" from node names, except for Hatteras Village."""
    if node_name.strip().lower() == "hatteras village":
        return "Hatteras Village"
    return _VILLAGE_SUFFIX.sub("", node_name).strip()


def location_summary(location: Location | None) -> LocationSummary:
    if location is None:
        return UNKNOWN_LOCATION
    return LocationSummary(name=village_display_name(location.name), slug=location.slug)


def property_slug(name: str, unit_code: str | None = None) -> str:
    """Slug for a property. The unit code keeps same-named units apart."""
    base = slugify(name)
    code = slugify(unit_code) if unit_code else ""
    if base and code:
        return f"{base}-{code}"
    return base or code


def amenity_icon(name: str) -> str:
    lowered = name.lower()
    for pattern, icon in _AMENITY_ICONS:
        if pattern.search(lowered):
            return icon
    return "check"


def _to_float(value: str | float | None) -> float | None:
    if value is None or value == "":
        return None
    try:
        return float(value)
    except (TypeError, ValueError):
        return None


def _images(unit: RawUnit, images: list[RawImage] | None) -> tuple[PropertyImage, ...]:
    source = images if images else unit.images
    mapped = tuple(
        PropertyImage(url=url, alt=img.name or unit.name)
        for img in source
        if (url := img.best_url)
    )
    return mapped or (PropertyImage(url=PLACEHOLDER_IMAGE_URL, alt=unit.name),)


def map_unit_to_property(
    unit: RawUnit,
    location: Location | None,
    images: list[RawImage] | None = None,
) -> Property:
    """Build a :class:`Property` from a PMS unit and its resolved village.

    An unresolvable village (``location is None``) maps to the ``Unknown``
    sentinel instead of failing.
    """
    bathrooms = unit.full_bathrooms + unit.three_quarter_bathrooms + unit.half_bathrooms * 0.5

    return Property(
        id=property_id_for(unit.id),
        upstream_id=str(unit.id),
        house_number=unit.unit_code or None,
        slug=property_slug(unit.name, unit.unit_code),
        name=unit.name,
        headline=unit.short_description or None,
        description=unit.description,
        bedrooms=max(unit.bedrooms, 0),
        bathrooms=max(bathrooms, 0),
        sleeps=max(unit.max_occupancy, 0),
        village=location_summary(location),
        pet_friendly=unit.pets_friendly,
        latitude=_to_float(unit.latitude),
        longitude=_to_float(unit.longitude),
        street_address=unit.street_address,
        base_rate=unit.base_rate,
        images=_images(unit, images),
        amenities=tuple(
            Amenity(id=str(a.id), name=a.name, slug=slugify(a.name), icon=amenity_icon(a.name))
            for a in unit.amenities
        ),
    )
