"""
Place field catalog for bulk imports.

The fixed target schema an operator's spreadsheet is mapped onto. Field order
matters: it is the display order of the mapping screen and the tie-break order
when auto-suggesting columns.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Optional


class FieldGroup(str, Enum):
    """Display category of a target field."""
    BASIC = "basic"
    LOCATION = "location"
    CONTACT = "contact"
    EXTERNAL = "external"
    ENTRANCE = "entrance"


class FieldType(str, Enum):
    """How a raw cell is coerced for a target field."""
    TEXT = "text"
    NUMBER = "number"
    BOOLEAN = "boolean"
    ARRAY = "array"
    CATEGORY = "category"
    PRICE = "price"


@dataclass(frozen=True)
class TargetFieldDefinition:
    """One field of the place schema."""
    key: str
    label: str
    group: FieldGroup
    required: bool = False
    type: FieldType = FieldType.TEXT
    aliases: tuple[str, ...] = ()
    entrance_index: Optional[int] = None
    entrance_field: Optional[str] = None

    @property
    def match_aliases(self) -> tuple[str, ...]:
        """Aliases used for auto-mapping; a field always matches its own key."""
        return self.aliases or (self.key,)


# =============================================================================
# ENUMERATED VALUES
# =============================================================================

VALID_CATEGORIES: tuple[str, ...] = (
    "National Park",
    "State Park",
    "County / Regional Park",
    "RV Campground",
    "Luxury RV Resort",
    "Overnight Parking",
    "Boondocking",
    "Business Allowing Overnight",
    "Rest Area / Travel Plaza",
    "Fairgrounds / Event Grounds",
)

# Category coercion never fails; unknown text becomes this sentinel
OTHER_CATEGORY = "Other"

# Written to the store when the coerced category is not a real category
DEFAULT_CATEGORY = "RV Campground"

VALID_PRICE_LEVELS: tuple[str, ...] = ("$", "$$", "$$$")
DEFAULT_PRICE_LEVEL = "$$"


# =============================================================================
# ENTRANCE SLOTS
# =============================================================================
# The store keeps up to five entrances per place as numbered column groups
# (entrance_1_name, entrance_1_latitude, ...), not as a child table.

MAX_ENTRANCE_SLOTS = 5

ENTRANCE_FIELDS: tuple[tuple[str, str, FieldType], ...] = (
    ("name", "Name", FieldType.TEXT),
    ("lat", "Latitude", FieldType.NUMBER),
    ("lng", "Longitude", FieldType.NUMBER),
    ("road", "Road", FieldType.TEXT),
    ("notes", "Notes", FieldType.TEXT),
    ("primary_flag", "Primary", FieldType.BOOLEAN),
)

_ENTRANCE_EXTRA_ALIASES = {
    "name": ("entrance_{i}_name", "entrance{i}_name"),
    "lat": ("entrance_{i}_latitude", "entrance{i}_lat", "entrance_{i}_lat"),
    "lng": ("entrance_{i}_longitude", "entrance{i}_lng", "entrance_{i}_lng", "entrance_{i}_lon"),
    "road": ("entrance_{i}_road", "entrance{i}_road"),
    "notes": ("entrance_{i}_notes", "entrance{i}_notes"),
    "primary_flag": ("entrance_{i}_primary", "entrance{i}_primary_flag", "entrance_{i}_is_primary"),
}


def _entrance_fields() -> list[TargetFieldDefinition]:
    fields = []
    for i in range(1, MAX_ENTRANCE_SLOTS + 1):
        for suffix, label, field_type in ENTRANCE_FIELDS:
            aliases = tuple(a.format(i=i) for a in _ENTRANCE_EXTRA_ALIASES[suffix])
            if i == 1 and suffix == "name":
                aliases += ("main_entrance",)
            fields.append(TargetFieldDefinition(
                key=f"entrance{i}_{suffix}",
                label=f"Entrance {i} {label}",
                group=FieldGroup.ENTRANCE,
                type=field_type,
                aliases=aliases,
                entrance_index=i,
                entrance_field=suffix,
            ))
    return fields


# =============================================================================
# CATALOG
# =============================================================================

PLACE_FIELDS: tuple[TargetFieldDefinition, ...] = (
    # Basic info (required)
    TargetFieldDefinition(
        "place_name", "Place Name", FieldGroup.BASIC, required=True,
        aliases=("name", "place_name", "place name", "placename", "title",
                 "location_name", "business_name", "poi_name"),
    ),
    TargetFieldDefinition(
        "latitude", "Latitude", FieldGroup.BASIC, required=True, type=FieldType.NUMBER,
        aliases=("latitude", "lat", "y", "coord_lat", "geo_lat"),
    ),
    TargetFieldDefinition(
        "longitude", "Longitude", FieldGroup.BASIC, required=True, type=FieldType.NUMBER,
        aliases=("longitude", "lng", "lon", "long", "x", "coord_lon", "geo_lon", "geo_lng"),
    ),

    # Basic info (optional)
    TargetFieldDefinition(
        "primary_category", "Primary Category", FieldGroup.BASIC, type=FieldType.CATEGORY,
        aliases=("category", "primary_category", "type", "place_type", "poi_type"),
    ),
    TargetFieldDefinition(
        "additional_categories", "Additional Categories", FieldGroup.BASIC, type=FieldType.ARRAY,
    ),
    TargetFieldDefinition(
        "secondary_tags", "Secondary Tags", FieldGroup.BASIC, type=FieldType.ARRAY,
        aliases=("secondary_tags", "tags", "amenities"),
    ),
    TargetFieldDefinition(
        "price_tier", "Price Tier", FieldGroup.BASIC, type=FieldType.PRICE,
        aliases=("price", "price_tier", "price_level", "cost", "pricing"),
    ),
    TargetFieldDefinition(
        "short_description", "Short Description", FieldGroup.BASIC,
        aliases=("description", "short_description", "summary", "about", "info"),
    ),

    # Location
    TargetFieldDefinition(
        "address_line1", "Address Line 1", FieldGroup.LOCATION,
        aliases=("address", "address_line1", "street", "street_address", "addr"),
    ),
    TargetFieldDefinition(
        "city", "City", FieldGroup.LOCATION,
        aliases=("city", "town", "municipality", "locality"),
    ),
    TargetFieldDefinition(
        "state", "State", FieldGroup.LOCATION,
        aliases=("state", "province", "region", "state_code", "state_province"),
    ),
    TargetFieldDefinition(
        "postal_code", "Postal Code", FieldGroup.LOCATION,
        aliases=("postal_code", "zip", "zip_code", "zipcode", "postcode"),
    ),
    TargetFieldDefinition(
        "country", "Country", FieldGroup.LOCATION,
        aliases=("country", "country_code", "nation"),
    ),

    # Contact
    TargetFieldDefinition(
        "phone", "Phone", FieldGroup.CONTACT,
        aliases=("phone", "telephone", "phone_number", "tel"),
    ),
    TargetFieldDefinition(
        "website_url", "Website URL", FieldGroup.CONTACT,
        aliases=("website", "website_url", "url", "web", "site"),
    ),
    TargetFieldDefinition(
        "email", "Email", FieldGroup.CONTACT,
        aliases=("email", "email_address", "contact_email"),
    ),
    TargetFieldDefinition(
        "hours_text", "Hours (Text)", FieldGroup.CONTACT,
        aliases=("hours_text", "hours", "hours_of_operation"),
    ),

    # External references
    TargetFieldDefinition(
        "google_place_id", "Google Place ID", FieldGroup.EXTERNAL,
        aliases=("google_place_id", "place_id", "google_id"),
    ),
    TargetFieldDefinition(
        "yelp_business_id", "Yelp Business ID", FieldGroup.EXTERNAL,
        aliases=("yelp_business_id", "yelp_id"),
    ),
    TargetFieldDefinition("external_source_name", "External Source Name", FieldGroup.EXTERNAL),
    TargetFieldDefinition("external_source_url", "External Source URL", FieldGroup.EXTERNAL),
    TargetFieldDefinition(
        "external_rating_google", "Google Rating", FieldGroup.EXTERNAL, type=FieldType.NUMBER,
    ),
    TargetFieldDefinition(
        "external_rating_yelp", "Yelp Rating", FieldGroup.EXTERNAL, type=FieldType.NUMBER,
    ),
    TargetFieldDefinition("featured_photo_url", "Featured Photo URL", FieldGroup.EXTERNAL),
    TargetFieldDefinition(
        "photo_urls", "Photo URLs", FieldGroup.EXTERNAL, type=FieldType.ARRAY,
    ),

    # Entrances 1-5
    *_entrance_fields(),
)

_FIELDS_BY_KEY: dict[str, TargetFieldDefinition] = {f.key: f for f in PLACE_FIELDS}


# =============================================================================
# LOOKUPS
# =============================================================================

def get_field(key: str) -> Optional[TargetFieldDefinition]:
    """Look up a field definition by key."""
    return _FIELDS_BY_KEY.get(key)


def required_fields(
    catalog: tuple[TargetFieldDefinition, ...] = PLACE_FIELDS,
) -> list[TargetFieldDefinition]:
    """Fields that must be mapped before the wizard can validate."""
    return [f for f in catalog if f.required]


def fields_by_group(
    catalog: tuple[TargetFieldDefinition, ...] = PLACE_FIELDS,
) -> dict[FieldGroup, list[TargetFieldDefinition]]:
    """Group fields for display, preserving catalog order."""
    grouped: dict[FieldGroup, list[TargetFieldDefinition]] = {g: [] for g in FieldGroup}
    for f in catalog:
        grouped[f.group].append(f)
    return grouped
