"""
Cell coercion and place record projection.

transform_value() turns one raw cell into a typed value according to the
target field type. build_place_record() projects a row's mapped values onto
the store's column layout, including the numbered entrance slots.
"""

from typing import Any, Optional
import math
import re
import structlog

from config.place_fields import (
    PLACE_FIELDS,
    TargetFieldDefinition,
    FieldType,
    VALID_CATEGORIES,
    OTHER_CATEGORY,
    DEFAULT_CATEGORY,
    VALID_PRICE_LEVELS,
    DEFAULT_PRICE_LEVEL,
    MAX_ENTRANCE_SLOTS,
)
from exceptions import EntranceSlotOverflowError
from models.place_import import ColumnMapping, EntranceSlot, RawRow
from utils.text_utils import normalize_column_name

logger = structlog.get_logger(__name__)

_ARRAY_SEPARATORS = re.compile(r"[,|;]")
_ENTRANCE_KEY = re.compile(r"^entrance(\d+)_(\w+)$")
_ENTRANCE_COLUMN = re.compile(r"^entrance(\d+)")

_TRUE_VALUES = {"true", "yes", "1", "y"}
_FALSE_VALUES = {"false", "no", "0", "n"}

_PRICE_TIERS = {
    "1": "$",
    "$": "$",
    "2": "$$",
    "$$": "$$",
    "3": "$$$",
    "$$$": "$$$",
}

_CATEGORY_LOOKUP = {c.lower(): c for c in VALID_CATEGORIES}


def transform_value(raw: Optional[str], field_type: FieldType) -> Any:
    """
    Coerce a raw cell for a field type.

    - number: float, or None if not numeric
    - boolean: true/yes/1/y and false/no/0/n (any case), else None
    - array: split on comma, pipe or semicolon; empty input gives []
    - category: known category (any case), else "Other"
    - price: 1/2/3 or $/$$/$$$, else "$$"
    - text: trimmed string, None if empty
    """
    value = (raw or "").strip()

    if field_type == FieldType.ARRAY:
        return [piece.strip() for piece in _ARRAY_SEPARATORS.split(value) if piece.strip()]

    if field_type == FieldType.CATEGORY:
        return _CATEGORY_LOOKUP.get(value.lower(), OTHER_CATEGORY)

    if field_type == FieldType.PRICE:
        return _PRICE_TIERS.get(value, DEFAULT_PRICE_LEVEL)

    if not value:
        return None

    if field_type == FieldType.NUMBER:
        return _parse_number(value)

    if field_type == FieldType.BOOLEAN:
        lower = value.lower()
        if lower in _TRUE_VALUES:
            return True
        if lower in _FALSE_VALUES:
            return False
        return None

    return value


def map_row(
    raw_row: RawRow,
    mapping: ColumnMapping,
    catalog: tuple[TargetFieldDefinition, ...] = PLACE_FIELDS,
) -> dict[str, Any]:
    """
    Apply a column mapping and coerce each mapped cell.

    Only fields whose mapped column exists in the row are present in the
    result.
    """
    mapped: dict[str, Any] = {}
    for target in catalog:
        column = mapping.get(target.key)
        if column and column in raw_row:
            mapped[target.key] = transform_value(raw_row[column], target.type)
    return mapped


# ===================
# ENTRANCE SLOTS
# ===================

def collect_entrances(
    mapped_data: dict[str, Any],
    max_slots: int = MAX_ENTRANCE_SLOTS,
) -> list[EntranceSlot]:
    """
    Gather entrance sub-records from entrance{n}_* keys.

    An entrance is kept only when it has a name and finite coordinates.

    Raises:
        EntranceSlotOverflowError: If any key refers to an entrance past
                                   the last slot
    """
    grouped: dict[int, dict[str, Any]] = {}
    for key, value in mapped_data.items():
        match = _ENTRANCE_KEY.match(key)
        if not match:
            continue
        index = int(match.group(1))
        if index < 1 or index > max_slots:
            raise EntranceSlotOverflowError(index, max_slots)
        grouped.setdefault(index, {})[match.group(2)] = value

    entrances = []
    for index in sorted(grouped):
        data = grouped[index]
        name = data.get("name")
        lat = data.get("lat")
        lng = data.get("lng")
        if not name or not _is_finite(lat) or not _is_finite(lng):
            continue
        entrances.append(EntranceSlot(
            index=index,
            name=name,
            latitude=lat,
            longitude=lng,
            road=data.get("road") or None,
            notes=data.get("notes") or None,
            is_primary=bool(data.get("primary_flag")),
        ))
    return entrances


def find_overflow_entrance_columns(
    columns: list[str],
    max_slots: int = MAX_ENTRANCE_SLOTS,
) -> dict[str, int]:
    """
    Source columns that describe an entrance past the last slot.

    "entrance_6_name" -> 6, "Entrance 12 Lat" -> 12

    Returns:
        Column name -> entrance index, for indexes above max_slots
    """
    overflow = {}
    for column in columns:
        match = _ENTRANCE_COLUMN.match(normalize_column_name(column))
        if match and int(match.group(1)) > max_slots:
            overflow[column] = int(match.group(1))
    return overflow


def overflow_entrance_indexes(raw_row: RawRow, overflow_columns: dict[str, int]) -> list[int]:
    """Indexes of overflow entrances that have data in this row."""
    return sorted({
        index for column, index in overflow_columns.items()
        if (raw_row.get(column) or "").strip()
    })


def build_place_record(
    mapped_data: dict[str, Any],
    default_country: str = "USA",
) -> dict[str, Any]:
    """
    Project a row's mapped values onto the places table layout.

    Raises:
        EntranceSlotOverflowError: If the row has more entrances than slots
    """
    d = mapped_data
    category = d.get("primary_category")
    is_known_category = category in VALID_CATEGORIES
    price = d.get("price_tier")

    record: dict[str, Any] = {
        "name": d.get("place_name"),
        "latitude": d.get("latitude"),
        "longitude": d.get("longitude"),
        "primary_category": category if is_known_category else DEFAULT_CATEGORY,
        "custom_category_text": None if is_known_category else category,
        "price_level": price if price in VALID_PRICE_LEVELS else DEFAULT_PRICE_LEVEL,
        "description": d.get("short_description") or None,
        "address_line1": d.get("address_line1") or None,
        "city": d.get("city") or None,
        "state": d.get("state") or None,
        "postal_code": d.get("postal_code") or None,
        "country": d.get("country") or default_country,
        "phone": d.get("phone") or None,
        "website": d.get("website_url") or None,
        "email": d.get("email") or None,
        "hours_text": d.get("hours_text") or None,
        "additional_categories": d.get("additional_categories") or [],
        "tags": d.get("secondary_tags") or [],
        "google_place_id": d.get("google_place_id") or None,
        "yelp_business_id": d.get("yelp_business_id") or None,
        "external_source_name": d.get("external_source_name") or None,
        "external_source_url": d.get("external_source_url") or None,
        "external_rating_google": d.get("external_rating_google"),
        "external_rating_yelp": d.get("external_rating_yelp"),
        "featured_photo_url": d.get("featured_photo_url") or None,
        "photo_urls": d.get("photo_urls") or [],
    }

    for entrance in collect_entrances(d):
        i = entrance.index
        record[f"entrance_{i}_name"] = entrance.name
        record[f"entrance_{i}_latitude"] = entrance.latitude
        record[f"entrance_{i}_longitude"] = entrance.longitude
        record[f"entrance_{i}_road"] = entrance.road
        record[f"entrance_{i}_notes"] = entrance.notes
        record[f"entrance_{i}_is_primary"] = entrance.is_primary

    return record


# ===================
# HELPER FUNCTIONS
# ===================

def _parse_number(value: str) -> Optional[float]:
    """Parse a float; NaN, infinities and digit-group underscores count as non-numeric."""
    if "_" in value:
        return None
    try:
        num = float(value)
    except ValueError:
        return None
    return num if math.isfinite(num) else None


def _is_finite(value: Any) -> bool:
    return (
        isinstance(value, (int, float))
        and not isinstance(value, bool)
        and math.isfinite(value)
    )
