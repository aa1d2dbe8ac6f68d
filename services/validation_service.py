"""
Structural row validation.

Pure and synchronous. Knows nothing about duplicates.
"""

from typing import Any, Iterable
import math

from config.place_fields import MAX_ENTRANCE_SLOTS
from exceptions import EntranceSlotOverflowError
from models.place_import import RowValidation
from services.value_transformer import collect_entrances

LATITUDE_RANGE = (-90.0, 90.0)
LONGITUDE_RANGE = (-180.0, 180.0)


def validate_row(
    mapped_data: dict[str, Any],
    overflow_entrances: Iterable[int] = (),
) -> RowValidation:
    """
    Check a row's mapped values.

    Every failing rule adds an error; nothing short-circuits.

    Args:
        mapped_data: Output of map_row()
        overflow_entrances: Indexes of entrances the row fills in source
                            columns past the last slot

    Returns:
        RowValidation, valid iff no errors
    """
    errors: list[str] = []

    name = mapped_data.get("place_name")
    if not name or not str(name).strip():
        errors.append("Missing place name")

    if not _in_range(mapped_data.get("latitude"), *LATITUDE_RANGE):
        errors.append("Invalid latitude")

    if not _in_range(mapped_data.get("longitude"), *LONGITUDE_RANGE):
        errors.append("Invalid longitude")

    try:
        collect_entrances(mapped_data)
        overflow = sorted(overflow_entrances)
        if overflow:
            raise EntranceSlotOverflowError(overflow[0], MAX_ENTRANCE_SLOTS)
    except EntranceSlotOverflowError as e:
        errors.append(e.message)

    return RowValidation(is_valid=not errors, errors=tuple(errors))


def _in_range(value: Any, low: float, high: float) -> bool:
    """Finite number within [low, high] inclusive."""
    if value is None or isinstance(value, bool):
        return False
    if not isinstance(value, (int, float)) or not math.isfinite(value):
        return False
    return low <= value <= high
