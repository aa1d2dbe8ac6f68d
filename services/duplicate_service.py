"""
Duplicate detection against existing places.

A row is the same place as an existing record when the names match
(ignoring case) and both coordinates are within a small threshold.
"""

from typing import Any, Iterable, Optional
import math
import structlog

from config import settings
from models.place_import import ExistingPlace, ParsedRow
from utils.text_utils import normalize_place_name

logger = structlog.get_logger(__name__)


def find_duplicate(
    mapped_data: dict[str, Any],
    snapshot: Iterable[ExistingPlace],
    threshold: float,
) -> Optional[ExistingPlace]:
    """
    First existing place matching this row, in snapshot order.

    Rows missing a name or either coordinate are never duplicates.
    """
    name = normalize_place_name(mapped_data.get("place_name"))
    lat = mapped_data.get("latitude")
    lng = mapped_data.get("longitude")

    if not name or not _is_coordinate(lat) or not _is_coordinate(lng):
        return None

    for place in snapshot:
        if normalize_place_name(place.name) != name:
            continue
        if abs(place.latitude - lat) < threshold and abs(place.longitude - lng) < threshold:
            return place
    return None


class DuplicateDetector:
    """
    Flags rows that already exist in the place store.

    Holds one snapshot for the whole wizard run; it is never refreshed
    mid-run.
    """

    def __init__(
        self,
        snapshot: list[ExistingPlace],
        threshold: Optional[float] = None,
    ):
        self.snapshot = snapshot
        self.threshold = threshold if threshold is not None else settings.duplicate_threshold_degrees

    def check(self, mapped_data: dict[str, Any]) -> Optional[ExistingPlace]:
        return find_duplicate(mapped_data, self.snapshot, self.threshold)

    def annotate(self, rows: list[ParsedRow]) -> int:
        """
        Set is_duplicate / duplicate_of on each row.

        Returns:
            Number of rows flagged
        """
        flagged = 0
        for row in rows:
            match = self.check(row.mapped_data)
            row.is_duplicate = match is not None
            row.duplicate_of = match.name if match else None
            if match:
                flagged += 1

        logger.info(
            "duplicates_annotated",
            row_count=len(rows),
            snapshot_size=len(self.snapshot),
            duplicate_count=flagged,
        )
        return flagged


def _is_coordinate(value: Any) -> bool:
    return (
        isinstance(value, (int, float))
        and not isinstance(value, bool)
        and math.isfinite(value)
    )
