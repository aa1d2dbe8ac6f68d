"""
Place record store access.

The narrow contract the import pipeline needs from the places table:
a duplicate-detection snapshot, batch inserts, and single record
fetch/update.
"""

from typing import Any, Optional
import structlog

from config import get_supabase_client, settings
from exceptions import DatabaseError, PlaceNotFoundError
from models.place_import import ExistingPlace

logger = structlog.get_logger(__name__)


class PlaceRepository:
    """
    Supabase-backed access to the places table.
    """

    def __init__(self, client=None, table: Optional[str] = None):
        self.db = client if client is not None else get_supabase_client()
        self.table = table or settings.places_table

    # ===================
    # READ OPERATIONS
    # ===================

    def fetch_existing_for_dedup(
        self,
        page_size: Optional[int] = None,
    ) -> list[ExistingPlace]:
        """
        Load id, name and coordinates of every place.

        Pages through the table so large stores are not truncated by the
        API's row limit. Records without a name or usable coordinates are
        left out.

        Returns:
            Snapshot in the order the store returned it
        """
        page_size = page_size or settings.dedup_page_size
        logger.info("fetching_dedup_snapshot", table=self.table)

        snapshot: list[ExistingPlace] = []
        offset = 0
        try:
            while True:
                result = (
                    self.db.table(self.table)
                    .select("id, name, latitude, longitude")
                    .order("id")
                    .range(offset, offset + page_size - 1)
                    .execute()
                )
                rows = result.data or []
                for row in rows:
                    place = _to_existing_place(row)
                    if place is not None:
                        snapshot.append(place)
                if len(rows) < page_size:
                    break
                offset += page_size

        except Exception as e:
            logger.error("fetch_dedup_snapshot_failed", error=str(e))
            raise DatabaseError("select", str(e))

        logger.info("dedup_snapshot_loaded", count=len(snapshot))
        return snapshot

    def get_by_id(self, place_id: str) -> dict:
        """
        Get a single place by ID.

        Raises:
            PlaceNotFoundError: If place doesn't exist
        """
        logger.debug("getting_place", place_id=place_id)

        try:
            result = (
                self.db.table(self.table)
                .select("*")
                .eq("id", place_id)
                .execute()
            )
        except Exception as e:
            logger.error("get_place_failed", place_id=place_id, error=str(e))
            raise DatabaseError("select", str(e))

        if not result.data:
            raise PlaceNotFoundError(place_id)
        return result.data[0]

    # ===================
    # WRITE OPERATIONS
    # ===================

    def insert_batch(self, records: list[dict[str, Any]]) -> list[str]:
        """
        Insert place records in one request.

        Args:
            records: Rows in places table layout

        Returns:
            IDs of the inserted rows, as acknowledged by the store

        Raises:
            DatabaseError: If the store rejects the request
        """
        if not records:
            return []

        try:
            result = (
                self.db.table(self.table)
                .insert(records)
                .execute()
            )
        except Exception as e:
            logger.error(
                "insert_place_batch_failed",
                count=len(records),
                error=str(e)
            )
            raise DatabaseError("insert", str(e))

        inserted_ids = [str(row["id"]) for row in (result.data or []) if row.get("id")]
        logger.info(
            "place_batch_inserted",
            requested=len(records),
            inserted=len(inserted_ids)
        )
        return inserted_ids

    def update(self, place_id: str, data: dict[str, Any]) -> dict:
        """
        Update fields of an existing place.

        Raises:
            PlaceNotFoundError: If place doesn't exist
        """
        logger.info("updating_place", place_id=place_id, fields=sorted(data))

        self.get_by_id(place_id)

        if not data:
            return self.get_by_id(place_id)

        try:
            result = (
                self.db.table(self.table)
                .update(data)
                .eq("id", place_id)
                .execute()
            )
        except Exception as e:
            logger.error("update_place_failed", place_id=place_id, error=str(e))
            raise DatabaseError("update", str(e))

        if not result.data:
            raise PlaceNotFoundError(place_id)
        return result.data[0]


def _to_existing_place(row: dict) -> Optional[ExistingPlace]:
    """Snapshot record, or None when name or coordinates are unusable."""
    name = row.get("name")
    try:
        lat = float(row.get("latitude"))
        lng = float(row.get("longitude"))
    except (TypeError, ValueError):
        return None
    if not name:
        return None
    return ExistingPlace(
        id=str(row.get("id")),
        name=str(name),
        latitude=lat,
        longitude=lng,
    )


# Singleton instance for convenience
_place_repository: Optional[PlaceRepository] = None


def get_place_repository() -> PlaceRepository:
    """Get or create PlaceRepository instance."""
    global _place_repository
    if _place_repository is None:
        _place_repository = PlaceRepository()
    return _place_repository
