"""
Unit tests for PlaceRepository.

Run: pytest tests/unit/test_place_repository.py -v
"""

import pytest

from services.place_repository import PlaceRepository
from exceptions import DatabaseError, PlaceNotFoundError


class TestFetchExistingForDedup:
    """Tests for PlaceRepository.fetch_existing_for_dedup()"""

    def test_returns_snapshot(self, place_repository, mock_supabase, sample_places_list):
        # Arrange
        mock_supabase.set_table_data("places", sample_places_list)

        # Act
        snapshot = place_repository.fetch_existing_for_dedup()

        # Assert
        assert [p.id for p in snapshot] == ["uuid-1", "uuid-2", "uuid-3"]
        assert snapshot[0].name == "Pine Lake RV Park"
        assert snapshot[0].latitude == 44.5

    def test_pages_through_table(self, place_repository, mock_supabase):
        """Should keep reading pages until a short page comes back."""
        rows = [
            {"id": f"p{i}", "name": f"Place {i}", "latitude": 10.0 + i, "longitude": 20.0}
            for i in range(5)
        ]
        mock_supabase.set_table_data("places", rows)

        snapshot = place_repository.fetch_existing_for_dedup(page_size=2)

        assert [p.id for p in snapshot] == ["p0", "p1", "p2", "p3", "p4"]

    def test_skips_unusable_records(self, place_repository, mock_supabase):
        mock_supabase.set_table_data("places", [
            {"id": "ok", "name": "Good", "latitude": "44.5", "longitude": "-110.2"},
            {"id": "no-name", "name": None, "latitude": 1.0, "longitude": 1.0},
            {"id": "no-coords", "name": "Bad", "latitude": None, "longitude": 1.0},
        ])

        snapshot = place_repository.fetch_existing_for_dedup()

        assert [p.id for p in snapshot] == ["ok"]
        assert snapshot[0].latitude == 44.5

    def test_select_failure_raises_database_error(self, place_repository, mock_supabase):
        mock_supabase.fail_selects = True

        with pytest.raises(DatabaseError):
            place_repository.fetch_existing_for_dedup()


class TestInsertBatch:
    """Tests for PlaceRepository.insert_batch()"""

    def test_returns_inserted_ids(self, place_repository, mock_supabase):
        records = [{"name": "A"}, {"name": "B"}]

        ids = place_repository.insert_batch(records)

        assert ids == ["place-1", "place-2"]
        assert [r["name"] for r in mock_supabase.inserted["places"]] == ["A", "B"]

    def test_empty_batch_skips_request(self, place_repository, mock_supabase):
        assert place_repository.insert_batch([]) == []
        assert mock_supabase.insert_calls == 0

    def test_rejected_batch_raises(self, place_repository, mock_supabase):
        mock_supabase.fail_insert_on(1)

        with pytest.raises(DatabaseError) as exc_info:
            place_repository.insert_batch([{"name": "A"}])

        assert exc_info.value.details["operation"] == "insert"
        assert "rejected" in exc_info.value.message


class TestGetAndUpdate:
    """Tests for get_by_id() and update()"""

    def test_get_by_id(self, place_repository, mock_supabase, sample_places_list):
        mock_supabase.set_table_data("places", sample_places_list)

        place = place_repository.get_by_id("uuid-2")

        assert place["name"] == "Desert Springs Campground"

    def test_get_by_id_not_found(self, place_repository, mock_supabase):
        mock_supabase.set_table_data("places", [])

        with pytest.raises(PlaceNotFoundError):
            place_repository.get_by_id("missing")

    def test_update_merges_fields(self, place_repository, mock_supabase, sample_places_list):
        mock_supabase.set_table_data("places", sample_places_list)

        updated = place_repository.update("uuid-1", {"city": "Cody"})

        assert updated["id"] == "uuid-1"
        assert updated["city"] == "Cody"

    def test_uses_configured_client(self, mock_db, mock_supabase):
        """Should fall back to the shared Supabase client."""
        repository = PlaceRepository()

        assert repository.db is mock_supabase
        assert repository.table == "places"
