"""
Shared test fixtures.
"""

import os
import sys
from pathlib import Path

# Add backend directory to Python path
backend_dir = Path(__file__).parent.parent
sys.path.insert(0, str(backend_dir))

# Settings require Supabase credentials at import time
os.environ.setdefault("SUPABASE_URL", "https://test-project.supabase.co")
os.environ.setdefault("SUPABASE_KEY", "test-anon-key")

import pytest
from unittest.mock import patch
from typing import Generator

from services.place_repository import PlaceRepository
from services.preset_service import InMemoryStore, PresetService


# ===================
# MOCK SUPABASE CLIENT
# ===================

class MockSupabaseResponse:
    """Mock Supabase query response."""

    def __init__(self, data: list = None, count: int = None):
        self.data = data or []
        self.count = count if count is not None else len(self.data)


class MockSupabaseQuery:
    """Mock Supabase query builder with chainable methods."""

    def __init__(self, client: "MockSupabaseClient", table_name: str, data: list = None, count: int = None):
        self._client = client
        self._table_name = table_name
        self._data = data or []
        self._count = count
        self._range = None
        self._update = None
        self._error = None

    def select(self, *args, **kwargs):
        return self

    def insert(self, data):
        # Simulate insert - assign ids, optionally reject the call
        rows = [data] if isinstance(data, dict) else list(data)
        call_number = self._client.record_insert_call()
        if call_number in self._client.failing_insert_calls:
            self._error = Exception(f"insert call {call_number} rejected")
            return self
        inserted = []
        for row in rows:
            inserted.append({**row, "id": self._client.next_id()})
        self._client.inserted.setdefault(self._table_name, []).extend(inserted)
        self._data = inserted
        return self

    def update(self, data):
        self._update = data
        return self

    def eq(self, column, value):
        self._data = [r for r in self._data if r.get(column) == value]
        return self

    def order(self, column, **kwargs):
        return self

    def range(self, start, end):
        self._range = (start, end)
        return self

    def limit(self, count):
        return self

    def execute(self) -> MockSupabaseResponse:
        if self._error is not None:
            raise self._error
        data = self._data
        if self._update is not None:
            data = [{**r, **self._update} for r in data]
        total = self._count if self._count is not None else len(data)
        if self._range is not None:
            start, end = self._range
            data = data[start:end + 1]
        return MockSupabaseResponse(data=data, count=total)


class MockSupabaseTable:
    """Mock Supabase table with configurable responses."""

    def __init__(self, client: "MockSupabaseClient", name: str, data: list = None, count: int = None):
        self._client = client
        self._name = name
        self._data = data or []
        self._count = count

    def _query(self) -> MockSupabaseQuery:
        return MockSupabaseQuery(self._client, self._name, self._data.copy(), self._count)

    def select(self, *args, **kwargs):
        if self._client.fail_selects:
            raise Exception("select rejected")
        return self._query()

    def insert(self, data):
        return self._query().insert(data)

    def update(self, data):
        return self._query().update(data)

    def delete(self):
        return self._query()


class MockSupabaseClient:
    """Mock Supabase client."""

    def __init__(self):
        self._tables = {}
        self._id_counter = 0
        self.insert_calls = 0
        self.failing_insert_calls: set[int] = set()
        self.fail_selects = False
        self.inserted: dict[str, list] = {}

    def set_table_data(self, table_name: str, data: list, count: int = None):
        """Configure mock data for a table."""
        self._tables[table_name] = {"data": data, "count": count}

    def fail_insert_on(self, *call_numbers: int):
        """Reject the given insert calls (1-indexed)."""
        self.failing_insert_calls.update(call_numbers)

    def record_insert_call(self) -> int:
        self.insert_calls += 1
        return self.insert_calls

    def next_id(self) -> str:
        self._id_counter += 1
        return f"place-{self._id_counter}"

    def table(self, name: str) -> MockSupabaseTable:
        """Get mock table."""
        config = self._tables.get(name, {"data": [], "count": None})
        return MockSupabaseTable(self, name, config["data"], config["count"])


# ===================
# FIXTURES
# ===================

@pytest.fixture
def mock_supabase() -> MockSupabaseClient:
    """
    Create a mock Supabase client.

    Usage:
        def test_something(mock_supabase):
            mock_supabase.set_table_data("places", [
                {"id": "1", "name": "Pine Lake RV Park", ...}
            ])
    """
    return MockSupabaseClient()


@pytest.fixture
def mock_db(mock_supabase) -> Generator:
    """
    Patch the database client with mock.

    Usage:
        def test_something(mock_db, mock_supabase):
            mock_supabase.set_table_data("places", [...])
            # Now any code using get_supabase_client() gets the mock
    """
    with patch("config.database.get_supabase_client", return_value=mock_supabase):
        with patch("services.place_repository.get_supabase_client", return_value=mock_supabase):
            yield mock_supabase


@pytest.fixture
def place_repository(mock_supabase) -> PlaceRepository:
    return PlaceRepository(client=mock_supabase, table="places")


@pytest.fixture
def preset_service() -> PresetService:
    """Preset service backed by an in-memory store."""
    return PresetService(store=InMemoryStore(), storage_key="test_presets")


@pytest.fixture
def sample_places_list() -> list:
    """Existing places as returned by the places table."""
    return [
        {
            "id": "uuid-1",
            "name": "Pine Lake RV Park",
            "latitude": 44.5,
            "longitude": -110.2,
        },
        {
            "id": "uuid-2",
            "name": "Desert Springs Campground",
            "latitude": 33.8,
            "longitude": -116.5,
        },
        {
            "id": "uuid-3",
            "name": "Harbor View Rest Area",
            "latitude": 47.6,
            "longitude": -122.3,
        },
    ]


# ===================
# API TEST CLIENT
# ===================

@pytest.fixture
def test_client_with_mock_db(mock_supabase, preset_service):
    """
    Create FastAPI test client with mocked database and presets.

    Usage:
        def test_endpoint(test_client_with_mock_db, mock_supabase):
            mock_supabase.set_table_data("places", [...])
            response = test_client_with_mock_db.get("/api/place-import/fields")
    """
    from fastapi.testclient import TestClient
    from main import app
    from services.import_session_cache import clear_sessions

    repository = PlaceRepository(client=mock_supabase, table="places")

    clear_sessions()
    with patch("config.database.get_supabase_client", return_value=mock_supabase):
        with patch("services.import_wizard_service.get_place_repository", return_value=repository):
            with patch("services.import_wizard_service.get_preset_service", return_value=preset_service):
                with patch("routes.place_import.get_preset_service", return_value=preset_service):
                    yield TestClient(app)
    clear_sessions()
