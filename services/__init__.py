"""
Business logic services.

Each service handles one stage of the place import pipeline.
"""

from services.place_repository import PlaceRepository, get_place_repository
from services.preset_service import (
    PresetService,
    get_preset_service,
    InMemoryStore,
    JsonFileStore,
)
from services.batch_import_service import BatchImporter, select_eligible
from services.duplicate_service import DuplicateDetector, find_duplicate
from services.import_wizard_service import ImportWizardController

__all__ = [
    "PlaceRepository",
    "get_place_repository",
    "PresetService",
    "get_preset_service",
    "InMemoryStore",
    "JsonFileStore",
    "BatchImporter",
    "select_eligible",
    "DuplicateDetector",
    "find_duplicate",
    "ImportWizardController",
]
