"""
Pydantic models and pipeline records.
"""

from models.base import BaseSchema
from models.place_import import (
    ColumnMapping,
    RawRow,
    WizardStep,
    ParsedRow,
    RowValidation,
    ExistingPlace,
    EntranceSlot,
    FailedBatch,
    ImportResults,
    MappingPreset,
    FieldDefinitionResponse,
    MappingUpdateRequest,
    SkipDuplicatesRequest,
    PresetCreateRequest,
    ValidationSummary,
    ImportSummary,
    ImportSessionResponse,
)

__all__ = [
    # Base
    "BaseSchema",

    # Pipeline
    "ColumnMapping",
    "RawRow",
    "WizardStep",
    "ParsedRow",
    "RowValidation",
    "ExistingPlace",
    "EntranceSlot",
    "FailedBatch",
    "ImportResults",
    "MappingPreset",

    # API
    "FieldDefinitionResponse",
    "MappingUpdateRequest",
    "SkipDuplicatesRequest",
    "PresetCreateRequest",
    "ValidationSummary",
    "ImportSummary",
    "ImportSessionResponse",
]
