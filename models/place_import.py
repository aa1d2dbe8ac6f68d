"""
Place import schemas.

Dataclasses carry row state through the pipeline; pydantic models are the
persisted preset format and the API request/response shapes.
"""

from dataclasses import dataclass, field
from datetime import datetime
from enum import IntEnum
from typing import Any, Optional

from pydantic import BaseModel, Field

from models.base import BaseSchema


# Target field key -> source column name (None = unmapped)
ColumnMapping = dict[str, Optional[str]]

# Source column name -> raw cell text
RawRow = dict[str, str]


class WizardStep(IntEnum):
    """Import wizard steps. IMPORTED is terminal."""
    UPLOAD = 1
    MAPPING = 2
    VALIDATE = 3
    IMPORTED = 4


# ===================
# PIPELINE RECORDS
# ===================

@dataclass
class ParsedRow:
    """One source row after coercion, validation and duplicate checking."""
    row_number: int
    raw_data: RawRow
    mapped_data: dict[str, Any]
    is_valid: bool
    errors: list[str] = field(default_factory=list)
    is_duplicate: bool = False
    duplicate_of: Optional[str] = None

    def to_dict(self) -> dict:
        """Convert to dictionary for API response."""
        return {
            "row_number": self.row_number,
            "raw_data": self.raw_data,
            "mapped_data": self.mapped_data,
            "is_valid": self.is_valid,
            "errors": list(self.errors),
            "is_duplicate": self.is_duplicate,
            "duplicate_of": self.duplicate_of,
        }


@dataclass(frozen=True)
class RowValidation:
    """Structural verdict for one row."""
    is_valid: bool
    errors: tuple[str, ...] = ()


@dataclass(frozen=True)
class ExistingPlace:
    """Snapshot record used for duplicate detection."""
    id: str
    name: str
    latitude: float
    longitude: float


@dataclass(frozen=True)
class EntranceSlot:
    """An entrance projected into one of the store's numbered slots."""
    index: int
    name: str
    latitude: float
    longitude: float
    road: Optional[str] = None
    notes: Optional[str] = None
    is_primary: bool = False


@dataclass
class FailedBatch:
    """A batch rejected by the store at write time."""
    batch_index: int
    row_numbers: list[int]
    message: str


@dataclass
class ImportResults:
    """Terminal outcome of an import run."""
    imported_count: int = 0
    skipped_duplicates: int = 0
    error_rows: list[ParsedRow] = field(default_factory=list)
    failed_batches: list[FailedBatch] = field(default_factory=list)
    cancelled_count: int = 0
    inserted_ids: list[str] = field(default_factory=list)

    @property
    def error_count(self) -> int:
        return len(self.error_rows)

    @property
    def was_cancelled(self) -> bool:
        return self.cancelled_count > 0


# ===================
# PRESETS
# ===================

class MappingPreset(BaseModel):
    """A saved, reusable column mapping."""
    id: str
    name: str
    mapping: ColumnMapping
    created_at: datetime


# ===================
# API SCHEMAS
# ===================

class FieldDefinitionResponse(BaseModel):
    """Catalog field as shown on the mapping screen."""
    key: str
    label: str
    group: str
    required: bool
    type: str
    aliases: list[str]


class MappingUpdateRequest(BaseSchema):
    """Set (or clear, with null) the source column of one target field."""
    field_key: str = Field(..., min_length=1)
    column: Optional[str] = None


class SkipDuplicatesRequest(BaseModel):
    skip_duplicates: bool


class PresetCreateRequest(BaseSchema):
    """Save the session's current mapping under a name."""
    session_id: str
    name: str = Field(..., min_length=1, max_length=100)


class ValidationSummary(BaseModel):
    """Counts shown before the operator runs the import."""
    total: int
    valid: int
    invalid: int
    duplicates: int
    to_import: int


class ImportSummary(BaseModel):
    """Counts shown after an import attempt."""
    imported: int
    skipped_duplicates: int
    errored: int
    cancelled: int
    failed_batches: int


class ImportSessionResponse(BaseModel):
    """Current state of an import wizard session."""
    session_id: str
    step: WizardStep
    file_name: Optional[str] = None
    file_type: Optional[str] = None
    source_columns: list[str] = []
    row_count: int = 0
    column_mapping: ColumnMapping = {}
    missing_required_fields: list[str] = []
    skip_duplicates: bool = True
    validation: Optional[ValidationSummary] = None
    preview: list[dict] = []
    results: Optional[ImportSummary] = None
