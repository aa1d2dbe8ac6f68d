"""
Import wizard controller.

Owns one operator's import session and drives it through
UPLOAD -> MAPPING -> VALIDATE -> IMPORTED. The controller is the only writer
of the session's raw rows, mapping, parsed rows and results; callers read
between operations.
"""

from typing import Callable, Optional
import uuid
import structlog

from config import settings
from exceptions import (
    InvalidStepTransitionError,
    NoEligibleRowsError,
    ValidationError,
)
from models.place_import import (
    ColumnMapping,
    ExistingPlace,
    ImportResults,
    ImportSessionResponse,
    MappingPreset,
    ParsedRow,
    RawRow,
    ValidationSummary,
    WizardStep,
)
from parsers.file_ingestor import FileInput, parse_import_file
from services.batch_import_service import BatchImporter, select_eligible
from services.column_mapping_service import (
    ensure_mapping_complete,
    missing_required_fields,
    suggest_mapping,
    update_mapping,
)
from services.duplicate_service import DuplicateDetector
from services.place_repository import PlaceRepository, get_place_repository
from services.preset_service import PresetService, get_preset_service
from services.report_service import (
    build_error_csv,
    summarize_results,
    summarize_validation,
)
from services.validation_service import validate_row
from services.value_transformer import (
    find_overflow_entrance_columns,
    map_row,
    overflow_entrance_indexes,
)

logger = structlog.get_logger(__name__)


class ImportWizardController:
    """
    State machine for one bulk place import.

    Transitions:
        upload()              UPLOAD   -> MAPPING   (on successful parse)
        proceed_to_validate() MAPPING  -> VALIDATE  (all required fields mapped)
        back_to_mapping()     VALIDATE -> MAPPING   (discards parsed rows)
        run_import()          VALIDATE -> IMPORTED  (at least one eligible row)
        reset()               any      -> UPLOAD    (fresh session state)
    """

    def __init__(
        self,
        repository: Optional[PlaceRepository] = None,
        preset_service: Optional[PresetService] = None,
        batch_size: Optional[int] = None,
        session_id: Optional[str] = None,
    ):
        self.session_id = session_id or str(uuid.uuid4())
        self._repository = repository
        self._preset_service = preset_service
        self.batch_size = batch_size or settings.import_batch_size
        self._reset_state()

    def _reset_state(self) -> None:
        self.step = WizardStep.UPLOAD
        self.file_name: Optional[str] = None
        self.file_type: Optional[str] = None
        self.source_columns: list[str] = []
        self.raw_rows: list[RawRow] = []
        self.column_mapping: ColumnMapping = {}
        self.parsed_rows: list[ParsedRow] = []
        self.skip_duplicates = True
        self.results: Optional[ImportResults] = None
        self._snapshot: Optional[list[ExistingPlace]] = None

    @property
    def repository(self) -> PlaceRepository:
        if self._repository is None:
            self._repository = get_place_repository()
        return self._repository

    @property
    def preset_service(self) -> PresetService:
        if self._preset_service is None:
            self._preset_service = get_preset_service()
        return self._preset_service

    def _require_step(self, step: WizardStep, action: str) -> None:
        if self.step != step:
            raise InvalidStepTransitionError(self.step.name, action)

    # ===================
    # STEP 1: UPLOAD
    # ===================

    def upload(self, file: FileInput, filename: Optional[str] = None) -> None:
        """
        Parse the operator's file and seed an auto-suggested mapping.

        Raises:
            FileParseError: If the file cannot be parsed; the session stays
                            at UPLOAD
        """
        self._require_step(WizardStep.UPLOAD, "upload a file")

        parsed = parse_import_file(file, filename)

        self.file_name = parsed.file_name
        self.file_type = parsed.file_type
        self.source_columns = parsed.columns
        self.raw_rows = parsed.rows
        self.column_mapping = suggest_mapping(parsed.columns)
        self.step = WizardStep.MAPPING

        logger.info(
            "import_file_uploaded",
            session_id=self.session_id,
            file_name=self.file_name,
            row_count=len(self.raw_rows),
            missing_required=missing_required_fields(self.column_mapping),
        )

    # ===================
    # STEP 2: MAPPING
    # ===================

    def update_mapping(self, field_key: str, column: Optional[str]) -> ColumnMapping:
        """
        Operator override for one field.

        Raises:
            UnknownFieldError: If field_key is not a catalog field
            ValidationError: If column is not a header of the uploaded file
        """
        self._require_step(WizardStep.MAPPING, "change the column mapping")
        if column and column not in self.source_columns:
            raise ValidationError(
                message=f"Unknown source column: {column}",
                code="UNKNOWN_COLUMN",
                details={"column": column, "available": self.source_columns}
            )
        self.column_mapping = update_mapping(self.column_mapping, field_key, column)
        return self.column_mapping

    def apply_preset(self, preset: MappingPreset) -> ColumnMapping:
        """Replace the whole mapping with a saved preset's."""
        self._require_step(WizardStep.MAPPING, "apply a mapping preset")
        self.column_mapping = self.preset_service.load(preset)
        logger.info("preset_applied", session_id=self.session_id, preset_id=preset.id)
        return self.column_mapping

    def save_preset(self, name: str) -> MappingPreset:
        """Save the current mapping as a new preset."""
        self._require_step(WizardStep.MAPPING, "save a mapping preset")
        return self.preset_service.save(name, self.column_mapping)

    def missing_required_fields(self) -> list[str]:
        return missing_required_fields(self.column_mapping)

    # ===================
    # STEP 3: VALIDATE
    # ===================

    def proceed_to_validate(self) -> list[ParsedRow]:
        """
        Transform, validate and duplicate-check every row once.

        The duplicate snapshot is loaded on first entry and reused for the
        rest of the wizard run.

        Raises:
            MappingIncompleteError: If a required field is unmapped
            DatabaseError: If the duplicate snapshot cannot be loaded
        """
        self._require_step(WizardStep.MAPPING, "validate rows")
        ensure_mapping_complete(self.column_mapping)

        if self._snapshot is None:
            self._snapshot = self.repository.fetch_existing_for_dedup()

        overflow_columns = self._overflow_entrance_columns()

        parsed_rows = []
        for idx, raw_row in enumerate(self.raw_rows):
            mapped_data = map_row(raw_row, self.column_mapping)
            verdict = validate_row(
                mapped_data,
                overflow_entrance_indexes(raw_row, overflow_columns),
            )
            parsed_rows.append(ParsedRow(
                row_number=idx + 2,  # 1-indexed, after the header row
                raw_data=raw_row,
                mapped_data=mapped_data,
                is_valid=verdict.is_valid,
                errors=list(verdict.errors),
            ))

        DuplicateDetector(self._snapshot).annotate(parsed_rows)

        self.parsed_rows = parsed_rows
        self.step = WizardStep.VALIDATE

        summary = self.validation_summary()
        logger.info(
            "import_rows_validated",
            session_id=self.session_id,
            total=summary.total,
            valid=summary.valid,
            invalid=summary.invalid,
            duplicates=summary.duplicates,
        )
        return parsed_rows

    def _overflow_entrance_columns(self) -> dict[str, int]:
        """Unmapped source columns for entrances past the last slot."""
        mapped_columns = {c for c in self.column_mapping.values() if c}
        overflow = find_overflow_entrance_columns(
            [c for c in self.source_columns if c not in mapped_columns]
        )
        if overflow:
            logger.warning(
                "entrance_columns_over_slot_limit",
                session_id=self.session_id,
                columns=sorted(overflow),
            )
        return overflow

    def back_to_mapping(self) -> None:
        """Return to mapping; parsed rows are discarded."""
        self._require_step(WizardStep.VALIDATE, "go back to mapping")
        self.parsed_rows = []
        self.step = WizardStep.MAPPING

    def set_skip_duplicates(self, skip: bool) -> None:
        if self.step == WizardStep.IMPORTED:
            raise InvalidStepTransitionError(self.step.name, "change duplicate handling")
        self.skip_duplicates = skip

    def validation_summary(self) -> ValidationSummary:
        return summarize_validation(self.parsed_rows, self.skip_duplicates)

    def preview(self, limit: Optional[int] = None) -> list[ParsedRow]:
        """First parsed rows for the review table."""
        return self.parsed_rows[:settings.preview_row_limit if limit is None else limit]

    # ===================
    # STEP 4: IMPORT
    # ===================

    def run_import(
        self,
        should_cancel: Optional[Callable[[], bool]] = None,
    ) -> ImportResults:
        """
        Write eligible rows in batches. Irreversible for this session.

        Raises:
            NoEligibleRowsError: If nothing would be written
        """
        self._require_step(WizardStep.VALIDATE, "run the import")

        if not select_eligible(self.parsed_rows, self.skip_duplicates):
            raise NoEligibleRowsError(len(self.parsed_rows), self.skip_duplicates)

        importer = BatchImporter(self.repository, batch_size=self.batch_size)
        self.results = importer.run(
            self.parsed_rows,
            skip_duplicates=self.skip_duplicates,
            should_cancel=should_cancel,
        )
        self.step = WizardStep.IMPORTED

        logger.info(
            "import_session_complete",
            session_id=self.session_id,
            imported=self.results.imported_count,
            skipped_duplicates=self.results.skipped_duplicates,
            errored=len(self.results.error_rows),
        )
        return self.results

    def error_report(self) -> Optional[str]:
        """Error CSV for the last import, or None when nothing failed."""
        if self.results is None:
            return None
        return build_error_csv(self.results.error_rows, self.source_columns)

    def reset(self) -> None:
        """Start over with a fresh session state and a fresh snapshot."""
        logger.info("import_session_reset", session_id=self.session_id)
        self._reset_state()

    # ===================
    # SERIALIZATION
    # ===================

    def to_response(self) -> ImportSessionResponse:
        """Snapshot of the session for the API."""
        return ImportSessionResponse(
            session_id=self.session_id,
            step=self.step,
            file_name=self.file_name,
            file_type=self.file_type,
            source_columns=self.source_columns,
            row_count=len(self.raw_rows),
            column_mapping=self.column_mapping,
            missing_required_fields=self.missing_required_fields() if self.step >= WizardStep.MAPPING else [],
            skip_duplicates=self.skip_duplicates,
            validation=self.validation_summary() if self.step >= WizardStep.VALIDATE else None,
            preview=[r.to_dict() for r in self.preview()] if self.step == WizardStep.VALIDATE else [],
            results=summarize_results(self.results) if self.results else None,
        )
