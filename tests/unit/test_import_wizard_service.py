"""
Unit tests for ImportWizardController.

Run: pytest tests/unit/test_import_wizard_service.py -v
"""

import pytest
from unittest.mock import MagicMock

from models.place_import import WizardStep
from services.import_wizard_service import ImportWizardController
from exceptions import (
    FileParseError,
    InvalidStepTransitionError,
    MappingIncompleteError,
    NoEligibleRowsError,
    ValidationError,
)

from tests.factories import ExistingPlaceFactory, make_csv_bytes, sample_place_rows


def _fake_repository(snapshot=None) -> MagicMock:
    repository = MagicMock()
    repository.fetch_existing_for_dedup.return_value = snapshot or []
    repository.insert_batch.side_effect = lambda records: [f"id-{i}" for i in range(len(records))]
    return repository


@pytest.fixture
def repository():
    return _fake_repository()


@pytest.fixture
def controller(repository, preset_service):
    return ImportWizardController(repository=repository, preset_service=preset_service, batch_size=2)


class TestUpload:
    """Tests for ImportWizardController.upload()"""

    def test_upload_moves_to_mapping(self, controller):
        # Act
        controller.upload(make_csv_bytes(sample_place_rows(3)), "places.csv")

        # Assert
        assert controller.step == WizardStep.MAPPING
        assert controller.file_name == "places.csv"
        assert len(controller.raw_rows) == 3
        assert controller.column_mapping["place_name"] == "Name"
        assert controller.column_mapping["primary_category"] == "Category"
        assert controller.missing_required_fields() == []

    def test_parse_failure_stays_at_upload(self, controller):
        with pytest.raises(FileParseError):
            controller.upload(b"", "places.csv")

        assert controller.step == WizardStep.UPLOAD
        assert controller.raw_rows == []

    def test_upload_twice_rejected(self, controller):
        controller.upload(make_csv_bytes(sample_place_rows(1)), "places.csv")

        with pytest.raises(InvalidStepTransitionError):
            controller.upload(make_csv_bytes(sample_place_rows(1)), "places.csv")


class TestMapping:
    """Tests for mapping step operations."""

    def test_update_mapping(self, controller):
        controller.upload(make_csv_bytes(sample_place_rows(1)), "places.csv")

        controller.update_mapping("short_description", "City")

        assert controller.column_mapping["short_description"] == "City"

    def test_update_mapping_unknown_column(self, controller):
        controller.upload(make_csv_bytes(sample_place_rows(1)), "places.csv")

        with pytest.raises(ValidationError) as exc_info:
            controller.update_mapping("city", "Town")

        assert exc_info.value.code == "UNKNOWN_COLUMN"

    def test_update_mapping_before_upload_rejected(self, controller):
        with pytest.raises(InvalidStepTransitionError):
            controller.update_mapping("city", "City")

    def test_save_and_apply_preset(self, controller, preset_service):
        """Should replace the whole mapping with a saved one."""
        # Arrange
        controller.upload(make_csv_bytes(sample_place_rows(1)), "places.csv")
        preset = controller.save_preset("Park export")
        controller.update_mapping("place_name", None)

        # Act
        controller.apply_preset(preset_service.get(preset.id))

        # Assert
        assert controller.column_mapping["place_name"] == "Name"

    def test_save_preset_outside_mapping_rejected(self, controller):
        with pytest.raises(InvalidStepTransitionError):
            controller.save_preset("Too early")

        controller.upload(make_csv_bytes(sample_place_rows(1)), "places.csv")
        controller.proceed_to_validate()

        with pytest.raises(InvalidStepTransitionError):
            controller.save_preset("Too late")

    def test_validate_requires_complete_mapping(self, controller):
        controller.upload(make_csv_bytes(sample_place_rows(1)), "places.csv")
        controller.update_mapping("latitude", None)

        with pytest.raises(MappingIncompleteError):
            controller.proceed_to_validate()

        assert controller.step == WizardStep.MAPPING


class TestValidate:
    """Tests for ImportWizardController.proceed_to_validate()"""

    def test_rows_numbered_from_two(self, controller):
        controller.upload(make_csv_bytes(sample_place_rows(3)), "places.csv")

        rows = controller.proceed_to_validate()

        assert controller.step == WizardStep.VALIDATE
        assert [r.row_number for r in rows] == [2, 3, 4]
        assert all(r.is_valid for r in rows)
        assert rows[0].mapped_data["primary_category"] == "State Park"

    def test_invalid_and_duplicate_rows_flagged(self, preset_service):
        # Arrange
        existing = ExistingPlaceFactory.create(name="Pine Lake", latitude=44.5, longitude=-110.2)
        repository = _fake_repository([existing])
        controller = ImportWizardController(repository=repository, preset_service=preset_service)
        content = make_csv_bytes([
            ["Name", "Lat", "Lng"],
            ["pine lake", "44.5", "-110.2"],
            ["", "10", "10"],
            ["New Place", "95", "10"],
        ])
        controller.upload(content, "places.csv")

        # Act
        rows = controller.proceed_to_validate()

        # Assert
        assert rows[0].is_duplicate and rows[0].is_valid
        assert rows[1].errors == ["Missing place name"]
        assert rows[2].errors == ["Invalid latitude"]
        summary = controller.validation_summary()
        assert (summary.total, summary.valid, summary.invalid, summary.duplicates) == (3, 1, 2, 1)
        assert summary.to_import == 0

    def test_entrance_columns_past_last_slot_flag_row(self, controller):
        """Should fail rows that fill an entrance with no slot left for it."""
        # Arrange
        controller.upload(make_csv_bytes([
            ["name", "latitude", "longitude", "entrance_6_name", "entrance_6_lat", "entrance_6_lng"],
            ["A", "1", "2", "Gate", "1.0", "2.0"],
            ["B", "3", "4", "", "", ""],
        ]), "places.csv")

        # Act
        rows = controller.proceed_to_validate()

        # Assert
        assert not rows[0].is_valid
        assert rows[0].errors == ["Entrance 6 exceeds the 5 available entrance slots"]
        assert rows[1].is_valid

    def test_entrance_column_mapped_to_a_slot_is_placed(self, controller):
        controller.upload(make_csv_bytes([
            ["name", "latitude", "longitude", "entrance_6_name"],
            ["A", "1", "2", "Gate"],
        ]), "places.csv")
        controller.update_mapping("entrance1_name", "entrance_6_name")

        rows = controller.proceed_to_validate()

        assert rows[0].is_valid

    def test_back_to_mapping_discards_rows(self, controller):
        controller.upload(make_csv_bytes(sample_place_rows(2)), "places.csv")
        controller.proceed_to_validate()

        controller.back_to_mapping()

        assert controller.step == WizardStep.MAPPING
        assert controller.parsed_rows == []

    def test_snapshot_loaded_once_per_run(self, controller, repository):
        """Should reuse the duplicate snapshot after going back."""
        controller.upload(make_csv_bytes(sample_place_rows(2)), "places.csv")
        controller.proceed_to_validate()
        controller.back_to_mapping()

        controller.proceed_to_validate()

        assert repository.fetch_existing_for_dedup.call_count == 1

    def test_preview_limited(self, controller):
        controller.upload(make_csv_bytes(sample_place_rows(5)), "places.csv")
        controller.proceed_to_validate()

        assert [r.row_number for r in controller.preview(limit=2)] == [2, 3]

    def test_preview_zero_limit(self, controller):
        controller.upload(make_csv_bytes(sample_place_rows(3)), "places.csv")
        controller.proceed_to_validate()

        assert controller.preview(limit=0) == []
        assert len(controller.preview()) == 3


class TestRunImport:
    """Tests for ImportWizardController.run_import()"""

    def test_import_writes_eligible_rows(self, controller, repository):
        # Arrange
        controller.upload(make_csv_bytes(sample_place_rows(5)), "places.csv")
        controller.proceed_to_validate()

        # Act
        results = controller.run_import()

        # Assert
        assert controller.step == WizardStep.IMPORTED
        assert results.imported_count == 5
        assert repository.insert_batch.call_count == 3  # batch size 2
        assert controller.error_report() is None

    def test_import_requires_validate_step(self, controller):
        controller.upload(make_csv_bytes(sample_place_rows(1)), "places.csv")

        with pytest.raises(InvalidStepTransitionError):
            controller.run_import()

    def test_no_eligible_rows(self, controller):
        controller.upload(make_csv_bytes([["Name", "Lat", "Lng"], ["", "1", "1"]]), "places.csv")
        controller.proceed_to_validate()

        with pytest.raises(NoEligibleRowsError):
            controller.run_import()

        assert controller.step == WizardStep.VALIDATE

    def test_duplicates_included_when_not_skipping(self, preset_service):
        existing = ExistingPlaceFactory.create(name="Sample Park 1", latitude=35.0, longitude=-105.0)
        repository = _fake_repository([existing])
        controller = ImportWizardController(repository=repository, preset_service=preset_service)
        controller.upload(make_csv_bytes(sample_place_rows(2)), "places.csv")
        controller.proceed_to_validate()

        controller.set_skip_duplicates(False)
        results = controller.run_import()

        assert results.imported_count == 2
        assert results.skipped_duplicates == 0

    def test_error_report_after_failures(self, controller, repository):
        controller.upload(make_csv_bytes([
            ["Name", "Lat", "Lng"],
            ["Good Place", "1", "1"],
            ["", "2", "2"],
        ]), "places.csv")
        controller.proceed_to_validate()

        controller.run_import()
        report = controller.error_report()

        assert report.split("\n") == [
            '"Row Number","Errors","Name","Lat","Lng"',
            '"3","Missing place name","","2","2"',
        ]

    def test_imported_is_terminal(self, controller):
        controller.upload(make_csv_bytes(sample_place_rows(1)), "places.csv")
        controller.proceed_to_validate()
        controller.run_import()

        with pytest.raises(InvalidStepTransitionError):
            controller.back_to_mapping()
        with pytest.raises(InvalidStepTransitionError):
            controller.set_skip_duplicates(False)


class TestReset:

    def test_reset_starts_fresh_run(self, controller, repository):
        """Should clear state and load a fresh snapshot on the next run."""
        # Arrange
        controller.upload(make_csv_bytes(sample_place_rows(1)), "places.csv")
        controller.proceed_to_validate()
        controller.run_import()

        # Act
        controller.reset()
        controller.upload(make_csv_bytes(sample_place_rows(1)), "places.csv")
        controller.proceed_to_validate()

        # Assert
        assert controller.results is None
        assert controller.skip_duplicates is True
        assert repository.fetch_existing_for_dedup.call_count == 2

    def test_to_response(self, controller):
        controller.upload(make_csv_bytes(sample_place_rows(2)), "places.csv")
        controller.proceed_to_validate()

        response = controller.to_response()

        assert response.session_id == controller.session_id
        assert response.step == WizardStep.VALIDATE
        assert response.row_count == 2
        assert response.validation.to_import == 2
        assert len(response.preview) == 2
        assert response.results is None
