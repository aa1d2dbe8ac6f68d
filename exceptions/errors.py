"""
Custom exception classes for the application.

Per-row and per-batch import failures are recorded as data on the rows;
the exceptions here cover failures that stop an operation outright.
"""

from typing import Optional, Any
from datetime import datetime, timezone


class AppError(Exception):
    """
    Base exception for all application errors.

    All custom exceptions inherit from this.

    Attributes:
        code: Error code (e.g., "PLACE_NOT_FOUND")
        message: Human-readable message
        status_code: HTTP status code
        details: Additional context
    """

    def __init__(
        self,
        code: str,
        message: str,
        status_code: int = 500,
        details: Optional[dict[str, Any]] = None
    ):
        self.code = code
        self.message = message
        self.status_code = status_code
        self.details = details or {}
        self.timestamp = datetime.now(timezone.utc).isoformat()
        super().__init__(message)

    def to_dict(self) -> dict:
        """Convert to API response format."""
        return {
            "error": {
                "code": self.code,
                "message": self.message,
                "details": self.details,
                "timestamp": self.timestamp
            }
        }


class NotFoundError(AppError):
    """Resource not found (404)."""

    def __init__(
        self,
        resource: str,
        identifier: str,
        code: Optional[str] = None
    ):
        super().__init__(
            code=code or f"{resource.upper()}_NOT_FOUND",
            message=f"{resource} not found",
            status_code=404,
            details={"id": identifier}
        )


class ValidationError(AppError):
    """Validation failed (422)."""

    def __init__(
        self,
        message: str,
        code: str = "VALIDATION_ERROR",
        details: Optional[dict] = None
    ):
        super().__init__(
            code=code,
            message=message,
            status_code=422,
            details=details
        )


class ConflictError(AppError):
    """Conflict with existing resource (409)."""

    def __init__(
        self,
        message: str,
        code: str = "CONFLICT",
        details: Optional[dict] = None
    ):
        super().__init__(
            code=code,
            message=message,
            status_code=409,
            details=details
        )


class DatabaseError(AppError):
    """Database operation failed (500)."""

    def __init__(
        self,
        operation: str,
        message: str,
        details: Optional[dict] = None
    ):
        super().__init__(
            code="DATABASE_ERROR",
            message=f"Database {operation} failed: {message}",
            status_code=500,
            details={"operation": operation, **(details or {})}
        )


# ===================
# PLACE ERRORS
# ===================

class PlaceNotFoundError(NotFoundError):
    """Place not found."""

    def __init__(self, place_id: str):
        super().__init__(
            resource="Place",
            identifier=place_id,
            code="PLACE_NOT_FOUND"
        )


# ===================
# FILE PARSER ERRORS
# ===================

class FileParseError(ValidationError):
    """Uploaded file could not be parsed."""

    def __init__(
        self,
        message: str,
        details: Optional[dict] = None
    ):
        super().__init__(
            code="FILE_PARSE_ERROR",
            message=message,
            details=details
        )


# ===================
# MAPPING ERRORS
# ===================

class MappingIncompleteError(ValidationError):
    """Required target fields have no source column."""

    def __init__(self, missing_fields: list[str]):
        super().__init__(
            code="MAPPING_INCOMPLETE",
            message=f"Required fields are not mapped: {', '.join(missing_fields)}",
            details={"missing_fields": missing_fields}
        )


class UnknownFieldError(ValidationError):
    """Mapping refers to a field that is not in the catalog."""

    def __init__(self, field_key: str):
        super().__init__(
            code="UNKNOWN_FIELD",
            message=f"Unknown target field: {field_key}",
            details={"field": field_key}
        )


class EntranceSlotOverflowError(ValidationError):
    """Row implies more entrances than the store has slots for."""

    def __init__(self, entrance_index: int, max_slots: int):
        super().__init__(
            code="ENTRANCE_SLOT_OVERFLOW",
            message=f"Entrance {entrance_index} exceeds the {max_slots} available entrance slots",
            details={"entrance_index": entrance_index, "max_slots": max_slots}
        )


# ===================
# PRESET ERRORS
# ===================

class PresetNotFoundError(NotFoundError):
    """Mapping preset not found."""

    def __init__(self, preset_id: str):
        super().__init__(
            resource="Mapping preset",
            identifier=preset_id,
            code="PRESET_NOT_FOUND"
        )


class PresetStoreError(AppError):
    """Local preset store could not be written."""

    def __init__(self, message: str, details: Optional[dict] = None):
        super().__init__(
            code="PRESET_STORE_ERROR",
            message=message,
            status_code=500,
            details=details
        )


# ===================
# IMPORT WIZARD ERRORS
# ===================

class ImportSessionNotFoundError(NotFoundError):
    """Import session unknown or expired."""

    def __init__(self, session_id: str):
        super().__init__(
            resource="Import session",
            identifier=session_id,
            code="IMPORT_SESSION_NOT_FOUND"
        )


class InvalidStepTransitionError(ConflictError):
    """Wizard action not allowed from the current step."""

    def __init__(self, current_step: str, action: str):
        super().__init__(
            code="INVALID_STEP_TRANSITION",
            message=f"Cannot {action} while the import is at step {current_step}",
            details={
                "current_step": current_step,
                "action": action,
            }
        )


class NoEligibleRowsError(ValidationError):
    """Nothing left to import after validation and duplicate filtering."""

    def __init__(self, total_rows: int, skip_duplicates: bool):
        super().__init__(
            code="NO_ELIGIBLE_ROWS",
            message="No valid rows to import",
            details={"total_rows": total_rows, "skip_duplicates": skip_duplicates}
        )
