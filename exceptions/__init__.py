"""
Custom exceptions module.
"""

from exceptions.errors import (
    # Base exceptions
    AppError,
    NotFoundError,
    ValidationError,
    ConflictError,
    DatabaseError,

    # Places
    PlaceNotFoundError,

    # File parser
    FileParseError,

    # Mapping
    MappingIncompleteError,
    UnknownFieldError,
    EntranceSlotOverflowError,

    # Presets
    PresetNotFoundError,
    PresetStoreError,

    # Import wizard
    ImportSessionNotFoundError,
    InvalidStepTransitionError,
    NoEligibleRowsError,
)

__all__ = [
    # Base
    "AppError",
    "NotFoundError",
    "ValidationError",
    "ConflictError",
    "DatabaseError",

    # Places
    "PlaceNotFoundError",

    # File parser
    "FileParseError",

    # Mapping
    "MappingIncompleteError",
    "UnknownFieldError",
    "EntranceSlotOverflowError",

    # Presets
    "PresetNotFoundError",
    "PresetStoreError",

    # Import wizard
    "ImportSessionNotFoundError",
    "InvalidStepTransitionError",
    "NoEligibleRowsError",
]
