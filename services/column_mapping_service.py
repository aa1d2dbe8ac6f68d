"""
Column mapping between source headers and the place field catalog.

All functions are pure: they take a mapping and return a new one.
"""

from typing import Optional
import structlog

from config.place_fields import PLACE_FIELDS, TargetFieldDefinition, get_field
from exceptions import MappingIncompleteError, UnknownFieldError
from models.place_import import ColumnMapping
from utils.text_utils import normalize_column_name

logger = structlog.get_logger(__name__)

Catalog = tuple[TargetFieldDefinition, ...]


def suggest_mapping(
    columns: list[str],
    catalog: Catalog = PLACE_FIELDS,
) -> ColumnMapping:
    """
    Propose a source column for every catalog field.

    A field takes the first column whose normalized name equals one of its
    normalized aliases. Fields are visited in catalog order and a column
    claimed by an earlier field is not offered to later ones.

    Args:
        columns: Source headers in file order
        catalog: Target fields

    Returns:
        Mapping with every catalog key; unmatched fields map to None
    """
    normalized_columns = [(col, normalize_column_name(col)) for col in columns]
    claimed: set[str] = set()
    mapping: ColumnMapping = {}

    for target in catalog:
        aliases = {normalize_column_name(a) for a in target.match_aliases}
        match: Optional[str] = None
        for col, normalized in normalized_columns:
            if col in claimed:
                continue
            if normalized in aliases:
                match = col
                break
        if match is not None:
            claimed.add(match)
        mapping[target.key] = match

    logger.info(
        "mapping_suggested",
        column_count=len(columns),
        mapped_count=len(claimed),
    )
    return mapping


def update_mapping(
    mapping: ColumnMapping,
    field_key: str,
    column: Optional[str],
) -> ColumnMapping:
    """
    Set or clear the source column of one field.

    Replaces any prior value outright; calling twice with the same arguments
    gives the same mapping.

    Raises:
        UnknownFieldError: If field_key is not in the catalog
    """
    if get_field(field_key) is None:
        raise UnknownFieldError(field_key)

    updated = dict(mapping)
    updated[field_key] = column or None
    return updated


def missing_required_fields(
    mapping: ColumnMapping,
    catalog: Catalog = PLACE_FIELDS,
) -> list[str]:
    """Keys of required fields with no mapped column."""
    return [f.key for f in catalog if f.required and not mapping.get(f.key)]


def is_mapping_complete(
    mapping: ColumnMapping,
    catalog: Catalog = PLACE_FIELDS,
) -> bool:
    """True when every required field is mapped."""
    return not missing_required_fields(mapping, catalog)


def ensure_mapping_complete(
    mapping: ColumnMapping,
    catalog: Catalog = PLACE_FIELDS,
) -> None:
    """
    Guard for leaving the mapping step.

    Raises:
        MappingIncompleteError: If any required field is unmapped
    """
    missing = missing_required_fields(mapping, catalog)
    if missing:
        logger.warning("mapping_incomplete", missing_fields=missing)
        raise MappingIncompleteError(missing)
