"""
Saved column mapping presets.

Presets live in a small local key-value store owned by the operator's
machine, not in the place database. The store holds a single JSON list
of presets under one key.
"""

from datetime import datetime, timezone
from pathlib import Path
from typing import Optional, Protocol
import json
import os
import tempfile
import uuid
import structlog

from pydantic import TypeAdapter, ValidationError as PydanticValidationError

from config import settings
from exceptions import PresetNotFoundError, PresetStoreError
from models.place_import import ColumnMapping, MappingPreset

logger = structlog.get_logger(__name__)

_preset_list_adapter = TypeAdapter(list[MappingPreset])


# ===================
# KEY-VALUE BACKENDS
# ===================

class KeyValueStore(Protocol):
    """Minimal string store the preset service needs."""

    def get(self, key: str) -> Optional[str]: ...

    def set(self, key: str, value: str) -> None: ...

    def delete(self, key: str) -> None: ...


class InMemoryStore:
    """Process-local store. Used in tests and when no path is configured."""

    def __init__(self):
        self._data: dict[str, str] = {}

    def get(self, key: str) -> Optional[str]:
        return self._data.get(key)

    def set(self, key: str, value: str) -> None:
        self._data[key] = value

    def delete(self, key: str) -> None:
        self._data.pop(key, None)


class JsonFileStore:
    """
    Key-value store backed by one JSON object on disk.

    Writes go to a temp file in the same directory and are renamed into
    place, so a crash never leaves a half-written file.
    """

    def __init__(self, path: Path):
        self.path = Path(path)

    def _read_all(self) -> dict[str, str]:
        if not self.path.exists():
            return {}
        try:
            data = json.loads(self.path.read_text(encoding="utf-8"))
        except (OSError, ValueError) as e:
            logger.warning("preset_file_unreadable", path=str(self.path), error=str(e))
            return {}
        if not isinstance(data, dict):
            logger.warning("preset_file_malformed", path=str(self.path))
            return {}
        return data

    def _write_all(self, data: dict[str, str]) -> None:
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp_path = tempfile.mkstemp(dir=self.path.parent, suffix=".tmp")
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                json.dump(data, f, indent=2)
            os.replace(tmp_path, self.path)
        except OSError as e:
            logger.error("preset_file_write_failed", path=str(self.path), error=str(e))
            raise PresetStoreError(
                message="Failed to write preset store",
                details={"path": str(self.path), "original_error": str(e)}
            ) from e

    def get(self, key: str) -> Optional[str]:
        value = self._read_all().get(key)
        return value if isinstance(value, str) else None

    def set(self, key: str, value: str) -> None:
        data = self._read_all()
        data[key] = value
        self._write_all(data)

    def delete(self, key: str) -> None:
        data = self._read_all()
        if key in data:
            del data[key]
            self._write_all(data)


# ===================
# SERVICE
# ===================

class PresetService:
    """
    Named column mappings an operator can reapply to recurring file layouts.

    Presets are immutable once saved. Names need not be unique; presets are
    told apart by id and creation time.
    """

    def __init__(
        self,
        store: Optional[KeyValueStore] = None,
        storage_key: Optional[str] = None,
    ):
        self.store = store if store is not None else JsonFileStore(settings.preset_store_path)
        self.storage_key = storage_key or settings.preset_storage_key

    def list_presets(self) -> list[MappingPreset]:
        """
        All presets, oldest first.

        A missing or unparseable stored value reads as no presets.
        """
        raw = self.store.get(self.storage_key)
        if not raw:
            return []
        try:
            return _preset_list_adapter.validate_json(raw)
        except PydanticValidationError as e:
            logger.warning(
                "preset_storage_malformed",
                storage_key=self.storage_key,
                error_count=e.error_count(),
            )
            return []

    def get(self, preset_id: str) -> MappingPreset:
        """
        Raises:
            PresetNotFoundError: If no preset has this id
        """
        for preset in self.list_presets():
            if preset.id == preset_id:
                return preset
        raise PresetNotFoundError(preset_id)

    def save(self, name: str, mapping: ColumnMapping) -> MappingPreset:
        """Store a new preset. Never overwrites an existing one."""
        preset = MappingPreset(
            id=str(uuid.uuid4()),
            name=name,
            mapping=dict(mapping),
            created_at=datetime.now(timezone.utc),
        )
        presets = self.list_presets()
        presets.append(preset)
        self._write(presets)

        logger.info("preset_saved", preset_id=preset.id, name=name)
        return preset

    def load(self, preset: MappingPreset) -> ColumnMapping:
        """Mapping to install in place of the current one."""
        return dict(preset.mapping)

    def delete(self, preset_id: str) -> None:
        """
        Raises:
            PresetNotFoundError: If no preset has this id
        """
        presets = self.list_presets()
        remaining = [p for p in presets if p.id != preset_id]
        if len(remaining) == len(presets):
            raise PresetNotFoundError(preset_id)
        self._write(remaining)
        logger.info("preset_deleted", preset_id=preset_id)

    def _write(self, presets: list[MappingPreset]) -> None:
        self.store.set(
            self.storage_key,
            _preset_list_adapter.dump_json(presets).decode("utf-8"),
        )


# Singleton instance for convenience
_preset_service: Optional[PresetService] = None


def get_preset_service() -> PresetService:
    """Get or create PresetService instance."""
    global _preset_service
    if _preset_service is None:
        _preset_service = PresetService()
    return _preset_service
