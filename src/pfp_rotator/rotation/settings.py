"""Persisted rotation settings.

Stored as a flat JSON object under the keys the control surface uses:
isEnabled, frequency, customInterval, numImages, currentImageIndex,
lastUpdate, storagePath.
"""

import json
import logging
from datetime import datetime
from enum import Enum
from pathlib import Path
from typing import Any, Dict, Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from pfp_rotator.exceptions import InvalidArgument, StorageError

logger = logging.getLogger(__name__)

MINUTES_PER_DAY = 24 * 60


class Frequency(str, Enum):
    """How often the rotation timer fires."""
    DAILY = "daily"
    WEEKLY = "weekly"
    CUSTOM = "custom"


class Settings(BaseModel):
    """Process-wide rotation settings."""
    model_config = ConfigDict(populate_by_name=True, validate_assignment=True)

    enabled: bool = Field(default=True, alias="isEnabled")
    frequency: Frequency = Frequency.WEEKLY
    custom_interval_days: int = Field(default=7, ge=1, alias="customInterval")
    image_count: int = Field(default=10, ge=1, le=50, alias="numImages")
    rotation_index: int = Field(default=0, ge=0, alias="currentImageIndex")
    last_update: Optional[datetime] = Field(default=None, alias="lastUpdate")
    storage_path: str = Field(default="./generated-images", alias="storagePath")

    def interval_minutes(self) -> int:
        """Timer period in minutes derived from frequency / customInterval."""
        if self.frequency == Frequency.DAILY:
            return MINUTES_PER_DAY
        if self.frequency == Frequency.CUSTOM:
            return self.custom_interval_days * MINUTES_PER_DAY
        return 7 * MINUTES_PER_DAY

    def to_storage(self) -> Dict[str, Any]:
        """Serialize under the persisted key names."""
        return self.model_dump(mode="json", by_alias=True)


class SettingsStore:
    """JSON file key-value store for Settings."""

    def __init__(self, path: Path):
        self.path = Path(path)

    def load(self) -> Settings:
        """
        Load settings, filling defaults for missing keys.

        The first load writes the defaults so the file always exists afterwards.
        An unreadable file is logged and replaced by defaults.
        """
        if not self.path.exists():
            settings = Settings()
            self.save(settings)
            return settings

        try:
            raw = json.loads(self.path.read_text(encoding="utf-8"))
            return Settings.model_validate(raw)
        except (OSError, ValueError) as e:
            logger.warning(f"Settings file {self.path} unreadable ({e}); using defaults")
            settings = Settings()
            self.save(settings)
            return settings

    def save(self, settings: Settings) -> Settings:
        """Persist ``settings`` atomically."""
        tmp_path = self.path.with_suffix(self.path.suffix + ".tmp")
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            tmp_path.write_text(json.dumps(settings.to_storage(), indent=2), encoding="utf-8")
            tmp_path.replace(self.path)
        except OSError as e:
            raise StorageError(f"Failed to write settings {self.path}: {e}") from e
        return settings

    def update(self, changes: Dict[str, Any]) -> Settings:
        """
        Merge a partial update (persisted key names or field names) and save.

        Raises:
            InvalidArgument: The merged settings fail validation
        """
        current = self.load().to_storage()
        for key, value in changes.items():
            field = Settings.model_fields.get(key)
            current[field.alias if field is not None and field.alias else key] = value
        try:
            settings = Settings.model_validate(current)
        except ValidationError as e:
            raise InvalidArgument(f"Invalid settings: {e.errors()[0]['msg']}") from e
        return self.save(settings)
