"""Data models for stored images."""
from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field


class StoredImage(BaseModel):
    """A generated image on disk. Never mutated after it is written."""
    filename: str
    source_prompt: str = ""
    created_at: datetime


class MetadataEntry(BaseModel):
    """One ``metadata.json`` entry: ``{filename, label, createdAt}``."""
    model_config = ConfigDict(populate_by_name=True)

    filename: str
    label: str = ""
    created_at: datetime = Field(alias="createdAt")
