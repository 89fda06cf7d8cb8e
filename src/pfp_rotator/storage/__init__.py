"""Generated image storage."""
from .image_store import BasePhotoStore, ImageStore, validate_filename
from .models import MetadataEntry, StoredImage

__all__ = [
    'BasePhotoStore',
    'ImageStore',
    'MetadataEntry',
    'StoredImage',
    'validate_filename',
]
