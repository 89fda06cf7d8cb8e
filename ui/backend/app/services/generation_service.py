"""Generation service: base photo in, stored variations out."""

import asyncio
import base64
import binascii
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional

from pfp_rotator.exceptions import ImageNotFound, InvalidArgument, StorageError
from pfp_rotator.storage import BasePhotoStore, ImageStore, StoredImage
from pfp_rotator.variations import VariationProducer, validate_count

logger = logging.getLogger(__name__)


@dataclass
class GenerationResult:
    """Filenames actually written (may be fewer than requested)."""
    requested: int
    filenames: List[str] = field(default_factory=list)

    @property
    def count(self) -> int:
        return len(self.filenames)


def decode_data_url(value: str) -> bytes:
    """
    Decode ``data:image/...;base64,<payload>`` (or bare base64) to bytes.

    Raises:
        InvalidArgument: Empty or malformed payload
    """
    if not value:
        raise InvalidArgument("basePhoto is required")
    payload = value.split(",", 1)[1] if value.startswith("data:") and "," in value else value
    try:
        data = base64.b64decode(payload.strip(), validate=True)
    except (binascii.Error, ValueError) as e:
        raise InvalidArgument(f"basePhoto is not valid base64: {e}") from e
    if not data:
        raise InvalidArgument("basePhoto is empty")
    return data


class GenerationService:
    """
    Store the base photo, produce variations and persist them.

    Concurrent generate() calls are not serialized; filenames carry a
    timestamp and index so overlapping batches do not collide in practice.
    """

    def __init__(self, store: ImageStore, base_photos: BasePhotoStore, producer: VariationProducer):
        self.store = store
        self.base_photos = base_photos
        self.producer = producer

    async def generate(
        self,
        base: bytes,
        count: int,
        base_name: Optional[str] = None,
        store_base: bool = True
    ) -> GenerationResult:
        """
        Generate ``count`` variations of ``base`` and write them to the store.

        Args:
            base: Encoded base photo
            count: Number of variations (1..50)
            base_name: Original filename, used for the stored base extension
            store_base: Keep ``base`` as the current base photo

        Returns:
            GenerationResult with the filenames written

        Raises:
            InvalidArgument: count out of range or unreadable base photo
            StorageError: storage directory unusable
        """
        validate_count(count)
        self.store.ensure()

        # Only a photo the producer could decode replaces the current base
        variations = await self.producer.produce(base, count)
        if store_base:
            await asyncio.to_thread(self.base_photos.save_upload, base, base_name)

        written: List[StoredImage] = []
        for variation in variations:
            try:
                stored = await asyncio.to_thread(self.store.save, variation.data, variation.index, variation.label)
            except StorageError as e:
                logger.error(f"Could not store variation {variation.index + 1}: {e}")
                continue
            written.append(stored)

        await asyncio.to_thread(self.store.write_metadata, written)
        logger.info(f"Stored {len(written)}/{count} generated images in {self.store.root}")
        return GenerationResult(requested=count, filenames=[img.filename for img in written])

    async def generate_from_base(self, count: int) -> GenerationResult:
        """
        Generate from the base photo in the fixed base folder.

        Raises:
            InvalidArgument: No base photo in the folder, or count out of range
        """
        validate_count(count)
        try:
            path = self.base_photos.from_folder()
        except ImageNotFound as e:
            raise InvalidArgument(str(e)) from e

        logger.info(f"Generating {count} images from base file {path}")
        data = await asyncio.to_thread(path.read_bytes)
        return await self.generate(data, count, base_name=path.name, store_base=False)

    async def upload_base(self, data: bytes, filename: Optional[str]) -> Path:
        """Replace the current uploaded base photo."""
        if not data:
            raise InvalidArgument("No file")
        return await asyncio.to_thread(self.base_photos.save_upload, data, filename)

    def list_images(self) -> List[StoredImage]:
        return self.store.list()

    def get_image(self, filename: str) -> bytes:
        """Raises ImageNotFound for unknown filenames."""
        return self.store.read(filename)

    def clear_images(self) -> int:
        """Delete all stored images; returns how many were deleted."""
        return self.store.clear()

    def image_count(self) -> int:
        return self.store.count()
