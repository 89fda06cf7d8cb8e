"""Persist generated images and their metadata in a directory."""

import json
import logging
import re
import time
from datetime import datetime, timezone
from pathlib import Path
from typing import Dict, Iterable, List, Optional

from pfp_rotator.exceptions import ImageNotFound, InvalidArgument, StorageError
from pfp_rotator.storage.models import MetadataEntry, StoredImage

logger = logging.getLogger(__name__)

IMAGE_EXTENSIONS = (".png", ".jpg", ".jpeg", ".webp")
METADATA_FILENAME = "metadata.json"


def validate_filename(filename: str) -> str:
    """
    Reject filenames that could escape the storage directory.

    Raises:
        InvalidArgument: Empty name, path separators or ``..``
    """
    if not filename or ".." in filename or "/" in filename or "\\" in filename:
        raise InvalidArgument(f"Invalid filename: {filename!r}")
    return filename


def is_image_file(name: str) -> bool:
    return name.lower().endswith(IMAGE_EXTENSIONS)


class ImageStore:
    """Directory of generated images plus a ``metadata.json`` summary."""

    def __init__(self, root: Path):
        self.root = Path(root)
        self._last_stamp = 0

    @property
    def metadata_path(self) -> Path:
        return self.root / METADATA_FILENAME

    def ensure(self) -> None:
        """Create the storage directory if it does not exist."""
        if self.root.is_dir():
            return
        try:
            self.root.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise StorageError(f"Cannot create storage directory {self.root}: {e}") from e
        logger.info(f"Created storage directory: {self.root}")

    def _next_stamp(self) -> int:
        # Millisecond timestamp, strictly increasing within this store
        stamp = max(int(time.time() * 1000), self._last_stamp + 1)
        self._last_stamp = stamp
        return stamp

    def new_filename(self, index: int) -> str:
        """``generated_<ms timestamp>_<index + 1>.png``"""
        return f"generated_{self._next_stamp()}_{index + 1}.png"

    def save(self, data: bytes, index: int, label: str) -> StoredImage:
        """
        Write one generated image.

        Args:
            data: Encoded image bytes
            index: Item index within its batch (0-based)
            label: Source prompt or strategy label

        Returns:
            StoredImage describing the written file
        """
        self.ensure()
        filename = self.new_filename(index)
        try:
            (self.root / filename).write_bytes(data)
        except OSError as e:
            raise StorageError(f"Failed to write {filename}: {e}") from e
        return StoredImage(
            filename=filename,
            source_prompt=label,
            created_at=datetime.now(timezone.utc)
        )

    def _image_names(self) -> List[str]:
        try:
            names = [p.name for p in self.root.iterdir() if p.is_file() and is_image_file(p.name)]
        except FileNotFoundError:
            return []
        except OSError as e:
            raise StorageError(f"Cannot read storage directory {self.root}: {e}") from e
        return sorted(names)

    def list(self) -> List[StoredImage]:
        """Stored images sorted by filename, labelled from metadata when known."""
        labels = self._read_metadata()
        images = []
        for name in self._image_names():
            entry = labels.get(name)
            if entry is not None:
                images.append(StoredImage(
                    filename=name,
                    source_prompt=entry.label,
                    created_at=entry.created_at
                ))
                continue
            try:
                mtime = (self.root / name).stat().st_mtime
            except FileNotFoundError:
                # Deleted between listing and stat
                continue
            images.append(StoredImage(
                filename=name,
                source_prompt="",
                created_at=datetime.fromtimestamp(mtime, tz=timezone.utc)
            ))
        return images

    def count(self) -> int:
        return len(self._image_names())

    def path_for(self, filename: str) -> Path:
        return self.root / validate_filename(filename)

    def read(self, filename: str) -> bytes:
        """
        Read a stored image.

        Raises:
            InvalidArgument: Unsafe filename
            ImageNotFound: No such image
        """
        path = self.path_for(filename)
        if not is_image_file(filename) or not path.is_file():
            raise ImageNotFound(f"Image not found: {filename}")
        try:
            return path.read_bytes()
        except OSError as e:
            raise StorageError(f"Failed to read {filename}: {e}") from e

    def clear(self) -> int:
        """
        Delete every stored image and the metadata file.

        Returns:
            Number of images deleted (0 when already empty or missing)
        """
        deleted = 0
        for name in self._image_names():
            try:
                (self.root / name).unlink()
                deleted += 1
            except FileNotFoundError:
                continue
            except OSError as e:
                raise StorageError(f"Failed to delete {name}: {e}") from e
        try:
            self.metadata_path.unlink()
        except FileNotFoundError:
            pass
        except OSError as e:
            raise StorageError(f"Failed to delete metadata: {e}") from e

        logger.info(f"Cleared {deleted} stored images")
        return deleted

    def _read_metadata(self) -> Dict[str, MetadataEntry]:
        try:
            raw = json.loads(self.metadata_path.read_text(encoding="utf-8"))
        except FileNotFoundError:
            return {}
        except (OSError, ValueError) as e:
            logger.warning(f"Ignoring unreadable metadata file {self.metadata_path}: {e}")
            return {}
        entries = {}
        for item in raw.get("images", []):
            try:
                entry = MetadataEntry.model_validate(item)
            except ValueError:
                continue
            entries[entry.filename] = entry
        return entries

    def write_metadata(self, images: Iterable[StoredImage]) -> Path:
        """
        Merge ``images`` into ``metadata.json``.

        Entries whose files no longer exist are dropped.
        """
        self.ensure()
        present = set(self._image_names())
        entries = {name: e for name, e in self._read_metadata().items() if name in present}
        for image in images:
            entries[image.filename] = MetadataEntry(
                filename=image.filename,
                label=image.source_prompt,
                created_at=image.created_at
            )

        ordered = [entries[name] for name in sorted(entries)]
        metadata = {
            "generatedAt": datetime.now(timezone.utc).isoformat(),
            "count": len(ordered),
            "images": [e.model_dump(mode="json", by_alias=True) for e in ordered],
        }
        tmp_path = self.metadata_path.with_suffix(".json.tmp")
        try:
            tmp_path.write_text(json.dumps(metadata, indent=2), encoding="utf-8")
            tmp_path.replace(self.metadata_path)
        except OSError as e:
            raise StorageError(f"Failed to write metadata: {e}") from e
        return self.metadata_path


_BASE_NAME = re.compile(r"^base\.[A-Za-z0-9]+$")


class BasePhotoStore:
    """
    The single current base photo.

    Uploads are kept as ``base<ext>`` in ``temp_dir`` (a new upload replaces
    the old one). ``base_dir`` is the fixed folder used by generate-from-base.
    """

    def __init__(self, temp_dir: Path, base_dir: Path):
        self.temp_dir = Path(temp_dir)
        self.base_dir = Path(base_dir)

    def save_upload(self, data: bytes, original_name: Optional[str] = None) -> Path:
        """Replace the current uploaded base photo; returns its path."""
        ext = Path(original_name or "").suffix.lower()
        if ext not in IMAGE_EXTENSIONS:
            ext = ".jpg"
        try:
            self.temp_dir.mkdir(parents=True, exist_ok=True)
            for old in self.temp_dir.iterdir():
                if _BASE_NAME.match(old.name):
                    old.unlink()
            path = self.temp_dir / f"base{ext}"
            path.write_bytes(data)
        except OSError as e:
            raise StorageError(f"Failed to store base photo: {e}") from e
        logger.info(f"Stored base photo: {path}")
        return path

    def current(self) -> Optional[Path]:
        """Path of the current uploaded base photo, if any."""
        if not self.temp_dir.is_dir():
            return None
        for path in sorted(self.temp_dir.iterdir()):
            if _BASE_NAME.match(path.name) and is_image_file(path.name):
                return path
        return None

    def from_folder(self) -> Path:
        """
        First image in the fixed base folder.

        Raises:
            ImageNotFound: Folder missing or holds no image
        """
        candidates = []
        if self.base_dir.is_dir():
            candidates = sorted(
                p for p in self.base_dir.iterdir() if p.is_file() and is_image_file(p.name)
            )
        if not candidates:
            raise ImageNotFound(
                f"No base image file found in {self.base_dir} (expected a png/jpg/jpeg/webp file)"
            )
        return candidates[0]
