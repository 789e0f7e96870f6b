"""
Diary API — Image Storage Service
===================================

What:  Stores, replaces, reads and removes the image attached to a diary entry.
How:   One directory per entry id under the image root; each file gets a
       UUID name carrying the upload's lower-cased extension.
Who:   Called by DiaryService; the image fetch route reads through it.

Directory Structure:
    images/
    ├── 1/
    │   └── 0b6f...e2.png
    └── 7/
        └── 9a41...c0.jpg

    Each entry directory holds zero or one current image. Replacement writes
    the new file first and removes the old one afterwards, so a crash in
    between can leave two files with only one referenced by the row.
"""

import asyncio
import logging
import shutil
import uuid
from pathlib import Path
from typing import Optional, Union

import aiofiles
import aiofiles.os

from diary_api.config import settings
from diary_api.exceptions import (
    FileStorageError,
    NotFoundError,
    PayloadTooLargeError,
    UnsupportedImageTypeError,
)

logger = logging.getLogger(__name__)

# Lower-case extension → content type served by GET /api/diary/{id}/image
CONTENT_TYPES = {
    "png": "image/png",
    "jpg": "image/jpeg",
    "jpeg": "image/jpeg",
    "gif": "image/gif",
}

SUPPORTED_EXTENSIONS = ("png", "jpg", "jpeg", "gif")


def get_extension(filename: Optional[str]) -> str:
    """Text after the last dot of the final path component, or "" when there is none."""
    if not filename:
        return ""
    name = filename.replace("\\", "/").rsplit("/", 1)[-1]
    if "." not in name:
        return ""
    return name.rsplit(".", 1)[-1]


class ImageService:
    """
    Manages the on-disk image tree.

    Lifecycle of an attached image:
        1. DiaryService hands over the upload → store()
        2. Extension and size are checked
        3. images/<id>/ is created if missing
        4. Bytes are written under a fresh UUID name
        5. The previous file of the entry, if any, is removed
        6. The new file name is returned and recorded on the row
        7. Deleting the entry → delete_diary_images() removes images/<id>/
    """

    def __init__(self, image_root: Optional[str] = None, max_file_size: Optional[int] = None):
        """
        Args:
            image_root: Override settings.image_root (used in tests).
            max_file_size: Override settings.max_file_size, in bytes.
        """
        self.image_root = Path(image_root or settings.image_root).resolve()
        self.max_file_size = max_file_size or settings.max_file_size
        self.image_root.mkdir(parents=True, exist_ok=True)
        logger.info("ImageService initialized with image_root=%s", self.image_root)

    # ── Naming & Validation ───────────────────────────────────────────────

    def is_extension_supported(self, filename: Optional[str]) -> bool:
        if not filename or not filename.strip():
            return False
        return get_extension(filename).lower() in SUPPORTED_EXTENSIONS

    def generate_file_name(self, original_filename: str) -> str:
        """UUID4 + "." + the original extension, lower-cased."""
        return f"{uuid.uuid4()}.{get_extension(original_filename).lower()}"

    def validate_size(self, content: bytes) -> None:
        if len(content) > self.max_file_size:
            raise PayloadTooLargeError(max_size=self.max_file_size, actual_size=len(content))

    # ── Paths ─────────────────────────────────────────────────────────────

    def diary_dir(self, diary_id: int) -> Path:
        return self.image_root / str(diary_id)

    def image_path(self, diary_id: int, filename: str) -> Path:
        return self.diary_dir(diary_id) / filename

    # ── Storage ───────────────────────────────────────────────────────────

    async def store(
        self,
        diary_id: int,
        filename: str,
        content: bytes,
        previous: Optional[str] = None,
    ) -> str:
        """
        Write an upload as the entry's image and return the generated file name.

        Args:
            diary_id: Entry the image belongs to (must already have an id)
            filename: Original upload file name; only its extension is kept
            content: Raw image bytes
            previous: File name of the image being replaced, if any

        Raises:
            UnsupportedImageTypeError: extension not png/jpg/jpeg/gif
            PayloadTooLargeError: content exceeds max_file_size
            FileStorageError: directory creation, write or old-file removal failed
        """
        if not self.is_extension_supported(filename):
            raise UnsupportedImageTypeError(
                extension=get_extension(filename).lower(),
                allowed=SUPPORTED_EXTENSIONS,
            )
        self.validate_size(content)

        new_name = self.generate_file_name(filename)
        target = self.image_path(diary_id, new_name)

        try:
            await aiofiles.os.makedirs(target.parent, exist_ok=True)
            async with aiofiles.open(target, "wb") as f:
                await f.write(content)
        except OSError as e:
            logger.error("Failed to store image at %s: %s", target, str(e))
            raise FileStorageError(
                message="Failed to save the image. Please try again.",
                context={"diary_id": diary_id, "os_error": str(e)},
            )

        logger.info("Image stored for diary %s: %s (%d bytes)", diary_id, new_name, len(content))

        if previous and previous.strip() and previous != new_name:
            await self._remove_file(self.image_path(diary_id, previous))

        return new_name

    async def _remove_file(self, path: Path) -> None:
        """Remove one file; a file that is already gone counts as removed."""
        try:
            await aiofiles.os.remove(path)
            logger.info("Removed replaced image: %s", path.name)
        except FileNotFoundError:
            logger.debug("Replaced image already gone: %s", path.name)
        except OSError as e:
            logger.error("Failed to remove image %s: %s", path, str(e))
            raise FileStorageError(
                message="Failed to remove the previous image.",
                context={"path": str(path), "os_error": str(e)},
            )

    async def delete_diary_images(self, diary_id: int) -> None:
        """Recursively remove images/<id>/. A missing directory is not an error."""
        directory = self.diary_dir(diary_id)
        try:
            # rmtree has no aiofiles counterpart; keep it off the event loop
            await asyncio.to_thread(shutil.rmtree, directory)
            logger.info("Removed image directory for diary %s", diary_id)
        except FileNotFoundError:
            logger.debug("No image directory for diary %s", diary_id)
        except OSError as e:
            logger.error("Failed to remove image directory %s: %s", directory, str(e))
            raise FileStorageError(
                message="Failed to delete the diary's images.",
                context={"diary_id": diary_id, "os_error": str(e)},
            )

    # ── Retrieval ─────────────────────────────────────────────────────────

    def resolve_content_type(self, filename: str) -> str:
        extension = get_extension(filename).lower()
        try:
            return CONTENT_TYPES[extension]
        except KeyError:
            raise UnsupportedImageTypeError(extension=extension, allowed=SUPPORTED_EXTENSIONS)

    async def read_bytes(self, path: Union[str, Path], diary_id: Optional[int] = None) -> bytes:
        """Read an image file; any failure to read it is reported as not found."""
        try:
            async with aiofiles.open(path, "rb") as f:
                return await f.read()
        except OSError as e:
            logger.warning("Could not read image %s: %s", path, str(e))
            raise NotFoundError(
                resource="image",
                resource_id=diary_id,
                context={"os_error": str(e)},
            )
