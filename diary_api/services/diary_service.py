"""
Diary API — Diary Service (Business Logic Orchestrator)
=========================================================

What:  Diary lifecycle: list, search, fetch, create, partial update, delete,
       and access to the attached image.
How:   Composes a DiaryRepository (rows) and an ImageService (files). Both
       are passed in by the caller; see diary_api.dependencies for the
       per-request assembly.
Who:   Called by the diary route handlers.

Create/update flow:
    ┌──────────┐    ┌─────────────┐    ┌──────────────┐    ┌──────────┐
    │  Route   │───▶│ Save row    │───▶│ Store image  │───▶│ Save row │
    │  (form)  │    │ (id known)  │    │ (ImageServ)  │    │ (ref set)│
    └──────────┘    └─────────────┘    └──────────────┘    └──────────┘

    The image is written before the row references it. The file write and
    the commit are separate steps, so a failed commit can leave an
    unreferenced file in images/<id>/.
"""

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional, Tuple

from diary_api.exceptions import NotFoundError
from diary_api.models.diary import Diary
from diary_api.repositories.diary_repository import DiaryRepository
from diary_api.schemas.diary import is_blank
from diary_api.services.image_service import ImageService

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ImageUpload:
    """An uploaded file as the service sees it: original name and raw bytes."""

    filename: str
    content: bytes

    @property
    def is_empty(self) -> bool:
        return len(self.content) == 0


class DiaryService:
    """
    Business logic layer for diary entries.

    Responsibilities:
        - list_diaries() / search_diaries(): unfiltered or title substring listing
        - get_diary(): single entry with not-found handling
        - create_diary(): new entry, optionally with an image
        - update_diary(): partial update; blank fields keep their value
        - delete_diary(): row and image directory
        - get_image_path() / get_image(): attached image access
    """

    def __init__(self, repository: DiaryRepository, image_service: ImageService):
        self.repository = repository
        self.image_service = image_service

    async def list_diaries(self) -> List[Diary]:
        return await self.repository.find_all()

    async def search_diaries(self, title: Optional[str] = None) -> List[Diary]:
        """Entries whose title contains `title`; every entry when it is blank."""
        if is_blank(title):
            return await self.list_diaries()
        return await self.repository.find_by_title_containing(title)

    async def get_diary(self, diary_id: int) -> Diary:
        """
        Raises:
            NotFoundError: no entry with this id (→ 404)
        """
        diary = await self.repository.find_by_id(diary_id)
        if diary is None:
            raise NotFoundError(resource="diary", resource_id=diary_id)
        return diary

    async def create_diary(
        self,
        title: str,
        content: str,
        image: Optional[ImageUpload] = None,
    ) -> Diary:
        """
        Persist a new entry and attach the image if one was supplied.

        Title and content are validated by the caller (DiaryRegistrationForm).
        The row is flushed first so the image directory can be keyed by id.

        Raises:
            UnsupportedImageTypeError: image extension not supported (→ 415)
            PayloadTooLargeError: image over the size limit (→ 413)
            FileStorageError: image could not be written (→ 500)
        """
        diary = Diary(title=title, content=content)
        diary = await self.repository.save(diary)
        logger.info("Diary %s created", diary.id)

        if image is not None and not image.is_empty:
            await self._attach_image(diary, image)
        return diary

    async def update_diary(
        self,
        diary_id: int,
        title: Optional[str] = None,
        content: Optional[str] = None,
        image: Optional[ImageUpload] = None,
    ) -> Diary:
        """
        Apply a partial update.

        Blank or omitted title/content leave the stored value unchanged; an
        omitted or empty image keeps the current one. A new image replaces
        the previous file.

        Raises:
            NotFoundError: no entry with this id (→ 404)
            UnsupportedImageTypeError: image extension not supported (→ 415)
        """
        diary = await self.get_diary(diary_id)

        if not is_blank(title):
            diary.title = title
        if not is_blank(content):
            diary.content = content

        if image is not None and not image.is_empty:
            await self._attach_image(diary, image)

        diary = await self.repository.save(diary)
        logger.info("Diary %s updated", diary_id)
        return diary

    async def delete_diary(self, diary_id: int) -> None:
        """
        Delete the row, then the entry's image directory.

        Deleting an id that does not exist is a no-op. The row deletion is
        only flushed; if removing the directory fails, FileStorageError
        propagates and the request transaction rolls the row back.
        """
        removed = await self.repository.delete_by_id(diary_id)
        await self.image_service.delete_diary_images(diary_id)
        if removed:
            logger.info("Diary %s deleted", diary_id)

    async def get_image_path(self, diary_id: int) -> Path:
        """
        Raises:
            NotFoundError: entry missing, or it has no image (→ 404)
        """
        diary = await self.get_diary(diary_id)
        if not diary.has_image:
            raise NotFoundError(resource="image", resource_id=diary_id)
        return self.image_service.image_path(diary_id, diary.image_path)

    async def get_image(self, diary_id: int) -> Tuple[bytes, str]:
        """
        Bytes and content type of the entry's image.

        Raises:
            NotFoundError: no entry, no image, or the file cannot be read (→ 404)
            UnsupportedImageTypeError: stored name has an unknown extension (→ 415)
        """
        path = await self.get_image_path(diary_id)
        media_type = self.image_service.resolve_content_type(path.name)
        data = await self.image_service.read_bytes(path, diary_id=diary_id)
        return data, media_type

    async def _attach_image(self, diary: Diary, image: ImageUpload) -> None:
        """Store the upload (removing the old file) and point the row at it."""
        file_name = await self.image_service.store(
            diary_id=diary.id,
            filename=image.filename,
            content=image.content,
            previous=diary.image_path,
        )
        diary.image_path = file_name
        await self.repository.save(diary)
