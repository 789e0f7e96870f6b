"""Persistence layer for diary entries."""

import logging
from typing import List, Optional

from sqlalchemy import delete, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from diary_api.exceptions import DatabaseError
from diary_api.models.diary import Diary

logger = logging.getLogger(__name__)


class DiaryRepository:
    """
    CRUD access to the `diary` table through one request-scoped session.

    Writes are flushed, never committed: the owner of the session
    (get_db_session) decides when the transaction ends.
    """

    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def find_all(self) -> List[Diary]:
        try:
            result = await self.session.execute(select(Diary).order_by(Diary.id))
            return list(result.scalars().all())
        except SQLAlchemyError as e:
            logger.error("Database error listing diaries: %s", str(e), exc_info=True)
            raise DatabaseError(
                message="Could not retrieve diaries. Please try again.",
                context={"error_type": type(e).__name__},
            )

    async def find_by_id(self, diary_id: int) -> Optional[Diary]:
        try:
            result = await self.session.execute(select(Diary).where(Diary.id == diary_id))
            return result.scalar_one_or_none()
        except SQLAlchemyError as e:
            logger.error("Database error fetching diary %s: %s", diary_id, str(e))
            raise DatabaseError(
                message="Could not retrieve the diary. Please try again.",
                context={"diary_id": diary_id},
            )

    async def find_by_title_containing(self, text: str) -> List[Diary]:
        """
        Entries whose title contains `text` anywhere, ignoring case.

        `%` and `_` in the query are matched literally.
        """
        query = (
            select(Diary)
            .where(Diary.title.icontains(text, autoescape=True))
            .order_by(Diary.id)
        )
        try:
            result = await self.session.execute(query)
            return list(result.scalars().all())
        except SQLAlchemyError as e:
            logger.error("Database error searching diaries: %s", str(e), exc_info=True)
            raise DatabaseError(
                message="Could not search diaries. Please try again.",
                context={"error_type": type(e).__name__},
            )

    async def save(self, diary: Diary) -> Diary:
        """Insert a new entry or write pending changes; ids are assigned here."""
        try:
            self.session.add(diary)
            await self.session.flush()
            return diary
        except SQLAlchemyError as e:
            logger.error("Database error saving diary: %s", str(e), exc_info=True)
            raise DatabaseError(
                message="Could not save the diary. Please try again.",
                context={"diary_id": diary.id, "error_type": type(e).__name__},
            )

    async def delete_by_id(self, diary_id: int) -> int:
        """Delete the row if present. Returns the number of rows removed (0 or 1)."""
        try:
            result = await self.session.execute(delete(Diary).where(Diary.id == diary_id))
            await self.session.flush()
        except SQLAlchemyError as e:
            logger.error("Database error deleting diary %s: %s", diary_id, str(e))
            raise DatabaseError(
                message="Could not delete the diary. Please try again.",
                context={"diary_id": diary_id},
            )
        if not result.rowcount:
            logger.debug("Delete: diary %s did not exist", diary_id)
        return result.rowcount or 0
