"""
Diary API — Request-Scoped Assembly
=====================================

What:  Builds the DiaryService used by one request.
How:   The request's AsyncSession goes into a fresh DiaryRepository; the
       process-wide ImageService is the one create_app() placed on
       app.state. No module-level service singletons are involved.
"""

from fastapi import Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from diary_api.database import get_db_session
from diary_api.repositories.diary_repository import DiaryRepository
from diary_api.services.diary_service import DiaryService
from diary_api.services.image_service import ImageService


def get_image_service(request: Request) -> ImageService:
    return request.app.state.image_service


def get_diary_service(
    db: AsyncSession = Depends(get_db_session),
    image_service: ImageService = Depends(get_image_service),
) -> DiaryService:
    return DiaryService(repository=DiaryRepository(db), image_service=image_service)
