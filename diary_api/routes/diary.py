"""
Diary API — Diary Route Handlers
==================================

What:  CRUD endpoints for diary entries plus image download.
How:   Multipart fields are validated into form models, the request's
       DiaryService does the work, entries are returned as DiaryResponse.

Route Inventory:
    GET    /api/diary               list, or search with ?title=
    POST   /api/diary               create (multipart: title, content, image?)
    GET    /api/diary/{id}          fetch one
    PUT    /api/diary/{id}          partial update (multipart: title?, content?, image?)
    DELETE /api/diary/{id}          delete entry and its images
    GET    /api/diary/{id}/image    raw image bytes
"""

import logging
from typing import List, Optional, Type, TypeVar

from fastapi import APIRouter, Depends, File, Form, Query, Response, UploadFile
from pydantic import BaseModel
from pydantic import ValidationError as PydanticValidationError

from diary_api.dependencies import get_diary_service
from diary_api.exceptions import ValidationError
from diary_api.schemas.diary import (
    DiaryRegistrationForm,
    DiaryResponse,
    DiarySearchParams,
    DiaryUpdateForm,
    ErrorResponse,
    field_errors,
)
from diary_api.services.diary_service import DiaryService, ImageUpload

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/diary", tags=["Diary"])

FormModel = TypeVar("FormModel", bound=BaseModel)


# ── Form Dependencies ─────────────────────────────────────────────────────

def _build_form(model: Type[FormModel], **values: Optional[str]) -> FormModel:
    """Validate raw form values; omitted (None) values are left out entirely."""
    try:
        return model(**{name: v for name, v in values.items() if v is not None})
    except PydanticValidationError as e:
        raise ValidationError(
            message="Input validation failed",
            context={"fields": field_errors(e.errors())},
        )


def registration_form(
    title: Optional[str] = Form(default=None, description="Entry title (max 50 characters)"),
    content: Optional[str] = Form(default=None, description="Entry body (max 500 characters)"),
) -> DiaryRegistrationForm:
    return _build_form(DiaryRegistrationForm, title=title, content=content)


def update_form(
    title: Optional[str] = Form(default=None, description="New title; blank keeps the current one"),
    content: Optional[str] = Form(default=None, description="New body; blank keeps the current one"),
) -> DiaryUpdateForm:
    return _build_form(DiaryUpdateForm, title=title, content=content)


def search_params(
    title: Optional[str] = Query(default=None, description="Substring to look for in titles"),
) -> DiarySearchParams:
    return _build_form(DiarySearchParams, title=title)


async def _read_upload(image: Optional[UploadFile]) -> Optional[ImageUpload]:
    if image is None:
        return None
    try:
        content = await image.read()
    finally:
        await image.close()
    logger.debug("Received image upload: filename=%s, size=%d bytes", image.filename, len(content))
    return ImageUpload(filename=image.filename or "", content=content)


# ── Endpoints ─────────────────────────────────────────────────────────────

@router.get(
    "",
    response_model=List[DiaryResponse],
    responses={400: {"description": "Search text too long", "model": ErrorResponse}},
    summary="List diary entries, optionally filtered by title",
)
async def list_diaries(
    params: DiarySearchParams = Depends(search_params),
    service: DiaryService = Depends(get_diary_service),
) -> List[DiaryResponse]:
    diaries = await service.search_diaries(params.title)
    return [DiaryResponse.model_validate(diary) for diary in diaries]


@router.post(
    "",
    status_code=201,
    response_model=DiaryResponse,
    responses={
        400: {"description": "Invalid title or content", "model": ErrorResponse},
        413: {"description": "Image too large", "model": ErrorResponse},
        415: {"description": "Unsupported image type", "model": ErrorResponse},
    },
    summary="Create a diary entry",
)
async def create_diary(
    form: DiaryRegistrationForm = Depends(registration_form),
    image: Optional[UploadFile] = File(default=None, description="PNG, JPG, JPEG or GIF"),
    service: DiaryService = Depends(get_diary_service),
) -> DiaryResponse:
    upload = await _read_upload(image)
    diary = await service.create_diary(title=form.title, content=form.content, image=upload)
    return DiaryResponse.model_validate(diary)


@router.get(
    "/{diary_id}",
    response_model=DiaryResponse,
    responses={404: {"description": "Diary not found", "model": ErrorResponse}},
    summary="Get a diary entry by ID",
)
async def get_diary(
    diary_id: int,
    service: DiaryService = Depends(get_diary_service),
) -> DiaryResponse:
    diary = await service.get_diary(diary_id)
    return DiaryResponse.model_validate(diary)


@router.put(
    "/{diary_id}",
    response_model=DiaryResponse,
    responses={
        400: {"description": "Title or content too long", "model": ErrorResponse},
        404: {"description": "Diary not found", "model": ErrorResponse},
        413: {"description": "Image too large", "model": ErrorResponse},
        415: {"description": "Unsupported image type", "model": ErrorResponse},
    },
    summary="Update a diary entry",
    description="Blank or omitted fields keep their current value; a new image replaces the old one.",
)
async def update_diary(
    diary_id: int,
    form: DiaryUpdateForm = Depends(update_form),
    image: Optional[UploadFile] = File(default=None, description="PNG, JPG, JPEG or GIF"),
    service: DiaryService = Depends(get_diary_service),
) -> DiaryResponse:
    upload = await _read_upload(image)
    diary = await service.update_diary(
        diary_id,
        title=form.title,
        content=form.content,
        image=upload,
    )
    return DiaryResponse.model_validate(diary)


@router.delete(
    "/{diary_id}",
    status_code=204,
    responses={500: {"description": "Image cleanup failed", "model": ErrorResponse}},
    summary="Delete a diary entry and its images",
)
async def delete_diary(
    diary_id: int,
    service: DiaryService = Depends(get_diary_service),
) -> Response:
    await service.delete_diary(diary_id)
    return Response(status_code=204)


@router.get(
    "/{diary_id}/image",
    responses={
        200: {"description": "Image bytes", "content": {"image/png": {}, "image/jpeg": {}, "image/gif": {}}},
        404: {"description": "Diary or image not found", "model": ErrorResponse},
        415: {"description": "Stored image has an unsupported type", "model": ErrorResponse},
    },
    summary="Download the image attached to a diary entry",
)
async def get_diary_image(
    diary_id: int,
    service: DiaryService = Depends(get_diary_service),
) -> Response:
    data, media_type = await service.get_image(diary_id)
    return Response(content=data, media_type=media_type)
