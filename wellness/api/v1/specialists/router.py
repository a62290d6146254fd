"""
Specialist API routes
"""

from fastapi import APIRouter, Depends, Request, status
from fastapi.exceptions import RequestValidationError
from pydantic import ValidationError
from sqlalchemy.ext.asyncio import AsyncSession
from starlette.datastructures import UploadFile
from typing import Any, Dict
import json
import uuid

from wellness.core.database import get_db
from wellness.core.exceptions import BadRequestException
from wellness.api.v1.auth.dependencies import get_current_user, require_admin
from wellness.models import User
from wellness.schemas.base import MessageResponse

from .schemas import (
    SpecialistCreate,
    SpecialistDetailResponse,
    SpecialistListResponse,
    SpecialistResponse,
    SpecialistUpdate,
)
from .services import SpecialistService

router = APIRouter()

# form fields sent as the string "null" by the admin UI
NULL_STRINGS = {"null", "undefined"}


def _validate_update(raw: Dict[str, Any]) -> Dict[str, Any]:
    try:
        update = SpecialistUpdate.model_validate(raw)
    except ValidationError as e:
        raise RequestValidationError(
            [{**error, "loc": ("body",) + tuple(error["loc"])} for error in e.errors()]
        )
    return update.model_dump(exclude_unset=True)


async def _read_update(request: Request, service: SpecialistService) -> Dict[str, Any]:
    """Parse a JSON body or a multipart form carrying a photo file"""
    content_type = request.headers.get("content-type", "")

    if content_type.startswith("multipart/form-data"):
        form = await request.form()
        raw: Dict[str, Any] = {}
        upload = None

        for key, value in form.multi_items():
            if isinstance(value, UploadFile):
                if key == "photo" and value.filename:
                    upload = value
                continue
            raw[key] = None if value in NULL_STRINGS else value

        changes = _validate_update(raw)
        if upload is not None:
            changes["photo"] = await service.store_upload(upload)
        return changes

    try:
        body = await request.json()
    except json.JSONDecodeError:
        raise BadRequestException("Некорректный JSON", "INVALID_JSON")

    if not isinstance(body, dict):
        raise BadRequestException("Ожидается объект JSON", "INVALID_JSON")
    return _validate_update(body)


@router.get("", response_model=SpecialistListResponse, summary="List specialists")
async def list_specialists(db: AsyncSession = Depends(get_db)):
    specialists = await SpecialistService(db).list_specialists()
    return SpecialistListResponse(data=[SpecialistResponse.model_validate(s) for s in specialists])


@router.post(
    "",
    response_model=SpecialistDetailResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create specialist"
)
async def create_specialist(
    payload: SpecialistCreate,
    admin: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db)
):
    specialist = await SpecialistService(db).create_specialist(payload)
    return SpecialistDetailResponse(data=SpecialistResponse.model_validate(specialist))


@router.get("/{specialist_id}", response_model=SpecialistDetailResponse, summary="Get specialist")
async def get_specialist(
    specialist_id: uuid.UUID,
    db: AsyncSession = Depends(get_db)
):
    specialist = await SpecialistService(db).get_specialist(specialist_id)
    return SpecialistDetailResponse(data=SpecialistResponse.model_validate(specialist))


@router.put(
    "/{specialist_id}",
    response_model=SpecialistDetailResponse,
    summary="Update specialist",
    description="JSON body (photo as a base64 data URL) or multipart form with a photo file"
)
async def update_specialist(
    specialist_id: uuid.UUID,
    request: Request,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    service = SpecialistService(db)
    specialist = await service.get_editable(specialist_id, current_user)

    changes = await _read_update(request, service)
    specialist = await service.update_specialist(specialist, changes, current_user)

    return SpecialistDetailResponse(data=SpecialistResponse.model_validate(specialist))


@router.delete("/{specialist_id}", response_model=MessageResponse, summary="Delete specialist")
async def delete_specialist(
    specialist_id: uuid.UUID,
    admin: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db)
):
    await SpecialistService(db).delete_specialist(specialist_id)
    return MessageResponse(message="Специалист успешно удален")
