"""
Specialist services
"""

from fastapi import UploadFile
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, func
from typing import Any, Dict, List, Optional
import logging
import uuid

from wellness.core.exceptions import (
    BadRequestException,
    ConflictException,
    DuplicateResourceException,
    ForbiddenException,
    NotFoundException,
)
from wellness.middleware.security import sanitize_text, validate_file_upload
from wellness.models import Appointment, Specialist, User
from wellness.services.storage import StorageService

from .schemas import SpecialistCreate

logger = logging.getLogger(__name__)

TEXT_FIELDS = {"first_name": 100, "last_name": 100, "position": 255, "description": 5000}


class SpecialistService:
    """Profile management for specialists"""

    def __init__(self, db: AsyncSession, storage: Optional[StorageService] = None):
        self.db = db
        self.storage = storage or StorageService()

    async def list_specialists(self) -> List[Specialist]:
        result = await self.db.execute(
            select(Specialist).order_by(Specialist.order, Specialist.last_name, Specialist.first_name)
        )
        return list(result.scalars().all())

    async def get_specialist(self, specialist_id: uuid.UUID) -> Specialist:
        specialist = await self.db.get(Specialist, specialist_id)
        if not specialist:
            raise NotFoundException("Специалист не найден", "SPECIALIST_NOT_FOUND")
        return specialist

    async def get_editable(self, specialist_id: uuid.UUID, current_user: User) -> Specialist:
        """Administrators edit any profile, a specialist only their own"""
        specialist = await self.db.get(Specialist, specialist_id)

        if not current_user.is_admin and (specialist is None or specialist.user_id != current_user.id):
            raise ForbiddenException("Доступ запрещен")
        if specialist is None:
            raise NotFoundException("Специалист не найден", "SPECIALIST_NOT_FOUND")
        return specialist

    async def _check_user_link(self, user_id: uuid.UUID, specialist_id: Optional[uuid.UUID] = None) -> None:
        user = await self.db.get(User, user_id)
        if not user:
            raise BadRequestException("Пользователь не найден", "USER_NOT_FOUND")

        query = select(Specialist.id).where(Specialist.user_id == user_id)
        if specialist_id is not None:
            query = query.where(Specialist.id != specialist_id)

        result = await self.db.execute(query)
        if result.first() is not None:
            raise DuplicateResourceException("Specialist", "userId", str(user_id))

    async def _store_photo(self, photo: Optional[str]) -> Optional[str]:
        # stored paths and external URLs are kept as they are
        if self.storage.is_data_url(photo):
            return await self.storage.save_data_url(photo, folder="specialists")
        return photo

    async def store_upload(self, upload: UploadFile) -> str:
        extension = validate_file_upload(upload.filename, upload.content_type)
        content = await upload.read()
        return await self.storage.save_image(content, extension, folder="specialists")

    @staticmethod
    def _clean(data: Dict[str, Any]) -> Dict[str, Any]:
        for field, max_length in TEXT_FIELDS.items():
            if data.get(field) is not None:
                data[field] = sanitize_text(data[field], max_length)
        return data

    async def create_specialist(self, data: SpecialistCreate) -> Specialist:
        values = self._clean(data.model_dump())
        if values.get("user_id"):
            await self._check_user_link(values["user_id"])

        values["photo"] = await self._store_photo(values.get("photo"))

        specialist = Specialist(**values)
        self.db.add(specialist)
        await self.db.flush()

        logger.info(f"Specialist created: {specialist.id} {specialist.full_name}")
        return specialist

    async def update_specialist(
        self,
        specialist: Specialist,
        changes: Dict[str, Any],
        current_user: User,
    ) -> Specialist:
        """Apply a partial update; the account link is for administrators only"""
        changes = self._clean(dict(changes))

        if "user_id" in changes:
            if not current_user.is_admin:
                raise ForbiddenException("Только администратор может менять привязку аккаунта")
            if changes["user_id"] is not None:
                await self._check_user_link(changes["user_id"], specialist.id)

        for field in ("first_name", "last_name"):
            if field in changes and not changes[field]:
                raise BadRequestException(f"Поле {field} не может быть пустым", "MISSING_FIELDS")

        if "photo" in changes:
            changes["photo"] = await self._store_photo(changes["photo"])

        for field, value in changes.items():
            setattr(specialist, field, value)

        await self.db.flush()
        await self.db.refresh(specialist)

        logger.info(f"Specialist {specialist.id} updated by {current_user.id}: {sorted(changes)}")
        return specialist

    async def delete_specialist(self, specialist_id: uuid.UUID) -> None:
        specialist = await self.get_specialist(specialist_id)

        result = await self.db.execute(
            select(func.count(Appointment.id)).where(Appointment.specialist_id == specialist.id)
        )
        if result.scalar():
            raise ConflictException("У специалиста есть записи, удаление невозможно", "SPECIALIST_HAS_APPOINTMENTS")

        await self.db.delete(specialist)
        await self.db.flush()

        logger.info(f"Specialist deleted: {specialist_id}")
