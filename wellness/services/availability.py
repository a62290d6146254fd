"""Specialist slot availability"""

from datetime import date
from typing import Optional
import logging
import uuid

from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, func

from wellness.core.config import settings
from wellness.models import Appointment
from wellness.models.appointment import ACTIVE_STATUSES

logger = logging.getLogger(__name__)


class AvailabilityService:
    """
    Answers whether a specialist can take a slot.
    Without ENFORCE_SLOT_AVAILABILITY every slot is reported free.
    """

    def __init__(self, db: AsyncSession):
        self.db = db

    async def is_available(
        self,
        specialist_id: uuid.UUID,
        day: date,
        time_start: str,
        time_end: str,
        exclude_id: Optional[uuid.UUID] = None,
    ) -> bool:
        """exclude_id leaves an appointment out of the overlap count"""
        if not settings.ENFORCE_SLOT_AVAILABILITY:
            return True

        # HH:MM strings compare in time order
        query = select(func.count(Appointment.id)).where(
            Appointment.specialist_id == specialist_id,
            Appointment.date == day,
            Appointment.status.in_(ACTIVE_STATUSES),
            Appointment.time_start < time_end,
            Appointment.time_end > time_start,
        )
        if exclude_id is not None:
            query = query.where(Appointment.id != exclude_id)

        result = await self.db.execute(query)
        overlapping = result.scalar_one()

        if overlapping:
            logger.info(
                f"Slot {day} {time_start}-{time_end} of specialist {specialist_id} "
                f"overlaps {overlapping} appointment(s)"
            )
        return overlapping == 0
