"""
Review services
"""

from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, func
from typing import List, Optional, Tuple
import logging
import uuid

from wellness.core.exceptions import BadRequestException, MissingFieldsException, NotFoundException
from wellness.middleware.security import sanitize_text
from wellness.models import (
    Appointment,
    Review,
    ReviewAttachment,
    ReviewReaction,
    ReviewReply,
    Service,
    Specialist,
    User,
)
from wellness.services.storage import StorageService

from .schemas import ReviewCreate, ReplyCreate

logger = logging.getLogger(__name__)

MAX_REVIEW_LENGTH = 5000
MAX_REPLY_LENGTH = 2000


class ReviewService:
    """Service for reviews, replies and reactions"""

    def __init__(self, db: AsyncSession, storage: Optional[StorageService] = None):
        self.db = db
        self.storage = storage or StorageService()

    async def list_reviews(
        self,
        specialist_id: Optional[uuid.UUID] = None,
        published: Optional[bool] = None,
        limit: int = 100,
        offset: int = 0,
    ) -> Tuple[List[Review], int]:
        query = select(Review)
        count_query = select(func.count(Review.id))

        if specialist_id is not None:
            query = query.where(Review.specialist_id == specialist_id)
            count_query = count_query.where(Review.specialist_id == specialist_id)
        if published is not None:
            query = query.where(Review.is_published == published)
            count_query = count_query.where(Review.is_published == published)

        total = (await self.db.execute(count_query)).scalar() or 0

        result = await self.db.execute(
            query.order_by(Review.created_at.desc()).limit(limit).offset(offset)
        )
        return list(result.scalars().all()), total

    async def get_review(self, review_id: uuid.UUID) -> Review:
        review = await self.db.get(Review, review_id)
        if not review:
            raise NotFoundException("Отзыв не найден", "REVIEW_NOT_FOUND")
        return review

    async def _check_references(self, user: User, data: ReviewCreate) -> None:
        if not await self.db.get(Specialist, data.specialist_id):
            raise NotFoundException("Специалист не найден", "SPECIALIST_NOT_FOUND")

        if data.service_id is not None and not await self.db.get(Service, data.service_id):
            raise NotFoundException("Услуга не найдена", "SERVICE_NOT_FOUND")

        if data.appointment_id is not None:
            appointment = await self.db.get(Appointment, data.appointment_id)
            if not appointment or appointment.user_id != user.id:
                raise BadRequestException("Запись не найдена среди ваших записей", "INVALID_APPOINTMENT")

    async def _attachment_url(self, url: str) -> str:
        if self.storage.is_data_url(url):
            return await self.storage.save_data_url(url, folder="reviews")
        return sanitize_text(url, 1000)

    async def create_review(self, user: User, data: ReviewCreate) -> Review:
        missing = []
        if data.specialist_id is None:
            missing.append("specialistId")
        if data.rating is None:
            missing.append("rating")
        if missing:
            raise MissingFieldsException(missing)

        await self._check_references(user, data)

        attachments = [
            ReviewAttachment(
                type=attachment.type,
                url=await self._attachment_url(attachment.url),
                name=sanitize_text(attachment.name, 255),
            )
            for attachment in data.attachments
        ]

        review = Review(
            specialist_id=data.specialist_id,
            user=user,
            service_id=data.service_id,
            appointment_id=data.appointment_id,
            rating=data.rating,
            text=sanitize_text(data.text, MAX_REVIEW_LENGTH) or None,
            is_moderated=True,
            is_published=True,
            attachments=attachments,
            reactions=[],
            replies=[],
        )
        self.db.add(review)
        await self.db.flush()
        await self.db.refresh(review)

        logger.info(f"Review {review.id} for specialist {review.specialist_id} created by {user.id}")
        return review

    async def add_reply(self, review_id: uuid.UUID, user: User, data: ReplyCreate) -> ReviewReply:
        review = await self.get_review(review_id)

        text = sanitize_text(data.text, MAX_REPLY_LENGTH)
        if not text:
            raise MissingFieldsException(["text"])

        if data.parent_reply_id is not None:
            if data.parent_reply_id not in {reply.id for reply in review.replies}:
                raise BadRequestException("Родительский ответ не найден в этом отзыве", "INVALID_PARENT_REPLY")

        reply = ReviewReply(user=user, parent_reply_id=data.parent_reply_id, text=text)
        review.replies.append(reply)
        await self.db.flush()
        await self.db.refresh(reply)

        logger.info(f"Reply {reply.id} added to review {review.id} by {user.id}")
        return reply

    async def toggle_reaction(self, review_id: uuid.UUID, user: User, reaction_type: str) -> Review:
        """Same type twice or none removes the reaction; another type replaces it"""
        review = await self.get_review(review_id)
        existing = next((r for r in review.reactions if r.user_id == user.id), None)

        if existing is not None:
            if existing.type == reaction_type or reaction_type == "none":
                review.reactions.remove(existing)
            else:
                existing.type = reaction_type
        elif reaction_type != "none":
            review.reactions.append(ReviewReaction(user_id=user.id, type=reaction_type))

        await self.db.flush()
        await self.db.refresh(review)
        return review
