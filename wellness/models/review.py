"""
Specialist review model with attachments, reactions and replies
"""

from sqlalchemy import Column, String, Integer, Text, Boolean, ForeignKey, Index, UniqueConstraint, CheckConstraint, Uuid
from sqlalchemy.orm import relationship

from .base import BaseModel, TimestampedModel, UUIDModel


class Review(BaseModel, TimestampedModel, UUIDModel):
    """Client review of a specialist"""

    __tablename__ = "reviews"

    specialist_id = Column(Uuid, ForeignKey("specialists.id", ondelete="CASCADE"), nullable=False)
    user_id = Column(Uuid, ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    service_id = Column(Uuid, ForeignKey("services.id", ondelete="SET NULL"), nullable=True)
    appointment_id = Column(Uuid, ForeignKey("appointments.id", ondelete="SET NULL"), nullable=True)

    # Review content
    rating = Column(Integer, nullable=False)
    text = Column(Text, nullable=True)

    # Status
    is_moderated = Column(Boolean, default=True, nullable=False)
    is_published = Column(Boolean, default=True, nullable=False)

    # Relationships
    user = relationship("User", lazy="selectin")
    attachments = relationship(
        "ReviewAttachment", cascade="all, delete-orphan", lazy="selectin"
    )
    reactions = relationship(
        "ReviewReaction", cascade="all, delete-orphan", lazy="selectin"
    )
    replies = relationship(
        "ReviewReply",
        cascade="all, delete-orphan",
        lazy="selectin",
        order_by="ReviewReply.created_at",
    )

    __table_args__ = (
        CheckConstraint("rating >= 1 AND rating <= 5", name="check_rating_range"),
        Index("idx_reviews_specialist_published", "specialist_id", "is_published"),
        Index("idx_reviews_user", "user_id"),
    )


class ReviewAttachment(BaseModel, TimestampedModel, UUIDModel):
    __tablename__ = "review_attachments"

    review_id = Column(Uuid, ForeignKey("reviews.id", ondelete="CASCADE"), nullable=False, index=True)
    type = Column(String(20), nullable=False, default="image")  # image, video, file
    url = Column(String(1000), nullable=False)
    name = Column(String(255), nullable=True)


class ReviewReaction(BaseModel, TimestampedModel, UUIDModel):
    """Like or dislike, one per user per review"""

    __tablename__ = "review_reactions"

    review_id = Column(Uuid, ForeignKey("reviews.id", ondelete="CASCADE"), nullable=False)
    user_id = Column(Uuid, ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    type = Column(String(20), nullable=False)  # like, dislike

    __table_args__ = (
        UniqueConstraint("review_id", "user_id", name="uq_review_reaction_user"),
    )


class ReviewReply(BaseModel, TimestampedModel, UUIDModel):
    __tablename__ = "review_replies"

    review_id = Column(Uuid, ForeignKey("reviews.id", ondelete="CASCADE"), nullable=False, index=True)
    user_id = Column(Uuid, ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    parent_reply_id = Column(Uuid, ForeignKey("review_replies.id", ondelete="CASCADE"), nullable=True)
    text = Column(Text, nullable=False)

    user = relationship("User", lazy="selectin")
