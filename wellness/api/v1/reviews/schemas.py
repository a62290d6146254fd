"""
Review schemas
"""

from pydantic import Field
from typing import Optional, List, Literal
from datetime import datetime
import uuid

from wellness.schemas.base import CamelModel, SuccessResponse


class AttachmentCreate(CamelModel):
    type: Literal["image", "video", "file"] = "image"
    url: str = Field(..., min_length=1)
    name: Optional[str] = Field(None, max_length=255)


class ReviewCreate(CamelModel):
    """specialistId and rating are required; absence is reported by name"""
    specialist_id: Optional[uuid.UUID] = None
    rating: Optional[int] = Field(None, ge=1, le=5)
    service_id: Optional[uuid.UUID] = None
    appointment_id: Optional[uuid.UUID] = None
    text: Optional[str] = None
    attachments: List[AttachmentCreate] = Field(default_factory=list, max_length=10)


class ReplyCreate(CamelModel):
    text: Optional[str] = None
    parent_reply_id: Optional[uuid.UUID] = None


class ReactionRequest(CamelModel):
    """none removes the caller's reaction"""
    type: Literal["like", "dislike", "none"]


class AuthorBrief(CamelModel):
    id: uuid.UUID
    first_name: Optional[str] = None
    last_name: Optional[str] = None


class AttachmentResponse(CamelModel):
    id: uuid.UUID
    type: str
    url: str
    name: Optional[str] = None


class ReactionResponse(CamelModel):
    id: uuid.UUID
    user_id: uuid.UUID
    type: str
    created_at: datetime


class ReplyResponse(CamelModel):
    id: uuid.UUID
    user_id: uuid.UUID
    parent_reply_id: Optional[uuid.UUID] = None
    text: str
    user: Optional[AuthorBrief] = None
    created_at: datetime


class ReviewResponse(CamelModel):
    id: uuid.UUID
    specialist_id: uuid.UUID
    user_id: uuid.UUID
    service_id: Optional[uuid.UUID] = None
    appointment_id: Optional[uuid.UUID] = None
    rating: int
    text: Optional[str] = None
    is_moderated: bool
    is_published: bool
    user: Optional[AuthorBrief] = None
    attachments: List[AttachmentResponse] = []
    reactions: List[ReactionResponse] = []
    replies: List[ReplyResponse] = []
    created_at: datetime
    updated_at: datetime


class ReviewListMeta(CamelModel):
    total: int
    limit: int
    offset: int


class ReviewListResponse(SuccessResponse):
    data: List[ReviewResponse]
    meta: ReviewListMeta


class ReviewDetailResponse(SuccessResponse):
    data: ReviewResponse


class ReplyDetailResponse(SuccessResponse):
    data: ReplyResponse
