"""
Review API routes
"""

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession
from typing import Optional
import uuid

from wellness.core.database import get_db
from wellness.api.v1.auth.dependencies import get_current_user
from wellness.models import User

from .schemas import (
    ReactionRequest,
    ReplyCreate,
    ReplyDetailResponse,
    ReplyResponse,
    ReviewCreate,
    ReviewDetailResponse,
    ReviewListMeta,
    ReviewListResponse,
    ReviewResponse,
)
from .services import ReviewService

router = APIRouter()


@router.get("", response_model=ReviewListResponse, summary="List reviews")
async def list_reviews(
    specialist_id: Optional[uuid.UUID] = Query(None, alias="specialistId"),
    published: Optional[bool] = None,
    limit: int = Query(100, ge=1, le=500),
    offset: int = Query(0, ge=0),
    db: AsyncSession = Depends(get_db)
):
    reviews, total = await ReviewService(db).list_reviews(
        specialist_id=specialist_id,
        published=published,
        limit=limit,
        offset=offset,
    )
    return ReviewListResponse(
        data=[ReviewResponse.model_validate(r) for r in reviews],
        meta=ReviewListMeta(total=total, limit=limit, offset=offset),
    )


@router.post(
    "",
    response_model=ReviewDetailResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create review"
)
async def create_review(
    payload: ReviewCreate,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    review = await ReviewService(db).create_review(current_user, payload)
    return ReviewDetailResponse(data=ReviewResponse.model_validate(review))


@router.post(
    "/{review_id}/reply",
    response_model=ReplyDetailResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Reply to review"
)
async def reply_to_review(
    review_id: uuid.UUID,
    payload: ReplyCreate,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    reply = await ReviewService(db).add_reply(review_id, current_user, payload)
    return ReplyDetailResponse(data=ReplyResponse.model_validate(reply))


@router.post(
    "/{review_id}/reaction",
    response_model=ReviewDetailResponse,
    summary="Toggle reaction",
    description="Like or dislike a review; repeating the same reaction removes it"
)
async def react_to_review(
    review_id: uuid.UUID,
    payload: ReactionRequest,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    review = await ReviewService(db).toggle_reaction(review_id, current_user, payload.type)
    return ReviewDetailResponse(data=ReviewResponse.model_validate(review))
