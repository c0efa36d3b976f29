from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session
from app.api.deps import CurrentUser, get_current_user
from app.db.session import get_db
from app.schemas.campaign import ReviewCommentOut
from app.schemas.common import APIResponse, MessageResponse
from app.schemas.review import ReviewCreate, ReviewData, ReviewList, ReviewUpdate
from app.services.review_service import ReviewService

router = APIRouter()


@router.post("/{campaign_id}/jobs/{job_id}/reviews", status_code=201, response_model=APIResponse[ReviewData])
def add_review(
    campaign_id: str,
    job_id: str,
    payload: ReviewCreate,
    current_user: CurrentUser = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Comment on a submitted job as the campaign's brand or the job's influencer"""
    review = ReviewService.add(db, campaign_id, job_id, payload.influencer_id, payload.comment, current_user)
    return APIResponse(
        message="Review added successfully",
        data=ReviewData(review=ReviewCommentOut.model_validate(review)),
    )


@router.get("/{campaign_id}/jobs/{job_id}/reviews", response_model=APIResponse[ReviewList])
def list_reviews(
    campaign_id: str,
    job_id: str,
    influencer_id: Optional[str] = Query(None, alias="influencerId"),
    current_user: CurrentUser = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    reviews = ReviewService.list_reviews(db, campaign_id, job_id, influencer_id)
    return APIResponse(data=ReviewList(reviews=[ReviewCommentOut.model_validate(r) for r in reviews]))


@router.patch("/{campaign_id}/jobs/{job_id}/reviews/{review_id}", response_model=APIResponse[ReviewData])
def update_review(
    campaign_id: str,
    job_id: str,
    review_id: str,
    payload: ReviewUpdate,
    current_user: CurrentUser = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    review = ReviewService.update(
        db, campaign_id, job_id, review_id, payload.influencer_id, payload.comment, current_user
    )
    return APIResponse(
        message="Review updated successfully",
        data=ReviewData(review=ReviewCommentOut.model_validate(review)),
    )


@router.delete("/{campaign_id}/jobs/{job_id}/reviews/{review_id}", response_model=MessageResponse)
def delete_review(
    campaign_id: str,
    job_id: str,
    review_id: str,
    influencer_id: Optional[str] = Query(None, alias="influencerId"),
    current_user: CurrentUser = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    ReviewService.delete(db, campaign_id, job_id, review_id, influencer_id, current_user)
    return MessageResponse(message="Review deleted successfully")
