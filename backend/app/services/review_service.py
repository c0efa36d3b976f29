from typing import List, Optional, Tuple

from sqlalchemy.orm import Session
import logging

from app.core.config import settings
from app.core.exceptions import NotFoundError, PermissionDeniedError, ValidationError
from app.models import Brand, Campaign, Influencer, ReviewComment, SubmittedJob
from app.models.campaign import AuthorType
from app.models.common import utcnow
from app.services.common import ensure_valid_id

logger = logging.getLogger(__name__)


def clean_comment(comment: Optional[str]) -> str:
    if not comment or not comment.strip():
        raise ValidationError("Comment is required")
    if len(comment) > settings.REVIEW_COMMENT_MAX_LENGTH:
        raise ValidationError(f"Comment cannot exceed {settings.REVIEW_COMMENT_MAX_LENGTH} characters")
    return comment.strip()


class ReviewService:
    @staticmethod
    def _job(db: Session, campaign_id: str, job_id: str, influencer_id: Optional[str]) -> Tuple[Campaign, SubmittedJob]:
        """Resolve campaign -> assignment -> job, 404 at the first missing link"""
        ensure_valid_id(campaign_id, "campaign ID")
        campaign = db.query(Campaign).filter(Campaign.id == campaign_id).first()
        if not campaign:
            raise NotFoundError("Campaign not found")
        assignment = campaign.assignment_for(influencer_id) if influencer_id else None
        if assignment is None:
            raise NotFoundError("Influencer not assigned to this campaign")
        job = assignment.job_by_id(job_id)
        if job is None:
            raise NotFoundError("Submitted job not found")
        return campaign, job

    @staticmethod
    def _review(job: SubmittedJob, review_id: str) -> ReviewComment:
        for review in job.reviews:
            if review.id == review_id:
                return review
        raise NotFoundError("Review not found")

    @staticmethod
    def _author(db: Session, campaign: Campaign, influencer_id: str, user) -> Tuple[AuthorType, str]:
        if campaign.user_id == user.id:
            name = campaign.brand_name or user.name
            if not name:
                brand = db.query(Brand).filter(Brand.id == user.id).first()
                name = brand.brand_name if brand else None
            return AuthorType.BRAND, name or "Brand"

        if influencer_id == user.id:
            name = user.name
            if not name:
                influencer = db.query(Influencer).filter(Influencer.id == user.id).first()
                if not influencer or not influencer.name:
                    raise ValidationError("Influencer name not found. Please update your profile.")
                name = influencer.name
            return AuthorType.INFLUENCER, name

        raise PermissionDeniedError("You are not authorized to comment on this job")

    @staticmethod
    def add(db: Session, campaign_id: str, job_id: str, influencer_id: str, comment: Optional[str], user) -> ReviewComment:
        """
        Append a comment to a submitted job.

        Only the brand that owns the campaign and the influencer who
        submitted the job may comment.
        """
        text = clean_comment(comment)
        campaign, job = ReviewService._job(db, campaign_id, job_id, influencer_id)
        author_type, author_name = ReviewService._author(db, campaign, influencer_id, user)
        if not author_name.strip():
            raise ValidationError("Author name is required. Please update your profile.")

        review = ReviewComment(
            author_type=author_type,
            author_id=user.id,
            author_name=author_name.strip()[:100],
            comment=text,
            created_at=utcnow(),
        )
        job.reviews.append(review)
        db.commit()
        db.refresh(review)
        logger.info(f"{author_type.value} {user.id} reviewed job {job_id} on campaign {campaign_id}")
        return review

    @staticmethod
    def list_reviews(db: Session, campaign_id: str, job_id: str, influencer_id: Optional[str]) -> List[ReviewComment]:
        _, job = ReviewService._job(db, campaign_id, job_id, influencer_id)
        return list(job.reviews)

    @staticmethod
    def update(
        db: Session, campaign_id: str, job_id: str, review_id: str, influencer_id: str, comment: Optional[str], user
    ) -> ReviewComment:
        text = clean_comment(comment)
        _, job = ReviewService._job(db, campaign_id, job_id, influencer_id)
        review = ReviewService._review(job, review_id)
        if review.author_id != user.id:
            raise PermissionDeniedError("You can only edit your own reviews")

        review.comment = text
        review.updated_at = utcnow()
        db.commit()
        db.refresh(review)
        return review

    @staticmethod
    def delete(db: Session, campaign_id: str, job_id: str, review_id: str, influencer_id: Optional[str], user):
        campaign, job = ReviewService._job(db, campaign_id, job_id, influencer_id)
        review = ReviewService._review(job, review_id)
        if review.author_id != user.id and campaign.user_id != user.id:
            raise PermissionDeniedError("You are not authorized to delete this review")

        job.reviews.remove(review)
        db.commit()
        logger.info(f"Review {review_id} deleted by {user.id}")
