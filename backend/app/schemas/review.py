from typing import List, Optional

from app.schemas.campaign import ReviewCommentOut
from app.schemas.common import CamelModel


class ReviewCreate(CamelModel):
    comment: Optional[str] = None
    influencer_id: str


class ReviewUpdate(CamelModel):
    comment: Optional[str] = None
    influencer_id: str


class ReviewData(CamelModel):
    review: ReviewCommentOut


class ReviewList(CamelModel):
    reviews: List[ReviewCommentOut]
