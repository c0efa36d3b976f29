from datetime import datetime
from typing import Any, Dict, List, Optional

from pydantic import EmailStr, Field, validator

from app.models.campaign import AcceptanceStatus, ApprovalStatus, AuthorType, CompletionStatus
from app.schemas.common import CamelModel, Pagination

CAMPAIGN_ROLES = ("Brand", "Business", "Person", "Movie", "Music", "Other")

CAMPAIGN_PLATFORMS = (
    "Instagram", "X", "TikTok", "Youtube", "Facebook",
    "Linkedin", "Threads", "Discord", "Snapchat",
)

FOLLOWERS_RANGES = ("", "1k-3k", "3k-10k", "10k-20k", "20k-50k", "50k & above")

POST_DURATIONS = ("", "1 day", "1 week", "2 weeks", "1 month")


def check_platforms(v):
    if not v:
        raise ValueError("At least one platform must be selected")
    invalid = [p for p in v if p not in CAMPAIGN_PLATFORMS]
    if invalid:
        raise ValueError(f"Invalid platforms: {', '.join(invalid)}")
    return v


class CampaignRequirements(CamelModel):
    """Fields shared by brand registration and campaign creation"""
    role: str
    platforms: List[str]
    brand_name: str = Field(..., min_length=1, max_length=100)
    brand_phone: str = Field(..., min_length=1)
    influencers_min: int = Field(..., ge=1)
    influencers_max: int = Field(..., ge=1)
    followers_range: str = ""
    location: str = Field(..., min_length=1, max_length=100)
    additional_locations: List[str] = []
    post_frequency: str = ""
    post_duration: str = ""

    avg_influencers: float = Field(0, ge=0)
    post_count: int = Field(0, ge=0)
    cost_per_influencer_per_post: float = Field(0, ge=0)
    total_base_cost: float = Field(0, ge=0)
    platform_fee: float = Field(0, ge=0)
    total_cost: float = Field(0, ge=0)

    @validator("role")
    def validate_role(cls, v):
        if v not in CAMPAIGN_ROLES:
            raise ValueError(f"Role must be one of: {', '.join(CAMPAIGN_ROLES)}")
        return v

    @validator("platforms")
    def validate_platforms(cls, v):
        return check_platforms(v)

    @validator("brand_name", "brand_phone", "location", "post_frequency")
    def strip_text(cls, v):
        return v.strip()

    @validator("additional_locations")
    def clean_locations(cls, v):
        return [loc.strip() for loc in v if loc and loc.strip()]

    @validator("followers_range")
    def validate_followers_range(cls, v):
        if v not in FOLLOWERS_RANGES:
            raise ValueError("Invalid followers range")
        return v

    @validator("post_duration")
    def validate_post_duration(cls, v):
        if v not in POST_DURATIONS:
            raise ValueError("Invalid post duration")
        return v

    @validator("influencers_max")
    def validate_influencer_range(cls, v, values):
        minimum = values.get("influencers_min")
        if minimum is not None and v < minimum:
            raise ValueError("Minimum influencers cannot be greater than maximum")
        return v


class CampaignCreate(CampaignRequirements):
    pass


class CampaignUpdate(CamelModel):
    role: Optional[str] = None
    platforms: Optional[List[str]] = None
    brand_name: Optional[str] = Field(None, min_length=1, max_length=100)
    email: Optional[EmailStr] = None
    brand_phone: Optional[str] = None
    influencers_min: Optional[int] = Field(None, ge=1)
    influencers_max: Optional[int] = Field(None, ge=1)
    followers_range: Optional[str] = None
    location: Optional[str] = Field(None, max_length=100)
    additional_locations: Optional[List[str]] = None
    post_frequency: Optional[str] = None
    post_duration: Optional[str] = None
    avg_influencers: Optional[float] = Field(None, ge=0)
    post_count: Optional[int] = Field(None, ge=0)
    cost_per_influencer_per_post: Optional[float] = Field(None, ge=0)
    total_base_cost: Optional[float] = Field(None, ge=0)
    platform_fee: Optional[float] = Field(None, ge=0)
    total_cost: Optional[float] = Field(None, ge=0)
    # Admin-only review outcome
    status: Optional[str] = None

    @validator("platforms")
    def validate_platforms(cls, v):
        if v is None:
            return v
        return check_platforms(v)

    @validator("status")
    def validate_status(cls, v):
        if v is not None and v not in ("pending", "approved", "rejected"):
            raise ValueError("Status must be pending, approved or rejected")
        return v

    @validator("influencers_max")
    def validate_influencer_range(cls, v, values):
        minimum = values.get("influencers_min")
        if v is not None and minimum is not None and v < minimum:
            raise ValueError("Minimum influencers cannot be greater than maximum")
        return v


class PaymentStatusUpdate(CamelModel):
    has_paid: bool


class AssignInfluencersRequest(CamelModel):
    influencer_ids: Optional[List[Any]] = None


class RespondRequest(CamelModel):
    status: Optional[str] = None
    message: Optional[str] = Field(None, max_length=1000)


class ReviewCommentOut(CamelModel):
    id: str
    author_type: AuthorType
    author_id: str
    author_name: str
    comment: str
    created_at: datetime
    updated_at: Optional[datetime] = None


class SubmittedJobOut(CamelModel):
    id: str
    platform: str
    description: str
    url: str
    metrics: Optional[Dict[str, Any]] = None
    submitted_at: datetime
    approval_status: Optional[ApprovalStatus] = None
    approval_updated_at: Optional[datetime] = None
    reviews: List[ReviewCommentOut] = []


class StashedDeliverableOut(CamelModel):
    id: str
    platform: str
    url: str
    description: str
    metrics: Optional[Dict[str, Any]] = None
    created_at: datetime


class AssignedInfluencerOut(CamelModel):
    influencer_id: str
    acceptance_status: AcceptanceStatus
    is_completed: CompletionStatus
    submitted_count: int = 0
    assigned_at: datetime
    responded_at: Optional[datetime] = None
    response_message: Optional[str] = None
    completed_at: Optional[datetime] = None
    submitted_jobs: List[SubmittedJobOut] = []
    stashed_deliverables: List[StashedDeliverableOut] = []


class CampaignOut(CamelModel):
    id: str
    user_id: str
    role: str
    platforms: List[str]
    brand_name: str
    email: str
    brand_phone: str
    influencers_min: int
    influencers_max: int
    followers_range: Optional[str] = ""
    location: str
    additional_locations: List[str] = []
    post_frequency: Optional[str] = ""
    post_duration: Optional[str] = ""
    avg_influencers: float = 0
    post_count: int = 0
    cost_per_influencer_per_post: float = 0
    total_base_cost: float = 0
    platform_fee: float = 0
    total_cost: float = 0
    status: str
    has_paid: bool
    is_validated: bool
    payment_reference: Optional[str] = None
    payment_date: Optional[datetime] = None
    payment_details: Optional[Dict[str, Any]] = None
    assigned_influencers: List[AssignedInfluencerOut] = []
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class AssignmentSummary(CamelModel):
    newly_assigned: int
    total_assigned: int
    campaign_minimum: int
    campaign_maximum: int
    minimum_met: bool


class AssignInfluencersResult(CamelModel):
    campaign: CampaignOut
    summary: AssignmentSummary


class UnassignInfluencersResult(CamelModel):
    campaign: CampaignOut
    removed: int
    total_assigned: int


class CampaignPage(CamelModel):
    campaigns: List[CampaignOut]
    pagination: Pagination


