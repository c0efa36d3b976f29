from datetime import datetime
from typing import List, Optional

from pydantic import EmailStr, Field, validator

from app.schemas.campaign import CampaignRequirements, check_platforms
from app.schemas.common import CamelModel, CountBucket, Pagination


class BrandRegister(CampaignRequirements):
    email: EmailStr

    @validator("email")
    def normalize_email(cls, v):
        return str(v).lower()


class BrandUpdate(CamelModel):
    brand_name: Optional[str] = Field(None, min_length=1, max_length=100)
    brand_phone: Optional[str] = None
    platforms: Optional[List[str]] = None
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

    @validator("platforms")
    def validate_platforms(cls, v):
        if v is None:
            return v
        return check_platforms(v)

    @validator("influencers_max")
    def validate_influencer_range(cls, v, values):
        minimum = values.get("influencers_min")
        if v is not None and minimum is not None and v < minimum:
            raise ValueError("Minimum influencers cannot be greater than maximum")
        return v


class ValidationStatusUpdate(CamelModel):
    is_validated: bool


class BrandOut(CamelModel):
    id: str
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
    has_paid: bool
    is_validated: bool
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class BrandPage(CamelModel):
    brands: List[BrandOut]
    pagination: Pagination


class DeletedBrand(CamelModel):
    id: str
    brand_name: str
    email: str


class BrandOverview(CamelModel):
    total_brands: int
    paid_brands: int
    validated_brands: int
    recent_brands: int


class BrandStats(CamelModel):
    overview: BrandOverview
    platform_distribution: List[CountBucket]
    top_locations: List[CountBucket]
