import re
from datetime import datetime
from typing import Any, Dict, List, Optional

from pydantic import EmailStr, Field, validator

from app.models.influencer import INFLUENCER_STATUSES
from app.schemas.campaign import CampaignOut
from app.schemas.common import CamelModel, CountBucket, Pagination

INFLUENCER_NICHES = (
    "Fashion and Lifestyle", "Lifestyle", "Tech", "Food", "Travel",
    "Fitness", "Beauty", "Gaming", "Music", "Art",
)

NIGERIAN_BANKS = (
    "Access Bank", "Citibank Nigeria", "Ecobank Nigeria", "Fidelity Bank",
    "First Bank of Nigeria", "First City Monument Bank", "Guaranty Trust Bank",
    "Heritage Bank", "Keystone Bank", "Polaris Bank", "Providus Bank",
    "Stanbic IBTC Bank", "Standard Chartered Bank", "Sterling Bank",
    "Union Bank of Nigeria", "United Bank for Africa", "Unity Bank",
    "Wema Bank", "Zenith Bank", "Jaiz Bank", "SunTrust Bank",
    "Titan Trust Bank", "VFD Microfinance Bank", "Moniepoint Microfinance Bank",
    "Opay", "Kuda Bank", "Rubies Bank", "GoMoney", "V Bank",
)


def check_status(v):
    if v not in INFLUENCER_STATUSES:
        raise ValueError("Invalid status. Must be: pending, approved, or rejected")
    return v


class PlatformStats(CamelModel):
    followers: int = Field(..., ge=0)
    url: str = Field(..., pattern=r"^https?://.+")
    impressions: int = Field(..., ge=0)
    proof_url: Optional[str] = None


class InfluencerUpdate(CamelModel):
    name: Optional[str] = Field(None, min_length=1, max_length=100)
    phone: Optional[str] = None
    whatsapp: Optional[str] = None
    location: Optional[str] = Field(None, max_length=100)
    niches: Optional[List[str]] = None
    audience_location: Optional[str] = None
    male_percentage: Optional[float] = Field(None, ge=0, le=100)
    female_percentage: Optional[float] = Field(None, ge=0, le=100)
    platforms: Optional[Dict[str, PlatformStats]] = None

    @validator("niches")
    def validate_niches(cls, v):
        if v is None:
            return v
        if not v:
            raise ValueError("At least one niche must be selected")
        invalid = [n for n in v if n not in INFLUENCER_NICHES]
        if invalid:
            raise ValueError(f"Invalid niche selected: {', '.join(invalid)}")
        return v


class StatusUpdate(CamelModel):
    status: str

    @validator("status")
    def validate_status(cls, v):
        return check_status(v)


class BulkStatusUpdate(CamelModel):
    influencer_ids: List[str] = Field(..., min_length=1)
    status: str

    @validator("status")
    def validate_status(cls, v):
        return check_status(v)


class BankDetailsIn(CamelModel):
    bank_name: str
    account_number: str
    account_name: str = Field(..., min_length=1)

    @validator("account_number")
    def validate_account_number(cls, v):
        if not re.fullmatch(r"\d{10}", v):
            raise ValueError("Account number must be exactly 10 digits.")
        return v

    @validator("bank_name")
    def validate_bank(cls, v):
        if v not in NIGERIAN_BANKS:
            raise ValueError("Please select a valid Nigerian bank.")
        return v

    @validator("account_name")
    def strip_account_name(cls, v):
        return v.strip()


class BankDetailsRequest(CamelModel):
    bank_details: BankDetailsIn


class BankVerificationRequest(CamelModel):
    influencer_id: str
    is_verified: bool


class BankDetailsOut(CamelModel):
    bank_name: str
    account_number: str
    account_name: str
    is_verified: bool = False


class BankDetailsData(CamelModel):
    bank_details: Optional[BankDetailsOut] = None
    has_bank_details: bool = False


class InfluencerOut(CamelModel):
    id: str
    name: str
    email: str
    phone: str
    whatsapp: str
    location: str
    niches: List[str] = []
    audience_location: Optional[str] = None
    male_percentage: float = 0
    female_percentage: float = 0
    audience_proof_url: Optional[str] = None
    platforms: Dict[str, Any] = {}
    follower_fee: float = 0
    impression_fee: float = 0
    location_fee: float = 0
    niche_fee: float = 0
    earnings_per_post: float = 0
    earnings_per_post_naira: float = 0
    max_monthly_earnings: float = 0
    max_monthly_earnings_naira: float = 0
    followers_count: int = 0
    status: str
    email_sent: bool = False
    is_validated: bool = False
    has_bank_details: bool = False
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class InfluencerCreated(CamelModel):
    id: str
    name: str
    email: str
    status: str


class InfluencerPage(CamelModel):
    influencers: List[InfluencerOut]
    pagination: Pagination


class BulkStatusResult(CamelModel):
    matched_count: int
    modified_count: int
    updated_status: str


class DeletedInfluencer(CamelModel):
    id: str
    name: str
    email: str
    status: str


class InfluencerOverview(CamelModel):
    total_influencers: int
    pending_influencers: int
    approved_influencers: int
    rejected_influencers: int
    recent_influencers: int


class EarningsOverview(CamelModel):
    avg_earnings_per_post: float = 0
    max_earnings_per_post: float = 0
    min_earnings_per_post: float = 0
    avg_max_monthly_earnings: float = 0


class InfluencerStats(CamelModel):
    overview: InfluencerOverview
    platform_distribution: List[CountBucket]
    top_locations: List[CountBucket]
    top_niches: List[CountBucket]
    earnings_overview: EarningsOverview


class AssignedCampaignPage(CamelModel):
    campaigns: List[CampaignOut]
    pagination: Pagination
