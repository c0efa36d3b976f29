from sqlalchemy import Boolean, Column, DateTime, Float, Integer, JSON, String, Text
from sqlalchemy.sql import func

from app.db.session import Base
from app.models.common import generate_uuid

INFLUENCER_STATUSES = ("pending", "approved", "rejected")

SOCIAL_PLATFORMS = (
    "instagram", "twitter", "tiktok", "youtube", "facebook",
    "linkedin", "threads", "discord", "snapchat",
)

class Influencer(Base):
    __tablename__ = "influencers"

    id = Column(String(36), primary_key=True, default=generate_uuid)
    name = Column(String(100), nullable=False)
    email = Column(String, unique=True, nullable=False, index=True)
    phone = Column(String, nullable=False)
    whatsapp = Column(String, nullable=False)
    hashed_password = Column(String, nullable=False)
    location = Column(String(100), nullable=False, index=True)
    niches = Column(JSON, nullable=False, default=list)

    # Audience
    audience_location = Column(Text)
    male_percentage = Column(Float, default=0)
    female_percentage = Column(Float, default=0)
    audience_proof_url = Column(String)

    # {"instagram": {"followers": 1200, "url": "...", "impressions": 800, "proofUrl": "..."}}
    platforms = Column(JSON, default=dict)

    # Earnings (computed by the frontend)
    follower_fee = Column(Float, default=0)
    impression_fee = Column(Float, default=0)
    location_fee = Column(Float, default=0)
    niche_fee = Column(Float, default=0)
    earnings_per_post = Column(Float, default=0)
    earnings_per_post_naira = Column(Float, default=0)
    max_monthly_earnings = Column(Float, default=0)
    max_monthly_earnings_naira = Column(Float, default=0)
    followers_count = Column(Integer, default=0)

    status = Column(String, default="pending", nullable=False, index=True)
    email_sent = Column(Boolean, default=False, nullable=False)
    is_validated = Column(Boolean, default=False, nullable=False)

    # {"bank_name": ..., "account_number": ..., "account_name": ..., "is_verified": bool}
    bank_details = Column(JSON)
    has_bank_details = Column(Boolean, default=False, nullable=False)

    password_reset_token = Column(String, index=True)
    password_reset_expires = Column(DateTime)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())
