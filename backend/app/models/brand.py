from sqlalchemy import Boolean, Column, DateTime, Float, Integer, JSON, String
from sqlalchemy.sql import func

from app.db.session import Base
from app.models.common import generate_uuid

class Brand(Base):
    __tablename__ = "brands"

    id = Column(String(36), primary_key=True, default=generate_uuid)
    role = Column(String, nullable=False)  # Brand, Business, Person, Movie, Music, Other
    platforms = Column(JSON, nullable=False, default=list)
    brand_name = Column(String(100), nullable=False, index=True)
    email = Column(String, unique=True, nullable=False, index=True)
    brand_phone = Column(String, nullable=False)

    # Campaign requirements captured at registration
    influencers_min = Column(Integer, nullable=False)
    influencers_max = Column(Integer, nullable=False)
    followers_range = Column(String, default="")
    location = Column(String(100), nullable=False)
    additional_locations = Column(JSON, default=list)
    post_frequency = Column(String, default="")
    post_duration = Column(String, default="")

    # Pricing (computed by the frontend)
    avg_influencers = Column(Float, default=0)
    post_count = Column(Integer, default=0)
    cost_per_influencer_per_post = Column(Float, default=0)
    total_base_cost = Column(Float, default=0)
    platform_fee = Column(Float, default=0)
    total_cost = Column(Float, default=0)

    hashed_password = Column(String, nullable=False)
    has_paid = Column(Boolean, default=False, nullable=False)
    is_validated = Column(Boolean, default=False, nullable=False)
    password_reset_token = Column(String, index=True)
    password_reset_expires = Column(DateTime)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())
