"""
Campaign and the records it owns.

A campaign owns its assignments; an assignment owns its submitted jobs and
stashed drafts; a job owns its review comments. Children are deleted with
their parent.
"""

import enum

from sqlalchemy import (
    Boolean, Column, DateTime, Enum as SQLEnum, Float, ForeignKey, Integer, JSON,
    String, Text, UniqueConstraint,
)
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from app.db.session import Base
from app.models.common import generate_uuid, utcnow


class AcceptanceStatus(str, enum.Enum):
    """Influencer's response to an assignment"""
    PENDING = "pending"
    ACCEPTED = "accepted"
    DECLINED = "declined"


class CompletionStatus(str, enum.Enum):
    """Delivery progress of an accepted assignment"""
    PENDING = "pending"
    IN_PROGRESS = "in-progress"
    COMPLETED = "Completed"


class ApprovalStatus(str, enum.Enum):
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"


class AuthorType(str, enum.Enum):
    BRAND = "brand"
    INFLUENCER = "influencer"


def _enum_column(enum_cls, **kwargs):
    return Column(
        SQLEnum(
            enum_cls,
            values_callable=lambda members: [m.value for m in members],
            native_enum=False,
            validate_strings=True,
            length=32,
        ),
        **kwargs,
    )


CAMPAIGN_STATUSES = ("pending", "approved", "rejected")


class Campaign(Base):
    __tablename__ = "campaigns"

    id = Column(String(36), primary_key=True, default=generate_uuid)
    # Owning brand; not a foreign key, ownership is checked by the services
    user_id = Column(String(36), nullable=False, index=True)

    role = Column(String, nullable=False)
    platforms = Column(JSON, nullable=False, default=list)
    brand_name = Column(String(100), nullable=False)
    email = Column(String, nullable=False, index=True)
    brand_phone = Column(String, nullable=False)

    influencers_min = Column(Integer, nullable=False)
    influencers_max = Column(Integer, nullable=False)
    followers_range = Column(String, default="")
    location = Column(String(100), nullable=False)
    additional_locations = Column(JSON, default=list)
    post_frequency = Column(String, default="")
    post_duration = Column(String, default="")

    avg_influencers = Column(Float, default=0)
    post_count = Column(Integer, default=0)
    cost_per_influencer_per_post = Column(Float, default=0)
    total_base_cost = Column(Float, default=0)
    platform_fee = Column(Float, default=0)
    total_cost = Column(Float, default=0)

    status = Column(String, default="pending", nullable=False)
    has_paid = Column(Boolean, default=False, nullable=False)
    is_validated = Column(Boolean, default=False, nullable=False)

    payment_reference = Column(String)
    payment_date = Column(DateTime)
    payment_details = Column(JSON)

    # Mirrors len(assigned_influencers); the capacity guard updates it atomically
    assigned_count = Column(Integer, default=0, nullable=False)

    created_at = Column(DateTime(timezone=True), server_default=func.now(), index=True)
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    assigned_influencers = relationship(
        "AssignedInfluencer",
        back_populates="campaign",
        cascade="all, delete-orphan",
        order_by="AssignedInfluencer.assigned_at",
    )

    def assignment_for(self, influencer_id: str):
        for assignment in self.assigned_influencers:
            if assignment.influencer_id == influencer_id:
                return assignment
        return None


class AssignedInfluencer(Base):
    __tablename__ = "assigned_influencers"
    __table_args__ = (
        UniqueConstraint("campaign_id", "influencer_id", name="uq_campaign_influencer"),
    )

    id = Column(String(36), primary_key=True, default=generate_uuid)
    campaign_id = Column(String(36), ForeignKey("campaigns.id", ondelete="CASCADE"), nullable=False, index=True)
    influencer_id = Column(String(36), nullable=False, index=True)

    acceptance_status = _enum_column(AcceptanceStatus, default=AcceptanceStatus.PENDING, nullable=False)
    is_completed = _enum_column(CompletionStatus, default=CompletionStatus.PENDING, nullable=False)
    submitted_count = Column(Integer, default=0, nullable=False)

    assigned_at = Column(DateTime, default=utcnow, nullable=False)
    responded_at = Column(DateTime)
    response_message = Column(Text)
    completed_at = Column(DateTime)

    campaign = relationship("Campaign", back_populates="assigned_influencers")
    submitted_jobs = relationship(
        "SubmittedJob",
        back_populates="assignment",
        cascade="all, delete-orphan",
        order_by="SubmittedJob.submitted_at",
    )
    stashed_deliverables = relationship(
        "StashedDeliverable",
        back_populates="assignment",
        cascade="all, delete-orphan",
        order_by="StashedDeliverable.created_at",
    )

    def job_by_id(self, job_id: str):
        for job in self.submitted_jobs:
            if job.id == job_id:
                return job
        return None


class SubmittedJob(Base):
    __tablename__ = "submitted_jobs"

    id = Column(String(36), primary_key=True, default=generate_uuid)
    assignment_id = Column(String(36), ForeignKey("assigned_influencers.id", ondelete="CASCADE"), nullable=False, index=True)
    platform = Column(String, nullable=False)
    description = Column(Text, nullable=False)
    url = Column(String, nullable=False)
    metrics = Column(JSON)
    submitted_at = Column(DateTime, default=utcnow, nullable=False)
    approval_status = _enum_column(ApprovalStatus, nullable=True)
    approval_updated_at = Column(DateTime)

    assignment = relationship("AssignedInfluencer", back_populates="submitted_jobs")
    reviews = relationship(
        "ReviewComment",
        back_populates="job",
        cascade="all, delete-orphan",
        order_by="ReviewComment.created_at",
    )


class StashedDeliverable(Base):
    __tablename__ = "stashed_deliverables"

    id = Column(String(36), primary_key=True, default=generate_uuid)
    assignment_id = Column(String(36), ForeignKey("assigned_influencers.id", ondelete="CASCADE"), nullable=False, index=True)
    platform = Column(String, nullable=False)
    url = Column(String, nullable=False)
    description = Column(Text, nullable=False)
    metrics = Column(JSON)
    created_at = Column(DateTime, default=utcnow, nullable=False)

    assignment = relationship("AssignedInfluencer", back_populates="stashed_deliverables")


class ReviewComment(Base):
    __tablename__ = "review_comments"

    id = Column(String(36), primary_key=True, default=generate_uuid)
    job_id = Column(String(36), ForeignKey("submitted_jobs.id", ondelete="CASCADE"), nullable=False, index=True)
    author_type = _enum_column(AuthorType, nullable=False)
    author_id = Column(String(36), nullable=False)
    author_name = Column(String(100), nullable=False)
    comment = Column(Text, nullable=False)
    created_at = Column(DateTime, default=utcnow, nullable=False)
    updated_at = Column(DateTime)

    job = relationship("SubmittedJob", back_populates="reviews")
