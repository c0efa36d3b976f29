from datetime import datetime
from typing import Any, Dict, List, Optional

from pydantic import Field

from app.models.campaign import AcceptanceStatus, CompletionStatus
from app.schemas.campaign import CampaignOut, StashedDeliverableOut, SubmittedJobOut
from app.schemas.common import CamelModel


class DeliverableIn(CamelModel):
    """
    One deliverable as sent by the client. Fields are checked by the
    deliverable service so errors can name the item's position.
    """
    platform: Optional[str] = None
    url: Optional[str] = None
    description: Optional[str] = None
    metrics: Optional[Dict[str, Any]] = None


class DeliverablesRequest(CamelModel):
    deliverables: Optional[List[DeliverableIn]] = None


class JobApprovalRequest(CamelModel):
    influencer_id: str
    status: str = Field(..., description="approved or rejected")


class DeliverableSubmissionResult(CamelModel):
    campaign: CampaignOut
    submitted_jobs: int
    total_submitted: int
    required_posts: int
    remaining_posts: int
    is_completed: CompletionStatus
    submitted_at: datetime


class DeliverableUpdateResult(CamelModel):
    campaign: CampaignOut
    updated_jobs: int
    required_posts: int
    updated_at: datetime


class DeliverableStatus(CamelModel):
    campaign_name: str
    platforms: List[str]
    acceptance_status: AcceptanceStatus
    is_completed: CompletionStatus
    completed_at: Optional[datetime] = None
    submitted_jobs: List[SubmittedJobOut]
    assigned_at: datetime
    responded_at: Optional[datetime] = None
    required_posts: int
    submitted_posts: int
    remaining_posts: int


class StashList(CamelModel):
    stashed_deliverables: List[StashedDeliverableOut]
    count: int


class StashDeleteResult(CamelModel):
    deleted: int
