from typing import List, Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session
from app.api.deps import (
    CurrentUser, get_current_user, get_notifier, require_admin, require_brand, require_influencer,
)
from app.db.session import get_db
from app.schemas.campaign import (
    AssignInfluencersRequest, AssignInfluencersResult, CampaignCreate, CampaignOut, CampaignPage,
    CampaignUpdate, PaymentStatusUpdate, RespondRequest, UnassignInfluencersResult,
)
from app.schemas.common import APIResponse
from app.services.campaign_service import CampaignService
from app.services.notifications.notifier import Notifier

router = APIRouter()


@router.post("", status_code=201, response_model=APIResponse[CampaignOut])
def create_campaign(
    campaign_data: CampaignCreate,
    brand: CurrentUser = Depends(require_brand),
    db: Session = Depends(get_db),
    notifier: Notifier = Depends(get_notifier)
):
    campaign = CampaignService.create(db, notifier, brand.id, brand.email, campaign_data)
    return APIResponse(message="Campaign created successfully", data=CampaignOut.model_validate(campaign))


@router.get("", response_model=APIResponse[CampaignPage])
def list_campaigns(
    page: int = Query(1, ge=1),
    limit: Optional[int] = Query(None, ge=1, le=100),
    role: Optional[str] = None,
    platforms: Optional[str] = None,
    location: Optional[str] = None,
    followers_range: Optional[str] = Query(None, alias="followersRange"),
    has_paid: Optional[str] = Query(None, alias="hasPaid"),
    admin: CurrentUser = Depends(require_admin),
    db: Session = Depends(get_db)
):
    campaigns, pagination = CampaignService.list_campaigns(
        db, page, limit, role=role, platforms=platforms, location=location,
        followers_range=followers_range, has_paid=has_paid,
    )
    return APIResponse(
        data=CampaignPage(campaigns=[CampaignOut.model_validate(c) for c in campaigns], pagination=pagination)
    )


@router.get("/mine", response_model=APIResponse[List[CampaignOut]])
def my_campaigns(
    brand: CurrentUser = Depends(require_brand),
    db: Session = Depends(get_db)
):
    """Campaigns owned by the calling brand"""
    campaigns = CampaignService.list_for_user(db, brand.id)
    return APIResponse(data=[CampaignOut.model_validate(c) for c in campaigns])


@router.get("/{campaign_id}", response_model=APIResponse[CampaignOut])
def get_campaign(
    campaign_id: str,
    current_user: CurrentUser = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    campaign = CampaignService.get_campaign(db, campaign_id)
    CampaignService.check_visible(campaign, current_user.id, current_user.role)
    return APIResponse(data=CampaignOut.model_validate(campaign))


@router.put("/{campaign_id}", response_model=APIResponse[CampaignOut])
def update_campaign(
    campaign_id: str,
    updates: CampaignUpdate,
    current_user: CurrentUser = Depends(get_current_user),
    db: Session = Depends(get_db),
    notifier: Notifier = Depends(get_notifier)
):
    campaign, _ = CampaignService.update(db, notifier, campaign_id, current_user.id, current_user.role, updates)
    return APIResponse(message="Campaign updated successfully", data=CampaignOut.model_validate(campaign))


@router.delete("/{campaign_id}", response_model=APIResponse[CampaignOut])
def delete_campaign(
    campaign_id: str,
    current_user: CurrentUser = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    deleted = CampaignService.delete(db, campaign_id, current_user.id, current_user.role)
    return APIResponse(message="Campaign deleted successfully", data=deleted)


@router.put("/{campaign_id}/payment", response_model=APIResponse[CampaignOut])
def update_payment_status(
    campaign_id: str,
    payload: PaymentStatusUpdate,
    admin: CurrentUser = Depends(require_admin),
    db: Session = Depends(get_db),
    notifier: Notifier = Depends(get_notifier)
):
    campaign = CampaignService.set_payment_status(db, notifier, campaign_id, payload.has_paid)
    return APIResponse(message="Payment status updated successfully", data=CampaignOut.model_validate(campaign))


@router.post("/{campaign_id}/assign-influencers", response_model=APIResponse[AssignInfluencersResult])
def assign_influencers(
    campaign_id: str,
    payload: AssignInfluencersRequest,
    admin: CurrentUser = Depends(require_admin),
    db: Session = Depends(get_db),
    notifier: Notifier = Depends(get_notifier)
):
    """
    Assign influencers to a campaign.

    Already-assigned ids are ignored; the request fails if the new total
    would exceed the campaign's maximum.
    """
    campaign, summary = CampaignService.assign_influencers(db, notifier, campaign_id, payload.influencer_ids)
    return APIResponse(
        message=f"Successfully assigned {summary.newly_assigned} new influencer(s) to campaign",
        data=AssignInfluencersResult(campaign=CampaignOut.model_validate(campaign), summary=summary),
    )


@router.post("/{campaign_id}/unassign-influencers", response_model=APIResponse[UnassignInfluencersResult])
def unassign_influencers(
    campaign_id: str,
    payload: AssignInfluencersRequest,
    admin: CurrentUser = Depends(require_admin),
    db: Session = Depends(get_db),
    notifier: Notifier = Depends(get_notifier)
):
    campaign, removed = CampaignService.unassign_influencers(db, notifier, campaign_id, payload.influencer_ids)
    return APIResponse(
        message=f"Successfully unassigned {removed} influencer(s) from campaign",
        data=UnassignInfluencersResult(
            campaign=CampaignOut.model_validate(campaign),
            removed=removed,
            total_assigned=len(campaign.assigned_influencers),
        ),
    )


@router.patch("/{campaign_id}/respond", response_model=APIResponse[CampaignOut])
def respond_to_campaign(
    campaign_id: str,
    payload: RespondRequest,
    influencer: CurrentUser = Depends(require_influencer),
    db: Session = Depends(get_db),
    notifier: Notifier = Depends(get_notifier)
):
    campaign = CampaignService.respond(db, notifier, campaign_id, influencer.id, payload.status, payload.message)
    return APIResponse(
        message=f"Campaign {payload.status} successfully",
        data=CampaignOut.model_validate(campaign),
    )
