from typing import Dict, Optional

from fastapi import APIRouter, Depends, Query, Request
from starlette.datastructures import UploadFile
from sqlalchemy.orm import Session
from app.api.deps import CurrentUser, get_current_user, get_notifier, require_admin, require_influencer
from app.core.exceptions import PermissionDeniedError
from app.core.rate_limiting import RATE_LIMITS, limiter
from app.db.session import get_db
from app.schemas.campaign import CampaignOut
from app.schemas.common import APIResponse
from app.schemas.influencer import (
    AssignedCampaignPage, BankDetailsData, BankDetailsOut, BankDetailsRequest, BankVerificationRequest,
    BulkStatusResult, BulkStatusUpdate, DeletedInfluencer, InfluencerCreated, InfluencerOut, InfluencerPage,
    InfluencerStats, InfluencerUpdate, StatusUpdate,
)
from app.services.campaign_service import CampaignService
from app.services.influencer_service import InfluencerService
from app.services.notifications.notifier import Notifier
from app.services.storage import CloudinaryUploader, UploadedFile, get_uploader

router = APIRouter()


def _bank_data(influencer) -> BankDetailsData:
    details = influencer.bank_details
    return BankDetailsData(
        bank_details=BankDetailsOut.model_validate(details) if details else None,
        has_bank_details=bool(influencer.has_bank_details),
    )


@router.get("/stats", response_model=APIResponse[InfluencerStats])
def influencer_stats(
    current_user: CurrentUser = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    return APIResponse(data=InfluencerService.stats(db))


@router.get("/all-influencers", response_model=APIResponse[InfluencerPage])
def list_influencers(
    page: int = Query(1, ge=1),
    limit: Optional[int] = Query(None, ge=1, le=100),
    status: Optional[str] = None,
    search: Optional[str] = None,
    current_user: CurrentUser = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    influencers, pagination = InfluencerService.list_influencers(db, page, limit, status=status, search=search)
    return APIResponse(
        data=InfluencerPage(
            influencers=[InfluencerOut.model_validate(i) for i in influencers],
            pagination=pagination,
        )
    )


@router.get("/bank-details", response_model=APIResponse[BankDetailsData])
def get_bank_details(
    influencer: CurrentUser = Depends(require_influencer),
    db: Session = Depends(get_db)
):
    record = InfluencerService.get_bank_details(db, influencer.id)
    return APIResponse(data=_bank_data(record))


@router.put("/bank-details", response_model=APIResponse[BankDetailsData])
def update_bank_details(
    payload: BankDetailsRequest,
    influencer: CurrentUser = Depends(require_influencer),
    db: Session = Depends(get_db)
):
    record = InfluencerService.update_bank_details(db, influencer.id, payload.bank_details)
    return APIResponse(message="Bank details updated successfully.", data=_bank_data(record))


@router.put("/bulk/status", response_model=APIResponse[BulkStatusResult])
def bulk_update_status(
    payload: BulkStatusUpdate,
    admin: CurrentUser = Depends(require_admin),
    db: Session = Depends(get_db)
):
    matched, modified = InfluencerService.bulk_set_status(db, payload.influencer_ids, payload.status)
    return APIResponse(
        message=f"{modified} influencers updated to {payload.status}",
        data=BulkStatusResult(matched_count=matched, modified_count=modified, updated_status=payload.status),
    )


@router.post("/createInfluencer", status_code=201, response_model=APIResponse[InfluencerCreated])
@limiter.limit(RATE_LIMITS["auth_register"])
async def create_influencer(
    request: Request,
    db: Session = Depends(get_db),
    notifier: Notifier = Depends(get_notifier),
    uploader: CloudinaryUploader = Depends(get_uploader)
):
    """
    Register an influencer from a multipart form.

    Text fields may carry JSON (``niches``, ``platforms``); proof
    screenshots arrive as file parts named after their platform.
    """
    form = await request.form()
    fields: Dict[str, str] = {}
    files: Dict[str, UploadedFile] = {}
    for key, value in form.multi_items():
        if isinstance(value, UploadFile):
            files[key] = UploadedFile(value.filename or key, value.content_type, await value.read())
        else:
            fields[key] = value

    influencer = await InfluencerService.create(db, notifier, uploader, fields, files)
    return APIResponse(
        message="Influencer registered successfully. Login details have been sent to your email.",
        data=InfluencerCreated.model_validate(influencer),
    )


@router.put("/verify-bank-details", response_model=APIResponse[BankDetailsData])
def verify_bank_details(
    payload: BankVerificationRequest,
    admin: CurrentUser = Depends(require_admin),
    db: Session = Depends(get_db)
):
    record = InfluencerService.verify_bank_details(db, payload.influencer_id, payload.is_verified)
    state = "verified" if payload.is_verified else "unverified"
    return APIResponse(message=f"Bank details {state} successfully.", data=_bank_data(record))


@router.patch("/{influencer_id}/status", response_model=APIResponse[InfluencerOut])
def update_status(
    influencer_id: str,
    payload: StatusUpdate,
    admin: CurrentUser = Depends(require_admin),
    db: Session = Depends(get_db),
    notifier: Notifier = Depends(get_notifier)
):
    influencer = InfluencerService.set_status(db, notifier, influencer_id, payload.status)
    return APIResponse(
        message=f"Influencer status updated to {payload.status}",
        data=InfluencerOut.model_validate(influencer),
    )


@router.get("/{influencer_id}/campaigns", response_model=APIResponse[AssignedCampaignPage])
def assigned_campaigns(
    influencer_id: str,
    page: int = Query(1, ge=1),
    limit: Optional[int] = Query(None, ge=1, le=100),
    status: Optional[str] = None,
    platform: Optional[str] = None,
    date_range: Optional[str] = Query(None, alias="dateRange"),
    current_user: CurrentUser = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Campaigns an influencer has been assigned to"""
    if not current_user.is_admin and current_user.id != influencer_id:
        raise PermissionDeniedError("Access denied. You can only view your own campaigns.")
    campaigns, pagination = CampaignService.list_for_influencer(
        db, influencer_id, page, limit, status=status, platform=platform, date_range=date_range
    )
    return APIResponse(
        data=AssignedCampaignPage(
            campaigns=[CampaignOut.model_validate(c) for c in campaigns],
            pagination=pagination,
        )
    )


@router.put("/{influencer_id}", response_model=APIResponse[InfluencerOut])
def update_influencer(
    influencer_id: str,
    updates: InfluencerUpdate,
    current_user: CurrentUser = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    influencer = InfluencerService.update(db, influencer_id, current_user.id, current_user.role, updates)
    return APIResponse(message="Influencer updated successfully", data=InfluencerOut.model_validate(influencer))


@router.delete("/{influencer_id}", response_model=APIResponse[DeletedInfluencer])
async def delete_influencer(
    influencer_id: str,
    admin: CurrentUser = Depends(require_admin),
    db: Session = Depends(get_db),
    uploader: CloudinaryUploader = Depends(get_uploader)
):
    deleted = await InfluencerService.delete(db, uploader, influencer_id)
    return APIResponse(message="Influencer deleted successfully", data=deleted)


@router.get("/{influencer_id}", response_model=APIResponse[InfluencerOut])
def get_influencer(
    influencer_id: str,
    db: Session = Depends(get_db)
):
    influencer = InfluencerService.get_influencer(db, influencer_id)
    return APIResponse(data=InfluencerOut.model_validate(influencer))
