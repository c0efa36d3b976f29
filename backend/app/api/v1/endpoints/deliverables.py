from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session
from app.api.deps import CurrentUser, get_current_user, get_notifier, require_influencer
from app.db.session import get_db
from app.models.campaign import CompletionStatus
from app.schemas.campaign import StashedDeliverableOut, SubmittedJobOut
from app.schemas.common import APIResponse
from app.schemas.deliverable import (
    DeliverableStatus, DeliverableSubmissionResult, DeliverableUpdateResult, DeliverablesRequest,
    JobApprovalRequest, StashDeleteResult, StashList,
)
from app.services.deliverable_service import DeliverableService
from app.services.notifications.notifier import Notifier

router = APIRouter()


def _stash_list(entries) -> StashList:
    return StashList(
        stashed_deliverables=[StashedDeliverableOut.model_validate(e) for e in entries],
        count=len(entries),
    )


@router.post("/{campaign_id}/deliverables", response_model=APIResponse[DeliverableSubmissionResult])
def submit_deliverables(
    campaign_id: str,
    payload: DeliverablesRequest,
    influencer: CurrentUser = Depends(require_influencer),
    db: Session = Depends(get_db),
    notifier: Notifier = Depends(get_notifier)
):
    """
    Submit deliverables for an accepted campaign.

    Partial batches are allowed; the campaign is complete for this
    influencer once the required number of posts has been submitted.
    """
    result = DeliverableService.submit(db, notifier, campaign_id, influencer.id, payload.deliverables)
    if result.is_completed == CompletionStatus.COMPLETED:
        message = (
            f"All {result.required_posts} deliverables submitted successfully. "
            "Campaign is now marked as complete."
        )
    else:
        message = (
            f"{result.submitted_jobs} deliverable(s) submitted. "
            f"{result.remaining_posts} of {result.required_posts} posts remaining."
        )
    return APIResponse(message=message, data=result)


@router.put("/{campaign_id}/deliverables", response_model=APIResponse[DeliverableUpdateResult])
def update_deliverables(
    campaign_id: str,
    payload: DeliverablesRequest,
    influencer: CurrentUser = Depends(require_influencer),
    db: Session = Depends(get_db)
):
    result = DeliverableService.update_submitted(db, campaign_id, influencer.id, payload.deliverables)
    return APIResponse(message="Deliverables updated successfully.", data=result)


@router.get("/{campaign_id}/deliverables/status", response_model=APIResponse[DeliverableStatus])
def deliverable_status(
    campaign_id: str,
    influencer: CurrentUser = Depends(require_influencer),
    db: Session = Depends(get_db)
):
    return APIResponse(data=DeliverableService.status(db, campaign_id, influencer.id))


@router.put("/{campaign_id}/jobs/{job_id}/approval", response_model=APIResponse[SubmittedJobOut])
def set_job_approval(
    campaign_id: str,
    job_id: str,
    payload: JobApprovalRequest,
    current_user: CurrentUser = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    job = DeliverableService.set_job_approval(
        db, campaign_id, job_id, payload.influencer_id, payload.status, current_user.id, current_user.role
    )
    return APIResponse(message=f"Job {payload.status}", data=SubmittedJobOut.model_validate(job))


@router.post("/{campaign_id}/stash", status_code=201, response_model=APIResponse[StashList])
def stash_deliverables(
    campaign_id: str,
    payload: DeliverablesRequest,
    influencer: CurrentUser = Depends(require_influencer),
    db: Session = Depends(get_db)
):
    """Save drafts without counting them as submitted"""
    created = DeliverableService.stash(db, campaign_id, influencer.id, payload.deliverables)
    return APIResponse(message="Deliverables draft saved successfully.", data=_stash_list(created))


@router.get("/{campaign_id}/stash", response_model=APIResponse[StashList])
def list_stash(
    campaign_id: str,
    influencer: CurrentUser = Depends(require_influencer),
    db: Session = Depends(get_db)
):
    return APIResponse(data=_stash_list(DeliverableService.list_stash(db, campaign_id, influencer.id)))


@router.delete("/{campaign_id}/stash", response_model=APIResponse[StashDeleteResult])
def clear_stash(
    campaign_id: str,
    influencer: CurrentUser = Depends(require_influencer),
    db: Session = Depends(get_db)
):
    deleted = DeliverableService.clear_stash(db, campaign_id, influencer.id)
    return APIResponse(message="Stashed deliverables deleted.", data=StashDeleteResult(deleted=deleted))


@router.get("/{campaign_id}/stash/{stash_id}", response_model=APIResponse[StashedDeliverableOut])
def get_stash(
    campaign_id: str,
    stash_id: str,
    influencer: CurrentUser = Depends(require_influencer),
    db: Session = Depends(get_db)
):
    entry = DeliverableService.get_stash(db, campaign_id, influencer.id, stash_id)
    return APIResponse(data=StashedDeliverableOut.model_validate(entry))


@router.delete("/{campaign_id}/stash/{stash_id}", response_model=APIResponse[StashDeleteResult])
def delete_stash(
    campaign_id: str,
    stash_id: str,
    influencer: CurrentUser = Depends(require_influencer),
    db: Session = Depends(get_db)
):
    DeliverableService.delete_stash(db, campaign_id, influencer.id, stash_id)
    return APIResponse(message="Stashed deliverable deleted.", data=StashDeleteResult(deleted=1))
