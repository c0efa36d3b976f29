"""
Deliverable submission, drafts (stash) and job approval for accepted
campaign assignments.

The required number of posts is the campaign's ``post_count`` or, when
that is zero, a count parsed from its free-text ``post_frequency``.
Submissions reserve their slots with an UPDATE guarded by
``submitted_count + n <= required`` so the total can never overshoot.
"""

import re
from typing import List, Optional, Sequence, Tuple

from sqlalchemy import case
from sqlalchemy.orm import Session
import logging

from app.core.exceptions import NotFoundError, ValidationError
from app.models import AssignedInfluencer, Campaign, Influencer, StashedDeliverable, SubmittedJob
from app.models.campaign import AcceptanceStatus, ApprovalStatus, CompletionStatus
from app.models.common import utcnow
from app.schemas.campaign import CampaignOut, SubmittedJobOut
from app.schemas.deliverable import (
    DeliverableIn,
    DeliverableStatus,
    DeliverableSubmissionResult,
    DeliverableUpdateResult,
)
from app.services.campaign_service import CampaignService
from app.services.common import ensure_valid_id
from app.services.notifications.notifier import Notifier

logger = logging.getLogger(__name__)

POST_COUNT_PATTERNS = (
    (re.compile(r"(?:=\s*)?(\d+)\s*posts?\s+(?:in\s+)?total", re.IGNORECASE), False),
    (re.compile(r"(\d+)\s*times?\s+per\s+week\s+for\s+(\d+)\s+weeks?", re.IGNORECASE), True),
    (re.compile(r"(\d+)\s*posts?\s+per\s+week", re.IGNORECASE), False),
    (re.compile(r"(\d+)\s*posts?\s+per\s+day", re.IGNORECASE), False),
    (re.compile(r"(\d+)\s*posts?", re.IGNORECASE), False),
)

URL_PATTERN = re.compile(r"^https?://.+", re.IGNORECASE)

NOT_ACCEPTED_MESSAGE = "Campaign not found, not assigned to you, or you haven't accepted this campaign."

APPROVAL_STATUSES = (ApprovalStatus.APPROVED.value, ApprovalStatus.REJECTED.value)


def extract_post_count(post_frequency: Optional[str]) -> int:
    """
    Read the number of posts out of a free-text posting frequency.

    "3 times per week for 4 weeks = 12 posts in total" -> 12
    "2 times per week for 3 weeks" -> 6
    Anything unparseable counts as a single post.
    """
    if not post_frequency:
        return 1
    for pattern, multiply in POST_COUNT_PATTERNS:
        match = pattern.search(post_frequency)
        if match:
            if multiply:
                return int(match.group(1)) * int(match.group(2))
            return int(match.group(1))
    logger.warning(f'Could not parse post count from: "{post_frequency}". Defaulting to 1.')
    return 1


def required_post_count(campaign: Campaign) -> int:
    return campaign.post_count or extract_post_count(campaign.post_frequency)


def check_deliverables(deliverables: Optional[Sequence[DeliverableIn]]) -> List[DeliverableIn]:
    if not deliverables:
        raise ValidationError("At least one deliverable is required.")
    for index, item in enumerate(deliverables, start=1):
        if not item.platform or not item.url or not item.description:
            raise ValidationError(
                f"Deliverable {index} is missing required fields (platform, url, description)."
            )
        if not URL_PATTERN.match(item.url):
            raise ValidationError(f"Invalid URL format in deliverable {index}.")
    return list(deliverables)


def _job(item: DeliverableIn, submitted_at) -> SubmittedJob:
    return SubmittedJob(
        platform=item.platform,
        url=item.url,
        description=item.description,
        metrics=item.metrics,
        submitted_at=submitted_at,
    )


class DeliverableService:
    @staticmethod
    def _assignment(
        db: Session, campaign_id: str, influencer_id: str, message: str, accepted: bool = True
    ) -> Tuple[Campaign, AssignedInfluencer]:
        ensure_valid_id(campaign_id, "campaign ID")
        campaign = db.query(Campaign).filter(Campaign.id == campaign_id).first()
        assignment = campaign.assignment_for(influencer_id) if campaign else None
        if assignment is None:
            raise NotFoundError(message)
        if accepted and assignment.acceptance_status != AcceptanceStatus.ACCEPTED:
            raise NotFoundError(message)
        return campaign, assignment

    @staticmethod
    def submit(
        db: Session,
        notifier: Notifier,
        campaign_id: str,
        influencer_id: str,
        deliverables: Optional[Sequence[DeliverableIn]],
    ) -> DeliverableSubmissionResult:
        """
        Append a batch of deliverables to an accepted assignment.

        A batch may be partial; the assignment moves to ``in-progress`` and
        becomes ``Completed`` once the cumulative count reaches the
        requirement. Batches that would exceed the requirement are rejected
        without touching the assignment.
        """
        ensure_valid_id(campaign_id, "campaign ID")
        batch = check_deliverables(deliverables)
        campaign, assignment = DeliverableService._assignment(db, campaign_id, influencer_id, NOT_ACCEPTED_MESSAGE)

        required = required_post_count(campaign)
        submitted = assignment.submitted_count
        if assignment.is_completed == CompletionStatus.COMPLETED or submitted >= required:
            raise ValidationError(
                f"You have already submitted all {required} required deliverables for this campaign.",
                data={"requiredPosts": required, "submittedPosts": submitted, "remainingPosts": 0},
            )
        remaining = required - submitted
        if len(batch) > remaining:
            raise ValidationError(
                f"This campaign requires {required} posts and {submitted} have been submitted. "
                f"You can submit at most {remaining} more.",
                data={"requiredPosts": required, "submittedPosts": submitted, "remainingPosts": remaining},
            )

        influencer = db.query(Influencer).filter(Influencer.id == influencer_id).first()
        if not influencer:
            raise NotFoundError("Influencer not found.")

        n = len(batch)
        now = utcnow()
        reaches_total = AssignedInfluencer.submitted_count + n >= required
        reserved = db.query(AssignedInfluencer).filter(
            AssignedInfluencer.id == assignment.id,
            AssignedInfluencer.acceptance_status == AcceptanceStatus.ACCEPTED,
            AssignedInfluencer.submitted_count + n <= required,
        ).update(
            {
                AssignedInfluencer.is_completed: case(
                    (reaches_total, CompletionStatus.COMPLETED.value),
                    else_=CompletionStatus.IN_PROGRESS.value,
                ),
                AssignedInfluencer.completed_at: case(
                    (reaches_total, now), else_=AssignedInfluencer.completed_at
                ),
                AssignedInfluencer.submitted_count: AssignedInfluencer.submitted_count + n,
            },
            synchronize_session=False,
        )
        if not reserved:
            db.rollback()
            raise ValidationError(
                f"This campaign requires {required} posts. Your submission would exceed the remaining count."
            )

        assignment.submitted_jobs.extend(_job(item, now) for item in batch)
        db.commit()
        db.refresh(campaign)
        db.refresh(assignment)

        total = assignment.submitted_count
        logger.info(
            f"Influencer {influencer_id} submitted {n} deliverable(s) for campaign {campaign_id}: {total}/{required}"
        )
        notifier.deliverables_submitted(campaign, influencer.name, total, required)

        return DeliverableSubmissionResult(
            campaign=CampaignOut.model_validate(campaign),
            submitted_jobs=n,
            total_submitted=total,
            required_posts=required,
            remaining_posts=max(required - total, 0),
            is_completed=assignment.is_completed,
            submitted_at=now,
        )

    @staticmethod
    def update_submitted(
        db: Session, campaign_id: str, influencer_id: str, deliverables: Optional[Sequence[DeliverableIn]]
    ) -> DeliverableUpdateResult:
        """Replace the jobs of a completed assignment with a full new batch"""
        ensure_valid_id(campaign_id, "campaign ID")
        batch = check_deliverables(deliverables)
        campaign, assignment = DeliverableService._assignment(
            db, campaign_id, influencer_id, "Campaign not found or you haven't completed deliverables yet."
        )
        if assignment.is_completed != CompletionStatus.COMPLETED:
            raise NotFoundError("Campaign not found or you haven't completed deliverables yet.")

        required = required_post_count(campaign)
        if len(batch) != required:
            raise ValidationError(
                f"This campaign requires exactly {required} posts. "
                f"You are trying to update with {len(batch)} deliverables.",
                data={"requiredPosts": required, "submittedPosts": len(batch)},
            )

        now = utcnow()
        assignment.submitted_jobs = [_job(item, now) for item in batch]
        assignment.submitted_count = len(batch)
        db.commit()
        db.refresh(campaign)

        logger.info(f"Influencer {influencer_id} replaced deliverables for campaign {campaign_id}")
        return DeliverableUpdateResult(
            campaign=CampaignOut.model_validate(campaign),
            updated_jobs=len(batch),
            required_posts=required,
            updated_at=now,
        )

    @staticmethod
    def status(db: Session, campaign_id: str, influencer_id: str) -> DeliverableStatus:
        campaign, assignment = DeliverableService._assignment(
            db, campaign_id, influencer_id, "Campaign not found or you're not assigned to it.", accepted=False
        )
        required = required_post_count(campaign)
        return DeliverableStatus(
            campaign_name=campaign.brand_name,
            platforms=campaign.platforms or [],
            acceptance_status=assignment.acceptance_status,
            is_completed=assignment.is_completed,
            completed_at=assignment.completed_at,
            submitted_jobs=[SubmittedJobOut.model_validate(job) for job in assignment.submitted_jobs],
            assigned_at=assignment.assigned_at,
            responded_at=assignment.responded_at,
            required_posts=required,
            submitted_posts=assignment.submitted_count,
            remaining_posts=max(required - assignment.submitted_count, 0),
        )

    @staticmethod
    def set_job_approval(
        db: Session,
        campaign_id: str,
        job_id: str,
        influencer_id: str,
        status: str,
        user_id: str,
        role: str,
    ) -> SubmittedJob:
        """Campaign owner (or an admin) approves or rejects one submitted job"""
        if status not in APPROVAL_STATUSES:
            raise ValidationError("Status must be 'approved' or 'rejected'")
        ensure_valid_id(job_id, "job ID")
        campaign = CampaignService.get_campaign(db, campaign_id)
        CampaignService.check_owner(campaign, user_id, role)

        assignment = campaign.assignment_for(influencer_id)
        if assignment is None:
            raise NotFoundError("Influencer is not assigned to this campaign")
        job = assignment.job_by_id(job_id)
        if job is None:
            raise NotFoundError("Job not found")

        job.approval_status = ApprovalStatus(status)
        job.approval_updated_at = utcnow()
        db.commit()
        db.refresh(job)
        logger.info(f"Job {job_id} on campaign {campaign_id} marked {status}")
        return job

    # Stash

    @staticmethod
    def _stash_assignment(db: Session, campaign_id: str, influencer_id: str) -> AssignedInfluencer:
        _, assignment = DeliverableService._assignment(db, campaign_id, influencer_id, NOT_ACCEPTED_MESSAGE)
        if assignment.is_completed == CompletionStatus.COMPLETED:
            raise ValidationError("This campaign is already completed. Drafts can no longer be changed.")
        return assignment

    @staticmethod
    def stash(
        db: Session, campaign_id: str, influencer_id: str, deliverables: Optional[Sequence[DeliverableIn]]
    ) -> List[StashedDeliverable]:
        """Save drafts; they are never counted toward the required posts"""
        ensure_valid_id(campaign_id, "campaign ID")
        batch = check_deliverables(deliverables)
        assignment = DeliverableService._stash_assignment(db, campaign_id, influencer_id)

        created = [
            StashedDeliverable(
                platform=item.platform,
                url=item.url,
                description=item.description,
                metrics=item.metrics,
            )
            for item in batch
        ]
        assignment.stashed_deliverables.extend(created)
        db.commit()
        for entry in created:
            db.refresh(entry)
        logger.info(f"Influencer {influencer_id} stashed {len(created)} draft(s) for campaign {campaign_id}")
        return created

    @staticmethod
    def list_stash(db: Session, campaign_id: str, influencer_id: str) -> List[StashedDeliverable]:
        return list(DeliverableService._stash_assignment(db, campaign_id, influencer_id).stashed_deliverables)

    @staticmethod
    def get_stash(db: Session, campaign_id: str, influencer_id: str, stash_id: str) -> StashedDeliverable:
        ensure_valid_id(stash_id, "stash ID")
        assignment = DeliverableService._stash_assignment(db, campaign_id, influencer_id)
        for entry in assignment.stashed_deliverables:
            if entry.id == stash_id:
                return entry
        raise NotFoundError("Stashed deliverable not found")

    @staticmethod
    def delete_stash(db: Session, campaign_id: str, influencer_id: str, stash_id: str):
        entry = DeliverableService.get_stash(db, campaign_id, influencer_id, stash_id)
        entry.assignment.stashed_deliverables.remove(entry)
        db.commit()
        logger.info(f"Deleted stashed deliverable {stash_id} from campaign {campaign_id}")

    @staticmethod
    def clear_stash(db: Session, campaign_id: str, influencer_id: str) -> int:
        assignment = DeliverableService._stash_assignment(db, campaign_id, influencer_id)
        count = len(assignment.stashed_deliverables)
        assignment.stashed_deliverables.clear()
        db.commit()
        logger.info(f"Cleared {count} stashed deliverable(s) from campaign {campaign_id}")
        return count
