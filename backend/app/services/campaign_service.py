"""
Campaign lifecycle and influencer assignment.

Assignment capacity and assignment responses are enforced with guarded
UPDATE statements: the WHERE clause carries the precondition and the row
count tells whether it still held when the write happened.
"""

from datetime import timedelta
from typing import List, Optional, Tuple

from sqlalchemy import case
from sqlalchemy.orm import Session
import logging

from app.core.exceptions import NotFoundError, PermissionDeniedError, ValidationError
from app.models import AssignedInfluencer, Brand, Campaign, Influencer
from app.models.campaign import AcceptanceStatus
from app.models.common import is_valid_id, utcnow
from app.schemas.campaign import AssignmentSummary, CampaignCreate, CampaignOut, CampaignUpdate
from app.schemas.common import Pagination
from app.services.brand_service import json_list_contains_any
from app.services.common import ensure_valid_id, paginate, parse_bool
from app.services.notifications.notifier import Notifier

logger = logging.getLogger(__name__)

DATE_RANGES = {
    "week": timedelta(days=7),
    "month": timedelta(days=30),
    "3months": timedelta(days=90),
}

RESPONSE_STATUSES = (AcceptanceStatus.ACCEPTED.value, AcceptanceStatus.DECLINED.value)


def capacity_message(campaign: Campaign, assigned: int) -> str:
    return (
        f"Cannot assign more influencers. Campaign limit is {campaign.influencers_max}, "
        f"currently {assigned} assigned"
    )


class CampaignService:
    @staticmethod
    def get_campaign(db: Session, campaign_id: str) -> Campaign:
        ensure_valid_id(campaign_id, "campaign ID")
        campaign = db.query(Campaign).filter(Campaign.id == campaign_id).first()
        if not campaign:
            raise NotFoundError("Campaign not found")
        return campaign

    @staticmethod
    def check_owner(campaign: Campaign, user_id: str, role: str):
        if role != "admin" and campaign.user_id != user_id:
            raise PermissionDeniedError("You do not have access to this campaign")

    @staticmethod
    def check_visible(campaign: Campaign, user_id: str, role: str):
        """Admins, the owning brand and assigned influencers may read a campaign"""
        if role == "influencer" and campaign.assignment_for(user_id) is not None:
            return
        CampaignService.check_owner(campaign, user_id, role)

    @staticmethod
    def create(
        db: Session, notifier: Notifier, user_id: str, email: Optional[str], data: CampaignCreate
    ) -> Campaign:
        if not email:
            brand = db.query(Brand).filter(Brand.id == user_id).first()
            if not brand:
                raise NotFoundError("User not found in database")
            email = brand.email

        campaign = Campaign(
            user_id=user_id,
            email=email.lower(),
            has_paid=False,
            is_validated=False,
            **data.model_dump(),
        )
        db.add(campaign)
        db.commit()
        db.refresh(campaign)

        logger.info(f"Campaign {campaign.id} created by {user_id}")
        notifier.campaign_created(campaign)
        return campaign

    @staticmethod
    def list_campaigns(
        db: Session,
        page: int = 1,
        limit: int = None,
        role: Optional[str] = None,
        platforms: Optional[str] = None,
        location: Optional[str] = None,
        followers_range: Optional[str] = None,
        has_paid: Optional[str] = None,
    ) -> Tuple[List[Campaign], Pagination]:
        query = db.query(Campaign)
        if role:
            query = query.filter(Campaign.role == role)
        if platforms:
            query = query.filter(json_list_contains_any(Campaign.platforms, platforms.split(",")))
        if location:
            query = query.filter(Campaign.location.ilike(f"%{location}%"))
        if followers_range:
            query = query.filter(Campaign.followers_range == followers_range)
        if has_paid is not None:
            query = query.filter(Campaign.has_paid == parse_bool(has_paid))
        return paginate(query.order_by(Campaign.created_at.desc()), page, limit)

    @staticmethod
    def list_for_user(db: Session, user_id: str) -> List[Campaign]:
        return db.query(Campaign).filter(Campaign.user_id == user_id).order_by(Campaign.created_at.desc()).all()

    @staticmethod
    def list_for_influencer(
        db: Session,
        influencer_id: str,
        page: int = 1,
        limit: int = None,
        status: Optional[str] = None,
        platform: Optional[str] = None,
        date_range: Optional[str] = None,
    ) -> Tuple[List[Campaign], Pagination]:
        ensure_valid_id(influencer_id, "influencer ID")
        query = db.query(Campaign).join(AssignedInfluencer).filter(
            AssignedInfluencer.influencer_id == influencer_id
        )
        if status:
            query = query.filter(Campaign.status == status)
        if platform:
            query = query.filter(json_list_contains_any(Campaign.platforms, platform.split(",")))
        if date_range in DATE_RANGES:
            query = query.filter(Campaign.created_at >= utcnow() - DATE_RANGES[date_range])
        return paginate(query.order_by(Campaign.created_at.desc()), page, limit)

    @staticmethod
    def update(
        db: Session, notifier: Notifier, campaign_id: str, user_id: str, role: str, data: CampaignUpdate
    ) -> Tuple[Campaign, List[str]]:
        """
        Apply an edit and send the campaign back to review.

        Only admins may set ``status``; any other edit resets it to pending.
        Returns the campaign and the names of fields whose value changed.
        """
        campaign = CampaignService.get_campaign(db, campaign_id)
        CampaignService.check_owner(campaign, user_id, role)

        updates = data.model_dump(exclude_unset=True)
        new_status = updates.pop("status", None)
        if new_status is not None and role != "admin":
            raise PermissionDeniedError("Only admins can change campaign status")

        minimum = updates.get("influencers_min") or campaign.influencers_min
        maximum = updates.get("influencers_max") or campaign.influencers_max
        if minimum > maximum:
            raise ValidationError("Minimum influencers cannot be greater than maximum")
        if maximum < campaign.assigned_count:
            raise ValidationError(
                f"Maximum influencers cannot be lower than the {campaign.assigned_count} already assigned"
            )

        changed = [field for field, value in updates.items() if value is not None and getattr(campaign, field) != value]
        old_status = campaign.status
        for field, value in updates.items():
            if value is not None:
                setattr(campaign, field, value)
        campaign.status = new_status or "pending"
        db.commit()
        db.refresh(campaign)

        if new_status in ("approved", "rejected") and new_status != old_status:
            notifier.campaign_status_changed(campaign, new_status)
        elif changed and new_status is None:
            notifier.campaign_updated(campaign, changed)
        return campaign, changed

    @staticmethod
    def delete(db: Session, campaign_id: str, user_id: str, role: str) -> CampaignOut:
        campaign = CampaignService.get_campaign(db, campaign_id)
        CampaignService.check_owner(campaign, user_id, role)
        deleted = CampaignOut.model_validate(campaign)
        db.delete(campaign)
        db.commit()
        logger.info(f"Campaign {campaign_id} deleted by {role} {user_id}")
        return deleted

    @staticmethod
    def set_payment_status(db: Session, notifier: Notifier, campaign_id: str, has_paid: bool) -> Campaign:
        campaign = CampaignService.get_campaign(db, campaign_id)
        campaign.has_paid = has_paid
        db.commit()
        db.refresh(campaign)
        if has_paid:
            notifier.payment_confirmed(campaign)
        return campaign

    @staticmethod
    def assign_influencers(
        db: Session, notifier: Notifier, campaign_id: str, influencer_ids
    ) -> Tuple[Campaign, AssignmentSummary]:
        """
        Assign new influencers to a campaign.

        Ids already assigned are skipped. The capacity check and the
        reservation of the new slots happen in one UPDATE guarded by
        ``assigned_count + n <= influencers_max``, so concurrent calls cannot
        push a campaign over its limit. The first assignment approves the
        campaign.
        """
        ensure_valid_id(campaign_id, "campaign ID")
        if not isinstance(influencer_ids, list) or not influencer_ids:
            raise ValidationError("Influencer IDs must be a non-empty array")
        for influencer_id in influencer_ids:
            if not is_valid_id(influencer_id):
                raise ValidationError(f"Invalid influencer ID format: {influencer_id}")

        campaign = CampaignService.get_campaign(db, campaign_id)

        unique_ids = list(dict.fromkeys(influencer_ids))
        assigned_ids = {a.influencer_id for a in campaign.assigned_influencers}
        new_ids = [i for i in unique_ids if i not in assigned_ids]
        if not new_ids:
            raise ValidationError("All provided influencers are already assigned to this campaign")

        current = len(campaign.assigned_influencers)
        if current + len(new_ids) > campaign.influencers_max:
            raise ValidationError(capacity_message(campaign, current))

        influencers = db.query(Influencer).filter(Influencer.id.in_(new_ids)).all()
        if len(influencers) != len(new_ids):
            raise ValidationError("Some influencer IDs do not exist")

        n = len(new_ids)
        reserved = db.query(Campaign).filter(
            Campaign.id == campaign_id,
            Campaign.assigned_count + n <= Campaign.influencers_max,
        ).update(
            {
                Campaign.status: case((Campaign.assigned_count == 0, "approved"), else_=Campaign.status),
                Campaign.assigned_count: Campaign.assigned_count + n,
            },
            synchronize_session=False,
        )
        if not reserved:
            db.rollback()
            db.refresh(campaign)
            raise ValidationError(capacity_message(campaign, campaign.assigned_count))

        now = utcnow()
        for influencer_id in new_ids:
            db.add(AssignedInfluencer(campaign_id=campaign_id, influencer_id=influencer_id, assigned_at=now))
        db.commit()
        db.refresh(campaign)

        total = len(campaign.assigned_influencers)
        logger.info(f"Assigned {n} influencer(s) to campaign {campaign_id}; total {total}")
        if total < campaign.influencers_min:
            logger.info(f"Campaign {campaign_id} still needs {campaign.influencers_min - total} more influencers")

        by_id = {i.id: i for i in influencers}
        notifier.influencers_assigned(campaign, [by_id[i] for i in new_ids])

        summary = AssignmentSummary(
            newly_assigned=n,
            total_assigned=total,
            campaign_minimum=campaign.influencers_min,
            campaign_maximum=campaign.influencers_max,
            minimum_met=total >= campaign.influencers_min,
        )
        return campaign, summary

    @staticmethod
    def unassign_influencers(
        db: Session, notifier: Notifier, campaign_id: str, influencer_ids
    ) -> Tuple[Campaign, int]:
        """Remove assignments that have no submitted work and release their slots"""
        ensure_valid_id(campaign_id, "campaign ID")
        if not isinstance(influencer_ids, list) or not influencer_ids:
            raise ValidationError("Influencer IDs must be a non-empty array")
        for influencer_id in influencer_ids:
            if not is_valid_id(influencer_id):
                raise ValidationError(f"Invalid influencer ID format: {influencer_id}")

        campaign = CampaignService.get_campaign(db, campaign_id)
        wanted = set(influencer_ids)
        targets = [a for a in campaign.assigned_influencers if a.influencer_id in wanted]
        if not targets:
            raise NotFoundError("None of the provided influencers are assigned to this campaign")
        locked = [a.influencer_id for a in targets if a.submitted_jobs]
        if locked:
            raise ValidationError(
                f"Cannot unassign influencers who have submitted deliverables: {', '.join(locked)}"
            )

        removed_ids = [a.influencer_id for a in targets]
        for assignment in targets:
            campaign.assigned_influencers.remove(assignment)
        db.flush()
        db.query(Campaign).filter(Campaign.id == campaign_id).update(
            {Campaign.assigned_count: Campaign.assigned_count - len(targets)},
            synchronize_session=False,
        )
        db.commit()
        db.refresh(campaign)
        logger.info(f"Unassigned {len(targets)} influencer(s) from campaign {campaign_id}")

        for influencer in db.query(Influencer).filter(Influencer.id.in_(removed_ids)).all():
            notifier.influencer_unassigned(campaign, influencer)
        return campaign, len(targets)

    @staticmethod
    def respond(
        db: Session,
        notifier: Notifier,
        campaign_id: str,
        influencer_id: str,
        status: Optional[str],
        message: Optional[str] = None,
    ) -> Campaign:
        """
        Accept or decline a pending assignment.

        The UPDATE only matches while the assignment is still pending, so a
        second response finds nothing and gets a 404.
        """
        if status not in RESPONSE_STATUSES:
            raise ValidationError("Invalid status provided. Must be 'accepted' or 'declined'.")
        ensure_valid_id(campaign_id, "campaign ID")

        influencer = db.query(Influencer).filter(Influencer.id == influencer_id).first()
        if not influencer:
            raise NotFoundError("Influencer not found.")

        values = {
            AssignedInfluencer.acceptance_status: AcceptanceStatus(status),
            AssignedInfluencer.responded_at: utcnow(),
        }
        if message:
            values[AssignedInfluencer.response_message] = message

        matched = db.query(AssignedInfluencer).filter(
            AssignedInfluencer.campaign_id == campaign_id,
            AssignedInfluencer.influencer_id == influencer_id,
            AssignedInfluencer.acceptance_status == AcceptanceStatus.PENDING,
        ).update(values, synchronize_session=False)
        db.commit()

        if not matched:
            raise NotFoundError(
                "Campaign assignment not found, already responded to, or you're not assigned to this campaign."
            )

        campaign = db.query(Campaign).filter(Campaign.id == campaign_id).first()
        logger.info(f"Influencer {influencer_id} {status} campaign {campaign_id}")
        notifier.assignment_response(campaign, influencer.name, status, message)
        return campaign
