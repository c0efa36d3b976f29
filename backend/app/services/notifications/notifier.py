"""
Notifier: turns marketplace events into email and WhatsApp messages.

Messages are queued on Celery and delivered by the notification workers.
Queueing failures are logged and swallowed so a broken broker never fails
the request that triggered the message. ``send_email_now`` is the one
synchronous path, for callers that must know whether delivery worked.
"""

import logging
from typing import Iterable, List, Optional

from app.core.config import settings
from app.services.notifications import messages
from app.services.notifications.email_sender import EmailSender
from app.tasks.notification_tasks import send_email_task, send_whatsapp_task

logger = logging.getLogger(__name__)


class Notifier:

    def __init__(self, email_sender: Optional[EmailSender] = None, admin_email: Optional[str] = None):
        self.email_sender = email_sender or EmailSender()
        self.admin_email = admin_email if admin_email is not None else (settings.ADMIN_EMAIL or settings.EMAIL_USER)

    # Delivery

    def _dispatch_email(self, to: str, subject: str, text: str) -> bool:
        if not to:
            logger.warning(f"Skipping email '{subject}': no recipient")
            return False
        try:
            send_email_task.delay(to, subject, text)
        except Exception as e:
            logger.error(f"Failed to queue email '{subject}' to {to}: {e}")
            return False
        return True

    def _dispatch_whatsapp(self, to: str, body: str) -> bool:
        if not to:
            logger.warning("Skipping WhatsApp message: no number on record")
            return False
        try:
            send_whatsapp_task.delay(to, body)
        except Exception as e:
            logger.error(f"Failed to queue WhatsApp message to {to}: {e}")
            return False
        return True

    async def send_email_now(self, to: str, subject: str, text: str) -> str:
        """Send immediately; raises EmailDeliveryError"""
        return await self.email_sender.send(to, subject, text)

    # Accounts

    def brand_registered(self, brand, password: str):
        self._dispatch_email(brand.email, *messages.account_credentials_email(
            brand.brand_name, brand.email, password, "brand"))
        self._dispatch_email(self.admin_email, *messages.admin_new_brand_email(
            brand.brand_name, brand.email, brand.total_cost or 0))

    def influencer_registered(self, influencer, password: str) -> bool:
        """Returns whether the welcome email was queued"""
        queued = self._dispatch_email(influencer.email, *messages.account_credentials_email(
            influencer.name, influencer.email, password, "influencer"))
        self._dispatch_email(self.admin_email, *messages.admin_new_influencer_email(
            influencer.name, influencer.email, influencer.location, influencer.niches))
        return queued

    def influencer_status_changed(self, influencer, status: str):
        if status not in ("approved", "rejected"):
            return
        self._dispatch_email(influencer.email, *messages.influencer_status_email(influencer.name, status))

    def admin_onboarded(self, admin, password: str):
        self._dispatch_email(admin.email, *messages.account_credentials_email(
            admin.name or admin.email, admin.email, password, "admin"))

    async def password_reset_requested(self, email: str, token: str, role: str) -> str:
        subject, text = messages.password_reset_email(token, role)
        return await self.send_email_now(email, subject, text)

    def password_reset_confirmed(self, email: str):
        self._dispatch_email(email, *messages.password_reset_confirmation_email())

    # Campaigns

    def campaign_created(self, campaign):
        self._dispatch_email(campaign.email, *messages.campaign_created_email(
            campaign.brand_name, campaign.id, campaign.total_cost or 0))

    def campaign_status_changed(self, campaign, status: str):
        self._dispatch_email(campaign.email, *messages.campaign_status_email(
            campaign.brand_name, status, campaign.total_cost or 0))

    def campaign_updated(self, campaign, fields: List[str]):
        self._dispatch_email(campaign.email, *messages.campaign_updated_email(
            campaign.brand_name, campaign.id, fields))

    def payment_confirmed(self, campaign):
        self._dispatch_email(campaign.email, *messages.payment_confirmation_email(
            campaign.brand_name, campaign.id, campaign.total_cost or 0))

    def influencers_assigned(self, campaign, influencers: Iterable) -> List[str]:
        """Notify the brand once and each influencer by email and WhatsApp"""
        influencers = list(influencers)
        if not influencers:
            return []
        self._dispatch_email(campaign.email, *messages.influencers_assigned_email(
            campaign.brand_name, [i.name for i in influencers]))
        notified = []
        for influencer in influencers:
            self._dispatch_email(influencer.email, *messages.influencer_assignment_email(
                influencer.name, campaign.brand_name))
            if self._dispatch_whatsapp(influencer.whatsapp, messages.assignment_whatsapp(
                    influencer.name, campaign.brand_name)):
                notified.append(influencer.id)
        return notified

    def influencer_unassigned(self, campaign, influencer):
        self._dispatch_whatsapp(influencer.whatsapp, messages.unassignment_whatsapp(
            influencer.name, campaign.brand_name, campaign.id))

    def assignment_response(self, campaign, influencer_name: str, status: str, message: Optional[str] = None):
        self._dispatch_whatsapp(campaign.brand_phone, messages.response_whatsapp(
            campaign.brand_name, influencer_name, status, message))

    def deliverables_submitted(self, campaign, influencer_name: str, submitted: int, required: int):
        self._dispatch_whatsapp(campaign.brand_phone, messages.deliverables_whatsapp(
            campaign.brand_name, influencer_name, submitted, required))
        self._dispatch_email(campaign.email, *messages.deliverables_submitted_email(
            campaign.brand_name, influencer_name, campaign.brand_name, submitted, required))
        self._dispatch_email(self.admin_email, *messages.deliverables_submitted_email(
            "Admin", influencer_name, campaign.brand_name, submitted, required))
