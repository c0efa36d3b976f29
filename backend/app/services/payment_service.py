"""
Campaign payment verification against the payment gateway.
"""

from datetime import datetime
from typing import Any, Dict, Optional

from sqlalchemy.orm import Session
import logging

from app.core.exceptions import MarketplaceException, ValidationError
from app.models import Campaign
from app.models.common import utcnow
from app.schemas.payment import CampaignPaymentDetails, PaymentStatus, PaymentVerification
from app.services.campaign_service import CampaignService
from app.services.payment_gateway import FlutterwaveClient, PaymentGatewayError

logger = logging.getLogger(__name__)

ALREADY_VERIFIED = "Payment has already been verified for this campaign"


def _require_configured(gateway: FlutterwaveClient):
    if not gateway.is_configured:
        logger.error("FLUTTERWAVE_SECRET_KEY is not set")
        raise MarketplaceException("Payment service configuration error", 500)


def _parse_time(value: Optional[str]) -> Optional[str]:
    """Normalise the gateway's created_at to ISO 8601"""
    if not value:
        return None
    try:
        return datetime.fromisoformat(value.replace("Z", "+00:00")).isoformat()
    except ValueError:
        return value


def payment_details(data: Dict[str, Any]) -> Dict[str, Any]:
    return {
        "flutterwaveTransactionId": data.get("id"),
        "amount": data.get("amount"),
        "currency": data.get("currency"),
        "customerEmail": (data.get("customer") or {}).get("email"),
        "paymentMethod": data.get("payment_type"),
        "processorResponse": data.get("processor_response"),
        "chargedAmount": data.get("charged_amount"),
        "completedAt": _parse_time(data.get("created_at")),
    }


class PaymentService:
    @staticmethod
    async def verify(db: Session, gateway: FlutterwaveClient, transaction_id, campaign_id: Optional[str]) -> PaymentVerification:
        """
        Confirm a transaction with the gateway and mark the campaign paid.

        The paid flag is written by an UPDATE that only matches while
        ``has_paid`` is false, so a second verification racing this one
        cannot overwrite the stored payment details.
        """
        if not transaction_id or not campaign_id:
            raise ValidationError("Transaction ID and Campaign ID are required")
        _require_configured(gateway)

        campaign = CampaignService.get_campaign(db, campaign_id)
        if campaign.has_paid:
            raise ValidationError(ALREADY_VERIFIED, error="This campaign payment has already been processed")

        try:
            result = await gateway.verify_transaction(transaction_id)
        except PaymentGatewayError as e:
            e.error = "Payment verification failed"
            raise

        data = result.get("data") or {}
        if result.get("status") != "success" or data.get("status") != "successful":
            logger.info(f"Transaction {transaction_id} for campaign {campaign_id} not successful: {data.get('status')}")
            raise ValidationError(
                "Payment verification failed",
                error=result.get("message") or "Payment not successful",
                data={"status": data.get("status") or "unknown"},
            )

        paid_at = utcnow()
        updated = db.query(Campaign).filter(
            Campaign.id == campaign_id,
            Campaign.has_paid.is_(False),
        ).update(
            {
                Campaign.has_paid: True,
                Campaign.payment_reference: data.get("tx_ref"),
                Campaign.payment_date: paid_at,
                Campaign.payment_details: payment_details(data),
            },
            synchronize_session=False,
        )
        db.commit()
        if not updated:
            raise ValidationError(ALREADY_VERIFIED)

        logger.info(f"Campaign {campaign_id} paid with transaction {transaction_id}")
        customer = data.get("customer") or {}
        return PaymentVerification(
            transaction_id=data.get("id", transaction_id),
            reference=data.get("tx_ref"),
            amount=data.get("amount"),
            currency=data.get("currency"),
            customer_email=customer.get("email"),
            payment_method=data.get("payment_type"),
            status=data.get("status"),
            charged_amount=data.get("charged_amount"),
            processor_response=data.get("processor_response"),
            campaign_id=campaign_id,
            payment_date=paid_at,
        )

    @staticmethod
    async def status(gateway: FlutterwaveClient, transaction_id: Optional[str]) -> PaymentStatus:
        if not transaction_id:
            raise ValidationError("Transaction ID is required")
        _require_configured(gateway)

        try:
            result = await gateway.verify_transaction(transaction_id)
        except PaymentGatewayError as e:
            e.error = "Failed to check payment status"
            raise

        data = result.get("data") or {}
        return PaymentStatus(
            status=data.get("status") or "unknown",
            amount=data.get("amount"),
            currency=data.get("currency"),
            reference=data.get("tx_ref"),
        )

    @staticmethod
    def campaign_details(db: Session, campaign_id: str) -> CampaignPaymentDetails:
        campaign = CampaignService.get_campaign(db, campaign_id)
        return CampaignPaymentDetails(
            has_paid=campaign.has_paid,
            payment_reference=campaign.payment_reference,
            payment_date=campaign.payment_date,
            payment_details=campaign.payment_details,
            total_cost=campaign.total_cost or 0,
        )
