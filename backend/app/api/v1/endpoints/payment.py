from typing import Optional

from fastapi import APIRouter, Depends, Query, Request
from sqlalchemy.orm import Session
from app.api.deps import CurrentUser, get_current_user
from app.core.rate_limiting import RATE_LIMITS, limiter
from app.db.session import get_db
from app.schemas.common import APIResponse
from app.schemas.payment import CampaignPaymentDetails, PaymentStatus, PaymentVerification, VerifyPaymentRequest
from app.services.campaign_service import CampaignService
from app.services.payment_gateway import FlutterwaveClient, get_payment_gateway
from app.services.payment_service import PaymentService

router = APIRouter()


@router.post("/verify-payment", response_model=APIResponse[PaymentVerification])
@limiter.limit(RATE_LIMITS["payment_verify"])
async def verify_payment(
    request: Request,
    payload: VerifyPaymentRequest,
    current_user: CurrentUser = Depends(get_current_user),
    db: Session = Depends(get_db),
    gateway: FlutterwaveClient = Depends(get_payment_gateway)
):
    """
    Verify a gateway transaction and mark the campaign as paid.
    """
    result = await PaymentService.verify(db, gateway, payload.transaction_id, payload.campaign_id)
    return APIResponse(message="Payment verified and campaign updated successfully", data=result)


@router.get("/get-status", response_model=APIResponse[PaymentStatus])
async def get_payment_status(
    transaction_id: Optional[str] = Query(None, alias="transactionId"),
    current_user: CurrentUser = Depends(get_current_user),
    gateway: FlutterwaveClient = Depends(get_payment_gateway)
):
    result = await PaymentService.status(gateway, transaction_id)
    return APIResponse(message="Payment status retrieved successfully", data=result)


@router.get("/campaigns/{campaign_id}", response_model=APIResponse[CampaignPaymentDetails])
def campaign_payment_details(
    campaign_id: str,
    current_user: CurrentUser = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    campaign = CampaignService.get_campaign(db, campaign_id)
    CampaignService.check_owner(campaign, current_user.id, current_user.role)
    return APIResponse(data=PaymentService.campaign_details(db, campaign_id))
