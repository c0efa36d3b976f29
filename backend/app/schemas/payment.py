from datetime import datetime
from typing import Any, Dict, Optional, Union

from app.schemas.common import CamelModel


class VerifyPaymentRequest(CamelModel):
    transaction_id: Optional[Union[str, int]] = None
    campaign_id: Optional[str] = None


class PaymentVerification(CamelModel):
    transaction_id: Union[str, int]
    reference: Optional[str] = None
    amount: Optional[float] = None
    currency: Optional[str] = None
    customer_email: Optional[str] = None
    payment_method: Optional[str] = None
    status: str
    charged_amount: Optional[float] = None
    processor_response: Optional[str] = None
    campaign_id: str
    payment_date: datetime


class PaymentStatus(CamelModel):
    status: str
    amount: Optional[float] = None
    currency: Optional[str] = None
    reference: Optional[str] = None


class CampaignPaymentDetails(CamelModel):
    has_paid: bool
    payment_reference: Optional[str] = None
    payment_date: Optional[datetime] = None
    payment_details: Optional[Dict[str, Any]] = None
    total_cost: float = 0
