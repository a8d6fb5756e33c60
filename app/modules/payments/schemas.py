from pydantic import BaseModel
from typing import List, Optional


class WebhookResult(BaseModel):
    status: str  # success | ignored | duplicate
    user_id: Optional[str] = None
    welcome_email_sent: Optional[bool] = None


class DirectUpdateResponse(BaseModel):
    success: bool = True
    message: str
    data: dict


class PaymentStatusResponse(BaseModel):
    payment_done: bool
    coupon_code: Optional[str] = None
    redirect_to: Optional[str] = None


class PlanFeature(BaseModel):
    text: str
    included: bool = True


class PaymentPlan(BaseModel):
    name: str
    price: int  # whole rupees
    original_price: Optional[int] = None
    currency: str = "INR"
    payment_link: str
    badge: Optional[str] = None
    description: str = ""
    features: List[PlanFeature] = []
