from pydantic import BaseModel, Field
from typing import Optional, Literal
from datetime import datetime


class ProfileResponse(BaseModel):
    id: str
    email: Optional[str] = None
    name: Optional[str] = None
    phone_number: Optional[str] = None
    age: Optional[int] = None
    atp_done: bool = False
    payment_done: bool = False
    coupon_code: Optional[str] = None
    payment_id: Optional[str] = None
    amount_paid: Optional[float] = None
    welcome_email_sent: Optional[bool] = None
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class PhoneUpdate(BaseModel):
    phone_number: str = Field(..., max_length=32)


class RoleSelectionRequest(BaseModel):
    role: Literal["student", "counselor"]


class NextStepResponse(BaseModel):
    redirect_to: str
    message: Optional[str] = None
