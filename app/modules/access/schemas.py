from pydantic import BaseModel
from typing import Optional


class AccessDecisionResponse(BaseModel):
    path: str
    action: str  # allow | redirect | prompt_phone
    allowed: bool
    redirect_to: Optional[str] = None
    phone_required: bool = False


class LandingResponse(BaseModel):
    redirect_to: str
    phone_required: bool = False
