from pydantic import BaseModel, EmailStr
from typing import Optional


class MagicLinkRequest(BaseModel):
    email: EmailStr
    redirect_to: Optional[str] = None


class MagicLinkResponse(BaseModel):
    email: str
    message: str


class OAuthUrlResponse(BaseModel):
    provider: str
    url: str
