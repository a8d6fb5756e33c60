from pydantic import BaseModel, ConfigDict, Field
from typing import Optional, Union


class CouponRedeemRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    coupon_code: Optional[str] = Field(None, alias="couponCode")
    user_id: Optional[str] = Field(None, alias="userId")


class CouponRedeemResponse(BaseModel):
    valid: bool
    message: str


class CouponLookupResponse(BaseModel):
    valid: bool = True
    discount_type: Optional[str] = None
    discount_value: Optional[Union[int, float]] = None
