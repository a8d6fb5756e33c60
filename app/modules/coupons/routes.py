from fastapi import APIRouter, Depends, HTTPException, Request, status
from fastapi.responses import JSONResponse
from app.config.settings import Settings, settings as app_settings
from app.core.dependencies import get_current_user, get_settings, is_super_user
from app.core.rate_limit import limiter
from app.database.supabase_client import get_service_supabase
from app.modules.coupons.schemas import CouponRedeemRequest, CouponRedeemResponse, CouponLookupResponse
from app.modules.coupons.service import CouponService
from supabase import Client
from typing import Dict, Optional

router = APIRouter(tags=["coupons"])


def get_coupon_service(
    supabase: Client = Depends(get_service_supabase),
    settings: Settings = Depends(get_settings)
) -> CouponService:
    return CouponService(supabase, settings.get_valid_coupon_codes())


@router.post("/validate-coupon", response_model=CouponRedeemResponse)
@limiter.limit(lambda: app_settings.coupon_rate_limit)
async def validate_coupon(
    request: Request,
    body: CouponRedeemRequest,
    current_user: Dict = Depends(get_current_user),
    service: CouponService = Depends(get_coupon_service)
):
    """Redeem a coupon code for the given user"""
    code = (body.coupon_code or "").strip()
    if not code or not body.user_id:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Missing required fields")
    if body.user_id != current_user["id"] and not is_super_user(current_user):
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Cannot redeem a coupon for another user")
    try:
        return service.redeem(code, body.user_id)
    except HTTPException as e:
        return JSONResponse(status_code=e.status_code, content={"valid": False, "error": e.detail})


@router.get("/test-coupon", response_model=CouponLookupResponse)
async def test_coupon(
    code: Optional[str] = None,
    service: CouponService = Depends(get_coupon_service)
):
    """Check a coupon code without redeeming it"""
    if not code:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Missing coupon code")
    return service.lookup(code)
