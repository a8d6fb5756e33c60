from supabase import Client
from app.modules.coupons.schemas import CouponRedeemResponse, CouponLookupResponse
from app.modules.profiles.service import ProfileService
from datetime import datetime, timezone
from typing import Callable, List, Optional, Dict, Any
from fastapi import HTTPException
from pydantic import TypeAdapter
import logging

logger = logging.getLogger(__name__)

MAX_INCREMENT_ATTEMPTS = 3

# Legacy codes waive the whole fee
FALLBACK_DISCOUNT_TYPE = "fixed"
FALLBACK_DISCOUNT_VALUE = 100


_TIMESTAMP = TypeAdapter(datetime)


def parse_timestamp(value: Any) -> Optional[datetime]:
    """Postgres timestamptz text (any fraction width, Z or offset) as an aware datetime"""
    if value is None or value == "":
        return None
    parsed = _TIMESTAMP.validate_python(value)
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class CouponService:
    def __init__(
        self,
        supabase: Client,
        fallback_codes: List[str],
        now: Callable[[], datetime] = _utcnow
    ):
        self.supabase = supabase
        self.fallback_codes = fallback_codes
        self.now = now
        self.profiles = ProfileService(supabase)

    def find_coupon(self, code: str) -> Optional[Dict[str, Any]]:
        result = self.supabase.table("coupons")\
            .select("*")\
            .eq("code", code)\
            .limit(1)\
            .execute()
        return result.data[0] if result.data else None

    def rejection_reason(self, coupon: Dict[str, Any]) -> Optional[str]:
        """Why a coupon row cannot be used right now, or None when it can"""
        max_uses = coupon.get("max_uses")
        if max_uses and (coupon.get("uses") or 0) >= max_uses:
            return "Coupon has reached its usage limit"
        try:
            expires_at = parse_timestamp(coupon.get("expires_at"))
        except ValueError as e:
            logger.error(f"Unreadable expires_at on coupon {coupon.get('code')}: {e}")
            return "Invalid coupon code"
        if expires_at and expires_at < self.now():
            return "Coupon has expired"
        return None

    def redeem(self, code: str, user_id: str) -> CouponRedeemResponse:
        """Exchange a code for a waived payment on the user's profile"""
        try:
            coupon = self.find_coupon(code)
        except Exception as e:
            logger.error(f"Error looking up coupon {code}: {e}")
            raise HTTPException(status_code=500, detail="Error processing request")

        if coupon is None:
            if code not in self.fallback_codes:
                return CouponRedeemResponse(valid=False, message="Invalid coupon code")
            self._mark_paid(user_id, code)
            logger.info(f"Legacy coupon {code} redeemed by {user_id}")
            return CouponRedeemResponse(valid=True, message="Coupon applied successfully!")

        reason = self.rejection_reason(coupon)
        if reason:
            return CouponRedeemResponse(valid=False, message=reason)

        self._mark_paid(user_id, code)
        self._increment_uses(coupon)
        logger.info(f"Coupon {code} redeemed by {user_id}")
        return CouponRedeemResponse(valid=True, message="Coupon applied successfully!")

    def _mark_paid(self, user_id: str, code: str) -> None:
        try:
            self.profiles.mark_paid(user_id, coupon_code=code)
        except Exception as e:
            logger.error(f"Error updating profile for {user_id}: {e}")
            raise HTTPException(status_code=500, detail="Error updating profile")

    def _increment_uses(self, coupon: Dict[str, Any]) -> bool:
        """Compare-and-swap on the previous uses value. Best effort: the redemption already happened."""
        code = coupon["code"]
        current = coupon.get("uses")
        for _ in range(MAX_INCREMENT_ATTEMPTS):
            try:
                query = self.supabase.table("coupons")\
                    .update({"uses": (current or 0) + 1})\
                    .eq("code", code)
                if current is None:
                    query = query.is_("uses", "null")
                else:
                    query = query.eq("uses", current)
                result = query.execute()
                if result.data:
                    return True
                # Lost the race; re-read and retry
                latest = self.find_coupon(code)
                if latest is None:
                    break
                current = latest.get("uses")
            except Exception as e:
                logger.error(f"Error incrementing coupon usage for {code}: {e}")
                return False
        logger.warning(f"Coupon usage for {code} not incremented after {MAX_INCREMENT_ATTEMPTS} attempts")
        return False

    def lookup(self, code: str) -> CouponLookupResponse:
        """Read-only validity check; no profile or counter changes"""
        try:
            coupon = self.find_coupon(code)
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))
        if coupon is None:
            if code in self.fallback_codes:
                return CouponLookupResponse(
                    discount_type=FALLBACK_DISCOUNT_TYPE,
                    discount_value=FALLBACK_DISCOUNT_VALUE
                )
            raise HTTPException(status_code=404, detail="Invalid coupon code")
        reason = self.rejection_reason(coupon)
        if reason:
            raise HTTPException(status_code=400, detail=reason)
        return CouponLookupResponse(
            discount_type=coupon.get("discount_type"),
            discount_value=coupon.get("discount_value")
        )
