from supabase import Client
from app.modules.profiles.schemas import ProfileResponse
from typing import Optional, Dict, Any
from fastapi import HTTPException
import logging

logger = logging.getLogger(__name__)


class ProfileService:
    def __init__(self, supabase: Client):
        self.supabase = supabase

    def find_profile(self, user_id: str) -> Optional[Dict[str, Any]]:
        result = self.supabase.table("profiles")\
            .select("*")\
            .eq("id", user_id)\
            .limit(1)\
            .execute()
        return result.data[0] if result.data else None

    def find_profile_by_email(self, email: str) -> Optional[Dict[str, Any]]:
        result = self.supabase.table("profiles")\
            .select("*")\
            .eq("email", email)\
            .limit(1)\
            .execute()
        return result.data[0] if result.data else None

    def get_profile(self, user_id: str) -> ProfileResponse:
        """Get profile by user ID"""
        try:
            profile = self.find_profile(user_id)
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))
        if not profile:
            raise HTTPException(status_code=404, detail="Profile not found")
        return ProfileResponse(**profile)

    def set_phone_number(self, user_id: str, phone_number: str) -> None:
        """Store the phone number captured by the prompt, creating the profile if needed"""
        phone_number = phone_number.strip()
        if not phone_number:
            raise HTTPException(status_code=400, detail="Please enter a phone number")
        try:
            self.supabase.table("profiles")\
                .upsert({"id": user_id, "phone_number": phone_number})\
                .execute()
        except Exception as e:
            logger.error(f"Error updating phone number for {user_id}: {e}")
            raise HTTPException(status_code=500, detail="Failed to update phone number")

    def ensure_student_profile(self, user_id: str, email: Optional[str] = None) -> None:
        """Upsert the profile row; every profile without a counselor record is a student"""
        row = {"id": user_id}
        if email:
            row["email"] = email
        try:
            self.supabase.table("profiles").upsert(row).execute()
        except Exception as e:
            # The signup trigger normally created the row already
            logger.error(f"Error upserting profile for {user_id}: {e}")

    def mark_paid(self, user_id: str, coupon_code: Optional[str] = None) -> Dict[str, Any]:
        """Set payment_done (and the redeemed coupon). Raises on store failure; returns the updated row."""
        update_data: Dict[str, Any] = {"payment_done": True}
        if coupon_code is not None:
            update_data["coupon_code"] = coupon_code
        result = self.supabase.table("profiles")\
            .update(update_data)\
            .eq("id", user_id)\
            .execute()
        if not result.data:
            raise HTTPException(status_code=404, detail="Profile not found")
        return result.data[0]
