from supabase import Client
from app.modules.access.policy import AccessSnapshot, GateDecision, evaluate_gate, resolve_landing
from typing import Optional, Dict, Any
import logging

logger = logging.getLogger(__name__)


def _has_text(value: Any) -> bool:
    return isinstance(value, str) and bool(value.strip())


class AccessService:
    def __init__(self, supabase: Client):
        self.supabase = supabase

    def _get_counselor(self, user_id: str) -> Optional[Dict[str, Any]]:
        try:
            result = self.supabase.table("career_counselors")\
                .select("id, phone_number")\
                .eq("id", user_id)\
                .limit(1)\
                .execute()
            return result.data[0] if result.data else None
        except Exception as e:
            logger.error(f"Error checking counselor record for {user_id}: {e}")
            return None

    def _get_profile(self, user_id: str) -> Optional[Dict[str, Any]]:
        try:
            result = self.supabase.table("profiles")\
                .select("id, phone_number, atp_done, payment_done")\
                .eq("id", user_id)\
                .limit(1)\
                .execute()
            return result.data[0] if result.data else None
        except Exception as e:
            logger.error(f"Error fetching profile for {user_id}: {e}")
            return None

    def load_snapshot(self, user_id: Optional[str]) -> AccessSnapshot:
        """Build the gate snapshot for a user. Lookup failures fall back to re-onboarding."""
        if not user_id:
            return AccessSnapshot.anonymous()
        counselor = self._get_counselor(user_id)
        profile = self._get_profile(user_id)
        has_phone = _has_text((profile or {}).get("phone_number")) or _has_text((counselor or {}).get("phone_number"))
        return AccessSnapshot(
            has_session=True,
            has_phone_number=has_phone,
            is_counselor=counselor is not None,
            has_profile=profile is not None,
            atp_done=bool((profile or {}).get("atp_done")),
            payment_done=bool((profile or {}).get("payment_done")),
        )

    def check_path(self, user_id: Optional[str], path: str) -> GateDecision:
        return evaluate_gate(self.load_snapshot(user_id), path)

    def landing_path(self, user_id: Optional[str]) -> str:
        return resolve_landing(self.load_snapshot(user_id))
