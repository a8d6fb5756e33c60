from fastapi import APIRouter, Depends
from app.database.supabase_client import get_supabase
from app.modules.access.policy import COUNSELOR_DASHBOARD_PATH, COUNSELOR_ONBOARDING_PATH
from app.modules.access.service import AccessService
from app.modules.profiles.schemas import ProfileResponse, PhoneUpdate, RoleSelectionRequest, NextStepResponse
from app.modules.profiles.service import ProfileService
from app.core.dependencies import get_current_user, get_counselor_row
from supabase import Client
from typing import Dict
import logging

logger = logging.getLogger(__name__)

router = APIRouter(tags=["profiles"])


def get_profile_service(supabase: Client = Depends(get_supabase)) -> ProfileService:
    return ProfileService(supabase)


@router.get("/profile", response_model=ProfileResponse)
async def get_my_profile(
    current_user: Dict = Depends(get_current_user),
    service: ProfileService = Depends(get_profile_service)
):
    """Current user's profile"""
    return service.get_profile(current_user["id"])


@router.put("/profile/phone", response_model=NextStepResponse)
async def update_phone_number(
    body: PhoneUpdate,
    current_user: Dict = Depends(get_current_user),
    service: ProfileService = Depends(get_profile_service),
    supabase: Client = Depends(get_supabase)
):
    """Phone capture prompt. Returns where to continue."""
    service.set_phone_number(current_user["id"], body.phone_number)
    return NextStepResponse(
        redirect_to=AccessService(supabase).landing_path(current_user["id"]),
        message="Phone number updated successfully!"
    )


@router.post("/role-selection", response_model=NextStepResponse)
async def select_role(
    body: RoleSelectionRequest,
    current_user: Dict = Depends(get_current_user),
    service: ProfileService = Depends(get_profile_service),
    supabase: Client = Depends(get_supabase)
):
    """Student: make sure the profile exists and continue onboarding. Counselor: onboarding or dashboard."""
    user_id = current_user["id"]
    if body.role == "counselor":
        try:
            counselor = get_counselor_row(user_id, supabase)
        except Exception as e:
            logger.error(f"Error in role selection for {user_id}: {e}")
            counselor = None
        return NextStepResponse(redirect_to=COUNSELOR_DASHBOARD_PATH if counselor else COUNSELOR_ONBOARDING_PATH)

    service.ensure_student_profile(user_id, current_user.get("email"))
    return NextStepResponse(redirect_to=AccessService(supabase).landing_path(user_id))
