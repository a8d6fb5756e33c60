from fastapi import APIRouter, Depends, Query
from app.database.supabase_client import get_supabase
from app.modules.access.policy import normalize_path, resolve_landing
from app.modules.access.schemas import AccessDecisionResponse, LandingResponse
from app.modules.access.service import AccessService
from app.core.dependencies import get_optional_user
from supabase import Client
from typing import Dict, Optional

router = APIRouter(prefix="/access", tags=["access"])


def get_access_service(supabase: Client = Depends(get_supabase)) -> AccessService:
    return AccessService(supabase)


def _user_id(user_data: Optional[Dict]) -> Optional[str]:
    return user_data["id"] if user_data else None


@router.get("/landing", response_model=LandingResponse)
async def get_landing(
    user_data: Optional[Dict] = Depends(get_optional_user),
    service: AccessService = Depends(get_access_service)
):
    """Destination after a sign-in event"""
    snapshot = service.load_snapshot(_user_id(user_data))
    return LandingResponse(
        redirect_to=resolve_landing(snapshot),
        phone_required=snapshot.has_session and not snapshot.has_phone_number,
    )


@router.get("/check", response_model=AccessDecisionResponse)
async def check_access(
    path: str = Query(..., min_length=1),
    user_data: Optional[Dict] = Depends(get_optional_user),
    service: AccessService = Depends(get_access_service)
):
    """Gate decision for a page the client is about to render"""
    decision = service.check_path(_user_id(user_data), path)
    return AccessDecisionResponse(
        path=normalize_path(path),
        action=decision.action,
        allowed=decision.allowed,
        redirect_to=decision.target,
        phone_required=decision.phone_required,
    )
