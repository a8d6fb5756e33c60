from fastapi import APIRouter, Depends
from app.database.supabase_client import get_supabase
from app.modules.counselors.schemas import (
    CounselorOnboardingRequest, CounselorResponse, DashboardStats,
    AssignedStudent, SessionsResponse, CounselorReport
)
from app.modules.counselors.service import CounselorService
from app.core.dependencies import get_current_user, require_counselor
from supabase import Client
from typing import List, Dict

router = APIRouter(prefix="/counselor", tags=["counselors"])


def get_counselor_service(supabase: Client = Depends(get_supabase)) -> CounselorService:
    return CounselorService(supabase)


@router.post("/onboarding", response_model=CounselorResponse, status_code=201)
async def onboard_counselor(
    body: CounselorOnboardingRequest,
    current_user: Dict = Depends(get_current_user),
    service: CounselorService = Depends(get_counselor_service)
):
    """Register the current user as a counselor"""
    return service.onboard(current_user["id"], current_user.get("email"), body)


@router.get("/dashboard", response_model=DashboardStats)
async def get_dashboard(
    counselor: Dict = Depends(require_counselor),
    service: CounselorService = Depends(get_counselor_service)
):
    return service.dashboard(counselor["id"])


@router.get("/students", response_model=List[AssignedStudent])
async def list_students(
    counselor: Dict = Depends(require_counselor),
    service: CounselorService = Depends(get_counselor_service)
):
    """Students assigned to the current counselor"""
    return service.list_students(counselor["id"])


@router.get("/sessions", response_model=SessionsResponse)
async def list_sessions(
    counselor: Dict = Depends(require_counselor),
    service: CounselorService = Depends(get_counselor_service)
):
    """Counseling sessions, upcoming first"""
    return service.list_sessions(counselor["id"])


@router.get("/reports", response_model=List[CounselorReport])
async def list_reports(
    counselor: Dict = Depends(require_counselor),
    service: CounselorService = Depends(get_counselor_service)
):
    return service.list_reports(counselor["id"])
