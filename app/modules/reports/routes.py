from fastapi import APIRouter, Depends, UploadFile, File, Form
from app.config.settings import Settings
from app.database.supabase_client import get_supabase
from app.modules.reports.schemas import ReportUploadResponse, StudentReportResponse
from app.modules.reports.service import ReportService
from app.modules.reports.storage import ReportStorage
from app.core.dependencies import get_current_user, get_settings, require_counselor
from supabase import Client
from typing import Dict, Optional

router = APIRouter(tags=["reports"])


def get_report_service(
    supabase: Client = Depends(get_supabase),
    settings: Settings = Depends(get_settings)
) -> ReportService:
    return ReportService(supabase, ReportStorage(supabase, settings.reports_bucket))


@router.post("/upload-report", response_model=ReportUploadResponse)
async def upload_report(
    file: Optional[UploadFile] = File(None),
    email: Optional[str] = Form(None),
    summary: Optional[str] = Form(None),
    counselor: Dict = Depends(require_counselor),
    service: ReportService = Depends(get_report_service)
):
    """
    Upload a student's assessment report (PDF) with an optional JSON summary.
    Only PDF files are accepted; a blank summary is replaced by the default template.
    """
    return await service.upload_report(counselor["id"], file, email, summary)


@router.get("/report", response_model=StudentReportResponse)
async def get_my_report(
    current_user: Dict = Depends(get_current_user),
    service: ReportService = Depends(get_report_service),
    settings: Settings = Depends(get_settings)
):
    """The signed-in student's report"""
    return service.get_student_report(
        current_user["id"], settings.booking_links, settings.default_booking_link
    )
