from supabase import Client
from app.modules.reports.default_summary import default_summary
from app.modules.reports.schemas import ReportSummary, ReportUploadResponse, StudentReportResponse
from app.modules.reports.storage import ReportStorage
from app.modules.profiles.service import ProfileService
from pydantic import ValidationError
from typing import Optional, Dict, Any, Mapping
from fastapi import HTTPException, UploadFile
import json
import time
import logging

logger = logging.getLogger(__name__)

PDF_CONTENT_TYPE = "application/pdf"


def parse_summary(raw_summary: Optional[str]) -> Dict[str, Any]:
    """Summary JSON from the upload form; blank means the default template"""
    if raw_summary is None or not raw_summary.strip():
        return default_summary()
    try:
        parsed = json.loads(raw_summary)
    except ValueError:
        raise HTTPException(status_code=400, detail="Invalid JSON format for report summary")
    if not isinstance(parsed, dict):
        raise HTTPException(status_code=400, detail="Report summary must be a JSON object")
    try:
        ReportSummary.model_validate(parsed)
    except ValidationError as e:
        raise HTTPException(status_code=400, detail=f"Invalid report summary: {e.errors()[0]['msg']}")
    return parsed


def load_summary(value: Any) -> Optional[Dict[str, Any]]:
    """Stored summaries may be a JSON string or already decoded"""
    if value is None:
        return None
    if isinstance(value, str):
        try:
            value = json.loads(value)
        except ValueError:
            logger.error("Error parsing stored report summary")
            return None
    return value if isinstance(value, dict) else None


class ReportService:
    def __init__(self, supabase: Client, storage: ReportStorage):
        self.supabase = supabase
        self.storage = storage
        self.profiles = ProfileService(supabase)

    async def upload_report(
        self,
        counselor_id: str,
        file: Optional[UploadFile],
        student_email: Optional[str],
        raw_summary: Optional[str]
    ) -> ReportUploadResponse:
        """Store a counselor's PDF report for a student and upsert the (student, counselor) row"""
        if file is None or not student_email:
            raise HTTPException(status_code=400, detail="Missing required fields")
        if file.content_type != PDF_CONTENT_TYPE:
            raise HTTPException(status_code=400, detail="Only PDF files are allowed")
        summary = parse_summary(raw_summary)

        try:
            student = self.profiles.find_profile_by_email(student_email)
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))
        if not student:
            raise HTTPException(status_code=404, detail="Student not found")
        student_id = student["id"]

        file_path = f"{int(time.time() * 1000)}_{student_id}.pdf"
        file_content = await file.read()
        try:
            report_url = self.storage.upload_file(file_content, file_path, PDF_CONTENT_TYPE)
        except Exception as e:
            raise HTTPException(status_code=500, detail=f"File upload failed: {str(e)}")

        try:
            self._upsert_report(student_id, counselor_id, student_email, report_url, summary)
        except Exception as e:
            logger.error(f"Report row write failed for student {student_id}: {e}")
            self.storage.delete_file(file_path)
            raise HTTPException(status_code=500, detail=f"Database write failed: {str(e)}")

        logger.info(f"Report uploaded for student {student_id} by counselor {counselor_id}")
        return ReportUploadResponse(file_url=report_url, message="Report uploaded successfully")

    def _upsert_report(
        self,
        student_id: str,
        counselor_id: str,
        email: str,
        report_url: str,
        summary: Dict[str, Any]
    ) -> None:
        existing = self.supabase.table("reports")\
            .select("id")\
            .eq("student_id", student_id)\
            .eq("counselor_id", counselor_id)\
            .limit(1)\
            .execute()
        if existing.data:
            self.supabase.table("reports")\
                .update({
                    "report_url": report_url,
                    "report_summary": summary,
                    "email": email,
                })\
                .eq("id", existing.data[0]["id"])\
                .execute()
        else:
            self.supabase.table("reports").insert({
                "counselor_id": counselor_id,
                "student_id": student_id,
                "email": email,
                "report_url": report_url,
                "report_summary": summary,
            }).execute()

    def get_student_report(
        self,
        student_id: str,
        booking_links: Mapping[str, str],
        default_booking_link: str
    ) -> StudentReportResponse:
        """Latest report for the student plus the booking link for their coupon"""
        try:
            result = self.supabase.table("reports")\
                .select("report_url, report_summary, created_at")\
                .eq("student_id", student_id)\
                .order("created_at", desc=True)\
                .limit(1)\
                .execute()
            profile = self.profiles.find_profile(student_id)
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))
        if not result.data:
            raise HTTPException(status_code=404, detail="No report available. Please complete the assessment first.")
        report = result.data[0]
        coupon_code = (profile or {}).get("coupon_code")
        return StudentReportResponse(
            report_url=report.get("report_url"),
            summary=load_summary(report.get("report_summary")),
            booking_url=booking_links.get(coupon_code, default_booking_link) if coupon_code else default_booking_link,
        )
