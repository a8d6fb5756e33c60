from supabase import Client
from app.modules.counselors.schemas import (
    CounselorOnboardingRequest, CounselorResponse, DashboardStats,
    AssignedStudent, CounselingSession, SessionsResponse, CounselorReport
)
from app.modules.reports.service import load_summary
from datetime import date
from typing import Callable, List, Dict, Any, Optional
from fastapi import HTTPException
import logging

logger = logging.getLogger(__name__)


def _session_day(value: Any) -> Optional[date]:
    try:
        return date.fromisoformat(str(value)[:10])
    except ValueError:
        return None


class CounselorService:
    def __init__(self, supabase: Client, today: Callable[[], date] = date.today):
        self.supabase = supabase
        self.today = today

    def onboard(self, user_id: str, email: Optional[str], data: CounselorOnboardingRequest) -> CounselorResponse:
        """Create the counselor record and grant full access on the profile"""
        try:
            existing = self.supabase.table("career_counselors")\
                .select("id")\
                .eq("id", user_id)\
                .limit(1)\
                .execute()
            if existing.data:
                raise HTTPException(status_code=400, detail="Counselor profile already exists")

            specializations = [s.strip() for s in data.specializations if s and s.strip()]
            result = self.supabase.table("career_counselors").insert({
                "id": user_id,
                "email": email,
                "name": data.name,
                "phone_number": data.phone_number,
                "age": data.age,
                "country": data.country,
                "experience_years": data.experience_years,
                "specialization": ", ".join(dict.fromkeys(specializations)),
                "linkedin_profile": data.linkedin_profile,
                "bio": data.bio,
            }).execute()
            if not result.data:
                raise HTTPException(status_code=500, detail="Failed to create your profile. Please try again.")

            self.supabase.table("profiles")\
                .update({"payment_done": True, "atp_done": True})\
                .eq("id", user_id)\
                .execute()

            logger.info(f"Counselor onboarded: {user_id}")
            return CounselorResponse(**result.data[0])
        except HTTPException:
            raise
        except Exception as e:
            logger.error(f"Error creating counselor profile for {user_id}: {e}")
            raise HTTPException(status_code=500, detail="Failed to create your profile. Please try again.")

    def _assigned_student_ids(self, counselor_id: str) -> List[str]:
        result = self.supabase.table("student_counselor_assignments")\
            .select("student_id")\
            .eq("counselor_id", counselor_id)\
            .execute()
        return list(dict.fromkeys(a["student_id"] for a in result.data or []))

    def _profiles_by_id(self, student_ids: List[str], columns: str) -> Dict[str, Dict[str, Any]]:
        if not student_ids:
            return {}
        result = self.supabase.table("profiles")\
            .select(columns)\
            .in_("id", student_ids)\
            .execute()
        return {p["id"]: p for p in result.data or []}

    def _report_rows(self, counselor_id: str) -> List[Dict[str, Any]]:
        result = self.supabase.table("reports")\
            .select("*")\
            .eq("counselor_id", counselor_id)\
            .execute()
        return result.data or []

    def _session_rows(self, counselor_id: str) -> List[Dict[str, Any]]:
        result = self.supabase.table("counseling_sessions")\
            .select("*")\
            .eq("counselor_id", counselor_id)\
            .order("session_date", desc=False)\
            .execute()
        return result.data or []

    def _is_upcoming(self, session: Dict[str, Any]) -> bool:
        day = _session_day(session.get("session_date"))
        return day is not None and day >= self.today() and session.get("status") != "cancelled"

    def list_students(self, counselor_id: str) -> List[AssignedStudent]:
        """Assigned students with report/session flags"""
        try:
            student_ids = self._assigned_student_ids(counselor_id)
            if not student_ids:
                return []
            profiles = self._profiles_by_id(
                student_ids, "id, name, email, phone_number, atp_done, payment_done, created_at"
            )
            with_report = {r["student_id"] for r in self._report_rows(counselor_id) if r.get("report_url")}
            with_session = {s["student_id"] for s in self._session_rows(counselor_id)}
            return [
                AssignedStudent(
                    **profile,
                    has_report=profile["id"] in with_report,
                    has_session=profile["id"] in with_session,
                )
                for profile in profiles.values()
            ]
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))

    def list_sessions(self, counselor_id: str) -> SessionsResponse:
        """Sessions in date order, split into upcoming and past"""
        try:
            rows = self._session_rows(counselor_id)
            profiles = self._profiles_by_id(
                list(dict.fromkeys(s["student_id"] for s in rows)), "id, name, email"
            )
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))
        upcoming, past = [], []
        for row in rows:
            student = profiles.get(row["student_id"], {})
            session = CounselingSession(
                id=row["id"],
                student_id=row["student_id"],
                student_name=student.get("name") or "Unknown Student",
                student_email=student.get("email"),
                session_date=str(row["session_date"]),
                session_time=row.get("session_time"),
                duration=row.get("duration"),
                meeting_link=row.get("meeting_link"),
                status=row.get("status") or "scheduled",
                notes=row.get("notes"),
            )
            (upcoming if self._is_upcoming(row) else past).append(session)
        return SessionsResponse(upcoming=upcoming, past=past)

    def list_reports(self, counselor_id: str) -> List[CounselorReport]:
        try:
            rows = self._report_rows(counselor_id)
            profiles = self._profiles_by_id(
                list(dict.fromkeys(r["student_id"] for r in rows)), "id, name, email"
            )
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))
        reports = []
        for row in rows:
            student = profiles.get(row["student_id"], {})
            reports.append(CounselorReport(
                id=row["id"],
                student_id=row["student_id"],
                student_name=student.get("name"),
                student_email=student.get("email") or row.get("email"),
                report_url=row.get("report_url"),
                report_summary=load_summary(row.get("report_summary")),
                created_at=row.get("created_at"),
            ))
        return reports

    def dashboard(self, counselor_id: str) -> DashboardStats:
        """Counts shown on the counselor dashboard cards"""
        try:
            student_ids = self._assigned_student_ids(counselor_id)
            with_report = {r["student_id"] for r in self._report_rows(counselor_id) if r.get("report_url")}
            sessions = self._session_rows(counselor_id)
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))
        return DashboardStats(
            total_students=len(student_ids),
            upcoming_sessions=sum(1 for s in sessions if self._is_upcoming(s)),
            pending_reports=sum(1 for sid in student_ids if sid not in with_report),
        )
