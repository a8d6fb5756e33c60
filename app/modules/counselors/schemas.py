from pydantic import BaseModel, Field
from typing import Optional, List
from datetime import datetime


class CounselorOnboardingRequest(BaseModel):
    name: str = Field(..., min_length=1)
    phone_number: str = Field(..., min_length=1)
    age: Optional[int] = None
    country: Optional[str] = None
    experience_years: Optional[int] = None
    specializations: List[str] = Field(default_factory=list)
    linkedin_profile: Optional[str] = None
    bio: Optional[str] = None


class CounselorResponse(BaseModel):
    id: str
    email: Optional[str] = None
    name: str
    phone_number: Optional[str] = None
    age: Optional[int] = None
    country: Optional[str] = None
    experience_years: Optional[int] = None
    specialization: Optional[str] = None
    linkedin_profile: Optional[str] = None
    bio: Optional[str] = None

    class Config:
        from_attributes = True


class DashboardStats(BaseModel):
    total_students: int
    upcoming_sessions: int
    pending_reports: int


class AssignedStudent(BaseModel):
    id: str
    name: Optional[str] = None
    email: Optional[str] = None
    phone_number: Optional[str] = None
    atp_done: bool = False
    payment_done: bool = False
    created_at: Optional[datetime] = None
    has_report: bool = False
    has_session: bool = False


class CounselingSession(BaseModel):
    id: str
    student_id: str
    student_name: Optional[str] = None
    student_email: Optional[str] = None
    session_date: str
    session_time: Optional[str] = None
    duration: Optional[int] = None
    meeting_link: Optional[str] = None
    status: str = "scheduled"
    notes: Optional[str] = None


class SessionsResponse(BaseModel):
    upcoming: List[CounselingSession]
    past: List[CounselingSession]


class CounselorReport(BaseModel):
    id: str
    student_id: str
    student_name: Optional[str] = None
    student_email: Optional[str] = None
    report_url: Optional[str] = None
    report_summary: Optional[dict] = None
    created_at: Optional[datetime] = None
