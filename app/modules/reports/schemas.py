from pydantic import BaseModel, ConfigDict, Field
from typing import Optional, List, Any, Dict


class OrientationStyle(BaseModel):
    dominantStyle: Optional[str] = None
    secondaryStyle: Optional[str] = None
    description: Optional[str] = None


class CareerMatch(BaseModel):
    domain: str
    details: Optional[str] = None
    link: Optional[str] = None


class ReportSummary(BaseModel):
    """Shape the student report page renders; unknown keys are kept"""
    model_config = ConfigDict(extra="allow")

    name: Optional[str] = None
    reportTitle: Optional[str] = None
    assessmentFramework: Optional[str] = None
    orientationStyle: Optional[OrientationStyle] = None
    interest: Optional[Dict[str, Any]] = None
    personality: Optional[Dict[str, Any]] = None
    aptitude: Optional[Dict[str, Any]] = None
    emotionalQuotient: Optional[Dict[str, Any]] = None
    careerMatches: List[CareerMatch] = Field(default_factory=list)


class ReportUploadResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    success: bool = True
    file_url: str = Field(..., serialization_alias="fileUrl")
    message: str


class StudentReportResponse(BaseModel):
    report_url: Optional[str] = None
    summary: Optional[Dict[str, Any]] = None
    booking_url: str
