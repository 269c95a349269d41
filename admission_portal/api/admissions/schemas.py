"""
Application sections. Each section is an explicit allow-list of fields: unknown keys are
rejected instead of being copied into the row.
"""

import math
from datetime import date, datetime
from typing import List, Optional, Union

from pydantic import Base64Bytes, BaseModel, EmailStr, Field, field_validator

from admission_portal.core.enums import ApplicationStatus


MAX_MARK = 100
MAX_SUBJECTS = 50


class SubjectMark(BaseModel):
    subject: str = Field(..., min_length=1, max_length=100)
    mark: str = Field(..., min_length=1, max_length=10)

    class Config:
        extra = "forbid"

    @field_validator("mark", mode="before")
    @classmethod
    def _mark_to_str(cls, value: Union[str, int, float]) -> str:
        # Marks come from form inputs as strings; accept plain numbers too
        if isinstance(value, (int, float)) and not isinstance(value, bool):
            return str(value)
        return value

    @field_validator("mark")
    @classmethod
    def _mark_in_range(cls, value: str) -> str:
        # Non-numeric marks such as "AB" are kept and score 0
        try:
            number = float(value)
        except ValueError:
            return value
        if not math.isfinite(number) or not 0 <= number <= MAX_MARK:
            raise ValueError(f"Mark must be between 0 and {MAX_MARK}")
        return value


class PersonalInfoIn(BaseModel):
    first_name: str = Field(..., min_length=1, max_length=100)
    last_name: str = Field(..., min_length=1, max_length=100)
    email: EmailStr
    phone_number: str = Field(..., min_length=10, max_length=15)
    aadhaar_number: str = Field(..., pattern=r"^\d{12}$")
    blood_group: Optional[str] = Field(None, max_length=5)
    date_of_birth: Optional[date] = None
    gender: Optional[str] = Field(None, max_length=20)
    address: Optional[str] = None
    father_name: Optional[str] = Field(None, max_length=100)
    father_occupation: Optional[str] = Field(None, max_length=100)
    mother_name: Optional[str] = Field(None, max_length=100)
    mother_occupation: Optional[str] = Field(None, max_length=100)
    annual_income: Optional[float] = Field(None, ge=0)
    community: Optional[str] = Field(None, max_length=50)
    caste: Optional[str] = Field(None, max_length=50)
    religion: Optional[str] = Field(None, max_length=50)
    nationality: Optional[str] = Field(None, max_length=50)

    class Config:
        extra = "forbid"


class PersonalInfoUpdate(BaseModel):
    first_name: Optional[str] = Field(None, min_length=1, max_length=100)
    last_name: Optional[str] = Field(None, min_length=1, max_length=100)
    email: Optional[EmailStr] = None
    phone_number: Optional[str] = Field(None, min_length=10, max_length=15)
    aadhaar_number: Optional[str] = Field(None, pattern=r"^\d{12}$")
    blood_group: Optional[str] = Field(None, max_length=5)
    date_of_birth: Optional[date] = None
    gender: Optional[str] = Field(None, max_length=20)
    address: Optional[str] = None
    father_name: Optional[str] = Field(None, max_length=100)
    father_occupation: Optional[str] = Field(None, max_length=100)
    mother_name: Optional[str] = Field(None, max_length=100)
    mother_occupation: Optional[str] = Field(None, max_length=100)
    annual_income: Optional[float] = Field(None, ge=0)
    community: Optional[str] = Field(None, max_length=50)
    caste: Optional[str] = Field(None, max_length=50)
    religion: Optional[str] = Field(None, max_length=50)
    nationality: Optional[str] = Field(None, max_length=50)

    class Config:
        extra = "forbid"


class AcademicInfoIn(BaseModel):
    """total_marks, mark_percentage and cutoff_marks are computed from subjects, never accepted."""

    school_name: str = Field(..., min_length=1, max_length=255)
    exam_register_number: str = Field(..., min_length=1, max_length=100)
    emis_no: Optional[str] = Field(None, max_length=100)
    subjects: List[SubjectMark] = Field(default_factory=list, max_length=MAX_SUBJECTS)
    month_year_passing: Optional[str] = Field(None, max_length=10)
    course_type: Optional[str] = Field(None, max_length=50)
    course_name: Optional[str] = Field(None, max_length=100)
    course_mode: Optional[str] = Field(None, max_length=50)
    # Base64-encoded document uploads
    passport_photo: Optional[Base64Bytes] = None
    aadhaar_card: Optional[Base64Bytes] = None
    transfer_certificate: Optional[Base64Bytes] = None

    class Config:
        extra = "forbid"


class AcademicInfoUpdate(BaseModel):
    school_name: Optional[str] = Field(None, min_length=1, max_length=255)
    exam_register_number: Optional[str] = Field(None, min_length=1, max_length=100)
    emis_no: Optional[str] = Field(None, max_length=100)
    subjects: Optional[List[SubjectMark]] = Field(None, max_length=MAX_SUBJECTS)
    month_year_passing: Optional[str] = Field(None, max_length=10)
    course_type: Optional[str] = Field(None, max_length=50)
    course_name: Optional[str] = Field(None, max_length=100)
    course_mode: Optional[str] = Field(None, max_length=50)
    passport_photo: Optional[Base64Bytes] = None
    aadhaar_card: Optional[Base64Bytes] = None
    transfer_certificate: Optional[Base64Bytes] = None

    class Config:
        extra = "forbid"


class ExtraInfoIn(BaseModel):
    physically_challenged: Optional[str] = Field(None, max_length=50)
    ex_serviceman: Optional[str] = Field(None, max_length=50)
    activities: Optional[str] = None

    class Config:
        extra = "forbid"


class ApplicationSubmit(BaseModel):
    """personalInfo and academicInfo are optional here so their absence maps to MissingSection."""

    personalInfo: Optional[PersonalInfoIn] = None
    academicInfo: Optional[AcademicInfoIn] = None
    extraInfo: Optional[ExtraInfoIn] = None

    class Config:
        extra = "forbid"


class ApplicationSubmitResponse(BaseModel):
    message: str
    student_id: str
    admission_id: str


# ----- Read models -----


class PersonalInfoResponse(BaseModel):
    student_id: str
    first_name: str
    last_name: str
    email: str
    phone_number: str
    aadhaar_number: str
    blood_group: Optional[str] = None
    date_of_birth: Optional[date] = None
    gender: Optional[str] = None
    address: Optional[str] = None
    father_name: Optional[str] = None
    father_occupation: Optional[str] = None
    mother_name: Optional[str] = None
    mother_occupation: Optional[str] = None
    annual_income: Optional[float] = None
    community: Optional[str] = None
    caste: Optional[str] = None
    religion: Optional[str] = None
    nationality: Optional[str] = None

    class Config:
        from_attributes = True


class AcademicInfoResponse(BaseModel):
    """Document blobs are never returned."""

    academic_id: str
    student_id: str
    school_name: Optional[str] = None
    exam_register_number: Optional[str] = None
    emis_no: Optional[str] = None
    subjects: Optional[List[SubjectMark]] = None
    total_marks: Optional[float] = None
    mark_percentage: Optional[float] = None
    cutoff_marks: Optional[float] = None
    month_year_passing: Optional[str] = None
    course_type: Optional[str] = None
    course_name: Optional[str] = None
    course_mode: Optional[str] = None

    class Config:
        from_attributes = True


class ExtraInfoResponse(BaseModel):
    student_id: str
    physically_challenged: Optional[str] = None
    ex_serviceman: Optional[str] = None
    activities: Optional[str] = None

    class Config:
        from_attributes = True


class AdmissionRecordResponse(BaseModel):
    id: int
    admission_id: str
    student_id: str
    email: str
    admission_timestamp: datetime
    application_status: ApplicationStatus

    class Config:
        from_attributes = True


class PersonalInfoEnvelope(BaseModel):
    message: Optional[str] = None
    personalInfo: PersonalInfoResponse


class AcademicInfoEnvelope(BaseModel):
    message: Optional[str] = None
    academicInfo: AcademicInfoResponse


class ExtraInfoEnvelope(BaseModel):
    message: Optional[str] = None
    extraInfo: ExtraInfoResponse


class ApplicationDetail(BaseModel):
    """One student's full aggregate, as seen by the student or by an admin."""

    admission_id: str
    student_id: str
    email: str
    application_status: ApplicationStatus
    admission_timestamp: datetime
    personalInfo: Optional[PersonalInfoResponse] = None
    academicInfo: Optional[AcademicInfoResponse] = None
    extraInfo: Optional[ExtraInfoResponse] = None


class ApplicationEnvelope(BaseModel):
    application: ApplicationDetail


class AdmissionRecordEnvelope(BaseModel):
    message: Optional[str] = None
    admissionRecord: AdmissionRecordResponse


class ApplicationListResponse(BaseModel):
    applications: List[ApplicationDetail]
    count: int


class StatusUpdate(BaseModel):
    # Plain str: values outside the enum answer 400 "Invalid status", not a schema error
    status: str


class ApplicationStatusResponse(BaseModel):
    admission_id: str
    application_status: ApplicationStatus
    admission_timestamp: datetime
    applied_time: str
    student_name: str
    course_name: Optional[str] = None


class AdmissionStatistics(BaseModel):
    total_applications: int = 0
    pending_applications: int = 0
    approved_applications: int = 0
    rejected_applications: int = 0
