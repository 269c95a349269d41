from typing import List, Optional

from pydantic import BaseModel, Field


class CourseDetailIn(BaseModel):
    program: str = Field(..., min_length=1)
    fees: Optional[float] = Field(None, ge=0)
    eligibility: Optional[str] = None

    class Config:
        extra = "forbid"


class CourseSeatIn(BaseModel):
    seats: int = Field(..., ge=0)

    class Config:
        extra = "forbid"


class CourseCreate(BaseModel):
    """Course with optional nested details and seats, created together."""

    name: str = Field(..., min_length=1, max_length=255)
    fees: float = Field(..., ge=0)
    duration: Optional[str] = Field(None, max_length=100)
    eligibility: Optional[str] = None
    fees_link: Optional[str] = None
    brochure_link: Optional[str] = None
    brochure_name: Optional[str] = None
    apply_link: Optional[str] = None
    apply_name: Optional[str] = None
    courseDetails: List[CourseDetailIn] = Field(default_factory=list)
    courseSeats: List[CourseSeatIn] = Field(default_factory=list)

    class Config:
        extra = "forbid"


class CourseUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=255)
    fees: Optional[float] = Field(None, ge=0)
    duration: Optional[str] = Field(None, max_length=100)
    eligibility: Optional[str] = None
    fees_link: Optional[str] = None
    brochure_link: Optional[str] = None
    brochure_name: Optional[str] = None
    apply_link: Optional[str] = None
    apply_name: Optional[str] = None

    class Config:
        extra = "forbid"


class CourseDetailCreate(CourseDetailIn):
    course_id: int


class CourseDetailUpdate(BaseModel):
    program: Optional[str] = Field(None, min_length=1)
    fees: Optional[float] = Field(None, ge=0)
    eligibility: Optional[str] = None

    class Config:
        extra = "forbid"


class CourseSeatCreate(CourseSeatIn):
    course_id: int


class CourseSeatUpdate(CourseSeatIn):
    pass


# ----- Responses -----


class CourseRef(BaseModel):
    id: int
    name: str
    duration: Optional[str] = None


class CourseDetailResponse(BaseModel):
    id: int
    course_id: int
    program: str
    fees: Optional[float] = None
    eligibility: Optional[str] = None
    course: Optional[CourseRef] = None


class CourseSeatResponse(BaseModel):
    id: int
    course_id: int
    seats: int
    course: Optional[CourseRef] = None


class CourseResponse(BaseModel):
    id: int
    name: str
    fees: float
    duration: Optional[str] = None
    eligibility: Optional[str] = None
    fees_link: Optional[str] = None
    brochure_link: Optional[str] = None
    brochure_name: Optional[str] = None
    apply_link: Optional[str] = None
    apply_name: Optional[str] = None
    courseDetails: List[CourseDetailResponse] = Field(default_factory=list)
    courseSeats: List[CourseSeatResponse] = Field(default_factory=list)


class CourseEnvelope(BaseModel):
    message: Optional[str] = None
    course: CourseResponse


class CourseListResponse(BaseModel):
    message: str
    count: int
    courses: List[CourseResponse]


class CourseDetailEnvelope(BaseModel):
    message: str
    courseDetail: CourseDetailResponse


class CourseSeatEnvelope(BaseModel):
    message: str
    courseSeat: CourseSeatResponse


class CourseDetailListResponse(BaseModel):
    message: str
    count: int
    courseDetails: List[CourseDetailResponse]


class CourseSeatListResponse(BaseModel):
    message: str
    count: int
    courseSeats: List[CourseSeatResponse]


class CourseDetailsAndSeatsResponse(BaseModel):
    message: str
    courseDetails: List[CourseDetailResponse]
    courseSeats: List[CourseSeatResponse]
