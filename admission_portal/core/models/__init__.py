from admission_portal.core.models.personal_info import PersonalInfo
from admission_portal.core.models.academic_info import AcademicInfo
from admission_portal.core.models.extra_info import ExtraInfo
from admission_portal.core.models.admission_record import AdmissionRecord
from admission_portal.core.models.course import Course, CourseDetail, CourseSeat

__all__ = [
    "PersonalInfo",
    "AcademicInfo",
    "ExtraInfo",
    "AdmissionRecord",
    "Course",
    "CourseDetail",
    "CourseSeat",
]
