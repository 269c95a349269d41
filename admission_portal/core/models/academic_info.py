from sqlalchemy import JSON, Column, ForeignKey, LargeBinary, Numeric, String
from sqlalchemy.orm import deferred, relationship

from admission_portal.db.session import Base


class AcademicInfo(Base):
    """School record, subject marks and uploaded documents. total/percentage/cutoff are derived from subjects."""

    __tablename__ = "academic_info"

    academic_id = Column(String(40), primary_key=True)
    student_id = Column(String(20), ForeignKey("personal_info.student_id"), nullable=False, index=True)
    school_name = Column(String(255), nullable=True)
    exam_register_number = Column(String(100), nullable=True)
    emis_no = Column(String(100), nullable=True)
    # [{"subject": "Mathematics", "mark": "90"}, ...]
    subjects = Column(JSON, nullable=True)
    total_marks = Column(Numeric(8, 2, asdecimal=False), nullable=True)
    mark_percentage = Column(Numeric(5, 2, asdecimal=False), nullable=True)
    cutoff_marks = Column(Numeric(5, 2, asdecimal=False), nullable=True)
    month_year_passing = Column(String(10), nullable=True)
    course_type = Column(String(50), nullable=True)
    course_name = Column(String(100), nullable=True)
    course_mode = Column(String(50), nullable=True)
    # Document blobs are deferred so listings never pull them
    passport_photo = deferred(Column(LargeBinary, nullable=True))
    aadhaar_card = deferred(Column(LargeBinary, nullable=True))
    transfer_certificate = deferred(Column(LargeBinary, nullable=True))

    personal_info = relationship("PersonalInfo", back_populates="academic_info")
