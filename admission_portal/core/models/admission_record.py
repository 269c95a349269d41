"""
Admission record: one per student. Status is mutable and owned by the admin status update;
everything else is written once at submission.
"""

from datetime import datetime, timezone

from sqlalchemy import CheckConstraint, Column, DateTime, ForeignKey, String
from sqlalchemy.orm import relationship

from admission_portal.core.enums import ApplicationStatus
from admission_portal.db.session import Base, BigIntPK


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class AdmissionRecord(Base):
    __tablename__ = "admission_records"
    __table_args__ = (
        CheckConstraint(
            "application_status IN ('Pending','Approved','Rejected')",
            name="chk_admission_record_status",
        ),
    )

    id = Column(BigIntPK, primary_key=True, autoincrement=True)
    admission_id = Column(String(50), nullable=False, unique=True)
    # Unique: a second record for the same student is a conflict, not a duplicate row
    student_id = Column(String(20), ForeignKey("personal_info.student_id"), nullable=False, unique=True)
    email = Column(String(255), nullable=False)
    admission_timestamp = Column(DateTime(timezone=True), default=_utcnow, nullable=False)
    application_status = Column(String(20), nullable=False, default=ApplicationStatus.PENDING.value)

    personal_info = relationship("PersonalInfo", back_populates="admission_record")
