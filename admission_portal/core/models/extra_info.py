from sqlalchemy import Column, ForeignKey, String, Text
from sqlalchemy.orm import relationship

from admission_portal.db.session import Base


class ExtraInfo(Base):
    """Optional supplementary eligibility section (1:1 with PersonalInfo)."""

    __tablename__ = "extra_info"

    student_id = Column(String(20), ForeignKey("personal_info.student_id"), primary_key=True)
    physically_challenged = Column(String(50), nullable=True)
    ex_serviceman = Column(String(50), nullable=True)
    activities = Column(Text, nullable=True)

    personal_info = relationship("PersonalInfo", back_populates="extra_info")
