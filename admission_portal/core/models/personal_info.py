"""
Personal section of an application. student_id (STU-000001) is the natural key that links
the user, academic, extra and admission rows of one student.
"""

from sqlalchemy import Column, Date, Numeric, String, Text
from sqlalchemy.orm import relationship

from admission_portal.db.session import Base


class PersonalInfo(Base):
    __tablename__ = "personal_info"

    student_id = Column(String(20), primary_key=True)
    first_name = Column(String(100), nullable=False)
    last_name = Column(String(100), nullable=False)
    email = Column(String(255), nullable=False, unique=True)
    phone_number = Column(String(20), nullable=False)
    # National ID (Aadhaar), 12 digits
    aadhaar_number = Column(String(20), nullable=False, unique=True)
    blood_group = Column(String(5), nullable=True)
    date_of_birth = Column(Date, nullable=True)
    gender = Column(String(20), nullable=True)
    address = Column(Text, nullable=True)
    father_name = Column(String(100), nullable=True)
    father_occupation = Column(String(100), nullable=True)
    mother_name = Column(String(100), nullable=True)
    mother_occupation = Column(String(100), nullable=True)
    annual_income = Column(Numeric(15, 2, asdecimal=False), nullable=True)
    community = Column(String(50), nullable=True)
    caste = Column(String(50), nullable=True)
    religion = Column(String(50), nullable=True)
    nationality = Column(String(50), nullable=True)

    academic_info = relationship("AcademicInfo", back_populates="personal_info", uselist=False)
    extra_info = relationship("ExtraInfo", back_populates="personal_info", uselist=False)
    admission_record = relationship("AdmissionRecord", back_populates="personal_info", uselist=False)
