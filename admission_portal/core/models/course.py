"""Course catalog: admin-managed reference data. Course is 1:N to CourseDetail and CourseSeat."""

from sqlalchemy import CheckConstraint, Column, ForeignKey, Integer, Numeric, String, Text
from sqlalchemy.orm import relationship

from admission_portal.db.session import Base, BigIntPK


class Course(Base):
    __tablename__ = "courses"

    id = Column(BigIntPK, primary_key=True, autoincrement=True)
    name = Column(String(255), nullable=False)
    fees = Column(Numeric(10, 2, asdecimal=False), nullable=False)
    duration = Column(String(100), nullable=True)
    eligibility = Column(Text, nullable=True)
    fees_link = Column(Text, nullable=True)
    brochure_link = Column(Text, nullable=True)
    brochure_name = Column(Text, nullable=True)
    apply_link = Column(Text, nullable=True)
    apply_name = Column(Text, nullable=True)

    course_details = relationship(
        "CourseDetail",
        back_populates="course",
        cascade="all, delete-orphan",
        order_by="CourseDetail.id",
    )
    course_seats = relationship(
        "CourseSeat",
        back_populates="course",
        cascade="all, delete-orphan",
        order_by="CourseSeat.id",
    )


class CourseDetail(Base):
    """Program variant of a course with its own fees and eligibility."""

    __tablename__ = "course_details"
    __table_args__ = (CheckConstraint("fees >= 0", name="chk_course_detail_fees"),)

    id = Column(BigIntPK, primary_key=True, autoincrement=True)
    course_id = Column(BigIntPK, ForeignKey("courses.id", ondelete="CASCADE"), nullable=False, index=True)
    program = Column(Text, nullable=False)
    fees = Column(Numeric(10, 2, asdecimal=False), nullable=True)
    eligibility = Column(Text, nullable=True)

    course = relationship("Course", back_populates="course_details")


class CourseSeat(Base):
    __tablename__ = "course_seats"
    __table_args__ = (CheckConstraint("seats >= 0", name="chk_course_seat_seats"),)

    id = Column(BigIntPK, primary_key=True, autoincrement=True)
    course_id = Column(BigIntPK, ForeignKey("courses.id", ondelete="CASCADE"), nullable=False, index=True)
    seats = Column(Integer, nullable=False)

    course = relationship("Course", back_populates="course_seats")
