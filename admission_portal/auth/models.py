from datetime import datetime

from sqlalchemy import Column, Date, DateTime, ForeignKey, String, Text
from sqlalchemy.orm import relationship

from admission_portal.db.session import Base, BigIntPK


class User(Base):
    """Student principal. student_id is attached once, at the first successful application submission."""

    __tablename__ = "users"

    id = Column(BigIntPK, primary_key=True, autoincrement=True)
    email = Column(String(255), nullable=False, unique=True)
    phone_no = Column(String(20), nullable=False)
    password_hash = Column(Text, nullable=False)
    student_id = Column(String(20), nullable=True, unique=True)
    created_at = Column(DateTime(timezone=True), default=datetime.utcnow, nullable=False)


class AdminUser(Base):
    """Admin principal; separate credential table, never derived from User."""

    __tablename__ = "admin_users"

    id = Column(BigIntPK, primary_key=True, autoincrement=True)
    email = Column(String(255), nullable=False, unique=True)
    password_hash = Column(Text, nullable=False)
    created_at = Column(DateTime(timezone=True), default=datetime.utcnow, nullable=False)

    profile = relationship(
        "AdminProfile", back_populates="admin", uselist=False, cascade="all, delete-orphan"
    )


class AdminProfile(Base):
    __tablename__ = "admin_profile"

    admin_id = Column(BigIntPK, ForeignKey("admin_users.id", ondelete="CASCADE"), primary_key=True)
    first_name = Column(String(100), nullable=False)
    last_name = Column(String(100), nullable=False)
    email = Column(String(255), nullable=False)
    phone_number = Column(String(20), nullable=False)
    date_of_birth = Column(Date, nullable=True)
    gender = Column(String(20), nullable=True)
    address = Column(Text, nullable=True)

    admin = relationship("AdminUser", back_populates="profile")
