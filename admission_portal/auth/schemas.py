from datetime import date, datetime
from typing import List, Optional

from pydantic import BaseModel, EmailStr, Field, field_validator

# bcrypt only hashes the first 72 bytes and rejects longer input.
BCRYPT_MAX_BYTES = 72


def _check_password_bytes(value: str) -> str:
    if len(value.encode("utf-8")) > BCRYPT_MAX_BYTES:
        raise ValueError(f"Password must be at most {BCRYPT_MAX_BYTES} bytes")
    return value


class RegisterRequest(BaseModel):
    email: EmailStr
    phone_no: str = Field(..., min_length=10, max_length=15)
    password: str = Field(..., min_length=6)

    @field_validator("password")
    @classmethod
    def _password_fits_bcrypt(cls, value: str) -> str:
        return _check_password_bytes(value)


class LoginRequest(BaseModel):
    email: EmailStr
    password: str = Field(..., min_length=1)


class UserInfo(BaseModel):
    id: int
    email: EmailStr
    phone_no: str
    student_id: Optional[str] = None

    class Config:
        from_attributes = True


class AuthResponse(BaseModel):
    message: str
    user: UserInfo
    token: str
    token_type: str = "bearer"


class AdminInfo(BaseModel):
    id: int
    email: EmailStr

    class Config:
        from_attributes = True


class AdminAuthResponse(BaseModel):
    message: str
    admin: AdminInfo
    token: str
    token_type: str = "bearer"


class ChangePasswordRequest(BaseModel):
    currentPassword: str = Field(..., min_length=1)
    newPassword: str = Field(..., min_length=6)

    @field_validator("newPassword")
    @classmethod
    def _password_fits_bcrypt(cls, value: str) -> str:
        return _check_password_bytes(value)


class MessageResponse(BaseModel):
    message: str


class ProfileUpdate(BaseModel):
    email: Optional[EmailStr] = None
    phone_no: Optional[str] = Field(None, min_length=10, max_length=15)

    class Config:
        extra = "forbid"


class PersonalSummary(BaseModel):
    student_id: str
    first_name: str
    last_name: str
    email: Optional[str] = None

    class Config:
        from_attributes = True


class UserProfile(BaseModel):
    """User row without the password hash, plus the linked personal-info summary if any."""

    id: int
    email: str
    phone_no: str
    student_id: Optional[str] = None
    created_at: datetime
    personal_info: Optional[PersonalSummary] = None


class UserProfileResponse(BaseModel):
    message: Optional[str] = None
    user: UserProfile


class UserListResponse(BaseModel):
    message: str
    count: int
    users: List[UserProfile]


class AdminProfileUpdate(BaseModel):
    first_name: Optional[str] = Field(None, min_length=1, max_length=100)
    last_name: Optional[str] = Field(None, min_length=1, max_length=100)
    phone_number: Optional[str] = Field(None, min_length=10, max_length=20)
    date_of_birth: Optional[date] = None
    gender: Optional[str] = Field(None, max_length=20)
    address: Optional[str] = None

    class Config:
        extra = "forbid"


class AdminProfileInfo(BaseModel):
    first_name: str
    last_name: str
    email: str
    phone_number: str
    date_of_birth: Optional[date] = None
    gender: Optional[str] = None
    address: Optional[str] = None

    class Config:
        from_attributes = True


class AdminProfileResponse(BaseModel):
    message: Optional[str] = None
    admin: AdminInfo
    profile: Optional[AdminProfileInfo] = None


class StudentPrincipal(BaseModel):
    """Resolved student attached to a request by the access gate. Never carries secrets."""

    id: int
    email: str
    student_id: Optional[str] = None


class AdminPrincipal(BaseModel):
    id: int
    email: str
