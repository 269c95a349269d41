import logging
from typing import Optional

from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from starlette.concurrency import run_in_threadpool

from admission_portal.auth.models import AdminProfile, AdminUser, User
from admission_portal.auth.schemas import (
    AdminAuthResponse,
    AdminInfo,
    AdminPrincipal,
    AdminProfileInfo,
    AdminProfileResponse,
    AdminProfileUpdate,
    AuthResponse,
    ChangePasswordRequest,
    LoginRequest,
    PersonalSummary,
    ProfileUpdate,
    RegisterRequest,
    StudentPrincipal,
    UserInfo,
    UserListResponse,
    UserProfile,
    UserProfileResponse,
)
from admission_portal.auth.security import (
    ADMIN_CLAIM,
    STUDENT_CLAIM,
    create_admin_token,
    create_student_token,
    decode_access_token,
    hash_password,
    verify_password,
)
from admission_portal.core.enums import ErrorKind
from admission_portal.core.exceptions import (
    AuthError,
    ConflictError,
    NotFoundError,
    ValidationError,
)
from admission_portal.core.models import PersonalInfo

logger = logging.getLogger(__name__)

INVALID_TOKEN_MESSAGE = "Invalid or expired token"
INVALID_ADMIN_TOKEN_MESSAGE = "Invalid or expired admin token"


async def _get_user_by_email(db: AsyncSession, email: str) -> Optional[User]:
    result = await db.execute(select(User).where(func.lower(User.email) == email.lower()))
    return result.scalar_one_or_none()


async def register_user(db: AsyncSession, payload: RegisterRequest) -> AuthResponse:
    if await _get_user_by_email(db, payload.email):
        raise ConflictError("User already exists with this email")

    password_hash = await run_in_threadpool(hash_password, payload.password)
    user = User(email=payload.email, phone_no=payload.phone_no, password_hash=password_hash)
    db.add(user)
    try:
        await db.commit()
    except IntegrityError as e:
        # Lost the race against a concurrent registration with the same email
        await db.rollback()
        raise ConflictError("User already exists with this email") from e
    await db.refresh(user)

    logger.info("Registered user %s", user.id)
    return AuthResponse(
        message="User registered successfully",
        user=UserInfo.model_validate(user),
        token=create_student_token(user.id, user.email),
    )


async def login_user(db: AsyncSession, payload: LoginRequest) -> AuthResponse:
    # Same message for unknown email and wrong password
    user = await _get_user_by_email(db, payload.email)
    if not user or not await run_in_threadpool(verify_password, payload.password, user.password_hash):
        logger.info("Failed student login")
        raise AuthError("Invalid email or password", ErrorKind.INVALID_CREDENTIALS)

    return AuthResponse(
        message="Login successful",
        user=UserInfo.model_validate(user),
        token=create_student_token(user.id, user.email),
    )


async def login_admin(db: AsyncSession, payload: LoginRequest) -> AdminAuthResponse:
    result = await db.execute(
        select(AdminUser).where(func.lower(AdminUser.email) == payload.email.lower())
    )
    admin = result.scalar_one_or_none()
    if not admin or not await run_in_threadpool(verify_password, payload.password, admin.password_hash):
        logger.warning("Failed admin login")
        raise AuthError("Invalid admin credentials", ErrorKind.INVALID_CREDENTIALS)

    return AdminAuthResponse(
        message="Admin login successful",
        admin=AdminInfo.model_validate(admin),
        token=create_admin_token(admin.id, admin.email),
    )


def _claim_id(claims: Optional[dict], claim: str) -> Optional[int]:
    if not claims:
        return None
    value = claims.get(claim)
    if isinstance(value, bool):
        return None
    try:
        return int(value)
    except (TypeError, ValueError):
        return None


async def resolve_student_principal(db: AsyncSession, token: str) -> StudentPrincipal:
    """Verify a student token and load its user. Admin tokens carry no userId and are rejected."""
    user_id = _claim_id(decode_access_token(token), STUDENT_CLAIM)
    if user_id is None:
        raise AuthError(INVALID_TOKEN_MESSAGE)
    user = await db.get(User, user_id)
    if not user:
        raise AuthError(INVALID_TOKEN_MESSAGE)
    return StudentPrincipal(id=user.id, email=user.email, student_id=user.student_id)


async def resolve_admin_principal(db: AsyncSession, token: str) -> AdminPrincipal:
    admin_id = _claim_id(decode_access_token(token), ADMIN_CLAIM)
    if admin_id is None:
        raise AuthError(INVALID_ADMIN_TOKEN_MESSAGE)
    admin = await db.get(AdminUser, admin_id)
    if not admin:
        raise AuthError(INVALID_ADMIN_TOKEN_MESSAGE)
    return AdminPrincipal(id=admin.id, email=admin.email)


async def change_password(db: AsyncSession, user_id: int, payload: ChangePasswordRequest) -> None:
    user = await db.get(User, user_id)
    if not user:
        raise NotFoundError("User not found")
    if not await run_in_threadpool(verify_password, payload.currentPassword, user.password_hash):
        raise AuthError("Current password is incorrect", ErrorKind.INVALID_CREDENTIALS)

    user.password_hash = await run_in_threadpool(hash_password, payload.newPassword)
    await db.commit()
    logger.info("Password changed for user %s", user.id)


async def _personal_summaries(db: AsyncSession, student_ids) -> dict:
    ids = [s for s in student_ids if s]
    if not ids:
        return {}
    result = await db.execute(select(PersonalInfo).where(PersonalInfo.student_id.in_(ids)))
    return {p.student_id: PersonalSummary.model_validate(p) for p in result.scalars().all()}


def _user_to_profile(user: User, summaries: dict) -> UserProfile:
    return UserProfile(
        id=user.id,
        email=user.email,
        phone_no=user.phone_no,
        student_id=user.student_id,
        created_at=user.created_at,
        personal_info=summaries.get(user.student_id),
    )


async def get_user_profile(db: AsyncSession, user_id: int) -> UserProfileResponse:
    user = await db.get(User, user_id)
    if not user:
        raise NotFoundError("User not found")
    summaries = await _personal_summaries(db, [user.student_id])
    return UserProfileResponse(user=_user_to_profile(user, summaries))


async def update_user_profile(
    db: AsyncSession, user_id: int, payload: ProfileUpdate
) -> UserProfileResponse:
    user = await db.get(User, user_id)
    if not user:
        raise NotFoundError("User not found")

    if payload.email and payload.email.lower() != user.email.lower():
        existing = await _get_user_by_email(db, payload.email)
        if existing and existing.id != user.id:
            raise ConflictError("Email already taken")
        user.email = payload.email
    if payload.phone_no:
        user.phone_no = payload.phone_no

    try:
        await db.commit()
    except IntegrityError as e:
        await db.rollback()
        raise ConflictError("Email already taken") from e
    await db.refresh(user)

    summaries = await _personal_summaries(db, [user.student_id])
    return UserProfileResponse(
        message="Profile updated successfully",
        user=_user_to_profile(user, summaries),
    )


async def list_users(db: AsyncSession) -> UserListResponse:
    result = await db.execute(select(User).order_by(User.id))
    users = result.scalars().all()
    summaries = await _personal_summaries(db, [u.student_id for u in users])
    return UserListResponse(
        message="Users retrieved successfully",
        count=len(users),
        users=[_user_to_profile(u, summaries) for u in users],
    )


async def _get_admin_with_profile(db: AsyncSession, admin_id: int) -> AdminUser:
    admin = await db.get(AdminUser, admin_id)
    if not admin:
        raise NotFoundError("Admin not found")
    # Explicit load; lazy loading is not available on AsyncSession
    await db.refresh(admin, attribute_names=["profile"])
    return admin


def _admin_profile_response(admin: AdminUser, message: Optional[str] = None) -> AdminProfileResponse:
    return AdminProfileResponse(
        message=message,
        admin=AdminInfo.model_validate(admin),
        profile=AdminProfileInfo.model_validate(admin.profile) if admin.profile else None,
    )


async def get_admin_profile(db: AsyncSession, admin_id: int) -> AdminProfileResponse:
    admin = await _get_admin_with_profile(db, admin_id)
    return _admin_profile_response(admin)


async def update_admin_profile(
    db: AsyncSession, admin_id: int, payload: AdminProfileUpdate
) -> AdminProfileResponse:
    """Allow-listed upsert of the admin's profile row."""
    admin = await _get_admin_with_profile(db, admin_id)
    changes = payload.model_dump(exclude_unset=True)
    required = ("first_name", "last_name", "phone_number")

    profile = admin.profile
    if profile is None:
        missing = [f for f in required if not changes.get(f)]
    else:
        missing = [f for f in required if f in changes and changes[f] is None]
    if missing:
        raise ValidationError(
            "first_name, last_name and phone_number are required for an admin profile",
            details=missing,
        )

    if profile is None:
        profile = AdminProfile(admin_id=admin.id, email=admin.email)
        db.add(profile)
        admin.profile = profile
    for field, value in changes.items():
        setattr(profile, field, value)

    await db.commit()
    return _admin_profile_response(admin, "Admin profile updated successfully")
