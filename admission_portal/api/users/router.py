from fastapi import APIRouter, Depends, HTTPException
from fastapi import status as http_status
from sqlalchemy.ext.asyncio import AsyncSession

from admission_portal.auth import services
from admission_portal.auth.dependencies import get_current_admin, get_current_student
from admission_portal.auth.schemas import (
    AdminAuthResponse,
    AdminPrincipal,
    AdminProfileResponse,
    AdminProfileUpdate,
    AuthResponse,
    ChangePasswordRequest,
    LoginRequest,
    MessageResponse,
    ProfileUpdate,
    RegisterRequest,
    StudentPrincipal,
    UserListResponse,
    UserProfileResponse,
)
from admission_portal.core.exceptions import ServiceError
from admission_portal.db.session import get_db

router = APIRouter(prefix="/api/users", tags=["users"])


@router.post(
    "/register",
    response_model=AuthResponse,
    status_code=http_status.HTTP_201_CREATED,
)
async def register(
    payload: RegisterRequest,
    db: AsyncSession = Depends(get_db),
) -> AuthResponse:
    try:
        return await services.register_user(db, payload)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.to_detail())


@router.post("/login", response_model=AuthResponse)
async def login(
    payload: LoginRequest,
    db: AsyncSession = Depends(get_db),
) -> AuthResponse:
    try:
        return await services.login_user(db, payload)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.to_detail())


@router.post("/admin/login", response_model=AdminAuthResponse)
async def admin_login(
    payload: LoginRequest,
    db: AsyncSession = Depends(get_db),
) -> AdminAuthResponse:
    try:
        return await services.login_admin(db, payload)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.to_detail())


@router.get("/profile", response_model=UserProfileResponse)
@router.get("/profile-data", response_model=UserProfileResponse)
async def get_profile(
    db: AsyncSession = Depends(get_db),
    current_user: StudentPrincipal = Depends(get_current_student),
) -> UserProfileResponse:
    try:
        return await services.get_user_profile(db, current_user.id)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.to_detail())


@router.put("/profile", response_model=UserProfileResponse)
async def update_profile(
    payload: ProfileUpdate,
    db: AsyncSession = Depends(get_db),
    current_user: StudentPrincipal = Depends(get_current_student),
) -> UserProfileResponse:
    try:
        return await services.update_user_profile(db, current_user.id, payload)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.to_detail())


@router.put("/change-password", response_model=MessageResponse)
async def change_password(
    payload: ChangePasswordRequest,
    db: AsyncSession = Depends(get_db),
    current_user: StudentPrincipal = Depends(get_current_student),
) -> MessageResponse:
    """Re-verifies the current password before storing the new hash."""
    try:
        await services.change_password(db, current_user.id, payload)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.to_detail())
    return MessageResponse(message="Password changed successfully")


@router.get("/admin/profile", response_model=AdminProfileResponse)
@router.get("/admin/profile-data", response_model=AdminProfileResponse)
async def get_admin_profile(
    db: AsyncSession = Depends(get_db),
    current_admin: AdminPrincipal = Depends(get_current_admin),
) -> AdminProfileResponse:
    try:
        return await services.get_admin_profile(db, current_admin.id)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.to_detail())


@router.put("/admin/profile", response_model=AdminProfileResponse)
async def update_admin_profile(
    payload: AdminProfileUpdate,
    db: AsyncSession = Depends(get_db),
    current_admin: AdminPrincipal = Depends(get_current_admin),
) -> AdminProfileResponse:
    try:
        return await services.update_admin_profile(db, current_admin.id, payload)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.to_detail())


@router.get(
    "/admin/users",
    response_model=UserListResponse,
    dependencies=[Depends(get_current_admin)],
)
async def list_users(db: AsyncSession = Depends(get_db)) -> UserListResponse:
    return await services.list_users(db)
