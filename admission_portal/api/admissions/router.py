from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from admission_portal.auth.dependencies import get_current_admin, get_current_student
from admission_portal.auth.schemas import AdminPrincipal, StudentPrincipal
from admission_portal.core.exceptions import ServiceError
from admission_portal.db.session import get_db

from .schemas import (
    AcademicInfoEnvelope,
    AcademicInfoUpdate,
    AdmissionRecordEnvelope,
    AdmissionStatistics,
    ApplicationEnvelope,
    ApplicationListResponse,
    ApplicationStatusResponse,
    ApplicationSubmit,
    ApplicationSubmitResponse,
    ExtraInfoEnvelope,
    ExtraInfoIn,
    PersonalInfoEnvelope,
    PersonalInfoUpdate,
    StatusUpdate,
)
from . import service, statistics

router = APIRouter(prefix="/api/admissions", tags=["admissions"])


# ----- Student: submission -----

@router.post(
    "/submit",
    response_model=ApplicationSubmitResponse,
    status_code=status.HTTP_201_CREATED,
)
async def submit_application(
    payload: ApplicationSubmit,
    db: AsyncSession = Depends(get_db),
    current_user: StudentPrincipal = Depends(get_current_student),
) -> ApplicationSubmitResponse:
    """Create personal, academic, optional extra info and the admission record in one transaction. Once per user."""
    try:
        return await service.submit_application(db, current_user, payload)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.to_detail())


@router.get("/application", response_model=ApplicationEnvelope)
async def get_application(
    db: AsyncSession = Depends(get_db),
    current_user: StudentPrincipal = Depends(get_current_student),
) -> ApplicationEnvelope:
    try:
        return await service.get_complete_application(db, current_user.student_id)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.to_detail())


@router.get("/application/status", response_model=ApplicationStatusResponse)
async def get_application_status(
    db: AsyncSession = Depends(get_db),
    current_user: StudentPrincipal = Depends(get_current_student),
) -> ApplicationStatusResponse:
    try:
        return await statistics.get_application_status(db, current_user.student_id)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.to_detail())


# ----- Student: single sections -----

@router.get("/personal-info", response_model=PersonalInfoEnvelope)
async def get_personal_info(
    db: AsyncSession = Depends(get_db),
    current_user: StudentPrincipal = Depends(get_current_student),
) -> PersonalInfoEnvelope:
    try:
        return await service.get_personal_info(db, current_user.student_id)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.to_detail())


@router.put("/personal-info", response_model=PersonalInfoEnvelope)
async def update_personal_info(
    payload: PersonalInfoUpdate,
    db: AsyncSession = Depends(get_db),
    current_user: StudentPrincipal = Depends(get_current_student),
) -> PersonalInfoEnvelope:
    try:
        return await service.update_personal_info(db, current_user.student_id, payload)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.to_detail())


@router.get("/academic-info", response_model=AcademicInfoEnvelope)
async def get_academic_info(
    db: AsyncSession = Depends(get_db),
    current_user: StudentPrincipal = Depends(get_current_student),
) -> AcademicInfoEnvelope:
    try:
        return await service.get_academic_info(db, current_user.student_id)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.to_detail())


@router.put("/academic-info", response_model=AcademicInfoEnvelope)
async def update_academic_info(
    payload: AcademicInfoUpdate,
    db: AsyncSession = Depends(get_db),
    current_user: StudentPrincipal = Depends(get_current_student),
) -> AcademicInfoEnvelope:
    """Updating subjects recomputes total, percentage and cutoff marks."""
    try:
        return await service.update_academic_info(db, current_user.student_id, payload)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.to_detail())


@router.get("/extra-info", response_model=ExtraInfoEnvelope)
async def get_extra_info(
    db: AsyncSession = Depends(get_db),
    current_user: StudentPrincipal = Depends(get_current_student),
) -> ExtraInfoEnvelope:
    try:
        return await service.get_extra_info(db, current_user.student_id)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.to_detail())


@router.put("/extra-info", response_model=ExtraInfoEnvelope)
async def update_extra_info(
    payload: ExtraInfoIn,
    db: AsyncSession = Depends(get_db),
    current_user: StudentPrincipal = Depends(get_current_student),
) -> ExtraInfoEnvelope:
    try:
        return await service.update_extra_info(db, current_user.student_id, payload)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.to_detail())


@router.get("/admission-record", response_model=AdmissionRecordEnvelope)
async def get_admission_record(
    db: AsyncSession = Depends(get_db),
    current_user: StudentPrincipal = Depends(get_current_student),
) -> AdmissionRecordEnvelope:
    try:
        return await service.get_admission_record(db, current_user.student_id)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.to_detail())


@router.get("/student-dashboard/statistics", response_model=AdmissionStatistics)
async def student_dashboard_statistics(
    db: AsyncSession = Depends(get_db),
    current_user: StudentPrincipal = Depends(get_current_student),
) -> AdmissionStatistics:
    return await statistics.get_student_statistics(db, current_user.student_id)


# ----- Admin -----

@router.get(
    "/admin/applications",
    response_model=ApplicationListResponse,
    dependencies=[Depends(get_current_admin)],
)
async def list_applications(
    status_filter: Optional[str] = Query(None, alias="status", description="Filter by status: Pending, Approved, Rejected"),
    db: AsyncSession = Depends(get_db),
) -> ApplicationListResponse:
    return await service.list_applications(db, status_filter=status_filter)


@router.put("/admin/application/{admission_id}/status", response_model=AdmissionRecordEnvelope)
async def update_application_status(
    admission_id: str,
    payload: StatusUpdate,
    db: AsyncSession = Depends(get_db),
    current_admin: AdminPrincipal = Depends(get_current_admin),
) -> AdmissionRecordEnvelope:
    try:
        return await service.update_application_status(
            db,
            admission_id,
            payload.status,
            admin_id=current_admin.id,
        )
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.to_detail())


@router.get(
    "/admin-dashboard/statistics",
    response_model=AdmissionStatistics,
    dependencies=[Depends(get_current_admin)],
)
async def admin_dashboard_statistics(db: AsyncSession = Depends(get_db)) -> AdmissionStatistics:
    return await statistics.get_statistics(db)
