from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession

from admission_portal.auth.dependencies import get_current_admin
from admission_portal.auth.schemas import MessageResponse
from admission_portal.core.exceptions import ServiceError
from admission_portal.db.session import get_db

from .schemas import (
    CourseCreate,
    CourseDetailCreate,
    CourseDetailEnvelope,
    CourseDetailListResponse,
    CourseDetailsAndSeatsResponse,
    CourseDetailUpdate,
    CourseEnvelope,
    CourseListResponse,
    CourseSeatCreate,
    CourseSeatEnvelope,
    CourseSeatListResponse,
    CourseSeatUpdate,
    CourseUpdate,
)
from . import service

router = APIRouter(prefix="/api/courses", tags=["courses"])

# Static paths are declared before "/{course_id}" so they are not captured by it.


# ----- Public -----

@router.get("", response_model=CourseListResponse)
async def list_courses(db: AsyncSession = Depends(get_db)) -> CourseListResponse:
    """All courses ordered by name, with program details and seats."""
    return await service.list_courses(db)


@router.get("/course-details", response_model=CourseDetailListResponse)
async def list_course_details(db: AsyncSession = Depends(get_db)) -> CourseDetailListResponse:
    return await service.list_course_details(db)


@router.get("/course-seats", response_model=CourseSeatListResponse)
async def list_course_seats(db: AsyncSession = Depends(get_db)) -> CourseSeatListResponse:
    return await service.list_course_seats(db)


@router.get("/course-details-seats/{course_id}", response_model=CourseDetailsAndSeatsResponse)
async def get_course_details_and_seats(
    course_id: int,
    db: AsyncSession = Depends(get_db),
) -> CourseDetailsAndSeatsResponse:
    return await service.get_course_details_and_seats(db, course_id)


# ----- Admin: courses -----

@router.post(
    "/admin/course",
    response_model=CourseEnvelope,
    status_code=status.HTTP_201_CREATED,
    dependencies=[Depends(get_current_admin)],
)
async def create_course(
    payload: CourseCreate,
    db: AsyncSession = Depends(get_db),
) -> CourseEnvelope:
    """Create a course with its details and seats in one transaction."""
    try:
        return await service.create_course(db, payload)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.to_detail())


@router.get(
    "/admin/all",
    response_model=CourseListResponse,
    dependencies=[Depends(get_current_admin)],
)
async def admin_list_courses(db: AsyncSession = Depends(get_db)) -> CourseListResponse:
    return await service.admin_list_courses(db)


# ----- Admin: course details -----

@router.post(
    "/admin/details",
    response_model=CourseDetailEnvelope,
    status_code=status.HTTP_201_CREATED,
    dependencies=[Depends(get_current_admin)],
)
async def add_course_detail(
    payload: CourseDetailCreate,
    db: AsyncSession = Depends(get_db),
) -> CourseDetailEnvelope:
    try:
        return await service.add_course_detail(db, payload)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.to_detail())


@router.put(
    "/admin/details/{detail_id}",
    response_model=CourseDetailEnvelope,
    dependencies=[Depends(get_current_admin)],
)
async def update_course_detail(
    detail_id: int,
    payload: CourseDetailUpdate,
    db: AsyncSession = Depends(get_db),
) -> CourseDetailEnvelope:
    try:
        return await service.update_course_detail(db, detail_id, payload)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.to_detail())


@router.delete(
    "/admin/details/{detail_id}",
    response_model=MessageResponse,
    dependencies=[Depends(get_current_admin)],
)
async def delete_course_detail(
    detail_id: int,
    db: AsyncSession = Depends(get_db),
) -> MessageResponse:
    try:
        await service.delete_course_detail(db, detail_id)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.to_detail())
    return MessageResponse(message="Course detail deleted successfully")


# ----- Admin: course seats -----

@router.post(
    "/admin/seats",
    response_model=CourseSeatEnvelope,
    status_code=status.HTTP_201_CREATED,
    dependencies=[Depends(get_current_admin)],
)
async def add_course_seat(
    payload: CourseSeatCreate,
    db: AsyncSession = Depends(get_db),
) -> CourseSeatEnvelope:
    try:
        return await service.add_course_seat(db, payload)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.to_detail())


@router.put(
    "/admin/seats/{seat_id}",
    response_model=CourseSeatEnvelope,
    dependencies=[Depends(get_current_admin)],
)
async def update_course_seat(
    seat_id: int,
    payload: CourseSeatUpdate,
    db: AsyncSession = Depends(get_db),
) -> CourseSeatEnvelope:
    try:
        return await service.update_course_seat(db, seat_id, payload)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.to_detail())


@router.delete(
    "/admin/seats/{seat_id}",
    response_model=MessageResponse,
    dependencies=[Depends(get_current_admin)],
)
async def delete_course_seat(
    seat_id: int,
    db: AsyncSession = Depends(get_db),
) -> MessageResponse:
    try:
        await service.delete_course_seat(db, seat_id)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.to_detail())
    return MessageResponse(message="Course seat deleted successfully")


# ----- Admin: single course (after the static /admin/* paths) -----

@router.put(
    "/admin/{course_id}",
    response_model=CourseEnvelope,
    dependencies=[Depends(get_current_admin)],
)
async def update_course(
    course_id: int,
    payload: CourseUpdate,
    db: AsyncSession = Depends(get_db),
) -> CourseEnvelope:
    try:
        return await service.update_course(db, course_id, payload)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.to_detail())


@router.delete(
    "/admin/{course_id}",
    response_model=MessageResponse,
    dependencies=[Depends(get_current_admin)],
)
async def delete_course(
    course_id: int,
    db: AsyncSession = Depends(get_db),
) -> MessageResponse:
    """Deletes the course together with its details and seats."""
    try:
        await service.delete_course(db, course_id)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.to_detail())
    return MessageResponse(message="Course deleted successfully")


# ----- Public: single course -----

@router.get("/{course_id}", response_model=CourseEnvelope)
async def get_course(
    course_id: int,
    db: AsyncSession = Depends(get_db),
) -> CourseEnvelope:
    try:
        return await service.get_course(db, course_id)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.to_detail())
