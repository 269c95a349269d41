"""Course catalog: public browsing and admin maintenance of courses, program details and seat counts."""

import logging
from typing import Optional

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from admission_portal.core.exceptions import InternalError, NotFoundError, ValidationError
from admission_portal.core.models import Course, CourseDetail, CourseSeat

from .schemas import (
    CourseCreate,
    CourseDetailCreate,
    CourseDetailEnvelope,
    CourseDetailListResponse,
    CourseDetailResponse,
    CourseDetailsAndSeatsResponse,
    CourseDetailUpdate,
    CourseEnvelope,
    CourseListResponse,
    CourseRef,
    CourseResponse,
    CourseSeatCreate,
    CourseSeatEnvelope,
    CourseSeatListResponse,
    CourseSeatResponse,
    CourseSeatUpdate,
    CourseUpdate,
)

logger = logging.getLogger(__name__)


def _course_ref(c: Optional[Course], with_duration: bool = True) -> Optional[CourseRef]:
    if c is None:
        return None
    return CourseRef(id=c.id, name=c.name, duration=c.duration if with_duration else None)


def _detail_to_response(d: CourseDetail, course: Optional[CourseRef] = None) -> CourseDetailResponse:
    return CourseDetailResponse(
        id=d.id,
        course_id=d.course_id,
        program=d.program,
        fees=d.fees,
        eligibility=d.eligibility,
        course=course,
    )


def _seat_to_response(s: CourseSeat, course: Optional[CourseRef] = None) -> CourseSeatResponse:
    return CourseSeatResponse(id=s.id, course_id=s.course_id, seats=s.seats, course=course)


def _course_to_response(c: Course) -> CourseResponse:
    return CourseResponse(
        id=c.id,
        name=c.name,
        fees=c.fees,
        duration=c.duration,
        eligibility=c.eligibility,
        fees_link=c.fees_link,
        brochure_link=c.brochure_link,
        brochure_name=c.brochure_name,
        apply_link=c.apply_link,
        apply_name=c.apply_name,
        courseDetails=[_detail_to_response(d) for d in c.course_details],
        courseSeats=[_seat_to_response(s) for s in c.course_seats],
    )


def _with_children(stmt):
    return stmt.options(selectinload(Course.course_details), selectinload(Course.course_seats))


async def _get_course(db: AsyncSession, course_id: int) -> Course:
    result = await db.execute(_with_children(select(Course).where(Course.id == course_id)))
    course = result.scalar_one_or_none()
    if not course:
        raise NotFoundError("Course not found")
    return course


async def _commit(db: AsyncSession, failure_message: str) -> None:
    try:
        await db.commit()
    except IntegrityError as e:
        # CHECK constraints (negative fees/seats) or a dangling course_id
        await db.rollback()
        raise ValidationError(f"{failure_message}: constraint violated") from e
    except Exception as e:
        await db.rollback()
        logger.exception(failure_message)
        raise InternalError(failure_message) from e


# ----- Public -----


async def list_courses(db: AsyncSession, order_by_name: bool = True) -> CourseListResponse:
    order = Course.name if order_by_name else Course.id
    result = await db.execute(_with_children(select(Course).order_by(order, Course.id)))
    courses = [_course_to_response(c) for c in result.scalars().all()]
    return CourseListResponse(message="Courses retrieved successfully", count=len(courses), courses=courses)


async def get_course(db: AsyncSession, course_id: int) -> CourseEnvelope:
    course = await _get_course(db, course_id)
    return CourseEnvelope(course=_course_to_response(course))


async def list_course_details(db: AsyncSession) -> CourseDetailListResponse:
    result = await db.execute(
        select(CourseDetail).options(selectinload(CourseDetail.course)).order_by(CourseDetail.id)
    )
    details = [_detail_to_response(d, _course_ref(d.course)) for d in result.scalars().all()]
    return CourseDetailListResponse(
        message="Course details retrieved successfully",
        count=len(details),
        courseDetails=details,
    )


async def list_course_seats(db: AsyncSession) -> CourseSeatListResponse:
    result = await db.execute(
        select(CourseSeat).options(selectinload(CourseSeat.course)).order_by(CourseSeat.id)
    )
    seats = [_seat_to_response(s, _course_ref(s.course, with_duration=False)) for s in result.scalars().all()]
    return CourseSeatListResponse(
        message="Course seats retrieved successfully",
        count=len(seats),
        courseSeats=seats,
    )


async def get_course_details_and_seats(db: AsyncSession, course_id: int) -> CourseDetailsAndSeatsResponse:
    """Empty lists for an unknown course."""
    details = await db.execute(
        select(CourseDetail).where(CourseDetail.course_id == course_id).order_by(CourseDetail.id)
    )
    seats = await db.execute(
        select(CourseSeat).where(CourseSeat.course_id == course_id).order_by(CourseSeat.id)
    )
    return CourseDetailsAndSeatsResponse(
        message="Course details and seats retrieved successfully",
        courseDetails=[_detail_to_response(d) for d in details.scalars().all()],
        courseSeats=[_seat_to_response(s) for s in seats.scalars().all()],
    )


# ----- Admin: courses -----


async def create_course(db: AsyncSession, payload: CourseCreate) -> CourseEnvelope:
    fields = payload.model_dump(exclude={"courseDetails", "courseSeats"})
    course = Course(**fields)
    course.course_details = [CourseDetail(**d.model_dump()) for d in payload.courseDetails]
    course.course_seats = [CourseSeat(**s.model_dump()) for s in payload.courseSeats]
    db.add(course)
    await _commit(db, "Failed to create course")

    logger.info("Created course %s (%s)", course.id, course.name)
    course = await _get_course(db, course.id)
    return CourseEnvelope(message="Course created successfully", course=_course_to_response(course))


async def update_course(db: AsyncSession, course_id: int, payload: CourseUpdate) -> CourseEnvelope:
    course = await _get_course(db, course_id)
    changes = payload.model_dump(exclude_unset=True)
    if any(field in changes and changes[field] is None for field in ("name", "fees")):
        raise ValidationError("Course name and fees cannot be empty")
    for field, value in changes.items():
        setattr(course, field, value)
    await _commit(db, "Failed to update course")
    return CourseEnvelope(message="Course updated successfully", course=_course_to_response(course))


async def delete_course(db: AsyncSession, course_id: int) -> None:
    # Children are loaded so the ORM cascade can delete them
    course = await _get_course(db, course_id)
    await db.delete(course)
    await _commit(db, "Failed to delete course")
    logger.info("Deleted course %s", course_id)


async def admin_list_courses(db: AsyncSession) -> CourseListResponse:
    return await list_courses(db, order_by_name=False)


# ----- Admin: course details -----


async def _ensure_course_exists(db: AsyncSession, course_id: int) -> None:
    if await db.get(Course, course_id) is None:
        raise NotFoundError("Course not found")


async def _get_detail(db: AsyncSession, detail_id: int) -> CourseDetail:
    detail = await db.get(CourseDetail, detail_id)
    if not detail:
        raise NotFoundError("Course detail not found")
    return detail


async def add_course_detail(db: AsyncSession, payload: CourseDetailCreate) -> CourseDetailEnvelope:
    await _ensure_course_exists(db, payload.course_id)
    detail = CourseDetail(**payload.model_dump())
    db.add(detail)
    await _commit(db, "Failed to add course detail")
    return CourseDetailEnvelope(message="Course detail added successfully", courseDetail=_detail_to_response(detail))


async def update_course_detail(
    db: AsyncSession, detail_id: int, payload: CourseDetailUpdate
) -> CourseDetailEnvelope:
    detail = await _get_detail(db, detail_id)
    changes = payload.model_dump(exclude_unset=True)
    if "program" in changes and changes["program"] is None:
        raise ValidationError("Program cannot be empty")
    for field, value in changes.items():
        setattr(detail, field, value)
    await _commit(db, "Failed to update course detail")
    return CourseDetailEnvelope(message="Course detail updated successfully", courseDetail=_detail_to_response(detail))


async def delete_course_detail(db: AsyncSession, detail_id: int) -> None:
    detail = await _get_detail(db, detail_id)
    await db.delete(detail)
    await _commit(db, "Failed to delete course detail")


# ----- Admin: course seats -----


async def _get_seat(db: AsyncSession, seat_id: int) -> CourseSeat:
    seat = await db.get(CourseSeat, seat_id)
    if not seat:
        raise NotFoundError("Course seat not found")
    return seat


async def add_course_seat(db: AsyncSession, payload: CourseSeatCreate) -> CourseSeatEnvelope:
    await _ensure_course_exists(db, payload.course_id)
    seat = CourseSeat(**payload.model_dump())
    db.add(seat)
    await _commit(db, "Failed to add course seat")
    return CourseSeatEnvelope(message="Course seat added successfully", courseSeat=_seat_to_response(seat))


async def update_course_seat(db: AsyncSession, seat_id: int, payload: CourseSeatUpdate) -> CourseSeatEnvelope:
    seat = await _get_seat(db, seat_id)
    seat.seats = payload.seats
    await _commit(db, "Failed to update course seat")
    return CourseSeatEnvelope(message="Course seat updated successfully", courseSeat=_seat_to_response(seat))


async def delete_course_seat(db: AsyncSession, seat_id: int) -> None:
    seat = await _get_seat(db, seat_id)
    await db.delete(seat)
    await _commit(db, "Failed to delete course seat")
