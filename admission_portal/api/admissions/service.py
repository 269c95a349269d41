"""
Application aggregate: PersonalInfo + AcademicInfo + ExtraInfo + AdmissionRecord for one student,
written as one transaction exactly once per user. Sections can be edited one row at a time afterwards;
the admission status is changed only by admins.
"""

import asyncio
import logging
import weakref
from typing import Any, Dict, Iterable, List, Optional

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from admission_portal.auth.models import User
from admission_portal.auth.schemas import StudentPrincipal
from admission_portal.core.enums import ApplicationStatus, ErrorKind
from admission_portal.core.exceptions import (
    ConflictError,
    InternalError,
    NotFoundError,
    ServiceError,
    ValidationError,
)
from admission_portal.core.id_generator import (
    generate_academic_id,
    generate_admission_id,
    generate_student_id,
)
from admission_portal.core.models import AcademicInfo, AdmissionRecord, ExtraInfo, PersonalInfo

from .marks import summarize_marks
from .schemas import (
    AcademicInfoEnvelope,
    AcademicInfoResponse,
    AcademicInfoUpdate,
    AdmissionRecordEnvelope,
    AdmissionRecordResponse,
    ApplicationDetail,
    ApplicationEnvelope,
    ApplicationListResponse,
    ApplicationSubmit,
    ApplicationSubmitResponse,
    ExtraInfoEnvelope,
    ExtraInfoIn,
    ExtraInfoResponse,
    PersonalInfoEnvelope,
    PersonalInfoResponse,
    PersonalInfoUpdate,
)

logger = logging.getLogger(__name__)

ALREADY_SUBMITTED_MESSAGE = "Application already submitted"
MISSING_SECTION_MESSAGE = "Personal info and academic info are required"
DUPLICATE_ENTRY_MESSAGE = "Duplicate entry found (Aadhaar number or email already exists)"

# Serializes student_id read-increment-insert within this process. Across processes the
# unique keys on personal_info.student_id and admission_records.student_id turn a race
# into a DuplicateEntry conflict. One lock per event loop, created on first use.
_submission_locks: "weakref.WeakKeyDictionary[asyncio.AbstractEventLoop, asyncio.Lock]" = weakref.WeakKeyDictionary()


def _submission_lock() -> asyncio.Lock:
    loop = asyncio.get_running_loop()
    lock = _submission_locks.get(loop)
    if lock is None:
        lock = _submission_locks[loop] = asyncio.Lock()
    return lock


def _with_mark_summary(academic: Dict[str, Any]) -> Dict[str, Any]:
    summary = summarize_marks(academic.get("subjects") or [])
    academic["total_marks"] = summary.total_marks
    academic["mark_percentage"] = summary.mark_percentage
    academic["cutoff_marks"] = summary.cutoff_marks
    return academic


async def _admission_exists(db: AsyncSession, student_id: Optional[str]) -> bool:
    if not student_id:
        return False
    result = await db.execute(select(AdmissionRecord.id).where(AdmissionRecord.student_id == student_id))
    return result.first() is not None


async def submit_application(
    db: AsyncSession,
    principal: StudentPrincipal,
    payload: ApplicationSubmit,
) -> ApplicationSubmitResponse:
    async with _submission_lock():
        return await _submit_application(db, principal, payload)


async def _submit_application(
    db: AsyncSession,
    principal: StudentPrincipal,
    payload: ApplicationSubmit,
) -> ApplicationSubmitResponse:
    # 1. One application per user
    user = await db.get(User, principal.id)
    if not user:
        raise NotFoundError("User not found")
    if await _admission_exists(db, user.student_id):
        raise ConflictError(ALREADY_SUBMITTED_MESSAGE, kind=ErrorKind.ALREADY_SUBMITTED)

    # 2. Required sections
    if payload.personalInfo is None or payload.academicInfo is None:
        raise ValidationError(MISSING_SECTION_MESSAGE, kind=ErrorKind.MISSING_SECTION)

    try:
        # 3. Identifiers
        student_id = await generate_student_id(db)
        academic_id = generate_academic_id()
        admission_id = generate_admission_id()

        # 4. Records, flushed in order so a failing insert stops the chain
        db.add(PersonalInfo(student_id=student_id, **payload.personalInfo.model_dump()))
        await db.flush()

        academic = _with_mark_summary(payload.academicInfo.model_dump())
        db.add(AcademicInfo(academic_id=academic_id, student_id=student_id, **academic))
        await db.flush()

        if payload.extraInfo is not None:
            db.add(ExtraInfo(student_id=student_id, **payload.extraInfo.model_dump()))
            await db.flush()

        db.add(
            AdmissionRecord(
                admission_id=admission_id,
                student_id=student_id,
                email=user.email,
                application_status=ApplicationStatus.PENDING.value,
            )
        )
        await db.flush()

        # 5. Link the user to the new student
        user.student_id = student_id
        await db.commit()

    except IntegrityError as e:
        await db.rollback()
        logger.info("Application submission rolled back for user %s: duplicate entry", principal.id)
        raise ConflictError(DUPLICATE_ENTRY_MESSAGE, kind=ErrorKind.DUPLICATE_ENTRY) from e
    except ServiceError:
        await db.rollback()
        raise
    except Exception as e:
        await db.rollback()
        logger.exception("Application submission failed for user %s", principal.id)
        raise InternalError("Failed to submit application") from e

    logger.info("Application %s submitted for student %s", admission_id, student_id)
    return ApplicationSubmitResponse(
        message="Application submitted successfully",
        student_id=student_id,
        admission_id=admission_id,
    )


# ----- Single-section reads and updates (after submission) -----


def _require_student_id(student_id: Optional[str], message: str) -> str:
    if not student_id:
        raise NotFoundError(message)
    return student_id


def _apply_changes(row: Any, changes: Dict[str, Any], required: Iterable[str] = ()) -> None:
    cleared = [field for field in required if field in changes and changes[field] is None]
    if cleared:
        raise ValidationError(f"Required field(s) cannot be empty: {', '.join(cleared)}", details=cleared)
    for field, value in changes.items():
        setattr(row, field, value)


async def _commit_single_row(db: AsyncSession, failure_message: str) -> None:
    try:
        await db.commit()
    except IntegrityError as e:
        await db.rollback()
        raise ConflictError(DUPLICATE_ENTRY_MESSAGE, kind=ErrorKind.DUPLICATE_ENTRY) from e
    except Exception as e:
        await db.rollback()
        logger.exception(failure_message)
        raise InternalError(failure_message) from e


async def _get_personal(db: AsyncSession, student_id: Optional[str]) -> PersonalInfo:
    sid = _require_student_id(student_id, "Personal info not found")
    row = await db.get(PersonalInfo, sid)
    if not row:
        raise NotFoundError("Personal info not found")
    return row


async def _get_academic(db: AsyncSession, student_id: Optional[str]) -> AcademicInfo:
    sid = _require_student_id(student_id, "Academic info not found")
    result = await db.execute(select(AcademicInfo).where(AcademicInfo.student_id == sid))
    row = result.scalar_one_or_none()
    if not row:
        raise NotFoundError("Academic info not found")
    return row


async def _get_extra(db: AsyncSession, student_id: Optional[str]) -> ExtraInfo:
    sid = _require_student_id(student_id, "Extra info not found")
    row = await db.get(ExtraInfo, sid)
    if not row:
        raise NotFoundError("Extra info not found")
    return row


async def get_personal_info(db: AsyncSession, student_id: Optional[str]) -> PersonalInfoEnvelope:
    row = await _get_personal(db, student_id)
    return PersonalInfoEnvelope(personalInfo=PersonalInfoResponse.model_validate(row))


async def update_personal_info(
    db: AsyncSession, student_id: Optional[str], payload: PersonalInfoUpdate
) -> PersonalInfoEnvelope:
    row = await _get_personal(db, student_id)
    _apply_changes(
        row,
        payload.model_dump(exclude_unset=True),
        required=("first_name", "last_name", "email", "phone_number", "aadhaar_number"),
    )
    await _commit_single_row(db, "Failed to update personal info")
    return PersonalInfoEnvelope(
        message="Personal info updated",
        personalInfo=PersonalInfoResponse.model_validate(row),
    )


async def get_academic_info(db: AsyncSession, student_id: Optional[str]) -> AcademicInfoEnvelope:
    row = await _get_academic(db, student_id)
    return AcademicInfoEnvelope(academicInfo=AcademicInfoResponse.model_validate(row))


async def update_academic_info(
    db: AsyncSession, student_id: Optional[str], payload: AcademicInfoUpdate
) -> AcademicInfoEnvelope:
    row = await _get_academic(db, student_id)
    changes = payload.model_dump(exclude_unset=True)
    if "subjects" in changes:
        changes = _with_mark_summary(changes)
    _apply_changes(row, changes)
    await _commit_single_row(db, "Failed to update academic info")
    return AcademicInfoEnvelope(
        message="Academic info updated",
        academicInfo=AcademicInfoResponse.model_validate(row),
    )


async def get_extra_info(db: AsyncSession, student_id: Optional[str]) -> ExtraInfoEnvelope:
    row = await _get_extra(db, student_id)
    return ExtraInfoEnvelope(extraInfo=ExtraInfoResponse.model_validate(row))


async def update_extra_info(
    db: AsyncSession, student_id: Optional[str], payload: ExtraInfoIn
) -> ExtraInfoEnvelope:
    row = await _get_extra(db, student_id)
    _apply_changes(row, payload.model_dump(exclude_unset=True))
    await _commit_single_row(db, "Failed to update extra info")
    return ExtraInfoEnvelope(
        message="Extra info updated",
        extraInfo=ExtraInfoResponse.model_validate(row),
    )


async def get_admission_record(db: AsyncSession, student_id: Optional[str]) -> AdmissionRecordEnvelope:
    sid = _require_student_id(student_id, "Admission record not found")
    result = await db.execute(select(AdmissionRecord).where(AdmissionRecord.student_id == sid))
    record = result.scalar_one_or_none()
    if not record:
        raise NotFoundError("Admission record not found")
    return AdmissionRecordEnvelope(admissionRecord=AdmissionRecordResponse.model_validate(record))


# ----- Aggregate reads -----


def _with_sections(stmt):
    return stmt.options(
        selectinload(AdmissionRecord.personal_info).selectinload(PersonalInfo.academic_info),
        selectinload(AdmissionRecord.personal_info).selectinload(PersonalInfo.extra_info),
    )


def _record_to_detail(record: AdmissionRecord) -> ApplicationDetail:
    personal = record.personal_info
    return ApplicationDetail(
        admission_id=record.admission_id,
        student_id=record.student_id,
        email=record.email,
        application_status=record.application_status,
        admission_timestamp=record.admission_timestamp,
        personalInfo=PersonalInfoResponse.model_validate(personal) if personal else None,
        academicInfo=(
            AcademicInfoResponse.model_validate(personal.academic_info)
            if personal and personal.academic_info
            else None
        ),
        extraInfo=(
            ExtraInfoResponse.model_validate(personal.extra_info)
            if personal and personal.extra_info
            else None
        ),
    )


async def get_complete_application(db: AsyncSession, student_id: Optional[str]) -> ApplicationEnvelope:
    sid = _require_student_id(student_id, "Application not found")
    result = await db.execute(_with_sections(select(AdmissionRecord).where(AdmissionRecord.student_id == sid)))
    record = result.scalar_one_or_none()
    if not record:
        raise NotFoundError("Application not found")
    return ApplicationEnvelope(application=_record_to_detail(record))


async def list_applications(
    db: AsyncSession, status_filter: Optional[str] = None
) -> ApplicationListResponse:
    stmt = select(AdmissionRecord)
    if status_filter:
        stmt = stmt.where(AdmissionRecord.application_status == status_filter)
    stmt = stmt.order_by(AdmissionRecord.admission_timestamp.desc(), AdmissionRecord.id.desc())
    result = await db.execute(_with_sections(stmt))
    applications: List[ApplicationDetail] = [_record_to_detail(r) for r in result.scalars().all()]
    return ApplicationListResponse(applications=applications, count=len(applications))


async def update_application_status(
    db: AsyncSession, admission_id: str, new_status: str, admin_id: Optional[int] = None
) -> AdmissionRecordEnvelope:
    """Set Pending/Approved/Rejected. Anything else is rejected without touching the record."""
    try:
        status_value = ApplicationStatus(new_status)
    except ValueError:
        raise ValidationError("Invalid status", kind=ErrorKind.INVALID_STATUS)

    result = await db.execute(select(AdmissionRecord).where(AdmissionRecord.admission_id == admission_id))
    record = result.scalar_one_or_none()
    if not record:
        raise NotFoundError("Admission record not found")

    from_status = record.application_status
    record.application_status = status_value.value
    await _commit_single_row(db, "Failed to update application status")
    logger.info(
        "Admission %s status %s -> %s by admin %s",
        admission_id,
        from_status,
        status_value.value,
        admin_id,
    )
    return AdmissionRecordEnvelope(
        message="Application status updated",
        admissionRecord=AdmissionRecordResponse.model_validate(record),
    )
