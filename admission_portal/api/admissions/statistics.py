"""Read-only aggregation for the admin and student dashboards."""

from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from admission_portal.core.enums import ApplicationStatus
from admission_portal.core.exceptions import NotFoundError
from admission_portal.core.models import AcademicInfo, AdmissionRecord, PersonalInfo

from .schemas import AdmissionStatistics, ApplicationStatusResponse


def _plural(count: int, unit: str) -> str:
    return f"{count} {unit}{'' if count == 1 else 's'} ago"


def format_time_since(then: datetime, now: Optional[datetime] = None) -> str:
    """Relative time: whole days if >= 1 day, else whole hours if >= 1 hour, else minutes."""
    if now is None:
        now = datetime.now(timezone.utc)
    # SQLite hands back naive datetimes; stored values are UTC
    if then.tzinfo is None:
        then = then.replace(tzinfo=timezone.utc)
    if now.tzinfo is None:
        now = now.replace(tzinfo=timezone.utc)

    seconds = max(int((now - then).total_seconds()), 0)
    days, remainder = divmod(seconds, 86400)
    if days >= 1:
        return _plural(days, "day")
    hours = remainder // 3600
    if hours >= 1:
        return _plural(hours, "hour")
    return _plural(remainder // 60, "minute")


async def get_statistics(db: AsyncSession, student_id: Optional[str] = None) -> AdmissionStatistics:
    """Counts by status. With student_id, only that student's record is counted."""
    stmt = select(AdmissionRecord.application_status, func.count(AdmissionRecord.id)).group_by(
        AdmissionRecord.application_status
    )
    if student_id is not None:
        stmt = stmt.where(AdmissionRecord.student_id == student_id)
    rows = (await db.execute(stmt)).all()

    counts = {status_value: count for status_value, count in rows}
    pending = counts.get(ApplicationStatus.PENDING.value, 0)
    approved = counts.get(ApplicationStatus.APPROVED.value, 0)
    rejected = counts.get(ApplicationStatus.REJECTED.value, 0)
    return AdmissionStatistics(
        total_applications=pending + approved + rejected,
        pending_applications=pending,
        approved_applications=approved,
        rejected_applications=rejected,
    )


async def get_student_statistics(db: AsyncSession, student_id: Optional[str]) -> AdmissionStatistics:
    if not student_id:
        return AdmissionStatistics()
    return await get_statistics(db, student_id)


async def get_application_status(
    db: AsyncSession, student_id: Optional[str], now: Optional[datetime] = None
) -> ApplicationStatusResponse:
    if not student_id:
        raise NotFoundError("Application not found")

    stmt = (
        select(AdmissionRecord, PersonalInfo.first_name, PersonalInfo.last_name, AcademicInfo.course_name)
        .join(PersonalInfo, PersonalInfo.student_id == AdmissionRecord.student_id)
        .outerjoin(AcademicInfo, AcademicInfo.student_id == AdmissionRecord.student_id)
        .where(AdmissionRecord.student_id == student_id)
    )
    row = (await db.execute(stmt)).first()
    if row is None:
        raise NotFoundError("Application not found")

    record, first_name, last_name, course_name = row
    return ApplicationStatusResponse(
        admission_id=record.admission_id,
        application_status=record.application_status,
        admission_timestamp=record.admission_timestamp,
        applied_time=format_time_since(record.admission_timestamp, now),
        student_name=f"{first_name} {last_name}".strip(),
        course_name=course_name,
    )
