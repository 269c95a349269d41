"""
Record identifiers for an application.

- student_id: sequential, STU-000001. Read-increment is not atomic; callers serialize it
  (see admissions service) and personal_info.student_id / admission_records.student_id are unique.
- academic_id / admission_id: PREFIX-<ms timestamp>-<6 random uppercase alphanumeric>.
  Uniqueness is not guaranteed by construction; admission_records.admission_id is unique.
"""
import secrets
import string
import time
from typing import Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from admission_portal.core.models import PersonalInfo

STUDENT_ID_PREFIX = "STU"
ACADEMIC_ID_PREFIX = "ACAD"
ADMISSION_ID_PREFIX = "ADM"

_SUFFIX_ALPHABET = string.ascii_uppercase + string.digits
_SUFFIX_LENGTH = 6


def _parse_student_number(student_id: Optional[str]) -> int:
    """Numeric suffix of STU-000042 -> 42; 0 for missing or malformed ids."""
    if not student_id:
        return 0
    _, _, number = student_id.partition("-")
    try:
        return int(number)
    except ValueError:
        return 0


def format_student_id(number: int) -> str:
    return f"{STUDENT_ID_PREFIX}-{number:06d}"


async def generate_student_id(db: AsyncSession) -> str:
    """Next student id after the current maximum in personal_info."""
    result = await db.execute(
        select(PersonalInfo.student_id).order_by(PersonalInfo.student_id.desc()).limit(1)
    )
    latest = result.scalar_one_or_none()
    return format_student_id(_parse_student_number(latest) + 1)


def _timestamped_id(prefix: str) -> str:
    timestamp_ms = int(time.time() * 1000)
    suffix = "".join(secrets.choice(_SUFFIX_ALPHABET) for _ in range(_SUFFIX_LENGTH))
    return f"{prefix}-{timestamp_ms}-{suffix}"


def generate_academic_id() -> str:
    return _timestamped_id(ACADEMIC_ID_PREFIX)


def generate_admission_id() -> str:
    return _timestamped_id(ADMISSION_ID_PREFIX)
