from enum import Enum


class ApplicationStatus(str, Enum):
    PENDING = "Pending"
    APPROVED = "Approved"
    REJECTED = "Rejected"


class ErrorKind(str, Enum):
    """Tag carried by every ServiceError; clients receive it as `code`."""

    MISSING_SECTION = "MissingSection"
    INVALID_PAYLOAD = "InvalidPayload"
    INVALID_STATUS = "InvalidStatus"
    ALREADY_SUBMITTED = "AlreadySubmitted"
    DUPLICATE_ENTRY = "DuplicateEntry"
    MISSING_TOKEN = "MissingToken"
    INVALID_CREDENTIALS = "InvalidCredentials"
    INVALID_OR_EXPIRED_TOKEN = "InvalidOrExpiredToken"
    NOT_FOUND = "NotFound"
    INTERNAL = "Internal"
