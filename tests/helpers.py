"""Shared request builders for the API tests."""

from typing import Dict, Optional

ADMIN_EMAIL = "admin@example.com"
ADMIN_PASSWORD = "AdminPass123"


def auth_header(token: str) -> Dict[str, str]:
    return {"Authorization": f"Bearer {token}"}


def application_payload(
    email: str = "asha.kumar@example.com",
    aadhaar: str = "123456789012",
    extra: Optional[dict] = None,
) -> dict:
    payload = {
        "personalInfo": {
            "first_name": "Asha",
            "last_name": "Kumar",
            "email": email,
            "phone_number": "9876543210",
            "aadhaar_number": aadhaar,
            "date_of_birth": "2006-04-12",
            "gender": "Female",
            "nationality": "Indian",
            "annual_income": 250000,
        },
        "academicInfo": {
            "school_name": "Government Higher Secondary School",
            "exam_register_number": "REG2024001",
            "subjects": [
                {"subject": "Mathematics", "mark": "90"},
                {"subject": "Physics", "mark": 80},
                {"subject": "Chemistry", "mark": "70"},
            ],
            "course_type": "UG",
            "course_name": "B.Sc Computer Science",
            "course_mode": "Full Time",
        },
    }
    if extra is not None:
        payload["extraInfo"] = extra
    return payload
