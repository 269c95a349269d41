import asyncio
import re

import pytest
from httpx import AsyncClient
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from admission_portal.api.admissions import service as admissions_service
from admission_portal.auth.models import User
from admission_portal.core.models import AcademicInfo, AdmissionRecord, ExtraInfo, PersonalInfo
from helpers import application_payload, auth_header


async def _count(session: AsyncSession, model) -> int:
    return (await session.execute(select(func.count()).select_from(model))).scalar_one()


@pytest.mark.asyncio
async def test_submit_application(client: AsyncClient, register_student, session_factory) -> None:
    token, user = await register_student()

    response = await client.post(
        "/api/admissions/submit",
        json=application_payload(extra={"physically_challenged": "No", "activities": "NSS"}),
        headers=auth_header(token),
    )
    assert response.status_code == 201, response.text
    data = response.json()
    assert data["message"] == "Application submitted successfully"
    assert data["student_id"] == "STU-000001"
    assert re.match(r"^ADM-\d{13}-[A-Z0-9]{6}$", data["admission_id"])

    async with session_factory() as session:
        db_user = await session.get(User, user["id"])
        assert db_user.student_id == "STU-000001"

        record = (await session.execute(select(AdmissionRecord))).scalar_one()
        assert record.application_status == "Pending"
        assert record.email == user["email"]
        assert record.admission_id == data["admission_id"]

        academic = (await session.execute(select(AcademicInfo))).scalar_one()
        assert re.match(r"^ACAD-\d{13}-[A-Z0-9]{6}$", academic.academic_id)
        assert academic.total_marks == 240
        assert academic.mark_percentage == 80
        assert academic.cutoff_marks == 82.5
        assert academic.subjects[1] == {"subject": "Physics", "mark": "80"}

        extra = await session.get(ExtraInfo, "STU-000001")
        assert extra.activities == "NSS"


@pytest.mark.asyncio
async def test_submit_twice_is_rejected(client: AsyncClient, register_student, session_factory) -> None:
    token, _ = await register_student()
    first = await client.post("/api/admissions/submit", json=application_payload(), headers=auth_header(token))
    assert first.status_code == 201

    second = await client.post(
        "/api/admissions/submit",
        json=application_payload(email="other@example.com", aadhaar="999999999999"),
        headers=auth_header(token),
    )
    assert second.status_code == 400
    assert second.json() == {"error": "Application already submitted", "code": "AlreadySubmitted"}

    async with session_factory() as session:
        assert await _count(session, PersonalInfo) == 1
        assert await _count(session, AdmissionRecord) == 1


@pytest.mark.asyncio
@pytest.mark.parametrize("missing", ["personalInfo", "academicInfo"])
async def test_submit_missing_section(client: AsyncClient, register_student, session_factory, missing) -> None:
    token, _ = await register_student()
    payload = application_payload()
    del payload[missing]

    response = await client.post("/api/admissions/submit", json=payload, headers=auth_header(token))
    assert response.status_code == 400
    assert response.json() == {
        "error": "Personal info and academic info are required",
        "code": "MissingSection",
    }

    async with session_factory() as session:
        assert await _count(session, PersonalInfo) == 0


@pytest.mark.asyncio
async def test_submit_rejects_unknown_fields(client: AsyncClient, register_student) -> None:
    token, _ = await register_student()
    payload = application_payload()
    payload["personalInfo"]["is_admin"] = True

    response = await client.post("/api/admissions/submit", json=payload, headers=auth_header(token))
    assert response.status_code == 400
    data = response.json()
    assert data["error"] == "Validation error"
    assert any(d["field"].endswith("is_admin") for d in data["details"])


@pytest.mark.asyncio
async def test_submit_rejects_client_computed_marks(client: AsyncClient, register_student) -> None:
    token, _ = await register_student()
    payload = application_payload()
    payload["academicInfo"]["cutoff_marks"] = 200

    response = await client.post("/api/admissions/submit", json=payload, headers=auth_header(token))
    assert response.status_code == 400


@pytest.mark.asyncio
@pytest.mark.parametrize("mark", ["inf", "-inf", "nan", "-500", "101", "9999999999"])
async def test_submit_rejects_out_of_range_marks(
    client: AsyncClient, register_student, session_factory, mark
) -> None:
    token, _ = await register_student()
    payload = application_payload()
    payload["academicInfo"]["subjects"][1]["mark"] = mark

    response = await client.post("/api/admissions/submit", json=payload, headers=auth_header(token))
    assert response.status_code == 400
    assert response.json()["details"][0]["field"] == "academicInfo.subjects.1.mark"

    async with session_factory() as session:
        assert await _count(session, AcademicInfo) == 0


@pytest.mark.asyncio
async def test_submit_non_numeric_mark_scores_zero(client: AsyncClient, register_student, session_factory) -> None:
    token, _ = await register_student()
    payload = application_payload()
    payload["academicInfo"]["subjects"][1]["mark"] = "AB"

    response = await client.post("/api/admissions/submit", json=payload, headers=auth_header(token))
    assert response.status_code == 201

    async with session_factory() as session:
        academic = (await session.execute(select(AcademicInfo))).scalar_one()
        assert academic.subjects[1] == {"subject": "Physics", "mark": "AB"}
        assert academic.total_marks == 160
        # 90/2 + 0/4 + 70/4
        assert academic.cutoff_marks == 62.5


@pytest.mark.asyncio
async def test_submit_rejects_too_many_subjects(client: AsyncClient, register_student) -> None:
    token, _ = await register_student()
    payload = application_payload()
    payload["academicInfo"]["subjects"] = [{"subject": f"Paper {i}", "mark": "50"} for i in range(51)]

    response = await client.post("/api/admissions/submit", json=payload, headers=auth_header(token))
    assert response.status_code == 400


@pytest.mark.asyncio
async def test_submit_requires_student_token(client: AsyncClient, admin_token: str) -> None:
    response = await client.post("/api/admissions/submit", json=application_payload())
    assert response.status_code == 401

    response = await client.post(
        "/api/admissions/submit", json=application_payload(), headers=auth_header(admin_token)
    )
    assert response.status_code == 403


@pytest.mark.asyncio
async def test_duplicate_aadhaar_rolls_back(client: AsyncClient, register_student, session_factory) -> None:
    first_token, _ = await register_student("first@example.com")
    second_token, second_user = await register_student("second@example.com")

    ok = await client.post("/api/admissions/submit", json=application_payload(), headers=auth_header(first_token))
    assert ok.status_code == 201

    dup = await client.post(
        "/api/admissions/submit",
        json=application_payload(email="different@example.com"),
        headers=auth_header(second_token),
    )
    assert dup.status_code == 400
    assert dup.json() == {
        "error": "Duplicate entry found (Aadhaar number or email already exists)",
        "code": "DuplicateEntry",
    }

    async with session_factory() as session:
        assert await _count(session, PersonalInfo) == 1
        assert (await session.get(User, second_user["id"])).student_id is None


@pytest.mark.asyncio
async def test_failure_in_last_insert_leaves_nothing_behind(
    client: AsyncClient, register_student, session_factory, monkeypatch
) -> None:
    first_token, _ = await register_student("first@example.com")
    second_token, second_user = await register_student("second@example.com")

    ok = await client.post("/api/admissions/submit", json=application_payload(), headers=auth_header(first_token))
    taken_admission_id = ok.json()["admission_id"]

    # Personal and academic rows insert fine; the admission record then collides
    monkeypatch.setattr(admissions_service, "generate_admission_id", lambda: taken_admission_id)
    response = await client.post(
        "/api/admissions/submit",
        json=application_payload(email="second.student@example.com", aadhaar="222233334444", extra={"activities": "Chess"}),
        headers=auth_header(second_token),
    )
    assert response.status_code == 400
    assert response.json()["code"] == "DuplicateEntry"

    async with session_factory() as session:
        assert await _count(session, PersonalInfo) == 1
        assert await _count(session, AcademicInfo) == 1
        assert await _count(session, ExtraInfo) == 0
        assert await _count(session, AdmissionRecord) == 1
        assert (await session.get(User, second_user["id"])).student_id is None

    # Nothing was consumed: the next attempt succeeds with the next sequential id
    monkeypatch.undo()
    retry = await client.post(
        "/api/admissions/submit",
        json=application_payload(email="second.student@example.com", aadhaar="222233334444"),
        headers=auth_header(second_token),
    )
    assert retry.status_code == 201
    assert retry.json()["student_id"] == "STU-000002"


@pytest.mark.asyncio
async def test_concurrent_submissions_get_distinct_student_ids(client: AsyncClient, register_student) -> None:
    tokens = []
    for i in range(3):
        token, _ = await register_student(f"student{i}@example.com")
        tokens.append(token)

    responses = await asyncio.gather(
        *(
            client.post(
                "/api/admissions/submit",
                json=application_payload(email=f"applicant{i}@example.com", aadhaar=f"10000000000{i}"),
                headers=auth_header(token),
            )
            for i, token in enumerate(tokens)
        )
    )
    assert [r.status_code for r in responses] == [201, 201, 201]
    assert sorted(r.json()["student_id"] for r in responses) == ["STU-000001", "STU-000002", "STU-000003"]


def test_submission_lock_is_per_event_loop() -> None:
    async def contend() -> asyncio.Lock:
        lock = admissions_service._submission_lock()
        assert admissions_service._submission_lock() is lock

        async def hold() -> None:
            async with lock:
                await asyncio.sleep(0)

        await asyncio.gather(hold(), hold(), hold())
        return lock

    # A lock contended on one loop must stay usable on the next
    first = asyncio.run(contend())
    second = asyncio.run(contend())
    assert first is not second


# ----- After submission -----


@pytest.fixture()
async def submitted(client: AsyncClient, register_student):
    """A student with a submitted application: (token, submit response)."""
    token, _ = await register_student()
    response = await client.post(
        "/api/admissions/submit",
        json=application_payload(extra={"ex_serviceman": "No"}),
        headers=auth_header(token),
    )
    assert response.status_code == 201
    return token, response.json()


@pytest.mark.asyncio
async def test_get_complete_application(client: AsyncClient, submitted) -> None:
    token, submit = submitted
    response = await client.get("/api/admissions/application", headers=auth_header(token))
    assert response.status_code == 200
    application = response.json()["application"]
    assert application["admission_id"] == submit["admission_id"]
    assert application["application_status"] == "Pending"
    assert application["personalInfo"]["aadhaar_number"] == "123456789012"
    assert application["academicInfo"]["cutoff_marks"] == 82.5
    assert "passport_photo" not in application["academicInfo"]
    assert application["extraInfo"]["ex_serviceman"] == "No"


@pytest.mark.asyncio
async def test_sections_before_submission_are_404(client: AsyncClient, register_student) -> None:
    token, _ = await register_student()
    for path in (
        "/api/admissions/application",
        "/api/admissions/application/status",
        "/api/admissions/personal-info",
        "/api/admissions/academic-info",
        "/api/admissions/extra-info",
        "/api/admissions/admission-record",
    ):
        response = await client.get(path, headers=auth_header(token))
        assert response.status_code == 404, path
        assert response.json()["code"] == "NotFound"


@pytest.mark.asyncio
async def test_update_personal_info(client: AsyncClient, submitted) -> None:
    token, _ = submitted
    response = await client.put(
        "/api/admissions/personal-info",
        json={"address": "12 Lake Road, Chennai", "religion": "Hindu"},
        headers=auth_header(token),
    )
    assert response.status_code == 200
    info = response.json()["personalInfo"]
    assert info["address"] == "12 Lake Road, Chennai"
    assert info["first_name"] == "Asha"

    cleared = await client.put(
        "/api/admissions/personal-info",
        json={"first_name": None},
        headers=auth_header(token),
    )
    assert cleared.status_code == 400

    fetched = await client.get("/api/admissions/personal-info", headers=auth_header(token))
    assert fetched.json()["personalInfo"]["religion"] == "Hindu"


@pytest.mark.asyncio
async def test_update_academic_info_recomputes_marks(client: AsyncClient, submitted) -> None:
    token, _ = submitted
    response = await client.put(
        "/api/admissions/academic-info",
        json={
            "subjects": [
                {"subject": "Maths", "mark": "100"},
                {"subject": "Physics", "mark": "60"},
                {"subject": "Chemistry", "mark": "60"},
                {"subject": "English", "mark": "80"},
            ]
        },
        headers=auth_header(token),
    )
    assert response.status_code == 200
    academic = response.json()["academicInfo"]
    assert academic["total_marks"] == 300
    assert academic["mark_percentage"] == 75
    assert academic["cutoff_marks"] == 80
    assert academic["school_name"] == "Government Higher Secondary School"


@pytest.mark.asyncio
async def test_update_academic_info_rejects_out_of_range_mark(client: AsyncClient, submitted) -> None:
    token, _ = submitted
    response = await client.put(
        "/api/admissions/academic-info",
        json={"subjects": [{"subject": "Maths", "mark": "nan"}]},
        headers=auth_header(token),
    )
    assert response.status_code == 400

    fetched = await client.get("/api/admissions/academic-info", headers=auth_header(token))
    academic = fetched.json()["academicInfo"]
    assert academic["total_marks"] == 240
    assert academic["cutoff_marks"] == 82.5


@pytest.mark.asyncio
async def test_update_extra_info(client: AsyncClient, submitted) -> None:
    token, _ = submitted
    response = await client.put(
        "/api/admissions/extra-info",
        json={"activities": "Football"},
        headers=auth_header(token),
    )
    assert response.status_code == 200
    assert response.json()["extraInfo"] == {
        "student_id": "STU-000001",
        "physically_challenged": None,
        "ex_serviceman": "No",
        "activities": "Football",
    }


@pytest.mark.asyncio
async def test_get_admission_record(client: AsyncClient, submitted) -> None:
    token, submit = submitted
    response = await client.get("/api/admissions/admission-record", headers=auth_header(token))
    assert response.status_code == 200
    record = response.json()["admissionRecord"]
    assert record["admission_id"] == submit["admission_id"]
    assert record["student_id"] == "STU-000001"


@pytest.mark.asyncio
async def test_application_status(client: AsyncClient, submitted) -> None:
    token, submit = submitted
    response = await client.get("/api/admissions/application/status", headers=auth_header(token))
    assert response.status_code == 200
    data = response.json()
    assert data["admission_id"] == submit["admission_id"]
    assert data["application_status"] == "Pending"
    assert data["student_name"] == "Asha Kumar"
    assert data["course_name"] == "B.Sc Computer Science"
    assert data["applied_time"] in ("0 minutes ago", "1 minute ago")


# ----- Admin -----


@pytest.mark.asyncio
async def test_admin_updates_status(client: AsyncClient, submitted, admin_token: str) -> None:
    student_token, submit = submitted
    url = f"/api/admissions/admin/application/{submit['admission_id']}/status"

    response = await client.put(url, json={"status": "Approved"}, headers=auth_header(admin_token))
    assert response.status_code == 200
    data = response.json()
    assert data["message"] == "Application status updated"
    assert data["admissionRecord"]["application_status"] == "Approved"

    status = await client.get("/api/admissions/application/status", headers=auth_header(student_token))
    assert status.json()["application_status"] == "Approved"


@pytest.mark.asyncio
async def test_admin_invalid_status_leaves_record_unchanged(
    client: AsyncClient, submitted, admin_token: str, session_factory
) -> None:
    _, submit = submitted
    response = await client.put(
        f"/api/admissions/admin/application/{submit['admission_id']}/status",
        json={"status": "Cancelled"},
        headers=auth_header(admin_token),
    )
    assert response.status_code == 400
    assert response.json() == {"error": "Invalid status", "code": "InvalidStatus"}

    async with session_factory() as session:
        record = (await session.execute(select(AdmissionRecord))).scalar_one()
        assert record.application_status == "Pending"


@pytest.mark.asyncio
async def test_admin_status_unknown_admission(client: AsyncClient, admin_token: str) -> None:
    response = await client.put(
        "/api/admissions/admin/application/ADM-0000000000000-NOPE00/status",
        json={"status": "Rejected"},
        headers=auth_header(admin_token),
    )
    assert response.status_code == 404
    assert response.json()["error"] == "Admission record not found"


@pytest.mark.asyncio
async def test_student_cannot_update_status(client: AsyncClient, submitted) -> None:
    token, submit = submitted
    response = await client.put(
        f"/api/admissions/admin/application/{submit['admission_id']}/status",
        json={"status": "Approved"},
        headers=auth_header(token),
    )
    assert response.status_code == 403


@pytest.mark.asyncio
async def test_admin_lists_applications(client: AsyncClient, register_student, admin_token: str) -> None:
    ids = []
    for i in range(2):
        token, _ = await register_student(f"student{i}@example.com")
        response = await client.post(
            "/api/admissions/submit",
            json=application_payload(email=f"applicant{i}@example.com", aadhaar=f"20000000000{i}"),
            headers=auth_header(token),
        )
        ids.append(response.json()["admission_id"])

    await client.put(
        f"/api/admissions/admin/application/{ids[0]}/status",
        json={"status": "Rejected"},
        headers=auth_header(admin_token),
    )

    response = await client.get("/api/admissions/admin/applications", headers=auth_header(admin_token))
    assert response.status_code == 200
    data = response.json()
    assert data["count"] == 2
    assert {a["admission_id"] for a in data["applications"]} == set(ids)
    for application in data["applications"]:
        assert application["personalInfo"]["first_name"] == "Asha"
        assert application["academicInfo"]["total_marks"] == 240

    rejected = await client.get(
        "/api/admissions/admin/applications",
        params={"status": "Rejected"},
        headers=auth_header(admin_token),
    )
    assert rejected.json()["count"] == 1
    assert rejected.json()["applications"][0]["admission_id"] == ids[0]
