import pytest
from fastapi import FastAPI
from httpx import ASGITransport, AsyncClient
from sqlalchemy.exc import IntegrityError

from admission_portal.core.exceptions import InternalError, NotFoundError, register_exception_handlers


@pytest.fixture()
async def failing_client():
    """An app with the portal's error handlers and routes that raise past the routers."""
    failing = FastAPI()
    register_exception_handlers(failing)

    @failing.get("/integrity")
    async def integrity():
        raise IntegrityError("INSERT INTO users VALUES (?)", {}, Exception("UNIQUE constraint failed: users.email"))

    @failing.get("/boom")
    async def boom():
        raise RuntimeError("connection string postgres://secret")

    @failing.get("/missing")
    async def missing():
        raise NotFoundError("Record not found")

    @failing.get("/internal")
    async def internal():
        raise InternalError("Failed to submit application")

    transport = ASGITransport(app=failing, raise_app_exceptions=False)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac


@pytest.mark.asyncio
async def test_health(client: AsyncClient) -> None:
    response = await client.get("/health")
    assert response.status_code == 200
    data = response.json()
    assert data["message"] == "Server is running"
    assert "environment" in data
    assert "timestamp" in data


@pytest.mark.asyncio
async def test_root_lists_endpoints(client: AsyncClient) -> None:
    response = await client.get("/")
    assert response.status_code == 200
    data = response.json()
    assert data["message"] == "College Admission Portal API"
    assert data["version"] == "1.0.0"
    assert data["endpoints"] == {
        "users": "/api/users",
        "admissions": "/api/admissions",
        "courses": "/api/courses",
    }


@pytest.mark.asyncio
async def test_unknown_route(client: AsyncClient) -> None:
    response = await client.get("/api/does-not-exist")
    assert response.status_code == 404
    assert response.json() == {
        "error": "Endpoint not found",
        "code": "NotFound",
        "path": "/api/does-not-exist",
        "method": "GET",
    }


@pytest.mark.asyncio
async def test_uncaught_integrity_error_is_duplicate_entry(failing_client: AsyncClient) -> None:
    response = await failing_client.get("/integrity")
    assert response.status_code == 400
    assert response.json() == {"error": "Duplicate entry", "code": "DuplicateEntry"}
    assert "users.email" not in response.text


@pytest.mark.asyncio
async def test_unexpected_error_is_500_without_internals(failing_client: AsyncClient) -> None:
    response = await failing_client.get("/boom")
    assert response.status_code == 500
    assert response.json() == {"error": "Internal server error", "code": "Internal"}
    assert "secret" not in response.text


@pytest.mark.asyncio
async def test_service_errors_outside_routers(failing_client: AsyncClient) -> None:
    missing = await failing_client.get("/missing")
    assert missing.status_code == 404
    assert missing.json() == {"error": "Record not found", "code": "NotFound"}

    internal = await failing_client.get("/internal")
    assert internal.status_code == 500
    assert internal.json() == {"error": "Failed to submit application", "code": "Internal"}
