from contextlib import asynccontextmanager
from datetime import datetime, timezone

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from admission_portal.api.admissions.router import router as admissions_router
from admission_portal.api.courses.router import router as courses_router
from admission_portal.api.users.router import router as users_router
from admission_portal.core.config import settings
from admission_portal.core.exceptions import register_exception_handlers
from admission_portal.core.logging import configure_logging
from admission_portal.db.session import dispose_engine

API_NAME = "College Admission Portal API"
API_VERSION = "1.0.0"


@asynccontextmanager
async def lifespan(app: FastAPI):
    configure_logging()
    yield
    await dispose_engine()


def create_app() -> FastAPI:
    app = FastAPI(title=API_NAME, version=API_VERSION, lifespan=lifespan)

    # CORS: only the configured frontend may call this API with credentials
    app.add_middleware(
        CORSMiddleware,
        allow_origins=[settings.frontend_url],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    register_exception_handlers(app)

    # Routers
    app.include_router(users_router)
    app.include_router(admissions_router)
    app.include_router(courses_router)

    @app.get("/health", tags=["service"])
    async def health() -> dict:
        return {
            "message": "Server is running",
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "environment": settings.environment,
        }

    @app.get("/", tags=["service"])
    async def root() -> dict:
        return {
            "message": API_NAME,
            "version": API_VERSION,
            "endpoints": {
                "users": "/api/users",
                "admissions": "/api/admissions",
                "courses": "/api/courses",
            },
        }

    return app


app = create_app()
