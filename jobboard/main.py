from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.staticfiles import StaticFiles
from contextlib import asynccontextmanager
import logging
import os

from jobboard.core.config import settings
from jobboard.core.database import SessionLocal, init_db
from jobboard.core.exceptions import register_exception_handlers
from jobboard.api import admin, applications, auth, jobs, notifications, profiles
from jobboard.services.accounts import ensure_admin

# Configure logging
logging.basicConfig(level=settings.LOG_LEVEL)
logger = logging.getLogger(__name__)

@asynccontextmanager
async def lifespan(app: FastAPI):
    """Manage application lifespan - startup and shutdown"""
    logger.info(f"Starting {settings.PROJECT_NAME}...")
    init_db()

    if settings.SEED_ADMIN:
        db = SessionLocal()
        try:
            ensure_admin(db)
        finally:
            db.close()

    yield

    logger.info(f"Shutting down {settings.PROJECT_NAME}...")

app = FastAPI(
    title=settings.PROJECT_NAME,
    description="University job board API for students, alumni and employers",
    version=settings.VERSION,
    lifespan=lifespan
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.ALLOWED_HOSTS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

register_exception_handlers(app)

api = settings.API_PREFIX

app.include_router(auth.router, prefix=f"{api}/auth", tags=["authentication"])
app.include_router(jobs.router, prefix=f"{api}/jobs", tags=["jobs"])
app.include_router(jobs.employer_router, prefix=f"{api}/employer/jobs", tags=["employer"])
app.include_router(jobs.student_router, prefix=f"{api}/student/jobs", tags=["student"])
app.include_router(applications.student_router, prefix=f"{api}/student/applications", tags=["student"])
app.include_router(applications.employer_router, prefix=f"{api}/employer/applications", tags=["employer"])
app.include_router(profiles.student_router, prefix=f"{api}/student/profile", tags=["student"])
app.include_router(profiles.employer_router, prefix=f"{api}/employer/profile", tags=["employer"])
app.include_router(profiles.public_router, prefix=f"{api}/profiles", tags=["profiles"])
app.include_router(notifications.router, prefix=f"{api}/notifications", tags=["notifications"])
app.include_router(admin.router, prefix=f"{api}/admin", tags=["admin"])

# Uploaded resumes and logos, read-only
os.makedirs(settings.UPLOAD_DIR, exist_ok=True)
app.mount("/storage", StaticFiles(directory=settings.UPLOAD_DIR), name="storage")

@app.get("/")
async def root():
    return {
        "message": settings.PROJECT_NAME,
        "version": settings.VERSION,
        "features": [
            "Job Posting & Search",
            "Applications with Screening Questions",
            "Student & Employer Profiles",
            "Notifications",
            "Admin Reporting"
        ]
    }

@app.get(f"{api}/health")
async def health_check():
    return {
        "success": True,
        "status": "healthy",
        "api_version": settings.VERSION,
        "environment": settings.ENVIRONMENT
    }
