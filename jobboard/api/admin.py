"""
Admin API endpoints: dashboard, analytics, reports and user/job/application management
"""

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session, selectinload
from sqlalchemy import or_
from pydantic import BaseModel
from typing import Literal, Optional
from datetime import datetime, timezone
import logging

from jobboard.core.database import get_db
from jobboard.core.exceptions import AuthorizationError, ConflictError, NotFoundError
from jobboard.core.pagination import paginate
from jobboard.core.storage import delete_file
from jobboard.api.auth import get_current_user, require_roles
from jobboard.models.user import User, ROLE_ADMIN
from jobboard.models.job import Job, Application
from jobboard.schemas import AdminApplicationOut, JobOut, UserDetail, UserOut, UserWithProfile, envelope
from jobboard.services import policy, reports
from jobboard.services.notifications import notify_account_verified

logger = logging.getLogger(__name__)

# Every route in this module requires the admin role
router = APIRouter(dependencies=[Depends(require_roles(ROLE_ADMIN))])

RECENT_LIMIT = 5

class JobStatusUpdate(BaseModel):
    status: Literal["open", "closed", "filled"]

def _get_user(db: Session, user_id: int) -> User:
    user = db.query(User).filter(User.id == user_id).first()
    if not user:
        raise NotFoundError("User not found")
    return user

def _get_job(db: Session, job_id: int) -> Job:
    job = db.query(Job).filter(Job.id == job_id).first()
    if not job:
        raise NotFoundError("Job not found")
    return job

def _recent_jobs_query(db: Session):
    return db.query(Job).options(selectinload(Job.employer), selectinload(Job.employer_profile))

def _recent_applications_query(db: Session):
    return db.query(Application).options(
        selectinload(Application.student),
        selectinload(Application.job).selectinload(Job.employer),
    )

@router.get("/dashboard")
def dashboard(db: Session = Depends(get_db)):
    recent_users = db.query(User).order_by(User.created_at.desc(), User.id.desc()).limit(RECENT_LIMIT).all()
    recent_jobs = _recent_jobs_query(db).order_by(Job.created_at.desc(), Job.id.desc()).limit(RECENT_LIMIT).all()
    recent_applications = _recent_applications_query(db).order_by(
        Application.applied_at.desc(), Application.id.desc()
    ).limit(RECENT_LIMIT).all()

    return envelope({
        "stats": reports.dashboard_stats(db),
        "recent_users": [UserOut.model_validate(user) for user in recent_users],
        "recent_jobs": [JobOut.model_validate(job) for job in recent_jobs],
        "recent_applications": [AdminApplicationOut.model_validate(a) for a in recent_applications],
    })

@router.get("/analytics")
def analytics(db: Session = Depends(get_db)):
    return envelope(reports.analytics(db))

@router.get("/reports")
def report(
    type: str = Query("overview"),
    db: Session = Depends(get_db)
):
    report_type = type if type in reports.REPORT_TYPES else "overview"
    return envelope({"type": report_type, "report": reports.build_report(db, report_type)})

# --- Users ---

@router.get("/users")
def list_users(
    role: Optional[str] = Query(None),
    is_verified: Optional[bool] = Query(None),
    search: Optional[str] = Query(None),
    page: int = Query(1, ge=1),
    per_page: int = Query(20, ge=1, le=100),
    db: Session = Depends(get_db)
):
    query = db.query(User).options(
        selectinload(User.student_profile), selectinload(User.employer_profile)
    )

    if role:
        query = query.filter(User.role == role)

    if is_verified is not None:
        query = query.filter(User.is_verified == is_verified)

    if search:
        query = query.filter(or_(
            User.name.ilike(f"%{search}%"),
            User.email.ilike(f"%{search}%")
        ))

    query = query.order_by(User.created_at.desc(), User.id.desc())
    return envelope(paginate(query, page, per_page, UserWithProfile.model_validate))

@router.get("/users/{user_id}")
def show_user(user_id: int, db: Session = Depends(get_db)):
    return envelope(UserDetail.model_validate(_get_user(db, user_id)))

@router.put("/users/{user_id}/verify")
def verify_user(user_id: int, db: Session = Depends(get_db)):
    user = _get_user(db, user_id)
    user.is_verified = True
    user.email_verified_at = datetime.now(timezone.utc)
    notify_account_verified(db, user)
    db.commit()
    db.refresh(user)

    logger.info(f"User {user.id} verified")
    return envelope(UserOut.model_validate(user), "User verified successfully")

@router.put("/users/{user_id}/unverify")
def unverify_user(user_id: int, db: Session = Depends(get_db)):
    user = _get_user(db, user_id)
    user.is_verified = False
    user.email_verified_at = None
    db.commit()
    db.refresh(user)

    logger.info(f"User {user.id} unverified")
    return envelope(UserOut.model_validate(user), "User unverified successfully")

@router.delete("/users/{user_id}")
def delete_user(
    user_id: int,
    admin: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    user = _get_user(db, user_id)
    denial = policy.user_deletion_denial(admin, user)
    if denial:
        logger.warning(f"Admin {admin.id} denied deleting user {user.id}: {denial}")
        raise AuthorizationError(denial)

    # Blobs owned by the account; application rows go with the cascade
    paths = [a.resume_path for a in user.applications]
    if user.student_profile:
        paths.append(user.student_profile.resume_path)
    if user.employer_profile:
        paths.append(user.employer_profile.logo_path)

    db.delete(user)
    db.commit()

    for path in set(filter(None, paths)):
        delete_file(path)

    logger.info(f"Admin {admin.id} deleted user {user_id}")
    return envelope(message="User deleted successfully")

# --- Jobs ---

@router.get("/jobs")
def list_jobs(
    status: Optional[str] = Query(None),
    search: Optional[str] = Query(None),
    page: int = Query(1, ge=1),
    per_page: int = Query(20, ge=1, le=100),
    db: Session = Depends(get_db)
):
    query = _recent_jobs_query(db)

    if status:
        query = query.filter(Job.status == status)

    if search:
        query = query.filter(or_(
            Job.title.ilike(f"%{search}%"),
            Job.description.ilike(f"%{search}%")
        ))

    query = query.order_by(Job.created_at.desc(), Job.id.desc())
    return envelope(paginate(query, page, per_page, JobOut.model_validate))

@router.delete("/jobs/{job_id}")
def delete_job(
    job_id: int,
    admin: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    job = _get_job(db, job_id)
    db.delete(job)
    db.commit()

    logger.info(f"Admin {admin.id} deleted job {job_id}")
    return envelope(message="Job deleted successfully")

@router.put("/jobs/{job_id}/status")
def update_job_status(
    job_id: int,
    request: JobStatusUpdate,
    db: Session = Depends(get_db)
):
    job = _get_job(db, job_id)
    if not policy.can_transition_job(job.status, request.status):
        raise ConflictError(f"A {job.status} job cannot be moved to {request.status}")

    job.status = request.status
    db.commit()
    db.refresh(job)

    logger.info(f"Job {job.id} status set to {job.status}")
    return envelope(JobOut.model_validate(job), "Job status updated successfully")

# --- Applications ---

@router.get("/applications")
def list_applications(
    status: Optional[str] = Query(None),
    page: int = Query(1, ge=1),
    per_page: int = Query(20, ge=1, le=100),
    db: Session = Depends(get_db)
):
    query = _recent_applications_query(db)

    if status:
        query = query.filter(Application.status == status)

    query = query.order_by(Application.applied_at.desc(), Application.id.desc())
    return envelope(paginate(query, page, per_page, AdminApplicationOut.model_validate))
