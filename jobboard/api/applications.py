from fastapi import APIRouter, Depends, File, Form, Query, UploadFile
from sqlalchemy.orm import Session, selectinload
from pydantic import BaseModel
from typing import Optional
import logging

from jobboard.core.database import get_db
from jobboard.core.pagination import paginate
from jobboard.api.auth import get_current_user, require_roles
from jobboard.models.user import User, ROLE_EMPLOYER, STUDENT_ROLES
from jobboard.models.job import Job, Application
from jobboard.schemas import ApplicationDetail, ApplicationOut, ApplicationWithJob, envelope
from jobboard.services.applications import (
    get_visible_application, submit_application, update_application_status, withdraw_application,
)

logger = logging.getLogger(__name__)

student_router = APIRouter()
employer_router = APIRouter()

class StatusUpdate(BaseModel):
    status: Optional[str] = None
    notes: Optional[str] = None

def _detail(db: Session, application_id: int, actor: User) -> dict:
    application = get_visible_application(db, application_id, actor)
    return envelope(ApplicationDetail.model_validate(application))

# --- Student ---

@student_router.get("")
def my_applications(
    page: int = Query(1, ge=1),
    per_page: int = Query(15, ge=1, le=100),
    current_user: User = Depends(require_roles(*STUDENT_ROLES)),
    db: Session = Depends(get_db)
):
    query = db.query(Application).options(
        selectinload(Application.job).selectinload(Job.employer),
        selectinload(Application.job).selectinload(Job.employer_profile),
    ).filter(Application.student_id == current_user.id).order_by(
        Application.applied_at.desc(), Application.id.desc()
    )
    return envelope(paginate(query, page, per_page, ApplicationWithJob.model_validate))

@student_router.post("/{job_id}", status_code=201)
def apply_to_job(
    job_id: int,
    cover_letter: Optional[str] = Form(None),
    screening_answers: Optional[str] = Form(None),
    resume: Optional[UploadFile] = File(None),
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    # The role check runs inside the service, after the job checks
    application = submit_application(
        db, job_id, current_user, cover_letter, resume, screening_answers
    )
    return envelope(ApplicationOut.model_validate(application), "Application submitted successfully")

@student_router.get("/{application_id}")
def show_my_application(
    application_id: int,
    current_user: User = Depends(require_roles(*STUDENT_ROLES)),
    db: Session = Depends(get_db)
):
    return _detail(db, application_id, current_user)

@student_router.delete("/{application_id}/withdraw")
def withdraw(
    application_id: int,
    current_user: User = Depends(require_roles(*STUDENT_ROLES)),
    db: Session = Depends(get_db)
):
    withdraw_application(db, application_id, current_user)
    return envelope(message="Application withdrawn successfully")

# --- Employer ---

@employer_router.get("/{application_id}")
def show_application(
    application_id: int,
    current_user: User = Depends(require_roles(ROLE_EMPLOYER)),
    db: Session = Depends(get_db)
):
    return _detail(db, application_id, current_user)

@employer_router.put("/{application_id}/status")
def update_status(
    application_id: int,
    request: StatusUpdate,
    current_user: User = Depends(require_roles(ROLE_EMPLOYER)),
    db: Session = Depends(get_db)
):
    application = update_application_status(
        db, application_id, current_user, request.status, request.notes
    )
    return envelope(ApplicationOut.model_validate(application), "Application status updated successfully")
