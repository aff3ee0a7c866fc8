"""
Application lifecycle: submission, review and withdrawal.

Each operation is one unit of work: it checks the lifecycle rules from
services.policy, writes the application together with the notification it
triggers, and commits once. Failures roll back and leave no partial writes.
"""

from datetime import datetime, timezone
from typing import Dict, List, Optional, Union
from fastapi import UploadFile
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session
import json
import logging

from jobboard.core.config import settings
from jobboard.core.exceptions import AuthorizationError, ConflictError, NotFoundError, ValidationError
from jobboard.core.storage import RESUME_EXTENSIONS, delete_file, read_upload, store_file
from jobboard.models.user import User
from jobboard.models.job import Job, Application, APPLICATION_PENDING, APPLICATION_STATUSES
from jobboard.services import policy
from jobboard.services.notifications import notify_new_application, notify_status_change

logger = logging.getLogger(__name__)

MAX_COVER_LETTER_LENGTH = 5000
MAX_NOTES_LENGTH = 1000

DUPLICATE_MESSAGE = "You have already applied for this job"
NO_RESUME_MESSAGE = "Please upload a resume or add one to your profile"

def parse_screening_answers(raw: Union[str, dict, None]) -> Dict[str, str]:
    """Accept the answers map either as a JSON object string (multipart) or a dict"""
    if raw is None or raw == "":
        return {}
    if isinstance(raw, str):
        try:
            raw = json.loads(raw)
        except ValueError:
            raise ValidationError({"screening_answers": ["The screening answers must be a JSON object."]})
    if not isinstance(raw, dict):
        raise ValidationError({"screening_answers": ["The screening answers must be a JSON object."]})
    return {str(key): value for key, value in raw.items()}

def _get_application(db: Session, application_id: int) -> Application:
    application = db.query(Application).filter(Application.id == application_id).first()
    if not application:
        raise NotFoundError("Application not found")
    return application

def has_applied(db: Session, job_id: int, student_id: int) -> bool:
    return db.query(Application.id).filter(
        Application.job_id == job_id,
        Application.student_id == student_id
    ).first() is not None

def get_visible_application(db: Session, application_id: int, actor: User) -> Application:
    """Load an application for its applicant or the job owner; anyone else gets 404"""
    application = _get_application(db, application_id)
    if not policy.can_view_application(application, actor):
        raise NotFoundError("Application not found")
    return application

def submit_application(
    db: Session,
    job_id: int,
    actor: User,
    cover_letter: Optional[str],
    resume: Optional[UploadFile] = None,
    screening_answers: Union[str, dict, None] = None,
) -> Application:
    job = db.query(Job).filter(Job.id == job_id).first()
    if not job:
        raise NotFoundError("Job not found")
    if not policy.is_open_for_application(job):
        raise ConflictError("This job is no longer accepting applications")

    if not policy.is_student(actor):
        raise AuthorizationError("Only students and alumni can apply for jobs")

    if has_applied(db, job.id, actor.id):
        raise ConflictError(DUPLICATE_MESSAGE)

    errors: Dict[str, List[str]] = {}
    cover_letter = (cover_letter or "").strip()
    if not cover_letter:
        errors["cover_letter"] = ["The cover letter field is required."]
    elif len(cover_letter) > MAX_COVER_LETTER_LENGTH:
        errors["cover_letter"] = [f"The cover letter may not be greater than {MAX_COVER_LETTER_LENGTH} characters."]

    answers: Dict[str, str] = {}
    try:
        answers = parse_screening_answers(screening_answers)
    except ValidationError as exc:
        errors.update(exc.errors)
    else:
        errors.update(policy.validate_screening_answers(job.screening_questions, answers))

    resume_content = None
    if resume is not None and resume.filename:
        try:
            resume_content = read_upload(resume, "resume", RESUME_EXTENSIONS, settings.MAX_RESUME_SIZE_MB)
        except ValidationError as exc:
            errors.update(exc.errors)

    if errors:
        raise ValidationError(errors)

    uploaded_path = None
    if resume_content is not None:
        uploaded_path = store_file(resume_content, "application_resumes", resume.filename)

    resume_path = policy.resolve_resume_path(uploaded_path, actor.student_profile)
    if not resume_path:
        raise ConflictError(NO_RESUME_MESSAGE)

    application = Application(
        job_id=job.id,
        student_id=actor.id,
        cover_letter=cover_letter,
        resume_path=resume_path,
        screening_answers=answers,
        status=APPLICATION_PENDING,
        applied_at=datetime.now(timezone.utc),
    )

    try:
        db.add(application)
        db.flush()
        notify_new_application(db, job, application, actor)
        db.commit()
    except IntegrityError:
        # A concurrent submission for the same (job, student) won the race
        db.rollback()
        delete_file(uploaded_path)
        logger.warning(f"Duplicate application rejected at commit: job {job_id}, student {actor.id}")
        raise ConflictError(DUPLICATE_MESSAGE)
    except Exception:
        db.rollback()
        delete_file(uploaded_path)
        raise

    db.refresh(application)
    logger.info(f"Student {actor.id} applied for job {job.id} (application {application.id})")
    return application

def update_application_status(
    db: Session,
    application_id: int,
    actor: User,
    status: Optional[str],
    notes: Optional[str] = None,
) -> Application:
    application = get_visible_application(db, application_id, actor)
    if not policy.can_review_application(application, actor):
        raise AuthorizationError("Unauthorized")

    errors: Dict[str, List[str]] = {}
    if not status:
        errors["status"] = ["The status field is required."]
    elif status not in APPLICATION_STATUSES:
        errors["status"] = ["The selected status is invalid."]
    if notes is not None and len(notes) > MAX_NOTES_LENGTH:
        errors["notes"] = [f"The notes may not be greater than {MAX_NOTES_LENGTH} characters."]
    if errors:
        raise ValidationError(errors)

    if not policy.can_transition_application(application.status, status):
        raise ConflictError(f"Application has already been {application.status}")

    application.status = status
    application.notes = notes
    application.reviewed_at = datetime.now(timezone.utc)

    try:
        notify_status_change(db, application)
        db.commit()
    except Exception:
        db.rollback()
        raise

    db.refresh(application)
    logger.info(f"Application {application.id} moved to {status} by employer {actor.id}")
    return application

def withdraw_application(db: Session, application_id: int, actor: User) -> None:
    application = get_visible_application(db, application_id, actor)
    if application.student_id != actor.id:
        raise AuthorizationError("Unauthorized")
    if not policy.can_withdraw_application(application):
        raise ConflictError("Cannot withdraw application that has been reviewed")

    db.delete(application)
    db.commit()
    logger.info(f"Student {actor.id} withdrew application {application_id}")
