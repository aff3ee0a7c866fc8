from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session, selectinload
from sqlalchemy import or_, func
from pydantic import BaseModel, Field, field_validator, model_validator
from typing import Literal, Optional, List
from datetime import date
import logging

from jobboard.core.database import get_db
from jobboard.core.exceptions import AuthorizationError, ConflictError, NotFoundError, ValidationError
from jobboard.core.pagination import paginate
from jobboard.api.auth import get_optional_user, require_roles
from jobboard.models.user import User, saved_jobs, ROLE_EMPLOYER, STUDENT_ROLES
from jobboard.models.job import Job, ScreeningQuestion, Application
from jobboard.schemas import ApplicationWithStudent, JobDetailOut, JobOut, envelope
from jobboard.services import policy

logger = logging.getLogger(__name__)

router = APIRouter()
employer_router = APIRouter()
student_router = APIRouter()

JobType = Literal["full-time", "part-time", "contract", "internship", "co-op"]
ExperienceLevel = Literal["entry", "intermediate", "senior", "executive"]
SalaryPeriod = Literal["per hour", "per month", "per year"]

REQUIRED_ON_UPDATE = (
    "title", "description", "job_type", "location", "experience_level",
    "category", "status", "salary_period", "is_remote",
)

class ScreeningQuestionIn(BaseModel):
    question: str = Field(..., min_length=1)
    question_type: Literal["text", "multiple_choice", "yes_no"] = "text"
    is_required: bool = True
    options: Optional[List[str]] = None
    order: int = 0

    @model_validator(mode="after")
    def choices_need_options(self):
        if self.question_type == "multiple_choice" and len(self.options or []) < 2:
            raise ValueError("Multiple choice questions need at least two options.")
        return self

class JobFields(BaseModel):
    requirements: Optional[str] = None
    responsibilities: Optional[str] = None
    salary_min: Optional[float] = Field(None, ge=0)
    salary_max: Optional[float] = Field(None, ge=0)
    salary_period: Optional[SalaryPeriod] = None
    skills_required: Optional[List[str]] = None
    benefits: Optional[List[str]] = None
    application_deadline: Optional[date] = None
    start_date: Optional[date] = None
    is_remote: Optional[bool] = None
    screening_questions: Optional[List[ScreeningQuestionIn]] = None

    @field_validator("skills_required")
    @classmethod
    def skill_length(cls, value):
        if value and any(len(skill) > 50 for skill in value):
            raise ValueError("Each skill may not be greater than 50 characters.")
        return value

    @field_validator("benefits")
    @classmethod
    def benefit_length(cls, value):
        if value and any(len(benefit) > 100 for benefit in value):
            raise ValueError("Each benefit may not be greater than 100 characters.")
        return value

class JobCreate(JobFields):
    title: str = Field(..., min_length=1, max_length=255)
    description: str = Field(..., min_length=1)
    job_type: JobType
    location: str = Field(..., min_length=1, max_length=255)
    experience_level: ExperienceLevel
    category: str = Field(..., min_length=1, max_length=100)

    @field_validator("application_deadline")
    @classmethod
    def deadline_in_future(cls, value):
        if value is not None and value <= policy.today():
            raise ValueError("The application deadline must be a date after today.")
        return value

class JobUpdate(JobFields):
    title: Optional[str] = Field(None, min_length=1, max_length=255)
    description: Optional[str] = Field(None, min_length=1)
    job_type: Optional[JobType] = None
    location: Optional[str] = Field(None, min_length=1, max_length=255)
    experience_level: Optional[ExperienceLevel] = None
    category: Optional[str] = Field(None, min_length=1, max_length=100)
    status: Optional[Literal["open", "closed", "filled"]] = None

def _job_query(db: Session):
    return db.query(Job).options(selectinload(Job.employer), selectinload(Job.employer_profile))

def _check_salary_range(job: Job):
    if job.salary_min is not None and job.salary_max is not None and job.salary_max < job.salary_min:
        raise ValidationError({"salary_max": ["The salary max must be greater than or equal to salary min."]})

def _build_questions(questions: List[ScreeningQuestionIn]) -> List[ScreeningQuestion]:
    return [ScreeningQuestion(**question.model_dump()) for question in questions]

def get_owned_job(db: Session, job_id: int, actor: User) -> Job:
    """The actor's own job; visible jobs of others are forbidden, invisible ones missing"""
    job = db.query(Job).filter(Job.id == job_id).first()
    if not job:
        raise NotFoundError("Job not found")
    if not policy.owns_job(job, actor):
        if policy.can_view_job(job, actor):
            raise AuthorizationError("Unauthorized")
        raise NotFoundError("Job not found")
    return job

# --- Public ---

@router.get("")
def search_jobs(
    page: int = Query(1, ge=1),
    per_page: int = Query(15, ge=1, le=100),
    category: Optional[str] = Query(None),
    job_type: Optional[str] = Query(None),
    is_remote: Optional[str] = Query(None),
    experience_level: Optional[str] = Query(None),
    location: Optional[str] = Query(None),
    search: Optional[str] = Query(None),
    db: Session = Depends(get_db)
):
    query = _job_query(db).filter(policy.open_jobs_clause())

    if category:
        query = query.filter(Job.category == category)

    if job_type:
        query = query.filter(Job.job_type == job_type)

    if is_remote and is_remote.lower() in ("true", "1"):
        query = query.filter(Job.is_remote == True)

    if experience_level:
        query = query.filter(Job.experience_level == experience_level)

    if location:
        query = query.filter(Job.location.ilike(f"%{location}%"))

    if search:
        query = query.filter(or_(
            Job.title.ilike(f"%{search}%"),
            Job.description.ilike(f"%{search}%")
        ))

    query = query.order_by(Job.created_at.desc(), Job.id.desc())
    return envelope(paginate(query, page, per_page, JobOut.model_validate))

def record_view(db: Session, job_id: int) -> None:
    # Single UPDATE so concurrent viewers never overwrite each other's increment
    db.query(Job).filter(Job.id == job_id).update(
        {Job.views_count: Job.views_count + 1}, synchronize_session=False
    )

@router.get("/{job_id}")
def get_job(
    job_id: int,
    current_user: Optional[User] = Depends(get_optional_user),
    db: Session = Depends(get_db)
):
    job = _job_query(db).options(selectinload(Job.screening_questions)).filter(Job.id == job_id).first()
    if not job or not policy.can_view_job(job, current_user):
        raise NotFoundError("Job not found")

    record_view(db, job_id)
    db.commit()
    db.refresh(job)

    return envelope(JobDetailOut.model_validate(job))

# --- Employer ---

@employer_router.get("")
def my_jobs(
    page: int = Query(1, ge=1),
    per_page: int = Query(15, ge=1, le=100),
    current_user: User = Depends(require_roles(ROLE_EMPLOYER)),
    db: Session = Depends(get_db)
):
    query = db.query(Job, func.count(Application.id)).outerjoin(
        Application, Application.job_id == Job.id
    ).filter(Job.employer_id == current_user.id).group_by(Job.id).order_by(
        Job.created_at.desc(), Job.id.desc()
    )

    def serialize(row):
        job, applications_count = row
        return JobOut.model_validate(job).model_copy(update={"applications_count": applications_count})

    return envelope(paginate(query, page, per_page, serialize))

@employer_router.post("", status_code=201)
def create_job(
    request: JobCreate,
    current_user: User = Depends(require_roles(ROLE_EMPLOYER)),
    db: Session = Depends(get_db)
):
    if not policy.can_create_job(current_user):
        raise AuthorizationError("Please complete your employer profile first")

    values = request.model_dump(exclude={"screening_questions"})
    values["salary_period"] = values["salary_period"] or "per year"
    values["skills_required"] = values["skills_required"] or []
    values["benefits"] = values["benefits"] or []
    values["is_remote"] = bool(values["is_remote"])

    job = Job(employer_id=current_user.id, status="open", views_count=0, **values)
    _check_salary_range(job)
    job.screening_questions = _build_questions(request.screening_questions or [])

    db.add(job)
    db.commit()
    db.refresh(job)

    logger.info(f"Employer {current_user.id} posted job {job.id}")
    return envelope(JobDetailOut.model_validate(job), "Job created successfully")

@employer_router.put("/{job_id}")
def update_job(
    job_id: int,
    request: JobUpdate,
    current_user: User = Depends(require_roles(ROLE_EMPLOYER)),
    db: Session = Depends(get_db)
):
    job = get_owned_job(db, job_id, current_user)

    updates = request.model_dump(exclude_unset=True, exclude={"screening_questions"})
    missing = {
        field: [f"The {field.replace('_', ' ')} field is required."]
        for field, value in updates.items()
        if value is None and field in REQUIRED_ON_UPDATE
    }
    if missing:
        raise ValidationError(missing)

    if "status" in updates and not policy.can_transition_job(job.status, updates["status"]):
        raise ConflictError(f"A {job.status} job cannot be moved to {updates['status']}")

    for field, value in updates.items():
        setattr(job, field, value)
    _check_salary_range(job)

    if request.screening_questions is not None:
        job.screening_questions = _build_questions(request.screening_questions)

    db.commit()
    db.refresh(job)

    logger.info(f"Employer {current_user.id} updated job {job.id}")
    return envelope(JobDetailOut.model_validate(job), "Job updated successfully")

@employer_router.delete("/{job_id}")
def delete_job(
    job_id: int,
    current_user: User = Depends(require_roles(ROLE_EMPLOYER)),
    db: Session = Depends(get_db)
):
    job = get_owned_job(db, job_id, current_user)
    db.delete(job)
    db.commit()

    logger.info(f"Employer {current_user.id} deleted job {job_id}")
    return envelope(message="Job deleted successfully")

@employer_router.get("/{job_id}/applications")
def job_applications(
    job_id: int,
    status: Optional[str] = Query(None),
    page: int = Query(1, ge=1),
    per_page: int = Query(20, ge=1, le=100),
    current_user: User = Depends(require_roles(ROLE_EMPLOYER)),
    db: Session = Depends(get_db)
):
    get_owned_job(db, job_id, current_user)

    query = db.query(Application).options(
        selectinload(Application.student), selectinload(Application.student_profile)
    ).filter(Application.job_id == job_id)

    if status:
        query = query.filter(Application.status == status)

    query = query.order_by(Application.applied_at.desc(), Application.id.desc())
    return envelope(paginate(query, page, per_page, ApplicationWithStudent.model_validate))

# --- Student ---

@student_router.post("/{job_id}/save")
def toggle_save(
    job_id: int,
    current_user: User = Depends(require_roles(*STUDENT_ROLES)),
    db: Session = Depends(get_db)
):
    job = db.query(Job).filter(Job.id == job_id).first()
    is_saved = job is not None and job in current_user.saved_jobs

    # Already-saved jobs can always be removed, even after they close
    if not job or (not is_saved and not policy.can_view_job(job, current_user)):
        raise NotFoundError("Job not found")

    if is_saved:
        current_user.saved_jobs.remove(job)
        message = "Job removed from saved list"
    else:
        current_user.saved_jobs.append(job)
        message = "Job saved successfully"
    db.commit()

    return envelope({"is_saved": not is_saved}, message)

@student_router.get("/saved")
def saved_job_list(
    page: int = Query(1, ge=1),
    per_page: int = Query(15, ge=1, le=100),
    current_user: User = Depends(require_roles(*STUDENT_ROLES)),
    db: Session = Depends(get_db)
):
    query = _job_query(db).join(saved_jobs, saved_jobs.c.job_id == Job.id).filter(
        saved_jobs.c.user_id == current_user.id
    ).order_by(saved_jobs.c.created_at.desc(), Job.id.desc())

    return envelope(paginate(query, page, per_page, JobOut.model_validate))
