"""
Authorization and lifecycle rules for jobs, applications and accounts.

Everything here is a pure function of entity state: no session, no queries, no
side effects. Routers and services load the records, ask these functions, and
raise the matching error themselves.
"""

from datetime import date, datetime, timezone
from typing import Dict, List, Optional
from sqlalchemy import and_, or_

from jobboard.models.user import User, STUDENT_ROLES, ROLE_EMPLOYER, ROLE_ADMIN
from jobboard.models.job import (
    Job, Application, JOB_OPEN, JOB_STATUSES, APPLICATION_PENDING, APPLICATION_STATUSES,
)

YES_NO_ANSWERS = ("yes", "no")

def today() -> date:
    return datetime.now(timezone.utc).date()

# --- Roles ---

def is_student(user: Optional[User]) -> bool:
    return user is not None and user.role in STUDENT_ROLES

def is_employer(user: Optional[User]) -> bool:
    return user is not None and user.role == ROLE_EMPLOYER

def is_admin(user: Optional[User]) -> bool:
    return user is not None and user.role == ROLE_ADMIN

# --- Jobs ---

def has_deadline_passed(job: Job, on: Optional[date] = None) -> bool:
    return job.application_deadline is not None and job.application_deadline < (on or today())

def is_open_for_application(job: Job, on: Optional[date] = None) -> bool:
    """A job takes applications while it is open and its deadline has not passed"""
    return job.status == JOB_OPEN and not has_deadline_passed(job, on)

def open_jobs_clause(on: Optional[date] = None):
    """The is_open_for_application predicate as a SQL filter"""
    return and_(
        Job.status == JOB_OPEN,
        or_(Job.application_deadline.is_(None), Job.application_deadline >= (on or today())),
    )

def owns_job(job: Job, actor: Optional[User]) -> bool:
    return actor is not None and job.employer_id == actor.id

def can_view_job(job: Job, actor: Optional[User], on: Optional[date] = None) -> bool:
    return is_open_for_application(job, on) or owns_job(job, actor)

def can_create_job(actor: Optional[User]) -> bool:
    return is_employer(actor) and actor.employer_profile is not None

def can_transition_job(current: str, target: str) -> bool:
    """open -> closed | filled; closed and filled are terminal"""
    if target not in JOB_STATUSES:
        return False
    return target == current or current == JOB_OPEN

# --- Applications ---

def can_view_application(application: Application, actor: Optional[User]) -> bool:
    if actor is None:
        return False
    return application.student_id == actor.id or application.job.employer_id == actor.id

def can_review_application(application: Application, actor: Optional[User]) -> bool:
    return owns_job(application.job, actor)

def can_transition_application(current: str, target: str) -> bool:
    """Only pending applications move; reviewed, shortlisted and rejected are final"""
    return target in APPLICATION_STATUSES and current == APPLICATION_PENDING

def can_withdraw_application(application: Application) -> bool:
    return application.status == APPLICATION_PENDING

def resolve_resume_path(uploaded_path: Optional[str], profile) -> Optional[str]:
    """Prefer this submission's upload, then the profile resume"""
    if uploaded_path:
        return uploaded_path
    if profile is not None and profile.resume_path:
        return profile.resume_path
    return None

def validate_screening_answers(questions, answers: Dict[str, str]) -> Dict[str, List[str]]:
    """Check submitted answers against a job's screening questions.

    Answers are keyed by question id (as a string). Returns field errors keyed
    as "screening_answers.<id>"; an empty dict means the answers are acceptable.
    """
    errors: Dict[str, List[str]] = {}
    by_id = {str(question.id): question for question in questions}

    for key in answers:
        if key not in by_id:
            errors.setdefault(f"screening_answers.{key}", []).append("Unknown screening question.")

    for key, question in by_id.items():
        field = f"screening_answers.{key}"
        answer = answers.get(key)
        if answer is None or str(answer).strip() == "":
            if question.is_required:
                errors.setdefault(field, []).append("This question requires an answer.")
            continue

        answer = str(answer).strip()
        if question.question_type == "yes_no" and answer.lower() not in YES_NO_ANSWERS:
            errors.setdefault(field, []).append("The answer must be yes or no.")
        elif question.question_type == "multiple_choice" and answer not in (question.options or []):
            errors.setdefault(field, []).append("The answer must be one of the listed options.")

    return errors

# --- Accounts ---

def user_deletion_denial(actor: User, target: User) -> Optional[str]:
    """Why an admin may not delete target, or None when deletion is allowed"""
    if target.id == actor.id:
        return "You cannot delete your own account"
    if target.role == ROLE_ADMIN:
        return "Cannot delete admin accounts"
    return None
