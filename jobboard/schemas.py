from pydantic import BaseModel, ConfigDict, computed_field
from typing import Any, Dict, List, Optional
from datetime import date, datetime

from jobboard.core.storage import public_url
from jobboard.services.policy import is_open_for_application

def envelope(data: Any = None, message: Optional[str] = None) -> dict:
    body = {"success": True}
    if message is not None:
        body["message"] = message
    if data is not None:
        body["data"] = data
    return body

class ORMModel(BaseModel):
    model_config = ConfigDict(from_attributes=True)

class UserOut(ORMModel):
    id: int
    name: str
    email: str
    role: str
    is_verified: bool
    email_verified_at: Optional[datetime] = None
    created_at: Optional[datetime] = None

class StudentProfileOut(ORMModel):
    id: int
    user_id: int
    student_number: Optional[str] = None
    program: str
    faculty: str
    graduation_year: int
    gpa: Optional[float] = None
    bio: Optional[str] = None
    skills: Optional[List[str]] = None
    resume_path: Optional[str] = None
    linkedin_url: Optional[str] = None
    github_url: Optional[str] = None
    portfolio_url: Optional[str] = None
    phone: Optional[str] = None
    location: Optional[str] = None
    available_from: Optional[date] = None
    work_authorization: Optional[str] = None

    @computed_field
    @property
    def resume_url(self) -> Optional[str]:
        return public_url(self.resume_path)

class EmployerProfileOut(ORMModel):
    id: int
    user_id: int
    company_name: str
    company_description: str
    industry: str
    company_size: Optional[str] = None
    logo_path: Optional[str] = None
    website: Optional[str] = None
    contact_person: str
    contact_email: str
    contact_phone: Optional[str] = None
    location: str
    founded_year: Optional[int] = None

    @computed_field
    @property
    def logo_url(self) -> Optional[str]:
        return public_url(self.logo_path)

class StudentProfilePublic(StudentProfileOut):
    user: UserOut

class EmployerProfilePublic(EmployerProfileOut):
    user: UserOut

class UserWithProfile(UserOut):
    student_profile: Optional[StudentProfileOut] = None
    employer_profile: Optional[EmployerProfileOut] = None

class ScreeningQuestionOut(ORMModel):
    id: int
    question: str
    question_type: str
    is_required: bool
    options: Optional[List[str]] = None
    order: int

class EmployerSummary(ORMModel):
    id: int
    name: str

class JobOut(ORMModel):
    id: int
    employer_id: int
    title: str
    description: str
    requirements: Optional[str] = None
    responsibilities: Optional[str] = None
    job_type: str
    location: str
    salary_min: Optional[float] = None
    salary_max: Optional[float] = None
    salary_period: str
    experience_level: str
    category: str
    skills_required: Optional[List[str]] = None
    benefits: Optional[List[str]] = None
    application_deadline: Optional[date] = None
    start_date: Optional[date] = None
    is_remote: bool
    status: str
    views_count: int
    created_at: Optional[datetime] = None
    employer: Optional[EmployerSummary] = None
    employer_profile: Optional[EmployerProfileOut] = None
    applications_count: Optional[int] = None

    @computed_field
    @property
    def is_open(self) -> bool:
        return is_open_for_application(self)

class JobDetailOut(JobOut):
    screening_questions: List[ScreeningQuestionOut] = []

class ApplicationOut(ORMModel):
    id: int
    job_id: int
    student_id: int
    cover_letter: str
    resume_path: Optional[str] = None
    status: str
    screening_answers: Optional[Dict[str, Any]] = None
    applied_at: Optional[datetime] = None
    reviewed_at: Optional[datetime] = None
    notes: Optional[str] = None

    @computed_field
    @property
    def resume_url(self) -> Optional[str]:
        return public_url(self.resume_path)

class ApplicationWithJob(ApplicationOut):
    job: JobOut

class ApplicationWithStudent(ApplicationOut):
    student: UserOut
    student_profile: Optional[StudentProfileOut] = None

class ApplicationDetail(ApplicationOut):
    job: JobDetailOut
    student: UserOut
    student_profile: Optional[StudentProfileOut] = None

class AdminApplicationOut(ApplicationOut):
    job: JobOut
    student: UserOut

class UserDetail(UserWithProfile):
    jobs: List[JobOut] = []
    applications: List[ApplicationOut] = []

class NotificationOut(ORMModel):
    id: int
    type: str
    title: str
    message: str
    data: Optional[Dict[str, Any]] = None
    is_read: bool
    read_at: Optional[datetime] = None
    created_at: Optional[datetime] = None
