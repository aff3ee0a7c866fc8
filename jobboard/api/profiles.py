from fastapi import APIRouter, Depends, File, UploadFile
from sqlalchemy.orm import Session
from pydantic import BaseModel, EmailStr, Field, HttpUrl, field_validator
from typing import Optional, List
from datetime import date, datetime
import logging

from jobboard.core.config import settings
from jobboard.core.database import get_db
from jobboard.core.exceptions import NotFoundError
from jobboard.core.storage import LOGO_EXTENSIONS, RESUME_EXTENSIONS, public_url
from jobboard.api.auth import require_roles
from jobboard.models.user import User, StudentProfile, EmployerProfile, ROLE_EMPLOYER, STUDENT_ROLES
from jobboard.schemas import (
    EmployerProfileOut, EmployerProfilePublic, StudentProfileOut, StudentProfilePublic, envelope,
)
from jobboard.services.accounts import remove_profile_file, replace_profile_file, save_profile

logger = logging.getLogger(__name__)

student_router = APIRouter()
employer_router = APIRouter()
public_router = APIRouter()

class StudentProfileUpdate(BaseModel):
    student_number: Optional[str] = Field(None, max_length=20)
    program: str = Field(..., min_length=1, max_length=255)
    faculty: str = Field(..., min_length=1, max_length=255)
    graduation_year: int = Field(..., ge=2000, le=2050)
    gpa: Optional[float] = Field(None, ge=0, le=4.0)
    bio: Optional[str] = Field(None, max_length=1000)
    skills: Optional[List[str]] = None
    linkedin_url: Optional[HttpUrl] = None
    github_url: Optional[HttpUrl] = None
    portfolio_url: Optional[HttpUrl] = None
    phone: Optional[str] = Field(None, max_length=20)
    location: Optional[str] = Field(None, max_length=255)
    available_from: Optional[date] = None
    work_authorization: Optional[str] = Field(None, max_length=255)

    @field_validator("skills")
    @classmethod
    def skill_length(cls, value):
        if value and any(len(skill) > 50 for skill in value):
            raise ValueError("Each skill may not be greater than 50 characters.")
        return value

class EmployerProfileUpdate(BaseModel):
    company_name: str = Field(..., min_length=1, max_length=255)
    company_description: str = Field(..., min_length=1, max_length=2000)
    industry: str = Field(..., min_length=1, max_length=255)
    company_size: Optional[str] = Field(None, max_length=50)
    website: Optional[HttpUrl] = None
    contact_person: str = Field(..., min_length=1, max_length=255)
    contact_email: EmailStr
    contact_phone: Optional[str] = Field(None, max_length=20)
    location: str = Field(..., min_length=1, max_length=255)
    founded_year: Optional[int] = Field(None, ge=1800)

    @field_validator("founded_year")
    @classmethod
    def not_in_future(cls, value):
        if value is not None and value > datetime.now().year:
            raise ValueError("The founded year may not be in the future.")
        return value

def _profile_values(request: BaseModel) -> dict:
    # URLs are stored as plain strings
    return {
        field: str(value) if isinstance(value, HttpUrl) else value
        for field, value in request.model_dump(exclude_unset=True).items()
    }

def _own_student_profile(user: User) -> StudentProfile:
    if not user.student_profile:
        raise NotFoundError("Profile not found")
    return user.student_profile

def _own_employer_profile(user: User) -> EmployerProfile:
    if not user.employer_profile:
        raise NotFoundError("Profile not found")
    return user.employer_profile

# --- Student ---

@student_router.get("")
def get_student_profile(current_user: User = Depends(require_roles(*STUDENT_ROLES))):
    return envelope(StudentProfileOut.model_validate(_own_student_profile(current_user)))

@student_router.post("")
def save_student_profile(
    request: StudentProfileUpdate,
    current_user: User = Depends(require_roles(*STUDENT_ROLES)),
    db: Session = Depends(get_db)
):
    profile = save_profile(db, StudentProfile, current_user, _profile_values(request))
    return envelope(StudentProfileOut.model_validate(profile), "Profile saved successfully")

@student_router.post("/resume")
def upload_resume(
    resume: UploadFile = File(...),
    current_user: User = Depends(require_roles(*STUDENT_ROLES)),
    db: Session = Depends(get_db)
):
    if not current_user.student_profile:
        raise NotFoundError("Please create your profile first")
    profile = current_user.student_profile

    path = replace_profile_file(
        db, profile, "resume_path", resume, "resume", "resumes",
        RESUME_EXTENSIONS, settings.MAX_RESUME_SIZE_MB
    )
    logger.info(f"User {current_user.id} uploaded a resume")
    return envelope({"resume_path": path, "resume_url": public_url(path)}, "Resume uploaded successfully")

@student_router.delete("/resume")
def delete_resume(
    current_user: User = Depends(require_roles(*STUDENT_ROLES)),
    db: Session = Depends(get_db)
):
    profile = current_user.student_profile
    if not profile or not profile.resume_path:
        raise NotFoundError("No resume found")

    remove_profile_file(db, profile, "resume_path")
    return envelope(message="Resume deleted successfully")

# --- Employer ---

@employer_router.get("")
def get_employer_profile(current_user: User = Depends(require_roles(ROLE_EMPLOYER))):
    return envelope(EmployerProfileOut.model_validate(_own_employer_profile(current_user)))

@employer_router.post("")
def save_employer_profile(
    request: EmployerProfileUpdate,
    current_user: User = Depends(require_roles(ROLE_EMPLOYER)),
    db: Session = Depends(get_db)
):
    profile = save_profile(db, EmployerProfile, current_user, _profile_values(request))
    return envelope(EmployerProfileOut.model_validate(profile), "Profile saved successfully")

@employer_router.post("/logo")
def upload_logo(
    logo: UploadFile = File(...),
    current_user: User = Depends(require_roles(ROLE_EMPLOYER)),
    db: Session = Depends(get_db)
):
    if not current_user.employer_profile:
        raise NotFoundError("Please create your profile first")
    profile = current_user.employer_profile

    path = replace_profile_file(
        db, profile, "logo_path", logo, "logo", "logos",
        LOGO_EXTENSIONS, settings.MAX_LOGO_SIZE_MB
    )
    logger.info(f"User {current_user.id} uploaded a logo")
    return envelope({"logo_path": path, "logo_url": public_url(path)}, "Logo uploaded successfully")

@employer_router.delete("/logo")
def delete_logo(
    current_user: User = Depends(require_roles(ROLE_EMPLOYER)),
    db: Session = Depends(get_db)
):
    profile = current_user.employer_profile
    if not profile or not profile.logo_path:
        raise NotFoundError("No logo found")

    remove_profile_file(db, profile, "logo_path")
    return envelope(message="Logo deleted successfully")

# --- Public ---

@public_router.get("/student/{profile_id}")
def show_student_profile(profile_id: int, db: Session = Depends(get_db)):
    profile = db.query(StudentProfile).filter(StudentProfile.id == profile_id).first()
    if not profile:
        raise NotFoundError("Profile not found")
    return envelope(StudentProfilePublic.model_validate(profile))

@public_router.get("/employer/{profile_id}")
def show_employer_profile(profile_id: int, db: Session = Depends(get_db)):
    profile = db.query(EmployerProfile).filter(EmployerProfile.id == profile_id).first()
    if not profile:
        raise NotFoundError("Profile not found")
    return envelope(EmployerProfilePublic.model_validate(profile))
