import itertools
import os
import tempfile

# Settings are read at import time, so the environment is prepared first
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["BCRYPT_ROUNDS"] = "4"
os.environ["SECRET_KEY"] = "test-secret-key"
os.environ["UPLOAD_DIR"] = tempfile.mkdtemp(prefix="jobboard-uploads-")
os.environ["PUBLIC_STORAGE_URL"] = "http://testserver/storage"

import pytest
from datetime import timedelta
from fastapi.testclient import TestClient

import jobboard.models  # noqa: F401
from jobboard.core.database import Base, SessionLocal, engine
from jobboard.core.security import create_access_token, get_password_hash
from jobboard.core.storage import store_file
from jobboard.main import app
from jobboard.models.user import User, StudentProfile, EmployerProfile
from jobboard.models.job import Job, ScreeningQuestion, Application
from jobboard.services import policy

PASSWORD = "password123"

@pytest.fixture(autouse=True)
def setup_database():
    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)
    yield

@pytest.fixture
def db():
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()

@pytest.fixture
def client():
    return TestClient(app)

@pytest.fixture
def auth():
    """Authorization header for a user"""
    def _headers(user):
        return {"Authorization": f"Bearer {create_access_token(user.id, user.role)}"}
    return _headers

@pytest.fixture
def make_user(db):
    counter = itertools.count(1)

    def _make(role="student", name=None, email=None, verified=False):
        n = next(counter)
        user = User(
            name=name or f"{role.title()} {n}",
            email=email or f"{role}{n}@example.com",
            hashed_password=get_password_hash(PASSWORD),
            role=role,
            is_verified=verified,
        )
        db.add(user)
        db.commit()
        db.refresh(user)
        return user
    return _make

@pytest.fixture
def make_student(db, make_user):
    """A student with a profile; with_resume stores a real resume blob"""
    def _make(role="student", with_resume=True, **kwargs):
        user = make_user(role=role, **kwargs)
        resume_path = store_file(b"%PDF-1.4 resume", "resumes", "resume.pdf") if with_resume else None
        db.add(StudentProfile(
            user_id=user.id,
            program="Computer Science",
            faculty="Science",
            graduation_year=2026,
            skills=["Python"],
            resume_path=resume_path,
        ))
        db.commit()
        db.refresh(user)
        return user
    return _make

@pytest.fixture
def make_employer(db, make_user):
    def _make(with_profile=True, **kwargs):
        user = make_user(role="employer", **kwargs)
        if with_profile:
            db.add(EmployerProfile(
                user_id=user.id,
                company_name=f"{user.name} Ltd",
                company_description="We build things.",
                industry="Technology",
                contact_person=user.name,
                contact_email=user.email,
                location="St. John's, NL",
            ))
            db.commit()
            db.refresh(user)
        return user
    return _make

@pytest.fixture
def make_job(db):
    def _make(employer, questions=None, **overrides):
        values = {
            "title": "Backend Developer",
            "description": "Build and run our APIs.",
            "job_type": "full-time",
            "location": "St. John's, NL",
            "experience_level": "entry",
            "category": "Software Development",
            "salary_period": "per year",
            "skills_required": ["Python"],
            "benefits": [],
            "is_remote": False,
            "status": "open",
            "views_count": 0,
        }
        values.update(overrides)
        job = Job(employer_id=employer.id, **values)
        job.screening_questions = [ScreeningQuestion(**question) for question in questions or []]
        db.add(job)
        db.commit()
        db.refresh(job)
        return job
    return _make

@pytest.fixture
def make_application(db):
    def _make(job, student, status="pending"):
        application = Application(
            job_id=job.id,
            student_id=student.id,
            cover_letter="I would like this job.",
            resume_path=student.student_profile.resume_path if student.student_profile else None,
            screening_answers={},
            status=status,
        )
        db.add(application)
        db.commit()
        db.refresh(application)
        return application
    return _make

@pytest.fixture
def future_date():
    return (policy.today() + timedelta(days=30)).isoformat()
