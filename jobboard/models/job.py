from sqlalchemy import Column, Integer, String, DateTime, Date, Boolean, Text, JSON, Numeric, ForeignKey, UniqueConstraint
from sqlalchemy.sql import func
from sqlalchemy.orm import relationship
from jobboard.core.database import Base
from jobboard.models.user import saved_jobs

JOB_TYPES = ("full-time", "part-time", "contract", "internship", "co-op")
EXPERIENCE_LEVELS = ("entry", "intermediate", "senior", "executive")
SALARY_PERIODS = ("per hour", "per month", "per year")

JOB_OPEN = "open"
JOB_CLOSED = "closed"
JOB_FILLED = "filled"
JOB_STATUSES = (JOB_OPEN, JOB_CLOSED, JOB_FILLED)

QUESTION_TYPES = ("text", "multiple_choice", "yes_no")

APPLICATION_PENDING = "pending"
APPLICATION_REVIEWED = "reviewed"
APPLICATION_SHORTLISTED = "shortlisted"
APPLICATION_REJECTED = "rejected"
APPLICATION_STATUSES = (APPLICATION_PENDING, APPLICATION_REVIEWED, APPLICATION_SHORTLISTED, APPLICATION_REJECTED)

class Job(Base):
    __tablename__ = "jobs"

    id = Column(Integer, primary_key=True, index=True)
    employer_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    title = Column(String(255), nullable=False, index=True)
    description = Column(Text, nullable=False)
    requirements = Column(Text)
    responsibilities = Column(Text)
    job_type = Column(String(20), nullable=False, index=True)  # full-time, part-time, contract, internship, co-op
    location = Column(String(255), nullable=False, index=True)
    salary_min = Column(Numeric(10, 2, asdecimal=False))
    salary_max = Column(Numeric(10, 2, asdecimal=False))
    salary_period = Column(String(20), default="per year", nullable=False)
    experience_level = Column(String(20), nullable=False, index=True)
    category = Column(String(100), nullable=False, index=True)
    skills_required = Column(JSON)
    benefits = Column(JSON)
    application_deadline = Column(Date)
    start_date = Column(Date)
    is_remote = Column(Boolean, default=False, nullable=False)
    status = Column(String(20), default=JOB_OPEN, nullable=False, index=True)  # open, closed, filled
    views_count = Column(Integer, default=0, nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    employer = relationship("User", back_populates="jobs")
    employer_profile = relationship(
        "EmployerProfile",
        primaryjoin="foreign(Job.employer_id) == EmployerProfile.user_id",
        viewonly=True,
        uselist=False,
    )
    screening_questions = relationship(
        "ScreeningQuestion",
        back_populates="job",
        order_by="ScreeningQuestion.order",
        cascade="all, delete-orphan",
    )
    applications = relationship("Application", back_populates="job", cascade="all, delete-orphan")
    saved_by_users = relationship("User", secondary=saved_jobs, back_populates="saved_jobs")

class ScreeningQuestion(Base):
    __tablename__ = "screening_questions"

    id = Column(Integer, primary_key=True, index=True)
    job_id = Column(Integer, ForeignKey("jobs.id", ondelete="CASCADE"), nullable=False, index=True)
    question = Column(Text, nullable=False)
    question_type = Column(String(20), default="text", nullable=False)  # text, multiple_choice, yes_no
    is_required = Column(Boolean, default=True, nullable=False)
    options = Column(JSON)
    order = Column(Integer, default=0, nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    job = relationship("Job", back_populates="screening_questions")

class Application(Base):
    __tablename__ = "applications"
    __table_args__ = (
        UniqueConstraint("job_id", "student_id", name="uq_applications_job_student"),
    )

    id = Column(Integer, primary_key=True, index=True)
    job_id = Column(Integer, ForeignKey("jobs.id", ondelete="CASCADE"), nullable=False, index=True)
    student_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    cover_letter = Column(Text, nullable=False)
    resume_path = Column(String)
    status = Column(String(20), default=APPLICATION_PENDING, nullable=False, index=True)
    screening_answers = Column(JSON)
    applied_at = Column(DateTime(timezone=True), server_default=func.now())
    reviewed_at = Column(DateTime(timezone=True))
    notes = Column(Text)  # employer notes
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    job = relationship("Job", back_populates="applications")
    student = relationship("User", back_populates="applications")
    student_profile = relationship(
        "StudentProfile",
        primaryjoin="foreign(Application.student_id) == StudentProfile.user_id",
        viewonly=True,
        uselist=False,
    )
