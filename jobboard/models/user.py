from sqlalchemy import Column, Integer, String, DateTime, Boolean, Text, JSON, Date, Numeric, ForeignKey, Table
from sqlalchemy.sql import func
from sqlalchemy.orm import relationship
from jobboard.core.database import Base

ROLE_STUDENT = "student"
ROLE_ALUMNI = "alumni"
ROLE_EMPLOYER = "employer"
ROLE_ADMIN = "admin"

ROLES = (ROLE_STUDENT, ROLE_ALUMNI, ROLE_EMPLOYER, ROLE_ADMIN)
STUDENT_ROLES = (ROLE_STUDENT, ROLE_ALUMNI)

saved_jobs = Table(
    "saved_jobs",
    Base.metadata,
    Column("user_id", Integer, ForeignKey("users.id", ondelete="CASCADE"), primary_key=True),
    Column("job_id", Integer, ForeignKey("jobs.id", ondelete="CASCADE"), primary_key=True),
    Column("created_at", DateTime(timezone=True), server_default=func.now()),
)

class User(Base):
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(255), nullable=False)
    email = Column(String(255), unique=True, index=True, nullable=False)
    hashed_password = Column(String, nullable=False)
    role = Column(String(20), nullable=False, index=True)  # student, alumni, employer, admin
    is_verified = Column(Boolean, default=False, nullable=False)
    email_verified_at = Column(DateTime(timezone=True))
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    student_profile = relationship("StudentProfile", back_populates="user", uselist=False, cascade="all, delete-orphan")
    employer_profile = relationship("EmployerProfile", back_populates="user", uselist=False, cascade="all, delete-orphan")
    jobs = relationship("Job", back_populates="employer", cascade="all, delete-orphan")
    applications = relationship("Application", back_populates="student", cascade="all, delete-orphan")
    notifications = relationship("Notification", back_populates="user", cascade="all, delete-orphan")
    saved_jobs = relationship("Job", secondary=saved_jobs, back_populates="saved_by_users")

    @property
    def profile(self):
        """The profile matching this user's role, if one has been created"""
        if self.role in STUDENT_ROLES:
            return self.student_profile
        if self.role == ROLE_EMPLOYER:
            return self.employer_profile
        return None

class StudentProfile(Base):
    __tablename__ = "student_profiles"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), unique=True, nullable=False)
    student_number = Column(String(20))
    program = Column(String(255), nullable=False)
    faculty = Column(String(255), nullable=False)
    graduation_year = Column(Integer, nullable=False)
    gpa = Column(Numeric(3, 2, asdecimal=False))
    bio = Column(Text)
    skills = Column(JSON)
    resume_path = Column(String)
    linkedin_url = Column(String)
    github_url = Column(String)
    portfolio_url = Column(String)
    phone = Column(String(20))
    location = Column(String(255))
    available_from = Column(Date)
    work_authorization = Column(String(255))
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    user = relationship("User", back_populates="student_profile")

class EmployerProfile(Base):
    __tablename__ = "employer_profiles"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), unique=True, nullable=False)
    company_name = Column(String(255), nullable=False, index=True)
    company_description = Column(Text, nullable=False)
    industry = Column(String(255), nullable=False)
    company_size = Column(String(50))
    logo_path = Column(String)
    website = Column(String)
    contact_person = Column(String(255), nullable=False)
    contact_email = Column(String(255), nullable=False)
    contact_phone = Column(String(20))
    location = Column(String(255), nullable=False)
    founded_year = Column(Integer)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    user = relationship("User", back_populates="employer_profile")
    jobs = relationship(
        "Job",
        primaryjoin="EmployerProfile.user_id == foreign(Job.employer_id)",
        viewonly=True,
    )
