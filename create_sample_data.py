#!/usr/bin/env python3
"""
Script to seed demo students, employers with company profiles, and open jobs.
Safe to run repeatedly: existing accounts and jobs are left alone.
"""
import sys
import os
from datetime import date, datetime, timedelta, timezone
sys.path.append(os.path.dirname(os.path.abspath(__file__)))

from jobboard.core.database import SessionLocal, init_db
from jobboard.core.security import get_password_hash
from jobboard.models.user import User, StudentProfile, EmployerProfile, ROLE_EMPLOYER
from jobboard.models.job import Job

DEFAULT_PASSWORD = "password123"

students_data = [
    {"name": "Emily Walsh", "email": "emily.walsh@mun.ca", "role": "student",
     "program": "Computer Science", "faculty": "Science", "graduation_year": 2026, "gpa": 3.7,
     "skills": ["Python", "SQL", "React"]},
    {"name": "Liam Power", "email": "liam.power@mun.ca", "role": "student",
     "program": "Business Administration", "faculty": "Business", "graduation_year": 2025, "gpa": 3.4,
     "skills": ["Excel", "Marketing", "Communication"]},
    {"name": "Sophie Murphy", "email": "sophie.murphy@mun.ca", "role": "student",
     "program": "Mechanical Engineering", "faculty": "Engineering", "graduation_year": 2027, "gpa": 3.9,
     "skills": ["CAD", "MATLAB", "Project Management"]},
    {"name": "Noah Kavanagh", "email": "noah.kavanagh@mun.ca", "role": "alumni",
     "program": "Nursing", "faculty": "Nursing", "graduation_year": 2022, "gpa": 3.5,
     "skills": ["Patient Care", "Teamwork"]},
    {"name": "Olivia Hynes", "email": "olivia.hynes@mun.ca", "role": "alumni",
     "program": "Computer Engineering", "faculty": "Engineering", "graduation_year": 2021, "gpa": 3.6,
     "skills": ["C++", "Embedded Systems", "Linux"]},
]

employers_data = [
    {"name": "Hannah Reid", "email": "careers@northatlantic.ca",
     "company_name": "North Atlantic Software", "industry": "Technology", "company_size": "51-200",
     "location": "St. John's, NL", "founded_year": 2008,
     "company_description": "Builds logistics and fleet tracking software for ocean industries."},
    {"name": "Marcus Byrne", "email": "hr@harbourhealth.ca",
     "company_name": "Harbour Health", "industry": "Healthcare", "company_size": "201-500",
     "location": "Mount Pearl, NL", "founded_year": 1995,
     "company_description": "Regional network of clinics and community care services."},
    {"name": "Grace Fitzgerald", "email": "talent@capespear.ca",
     "company_name": "Cape Spear Engineering", "industry": "Engineering", "company_size": "11-50",
     "location": "Corner Brook, NL", "founded_year": 2014,
     "company_description": "Consulting engineers for renewable energy and marine structures."},
]

jobs_data = {
    "careers@northatlantic.ca": [
        {"title": "Junior Backend Developer", "job_type": "full-time", "experience_level": "entry",
         "category": "Software Development", "salary_min": 55000, "salary_max": 70000,
         "skills_required": ["Python", "SQL"], "is_remote": True,
         "description": "Help build the APIs behind our vessel tracking platform."},
        {"title": "Software Co-op Student", "job_type": "co-op", "experience_level": "entry",
         "category": "Software Development", "salary_min": 20, "salary_max": 24, "salary_period": "per hour",
         "skills_required": ["JavaScript"], "is_remote": False,
         "description": "A four month work term with our web team."},
    ],
    "hr@harbourhealth.ca": [
        {"title": "Registered Nurse", "job_type": "full-time", "experience_level": "intermediate",
         "category": "Healthcare", "salary_min": 68000, "salary_max": 85000,
         "skills_required": ["Patient Care"], "is_remote": False,
         "description": "Join the acute care team at our Mount Pearl clinic."},
    ],
    "talent@capespear.ca": [
        {"title": "Engineering Intern", "job_type": "internship", "experience_level": "entry",
         "category": "Engineering", "salary_min": 3200, "salary_max": 3800, "salary_period": "per month",
         "skills_required": ["CAD", "MATLAB"], "is_remote": False,
         "description": "Support site assessments for onshore wind projects."},
        {"title": "Project Engineer", "job_type": "contract", "experience_level": "senior",
         "category": "Engineering", "salary_min": 90000, "salary_max": 110000,
         "skills_required": ["Project Management"], "is_remote": False,
         "description": "Lead delivery of a twelve month wharf rehabilitation contract."},
    ],
}

def _get_or_create_user(db, name, email, role):
    user = db.query(User).filter(User.email == email).first()
    if user:
        print(f"User {email} already exists, skipping...")
        return user, False

    user = User(
        name=name,
        email=email,
        hashed_password=get_password_hash(DEFAULT_PASSWORD),
        role=role,
        is_verified=True,
        email_verified_at=datetime.now(timezone.utc),
    )
    db.add(user)
    db.flush()
    return user, True

def create_sample_data():
    init_db()
    db = SessionLocal()
    created = []

    try:
        for data in students_data:
            user, is_new = _get_or_create_user(db, data["name"], data["email"], data["role"])
            if is_new:
                created.append(data["email"])
            if not user.student_profile:
                db.add(StudentProfile(
                    user_id=user.id,
                    program=data["program"],
                    faculty=data["faculty"],
                    graduation_year=data["graduation_year"],
                    gpa=data["gpa"],
                    skills=data["skills"],
                    location="St. John's, NL",
                ))

        for data in employers_data:
            user, is_new = _get_or_create_user(db, data["name"], data["email"], ROLE_EMPLOYER)
            if is_new:
                created.append(data["email"])
            if not user.employer_profile:
                db.add(EmployerProfile(
                    user_id=user.id,
                    company_name=data["company_name"],
                    company_description=data["company_description"],
                    industry=data["industry"],
                    company_size=data["company_size"],
                    contact_person=data["name"],
                    contact_email=data["email"],
                    location=data["location"],
                    founded_year=data["founded_year"],
                ))

            for job_data in jobs_data.get(data["email"], []):
                exists = db.query(Job).filter(
                    Job.employer_id == user.id, Job.title == job_data["title"]
                ).first()
                if exists:
                    continue
                db.add(Job(
                    employer_id=user.id,
                    location=data["location"],
                    salary_period=job_data.get("salary_period", "per year"),
                    benefits=["Flexible hours"],
                    application_deadline=date.today() + timedelta(days=45),
                    status="open",
                    views_count=0,
                    **{k: v for k, v in job_data.items() if k != "salary_period"},
                ))

        db.commit()
        print(f"✅ Successfully created {len(created)} sample users:")
        for email in created:
            print(f"   - {email}")
        print(f"\n🔑 All sample accounts use the password: {DEFAULT_PASSWORD}")

    except Exception as e:
        db.rollback()
        print(f"❌ Error creating sample data: {str(e)}")
        sys.exit(1)
    finally:
        db.close()

if __name__ == "__main__":
    create_sample_data()
