"""
Read-only statistics for the admin dashboard, analytics and reports.

Everything is recomputed from current storage on each call; aggregation is left
to the database (COUNT / AVG / GROUP BY).
"""

from datetime import datetime, timedelta, timezone
from typing import Dict, List, Optional
import calendar
from sqlalchemy import desc, func
from sqlalchemy.orm import Session

from jobboard.models.user import User, ROLE_EMPLOYER, STUDENT_ROLES
from jobboard.models.job import Job, Application, JOB_OPEN, APPLICATION_PENDING

RECENT_WINDOW_DAYS = 30
GROWTH_WINDOW_MONTHS = 12
TOP_EMPLOYERS_LIMIT = 10

REPORT_TYPES = ("overview", "users", "jobs", "applications")

def _since(days: int) -> datetime:
    return datetime.now(timezone.utc) - timedelta(days=days)

def months_ago(months: int, now: Optional[datetime] = None) -> datetime:
    """The same moment a number of calendar months back, clamped to the month's last day"""
    now = now or datetime.now(timezone.utc)
    year, month = divmod(now.year * 12 + now.month - 1 - months, 12)
    day = min(now.day, calendar.monthrange(year, month + 1)[1])
    return now.replace(year=year, month=month + 1, day=day)

def _month_bucket(db: Session, column):
    dialect = db.get_bind().dialect.name
    if dialect == "postgresql":
        return func.to_char(column, "YYYY-MM")
    if dialect in ("mysql", "mariadb"):
        return func.date_format(column, "%Y-%m")
    return func.strftime("%Y-%m", column)

def count_by(db: Session, column) -> List[Dict]:
    """[{<column name>: value, "count": n}, ...] for one grouping column"""
    rows = db.query(column, func.count()).group_by(column).order_by(column).all()
    return [{column.key: value, "count": count} for value, count in rows]

def dashboard_stats(db: Session) -> Dict:
    return {
        "total_users": db.query(User).count(),
        "total_students": db.query(User).filter(User.role.in_(STUDENT_ROLES)).count(),
        "total_employers": db.query(User).filter(User.role == ROLE_EMPLOYER).count(),
        "total_jobs": db.query(Job).count(),
        "active_jobs": db.query(Job).filter(Job.status == JOB_OPEN).count(),
        "total_applications": db.query(Application).count(),
        "pending_applications": db.query(Application).filter(Application.status == APPLICATION_PENDING).count(),
        "verified_users": db.query(User).filter(User.is_verified == True).count(),
        "unverified_users": db.query(User).filter(User.is_verified == False).count(),
    }

def user_growth(db: Session) -> List[Dict]:
    """Sign-ups per month and role over the last twelve months"""
    month = _month_bucket(db, User.created_at).label("month")
    rows = db.query(month, User.role, func.count()).filter(
        User.created_at >= months_ago(GROWTH_WINDOW_MONTHS)
    ).group_by(month, User.role).order_by(month, User.role).all()
    return [{"month": m, "role": role, "count": count} for m, role, count in rows]

def top_employers(db: Session, limit: int = TOP_EMPLOYERS_LIMIT) -> List[Dict]:
    jobs_count = func.count(Job.id).label("jobs_count")
    rows = db.query(User.id, User.name, User.email, jobs_count).outerjoin(
        Job, Job.employer_id == User.id
    ).filter(User.role == ROLE_EMPLOYER).group_by(
        User.id, User.name, User.email
    ).order_by(desc(jobs_count), User.id).limit(limit).all()
    return [
        {"id": user_id, "name": name, "email": email, "jobs_count": count}
        for user_id, name, email, count in rows
    ]

def analytics(db: Session) -> Dict:
    return {
        "user_growth": user_growth(db),
        "jobs_by_category": count_by(db, Job.category),
        "applications_by_status": count_by(db, Application.status),
        "top_employers": top_employers(db),
        "jobs_by_type": count_by(db, Job.job_type),
    }

def overview_report(db: Session) -> Dict:
    total_jobs = db.query(Job).count()
    total_applications = db.query(Application).count()
    return {
        "total_users": db.query(User).count(),
        "users_by_role": count_by(db, User.role),
        "total_jobs": total_jobs,
        "jobs_by_status": count_by(db, Job.status),
        "total_applications": total_applications,
        "average_applications_per_job": round(total_applications / max(total_jobs, 1), 2),
    }

def users_report(db: Session) -> Dict:
    return {
        "total_users": db.query(User).count(),
        "verified_users": db.query(User).filter(User.is_verified == True).count(),
        "users_by_role": count_by(db, User.role),
        "recent_signups": db.query(User).filter(User.created_at >= _since(RECENT_WINDOW_DAYS)).count(),
    }

def jobs_report(db: Session) -> Dict:
    average_views = db.query(func.avg(Job.views_count)).scalar()
    return {
        "total_jobs": db.query(Job).count(),
        "active_jobs": db.query(Job).filter(Job.status == JOB_OPEN).count(),
        "jobs_by_category": count_by(db, Job.category),
        "jobs_by_type": count_by(db, Job.job_type),
        "average_views_per_job": round(float(average_views or 0), 2),
    }

def applications_report(db: Session) -> Dict:
    return {
        "total_applications": db.query(Application).count(),
        "applications_by_status": count_by(db, Application.status),
        "recent_applications": db.query(Application).filter(
            Application.applied_at >= _since(RECENT_WINDOW_DAYS)
        ).count(),
    }

REPORTS = {
    "overview": overview_report,
    "users": users_report,
    "jobs": jobs_report,
    "applications": applications_report,
}

def build_report(db: Session, report_type: str) -> Dict:
    """Unknown report types fall back to the overview"""
    return REPORTS.get(report_type, overview_report)(db)
