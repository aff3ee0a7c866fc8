"""
Notification fan-out for domain events.

Each producer adds exactly one row to the caller's session and never commits:
the notification is persisted by the same commit as the write that triggered it.
"""

from typing import Optional
from sqlalchemy.orm import Session
import logging

from jobboard.models.notification import Notification
from jobboard.models.user import User
from jobboard.models.job import (
    Job, Application, APPLICATION_REVIEWED, APPLICATION_SHORTLISTED, APPLICATION_REJECTED,
)

logger = logging.getLogger(__name__)

TYPE_ACCOUNT_VERIFIED = "account_verified"
TYPE_NEW_APPLICATION = "new_application"
TYPE_APPLICATION_STATUS = "application_status"

STATUS_MESSAGES = {
    APPLICATION_REVIEWED: "Your application has been reviewed",
    APPLICATION_SHORTLISTED: "Congratulations! You have been shortlisted",
    APPLICATION_REJECTED: "Your application status has been updated",
}

def _add(db: Session, user_id: int, type_: str, title: str, message: str, data: Optional[dict] = None) -> Notification:
    notification = Notification(
        user_id=user_id,
        type=type_,
        title=title,
        message=message,
        data=data or {},
        is_read=False,
    )
    db.add(notification)
    logger.info(f"Queued {type_} notification for user {user_id}")
    return notification

def notify_account_verified(db: Session, user: User) -> Notification:
    return _add(
        db,
        user.id,
        TYPE_ACCOUNT_VERIFIED,
        "Account Verified",
        "Your account has been verified by an administrator.",
    )

def notify_new_application(db: Session, job: Job, application: Application, student: User) -> Notification:
    return _add(
        db,
        job.employer_id,
        TYPE_NEW_APPLICATION,
        "New Application Received",
        f"{student.name} has applied for {job.title}",
        {"job_id": job.id, "application_id": application.id},
    )

def notify_status_change(db: Session, application: Application) -> Optional[Notification]:
    """Tell the applicant about a review outcome; moving back to pending is silent"""
    status_message = STATUS_MESSAGES.get(application.status)
    if status_message is None:
        return None
    return _add(
        db,
        application.student_id,
        TYPE_APPLICATION_STATUS,
        "Application Status Update",
        f"{status_message} for {application.job.title}",
        {
            "job_id": application.job_id,
            "application_id": application.id,
            "status": application.status,
        },
    )
