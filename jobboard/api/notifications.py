from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session
from datetime import datetime, timezone
import logging

from jobboard.core.database import get_db
from jobboard.core.exceptions import NotFoundError
from jobboard.core.pagination import paginate
from jobboard.api.auth import get_current_user
from jobboard.models.user import User
from jobboard.models.notification import Notification
from jobboard.schemas import NotificationOut, envelope

logger = logging.getLogger(__name__)
router = APIRouter()

def _own_notifications(db: Session, user: User):
    return db.query(Notification).filter(Notification.user_id == user.id)

def _get_own_notification(db: Session, notification_id: int, user: User) -> Notification:
    # Another user's notification is reported exactly like a missing one
    notification = _own_notifications(db, user).filter(Notification.id == notification_id).first()
    if not notification:
        raise NotFoundError("Notification not found")
    return notification

@router.get("")
def list_notifications(
    unread_only: bool = Query(False),
    page: int = Query(1, ge=1),
    per_page: int = Query(20, ge=1, le=100),
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    query = _own_notifications(db, current_user)
    if unread_only:
        query = query.filter(Notification.is_read == False)

    query = query.order_by(Notification.created_at.desc(), Notification.id.desc())
    return envelope(paginate(query, page, per_page, NotificationOut.model_validate))

@router.get("/unread-count")
def unread_count(
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    count = _own_notifications(db, current_user).filter(Notification.is_read == False).count()
    return envelope({"count": count})

@router.post("/read-all")
def mark_all_read(
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    updated = _own_notifications(db, current_user).filter(Notification.is_read == False).update(
        {Notification.is_read: True, Notification.read_at: datetime.now(timezone.utc)},
        synchronize_session=False
    )
    db.commit()
    return envelope({"updated": updated}, "All notifications marked as read")

@router.post("/{notification_id}/read")
def mark_read(
    notification_id: int,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    notification = _get_own_notification(db, notification_id, current_user)
    if not notification.is_read:
        notification.is_read = True
        notification.read_at = datetime.now(timezone.utc)
        db.commit()
        db.refresh(notification)
    return envelope(NotificationOut.model_validate(notification), "Notification marked as read")

@router.delete("/{notification_id}")
def delete_notification(
    notification_id: int,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    notification = _get_own_notification(db, notification_id, current_user)
    db.delete(notification)
    db.commit()
    return envelope(message="Notification deleted successfully")

@router.delete("")
def delete_all_notifications(
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    deleted = _own_notifications(db, current_user).delete(synchronize_session=False)
    db.commit()
    logger.info(f"User {current_user.id} cleared {deleted} notifications")
    return envelope({"deleted": deleted}, "All notifications deleted successfully")
