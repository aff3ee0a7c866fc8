"""
Account-level operations: registration, login checks, admin bootstrap, role
profiles and their uploaded files.
"""

from datetime import datetime, timezone
from typing import Optional, Tuple
from fastapi import UploadFile
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session
from sqlalchemy.sql import func
import logging

from jobboard.core.config import settings
from jobboard.core.exceptions import AuthorizationError, ValidationError
from jobboard.core.security import get_password_hash, verify_password
from jobboard.core.storage import delete_file, read_upload, store_file
from jobboard.models.user import User, StudentProfile, EmployerProfile, ROLE_ADMIN, ROLE_EMPLOYER, STUDENT_ROLES
from jobboard.models.job import Application

logger = logging.getLogger(__name__)

PROFILE_ROLES = {
    StudentProfile: (STUDENT_ROLES, "Only students and alumni can create a student profile"),
    EmployerProfile: ((ROLE_EMPLOYER,), "Only employers can create an employer profile"),
}

def normalize_email(email: str) -> str:
    return email.strip().lower()

def register_user(db: Session, name: str, email: str, password: str, role: str) -> User:
    email = normalize_email(email)
    if db.query(User).filter(User.email == email).first():
        raise ValidationError({"email": ["The email has already been taken."]})

    user = User(
        name=name.strip(),
        email=email,
        hashed_password=get_password_hash(password),
        role=role,
        is_verified=False,
    )
    db.add(user)
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        raise ValidationError({"email": ["The email has already been taken."]})

    db.refresh(user)
    logger.info(f"Registered {role} account {user.id}")
    return user

def authenticate(db: Session, email: str, password: str) -> Optional[User]:
    user = db.query(User).filter(User.email == normalize_email(email)).first()
    if not user or not verify_password(password, user.hashed_password):
        logger.warning("Login failed: invalid credentials")
        return None
    return user

def ensure_admin(
    db: Session,
    email: Optional[str] = None,
    password: Optional[str] = None,
    name: Optional[str] = None,
) -> Tuple[User, bool]:
    """Create the bootstrap admin unless an account with that email already exists"""
    email = normalize_email(email or settings.ADMIN_EMAIL)
    existing = db.query(User).filter(User.email == email).first()
    if existing:
        logger.info("Admin user already exists, skipping...")
        return existing, False

    admin = User(
        name=name or settings.ADMIN_NAME,
        email=email,
        hashed_password=get_password_hash(password or settings.ADMIN_PASSWORD),
        role=ROLE_ADMIN,
        is_verified=True,
        email_verified_at=datetime.now(timezone.utc),
    )
    db.add(admin)
    db.commit()
    db.refresh(admin)
    logger.info(f"Admin user {admin.email} created")
    return admin, True

# --- Profiles ---

def _upsert_statement(db: Session, model, user_id: int, values: dict):
    """INSERT ... ON CONFLICT (user_id) DO UPDATE for dialects that support it"""
    dialect = db.get_bind().dialect.name
    if dialect == "postgresql":
        from sqlalchemy.dialects.postgresql import insert
    elif dialect == "sqlite":
        from sqlalchemy.dialects.sqlite import insert
    else:
        return None

    statement = insert(model).values(user_id=user_id, **values)
    if not values:
        return statement.on_conflict_do_nothing(index_elements=["user_id"])
    return statement.on_conflict_do_update(index_elements=["user_id"], set_={**values, "updated_at": func.now()})

def save_profile(db: Session, model, user: User, values: dict):
    """Create the user's profile or update the existing row, atomically keyed on user_id"""
    roles, denial = PROFILE_ROLES[model]
    if user.role not in roles:
        raise AuthorizationError(denial)

    statement = _upsert_statement(db, model, user.id, values)
    try:
        if statement is not None:
            db.execute(statement)
        else:
            profile = db.query(model).filter(model.user_id == user.id).first()
            if profile is None:
                db.add(model(user_id=user.id, **values))
            else:
                for field, value in values.items():
                    setattr(profile, field, value)
        db.commit()
    except Exception:
        db.rollback()
        raise

    logger.info(f"Saved {model.__tablename__} row for user {user.id}")
    return db.query(model).filter(model.user_id == user.id).one()

def _still_referenced(db: Session, path: str) -> bool:
    # Applications submitted with the profile resume point at the same blob
    return db.query(Application.id).filter(Application.resume_path == path).first() is not None

def replace_profile_file(
    db: Session,
    profile,
    attribute: str,
    upload: UploadFile,
    field: str,
    folder: str,
    allowed_extensions,
    max_size_mb: int,
) -> str:
    """Store a new upload, record it, then drop the blob it replaced"""
    content = read_upload(upload, field, allowed_extensions, max_size_mb)
    new_path = store_file(content, folder, upload.filename)
    old_path = getattr(profile, attribute)

    setattr(profile, attribute, new_path)
    try:
        db.commit()
    except Exception:
        db.rollback()
        delete_file(new_path)
        raise

    # If the process dies here the old blob leaks; the record never dangles
    if old_path and old_path != new_path and not _still_referenced(db, old_path):
        delete_file(old_path)

    db.refresh(profile)
    return new_path

def remove_profile_file(db: Session, profile, attribute: str) -> None:
    old_path = getattr(profile, attribute)
    setattr(profile, attribute, None)
    db.commit()

    if old_path and not _still_referenced(db, old_path):
        delete_file(old_path)
