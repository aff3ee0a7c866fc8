from fastapi import APIRouter, Depends, HTTPException
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session
from pydantic import BaseModel, EmailStr, Field, ValidationInfo, field_validator
from typing import Literal, Optional
import logging

from jobboard.core.database import get_db
from jobboard.core.exceptions import AuthorizationError
from jobboard.core.security import create_access_token, decode_access_token
from jobboard.models.user import User
from jobboard.schemas import UserOut, UserWithProfile, envelope
from jobboard.services.accounts import authenticate, register_user

logger = logging.getLogger(__name__)
router = APIRouter()

bearer_scheme = HTTPBearer(auto_error=False)

class RegisterRequest(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)
    email: EmailStr
    password: str = Field(..., min_length=8, max_length=72)
    password_confirmation: str
    role: Literal["student", "alumni", "employer"]

    @field_validator("password_confirmation")
    @classmethod
    def passwords_match(cls, value: str, info: ValidationInfo) -> str:
        if value != info.data.get("password"):
            raise ValueError("The password confirmation does not match.")
        return value

class LoginRequest(BaseModel):
    email: EmailStr
    password: str

def _user_from_token(credentials: Optional[HTTPAuthorizationCredentials], db: Session) -> Optional[User]:
    if credentials is None or credentials.scheme.lower() != "bearer":
        return None
    user_id = decode_access_token(credentials.credentials)
    if user_id is None:
        return None
    return db.query(User).filter(User.id == user_id).first()

def get_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
    db: Session = Depends(get_db)
) -> User:
    user = _user_from_token(credentials, db)
    if user is None:
        raise HTTPException(
            status_code=401,
            detail="Unauthenticated.",
            headers={"WWW-Authenticate": "Bearer"},
        )
    return user

def get_optional_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
    db: Session = Depends(get_db)
) -> Optional[User]:
    """The caller when a valid token is sent, otherwise None (public routes)"""
    return _user_from_token(credentials, db)

def require_roles(*roles: str):
    """Dependency factory: the current user, provided their role is one of roles"""
    def checker(current_user: User = Depends(get_current_user)) -> User:
        if current_user.role not in roles:
            logger.warning(f"User {current_user.id} ({current_user.role}) denied; requires {', '.join(roles)}")
            raise AuthorizationError("Forbidden: insufficient permissions")
        return current_user
    return checker

def _token_payload(user: User) -> dict:
    return {
        "user": UserWithProfile.model_validate(user),
        "token": create_access_token(user.id, user.role),
        "token_type": "bearer",
    }

@router.post("/register", status_code=201)
def register(request: RegisterRequest, db: Session = Depends(get_db)):
    user = register_user(db, request.name, request.email, request.password, request.role)
    return envelope(_token_payload(user), "Registration successful")

@router.post("/login")
def login(request: LoginRequest, db: Session = Depends(get_db)):
    user = authenticate(db, request.email, request.password)
    if not user:
        raise HTTPException(status_code=401, detail="Invalid credentials")
    logger.info(f"User {user.id} logged in")
    return envelope(_token_payload(user), "Login successful")

@router.post("/logout")
def logout(current_user: User = Depends(get_current_user)):
    # Tokens are stateless; the client discards its copy and it expires on its own
    logger.info(f"User {current_user.id} logged out")
    return envelope(message="Logged out successfully")

@router.get("/me")
def me(current_user: User = Depends(get_current_user)):
    return envelope(UserWithProfile.model_validate(current_user))

@router.post("/refresh")
def refresh(current_user: User = Depends(get_current_user)):
    return envelope({
        "token": create_access_token(current_user.id, current_user.role),
        "token_type": "bearer",
        "user": UserOut.model_validate(current_user),
    })
