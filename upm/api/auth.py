"""Authentication endpoints: login, logout, me."""
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Request, status
from pydantic import BaseModel
from sqlalchemy.orm import Session

from ..core.errors import ValidationError
from ..core.security import CurrentUser, authenticate, get_current_user
from ..models.base import get_db
from ..models.person import Role
from ..services import audit_log
from ..services.people import get_administrator, touch_last_login

router = APIRouter(prefix="/auth", tags=["auth"])


class LoginRequest(BaseModel):
    username: Optional[str] = None
    password: Optional[str] = None


class UserResponse(BaseModel):
    id: int
    username: str
    role: str
    name: str
    access_level: Optional[str] = None
    permissions: Optional[dict] = None


def _client_ip(request: Request) -> str:
    return request.client.host if request.client else "unknown"


def _user_response(db: Session, user: CurrentUser) -> UserResponse:
    resp = UserResponse(id=user.person_id, username=user.username, role=user.role, name=user.name)
    if user.role == Role.ADMIN:
        admin = get_administrator(db, user.person_id)
        if admin is not None:
            resp.access_level = admin.access_level
            resp.permissions = admin.permissions()
    return resp


@router.post("/login")
def login(req: LoginRequest, request: Request, db: Session = Depends(get_db)):
    """Check demo credentials and audit the attempt either way."""
    if not req.username or not req.password:
        raise ValidationError("Username and password are required")

    user = authenticate(req.username, req.password)
    audit_log.record_login_attempt(db, req.username, success=user is not None, ip_address=_client_ip(request))
    if user is None:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid credentials")

    touch_last_login(db, user.person_id)
    return {"success": True, "data": _user_response(db, user), "message": "Login successful"}


@router.post("/logout")
def logout():
    return {"success": True, "message": "Logged out successfully"}


@router.get("/me")
def get_me(db: Session = Depends(get_db), current_user: CurrentUser = Depends(get_current_user)):
    """Return the account the request is acting as."""
    return {"success": True, "data": _user_response(db, current_user)}
