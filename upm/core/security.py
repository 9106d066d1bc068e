"""
Request identity for the demo deployment.

There are no tokens: the client sends the account it logged in as in the
``X-User-Data`` header (JSON ``{"username", "role"}``) and every request is
checked against the static ``DEMO_ACCOUNTS`` table.
"""
import json
from dataclasses import dataclass
from typing import Optional

from fastapi import Depends, Header, HTTPException, status
from sqlalchemy.orm import Session

from ..models.base import get_db
from ..models.person import AccessLevel
from ..services.people import get_administrator
from .config import DemoAccount, settings
from .permissions import PERM_VIEW_AUDIT_LOGS, require_permission

USER_HEADER = "X-User-Data"


@dataclass
class CurrentUser:
    person_id: int
    username: str
    role: str
    name: str


def authenticate(username: str, password: str) -> Optional[CurrentUser]:
    """Return the account for a username/password pair, or None."""
    account: Optional[DemoAccount] = settings.DEMO_ACCOUNTS.get(username)
    if account is None or account.password != password:
        return None
    return CurrentUser(person_id=account.person_id, username=username, role=account.role, name=account.name)


def _unauthorized(detail: str) -> HTTPException:
    return HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail=detail)


def get_current_user(user_data: Optional[str] = Header(None, alias=USER_HEADER)) -> CurrentUser:
    if not user_data:
        raise _unauthorized("Authentication required")
    try:
        claimed = json.loads(user_data)
    except ValueError:
        raise _unauthorized("Invalid credentials")
    if not isinstance(claimed, dict):
        raise _unauthorized("Invalid credentials")

    username = claimed.get("username")
    account = settings.DEMO_ACCOUNTS.get(username) if isinstance(username, str) else None
    if account is None or account.role != claimed.get("role"):
        raise _unauthorized("Invalid credentials")
    return CurrentUser(person_id=account.person_id, username=username, role=account.role, name=account.name)


def require_role(*roles: str):
    """Dependency factory: the caller must hold one of ``roles``."""

    def checker(current_user: CurrentUser = Depends(get_current_user)) -> CurrentUser:
        if current_user.role not in roles:
            raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Insufficient permissions")
        return current_user

    return checker


def require_admin_access(level: str = AccessLevel.AUDIT_ONLY):
    """Dependency factory: the caller needs the audit-log permission and an access level containing ``level``."""

    def checker(
        current_user: CurrentUser = Depends(get_current_user),
        db: Session = Depends(get_db),
    ) -> CurrentUser:
        require_permission(current_user, PERM_VIEW_AUDIT_LOGS)
        admin = get_administrator(db, current_user.person_id)
        if admin is None or not admin.has_access(level):
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail=f"Access denied: {level} access required",
            )
        return current_user

    return checker
