"""
Login audit trail: append-only writer plus filtered/paginated reader and statistics.
"""
import csv
import io
import logging
import math
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Dict, List, Optional

from sqlalchemy import func
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ..core.config import settings
from ..core.errors import NotFoundError, ValidationError
from ..models.audit import AuditAction, AuditLog
from ..models.base import transaction
from ..models.person import Person

logger = logging.getLogger(__name__)

DEFAULT_PAGE_SIZE = 50
MAX_PAGE_SIZE = 100
DEFAULT_RECENT_LIMIT = 10
MAX_RECENT_LIMIT = 50
MAX_EXPORT_ROWS = 10000

CSV_HEADER = ["Log ID", "Timestamp", "User ID", "User Name", "User Role", "Action Type", "IP Address"]


@dataclass
class AuditLogFilters:
    start_date: Optional[datetime] = None
    end_date: Optional[datetime] = None
    role: Optional[str] = None
    action_type: Optional[str] = None

    def __post_init__(self):
        # "all" is the UI's way of saying no filter
        if self.role == "all":
            self.role = None
        if self.action_type == "all":
            self.action_type = None

    def as_dict(self) -> Dict:
        return {
            "start_date": self.start_date.isoformat() if self.start_date else None,
            "end_date": self.end_date.isoformat() if self.end_date else None,
            "role": self.role,
            "action_type": self.action_type,
        }


@dataclass
class AuditLogPage:
    items: List[AuditLog] = field(default_factory=list)
    page: int = 1
    limit: int = DEFAULT_PAGE_SIZE
    total: int = 0

    @property
    def total_pages(self) -> int:
        return math.ceil(self.total / self.limit) if self.limit else 0

    @property
    def has_next(self) -> bool:
        return self.page < self.total_pages

    @property
    def has_prev(self) -> bool:
        return self.page > 1


def record(
    db: Session,
    user_id: int,
    role: str,
    action_type: str,
    ip_address: Optional[str] = None,
    timestamp: Optional[datetime] = None,
) -> AuditLog:
    """Append one audit row."""
    if not user_id or not role or not action_type:
        raise ValidationError("user_id, user_role, and action_type are required")
    if action_type not in AuditAction.ALL:
        raise ValidationError(f"Invalid action type. Must be one of: {', '.join(AuditAction.ALL)}")
    if db.query(Person.id).filter(Person.id == user_id).first() is None:
        raise ValidationError(f"Unknown user ID {user_id}")

    with transaction(db):
        entry = AuditLog(
            user_id=user_id,
            user_role=role,
            action_type=action_type,
            ip_address=ip_address or "unknown",
            timestamp=timestamp or datetime.utcnow(),
        )
        db.add(entry)
    db.refresh(entry)
    return entry


def record_login_attempt(
    db: Session, username: str, success: bool, ip_address: Optional[str] = None
) -> Optional[AuditLog]:
    """
    Audit a login attempt by username.

    Usernames that do not resolve to a seeded person are skipped with a
    warning instead of violating the ``persons`` foreign key. A failed
    write is logged and never fails the login itself.
    """
    account = settings.DEMO_ACCOUNTS.get(username or "")
    if account is None:
        logger.warning("Audit skipped: unknown username %r", username)
        return None

    action = AuditAction.LOGIN if success else AuditAction.LOGIN_FAILED
    try:
        return record(db, account.person_id, account.role, action, ip_address)
    except ValidationError as exc:
        logger.warning("Audit skipped for %r: %s", username, exc.message)
    except SQLAlchemyError as exc:
        logger.warning("Audit log write failed for %r (%s): %s", username, action, exc)
    return None


def _filtered(db: Session, filters: Optional[AuditLogFilters]):
    q = db.query(AuditLog)
    if filters is None:
        return q
    if filters.start_date:
        q = q.filter(AuditLog.timestamp >= filters.start_date)
    if filters.end_date:
        q = q.filter(AuditLog.timestamp <= filters.end_date)
    if filters.role:
        q = q.filter(AuditLog.user_role == filters.role)
    if filters.action_type:
        q = q.filter(AuditLog.action_type == filters.action_type)
    return q


def _newest_first(q):
    return q.order_by(AuditLog.timestamp.desc(), AuditLog.id.desc())


def list_logs(
    db: Session, filters: Optional[AuditLogFilters] = None, page: int = 1, limit: int = DEFAULT_PAGE_SIZE
) -> AuditLogPage:
    page = max(page or 1, 1)
    limit = min(max(limit or DEFAULT_PAGE_SIZE, 1), MAX_PAGE_SIZE)
    q = _filtered(db, filters)
    total = q.count()
    items = _newest_first(q).offset((page - 1) * limit).limit(limit).all()
    return AuditLogPage(items=items, page=page, limit=limit, total=total)


def recent_logs(db: Session, limit: int = DEFAULT_RECENT_LIMIT) -> List[AuditLog]:
    limit = min(max(limit or DEFAULT_RECENT_LIMIT, 1), MAX_RECENT_LIMIT)
    return _newest_first(db.query(AuditLog)).limit(limit).all()


def export_logs(db: Session, filters: Optional[AuditLogFilters] = None) -> List[AuditLog]:
    return _newest_first(_filtered(db, filters)).limit(MAX_EXPORT_ROWS).all()


def logs_to_csv(logs: List[AuditLog]) -> str:
    buffer = io.StringIO()
    writer = csv.writer(buffer, lineterminator="\n")
    writer.writerow(CSV_HEADER)
    for log in logs:
        writer.writerow([
            log.id,
            log.timestamp.isoformat(),
            log.user_id,
            log.user_name or "",
            log.user_role,
            log.action_type,
            log.ip_address or "",
        ])
    return buffer.getvalue()


def _counts_by(db: Session, column, since: Optional[datetime] = None) -> Dict[str, int]:
    q = db.query(column, func.count(AuditLog.id))
    if since is not None:
        q = q.filter(AuditLog.timestamp >= since)
    return {key: count for key, count in q.group_by(column).all()}


def get_stats(db: Session, now: Optional[datetime] = None) -> Dict:
    now = now or datetime.utcnow()
    total, unique_users, earliest, latest = db.query(
        func.count(AuditLog.id),
        func.count(func.distinct(AuditLog.user_id)),
        func.min(AuditLog.timestamp),
        func.max(AuditLog.timestamp),
    ).one()
    by_action = _counts_by(db, AuditLog.action_type)
    successful = by_action.get(AuditAction.LOGIN, 0)
    failed = by_action.get(AuditAction.LOGIN_FAILED, 0)
    return {
        "total_logs": total or 0,
        "login_attempts": successful + failed,
        "successful_logins": successful,
        "failed_logins": failed,
        "unique_users": unique_users or 0,
        "earliest_log": earliest,
        "latest_log": latest,
        "activity_by_role": _counts_by(db, AuditLog.user_role),
        "activity_by_action": by_action,
        "recent_activity": _counts_by(db, AuditLog.action_type, since=now - timedelta(days=1)),
    }


def delete_log(db: Session, log_id: int) -> None:
    entry = db.query(AuditLog).filter(AuditLog.id == log_id).first()
    if entry is None:
        raise NotFoundError("Audit log entry not found")
    with transaction(db):
        db.delete(entry)
