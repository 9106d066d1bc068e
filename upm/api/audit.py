"""Audit log endpoints (administrators only, gated by access level)."""
from datetime import datetime
from typing import Optional

from fastapi import APIRouter, Depends, Query, Request, Response, status
from pydantic import BaseModel, ConfigDict
from sqlalchemy.orm import Session

from ..core.errors import ValidationError
from ..core.security import CurrentUser, require_admin_access
from ..models.base import get_db
from ..models.person import AccessLevel
from ..services import audit_log
from ..services.audit_log import AuditLogFilters

router = APIRouter(prefix="/audit", tags=["audit"])


class AuditLogResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    timestamp: datetime
    user_id: int
    user_name: Optional[str]
    user_role: str
    action_type: str
    ip_address: Optional[str]


class AuditLogCreate(BaseModel):
    user_id: Optional[int] = None
    user_role: Optional[str] = None
    action_type: Optional[str] = None
    ip_address: Optional[str] = None


def _filters(
    start_date: Optional[datetime] = Query(None, description="Only entries at or after this time"),
    end_date: Optional[datetime] = Query(None, description="Only entries at or before this time"),
    role: Optional[str] = Query(None, description="User role, or 'all'"),
    action_type: Optional[str] = Query(None, description="LOGIN, LOGIN_FAILED, or 'all'"),
) -> AuditLogFilters:
    return AuditLogFilters(start_date=start_date, end_date=end_date, role=role, action_type=action_type)


@router.get("/logs")
def get_audit_logs(
    filters: AuditLogFilters = Depends(_filters),
    page: int = 1,
    limit: int = audit_log.DEFAULT_PAGE_SIZE,
    db: Session = Depends(get_db),
    _admin: CurrentUser = Depends(require_admin_access(AccessLevel.AUDIT_ONLY)),
):
    """Searchable audit log, newest first. Filterable by date range, role and action."""
    result = audit_log.list_logs(db, filters, page=page, limit=limit)
    return {
        "success": True,
        "data": {
            "logs": [AuditLogResponse.model_validate(log) for log in result.items],
            "pagination": {
                "page": result.page,
                "limit": result.limit,
                "total": result.total,
                "total_pages": result.total_pages,
                "has_next": result.has_next,
                "has_prev": result.has_prev,
            },
            "filters": filters.as_dict(),
        },
    }


@router.get("/logs/recent")
def get_recent_logs(
    limit: int = audit_log.DEFAULT_RECENT_LIMIT,
    db: Session = Depends(get_db),
    _admin: CurrentUser = Depends(require_admin_access(AccessLevel.AUDIT_ONLY)),
):
    logs = audit_log.recent_logs(db, limit)
    return {"success": True, "data": [AuditLogResponse.model_validate(log) for log in logs]}


@router.get("/stats")
def get_audit_stats(
    db: Session = Depends(get_db),
    _admin: CurrentUser = Depends(require_admin_access(AccessLevel.AUDIT_ONLY)),
):
    return {"success": True, "data": audit_log.get_stats(db)}


@router.get("/export")
def export_audit_logs(
    filters: AuditLogFilters = Depends(_filters),
    format: str = "json",
    db: Session = Depends(get_db),
    _admin: CurrentUser = Depends(require_admin_access(AccessLevel.FULL)),
):
    if format not in ("json", "csv"):
        raise ValidationError("Export format must be json or csv")
    logs = audit_log.export_logs(db, filters)

    if format == "csv":
        filename = f"audit_logs_{datetime.utcnow().strftime('%Y%m%d_%H%M%S')}.csv"
        return Response(
            content=audit_log.logs_to_csv(logs),
            media_type="text/csv",
            headers={"Content-Disposition": f'attachment; filename="{filename}"'},
        )
    return {
        "success": True,
        "data": {
            "logs": [AuditLogResponse.model_validate(log) for log in logs],
            "count": len(logs),
            "filters": filters.as_dict(),
            "exported_at": datetime.utcnow(),
        },
    }


@router.post("/logs", status_code=status.HTTP_201_CREATED)
def create_audit_log(
    req: AuditLogCreate,
    request: Request,
    db: Session = Depends(get_db),
    _admin: CurrentUser = Depends(require_admin_access(AccessLevel.FULL)),
):
    """Manual audit entry."""
    ip_address = req.ip_address or (request.client.host if request.client else None)
    entry = audit_log.record(db, req.user_id, req.user_role, req.action_type, ip_address)
    return {"success": True, "message": "Audit log entry created", "data": AuditLogResponse.model_validate(entry)}


@router.delete("/logs/{log_id}")
def delete_audit_log(
    log_id: int,
    db: Session = Depends(get_db),
    _admin: CurrentUser = Depends(require_admin_access(AccessLevel.FULL)),
):
    audit_log.delete_log(db, log_id)
    return {"success": True, "message": "Audit log entry deleted"}
