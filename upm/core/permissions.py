"""
Role-based permission matrix.
Defines what each role is allowed to do in the system.
"""
from fastapi import HTTPException, status

from ..models.person import Role

# Permission constants
PERM_SEARCH_PATIENTS = "search_patients"
PERM_VIEW_PATIENT_RECORDS = "view_patient_records"
PERM_VIEW_OWN_RECORD = "view_own_record"
PERM_RECORD_VITALS = "record_vitals"
PERM_VIEW_VITALS = "view_vitals"
PERM_PRESCRIBE = "prescribe"
PERM_MANAGE_BILLING = "manage_billing"
PERM_VIEW_AUDIT_LOGS = "view_audit_logs"

# Role permission matrix
ROLE_PERMISSIONS: dict = {
    Role.PHYSICIAN: {
        PERM_SEARCH_PATIENTS,
        PERM_VIEW_PATIENT_RECORDS,
        PERM_VIEW_VITALS,
        PERM_PRESCRIBE,
        PERM_MANAGE_BILLING,
    },
    Role.PATIENT: {
        PERM_VIEW_OWN_RECORD,
    },
    Role.NURSE: {
        PERM_RECORD_VITALS,
        PERM_VIEW_VITALS,
    },
    Role.ADMIN: {
        # Admins see the audit trail only, never clinical data
        PERM_VIEW_AUDIT_LOGS,
    },
}


def has_permission(role: str, permission: str) -> bool:
    """Check if a role has a specific permission."""
    return permission in ROLE_PERMISSIONS.get(role, set())


def require_permission(current_user, permission: str) -> None:
    if not has_permission(current_user.role, permission):
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Insufficient permissions")
