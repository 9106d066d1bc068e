"""Visit-level endpoints: vitals, prescriptions and the unbilled-visit worklist."""
from datetime import date, datetime
from typing import Optional

from fastapi import APIRouter, Depends, status
from pydantic import BaseModel
from sqlalchemy.orm import Session

from ..core.permissions import PERM_MANAGE_BILLING, PERM_PRESCRIBE, PERM_VIEW_VITALS, require_permission
from ..core.security import CurrentUser, get_current_user
from ..models.base import get_db
from ..services import billing, records
from .patients import PrescriptionResponse, VitalSignResponse

router = APIRouter(prefix="/visits", tags=["visits"])


class PrescriptionCreate(BaseModel):
    medication_name: Optional[str] = None
    dosage: Optional[str] = None
    frequency: Optional[str] = None
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    instructions: Optional[str] = None


class UnbilledVisitResponse(BaseModel):
    id: int
    patient_id: int
    patient_name: str
    visit_date: datetime
    reason: Optional[str]
    status: str
    vitals_count: int
    prescriptions_count: int
    estimated_cost: float


@router.get("/unbilled")
def get_unbilled_visits(db: Session = Depends(get_db), current_user: CurrentUser = Depends(get_current_user)):
    """The caller's visits that have no billing summary yet."""
    require_permission(current_user, PERM_MANAGE_BILLING)
    rows = billing.get_unbilled_visits(db, current_user.person_id)
    data = [
        UnbilledVisitResponse(
            id=row["visit"].id,
            patient_id=row["visit"].patient_id,
            patient_name=row["visit"].record.patient.name,
            visit_date=row["visit"].visit_date,
            reason=row["visit"].reason,
            status=row["visit"].status,
            vitals_count=len(row["visit"].vital_signs),
            prescriptions_count=len(row["visit"].prescriptions),
            estimated_cost=row["estimated_cost"],
        )
        for row in rows
    ]
    return {"success": True, "data": data}


@router.get("/{visit_id}/vitals")
def get_visit_vitals(
    visit_id: int,
    db: Session = Depends(get_db),
    current_user: CurrentUser = Depends(get_current_user),
):
    require_permission(current_user, PERM_VIEW_VITALS)
    vitals = records.get_visit_vitals(db, visit_id)
    return {"success": True, "data": [VitalSignResponse.model_validate(v) for v in vitals]}


@router.post("/{visit_id}/prescriptions", status_code=status.HTTP_201_CREATED)
def add_prescription(
    visit_id: int,
    req: PrescriptionCreate,
    db: Session = Depends(get_db),
    current_user: CurrentUser = Depends(get_current_user),
):
    require_permission(current_user, PERM_PRESCRIBE)
    prescription = records.add_prescription(db, visit_id, current_user.person_id, req.model_dump())
    return {
        "success": True,
        "message": "Prescription added successfully",
        "data": PrescriptionResponse.model_validate(prescription),
    }
