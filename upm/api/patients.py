from datetime import date, datetime
from typing import Any, List, Optional

from fastapi import APIRouter, Depends, Query, status
from pydantic import BaseModel, ConfigDict, Field
from sqlalchemy.orm import Session

from ..core.permissions import (
    PERM_RECORD_VITALS,
    PERM_SEARCH_PATIENTS,
    PERM_VIEW_OWN_RECORD,
    PERM_VIEW_PATIENT_RECORDS,
    PERM_VIEW_VITALS,
    require_permission,
)
from ..core.security import CurrentUser, get_current_user
from ..models.base import get_db
from ..services import records

router = APIRouter(prefix="/patients", tags=["patients"])


class PatientSummary(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int = Field(validation_alias="person_id")
    name: str
    insurance_id: Optional[str]
    date_of_birth: Optional[date]


class VitalSignResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    visit_id: int
    measure_type: str
    value: str
    unit: str
    timestamp: datetime
    recorded_by: Optional[int]


class PrescriptionResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    visit_id: int
    medication_name: str
    dosage: str
    frequency: str
    start_date: date
    end_date: Optional[date]
    instructions: Optional[str]


class VisitResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    visit_date: datetime
    reason: Optional[str]
    notes: Optional[str]
    status: str
    physician_id: Optional[int]
    physician_name: Optional[str]
    vital_signs: List[VitalSignResponse] = []
    prescriptions: List[PrescriptionResponse] = []


class RecordResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    date_created: date
    status: str
    primary_physician_id: Optional[int]
    visits: List[VisitResponse] = []


class MedicalRecordResponse(PatientSummary):
    contact_info: Optional[dict]
    emergency_contact: Optional[dict]
    records: List[RecordResponse] = []


class VitalSignsCreate(BaseModel):
    # Left untyped so the validator reports malformed batches itself
    vital_signs: Any = None
    visit_id: Optional[int] = None


@router.get("/search")
def search_patients(
    query: str = Query(""),
    db: Session = Depends(get_db),
    current_user: CurrentUser = Depends(get_current_user),
):
    """Search patients by name or insurance ID."""
    require_permission(current_user, PERM_SEARCH_PATIENTS)
    results = records.search_patients(db, query)
    return {"success": True, "data": [PatientSummary.model_validate(p) for p in results]}


@router.get("/me")
def get_own_record(db: Session = Depends(get_db), current_user: CurrentUser = Depends(get_current_user)):
    """A patient's own medical history."""
    require_permission(current_user, PERM_VIEW_OWN_RECORD)
    patient = records.get_medical_record(db, current_user.person_id)
    return {"success": True, "data": MedicalRecordResponse.model_validate(patient)}


@router.get("/{patient_id}")
def get_medical_record(
    patient_id: int,
    db: Session = Depends(get_db),
    current_user: CurrentUser = Depends(get_current_user),
):
    require_permission(current_user, PERM_VIEW_PATIENT_RECORDS)
    patient = records.get_medical_record(db, patient_id)
    return {"success": True, "data": MedicalRecordResponse.model_validate(patient)}


@router.post("/{patient_id}/vitals", status_code=status.HTTP_201_CREATED)
def record_vital_signs(
    patient_id: int,
    req: VitalSignsCreate,
    db: Session = Depends(get_db),
    current_user: CurrentUser = Depends(get_current_user),
):
    require_permission(current_user, PERM_RECORD_VITALS)
    result = records.record_vital_signs(
        db, patient_id, req.vital_signs, recorded_by=current_user.person_id, visit_id=req.visit_id
    )
    return {
        "success": True,
        "message": f"Successfully recorded {result['recorded_count']} vital signs",
        "data": {
            "visit_id": result["visit_id"],
            "recorded_count": result["recorded_count"],
            "vital_signs": [VitalSignResponse.model_validate(v) for v in result["vital_signs"]],
        },
    }


@router.get("/{patient_id}/vitals")
def get_patient_vitals(
    patient_id: int,
    db: Session = Depends(get_db),
    current_user: CurrentUser = Depends(get_current_user),
):
    require_permission(current_user, PERM_VIEW_VITALS)
    vitals = records.get_patient_vitals(db, patient_id)
    return {"success": True, "data": [VitalSignResponse.model_validate(v) for v in vitals]}
