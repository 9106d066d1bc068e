"""Clinical record operations: patient search, record retrieval, vitals and prescriptions."""
import logging
from datetime import date, datetime
from typing import Any, Dict, List, Optional

from sqlalchemy.orm import Session

from ..core.errors import ForbiddenError, NotFoundError, ValidationError
from ..models.base import transaction
from ..models.person import Patient, Person
from ..models.record import PatientRecord, Prescription, Visit, VisitStatus, VitalSign
from .vital_signs import format_value, validate_vital_signs

logger = logging.getLogger(__name__)


def search_patients(db: Session, query: str) -> List[Patient]:
    """Search patients by name or insurance ID."""
    if not query or not query.strip():
        raise ValidationError("Search query is required")
    term = f"%{query.strip()}%"
    return (
        db.query(Patient)
        .join(Person, Patient.person_id == Person.id)
        .filter(Person.name.ilike(term) | Patient.insurance_id.ilike(term))
        .order_by(Person.name)
        .all()
    )


def get_patient(db: Session, patient_id: int) -> Patient:
    patient = db.query(Patient).filter(Patient.person_id == patient_id).first()
    if not patient:
        raise NotFoundError("Patient not found")
    return patient


def get_medical_record(db: Session, patient_id: int) -> Patient:
    """
    Return the patient with the full clinical history reachable from it:
    records (newest first) -> visits (newest first) -> vitals and prescriptions.
    """
    return get_patient(db, patient_id)


def get_visit(db: Session, visit_id: int) -> Visit:
    visit = db.query(Visit).filter(Visit.id == visit_id).first()
    if not visit:
        raise NotFoundError(f"Visit {visit_id} not found")
    return visit


def _latest_record(db: Session, patient_id: int) -> Optional[PatientRecord]:
    return (
        db.query(PatientRecord)
        .filter(PatientRecord.patient_id == patient_id)
        .order_by(PatientRecord.date_created.desc(), PatientRecord.id.desc())
        .first()
    )


def record_vital_signs(
    db: Session,
    patient_id: int,
    vital_signs: List[Dict[str, Any]],
    recorded_by: int,
    visit_id: Optional[int] = None,
) -> Dict[str, Any]:
    """
    Validate and persist a batch of readings for a patient.

    Without ``visit_id`` a new visit is opened on the patient's latest record.
    The visit and every reading commit together or not at all.
    """
    if not isinstance(vital_signs, list) or not vital_signs:
        raise ValidationError("Vital signs array is required and cannot be empty")

    validation = validate_vital_signs(vital_signs)
    if not validation.is_valid:
        raise ValidationError("Validation failed", errors=validation.errors)

    get_patient(db, patient_id)
    record = _latest_record(db, patient_id)
    if record is None:
        raise NotFoundError("Patient record not found")

    with transaction(db):
        if visit_id is not None:
            visit = db.query(Visit).filter(Visit.id == visit_id).first()
            if visit is None or visit.patient_id != patient_id:
                raise ValidationError("Invalid visit ID for this patient")
        else:
            visit = Visit(
                patient_record_id=record.id,
                physician_id=record.primary_physician_id,
                visit_date=datetime.utcnow(),
                reason="Vital signs recording",
                notes="Automated visit for vital signs recording",
                status=VisitStatus.IN_PROGRESS,
            )
            db.add(visit)
            db.flush()

        saved = []
        for reading in validation.validated:
            vital = VitalSign(
                visit_id=visit.id,
                measure_type=reading["measure_type"],
                value=format_value(reading["value"]),
                unit=reading["unit"],
                recorded_by=recorded_by,
                timestamp=datetime.utcnow(),
            )
            db.add(vital)
            saved.append(vital)
        db.flush()

    logger.info("Recorded %d vital signs for patient %s (visit %s)", len(saved), patient_id, visit.id)
    return {"visit_id": visit.id, "recorded_count": len(saved), "vital_signs": saved}


def get_patient_vitals(db: Session, patient_id: int) -> List[VitalSign]:
    get_patient(db, patient_id)
    return (
        db.query(VitalSign)
        .join(Visit, VitalSign.visit_id == Visit.id)
        .join(PatientRecord, Visit.patient_record_id == PatientRecord.id)
        .filter(PatientRecord.patient_id == patient_id)
        .order_by(VitalSign.timestamp.desc())
        .all()
    )


def get_visit_vitals(db: Session, visit_id: int) -> List[VitalSign]:
    return (
        db.query(VitalSign)
        .filter(VitalSign.visit_id == visit_id)
        .order_by(VitalSign.timestamp.desc())
        .all()
    )


def validate_prescription(data: Dict[str, Any]) -> None:
    required = ("medication_name", "dosage", "frequency", "start_date")
    if any(not data.get(key) for key in required):
        raise ValidationError("Medication name, dosage, frequency, and start date are required")
    start: date = data["start_date"]
    end: Optional[date] = data.get("end_date")
    if end is not None and end < start:
        raise ValidationError("End date must not be before start date")


def add_prescription(db: Session, visit_id: int, physician_id: int, data: Dict[str, Any]) -> Prescription:
    """Attach a prescription to a visit the physician attended."""
    visit = get_visit(db, visit_id)
    if visit.physician_id != physician_id:
        raise ForbiddenError(f"Access denied: Visit {visit_id} does not belong to this physician")
    validate_prescription(data)

    with transaction(db):
        prescription = Prescription(
            visit_id=visit.id,
            medication_name=data["medication_name"],
            dosage=data["dosage"],
            frequency=data["frequency"],
            start_date=data["start_date"],
            end_date=data.get("end_date"),
            instructions=data.get("instructions"),
        )
        db.add(prescription)
    db.refresh(prescription)
    return prescription
