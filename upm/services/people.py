"""
Person creation and lookup.

A person is one ``persons`` row plus exactly one role-detail row. The detail
is described by a tagged union keyed on ``role`` so the specialisation and
the person's role can never disagree.
"""
from datetime import date, datetime
from typing import Annotated, Literal, Optional, Union

from pydantic import BaseModel, Field
from sqlalchemy.orm import Session

from ..core.errors import NotFoundError, ValidationError
from ..models.base import transaction
from ..models.person import (
    AccessLevel,
    Nurse,
    NurseShift,
    Patient,
    Person,
    Physician,
    Role,
    SystemAdministrator,
)


class ContactInfo(BaseModel):
    phone: Optional[str] = None
    email: Optional[str] = None
    address: Optional[str] = None


class EmergencyContact(BaseModel):
    name: Optional[str] = None
    phone: Optional[str] = None
    relationship: Optional[str] = None


class PhysicianDetail(BaseModel):
    role: Literal["physician"] = Role.PHYSICIAN
    license_number: str
    specialty: Optional[str] = None
    department: Optional[str] = None


class PatientDetail(BaseModel):
    role: Literal["patient"] = Role.PATIENT
    insurance_id: Optional[str] = None
    contact_info: Optional[ContactInfo] = None
    date_of_birth: Optional[date] = None
    emergency_contact: Optional[EmergencyContact] = None


class NurseDetail(BaseModel):
    role: Literal["nurse"] = Role.NURSE
    certification: Optional[str] = None
    department: Optional[str] = None
    shift: Literal["day", "night", "evening"] = NurseShift.DAY


class AdminDetail(BaseModel):
    role: Literal["admin"] = Role.ADMIN
    access_level: Literal["full", "readonly", "audit_only"] = AccessLevel.READONLY
    assigned_region: Optional[str] = None


RoleDetail = Annotated[
    Union[PhysicianDetail, PatientDetail, NurseDetail, AdminDetail],
    Field(discriminator="role"),
]


def _detail_row(person_id: int, detail: RoleDetail):
    if isinstance(detail, PhysicianDetail):
        return Physician(
            person_id=person_id,
            license_number=detail.license_number,
            specialty=detail.specialty,
            department=detail.department,
        )
    if isinstance(detail, PatientDetail):
        return Patient(
            person_id=person_id,
            insurance_id=detail.insurance_id,
            contact_info=detail.contact_info.model_dump() if detail.contact_info else None,
            date_of_birth=detail.date_of_birth,
            emergency_contact=detail.emergency_contact.model_dump() if detail.emergency_contact else None,
        )
    if isinstance(detail, NurseDetail):
        return Nurse(
            person_id=person_id,
            certification=detail.certification,
            department=detail.department,
            shift=detail.shift,
        )
    return SystemAdministrator(
        person_id=person_id,
        access_level=detail.access_level,
        assigned_region=detail.assigned_region,
    )


def create_person(db: Session, name: str, detail: RoleDetail, person_id: Optional[int] = None) -> Person:
    """Insert the person and its role-detail row in a single transaction."""
    if not name or not name.strip():
        raise ValidationError("Name is required")

    with transaction(db):
        person = Person(id=person_id, name=name.strip(), role=detail.role)
        db.add(person)
        db.flush()
        db.add(_detail_row(person.id, detail))
    db.refresh(person)
    return person


def get_person(db: Session, person_id: int) -> Person:
    person = db.query(Person).filter(Person.id == person_id).first()
    if not person:
        raise NotFoundError(f"Person {person_id} not found")
    return person


def get_administrator(db: Session, person_id: int) -> Optional[SystemAdministrator]:
    return db.query(SystemAdministrator).filter(SystemAdministrator.person_id == person_id).first()


def touch_last_login(db: Session, person_id: int) -> None:
    """Stamp an administrator's last login; no-op for other roles."""
    admin = get_administrator(db, person_id)
    if admin is None:
        return
    with transaction(db):
        admin.last_login = datetime.utcnow()
