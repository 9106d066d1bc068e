"""
Demo data seeder for the Unified Patient Manager.

Creates the people behind the demo accounts (see ``DEMO_ACCOUNTS`` in the
settings) plus a second physician and patient, their records, visits,
readings, prescriptions, insurance providers and one paid billing, so every
dashboard has something to show right after a fresh start.

Credentials (printed to stdout on first run):
  Physician: dr.smith   / physician123
  Patient  : john.doe   / patient123
  Nurse    : nurse.jane / nurse123
  Admin    : admin      / admin123

This seeder is idempotent: it is safe to call on every startup.
"""
from datetime import date, datetime
from typing import Optional

from sqlalchemy.orm import Session

from .core.config import settings
from .models.base import SessionLocal, Base, engine
from .models.billing import BillingStatus, BillingSummary, InsuranceProvider
from .models.person import AccessLevel, Person
from .models.record import PatientRecord, Prescription, RecordStatus, Visit, VisitStatus, VitalSign
from .services.billing import calculate_cost, create_provider
from .services.people import (
    AdminDetail,
    ContactInfo,
    EmergencyContact,
    NurseDetail,
    PatientDetail,
    PhysicianDetail,
    create_person,
)

DEMO_PEOPLE = [
    (1, "Dr. Smith", PhysicianDetail(license_number="MD12345", specialty="Internal Medicine", department="Internal Medicine")),
    (2, "John Doe", PatientDetail(
        insurance_id="INS123456",
        contact_info=ContactInfo(phone="555-0123", email="john.doe@example.com", address="123 Main St"),
        date_of_birth=date(1980, 1, 15),
        emergency_contact=EmergencyContact(name="Jane Doe", phone="555-0124", relationship="Spouse"),
    )),
    (3, "Nurse Jane", NurseDetail(certification="RN-BC", department="Medical/Surgical", shift="day")),
    (4, "Admin User", AdminDetail(access_level=AccessLevel.FULL, assigned_region="All Hospitals")),
    (5, "Dr. Johnson", PhysicianDetail(license_number="MD67890", specialty="Cardiology", department="Cardiology")),
    (6, "Jane Smith", PatientDetail(
        insurance_id="INS789012",
        contact_info=ContactInfo(phone="555-0567", email="jane.smith@example.com", address="456 Oak Ave"),
        date_of_birth=date(1975, 3, 20),
        emergency_contact=EmergencyContact(name="Bob Smith", phone="555-0568", relationship="Spouse"),
    )),
]

DEMO_PROVIDERS = [
    ("HealthFirst Insurance", {"phone": "800-123-4567", "email": "claims@healthfirst.com"},
     "http://mock-insurance-api/healthfirst"),
    ("MediCare Plus", {"phone": "800-555-0199", "email": "claims@medicareplus.com"},
     "http://mock-insurance-api/medicareplus"),
    ("United Wellness Group", {"phone": "800-555-0142", "email": "claims@unitedwellness.com"},
     "http://mock-insurance-api/unitedwellness"),
]


def seed_demo_data(db: Optional[Session] = None) -> None:
    """Create demo people, records and billing data if they do not already exist."""
    if db is None:
        # Ensure tables exist (no-op when already created by main.py)
        Base.metadata.create_all(bind=engine)
        db = SessionLocal()
        try:
            _seed(db)
        finally:
            db.close()
    else:
        _seed(db)


def _seed(db: Session) -> None:
    _seed_people(db)
    _seed_providers(db)
    _seed_records(db)
    _seed_billing(db)


# ── helpers ──────────────────────────────────────────────────────────────────

def _seed_people(db: Session) -> None:
    usernames = {account.person_id: username for username, account in settings.DEMO_ACCOUNTS.items()}
    for person_id, name, detail in DEMO_PEOPLE:
        if db.query(Person).filter(Person.id == person_id).first():
            continue
        create_person(db, name, detail, person_id=person_id)
        username = usernames.get(person_id)
        if username:
            password = settings.DEMO_ACCOUNTS[username].password
            print(f"[seed] Created demo {detail.role:<9}: {username} / {password}")
        else:
            print(f"[seed] Created demo {detail.role:<9}: {name}")


def _seed_providers(db: Session) -> None:
    for name, contact_info, endpoint in DEMO_PROVIDERS:
        if db.query(InsuranceProvider).filter(InsuranceProvider.name == name).first():
            continue
        create_provider(db, name, contact_info=contact_info, api_endpoint=endpoint)
        print(f"[seed] Created insurance provider: {name}")


def _seed_records(db: Session) -> None:
    if db.query(PatientRecord).first():
        return

    smith_record = PatientRecord(patient_id=2, date_created=date(2025, 1, 15), status=RecordStatus.ACTIVE,
                                 primary_physician_id=1)
    jane_record = PatientRecord(patient_id=6, date_created=date(2025, 2, 1), status=RecordStatus.ACTIVE,
                                primary_physician_id=5)

    physical = Visit(
        id=1,
        visit_date=datetime(2025, 1, 15, 10, 0),
        reason="Annual physical examination",
        physician_id=1,
        notes="Patient reports feeling well",
        status=VisitStatus.COMPLETED,
    )
    physical.vital_signs = [
        VitalSign(measure_type="blood_pressure", value="120/80", unit="mmHg",
                  timestamp=datetime(2025, 1, 15, 10, 15), recorded_by=3),
        VitalSign(measure_type="heart_rate", value="72", unit="bpm",
                  timestamp=datetime(2025, 1, 15, 10, 15), recorded_by=3),
        VitalSign(measure_type="temperature", value="98.6", unit="°F",
                  timestamp=datetime(2025, 1, 15, 10, 15), recorded_by=3),
    ]
    physical.prescriptions = [
        Prescription(medication_name="Lisinopril", dosage="10mg", frequency="once daily",
                     start_date=date(2025, 1, 15), end_date=date(2025, 12, 31), instructions="Take with food"),
    ]

    follow_up = Visit(
        id=2,
        visit_date=datetime(2025, 6, 15, 14, 30),
        reason="Follow-up for hypertension",
        physician_id=1,
        notes="Blood pressure improved with medication",
        status=VisitStatus.COMPLETED,
    )
    follow_up.vital_signs = [
        VitalSign(measure_type="blood_pressure", value="118/76", unit="mmHg",
                  timestamp=datetime(2025, 6, 15, 14, 45), recorded_by=3),
    ]
    follow_up.prescriptions = [
        Prescription(medication_name="Amlodipine", dosage="5mg", frequency="once daily",
                     start_date=date(2025, 6, 15), end_date=date(2025, 12, 31), instructions="Take in the morning"),
    ]

    cardiology = Visit(
        id=3,
        visit_date=datetime(2025, 2, 1, 9, 15),
        reason="Initial cardiology consultation",
        physician_id=5,
        notes="Patient concerned about chest pain",
        status=VisitStatus.COMPLETED,
    )
    cardiology.vital_signs = [
        VitalSign(measure_type="heart_rate", value="78", unit="bpm",
                  timestamp=datetime(2025, 2, 1, 9, 30), recorded_by=3),
    ]
    cardiology.prescriptions = [
        Prescription(medication_name="Aspirin", dosage="81mg", frequency="once daily",
                     start_date=date(2025, 2, 1), instructions="Take with water"),
    ]

    smith_record.visits = [physical, follow_up]
    jane_record.visits = [cardiology]
    db.add_all([smith_record, jane_record])
    db.commit()
    print("[seed] Created demo records  : 2 records, 3 visits")


def _seed_billing(db: Session) -> None:
    if db.query(BillingSummary).filter(BillingSummary.visit_id == 1).first():
        return
    provider = db.query(InsuranceProvider).filter(InsuranceProvider.name == DEMO_PROVIDERS[0][0]).first()
    visit = db.get(Visit, 1)
    billing = BillingSummary(
        visit_id=1,
        patient_id=2,
        insurance_provider_id=provider.id,
        total_cost=calculate_cost(visit.vital_signs, visit.prescriptions),
        billing_date=datetime(2025, 1, 15, 16, 0),
        status=BillingStatus.PAID,
    )
    db.add(billing)
    db.commit()
    print(f"[seed] Created demo billing  : visit 1, ${billing.total_cost:.2f} ({billing.status})")
