from datetime import datetime

from sqlalchemy import Column, Integer, String, Date, DateTime, Text, ForeignKey
from sqlalchemy.orm import relationship
from .base import Base, TimestampMixin


class RecordStatus:
    ACTIVE = "active"
    ARCHIVED = "archived"
    TRANSFERRED = "transferred"

    ALL = [ACTIVE, ARCHIVED, TRANSFERRED]


class VisitStatus:
    COMPLETED = "completed"
    IN_PROGRESS = "in_progress"
    SCHEDULED = "scheduled"
    CANCELLED = "cancelled"

    ALL = [COMPLETED, IN_PROGRESS, SCHEDULED, CANCELLED]


class PatientRecord(Base, TimestampMixin):
    """Clinical folder for a patient; a patient may accumulate several over time."""
    __tablename__ = "patient_records"

    id = Column(Integer, primary_key=True, autoincrement=True)
    patient_id = Column(Integer, ForeignKey("patients.person_id"), nullable=False, index=True)
    date_created = Column(Date, nullable=False, default=lambda: datetime.utcnow().date())
    status = Column(String(20), nullable=False, default=RecordStatus.ACTIVE)
    primary_physician_id = Column(Integer, ForeignKey("physicians.person_id"), nullable=True, index=True)

    patient = relationship("Patient", back_populates="records")
    primary_physician = relationship("Physician")
    visits = relationship(
        "Visit",
        back_populates="record",
        cascade="all, delete-orphan",
        order_by="Visit.visit_date.desc()",
    )


class Visit(Base, TimestampMixin):
    __tablename__ = "visits"

    id = Column(Integer, primary_key=True, autoincrement=True)
    patient_record_id = Column(Integer, ForeignKey("patient_records.id"), nullable=False, index=True)
    physician_id = Column(Integer, ForeignKey("physicians.person_id"), nullable=True, index=True)
    visit_date = Column(DateTime, nullable=False, default=datetime.utcnow)
    reason = Column(String(500), nullable=True)
    notes = Column(Text, nullable=True)
    status = Column(String(20), nullable=False, default=VisitStatus.COMPLETED)

    record = relationship("PatientRecord", back_populates="visits")
    physician = relationship("Physician")
    vital_signs = relationship(
        "VitalSign",
        back_populates="visit",
        cascade="all, delete-orphan",
        order_by="VitalSign.timestamp.desc()",
    )
    prescriptions = relationship(
        "Prescription",
        back_populates="visit",
        cascade="all, delete-orphan",
        order_by="Prescription.start_date.desc()",
    )
    billing = relationship("BillingSummary", back_populates="visit", uselist=False)

    @property
    def patient_id(self) -> int:
        return self.record.patient_id

    @property
    def physician_name(self):
        return self.physician.name if self.physician else None


class VitalSign(Base):
    __tablename__ = "vital_signs"

    id = Column(Integer, primary_key=True, autoincrement=True)
    visit_id = Column(Integer, ForeignKey("visits.id"), nullable=False, index=True)
    measure_type = Column(String(30), nullable=False)
    value = Column(String(20), nullable=False)  # "98.6" or "120/80"
    unit = Column(String(20), nullable=False)
    timestamp = Column(DateTime, nullable=False, default=datetime.utcnow)
    recorded_by = Column(Integer, ForeignKey("persons.id"), nullable=True)

    visit = relationship("Visit", back_populates="vital_signs")


class Prescription(Base, TimestampMixin):
    __tablename__ = "prescriptions"

    id = Column(Integer, primary_key=True, autoincrement=True)
    visit_id = Column(Integer, ForeignKey("visits.id"), nullable=False, index=True)
    medication_name = Column(String(200), nullable=False)
    dosage = Column(String(100), nullable=False)
    frequency = Column(String(100), nullable=False)
    start_date = Column(Date, nullable=False)
    end_date = Column(Date, nullable=True)  # Never before start_date
    instructions = Column(Text, nullable=True)

    visit = relationship("Visit", back_populates="prescriptions")
