from sqlalchemy import Column, Integer, String, Date, DateTime, ForeignKey, JSON
from sqlalchemy.orm import relationship
from .base import Base, TimestampMixin


class Role:
    PHYSICIAN = "physician"
    PATIENT = "patient"
    NURSE = "nurse"
    ADMIN = "admin"

    ALL = [PHYSICIAN, PATIENT, NURSE, ADMIN]


class NurseShift:
    DAY = "day"
    NIGHT = "night"
    EVENING = "evening"

    ALL = [DAY, NIGHT, EVENING]


class AccessLevel:
    FULL = "full"
    READONLY = "readonly"
    AUDIT_ONLY = "audit_only"

    ALL = [FULL, READONLY, AUDIT_ONLY]

    # full ⊇ readonly ⊇ audit_only
    RANK = {AUDIT_ONLY: 1, READONLY: 2, FULL: 3}


class Person(Base, TimestampMixin):
    __tablename__ = "persons"

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(200), nullable=False)
    role = Column(String(20), nullable=False, index=True)  # Fixed at creation

    physician = relationship("Physician", back_populates="person", uselist=False, cascade="all, delete-orphan")
    patient = relationship("Patient", back_populates="person", uselist=False, cascade="all, delete-orphan")
    nurse = relationship("Nurse", back_populates="person", uselist=False, cascade="all, delete-orphan")
    administrator = relationship(
        "SystemAdministrator", back_populates="person", uselist=False, cascade="all, delete-orphan"
    )

    @property
    def detail(self):
        """The single role-specific row that accompanies this person."""
        return {
            Role.PHYSICIAN: self.physician,
            Role.PATIENT: self.patient,
            Role.NURSE: self.nurse,
            Role.ADMIN: self.administrator,
        }.get(self.role)


class Physician(Base):
    __tablename__ = "physicians"

    person_id = Column(Integer, ForeignKey("persons.id"), primary_key=True)
    license_number = Column(String(50), unique=True, nullable=False)
    specialty = Column(String(100), nullable=True)
    department = Column(String(100), nullable=True)

    person = relationship("Person", back_populates="physician")

    @property
    def name(self) -> str:
        return self.person.name


class Patient(Base):
    __tablename__ = "patients"

    person_id = Column(Integer, ForeignKey("persons.id"), primary_key=True)
    insurance_id = Column(String(50), nullable=True, index=True)
    contact_info = Column(JSON, nullable=True)  # {phone, email, address}
    date_of_birth = Column(Date, nullable=True)
    emergency_contact = Column(JSON, nullable=True)  # {name, phone, relationship}

    person = relationship("Person", back_populates="patient")
    records = relationship(
        "PatientRecord",
        back_populates="patient",
        order_by="PatientRecord.date_created.desc()",
    )

    @property
    def name(self) -> str:
        return self.person.name


class Nurse(Base):
    __tablename__ = "nurses"

    person_id = Column(Integer, ForeignKey("persons.id"), primary_key=True)
    certification = Column(String(100), nullable=True)
    department = Column(String(100), nullable=True)
    shift = Column(String(10), nullable=False, default=NurseShift.DAY)

    person = relationship("Person", back_populates="nurse")


class SystemAdministrator(Base):
    __tablename__ = "system_administrators"

    person_id = Column(Integer, ForeignKey("persons.id"), primary_key=True)
    access_level = Column(String(20), nullable=False, default=AccessLevel.READONLY)
    assigned_region = Column(String(100), nullable=True)
    last_login = Column(DateTime, nullable=True)

    person = relationship("Person", back_populates="administrator")

    def has_access(self, required_level: str) -> bool:
        held = AccessLevel.RANK.get(self.access_level, 0)
        return held >= AccessLevel.RANK.get(required_level, len(AccessLevel.RANK) + 1)

    def permissions(self) -> dict:
        return {
            "can_view_audit_logs": self.has_access(AccessLevel.AUDIT_ONLY),
            "can_view_reports": self.has_access(AccessLevel.READONLY),
            "can_manage_users": self.access_level == AccessLevel.FULL,
            "can_view_system_settings": self.access_level == AccessLevel.FULL,
        }
