from datetime import datetime

from sqlalchemy import Column, Integer, String, Float, DateTime, ForeignKey, JSON
from sqlalchemy.orm import relationship
from .base import Base, TimestampMixin


class BillingStatus:
    PENDING = "pending"
    SUBMITTED = "submitted"
    PAID = "paid"
    DENIED = "denied"

    ALL = [PENDING, SUBMITTED, PAID, DENIED]


class InsuranceProvider(Base, TimestampMixin):
    __tablename__ = "insurance_providers"

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(100), unique=True, nullable=False)
    contact_info = Column(JSON, nullable=True)  # {phone, email, address}
    api_endpoint = Column(String(500), nullable=True)  # Claims callback URL

    billings = relationship("BillingSummary", back_populates="insurance_provider")


class BillingSummary(Base, TimestampMixin):
    __tablename__ = "billing_summaries"

    id = Column(Integer, primary_key=True, autoincrement=True)
    # At most one billing per visit, enforced by the database as well as by the pre-check
    visit_id = Column(Integer, ForeignKey("visits.id"), nullable=False, unique=True)
    patient_id = Column(Integer, ForeignKey("patients.person_id"), nullable=False, index=True)
    insurance_provider_id = Column(Integer, ForeignKey("insurance_providers.id"), nullable=False, index=True)
    total_cost = Column(Float, nullable=False)
    billing_date = Column(DateTime, nullable=False, default=datetime.utcnow)
    status = Column(String(20), nullable=False, default=BillingStatus.PENDING, index=True)

    visit = relationship("Visit", back_populates="billing")
    insurance_provider = relationship("InsuranceProvider", back_populates="billings")

    @property
    def physician_id(self):
        return self.visit.physician_id

    @property
    def provider_name(self) -> str:
        return self.insurance_provider.name
