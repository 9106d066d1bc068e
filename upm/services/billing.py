"""
Visit costing and billing-summary generation.

Billing a batch of visits is one transaction: every visit is checked
(existence, ownership, no prior billing), costed and inserted, and any
failure rolls the whole batch back and reports the visit that failed.
"""
import logging
from dataclasses import dataclass
from typing import Dict, List, Optional, Sequence

from sqlalchemy import case, func
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from ..core.errors import ConflictError, ForbiddenError, NotFoundError, ValidationError
from ..models.base import transaction
from ..models.billing import BillingStatus, BillingSummary, InsuranceProvider
from ..models.record import Visit

logger = logging.getLogger(__name__)

BASE_VISIT_FEE = 100.0
VITAL_SIGN_FEE = 25.0
PRESCRIPTION_FEE = 15.0


@dataclass
class CostBreakdown:
    vitals_count: int
    prescriptions_count: int
    vitals_cost: float
    prescriptions_cost: float
    base_visit_cost: float
    total: float


@dataclass
class GeneratedBilling:
    billing: BillingSummary
    breakdown: CostBreakdown


@dataclass
class ProviderSummary:
    provider: InsuranceProvider
    total_billings: int
    paid_billings: int
    total_paid_amount: float


def calculate_cost(vitals: Sequence, prescriptions: Sequence) -> float:
    total = BASE_VISIT_FEE + len(vitals) * VITAL_SIGN_FEE + len(prescriptions) * PRESCRIPTION_FEE
    return round(total, 2)


def cost_breakdown(vitals: Sequence, prescriptions: Sequence) -> CostBreakdown:
    return CostBreakdown(
        vitals_count=len(vitals),
        prescriptions_count=len(prescriptions),
        vitals_cost=len(vitals) * VITAL_SIGN_FEE,
        prescriptions_cost=len(prescriptions) * PRESCRIPTION_FEE,
        base_visit_cost=BASE_VISIT_FEE,
        total=calculate_cost(vitals, prescriptions),
    )


def visit_has_billing(db: Session, visit_id: int) -> bool:
    return db.query(BillingSummary.id).filter(BillingSummary.visit_id == visit_id).first() is not None


def assign_insurance_provider(db: Session, patient_id: int) -> InsuranceProvider:
    """
    Demo placeholder for an eligibility lookup: providers ordered by name,
    picked by ``patient_id % provider_count``.
    """
    providers = db.query(InsuranceProvider).order_by(InsuranceProvider.name).all()
    if not providers:
        raise NotFoundError("No insurance providers available")
    return providers[patient_id % len(providers)]


def generate_billing_summaries(db: Session, visit_ids: List[int], physician_id: int) -> List[GeneratedBilling]:
    """Create one pending billing summary per visit, in input order."""
    if not visit_ids:
        raise ValidationError("At least one visit ID is required")

    generated: List[GeneratedBilling] = []
    with transaction(db):
        for visit_id in visit_ids:
            visit = db.query(Visit).filter(Visit.id == visit_id).first()
            if not visit:
                raise NotFoundError(f"Visit {visit_id} not found")
            if visit.physician_id != physician_id:
                raise ForbiddenError(f"Access denied: Visit {visit_id} does not belong to this physician")
            if visit_has_billing(db, visit_id):
                raise ConflictError(f"Visit {visit_id} already has billing")

            breakdown = cost_breakdown(visit.vital_signs, visit.prescriptions)
            provider = assign_insurance_provider(db, visit.patient_id)
            billing = BillingSummary(
                visit_id=visit.id,
                patient_id=visit.patient_id,
                insurance_provider_id=provider.id,
                total_cost=breakdown.total,
                status=BillingStatus.PENDING,
            )
            db.add(billing)
            try:
                db.flush()
            except IntegrityError as exc:
                # Another request billed this visit between the pre-check and the insert
                raise ConflictError(f"Visit {visit_id} already has billing") from exc
            generated.append(GeneratedBilling(billing=billing, breakdown=breakdown))

    logger.info("Generated %d billing summaries for physician %s", len(generated), physician_id)
    return generated


def get_unbilled_visits(db: Session, physician_id: int) -> List[Dict]:
    """The physician's visits with no billing yet, each with its estimated cost."""
    visits = (
        db.query(Visit)
        .outerjoin(BillingSummary, BillingSummary.visit_id == Visit.id)
        .filter(Visit.physician_id == physician_id)
        .filter(BillingSummary.id.is_(None))
        .order_by(Visit.visit_date.desc())
        .all()
    )
    return [
        {"visit": visit, "estimated_cost": calculate_cost(visit.vital_signs, visit.prescriptions)}
        for visit in visits
    ]


def get_billing(db: Session, billing_id: int, physician_id: Optional[int] = None) -> BillingSummary:
    billing = db.query(BillingSummary).filter(BillingSummary.id == billing_id).first()
    if not billing:
        raise NotFoundError("Billing summary not found")
    if physician_id is not None and billing.physician_id != physician_id:
        raise ForbiddenError("Access denied: You can only access your own billing summaries")
    return billing


def get_billing_stats(db: Session, physician_id: int) -> Dict:
    billings = (
        db.query(BillingSummary)
        .join(Visit, BillingSummary.visit_id == Visit.id)
        .filter(Visit.physician_id == physician_id)
        .all()
    )

    def _with_status(status):
        return [b for b in billings if b.status == status]

    return {
        "total_billings": len(billings),
        "total_amount": round(sum(b.total_cost for b in billings), 2),
        "pending_count": len(_with_status(BillingStatus.PENDING)),
        "submitted_count": len(_with_status(BillingStatus.SUBMITTED)),
        "paid_count": len(_with_status(BillingStatus.PAID)),
        "denied_count": len(_with_status(BillingStatus.DENIED)),
        "paid_amount": round(sum(b.total_cost for b in _with_status(BillingStatus.PAID)), 2),
    }


def _provider_summaries_query(db: Session):
    paid = BillingSummary.status == BillingStatus.PAID
    return (
        db.query(
            InsuranceProvider,
            func.count(BillingSummary.id),
            func.count(case((paid, 1))),
            func.coalesce(func.sum(case((paid, BillingSummary.total_cost), else_=0)), 0),
        )
        .outerjoin(BillingSummary, BillingSummary.insurance_provider_id == InsuranceProvider.id)
        .group_by(InsuranceProvider.id)
    )


def _to_summary(row) -> ProviderSummary:
    provider, total, paid_count, paid_amount = row
    return ProviderSummary(
        provider=provider,
        total_billings=total,
        paid_billings=paid_count,
        total_paid_amount=float(paid_amount or 0),
    )


def create_provider(
    db: Session,
    name: str,
    contact_info: Optional[Dict] = None,
    api_endpoint: Optional[str] = None,
) -> InsuranceProvider:
    errors = []
    if not name or not name.strip():
        errors.append("Provider name is required")
    elif len(name) > 100:
        errors.append("Provider name must be 100 characters or less")
    if api_endpoint and not api_endpoint.startswith(("http://", "https://")):
        errors.append("API endpoint must be a valid HTTP/HTTPS URL")
    if errors:
        raise ValidationError("Invalid insurance provider", errors=errors)

    with transaction(db):
        provider = InsuranceProvider(name=name.strip(), contact_info=contact_info, api_endpoint=api_endpoint)
        db.add(provider)
    db.refresh(provider)
    return provider


def list_providers(db: Session) -> List[ProviderSummary]:
    rows = _provider_summaries_query(db).order_by(InsuranceProvider.name).all()
    return [_to_summary(row) for row in rows]


def get_provider(db: Session, provider_id: int) -> ProviderSummary:
    row = _provider_summaries_query(db).filter(InsuranceProvider.id == provider_id).first()
    if not row:
        raise NotFoundError("Insurance provider not found")
    return _to_summary(row)
