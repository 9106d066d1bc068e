"""
Insurance claim submission.

Billing summaries are sent to the assigned provider through an
``InsuranceGateway``. The mock gateway simulates the insurer in-process
(random latency, canned accept/reject answers); the HTTP gateway posts the
claim to the provider's endpoint. Either way the billing moves from
``pending`` to exactly one of ``submitted`` or ``denied``.
"""
import asyncio
import logging
import random
import time
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Awaitable, Callable, Dict, Optional, Protocol, Tuple

import httpx
from sqlalchemy.orm import Session

from ..core.config import settings
from ..core.errors import ConflictError, InternalError, NotFoundError
from ..models.base import transaction
from ..models.billing import BillingStatus, BillingSummary
from .billing import get_billing

logger = logging.getLogger(__name__)


@dataclass
class InsuranceResponse:
    success: bool
    status: str  # "accepted" or "rejected"
    message: str
    submission_id: str
    details: Dict[str, Any] = field(default_factory=dict)


@dataclass
class SubmissionResult:
    billing_id: int
    status: str
    provider_response: InsuranceResponse


class InsuranceGateway(Protocol):
    async def submit(self, endpoint: Optional[str], claim: Dict[str, Any]) -> InsuranceResponse:
        ...


# (status, message, rejection reason)
_CANNED_RESPONSES = [
    ("accepted", "Claim submitted successfully", None),
    ("accepted", "Claim received and is being processed", None),
    ("rejected", "Claim rejected: Patient coverage verification failed", "Patient not covered under this plan"),
    ("rejected", "Claim rejected: Missing required procedure codes", "Invalid claim format"),
    ("accepted", "Claim accepted for review", None),
]

_FOLLOW_UP_STATUSES = {
    "processing": {
        "message": "Claim is being processed by the insurance provider",
        "estimated_completion": "2-3 business days",
    },
    "approved": {
        "message": "Claim has been approved for payment",
        "estimated_payment": "5-7 business days",
    },
    "paid": {"message": "Claim has been paid"},
    "denied": {
        "message": "Claim has been denied",
        "reason": "Coverage limitations exceeded",
        "appeal_instructions": "You may appeal this decision within 30 days",
    },
    "under_review": {
        "message": "Claim is under manual review",
        "estimated_completion": "3-5 business days",
        "additional_info": "Additional documentation may be required",
    },
}


class MockInsuranceGateway:
    """In-process insurer with random latency and outcome."""

    def __init__(
        self,
        rng: Optional[random.Random] = None,
        min_delay: Optional[float] = None,
        max_delay: Optional[float] = None,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
    ):
        self.rng = rng or random.Random()
        self.min_delay = settings.INSURANCE_MIN_DELAY_MS / 1000 if min_delay is None else min_delay
        self.max_delay = settings.INSURANCE_MAX_DELAY_MS / 1000 if max_delay is None else max_delay
        self.sleep = sleep

    def _submission_id(self) -> str:
        return f"MOCK-{int(time.time() * 1000)}-{self.rng.randrange(10000)}"

    async def submit(self, endpoint: Optional[str], claim: Dict[str, Any]) -> InsuranceResponse:
        await self.sleep(self.rng.uniform(self.min_delay, self.max_delay))
        status, message, reason = self.rng.choice(_CANNED_RESPONSES)
        if status == "accepted":
            details = {"estimated_processing_days": self.rng.randint(1, 5)}
        else:
            details = {"reason": reason}
        return InsuranceResponse(
            success=status == "accepted",
            status=status,
            message=message,
            submission_id=self._submission_id(),
            details=details,
        )

    def check_status(self, submission_id: str) -> Dict[str, Any]:
        status = self.rng.choice(list(_FOLLOW_UP_STATUSES))
        return {
            "submission_id": submission_id,
            "status": status,
            "last_updated": datetime.utcnow().isoformat() + "Z",
            "details": dict(_FOLLOW_UP_STATUSES[status]),
        }


class HttpInsuranceGateway:
    """Posts claims to the provider's own claims endpoint."""

    def __init__(self, timeout: float = 10, transport: Optional[httpx.AsyncBaseTransport] = None):
        self.timeout = timeout
        self.transport = transport

    async def submit(self, endpoint: Optional[str], claim: Dict[str, Any]) -> InsuranceResponse:
        if not endpoint:
            raise InternalError("Insurance provider has no claims endpoint configured")
        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self.transport) as client:
                resp = await client.post(endpoint, json=claim)
                resp.raise_for_status()
                payload = resp.json()
        except (httpx.HTTPError, ValueError) as exc:
            logger.warning("Insurance endpoint %s failed: %s", endpoint, exc)
            raise InternalError("Error submitting billing to insurance provider") from exc

        if not isinstance(payload, dict) or not isinstance(payload.get("data") or {}, dict):
            logger.warning("Insurance endpoint %s returned an unexpected reply: %r", endpoint, payload)
            raise InternalError("Error submitting billing to insurance provider")
        data = payload.get("data") or {}
        return InsuranceResponse(
            success=bool(payload.get("success")),
            status=payload.get("status") or data.get("status", "unknown"),
            message=payload.get("message") or data.get("message", ""),
            submission_id=data.get("submission_id", ""),
            details=data,
        )


def get_insurance_gateway() -> InsuranceGateway:
    """FastAPI dependency; overridden in tests with a deterministic gateway."""
    if settings.INSURANCE_MOCK_MODE:
        return MockInsuranceGateway()
    return HttpInsuranceGateway(timeout=settings.INSURANCE_TIMEOUT)


def build_claim(billing: BillingSummary) -> Dict[str, Any]:
    return {
        "billing_id": billing.id,
        "visit_id": billing.visit_id,
        "patient_id": billing.patient_id,
        "total_cost": billing.total_cost,
        "billing_date": billing.billing_date.isoformat(),
        "insurance_provider_id": billing.insurance_provider_id,
    }


def _load_claim(
    db: Session, billing_id: int, physician_id: Optional[int]
) -> Tuple[Dict[str, Any], Optional[str], str]:
    billing = get_billing(db, billing_id, physician_id)
    if billing.status != BillingStatus.PENDING:
        raise ConflictError(f"Billing is already {billing.status} and cannot be submitted")
    provider = billing.insurance_provider
    if provider is None:
        raise NotFoundError("Insurance provider not found")
    return build_claim(billing), provider.api_endpoint, provider.name


def _record_outcome(db: Session, billing_id: int, new_status: str) -> None:
    with transaction(db):
        updated = (
            db.query(BillingSummary)
            .filter(BillingSummary.id == billing_id, BillingSummary.status == BillingStatus.PENDING)
            .update(
                {BillingSummary.status: new_status, BillingSummary.updated_at: datetime.utcnow()},
                synchronize_session=False,
            )
        )
        if updated == 0:
            raise ConflictError("Billing was already submitted by another request")


async def submit_to_insurance(
    db: Session,
    billing_id: int,
    gateway: InsuranceGateway,
    physician_id: Optional[int] = None,
) -> SubmissionResult:
    """Send a pending billing to its provider and record the single outcome.

    Session work runs in a worker thread so the event loop only waits on the
    insurer call.
    """
    claim, endpoint, provider_name = await asyncio.to_thread(_load_claim, db, billing_id, physician_id)

    response = await gateway.submit(endpoint, claim)
    new_status = BillingStatus.SUBMITTED if response.success else BillingStatus.DENIED

    await asyncio.to_thread(_record_outcome, db, billing_id, new_status)

    logger.info("Billing %s %s by %s (%s)", billing_id, new_status, provider_name, response.submission_id)
    return SubmissionResult(billing_id=billing_id, status=new_status, provider_response=response)
