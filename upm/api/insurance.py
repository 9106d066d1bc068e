"""
Insurance provider directory, plus the in-process mock insurer that
stands in for a provider's claims endpoint in the demo.
"""
from datetime import datetime
from typing import Optional

from fastapi import APIRouter, Depends
from pydantic import BaseModel, ConfigDict
from sqlalchemy.orm import Session

from ..core.security import CurrentUser, require_role
from ..models.base import get_db
from ..models.person import Role
from ..services import billing
from ..services.billing import ProviderSummary
from ..services.insurance import MockInsuranceGateway

router = APIRouter(prefix="/insurance", tags=["insurance"])
mock_router = APIRouter(prefix="/mock/insurance", tags=["mock-insurance"])


class ProviderResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    contact_info: Optional[dict]
    api_endpoint: Optional[str]
    total_billings: int = 0
    paid_billings: int = 0
    total_paid_amount: float = 0.0


class ClaimRequest(BaseModel):
    billing_id: int
    patient_id: int
    total_cost: float
    visit_id: Optional[int] = None
    billing_date: Optional[datetime] = None
    insurance_provider_id: Optional[int] = None


def _provider_response(summary: ProviderSummary) -> ProviderResponse:
    resp = ProviderResponse.model_validate(summary.provider)
    resp.total_billings = summary.total_billings
    resp.paid_billings = summary.paid_billings
    resp.total_paid_amount = round(summary.total_paid_amount, 2)
    return resp


def get_mock_insurer() -> MockInsuranceGateway:
    return MockInsuranceGateway()


@router.get("/providers")
def list_providers(
    db: Session = Depends(get_db),
    _physician: CurrentUser = Depends(require_role(Role.PHYSICIAN)),
):
    return {"success": True, "data": [_provider_response(s) for s in billing.list_providers(db)]}


@router.get("/providers/{provider_id}")
def get_provider(
    provider_id: int,
    db: Session = Depends(get_db),
    _physician: CurrentUser = Depends(require_role(Role.PHYSICIAN)),
):
    return {"success": True, "data": _provider_response(billing.get_provider(db, provider_id))}


@mock_router.post("/submit")
async def mock_submit_claim(
    claim: ClaimRequest,
    insurer: MockInsuranceGateway = Depends(get_mock_insurer),
    _physician: CurrentUser = Depends(require_role(Role.PHYSICIAN)),
):
    """Simulated insurer: random delay, canned accept/reject answer."""
    response = await insurer.submit(None, claim.model_dump(mode="json"))
    return {
        "success": response.success,
        "message": response.message,
        "data": {
            "submission_id": response.submission_id,
            "status": response.status,
            "message": response.message,
            "billing_id": claim.billing_id,
            **response.details,
        },
    }


@mock_router.get("/status/{submission_id}")
def mock_claim_status(
    submission_id: str,
    insurer: MockInsuranceGateway = Depends(get_mock_insurer),
    _physician: CurrentUser = Depends(require_role(Role.PHYSICIAN)),
):
    return {"success": True, "data": insurer.check_status(submission_id)}
