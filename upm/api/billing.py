"""Billing endpoints: generation, stats, lookup and insurance submission (physicians only)."""
from dataclasses import asdict
from datetime import datetime
from typing import List, Optional

from fastapi import APIRouter, Depends, status
from pydantic import BaseModel, ConfigDict
from sqlalchemy.orm import Session

from ..core.security import CurrentUser, require_role
from ..models.base import get_db
from ..models.person import Role
from ..services import billing, insurance
from ..services.insurance import InsuranceGateway, get_insurance_gateway

router = APIRouter(prefix="/billing", tags=["billing"])


class GenerateRequest(BaseModel):
    visit_ids: Optional[List[int]] = None


class BillingResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    visit_id: int
    patient_id: int
    insurance_provider_id: int
    provider_name: str
    total_cost: float
    billing_date: datetime
    status: str


class CostBreakdownResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    vitals_count: int
    prescriptions_count: int
    vitals_cost: float
    prescriptions_cost: float
    base_visit_cost: float
    total: float


class GeneratedBillingResponse(BillingResponse):
    cost_breakdown: CostBreakdownResponse


@router.post("/generate", status_code=status.HTTP_201_CREATED)
def generate_billing(
    req: GenerateRequest,
    db: Session = Depends(get_db),
    current_user: CurrentUser = Depends(require_role(Role.PHYSICIAN)),
):
    """Bill a batch of the caller's visits; all or nothing."""
    generated = billing.generate_billing_summaries(db, req.visit_ids or [], current_user.person_id)
    data = [
        GeneratedBillingResponse(
            **BillingResponse.model_validate(item.billing).model_dump(),
            cost_breakdown=CostBreakdownResponse.model_validate(item.breakdown),
        )
        for item in generated
    ]
    return {
        "success": True,
        "message": f"Generated {len(data)} billing summaries",
        "data": data,
    }


@router.get("/stats")
def get_billing_stats(
    db: Session = Depends(get_db),
    current_user: CurrentUser = Depends(require_role(Role.PHYSICIAN)),
):
    return {"success": True, "data": billing.get_billing_stats(db, current_user.person_id)}


@router.get("/{billing_id}")
def get_billing(
    billing_id: int,
    db: Session = Depends(get_db),
    current_user: CurrentUser = Depends(require_role(Role.PHYSICIAN)),
):
    summary = billing.get_billing(db, billing_id, current_user.person_id)
    return {"success": True, "data": BillingResponse.model_validate(summary)}


@router.post("/{billing_id}/submit")
async def submit_billing(
    billing_id: int,
    db: Session = Depends(get_db),
    gateway: InsuranceGateway = Depends(get_insurance_gateway),
    current_user: CurrentUser = Depends(require_role(Role.PHYSICIAN)),
):
    """Send a pending billing to its insurer; it ends up submitted or denied."""
    result = await insurance.submit_to_insurance(db, billing_id, gateway, current_user.person_id)
    return {
        "success": True,
        "message": result.provider_response.message,
        "data": {
            "billing_id": result.billing_id,
            "status": result.status,
            "provider_response": asdict(result.provider_response),
        },
    }
