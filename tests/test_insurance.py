"""Tests for insurance gateways and claim submission."""
import asyncio
import random
import threading

import httpx
import pytest

from upm.core.errors import ConflictError, InternalError
from upm.models.billing import BillingStatus, BillingSummary
from upm.services import billing, insurance
from upm.services.insurance import HttpInsuranceGateway, InsuranceResponse, MockInsuranceGateway

DR_SMITH = 1


class StubGateway:
    def __init__(self, accept=True, on_submit=None):
        self.accept = accept
        self.on_submit = on_submit

    async def submit(self, endpoint, claim):
        if self.on_submit:
            self.on_submit(claim)
        return InsuranceResponse(
            success=self.accept,
            status="accepted" if self.accept else "rejected",
            message="ok" if self.accept else "no",
            submission_id="STUB-1",
        )


def _pending_billing(db):
    return billing.generate_billing_summaries(db, [2], DR_SMITH)[0].billing.id


# ---------------------------------------------------------------------------
# Mock insurer
# ---------------------------------------------------------------------------

class TestMockInsuranceGateway:
    def setup_method(self):
        self.delays = []

        async def fake_sleep(seconds):
            self.delays.append(seconds)

        self.gateway = MockInsuranceGateway(rng=random.Random(1), min_delay=0.5, max_delay=2.0, sleep=fake_sleep)

    def test_response_shape(self):
        response = asyncio.run(self.gateway.submit(None, {"billing_id": 1}))
        assert response.status in ("accepted", "rejected")
        assert response.success is (response.status == "accepted")
        assert response.submission_id.startswith("MOCK-")

    def test_waits_within_configured_delay(self):
        asyncio.run(self.gateway.submit(None, {}))
        assert len(self.delays) == 1
        assert 0.5 <= self.delays[0] <= 2.0

    def test_rejections_carry_a_reason(self):
        responses = [asyncio.run(self.gateway.submit(None, {})) for _ in range(30)]
        rejected = [r for r in responses if not r.success]
        assert rejected
        assert all(r.details.get("reason") for r in rejected)

    def test_check_status(self):
        result = self.gateway.check_status("MOCK-1-1")
        assert result["submission_id"] == "MOCK-1-1"
        assert result["status"] in ("processing", "approved", "paid", "denied", "under_review")
        assert result["details"]["message"]


# ---------------------------------------------------------------------------
# HTTP gateway
# ---------------------------------------------------------------------------

class TestHttpInsuranceGateway:
    def test_parses_provider_reply(self):
        def handler(request):
            assert request.url == "https://insurer.example/claims"
            return httpx.Response(200, json={
                "success": True,
                "message": "Claim received",
                "data": {"submission_id": "HF-77", "status": "accepted"},
            })

        gateway = HttpInsuranceGateway(transport=httpx.MockTransport(handler))
        response = asyncio.run(gateway.submit("https://insurer.example/claims", {"billing_id": 1}))
        assert response.success
        assert response.status == "accepted"
        assert response.submission_id == "HF-77"
        assert response.message == "Claim received"

    def test_http_error_becomes_internal_error(self):
        gateway = HttpInsuranceGateway(transport=httpx.MockTransport(lambda request: httpx.Response(503)))
        with pytest.raises(InternalError):
            asyncio.run(gateway.submit("https://insurer.example/claims", {}))

    @pytest.mark.parametrize("body", [["ok"], "accepted", {"success": True, "data": ["HF-77"]}])
    def test_malformed_reply_becomes_internal_error(self, body):
        gateway = HttpInsuranceGateway(transport=httpx.MockTransport(lambda request: httpx.Response(200, json=body)))
        with pytest.raises(InternalError):
            asyncio.run(gateway.submit("https://insurer.example/claims", {}))

    def test_missing_endpoint(self):
        with pytest.raises(InternalError):
            asyncio.run(HttpInsuranceGateway().submit(None, {}))


# ---------------------------------------------------------------------------
# Submission
# ---------------------------------------------------------------------------

class TestSubmitToInsurance:
    def test_accepted_becomes_submitted(self, seeded_db):
        billing_id = _pending_billing(seeded_db)
        result = asyncio.run(insurance.submit_to_insurance(seeded_db, billing_id, StubGateway(accept=True)))
        assert result.status == BillingStatus.SUBMITTED
        assert seeded_db.get(BillingSummary, billing_id).status == BillingStatus.SUBMITTED

    def test_rejected_becomes_denied(self, seeded_db):
        billing_id = _pending_billing(seeded_db)
        result = asyncio.run(insurance.submit_to_insurance(seeded_db, billing_id, StubGateway(accept=False)))
        assert result.status == BillingStatus.DENIED
        assert result.provider_response.message == "no"

    @pytest.mark.parametrize("seed", range(5))
    def test_never_left_pending(self, seeded_db, seed):
        billing_id = _pending_billing(seeded_db)
        gateway = MockInsuranceGateway(rng=random.Random(seed), min_delay=0, max_delay=0)
        asyncio.run(insurance.submit_to_insurance(seeded_db, billing_id, gateway))
        seeded_db.expire_all()
        assert seeded_db.get(BillingSummary, billing_id).status in (BillingStatus.SUBMITTED, BillingStatus.DENIED)

    def test_resubmission_conflicts(self, seeded_db):
        billing_id = _pending_billing(seeded_db)
        asyncio.run(insurance.submit_to_insurance(seeded_db, billing_id, StubGateway()))
        with pytest.raises(ConflictError, match="already submitted"):
            asyncio.run(insurance.submit_to_insurance(seeded_db, billing_id, StubGateway()))

    def test_paid_billing_cannot_be_submitted(self, seeded_db):
        with pytest.raises(ConflictError, match="already paid"):
            asyncio.run(insurance.submit_to_insurance(seeded_db, 1, StubGateway()))

    def test_concurrent_submission_loses(self, seeded_db):
        billing_id = _pending_billing(seeded_db)

        def other_request_wins(claim):
            seeded_db.query(BillingSummary).filter(BillingSummary.id == claim["billing_id"]).update(
                {BillingSummary.status: BillingStatus.DENIED}, synchronize_session=False
            )
            seeded_db.commit()

        gateway = StubGateway(accept=True, on_submit=other_request_wins)
        with pytest.raises(ConflictError, match="another request"):
            asyncio.run(insurance.submit_to_insurance(seeded_db, billing_id, gateway))
        seeded_db.expire_all()
        assert seeded_db.get(BillingSummary, billing_id).status == BillingStatus.DENIED

    def test_claim_payload(self, seeded_db):
        billing_id = _pending_billing(seeded_db)
        claims = []
        gateway = StubGateway(on_submit=claims.append)
        asyncio.run(insurance.submit_to_insurance(seeded_db, billing_id, gateway))
        assert claims[0]["billing_id"] == billing_id
        assert claims[0]["total_cost"] == 140.0

    def test_session_work_runs_off_the_event_loop(self, seeded_db, monkeypatch):
        billing_id = _pending_billing(seeded_db)
        threads = []
        record_outcome = insurance._record_outcome

        def spy(*args):
            threads.append(threading.get_ident())
            return record_outcome(*args)

        monkeypatch.setattr(insurance, "_record_outcome", spy)
        asyncio.run(insurance.submit_to_insurance(seeded_db, billing_id, StubGateway()))
        assert len(threads) == 1
        assert threads[0] != threading.get_ident()
