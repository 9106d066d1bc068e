"""Tests for the cost model, billing-generation pipeline and provider directory."""
import pytest

from upm.core.errors import ConflictError, ForbiddenError, NotFoundError, ValidationError
from upm.models.billing import BillingStatus, BillingSummary
from upm.services import billing

DR_SMITH = 1
DR_JOHNSON = 5


def _billing_count(db):
    return db.query(BillingSummary).count()


# ---------------------------------------------------------------------------
# Cost model
# ---------------------------------------------------------------------------

class TestCostModel:
    def test_base_fee_only(self):
        assert billing.calculate_cost([], []) == 100.0

    def test_formula(self):
        # 100 + 3 * 25 + 2 * 15
        assert billing.calculate_cost([1, 2, 3], ["a", "b"]) == 205.0

    def test_breakdown_adds_up(self):
        breakdown = billing.cost_breakdown([1, 2], ["a"])
        assert breakdown.vitals_cost == 50.0
        assert breakdown.prescriptions_cost == 15.0
        assert breakdown.base_visit_cost + breakdown.vitals_cost + breakdown.prescriptions_cost == breakdown.total


# ---------------------------------------------------------------------------
# Pipeline
# ---------------------------------------------------------------------------

class TestGenerateBillingSummaries:
    def test_creates_pending_billing(self, seeded_db):
        generated = billing.generate_billing_summaries(seeded_db, [2], DR_SMITH)
        assert len(generated) == 1
        summary = generated[0].billing
        assert summary.visit_id == 2
        assert summary.patient_id == 2
        assert summary.status == BillingStatus.PENDING
        # visit 2: one reading, one prescription
        assert summary.total_cost == 140.0
        assert generated[0].breakdown.vitals_count == 1

    def test_provider_assignment_is_stable(self, seeded_db):
        generated = billing.generate_billing_summaries(seeded_db, [2], DR_SMITH)
        # providers by name, patient 2 % 3 providers
        assert generated[0].billing.provider_name == "United Wellness Group"

    def test_empty_batch(self, seeded_db):
        with pytest.raises(ValidationError):
            billing.generate_billing_summaries(seeded_db, [], DR_SMITH)

    def test_unknown_visit(self, seeded_db):
        with pytest.raises(NotFoundError, match="Visit 999 not found"):
            billing.generate_billing_summaries(seeded_db, [999], DR_SMITH)
        assert _billing_count(seeded_db) == 1

    def test_other_physicians_visit(self, seeded_db):
        with pytest.raises(ForbiddenError, match="Visit 3 does not belong to this physician"):
            billing.generate_billing_summaries(seeded_db, [3], DR_SMITH)
        assert _billing_count(seeded_db) == 1

    def test_already_billed(self, seeded_db):
        with pytest.raises(ConflictError, match="Visit 1 already has billing"):
            billing.generate_billing_summaries(seeded_db, [1], DR_SMITH)

    def test_repeat_generation_conflicts(self, seeded_db):
        billing.generate_billing_summaries(seeded_db, [3], DR_JOHNSON)
        with pytest.raises(ConflictError):
            billing.generate_billing_summaries(seeded_db, [3], DR_JOHNSON)
        assert _billing_count(seeded_db) == 2

    def test_duplicate_within_batch(self, seeded_db):
        with pytest.raises(ConflictError, match="Visit 2 already has billing"):
            billing.generate_billing_summaries(seeded_db, [2, 2], DR_SMITH)
        assert not billing.visit_has_billing(seeded_db, 2)

    def test_failure_rolls_back_whole_batch(self, seeded_db):
        with pytest.raises(NotFoundError):
            billing.generate_billing_summaries(seeded_db, [2, 999], DR_SMITH)
        assert not billing.visit_has_billing(seeded_db, 2)
        assert _billing_count(seeded_db) == 1

    def test_unique_constraint_closes_race(self, seeded_db, monkeypatch):
        # Another request billed visit 1 after this one's pre-check passed
        monkeypatch.setattr(billing, "visit_has_billing", lambda db, visit_id: False)
        with pytest.raises(ConflictError, match="Visit 1 already has billing"):
            billing.generate_billing_summaries(seeded_db, [1], DR_SMITH)
        assert _billing_count(seeded_db) == 1


class TestBillingQueries:
    def test_unbilled_visits(self, seeded_db):
        rows = billing.get_unbilled_visits(seeded_db, DR_SMITH)
        assert [row["visit"].id for row in rows] == [2]
        assert rows[0]["estimated_cost"] == 140.0

    def test_unbilled_visits_shrink_after_billing(self, seeded_db):
        billing.generate_billing_summaries(seeded_db, [2], DR_SMITH)
        assert billing.get_unbilled_visits(seeded_db, DR_SMITH) == []

    def test_stats(self, seeded_db):
        billing.generate_billing_summaries(seeded_db, [2], DR_SMITH)
        stats = billing.get_billing_stats(seeded_db, DR_SMITH)
        assert stats["total_billings"] == 2
        assert stats["paid_count"] == 1
        assert stats["pending_count"] == 1
        assert stats["paid_amount"] == 190.0
        assert stats["total_amount"] == 330.0

    def test_get_billing_ownership(self, seeded_db):
        assert billing.get_billing(seeded_db, 1, DR_SMITH).visit_id == 1
        with pytest.raises(ForbiddenError):
            billing.get_billing(seeded_db, 1, DR_JOHNSON)

    def test_get_billing_not_found(self, seeded_db):
        with pytest.raises(NotFoundError, match="Billing summary not found"):
            billing.get_billing(seeded_db, 42)


class TestProviders:
    def test_list_with_aggregates(self, seeded_db):
        summaries = billing.list_providers(seeded_db)
        assert [s.provider.name for s in summaries] == [
            "HealthFirst Insurance",
            "MediCare Plus",
            "United Wellness Group",
        ]
        first = summaries[0]
        assert (first.total_billings, first.paid_billings, first.total_paid_amount) == (1, 1, 190.0)
        assert summaries[1].total_billings == 0

    def test_get_provider_not_found(self, seeded_db):
        with pytest.raises(NotFoundError):
            billing.get_provider(seeded_db, 99)

    def test_create_provider_validation(self, seeded_db):
        with pytest.raises(ValidationError) as exc_info:
            billing.create_provider(seeded_db, "", api_endpoint="ftp://claims")
        assert exc_info.value.errors == [
            "Provider name is required",
            "API endpoint must be a valid HTTP/HTTPS URL",
        ]

    def test_no_providers(self, db):
        with pytest.raises(NotFoundError, match="No insurance providers available"):
            billing.assign_insurance_provider(db, 2)
