"""initial schema

Revision ID: 0001
Revises:
Create Date: 2025-01-15 09:00:00

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = "0001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _timestamps():
    return [
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.Column("updated_at", sa.DateTime(), nullable=False),
    ]


def upgrade() -> None:
    op.create_table(
        "persons",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("name", sa.String(200), nullable=False),
        sa.Column("role", sa.String(20), nullable=False),
        *_timestamps(),
    )
    op.create_index("ix_persons_role", "persons", ["role"])

    op.create_table(
        "physicians",
        sa.Column("person_id", sa.Integer(), sa.ForeignKey("persons.id"), primary_key=True),
        sa.Column("license_number", sa.String(50), nullable=False, unique=True),
        sa.Column("specialty", sa.String(100)),
        sa.Column("department", sa.String(100)),
    )
    op.create_table(
        "patients",
        sa.Column("person_id", sa.Integer(), sa.ForeignKey("persons.id"), primary_key=True),
        sa.Column("insurance_id", sa.String(50)),
        sa.Column("contact_info", sa.JSON()),
        sa.Column("date_of_birth", sa.Date()),
        sa.Column("emergency_contact", sa.JSON()),
    )
    op.create_index("ix_patients_insurance_id", "patients", ["insurance_id"])
    op.create_table(
        "nurses",
        sa.Column("person_id", sa.Integer(), sa.ForeignKey("persons.id"), primary_key=True),
        sa.Column("certification", sa.String(100)),
        sa.Column("department", sa.String(100)),
        sa.Column("shift", sa.String(10), nullable=False),
    )
    op.create_table(
        "system_administrators",
        sa.Column("person_id", sa.Integer(), sa.ForeignKey("persons.id"), primary_key=True),
        sa.Column("access_level", sa.String(20), nullable=False),
        sa.Column("assigned_region", sa.String(100)),
        sa.Column("last_login", sa.DateTime()),
    )

    op.create_table(
        "patient_records",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("patient_id", sa.Integer(), sa.ForeignKey("patients.person_id"), nullable=False),
        sa.Column("date_created", sa.Date(), nullable=False),
        sa.Column("status", sa.String(20), nullable=False),
        sa.Column("primary_physician_id", sa.Integer(), sa.ForeignKey("physicians.person_id")),
        *_timestamps(),
    )
    op.create_index("ix_patient_records_patient_id", "patient_records", ["patient_id"])
    op.create_index("ix_patient_records_primary_physician_id", "patient_records", ["primary_physician_id"])

    op.create_table(
        "visits",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("patient_record_id", sa.Integer(), sa.ForeignKey("patient_records.id"), nullable=False),
        sa.Column("physician_id", sa.Integer(), sa.ForeignKey("physicians.person_id")),
        sa.Column("visit_date", sa.DateTime(), nullable=False),
        sa.Column("reason", sa.String(500)),
        sa.Column("notes", sa.Text()),
        sa.Column("status", sa.String(20), nullable=False),
        *_timestamps(),
    )
    op.create_index("ix_visits_patient_record_id", "visits", ["patient_record_id"])
    op.create_index("ix_visits_physician_id", "visits", ["physician_id"])

    op.create_table(
        "vital_signs",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("visit_id", sa.Integer(), sa.ForeignKey("visits.id"), nullable=False),
        sa.Column("measure_type", sa.String(30), nullable=False),
        sa.Column("value", sa.String(20), nullable=False),
        sa.Column("unit", sa.String(20), nullable=False),
        sa.Column("timestamp", sa.DateTime(), nullable=False),
        sa.Column("recorded_by", sa.Integer(), sa.ForeignKey("persons.id")),
    )
    op.create_index("ix_vital_signs_visit_id", "vital_signs", ["visit_id"])

    op.create_table(
        "prescriptions",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("visit_id", sa.Integer(), sa.ForeignKey("visits.id"), nullable=False),
        sa.Column("medication_name", sa.String(200), nullable=False),
        sa.Column("dosage", sa.String(100), nullable=False),
        sa.Column("frequency", sa.String(100), nullable=False),
        sa.Column("start_date", sa.Date(), nullable=False),
        sa.Column("end_date", sa.Date()),
        sa.Column("instructions", sa.Text()),
        *_timestamps(),
    )
    op.create_index("ix_prescriptions_visit_id", "prescriptions", ["visit_id"])

    op.create_table(
        "insurance_providers",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("name", sa.String(100), nullable=False, unique=True),
        sa.Column("contact_info", sa.JSON()),
        sa.Column("api_endpoint", sa.String(500)),
        *_timestamps(),
    )

    op.create_table(
        "billing_summaries",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("visit_id", sa.Integer(), sa.ForeignKey("visits.id"), nullable=False, unique=True),
        sa.Column("patient_id", sa.Integer(), sa.ForeignKey("patients.person_id"), nullable=False),
        sa.Column("insurance_provider_id", sa.Integer(), sa.ForeignKey("insurance_providers.id"), nullable=False),
        sa.Column("total_cost", sa.Float(), nullable=False),
        sa.Column("billing_date", sa.DateTime(), nullable=False),
        sa.Column("status", sa.String(20), nullable=False),
        *_timestamps(),
    )
    op.create_index("ix_billing_summaries_patient_id", "billing_summaries", ["patient_id"])
    op.create_index("ix_billing_summaries_insurance_provider_id", "billing_summaries", ["insurance_provider_id"])
    op.create_index("ix_billing_summaries_status", "billing_summaries", ["status"])

    op.create_table(
        "audit_logs",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("timestamp", sa.DateTime(), nullable=False),
        sa.Column("user_id", sa.Integer(), sa.ForeignKey("persons.id"), nullable=False),
        sa.Column("user_role", sa.String(20), nullable=False),
        sa.Column("action_type", sa.String(20), nullable=False),
        sa.Column("ip_address", sa.String(45), nullable=False),
    )
    op.create_index("ix_audit_logs_timestamp", "audit_logs", ["timestamp"])
    op.create_index("ix_audit_logs_user_id", "audit_logs", ["user_id"])


def downgrade() -> None:
    for table in (
        "audit_logs",
        "billing_summaries",
        "insurance_providers",
        "prescriptions",
        "vital_signs",
        "visits",
        "patient_records",
        "system_administrators",
        "nurses",
        "patients",
        "physicians",
        "persons",
    ):
        op.drop_table(table)
