"""003: create payouts table

Revision ID: 003
Revises: 002
Create Date: 2026-10-16
"""
from typing import Sequence, Union
from alembic import op

revision: str = "003"
down_revision: Union[str, None] = "002"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.execute("""
        CREATE TABLE payouts (
            id                  VARCHAR(64)     PRIMARY KEY,
            vendor_id           VARCHAR(64)     NOT NULL,
            request_amount      BIGINT          NOT NULL,
            approved_amount     BIGINT,
            status              VARCHAR(16)     NOT NULL DEFAULT 'PENDING',
            rejection_reason    VARCHAR(500),
            bank_details        JSONB           NOT NULL DEFAULT '{}'::jsonb,
            decided_by          VARCHAR(64),
            decided_at          TIMESTAMPTZ,
            version             BIGINT          NOT NULL DEFAULT 0,
            created_at          TIMESTAMPTZ     NOT NULL DEFAULT NOW(),
            updated_at          TIMESTAMPTZ     NOT NULL DEFAULT NOW(),
            CONSTRAINT ck_payouts_status CHECK (status IN ('PENDING', 'APPROVED', 'REJECTED')),
            CONSTRAINT ck_payouts_request_positive CHECK (request_amount > 0),
            CONSTRAINT ck_payouts_approved_range CHECK (
                approved_amount IS NULL
                OR (approved_amount > 0 AND approved_amount <= request_amount)
            ),
            CONSTRAINT ck_payouts_approved_only_when_approved CHECK (
                (status = 'APPROVED') = (approved_amount IS NOT NULL)
            )
        );
    """)
    op.execute("CREATE INDEX idx_payouts_status_created ON payouts (status, created_at DESC, id DESC);")
    op.execute("CREATE INDEX idx_payouts_vendor_pending ON payouts (vendor_id) WHERE status = 'PENDING';")
    op.execute("""
        CREATE TRIGGER trg_payouts_updated_at
            BEFORE UPDATE ON payouts
            FOR EACH ROW EXECUTE FUNCTION fn_update_timestamp();
    """)
    op.execute("COMMENT ON TABLE payouts IS 'Vendor payout requests; amounts in kobo';")


def downgrade() -> None:
    op.execute("DROP TABLE IF EXISTS payouts CASCADE;")
