"""005: create payout_holds table

Revision ID: 005
Revises: 004
Create Date: 2026-10-16
"""
from typing import Sequence, Union
from alembic import op

revision: str = "005"
down_revision: Union[str, None] = "004"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.execute("""
        CREATE TABLE payout_holds (
            id                  VARCHAR(64)     PRIMARY KEY,
            vendor_id           VARCHAR(64)     NOT NULL,
            payout_id           VARCHAR(64)     REFERENCES payouts (id),
            hold_amount         BIGINT          NOT NULL,
            reason              TEXT            NOT NULL,
            status              VARCHAR(16)     NOT NULL DEFAULT 'ACTIVE',
            refund_request_ids  VARCHAR(64)[]   NOT NULL DEFAULT '{}',
            created_by          VARCHAR(64),
            created_at          TIMESTAMPTZ     NOT NULL DEFAULT NOW(),
            released_at         TIMESTAMPTZ,
            released_by         VARCHAR(64),
            CONSTRAINT ck_holds_status CHECK (status IN ('ACTIVE', 'RELEASED')),
            CONSTRAINT ck_holds_amount_non_negative CHECK (hold_amount >= 0),
            CONSTRAINT ck_holds_released_at CHECK (
                (status = 'RELEASED') = (released_at IS NOT NULL)
            )
        );
    """)
    op.execute("CREATE INDEX idx_holds_vendor_active ON payout_holds (vendor_id) WHERE status = 'ACTIVE';")
    op.execute("CREATE INDEX idx_holds_refund_ids ON payout_holds USING GIN (refund_request_ids);")
    op.execute("""
        CREATE TRIGGER trg_payout_holds_no_delete
            BEFORE DELETE ON payout_holds
            FOR EACH ROW EXECUTE FUNCTION fn_forbid_delete();
    """)
    op.execute("COMMENT ON TABLE payout_holds IS 'Hold ledger against pending refunds; released rows are kept';")


def downgrade() -> None:
    op.execute("DROP TABLE IF EXISTS payout_holds CASCADE;")
