"""004: create refund_requests table

Revision ID: 004
Revises: 003
Create Date: 2026-10-16
"""
from typing import Sequence, Union
from alembic import op

revision: str = "004"
down_revision: Union[str, None] = "003"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.execute("""
        CREATE TABLE refund_requests (
            id              VARCHAR(64)     PRIMARY KEY,
            vendor_id       VARCHAR(64)     NOT NULL,
            customer_id     VARCHAR(64),
            order_item_id   VARCHAR(64),
            refund_amount   BIGINT          NOT NULL,
            status          VARCHAR(16)     NOT NULL DEFAULT 'PENDING',
            reason          VARCHAR(500),
            created_at      TIMESTAMPTZ     NOT NULL DEFAULT NOW(),
            resolved_at     TIMESTAMPTZ,
            CONSTRAINT ck_refunds_status CHECK (status IN ('PENDING', 'APPROVED', 'REJECTED')),
            CONSTRAINT ck_refunds_amount_positive CHECK (refund_amount > 0)
        );
    """)
    op.execute(
        "CREATE INDEX idx_refunds_vendor_pending ON refund_requests (vendor_id) "
        "WHERE status = 'PENDING';"
    )
    op.execute("CREATE INDEX idx_refunds_created ON refund_requests (created_at DESC, id DESC);")


def downgrade() -> None:
    op.execute("DROP TABLE IF EXISTS refund_requests CASCADE;")
