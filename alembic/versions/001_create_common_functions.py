"""001: create common trigger functions

Revision ID: 001
Revises:
Create Date: 2026-10-16
"""
from typing import Sequence, Union
from alembic import op

revision: str = "001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.execute("""
        CREATE OR REPLACE FUNCTION fn_update_timestamp()
        RETURNS TRIGGER AS $$
        BEGIN
            NEW.updated_at = NOW();
            RETURN NEW;
        END;
        $$ LANGUAGE plpgsql;
    """)
    # Audit tables (payout_holds) keep every row; DELETE is refused
    op.execute("""
        CREATE OR REPLACE FUNCTION fn_forbid_delete()
        RETURNS TRIGGER AS $$
        BEGIN
            RAISE EXCEPTION 'rows in % are retained for audit and cannot be deleted',
                TG_TABLE_NAME;
        END;
        $$ LANGUAGE plpgsql;
    """)


def downgrade() -> None:
    op.execute("DROP FUNCTION IF EXISTS fn_forbid_delete();")
    op.execute("DROP FUNCTION IF EXISTS fn_update_timestamp();")
