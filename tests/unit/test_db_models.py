"""ORM mappings must stay in step with the raw-SQL column lists in the repositories."""

from src.mp_gateway.user.db_models import UserModel
from src.mp_payout.infrastructure import persistence as payout_persistence
from src.mp_payout.infrastructure.db_models import PayoutHoldORM, PayoutORM
from src.mp_refund.infrastructure import persistence as refund_persistence
from src.mp_refund.infrastructure.db_models import RefundRequestORM


def _columns(sql_list: str) -> set[str]:
    return {c.strip() for c in sql_list.split(",") if c.strip()}


def test_payout_columns_match() -> None:
    assert set(PayoutORM.__table__.columns.keys()) == _columns(payout_persistence._PAYOUT_COLUMNS)


def test_hold_columns_match() -> None:
    assert set(PayoutHoldORM.__table__.columns.keys()) == _columns(
        payout_persistence._HOLD_COLUMNS
    )


def test_refund_columns_match() -> None:
    assert set(RefundRequestORM.__table__.columns.keys()) == _columns(
        refund_persistence._REFUND_COLUMNS
    )


def test_all_tables_share_metadata() -> None:
    tables = UserModel.metadata.tables
    assert {"users", "payouts", "payout_holds", "refund_requests"} <= set(tables)
