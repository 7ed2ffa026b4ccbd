"""Unit tests for PayoutRepository / HoldRepository using MagicMock AsyncSession."""

import json
from datetime import UTC, datetime
from unittest.mock import AsyncMock, MagicMock

import pytest

from src.mp_common.errors import InternalError
from src.mp_payout.domain.models import PayoutHold
from src.mp_payout.infrastructure.persistence import HoldRepository, PayoutRepository


def _make_payout_row(**kwargs):
    """Build a mock DB row with all payout columns."""
    row = MagicMock()
    row.id = kwargs.get("id", "PO-1")
    row.vendor_id = kwargs.get("vendor_id", "V-1")
    row.request_amount = kwargs.get("request_amount", 10_000)
    row.approved_amount = kwargs.get("approved_amount")
    row.status = kwargs.get("status", "PENDING")
    row.rejection_reason = kwargs.get("rejection_reason")
    row.bank_details = kwargs.get("bank_details", {"bank_name": "Test Bank"})
    row.decided_by = None
    row.decided_at = None
    row.version = kwargs.get("version", 0)
    row.created_at = datetime.now(UTC)
    row.updated_at = datetime.now(UTC)
    return row


def _make_hold_row(**kwargs):
    row = MagicMock()
    row.id = kwargs.get("id", "HLD-1")
    row.vendor_id = "V-1"
    row.payout_id = None
    row.hold_amount = kwargs.get("hold_amount", 3_000)
    row.reason = "pending refund"
    row.status = kwargs.get("status", "ACTIVE")
    row.refund_request_ids = kwargs.get("refund_request_ids", ["RF-1"])
    row.created_by = "admin-1"
    row.created_at = datetime.now(UTC)
    row.released_at = None
    row.released_by = None
    return row


def _result(fetchone=None, fetchall=None):  # type: ignore[no-untyped-def]
    result = MagicMock()
    result.fetchone.return_value = fetchone
    result.fetchall.return_value = fetchall or []
    return result


@pytest.fixture
def db():
    return MagicMock()


class TestPayoutRepository:
    async def test_get_payout_for_update_maps_row(self, db) -> None:
        db.execute = AsyncMock(return_value=_result(fetchone=_make_payout_row(version=4)))

        payout = await PayoutRepository().get_payout_for_update(db, "PO-1")

        assert payout is not None
        assert payout.id == "PO-1"
        assert payout.version == 4
        assert payout.is_pending
        sql = str(db.execute.call_args.args[0])
        assert "FOR UPDATE" in sql

    async def test_bank_details_json_string_decoded(self, db) -> None:
        row = _make_payout_row(bank_details=json.dumps({"account_number": "0123"}))
        db.execute = AsyncMock(return_value=_result(fetchone=row))

        payout = await PayoutRepository().get_payout(db, "PO-1")

        assert payout is not None
        assert payout.bank_details == {"account_number": "0123"}

    async def test_get_payout_missing(self, db) -> None:
        db.execute = AsyncMock(return_value=_result(fetchone=None))
        assert await PayoutRepository().get_payout(db, "PO-404") is None

    async def test_lock_vendor_uses_advisory_lock(self, db) -> None:
        db.execute = AsyncMock(return_value=_result())

        await PayoutRepository().lock_vendor(db, "V-1")

        sql = str(db.execute.call_args.args[0])
        assert "pg_advisory_xact_lock" in sql
        assert db.execute.call_args.args[1] == {"vendor_id": "V-1"}

    async def test_mark_approved_guards_status_and_version(self, db) -> None:
        row = _make_payout_row(status="APPROVED", approved_amount=5_000, version=1)
        db.execute = AsyncMock(return_value=_result(fetchone=row))

        payout = await PayoutRepository().mark_approved(db, "PO-1", 0, 5_000, "admin-1")

        assert payout is not None
        assert payout.approved_amount == 5_000
        sql = str(db.execute.call_args.args[0])
        assert "status = 'PENDING'" in sql
        assert "version = :expected_version" in sql
        params = db.execute.call_args.args[1]
        assert params["expected_version"] == 0
        assert params["approved_amount"] == 5_000

    async def test_mark_approved_lost_race_returns_none(self, db) -> None:
        db.execute = AsyncMock(return_value=_result(fetchone=None))
        assert await PayoutRepository().mark_approved(db, "PO-1", 0, 5_000, "admin-1") is None

    async def test_list_payouts_parses_cursor_timestamp(self, db) -> None:
        db.execute = AsyncMock(return_value=_result(fetchall=[_make_payout_row()]))

        payouts = await PayoutRepository().list_payouts(
            db, "PENDING", None, "2026-01-01T00:00:00+00:00", "PO-9", 21
        )

        assert len(payouts) == 1
        params = db.execute.call_args.args[1]
        assert params["cursor_ts"] == datetime(2026, 1, 1, tzinfo=UTC)
        assert params["limit"] == 21

    async def test_sum_pending_requests(self, db) -> None:
        row = MagicMock()
        row.total = 25_000
        db.execute = AsyncMock(return_value=_result(fetchone=row))

        assert await PayoutRepository().sum_pending_requests(db, "V-1") == 25_000


class TestHoldRepository:
    async def test_list_active_holds_for_update(self, db) -> None:
        db.execute = AsyncMock(return_value=_result(fetchall=[_make_hold_row()]))

        holds = await HoldRepository().list_active_holds(db, "V-1", for_update=True)

        assert [h.id for h in holds] == ["HLD-1"]
        assert "FOR UPDATE" in str(db.execute.call_args.args[0])

    async def test_list_active_holds_plain_read(self, db) -> None:
        db.execute = AsyncMock(return_value=_result(fetchall=[]))

        await HoldRepository().list_active_holds(db, "V-1")

        assert "FOR UPDATE" not in str(db.execute.call_args.args[0])

    async def test_insert_hold_passes_refund_ids_as_list(self, db) -> None:
        db.execute = AsyncMock(
            return_value=_result(fetchone=_make_hold_row(refund_request_ids=["RF-1", "RF-2"]))
        )
        hold = PayoutHold(
            id="HLD-1",
            vendor_id="V-1",
            hold_amount=3_000,
            reason="pending refund",
            status="ACTIVE",
            refund_request_ids=["RF-1", "RF-2"],
        )

        created = await HoldRepository().insert_hold(db, hold)

        assert created.refund_request_ids == ["RF-1", "RF-2"]
        assert db.execute.call_args.args[1]["refund_request_ids"] == ["RF-1", "RF-2"]

    async def test_insert_hold_without_row_is_internal_error(self, db) -> None:
        db.execute = AsyncMock(return_value=_result(fetchone=None))
        hold = PayoutHold(id="HLD-1", vendor_id="V-1", hold_amount=1, reason="x", status="ACTIVE")

        with pytest.raises(InternalError):
            await HoldRepository().insert_hold(db, hold)

    async def test_mark_released_only_from_active(self, db) -> None:
        db.execute = AsyncMock(return_value=_result(fetchone=None))

        assert await HoldRepository().mark_released(db, "HLD-1", "admin-1") is None
        assert "status = 'ACTIVE'" in str(db.execute.call_args.args[0])

    async def test_reduce_hold_only_lowers_active_amount(self, db) -> None:
        db.execute = AsyncMock(return_value=_result(fetchone=_make_hold_row(hold_amount=1_200)))

        hold = await HoldRepository().reduce_hold(db, "HLD-1", 1_200)

        assert hold is not None
        assert hold.hold_amount == 1_200
        sql = str(db.execute.call_args.args[0])
        assert "status = 'ACTIVE'" in sql
        assert "hold_amount >= :hold_amount" in sql
        assert db.execute.call_args.args[1] == {"hold_id": "HLD-1", "hold_amount": 1_200}

    async def test_releasable_holds_excludes_pending_refunds(self, db) -> None:
        db.execute = AsyncMock(return_value=_result(fetchall=[_make_hold_row()]))

        holds = await HoldRepository().list_releasable_holds_for_update(db, "RF-1")

        assert len(holds) == 1
        sql = str(db.execute.call_args.args[0])
        assert "NOT EXISTS" in sql
        assert "FOR UPDATE OF h" in sql

    async def test_active_totals_by_vendor(self, db) -> None:
        row = MagicMock()
        row.vendor_id = "V-1"
        row.total = 4_000
        db.execute = AsyncMock(return_value=_result(fetchall=[row]))

        assert await HoldRepository().active_totals_by_vendor(db) == {"V-1": 4_000}
