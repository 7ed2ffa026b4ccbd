"""PayoutRepository / HoldRepository: concrete implementations of the Protocols.

Status transitions are single conditional UPDATE ... RETURNING statements:
0 rows means the guard (status, version) no longer holds and the caller
decides which error to raise.

Transaction ownership: the CALLER (application service) opens and commits
the transaction through `unit_of_work`.
"""

import json
from datetime import datetime
from typing import Any

from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

from src.mp_common.errors import InternalError
from src.mp_payout.domain.models import PayoutHold, PayoutRequest, PayoutStatusTotals

_PAYOUT_COLUMNS = """
    id, vendor_id, request_amount, approved_amount, status, rejection_reason,
    bank_details, decided_by, decided_at, version, created_at, updated_at
"""

_HOLD_COLUMNS = """
    id, vendor_id, payout_id, hold_amount, reason, status, refund_request_ids,
    created_by, created_at, released_at, released_by
"""

# ---------------------------------------------------------------------------
# SQL: payouts
# ---------------------------------------------------------------------------

_GET_PAYOUT_SQL = text(f"SELECT {_PAYOUT_COLUMNS} FROM payouts WHERE id = :payout_id")

_GET_PAYOUT_FOR_UPDATE_SQL = text(
    f"SELECT {_PAYOUT_COLUMNS} FROM payouts WHERE id = :payout_id FOR UPDATE"
)

# Serializes every balance decision for one vendor until COMMIT/ROLLBACK
_LOCK_VENDOR_SQL = text("SELECT pg_advisory_xact_lock(hashtext(:vendor_id))")

_APPROVE_PAYOUT_SQL = text(f"""
    UPDATE payouts
    SET status = 'APPROVED',
        approved_amount = :approved_amount,
        decided_by = :decided_by,
        decided_at = NOW(),
        version = version + 1,
        updated_at = NOW()
    WHERE id = :payout_id AND status = 'PENDING' AND version = :expected_version
    RETURNING {_PAYOUT_COLUMNS}
""")

_REJECT_PAYOUT_SQL = text(f"""
    UPDATE payouts
    SET status = 'REJECTED',
        rejection_reason = :reason,
        decided_by = :decided_by,
        decided_at = NOW(),
        version = version + 1,
        updated_at = NOW()
    WHERE id = :payout_id AND status = 'PENDING' AND version = :expected_version
    RETURNING {_PAYOUT_COLUMNS}
""")

_LIST_PAYOUTS_SQL = text(f"""
    SELECT {_PAYOUT_COLUMNS}
    FROM payouts
    WHERE
        (CAST(:status AS TEXT) IS NULL OR status = CAST(:status AS TEXT))
        AND (CAST(:vendor_id AS TEXT) IS NULL OR vendor_id = CAST(:vendor_id AS TEXT))
        AND (
            CAST(:cursor_ts AS TIMESTAMPTZ) IS NULL
            OR created_at < CAST(:cursor_ts AS TIMESTAMPTZ)
            OR (
                created_at = CAST(:cursor_ts AS TIMESTAMPTZ)
                AND id < CAST(:cursor_id AS TEXT)
            )
        )
    ORDER BY created_at DESC, id DESC
    LIMIT :limit
""")

_SUM_PENDING_SQL = text("""
    SELECT COALESCE(SUM(request_amount), 0) AS total
    FROM payouts
    WHERE vendor_id = :vendor_id AND status = 'PENDING'
""")

_PENDING_BY_VENDOR_SQL = text("""
    SELECT vendor_id, COALESCE(SUM(request_amount), 0) AS total
    FROM payouts
    WHERE status = 'PENDING'
    GROUP BY vendor_id
""")

_STATUS_TOTALS_SQL = text("""
    SELECT status,
           COUNT(*) AS count,
           COALESCE(SUM(request_amount), 0) AS amount,
           COALESCE(SUM(approved_amount), 0) AS approved_amount
    FROM payouts
    WHERE created_at >= :start AND created_at <= :end
    GROUP BY status
""")

# ---------------------------------------------------------------------------
# SQL: payout_holds
# ---------------------------------------------------------------------------

_GET_HOLD_FOR_UPDATE_SQL = text(
    f"SELECT {_HOLD_COLUMNS} FROM payout_holds WHERE id = :hold_id FOR UPDATE"
)

_LIST_ACTIVE_HOLDS_SQL = text(f"""
    SELECT {_HOLD_COLUMNS}
    FROM payout_holds
    WHERE vendor_id = :vendor_id AND status = 'ACTIVE'
    ORDER BY created_at, id
""")

_LIST_ACTIVE_HOLDS_FOR_UPDATE_SQL = text(f"""
    SELECT {_HOLD_COLUMNS}
    FROM payout_holds
    WHERE vendor_id = :vendor_id AND status = 'ACTIVE'
    ORDER BY created_at, id
    FOR UPDATE
""")

_LIST_HOLDS_SQL = text(f"""
    SELECT {_HOLD_COLUMNS}
    FROM payout_holds
    WHERE
        (CAST(:vendor_id AS TEXT) IS NULL OR vendor_id = CAST(:vendor_id AS TEXT))
        AND (CAST(:status AS TEXT) IS NULL OR status = CAST(:status AS TEXT))
    ORDER BY created_at DESC, id DESC
""")

_ACTIVE_BY_VENDOR_SQL = text("""
    SELECT vendor_id, COALESCE(SUM(hold_amount), 0) AS total
    FROM payout_holds
    WHERE status = 'ACTIVE'
    GROUP BY vendor_id
""")

_INSERT_HOLD_SQL = text(f"""
    INSERT INTO payout_holds
        (id, vendor_id, payout_id, hold_amount, reason, status,
         refund_request_ids, created_by)
    VALUES
        (:id, :vendor_id, :payout_id, :hold_amount, :reason, 'ACTIVE',
         CAST(:refund_request_ids AS VARCHAR(64)[]), :created_by)
    RETURNING {_HOLD_COLUMNS}
""")

_RELEASE_HOLD_SQL = text(f"""
    UPDATE payout_holds
    SET status = 'RELEASED',
        released_at = NOW(),
        released_by = :released_by
    WHERE id = :hold_id AND status = 'ACTIVE'
    RETURNING {_HOLD_COLUMNS}
""")

_REDUCE_HOLD_SQL = text(f"""
    UPDATE payout_holds
    SET hold_amount = :hold_amount
    WHERE id = :hold_id AND status = 'ACTIVE' AND hold_amount >= :hold_amount
    RETURNING {_HOLD_COLUMNS}
""")

# Active holds that reference the refund and have no PENDING refund left
_RELEASABLE_HOLDS_SQL = text(f"""
    SELECT {_HOLD_COLUMNS}
    FROM payout_holds h
    WHERE h.status = 'ACTIVE'
      AND :refund_id = ANY(h.refund_request_ids)
      AND NOT EXISTS (
          SELECT 1 FROM refund_requests r
          WHERE r.id = ANY(h.refund_request_ids) AND r.status = 'PENDING'
      )
    ORDER BY h.created_at, h.id
    FOR UPDATE OF h
""")


def _json_dict(value: Any) -> dict[str, Any]:
    # text() queries bypass the JSONB result processor; asyncpg hands back str
    if value is None:
        return {}
    if isinstance(value, str):
        return dict(json.loads(value))
    return dict(value)


def _row_to_payout(row: Any) -> PayoutRequest:
    return PayoutRequest(
        id=row.id,
        vendor_id=row.vendor_id,
        request_amount=int(row.request_amount),
        approved_amount=int(row.approved_amount) if row.approved_amount is not None else None,
        status=row.status,
        rejection_reason=row.rejection_reason,
        bank_details=_json_dict(row.bank_details),
        decided_by=row.decided_by,
        decided_at=row.decided_at,
        version=int(row.version),
        created_at=row.created_at,
        updated_at=row.updated_at,
    )


def _row_to_hold(row: Any) -> PayoutHold:
    return PayoutHold(
        id=row.id,
        vendor_id=row.vendor_id,
        payout_id=row.payout_id,
        hold_amount=int(row.hold_amount),
        reason=row.reason,
        status=row.status,
        refund_request_ids=list(row.refund_request_ids or []),
        created_by=row.created_by,
        created_at=row.created_at,
        released_at=row.released_at,
        released_by=row.released_by,
    )


class PayoutRepository:
    async def get_payout(self, db: AsyncSession, payout_id: str) -> PayoutRequest | None:
        result = await db.execute(_GET_PAYOUT_SQL, {"payout_id": payout_id})
        row = result.fetchone()
        return _row_to_payout(row) if row else None

    async def get_payout_for_update(
        self, db: AsyncSession, payout_id: str
    ) -> PayoutRequest | None:
        result = await db.execute(_GET_PAYOUT_FOR_UPDATE_SQL, {"payout_id": payout_id})
        row = result.fetchone()
        return _row_to_payout(row) if row else None

    async def lock_vendor(self, db: AsyncSession, vendor_id: str) -> None:
        await db.execute(_LOCK_VENDOR_SQL, {"vendor_id": vendor_id})

    async def mark_approved(
        self,
        db: AsyncSession,
        payout_id: str,
        expected_version: int,
        approved_amount: int,
        decided_by: str,
    ) -> PayoutRequest | None:
        result = await db.execute(
            _APPROVE_PAYOUT_SQL,
            {
                "payout_id": payout_id,
                "expected_version": expected_version,
                "approved_amount": approved_amount,
                "decided_by": decided_by,
            },
        )
        row = result.fetchone()
        return _row_to_payout(row) if row else None

    async def mark_rejected(
        self,
        db: AsyncSession,
        payout_id: str,
        expected_version: int,
        reason: str,
        decided_by: str,
    ) -> PayoutRequest | None:
        result = await db.execute(
            _REJECT_PAYOUT_SQL,
            {
                "payout_id": payout_id,
                "expected_version": expected_version,
                "reason": reason,
                "decided_by": decided_by,
            },
        )
        row = result.fetchone()
        return _row_to_payout(row) if row else None

    async def list_payouts(
        self,
        db: AsyncSession,
        status: str | None,
        vendor_id: str | None,
        cursor_ts: str | None,
        cursor_id: str | None,
        limit: int,
    ) -> list[PayoutRequest]:
        # asyncpg requires a real datetime object for TIMESTAMPTZ parameters
        cursor_ts_dt: datetime | None = None
        if cursor_ts is not None:
            cursor_ts_dt = datetime.fromisoformat(cursor_ts)

        result = await db.execute(
            _LIST_PAYOUTS_SQL,
            {
                "status": status,
                "vendor_id": vendor_id,
                "cursor_ts": cursor_ts_dt,
                "cursor_id": cursor_id,
                "limit": limit,
            },
        )
        return [_row_to_payout(row) for row in result.fetchall()]

    async def sum_pending_requests(self, db: AsyncSession, vendor_id: str) -> int:
        result = await db.execute(_SUM_PENDING_SQL, {"vendor_id": vendor_id})
        row = result.fetchone()
        return int(row.total) if row else 0

    async def pending_totals_by_vendor(self, db: AsyncSession) -> dict[str, int]:
        result = await db.execute(_PENDING_BY_VENDOR_SQL)
        return {row.vendor_id: int(row.total) for row in result.fetchall()}

    async def status_totals(
        self, db: AsyncSession, start: datetime, end: datetime
    ) -> list[PayoutStatusTotals]:
        result = await db.execute(_STATUS_TOTALS_SQL, {"start": start, "end": end})
        return [
            PayoutStatusTotals(
                status=row.status,
                count=int(row.count),
                amount=int(row.amount),
                approved_amount=int(row.approved_amount),
            )
            for row in result.fetchall()
        ]


class HoldRepository:
    async def get_hold_for_update(self, db: AsyncSession, hold_id: str) -> PayoutHold | None:
        result = await db.execute(_GET_HOLD_FOR_UPDATE_SQL, {"hold_id": hold_id})
        row = result.fetchone()
        return _row_to_hold(row) if row else None

    async def list_active_holds(
        self, db: AsyncSession, vendor_id: str, for_update: bool = False
    ) -> list[PayoutHold]:
        sql = _LIST_ACTIVE_HOLDS_FOR_UPDATE_SQL if for_update else _LIST_ACTIVE_HOLDS_SQL
        result = await db.execute(sql, {"vendor_id": vendor_id})
        return [_row_to_hold(row) for row in result.fetchall()]

    async def list_holds(
        self, db: AsyncSession, vendor_id: str | None, status: str | None
    ) -> list[PayoutHold]:
        result = await db.execute(_LIST_HOLDS_SQL, {"vendor_id": vendor_id, "status": status})
        return [_row_to_hold(row) for row in result.fetchall()]

    async def active_totals_by_vendor(self, db: AsyncSession) -> dict[str, int]:
        result = await db.execute(_ACTIVE_BY_VENDOR_SQL)
        return {row.vendor_id: int(row.total) for row in result.fetchall()}

    async def insert_hold(self, db: AsyncSession, hold: PayoutHold) -> PayoutHold:
        result = await db.execute(
            _INSERT_HOLD_SQL,
            {
                "id": hold.id,
                "vendor_id": hold.vendor_id,
                "payout_id": hold.payout_id,
                "hold_amount": hold.hold_amount,
                "reason": hold.reason,
                "refund_request_ids": hold.refund_request_ids,
                "created_by": hold.created_by,
            },
        )
        row = result.fetchone()
        if row is None:
            raise InternalError("Hold insert returned no rows")
        return _row_to_hold(row)

    async def mark_released(
        self, db: AsyncSession, hold_id: str, released_by: str | None
    ) -> PayoutHold | None:
        result = await db.execute(
            _RELEASE_HOLD_SQL, {"hold_id": hold_id, "released_by": released_by}
        )
        row = result.fetchone()
        return _row_to_hold(row) if row else None

    async def list_releasable_holds_for_update(
        self, db: AsyncSession, refund_id: str
    ) -> list[PayoutHold]:
        result = await db.execute(_RELEASABLE_HOLDS_SQL, {"refund_id": refund_id})
        return [_row_to_hold(row) for row in result.fetchall()]

    async def reduce_hold(
        self, db: AsyncSession, hold_id: str, hold_amount: int
    ) -> PayoutHold | None:
        """Lower an ACTIVE hold's amount; never raises it."""
        result = await db.execute(
            _REDUCE_HOLD_SQL, {"hold_id": hold_id, "hold_amount": hold_amount}
        )
        row = result.fetchone()
        return _row_to_hold(row) if row else None
