"""RefundRepository: reads pending refund exposure, resolves refund requests."""

from typing import Any

from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

from src.mp_refund.domain.models import RefundExposure, RefundRequest

_REFUND_COLUMNS = """
    id, vendor_id, customer_id, order_item_id, refund_amount, status, reason,
    created_at, resolved_at
"""

_GET_REFUND_FOR_UPDATE_SQL = text(
    f"SELECT {_REFUND_COLUMNS} FROM refund_requests WHERE id = :refund_id FOR UPDATE"
)

_GET_REFUNDS_BY_IDS_SQL = text(f"""
    SELECT {_REFUND_COLUMNS}
    FROM refund_requests
    WHERE id = ANY(CAST(:refund_ids AS VARCHAR(64)[]))
    ORDER BY created_at, id
""")

_LIST_REFUNDS_SQL = text(f"""
    SELECT {_REFUND_COLUMNS}
    FROM refund_requests
    WHERE
        (CAST(:vendor_id AS TEXT) IS NULL OR vendor_id = CAST(:vendor_id AS TEXT))
        AND (CAST(:status AS TEXT) IS NULL OR status = CAST(:status AS TEXT))
    ORDER BY created_at DESC, id DESC
""")

_EXPOSURE_SQL = text("""
    SELECT COUNT(*) AS pending_count, COALESCE(SUM(refund_amount), 0) AS pending_amount
    FROM refund_requests
    WHERE vendor_id = :vendor_id AND status = 'PENDING'
""")

_EXPOSURE_BY_VENDOR_SQL = text("""
    SELECT vendor_id,
           COUNT(*) AS pending_count,
           COALESCE(SUM(refund_amount), 0) AS pending_amount
    FROM refund_requests
    WHERE status = 'PENDING'
    GROUP BY vendor_id
""")

_RESOLVE_REFUND_SQL = text(f"""
    UPDATE refund_requests
    SET status = :status, resolved_at = NOW()
    WHERE id = :refund_id AND status = 'PENDING'
    RETURNING {_REFUND_COLUMNS}
""")


def _row_to_refund(row: Any) -> RefundRequest:
    return RefundRequest(
        id=row.id,
        vendor_id=row.vendor_id,
        customer_id=row.customer_id,
        order_item_id=row.order_item_id,
        refund_amount=int(row.refund_amount),
        status=row.status,
        reason=row.reason,
        created_at=row.created_at,
        resolved_at=row.resolved_at,
    )


class RefundRepository:
    async def get_refund_for_update(
        self, db: AsyncSession, refund_id: str
    ) -> RefundRequest | None:
        result = await db.execute(_GET_REFUND_FOR_UPDATE_SQL, {"refund_id": refund_id})
        row = result.fetchone()
        return _row_to_refund(row) if row else None

    async def get_refunds_by_ids(
        self, db: AsyncSession, refund_ids: list[str]
    ) -> list[RefundRequest]:
        if not refund_ids:
            return []
        result = await db.execute(_GET_REFUNDS_BY_IDS_SQL, {"refund_ids": refund_ids})
        return [_row_to_refund(row) for row in result.fetchall()]

    async def list_refunds(
        self, db: AsyncSession, vendor_id: str | None, status: str | None
    ) -> list[RefundRequest]:
        result = await db.execute(
            _LIST_REFUNDS_SQL, {"vendor_id": vendor_id, "status": status}
        )
        return [_row_to_refund(row) for row in result.fetchall()]

    async def get_exposure(self, db: AsyncSession, vendor_id: str) -> RefundExposure:
        result = await db.execute(_EXPOSURE_SQL, {"vendor_id": vendor_id})
        row = result.fetchone()
        if row is None:
            return RefundExposure(vendor_id=vendor_id)
        return RefundExposure(
            vendor_id=vendor_id,
            pending_count=int(row.pending_count),
            pending_amount=int(row.pending_amount),
        )

    async def exposure_by_vendor(self, db: AsyncSession) -> dict[str, RefundExposure]:
        result = await db.execute(_EXPOSURE_BY_VENDOR_SQL)
        return {
            row.vendor_id: RefundExposure(
                vendor_id=row.vendor_id,
                pending_count=int(row.pending_count),
                pending_amount=int(row.pending_amount),
            )
            for row in result.fetchall()
        }

    async def mark_resolved(
        self, db: AsyncSession, refund_id: str, status: str
    ) -> RefundRequest | None:
        result = await db.execute(
            _RESOLVE_REFUND_SQL, {"refund_id": refund_id, "status": status}
        )
        row = result.fetchone()
        return _row_to_refund(row) if row else None
