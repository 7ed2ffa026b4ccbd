"""Tests for mp_payout schemas: cursor round-trip and display fields."""

import base64
from datetime import UTC, datetime

import pytest
from pydantic import ValidationError

from src.mp_payout.application.schemas import (
    ApproveRequest,
    BulkApproveRequest,
    CreateHoldRequest,
    PayoutItem,
    cursor_decode,
    cursor_encode,
)
from src.mp_payout.domain.models import PayoutRequest


def _payout() -> PayoutRequest:
    return PayoutRequest(
        id="PO-7",
        vendor_id="V-1",
        request_amount=150_000,
        status="APPROVED",
        version=1,
        approved_amount=100_000,
        created_at=datetime(2026, 3, 1, 12, 0, tzinfo=UTC),
    )


class TestCursor:
    def test_encode_decode(self) -> None:
        ts, payout_id = cursor_decode(cursor_encode(_payout()))
        assert ts == "2026-03-01T12:00:00+00:00"
        assert payout_id == "PO-7"

    def test_none(self) -> None:
        assert cursor_decode(None) == (None, None)

    def test_garbage(self) -> None:
        assert cursor_decode("not-base64!!") == (None, None)

    def test_missing_keys(self) -> None:
        assert cursor_decode(base64.b64encode(b'{"x": 1}').decode()) == (None, None)

    def test_bad_timestamp(self) -> None:
        cursor = base64.b64encode(b'{"ts": "not-a-date", "id": "PO-1"}').decode()
        assert cursor_decode(cursor) == (None, None)

    def test_null_timestamp(self) -> None:
        cursor = base64.b64encode(b'{"ts": null, "id": "PO-1"}').decode()
        assert cursor_decode(cursor) == (None, None)


class TestPayoutItem:
    def test_display_fields(self) -> None:
        item = PayoutItem.from_domain(_payout())
        assert item.request_amount_display == "₦1,500.00"
        assert item.approved_amount_display == "₦1,000.00"
        assert item.created_at == "2026-03-01T12:00:00+00:00"


class TestRequestValidation:
    def test_amount_must_be_positive(self) -> None:
        with pytest.raises(ValidationError):
            ApproveRequest(amount_kobo=0)
        assert ApproveRequest().amount_kobo is None

    def test_bulk_needs_ids(self) -> None:
        with pytest.raises(ValidationError):
            BulkApproveRequest(payout_ids=[])

    def test_hold_amount_may_be_zero(self) -> None:
        body = CreateHoldRequest(
            vendor_id="V-1", reason="watch", refund_request_ids=["RF-1"], hold_amount_kobo=0
        )
        assert body.hold_amount_kobo == 0
