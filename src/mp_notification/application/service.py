"""NotificationService: best-effort vendor notifications over Redis Pub/Sub.

Called only after a successful commit. A publish failure is logged and
swallowed; the payout or hold transition it describes has already happened.
"""

import logging

from redis.exceptions import RedisError

from config.settings import settings
from src.mp_common.enums import NotificationType
from src.mp_common.kobo import kobo_to_display
from src.mp_common.redis_client import get_redis
from src.mp_notification.domain.events import VendorNotification
from src.mp_payout.domain.models import PayoutHold, PayoutRequest

logger = logging.getLogger(__name__)


def vendor_channel(vendor_id: str) -> str:
    return f"{settings.NOTIFICATION_CHANNEL_PREFIX}:{vendor_id}"


class NotificationService:
    async def publish(self, notification: VendorNotification) -> bool:
        """Return True if the event reached Redis, False otherwise."""
        try:
            redis = await get_redis()
            await redis.publish(vendor_channel(notification.vendor_id), notification.to_json())
        except (RedisError, OSError) as exc:
            logger.warning(
                "Notification publish failed: type=%s vendor=%s error=%s",
                notification.type.value,
                notification.vendor_id,
                exc,
            )
            return False
        return True

    async def payout_approved(self, payout: PayoutRequest) -> bool:
        amount = payout.approved_amount if payout.approved_amount is not None else 0
        return await self.publish(
            VendorNotification(
                type=NotificationType.PAYOUT_PROCESSED,
                vendor_id=payout.vendor_id,
                title="Payout approved",
                message=f"Your payout of {kobo_to_display(amount)} has been approved.",
                payload={
                    "payout_id": payout.id,
                    "request_amount": payout.request_amount,
                    "approved_amount": amount,
                },
            )
        )

    async def payout_rejected(self, payout: PayoutRequest) -> bool:
        return await self.publish(
            VendorNotification(
                type=NotificationType.PAYOUT_FAILED,
                vendor_id=payout.vendor_id,
                title="Payout rejected",
                message=(
                    f"Your payout of {kobo_to_display(payout.request_amount)} was rejected: "
                    f"{payout.rejection_reason or 'no reason given'}"
                ),
                payload={"payout_id": payout.id, "reason": payout.rejection_reason},
            )
        )

    async def hold_created(self, hold: PayoutHold) -> bool:
        return await self.publish(
            VendorNotification(
                type=NotificationType.PAYOUT_ON_HOLD,
                vendor_id=hold.vendor_id,
                title="Payout on hold",
                message=(
                    f"{kobo_to_display(hold.hold_amount)} of your payouts is on hold "
                    f"pending refund review: {hold.reason}"
                ),
                payload={
                    "hold_id": hold.id,
                    "hold_amount": hold.hold_amount,
                    "refund_request_ids": list(hold.refund_request_ids),
                },
            )
        )

    async def hold_released(self, hold: PayoutHold) -> bool:
        return await self.publish(
            VendorNotification(
                type=NotificationType.PAYOUT_HOLD_RELEASED,
                vendor_id=hold.vendor_id,
                title="Payout hold released",
                message=f"A hold of {kobo_to_display(hold.hold_amount)} has been released.",
                payload={"hold_id": hold.id, "hold_amount": hold.hold_amount},
            )
        )
