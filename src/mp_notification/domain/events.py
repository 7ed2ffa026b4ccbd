"""Vendor-facing notification events.

Published on Redis Pub/Sub after the payout transaction commits. Consumers
(email, in-app inbox) subscribe per vendor channel.
"""

import json
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any

from src.mp_common.datetime_utils import utc_now
from src.mp_common.enums import NotificationType


@dataclass(frozen=True)
class VendorNotification:
    type: NotificationType
    vendor_id: str
    title: str
    message: str
    payload: dict[str, Any] = field(default_factory=dict)
    created_at: datetime = field(default_factory=utc_now)

    def to_json(self) -> str:
        return json.dumps(
            {
                "type": self.type.value,
                "vendor_id": self.vendor_id,
                "title": self.title,
                "message": self.message,
                "payload": self.payload,
                "created_at": self.created_at.isoformat(),
            }
        )
