from __future__ import annotations

from pydantic import BaseModel


class PaymentWebhookResponse(BaseModel):
    received: bool
    event_type: str
    payment_id: str | None = None
    recorded: bool
