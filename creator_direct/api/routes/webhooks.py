from __future__ import annotations

import json
from uuid import UUID

import stripe
from fastapi import APIRouter, Depends, Header, HTTPException, Request, status

from creator_direct.core.config import settings
from creator_direct.core.service import EscrowService, get_escrow_service
from creator_direct.schemas.payment import PaymentWebhookResponse

router = APIRouter(prefix="/webhooks", tags=["webhooks"])

PAYMENT_SUCCEEDED = "payment_intent.succeeded"


def _verify_and_parse_event(raw_body: bytes, stripe_signature: str | None) -> dict:
    # Only signed events may record a deposit.
    if not settings.stripe_webhook_secret or not stripe_signature:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Missing Stripe signature",
        )

    try:
        stripe.Webhook.construct_event(
            payload=raw_body,
            sig_header=stripe_signature,
            secret=settings.stripe_webhook_secret,
        )
    except Exception as exc:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Invalid Stripe signature: {exc}",
        ) from exc

    try:
        return json.loads(raw_body.decode("utf-8"))
    except json.JSONDecodeError as exc:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Invalid webhook payload",
        ) from exc


def _extract_deposit(payload: dict) -> tuple[UUID, str, str, int]:
    data = (payload.get("data") or {}).get("object") or {}
    metadata = data.get("metadata") or {}
    reference = data.get("id")
    payer = metadata.get("account")
    amount = data.get("amount_received")
    try:
        escrow_id = UUID(str(metadata.get("escrow_id")))
    except ValueError as exc:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Webhook payload missing escrow identifier",
        ) from exc

    if not reference or not payer or not isinstance(amount, int) or amount <= 0:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Webhook payload missing payment reference, account or amount",
        )
    return escrow_id, reference, payer, amount


@router.post("/payments", response_model=PaymentWebhookResponse)
async def payment_webhook(
    request: Request,
    service: EscrowService = Depends(get_escrow_service),
    stripe_signature: str | None = Header(default=None, alias="Stripe-Signature"),
) -> PaymentWebhookResponse:
    raw_body = await request.body()
    payload = _verify_and_parse_event(raw_body, stripe_signature)
    event_type = payload.get("type", "unknown")

    if event_type != PAYMENT_SUCCEEDED:
        return PaymentWebhookResponse(received=True, event_type=event_type, recorded=False)

    escrow_id, reference, payer, amount = _extract_deposit(payload)
    recorded = await service.record_payment(escrow_id, reference=reference, payer=payer, amount=amount)
    return PaymentWebhookResponse(
        received=True,
        event_type=event_type,
        payment_id=reference,
        recorded=recorded,
    )
