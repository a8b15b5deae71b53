from __future__ import annotations

from uuid import uuid4

import pytest
from fastapi.testclient import TestClient

from creator_direct.api.main import app
from creator_direct.core.analytics import AnalyticsSnapshot
from creator_direct.core.auth import AuthContext, require_auth_context
from creator_direct.core.context import get_current_escrow_id
from creator_direct.core.errors import InsufficientFunds, InvalidTier, TierNotConfigured, TransferFailed, Unauthorized
from creator_direct.core.escrow import EscrowParams, SubscriptionInfo, SubscriptionResult
from creator_direct.core.pricing import TierPrices
from creator_direct.core.repositories.base import (
    EscrowContextMissingError,
    EscrowNotFoundError,
    PaymentAlreadyConsumedError,
    PaymentNotFoundError,
)
from creator_direct.core.service import get_escrow_service


class _FakeService:
    def __init__(self) -> None:
        self.calls: list[tuple] = []
        self.escrow_ids: list[object] = []
        self.escrow_id = uuid4()
        self.error: Exception | None = None
        self.params = EscrowParams(100, 5, "Demo", "Desc", "creator")

    def _record(self, *call: object) -> None:
        self.calls.append(call)
        self.escrow_ids.append(get_current_escrow_id())
        if self.error is not None:
            raise self.error

    async def construct(self, caller, *, base_price, period_length, name, description):  # noqa: ANN001
        self._record("construct", caller, base_price, period_length, name, description)
        return self.escrow_id

    async def subscribe(self, caller, payment_reference, tier=None):  # noqa: ANN001
        self._record("subscribe", caller, payment_reference, tier)
        return SubscriptionResult(3, 15)

    async def gift_subscription(self, caller, recipient, tier, payment_reference):  # noqa: ANN001
        self._record("gift", caller, recipient, tier, payment_reference)
        return SubscriptionResult(1, 5)

    async def set_auto_renewal(self, caller, enabled):  # noqa: ANN001
        self._record("auto_renewal", caller, enabled)

    async def get_subscription_info(self, account):  # noqa: ANN001
        self._record("info", account)
        return SubscriptionInfo(True, 15, 2, True)

    async def is_active(self, account):  # noqa: ANN001
        self._record("active", account)
        return True

    async def is_auto_renewal_enabled(self, account):  # noqa: ANN001
        self._record("auto_renewal_enabled", account)
        return False

    async def get_token(self, account):  # noqa: ANN001
        self._record("token", account)
        return None if account == "nobody" else 1

    async def get_subscriber_tier(self, account):  # noqa: ANN001
        self._record("tier", account)
        return 2

    async def get_params(self):
        self._record("params")
        return self.params

    async def update_params(self, caller, price, period):  # noqa: ANN001
        self._record("update_params", caller, price, period)
        self.params = self.params._replace(price=price, period=period)

    async def get_tier_price(self, tier):  # noqa: ANN001
        self._record("tier_price", tier)
        return 100 * (tier + 1) if 0 <= tier <= 2 else 0

    async def get_all_tier_prices(self):
        self._record("tier_prices")
        return TierPrices(100, 200, 300)

    async def update_tier_price(self, caller, tier, price):  # noqa: ANN001
        self._record("update_tier_price", caller, tier, price)

    async def withdraw(self, caller):  # noqa: ANN001
        self._record("withdraw", caller)
        return 400

    async def analytics(self):
        self._record("analytics")
        return AnalyticsSnapshot(2, 400, 2)

    async def record_payment(self, escrow_id, *, reference, payer, amount):  # noqa: ANN001
        self._record("record_payment", escrow_id, reference, payer, amount)
        return True


@pytest.fixture
def auth_context() -> AuthContext:
    return AuthContext(account="creator", claims={"sub": "creator"})


@pytest.fixture
def service() -> _FakeService:
    return _FakeService()


@pytest.fixture
def client(auth_context: AuthContext, service: _FakeService):
    async def _auth_override() -> AuthContext:
        return auth_context

    async def _service_override() -> _FakeService:
        return service

    app.dependency_overrides[require_auth_context] = _auth_override
    app.dependency_overrides[get_escrow_service] = _service_override
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()


@pytest.fixture
def escrow_headers() -> dict[str, str]:
    return {"X-Escrow-Id": str(uuid4())}


def test_health_endpoint(client: TestClient) -> None:
    res = client.get("/health")
    assert res.status_code == 200
    assert res.json() == {"status": "ok"}


def test_construct_escrow(client: TestClient, service: _FakeService) -> None:
    res = client.post(
        "/api/v1/escrows",
        json={"base_price": 100, "period_length": 5, "name": "Demo", "description": "Desc"},
    )

    assert res.status_code == 201
    assert res.json() == {"escrow_id": str(service.escrow_id), "creator": "creator"}
    assert service.calls == [("construct", "creator", 100, 5, "Demo", "Desc")]


def test_construct_escrow_validates_payload(client: TestClient, service: _FakeService) -> None:
    res = client.post("/api/v1/escrows", json={"base_price": -1, "period_length": 5, "name": "Demo"})
    assert res.status_code == 422

    res = client.post("/api/v1/escrows", json={"base_price": 1, "period_length": 0, "name": "Demo"})
    assert res.status_code == 422
    assert service.calls == []


def test_escrow_header_sets_context(client: TestClient, service: _FakeService) -> None:
    escrow_id = uuid4()
    res = client.get("/api/v1/escrow/params", headers={"X-Escrow-Id": str(escrow_id)})

    assert res.status_code == 200
    assert res.json() == {"price": 100, "period": 5, "name": "Demo", "description": "Desc", "creator": "creator"}
    assert service.escrow_ids == [escrow_id]
    assert get_current_escrow_id() is None


def test_invalid_escrow_header_rejected(client: TestClient, service: _FakeService) -> None:
    res = client.get("/api/v1/escrow/params", headers={"X-Escrow-Id": "not-a-uuid"})
    assert res.status_code == 400
    assert service.calls == []


def test_update_params_returns_new_params(
    client: TestClient, service: _FakeService, escrow_headers: dict[str, str]
) -> None:
    res = client.patch("/api/v1/escrow/params", json={"price": 250, "period": 10}, headers=escrow_headers)

    assert res.status_code == 200
    assert res.json()["price"] == 250
    assert res.json()["period"] == 10
    assert service.calls[0] == ("update_params", "creator", 250, 10)


def test_tier_routes(client: TestClient, service: _FakeService, escrow_headers: dict[str, str]) -> None:
    res = client.get("/api/v1/escrow/tiers", headers=escrow_headers)
    assert res.json() == {"price0": 100, "price1": 200, "price2": 300}

    res = client.get("/api/v1/escrow/tiers/2", headers=escrow_headers)
    assert res.json() == {"tier": 2, "price": 300}

    res = client.get("/api/v1/escrow/tiers/7", headers=escrow_headers)
    assert res.json() == {"tier": 7, "price": 0}

    res = client.put("/api/v1/escrow/tiers/1", json={"price": 999}, headers=escrow_headers)
    assert res.status_code == 200
    assert res.json() == {"tier": 1, "price": 999}
    assert service.calls[-1] == ("update_tier_price", "creator", 1, 999)


def test_withdraw_and_analytics(client: TestClient, escrow_headers: dict[str, str]) -> None:
    res = client.post("/api/v1/escrow/withdraw", headers=escrow_headers)
    assert res.status_code == 200
    assert res.json() == {"amount": 400}

    res = client.get("/api/v1/escrow/analytics", headers=escrow_headers)
    assert res.json() == {"total_subscribers": 2, "total_revenue": 400, "active_count": 2}


def test_subscribe_routes(client: TestClient, service: _FakeService, escrow_headers: dict[str, str]) -> None:
    res = client.post("/api/v1/subscriptions", json={"payment_id": "pi_1"}, headers=escrow_headers)
    assert res.status_code == 200
    assert res.json() == {"periods": 3, "new_expiry": 15}

    client.post("/api/v1/subscriptions", json={"payment_id": "pi_2", "tier": 1}, headers=escrow_headers)
    assert service.calls == [("subscribe", "creator", "pi_1", None), ("subscribe", "creator", "pi_2", 1)]

    res = client.post(
        "/api/v1/subscriptions/gift",
        json={"recipient": "bob", "payment_id": "pi_3"},
        headers=escrow_headers,
    )
    assert res.json() == {"periods": 1, "new_expiry": 5}
    assert service.calls[-1] == ("gift", "creator", "bob", 0, "pi_3")


def test_subscribe_requires_payment_id(
    client: TestClient, service: _FakeService, escrow_headers: dict[str, str]
) -> None:
    res = client.post("/api/v1/subscriptions", json={"amount": 300}, headers=escrow_headers)
    assert res.status_code == 422

    res = client.post("/api/v1/subscriptions", json={"payment_id": ""}, headers=escrow_headers)
    assert res.status_code == 422
    assert service.calls == []


@pytest.mark.parametrize(
    "error, status_code",
    [
        (PaymentNotFoundError("pi_1"), 402),
        (PaymentAlreadyConsumedError("pi_1"), 409),
    ],
)
def test_payment_errors_map_to_status(
    client: TestClient,
    service: _FakeService,
    escrow_headers: dict[str, str],
    error: Exception,
    status_code: int,
) -> None:
    service.error = error
    res = client.post("/api/v1/subscriptions", json={"payment_id": "pi_1"}, headers=escrow_headers)

    assert res.status_code == status_code
    assert "detail" in res.json()


def test_subscriber_queries(client: TestClient, escrow_headers: dict[str, str]) -> None:
    assert client.get("/api/v1/subscriptions/alice", headers=escrow_headers).json() == {
        "is_active": True,
        "expiry": 15,
        "now": 2,
        "has_pass": True,
    }
    assert client.get("/api/v1/subscriptions/alice/active", headers=escrow_headers).json() == {
        "account": "alice",
        "active": True,
    }
    assert client.get("/api/v1/subscriptions/alice/token", headers=escrow_headers).json() == {
        "account": "alice",
        "token_id": 1,
    }
    assert client.get("/api/v1/subscriptions/nobody/token", headers=escrow_headers).json() == {
        "account": "nobody",
        "token_id": None,
    }
    assert client.get("/api/v1/subscriptions/alice/tier", headers=escrow_headers).json() == {
        "account": "alice",
        "tier": 2,
    }
    assert client.get("/api/v1/subscriptions/alice/auto-renewal", headers=escrow_headers).json() == {
        "account": "alice",
        "enabled": False,
    }


def test_set_auto_renewal_uses_caller(client: TestClient, service: _FakeService, escrow_headers: dict[str, str]) -> None:
    res = client.put("/api/v1/subscriptions/auto-renewal", json={"enabled": True}, headers=escrow_headers)

    assert res.json() == {"account": "creator", "enabled": True}
    assert service.calls == [("auto_renewal", "creator", True)]


@pytest.mark.parametrize(
    "error, status_code, kind",
    [
        (InvalidTier(), 400, "InvalidTier"),
        (TierNotConfigured(), 409, "TierNotConfigured"),
        (InsufficientFunds(), 402, "InsufficientFunds"),
        (Unauthorized(), 403, "Unauthorized"),
        (TransferFailed(), 502, "TransferFailed"),
    ],
)
def test_escrow_errors_map_to_status(
    client: TestClient,
    service: _FakeService,
    escrow_headers: dict[str, str],
    error: Exception,
    status_code: int,
    kind: str,
) -> None:
    service.error = error
    res = client.post("/api/v1/subscriptions", json={"payment_id": "pi_1"}, headers=escrow_headers)

    assert res.status_code == status_code
    assert res.json()["error"] == kind


def test_missing_or_unknown_escrow(client: TestClient, service: _FakeService, escrow_headers: dict[str, str]) -> None:
    service.error = EscrowContextMissingError("missing")
    res = client.get("/api/v1/escrow/analytics")
    assert res.status_code == 400
    assert res.json() == {"detail": "X-Escrow-Id header is required"}

    service.error = EscrowNotFoundError("Escrow does not exist")
    res = client.get("/api/v1/escrow/analytics", headers=escrow_headers)
    assert res.status_code == 404


def _payment_event(escrow_id: object, **object_overrides: object) -> dict:
    payment = {
        "id": "pi_1",
        "amount_received": 300,
        "metadata": {"account": "alice", "escrow_id": str(escrow_id)},
    }
    payment.update(object_overrides)
    return {"type": "payment_intent.succeeded", "data": {"object": payment}}


@pytest.fixture
def signed_webhooks(monkeypatch: pytest.MonkeyPatch) -> list[tuple]:
    from creator_direct.api.routes import webhooks

    verified: list[tuple] = []

    def _construct_event(payload, sig_header, secret):  # noqa: ANN001
        if sig_header != "t=1,v1=good":
            raise ValueError("No signatures found matching the expected signature")
        verified.append((sig_header, secret))
        return {}

    monkeypatch.setattr(webhooks.settings, "stripe_webhook_secret", "whsec_test")
    monkeypatch.setattr(webhooks.stripe.Webhook, "construct_event", _construct_event)
    return verified


def test_payment_webhook_records_signed_deposit(
    client: TestClient, service: _FakeService, signed_webhooks: list[tuple]
) -> None:
    escrow_id = uuid4()
    res = client.post(
        "/api/v1/webhooks/payments",
        json=_payment_event(escrow_id),
        headers={"Stripe-Signature": "t=1,v1=good"},
    )

    assert res.status_code == 200
    assert res.json() == {
        "received": True,
        "event_type": "payment_intent.succeeded",
        "payment_id": "pi_1",
        "recorded": True,
    }
    assert signed_webhooks == [("t=1,v1=good", "whsec_test")]
    assert service.calls == [("record_payment", escrow_id, "pi_1", "alice", 300)]


def test_payment_webhook_rejects_unsigned_or_forged_events(
    client: TestClient, service: _FakeService, signed_webhooks: list[tuple]
) -> None:
    res = client.post("/api/v1/webhooks/payments", json=_payment_event(uuid4()))
    assert res.status_code == 401

    res = client.post(
        "/api/v1/webhooks/payments",
        json=_payment_event(uuid4()),
        headers={"Stripe-Signature": "t=1,v1=forged"},
    )
    assert res.status_code == 400
    assert service.calls == []


def test_payment_webhook_requires_configured_secret(
    client: TestClient, service: _FakeService, monkeypatch: pytest.MonkeyPatch
) -> None:
    from creator_direct.api.routes import webhooks

    monkeypatch.setattr(webhooks.settings, "stripe_webhook_secret", "")
    res = client.post(
        "/api/v1/webhooks/payments",
        json=_payment_event(uuid4()),
        headers={"Stripe-Signature": "t=1,v1=good"},
    )

    assert res.status_code == 401
    assert service.calls == []


def test_payment_webhook_ignores_other_event_types(
    client: TestClient, service: _FakeService, signed_webhooks: list[tuple]
) -> None:
    res = client.post(
        "/api/v1/webhooks/payments",
        json={"type": "charge.refunded", "data": {"object": {}}},
        headers={"Stripe-Signature": "t=1,v1=good"},
    )

    assert res.status_code == 200
    assert res.json()["recorded"] is False
    assert service.calls == []


@pytest.mark.parametrize(
    "overrides",
    [
        {"metadata": {"account": "alice", "escrow_id": "nope"}},
        {"metadata": {"escrow_id": "00000000-0000-0000-0000-000000000001"}},
        {"amount_received": 0},
        {"amount_received": "300"},
        {"id": None},
    ],
)
def test_payment_webhook_rejects_incomplete_deposits(
    client: TestClient, service: _FakeService, signed_webhooks: list[tuple], overrides: dict
) -> None:
    res = client.post(
        "/api/v1/webhooks/payments",
        json=_payment_event(uuid4(), **overrides),
        headers={"Stripe-Signature": "t=1,v1=good"},
    )

    assert res.status_code == 400
    assert service.calls == []
