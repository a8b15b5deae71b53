from __future__ import annotations

from types import SimpleNamespace
from unittest.mock import AsyncMock, Mock
from uuid import uuid4

import pytest

from creator_direct.core.context import reset_current_escrow_id, set_current_escrow_id
from creator_direct.core.db import get_db_session
from creator_direct.core.ledger import InMemoryLedger
from creator_direct.core.records import CreatorConfig, SubscriberRecord
from creator_direct.core.repositories import (
    EscrowNotFoundError,
    EscrowRepository,
    EscrowScopedRepository,
    PaymentAlreadyConsumedError,
    PaymentNotFoundError,
    PaymentRepository,
    SubscriberRepository,
    TierPriceRepository,
    WithdrawalRepository,
)
from creator_direct.models import Escrow, Payment, Subscriber, TierPrice, Withdrawal


def _scalars_result(rows: list) -> SimpleNamespace:
    return SimpleNamespace(scalars=lambda: SimpleNamespace(all=lambda: rows))


def _session(*execute_results: object) -> Mock:
    session = Mock()
    session.execute = AsyncMock(side_effect=list(execute_results))
    session.add = Mock()
    session.flush = AsyncMock()
    session.scalar = AsyncMock()
    return session


@pytest.fixture
def escrow_id():
    value = uuid4()
    token = set_current_escrow_id(value)
    yield value
    reset_current_escrow_id(token)


def _escrow_row(**overrides: object) -> Escrow:
    values = dict(
        id=uuid4(),
        creator="creator",
        base_price=100,
        period_length=5,
        name="Demo",
        description="Desc",
        token_counter=1,
        total_subscribers=1,
        total_revenue=300,
        held_balance=300,
    )
    values.update(overrides)
    return Escrow(**values)


@pytest.mark.asyncio
async def test_get_db_session_yields_session(monkeypatch: pytest.MonkeyPatch) -> None:
    sentinel = object()

    class _Ctx:
        async def __aenter__(self):
            return sentinel

        async def __aexit__(self, exc_type, exc, tb):  # noqa: ANN001
            return None

    from creator_direct.core import db

    monkeypatch.setattr(db, "AsyncSessionLocal", lambda: _Ctx())

    agen = get_db_session()
    value = await agen.__anext__()
    assert value is sentinel

    with pytest.raises(StopAsyncIteration):
        await agen.__anext__()


def test_repository_exports_and_concrete_repositories_init() -> None:
    session = Mock()

    repo = EscrowRepository(session)

    assert isinstance(repo.tier_prices, TierPriceRepository)
    assert isinstance(repo.subscribers, SubscriberRepository)
    assert isinstance(repo.subscribers, EscrowScopedRepository)
    assert isinstance(repo.payments, PaymentRepository)
    assert isinstance(repo.withdrawals, WithdrawalRepository)
    assert repo.tier_prices.model is TierPrice
    assert repo.withdrawals.model is Withdrawal


@pytest.mark.asyncio
async def test_escrow_repository_create_flushes_row() -> None:
    session = _session()
    repo = EscrowRepository(session)

    row = await repo.create(
        CreatorConfig(creator="creator", base_price=100, period_length=5, name="Demo", description="")
    )

    assert row.creator == "creator"
    assert row.held_balance == 0
    session.add.assert_called_once_with(row)
    session.flush.assert_awaited_once()


@pytest.mark.asyncio
async def test_escrow_repository_get_missing_raises(escrow_id) -> None:  # noqa: ANN001
    session = _session()
    session.scalar = AsyncMock(return_value=None)

    with pytest.raises(EscrowNotFoundError):
        await EscrowRepository(session).get(for_update=True)


@pytest.mark.asyncio
async def test_escrow_repository_load_engine_hydrates_state(escrow_id) -> None:  # noqa: ANN001
    row = _escrow_row()
    prices = [TierPrice(escrow_id=escrow_id, tier=t, price=p) for t, p in [(0, 100), (1, 200), (2, 300)]]
    alice = Subscriber(
        escrow_id=escrow_id,
        account="alice",
        expiry_height=15,
        has_pass=True,
        tier=0,
        auto_renewal_enabled=False,
        token_id=1,
    )
    session = _session(_scalars_result(prices), _scalars_result([alice]))
    ledger = InMemoryLedger(height=4, balance=300)

    escrow = await EscrowRepository(session).load_engine(row, ledger, ["alice"])

    assert escrow.get_params() == (100, 5, "Demo", "Desc", "creator")
    assert escrow.get_all_tier_prices() == (100, 200, 300)
    assert escrow.get_subscription_info("alice") == (True, 15, 4, True)
    assert escrow.tokens.last_issued == 1
    assert escrow.analytics() == (1, 300, 1)


@pytest.mark.asyncio
async def test_load_engine_skips_subscriber_query_without_accounts(escrow_id) -> None:  # noqa: ANN001
    session = _session(_scalars_result([]))

    escrow = await EscrowRepository(session).load_engine(_escrow_row(), InMemoryLedger(), [])

    assert session.execute.await_count == 1
    assert len(escrow.subscribers) == 0


@pytest.mark.asyncio
async def test_store_engine_writes_counters_prices_and_subscribers(escrow_id) -> None:  # noqa: ANN001
    row = _escrow_row(token_counter=0, total_subscribers=0, total_revenue=0, held_balance=0)
    loaded_prices = [TierPrice(escrow_id=escrow_id, tier=t, price=p) for t, p in [(0, 100), (1, 200), (2, 300)]]
    load_session = _session(_scalars_result(loaded_prices), _scalars_result([]))
    ledger = InMemoryLedger(height=0)
    escrow = await EscrowRepository(load_session).load_engine(row, ledger, ["bob"])
    with ledger.call("bob", value=100):
        escrow.subscribe()

    existing_price = TierPrice(escrow_id=escrow_id, tier=0, price=50)
    store_session = _session(_scalars_result([existing_price]), _scalars_result([]))
    repo = EscrowRepository(store_session)

    await repo.store_engine(row, escrow, held_balance=ledger.held_balance())

    assert (row.token_counter, row.total_subscribers, row.total_revenue, row.held_balance) == (1, 1, 100, 100)
    assert existing_price.price == 100
    added = [call.args[0] for call in store_session.add.call_args_list]
    assert sorted(p.tier for p in added if isinstance(p, TierPrice)) == [1, 2]
    [bob] = [s for s in added if isinstance(s, Subscriber)]
    assert (bob.account, bob.expiry_height, bob.has_pass, bob.token_id) == ("bob", 5, True, 1)
    assert bob.escrow_id == escrow_id


@pytest.mark.asyncio
async def test_subscriber_save_updates_existing_rows(escrow_id) -> None:  # noqa: ANN001
    row = Subscriber(escrow_id=escrow_id, account="alice", expiry_height=5, has_pass=True, tier=0, token_id=1)
    session = _session(_scalars_result([row]))

    await SubscriberRepository(session).save(
        [SubscriberRecord(account="alice", expiry_height=12, has_pass=True, tier=2, auto_renewal_enabled=True, token_id=1)]
    )

    assert (row.expiry_height, row.tier, row.auto_renewal_enabled) == (12, 2, True)
    session.add.assert_not_called()
    session.flush.assert_awaited_once()


@pytest.mark.asyncio
async def test_subscriber_get_by_account_and_count_active(escrow_id) -> None:  # noqa: ANN001
    expected = object()
    session = _session(SimpleNamespace(scalar_one_or_none=lambda: expected))
    session.scalar = AsyncMock(return_value=3)
    repo = SubscriberRepository(session)

    assert await repo.get_by_account("alice") is expected
    assert await repo.count_active(10) == 3

    session.scalar = AsyncMock(return_value=None)
    assert await repo.count_active(10) == 0


@pytest.mark.asyncio
async def test_tier_price_repository_prices(escrow_id) -> None:  # noqa: ANN001
    rows = [TierPrice(escrow_id=escrow_id, tier=1, price=200)]
    session = _session(_scalars_result(rows))

    assert await TierPriceRepository(session).prices() == {1: 200}


@pytest.mark.asyncio
async def test_payment_record_stores_new_reference_once(escrow_id) -> None:  # noqa: ANN001
    session = _session()
    session.scalar = AsyncMock(return_value=None)
    repo = PaymentRepository(session)

    assert await repo.record("pi_1", "alice", 300) is True
    payment = session.add.call_args.args[0]
    assert (payment.reference, payment.payer, payment.amount, payment.consumed) == ("pi_1", "alice", 300, False)
    assert payment.escrow_id == escrow_id

    session.scalar = AsyncMock(return_value=payment)
    assert await repo.record("pi_1", "alice", 300) is False
    session.add.assert_called_once()


@pytest.mark.asyncio
async def test_payment_claim_marks_payment_consumed(escrow_id) -> None:  # noqa: ANN001
    payment = Payment(escrow_id=escrow_id, reference="pi_1", payer="alice", amount=300, consumed=False)
    session = _session()
    session.scalar = AsyncMock(return_value=payment)

    claimed = await PaymentRepository(session).claim("pi_1", "alice")

    assert claimed is payment
    assert payment.consumed is True
    assert payment.consumed_at is not None
    statement = str(session.scalar.await_args.args[0])
    assert "FOR UPDATE" in statement
    assert "payments.payer = :payer_1" in statement


@pytest.mark.asyncio
async def test_payment_claim_rejects_unknown_and_spent_payments(escrow_id) -> None:  # noqa: ANN001
    session = _session()
    session.scalar = AsyncMock(return_value=None)
    repo = PaymentRepository(session)

    with pytest.raises(PaymentNotFoundError):
        await repo.claim("pi_missing", "alice")

    session.scalar = AsyncMock(
        return_value=Payment(escrow_id=escrow_id, reference="pi_1", payer="alice", amount=300, consumed=True)
    )
    with pytest.raises(PaymentAlreadyConsumedError):
        await repo.claim("pi_1", "alice")


@pytest.mark.asyncio
async def test_withdrawal_reserve_pending_and_settle(escrow_id) -> None:  # noqa: ANN001
    pending = Withdrawal(escrow_id=escrow_id, recipient="creator", amount=400, status="pending")
    session = _session(_scalars_result([pending]))
    repo = WithdrawalRepository(session)

    reserved = await repo.reserve("creator", 400)
    assert (reserved.recipient, reserved.amount, reserved.status) == ("creator", 400, "pending")
    assert reserved.escrow_id == escrow_id

    assert await repo.pending() == [pending]
    assert "withdrawals.status = :status_1" in str(session.execute.await_args.args[0])

    await repo.mark_settled(pending)
    assert pending.status == "settled"
    assert pending.settled_at is not None
    assert session.flush.await_count == 2
