from __future__ import annotations

from decimal import Decimal

from app.repositories import PaymentRepository
from processor.fetchers import (
    SOURCE_BALANCE,
    SOURCE_CHARGES,
    SOURCE_INTERNAL,
    FetchLimits,
    SourceFetchers,
)


def _fetchers(session, processor, **kwargs):
    return SourceFetchers(processor, PaymentRepository(session), max_workers=2, **kwargs)


def test_fetch_balance_sums_currency_entries(db_session, fake_processor):
    fake_processor.balance = {
        "available": [{"amount": 1000, "currency": "usd"}, {"amount": 250, "currency": "usd"}],
        "pending": [{"amount": 75, "currency": "usd"}],
    }

    result = _fetchers(db_session, fake_processor).fetch_balance("acct_creator")

    assert result.degraded is False
    assert result.records.available == Decimal("12.50")
    assert result.records.pending == Decimal("0.75")


def test_failed_source_degrades_instead_of_raising(db_session, fake_processor):
    fake_processor.failures["list_charges"] = RuntimeError("rate limited")

    result = _fetchers(db_session, fake_processor).fetch_charges("acct_creator")

    assert result.degraded is True
    assert result.records == []
    assert result.source == SOURCE_CHARGES
    assert result.error == "rate limited"


def test_charges_are_filtered_to_the_connected_account(db_session, fake_processor):
    fake_processor.charges = [
        {"id": "ch_mine", "amount": 500, "created": 1768478400, "transfer_data": {"destination": "acct_creator"}},
        {"id": "ch_theirs", "amount": 500, "created": 1768478400, "destination": "acct_other"},
        {"id": "ch_platform", "amount": 500, "created": 1768478400},
    ]

    result = _fetchers(db_session, fake_processor).fetch_charges("acct_creator")

    assert [charge.charge_id for charge in result.records] == ["ch_mine"]


def test_limits_are_passed_to_processor(db_session, fake_processor):
    fake_processor.payouts = [
        {"id": f"po_{index}", "amount": 100, "status": "paid", "created": 1768478400}
        for index in range(5)
    ]
    fetchers = _fetchers(db_session, fake_processor, limits=FetchLimits(payouts=2))

    result = fetchers.fetch_payouts("acct_creator")

    assert [payout.payout_id for payout in result.records] == ["po_0", "po_1"]


def test_missing_processor_degrades_every_processor_source(db_session):
    sources = _fetchers(db_session, None).fetch_creator_sources("user_1", "acct_creator")

    degraded = sources.degraded_sources()
    assert SOURCE_BALANCE in degraded
    assert SOURCE_INTERNAL not in degraded
    assert len(degraded) == 5


def test_fetch_creator_sources_settles_all_sources(db_session, fake_processor):
    fake_processor.failures["get_balance"] = RuntimeError("timeout")
    fake_processor.intents = [
        {"id": "pi_1", "amount": 2500, "status": "succeeded", "created": 1768478400}
    ]
    PaymentRepository(db_session).add_payment(record_id="rec_1", owner_id="user_1", amount=1500)

    sources = _fetchers(db_session, fake_processor).fetch_creator_sources("user_1", "acct_creator")

    assert sources.degraded_sources() == [SOURCE_BALANCE]
    assert [intent.intent_id for intent in sources.intents.records] == ["pi_1"]
    assert [payment.record_id for payment in sources.internal.records] == ["rec_1"]
    assert sources.internal.records[0].amount == Decimal("15.00")
