from __future__ import annotations

from datetime import datetime, timedelta, timezone
from decimal import Decimal

from app.domain import TransactionStatus
from app.models import PaymentCollection, PrizeStatus
from app.repositories import (
    AccountRepository,
    PaymentRepository,
    PrizeRepository,
    map_payment_status,
    to_internal_payment,
    to_prize_entry,
)

T0 = datetime(2026, 1, 15, 12, 0, tzinfo=timezone.utc)


def test_upsert_user_updates_only_given_fields(db_session):
    accounts = AccountRepository(db_session)
    accounts.upsert_user("user_1", email="a@example.com", creator_account_id="acct_1")
    accounts.upsert_user("user_1", winner_account_id="acct_2")

    user = accounts.get_user("user_1")
    assert user.email == "a@example.com"
    assert user.creator_account_id == "acct_1"
    assert user.winner_account_id == "acct_2"
    assert [row.user_id for row in accounts.list_creator_accounts()] == ["user_1"]


def test_primary_rows_come_before_legacy_rows(db_session):
    payments = PaymentRepository(db_session)
    payments.add_payment(
        record_id="legacy_new",
        owner_id="user_1",
        amount=100,
        collection=PaymentCollection.LEGACY_PAYMENTS,
        created_at=T0,
    )
    payments.add_payment(
        record_id="primary_old",
        owner_id="user_1",
        amount=100,
        created_at=T0 - timedelta(days=30),
    )
    payments.add_payment(
        record_id="synced",
        owner_id="user_1",
        amount=100,
        collection=PaymentCollection.PROCESSOR_SYNC,
        created_at=T0 - timedelta(days=1),
    )
    payments.add_payment(record_id="someone_else", owner_id="user_2", amount=100)

    rows = payments.list_for_owner("user_1")

    assert [row.record_id for row in rows] == ["synced", "primary_old", "legacy_new"]


def test_existing_keys_matches_payment_and_record_ids(db_session):
    payments = PaymentRepository(db_session)
    payments.add_payment(record_id="rec_1", payment_id="pi_1", owner_id="user_1", amount=100)

    assert payments.existing_keys(["pi_1", "rec_1", "ch_unknown", None]) == {"pi_1", "rec_1"}
    assert payments.existing_keys([]) == set()


def test_internal_payment_uses_gross_amount_and_utc(db_session):
    row = PaymentRepository(db_session).add_payment(
        record_id="rec_1",
        owner_id="user_1",
        amount=2500,
        owner_amount=2425,
        platform_fee=75,
        status="requires_capture",
        created_at=T0,
    )
    db_session.expire(row)

    payment = to_internal_payment(row)

    assert payment.amount == Decimal("25.00")
    assert payment.status is TransactionStatus.PENDING
    assert payment.created_at == T0
    assert payment.dedup_key == "rec_1"


def test_map_payment_status():
    assert map_payment_status(None) is TransactionStatus.COMPLETED
    assert map_payment_status("Succeeded") is TransactionStatus.COMPLETED
    assert map_payment_status("processing") is TransactionStatus.PENDING
    assert map_payment_status("refunded") is TransactionStatus.FAILED


def test_prize_entries_are_in_currency_units(db_session):
    prizes = PrizeRepository(db_session)
    prizes.add_prize(
        record_id="prize_1",
        user_id="user_1",
        prize_amount=12345,
        status=PrizeStatus.PAID,
        placement=1,
        score=98.5,
        paid_at=T0,
        created_at=T0 - timedelta(days=1),
    )

    entry = to_prize_entry(prizes.list_for_user("user_1")[0])

    assert entry.amount == Decimal("123.45")
    assert entry.status == "paid"
    assert entry.paid_at == T0
    assert entry.score == 98.5
