from __future__ import annotations

from datetime import datetime, timedelta, timezone
from decimal import Decimal

from loguru import logger

from app.domain import (
    AccountSide,
    InternalPayment,
    ProcessorBalance,
    ProcessorCharge,
    ProcessorPaymentIntent,
    ProcessorTransfer,
    Provenance,
    TransactionStatus,
)
from app.services.reconciler import LedgerReconciler

T0 = datetime(2026, 1, 15, 12, 0, tzinfo=timezone.utc)


def _internal(record_id, amount, *, payment_id=None, minutes=0, collection="round_payments"):
    return InternalPayment(
        record_id=record_id,
        payment_id=payment_id,
        amount=Decimal(amount),
        created_at=T0 + timedelta(minutes=minutes),
        status=TransactionStatus.COMPLETED,
        collection=collection,
    )


def _intent(intent_id, amount, *, status="succeeded", seconds=0):
    return ProcessorPaymentIntent(
        intent_id=intent_id,
        amount=Decimal(amount),
        created_at=T0 + timedelta(seconds=seconds),
        status=status,
    )


def _charge(charge_id, amount, *, payment_intent=None, seconds=0, status="succeeded"):
    return ProcessorCharge(
        charge_id=charge_id,
        amount=Decimal(amount),
        created_at=T0 + timedelta(seconds=seconds),
        status=status,
        payment_intent=payment_intent,
        destination="acct_creator",
    )


def _transfer(transfer_id, amount, *, source_transaction=None, reversed=False, amount_reversed="0"):
    return ProcessorTransfer(
        transfer_id=transfer_id,
        amount=Decimal(amount),
        amount_reversed=Decimal(amount_reversed),
        created_at=T0,
        reversed=reversed,
        destination="acct_creator",
        source_transaction=source_transaction,
    )


def _capture_warnings():
    messages: list[str] = []
    handler_id = logger.add(lambda message: messages.append(str(message)), level="WARNING")
    return messages, handler_id


def test_internal_record_claims_intent_and_linked_charge():
    reconciler = LedgerReconciler()
    result = reconciler.reconcile(
        [_internal("rec_1", "25.00", payment_id="pi_1")],
        [_intent("pi_1", "25.00")],
        [_charge("ch_1", "25.00", payment_intent="pi_1")],
    )

    assert [record.transaction_id for record in result.transactions] == ["pi_1"]
    only = result.transactions[0]
    assert only.provenance is Provenance.INTERNAL_STORE
    assert only.side is AccountSide.CREATOR
    assert result.sync_gaps == []


def test_charge_linked_to_processor_intent_is_not_double_counted():
    result = LedgerReconciler().reconcile(
        [],
        [_intent("pi_1", "25.00")],
        [_charge("ch_1", "25.00", payment_intent="pi_1")],
    )

    assert [record.transaction_id for record in result.transactions] == ["pi_1"]
    assert result.transactions[0].provenance is Provenance.PROCESSOR_INTENT
    assert len(result.sync_gaps) == 1


def test_unlinked_charge_and_intent_are_both_kept_and_warned():
    messages, handler_id = _capture_warnings()
    try:
        result = LedgerReconciler().reconcile(
            [],
            [_intent("pi_1", "25.00")],
            [_charge("ch_1", "25.00", seconds=0)],
        )
    finally:
        logger.remove(handler_id)

    ids = {record.transaction_id for record in result.transactions}
    assert ids == {"pi_1", "ch_1"}
    assert len(result.sync_gaps) == 2
    assert any("looks like pi_1" in message for message in messages)
    assert any("no internal record" in message for message in messages)


def test_unsucceeded_intents_are_ignored():
    result = LedgerReconciler().reconcile(
        [],
        [_intent("pi_1", "25.00", status="requires_payment_method")],
        [],
    )

    assert result.transactions == []


def test_primary_collection_wins_over_legacy_duplicate():
    primary = _internal("rec_primary", "30.00", payment_id="pi_9", collection="round_payments")
    legacy = _internal("rec_legacy", "30.00", payment_id="pi_9", collection="legacy_payments")

    result = LedgerReconciler().reconcile([primary, legacy], [], [])

    assert len(result.transactions) == 1
    assert result.transactions[0].metadata["source"] == "round_payments"


def test_transfer_linked_to_claimed_charge_is_skipped():
    result = LedgerReconciler().reconcile(
        [_internal("rec_1", "25.00", payment_id="ch_1")],
        [],
        [_charge("ch_1", "25.00")],
        [_transfer("tr_1", "24.25", source_transaction="ch_1")],
    )

    assert [record.transaction_id for record in result.transactions] == ["ch_1"]


def test_unlinked_transfer_is_listed_as_sync_gap():
    result = LedgerReconciler().reconcile([], [], [], [_transfer("tr_1", "12.00")])

    assert [record.provenance for record in result.transactions] == [Provenance.PROCESSOR_TRANSFER]
    assert len(result.sync_gaps) == 1


def test_non_positive_amounts_are_dropped():
    result = LedgerReconciler().reconcile(
        [_internal("rec_zero", "0.00")],
        [],
        [_charge("ch_neg", "-5.00")],
    )

    assert result.transactions == []


def test_totals_use_non_reversed_transfers_plus_available_balance():
    transfers = [
        _transfer("tr_1", "10.00"),
        _transfer("tr_2", "8.00", amount_reversed="3.00"),
        _transfer("tr_3", "50.00", reversed=True, amount_reversed="50.00"),
    ]
    balance = ProcessorBalance(available=Decimal("7.50"), pending=Decimal("2.25"))

    result = LedgerReconciler().reconcile([], [], [], transfers, balance)

    assert result.totals.transferred_total == Decimal("15.00")
    assert result.totals.total_earned == Decimal("22.50")
    assert result.totals.available_balance == Decimal("7.50")
    assert result.totals.pending_balance == Decimal("2.25")


def test_reconcile_is_idempotent():
    internal = [_internal("rec_1", "25.00", payment_id="pi_1", minutes=-5)]
    intents = [_intent("pi_1", "25.00"), _intent("pi_2", "40.00", seconds=30)]
    charges = [_charge("ch_2", "40.00", payment_intent="pi_2"), _charge("ch_3", "9.99", seconds=90)]
    reconciler = LedgerReconciler()

    first = reconciler.reconcile(internal, intents, charges)
    second = reconciler.reconcile(internal, intents, charges)

    assert first.transactions == second.transactions
    assert first.totals == second.totals


def test_transactions_are_sorted_newest_first():
    result = LedgerReconciler().reconcile(
        [_internal("rec_old", "5.00", minutes=-60), _internal("rec_new", "6.00", minutes=10)],
        [_intent("pi_mid", "7.00")],
        [],
    )

    assert [record.transaction_id for record in result.transactions] == [
        "rec_new",
        "pi_mid",
        "rec_old",
    ]


def test_degraded_sources_are_carried_through():
    result = LedgerReconciler().reconcile([], [], [], degraded_sources=["processor_charges"])

    assert result.degraded
    assert result.degraded_sources == ["processor_charges"]
