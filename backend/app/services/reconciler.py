"""Merge creator-side payment evidence into one deduplicated ledger."""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from datetime import timedelta

from loguru import logger

from app.domain import (
    AccountSide,
    CreatorSources,
    InternalPayment,
    LedgerResult,
    LedgerTotals,
    ProcessorBalance,
    ProcessorCharge,
    ProcessorPaymentIntent,
    ProcessorTransfer,
    Provenance,
    TransactionRecord,
    TransactionStatus,
)
from app.domain.money import ZERO

_CHARGE_STATUSES = {
    "succeeded": TransactionStatus.COMPLETED,
    "pending": TransactionStatus.PENDING,
    "failed": TransactionStatus.FAILED,
}
_SAME_EVENT_WINDOW = timedelta(seconds=1)


class _Ledger:
    """Claimed-id bookkeeping for a single reconciliation pass."""

    def __init__(self) -> None:
        self.claimed: set[str] = set()
        self.records: list[TransactionRecord] = []
        self.sync_gaps: list[TransactionRecord] = []

    def is_claimed(self, *keys: str | None) -> bool:
        return any(key in self.claimed for key in keys if key)

    def add(self, record: TransactionRecord, *aliases: str | None) -> None:
        self.claimed.add(record.transaction_id)
        self.claimed.update(alias for alias in aliases if alias)
        if record.amount <= ZERO:
            return
        self.records.append(record)
        if record.provenance is not Provenance.INTERNAL_STORE:
            self.sync_gaps.append(record)

    def lookalike(self, candidate: TransactionRecord) -> TransactionRecord | None:
        """Processor record with the same amount and side within the same second."""

        for existing in self.records:
            if existing.provenance is Provenance.INTERNAL_STORE:
                continue
            if existing.side is not candidate.side or existing.amount != candidate.amount:
                continue
            if abs(existing.timestamp - candidate.timestamp) < _SAME_EVENT_WINDOW:
                return existing
        return None


def _from_internal(payment: InternalPayment, side: AccountSide) -> TransactionRecord:
    return TransactionRecord(
        transaction_id=payment.dedup_key,
        amount=payment.amount,
        timestamp=payment.created_at,
        status=payment.status,
        side=side,
        provenance=Provenance.INTERNAL_STORE,
        payer=payment.buyer_id,
        description=payment.description,
        metadata={"source": payment.collection},
    )


def _from_intent(intent: ProcessorPaymentIntent, side: AccountSide) -> TransactionRecord:
    return TransactionRecord(
        transaction_id=intent.intent_id,
        amount=intent.amount,
        timestamp=intent.created_at,
        status=TransactionStatus.COMPLETED,
        side=side,
        provenance=Provenance.PROCESSOR_INTENT,
        payer=intent.customer,
        description=intent.description,
        metadata={"source": "processor"},
    )


def _from_charge(charge: ProcessorCharge, side: AccountSide) -> TransactionRecord:
    return TransactionRecord(
        transaction_id=charge.charge_id,
        amount=charge.amount,
        timestamp=charge.created_at,
        status=_CHARGE_STATUSES.get(charge.status, TransactionStatus.PENDING),
        side=side,
        provenance=Provenance.PROCESSOR_CHARGE,
        payer=charge.customer,
        description=charge.description,
        metadata={"source": "processor", "destination": charge.destination},
    )


def _from_transfer(transfer: ProcessorTransfer, side: AccountSide) -> TransactionRecord:
    return TransactionRecord(
        transaction_id=transfer.transfer_id,
        amount=transfer.net_amount,
        timestamp=transfer.created_at,
        status=TransactionStatus.FAILED if transfer.reversed else TransactionStatus.COMPLETED,
        side=side,
        provenance=Provenance.PROCESSOR_TRANSFER,
        description=transfer.description,
        metadata={"source": "processor", "destination": transfer.destination},
    )


class LedgerReconciler:
    """Priority-ordered dedup: internal store > payment intent > charge > transfer.

    The reconciler is pure: it never touches the network or the store, so
    reconciling the same inputs twice always yields the same ledger.
    """

    def __init__(self, side: AccountSide = AccountSide.CREATOR) -> None:
        self._side = side

    def reconcile(
        self,
        internal_records: Sequence[InternalPayment],
        processor_intents: Sequence[ProcessorPaymentIntent],
        processor_charges: Sequence[ProcessorCharge],
        transfers: Sequence[ProcessorTransfer] = (),
        balance: ProcessorBalance | None = None,
        *,
        degraded_sources: Iterable[str] = (),
    ) -> LedgerResult:
        ledger = _Ledger()
        side = self._side

        for payment in internal_records:
            if ledger.is_claimed(payment.dedup_key):
                continue
            ledger.add(_from_internal(payment, side), payment.record_id)

        for intent in processor_intents:
            if intent.status != "succeeded" or ledger.is_claimed(intent.intent_id):
                continue
            ledger.add(_from_intent(intent, side))

        for charge in processor_charges:
            if ledger.is_claimed(charge.charge_id, charge.payment_intent):
                # transfers funded by this charge are the same sale
                ledger.claimed.add(charge.charge_id)
                continue
            record = _from_charge(charge, side)
            twin = ledger.lookalike(record)
            if twin is not None:
                logger.warning(
                    "Sync gap: charge {} looks like {} ({} at {}) but carries no link; keeping both",
                    charge.charge_id,
                    twin.transaction_id,
                    record.amount,
                    record.timestamp.isoformat(),
                )
            ledger.add(record)

        for transfer in transfers:
            if ledger.is_claimed(transfer.transfer_id, transfer.source_transaction):
                continue
            ledger.add(_from_transfer(transfer, side))

        if ledger.sync_gaps:
            logger.warning(
                "{} processor payment(s) have no internal record: {}",
                len(ledger.sync_gaps),
                ", ".join(record.transaction_id for record in ledger.sync_gaps),
            )

        transactions = sorted(ledger.records, key=lambda record: record.timestamp, reverse=True)
        totals = self._totals(transfers, balance, len(transactions))
        return LedgerResult(
            transactions=transactions,
            totals=totals,
            sync_gaps=ledger.sync_gaps,
            degraded_sources=list(degraded_sources),
        )

    def reconcile_sources(self, sources: CreatorSources) -> LedgerResult:
        degraded = sources.degraded_sources()
        if degraded:
            logger.warning("Reconciling with degraded sources: {}", ", ".join(degraded))
        return self.reconcile(
            sources.internal.records,
            sources.intents.records,
            sources.charges.records,
            sources.transfers.records,
            sources.balance.records,
            degraded_sources=degraded,
        )

    @staticmethod
    def _totals(
        transfers: Sequence[ProcessorTransfer],
        balance: ProcessorBalance | None,
        transaction_count: int,
    ) -> LedgerTotals:
        transferred = sum(
            (transfer.net_amount for transfer in transfers if not transfer.reversed), ZERO
        )
        available = balance.available if balance else ZERO
        pending = balance.pending if balance else ZERO
        # total earned = historical transfers + current available balance
        return LedgerTotals(
            total_earned=transferred + available,
            available_balance=available,
            pending_balance=pending,
            transferred_total=transferred,
            transaction_count=transaction_count,
        )


__all__ = ["LedgerReconciler"]
