"""Copy processor-only payments into the internal store so both views agree."""

from __future__ import annotations

from dataclasses import dataclass, field
from decimal import Decimal

from loguru import logger

from app.core.config import get_settings
from app.domain import AccountSide, Provenance, TransactionRecord, TransactionStatus
from app.domain.money import quantize, to_minor_units
from app.models import PaymentCollection
from app.repositories import PaymentRepository
from processor.fetchers import SourceFetchers

from .reconciler import LedgerReconciler

SYNC_RECORD_PREFIX = "sync_"
_BACKFILL_PROVENANCE = {Provenance.PROCESSOR_INTENT, Provenance.PROCESSOR_CHARGE}
_STORE_STATUS = {
    TransactionStatus.COMPLETED: "succeeded",
    TransactionStatus.PENDING: "pending",
    TransactionStatus.FAILED: "failed",
}


@dataclass(slots=True)
class BackfillResult:
    user_id: str
    written: list[str] = field(default_factory=list)
    skipped: list[str] = field(default_factory=list)
    aborted: bool = False


def fee_split(amount: Decimal, fee_rate: Decimal) -> tuple[int, int, int]:
    """Return ``(gross, owner, fee)`` in cents; owner + fee always equals gross."""

    gross = to_minor_units(amount)
    fee = to_minor_units(quantize(amount * fee_rate))
    return gross, gross - fee, fee


class SyncGapBackfill:
    def __init__(
        self,
        fetchers: SourceFetchers,
        payments: PaymentRepository,
        *,
        reconciler: LedgerReconciler | None = None,
        fee_rate: Decimal | None = None,
    ) -> None:
        self._fetchers = fetchers
        self._payments = payments
        self._reconciler = reconciler or LedgerReconciler(AccountSide.CREATOR)
        self._fee_rate = fee_rate if fee_rate is not None else get_settings().sync_fee_rate

    def backfill_user(self, user_id: str, account_id: str, *, dry_run: bool = False) -> BackfillResult:
        result = BackfillResult(user_id=user_id)
        sources = self._fetchers.fetch_creator_sources(user_id, account_id)
        if sources.internal.degraded:
            # every processor payment would look like a gap
            logger.warning("Skipping backfill for {}: internal store unavailable", user_id)
            result.aborted = True
            return result

        ledger = self._reconciler.reconcile_sources(sources)
        gaps = [record for record in ledger.sync_gaps if record.provenance in _BACKFILL_PROVENANCE]
        existing = self._payments.existing_keys(record.transaction_id for record in gaps)

        for record in gaps:
            if record.transaction_id in existing:
                result.skipped.append(record.transaction_id)
                continue
            if not dry_run:
                self._write(user_id, account_id, record)
            result.written.append(record.transaction_id)

        logger.info(
            "Backfill for {}: {} written, {} already stored{}",
            user_id,
            len(result.written),
            len(result.skipped),
            " (dry run)" if dry_run else "",
        )
        return result

    def _write(self, user_id: str, account_id: str, record: TransactionRecord) -> None:
        gross, owner, fee = fee_split(record.amount, self._fee_rate)
        self._payments.add_payment(
            record_id=f"{SYNC_RECORD_PREFIX}{record.transaction_id}",
            payment_id=record.transaction_id,
            owner_id=user_id,
            amount=gross,
            owner_amount=owner,
            platform_fee=fee,
            collection=PaymentCollection.PROCESSOR_SYNC,
            status=_STORE_STATUS[record.status],
            title=record.description,
            buyer_id=record.payer,
            processor_account_id=account_id,
            created_at=record.timestamp,
        )


__all__ = ["BackfillResult", "SYNC_RECORD_PREFIX", "SyncGapBackfill", "fee_split"]
