"""Internal payment-record access (primary, legacy and synced collections)."""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from datetime import datetime, timezone

from sqlalchemy import desc, select
from sqlalchemy.orm import Session

from app.domain import InternalPayment, TransactionStatus
from app.domain.money import from_minor_units
from app.models import PaymentCollection, PaymentRecord

_SUCCESS_STATUSES = {"succeeded", "completed", "paid"}
_PENDING_STATUSES = {"pending", "processing", "requires_capture"}

# Synced rows live beside primary rows and share their priority.
_PRIMARY_COLLECTIONS = (
    PaymentCollection.ROUND_PAYMENTS.value,
    PaymentCollection.PROCESSOR_SYNC.value,
)


def map_payment_status(value: str | None) -> TransactionStatus:
    if not value:
        return TransactionStatus.COMPLETED
    lowered = value.lower()
    if lowered in _SUCCESS_STATUSES:
        return TransactionStatus.COMPLETED
    if lowered in _PENDING_STATUSES:
        return TransactionStatus.PENDING
    return TransactionStatus.FAILED


def _as_utc(value: datetime) -> datetime:
    return value if value.tzinfo else value.replace(tzinfo=timezone.utc)


def to_internal_payment(record: PaymentRecord) -> InternalPayment:
    # Gross amount, so store rows compare like-for-like with processor charges.
    return InternalPayment(
        record_id=record.record_id,
        payment_id=record.payment_id,
        amount=from_minor_units(record.amount),
        created_at=_as_utc(record.created_at),
        status=map_payment_status(record.status),
        collection=record.collection,
        description=record.title,
        buyer_id=record.buyer_id,
    )


class PaymentRepository:
    """Query internal payment evidence owned by a creator."""

    def __init__(self, session: Session) -> None:
        self._session = session

    def list_for_owner(self, owner_id: str, *, limit: int = 20) -> list[PaymentRecord]:
        """Return primary-collection rows ahead of legacy rows, newest first within each."""

        primary = self._query(owner_id, _PRIMARY_COLLECTIONS, limit)
        legacy = self._query(owner_id, (PaymentCollection.LEGACY_PAYMENTS.value,), limit)
        return [*primary, *legacy]

    def _query(
        self, owner_id: str, collections: Sequence[str], limit: int
    ) -> Sequence[PaymentRecord]:
        query = (
            select(PaymentRecord)
            .where(PaymentRecord.owner_id == owner_id)
            .where(PaymentRecord.collection.in_(collections))
            .order_by(desc(PaymentRecord.created_at))
            .limit(limit)
        )
        return self._session.execute(query).scalars().all()

    def existing_keys(self, keys: Iterable[str]) -> set[str]:
        candidates = {key for key in keys if key}
        if not candidates:
            return set()
        by_payment = select(PaymentRecord.payment_id).where(PaymentRecord.payment_id.in_(candidates))
        by_record = select(PaymentRecord.record_id).where(PaymentRecord.record_id.in_(candidates))
        found = set(self._session.execute(by_payment).scalars().all())
        found.update(self._session.execute(by_record).scalars().all())
        return found

    # ------------------------------------------------------------------
    # Mutations

    def add_payment(
        self,
        *,
        record_id: str,
        owner_id: str,
        amount: int,
        collection: PaymentCollection = PaymentCollection.ROUND_PAYMENTS,
        payment_id: str | None = None,
        owner_amount: int | None = None,
        platform_fee: int | None = None,
        status: str = "succeeded",
        title: str | None = None,
        buyer_id: str | None = None,
        processor_account_id: str | None = None,
        currency: str = "usd",
        created_at: datetime | None = None,
    ) -> PaymentRecord:
        record = PaymentRecord(
            record_id=record_id,
            payment_id=payment_id,
            owner_id=owner_id,
            buyer_id=buyer_id,
            collection=collection.value,
            amount=amount,
            owner_amount=owner_amount,
            platform_fee=platform_fee,
            currency=currency,
            status=status,
            title=title,
            processor_account_id=processor_account_id,
        )
        if created_at is not None:
            record.created_at = created_at
        self._session.add(record)
        self._session.flush()
        return record
