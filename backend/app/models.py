from __future__ import annotations

from datetime import datetime, timezone
from enum import Enum

from sqlalchemy import (
    JSON,
    BigInteger,
    DateTime,
    Index,
    Integer,
    Numeric,
    String,
    Text,
)
from sqlalchemy.orm import Mapped, mapped_column

from .db import Base


class PaymentCollection(str, Enum):
    ROUND_PAYMENTS = "round_payments"
    LEGACY_PAYMENTS = "legacy_payments"
    PROCESSOR_SYNC = "processor_sync"


class PrizeStatus(str, Enum):
    PENDING = "pending"
    PENDING_FUNDS = "pending_funds"
    PROCESSING = "processing"
    PAID = "paid"
    FAILED = "failed"


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class UserAccount(Base):
    __tablename__ = "users"

    user_id: Mapped[str] = mapped_column(String, primary_key=True)
    email: Mapped[str | None] = mapped_column(String, nullable=True)
    username: Mapped[str | None] = mapped_column(String, nullable=True)

    creator_account_id: Mapped[str | None] = mapped_column(String, nullable=True)
    creator_onboarding_status: Mapped[str | None] = mapped_column(String, nullable=True)
    winner_account_id: Mapped[str | None] = mapped_column(String, nullable=True)
    winner_onboarding_status: Mapped[str | None] = mapped_column(String, nullable=True)

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=utcnow)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow
    )


class PaymentRecord(Base):
    """Internal evidence of a sale; amounts are stored in cents."""

    __tablename__ = "payment_records"
    __table_args__ = (
        Index("ix_payment_records_owner_created", "owner_id", "created_at"),
    )

    record_id: Mapped[str] = mapped_column(String, primary_key=True)
    payment_id: Mapped[str | None] = mapped_column(String, nullable=True, index=True)
    owner_id: Mapped[str] = mapped_column(String, nullable=False)
    buyer_id: Mapped[str | None] = mapped_column(String, nullable=True)
    collection: Mapped[str] = mapped_column(
        String, nullable=False, default=PaymentCollection.ROUND_PAYMENTS.value
    )
    amount: Mapped[int] = mapped_column(BigInteger, nullable=False)
    owner_amount: Mapped[int | None] = mapped_column(BigInteger, nullable=True)
    platform_fee: Mapped[int | None] = mapped_column(BigInteger, nullable=True)
    currency: Mapped[str] = mapped_column(String(3), nullable=False, default="usd")
    status: Mapped[str] = mapped_column(String, nullable=False, default="succeeded")
    title: Mapped[str | None] = mapped_column(String, nullable=True)
    processor_account_id: Mapped[str | None] = mapped_column(String, nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=utcnow)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow
    )


class PrizeRecord(Base):
    """Challenge winnings owed to or paid to a user; amounts are stored in cents."""

    __tablename__ = "prize_records"
    __table_args__ = (
        Index("ix_prize_records_user_created", "user_id", "created_at"),
    )

    record_id: Mapped[str] = mapped_column(String, primary_key=True)
    user_id: Mapped[str] = mapped_column(String, nullable=False)
    challenge_id: Mapped[str | None] = mapped_column(String, nullable=True)
    challenge_title: Mapped[str | None] = mapped_column(String, nullable=True)
    placement: Mapped[int | None] = mapped_column(Integer, nullable=True)
    score: Mapped[float | None] = mapped_column(Numeric(18, 4), nullable=True)
    prize_amount: Mapped[int] = mapped_column(BigInteger, nullable=False)
    status: Mapped[str] = mapped_column(String, nullable=False, default=PrizeStatus.PENDING.value)
    transfer_id: Mapped[str | None] = mapped_column(String, nullable=True)
    failure_reason: Mapped[str | None] = mapped_column(Text, nullable=True)
    paid_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=utcnow)


class PayoutRecordRow(Base):
    __tablename__ = "payout_records"

    record_id: Mapped[str] = mapped_column(String, primary_key=True)
    user_id: Mapped[str] = mapped_column(String, nullable=False, index=True)
    amount: Mapped[float] = mapped_column(Numeric(18, 2), nullable=False)
    currency: Mapped[str] = mapped_column(String(3), nullable=False)
    strategy: Mapped[str] = mapped_column(String, nullable=False)
    outcome: Mapped[str] = mapped_column(String, nullable=False)
    legs: Mapped[list | None] = mapped_column(JSON, nullable=True)
    results: Mapped[list | None] = mapped_column(JSON, nullable=True)
    record_type: Mapped[str] = mapped_column(String, nullable=False, default="unified_payout")
    requested_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=utcnow)
