"""Typed domain representations shared by fetchers, services, and the API."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Any, Generic, TypeVar

from .money import ZERO

T = TypeVar("T")


class AccountSide(str, Enum):
    CREATOR = "creator"
    WINNER = "winner"


class OnboardingStatus(str, Enum):
    NOT_STARTED = "not_started"
    PENDING = "pending"
    COMPLETE = "complete"

    @classmethod
    def parse(cls, value: Any) -> "OnboardingStatus":
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).strip().lower())
        except ValueError:
            return cls.NOT_STARTED


class TransactionStatus(str, Enum):
    COMPLETED = "completed"
    PENDING = "pending"
    FAILED = "failed"


class Provenance(int, Enum):
    """Evidence source of a transaction; higher value wins dedup ties."""

    PROCESSOR_TRANSFER = 1
    PROCESSOR_CHARGE = 2
    PROCESSOR_INTENT = 3
    INTERNAL_STORE = 4


@dataclass(slots=True)
class PayoutAccount:
    """One side of a user's wallet as known at read time."""

    side: AccountSide
    account_id: str | None = None
    onboarding_status: OnboardingStatus = OnboardingStatus.NOT_STARTED
    available_balance: Decimal = ZERO
    pending_balance: Decimal = ZERO

    @property
    def present(self) -> bool:
        return bool(self.account_id)

    @property
    def active(self) -> bool:
        return self.present and self.onboarding_status is OnboardingStatus.COMPLETE

    @property
    def missing_account(self) -> bool:
        """Onboarding finished but the external id went missing."""

        return not self.present and self.onboarding_status is OnboardingStatus.COMPLETE


@dataclass(slots=True)
class AccountProfile:
    user_id: str
    email: str | None
    creator: PayoutAccount
    winner: PayoutAccount

    @property
    def has_any_account(self) -> bool:
        return self.creator.present or self.winner.present


@dataclass(slots=True, frozen=True)
class FetchResult(Generic[T]):
    """Outcome of one evidence source read; ``degraded`` replaces raised errors."""

    source: str
    records: T
    degraded: bool = False
    error: str | None = None


# ---------------------------------------------------------------------------
# Processor and store evidence


@dataclass(slots=True, frozen=True)
class InternalPayment:
    record_id: str
    payment_id: str | None
    amount: Decimal
    created_at: datetime
    status: TransactionStatus
    collection: str
    description: str | None = None
    buyer_id: str | None = None

    @property
    def dedup_key(self) -> str:
        return self.payment_id or self.record_id


@dataclass(slots=True, frozen=True)
class ProcessorPaymentIntent:
    intent_id: str
    amount: Decimal
    created_at: datetime
    status: str
    description: str | None = None
    customer: str | None = None


@dataclass(slots=True, frozen=True)
class ProcessorCharge:
    charge_id: str
    amount: Decimal
    created_at: datetime
    status: str
    payment_intent: str | None = None
    destination: str | None = None
    description: str | None = None
    customer: str | None = None


@dataclass(slots=True, frozen=True)
class ProcessorTransfer:
    transfer_id: str
    amount: Decimal
    amount_reversed: Decimal
    created_at: datetime
    reversed: bool = False
    destination: str | None = None
    source_transaction: str | None = None
    description: str | None = None

    @property
    def net_amount(self) -> Decimal:
        return self.amount - self.amount_reversed


@dataclass(slots=True, frozen=True)
class ProcessorPayout:
    payout_id: str
    amount: Decimal
    status: str
    created_at: datetime
    arrival_date: datetime | None = None


@dataclass(slots=True, frozen=True)
class ProcessorBalance:
    available: Decimal = ZERO
    pending: Decimal = ZERO


@dataclass(slots=True, frozen=True)
class PrizeEntry:
    record_id: str
    amount: Decimal
    status: str
    created_at: datetime
    challenge_id: str | None = None
    challenge_title: str | None = None
    placement: int | None = None
    score: float | None = None
    paid_at: datetime | None = None


@dataclass(slots=True)
class CreatorSources:
    """Every creator-side evidence source for one reconciliation call."""

    internal: FetchResult[list[InternalPayment]]
    intents: FetchResult[list[ProcessorPaymentIntent]]
    charges: FetchResult[list[ProcessorCharge]]
    transfers: FetchResult[list[ProcessorTransfer]]
    payouts: FetchResult[list[ProcessorPayout]]
    balance: FetchResult[ProcessorBalance]

    def degraded_sources(self) -> list[str]:
        results = (
            self.internal,
            self.intents,
            self.charges,
            self.transfers,
            self.payouts,
            self.balance,
        )
        return [result.source for result in results if result.degraded]


# ---------------------------------------------------------------------------
# Reconciled output


@dataclass(slots=True, frozen=True)
class TransactionRecord:
    transaction_id: str
    amount: Decimal
    timestamp: datetime
    status: TransactionStatus
    side: AccountSide
    provenance: Provenance
    payer: str | None = None
    description: str | None = None
    metadata: dict[str, Any] = field(default_factory=dict)


@dataclass(slots=True)
class LedgerTotals:
    total_earned: Decimal = ZERO
    available_balance: Decimal = ZERO
    pending_balance: Decimal = ZERO
    transferred_total: Decimal = ZERO
    transaction_count: int = 0


@dataclass(slots=True)
class LedgerResult:
    transactions: list[TransactionRecord]
    totals: LedgerTotals
    sync_gaps: list[TransactionRecord] = field(default_factory=list)
    degraded_sources: list[str] = field(default_factory=list)

    @property
    def degraded(self) -> bool:
        return bool(self.degraded_sources)


@dataclass(slots=True)
class SideBreakdown:
    side: AccountSide
    account_id: str | None
    onboarding_status: OnboardingStatus
    total_earned: Decimal = ZERO
    available_balance: Decimal = ZERO
    pending_payout: Decimal = ZERO
    transaction_count: int = 0
    is_new_account: bool = True
    missing_account: bool = False
    degraded: bool = False
    transactions: list[TransactionRecord] = field(default_factory=list)
    payouts: list[ProcessorPayout] = field(default_factory=list)

    def as_account(self) -> PayoutAccount:
        return PayoutAccount(
            side=self.side,
            account_id=self.account_id,
            onboarding_status=self.onboarding_status,
            available_balance=self.available_balance,
            pending_balance=self.pending_payout,
        )


@dataclass(slots=True)
class EarningsSnapshot:
    user_id: str
    creator: SideBreakdown
    winner: SideBreakdown
    transactions: list[TransactionRecord]
    minimum_payout_amount: Decimal
    generated_at: datetime
    degraded_sources: list[str] = field(default_factory=list)
    sync_gap_count: int = 0
    has_creator_account: bool = False
    has_winner_account: bool = False

    @property
    def total_earned(self) -> Decimal:
        return self.creator.total_earned + self.winner.total_earned

    @property
    def available_balance(self) -> Decimal:
        return self.creator.available_balance + self.winner.available_balance

    @property
    def pending_payout(self) -> Decimal:
        return self.creator.pending_payout + self.winner.pending_payout

    @property
    def can_request_payout(self) -> bool:
        return self.available_balance >= self.minimum_payout_amount

    @property
    def degraded(self) -> bool:
        return bool(self.degraded_sources)

    @property
    def is_new_account(self) -> bool:
        return self.total_earned == ZERO and not self.transactions

    @property
    def needs_account_setup(self) -> bool:
        has_activity = self.creator.transaction_count > 0 or self.winner.transaction_count > 0
        return not self.has_creator_account and not self.has_winner_account and has_activity


# ---------------------------------------------------------------------------
# Payouts


class PayoutStrategy(str, Enum):
    SINGLE_CREATOR = "single_creator"
    SINGLE_WINNER = "single_winner"
    COMBINED = "combined"


@dataclass(slots=True, frozen=True)
class PayoutLeg:
    side: AccountSide
    amount: Decimal
    account_id: str


@dataclass(slots=True, frozen=True)
class PayoutPlan:
    requested_amount: Decimal
    legs: tuple[PayoutLeg, ...]

    @property
    def strategy(self) -> PayoutStrategy:
        if len(self.legs) > 1:
            return PayoutStrategy.COMBINED
        if self.legs[0].side is AccountSide.CREATOR:
            return PayoutStrategy.SINGLE_CREATOR
        return PayoutStrategy.SINGLE_WINNER

    @property
    def total(self) -> Decimal:
        return sum((leg.amount for leg in self.legs), ZERO)


@dataclass(slots=True, frozen=True)
class PayoutExecutionResult:
    side: AccountSide
    amount: Decimal
    success: bool
    payout_id: str | None = None
    status: str | None = None
    error: str | None = None
    estimated_arrival: datetime | None = None


class PayoutOutcome(str, Enum):
    COMPLETED = "completed"
    PARTIAL = "partial"
    FAILED = "failed"

    @classmethod
    def from_results(cls, results: list[PayoutExecutionResult]) -> "PayoutOutcome":
        succeeded = sum(1 for result in results if result.success)
        if results and succeeded == len(results):
            return cls.COMPLETED
        if succeeded:
            return cls.PARTIAL
        return cls.FAILED


@dataclass(slots=True, frozen=True)
class PayoutRecord:
    record_id: str
    user_id: str
    currency: str
    plan: PayoutPlan
    results: tuple[PayoutExecutionResult, ...]
    requested_at: datetime

    @property
    def outcome(self) -> PayoutOutcome:
        return PayoutOutcome.from_results(list(self.results))
