"""Read-only evidence adapters; each one degrades to an empty result instead of raising."""

from __future__ import annotations

from concurrent.futures import Executor, Future, ThreadPoolExecutor
from dataclasses import dataclass, field
from typing import Any, Callable, TypeVar

from loguru import logger

from app.core.config import Settings, get_settings
from app.domain import (
    CreatorSources,
    FetchResult,
    InternalPayment,
    ProcessorBalance,
    ProcessorCharge,
    ProcessorPaymentIntent,
    ProcessorPayout,
    ProcessorTransfer,
)
from app.repositories import PaymentRepository, to_internal_payment

from .base import PayoutProcessor
from .normalize import (
    normalize_balance,
    normalize_charge,
    normalize_payment_intent,
    normalize_payout,
    normalize_transfer,
)

T = TypeVar("T")

SOURCE_BALANCE = "processor_balance"
SOURCE_PAYOUTS = "processor_payouts"
SOURCE_TRANSFERS = "processor_transfers"
SOURCE_CHARGES = "processor_charges"
SOURCE_INTENTS = "processor_intents"
SOURCE_INTERNAL = "internal_store"

PROCESSOR_SOURCES = (
    SOURCE_BALANCE,
    SOURCE_PAYOUTS,
    SOURCE_TRANSFERS,
    SOURCE_CHARGES,
    SOURCE_INTENTS,
)


@dataclass(slots=True, frozen=True)
class FetchLimits:
    payouts: int = 10
    transfers: int = 100
    charges: int = 20
    payment_intents: int = 20
    internal: int = 20

    @classmethod
    def from_settings(cls, settings: Settings) -> "FetchLimits":
        return cls(
            payouts=settings.payout_history_limit,
            transfers=settings.transfer_history_limit,
            charges=settings.charge_history_limit,
            payment_intents=settings.payment_intent_history_limit,
            internal=settings.internal_payment_limit,
        )


@dataclass(slots=True)
class PendingFetches:
    account_id: str
    futures: dict[str, Future] = field(default_factory=dict)


def _guard(source: str, empty: T, call: Callable[[], T]) -> FetchResult[T]:
    try:
        return FetchResult(source=source, records=call())
    except Exception as exc:  # noqa: BLE001 - every source failure degrades
        logger.warning("Evidence source {} degraded: {}", source, exc)
        return FetchResult(source=source, records=empty, degraded=True, error=str(exc))


class SourceFetchers:
    """Fan out processor reads for one connected account and read the internal store."""

    def __init__(
        self,
        processor: PayoutProcessor | None,
        payments: PaymentRepository,
        *,
        limits: FetchLimits | None = None,
        max_workers: int | None = None,
    ) -> None:
        settings = get_settings()
        self._processor = processor
        self._payments = payments
        self._limits = limits or FetchLimits.from_settings(settings)
        self._max_workers = max_workers or settings.fetcher_max_workers

    # ------------------------------------------------------------------
    # Individual sources

    def _require_processor(self) -> PayoutProcessor:
        if self._processor is None:
            raise RuntimeError("payment processor is not configured")
        return self._processor

    def fetch_balance(self, account_id: str) -> FetchResult[ProcessorBalance]:
        return _guard(
            SOURCE_BALANCE,
            ProcessorBalance(),
            lambda: normalize_balance(self._require_processor().get_balance(account_id)),
        )

    def fetch_payouts(self, account_id: str) -> FetchResult[list[ProcessorPayout]]:
        def call() -> list[ProcessorPayout]:
            raw = self._require_processor().list_payouts(account_id, limit=self._limits.payouts)
            return [normalize_payout(item) for item in raw]

        return _guard(SOURCE_PAYOUTS, [], call)

    def fetch_transfers(self, account_id: str) -> FetchResult[list[ProcessorTransfer]]:
        def call() -> list[ProcessorTransfer]:
            raw = self._require_processor().list_transfers(
                account_id, limit=self._limits.transfers
            )
            return [normalize_transfer(item) for item in raw]

        return _guard(SOURCE_TRANSFERS, [], call)

    def fetch_charges(self, account_id: str) -> FetchResult[list[ProcessorCharge]]:
        def call() -> list[ProcessorCharge]:
            raw = self._require_processor().list_charges(limit=self._limits.charges)
            charges = [normalize_charge(item) for item in raw]
            return [charge for charge in charges if charge.destination == account_id]

        return _guard(SOURCE_CHARGES, [], call)

    def fetch_payment_intents(self, account_id: str) -> FetchResult[list[ProcessorPaymentIntent]]:
        def call() -> list[ProcessorPaymentIntent]:
            raw = self._require_processor().list_payment_intents(
                account_id, limit=self._limits.payment_intents
            )
            return [normalize_payment_intent(item) for item in raw]

        return _guard(SOURCE_INTENTS, [], call)

    def fetch_internal(self, user_id: str) -> FetchResult[list[InternalPayment]]:
        def call() -> list[InternalPayment]:
            rows = self._payments.list_for_owner(user_id, limit=self._limits.internal)
            return [to_internal_payment(row) for row in rows]

        return _guard(SOURCE_INTERNAL, [], call)

    # ------------------------------------------------------------------
    # Fan-out / fan-in

    def submit_processor_fetches(self, executor: Executor, account_id: str) -> PendingFetches:
        calls: dict[str, Callable[[str], FetchResult[Any]]] = {
            SOURCE_BALANCE: self.fetch_balance,
            SOURCE_PAYOUTS: self.fetch_payouts,
            SOURCE_TRANSFERS: self.fetch_transfers,
            SOURCE_CHARGES: self.fetch_charges,
            SOURCE_INTENTS: self.fetch_payment_intents,
        }
        pending = PendingFetches(account_id=account_id)
        for source, call in calls.items():
            pending.futures[source] = executor.submit(call, account_id)
        return pending

    @staticmethod
    def _settle(source: str, future: Future, empty: Any) -> FetchResult[Any]:
        try:
            return future.result()
        except Exception as exc:  # noqa: BLE001 - settle-all, never fail fast
            logger.exception("Evidence source {} crashed", source)
            return FetchResult(source=source, records=empty, degraded=True, error=str(exc))

    def collect(self, user_id: str, pending: PendingFetches) -> CreatorSources:
        """Read the internal store on this thread, then wait for every processor read."""

        # The store session is bound to the calling thread; only processor calls fan out.
        internal = self.fetch_internal(user_id)
        futures = pending.futures
        return CreatorSources(
            internal=internal,
            balance=self._settle(SOURCE_BALANCE, futures[SOURCE_BALANCE], ProcessorBalance()),
            payouts=self._settle(SOURCE_PAYOUTS, futures[SOURCE_PAYOUTS], []),
            transfers=self._settle(SOURCE_TRANSFERS, futures[SOURCE_TRANSFERS], []),
            charges=self._settle(SOURCE_CHARGES, futures[SOURCE_CHARGES], []),
            intents=self._settle(SOURCE_INTENTS, futures[SOURCE_INTENTS], []),
        )

    def fetch_creator_sources(self, user_id: str, account_id: str) -> CreatorSources:
        with ThreadPoolExecutor(max_workers=self._max_workers) as executor:
            pending = self.submit_processor_fetches(executor, account_id)
            return self.collect(user_id, pending)


__all__ = [
    "FetchLimits",
    "PROCESSOR_SOURCES",
    "PendingFetches",
    "SOURCE_BALANCE",
    "SOURCE_CHARGES",
    "SOURCE_INTENTS",
    "SOURCE_INTERNAL",
    "SOURCE_PAYOUTS",
    "SOURCE_TRANSFERS",
    "SourceFetchers",
]
