"""Withdrawal flow: validate, plan against live balances, execute, record."""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from datetime import date, datetime, timedelta, timezone
from decimal import Decimal
from typing import Any

from loguru import logger

from app.core.config import get_settings
from app.domain import (
    EarningsSnapshot,
    NoAccountError,
    PayoutError,
    PayoutExecutionResult,
    PayoutInternalError,
    PayoutOutcome,
    PayoutPlan,
    PayoutRecord,
    PayoutValidationError,
    UserNotFoundError,
)
from app.domain.money import ZERO, format_amount, to_decimal

from .account_directory import AccountDirectory
from .earnings_service import EarningsAggregator
from .payout_executor import PayoutExecutor
from .payout_logger import PayoutRecordLogger, new_record_id
from .payout_planner import PayoutStrategyPlanner

ARRIVAL_NOTE = "2-7 business days"


@dataclass(slots=True)
class PayoutSummary:
    record_id: str
    user_id: str
    currency: str
    plan: PayoutPlan
    results: list[PayoutExecutionResult]
    estimated_arrival: date
    logged: bool

    @property
    def outcome(self) -> PayoutOutcome:
        return PayoutOutcome.from_results(self.results)

    @property
    def paid_amount(self) -> Decimal:
        return sum((result.amount for result in self.results if result.success), ZERO)


def estimate_arrival(today: date, arrival_days: int) -> date:
    return today + timedelta(days=arrival_days)


class PayoutService:
    def __init__(
        self,
        directory: AccountDirectory,
        aggregator: EarningsAggregator,
        executor: PayoutExecutor,
        record_logger: PayoutRecordLogger,
        *,
        planner: PayoutStrategyPlanner | None = None,
        minimum_payout_amount: Decimal | None = None,
        arrival_days: int | None = None,
        currency: str | None = None,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        settings = get_settings()
        self._directory = directory
        self._aggregator = aggregator
        self._executor = executor
        self._record_logger = record_logger
        self._planner = planner or PayoutStrategyPlanner()
        self._minimum = (
            minimum_payout_amount
            if minimum_payout_amount is not None
            else settings.minimum_payout_amount
        )
        self._arrival_days = (
            arrival_days if arrival_days is not None else settings.payout_arrival_days
        )
        self._currency = currency or settings.payout_currency
        self._clock = clock or (lambda: datetime.now(timezone.utc))

    def validate_amount(self, amount: Any) -> Decimal:
        try:
            requested = to_decimal(amount)
        except ValueError as exc:
            raise PayoutValidationError(str(exc)) from exc
        if requested <= ZERO or requested < self._minimum:
            raise PayoutValidationError(
                f"Minimum payout amount is {format_amount(self._minimum)}"
            )
        return requested

    def prepare(self, user_id: str, amount: Any) -> tuple[PayoutPlan, EarningsSnapshot]:
        """Everything before the first processor call; nothing here moves money."""

        requested = self.validate_amount(amount)
        try:
            profile = self._directory.lookup(user_id)
            if not profile.has_any_account:
                raise NoAccountError(user_id)
            snapshot = self._aggregator.aggregate_profile(profile)
            plan = self._planner.plan(
                requested,
                snapshot.creator.as_account(),
                snapshot.winner.as_account(),
            )
        except (PayoutError, UserNotFoundError):
            raise
        except Exception as exc:
            logger.exception("Payout preparation failed for user {}", user_id)
            raise PayoutInternalError(f"Unable to prepare payout: {exc}") from exc
        return plan, snapshot

    def request_payout(
        self,
        user_id: str,
        amount: Any,
        *,
        currency: str | None = None,
    ) -> PayoutSummary:
        currency = (currency or self._currency).lower()
        plan, snapshot = self.prepare(user_id, amount)
        logger.info(
            "Payout for {}: {} via {} (creator available {}, winner available {})",
            user_id,
            plan.requested_amount,
            plan.strategy.value,
            snapshot.creator.available_balance,
            snapshot.winner.available_balance,
        )

        record_id = new_record_id()
        results = self._executor.execute(plan, record_id=record_id, currency=currency)
        record: PayoutRecord | None = self._record_logger.log(
            plan,
            results,
            user_id=user_id,
            currency=currency,
            record_id=record_id,
        )
        summary = PayoutSummary(
            record_id=record_id,
            user_id=user_id,
            currency=currency,
            plan=plan,
            results=results,
            estimated_arrival=estimate_arrival(self._clock().date(), self._arrival_days),
            logged=record is not None,
        )
        logger.info(
            "Payout {} for {} finished: {} ({} of {} paid)",
            record_id,
            user_id,
            summary.outcome.value,
            summary.paid_amount,
            plan.requested_amount,
        )
        return summary


__all__ = ["ARRIVAL_NOTE", "PayoutService", "PayoutSummary", "estimate_arrival"]
