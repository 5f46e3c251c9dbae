"""Decide which wallet sides fund a withdrawal and by how much."""

from __future__ import annotations

from decimal import Decimal

from loguru import logger

from app.domain import (
    InsufficientBalanceError,
    PayoutAccount,
    PayoutInternalError,
    PayoutLeg,
    PayoutPlan,
    PayoutValidationError,
)
from app.domain.money import ZERO, quantize


def _available(account: PayoutAccount) -> Decimal:
    return max(quantize(account.available_balance), ZERO) if account.present else ZERO


def _leg(account: PayoutAccount, amount: Decimal) -> PayoutLeg:
    if account.account_id is None:
        raise PayoutInternalError(f"{account.side.value} account has no id to pay out to")
    return PayoutLeg(side=account.side, amount=amount, account_id=account.account_id)


class PayoutStrategyPlanner:
    """Pure planner: prefers a single leg and only splits when neither side suffices."""

    def plan(
        self,
        requested_amount: Decimal,
        creator: PayoutAccount,
        winner: PayoutAccount,
    ) -> PayoutPlan:
        requested = quantize(requested_amount)
        if requested <= ZERO:
            raise PayoutValidationError("Payout amount must be positive")

        creator_available = _available(creator)
        winner_available = _available(winner)

        if creator.present and creator_available >= requested:
            return PayoutPlan(requested_amount=requested, legs=(_leg(creator, requested),))

        if winner.present and winner_available >= requested:
            return PayoutPlan(requested_amount=requested, legs=(_leg(winner, requested),))

        if (
            creator.present
            and winner.present
            and creator_available + winner_available >= requested
        ):
            # larger side first; creator on ties
            if creator_available >= winner_available:
                first, first_available, second = creator, creator_available, winner
            else:
                first, first_available, second = winner, winner_available, creator
            first_amount = min(first_available, requested)
            second_amount = requested - first_amount
            legs = tuple(
                _leg(account, amount)
                for account, amount in ((first, first_amount), (second, second_amount))
                if amount > ZERO
            )
            logger.info(
                "Split payout {}: {}",
                requested,
                ", ".join(f"{leg.side.value}={leg.amount}" for leg in legs),
            )
            return PayoutPlan(requested_amount=requested, legs=legs)

        raise InsufficientBalanceError(
            requested=requested,
            creator_available=creator_available,
            winner_available=winner_available,
        )


__all__ = ["PayoutStrategyPlanner"]
