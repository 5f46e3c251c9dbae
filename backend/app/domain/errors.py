"""Failures that cross the service boundary before any money moves."""

from __future__ import annotations

from decimal import Decimal

from .money import format_amount


class PayoutError(Exception):
    """Base class for payout request failures raised before any external call."""


class UserNotFoundError(LookupError):
    def __init__(self, user_id: str) -> None:
        super().__init__(f"User '{user_id}' not found")
        self.user_id = user_id


class NoAccountError(PayoutError):
    def __init__(self, user_id: str) -> None:
        super().__init__("No payout account found. Please complete account setup first.")
        self.user_id = user_id


class PayoutValidationError(PayoutError):
    """Request rejected before planning (bad amount, below minimum)."""


class InsufficientBalanceError(PayoutError):
    def __init__(
        self,
        *,
        requested: Decimal,
        creator_available: Decimal,
        winner_available: Decimal,
    ) -> None:
        self.requested = requested
        self.creator_available = creator_available
        self.winner_available = winner_available
        available = creator_available + winner_available
        super().__init__(
            "Insufficient balance. Available: {} (creator {}, winner {}), Requested: {}".format(
                format_amount(available),
                format_amount(creator_available),
                format_amount(winner_available),
                format_amount(requested),
            )
        )

    @property
    def total_available(self) -> Decimal:
        return self.creator_available + self.winner_available

    @property
    def shortfall(self) -> Decimal:
        return self.requested - self.total_available


class PayoutInternalError(PayoutError):
    """Unexpected failure while preparing a payout; nothing was sent to the processor."""


__all__ = [
    "InsufficientBalanceError",
    "NoAccountError",
    "PayoutError",
    "PayoutInternalError",
    "PayoutValidationError",
    "UserNotFoundError",
]
