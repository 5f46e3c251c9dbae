"""Domain models for reconciled earnings and split payouts."""

from .errors import (
    InsufficientBalanceError,
    NoAccountError,
    PayoutError,
    PayoutInternalError,
    PayoutValidationError,
    UserNotFoundError,
)
from .models import (
    AccountProfile,
    AccountSide,
    CreatorSources,
    EarningsSnapshot,
    FetchResult,
    InternalPayment,
    LedgerResult,
    LedgerTotals,
    OnboardingStatus,
    PayoutAccount,
    PayoutExecutionResult,
    PayoutLeg,
    PayoutOutcome,
    PayoutPlan,
    PayoutRecord,
    PayoutStrategy,
    PrizeEntry,
    ProcessorBalance,
    ProcessorCharge,
    ProcessorPaymentIntent,
    ProcessorPayout,
    ProcessorTransfer,
    Provenance,
    SideBreakdown,
    TransactionRecord,
    TransactionStatus,
)

__all__ = [
    "AccountProfile",
    "AccountSide",
    "CreatorSources",
    "EarningsSnapshot",
    "FetchResult",
    "InsufficientBalanceError",
    "InternalPayment",
    "LedgerResult",
    "LedgerTotals",
    "NoAccountError",
    "OnboardingStatus",
    "PayoutAccount",
    "PayoutError",
    "PayoutExecutionResult",
    "PayoutInternalError",
    "PayoutLeg",
    "PayoutOutcome",
    "PayoutPlan",
    "PayoutRecord",
    "PayoutStrategy",
    "PayoutValidationError",
    "PrizeEntry",
    "ProcessorBalance",
    "ProcessorCharge",
    "ProcessorPaymentIntent",
    "ProcessorPayout",
    "ProcessorTransfer",
    "Provenance",
    "SideBreakdown",
    "TransactionRecord",
    "TransactionStatus",
    "UserNotFoundError",
]
