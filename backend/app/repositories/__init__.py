"""Repository abstractions for database interactions."""

from .account_repository import AccountRepository
from .payment_repository import PaymentRepository, map_payment_status, to_internal_payment
from .payout_record_repository import PayoutRecordRepository
from .prize_repository import PrizeRepository, to_prize_entry

__all__ = [
    "AccountRepository",
    "PaymentRepository",
    "PayoutRecordRepository",
    "PrizeRepository",
    "map_payment_status",
    "to_internal_payment",
    "to_prize_entry",
]
