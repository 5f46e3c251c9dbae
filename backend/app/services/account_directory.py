"""Resolve a user to their creator and winner payout accounts."""

from __future__ import annotations

from app.domain import (
    AccountProfile,
    AccountSide,
    OnboardingStatus,
    PayoutAccount,
    UserNotFoundError,
)
from app.models import UserAccount
from app.repositories import AccountRepository


def _account(side: AccountSide, account_id: str | None, status: str | None) -> PayoutAccount:
    account_id = (account_id or "").strip() or None
    return PayoutAccount(
        side=side,
        account_id=account_id,
        onboarding_status=OnboardingStatus.parse(status),
    )


def to_profile(record: UserAccount) -> AccountProfile:
    return AccountProfile(
        user_id=record.user_id,
        email=record.email,
        creator=_account(
            AccountSide.CREATOR, record.creator_account_id, record.creator_onboarding_status
        ),
        winner=_account(
            AccountSide.WINNER, record.winner_account_id, record.winner_onboarding_status
        ),
    )


class AccountDirectory:
    """Pure read over the profile store; balances are filled in later by the aggregator."""

    def __init__(self, accounts: AccountRepository) -> None:
        self._accounts = accounts

    def lookup(self, user_id: str) -> AccountProfile:
        record = self._accounts.get_user(user_id)
        if record is None:
            raise UserNotFoundError(user_id)
        return to_profile(record)


__all__ = ["AccountDirectory", "to_profile"]
