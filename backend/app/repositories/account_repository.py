"""User payout-account persistence helpers."""

from __future__ import annotations

from collections.abc import Sequence

from sqlalchemy import select
from sqlalchemy.orm import Session

from app.models import UserAccount


class AccountRepository:
    """Read and maintain the per-user creator/winner account linkage."""

    def __init__(self, session: Session) -> None:
        self._session = session

    def get_user(self, user_id: str) -> UserAccount | None:
        return self._session.get(UserAccount, user_id)

    def list_creator_accounts(self) -> Sequence[UserAccount]:
        query = (
            select(UserAccount)
            .where(UserAccount.creator_account_id.is_not(None))
            .order_by(UserAccount.user_id)
        )
        return self._session.execute(query).scalars().all()

    # ------------------------------------------------------------------
    # Mutations

    def upsert_user(
        self,
        user_id: str,
        *,
        email: str | None = None,
        username: str | None = None,
        creator_account_id: str | None = None,
        creator_onboarding_status: str | None = None,
        winner_account_id: str | None = None,
        winner_onboarding_status: str | None = None,
    ) -> UserAccount:
        record = self._session.get(UserAccount, user_id)
        if record is None:
            record = UserAccount(user_id=user_id)
            self._session.add(record)

        if email is not None:
            record.email = email
        if username is not None:
            record.username = username
        if creator_account_id is not None:
            record.creator_account_id = creator_account_id
        if creator_onboarding_status is not None:
            record.creator_onboarding_status = creator_onboarding_status
        if winner_account_id is not None:
            record.winner_account_id = winner_account_id
        if winner_onboarding_status is not None:
            record.winner_onboarding_status = winner_onboarding_status

        self._session.flush()
        return record
