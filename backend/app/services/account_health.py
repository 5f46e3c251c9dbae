"""Read-only consistency checks between stored payout accounts and the processor."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Mapping

from loguru import logger

from app.domain import AccountProfile, AccountSide, PayoutAccount
from processor.base import PayoutProcessor

from .account_directory import AccountDirectory

ISSUE_MISSING_ACCOUNT = "missing_account_id"
ISSUE_NOT_FOUND = "account_not_found"
ISSUE_EMAIL_MISMATCH = "email_mismatch"
ISSUE_PAYOUT_DISABLED = "payout_disabled"

_HINTS = {
    ISSUE_MISSING_ACCOUNT: "Re-link the connected account or restart onboarding.",
    ISSUE_NOT_FOUND: "The stored account id no longer resolves; restart onboarding.",
    ISSUE_EMAIL_MISMATCH: "Confirm the connected account belongs to this user before paying out.",
    ISSUE_PAYOUT_DISABLED: "Ask the user to finish verification with the processor.",
}


@dataclass(slots=True, frozen=True)
class AccountIssue:
    side: AccountSide
    issue: str
    severity: str
    account_id: str | None = None
    detail: str | None = None

    @property
    def hint(self) -> str:
        return _HINTS[self.issue]


@dataclass(slots=True)
class AccountHealthReport:
    user_id: str
    checked_accounts: int = 0
    issues: list[AccountIssue] = field(default_factory=list)

    @property
    def healthy(self) -> bool:
        return not self.issues


def _account_email(raw: Mapping[str, Any]) -> str | None:
    email = raw.get("email")
    if not email:
        profile = raw.get("business_profile")
        if isinstance(profile, Mapping):
            email = profile.get("support_email")
    return str(email).strip().lower() if email else None


class AccountHealthChecker:
    def __init__(self, directory: AccountDirectory, processor: PayoutProcessor) -> None:
        self._directory = directory
        self._processor = processor

    def check(self, user_id: str) -> AccountHealthReport:
        profile = self._directory.lookup(user_id)
        return self.check_profile(profile)

    def check_profile(self, profile: AccountProfile) -> AccountHealthReport:
        report = AccountHealthReport(user_id=profile.user_id)
        for account in (profile.creator, profile.winner):
            report.issues.extend(self._check_account(profile, account, report))
        if report.issues:
            logger.warning(
                "Account health for {}: {}",
                profile.user_id,
                ", ".join(f"{issue.side.value}:{issue.issue}" for issue in report.issues),
            )
        return report

    def _check_account(
        self,
        profile: AccountProfile,
        account: PayoutAccount,
        report: AccountHealthReport,
    ) -> list[AccountIssue]:
        if account.missing_account:
            return [AccountIssue(side=account.side, issue=ISSUE_MISSING_ACCOUNT, severity="critical")]
        if not account.present:
            return []

        report.checked_accounts += 1
        try:
            raw = self._processor.retrieve_account(account.account_id)
        except Exception as exc:  # noqa: BLE001 - reported as an issue
            return [
                AccountIssue(
                    side=account.side,
                    issue=ISSUE_NOT_FOUND,
                    severity="critical",
                    account_id=account.account_id,
                    detail=str(exc),
                )
            ]

        issues: list[AccountIssue] = []
        remote_email = _account_email(raw)
        local_email = (profile.email or "").strip().lower() or None
        if remote_email and local_email and remote_email != local_email:
            issues.append(
                AccountIssue(
                    side=account.side,
                    issue=ISSUE_EMAIL_MISMATCH,
                    severity="warning",
                    account_id=account.account_id,
                    detail=f"processor account email {remote_email} != {local_email}",
                )
            )
        if raw.get("payouts_enabled") is False:
            issues.append(
                AccountIssue(
                    side=account.side,
                    issue=ISSUE_PAYOUT_DISABLED,
                    severity="warning",
                    account_id=account.account_id,
                )
            )
        return issues


__all__ = [
    "AccountHealthChecker",
    "AccountHealthReport",
    "AccountIssue",
    "ISSUE_EMAIL_MISMATCH",
    "ISSUE_MISSING_ACCOUNT",
    "ISSUE_NOT_FOUND",
    "ISSUE_PAYOUT_DISABLED",
]
