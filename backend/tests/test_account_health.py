from __future__ import annotations

from app.domain import AccountSide
from app.repositories import AccountRepository
from app.services.account_directory import AccountDirectory
from app.services.account_health import (
    ISSUE_EMAIL_MISMATCH,
    ISSUE_MISSING_ACCOUNT,
    ISSUE_NOT_FOUND,
    ISSUE_PAYOUT_DISABLED,
    AccountHealthChecker,
)


def _checker(session, processor) -> AccountHealthChecker:
    return AccountHealthChecker(AccountDirectory(AccountRepository(session)), processor)


def test_healthy_accounts(db_session, fake_processor):
    AccountRepository(db_session).upsert_user(
        "user_1",
        email="Creator@Example.com",
        creator_account_id="acct_creator",
        creator_onboarding_status="complete",
    )
    fake_processor.accounts["acct_creator"] = {
        "id": "acct_creator",
        "email": "creator@example.com",
        "payouts_enabled": True,
    }

    report = _checker(db_session, fake_processor).check("user_1")

    assert report.healthy
    assert report.checked_accounts == 1


def test_reports_every_issue_kind(db_session, fake_processor):
    AccountRepository(db_session).upsert_user(
        "user_1",
        email="creator@example.com",
        creator_account_id="acct_creator",
        creator_onboarding_status="complete",
        winner_account_id="acct_gone",
        winner_onboarding_status="complete",
    )
    fake_processor.accounts["acct_creator"] = {
        "id": "acct_creator",
        "business_profile": {"support_email": "someone.else@example.com"},
        "payouts_enabled": False,
    }

    report = _checker(db_session, fake_processor).check("user_1")

    issues = {(issue.side, issue.issue) for issue in report.issues}
    assert issues == {
        (AccountSide.CREATOR, ISSUE_EMAIL_MISMATCH),
        (AccountSide.CREATOR, ISSUE_PAYOUT_DISABLED),
        (AccountSide.WINNER, ISSUE_NOT_FOUND),
    }
    not_found = next(issue for issue in report.issues if issue.issue == ISSUE_NOT_FOUND)
    assert "acct_gone" in not_found.detail
    assert not_found.hint


def test_missing_account_id_after_onboarding(db_session, fake_processor):
    AccountRepository(db_session).upsert_user("user_1", creator_onboarding_status="complete")

    report = _checker(db_session, fake_processor).check("user_1")

    assert [issue.issue for issue in report.issues] == [ISSUE_MISSING_ACCOUNT]
    assert report.checked_accounts == 0
