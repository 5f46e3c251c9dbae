from __future__ import annotations

from datetime import datetime, timezone
from decimal import Decimal
from unittest.mock import MagicMock

from app.domain import AccountSide, PayoutExecutionResult, PayoutLeg, PayoutPlan
from app.repositories import PayoutRecordRepository
from app.services.payout_logger import PayoutRecordLogger, RECORD_PREFIX, new_record_id

T0 = datetime(2026, 1, 15, 12, 0, tzinfo=timezone.utc)

PLAN = PayoutPlan(
    requested_amount=Decimal("12.00"),
    legs=(PayoutLeg(side=AccountSide.WINNER, amount=Decimal("12.00"), account_id="acct_winner"),),
)
RESULTS = [
    PayoutExecutionResult(
        side=AccountSide.WINNER,
        amount=Decimal("12.00"),
        success=True,
        payout_id="po_1",
        status="pending",
        estimated_arrival=T0,
    )
]


def test_record_ids_are_unique_and_prefixed():
    first, second = new_record_id(), new_record_id()

    assert first.startswith(RECORD_PREFIX)
    assert first != second


def test_log_persists_plan_and_results(db_session):
    record = PayoutRecordLogger(db_session, clock=lambda: T0).log(
        PLAN, RESULTS, user_id="user_1", currency="usd"
    )

    assert record is not None
    rows = PayoutRecordRepository(db_session).list_for_user("user_1")
    assert [row.record_id for row in rows] == [record.record_id]
    row = rows[0]
    assert row.strategy == "single_winner"
    assert row.record_type == "unified_payout"
    assert row.results[0]["payout_id"] == "po_1"
    assert row.results[0]["estimated_arrival"] == T0.isoformat()


def test_write_failure_is_swallowed():
    session = MagicMock()
    session.flush.side_effect = RuntimeError("database is locked")

    record = PayoutRecordLogger(session).log(PLAN, RESULTS, user_id="user_1", currency="usd")

    assert record is None
    session.rollback.assert_called_once()
    session.commit.assert_not_called()


def test_failed_rollback_is_swallowed_too():
    session = MagicMock()
    session.flush.side_effect = RuntimeError("connection lost")
    session.rollback.side_effect = RuntimeError("connection lost during rollback")

    record = PayoutRecordLogger(session).log(PLAN, RESULTS, user_id="user_1", currency="usd")

    assert record is None
    session.rollback.assert_called_once()
