from __future__ import annotations

from datetime import date, datetime, timezone
from decimal import Decimal

import pytest
from pydantic import ValidationError

from app.domain import (
    AccountSide,
    EarningsSnapshot,
    OnboardingStatus,
    PayoutExecutionResult,
    PayoutLeg,
    PayoutPlan,
    Provenance,
    SideBreakdown,
    TransactionRecord,
    TransactionStatus,
)
from app.schemas import (
    PayoutRequest,
    SideEarnings,
    earnings_response,
    payout_response,
)
from app.services.payout_service import PayoutSummary

T0 = datetime(2026, 1, 15, 12, 0, tzinfo=timezone.utc)


def test_side_earnings_coerces_decimal_fields():
    """Verify that Decimal balances are serialized as floats."""
    side = SideEarnings(
        total_earned=Decimal("32.00"),
        available_balance=Decimal("12.50"),
        pending_payout=None,
        transaction_count=1,
        onboarding_status="complete",
        has_account=True,
        is_new_account=False,
    )
    assert isinstance(side.total_earned, float)
    assert side.available_balance == 12.5
    assert side.pending_payout == 0.0


def test_earnings_response_hides_provenance():
    sale = TransactionRecord(
        transaction_id="ch_1",
        amount=Decimal("9.99"),
        timestamp=T0,
        status=TransactionStatus.COMPLETED,
        side=AccountSide.CREATOR,
        provenance=Provenance.PROCESSOR_CHARGE,
    )
    snapshot = EarningsSnapshot(
        user_id="user_1",
        creator=SideBreakdown(
            side=AccountSide.CREATOR,
            account_id="acct_creator",
            onboarding_status=OnboardingStatus.COMPLETE,
            available_balance=Decimal("4.00"),
            transaction_count=1,
            is_new_account=False,
        ),
        winner=SideBreakdown(
            side=AccountSide.WINNER,
            account_id=None,
            onboarding_status=OnboardingStatus.NOT_STARTED,
        ),
        transactions=[sale],
        minimum_payout_amount=Decimal("10.00"),
        generated_at=T0,
        degraded_sources=["processor_payouts"],
        sync_gap_count=1,
    )

    payload = earnings_response(snapshot).model_dump(mode="json")

    assert payload["available_balance"] == 4.0
    assert payload["can_request_payout"] is False
    assert payload["next_payout_date"] == "When balance reaches $10.00"
    assert payload["degraded"] is True
    assert payload["winner"]["has_account"] is False
    transaction = payload["transactions"][0]
    assert transaction["type"] == "creator_sale"
    assert "provenance" not in transaction


def test_payout_request_validates_currency():
    with pytest.raises(ValidationError):
        PayoutRequest(user_id="user_1", amount="10.00", currency="dollars")

    request = PayoutRequest(user_id="user_1", amount=25.5)
    assert request.amount == Decimal("25.5")
    assert request.currency == "usd"


def test_payout_response_summarizes_plan_and_legs():
    plan = PayoutPlan(
        requested_amount=Decimal("10.00"),
        legs=(
            PayoutLeg(side=AccountSide.CREATOR, amount=Decimal("7.00"), account_id="acct_creator"),
            PayoutLeg(side=AccountSide.WINNER, amount=Decimal("3.00"), account_id="acct_winner"),
        ),
    )
    summary = PayoutSummary(
        record_id="unified_payout_abc",
        user_id="user_1",
        currency="usd",
        plan=plan,
        results=[
            PayoutExecutionResult(side=AccountSide.CREATOR, amount=Decimal("7.00"), success=True, payout_id="po_1"),
            PayoutExecutionResult(side=AccountSide.WINNER, amount=Decimal("3.00"), success=False, error="disabled"),
        ],
        estimated_arrival=date(2026, 1, 18),
        logged=True,
    )

    payload = payout_response(summary).model_dump(mode="json")

    assert payload["status"] == "partial"
    assert payload["success"] is True
    assert payload["plan"] == {
        "strategy": "combined",
        "requested_amount": 10.0,
        "creator_amount": 7.0,
        "winner_amount": 3.0,
    }
    assert payload["estimated_arrival"] == {"arrival_date": "2026-01-18", "note": "2-7 business days"}
    assert [leg["success"] for leg in payload["results"]] == [True, False]
