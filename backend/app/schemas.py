from datetime import date, datetime
from decimal import Decimal
from typing import Any

from pydantic import BaseModel, Field, field_validator

from .domain import (
    AccountSide,
    EarningsSnapshot,
    PayoutExecutionResult,
    SideBreakdown,
    TransactionRecord,
)
from .domain.money import format_amount
from .services.account_health import AccountHealthReport
from .services.payout_service import ARRIVAL_NOTE, PayoutSummary

TRANSACTION_TYPES = {
    AccountSide.CREATOR: "creator_sale",
    AccountSide.WINNER: "prize_winning",
}


class Transaction(BaseModel):
    id: str
    type: str
    side: str
    amount: float
    date: datetime
    status: str
    description: str | None = None
    payer: str | None = None

    @field_validator("amount", mode="before")
    @classmethod
    def _coerce_amount(cls, value: Any) -> float:
        return float(value)


class SideEarnings(BaseModel):
    total_earned: float
    available_balance: float
    pending_payout: float
    transaction_count: int
    onboarding_status: str
    has_account: bool
    is_new_account: bool
    missing_account: bool = False
    degraded: bool = False
    last_payout_date: datetime | None = None

    @field_validator("total_earned", "available_balance", "pending_payout", mode="before")
    @classmethod
    def _coerce_decimal(cls, value: Any) -> float:
        if value is None:
            return 0.0
        return float(value)


class EarningsResponse(BaseModel):
    user_id: str
    total_earned: float
    available_balance: float
    pending_payout: float
    creator: SideEarnings
    winner: SideEarnings
    transactions: list[Transaction] = Field(default_factory=list)
    minimum_payout_amount: float
    can_request_payout: bool
    next_payout_date: str
    has_creator_account: bool
    has_winner_account: bool
    needs_account_setup: bool
    is_new_account: bool
    degraded: bool
    degraded_sources: list[str] = Field(default_factory=list)
    sync_gap_count: int = 0
    last_updated: datetime

    @field_validator(
        "total_earned",
        "available_balance",
        "pending_payout",
        "minimum_payout_amount",
        mode="before",
    )
    @classmethod
    def _coerce_decimal(cls, value: Any) -> float:
        if value is None:
            return 0.0
        return float(value)


class PayoutRequest(BaseModel):
    user_id: str = Field(min_length=1)
    amount: Decimal
    currency: str = Field(default="usd", pattern="^[A-Za-z]{3}$")


class PayoutLegResult(BaseModel):
    side: str
    amount: float
    success: bool
    payout_id: str | None = None
    status: str | None = None
    error: str | None = None
    estimated_arrival: datetime | None = None

    @field_validator("amount", mode="before")
    @classmethod
    def _coerce_amount(cls, value: Any) -> float:
        return float(value)


class PayoutPlanSummary(BaseModel):
    strategy: str
    requested_amount: float
    creator_amount: float = 0.0
    winner_amount: float = 0.0

    @field_validator("requested_amount", "creator_amount", "winner_amount", mode="before")
    @classmethod
    def _coerce_decimal(cls, value: Any) -> float:
        return float(value)


class EstimatedArrival(BaseModel):
    arrival_date: date
    note: str = ARRIVAL_NOTE


class PayoutResponse(BaseModel):
    success: bool
    status: str
    payout_record_id: str
    currency: str
    plan: PayoutPlanSummary
    results: list[PayoutLegResult]
    estimated_arrival: EstimatedArrival
    message: str


class AccountIssueOut(BaseModel):
    side: str
    issue: str
    severity: str
    account_id: str | None = None
    detail: str | None = None
    hint: str


class AccountHealthResponse(BaseModel):
    user_id: str
    healthy: bool
    checked_accounts: int
    issues: list[AccountIssueOut] = Field(default_factory=list)


# ---------------------------------------------------------------------------
# Domain -> response converters


def transaction_out(record: TransactionRecord) -> Transaction:
    return Transaction(
        id=record.transaction_id,
        type=TRANSACTION_TYPES[record.side],
        side=record.side.value,
        amount=record.amount,
        date=record.timestamp,
        status=record.status.value,
        description=record.description,
        payer=record.payer,
    )


def side_out(side: SideBreakdown) -> SideEarnings:
    last_payout = max(
        (payout.arrival_date or payout.created_at for payout in side.payouts), default=None
    )
    return SideEarnings(
        total_earned=side.total_earned,
        available_balance=side.available_balance,
        pending_payout=side.pending_payout,
        transaction_count=side.transaction_count,
        onboarding_status=side.onboarding_status.value,
        has_account=bool(side.account_id),
        is_new_account=side.is_new_account,
        missing_account=side.missing_account,
        degraded=side.degraded,
        last_payout_date=last_payout,
    )


def next_payout_hint(snapshot: EarningsSnapshot) -> str:
    if snapshot.can_request_payout:
        return "Available now"
    return f"When balance reaches {format_amount(snapshot.minimum_payout_amount)}"


def earnings_response(snapshot: EarningsSnapshot) -> EarningsResponse:
    return EarningsResponse(
        user_id=snapshot.user_id,
        total_earned=snapshot.total_earned,
        available_balance=snapshot.available_balance,
        pending_payout=snapshot.pending_payout,
        creator=side_out(snapshot.creator),
        winner=side_out(snapshot.winner),
        transactions=[transaction_out(record) for record in snapshot.transactions],
        minimum_payout_amount=snapshot.minimum_payout_amount,
        can_request_payout=snapshot.can_request_payout,
        next_payout_date=next_payout_hint(snapshot),
        has_creator_account=snapshot.has_creator_account,
        has_winner_account=snapshot.has_winner_account,
        needs_account_setup=snapshot.needs_account_setup,
        is_new_account=snapshot.is_new_account,
        degraded=snapshot.degraded,
        degraded_sources=list(snapshot.degraded_sources),
        sync_gap_count=snapshot.sync_gap_count,
        last_updated=snapshot.generated_at,
    )


def _leg_result(result: PayoutExecutionResult) -> PayoutLegResult:
    return PayoutLegResult(
        side=result.side.value,
        amount=result.amount,
        success=result.success,
        payout_id=result.payout_id,
        status=result.status,
        error=result.error,
        estimated_arrival=result.estimated_arrival,
    )


_OUTCOME_MESSAGES = {
    "completed": "Payout initiated successfully",
    "partial": "Payout partially initiated; some transfers failed",
    "failed": "Payout failed; no funds were sent",
}


def payout_response(summary: PayoutSummary) -> PayoutResponse:
    by_side = {leg.side: leg.amount for leg in summary.plan.legs}
    outcome = summary.outcome.value
    return PayoutResponse(
        success=outcome != "failed",
        status=outcome,
        payout_record_id=summary.record_id,
        currency=summary.currency,
        plan=PayoutPlanSummary(
            strategy=summary.plan.strategy.value,
            requested_amount=summary.plan.requested_amount,
            creator_amount=by_side.get(AccountSide.CREATOR, 0),
            winner_amount=by_side.get(AccountSide.WINNER, 0),
        ),
        results=[_leg_result(result) for result in summary.results],
        estimated_arrival=EstimatedArrival(arrival_date=summary.estimated_arrival),
        message=_OUTCOME_MESSAGES[outcome],
    )


def account_health_response(report: AccountHealthReport) -> AccountHealthResponse:
    return AccountHealthResponse(
        user_id=report.user_id,
        healthy=report.healthy,
        checked_accounts=report.checked_accounts,
        issues=[
            AccountIssueOut(
                side=issue.side.value,
                issue=issue.issue,
                severity=issue.severity,
                account_id=issue.account_id,
                detail=issue.detail,
                hint=issue.hint,
            )
            for issue in report.issues
        ],
    )
