"""Unified earnings snapshot across the creator and winner sides of a wallet."""

from __future__ import annotations

from collections.abc import Callable, Sequence
from concurrent.futures import ThreadPoolExecutor
from datetime import datetime, timezone
from decimal import Decimal

from loguru import logger

from app.core.config import get_settings
from app.domain import (
    AccountProfile,
    AccountSide,
    EarningsSnapshot,
    LedgerResult,
    PayoutAccount,
    PrizeEntry,
    Provenance,
    SideBreakdown,
    TransactionRecord,
    TransactionStatus,
)
from app.domain.money import ZERO
from app.repositories import PrizeRepository, to_prize_entry
from processor.fetchers import PendingFetches, SourceFetchers

from .account_directory import AccountDirectory
from .reconciler import LedgerReconciler

PRIZE_PENDING_STATUSES = frozenset({"pending", "processing"})
PRIZE_PAID_STATUSES = frozenset({"paid"})
_PRIZE_TRANSACTION_STATUS = {
    "pending": TransactionStatus.PENDING,
    "processing": TransactionStatus.PENDING,
    "paid": TransactionStatus.COMPLETED,
}

SOURCE_CREATOR_LEDGER = "creator_ledger"
SOURCE_PRIZE_RECORDS = "prize_records"


def placement_label(placement: int | None) -> str:
    if placement is None:
        return "Prize"
    if 10 <= placement % 100 <= 20:
        suffix = "th"
    else:
        suffix = {1: "st", 2: "nd", 3: "rd"}.get(placement % 10, "th")
    return f"{placement}{suffix} Place"


def _prize_transaction(entry: PrizeEntry) -> TransactionRecord:
    title = entry.challenge_title or "Challenge"
    return TransactionRecord(
        transaction_id=entry.record_id,
        amount=entry.amount,
        timestamp=entry.created_at,
        status=_PRIZE_TRANSACTION_STATUS.get(entry.status, TransactionStatus.FAILED),
        side=AccountSide.WINNER,
        provenance=Provenance.INTERNAL_STORE,
        description=f"{placement_label(entry.placement)} - {title}",
        metadata={
            "challenge_id": entry.challenge_id,
            "challenge_title": entry.challenge_title,
            "placement": entry.placement,
            "score": entry.score,
            "paid_at": entry.paid_at.isoformat() if entry.paid_at else None,
        },
    )


def summarize_prizes(entries: Sequence[PrizeEntry], account: PayoutAccount) -> SideBreakdown:
    """Winner balances come from record status, not from a live processor balance."""

    pending = sum(
        (entry.amount for entry in entries if entry.status in PRIZE_PENDING_STATUSES), ZERO
    )
    paid = sum((entry.amount for entry in entries if entry.status in PRIZE_PAID_STATUSES), ZERO)
    counted = [
        entry
        for entry in entries
        if entry.status in PRIZE_PENDING_STATUSES or entry.status in PRIZE_PAID_STATUSES
    ]
    transactions = sorted(
        (_prize_transaction(entry) for entry in entries if entry.amount > ZERO),
        key=lambda record: record.timestamp,
        reverse=True,
    )
    return SideBreakdown(
        side=AccountSide.WINNER,
        account_id=account.account_id,
        onboarding_status=account.onboarding_status,
        total_earned=pending + paid,
        available_balance=paid,
        pending_payout=pending,
        transaction_count=len(counted),
        is_new_account=not counted,
        transactions=transactions,
    )


def creator_breakdown(ledger: LedgerResult, account: PayoutAccount) -> SideBreakdown:
    totals = ledger.totals
    return SideBreakdown(
        side=AccountSide.CREATOR,
        account_id=account.account_id,
        onboarding_status=account.onboarding_status,
        total_earned=max(totals.total_earned, ZERO),
        available_balance=max(totals.available_balance, ZERO),
        pending_payout=max(totals.pending_balance, ZERO),
        transaction_count=totals.transaction_count,
        is_new_account=totals.transaction_count == 0 and totals.transferred_total == ZERO,
        degraded=ledger.degraded,
        transactions=list(ledger.transactions),
    )


def dormant_side(account: PayoutAccount, *, activity: int = 0, degraded: bool = False) -> SideBreakdown:
    """Zero-valued side for accounts that are absent, unfinished, or unreadable."""

    return SideBreakdown(
        side=account.side,
        account_id=account.account_id,
        onboarding_status=account.onboarding_status,
        transaction_count=activity,
        is_new_account=True,
        missing_account=account.missing_account,
        degraded=degraded,
    )


class EarningsAggregator:
    """Combine the reconciled creator ledger with the winner prize summary."""

    def __init__(
        self,
        directory: AccountDirectory,
        fetchers: SourceFetchers,
        prizes: PrizeRepository,
        *,
        reconciler: LedgerReconciler | None = None,
        minimum_payout_amount: Decimal | None = None,
        recent_limit: int | None = None,
        max_workers: int | None = None,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        settings = get_settings()
        self._directory = directory
        self._fetchers = fetchers
        self._prizes = prizes
        self._reconciler = reconciler or LedgerReconciler(AccountSide.CREATOR)
        self._minimum = (
            minimum_payout_amount
            if minimum_payout_amount is not None
            else settings.minimum_payout_amount
        )
        self._recent_limit = recent_limit or settings.recent_transactions_limit
        self._max_workers = max_workers or settings.fetcher_max_workers
        self._clock = clock or (lambda: datetime.now(timezone.utc))

    def aggregate(self, user_id: str) -> EarningsSnapshot:
        profile = self._directory.lookup(user_id)
        return self.aggregate_profile(profile)

    def aggregate_profile(self, profile: AccountProfile) -> EarningsSnapshot:
        degraded: list[str] = []
        sync_gaps = 0

        with ThreadPoolExecutor(max_workers=self._max_workers) as executor:
            pending: PendingFetches | None = None
            if profile.creator.active:
                pending = self._fetchers.submit_processor_fetches(
                    executor, profile.creator.account_id
                )

            # Winner side reads the store while processor calls are in flight.
            try:
                winner = self._winner_side(profile)
            except Exception:  # noqa: BLE001 - one side never fails the other
                logger.exception("Winner side failed for user {}", profile.user_id)
                winner = dormant_side(profile.winner, degraded=True)
                degraded.append(SOURCE_PRIZE_RECORDS)

            try:
                creator, ledger = self._creator_side(profile, pending)
            except Exception:  # noqa: BLE001
                logger.exception("Creator side failed for user {}", profile.user_id)
                creator, ledger = dormant_side(profile.creator, degraded=True), None
                degraded.append(SOURCE_CREATOR_LEDGER)

        if ledger is not None:
            degraded = [*ledger.degraded_sources, *degraded]
            sync_gaps = len(ledger.sync_gaps)

        merged = sorted(
            [*creator.transactions, *winner.transactions],
            key=lambda record: record.timestamp,
            reverse=True,
        )
        snapshot = EarningsSnapshot(
            user_id=profile.user_id,
            creator=creator,
            winner=winner,
            transactions=merged[: self._recent_limit],
            minimum_payout_amount=self._minimum,
            generated_at=self._clock(),
            degraded_sources=degraded,
            sync_gap_count=sync_gaps,
            has_creator_account=profile.creator.present or profile.creator.missing_account,
            has_winner_account=profile.winner.present or profile.winner.missing_account,
        )
        logger.info(
            "Earnings for {}: total={} available={} pending={} transactions={} degraded={}",
            profile.user_id,
            snapshot.total_earned,
            snapshot.available_balance,
            snapshot.pending_payout,
            len(merged),
            ",".join(degraded) or "no",
        )
        return snapshot

    def _creator_side(
        self, profile: AccountProfile, pending: PendingFetches | None
    ) -> tuple[SideBreakdown, LedgerResult | None]:
        account = profile.creator
        if pending is None:
            if account.missing_account:
                logger.warning(
                    "Creator onboarding complete but account id missing for user {}",
                    profile.user_id,
                )
            activity = len(self._fetchers.fetch_internal(profile.user_id).records)
            return dormant_side(account, activity=activity), None

        sources = self._fetchers.collect(profile.user_id, pending)
        ledger = self._reconciler.reconcile_sources(sources)
        breakdown = creator_breakdown(ledger, account)
        breakdown.payouts = list(sources.payouts.records)
        return breakdown, ledger

    def _winner_side(self, profile: AccountProfile) -> SideBreakdown:
        account = profile.winner
        entries = [to_prize_entry(row) for row in self._prizes.list_for_user(profile.user_id)]
        if not account.active:
            if account.missing_account:
                logger.warning(
                    "Winner onboarding complete but account id missing for user {}",
                    profile.user_id,
                )
            return dormant_side(account, activity=len(entries))
        return summarize_prizes(entries, account)


__all__ = [
    "EarningsAggregator",
    "PRIZE_PAID_STATUSES",
    "PRIZE_PENDING_STATUSES",
    "creator_breakdown",
    "dormant_side",
    "placement_label",
    "summarize_prizes",
]
