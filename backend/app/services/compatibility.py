"""Pre-unification response shapes, rebuilt from a unified snapshot.

Older dashboard screens still read the separate creator earnings payload and
the winner prize-history payload. Both are projections of
``EarningsSnapshot`` so every screen reports the same numbers.
"""

from __future__ import annotations

from typing import Any

from app.domain import EarningsSnapshot, TransactionRecord, TransactionStatus
from app.domain.money import to_minor_units

_PRIZE_STATUS = {
    TransactionStatus.COMPLETED: "paid",
    TransactionStatus.PENDING: "pending",
    TransactionStatus.FAILED: "failed",
}


def _sale(record: TransactionRecord) -> dict[str, Any]:
    return {
        "id": record.transaction_id,
        "amount": float(record.amount),
        "date": record.timestamp.isoformat(),
        "roundTitle": record.description or "Round",
        "status": record.status.value,
        "buyerId": record.payer,
    }


def _prize(record: TransactionRecord) -> dict[str, Any]:
    metadata = record.metadata
    return {
        "id": record.transaction_id,
        "challengeId": metadata.get("challenge_id"),
        "challengeTitle": metadata.get("challenge_title"),
        "placement": metadata.get("placement"),
        "score": metadata.get("score"),
        "prizeAmount": to_minor_units(record.amount),
        "status": _PRIZE_STATUS[record.status],
        "createdAt": record.timestamp.isoformat(),
        "paidAt": metadata.get("paid_at"),
    }


def creator_earnings_view(snapshot: EarningsSnapshot, *, recent_limit: int = 10) -> dict[str, Any]:
    creator = snapshot.creator
    return {
        "totalEarned": float(creator.total_earned),
        "pendingPayout": float(creator.pending_payout),
        "availableBalance": float(creator.available_balance),
        "roundsSold": creator.transaction_count,
        "recentSales": [_sale(record) for record in creator.transactions[:recent_limit]],
        "isNewAccount": creator.is_new_account,
        "lastUpdated": snapshot.generated_at.isoformat(),
    }


def prize_history_view(snapshot: EarningsSnapshot) -> dict[str, Any]:
    winner = snapshot.winner
    records = [_prize(record) for record in winner.transactions]
    paid_dates = [record["paidAt"] for record in records if record["paidAt"]]
    return {
        "prizeRecords": records,
        "summary": {
            "totalEarnings": to_minor_units(winner.total_earned),
            "pendingAmount": to_minor_units(winner.pending_payout),
            "paidAmount": to_minor_units(winner.available_balance),
            "totalWins": winner.transaction_count,
            # ISO-8601 UTC strings sort chronologically
            "lastPayoutDate": max(paid_dates) if paid_dates else None,
        },
    }


__all__ = ["creator_earnings_view", "prize_history_view"]
