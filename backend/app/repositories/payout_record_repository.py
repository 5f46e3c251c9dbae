"""Audit log of executed payouts."""

from __future__ import annotations

from collections.abc import Sequence
from typing import Any

from sqlalchemy import desc, select
from sqlalchemy.orm import Session

from app.domain import PayoutExecutionResult, PayoutLeg, PayoutRecord
from app.models import PayoutRecordRow


def _serialize_leg(leg: PayoutLeg) -> dict[str, Any]:
    return {
        "side": leg.side.value,
        "amount": str(leg.amount),
        "account_id": leg.account_id,
    }


def _serialize_result(result: PayoutExecutionResult) -> dict[str, Any]:
    return {
        "side": result.side.value,
        "amount": str(result.amount),
        "success": result.success,
        "payout_id": result.payout_id,
        "status": result.status,
        "error": result.error,
        "estimated_arrival": (
            result.estimated_arrival.isoformat() if result.estimated_arrival else None
        ),
    }


class PayoutRecordRepository:
    def __init__(self, session: Session) -> None:
        self._session = session

    def add(self, record: PayoutRecord) -> PayoutRecordRow:
        row = PayoutRecordRow(
            record_id=record.record_id,
            user_id=record.user_id,
            amount=record.plan.requested_amount,
            currency=record.currency,
            strategy=record.plan.strategy.value,
            outcome=record.outcome.value,
            legs=[_serialize_leg(leg) for leg in record.plan.legs],
            results=[_serialize_result(result) for result in record.results],
            requested_at=record.requested_at,
        )
        self._session.add(row)
        self._session.flush()
        return row

    def get(self, record_id: str) -> PayoutRecordRow | None:
        return self._session.get(PayoutRecordRow, record_id)

    def list_for_user(self, user_id: str, *, limit: int = 20) -> Sequence[PayoutRecordRow]:
        query = (
            select(PayoutRecordRow)
            .where(PayoutRecordRow.user_id == user_id)
            .order_by(desc(PayoutRecordRow.requested_at))
            .limit(limit)
        )
        return self._session.execute(query).scalars().all()
