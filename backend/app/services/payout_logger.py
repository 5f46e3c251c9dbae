"""Persist an audit record of each payout request and its leg results."""

from __future__ import annotations

import uuid
from collections.abc import Callable, Sequence
from datetime import datetime, timezone

from loguru import logger
from sqlalchemy.orm import Session

from app.domain import PayoutExecutionResult, PayoutPlan, PayoutRecord
from app.repositories import PayoutRecordRepository

RECORD_PREFIX = "unified_payout_"


def new_record_id() -> str:
    return f"{RECORD_PREFIX}{uuid.uuid4().hex}"


class PayoutRecordLogger:
    """Best-effort audit trail; a failed write never changes the payout outcome."""

    def __init__(
        self,
        session: Session,
        *,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        self._session = session
        self._repository = PayoutRecordRepository(session)
        self._clock = clock or (lambda: datetime.now(timezone.utc))

    def log(
        self,
        plan: PayoutPlan,
        results: Sequence[PayoutExecutionResult],
        *,
        user_id: str,
        currency: str,
        record_id: str | None = None,
    ) -> PayoutRecord | None:
        record = PayoutRecord(
            record_id=record_id or new_record_id(),
            user_id=user_id,
            currency=currency,
            plan=plan,
            results=tuple(results),
            requested_at=self._clock(),
        )
        try:
            self._repository.add(record)
            self._session.commit()
        except Exception:  # noqa: BLE001 - the money already moved
            logger.exception("Failed to log payout record {} for user {}", record.record_id, user_id)
            self._discard_pending()
            return None
        logger.info(
            "Logged payout record {} ({}, {})",
            record.record_id,
            plan.strategy.value,
            record.outcome.value,
        )
        return record

    def _discard_pending(self) -> None:
        try:
            self._session.rollback()
        except Exception:  # noqa: BLE001 - the money already moved
            logger.exception("Rollback after failed payout record write also failed")


__all__ = ["PayoutRecordLogger", "RECORD_PREFIX", "new_record_id"]
