"""Prize-record access for the winner side of a wallet."""

from __future__ import annotations

from collections.abc import Sequence
from datetime import datetime, timezone

from sqlalchemy import desc, select
from sqlalchemy.orm import Session

from app.domain import PrizeEntry
from app.domain.money import from_minor_units
from app.models import PrizeRecord, PrizeStatus


def _as_utc(value: datetime | None) -> datetime | None:
    if value is None:
        return None
    return value if value.tzinfo else value.replace(tzinfo=timezone.utc)


def to_prize_entry(record: PrizeRecord) -> PrizeEntry:
    return PrizeEntry(
        record_id=record.record_id,
        amount=from_minor_units(record.prize_amount),
        status=(record.status or PrizeStatus.PENDING.value).lower(),
        created_at=_as_utc(record.created_at),
        challenge_id=record.challenge_id,
        challenge_title=record.challenge_title,
        placement=record.placement,
        score=float(record.score) if record.score is not None else None,
        paid_at=_as_utc(record.paid_at),
    )


class PrizeRepository:
    def __init__(self, session: Session) -> None:
        self._session = session

    def list_for_user(self, user_id: str) -> Sequence[PrizeRecord]:
        query = (
            select(PrizeRecord)
            .where(PrizeRecord.user_id == user_id)
            .order_by(desc(PrizeRecord.created_at))
        )
        return self._session.execute(query).scalars().all()

    def add_prize(
        self,
        *,
        record_id: str,
        user_id: str,
        prize_amount: int,
        status: PrizeStatus = PrizeStatus.PENDING,
        challenge_id: str | None = None,
        challenge_title: str | None = None,
        placement: int | None = None,
        score: float | None = None,
        paid_at: datetime | None = None,
        created_at: datetime | None = None,
    ) -> PrizeRecord:
        record = PrizeRecord(
            record_id=record_id,
            user_id=user_id,
            prize_amount=prize_amount,
            status=status.value,
            challenge_id=challenge_id,
            challenge_title=challenge_title,
            placement=placement,
            score=score,
            paid_at=paid_at,
        )
        if created_at is not None:
            record.created_at = created_at
        self._session.add(record)
        self._session.flush()
        return record
