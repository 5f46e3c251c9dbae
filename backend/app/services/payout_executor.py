"""Send each leg of a payout plan to the processor, one leg at a time."""

from __future__ import annotations

from datetime import datetime
from typing import Any, Mapping

from loguru import logger

from app.core.config import get_settings
from app.domain import PayoutExecutionResult, PayoutLeg, PayoutPlan
from app.domain.money import to_minor_units
from processor.base import PayoutProcessor
from processor.normalize import parse_arrival


def idempotency_key(record_id: str, leg: PayoutLeg) -> str:
    return f"{record_id}:{leg.side.value}"


def _read_response(
    response: Mapping[str, Any], leg: PayoutLeg
) -> tuple[str | None, str | None, datetime | None]:
    """Read an accepted payout, keeping whatever parsed before a malformed field."""

    payout_id = status = arrival = None
    try:
        raw_id = response.get("id")
        payout_id = str(raw_id) if raw_id else None
        status = response.get("status")
        arrival = parse_arrival(response)
    except Exception:  # noqa: BLE001 - the leg already moved
        logger.exception("Could not read processor response for {} payout leg", leg.side.value)
    return payout_id, status, arrival


class PayoutExecutor:
    """Attempts every leg; a failed leg never rolls back one that succeeded."""

    def __init__(self, processor: PayoutProcessor, *, currency: str | None = None) -> None:
        self._processor = processor
        self._currency = currency or get_settings().payout_currency

    def execute(
        self,
        plan: PayoutPlan,
        *,
        record_id: str,
        currency: str | None = None,
    ) -> list[PayoutExecutionResult]:
        currency = (currency or self._currency).lower()
        results = [self._execute_leg(leg, record_id, currency) for leg in plan.legs]
        failed = [result for result in results if not result.success]
        if failed and len(failed) < len(results):
            logger.warning(
                "Payout {} partially failed: {}",
                record_id,
                ", ".join(f"{result.side.value}: {result.error}" for result in failed),
            )
        return results

    def _execute_leg(
        self, leg: PayoutLeg, record_id: str, currency: str
    ) -> PayoutExecutionResult:
        cents = to_minor_units(leg.amount)
        try:
            response = self._processor.create_payout(
                leg.account_id,
                amount=cents,
                currency=currency,
                idempotency_key=idempotency_key(record_id, leg),
            )
        except Exception as exc:  # noqa: BLE001 - leg failures become results
            logger.error(
                "Payout leg {} for {} ({} cents) failed: {}",
                leg.side.value,
                leg.account_id,
                cents,
                exc,
            )
            return PayoutExecutionResult(
                side=leg.side,
                amount=leg.amount,
                success=False,
                error=str(exc) or exc.__class__.__name__,
            )

        payout_id, status, arrival = _read_response(response, leg)
        logger.info(
            "Payout leg {} sent {} cents to {} as {}",
            leg.side.value,
            cents,
            leg.account_id,
            payout_id,
        )
        return PayoutExecutionResult(
            side=leg.side,
            amount=leg.amount,
            success=True,
            payout_id=payout_id,
            status=status,
            estimated_arrival=arrival,
        )


__all__ = ["PayoutExecutor", "idempotency_key"]
