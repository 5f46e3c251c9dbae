from __future__ import annotations

from datetime import datetime, timezone
from decimal import Decimal
from typing import Any, Iterable, Mapping

from dateutil import parser as date_parser

from app.domain import (
    ProcessorBalance,
    ProcessorCharge,
    ProcessorPaymentIntent,
    ProcessorPayout,
    ProcessorTransfer,
)
from app.domain.money import ZERO, from_minor_units


def _from_epoch(seconds: float) -> datetime | None:
    try:
        return datetime.fromtimestamp(seconds, tz=timezone.utc)
    except (OverflowError, OSError, ValueError):
        return None


def _parse_timestamp(value: Any) -> datetime | None:
    """Accept unix seconds or ISO strings; always return an aware UTC datetime."""

    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return value if value.tzinfo else value.replace(tzinfo=timezone.utc)
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return _from_epoch(value)
    if isinstance(value, str):
        stripped = value.strip()
        if stripped.isdigit():
            return _from_epoch(int(stripped))
        try:
            parsed = date_parser.isoparse(stripped)
        except (ValueError, OverflowError):
            return None
        return parsed if parsed.tzinfo else parsed.replace(tzinfo=timezone.utc)
    return None


def _created(raw: Mapping[str, Any]) -> datetime:
    return _parse_timestamp(raw.get("created")) or datetime.fromtimestamp(0, tz=timezone.utc)


def _link(value: Any) -> str | None:
    """Expandable fields come back either as an id or as the embedded object."""

    if isinstance(value, str):
        return value or None
    if isinstance(value, Mapping):
        candidate = value.get("id")
        return str(candidate) if candidate else None
    return None


def _sum_minor_units(entries: Iterable[Any]) -> Decimal:
    total = ZERO
    for entry in entries or []:
        if isinstance(entry, Mapping):
            total += from_minor_units(entry.get("amount") or 0)
    return total


def normalize_balance(raw: Mapping[str, Any]) -> ProcessorBalance:
    return ProcessorBalance(
        available=_sum_minor_units(raw.get("available") or []),
        pending=_sum_minor_units(raw.get("pending") or []),
    )


def normalize_payment_intent(raw: Mapping[str, Any]) -> ProcessorPaymentIntent:
    amount = raw.get("amount_received") or raw.get("amount") or 0
    return ProcessorPaymentIntent(
        intent_id=str(raw["id"]),
        amount=from_minor_units(amount),
        created_at=_created(raw),
        status=str(raw.get("status") or "unknown"),
        description=raw.get("description"),
        customer=_link(raw.get("customer")),
    )


def charge_destination(raw: Mapping[str, Any]) -> str | None:
    transfer_data = raw.get("transfer_data")
    if isinstance(transfer_data, Mapping):
        destination = _link(transfer_data.get("destination"))
        if destination:
            return destination
    return _link(raw.get("destination")) or _link(raw.get("on_behalf_of"))


def normalize_charge(raw: Mapping[str, Any]) -> ProcessorCharge:
    return ProcessorCharge(
        charge_id=str(raw["id"]),
        amount=from_minor_units(raw.get("amount") or 0),
        created_at=_created(raw),
        status=str(raw.get("status") or "unknown"),
        payment_intent=_link(raw.get("payment_intent")),
        destination=charge_destination(raw),
        description=raw.get("description"),
        customer=_link(raw.get("customer")),
    )


def normalize_transfer(raw: Mapping[str, Any]) -> ProcessorTransfer:
    return ProcessorTransfer(
        transfer_id=str(raw["id"]),
        amount=from_minor_units(raw.get("amount") or 0),
        amount_reversed=from_minor_units(raw.get("amount_reversed") or 0),
        created_at=_created(raw),
        reversed=bool(raw.get("reversed")),
        destination=_link(raw.get("destination")),
        source_transaction=_link(raw.get("source_transaction")),
        description=raw.get("description"),
    )


def normalize_payout(raw: Mapping[str, Any]) -> ProcessorPayout:
    return ProcessorPayout(
        payout_id=str(raw["id"]),
        amount=from_minor_units(raw.get("amount") or 0),
        status=str(raw.get("status") or "unknown"),
        created_at=_created(raw),
        arrival_date=_parse_timestamp(raw.get("arrival_date")),
    )


def parse_arrival(raw: Mapping[str, Any]) -> datetime | None:
    return _parse_timestamp(raw.get("arrival_date"))


__all__ = [
    "charge_destination",
    "normalize_balance",
    "normalize_charge",
    "normalize_payment_intent",
    "normalize_payout",
    "normalize_transfer",
    "parse_arrival",
]
