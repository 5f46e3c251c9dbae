"""Contract for the external payout processor."""

from __future__ import annotations

from typing import Any, Mapping, Protocol


class PayoutProcessor(Protocol):
    """Interface implemented by processor adapters; every call is scoped to one account."""

    def get_balance(self, account_id: str) -> Mapping[str, Any]:
        """Return the raw balance object (``available``/``pending`` lists)."""

    def list_payouts(self, account_id: str, *, limit: int) -> list[Mapping[str, Any]]:
        """Return recent payouts issued from the connected account."""

    def list_transfers(self, destination: str, *, limit: int) -> list[Mapping[str, Any]]:
        """Return platform transfers into ``destination``."""

    def list_charges(self, *, limit: int) -> list[Mapping[str, Any]]:
        """Return recent platform charges."""

    def list_payment_intents(self, account_id: str, *, limit: int) -> list[Mapping[str, Any]]:
        """Return payment intents created on the connected account."""

    def create_payout(
        self,
        account_id: str,
        *,
        amount: int,
        currency: str,
        idempotency_key: str | None = None,
    ) -> Mapping[str, Any]:
        """Issue a payout of ``amount`` minor units; raises on processor refusal."""

    def retrieve_account(self, account_id: str) -> Mapping[str, Any]:
        """Return the connected account object."""


__all__ = ["PayoutProcessor"]
