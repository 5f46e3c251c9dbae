from __future__ import annotations

import json
import sys
from collections.abc import Iterator
from pathlib import Path
from typing import Any

sys.path.insert(0, str(Path(__file__).resolve().parents[1]))

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from app import models  # noqa: F401
from app.db import Base
from processor.client import ProcessorError

# 2026-01-15T12:00:00Z
BASE_TS = 1768478400


class FakeProcessor:
    """In-memory stand-in for the processor API with per-call failure injection."""

    def __init__(self) -> None:
        self.balance: dict[str, Any] = {"available": [], "pending": []}
        self.payouts: list[dict[str, Any]] = []
        self.transfers: list[dict[str, Any]] = []
        self.charges: list[dict[str, Any]] = []
        self.intents: list[dict[str, Any]] = []
        self.accounts: dict[str, dict[str, Any]] = {}
        self.failures: dict[str, Exception] = {}
        self.payout_failures: dict[str, Exception] = {}
        self.created_payouts: list[dict[str, Any]] = []

    def _maybe_fail(self, name: str) -> None:
        exc = self.failures.get(name)
        if exc is not None:
            raise exc

    def set_balance(self, available_cents: int, pending_cents: int = 0) -> None:
        self.balance = {
            "available": [{"amount": available_cents, "currency": "usd"}],
            "pending": [{"amount": pending_cents, "currency": "usd"}],
        }

    def get_balance(self, account_id: str) -> dict[str, Any]:
        self._maybe_fail("get_balance")
        return self.balance

    def list_payouts(self, account_id: str, *, limit: int) -> list[dict[str, Any]]:
        self._maybe_fail("list_payouts")
        return self.payouts[:limit]

    def list_transfers(self, destination: str, *, limit: int) -> list[dict[str, Any]]:
        self._maybe_fail("list_transfers")
        return self.transfers[:limit]

    def list_charges(self, *, limit: int) -> list[dict[str, Any]]:
        self._maybe_fail("list_charges")
        return self.charges[:limit]

    def list_payment_intents(self, account_id: str, *, limit: int) -> list[dict[str, Any]]:
        self._maybe_fail("list_payment_intents")
        return self.intents[:limit]

    def create_payout(
        self,
        account_id: str,
        *,
        amount: int,
        currency: str,
        idempotency_key: str | None = None,
    ) -> dict[str, Any]:
        self.created_payouts.append(
            {
                "account_id": account_id,
                "amount": amount,
                "currency": currency,
                "idempotency_key": idempotency_key,
            }
        )
        exc = self.payout_failures.get(account_id)
        if exc is not None:
            raise exc
        return {
            "id": f"po_{len(self.created_payouts)}",
            "status": "pending",
            "arrival_date": BASE_TS + 3 * 86400,
        }

    def retrieve_account(self, account_id: str) -> dict[str, Any]:
        self._maybe_fail("retrieve_account")
        if account_id not in self.accounts:
            raise ProcessorError(f"No such account: '{account_id}'", status_code=404)
        return self.accounts[account_id]


@pytest.fixture
def fake_processor() -> FakeProcessor:
    return FakeProcessor()


@pytest.fixture
def db_session() -> Iterator[Session]:
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
        future=True,
    )
    Base.metadata.create_all(bind=engine)
    factory = sessionmaker(bind=engine, autoflush=True, future=True)
    session = factory()
    try:
        yield session
    finally:
        session.close()
        engine.dispose()


@pytest.fixture
def sample_charge_payload() -> dict[str, object]:
    path = Path(__file__).parent / "data" / "sample_charge.json"
    return json.loads(path.read_text(encoding="utf-8"))
