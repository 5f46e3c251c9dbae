from __future__ import annotations

from typing import Any, Mapping

import httpx
from loguru import logger

from app.core.config import settings


class ProcessorError(RuntimeError):
    """Processor refused or failed a request; ``str()`` is safe to show users."""

    def __init__(
        self,
        message: str,
        *,
        status_code: int | None = None,
        code: str | None = None,
    ) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.code = code


class StripeClient:
    """Thin wrapper around the processor REST endpoints used for earnings and payouts."""

    def __init__(
        self,
        *,
        api_key: str | None = None,
        base_url: str | None = None,
        api_version: str | None = None,
        payout_method: str | None = None,
        statement_descriptor: str | None = None,
        timeout: float | None = None,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        self.api_key = api_key or settings.stripe_api_key
        if not self.api_key:
            raise ValueError("STRIPE_API_KEY must be configured to reach the payment processor")
        self.base_url = base_url or str(settings.stripe_api_base)
        self.payout_method = payout_method or settings.payout_method
        self.statement_descriptor = statement_descriptor or settings.payout_statement_descriptor
        self.timeout = timeout or settings.processor_timeout_seconds

        headers: dict[str, str] = {}
        version = api_version or settings.stripe_api_version
        if version:
            headers["Stripe-Version"] = version

        self.client = httpx.Client(
            base_url=self.base_url,
            auth=(self.api_key, ""),
            headers=headers,
            timeout=self.timeout,
            transport=transport,
        )

    @staticmethod
    def _account_headers(account_id: str | None) -> dict[str, str]:
        return {"Stripe-Account": account_id} if account_id else {}

    @staticmethod
    def _raise_for_error(response: httpx.Response) -> None:
        if response.is_success:
            return
        message = f"Processor request failed with HTTP {response.status_code}"
        code: str | None = None
        try:
            payload = response.json()
        except ValueError:
            payload = None
        if isinstance(payload, dict) and isinstance(payload.get("error"), dict):
            error = payload["error"]
            message = error.get("message") or message
            code = error.get("code") or error.get("type")
        raise ProcessorError(message, status_code=response.status_code, code=code)

    def _get(
        self,
        path: str,
        *,
        params: Mapping[str, Any] | None = None,
        account_id: str | None = None,
    ) -> dict[str, Any]:
        logger.debug("Processor GET {} params={} account={}", path, params, account_id)
        try:
            response = self.client.get(
                path, params=params, headers=self._account_headers(account_id)
            )
        except httpx.HTTPError as exc:
            raise ProcessorError(f"Processor unreachable: {exc}") from exc
        self._raise_for_error(response)
        return response.json()

    def _list(
        self,
        path: str,
        *,
        params: Mapping[str, Any],
        account_id: str | None = None,
    ) -> list[dict[str, Any]]:
        payload = self._get(path, params=params, account_id=account_id)
        data = payload.get("data") if isinstance(payload, dict) else None
        return [item for item in data if isinstance(item, dict)] if isinstance(data, list) else []

    def get_balance(self, account_id: str) -> dict[str, Any]:
        return self._get("/v1/balance", account_id=account_id)

    def list_payouts(self, account_id: str, *, limit: int) -> list[dict[str, Any]]:
        return self._list("/v1/payouts", params={"limit": limit}, account_id=account_id)

    def list_transfers(self, destination: str, *, limit: int) -> list[dict[str, Any]]:
        return self._list(
            "/v1/transfers", params={"destination": destination, "limit": limit}
        )

    def list_charges(self, *, limit: int) -> list[dict[str, Any]]:
        return self._list("/v1/charges", params={"limit": limit})

    def list_payment_intents(self, account_id: str, *, limit: int) -> list[dict[str, Any]]:
        return self._list(
            "/v1/payment_intents", params={"limit": limit}, account_id=account_id
        )

    def retrieve_account(self, account_id: str) -> dict[str, Any]:
        return self._get(f"/v1/accounts/{account_id}")

    def create_payout(
        self,
        account_id: str,
        *,
        amount: int,
        currency: str,
        idempotency_key: str | None = None,
    ) -> dict[str, Any]:
        if amount <= 0:
            raise ProcessorError("Payout amount must be positive")
        headers = self._account_headers(account_id)
        if idempotency_key:
            headers["Idempotency-Key"] = idempotency_key
        data = {
            "amount": str(amount),
            "currency": currency,
            "method": self.payout_method,
        }
        if self.statement_descriptor:
            data["statement_descriptor"] = self.statement_descriptor
        logger.info(
            "Processor POST /v1/payouts amount={} currency={} account={}",
            amount,
            currency,
            account_id,
        )
        try:
            response = self.client.post("/v1/payouts", data=data, headers=headers)
        except httpx.HTTPError as exc:
            raise ProcessorError(f"Processor unreachable: {exc}") from exc
        self._raise_for_error(response)
        return response.json()

    def close(self) -> None:
        self.client.close()

    def __enter__(self) -> "StripeClient":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()
