from decimal import Decimal
from functools import lru_cache
from typing import Any
from urllib.parse import parse_qsl, urlencode, urlparse, urlunparse

from pydantic import AnyUrl, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


def _ensure_sqlalchemy_postgres_scheme(value: str) -> str:
    if not value.lower().startswith("postgres"):
        return value

    parsed = urlparse(value)
    scheme = parsed.scheme.lower()

    if scheme == "postgres":
        scheme = "postgresql"

    if scheme == "postgresql":
        scheme = "postgresql+psycopg"

    query_params = dict(parse_qsl(parsed.query, keep_blank_values=True))
    query_params.setdefault("sslmode", "require")
    new_query = urlencode(query_params, doseq=True)

    return urlunparse(parsed._replace(scheme=scheme, query=new_query))


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env", env_file_encoding="utf-8", extra="ignore"
    )

    debug: bool = Field(False, description="Enable FastAPI debug mode")
    environment: str = Field(
        default="development",
        description="Runtime environment (development|staging|production)",
    )
    database_url: AnyUrl | str = Field(
        default="sqlite:///../data/earnings.db",
        description="SQLAlchemy compatible database URL",
    )
    stripe_api_key: str | None = Field(
        default=None,
        description="Secret key used for processor balance, history and payout calls",
    )
    stripe_api_base: AnyUrl = Field(
        default="https://api.stripe.com",
        description="Base URL for the payment processor REST API",
    )
    stripe_api_version: str | None = Field(
        default=None,
        description="Optional pinned processor API version sent with every request",
    )
    processor_timeout_seconds: float = Field(
        default=10.0,
        description="Per-request timeout for processor calls",
        gt=0,
    )
    minimum_payout_amount: Decimal = Field(
        default=Decimal("10.00"),
        description="Smallest withdrawal a user may request, in currency units",
    )
    recent_transactions_limit: int = Field(
        default=10,
        description="Number of merged transactions exposed in an earnings snapshot",
        ge=1,
    )
    payout_currency: str = Field(
        default="usd",
        description="Default ISO currency for payouts",
    )
    payout_method: str = Field(
        default="standard",
        description="Processor payout method (standard|instant)",
    )
    payout_statement_descriptor: str = Field(
        default="Pulse Earnings",
        description="Statement descriptor attached to every payout leg",
    )
    payout_arrival_days: int = Field(
        default=3,
        description="Business-day estimate shown to users for payout arrival",
        ge=0,
    )
    payout_history_limit: int = Field(default=10, ge=1, le=100)
    transfer_history_limit: int = Field(default=100, ge=1, le=100)
    charge_history_limit: int = Field(default=20, ge=1, le=100)
    payment_intent_history_limit: int = Field(default=20, ge=1, le=100)
    internal_payment_limit: int = Field(
        default=20,
        description="Rows read from each internal payment collection per reconciliation",
        ge=1,
    )
    fetcher_max_workers: int = Field(
        default=5,
        description="Thread pool size used to fan out processor reads",
        ge=1,
    )
    sync_fee_rate: Decimal = Field(
        default=Decimal("0.03"),
        description="Approximate platform fee applied when backfilling processor-only payments",
    )

    @field_validator("minimum_payout_amount")
    @classmethod
    def _validate_minimum(cls, value: Decimal) -> Decimal:
        if value <= 0:
            raise ValueError("MINIMUM_PAYOUT_AMOUNT must be positive")
        return value.quantize(Decimal("0.01"))

    @field_validator("payout_currency")
    @classmethod
    def _validate_currency(cls, value: str) -> str:
        candidate = value.strip().lower()
        if len(candidate) != 3 or not candidate.isalpha():
            raise ValueError("PAYOUT_CURRENCY must be a three-letter ISO code")
        return candidate

    @field_validator("payout_method")
    @classmethod
    def _validate_method(cls, value: str) -> str:
        if value not in {"standard", "instant"}:
            raise ValueError("PAYOUT_METHOD must be 'standard' or 'instant'")
        return value

    @field_validator("sync_fee_rate")
    @classmethod
    def _validate_fee_rate(cls, value: Decimal) -> Decimal:
        if not Decimal("0") <= value < Decimal("1"):
            raise ValueError("SYNC_FEE_RATE must be between 0 and 1")
        return value

    @field_validator("database_url", mode="before")
    @classmethod
    def _normalize_postgres_urls(cls, value: Any) -> Any:
        if value is None or not isinstance(value, str):
            return value
        if value.startswith("postgres://"):
            return "postgresql://" + value[len("postgres://") :]
        return value

    @property
    def resolved_database_url(self) -> str:
        return _ensure_sqlalchemy_postgres_scheme(str(self.database_url))


@lru_cache
def get_settings() -> Settings:
    return Settings()


settings = get_settings()
