from __future__ import annotations

from collections.abc import Iterator
from typing import Any

from fastapi import Depends, FastAPI, HTTPException
from loguru import logger

from . import schemas
from .core.config import settings
from .db import get_db, init_db
from .domain import (
    InsufficientBalanceError,
    NoAccountError,
    PayoutInternalError,
    PayoutValidationError,
    UserNotFoundError,
)
from .repositories import AccountRepository, PaymentRepository, PrizeRepository
from .services.account_directory import AccountDirectory
from .services.account_health import AccountHealthChecker
from .services.compatibility import creator_earnings_view, prize_history_view
from .services.earnings_service import EarningsAggregator
from .services.payout_executor import PayoutExecutor
from .services.payout_logger import PayoutRecordLogger
from .services.payout_service import PayoutService
from processor.base import PayoutProcessor
from processor.client import StripeClient
from processor.fetchers import SourceFetchers

app = FastAPI(title="Creator Earnings API", version="0.1.0", debug=settings.debug)


@app.on_event("startup")
def on_startup() -> None:
    """Initialize database connections when the API boots."""

    init_db()


@app.get("/healthz", tags=["system"])
def healthcheck() -> dict[str, str]:
    """Basic readiness probe consumed by infrastructure monitors."""

    return {"status": "ok"}


def _processor() -> Iterator[PayoutProcessor | None]:
    """Yield a processor client for the request, or ``None`` when no API key is configured."""

    if not settings.stripe_api_key:
        yield None
        return
    with StripeClient() as client:
        yield client


def _account_directory(db=Depends(get_db)) -> AccountDirectory:
    return AccountDirectory(AccountRepository(db))


def _earnings_aggregator(
    db=Depends(get_db),
    processor: PayoutProcessor | None = Depends(_processor),
    directory: AccountDirectory = Depends(_account_directory),
) -> EarningsAggregator:
    """Provide the earnings aggregator wired with a SQLAlchemy session and processor."""

    fetchers = SourceFetchers(processor, PaymentRepository(db))
    return EarningsAggregator(directory, fetchers, PrizeRepository(db))


def _require_processor(processor: PayoutProcessor | None) -> PayoutProcessor:
    if processor is None:
        raise HTTPException(status_code=500, detail="Payment processor is not configured")
    return processor


def _payout_service(
    db=Depends(get_db),
    processor: PayoutProcessor | None = Depends(_processor),
    directory: AccountDirectory = Depends(_account_directory),
    aggregator: EarningsAggregator = Depends(_earnings_aggregator),
) -> PayoutService:
    executor = PayoutExecutor(_require_processor(processor))
    return PayoutService(directory, aggregator, executor, PayoutRecordLogger(db))


def _health_checker(
    processor: PayoutProcessor | None = Depends(_processor),
    directory: AccountDirectory = Depends(_account_directory),
) -> AccountHealthChecker:
    return AccountHealthChecker(directory, _require_processor(processor))


def _user_not_found(exc: UserNotFoundError) -> HTTPException:
    return HTTPException(status_code=404, detail=str(exc))


@app.get("/earnings/{user_id}", response_model=schemas.EarningsResponse, tags=["earnings"])
def get_earnings(user_id: str, aggregator: EarningsAggregator = Depends(_earnings_aggregator)):
    """Return the unified creator + winner earnings snapshot for a user."""

    try:
        snapshot = aggregator.aggregate(user_id)
    except UserNotFoundError as exc:
        raise _user_not_found(exc) from exc
    return schemas.earnings_response(snapshot)


@app.get("/earnings/{user_id}/creator", tags=["earnings"])
def get_creator_earnings(
    user_id: str, aggregator: EarningsAggregator = Depends(_earnings_aggregator)
) -> dict[str, Any]:
    """Creator-only earnings in the pre-unification response shape."""

    try:
        snapshot = aggregator.aggregate(user_id)
    except UserNotFoundError as exc:
        raise _user_not_found(exc) from exc
    return creator_earnings_view(snapshot)


@app.get("/earnings/{user_id}/prizes", tags=["earnings"])
def get_prize_history(
    user_id: str, aggregator: EarningsAggregator = Depends(_earnings_aggregator)
) -> dict[str, Any]:
    """Winner prize history in the pre-unification response shape."""

    try:
        snapshot = aggregator.aggregate(user_id)
    except UserNotFoundError as exc:
        raise _user_not_found(exc) from exc
    return prize_history_view(snapshot)


@app.post("/payouts", response_model=schemas.PayoutResponse, tags=["payouts"])
def create_payout(
    request: schemas.PayoutRequest, service: PayoutService = Depends(_payout_service)
):
    """Withdraw from the creator and/or winner balances, splitting when necessary."""

    try:
        summary = service.request_payout(
            request.user_id, request.amount, currency=request.currency
        )
    except UserNotFoundError as exc:
        raise _user_not_found(exc) from exc
    except InsufficientBalanceError as exc:
        raise HTTPException(
            status_code=400,
            detail={
                "message": str(exc),
                "requested": float(exc.requested),
                "available": float(exc.total_available),
                "creator_available": float(exc.creator_available),
                "winner_available": float(exc.winner_available),
            },
        ) from exc
    except (NoAccountError, PayoutValidationError) as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    except PayoutInternalError as exc:
        logger.error("Payout request for {} failed: {}", request.user_id, exc)
        raise HTTPException(status_code=500, detail=str(exc)) from exc
    return schemas.payout_response(summary)


@app.get(
    "/accounts/{user_id}/health",
    response_model=schemas.AccountHealthResponse,
    tags=["accounts"],
)
def get_account_health(user_id: str, checker: AccountHealthChecker = Depends(_health_checker)):
    """Compare stored payout accounts with the processor's view of them."""

    try:
        report = checker.check(user_id)
    except UserNotFoundError as exc:
        raise _user_not_found(exc) from exc
    return schemas.account_health_response(report)
