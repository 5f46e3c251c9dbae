import argparse

from loguru import logger

from app.core.config import get_settings
from app.db import init_db, session_scope
from app.repositories import AccountRepository, PaymentRepository
from app.services.account_directory import to_profile
from app.services.sync_backfill import SyncGapBackfill
from processor.client import StripeClient
from processor.fetchers import SourceFetchers


def parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Write processor-only creator payments into the internal payment store"
    )
    parser.add_argument(
        "--user-id",
        action="append",
        default=None,
        help="Backfill only this user (repeatable). Defaults to every user with a creator account.",
    )
    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Report the gaps that would be written without touching the store.",
    )
    return parser.parse_args()


def main() -> None:
    args = parse_args()
    settings = get_settings()
    init_db()

    written = 0
    with StripeClient() as client:
        with session_scope() as session:
            accounts = AccountRepository(session)
            payments = PaymentRepository(session)
            if args.user_id:
                users = [(user_id, accounts.get_user(user_id)) for user_id in args.user_id]
            else:
                users = [(record.user_id, record) for record in accounts.list_creator_accounts()]

            backfill = SyncGapBackfill(
                SourceFetchers(client, payments),
                payments,
                fee_rate=settings.sync_fee_rate,
            )
            for user_id, record in users:
                if record is None:
                    logger.warning("Ignoring unknown user {}", user_id)
                    continue
                profile = to_profile(record)
                if not profile.creator.present:
                    logger.warning("User {} has no creator account; skipping", profile.user_id)
                    continue
                result = backfill.backfill_user(
                    profile.user_id, profile.creator.account_id, dry_run=args.dry_run
                )
                written += len(result.written)

    logger.info("Backfilled {} payment record(s){}", written, " (dry run)" if args.dry_run else "")


if __name__ == "__main__":
    main()
