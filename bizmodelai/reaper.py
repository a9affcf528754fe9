"""
Cron entry point: delete expired temporary users and expired quiz attempts

    bizmodelai-reap [--batch-size N]
"""
import argparse
import logging
import sys

from bizmodelai.config import get_settings
from bizmodelai.database import Database
from bizmodelai.services.user_service import user_service

logger = logging.getLogger(__name__)


def main(argv=None) -> int:
    settings = get_settings()
    logging.basicConfig(
        level=getattr(logging, settings.LOG_LEVEL),
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    )

    parser = argparse.ArgumentParser(description="Delete expired BizModelAI data")
    parser.add_argument("--batch-size", type=int, default=settings.REAPER_BATCH_SIZE)
    args = parser.parse_args(argv)

    database = Database(settings.DATABASE_URL, echo=settings.DATABASE_ECHO).open()
    try:
        with database.session() as db:
            summary = user_service.reap_expired(db, batch_size=args.batch_size)
    finally:
        database.close()

    print(
        f"Deleted {summary.users} users, {summary.attempts} quiz attempts, "
        f"{summary.payments} payments ({summary.failed} failed)"
    )
    return 1 if summary.failed else 0


if __name__ == "__main__":
    sys.exit(main())
